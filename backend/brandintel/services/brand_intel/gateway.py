"""Service contracts consumed by the pipeline and their live implementation."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from brandintel.config import get_settings
from brandintel.services.llm import LLMOrchestrator, LLMRequest, LLMStage
from brandintel.services.persistence import SqlEntityStore
from brandintel.services.retrieval.company_connectors import lookup_company
from brandintel.services.retrieval.crawl_connectors import scrape_page
from brandintel.services.retrieval.search_connectors import web_search


class ServiceGateway(ABC):
    """The narrow contracts the pipeline needs from the outside world.

    Implementations may raise from any method; every caller in the pipeline
    recovers locally.
    """

    @abstractmethod
    async def search(self, query: str, max_results: int, search_type: str = "all") -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def lookup_company(self, domain: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def scrape_page(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def complete_chat(
        self,
        stage: LLMStage,
        prompt: str,
        temperature: Optional[float] = None,
        expect_json: bool = True,
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def persist_entity(self, kind: str, payload: Mapping[str, Any]) -> str:
        raise NotImplementedError


class LiveServiceGateway(ServiceGateway):
    """Wires the contracts to the retrieval connectors, LLM routes and SQL store."""

    def __init__(
        self,
        llm: Optional[LLMOrchestrator] = None,
        store: Optional[SqlEntityStore] = None,
    ):
        self._llm = llm
        self._store = store

    async def search(self, query: str, max_results: int, search_type: str = "all") -> Dict[str, Any]:
        return await web_search(query, max_results=max_results, search_type=search_type)

    async def lookup_company(self, domain: str) -> Optional[Dict[str, Any]]:
        return await lookup_company(domain)

    async def scrape_page(self, url: str, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await scrape_page(url, options)

    async def complete_chat(
        self,
        stage: LLMStage,
        prompt: str,
        temperature: Optional[float] = None,
        expect_json: bool = True,
    ) -> str:
        if self._llm is None:
            self._llm = LLMOrchestrator()
        response = await self._llm.run_stage(
            LLMRequest(
                stage=stage,
                prompt=prompt,
                temperature=temperature,
                timeout_seconds=get_settings().llm_request_timeout_seconds,
                expect_json=expect_json,
            )
        )
        return response.text

    async def persist_entity(self, kind: str, payload: Mapping[str, Any]) -> str:
        if self._store is None:
            self._store = SqlEntityStore()
        return await self._store.persist_entity(kind, payload)
