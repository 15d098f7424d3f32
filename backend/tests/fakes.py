"""In-memory ServiceGateway used across the pipeline tests."""

import json
from typing import Any, Callable, Dict, List, Optional, Union

from brandintel.services.brand_intel.gateway import ServiceGateway

Reply = Union[str, Exception, Callable[..., Any]]


class FakeGateway(ServiceGateway):
    """Scripted responses keyed by URL / stage, with every call recorded."""

    def __init__(
        self,
        pages: Optional[Dict[str, Dict[str, Any]]] = None,
        search_results: Optional[List[Dict[str, Any]]] = None,
        company: Optional[Dict[str, Any]] = None,
        chat: Optional[Dict[str, List[Reply]]] = None,
        chat_default: Reply = "{}",
        search_error: Optional[Exception] = None,
        company_error: Optional[Exception] = None,
        persist_errors: Optional[Dict[str, Exception]] = None,
    ):
        self.pages = pages or {}
        self.search_results = search_results or []
        self.company = company
        self.chat = {stage: list(replies) for stage, replies in (chat or {}).items()}
        self.chat_default = chat_default
        self.search_error = search_error
        self.company_error = company_error
        self.persist_errors = persist_errors or {}

        self.search_calls: List[Dict[str, Any]] = []
        self.scrape_calls: List[str] = []
        self.chat_calls: List[Dict[str, Any]] = []
        self.persisted: List[Dict[str, Any]] = []

    async def search(self, query: str, max_results: int, search_type: str = "all") -> Dict[str, Any]:
        self.search_calls.append({"query": query, "max_results": max_results, "search_type": search_type})
        if self.search_error:
            raise self.search_error
        return {"results": list(self.search_results)}

    async def lookup_company(self, domain: str) -> Optional[Dict[str, Any]]:
        if self.company_error:
            raise self.company_error
        return self.company

    async def scrape_page(self, url: str, options=None) -> Dict[str, Any]:
        self.scrape_calls.append(url)
        page = self.pages.get(url.rstrip("/")) or self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if page is None:
            return {"url": url, "success": False, "markdown": "", "html": None, "title": "", "error": "404"}
        return {"url": url, "success": True, "title": "", "html": None, **page}

    async def complete_chat(self, stage, prompt: str, temperature=None, expect_json: bool = True) -> str:
        key = getattr(stage, "value", stage)
        self.chat_calls.append({"stage": key, "prompt": prompt, "temperature": temperature})
        replies = self.chat.get(key)
        reply = replies.pop(0) if replies else self.chat_default
        if callable(reply) and not isinstance(reply, Exception):
            reply = reply(prompt)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply

    async def persist_entity(self, kind: str, payload) -> str:
        error = self.persist_errors.get(kind)
        if error:
            raise error
        self.persisted.append({"kind": kind, **dict(payload)})
        return f"{kind}-{len(self.persisted)}"


def long_markdown(text: str, size: int = 600) -> str:
    """Pad page content past the probe and site-map length thresholds."""
    body = text
    while len(body) < size:
        body += " " + text
    return body
