import asyncio
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brandintel.workers.celery_app import celery_app
from brandintel.config import get_settings
from brandintel.services.brand_intel import LiveServiceGateway, ScanOptions, scan_brand
from brandintel.services.persistence import SqlEntityStore

logger = logging.getLogger(__name__)

_OPTION_KEYS = ("depth", "max_pages", "brand_id", "skip_sync")


def _scan_options(options: Optional[Dict[str, Any]]) -> ScanOptions:
    values = {key: value for key, value in (options or {}).items() if key in _OPTION_KEYS and value is not None}
    return ScanOptions(**values)


@celery_app.task(name="brandintel.workers.tasks.run_brand_scan")
def run_brand_scan(domain: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Run a brand scan on a fresh event loop and return the serialized result."""
    settings = get_settings()
    scan_options = _scan_options(options)

    # The async engine is bound to the loop it is used on, so each task owns one.
    engine = create_async_engine(settings.database_url, echo=settings.debug, future=True)
    store = SqlEntityStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    gateway = LiveServiceGateway(store=store)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        result = loop.run_until_complete(scan_brand(domain, scan_options, gateway=gateway))
    finally:
        loop.run_until_complete(engine.dispose())
        loop.close()

    if result.errors:
        logger.warning("Scan of %s finished with %d errors", domain, len(result.errors))
    return result.to_dict()
