from celery import Celery
from brandintel.config import get_settings

settings = get_settings()

celery_app = Celery(
    "brandintel",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["brandintel.workers.tasks"],
)

# A scan is bounded by its per-phase deadlines; the task limits sit above their sum.
_scan_budget_seconds = int(
    settings.phase_research_timeout_seconds
    + settings.phase_discovery_timeout_seconds
    + settings.phase_extraction_timeout_seconds
    + settings.phase_sync_timeout_seconds
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=_scan_budget_seconds + 120,
    task_soft_time_limit=_scan_budget_seconds + 60,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "brandintel.workers.tasks.run_brand_scan": {"queue": "brand.scan"},
    },
)
