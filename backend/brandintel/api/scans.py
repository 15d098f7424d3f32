"""Brand scan API routes - inline scans and Celery-backed scan jobs."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, Literal

from celery.result import AsyncResult

from brandintel.services.brand_intel import (
    LiveServiceGateway,
    ScanOptions,
    ServiceGateway,
    assess_scan_quality,
    quick_scan,
    scan_brand,
)
from brandintel.workers.celery_app import celery_app

router = APIRouter()


# ============================================================================
# Pydantic Schemas
# ============================================================================

class ScanRequest(BaseModel):
    domain: str = Field(..., min_length=1)
    depth: Literal["quick", "thorough"] = "thorough"
    max_pages: Optional[int] = Field(default=None, ge=0, le=100)
    brand_id: Optional[str] = None
    skip_sync: bool = False
    include_html: bool = False

    def to_options(self) -> ScanOptions:
        return ScanOptions(
            depth=self.depth,
            max_pages=self.max_pages,
            brand_id=self.brand_id,
            skip_sync=self.skip_sync,
        )


class QuickScanRequest(BaseModel):
    domain: str = Field(..., min_length=1)


class ScanJobResponse(BaseModel):
    task_id: str
    state: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def get_gateway() -> ServiceGateway:
    return LiveServiceGateway()


def _scan_response(result, include_html: bool = False) -> Dict[str, Any]:
    payload = result.to_dict(include_html=include_html)
    report = assess_scan_quality(result)
    payload["quality"] = {
        "valid": report.valid,
        "score": report.score,
        "summary": report.summary,
        "issues": [issue.__dict__ for issue in report.issues],
    }
    return payload


# ============================================================================
# Inline scans
# ============================================================================

@router.post("")
async def run_scan(payload: ScanRequest, gateway: ServiceGateway = Depends(get_gateway)):
    result = await scan_brand(payload.domain, payload.to_options(), gateway=gateway)
    return _scan_response(result, include_html=payload.include_html)


@router.post("/quick")
async def run_quick_scan(payload: QuickScanRequest, gateway: ServiceGateway = Depends(get_gateway)):
    result = await quick_scan(payload.domain, gateway=gateway)
    return _scan_response(result)


# ============================================================================
# Background jobs
# ============================================================================

@router.post("/jobs", response_model=ScanJobResponse, status_code=202)
async def enqueue_scan(payload: ScanRequest):
    from brandintel.workers.tasks import run_brand_scan

    task = run_brand_scan.delay(
        payload.domain,
        {
            "depth": payload.depth,
            "max_pages": payload.max_pages,
            "brand_id": payload.brand_id,
            "skip_sync": payload.skip_sync,
        },
    )
    return ScanJobResponse(task_id=str(task.id), state="PENDING")


@router.get("/jobs/{task_id}", response_model=ScanJobResponse)
async def get_scan_job(task_id: str):
    task = AsyncResult(task_id, app=celery_app)
    state = str(task.state)
    if state == "SUCCESS":
        return ScanJobResponse(task_id=task_id, state=state, result=task.result)
    if state == "FAILURE":
        return ScanJobResponse(task_id=task_id, state=state, error=str(task.result))
    return ScanJobResponse(task_id=task_id, state=state)
