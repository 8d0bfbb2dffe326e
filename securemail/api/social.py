"""
Social media routes.

Same evaluator and record store as the message routes; every verdict is
stored with the platform name as its message_type.
"""

import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from securemail.config import settings
from securemail.api.dependencies import get_evaluator, get_store, health_payload
from securemail.pipelines.scan_pipeline import analyze_social_content
from securemail.schemas.analyze_schemas import (
    AnalyzeResponse,
    HealthResponse,
    MessageResponse,
    ScanOut,
    ScanPageResponse,
    SocialMediaAnalyticsResponse,
    SocialMediaAnalyzeRequest,
    SocialMediaAnalyzeResponse,
    SocialMediaVerdict,
)
from securemail.services.evaluator import RiskEvaluator
from securemail.services.patterns import SUPPORTED_PLATFORMS
from securemail.services.record_store import (
    InvalidCursorError,
    RecordNotFoundError,
    ResilientRecordStore,
    ScanFilters,
)
from securemail.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)

router = APIRouter(prefix="/social-media", tags=["social-media"])

HIGH_RISK_SPAM_RATE = 0.3
MEDIUM_RISK_SPAM_RATE = 0.15

EXPORT_COLUMNS = ["platform", "result", "confidence_score", "risk_score", "category", "created_at"]


def _parse_platforms(platforms: Optional[str]) -> List[str]:
    """Comma-separated platform list, defaulting to every supported platform."""
    if not platforms:
        return list(SUPPORTED_PLATFORMS)
    return [p.strip().lower() for p in platforms.split(",") if p.strip()]


def platform_risk_level(spam_rate: float) -> str:
    if spam_rate >= HIGH_RISK_SPAM_RATE:
        return "high"
    elif spam_rate >= MEDIUM_RISK_SPAM_RATE:
        return "medium"
    return "low"


def _platform_risk_assessment(by_channel: List[dict], platforms: List[str]) -> List[dict]:
    totals = {entry["channel"]: entry for entry in by_channel}
    assessment = []
    for platform in platforms:
        entry = totals.get(platform)
        total = entry["total"] if entry else 0
        spam_rate = round(entry["spam"] / total, 3) if total else 0.0
        assessment.append({
            "platform": platform,
            "risk_level": platform_risk_level(spam_rate),
            "spam_rate": spam_rate,
            "total": total,
        })
    return assessment


@router.post("/analyze", response_model=SocialMediaAnalyzeResponse)
def analyze_social(
    request: SocialMediaAnalyzeRequest,
    store: ResilientRecordStore = Depends(get_store),
    evaluator: RiskEvaluator = Depends(get_evaluator),
):
    """Run the evaluator once per requested platform."""
    if not request.content or not request.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content is required",
        )
    platforms = [p for p in request.platforms if p and p.strip()]
    if not platforms:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one platform is required",
        )

    results = analyze_social_content(store, evaluator, request.content, platforms)

    data = [
        SocialMediaVerdict(
            platform=platform.capitalize(),
            content=request.content,
            result=verdict.result,
            confidence_score=verdict.confidence_score,
            risk_score=verdict.risk_score,
            category=verdict.category,
            flags=verdict.flags,
            analysis_details=record["analysis_details"],
            timestamp=record["timestamp"],
            scan_id=record["id"],
        )
        for platform, verdict, record in results
    ]
    return SocialMediaAnalyzeResponse(data=data)


@router.get("/analytics", response_model=SocialMediaAnalyticsResponse)
def social_analytics(
    days: int = Query(7, ge=1, le=365),
    store: ResilientRecordStore = Depends(get_store),
):
    platforms = list(SUPPORTED_PLATFORMS)
    data = store.aggregate(days, channels=platforms)
    data["platform_risk_assessment"] = _platform_risk_assessment(data["by_channel"], platforms)
    return SocialMediaAnalyticsResponse(data=data)


@router.get("/history", response_model=ScanPageResponse)
def social_history(
    platforms: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    direction: str = Query("forward", pattern="^(forward|backward)$"),
    store: ResilientRecordStore = Depends(get_store),
):
    filters = ScanFilters(channels=_parse_platforms(platforms))
    try:
        page = store.list(filters=filters, cursor=cursor, limit=limit, direction=direction)
    except InvalidCursorError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ScanPageResponse(data=page.to_dict())


@router.get("/analysis/{scan_id}", response_model=AnalyzeResponse)
def get_social_analysis(scan_id: str, store: ResilientRecordStore = Depends(get_store)):
    try:
        record = store.get_by_id(scan_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return AnalyzeResponse(data=ScanOut(**record))


@router.delete("/analysis/{scan_id}", response_model=MessageResponse)
def delete_social_analysis(scan_id: str, store: ResilientRecordStore = Depends(get_store)):
    try:
        store.delete(scan_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return MessageResponse(message="Analysis deleted successfully")


@router.get("/export")
def export_social(
    platforms: Optional[str] = None,
    store: ResilientRecordStore = Depends(get_store),
):
    """Full social media history as CSV, oldest first."""
    filters = ScanFilters(channels=_parse_platforms(platforms))

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)

    rows = 0
    cursor = None
    while True:
        page = store.list(filters=filters, cursor=cursor, limit=settings.max_page_size)
        for record in page.records:
            writer.writerow([
                record["message_type"],
                record["result"],
                record["confidence_score"],
                record["risk_score"],
                record["category"] or "",
                record["created_at"].isoformat(),
            ])
            rows += 1
        if not page.has_next:
            break
        cursor = page.next_cursor

    logger.info("Social media history exported", rows=rows)
    buffer.seek(0)
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=social-media-history.csv"},
    )


@router.get("/health", response_model=HealthResponse)
def social_health(store: ResilientRecordStore = Depends(get_store)):
    return health_payload(store)
