from datetime import datetime
from typing import Optional
import uuid

from fastapi import FastAPI, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from securemail.config import settings
from securemail.api.dependencies import get_evaluator, get_store, health_payload
from securemail.api.social import router as social_router
from securemail.pipelines.scan_pipeline import analyze_message
from securemail.schemas.analyze_schemas import (
    AnalyticsResponse,
    AnalyzeRequest,
    AnalyzeResponse,
    CreateScanRequest,
    HealthResponse,
    MessageResponse,
    ScanOut,
    ScanPageResponse,
)
from securemail.services.evaluator import RiskEvaluator
from securemail.services.record_store import (
    InvalidCursorError,
    InvalidRecordError,
    RecordNotFoundError,
    ResilientRecordStore,
    ScanFilters,
)
from securemail.utils.logging_config import StructuredLogger, init_logging, metrics, request_id_var
from securemail.utils.risk_levels import RESULTS

# Initialize structured logging
init_logging()

logger = StructuredLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="SecureMail API",
    version=VERSION,
    description="Heuristic spam and phishing detection for email, SMS and social media",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


# Request id middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_envelope(request: Request, exc: StarletteHTTPException):
    """Errors use the same envelope as successes: {success: false, error}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_envelope(request: Request, exc: RequestValidationError):
    # Field paths and messages only; rejected input (NaN, oversized strings) is not echoed
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "error": "; ".join(problems)},
    )


@app.exception_handler(InvalidRecordError)
async def invalid_record_envelope(request: Request, exc: InvalidRecordError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": str(exc)},
    )


app.include_router(social_router)


@app.get("/health", response_model=HealthResponse)
def health(store: ResilientRecordStore = Depends(get_store)):
    """Health check endpoint, reports database connectivity."""
    return health_payload(store)


@app.get("/status")
def status_info(store: ResilientRecordStore = Depends(get_store)):
    """
    API status and configuration info.
    Useful for debugging and monitoring.
    """
    return {
        "status": "ok",
        "version": VERSION,
        "environment": settings.environment,
        "store": store.mode,
        "thresholds": {
            "spam": settings.spam_threshold,
            "suspicious": settings.suspicious_threshold,
        },
        "score_jitter": settings.score_jitter,
        "metrics": metrics.get_stats(),
    }


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    request: AnalyzeRequest,
    store: ResilientRecordStore = Depends(get_store),
    evaluator: RiskEvaluator = Depends(get_evaluator),
):
    if not request.content or not request.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content is required",
        )

    record = analyze_message(
        store,
        evaluator,
        content=request.content,
        message_type=request.message_type,
        sender=request.sender,
        subject=request.subject,
        phone_number=request.phone_number,
    )
    return AnalyzeResponse(data=ScanOut(**record))


# ============== SCAN HISTORY ENDPOINTS ==============


@app.post("/scans", response_model=AnalyzeResponse)
def create_scan(
    request: CreateScanRequest,
    store: ResilientRecordStore = Depends(get_store),
):
    """Store a scan result computed by another client."""
    if not request.content or not request.result:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content and result are required",
        )
    if request.result not in RESULTS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"result must be one of {list(RESULTS)}",
        )

    record = store.insert(request.model_dump())
    logger.info("External scan stored", scan_id=record["id"], result=record["result"])
    return AnalyzeResponse(data=ScanOut(**record))


@app.get("/scans", response_model=ScanPageResponse)
def list_scans(
    cursor: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    direction: str = Query("forward", pattern="^(forward|backward)$"),
    message_type: Optional[str] = None,
    result: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    store: ResilientRecordStore = Depends(get_store),
):
    """Cursor-paginated scan history. Cursors are opaque tokens."""
    filters = ScanFilters(
        message_type=message_type,
        result=result,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )
    try:
        page = store.list(filters=filters, cursor=cursor, limit=limit, direction=direction)
    except InvalidCursorError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ScanPageResponse(data=page.to_dict())


@app.get("/scans/{scan_id}", response_model=AnalyzeResponse)
def get_scan(scan_id: str, store: ResilientRecordStore = Depends(get_store)):
    try:
        record = store.get_by_id(scan_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scan not found")
    return AnalyzeResponse(data=ScanOut(**record))


@app.delete("/scans/{scan_id}", response_model=MessageResponse)
def delete_scan(scan_id: str, store: ResilientRecordStore = Depends(get_store)):
    try:
        store.delete(scan_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Scan not found")
    return MessageResponse(message="Scan deleted successfully")


@app.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    days: int = Query(7, ge=1, le=365),
    store: ResilientRecordStore = Depends(get_store),
):
    """Aggregate counts and category breakdown over the trailing N days."""
    return AnalyticsResponse(data=store.aggregate(days))
