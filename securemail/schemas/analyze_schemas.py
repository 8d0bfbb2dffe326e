from datetime import datetime
from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Optional

# Column widths of scan_history
CHANNEL_MAX_LENGTH = 32
SENDER_MAX_LENGTH = 255
SUBJECT_MAX_LENGTH = 500
PHONE_MAX_LENGTH = 32
CATEGORY_MAX_LENGTH = 32


class AnalysisDetails(BaseModel):
    """Sub-scores and coarse signals behind a verdict."""
    language: str = "English"
    sentiment: str = "neutral"  # positive, negative, neutral
    urgency_level: str = "low"  # low, medium, high
    suspicious_patterns: List[str] = []
    user_behavior_score: Optional[float] = None
    content_quality_score: Optional[float] = None
    platform_specific_risks: List[str] = []
    content_moderation_score: Optional[float] = None
    brand_safety_score: Optional[float] = None


class ScanOut(BaseModel):
    """A persisted scan: input context plus its verdict."""
    id: str
    content: str
    message_type: str
    sender: Optional[str] = None
    subject: Optional[str] = None
    phone_number: Optional[str] = None
    result: str  # spam, suspicious, clean
    confidence_score: float
    risk_score: float
    category: Optional[str] = None
    flags: List[str] = []
    analysis_details: Dict[str, Any] = {}
    created_at: datetime
    timestamp: datetime
    cursor: Optional[str] = None


class AnalyzeRequest(BaseModel):
    """Request to analyze an email or SMS message."""
    content: Optional[str] = None
    message_type: str = Field("email", max_length=CHANNEL_MAX_LENGTH)  # email, sms, or a social platform name
    sender: Optional[str] = Field(None, max_length=SENDER_MAX_LENGTH)
    subject: Optional[str] = Field(None, max_length=SUBJECT_MAX_LENGTH)
    phone_number: Optional[str] = Field(None, max_length=PHONE_MAX_LENGTH)


class AnalyzeResponse(BaseModel):
    success: bool = True
    data: ScanOut


class CreateScanRequest(BaseModel):
    """Store a result computed elsewhere."""
    content: Optional[str] = None
    result: Optional[str] = None
    message_type: str = Field("email", max_length=CHANNEL_MAX_LENGTH)
    sender: Optional[str] = Field(None, max_length=SENDER_MAX_LENGTH)
    subject: Optional[str] = Field(None, max_length=SUBJECT_MAX_LENGTH)
    phone_number: Optional[str] = Field(None, max_length=PHONE_MAX_LENGTH)
    confidence_score: float = Field(90.0, ge=0, le=100, allow_inf_nan=False)
    risk_score: float = Field(20.0, ge=0, le=100, allow_inf_nan=False)
    category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    flags: List[str] = []
    analysis_details: Dict[str, Any] = {}


class Pagination(BaseModel):
    has_next: bool
    has_previous: bool
    next_cursor: Optional[str] = None
    previous_cursor: Optional[str] = None
    total: int


class ScanPageData(BaseModel):
    records: List[ScanOut]
    pagination: Pagination


class ScanPageResponse(BaseModel):
    success: bool = True
    data: ScanPageData


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CategoryBreakdown(BaseModel):
    category: str
    count: int
    avg_risk_score: float


class ChannelBreakdown(BaseModel):
    channel: str
    total: int
    spam: int
    clean: int
    suspicious: int


class DailyActivity(BaseModel):
    date: str
    total: int
    spam: int
    clean: int
    suspicious: int


class AnalyticsData(BaseModel):
    """Aggregate counts over a trailing window."""
    period_days: int
    total: int
    spam_count: int
    clean_count: int
    suspicious_count: int
    avg_confidence: float
    avg_risk_score: float
    by_category: List[CategoryBreakdown]
    by_channel: List[ChannelBreakdown]
    by_day: List[DailyActivity]


class AnalyticsResponse(BaseModel):
    success: bool = True
    data: AnalyticsData


# ============== SOCIAL MEDIA ==============


class SocialMediaAnalyzeRequest(BaseModel):
    """Analyze one piece of content once per platform."""
    content: Optional[str] = None
    platforms: List[Annotated[str, Field(max_length=CHANNEL_MAX_LENGTH)]] = []


class SocialMediaVerdict(BaseModel):
    platform: str
    content: str
    result: str
    confidence_score: float
    risk_score: float
    category: str
    flags: List[str]
    analysis_details: AnalysisDetails
    timestamp: datetime
    scan_id: str


class SocialMediaAnalyzeResponse(BaseModel):
    success: bool = True
    data: List[SocialMediaVerdict]


class PlatformRisk(BaseModel):
    platform: str
    risk_level: str  # low, medium, high
    spam_rate: float
    total: int


class SocialMediaAnalyticsData(AnalyticsData):
    platform_risk_assessment: List[PlatformRisk] = Field(default_factory=list)


class SocialMediaAnalyticsResponse(BaseModel):
    success: bool = True
    data: SocialMediaAnalyticsData


class HealthResponse(BaseModel):
    status: str
    database: str  # connected, disconnected, mock
    timestamp: datetime
