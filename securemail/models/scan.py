from sqlalchemy import Column, String, Float, DateTime, Text, JSON, Index
from securemail.database import Base


class ScanRecord(Base):
    __tablename__ = "scan_history"
    __table_args__ = (
        Index("ix_scan_history_created_at_id", "created_at", "id"),
    )

    id = Column(String(36), primary_key=True)         # uuid4, generated at insert
    content = Column(Text, nullable=False)            # raw input, verbatim

    message_type = Column(String(32), nullable=False, index=True)  # email | sms | instagram | ...
    sender = Column(String(255), nullable=True)
    subject = Column(String(500), nullable=True)
    phone_number = Column(String(32), nullable=True)

    result = Column(String(16), nullable=False, index=True)  # spam / suspicious / clean
    confidence_score = Column(Float, nullable=False)
    risk_score = Column(Float, nullable=False)
    category = Column(String(32), nullable=True)

    flags = Column(JSON, nullable=True)               # ["Urgency language", "Monetary offers"]
    analysis_details = Column(JSON, nullable=True)    # {"sentiment": "negative", ...}

    created_at = Column(DateTime(timezone=True), nullable=False)
