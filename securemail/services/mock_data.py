"""
Fixture scan history for mock mode.
Three rotating samples, one hour apart, newest first.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

_SAMPLES = (
    {
        "content": "Congratulations! You've won a $1000 gift card. Click here immediately!",
        "result": "spam",
        "confidence_score": 98.7,
        "risk_score": 92.3,
        "category": "scam",
        "flags": ["Urgency language", "Monetary offers", "Suspicious actions"],
        "sentiment": "neutral",
        "urgency_level": "high",
    },
    {
        "content": "Your package has been shipped and will arrive today between 2-4 PM.",
        "result": "clean",
        "confidence_score": 95.2,
        "risk_score": 10.0,
        "category": "legitimate",
        "flags": [],
        "sentiment": "neutral",
        "urgency_level": "low",
    },
    {
        "content": "Your account has been suspended due to suspicious activity. Verify now.",
        "result": "suspicious",
        "confidence_score": 87.5,
        "risk_score": 65.2,
        "category": "phishing",
        "flags": ["Urgency language", "Suspicious actions"],
        "sentiment": "negative",
        "urgency_level": "medium",
    },
)

_CHANNELS = ("email", "sms", "instagram", "facebook", "whatsapp")


def build_mock_scans(count: int = 50, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    records = []
    for i in range(count):
        sample = _SAMPLES[i % len(_SAMPLES)]
        records.append({
            "id": f"mock-{i + 1}",
            "content": sample["content"],
            "message_type": _CHANNELS[i % len(_CHANNELS)],
            "sender": None,
            "subject": None,
            "phone_number": None,
            "result": sample["result"],
            "confidence_score": sample["confidence_score"],
            "risk_score": sample["risk_score"],
            "category": sample["category"],
            "flags": list(sample["flags"]),
            "analysis_details": {
                "language": "English",
                "sentiment": sample["sentiment"],
                "urgency_level": sample["urgency_level"],
                "suspicious_patterns": [],
            },
            "created_at": now - timedelta(hours=i),
        })
    return records
