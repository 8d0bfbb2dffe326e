"""
Verdict level utilities.
Score-derived spam/suspicious/clean classification with flag-aware categories.
Supports configurable thresholds via environment variables.
"""

from typing import Iterable, Optional

from securemail.config import settings


SPAM = "spam"
SUSPICIOUS = "suspicious"
CLEAN = "clean"

RESULTS = (SPAM, SUSPICIOUS, CLEAN)

HIGH_RISK_SPAM_SCORE = 70.0

# Urgency bands over spam_score
HIGH_URGENCY_SCORE = 40.0
MEDIUM_URGENCY_SCORE = 20.0


def classify_spam_score(
    score: float,
    spam_threshold: Optional[float] = None,
    suspicious_threshold: Optional[float] = None,
) -> str:
    """
    Derive the verdict purely from spam_score.

    Args:
        score: The accumulated spam score (0 and up)
        spam_threshold: Score >= this = spam (default from config)
        suspicious_threshold: Score >= this = suspicious (default from config)

    Returns:
        "spam", "suspicious", or "clean"
    """
    spam = spam_threshold if spam_threshold is not None else settings.spam_threshold
    suspicious = (
        suspicious_threshold if suspicious_threshold is not None else settings.suspicious_threshold
    )

    if score >= spam:
        return SPAM
    elif score >= suspicious:
        return SUSPICIOUS
    else:
        return CLEAN


def urgency_level(score: float) -> str:
    """Map spam_score to a low/medium/high urgency band."""
    if score >= HIGH_URGENCY_SCORE:
        return "high"
    elif score >= MEDIUM_URGENCY_SCORE:
        return "medium"
    return "low"


def derive_category(result: str, score: float, patterns: Iterable[str]) -> str:
    """
    Pick a display category for a verdict.

    Clean content is always "legitimate". Suspicious content that only
    tripped monetary keywords reads as "promotional". Spam is split by
    severity first, then by which pattern families fired.
    """
    matched = set(patterns)

    if result == CLEAN:
        return "legitimate"

    if result == SUSPICIOUS:
        if matched == {"Monetary offers"}:
            return "promotional"
        return "suspicious"

    if score >= HIGH_RISK_SPAM_SCORE:
        return "high_risk_spam"
    if "Suspicious domains" in matched:
        return "phishing"
    if "Suspicious actions" in matched and "Monetary offers" not in matched:
        return "phishing"
    if "Monetary offers" in matched:
        return "scam"
    return "spam"
