"""
Keyword tables for content-risk scoring.

All tables are immutable and built once at import time. Matching is a
case-insensitive substring scan, so every keyword here is lower-case.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class PatternCategory:
    """One family of spam keywords and what a match is worth."""
    name: str
    flag: str  # Human-readable flag added to the verdict
    pattern: str  # Coarser name reported in suspicious_patterns
    keywords: Tuple[str, ...]
    spam_weight: float
    risk_weight: float


URGENCY = PatternCategory(
    name="urgency",
    flag="Urgency language",
    pattern="Urgency",
    keywords=(
        "urgent",
        "immediately",
        "now",
        "hurry",
        "limited time",
        "expires soon",
        "last chance",
        "don't miss out",
        "act fast",
        "time sensitive",
    ),
    spam_weight=15,
    risk_weight=20,
)

MONETARY = PatternCategory(
    name="monetary",
    flag="Monetary offers",
    pattern="Monetary offers",
    keywords=(
        "win",
        "won",
        "prize",
        "gift card",
        "cash",
        "money",
        "free",
        "discount",
        "sale",
        "offer",
        "deal",
        "bonus",
        "reward",
        "million",
        "thousand",
    ),
    spam_weight=20,
    risk_weight=25,
)

SUSPICIOUS_ACTIONS = PatternCategory(
    name="suspicious_actions",
    flag="Suspicious actions",
    pattern="Suspicious actions",
    keywords=(
        "click here",
        "click link",
        "verify",
        "verification",
        "confirm",
        "update",
        "reactivate",
        "unlock",
        "claim",
        "download",
        "install",
        "subscribe",
        "join now",
    ),
    spam_weight=18,
    risk_weight=22,
)

SUSPICIOUS_DOMAINS = PatternCategory(
    name="suspicious_domains",
    flag="Suspicious domains",
    pattern="Suspicious domains",
    keywords=(
        "bit.ly",
        "tinyurl",
        "goo.gl",
        "is.gd",
        "v.gd",
        "t.co",
        "ow.ly",
    ),
    spam_weight=25,
    risk_weight=30,
)

EMOTIONAL_MANIPULATION = PatternCategory(
    name="emotional_manipulation",
    flag="Emotional manipulation",
    pattern="Emotional manipulation",
    keywords=(
        "amazing",
        "incredible",
        "shocking",
        "unbelievable",
        "exclusive",
        "secret",
        "hidden",
        "revealed",
        "exposed",
        "scandal",
    ),
    spam_weight=12,
    risk_weight=15,
)

# Evaluation order matters only for flag ordering in the verdict
SPAM_CATEGORIES: Tuple[PatternCategory, ...] = (
    URGENCY,
    MONETARY,
    SUSPICIOUS_ACTIONS,
    SUSPICIOUS_DOMAINS,
    EMOTIONAL_MANIPULATION,
)

PLATFORM_SPAM_WEIGHT = 10
PLATFORM_RISK_WEIGHT = 15

PLATFORM_RISKS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "instagram": (
        "fake followers",
        "engagement pods",
        "bot activity",
        "copyright infringement",
    ),
    "facebook": (
        "fake news",
        "clickbait",
        "data harvesting",
        "political manipulation",
    ),
    "whatsapp": (
        "forwarded messages",
        "chain messages",
        "fake news",
        "scam groups",
    ),
    "twitter": (
        "bot accounts",
        "fake trends",
        "coordinated campaigns",
        "harassment",
    ),
    "linkedin": (
        "fake profiles",
        "connection spam",
        "job scams",
        "business fraud",
    ),
    "youtube": (
        "clickbait titles",
        "fake thumbnails",
        "view botting",
        "copyright issues",
    ),
})

SUPPORTED_PLATFORMS = tuple(PLATFORM_RISKS.keys())

# Channels without a platform table of their own
MESSAGE_CHANNELS = ("email", "sms")

# Content quality indicators: (quality delta, behavior delta)
POSITIVE_INDICATORS: Tuple[str, ...] = (
    "authentic",
    "genuine",
    "verified",
    "official",
    "professional",
    "helpful",
    "informative",
    "educational",
    "entertaining",
)
POSITIVE_ADJUSTMENT = (5, 3)

NEGATIVE_INDICATORS: Tuple[str, ...] = (
    "fake",
    "scam",
    "fraud",
    "phishing",
    "malware",
    "virus",
    "suspicious",
    "untrusted",
    "dangerous",
    "harmful",
)
NEGATIVE_ADJUSTMENT = (-15, -20)

# Length / structure heuristics
SHORT_CONTENT_LENGTH = 10
SHORT_CONTENT_WEIGHTS = (8, 10)  # (spam, risk)
LONG_CONTENT_LENGTH = 500
LONG_CONTENT_QUALITY_BONUS = 5
EMOJI_LIMIT = 5
EMOJI_WEIGHTS = (5, 8)  # (spam, risk)


def platform_terms(channel: Optional[str]) -> Tuple[str, ...]:
    """Platform-specific risk terms for a channel, empty if it has none."""
    if not channel:
        return ()
    return PLATFORM_RISKS.get(channel.strip().lower(), ())
