"""
Heuristic content-risk evaluator.

Scores a blob of text for a channel (email, sms or a social platform)
and returns a spam/suspicious/clean verdict with flags and sub-scores.
The evaluator is pure: it reads only immutable keyword tables, performs
no I/O and keeps no state between calls. Display scores may carry jitter,
but only when a random generator is passed in.
"""

import random
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from securemail.config import settings
from securemail.services import patterns
from securemail.utils.confidence import (
    CONFIDENCE_FLOOR,
    apply_jitter,
    boundary_confidence,
    clamp,
)
from securemail.utils.preprocessing import count_emoji, normalize_text
from securemail.utils.risk_levels import classify_spam_score, derive_category, urgency_level

RISK_FLOOR = 10.0
RISK_CEILING = 100.0


@dataclass
class AnalysisDetails:
    """Sub-scores and coarse signals behind a verdict."""
    language: str
    sentiment: str  # positive | negative | neutral
    urgency_level: str  # low | medium | high
    suspicious_patterns: List[str]
    user_behavior_score: float
    content_quality_score: float
    platform_specific_risks: List[str] = field(default_factory=list)
    content_moderation_score: float = 100.0
    brand_safety_score: float = 100.0


@dataclass
class Verdict:
    """Result of one evaluation."""
    result: str  # spam | suspicious | clean
    confidence_score: float
    risk_score: float
    category: str
    flags: List[str]
    analysis_details: AnalysisDetails
    spam_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _append_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


class RiskEvaluator:
    """
    Rule-based spam scorer.

    Usage:
        evaluator = RiskEvaluator()
        verdict = evaluator.evaluate("URGENT: claim your prize", "sms")

    Pass ``rng`` (a ``random.Random``) to add bounded display jitter to
    confidence, behavior and quality scores. Classification, category,
    flags and patterns never depend on it.
    """

    def __init__(
        self,
        spam_threshold: Optional[float] = None,
        suspicious_threshold: Optional[float] = None,
        rng: Optional[random.Random] = None,
        jitter: Optional[float] = None,
    ):
        self.spam_threshold = (
            spam_threshold if spam_threshold is not None else settings.spam_threshold
        )
        self.suspicious_threshold = (
            suspicious_threshold
            if suspicious_threshold is not None
            else settings.suspicious_threshold
        )
        self.rng = rng
        self.jitter = jitter if jitter is not None else settings.score_jitter

    def evaluate(self, content: str, channel: Optional[str] = None) -> Verdict:
        text = normalize_text(content)
        lower = text.lower()

        spam_score = 0.0
        risk_score = 0.0
        flags: List[str] = []
        suspicious_patterns: List[str] = []

        # 1) Universal keyword families
        for category in patterns.SPAM_CATEGORIES:
            for keyword in category.keywords:
                if keyword in lower:
                    spam_score += category.spam_weight
                    risk_score += category.risk_weight
                    _append_unique(flags, category.flag)
                    _append_unique(suspicious_patterns, category.pattern)

        # 2) Platform-specific terms
        platform_hits: List[str] = []
        for term in patterns.platform_terms(channel):
            if term in lower:
                spam_score += patterns.PLATFORM_SPAM_WEIGHT
                risk_score += patterns.PLATFORM_RISK_WEIGHT
                _append_unique(flags, f"Platform-specific: {term}")
                _append_unique(suspicious_patterns, f"Platform: {term}")
                _append_unique(platform_hits, term)

        # 3) Content quality and behavior
        quality_score = 100.0
        behavior_score = 100.0
        sentiment = "neutral"

        quality_up, behavior_up = patterns.POSITIVE_ADJUSTMENT
        for indicator in patterns.POSITIVE_INDICATORS:
            if indicator in lower:
                quality_score += quality_up
                behavior_score += behavior_up
                sentiment = "positive"

        quality_down, behavior_down = patterns.NEGATIVE_ADJUSTMENT
        for indicator in patterns.NEGATIVE_INDICATORS:
            if indicator in lower:
                quality_score += quality_down
                behavior_score += behavior_down
                sentiment = "negative"

        # 4) Length and structure
        if len(text) < patterns.SHORT_CONTENT_LENGTH:
            short_spam, short_risk = patterns.SHORT_CONTENT_WEIGHTS
            spam_score += short_spam
            risk_score += short_risk
            _append_unique(flags, "Very short content")
        elif len(text) > patterns.LONG_CONTENT_LENGTH:
            quality_score += patterns.LONG_CONTENT_QUALITY_BONUS

        if count_emoji(text) > patterns.EMOJI_LIMIT:
            emoji_spam, emoji_risk = patterns.EMOJI_WEIGHTS
            spam_score += emoji_spam
            risk_score += emoji_risk
            _append_unique(flags, "Excessive emojis")

        # 5) Classification
        result = classify_spam_score(spam_score, self.spam_threshold, self.suspicious_threshold)
        category = derive_category(result, spam_score, suspicious_patterns)
        final_risk = clamp(risk_score, RISK_FLOOR, RISK_CEILING)

        if text:
            confidence = boundary_confidence(spam_score, self.spam_threshold)
        else:
            # Nothing to judge
            confidence = CONFIDENCE_FLOOR

        details = AnalysisDetails(
            language="English",
            sentiment=sentiment,
            urgency_level=urgency_level(spam_score),
            suspicious_patterns=suspicious_patterns,
            user_behavior_score=round(apply_jitter(behavior_score, self.rng, self.jitter), 1),
            content_quality_score=round(apply_jitter(quality_score, self.rng, self.jitter), 1),
            platform_specific_risks=platform_hits,
            content_moderation_score=round(clamp(100.0 - spam_score, 0.0, 100.0), 1),
            brand_safety_score=round(clamp(100.0 - final_risk, 0.0, 100.0), 1),
        )

        return Verdict(
            result=result,
            confidence_score=round(
                apply_jitter(confidence, self.rng, self.jitter, low=CONFIDENCE_FLOOR), 1
            ),
            risk_score=round(final_risk, 1),
            category=category,
            flags=flags,
            analysis_details=details,
            spam_score=spam_score,
        )


def evaluate(
    content: str,
    channel: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Verdict:
    """Evaluate content with default thresholds. Deterministic unless ``rng`` is given."""
    return RiskEvaluator(rng=rng).evaluate(content, channel)


def build_evaluator() -> RiskEvaluator:
    """Evaluator for the HTTP layer: jitter on when configured."""
    rng = random.Random(settings.evaluator_seed) if settings.score_jitter > 0 else None
    return RiskEvaluator(rng=rng)
