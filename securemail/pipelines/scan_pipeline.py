"""
Scan pipelines used by the HTTP layer.

Each pipeline runs the evaluator, records metrics and persists the
result. Storage failures are absorbed by the record store itself, so a
verdict is always returned.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from securemail.services.evaluator import RiskEvaluator, Verdict
from securemail.services.patterns import MESSAGE_CHANNELS, SUPPORTED_PLATFORMS
from securemail.services.record_store import ResilientRecordStore
from securemail.utils.logging_config import StructuredLogger, metrics

logger = StructuredLogger(__name__)

KNOWN_CHANNELS = frozenset(MESSAGE_CHANNELS + SUPPORTED_PLATFORMS)


def metric_channel(channel: str) -> str:
    """Channel label for metric names; free-form channels share "other"."""
    return channel if channel in KNOWN_CHANNELS else "other"


def _evaluate(evaluator: RiskEvaluator, content: str, channel: str) -> Verdict:
    start = time.perf_counter()
    verdict = evaluator.evaluate(content, channel)
    metrics.timing("analysis.latency", time.perf_counter() - start)
    metrics.increment("analysis.total")
    metrics.increment(f"analysis.{metric_channel(channel)}.{verdict.result}")
    return verdict


def _record_from_verdict(content: str, channel: str, verdict: Verdict, **context) -> Dict[str, Any]:
    return {
        "content": content,
        "message_type": channel,
        "sender": context.get("sender"),
        "subject": context.get("subject"),
        "phone_number": context.get("phone_number"),
        "result": verdict.result,
        "confidence_score": verdict.confidence_score,
        "risk_score": verdict.risk_score,
        "category": verdict.category,
        "flags": verdict.flags,
        "analysis_details": verdict.to_dict()["analysis_details"],
    }


def analyze_message(
    store: ResilientRecordStore,
    evaluator: RiskEvaluator,
    content: str,
    message_type: str = "email",
    sender: Optional[str] = None,
    subject: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Main pipeline for POST /analyze.
    Evaluates one email/SMS message and stores it as a scan record.
    """
    channel = (message_type or "email").strip().lower()
    verdict = _evaluate(evaluator, content, channel)

    record = store.insert(
        _record_from_verdict(
            content,
            channel,
            verdict,
            sender=sender,
            subject=subject,
            phone_number=phone_number,
        )
    )

    logger.info(
        "Message analyzed",
        scan_id=record["id"],
        channel=channel,
        result=verdict.result,
        risk_score=verdict.risk_score,
        store=store.mode,
    )
    return record


def analyze_social_content(
    store: ResilientRecordStore,
    evaluator: RiskEvaluator,
    content: str,
    platforms: List[str],
) -> List[Tuple[str, Verdict, Dict[str, Any]]]:
    """
    Evaluate one piece of content once per platform.

    Returns (platform, verdict, stored record) triples in request order.
    Each platform gets its own platform-specific keyword pass.
    """
    results = []
    for platform in platforms:
        channel = platform.strip().lower()
        verdict = _evaluate(evaluator, content, channel)
        record = store.insert(_record_from_verdict(content, channel, verdict))
        results.append((channel, verdict, record))

    logger.info(
        "Social content analyzed",
        platforms=[p for p, _, _ in results],
        results=[v.result for _, v, _ in results],
        store=store.mode,
    )
    return results
