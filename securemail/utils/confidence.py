"""
Confidence and display-score utilities.
Confidence is highest far from the spam boundary; optional jitter is
injected through a caller-supplied random generator.
"""

import random
from typing import Optional

CONFIDENCE_FLOOR = 20.0
CONFIDENCE_CEILING = 100.0

# Jitter beyond this would blur display scores into noise
MAX_JITTER = 20.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def boundary_confidence(spam_score: float, spam_threshold: float = 50.0) -> float:
    """
    Confidence derived from the distance to the spam boundary.

    Returns 100 - |spam_score - spam_threshold| clamped to [20, 100].
    """
    return clamp(
        CONFIDENCE_CEILING - abs(spam_score - spam_threshold),
        CONFIDENCE_FLOOR,
        CONFIDENCE_CEILING,
    )


def apply_jitter(
    value: float,
    rng: Optional[random.Random],
    amplitude: float,
    low: float = 0.0,
    high: float = 100.0,
) -> float:
    """
    Add uniform noise in [-amplitude, +amplitude] and re-clamp.

    With no generator (or zero amplitude) the value is returned clamped
    but otherwise untouched, which keeps tests deterministic.
    """
    amplitude = clamp(amplitude, 0.0, MAX_JITTER)
    if rng is not None and amplitude > 0:
        value += rng.uniform(-amplitude, amplitude)
    return clamp(value, low, high)
