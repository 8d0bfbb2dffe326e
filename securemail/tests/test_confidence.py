"""Tests for confidence and display-score helpers."""

import random

from securemail.utils.confidence import apply_jitter, boundary_confidence, clamp
from securemail.utils.preprocessing import count_emoji, normalize_text


class TestBoundaryConfidence:
    """Tests for distance-to-boundary confidence."""

    def test_at_boundary_is_full(self):
        """Distance zero gives the ceiling."""
        assert boundary_confidence(50.0) == 100.0

    def test_distance_reduces_confidence(self):
        assert boundary_confidence(68.0) == 82.0
        assert boundary_confidence(0.0) == 50.0

    def test_floor(self):
        """Far from the boundary confidence never drops below 20."""
        assert boundary_confidence(200.0) == 20.0

    def test_custom_threshold(self):
        assert boundary_confidence(60.0, spam_threshold=60.0) == 100.0


class TestClamp:
    def test_clamp(self):
        assert clamp(150.0, 10.0, 100.0) == 100.0
        assert clamp(-5.0, 10.0, 100.0) == 10.0
        assert clamp(42.0, 10.0, 100.0) == 42.0


class TestApplyJitter:
    """Tests for optional display jitter."""

    def test_no_rng_is_identity(self):
        assert apply_jitter(63.0, None, 5.0) == 63.0

    def test_zero_amplitude_is_identity(self):
        assert apply_jitter(63.0, random.Random(1), 0.0) == 63.0

    def test_jitter_bounded(self):
        rng = random.Random(11)
        for _ in range(200):
            value = apply_jitter(50.0, rng, 5.0)
            assert 45.0 <= value <= 55.0

    def test_amplitude_capped(self):
        """Amplitude above the cap is treated as the cap."""
        rng = random.Random(5)
        for _ in range(200):
            value = apply_jitter(50.0, rng, 1000.0)
            assert 30.0 <= value <= 70.0

    def test_result_reclamped(self):
        rng = random.Random(2)
        for _ in range(200):
            value = apply_jitter(98.0, rng, 20.0, low=20.0)
            assert 20.0 <= value <= 100.0


class TestPreprocessing:
    """Tests for text normalization helpers."""

    def test_normalize_collapses_whitespace(self):
        assert normalize_text("  hello \n\t world  ") == "hello world"

    def test_normalize_none(self):
        assert normalize_text(None) == ""

    def test_count_emoji(self):
        assert count_emoji("hi \U0001F600\U0001F680 \u2600") == 3
        assert count_emoji("plain text") == 0
