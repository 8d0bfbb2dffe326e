"""Tests for the heuristic risk evaluator."""

import random

import pytest

from securemail.services.evaluator import RiskEvaluator, evaluate


PLATFORM_PREFIX = "Platform-specific:"


def _universal(flags):
    return [f for f in flags if not f.startswith(PLATFORM_PREFIX)]


class TestScenarios:
    """End-to-end verdicts for representative messages."""

    def test_prize_scam(self, sample_scam_text):
        """Urgent prize claim is spam with three flag families."""
        verdict = evaluate(sample_scam_text)
        assert verdict.result == "spam"
        assert verdict.flags == ["Urgency language", "Monetary offers", "Suspicious actions"]
        assert verdict.risk_score >= 65
        assert verdict.risk_score == 87.0
        assert verdict.spam_score == 68
        assert verdict.category == "scam"
        assert verdict.confidence_score == 82.0
        assert verdict.analysis_details.urgency_level == "high"

    def test_meeting_message_is_clean(self):
        """Ordinary meeting note triggers nothing."""
        verdict = evaluate("Hi John, meeting tomorrow at 2 PM in Conference Room A.")
        assert verdict.result == "clean"
        assert verdict.flags == []
        assert verdict.risk_score <= 25
        assert verdict.category == "legitimate"
        assert verdict.analysis_details.suspicious_patterns == []

    def test_link_verification_is_phishing(self, sample_phishing_text):
        """Verification lure with a shortened link is spam."""
        verdict = evaluate(sample_phishing_text)
        assert verdict.result == "spam"
        assert "Suspicious domains" in verdict.flags
        assert "Suspicious actions" in verdict.flags
        assert verdict.spam_score == 61
        assert verdict.category == "phishing"

    def test_empty_content(self):
        """Empty input is clean, flagged short, with floor confidence."""
        verdict = evaluate("")
        assert verdict.result == "clean"
        assert "Very short content" in verdict.flags
        assert verdict.confidence_score == 20.0
        assert verdict.risk_score == 10.0

    def test_whitespace_only_content(self):
        """Whitespace normalizes to empty."""
        verdict = evaluate("   \n\t  ")
        assert verdict.flags == ["Very short content"]
        assert verdict.confidence_score == 20.0

    def test_padding_does_not_hide_short_content(self):
        """Length is measured after whitespace is collapsed."""
        verdict = evaluate("  hi   there ")
        assert verdict.flags == ["Very short content"]

    def test_platforms_differ_only_in_platform_flags(self):
        """Universal flags are channel independent."""
        text = "URGENT: Claim your $1000 prize NOW! Get fake followers and avoid job scams."
        instagram = evaluate(text, "instagram")
        linkedin = evaluate(text, "linkedin")

        assert _universal(instagram.flags) == _universal(linkedin.flags)
        assert "Platform-specific: fake followers" in instagram.flags
        assert "Platform-specific: job scams" in linkedin.flags
        assert "Platform-specific: job scams" not in instagram.flags
        assert instagram.analysis_details.platform_specific_risks == ["fake followers"]
        assert linkedin.analysis_details.platform_specific_risks == ["job scams"]

    def test_single_urgency_keyword_is_clean(self):
        """One urgency keyword alone stays below the suspicious threshold."""
        verdict = evaluate("Please reply urgent regarding the report.")
        assert verdict.result == "clean"
        assert verdict.flags == ["Urgency language"]
        assert verdict.category == "legitimate"


class TestCategories:
    """Tests for category selection."""

    def test_monetary_only_suspicious_is_promotional(self):
        verdict = evaluate("Big discount this weekend")
        assert verdict.result == "suspicious"
        assert verdict.category == "promotional"

    def test_heavy_spam_is_high_risk(self):
        verdict = evaluate("URGENT! Win free cash now, click here: bit.ly/prize")
        assert verdict.result == "spam"
        assert verdict.spam_score >= 70
        assert verdict.category == "high_risk_spam"
        assert verdict.risk_score == 100.0


class TestInvariants:
    """Tests for scoring invariants."""

    def test_adding_keyword_never_lowers_scores(self):
        """Monotonic in matched keywords."""
        base = evaluate("Please claim your parcel at the front desk")
        more = evaluate("Please claim your parcel at the front desk, urgent")
        most = evaluate("Please claim your parcel at the front desk, urgent, free gift card")

        assert base.spam_score <= more.spam_score <= most.spam_score
        assert base.risk_score <= more.risk_score <= most.risk_score

    def test_short_keyword_message_scores_above_empty(self):
        """Keyword weights outweigh the short-content penalty."""
        assert evaluate("win").spam_score > evaluate("").spam_score
        assert evaluate("win").risk_score >= evaluate("").risk_score

    def test_idempotent_without_jitter(self, sample_scam_text):
        """Identical input gives identical verdicts."""
        assert evaluate(sample_scam_text).to_dict() == evaluate(sample_scam_text).to_dict()

    def test_idempotent_with_jitter(self, sample_scam_text):
        """Jitter only moves display scores, within its amplitude."""
        baseline = evaluate(sample_scam_text)
        evaluator = RiskEvaluator(rng=random.Random(7), jitter=5.0)

        for _ in range(20):
            verdict = evaluator.evaluate(sample_scam_text)
            assert verdict.result == baseline.result
            assert verdict.category == baseline.category
            assert verdict.flags == baseline.flags
            assert verdict.risk_score == baseline.risk_score
            assert verdict.analysis_details.suspicious_patterns == (
                baseline.analysis_details.suspicious_patterns
            )
            assert abs(verdict.confidence_score - baseline.confidence_score) <= 5.1

    def test_seeded_jitter_is_reproducible(self, sample_scam_text):
        first = RiskEvaluator(rng=random.Random(42), jitter=5.0).evaluate(sample_scam_text)
        second = RiskEvaluator(rng=random.Random(42), jitter=5.0).evaluate(sample_scam_text)
        assert first.to_dict() == second.to_dict()

    @pytest.mark.parametrize("text", [
        "",
        "ok",
        "Hi John, meeting tomorrow at 2 PM in Conference Room A.",
        "URGENT! Win free cash now, click here: bit.ly/prize. Amazing secret offer, hurry!",
        "This is fake, a scam, fraud, phishing malware and a virus. Dangerous and harmful.",
    ])
    def test_scores_within_bounds(self, text):
        evaluator = RiskEvaluator(rng=random.Random(3), jitter=20.0)
        verdict = evaluator.evaluate(text, "facebook")
        details = verdict.analysis_details

        assert 10.0 <= verdict.risk_score <= 100.0
        assert 20.0 <= verdict.confidence_score <= 100.0
        assert 0.0 <= details.user_behavior_score <= 100.0
        assert 0.0 <= details.content_quality_score <= 100.0
        assert 0.0 <= details.content_moderation_score <= 100.0
        assert 0.0 <= details.brand_safety_score <= 100.0

    def test_repeated_keywords_do_not_duplicate_flags(self):
        verdict = evaluate("urgent urgent URGENT now, hurry now")
        assert verdict.flags == ["Urgency language"]
        assert verdict.analysis_details.suspicious_patterns == ["Urgency"]
        # Each distinct keyword counts once
        assert verdict.spam_score == 45


class TestContentSignals:
    """Tests for quality, sentiment and structure signals."""

    def test_excessive_emojis_flagged(self):
        verdict = evaluate("Hello friends " + "\U0001F600" * 6)
        assert "Excessive emojis" in verdict.flags
        assert verdict.spam_score == 5

    def test_few_emojis_not_flagged(self):
        verdict = evaluate("Hello friends " + "\U0001F600" * 3)
        assert "Excessive emojis" not in verdict.flags

    def test_negative_sentiment(self):
        verdict = evaluate("This looks like a scam to me honestly")
        assert verdict.analysis_details.sentiment == "negative"
        assert verdict.analysis_details.content_quality_score == 85.0
        assert verdict.analysis_details.user_behavior_score == 80.0

    def test_positive_sentiment(self):
        verdict = evaluate("A genuine and helpful note from the team")
        assert verdict.analysis_details.sentiment == "positive"
        assert verdict.analysis_details.content_quality_score == 100.0

    def test_neutral_sentiment(self, sample_safe_text):
        assert evaluate(sample_safe_text).analysis_details.sentiment == "neutral"

    def test_long_content_quality_bonus(self):
        filler = "the weather report is pleasant today. " * 20
        short = evaluate("scam warning: the weather report")
        long = evaluate("scam warning: " + filler)
        assert short.analysis_details.content_quality_score == 85.0
        assert long.analysis_details.content_quality_score == 90.0

    def test_language_is_english(self, sample_safe_text):
        assert evaluate(sample_safe_text).analysis_details.language == "English"

    def test_channel_lookup_case_insensitive(self):
        verdict = evaluate("Stop the clickbait please", "Facebook")
        assert "Platform-specific: clickbait" in verdict.flags

    def test_unknown_channel_has_no_platform_flags(self):
        verdict = evaluate("Stop the clickbait please", "myspace")
        assert verdict.flags == []


class TestThresholds:
    """Tests for configurable thresholds."""

    def test_custom_spam_threshold(self, sample_scam_text):
        strict = RiskEvaluator(spam_threshold=80.0, suspicious_threshold=20.0)
        assert strict.evaluate(sample_scam_text).result == "suspicious"

    def test_custom_suspicious_threshold(self):
        lenient = RiskEvaluator(spam_threshold=50.0, suspicious_threshold=10.0)
        assert lenient.evaluate("Please reply urgent regarding the report.").result == "suspicious"
