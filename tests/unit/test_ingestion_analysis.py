"""Unit tests for FrameworkDetector and DocumentScorer."""

from __future__ import annotations

import pytest

from src.config.scoring_tables import FrameworkDefinition
from src.models.content import QualityTier
from src.services.ingestion import DocumentScorer, FrameworkDetector
from tests.conftest import make_words


# ---------------------------------------------------------------------------
# FrameworkDetector
# ---------------------------------------------------------------------------


class TestFrameworkDetector:
    def test_detects_offer_frameworks(self, sample_business_text: str) -> None:
        detections = FrameworkDetector().detect(sample_business_text)
        names = [d.framework_name for d in detections]

        assert "Grand Slam Offer" in names
        assert "Value Equation" in names

    def test_detections_sorted_by_confidence(self, sample_business_text: str) -> None:
        detections = FrameworkDetector().detect(sample_business_text)
        confidences = [d.confidence for d in detections]

        assert confidences == sorted(confidences, reverse=True)
        assert all(0.0 <= c <= 1.0 for c in confidences)

    def test_detection_carries_evidence(self, sample_business_text: str) -> None:
        detections = {d.framework_name: d for d in FrameworkDetector().detect(sample_business_text)}
        grand_slam = detections["Grand Slam Offer"]

        assert "grand slam offer" in grand_slam.matched_phrases
        assert "offer" in grand_slam.matched_keywords
        assert "grand slam offer" in grand_slam.context
        assert grand_slam.explanation

    def test_unrelated_text_detects_nothing(self) -> None:
        assert FrameworkDetector().detect("The weather is nice today.") == []

    def test_title_is_searched(self) -> None:
        detector = FrameworkDetector()
        body = "Give something away in exchange for an email address."
        with_title = detector.detect(body, title="Lead magnet ideas")

        assert "Lead Magnets" in [d.framework_name for d in with_title]

    def test_required_matches_threshold(self) -> None:
        definition = FrameworkDefinition(
            name="Widget Loop",
            required_matches=3,
            keywords=["widget"],
            phrases=[],
            context_patterns=[],
        )
        detector = FrameworkDetector([definition])

        assert detector.detect("widget widget") == []
        found = detector.detect("widget widget widget")
        assert [d.framework_name for d in found] == ["Widget Loop"]
        # 3/3 * 50 + 0 phrases + 1 keyword * 5 = 55
        assert found[0].confidence == pytest.approx(0.55)

    def test_quick_detect_caps_and_filters(self, sample_business_text: str) -> None:
        detector = FrameworkDetector()
        quick = detector.quick_detect(sample_business_text)
        full = detector.detect(sample_business_text)

        assert len(quick) <= 5
        assert quick == [d.framework_name for d in full if d.confidence > 0.3][:5]


# ---------------------------------------------------------------------------
# DocumentScorer
# ---------------------------------------------------------------------------


class TestDocumentScorer:
    def test_short_unstructured_text(self) -> None:
        scores = DocumentScorer().score(make_words(50))

        assert scores.quality == pytest.approx(0.5)
        assert scores.quality_tier == QualityTier.MEDIUM
        assert scores.business_relevance == 0.0

    def test_long_structured_text_is_premium(self) -> None:
        text = "Overview:\n" + make_words(1200)
        scores = DocumentScorer().score(text)

        assert scores.quality == pytest.approx(1.0)
        assert scores.quality_tier == QualityTier.PREMIUM

    @pytest.mark.parametrize(
        ("words", "expected"),
        [(101, 0.6), (501, 0.75), (1001, 0.9)],
    )
    def test_quality_word_thresholds(self, words: int, expected: float) -> None:
        assert DocumentScorer().quality_score(make_words(words)) == pytest.approx(expected)

    def test_quality_follows_tables(self, tables) -> None:
        tuned = tables.document.model_copy(
            update={
                "quality_base": 20,
                "quality_length_bonuses": {10: 30},
                "quality_structure_bonus": 5,
            }
        )
        scorer = DocumentScorer(tuned)

        assert scorer.quality_score(make_words(5)) == pytest.approx(0.2)
        assert scorer.quality_score(make_words(20)) == pytest.approx(0.5)
        assert scorer.quality_score("Steps:\n" + make_words(20)) == pytest.approx(0.55)

    def test_packaged_quality_tables(self, tables) -> None:
        assert tables.document.quality_base == 50
        assert tables.document.quality_length_bonuses == {100: 10, 500: 15, 1000: 15}

    def test_relevance_points_per_keyword(self) -> None:
        scorer = DocumentScorer()
        assert scorer.business_relevance_score("business strategy") == pytest.approx(0.16)

    def test_relevance_is_capped(self, tables) -> None:
        text = " ".join(tables.document.relevance_keywords)
        assert DocumentScorer().business_relevance_score(text) == pytest.approx(0.96)

    @pytest.mark.parametrize(
        ("quality", "tier"),
        [(0.95, QualityTier.PREMIUM), (0.8, QualityTier.HIGH), (0.6, QualityTier.MEDIUM), (0.3, QualityTier.LOW)],
    )
    def test_quality_tiers(self, quality: float, tier: QualityTier) -> None:
        assert DocumentScorer().quality_tier(quality) == tier
