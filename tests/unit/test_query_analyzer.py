"""Unit tests for BusinessQueryAnalyzer."""

from __future__ import annotations

import pytest

from src.models.query import KnownContext, QueryComplexity, UserIntent
from src.services.query_analyzer import BusinessQueryAnalyzer
from tests.conftest import make_words


@pytest.fixture
def analyzer() -> BusinessQueryAnalyzer:
    return BusinessQueryAnalyzer()


class TestIntent:
    @pytest.mark.parametrize(
        ("query", "intent"),
        [
            ("What is a value equation?", UserIntent.LEARNING),
            ("My funnel is broken and not working", UserIntent.TROUBLESHOOTING),
            ("Optimize and boost my close rate", UserIntent.OPTIMIZATION),
            ("Show me case studies and evidence", UserIntent.RESEARCH),
        ],
    )
    def test_most_matches_wins(
        self, analyzer: BusinessQueryAnalyzer, query: str, intent: UserIntent
    ) -> None:
        assert analyzer.analyze(query).intent == intent

    def test_tie_goes_to_first_declared_intent(self, analyzer: BusinessQueryAnalyzer) -> None:
        # one learning phrase ("explain") and one implementation phrase ("how to")
        context = analyzer.analyze("Explain how to price")

        assert context.intent == UserIntent.LEARNING
        assert context.intent_matches == 1

    def test_no_match_defaults_to_learning(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("pricing?")

        assert context.intent == UserIntent.LEARNING
        assert context.intent_matches == 0


class TestBusinessContext:
    def test_industry_inferred(self, analyzer: BusinessQueryAnalyzer) -> None:
        assert analyzer.analyze("Pricing for my gym").industry == "fitness_gyms"

    def test_defaults(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("pricing?")

        assert context.industry == "general"
        assert context.business_stage == "startup"
        assert context.functional_area == "strategy"

    def test_known_context_overrides_inference(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze(
            "More leads for my gym", KnownContext(industry="software_saas")
        )

        assert context.industry == "software_saas"
        assert context.functional_area == "sales"

    def test_metrics_in_vocabulary_order(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("Improve conversion rate, cac and ltv")

        assert context.metrics == ["ltv", "cac", "conversion rate"]

    def test_framework_indicators(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("Build a grand slam offer")

        assert context.frameworks == ["grand_slam_offers"]


class TestUrgency:
    def test_urgent_query_adds_crisis_scenario(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("We need help now, losing money every week")

        assert context.is_urgent
        assert context.urgency_signals == ["now", "losing money"]
        assert context.business_scenarios == [
            "general:startup:finance",
            "general:crisis:troubleshooting",
        ]

    def test_calm_query_has_single_scenario(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("pricing?")

        assert not context.is_urgent
        assert context.business_scenarios == ["general:startup:strategy"]


class TestReadiness:
    @pytest.mark.parametrize(
        ("query", "readiness"),
        [
            ("We are ready to implement and still researching", 0.9),
            ("Planning to raise prices next year", 0.6),
            ("Curious about pricing", 0.3),
            ("pricing?", 0.5),
        ],
    )
    def test_tiers_checked_high_to_low(
        self, analyzer: BusinessQueryAnalyzer, query: str, readiness: float
    ) -> None:
        assert analyzer.analyze(query).implementation_readiness == pytest.approx(readiness)


class TestComplexity:
    @pytest.mark.parametrize(
        ("words", "complexity"),
        [(3, QueryComplexity.SIMPLE), (10, QueryComplexity.MODERATE), (25, QueryComplexity.COMPLEX)],
    )
    def test_word_count_thresholds(
        self, analyzer: BusinessQueryAnalyzer, words: int, complexity: QueryComplexity
    ) -> None:
        assert analyzer.analyze(make_words(words)).complexity == complexity

    def test_two_frameworks_force_complex(self, analyzer: BusinessQueryAnalyzer) -> None:
        context = analyzer.analyze("grand slam with ltv")

        assert len(context.frameworks) == 2
        assert context.complexity == QueryComplexity.COMPLEX
