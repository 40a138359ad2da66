"""Document-level quality and business-relevance scoring.

Both scores are computed on a 0-100 scale and normalised to [0, 1]:

* **quality** starts at ``quality_base`` and gains the points of every
  ``quality_length_bonuses`` threshold the word count exceeds, plus
  ``quality_structure_bonus`` when the text shows visible structure
  (a newline and a colon).
* **business relevance** adds a fixed number of points per business
  keyword present in the text.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import DocumentTables
from src.models.content import QualityTier
from src.utils.scoring import clamp, count_phrases


@dataclass(frozen=True)
class DocumentScores:
    quality: float
    business_relevance: float
    quality_tier: QualityTier


class DocumentScorer:
    """Scores whole documents with the ``document`` scoring table."""

    def __init__(self, tables: DocumentTables | None = None) -> None:
        self._tables = tables or default_scoring_tables().document

    def score(self, text: str) -> DocumentScores:
        quality = self.quality_score(text)
        return DocumentScores(
            quality=quality,
            business_relevance=self.business_relevance_score(text),
            quality_tier=self.quality_tier(quality),
        )

    def quality_score(self, text: str) -> float:
        tables = self._tables
        words = len(text.split())
        score = tables.quality_base
        score += sum(
            points
            for threshold, points in tables.quality_length_bonuses.items()
            if words > threshold
        )
        if "\n" in text and ":" in text:
            score += tables.quality_structure_bonus
        return clamp(min(score, 100) / 100)

    def business_relevance_score(self, text: str) -> float:
        points = count_phrases(text, self._tables.relevance_keywords) * (
            self._tables.relevance_points_per_keyword
        )
        return clamp(min(points, 100) / 100)

    def quality_tier(self, quality: float) -> QualityTier:
        """Map a [0, 1] quality score onto the premium/high/medium/low tiers."""
        scaled = quality * 100
        tiers = self._tables.quality_tiers
        if scaled >= tiers.get("premium", 90):
            return QualityTier.PREMIUM
        if scaled >= tiers.get("high", 75):
            return QualityTier.HIGH
        if scaled >= tiers.get("medium", 50):
            return QualityTier.MEDIUM
        return QualityTier.LOW
