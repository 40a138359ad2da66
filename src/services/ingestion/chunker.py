"""Word-window chunking with structural and business feature tagging.

Splits normalized text into :class:`~src.models.content.ContentChunk`
objects using a sliding window over the whitespace-split word sequence.

The chunking strategy has two properties the rest of the system relies on:

1. **Lossless** -- windows advance by ``max_words - overlap_words``, and
   the last window always reaches the final word, so dropping the first
   ``overlap_words`` words of every chunk after the first and concatenating
   reconstructs the original word sequence exactly.

2. **Overlapping windows** -- consecutive chunks share exactly
   ``overlap_words`` words, so a concept spanning a boundary is fully
   contained in at least one chunk.

Each chunk is then tagged with a structural type, an importance score and
the business concepts and named entities it mentions.  Vocabulary comes
from the ``chunking`` section of ``config/scoring_tables.yaml``.
"""

from __future__ import annotations

import re
import uuid

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import ChunkingTables
from src.models.content import ChunkType, ContentChunk
from src.utils.errors import InputValidationError
from src.utils.scoring import clamp, count_phrases

logger = structlog.get_logger(logger_name=__name__)

_WORD_RE = re.compile(r"\S+")

# Structural markers, checked in this order.
_LIST_RES = (
    re.compile(r"^\s*[-*•]\s+", re.MULTILINE),
    re.compile(r"^\s*\d+\.\s+", re.MULTILINE),
)
_CODE_TOKENS = ("function ", "class ", "import ", "const ")
_HEADING_RE = re.compile(r"^#+\s+.+$", re.MULTILINE)
_ENUMERATED_RE = re.compile(r"\d+\.")


def classify_chunk_type(text: str) -> ChunkType:
    """Return the structural type of *text*: table, list, code, heading or text."""
    if any("|" in line for line in text.split("\n")):
        return ChunkType.TABLE
    if any(pattern.search(text) for pattern in _LIST_RES):
        return ChunkType.LIST
    if any(token in text for token in _CODE_TOKENS):
        return ChunkType.CODE
    if _HEADING_RE.search(text):
        return ChunkType.HEADING
    return ChunkType.TEXT


class ContentChunker:
    """Splits text into overlapping word windows and tags each window.

    Parameters
    ----------
    max_words:
        Maximum words per chunk (default 1000).
    overlap_words:
        Words shared by consecutive chunks (default 100).  Must be smaller
        than *max_words*.
    tables:
        Chunking vocabulary; defaults to the packaged scoring tables.
    """

    def __init__(
        self,
        max_words: int = 1000,
        overlap_words: int = 100,
        tables: ChunkingTables | None = None,
    ) -> None:
        if max_words < 1:
            raise InputValidationError(message="max chunk size must be at least 1 word")
        if overlap_words < 0 or overlap_words >= max_words:
            raise InputValidationError(
                message=(
                    f"chunk overlap ({overlap_words}) must be >= 0 and smaller "
                    f"than the max chunk size ({max_words})"
                )
            )
        self._max_words = max_words
        self._overlap_words = overlap_words
        self._tables = tables or default_scoring_tables().chunking
        self._concept_res = {
            concept: re.compile(pattern)
            for concept, pattern in self._tables.concept_patterns.items()
        }
        self._entity_res = [re.compile(pattern) for pattern in self._tables.entity_patterns]

    @property
    def max_words(self) -> int:
        return self._max_words

    @property
    def overlap_words(self) -> int:
        return self._overlap_words

    def chunk(self, text: str, content_id: str = "") -> list[ContentChunk]:
        """Split *text* into tagged chunks.

        Parameters
        ----------
        text:
            Normalized plain text.
        content_id:
            Parent ContentItem id stamped on each chunk.

        Returns
        -------
        list[ContentChunk]
            Chunks ordered by ``chunk_index`` (0, 1, 2, ...).  Empty or
            whitespace-only text yields an empty list.
        """
        spans = [(m.start(), m.end()) for m in _WORD_RE.finditer(text)]
        total = len(spans)
        if total == 0:
            return []

        step = self._max_words - self._overlap_words
        chunks: list[ContentChunk] = []
        start = 0
        while start < total:
            end = min(start + self._max_words, total)
            start_char = spans[start][0]
            end_char = spans[end - 1][1]
            chunk_text = text[start_char:end_char]
            chunks.append(
                ContentChunk(
                    id=str(uuid.uuid4()),
                    content_id=content_id,
                    chunk_index=len(chunks),
                    text=chunk_text,
                    start_word=start,
                    end_word=end,
                    start_char=start_char,
                    end_char=end_char,
                    word_count=end - start,
                    chunk_type=classify_chunk_type(chunk_text),
                    importance_score=self.importance_score(chunk_text),
                    business_concepts=self.extract_concepts(chunk_text),
                    entities=self.extract_entities(chunk_text),
                )
            )
            if end >= total:
                break
            start += step

        logger.debug(
            "chunking_complete",
            content_id=content_id,
            total_words=total,
            chunks=len(chunks),
        )
        return chunks

    # ------------------------------------------------------------------
    # Feature extraction
    # ------------------------------------------------------------------

    def importance_score(self, text: str) -> float:
        """Heuristic importance of a chunk in [0, 1]."""
        score = 0.5
        score += 0.1 * count_phrases(text, self._tables.business_keywords)
        if ":" in text and "\n" in text:
            score += 0.1
        if _ENUMERATED_RE.search(text):
            score += 0.1
        if len(text) > 500:
            score += 0.1
        if len(text) < 100:
            score -= 0.2
        if len(text.split(" ")) < 20:
            score -= 0.2
        return clamp(score)

    def extract_concepts(self, text: str) -> list[str]:
        lowered = text.lower()
        return [concept for concept, regex in self._concept_res.items() if regex.search(lowered)]

    def extract_entities(self, text: str) -> list[str]:
        """Named entities, amounts and numbers, de-duplicated and capped."""
        found: list[str] = []
        for regex in self._entity_res:
            matches = [m.group(0) for m in regex.finditer(text)]
            for match in matches[: self._tables.max_entities_per_pattern]:
                if match not in found:
                    found.append(match)
        return found[: self._tables.max_entities]
