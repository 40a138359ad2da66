"""Business framework detection over whole documents and chunks.

Each framework in the ``frameworks`` table of ``config/scoring_tables.yaml``
is scored against the lower-cased ``"{title} {content}"`` text:

* every keyword adds its word-boundary match count,
* every matched phrase adds 3 (phrases match across any whitespace),
* every matching context pattern adds 2.

A framework is reported when its total reaches ``required_matches``; its
confidence is ``min(100, total/required*50 + phrases*25 + keywords*5)/100``
where *phrases* and *keywords* count distinct matched entries.
"""

from __future__ import annotations

import re

import structlog

from src.config.loader import default_scoring_tables
from src.config.scoring_tables import FrameworkDefinition
from src.models.content import FrameworkDetection
from src.utils.scoring import count_word_matches

logger = structlog.get_logger(logger_name=__name__)

_PHRASE_POINTS = 3
_CONTEXT_POINTS = 2
_MAX_SNIPPETS_PER_PHRASE = 2
_QUICK_MIN_CONFIDENCE = 0.3
_QUICK_LIMIT = 5


class _CompiledFramework:
    __slots__ = ("definition", "phrase_res", "snippet_res", "context_res")

    def __init__(self, definition: FrameworkDefinition) -> None:
        self.definition = definition
        self.phrase_res = [
            re.compile(r"\s+".join(re.escape(w) for w in phrase.lower().split()))
            for phrase in definition.phrases
        ]
        self.snippet_res = [
            re.compile(r".{0,50}" + re.escape(phrase.lower()) + r".{0,50}")
            for phrase in definition.phrases
        ]
        self.context_res = [re.compile(p, re.IGNORECASE) for p in definition.context_patterns]


class FrameworkDetector:
    """Detects named business frameworks in text.

    Parameters
    ----------
    frameworks:
        Framework definitions; defaults to the packaged scoring tables.
    """

    def __init__(self, frameworks: list[FrameworkDefinition] | None = None) -> None:
        definitions = frameworks if frameworks is not None else default_scoring_tables().frameworks
        self._frameworks = [_CompiledFramework(d) for d in definitions]

    @property
    def framework_names(self) -> list[str]:
        return [f.definition.name for f in self._frameworks]

    def detect(self, content: str, title: str = "") -> list[FrameworkDetection]:
        """Score every framework against *content* and return the detections.

        Returns
        -------
        list[FrameworkDetection]
            Detected frameworks ordered by descending confidence.
        """
        text = f"{title} {content}".lower()
        detections = [
            detection
            for framework in self._frameworks
            if (detection := self._analyze(text, framework)) is not None
        ]
        detections.sort(key=lambda d: d.confidence, reverse=True)
        logger.debug(
            "frameworks_detected",
            count=len(detections),
            names=[d.framework_name for d in detections],
        )
        return detections

    def quick_detect(self, text: str) -> list[str]:
        """Names of the top five frameworks detected with confidence above 0.3."""
        return [
            d.framework_name
            for d in self.detect(text)
            if d.confidence > _QUICK_MIN_CONFIDENCE
        ][:_QUICK_LIMIT]

    def _analyze(self, text: str, framework: _CompiledFramework) -> FrameworkDetection | None:
        definition = framework.definition
        total = 0
        keywords: list[str] = []
        phrases: list[str] = []
        snippets: list[str] = []

        for keyword in definition.keywords:
            hits = count_word_matches(text, keyword)
            if hits:
                total += hits
                keywords.append(keyword)

        for phrase, phrase_re, snippet_re in zip(
            definition.phrases, framework.phrase_res, framework.snippet_res, strict=True
        ):
            if phrase_re.search(text):
                total += _PHRASE_POINTS
                phrases.append(phrase)
                found = [m.group(0).strip() for m in snippet_re.finditer(text)]
                snippets.extend(found[:_MAX_SNIPPETS_PER_PHRASE])

        for context_re in framework.context_res:
            if context_re.search(text):
                total += _CONTEXT_POINTS

        if total < definition.required_matches:
            return None

        confidence = (
            min(
                100.0,
                total / definition.required_matches * 50
                + len(phrases) * 25
                + len(keywords) * 5,
            )
            / 100
        )
        explanation = definition.explanation or (
            f"Content contains {len(keywords) + len(phrases)} key indicators of the "
            f"{definition.name} framework."
        )
        return FrameworkDetection(
            framework_name=definition.name,
            confidence=confidence,
            matched_keywords=keywords,
            matched_phrases=phrases,
            context=" ... ".join(snippets),
            explanation=explanation,
        )
