"""Query-time entry point: question in, assembled answer out.

Architecture overview
---------------------
One call to :meth:`AnswerService.answer` runs six timed phases:

  1. ANALYZE  -- BusinessQueryAnalyzer turns the question into a context
                 (intent, industry, stage, frameworks, urgency, readiness).
  2. EMBED    -- the embedding provider vectorizes the raw question.
  3. SEARCH   -- the content store returns chunks above the similarity
                 threshold, filtered by content type / framework.
  4. RANK     -- BusinessSearchRanker re-scores candidates for this asker.
  5. ASSEMBLE -- ContextAssemblyEngine builds the structured, cited answer.
  6. RENDER   -- optional: an LLM rewrites the structured answer as prose.

Embedding and search failures propagate unchanged (they are already
OracleError subclasses).  Analysis, ranking and assembly are pure
computations, so anything they raise is a defect and is wrapped in
AssemblyError with the query attached.  Prose rendering is a convenience:
when the LLM fails the structured answer is still returned, with
``rendered_answer`` left as ``None``.
"""

from __future__ import annotations

import time
from typing import Any, Callable, TypeVar

import structlog

from src.interfaces.content_store import IContentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.assembly import AssembledResponse, QueryAnswer, QueryTimings
from src.models.query import KnownContext, QueryOptions, UserProfile
from src.services.assembly import ContextAssemblyEngine
from src.services.query_analyzer import BusinessQueryAnalyzer
from src.services.ranker import BusinessSearchRanker
from src.utils.errors import AssemblyError, InputValidationError, LLMError, OracleError
from src.utils.logging import bound_context, get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_MAX_QUERY_CHARS = 2000

_T = TypeVar("_T")


class AnswerService:
    """Answers business questions from the ingested knowledge base.

    Parameters
    ----------
    store:
        Content store used for similarity search.
    embedder:
        Embedding provider for the question vector.
    analyzer, ranker, engine:
        Query-time components; default instances use the packaged
        scoring tables.
    llm:
        Optional LLM provider for prose rendering.
    response_length_chars:
        Explanation cap per ``response_length`` option (0 = unlimited).
    """

    _RENDER_SYSTEM_PROMPT = (
        "You are a business advisor. Rewrite the structured answer below as clear, "
        "direct prose for a business owner.\n\n"
        "Guidelines:\n"
        "- Use only the facts, insights and evidence provided; add nothing new\n"
        "- Keep the numbered citation markers exactly as given, e.g. [1]\n"
        "- Lead with the most urgent actions\n"
        "- State the limitations plainly at the end"
    )

    def __init__(
        self,
        store: IContentStore,
        embedder: IEmbeddingProvider,
        analyzer: BusinessQueryAnalyzer | None = None,
        ranker: BusinessSearchRanker | None = None,
        engine: ContextAssemblyEngine | None = None,
        llm: ILLMProvider | None = None,
        response_length_chars: dict[str, int] | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._analyzer = analyzer or BusinessQueryAnalyzer()
        self._ranker = ranker or BusinessSearchRanker()
        self._engine = engine or ContextAssemblyEngine()
        self._llm = llm
        self._length_caps = response_length_chars or {
            "short": 600,
            "medium": 1500,
            "long": 3000,
            "comprehensive": 0,
        }

    async def answer(
        self,
        query: str,
        options: QueryOptions | None = None,
        known_context: KnownContext | None = None,
        user_profile: UserProfile | None = None,
    ) -> QueryAnswer:
        """Answer *query* and report per-phase timings.

        Raises
        ------
        InputValidationError
            If the question is empty or too long.
        EmbeddingError, StorageError
            If the question cannot be embedded or the store search fails.
        AssemblyError
            If analysis, ranking or assembly raise.
        """
        query = query.strip()
        if not query:
            raise InputValidationError("Query text is required")
        if len(query) > _MAX_QUERY_CHARS:
            raise InputValidationError(
                f"Query too long (maximum {_MAX_QUERY_CHARS} characters)"
            )
        options = options or QueryOptions()
        timings: dict[str, float] = {}
        started = time.perf_counter()

        with bound_context(query=query[:80]):
            mark = time.perf_counter()
            context = self._pure_phase(
                "analysis", query, self._analyzer.analyze, query, known_context
            )
            timings["analysis_ms"] = _elapsed_ms(mark)

            mark = time.perf_counter()
            vector = await self._embedder.embed_single(query)
            timings["embedding_ms"] = _elapsed_ms(mark)

            mark = time.perf_counter()
            candidates = await self._store.search_chunks(
                vector,
                threshold=options.similarity_threshold,
                limit=options.max_results,
                content_types=options.content_types,
                frameworks=options.frameworks,
            )
            timings["search_ms"] = _elapsed_ms(mark)

            mark = time.perf_counter()
            ranked = self._pure_phase(
                "ranking", query, self._ranker.rank, candidates, context, user_profile
            )
            timings["ranking_ms"] = _elapsed_ms(mark)

            mark = time.perf_counter()
            response = self._pure_phase(
                "assembly",
                query,
                self._engine.assemble,
                context,
                ranked,
                gap_handling=options.gap_handling,
                citation_detail=options.citation_detail,
                max_explanation_chars=self._length_caps.get(options.response_length, 0),
            )
            timings["assembly_ms"] = _elapsed_ms(mark)

            rendered: str | None = None
            mark = time.perf_counter()
            if options.render_prose and self._llm is not None:
                rendered = await self._render(self._llm, response)
            timings["rendering_ms"] = _elapsed_ms(mark)
            timings["total_ms"] = _elapsed_ms(started)

            logger.info(
                "query_answered",
                intent=context.intent.value,
                candidates=len(candidates),
                confidence=round(response.confidence.overall_confidence, 3),
                total_ms=round(timings["total_ms"], 1),
            )

        return QueryAnswer(
            response=response,
            query_context=context,
            ranked_results=ranked,
            rendered_answer=rendered,
            timings=QueryTimings(**timings),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _pure_phase(
        phase: str, query: str, func: Callable[..., _T], *args: Any, **kwargs: Any
    ) -> _T:
        try:
            return func(*args, **kwargs)
        except OracleError:
            raise
        except Exception as exc:
            logger.exception("query_phase_failed", phase=phase, error=str(exc))
            raise AssemblyError(
                message=f"{phase} failed for query '{query[:80]}': {exc}",
                provider_name=phase,
            ) from exc

    async def _render(self, llm: ILLMProvider, response: AssembledResponse) -> str | None:
        try:
            return await llm.complete(
                system_prompt=self._RENDER_SYSTEM_PROMPT,
                user_prompt=self._render_prompt(response),
                temperature=0.3,
                max_tokens=1200,
            )
        except LLMError as exc:
            logger.warning(
                "prose_render_failed",
                provider=llm.get_provider_name(),
                error=exc.message,
            )
            return None

    @staticmethod
    def _render_prompt(response: AssembledResponse) -> str:
        lines = [f"QUESTION: {response.query}", "", "SUMMARY:", response.executive_summary]
        if response.actionable_insights:
            lines += ["", "ACTIONS:"]
            lines += [
                f"- ({i.priority.value}, {i.timeframe}) {i.insight_text}"
                for i in response.actionable_insights
            ]
        if response.evidence:
            lines += ["", "EVIDENCE:"]
            lines += [
                f"- {e.evidence_text} {e.citation.citation_text}" for e in response.evidence
            ]
        if response.limitations:
            lines += ["", "LIMITATIONS:"]
            lines += [f"- {text}" for text in response.limitations]
        return "\n".join(lines)


def _elapsed_ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000
