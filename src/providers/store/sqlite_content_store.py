"""SQLite-backed knowledge-base store.

Persists content items, chunks (with their embeddings as JSON arrays) and
framework detections to a local SQLite database at ``data/oracle.db``.
Uses ``aiosqlite`` for async I/O and ``numpy`` for cosine similarity at
search time.

Chunk writes for one item run in a single transaction: on any failure the
transaction is rolled back, so readers see either the full chunk set or
none of it.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np
import structlog

from src.interfaces.content_store import IContentStore
from src.models.content import (
    ContentChunk,
    ContentItem,
    ContentStatus,
    ContentType,
    FrameworkDetection,
    QualityTier,
)
from src.models.ranking import SearchCandidate
from src.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/oracle.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS content_items (
    id                       TEXT PRIMARY KEY,
    type                     TEXT NOT NULL,
    title                    TEXT NOT NULL DEFAULT '',
    source                   TEXT NOT NULL DEFAULT '',
    status                   TEXT NOT NULL,
    quality_score            REAL NOT NULL DEFAULT 0,
    business_relevance_score REAL NOT NULL DEFAULT 0,
    quality_tier             TEXT NOT NULL DEFAULT 'low',
    detected_frameworks      TEXT NOT NULL DEFAULT '[]',
    word_count               INTEGER NOT NULL DEFAULT 0,
    character_count          INTEGER NOT NULL DEFAULT 0,
    summary                  TEXT NOT NULL DEFAULT '',
    author                   TEXT,
    published_date           TEXT,
    metadata                 TEXT NOT NULL DEFAULT '{}',
    error_message            TEXT,
    created_at               TEXT NOT NULL,
    updated_at               TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS content_chunks (
    id                  TEXT PRIMARY KEY,
    content_id          TEXT NOT NULL REFERENCES content_items(id),
    chunk_index         INTEGER NOT NULL,
    text                TEXT NOT NULL,
    start_word          INTEGER NOT NULL,
    end_word            INTEGER NOT NULL,
    start_char          INTEGER NOT NULL,
    end_char            INTEGER NOT NULL,
    word_count          INTEGER NOT NULL,
    chunk_type          TEXT NOT NULL,
    importance_score    REAL NOT NULL,
    business_concepts   TEXT NOT NULL DEFAULT '[]',
    entities            TEXT NOT NULL DEFAULT '[]',
    detected_frameworks TEXT NOT NULL DEFAULT '[]',
    embedding           TEXT,
    UNIQUE(content_id, chunk_index)
);
""",
    """\
CREATE TABLE IF NOT EXISTS framework_detections (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    content_id       TEXT NOT NULL REFERENCES content_items(id),
    framework_name   TEXT NOT NULL,
    confidence       REAL NOT NULL,
    matched_keywords TEXT NOT NULL DEFAULT '[]',
    matched_phrases  TEXT NOT NULL DEFAULT '[]',
    context          TEXT NOT NULL DEFAULT '',
    explanation      TEXT NOT NULL DEFAULT ''
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_items_status ON content_items(status);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_content ON content_chunks(content_id);",
    "CREATE INDEX IF NOT EXISTS idx_detections_content ON framework_detections(content_id);",
]

_ITEM_COLUMNS = (
    "id, type, title, source, status, quality_score, business_relevance_score, "
    "quality_tier, detected_frameworks, word_count, character_count, summary, "
    "author, published_date, metadata, error_message, created_at, updated_at"
)

_INSERT_ITEM_SQL = f"""\
INSERT INTO content_items ({_ITEM_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_ITEM_SQL = """\
UPDATE content_items
SET title = ?, source = ?, status = ?, quality_score = ?,
    business_relevance_score = ?, quality_tier = ?, detected_frameworks = ?,
    word_count = ?, character_count = ?, summary = ?, author = ?,
    published_date = ?, metadata = ?, error_message = ?, updated_at = ?
WHERE id = ?;
"""

_INSERT_CHUNK_SQL = """\
INSERT INTO content_chunks (
    id, content_id, chunk_index, text, start_word, end_word, start_char,
    end_char, word_count, chunk_type, importance_score, business_concepts,
    entities, detected_frameworks, embedding
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SEARCH_SQL = """\
SELECT c.id AS chunk_id, c.content_id, c.chunk_index, c.text,
       c.importance_score, c.detected_frameworks AS chunk_frameworks,
       c.business_concepts,
       c.embedding, i.title, i.type AS content_type, i.source,
       i.detected_frameworks AS item_frameworks, i.metadata,
       i.quality_score, i.business_relevance_score, i.published_date
FROM content_chunks c
JOIN content_items i ON i.id = c.content_id
WHERE i.status = ? AND c.embedding IS NOT NULL
"""


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _item_params(item: ContentItem) -> tuple[Any, ...]:
    return (
        item.id,
        item.type.value,
        item.title,
        item.source,
        item.status.value,
        item.quality_score,
        item.business_relevance_score,
        item.quality_tier.value,
        json.dumps(item.detected_frameworks),
        item.word_count,
        item.character_count,
        item.summary,
        item.author,
        item.published_date,
        json.dumps(item.metadata, default=str),
        item.error_message,
        item.created_at.isoformat(),
        item.updated_at.isoformat(),
    )


def _row_to_item(row: aiosqlite.Row) -> ContentItem:
    r = dict(row)
    return ContentItem(
        id=r["id"],
        type=ContentType(r["type"]),
        title=r["title"],
        source=r["source"],
        status=ContentStatus(r["status"]),
        quality_score=r["quality_score"],
        business_relevance_score=r["business_relevance_score"],
        quality_tier=QualityTier(r["quality_tier"]),
        detected_frameworks=json.loads(r["detected_frameworks"]),
        word_count=r["word_count"],
        character_count=r["character_count"],
        summary=r["summary"],
        author=r["author"],
        published_date=r["published_date"],
        metadata=json.loads(r["metadata"]),
        error_message=r["error_message"],
        created_at=datetime.fromisoformat(r["created_at"]),
        updated_at=datetime.fromisoformat(r["updated_at"]),
    )


def _cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*.

    Zero-norm vectors score 0.0 rather than NaN.
    """
    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * query_norm
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(denom > 0, dots / denom, 0.0)
    return sims


class SQLiteContentStore(IContentStore):
    """SQLite-backed content datastore with in-process vector search."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("content_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Content items
    # ------------------------------------------------------------------

    async def create_content_item(self, item: ContentItem) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_ITEM_SQL, _item_params(item))
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Failed to create content item {item.id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def update_content_item(self, item: ContentItem) -> None:
        params = (
            item.title,
            item.source,
            item.status.value,
            item.quality_score,
            item.business_relevance_score,
            item.quality_tier.value,
            json.dumps(item.detected_frameworks),
            item.word_count,
            item.character_count,
            item.summary,
            item.author,
            item.published_date,
            json.dumps(item.metadata, default=str),
            item.error_message,
            _utcnow().isoformat(),
            item.id,
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_UPDATE_ITEM_SQL, params)
                await db.commit()
                updated = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Failed to update content item {item.id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        if updated == 0:
            raise StorageError(
                message=f"Content item {item.id} does not exist",
                provider_name=self.get_provider_name(),
            )

    async def archive_content_item(self, content_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "UPDATE content_items SET status = ?, updated_at = ? WHERE id = ?",
                (ContentStatus.ARCHIVED.value, _utcnow().isoformat(), content_id),
            )
            await db.commit()
            archived = cursor.rowcount > 0
        if archived:
            logger.info("content_item_archived", content_id=content_id)
        return archived

    async def get_content_item(self, content_id: str) -> ContentItem | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_ITEM_COLUMNS} FROM content_items WHERE id = ?",
                (content_id,),
            )
            row = await cursor.fetchone()
        return _row_to_item(row) if row is not None else None

    async def list_content_items(
        self,
        status: ContentStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ContentItem]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            if status is not None:
                cursor = await db.execute(
                    f"SELECT {_ITEM_COLUMNS} FROM content_items WHERE status = ? "
                    "ORDER BY created_at DESC LIMIT ? OFFSET ?",
                    (status.value, limit, offset),
                )
            else:
                cursor = await db.execute(
                    f"SELECT {_ITEM_COLUMNS} FROM content_items "
                    "ORDER BY created_at DESC LIMIT ? OFFSET ?",
                    (limit, offset),
                )
            rows = await cursor.fetchall()
        return [_row_to_item(r) for r in rows]

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def store_chunks(self, content_id: str, chunks: list[ContentChunk]) -> int:
        rows = [
            (
                chunk.id,
                content_id,
                chunk.chunk_index,
                chunk.text,
                chunk.start_word,
                chunk.end_word,
                chunk.start_char,
                chunk.end_char,
                chunk.word_count,
                chunk.chunk_type.value,
                chunk.importance_score,
                json.dumps(chunk.business_concepts),
                json.dumps(chunk.entities),
                json.dumps(chunk.detected_frameworks),
                json.dumps(chunk.embedding) if chunk.embedding is not None else None,
            )
            for chunk in chunks
        ]
        async with aiosqlite.connect(str(self._db_path)) as db:
            try:
                await db.execute("BEGIN")
                await db.executemany(_INSERT_CHUNK_SQL, rows)
                await db.commit()
            except aiosqlite.Error as exc:
                await db.rollback()
                raise StorageError(
                    message=f"Failed to store chunks for {content_id}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
        logger.info("chunks_stored", content_id=content_id, count=len(rows))
        return len(rows)

    async def delete_chunks_by_content(self, content_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM content_chunks WHERE content_id = ?",
                (content_id,),
            )
            await db.commit()
            deleted = cursor.rowcount
        logger.info("chunks_deleted", content_id=content_id, count=deleted)
        return deleted

    async def store_framework_detections(
        self,
        content_id: str,
        detections: list[FrameworkDetection],
    ) -> None:
        rows = [
            (
                content_id,
                d.framework_name,
                d.confidence,
                json.dumps(d.matched_keywords),
                json.dumps(d.matched_phrases),
                d.context,
                d.explanation,
            )
            for d in detections
        ]
        async with aiosqlite.connect(str(self._db_path)) as db:
            try:
                await db.execute("BEGIN")
                await db.execute(
                    "DELETE FROM framework_detections WHERE content_id = ?",
                    (content_id,),
                )
                await db.executemany(
                    "INSERT INTO framework_detections (content_id, framework_name, "
                    "confidence, matched_keywords, matched_phrases, context, explanation) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    rows,
                )
                await db.commit()
            except aiosqlite.Error as exc:
                await db.rollback()
                raise StorageError(
                    message=f"Failed to store framework detections for {content_id}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_chunks(
        self,
        query_vector: list[float],
        threshold: float,
        limit: int,
        content_types: list[str] | None = None,
        frameworks: list[str] | None = None,
    ) -> list[SearchCandidate]:
        if limit <= 0 or not query_vector:
            return []

        sql = _SEARCH_SQL
        params: list[Any] = [ContentStatus.COMPLETED.value]
        if content_types:
            sql += f" AND i.type IN ({', '.join('?' for _ in content_types)})"
            params.extend(content_types)

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = [dict(r) for r in await cursor.fetchall()]
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Chunk search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        wanted = {f.lower() for f in frameworks} if frameworks else None
        candidates: list[dict[str, Any]] = []
        vectors: list[list[float]] = []
        query = np.asarray(query_vector, dtype=float)
        for row in rows:
            chunk_frameworks = json.loads(row["chunk_frameworks"])
            item_frameworks = json.loads(row["item_frameworks"])
            if wanted is not None:
                tagged = {f.lower() for f in chunk_frameworks + item_frameworks}
                if not tagged & wanted:
                    continue
            vector = json.loads(row["embedding"])
            if len(vector) != len(query):
                continue
            row["frameworks"] = chunk_frameworks or item_frameworks
            candidates.append(row)
            vectors.append(vector)

        if not candidates:
            return []

        sims = _cosine_similarities(query, np.asarray(vectors, dtype=float))
        order = np.argsort(-sims, kind="stable")

        results: list[SearchCandidate] = []
        for idx in order:
            similarity = float(sims[idx])
            if similarity <= threshold:
                break
            row = candidates[idx]
            metadata = json.loads(row["metadata"])
            metadata.setdefault("frameworks", row["frameworks"])
            metadata.setdefault("business_concepts", json.loads(row["business_concepts"]))
            metadata.setdefault("published_date", row["published_date"])
            metadata.setdefault("quality_score", row["quality_score"])
            metadata.setdefault("business_relevance_score", row["business_relevance_score"])
            results.append(
                SearchCandidate(
                    chunk_id=row["chunk_id"],
                    content_id=row["content_id"],
                    title=row["title"],
                    content_type=row["content_type"],
                    text=row["text"],
                    chunk_index=row["chunk_index"],
                    detected_frameworks=row["frameworks"],
                    importance_score=row["importance_score"],
                    similarity=similarity,
                    source=row["source"],
                    metadata=metadata,
                )
            )
            if len(results) >= limit:
                break

        logger.debug(
            "chunk_search_complete",
            scanned=len(candidates),
            returned=len(results),
            threshold=threshold,
        )
        return results

    async def get_stats(self) -> dict[str, Any]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    "SELECT status, COUNT(*) AS n FROM content_items GROUP BY status"
                )
                by_status = {r["status"]: r["n"] for r in await cursor.fetchall()}
                cursor = await db.execute("SELECT COUNT(*) AS n FROM content_chunks")
                chunk_row = await cursor.fetchone()
                cursor = await db.execute(
                    "SELECT framework_name, COUNT(*) AS n FROM framework_detections "
                    "GROUP BY framework_name ORDER BY n DESC"
                )
                by_framework = {r["framework_name"]: r["n"] for r in await cursor.fetchall()}
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Stats query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return {
            "total_items": sum(by_status.values()),
            "items_by_status": by_status,
            "total_chunks": chunk_row["n"] if chunk_row else 0,
            "frameworks": by_framework,
        }

    def get_provider_name(self) -> str:
        return "sqlite_store"
