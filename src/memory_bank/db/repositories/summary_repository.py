"""SQLite summary store."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from memory_bank.db.database import Database
from memory_bank.exceptions import NotFoundError
from memory_bank.models.summary import (
    Summary,
    SummaryHierarchy,
    SummaryLevel,
    SummaryType,
)
from memory_bank.stores.base import SummaryStore
from memory_bank.utils.text import term_relevance


class SqliteSummaryStore(SummaryStore):
    """Repository for summary hierarchy persistence."""

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def upsert(self, summary: Summary) -> None:
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO summaries (
                    id, project_name, level, summary_type, text, source_item_ids,
                    child_summary_ids, token_count, compression_ratio, created_at,
                    updated_at, embedding, degraded
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    summary_type = excluded.summary_type,
                    text = excluded.text,
                    source_item_ids = excluded.source_item_ids,
                    child_summary_ids = excluded.child_summary_ids,
                    token_count = excluded.token_count,
                    compression_ratio = excluded.compression_ratio,
                    updated_at = excluded.updated_at,
                    embedding = excluded.embedding,
                    degraded = excluded.degraded
                """,
                (
                    summary.id,
                    summary.project_name,
                    summary.level.value,
                    summary.summary_type.value,
                    summary.text,
                    Database.serialize_json(summary.source_item_ids),
                    Database.serialize_json(summary.child_summary_ids),
                    summary.token_count,
                    summary.compression_ratio,
                    summary.created_at.isoformat(),
                    summary.updated_at.isoformat(),
                    Database.serialize_json(summary.embedding)
                    if summary.embedding is not None
                    else None,
                    int(summary.degraded),
                ),
            )

    async def get(self, summary_id: str) -> Summary:
        row = await self.db.fetchone("SELECT * FROM summaries WHERE id = ?", (summary_id,))
        if not row:
            raise NotFoundError(f"Summary not found: {summary_id}")
        return self._row_to_summary(row)

    async def delete(self, summary_id: str) -> bool:
        async with self.db.transaction():
            cursor = await self.db.execute("DELETE FROM summaries WHERE id = ?", (summary_id,))
        return cursor.rowcount > 0

    async def by_level(self, project_name: str, level: SummaryLevel) -> list[Summary]:
        # rowid keeps insertion order, which follows item order within a compile
        rows = await self.db.fetchall(
            "SELECT * FROM summaries WHERE project_name = ? AND level = ? ORDER BY rowid",
            (project_name, level.value),
        )
        return [self._row_to_summary(row) for row in rows]

    async def hierarchy(self, project_name: str) -> SummaryHierarchy:
        roots = await self.by_level(project_name, SummaryLevel.PROJECT)
        if not roots:
            raise NotFoundError(f"No summary hierarchy for project: {project_name}")

        root = roots[0]
        sections = await self.by_level(project_name, SummaryLevel.SECTION)
        nodes = await self.by_level(project_name, SummaryLevel.NODE)

        node_tokens = sum(n.token_count for n in nodes)
        return SummaryHierarchy(
            project_name=project_name,
            root=root,
            sections=sections,
            nodes=nodes,
            total_tokens=root.token_count
            + sum(s.token_count for s in sections)
            + node_tokens,
            compression_ratio=root.token_count / node_tokens if node_tokens else 1.0,
            last_updated=root.updated_at,
        )

    async def stale(
        self, project_name: str, changed_item_ids: Sequence[str]
    ) -> list[Summary]:
        if not changed_item_ids:
            return []

        placeholders = ", ".join("?" for _ in changed_item_ids)
        rows = await self.db.fetchall(
            f"""
            SELECT * FROM summaries s
            WHERE s.project_name = ?
              AND EXISTS (
                  SELECT 1 FROM json_each(s.source_item_ids) src
                  WHERE src.value IN ({placeholders})
              )
            ORDER BY rowid
            """,
            (project_name, *changed_item_ids),
        )
        return [self._row_to_summary(row) for row in rows]

    async def search(
        self,
        project_name: str,
        query: str,
        limit: int = 10,
        levels: Sequence[SummaryLevel] | None = None,
    ) -> list[tuple[Summary, float]]:
        params: list[Any] = [project_name]
        level_sql = ""
        if levels:
            level_sql = f"AND level IN ({', '.join('?' for _ in levels)})"
            params.extend(level.value for level in levels)

        rows = await self.db.fetchall(
            f"SELECT * FROM summaries WHERE project_name = ? {level_sql} ORDER BY rowid",
            tuple(params),
        )

        scored = []
        for row in rows:
            summary = self._row_to_summary(row)
            relevance = term_relevance(summary.text, query)
            if relevance > 0:
                scored.append((summary, relevance))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    async def prune(self, project_name: str, keep_ids: Sequence[str]) -> int:
        params: list[Any] = [project_name]
        keep_sql = ""
        if keep_ids:
            keep_sql = f"AND id NOT IN ({', '.join('?' for _ in keep_ids)})"
            params.extend(keep_ids)

        async with self.db.transaction():
            cursor = await self.db.execute(
                f"DELETE FROM summaries WHERE project_name = ? {keep_sql}", tuple(params)
            )
        return cursor.rowcount

    async def stats(self, project_name: str) -> dict[str, Any]:
        """Get summary statistics of a project.

        Returns:
            Per-level summary and token counts, degraded count and last update
        """
        rows = await self.db.fetchall(
            """
            SELECT level, COUNT(*) AS count, SUM(token_count) AS tokens,
                   SUM(degraded) AS degraded, MAX(updated_at) AS last_updated
            FROM summaries WHERE project_name = ?
            GROUP BY level
            """,
            (project_name,),
        )

        levels = {
            level.value: {"count": 0, "tokens": 0} for level in SummaryLevel
        }
        degraded = 0
        last_updated: str | None = None
        for row in rows:
            levels[row["level"]] = {"count": row["count"], "tokens": row["tokens"] or 0}
            degraded += row["degraded"] or 0
            if last_updated is None or row["last_updated"] > last_updated:
                last_updated = row["last_updated"]

        return {
            "project_name": project_name,
            "levels": levels,
            "total_summaries": sum(v["count"] for v in levels.values()),
            "degraded_summaries": degraded,
            "last_updated": last_updated,
        }

    def _row_to_summary(self, row: Any) -> Summary:
        return Summary(
            id=row["id"],
            project_name=row["project_name"],
            level=SummaryLevel(row["level"]),
            summary_type=SummaryType(row["summary_type"]),
            text=row["text"],
            source_item_ids=Database.deserialize_json(row["source_item_ids"], []),
            child_summary_ids=Database.deserialize_json(row["child_summary_ids"], []),
            token_count=row["token_count"],
            compression_ratio=row["compression_ratio"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            embedding=Database.deserialize_json(row["embedding"]),
            degraded=bool(row["degraded"]),
        )
