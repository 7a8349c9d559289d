"""SQLite vector index for items."""

import json
from datetime import datetime, timezone
from typing import Any

from memory_bank.db.database import Database
from memory_bank.exceptions import NotFoundError, ValidationError
from memory_bank.models.item import Item, SearchFilters
from memory_bank.stores.base import VectorIndex


class SqliteVectorIndex(VectorIndex):
    """Exact cosine search over item embeddings stored in SQLite."""

    def __init__(self, db: Database, dimensions: int | None = None) -> None:
        """Initialize repository.

        Args:
            db: Database instance
            dimensions: Expected embedding size, defaults to the database's
        """
        self.db = db
        self.dimensions = dimensions or db.embedding_dimensions

    def _check_dimensions(self, vector: list[float]) -> None:
        if len(vector) != self.dimensions:
            raise ValidationError(
                f"Embedding has {len(vector)} dimensions, expected {self.dimensions}"
            )

    async def upsert(self, item: Item) -> None:
        if item.embedding is not None:
            self._check_dimensions(item.embedding)

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO items (
                    project_name, name, text, tags, created_at, updated_at,
                    last_accessed_at, salience, frequency
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(project_name, name) DO UPDATE SET
                    text = excluded.text,
                    tags = excluded.tags,
                    updated_at = excluded.updated_at,
                    last_accessed_at = excluded.last_accessed_at,
                    salience = excluded.salience,
                    frequency = excluded.frequency
                """,
                (
                    item.project_name,
                    item.name,
                    item.text,
                    json.dumps(item.tags),
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                    item.last_accessed_at.isoformat() if item.last_accessed_at else None,
                    item.salience,
                    item.frequency,
                ),
            )

            if item.embedding is None:
                await self.db.execute(
                    "DELETE FROM item_vectors WHERE project_name = ? AND name = ?",
                    (item.project_name, item.name),
                )
            else:
                await self.db.execute(
                    """
                    INSERT OR REPLACE INTO item_vectors (project_name, name, embedding)
                    VALUES (?, ?, vec_f32(?))
                    """,
                    (item.project_name, item.name, json.dumps(item.embedding)),
                )

    async def get(self, project_name: str, name: str) -> Item:
        row = await self.db.fetchone(
            """
            SELECT i.*, vec_to_json(v.embedding) AS embedding_json
            FROM items i
            LEFT JOIN item_vectors v
                ON v.project_name = i.project_name AND v.name = i.name
            WHERE i.project_name = ? AND i.name = ?
            """,
            (project_name, name),
        )
        if not row:
            raise NotFoundError(f"Item not found: {project_name}/{name}")
        return self._row_to_item(row)

    async def delete(self, project_name: str, name: str) -> bool:
        async with self.db.transaction():
            await self.db.execute(
                "DELETE FROM item_vectors WHERE project_name = ? AND name = ?",
                (project_name, name),
            )
            cursor = await self.db.execute(
                "DELETE FROM items WHERE project_name = ? AND name = ?",
                (project_name, name),
            )
        return cursor.rowcount > 0

    async def nearest(
        self, vector: list[float], filters: SearchFilters | None, limit: int
    ) -> list[tuple[Item, float]]:
        self._check_dimensions(vector)

        where_clauses: list[str] = []
        params: list[Any] = [json.dumps(vector)]

        if filters and filters.project_name:
            where_clauses.append("i.project_name = ?")
            params.append(filters.project_name)

        if filters and filters.tags:
            placeholders = ", ".join("?" for _ in filters.tags)
            where_clauses.append(
                f"EXISTS (SELECT 1 FROM json_each(i.tags) t WHERE t.value IN ({placeholders}))"
            )
            params.extend(filters.tags)

        where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        params.append(limit)

        rows = await self.db.fetchall(
            f"""
            SELECT i.*, vec_to_json(v.embedding) AS embedding_json,
                   vec_distance_cosine(v.embedding, vec_f32(?)) AS distance
            FROM items i
            JOIN item_vectors v ON v.project_name = i.project_name AND v.name = i.name
            {where_sql}
            ORDER BY distance ASC
            LIMIT ?
            """,
            tuple(params),
        )

        # Cosine distance lies in [0, 2]; opposite vectors count as unrelated
        return [
            (self._row_to_item(row), max(0.0, 1.0 - row["distance"])) for row in rows
        ]

    async def touch_access(self, project_name: str, name: str) -> None:
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                UPDATE items SET frequency = frequency + 1, last_accessed_at = ?
                WHERE project_name = ? AND name = ?
                """,
                (datetime.now(timezone.utc).isoformat(), project_name, name),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Item not found: {project_name}/{name}")

    def _row_to_item(self, row: Any) -> Item:
        return Item(
            project_name=row["project_name"],
            name=row["name"],
            text=row["text"],
            tags=json.loads(row["tags"]) if row["tags"] else [],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            last_accessed_at=(
                datetime.fromisoformat(row["last_accessed_at"])
                if row["last_accessed_at"]
                else None
            ),
            salience=row["salience"],
            frequency=row["frequency"],
            embedding=json.loads(row["embedding_json"]) if row["embedding_json"] else None,
        )
