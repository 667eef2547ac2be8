from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite


class SqliteEngine:
    """Async SQLite engine; one short-lived connection per statement."""

    dialect = "sqlite"

    def __init__(self, db_path: str, *, timeout: float = 5.0) -> None:
        if not str(db_path).strip():
            raise ValueError("db_path must not be empty")
        self._db_path = Path(db_path).expanduser()
        self._timeout = timeout

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        return aiosqlite.connect(str(self._db_path), timeout=self._timeout)

    @staticmethod
    def null_safe_equals(column: str) -> str:
        return f"{column} IS ?"

    async def fetch_all(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> list[dict[str, Any]]:
        async with self._connect() as conn:
            conn.row_factory = aiosqlite.Row
            async with conn.execute(sql, tuple(params)) as cur:
                rows = await cur.fetchall()
        return [dict(row) for row in rows]

    async def fetch_one(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> dict[str, Any] | None:
        async with self._connect() as conn:
            conn.row_factory = aiosqlite.Row
            async with conn.execute(sql, tuple(params)) as cur:
                row = await cur.fetchone()
        return None if row is None else dict(row)

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> int:
        async with self._connect() as conn:
            cur = await conn.execute(sql, tuple(params))
            changes = cur.rowcount
            await cur.close()
            await conn.commit()
        return max(changes, 0)

    async def executescript(self, script: str) -> None:
        async with self._connect() as conn:
            await conn.executescript(script)
            await conn.commit()
