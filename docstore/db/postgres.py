from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def _import_psycopg() -> Any:
    try:
        import psycopg  # type: ignore
    except ImportError as exc:
        raise RuntimeError("psycopg is required for PostgreSQL backends; install psycopg[binary]") from exc
    return psycopg


def to_pyformat(sql: str) -> str:
    """Rewrite ``?`` placeholders to ``%s``; quoted literals are left alone."""
    out: list[str] = []
    quote: str | None = None
    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "?":
            out.append("%s")
            continue
        out.append("%%" if ch == "%" else ch)
    return "".join(out)


class PostgresEngine:
    """Run each statement in its own PostgreSQL transaction with tenant session injection."""

    dialect = "postgres"

    def __init__(self, dsn: str) -> None:
        if not dsn.strip():
            raise ValueError("POSTGRES_DSN must not be empty")
        self._dsn = dsn.strip()

    @staticmethod
    def null_safe_equals(column: str) -> str:
        return f"{column} IS NOT DISTINCT FROM ?"

    async def _run(
        self,
        sql: str,
        params: Sequence[Any],
        *,
        tenant_id: str | None,
        fetch: str,
    ) -> Any:
        psycopg = _import_psycopg()
        query = to_pyformat(sql) if params else sql
        async with await psycopg.AsyncConnection.connect(self._dsn) as conn:
            async with conn.cursor(row_factory=psycopg.rows.dict_row) as cur:
                if tenant_id:
                    await cur.execute("SELECT set_config('app.current_tenant', %s, true)", (tenant_id,))
                await cur.execute(query, tuple(params) if params else None)
                if fetch == "all":
                    result: Any = await cur.fetchall()
                elif fetch == "one":
                    result = await cur.fetchone()
                else:
                    result = max(cur.rowcount, 0)
            await conn.commit()
        return result

    async def fetch_all(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> list[dict[str, Any]]:
        rows = await self._run(sql, params, tenant_id=tenant_id, fetch="all")
        return [dict(row) for row in rows or []]

    async def fetch_one(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> dict[str, Any] | None:
        row = await self._run(sql, params, tenant_id=tenant_id, fetch="one")
        return None if row is None else dict(row)

    async def execute(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        tenant_id: str | None = None,
    ) -> int:
        return await self._run(sql, params, tenant_id=tenant_id, fetch="rowcount")
