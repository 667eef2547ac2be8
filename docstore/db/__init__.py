from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from docstore.db.postgres import PostgresEngine
from docstore.db.sqlite import SqliteEngine
from docstore.runtime_profile import StoreSettings


class Engine(Protocol):
    dialect: str

    def null_safe_equals(self, column: str) -> str: ...

    async def fetch_all(
        self, sql: str, params: Sequence[Any] = (), *, tenant_id: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def fetch_one(
        self, sql: str, params: Sequence[Any] = (), *, tenant_id: str | None = None
    ) -> dict[str, Any] | None: ...

    async def execute(self, sql: str, params: Sequence[Any] = (), *, tenant_id: str | None = None) -> int: ...


def create_engine(settings: StoreSettings) -> SqliteEngine | PostgresEngine:
    if settings.backend == "sqlite":
        return SqliteEngine(settings.sqlite_path)
    if settings.backend == "postgres":
        if not settings.postgres_dsn:
            raise ValueError("POSTGRES_DSN must be set when DOCSTORE_BACKEND=postgres")
        return PostgresEngine(settings.postgres_dsn)
    raise RuntimeError(f"unsupported docstore backend: {settings.backend}")


def create_engine_from_env(environ: Mapping[str, str] | None = None) -> SqliteEngine | PostgresEngine:
    return create_engine(StoreSettings.from_env(environ))


__all__ = [
    "Engine",
    "PostgresEngine",
    "SqliteEngine",
    "create_engine",
    "create_engine_from_env",
]
