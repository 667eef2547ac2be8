from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    return _as_bool(raw)


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    if not raw.isdigit() or int(raw) < 1:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return int(raw)


@dataclass(frozen=True)
class StoreSettings:
    backend: str = "sqlite"
    sqlite_path: str = ".runtime/docstore.sqlite3"
    postgres_dsn: str = ""
    default_limit: int = 100
    max_limit: int = 1000
    strict_queries: bool = True
    strict_collections: bool = False
    check_conflicts: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StoreSettings":
        env = os.environ if environ is None else environ
        default_limit = _env_int(env, "DOCSTORE_DEFAULT_LIMIT", 100)
        max_limit = _env_int(env, "DOCSTORE_MAX_LIMIT", 1000)
        if default_limit > max_limit:
            raise ValueError("DOCSTORE_DEFAULT_LIMIT must not exceed DOCSTORE_MAX_LIMIT")
        return cls(
            backend=env.get("DOCSTORE_BACKEND", "sqlite").strip().lower() or "sqlite",
            sqlite_path=env.get("DOCSTORE_SQLITE_PATH", ".runtime/docstore.sqlite3").strip(),
            postgres_dsn=env.get("POSTGRES_DSN", "").strip(),
            default_limit=default_limit,
            max_limit=max_limit,
            strict_queries=_env_bool(env, "DOCSTORE_STRICT_QUERIES", True),
            strict_collections=_env_bool(env, "DOCSTORE_STRICT_COLLECTIONS", False),
            check_conflicts=_env_bool(env, "DOCSTORE_CHECK_CONFLICTS", True),
        )
