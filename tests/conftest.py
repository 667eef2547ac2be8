import asyncio
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from docstore.db import SqliteEngine
from docstore.runtime_profile import StoreSettings
from docstore.schema_registry import TABLE_COLUMNS, SchemaRegistry
from docstore.store import DocumentStore

LEDGER_COLUMNS = (
    "id",
    "company_id",
    "category",
    "amount",
    "status",
    "is_active",
    "data",
    "created_at",
    "updated_at",
)


def _create_tables_sql(registry: SchemaRegistry, tables: list[str]) -> str:
    statements = []
    for table in tables:
        columns = sorted(registry.allowed_columns(table) or ())
        defs = ["id TEXT PRIMARY KEY"] + [f"{c}" for c in columns if c != "id"]
        statements.append(f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(defs)});")
    return "\n".join(statements)


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry(tables={**TABLE_COLUMNS, "ledger": LEDGER_COLUMNS})


@pytest.fixture
def engine(tmp_path: pathlib.Path, registry: SchemaRegistry) -> SqliteEngine:
    sqlite_engine = SqliteEngine(str(tmp_path / "docstore.sqlite3"))
    tables = ["ledger", "promotions", "trade_spends", "users", "notifications", "customers"]
    asyncio.run(sqlite_engine.executescript(_create_tables_sql(registry, tables)))
    return sqlite_engine


@pytest.fixture
def settings() -> StoreSettings:
    return StoreSettings(backend="sqlite", default_limit=100, max_limit=1000)


@pytest.fixture
def store(engine: SqliteEngine, settings: StoreSettings, registry: SchemaRegistry) -> DocumentStore:
    return DocumentStore(engine, settings=settings, registry=registry, tenant_id="tenant_a")
