from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from docstore.aggregation import build_aggregation
from docstore.codec import decode_row, merge_overflow, split_document
from docstore.db import Engine
from docstore.errors import invalid_query, write_conflict
from docstore.predicates import compile_predicate, translate_ordering
from docstore.runtime_profile import StoreSettings
from docstore.schema_registry import (
    CREATED_AT_COLUMN,
    DEFAULT_REGISTRY,
    ID_COLUMN,
    OVERFLOW_COLUMN,
    UPDATED_AT_COLUMN,
    SchemaRegistry,
)
from docstore.schemas import ListOptions

logger = logging.getLogger(__name__)

SET_WRAPPER = "$set"


class DocumentStore:
    """Document-style access to relational tables.

    Every call runs independent statements against the engine; nothing here
    is wrapped in a transaction. A plain read-merge-write update can lose a
    concurrent writer's overflow keys unless ``check_conflicts`` is on.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        settings: StoreSettings | None = None,
        registry: SchemaRegistry = DEFAULT_REGISTRY,
        tenant_id: str | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings or StoreSettings()
        self._registry = registry
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> str | None:
        return self._tenant_id

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _utcnow_iso() -> str:
        return datetime.now(UTC).isoformat()

    def _table(self, collection: str) -> str:
        return self._registry.resolve_table(collection, strict=self._settings.strict_collections)

    def _where(self, predicate: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
        return compile_predicate(predicate, registry=self._registry, strict=self._settings.strict_queries)

    async def _fetch_all(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        logger.debug("docstore_query sql=%s params=%d", sql, len(params))
        return await self._engine.fetch_all(sql, params, tenant_id=self._tenant_id)

    async def _fetch_one(self, sql: str, params: Sequence[Any]) -> dict[str, Any] | None:
        logger.debug("docstore_query sql=%s params=%d", sql, len(params))
        return await self._engine.fetch_one(sql, params, tenant_id=self._tenant_id)

    async def _execute(self, sql: str, params: Sequence[Any]) -> int:
        logger.debug("docstore_execute sql=%s params=%d", sql, len(params))
        return await self._engine.execute(sql, params, tenant_id=self._tenant_id)

    def _decode(self, row: Mapping[str, Any] | None) -> dict[str, Any] | None:
        return decode_row(row, registry=self._registry)

    # reads

    async def get(
        self,
        collection: str,
        predicate: Mapping[str, Any] | None = None,
        *,
        order: Mapping[str, int] | Sequence[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        table = self._table(collection)
        where, params = self._where(predicate)
        sql = f"SELECT * FROM {table} WHERE {where}"
        if order:
            sql += " " + translate_ordering(order, registry=self._registry)
        row = await self._fetch_one(sql + " LIMIT 1", params)
        return self._decode(row)

    async def list(
        self,
        collection: str,
        predicate: Mapping[str, Any] | None = None,
        *,
        order: Mapping[str, int] | Sequence[tuple[str, int]] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        try:
            options = ListOptions(order=order, limit=limit, offset=offset)
        except ValidationError as exc:
            raise invalid_query("QUERY_INVALID_OPTIONS", f"invalid list options: {exc.errors()[0]['msg']}") from exc
        page_size = min(options.limit or self._settings.default_limit, self._settings.max_limit)

        table = self._table(collection)
        where, params = self._where(predicate)
        ordering = translate_ordering(options.order, registry=self._registry)
        sql = f"SELECT * FROM {table} WHERE {where} {ordering} LIMIT ? OFFSET ?"
        rows = await self._fetch_all(sql, [*params, page_size, options.offset])
        return [self._decode(row) for row in rows]

    async def count(self, collection: str, predicate: Mapping[str, Any] | None = None) -> int:
        table = self._table(collection)
        where, params = self._where(predicate)
        row = await self._fetch_one(f"SELECT COUNT(*) AS count FROM {table} WHERE {where}", params)
        return int(row["count"]) if row else 0

    async def aggregate(self, collection: str, pipeline: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        table = self._table(collection)
        query = build_aggregation(
            table,
            pipeline,
            registry=self._registry,
            strict=self._settings.strict_queries,
        )
        rows = await self._fetch_all(query.sql, query.params)
        if query.decode_rows:
            return [self._decode(row) for row in rows]
        return rows

    # writes

    def _stamp(self, table: str, columns: dict[str, Any], *, created: bool) -> None:
        now = self._utcnow_iso()
        if created and self._registry.has_column(table, CREATED_AT_COLUMN):
            columns[CREATED_AT_COLUMN] = now
        if self._registry.has_column(table, UPDATED_AT_COLUMN):
            columns[UPDATED_AT_COLUMN] = now

    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        table = self._table(collection)
        row = split_document(document, table, registry=self._registry).as_row()
        doc_id = self._new_id()
        row[ID_COLUMN] = doc_id
        self._stamp(table, row, created=True)

        columns = list(row)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})"
        await self._execute(sql, [row[c] for c in columns])
        return doc_id

    async def insert_many(self, collection: str, documents: Iterable[Mapping[str, Any]]) -> list[str]:
        ids: list[str] = []
        for document in documents:
            ids.append(await self.insert(collection, document))
        return ids

    @staticmethod
    def _unwrap(changes: Mapping[str, Any]) -> Mapping[str, Any]:
        if SET_WRAPPER in changes and isinstance(changes[SET_WRAPPER], Mapping):
            merged = {k: v for k, v in changes.items() if k != SET_WRAPPER}
            merged.update(changes[SET_WRAPPER])
            return merged
        return changes

    async def _write_row(
        self,
        table: str,
        columns: Mapping[str, Any],
        *,
        doc_id: Any,
        expected_overflow: Any = None,
        check: bool = False,
    ) -> int:
        assignments = ", ".join(f"{c} = ?" for c in columns)
        sql = f"UPDATE {table} SET {assignments} WHERE {ID_COLUMN} = ?"
        params = [*columns.values(), doc_id]
        if check:
            sql += " AND " + self._engine.null_safe_equals(OVERFLOW_COLUMN)
            params.append(expected_overflow)
        return await self._execute(sql, params)

    async def update(
        self,
        collection: str,
        predicate: Mapping[str, Any] | None,
        changes: Mapping[str, Any],
        *,
        check_conflicts: bool | None = None,
    ) -> int:
        """Apply ``changes`` to the first matching document; returns the modified count.

        Overflow-bound fields are shallow-merged onto the stored overflow
        object, so the stored row is read before it is written.
        """
        table = self._table(collection)
        parts = split_document(self._unwrap(changes), table, registry=self._registry)
        where, params = self._where(predicate)
        columns = dict(parts.columns)
        needs_overflow = bool(parts.extensions)
        check = needs_overflow and (
            self._settings.check_conflicts if check_conflicts is None else check_conflicts
        )

        select = f"{ID_COLUMN}, {OVERFLOW_COLUMN}" if needs_overflow else ID_COLUMN
        existing = await self._fetch_one(f"SELECT {select} FROM {table} WHERE {where} LIMIT 1", params)
        if existing is None:
            return 0

        stored = existing.get(OVERFLOW_COLUMN)
        if needs_overflow:
            columns[OVERFLOW_COLUMN] = merge_overflow(stored, parts.extensions)
        self._stamp(table, columns, created=False)
        if not columns:
            return 0

        modified = await self._write_row(
            table,
            columns,
            doc_id=existing[ID_COLUMN],
            expected_overflow=stored,
            check=check,
        )
        if check and modified == 0:
            logger.warning("docstore_write_conflict table=%s id=%s", table, existing[ID_COLUMN])
            raise write_conflict(f"{table} {existing[ID_COLUMN]} changed since it was read")
        return modified

    async def update_many(
        self,
        collection: str,
        predicate: Mapping[str, Any] | None,
        changes: Mapping[str, Any],
    ) -> int:
        table = self._table(collection)
        parts = split_document(self._unwrap(changes), table, registry=self._registry)
        where, params = self._where(predicate)
        columns = dict(parts.columns)
        self._stamp(table, columns, created=False)

        if not parts.extensions:
            if not columns:
                return 0
            assignments = ", ".join(f"{c} = ?" for c in columns)
            return await self._execute(f"UPDATE {table} SET {assignments} WHERE {where}", [*columns.values(), *params])

        rows = await self._fetch_all(f"SELECT {ID_COLUMN}, {OVERFLOW_COLUMN} FROM {table} WHERE {where}", params)
        modified = 0
        for row in rows:
            row_columns = dict(columns)
            row_columns[OVERFLOW_COLUMN] = merge_overflow(row.get(OVERFLOW_COLUMN), parts.extensions)
            modified += await self._write_row(table, row_columns, doc_id=row[ID_COLUMN])
        return modified

    async def remove(self, collection: str, predicate: Mapping[str, Any] | None) -> int:
        table = self._table(collection)
        where, params = self._where(predicate)
        existing = await self._fetch_one(f"SELECT {ID_COLUMN} FROM {table} WHERE {where} LIMIT 1", params)
        if existing is None:
            return 0
        return await self._execute(f"DELETE FROM {table} WHERE {ID_COLUMN} = ?", [existing[ID_COLUMN]])

    async def remove_many(self, collection: str, predicate: Mapping[str, Any] | None) -> int:
        table = self._table(collection)
        where, params = self._where(predicate)
        return await self._execute(f"DELETE FROM {table} WHERE {where}", params)

    # passthrough

    async def raw_query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return await self._fetch_all(sql, list(params))

    async def raw_execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        return await self._execute(sql, list(params))
