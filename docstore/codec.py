from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from docstore.schema_registry import (
    CREATED_AT_COLUMN,
    DEFAULT_REGISTRY,
    ID_COLUMN,
    ID_FIELD,
    LEGACY_ID_FIELD,
    OVERFLOW_COLUMN,
    UPDATED_AT_COLUMN,
    SchemaRegistry,
)

logger = logging.getLogger(__name__)

RESERVED_FIELDS: frozenset[str] = frozenset(
    {ID_FIELD, LEGACY_ID_FIELD, "createdAt", "updatedAt", CREATED_AT_COLUMN, UPDATED_AT_COLUMN}
)


@dataclass
class RowParts:
    """A document split into typed column values and the extension map."""

    columns: dict[str, Any] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_row(self) -> dict[str, Any]:
        row = dict(self.columns)
        if self.extensions:
            row[OVERFLOW_COLUMN] = dump_overflow(self.extensions)
        return row


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset | tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_overflow(extensions: Mapping[str, Any]) -> str:
    return json.dumps(dict(extensions), ensure_ascii=False, separators=(",", ":"), default=_json_default)


def load_overflow(raw: Any) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("overflow column must hold a JSON object")
    return parsed


def _is_structured(value: Any) -> bool:
    return isinstance(value, Mapping | list | tuple | set | frozenset)


def _column_value(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


def split_document(
    document: Mapping[str, Any],
    table: str,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
) -> RowParts:
    """Route each field to its typed column or to the overflow extension map.

    A field whose column is in the table's allowlist is stored there when its
    value is a scalar. The always-overflow names only apply to fields without
    such a column. Identity and timestamp fields are skipped; the store
    assigns them.
    """
    allowed = registry.allowed_columns(table)
    parts = RowParts()
    for name, value in document.items():
        if name in RESERVED_FIELDS:
            continue
        column = registry.column_for(name)
        mapped = column != OVERFLOW_COLUMN and registry.field_for(column) == name
        if allowed is not None:
            typed = mapped and column in allowed
        else:
            typed = mapped and not registry.is_always_overflow(name)
        if typed and not _is_structured(value):
            parts.columns[column] = _column_value(value)
        else:
            parts.extensions[name] = value
    return parts


def encode_document(
    document: Mapping[str, Any],
    table: str,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
) -> dict[str, Any]:
    return split_document(document, table, registry=registry).as_row()


def merge_overflow(stored: Any, patch: Mapping[str, Any]) -> str:
    """Shallow-merge ``patch`` onto the stored overflow object."""
    try:
        merged = load_overflow(stored)
    except ValueError:
        logger.warning("docstore_overflow_unreadable action=replace")
        merged = {}
    merged.update(patch)
    return dump_overflow(merged)


def decode_row(
    row: Mapping[str, Any] | None,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
) -> dict[str, Any] | None:
    if row is None:
        return None
    document: dict[str, Any] = {}
    overflow: Any = None
    for column, value in row.items():
        if column == OVERFLOW_COLUMN:
            overflow = value
        elif column == ID_COLUMN:
            document[ID_FIELD] = value
            document[LEGACY_ID_FIELD] = value
        elif registry.is_boolean_column(column):
            document[registry.field_for(column)] = None if value is None else bool(value)
        elif registry.is_json_column(column) and isinstance(value, str):
            try:
                document[registry.field_for(column)] = json.loads(value)
            except ValueError:
                logger.warning("docstore_json_column_unreadable column=%s", column)
                document[registry.field_for(column)] = []
        else:
            document[registry.field_for(column)] = value

    if overflow is not None:
        try:
            document.update(load_overflow(overflow))
        except ValueError:
            logger.warning("docstore_overflow_unreadable action=keep_raw")
            document[OVERFLOW_COLUMN] = overflow
    return document
