"""Emulate a small Mongo-style aggregation pipeline as one SQL statement.

Supported shape::

    [{"$match": {...}}, ...]          zero or more, before any grouping
    {"$group": {...}} | {"$count": a} at most one of these
    {"$sort": {...}}, {"$limit": n}   optional, applied to the output
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from docstore.errors import invalid_query
from docstore.predicates import compile_predicate, translate_ordering
from docstore.schema_registry import DEFAULT_REGISTRY, SchemaRegistry, validate_identifier

logger = logging.getLogger(__name__)

GROUP_KEY = "_id"

_REDUCERS: dict[str, str] = {
    "$sum": "SUM",
    "$avg": "AVG",
    "$min": "MIN",
    "$max": "MAX",
}


@dataclass(frozen=True)
class AggregationQuery:
    sql: str
    params: list[Any]
    decode_rows: bool


def _field_ref(expr: Any) -> str | None:
    if isinstance(expr, str) and expr.startswith("$") and len(expr) > 1:
        return expr[1:]
    return None


def _reject(code: str, message: str, *, strict: bool) -> None:
    if strict:
        raise invalid_query(code, message)
    logger.warning("docstore_pipeline_item_dropped code=%s detail=%s", code, message)


class _GroupTranslator:
    def __init__(self, registry: SchemaRegistry, *, strict: bool) -> None:
        self._registry = registry
        self._strict = strict
        self.select: list[str] = []
        self.params: list[Any] = []
        self.group_by: list[str] = []
        self.aliases: set[str] = set()

    def _column(self, field: str) -> str:
        return validate_identifier(self._registry.column_for(field))

    def key(self, key: Any) -> None:
        field = _field_ref(key)
        if field is not None:
            column = self._column(field)
            self.select.append(f"{column} AS {GROUP_KEY}")
            self.group_by.append(column)
            self.aliases.add(GROUP_KEY)
        elif isinstance(key, Mapping):
            for alias, expr in key.items():
                ref = _field_ref(expr)
                if ref is None:
                    _reject(
                        "PIPELINE_INVALID_EXPRESSION",
                        f"group key {alias!r} must reference a field",
                        strict=self._strict,
                    )
                    continue
                column = self._column(ref)
                self.select.append(f"{column} AS {validate_identifier(alias)}")
                self.group_by.append(column)
                self.aliases.add(alias)
        elif key is None or not isinstance(key, list | tuple):
            self.select.append(f"? AS {GROUP_KEY}")
            self.params.append(key)
            self.aliases.add(GROUP_KEY)
        else:
            _reject("PIPELINE_INVALID_EXPRESSION", "group key must be a literal, field or mapping", strict=self._strict)

    def reducer(self, alias: str, expr: Any) -> None:
        alias = validate_identifier(alias)
        if not isinstance(expr, Mapping) or len(expr) != 1:
            _reject("PIPELINE_INVALID_EXPRESSION", f"reducer {alias!r} must have one accumulator", strict=self._strict)
            return
        ((accumulator, operand),) = expr.items()
        ref = _field_ref(operand)
        if accumulator == "$count":
            self.select.append(f"COUNT(*) AS {alias}")
        elif accumulator == "$sum" and ref is None and operand == 1:
            self.select.append(f"COUNT(*) AS {alias}")
        elif accumulator == "$sum" and ref is None and isinstance(operand, int | float) and not isinstance(operand, bool):
            self.select.append(f"COUNT(*) * ? AS {alias}")
            self.params.append(operand)
        elif accumulator in _REDUCERS and ref is not None:
            self.select.append(f"{_REDUCERS[accumulator]}({self._column(ref)}) AS {alias}")
        else:
            _reject(
                "PIPELINE_INVALID_EXPRESSION",
                f"unsupported accumulator {accumulator!r} for {alias!r}",
                strict=self._strict,
            )
            return
        self.aliases.add(alias)


def build_aggregation(
    table: str,
    pipeline: Sequence[Mapping[str, Any]],
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
    strict: bool = True,
) -> AggregationQuery:
    table = validate_identifier(table)
    where_parts: list[str] = []
    where_params: list[Any] = []
    group: _GroupTranslator | None = None
    count_alias: str | None = None
    order: Any = None
    limit: int | None = None

    for stage in pipeline:
        if not isinstance(stage, Mapping) or len(stage) != 1:
            raise invalid_query("PIPELINE_UNSUPPORTED_STAGE", "each pipeline stage must have exactly one operator")
        ((name, body),) = stage.items()
        if name == "$match":
            if group is not None or count_alias is not None:
                raise invalid_query("PIPELINE_STAGE_ORDER", "$match after $group/$count is not supported")
            fragment, params = compile_predicate(body, registry=registry, strict=strict)
            where_parts.append(fragment)
            where_params.extend(params)
        elif name == "$group":
            if group is not None:
                raise invalid_query("PIPELINE_MULTIPLE_GROUPS", "only one $group stage is supported")
            if count_alias is not None:
                raise invalid_query("PIPELINE_GROUP_WITH_COUNT", "$group and $count cannot be combined")
            if not isinstance(body, Mapping):
                raise invalid_query("PIPELINE_INVALID_EXPRESSION", "$group body must be a mapping")
            group = _GroupTranslator(registry, strict=strict)
            group.key(body.get(GROUP_KEY))
            for alias, expr in body.items():
                if alias != GROUP_KEY:
                    group.reducer(alias, expr)
        elif name == "$count":
            if group is not None:
                raise invalid_query("PIPELINE_GROUP_WITH_COUNT", "$group and $count cannot be combined")
            count_alias = validate_identifier(body)
        elif name == "$sort":
            order = body
        elif name == "$limit":
            if isinstance(body, bool) or not isinstance(body, int) or body < 1:
                raise invalid_query("PIPELINE_INVALID_EXPRESSION", "$limit must be a positive integer")
            limit = body
        else:
            _reject("PIPELINE_UNSUPPORTED_STAGE", f"unsupported stage {name!r}", strict=strict)

    select_params: list[Any] = []
    aliases: frozenset[str] = frozenset()
    if count_alias is not None:
        select = f"COUNT(*) AS {count_alias}"
        aliases = frozenset({count_alias})
    elif group is not None and group.select:
        select = ", ".join(group.select)
        select_params = group.params
        aliases = frozenset(group.aliases)
    else:
        select = "*"

    sql = f"SELECT {select} FROM {table}"
    if where_parts:
        sql += " WHERE " + " AND ".join(where_parts)
    if group is not None and group.group_by:
        sql += " GROUP BY " + ", ".join(group.group_by)
    if order:
        sql += " " + translate_ordering(order, registry=registry, aliases=aliases)
    tail_params: list[Any] = []
    if limit is not None:
        sql += " LIMIT ?"
        tail_params.append(limit)

    logger.debug("docstore_aggregate table=%s sql=%s", table, sql)
    return AggregationQuery(
        sql=sql,
        params=[*select_params, *where_params, *tail_params],
        decode_rows=group is None and count_alias is None,
    )
