"""Translate Mongo-style filters and sort orders into parameterized SQL."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from docstore.errors import invalid_query
from docstore.schema_registry import (
    CREATED_AT_COLUMN,
    DEFAULT_REGISTRY,
    ID_COLUMN,
    ID_FIELD,
    LEGACY_ID_FIELD,
    SchemaRegistry,
    validate_identifier,
)

logger = logging.getLogger(__name__)

OR_KEY = "$or"
AND_KEY = "$and"
REF_OPERATOR = "$oid"

COMPARISON_OPERATORS: dict[str, str] = {
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
    "$ne": "!=",
}
MATCH_OPERATORS = frozenset({"$regex", "$contains"})
MODIFIER_OPERATORS = frozenset({"$options"})

TAUTOLOGY = "1=1"
CONTRADICTION = "1=0"
DEFAULT_ORDERING = f"ORDER BY {CREATED_AT_COLUMN} DESC"


def _bind(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, Mapping | list | tuple | set)


def _unsupported(*, field: str, operator: str, strict: bool) -> None:
    if strict:
        raise invalid_query(
            "QUERY_UNSUPPORTED_OPERATOR",
            f"unsupported operator {operator!r} on field {field!r}",
        )
    logger.warning("docstore_operator_dropped field=%s operator=%s", field, operator)


def _column(field: str, registry: SchemaRegistry) -> str:
    if field in (ID_FIELD, LEGACY_ID_FIELD):
        return ID_COLUMN
    return validate_identifier(registry.column_for(field))


def _operator_fragments(
    field: str,
    column: str,
    operators: Mapping[str, Any],
    params: list[Any],
    *,
    strict: bool,
) -> list[str]:
    fragments: list[str] = []
    for operator, operand in operators.items():
        if operator == REF_OPERATOR:
            params.append(_bind(operand))
            fragments.append(f"{column} = ?")
        elif operator == "$in":
            if not isinstance(operand, list | tuple | set | frozenset):
                _unsupported(field=field, operator=operator, strict=strict)
                continue
            values = list(operand)
            if not values:
                fragments.append(CONTRADICTION)
                continue
            params.extend(_bind(v) for v in values)
            fragments.append(f"{column} IN ({', '.join('?' for _ in values)})")
        elif operator in MATCH_OPERATORS:
            params.append(f"%{operand}%")
            fragments.append(f"{column} LIKE ?")
        elif operator == "$ne" and operand is None:
            fragments.append(f"{column} IS NOT NULL")
        elif operator in COMPARISON_OPERATORS:
            params.append(_bind(operand))
            fragments.append(f"{column} {COMPARISON_OPERATORS[operator]} ?")
        elif operator in MODIFIER_OPERATORS:
            continue
        else:
            _unsupported(field=field, operator=operator, strict=strict)
    return fragments


def _sub_predicates(key: str, value: Any, *, strict: bool) -> list[Mapping[str, Any]]:
    if isinstance(value, list | tuple) and all(isinstance(x, Mapping) for x in value):
        return list(value)
    _unsupported(field=key, operator=key, strict=strict)
    return []


def translate_predicate(
    predicate: Mapping[str, Any] | None,
    params: list[Any],
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
    strict: bool = True,
) -> str:
    """Return a boolean SQL expression for ``predicate``.

    Bound values are appended to ``params`` in the same order as the ``?``
    placeholders appear in the returned text, at any nesting depth.
    """
    conditions: list[str] = []
    predicate = predicate or {}

    for field, value in predicate.items():
        if field in (OR_KEY, AND_KEY):
            continue
        if field.startswith("$"):
            _unsupported(field=field, operator=field, strict=strict)
            continue
        column = _column(field, registry)
        if value is None:
            conditions.append(f"{column} IS NULL")
        elif isinstance(value, Mapping):
            conditions.extend(_operator_fragments(field, column, value, params, strict=strict))
        elif _is_scalar(value):
            params.append(_bind(value))
            conditions.append(f"{column} = ?")
        else:
            _unsupported(field=field, operator=type(value).__name__, strict=strict)

    for key, joiner in ((AND_KEY, " AND "), (OR_KEY, " OR ")):
        if key not in predicate:
            continue
        parts: list[str] = []
        for sub in _sub_predicates(key, predicate[key], strict=strict):
            sub_params: list[Any] = []
            parts.append(translate_predicate(sub, sub_params, registry=registry, strict=strict))
            params.extend(sub_params)
        if parts:
            conditions.append(f"({joiner.join(parts)})")

    return " AND ".join(conditions) if conditions else TAUTOLOGY


def compile_predicate(
    predicate: Mapping[str, Any] | None,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
    strict: bool = True,
) -> tuple[str, list[Any]]:
    params: list[Any] = []
    where = translate_predicate(predicate, params, registry=registry, strict=strict)
    return where, params


def _ordering_pairs(order: Mapping[str, Any] | Sequence[tuple[str, Any]]) -> list[tuple[str, Any]]:
    if isinstance(order, Mapping):
        return list(order.items())
    return [(field, direction) for field, direction in order]


def translate_ordering(
    order: Mapping[str, Any] | Sequence[tuple[str, Any]] | None,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
    aliases: frozenset[str] = frozenset(),
) -> str:
    """Return an ORDER BY clause; no ordering means newest first by creation time."""
    if not order:
        return DEFAULT_ORDERING
    terms: list[str] = []
    for field, direction in _ordering_pairs(order):
        if field in aliases:
            column = validate_identifier(field)
        else:
            column = _column(field, registry)
        if isinstance(direction, bool) or not isinstance(direction, int | float):
            raise invalid_query(
                "QUERY_INVALID_OPTIONS",
                f"sort direction for {field!r} must be a signed number",
            )
        terms.append(f"{column} {'DESC' if direction < 0 else 'ASC'}")
    return "ORDER BY " + ", ".join(terms)
