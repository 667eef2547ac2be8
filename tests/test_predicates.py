from __future__ import annotations

import random
import re

import pytest

from docstore.errors import StoreError
from docstore.predicates import compile_predicate, translate_ordering, translate_predicate


def test_simple_filter_joins_leaves_with_and_in_key_order():
    where, params = compile_predicate({"status": "active", "amount": {"$gt": 100}})
    assert where == "status = ? AND amount > ?"
    assert params == ["active", 100]


def test_or_group_is_one_parenthesized_fragment():
    where, params = compile_predicate({"$or": [{"a": 1}, {"b": 2}]})
    assert where == "(a = ? OR b = ?)"
    assert params == [1, 2]


def test_or_group_is_anded_after_plain_leaves():
    where, params = compile_predicate({"$or": [{"status": "draft"}, {"status": "active"}], "companyId": "c1"})
    assert where == "company_id = ? AND (status = ? OR status = ?)"
    assert params == ["c1", "draft", "active"]


def test_empty_predicate_is_tautology_without_params():
    for predicate in ({}, None):
        where, params = compile_predicate(predicate)
        assert where == "1=1"
        assert params == []


def test_translate_predicate_appends_to_callers_param_list():
    params = ["existing"]
    where = translate_predicate({"status": "open"}, params)
    assert where == "status = ?"
    assert params == ["existing", "open"]


def test_null_value_emits_is_null_without_placeholder():
    where, params = compile_predicate({"approvedBy": None, "status": "open"})
    assert where == "approved_by IS NULL AND status = ?"
    assert params == ["open"]


def test_identity_keys_bypass_registry_and_unwrap_object_ids():
    where, params = compile_predicate({"_id": {"$oid": "abc"}, "companyId": "c1"})
    assert where == "id = ? AND company_id = ?"
    assert params == ["abc", "c1"]

    where, params = compile_predicate({"id": "xyz"})
    assert where == "id = ?"
    assert params == ["xyz"]


def test_set_membership_binds_every_member():
    where, params = compile_predicate({"status": {"$in": ["completed", "active"]}})
    assert where == "status IN (?, ?)"
    assert params == ["completed", "active"]


def test_empty_set_membership_matches_nothing():
    where, params = compile_predicate({"status": {"$in": []}})
    assert where == "1=0"
    assert params == []


def test_substring_match_wraps_operand_in_wildcards():
    where, params = compile_predicate({"name": {"$regex": "summer", "$options": "i"}})
    assert where == "name LIKE ?"
    assert params == ["%summer%"]

    where, params = compile_predicate({"name": {"$contains": "promo"}})
    assert params == ["%promo%"]


def test_every_comparison_operator():
    predicate = {"amount": {"$gte": 10, "$lte": 50}, "year": {"$lt": 2025}, "budget": {"$gt": 0}, "status": {"$ne": "x"}}
    where, params = compile_predicate(predicate)
    assert where == "amount >= ? AND amount <= ? AND year < ? AND budget > ? AND status != ?"
    assert params == [10, 50, 2025, 0, "x"]


def test_not_equal_null_emits_is_not_null():
    where, params = compile_predicate({"rejectedBy": {"$ne": None}})
    assert where == "rejected_by IS NOT NULL"
    assert params == []


def test_booleans_bind_as_integers():
    _, params = compile_predicate({"isActive": True, "read": {"$ne": False}})
    assert params == [1, 0]


def test_and_combinator_groups_sub_predicates():
    where, params = compile_predicate({"$and": [{"a": 1}, {"b": {"$lt": 3}}]})
    assert where == "(a = ? AND b < ?)"
    assert params == [1, 3]


def test_unsupported_operator_raises_in_strict_mode():
    with pytest.raises(StoreError) as exc_info:
        compile_predicate({"amount": {"$where": "this.amount > 1"}})
    assert exc_info.value.code == "QUERY_UNSUPPORTED_OPERATOR"
    assert exc_info.value.http_status == 400


def test_unsupported_operator_is_dropped_in_lenient_mode(caplog):
    where, params = compile_predicate(
        {"status": "open", "amount": {"$nin": [1, 2]}, "$text": {"$search": "x"}},
        strict=False,
    )
    # the dropped clause widens the filter rather than matching nothing
    assert where == "status = ?"
    assert params == ["open"]
    assert "docstore_operator_dropped" in caplog.text


def test_lenient_mode_keeps_recognized_operators_next_to_dropped_ones():
    where, params = compile_predicate({"amount": {"$gt": 5, "$mod": [2, 0]}}, strict=False)
    assert where == "amount > ?"
    assert params == [5]


def test_only_dropped_operators_degrade_to_tautology():
    where, params = compile_predicate({"amount": {"$exists": True}}, strict=False)
    assert where == "1=1"
    assert params == []


def test_list_values_are_not_treated_as_scalars():
    with pytest.raises(StoreError):
        compile_predicate({"tags": ["a", "b"]})
    assert compile_predicate({"tags": ["a", "b"]}, strict=False) == ("1=1", [])


def test_field_names_cannot_inject_sql():
    with pytest.raises(StoreError) as exc_info:
        compile_predicate({"status = status OR 1": 1})
    assert exc_info.value.code == "QUERY_INVALID_IDENTIFIER"


_PLACEHOLDER_RE = re.compile(r"(f\d+) (?:=|!=|>=|<=|>|<) \?|(f\d+) IN \(([?, ]+)\)")


def _random_predicate(rng: random.Random, depth: int, counter: list[int]) -> dict:
    predicate: dict = {}
    for _ in range(rng.randint(0, 3)):
        counter[0] += 1
        n = counter[0]
        kind = rng.choice(["eq", "gt", "range", "in", "null"])
        if kind == "eq":
            predicate[f"f{n}"] = n
        elif kind == "gt":
            predicate[f"f{n}"] = {"$gt": n}
        elif kind == "range":
            predicate[f"f{n}"] = {"$gte": n, "$ne": n}
        elif kind == "in":
            predicate[f"f{n}"] = {"$in": [n] * rng.randint(1, 3)}
        else:
            predicate[f"f{n}"] = None
    if depth > 0:
        for key in ("$or", "$and"):
            if rng.random() < 0.6:
                predicate[key] = [_random_predicate(rng, depth - 1, counter) for _ in range(rng.randint(1, 3))]
    return predicate


def _expected_params(where: str) -> list[int]:
    expected: list[int] = []
    for match in _PLACEHOLDER_RE.finditer(where):
        if match.group(1):
            expected.append(int(match.group(1)[1:]))
        else:
            expected.extend([int(match.group(2)[1:])] * match.group(3).count("?"))
    return expected


def test_params_stay_aligned_with_placeholders_under_nesting():
    rng = random.Random(20240611)
    for _ in range(300):
        predicate = _random_predicate(rng, depth=4, counter=[0])
        where, params = compile_predicate(predicate)
        assert where.count("?") == len(params)
        assert params == _expected_params(where)


def test_ordering_defaults_to_newest_first():
    assert translate_ordering(None) == "ORDER BY created_at DESC"
    assert translate_ordering({}) == "ORDER BY created_at DESC"


def test_ordering_maps_fields_and_signed_directions():
    assert translate_ordering({"startDate": -1, "name": 1}) == "ORDER BY start_date DESC, name ASC"
    assert translate_ordering([("_id", 1), ("amount", -1)]) == "ORDER BY id ASC, amount DESC"


def test_ordering_rejects_non_numeric_directions():
    with pytest.raises(StoreError) as exc_info:
        translate_ordering({"name": "asc"})
    assert exc_info.value.code == "QUERY_INVALID_OPTIONS"
