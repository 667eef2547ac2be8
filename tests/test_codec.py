from __future__ import annotations

import json
from datetime import datetime

import pytest

from docstore.codec import decode_row, dump_overflow, encode_document, load_overflow, merge_overflow, split_document


def test_known_scalars_go_to_columns_and_the_rest_to_overflow():
    parts = split_document(
        {"name": "Summer", "companyId": "c1", "promoMechanic": "bogo", "mechanics": {"type": "discount"}},
        "promotions",
    )
    assert parts.columns == {"name": "Summer", "company_id": "c1"}
    assert parts.extensions == {"promoMechanic": "bogo", "mechanics": {"type": "discount"}}


def test_no_field_is_written_to_both_places():
    document = {
        "name": "Q3",
        "status": "draft",
        "startDate": "2024-07-01",
        "notes": "free text",
        "tags": ["a", "b"],
        "rejectionReason": None,
    }
    parts = split_document(document, "promotions")
    assert set(parts.columns).isdisjoint({"notes", "tags"})
    assert set(parts.extensions).isdisjoint({"name", "status", "startDate", "rejectionReason"})
    decoded_names = {name for name in parts.extensions} | {
        {"start_date": "startDate", "rejection_reason": "rejectionReason"}.get(c, c) for c in parts.columns
    }
    assert decoded_names == set(document)


def test_structured_values_never_land_in_typed_columns():
    parts = split_document({"description": {"en": "x"}, "status": ["a"]}, "promotions")
    assert parts.columns == {}
    assert parts.extensions == {"description": {"en": "x"}, "status": ["a"]}


def test_allowlisted_columns_win_over_extension_only_names():
    parts = split_document(
        {"email": "a@b.c", "firstName": "Ann", "phone": "555", "notes": "vip"},
        "users",
    )
    assert parts.columns == {"email": "a@b.c", "first_name": "Ann"}
    assert parts.extensions == {"phone": "555", "notes": "vip"}

    parts = split_document({"description": "Q3 push", "tags": "seasonal"}, "calendar_events")
    assert parts.columns == {"description": "Q3 push", "tags": "seasonal"}
    assert parts.extensions == {}


def test_structured_values_of_allowlisted_columns_stay_extensions():
    parts = split_document({"address": {"city": "Cape Town"}, "settings": {"tz": "UTC"}}, "vendors")
    assert parts.columns == {}
    assert parts.extensions == {"address": {"city": "Cape Town"}, "settings": {"tz": "UTC"}}


def test_snake_case_aliases_of_mapped_fields_are_kept_as_extensions():
    parts = split_document({"company_id": "c1", "companyId": "c2"}, "promotions")
    assert parts.columns == {"company_id": "c2"}
    assert parts.extensions == {"company_id": "c1"}


def test_identity_and_timestamp_fields_are_skipped():
    parts = split_document(
        {"id": "x", "_id": "y", "createdAt": "t", "updated_at": "t", "name": "n"},
        "promotions",
    )
    assert parts.columns == {"name": "n"}
    assert parts.extensions == {}


def test_unknown_tables_accept_scalars_as_same_named_columns():
    parts = split_document({"title": "t", "meta": {"k": 1}, "email": "a@b.c"}, "roles")
    assert parts.columns == {"title": "t"}
    assert parts.extensions == {"meta": {"k": 1}, "email": "a@b.c"}


def test_encode_serializes_extensions_and_column_values():
    row = encode_document(
        {"isActive": True, "lastLogin": datetime(2024, 1, 2, 3, 4, 5), "theme": "dark"},
        "users",
    )
    assert row["is_active"] == 1
    assert row["last_login"] == "2024-01-02T03:04:05"
    assert json.loads(row["data"]) == {"theme": "dark"}


def test_encode_without_extensions_omits_overflow_column():
    assert encode_document({"name": "n"}, "promotions") == {"name": "n"}


def test_round_trip_restores_every_field():
    document = {
        "name": "Summer",
        "status": "active",
        "startDate": "2024-06-01",
        "mechanics": {"type": "discount", "value": 10},
        "customFlag": "yes",
    }
    row = encode_document(document, "promotions")
    row["id"] = "p1"
    decoded = decode_row(row)
    assert decoded["id"] == "p1"
    assert decoded["_id"] == "p1"
    for name, value in document.items():
        assert decoded[name] == value


def test_round_trip_covers_flags_arrays_and_nested_objects():
    document = {
        "email": "kam@example.com",
        "isActive": False,
        "loginAttempts": 0,
        "permissions": ["promotions:read"],
        "preferences": {"theme": "dark", "alerts": {"email": True}},
        "regions": ["north", "south"],
    }
    row = encode_document(document, "users")
    row["id"] = "u1"
    decoded = decode_row(row)
    assert {k: v for k, v in decoded.items() if k not in ("id", "_id")} == document


def test_merge_is_shallow_and_patch_wins():
    merged = merge_overflow('{"a":1,"b":2}', {"b": 3, "c": 4})
    assert json.loads(merged) == {"a": 1, "b": 3, "c": 4}


def test_merge_replaces_nested_objects_wholesale():
    merged = merge_overflow('{"period":{"from":1,"to":2}}', {"period": {"from": 5}})
    assert json.loads(merged) == {"period": {"from": 5}}


def test_merge_onto_empty_or_unreadable_overflow(caplog):
    assert json.loads(merge_overflow(None, {"a": 1})) == {"a": 1}
    assert json.loads(merge_overflow("not json", {"a": 1})) == {"a": 1}
    assert "docstore_overflow_unreadable" in caplog.text


def test_decode_converts_flags_and_keeps_null_flags_null():
    decoded = decode_row({"id": "n1", "read": 0, "is_active": None, "user_id": "u1"})
    assert decoded == {"id": "n1", "_id": "n1", "read": False, "isActive": None, "userId": "u1"}


def test_decode_parses_json_columns():
    decoded = decode_row({"id": "u1", "permissions": '["read","write"]'})
    assert decoded["permissions"] == ["read", "write"]

    decoded = decode_row({"id": "u1", "permissions": "{broken"})
    assert decoded["permissions"] == []


def test_decode_keeps_unparseable_overflow_raw(caplog):
    decoded = decode_row({"id": "x", "name": "n", "data": "{oops"})
    assert decoded["name"] == "n"
    assert decoded["data"] == "{oops"
    assert "docstore_overflow_unreadable" in caplog.text


def test_decode_none_row():
    assert decode_row(None) is None


def test_overflow_helpers():
    assert load_overflow("") == {}
    assert load_overflow({"a": 1}) == {"a": 1}
    with pytest.raises(ValueError):
        load_overflow("[1, 2]")
    assert json.loads(dump_overflow({"when": datetime(2024, 1, 1), "ids": ("a", "b")})) == {
        "when": "2024-01-01T00:00:00",
        "ids": ["a", "b"],
    }
