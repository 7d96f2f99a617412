from datetime import datetime

import pytest
from pymongo.errors import OperationFailure

from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError
from app.db.paths import collection, document
from app.db.rules import SERVICE
from app.db.store import SERVER_TIMESTAMP, resolve_sentinels, snapshot_from_raw


def test_resolve_sentinels_replaces_nested_timestamps():
    now = datetime(2024, 1, 1)
    resolved = resolve_sentinels({"created_at": SERVER_TIMESTAMP, "meta": {"seen": SERVER_TIMESTAMP, "id": 3}}, now)
    assert resolved == {"created_at": now, "meta": {"seen": now, "id": 3}}


@pytest.mark.parametrize("field", ["id", "_collection"])
def test_reserved_top_level_fields_rejected(field):
    with pytest.raises(ValueError):
        resolve_sentinels({field: "x"})


def test_snapshot_hides_storage_fields():
    raw = {"_id": "users/alice/qarzs/q1", "_collection": "users/alice/qarzs", "amount": 5}
    assert snapshot_from_raw(raw) == {"id": "q1", "amount": 5}
    assert snapshot_from_raw(None) is None


async def test_add_then_get(store, database, alice):
    ref = await store.add(collection("users/alice/qarzs"), {"amount": 10, "created_at": SERVER_TIMESTAMP}, alice)

    raw = database["qarzs"].docs[ref.path]
    assert raw["_collection"] == "users/alice/qarzs"
    assert isinstance(raw["created_at"], datetime)

    snapshot = await store.get(ref, alice)
    assert snapshot["id"] == ref.id
    assert snapshot["amount"] == 10
    assert "_collection" not in snapshot


async def test_list_is_scoped_to_collection_path(store, alice, bob):
    await store.add(collection("users/alice/qarzs"), {"amount": 1}, alice)
    await store.add(collection("users/bob/qarzs"), {"amount": 2}, bob)

    alice_qarzs = await store.list(collection("users/alice/qarzs"), alice)
    assert [q["amount"] for q in alice_qarzs] == [1]


async def test_list_orders_and_limits(store, alice):
    for amount in (3, 1, 2):
        await store.add(collection("users/alice/qarzs"), {"amount": amount}, alice)

    query = collection("users/alice/qarzs").order_by("amount", "desc").limit(2)
    assert [q["amount"] for q in await store.list(query, alice)] == [3, 2]


async def test_get_missing_document_is_none(store, alice):
    assert await store.get(document("users/alice/qarzs/missing"), alice) is None


async def test_update_missing_document_is_not_found(store, alice):
    with pytest.raises(ResourceNotFoundError):
        await store.update(document("users/alice/qarzs/missing"), {"status": "Paid"}, alice)


async def test_set_merge_keeps_other_fields(store, alice):
    ref = document("users/alice")
    await store.set(ref, {"full_name": "Alice", "phone": "+923001234567"}, alice)
    await store.set(ref, {"phone": "+923009999999"}, alice, merge=True)

    profile = await store.get(ref, alice)
    assert profile == {"id": "alice", "full_name": "Alice", "phone": "+923009999999"}


async def test_set_without_merge_replaces(store, alice):
    ref = document("users/alice")
    await store.set(ref, {"full_name": "Alice", "phone": "1"}, alice)
    await store.set(ref, {"full_name": "Alice A."}, alice)
    assert await store.get(ref, alice) == {"id": "alice", "full_name": "Alice A."}


async def test_delete(store, alice):
    ref = await store.add(collection("users/alice/witnesses"), {"name": "Omar"}, alice)
    await store.delete(ref, alice)
    assert await store.get(ref, alice) is None


async def test_rules_checked_before_database(store, database, alice):
    with pytest.raises(PermissionDeniedError) as exc_info:
        await store.add(collection("users/bob/qarzs"), {"amount": 1}, alice)

    assert exc_info.value.context["path"] == "users/bob/qarzs"
    assert exc_info.value.context["operation"] == "create"
    assert exc_info.value.context["request_resource_data"] == {"amount": 1}
    assert database["qarzs"].docs == {}


async def test_database_authorization_failure_becomes_permission_error(store, database, alice):
    database["qarzs"].error = OperationFailure("not authorized", code=13)

    with pytest.raises(PermissionDeniedError) as exc_info:
        await store.list(collection("users/alice/qarzs"), alice)
    assert exc_info.value.context == {"path": "users/alice/qarzs", "operation": "list"}


async def test_other_database_failures_propagate(store, database, alice):
    database["qarzs"].error = OperationFailure("boom", code=2)

    with pytest.raises(OperationFailure):
        await store.list(collection("users/alice/qarzs"), alice)


async def test_count_group_spans_users(store, admin):
    await store.add(collection("users/alice/qarzs"), {"amount": 1}, SERVICE)
    await store.add(collection("users/bob/qarzs"), {"amount": 2}, SERVICE)
    assert await store.count_group("qarzs", admin) == 2
