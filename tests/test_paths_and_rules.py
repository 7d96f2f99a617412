import re

import pytest

from app.core.exceptions import PermissionDeniedError
from app.db.paths import CollectionRef, DocumentRef, collection, document, new_document_id
from app.db.rules import ANONYMOUS, SERVICE


class TestPaths:

    def test_collection_and_document_segments(self):
        qarzs = collection("users/alice/qarzs")
        assert qarzs.id == "qarzs"
        assert qarzs.parent == DocumentRef("users/alice")
        assert qarzs.storage_name == "qarzs"

        doc = qarzs.document("q1")
        assert doc.path == "users/alice/qarzs/q1"
        assert doc.parent == qarzs

    def test_wrong_segment_counts_rejected(self):
        with pytest.raises(ValueError):
            CollectionRef("users/alice")
        with pytest.raises(ValueError):
            DocumentRef("users")
        with pytest.raises(ValueError):
            collection("users//qarzs")

    def test_references_are_values(self):
        assert collection("/users/alice/qarzs/") == collection("users/alice/qarzs")
        assert hash(document("users/alice")) == hash(document("users/alice"))

    def test_auto_ids(self):
        ids = {new_document_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(doc_id) == 20 and doc_id.isalnum() for doc_id in ids)

    def test_query_translates_to_mongo(self):
        query = collection("pending_users").where("email", "==", "a@b.c").order_by("created_at", "desc").limit(1)
        assert query.path == "pending_users"
        assert query.mongo_filter() == {"_collection": "pending_users", "email": {"$eq": "a@b.c"}}
        assert query.mongo_sort() == [("created_at", -1), ("_id", 1)]
        assert query.limit_to == 1

    def test_unsupported_operator(self):
        with pytest.raises(ValueError):
            collection("users").where("email", "~", "x")

    def test_collection_id_pattern_excludes_nested_paths(self):
        pattern = re.compile(collection("users/alice/qarzs").id_pattern())
        assert pattern.match("users/alice/qarzs/q1")
        assert not pattern.match("users/alice/qarzs/q1/extra/x")
        assert not pattern.match("users/alice2/qarzs/q1")


class TestSecurityRules:

    def test_owner_reads_and_writes_own_subtree(self, rules, alice):
        for operation in ("get", "list", "create", "update", "delete"):
            assert rules.allows(alice, "users/alice/qarzs", operation)
        assert rules.allows(alice, "users/alice", "update")

    def test_other_users_subtree_is_denied(self, rules, alice):
        assert not rules.allows(alice, "users/bob/qarzs", "list")
        assert not rules.allows(alice, "users/bob", "get")

    def test_anonymous_and_unknown_collections_denied(self, rules, alice):
        assert not rules.allows(ANONYMOUS, "users/alice/qarzs", "list")
        assert not rules.allows(None, "users/alice", "get")
        assert not rules.allows(alice, "pending_users", "list")

    def test_admin_reads_profiles_but_not_vault_records(self, rules, admin):
        assert rules.allows(admin, "users", "list")
        assert rules.allows(admin, "users/alice", "get")
        assert not rules.allows(admin, "users/alice", "update")
        assert not rules.allows(admin, "users/alice/wasiyats", "list")
        assert rules.allows_group(admin, "qarzs")

    def test_only_admin_lists_users_or_counts_groups(self, rules, alice):
        assert not rules.allows(alice, "users", "list")
        assert not rules.allows_group(alice, "qarzs")

    def test_service_bypasses_rules(self, rules):
        assert rules.allows(SERVICE, "pending_users", "create")
        assert rules.allows_group(SERVICE, "users")

    def test_authorize_raises_with_context(self, rules, alice):
        with pytest.raises(PermissionDeniedError) as exc_info:
            rules.authorize(alice, "users/bob/qarzs", "create", {"amount": 5})
        assert exc_info.value.context == {
            "path": "users/bob/qarzs",
            "operation": "create",
            "request_resource_data": {"amount": 5},
        }
