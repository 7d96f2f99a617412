"""
app/db/store.py

Purpose: Path-addressed document store over MongoDB

- get / list / add / set / update / delete on collection and document refs
- Every operation is checked against the security rules first
- Server timestamps resolved at write time
- Change-stream access for live snapshots

Storage layout: each document is kept in the MongoDB collection named by
its collection's last path segment, with `_id` set to the full document
path and `_collection` to the collection path. Fields starting with an
underscore are reserved.
"""

from contextlib import asynccontextmanager, contextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional, Union

from pymongo.errors import OperationFailure

from app.core.exceptions import PermissionDeniedError, ResourceNotFoundError, Operation
from app.core.logging import get_logger
from app.db.paths import CollectionRef, DocumentRef, Query, as_query
from app.db.rules import Principal, SecurityRules

logger = get_logger(__name__)

# MongoDB "Unauthorized"
UNAUTHORIZED_ERROR_CODE = 13


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _resolve_value(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {key: _resolve_value(item, now) for key, item in value.items()}
    return value


def resolve_sentinels(data: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    resolved = {}
    for key, value in data.items():
        if key.startswith("_") or key == "id":
            raise ValueError(f"Reserved field name: {key}")
        resolved[key] = _resolve_value(value, now)
    return resolved


def snapshot_from_raw(raw: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Maps a stored MongoDB document to `{id, ...fields}`."""
    if raw is None:
        return None
    doc_id = str(raw["_id"]).rsplit("/", 1)[-1]
    fields = {key: value for key, value in raw.items() if not key.startswith("_")}
    return {"id": doc_id, **fields}


class DocumentStore:
    """
    Firestore-style operations on top of a Motor database.

    The store is the database handle the rest of the application is given;
    it never caches documents.
    """

    def __init__(self, database, rules: SecurityRules):
        self._database = database
        self._rules = rules

    @property
    def rules(self) -> SecurityRules:
        return self._rules

    def _storage(self, ref: CollectionRef):
        return self._database[ref.storage_name]

    @contextmanager
    def _translate_errors(self, path: str, operation: Operation, data: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        try:
            yield
        except OperationFailure as e:
            if e.code == UNAUTHORIZED_ERROR_CODE:
                raise PermissionDeniedError(path, operation, data) from e
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, ref: DocumentRef, auth: Optional[Principal]) -> Optional[Dict[str, Any]]:
        self._rules.authorize(auth, ref.path, "get")
        with self._translate_errors(ref.path, "get"):
            raw = await self._storage(ref.parent).find_one({"_id": ref.path})
        return snapshot_from_raw(raw)

    async def list(self, target: Union[CollectionRef, Query], auth: Optional[Principal]) -> List[Dict[str, Any]]:
        query = as_query(target)
        self._rules.authorize(auth, query.path, "list")
        with self._translate_errors(query.path, "list"):
            cursor = self._storage(query.ref).find(query.mongo_filter()).sort(query.mongo_sort())
            if query.limit_to:
                cursor = cursor.limit(query.limit_to)
            raw_docs = await cursor.to_list(length=None)
        return [snapshot_from_raw(raw) for raw in raw_docs]

    async def count_group(self, group: str, auth: Optional[Principal]) -> int:
        """Counts documents in every collection named `group`."""
        self._rules.authorize_group(auth, group)
        with self._translate_errors(group, "list"):
            return await self._database[group].count_documents({})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add(self, ref: CollectionRef, data: Dict[str, Any], auth: Optional[Principal]) -> DocumentRef:
        payload = resolve_sentinels(data)
        self._rules.authorize(auth, ref.path, "create", payload)

        doc_ref = ref.document()
        with self._translate_errors(ref.path, "create", payload):
            await self._storage(ref).insert_one({"_id": doc_ref.path, "_collection": ref.path, **payload})

        logger.debug("Document created", extra={"path": doc_ref.path, "operation": "create"})
        return doc_ref

    async def set(
        self,
        ref: DocumentRef,
        data: Dict[str, Any],
        auth: Optional[Principal],
        merge: bool = False,
    ) -> DocumentRef:
        payload = resolve_sentinels(data)
        storage = self._storage(ref.parent)

        with self._translate_errors(ref.path, "get"):
            exists = await storage.count_documents({"_id": ref.path}, limit=1) > 0
        operation: Operation = "update" if exists else "create"
        self._rules.authorize(auth, ref.path, operation, payload)

        with self._translate_errors(ref.path, operation, payload):
            if merge:
                await storage.update_one(
                    {"_id": ref.path},
                    {"$set": payload, "$setOnInsert": {"_collection": ref.parent.path}},
                    upsert=True,
                )
            else:
                await storage.replace_one(
                    {"_id": ref.path},
                    {"_collection": ref.parent.path, **payload},
                    upsert=True,
                )

        logger.debug("Document written", extra={"path": ref.path, "operation": operation})
        return ref

    async def update(self, ref: DocumentRef, data: Dict[str, Any], auth: Optional[Principal]) -> DocumentRef:
        payload = resolve_sentinels(data)
        self._rules.authorize(auth, ref.path, "update", payload)

        with self._translate_errors(ref.path, "update", payload):
            result = await self._storage(ref.parent).update_one({"_id": ref.path}, {"$set": payload})

        if result.matched_count == 0:
            raise ResourceNotFoundError(f"No document to update: {ref.path}")

        logger.debug("Document updated", extra={"path": ref.path, "operation": "update"})
        return ref

    async def delete(self, ref: DocumentRef, auth: Optional[Principal]) -> None:
        self._rules.authorize(auth, ref.path, "delete")
        with self._translate_errors(ref.path, "delete"):
            await self._storage(ref.parent).delete_one({"_id": ref.path})
        logger.debug("Document deleted", extra={"path": ref.path, "operation": "delete"})

    # ------------------------------------------------------------------
    # Live changes
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def watch(self, target: Union[CollectionRef, DocumentRef, Query], auth: Optional[Principal]) -> AsyncIterator[Any]:
        """
        Opens a change stream scoped to one document or one collection.

        Yields the stream; each item is a raw change event. Callers re-read
        through `get`/`list` to build snapshots.
        """
        if isinstance(target, DocumentRef):
            path, operation = target.path, "get"
            storage = self._storage(target.parent)
            pipeline = [{"$match": {"documentKey._id": target.path}}]
        else:
            query = as_query(target)
            path, operation = query.path, "list"
            storage = self._storage(query.ref)
            pipeline = [{"$match": {"documentKey._id": {"$regex": query.ref.id_pattern()}}}]

        self._rules.authorize(auth, path, operation)

        with self._translate_errors(path, operation):
            async with storage.watch(pipeline) as stream:
                yield stream
