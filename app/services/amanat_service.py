"""
app/services/amanat_service.py

Purpose: Amanat (entrusted item) records

- Create, read, update and delete a user's entrusted items
- Items still entrusted are listed before returned ones
"""

from typing import Any, Dict, List, Optional

from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_AMANATS, user_collection_path, user_document_path
from app.db.paths import collection, document
from app.db.rules import Principal
from app.db.store import DocumentStore, SERVER_TIMESTAMP
from app.schemas.records import AmanatForm, AmanatUpdate
from app.services.witness_service import snapshot_witnesses
from utils.constants import AMANAT_ENTRUSTED

logger = get_logger(__name__)


def amanats_ref(uid: str):
    return collection(user_collection_path(uid, COLLECTION_AMANATS))


def amanat_ref(uid: str, amanat_id: str):
    return document(user_document_path(uid, COLLECTION_AMANATS, amanat_id))


def entrusted_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(records, key=lambda record: record.get("status") != AMANAT_ENTRUSTED)


async def list_amanats(store: DocumentStore, uid: str, auth: Principal) -> List[Dict[str, Any]]:
    records = await store.list(amanats_ref(uid).order_by("return_date"), auth)
    return entrusted_first(records)


async def get_amanat(store: DocumentStore, uid: str, amanat_id: str, auth: Principal) -> Optional[Dict[str, Any]]:
    return await store.get(amanat_ref(uid, amanat_id), auth)


async def create_amanat(store: DocumentStore, uid: str, form: AmanatForm, auth: Principal) -> str:
    data = form.model_dump(mode="json", exclude={"witness_ids"})
    data["witnesses"] = await snapshot_witnesses(store, uid, form.witness_ids, auth)
    data["user_id"] = uid
    data["created_at"] = SERVER_TIMESTAMP

    with LogContext(user_id=uid):
        ref = await store.add(amanats_ref(uid), data, auth)
        logger.info("Amanat recorded", extra={"path": ref.path})

    return ref.id


async def update_amanat(store: DocumentStore, uid: str, amanat_id: str, form: AmanatUpdate, auth: Principal) -> None:
    data = form.model_dump(mode="json", exclude_none=True, exclude={"witness_ids"})
    if form.witness_ids is not None:
        data["witnesses"] = await snapshot_witnesses(store, uid, form.witness_ids, auth)

    if not data:
        return

    await store.update(amanat_ref(uid, amanat_id), data, auth)


async def set_amanat_status(store: DocumentStore, uid: str, amanat_id: str, status: str, auth: Principal) -> None:
    with LogContext(user_id=uid):
        await store.update(amanat_ref(uid, amanat_id), {"status": status}, auth)
        logger.info(f"Amanat marked {status}")


async def delete_amanat(store: DocumentStore, uid: str, amanat_id: str, auth: Principal) -> None:
    await store.delete(amanat_ref(uid, amanat_id), auth)
