"""
app/services/qarz_service.py

Purpose: Qarz (debt) records

- Create, read, update and delete a user's debts
- Pending debts are listed before paid ones
- Status changes (mark as paid / reopen)
"""

from typing import Any, Dict, List, Optional

from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_QARZS, user_collection_path, user_document_path
from app.db.paths import collection, document
from app.db.rules import Principal
from app.db.store import DocumentStore, SERVER_TIMESTAMP
from app.schemas.records import QarzForm, QarzUpdate
from app.services.witness_service import snapshot_witnesses
from utils.constants import QARZ_PENDING

logger = get_logger(__name__)


def qarzs_ref(uid: str):
    return collection(user_collection_path(uid, COLLECTION_QARZS))


def qarz_ref(uid: str, qarz_id: str):
    return document(user_document_path(uid, COLLECTION_QARZS, qarz_id))


def pending_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable sort: Pending before everything else, original order otherwise."""
    return sorted(records, key=lambda record: record.get("status") != QARZ_PENDING)


async def list_qarzs(store: DocumentStore, uid: str, auth: Principal) -> List[Dict[str, Any]]:
    records = await store.list(qarzs_ref(uid).order_by("due_date"), auth)
    return pending_first(records)


async def get_qarz(store: DocumentStore, uid: str, qarz_id: str, auth: Principal) -> Optional[Dict[str, Any]]:
    return await store.get(qarz_ref(uid, qarz_id), auth)


async def create_qarz(store: DocumentStore, uid: str, form: QarzForm, auth: Principal) -> str:
    data = form.model_dump(mode="json", exclude={"witness_ids"})
    data["witnesses"] = await snapshot_witnesses(store, uid, form.witness_ids, auth)
    data["user_id"] = uid
    data["created_at"] = SERVER_TIMESTAMP

    with LogContext(user_id=uid):
        ref = await store.add(qarzs_ref(uid), data, auth)
        logger.info(f"Qarz recorded ({len(data['witnesses'])} witnesses)", extra={"path": ref.path})

    return ref.id


async def update_qarz(store: DocumentStore, uid: str, qarz_id: str, form: QarzUpdate, auth: Principal) -> None:
    data = form.model_dump(mode="json", exclude_none=True, exclude={"witness_ids"})
    if form.witness_ids is not None:
        data["witnesses"] = await snapshot_witnesses(store, uid, form.witness_ids, auth)

    if not data:
        return

    await store.update(qarz_ref(uid, qarz_id), data, auth)


async def set_qarz_status(store: DocumentStore, uid: str, qarz_id: str, status: str, auth: Principal) -> None:
    with LogContext(user_id=uid):
        await store.update(qarz_ref(uid, qarz_id), {"status": status}, auth)
        logger.info(f"Qarz marked {status}")


async def delete_qarz(store: DocumentStore, uid: str, qarz_id: str, auth: Principal) -> None:
    await store.delete(qarz_ref(uid, qarz_id), auth)
