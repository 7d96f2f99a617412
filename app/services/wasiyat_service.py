"""
app/services/wasiyat_service.py

Purpose: Wasiyat (will) records

- Newest-first listing; the newest will is the current one
- Save AI-drafted or manually written wills
- Edit content, assign witnesses, delete to start over
"""

from typing import Any, Dict, List, Optional, Sequence

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_WASIYATS, user_collection_path, user_document_path
from app.db.paths import collection, document
from app.db.rules import Principal
from app.db.store import DocumentStore, SERVER_TIMESTAMP
from app.schemas.records import WasiyatForm
from app.services.witness_service import snapshot_witnesses
from utils.constants import WITNESS_ENTRY, WITNESS_SECTION_HEADING, WITNESS_SECTION_INTRO

logger = get_logger(__name__)


def wasiyats_ref(uid: str):
    return collection(user_collection_path(uid, COLLECTION_WASIYATS))


def wasiyat_ref(uid: str, wasiyat_id: str):
    return document(user_document_path(uid, COLLECTION_WASIYATS, wasiyat_id))


def recent_wasiyats_query(uid: str):
    return wasiyats_ref(uid).order_by("created_at", "desc")


def with_witness_section(will: str, witnesses: Sequence[Dict[str, Any]]) -> str:
    """
    Replaces (or appends) the witnesses section at the end of a will.
    """
    base = will.split(f"\n\n{WITNESS_SECTION_HEADING}")[0]
    entries = "\n\n".join(
        WITNESS_ENTRY.format(number=number, name=witness.get("name"), cnic=witness.get("cnic"))
        for number, witness in enumerate(witnesses, 1)
    )
    return f"{base}\n\n{WITNESS_SECTION_HEADING}\n\n{WITNESS_SECTION_INTRO}\n\n{entries}"


async def list_wasiyats(store: DocumentStore, uid: str, auth: Principal) -> List[Dict[str, Any]]:
    return await store.list(recent_wasiyats_query(uid), auth)


async def get_current_wasiyat(store: DocumentStore, uid: str, auth: Principal) -> Optional[Dict[str, Any]]:
    # Nothing prevents several wills; the newest one wins
    records = await store.list(recent_wasiyats_query(uid).limit(1), auth)
    return records[0] if records else None


async def create_wasiyat(store: DocumentStore, uid: str, form: WasiyatForm, auth: Principal) -> str:
    data: Dict[str, Any] = {
        "will": form.will,
        "type": form.type,
        "user_id": uid,
        "created_at": SERVER_TIMESTAMP,
    }

    if form.witness_ids:
        witnesses = await snapshot_witnesses(store, uid, form.witness_ids, auth)
        data["witnesses"] = witnesses
        data["will"] = with_witness_section(form.will, witnesses)

    with LogContext(user_id=uid):
        ref = await store.add(wasiyats_ref(uid), data, auth)
        logger.info(f"Wasiyat saved ({form.type})", extra={"path": ref.path})

    return ref.id


async def edit_wasiyat(store: DocumentStore, uid: str, wasiyat_id: str, will: str, auth: Principal) -> None:
    await store.update(wasiyat_ref(uid, wasiyat_id), {"will": will}, auth)


async def assign_witnesses(
    store: DocumentStore,
    uid: str,
    wasiyat_id: str,
    witness_ids: Sequence[str],
    auth: Principal,
) -> str:
    """
    Names the chosen witnesses in the will text and stores their snapshots.

    Returns:
        The updated will content

    Raises:
        ResourceNotFoundError: If the will does not exist
    """
    ref = wasiyat_ref(uid, wasiyat_id)
    wasiyat = await store.get(ref, auth)
    if wasiyat is None:
        raise ResourceNotFoundError("Wasiyat not found")

    witnesses = await snapshot_witnesses(store, uid, witness_ids, auth)
    will = with_witness_section(wasiyat.get("will", ""), witnesses)

    await store.update(ref, {"will": will, "witnesses": witnesses}, auth)
    return will


async def delete_wasiyat(store: DocumentStore, uid: str, wasiyat_id: str, auth: Principal) -> None:
    with LogContext(user_id=uid):
        await store.delete(wasiyat_ref(uid, wasiyat_id), auth)
        logger.info("Wasiyat deleted")
