"""
app/services/witness_service.py

Purpose: Witness records

- List, create and delete a user's saved witnesses
- Build the denormalized witness snapshots embedded in Qarz, Amanat
  and Wasiyat records
"""

from typing import Any, Dict, List, Sequence

from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_WITNESSES, user_collection_path, user_document_path
from app.db.paths import collection, document
from app.db.rules import Principal
from app.db.store import DocumentStore, SERVER_TIMESTAMP
from app.core.exceptions import ValidationError
from app.schemas.records import WitnessForm
from utils.validation_utils import normalize_phone_number

logger = get_logger(__name__)


def witnesses_ref(uid: str):
    return collection(user_collection_path(uid, COLLECTION_WITNESSES))


async def list_witnesses(store: DocumentStore, uid: str, auth: Principal) -> List[Dict[str, Any]]:
    return await store.list(witnesses_ref(uid).order_by("name"), auth)


async def create_witness(store: DocumentStore, uid: str, form: WitnessForm, auth: Principal) -> str:
    data = {
        "name": form.name.strip(),
        "cnic": form.cnic,
        "phone": normalize_phone_number(form.phone),
        "email": form.email or "",
        "user_id": uid,
        "created_at": SERVER_TIMESTAMP,
    }

    with LogContext(user_id=uid):
        ref = await store.add(witnesses_ref(uid), data, auth)
        logger.info("Witness saved", extra={"path": ref.path})

    return ref.id


async def delete_witness(store: DocumentStore, uid: str, witness_id: str, auth: Principal) -> None:
    # Records that embed this witness keep their snapshot
    await store.delete(document(user_document_path(uid, COLLECTION_WITNESSES, witness_id)), auth)


async def snapshot_witnesses(
    store: DocumentStore,
    uid: str,
    witness_ids: Sequence[str],
    auth: Principal,
) -> List[Dict[str, Any]]:
    """
    Copies `{id, name, cnic, email}` from the user's witness records.

    Raises:
        ValidationError: If an id does not name one of the user's witnesses
    """
    snapshots = []
    seen = set()

    for witness_id in witness_ids:
        if witness_id in seen:
            continue
        seen.add(witness_id)

        witness = await store.get(
            document(user_document_path(uid, COLLECTION_WITNESSES, witness_id)), auth
        )
        if witness is None:
            raise ValidationError("Unknown witness", details={"witness_id": witness_id})

        snapshots.append({
            "id": witness["id"],
            "name": witness.get("name"),
            "cnic": witness.get("cnic"),
            "email": witness.get("email") or None,
        })

    return snapshots
