"""
app/api/records.py

Purpose: Vault record endpoints under /users/{uid}

- Qarz, Amanat, Wasiyat and witness CRUD
- Access is decided by the document security rules; a request for
  another user's records is answered by the permission-denied handler
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status

from app.api.deps import get_principal, get_store
from app.core.exceptions import ResourceNotFoundError
from app.db.collections import (
    COLLECTION_AMANATS,
    COLLECTION_QARZS,
    COLLECTION_WASIYATS,
    COLLECTION_WITNESSES,
    user_document_path,
)
from app.db.rules import Principal
from app.db.store import DocumentStore
from app.schemas.records import (
    AmanatForm,
    AmanatStatusUpdate,
    AmanatUpdate,
    CreatedResponse,
    QarzForm,
    QarzStatusUpdate,
    QarzUpdate,
    WasiyatEdit,
    WasiyatForm,
    WitnessAssignment,
    WitnessForm,
)
from app.services import amanat_service, qarz_service, wasiyat_service, witness_service

router = APIRouter()


def _created(uid: str, name: str, doc_id: str) -> CreatedResponse:
    return CreatedResponse(id=doc_id, path=user_document_path(uid, name, doc_id))


def _found(record: Optional[Dict[str, Any]], what: str) -> Dict[str, Any]:
    if record is None:
        raise ResourceNotFoundError(f"{what} not found")
    return record


# ============================================================
# QARZ
# ============================================================

@router.get("/users/{uid}/qarzs")
async def list_qarzs(
    uid: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> List[Dict[str, Any]]:
    """Debts, pending ones first."""
    return await qarz_service.list_qarzs(store, uid, auth)


@router.post("/users/{uid}/qarzs", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_qarz(
    uid: str, form: QarzForm, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    qarz_id = await qarz_service.create_qarz(store, uid, form, auth)
    return _created(uid, COLLECTION_QARZS, qarz_id)


@router.get("/users/{uid}/qarzs/{qarz_id}")
async def get_qarz(
    uid: str, qarz_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> Dict[str, Any]:
    return _found(await qarz_service.get_qarz(store, uid, qarz_id, auth), "Qarz")


@router.patch("/users/{uid}/qarzs/{qarz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_qarz(
    uid: str,
    qarz_id: str,
    form: QarzUpdate,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    await qarz_service.update_qarz(store, uid, qarz_id, form, auth)


@router.put("/users/{uid}/qarzs/{qarz_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def set_qarz_status(
    uid: str,
    qarz_id: str,
    body: QarzStatusUpdate,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    await qarz_service.set_qarz_status(store, uid, qarz_id, body.status, auth)


@router.delete("/users/{uid}/qarzs/{qarz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_qarz(
    uid: str, qarz_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    await qarz_service.delete_qarz(store, uid, qarz_id, auth)


# ============================================================
# AMANAT
# ============================================================

@router.get("/users/{uid}/amanats")
async def list_amanats(
    uid: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> List[Dict[str, Any]]:
    """Entrusted items, those not yet returned first."""
    return await amanat_service.list_amanats(store, uid, auth)


@router.post("/users/{uid}/amanats", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_amanat(
    uid: str, form: AmanatForm, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    amanat_id = await amanat_service.create_amanat(store, uid, form, auth)
    return _created(uid, COLLECTION_AMANATS, amanat_id)


@router.get("/users/{uid}/amanats/{amanat_id}")
async def get_amanat(
    uid: str, amanat_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> Dict[str, Any]:
    return _found(await amanat_service.get_amanat(store, uid, amanat_id, auth), "Amanat")


@router.patch("/users/{uid}/amanats/{amanat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_amanat(
    uid: str,
    amanat_id: str,
    form: AmanatUpdate,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    await amanat_service.update_amanat(store, uid, amanat_id, form, auth)


@router.put("/users/{uid}/amanats/{amanat_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def set_amanat_status(
    uid: str,
    amanat_id: str,
    body: AmanatStatusUpdate,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    await amanat_service.set_amanat_status(store, uid, amanat_id, body.status, auth)


@router.delete("/users/{uid}/amanats/{amanat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_amanat(
    uid: str, amanat_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    await amanat_service.delete_amanat(store, uid, amanat_id, auth)


# ============================================================
# WASIYAT
# ============================================================

@router.get("/users/{uid}/wasiyats")
async def list_wasiyats(
    uid: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> List[Dict[str, Any]]:
    """Wills, newest first."""
    return await wasiyat_service.list_wasiyats(store, uid, auth)


@router.get("/users/{uid}/wasiyats/current")
async def get_current_wasiyat(
    uid: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> Optional[Dict[str, Any]]:
    """The newest will, or null when none has been saved."""
    return await wasiyat_service.get_current_wasiyat(store, uid, auth)


@router.post("/users/{uid}/wasiyats", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_wasiyat(
    uid: str, form: WasiyatForm, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    wasiyat_id = await wasiyat_service.create_wasiyat(store, uid, form, auth)
    return _created(uid, COLLECTION_WASIYATS, wasiyat_id)


@router.patch("/users/{uid}/wasiyats/{wasiyat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def edit_wasiyat(
    uid: str,
    wasiyat_id: str,
    body: WasiyatEdit,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    await wasiyat_service.edit_wasiyat(store, uid, wasiyat_id, body.will, auth)


@router.put("/users/{uid}/wasiyats/{wasiyat_id}/witnesses")
async def assign_wasiyat_witnesses(
    uid: str,
    wasiyat_id: str,
    body: WitnessAssignment,
    store: DocumentStore = Depends(get_store),
    auth: Principal = Depends(get_principal),
):
    will = await wasiyat_service.assign_witnesses(store, uid, wasiyat_id, body.witness_ids, auth)
    return {"id": wasiyat_id, "will": will}


@router.delete("/users/{uid}/wasiyats/{wasiyat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_wasiyat(
    uid: str, wasiyat_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    await wasiyat_service.delete_wasiyat(store, uid, wasiyat_id, auth)


# ============================================================
# WITNESSES
# ============================================================

@router.get("/users/{uid}/witnesses")
async def list_witnesses(
    uid: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
) -> List[Dict[str, Any]]:
    return await witness_service.list_witnesses(store, uid, auth)


@router.post("/users/{uid}/witnesses", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_witness(
    uid: str, form: WitnessForm, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    witness_id = await witness_service.create_witness(store, uid, form, auth)
    return _created(uid, COLLECTION_WITNESSES, witness_id)


@router.delete("/users/{uid}/witnesses/{witness_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_witness(
    uid: str, witness_id: str, store: DocumentStore = Depends(get_store), auth: Principal = Depends(get_principal)
):
    await witness_service.delete_witness(store, uid, witness_id, auth)
