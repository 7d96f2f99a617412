"""
app/schemas/records.py

Purpose: Vault record forms

- Field-level validation for Qarz, Amanat, Wasiyat and witness input
- Runs before any database call; failures become 422 responses
"""

from datetime import date
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from utils.constants import (
    QARZ_PENDING, QARZ_PAID, AMANAT_ENTRUSTED, AMANAT_RETURNED, WASIYAT_MANUAL,
)
from utils.validation_utils import CNIC_FORMAT_MESSAGE, validate_cnic, validate_phone_number

QarzStatus = Literal["Pending", "Paid"]
AmanatStatus = Literal["Entrusted", "Returned"]
WasiyatType = Literal["ai", "manual"]

# One path segment: non-empty, no slashes
DocumentId = Annotated[str, StringConstraints(min_length=1, pattern=r"^[^/]+$")]


class WitnessForm(BaseModel):
    name: str = Field(..., min_length=2, description="Witness full name")
    cnic: str = Field(..., description="Witness CNIC", examples=["12345-1234567-1"])
    phone: str = Field(..., min_length=10, description="Witness phone number")
    email: Optional[EmailStr] = Field(default=None, description="Optional witness email")

    @field_validator("cnic")
    @classmethod
    def check_cnic(cls, v: str) -> str:
        if not validate_cnic(v):
            raise ValueError(CNIC_FORMAT_MESSAGE)
        return v.strip()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("Invalid phone number.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class WitnessSnapshot(BaseModel):
    """Denormalized copy of a witness embedded in a Qarz/Amanat record."""
    id: str
    name: str
    cnic: Optional[str] = None
    email: Optional[str] = None


class QarzForm(BaseModel):
    debtor: str = Field(..., min_length=2, description="Debtor (Qarz lenay wala)")
    creditor: str = Field(..., min_length=2, description="Creditor (Qarz denay wala)")
    amount: float = Field(..., gt=0, description="Amount owed")
    start_date: Optional[date] = Field(default=None, description="Date the debt was taken")
    due_date: date = Field(..., description="Date the debt is due")
    status: QarzStatus = Field(default=QARZ_PENDING)
    witness_ids: List[DocumentId] = Field(default_factory=list, description="Ids of the user's witnesses")


class QarzUpdate(BaseModel):
    debtor: Optional[str] = Field(default=None, min_length=2)
    creditor: Optional[str] = Field(default=None, min_length=2)
    amount: Optional[float] = Field(default=None, gt=0)
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    witness_ids: Optional[List[DocumentId]] = None


class QarzStatusUpdate(BaseModel):
    status: QarzStatus = QARZ_PAID


class AmanatForm(BaseModel):
    item: str = Field(..., min_length=2, description="Entrusted item")
    description: str = Field(..., min_length=10, max_length=200)
    entrustee: str = Field(..., min_length=2, description="Person holding the item")
    return_date: date = Field(..., description="Expected return date")
    status: AmanatStatus = Field(default=AMANAT_ENTRUSTED)
    witness_ids: List[DocumentId] = Field(default_factory=list)


class AmanatUpdate(BaseModel):
    item: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = Field(default=None, min_length=10, max_length=200)
    entrustee: Optional[str] = Field(default=None, min_length=2)
    return_date: Optional[date] = None
    witness_ids: Optional[List[DocumentId]] = None


class AmanatStatusUpdate(BaseModel):
    status: AmanatStatus = AMANAT_RETURNED


class WasiyatForm(BaseModel):
    will: str = Field(..., min_length=1, description="Will content")
    type: WasiyatType = Field(default=WASIYAT_MANUAL, description="How the will was written")
    witness_ids: List[DocumentId] = Field(default_factory=list)

    @field_validator("will")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Will content cannot be empty.")
        return v


class WasiyatEdit(BaseModel):
    will: str = Field(..., min_length=1)

    @field_validator("will")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Will content cannot be empty.")
        return v


class WitnessAssignment(BaseModel):
    witness_ids: List[DocumentId] = Field(..., min_length=1, description="Witnesses to name in the will")


class CreatedResponse(BaseModel):
    id: str
    path: str
