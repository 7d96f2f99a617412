from pydantic import BaseModel
from typing import Optional, Any, Generic, TypeVar

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class ActionResult(BaseModel, Generic[T]):
    """
    Envelope returned by the AI server actions.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
