import json
from typing import Optional, Any, Dict, Literal

Operation = Literal["get", "list", "create", "update", "delete", "write"]


class ZimmahError(Exception):
    """
    Base exception for Zimmah application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(ZimmahError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(ZimmahError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class ValidationError(ZimmahError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class ExternalServiceError(ZimmahError):
    """
    Raised when an external service (LLM, SendGrid, Twilio) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class OtpVerificationError(ZimmahError):
    """
    Raised when a registration OTP does not match a pending registration.
    """
    def __init__(self, message: str = "Invalid or expired verification code", details: Optional[Any] = None):
        super().__init__(message, code="OTP_REJECTED", status_code=400, details=details)


class PermissionDeniedError(ZimmahError):
    """
    Raised when the security rules reject a document operation.

    `context` describes the attempted request: the document or collection
    path, the operation kind and, for writes, the data that was sent.
    """
    def __init__(self, path: str, operation: Operation, request_resource_data: Optional[Dict[str, Any]] = None):
        self.context: Dict[str, Any] = {"path": path, "operation": operation}
        if request_resource_data is not None:
            self.context["request_resource_data"] = request_resource_data
        stringified = json.dumps(self.context, indent=2, default=str)
        message = (
            "Missing or insufficient permissions: The following request was denied "
            f"by the security rules:\n{stringified}"
        )
        super().__init__(message, code="PERMISSION_DENIED", status_code=403, details=self.context)

    @property
    def path(self) -> str:
        return self.context["path"]

    @property
    def operation(self) -> str:
        return self.context["operation"]

    @property
    def request_resource_data(self) -> Optional[Dict[str, Any]]:
        return self.context.get("request_resource_data")
