"""
app/db/rules.py

Purpose: Document security rules

- Owner-only access to the users/{uid} subtree
- Admin may read user profiles and collection-group totals
- Server-side code runs as the service principal and bypasses the rules
- Everything else is denied
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.exceptions import PermissionDeniedError, Operation
from app.db.collections import COLLECTION_USERS

READ_OPERATIONS = ("get", "list")


@dataclass(frozen=True)
class Principal:
    """Identity a request runs as."""
    uid: Optional[str]
    email: Optional[str] = None
    is_service: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.uid is not None


ANONYMOUS = Principal(uid=None)
SERVICE = Principal(uid="__service__", is_service=True)


class SecurityRules:

    def __init__(self, admin_email: Optional[str] = None):
        self._admin_email = admin_email.lower() if admin_email else None

    def is_admin(self, principal: Optional[Principal]) -> bool:
        if principal is None or not principal.is_authenticated:
            return False
        return bool(
            self._admin_email
            and principal.email
            and principal.email.lower() == self._admin_email
        )

    def allows(self, principal: Optional[Principal], path: str, operation: Operation) -> bool:
        principal = principal or ANONYMOUS
        if principal.is_service:
            return True
        if not principal.is_authenticated:
            return False

        segments = path.strip("/").split("/")
        if segments[0] != COLLECTION_USERS:
            return False

        if len(segments) == 1:
            return operation == "list" and self.is_admin(principal)

        if segments[1] == principal.uid:
            return True

        # Admin user management reads profiles only, never the vault records
        return len(segments) == 2 and operation in READ_OPERATIONS and self.is_admin(principal)

    def allows_group(self, principal: Optional[Principal], group: str) -> bool:
        principal = principal or ANONYMOUS
        return principal.is_service or self.is_admin(principal)

    def authorize(
        self,
        principal: Optional[Principal],
        path: str,
        operation: Operation,
        request_resource_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.allows(principal, path, operation):
            raise PermissionDeniedError(path, operation, request_resource_data)

    def authorize_group(self, principal: Optional[Principal], group: str) -> None:
        if not self.allows_group(principal, group):
            raise PermissionDeniedError(group, "list")
