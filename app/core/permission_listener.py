"""
app/core/permission_listener.py

Purpose: Root-level policy for permission errors

- Subscribes to the error bus when the application starts
- Development: re-raises so the full rule context and stack surface
- Other environments: shows a generic denial toast, no stack trace
"""

from typing import Optional

from app.core.config import Settings
from app.core.events import ErrorEmitter, PERMISSION_ERROR
from app.core.exceptions import PermissionDeniedError
from app.core.logging import get_logger
from app.core.toasts import Toast, toast

logger = get_logger(__name__)

PERMISSION_DENIED_TOAST = Toast(
    title="Permission Denied",
    description=(
        "You do not have permission to perform this action. "
        "Please contact support if you believe this is an error."
    ),
    variant="destructive",
)


class PermissionErrorListener:
    """Single listener mounted once near the application root."""

    def __init__(self, emitter: ErrorEmitter, settings: Settings):
        self._emitter = emitter
        self._settings = settings
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        if self._mounted:
            logger.warning("Permission error listener already mounted")
            return
        self._emitter.on(PERMISSION_ERROR, self.handle)
        self._mounted = True
        logger.debug("Permission error listener mounted")

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._emitter.off(PERMISSION_ERROR, self.handle)
        self._mounted = False
        logger.debug("Permission error listener unmounted")

    def handle(self, error: PermissionDeniedError) -> Optional[Toast]:
        if self._settings.is_development:
            raise error

        logger.warning(
            "Permission denied",
            extra={"path": error.path, "operation": error.operation}
        )
        item = PERMISSION_DENIED_TOAST.model_copy()
        toast(item)
        return item
