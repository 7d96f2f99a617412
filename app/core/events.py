"""
app/core/events.py

Purpose: Application-wide error event bus

- Typed publish/subscribe channel between the data layer and the
  notification policy at the application root
- One instance per application, built by the composition root and
  handed out through app.state
"""

from typing import Callable, Dict, List, Literal

from app.core.exceptions import PermissionDeniedError
from app.core.logging import get_logger

logger = get_logger(__name__)

PERMISSION_ERROR = "permission-error"

EventName = Literal["permission-error"]
PermissionErrorListener = Callable[[PermissionDeniedError], None]


class ErrorEmitter:
    """
    Minimal synchronous event emitter.

    Listeners run in registration order inside `emit`; an exception raised
    by a listener propagates to the emitting call site.
    """

    def __init__(self):
        self._listeners: Dict[str, List[PermissionErrorListener]] = {}

    def on(self, event: EventName, listener: PermissionErrorListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: EventName, listener: PermissionErrorListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: EventName, error: PermissionDeniedError) -> None:
        listeners = list(self._listeners.get(event, []))
        if not listeners:
            logger.warning(
                f"No listener registered for {event}",
                extra={"path": error.path, "operation": error.operation}
            )
            return

        for listener in listeners:
            listener(error)
