"""
app/api/subscriptions.py

Purpose: Live snapshots over WebSocket

Protocol (JSON frames):
    client -> {"path": "users/{uid}/qarzs"}        subscribe / switch
    client -> {"path": null}                       unsubscribe

Anything that is not a JSON object gets an INVALID_FRAME error frame and
the connection stays open.
    server -> {"type": "snapshot", "path", "data"}
    server -> {"type": "error", "path", "error", "code", "details"}
    server -> {"type": "toast", "title", "description", "variant"}

The token is passed as the `token` query parameter. Collection paths are
subscribed as ordered lists, document paths as single documents.
"""

import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from app.core.config import settings
from app.core.exceptions import AuthenticationError, PermissionDeniedError, ZimmahError
from app.core.logging import get_logger, LogContext
from app.core.toasts import Toast, ToastSink, toast_scope
from app.db.paths import split_path
from app.db.subscriptions import CollectionSubscriber, DocumentSubscriber, SnapshotSubscriber
from app.services.auth_service import decode_access_token

logger = get_logger(__name__)
router = APIRouter()

INVALID_FRAME = {
    "type": "error",
    "path": None,
    "error": "Frames must be JSON objects",
    "code": "INVALID_FRAME",
    "details": None,
}


def subscriber_class(path: str):
    """Odd segment counts name collections, even ones documents."""
    return CollectionSubscriber if len(split_path(path)) % 2 == 1 else DocumentSubscriber


def error_frame(path: Optional[str], error: Exception) -> Dict[str, Any]:
    if isinstance(error, PermissionDeniedError):
        return {
            "type": "error",
            "path": path,
            "error": error.message,
            "code": error.code,
            # Rule context is only shown to developers
            "details": error.context if settings.is_development else None,
        }
    if isinstance(error, ZimmahError):
        return {"type": "error", "path": path, "error": error.message, "code": error.code, "details": error.details}
    return {"type": "error", "path": path, "error": "Live updates unavailable", "code": "SUBSCRIPTION_FAILED", "details": None}


class SnapshotSession:
    """One WebSocket connection and its (at most one) live subscription."""

    def __init__(self, websocket: WebSocket, auth):
        self.websocket = websocket
        self.auth = auth
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.sink = ToastSink(on_push=self._queue_toast)
        self.subscriber: Optional[SnapshotSubscriber] = None
        self.path: Optional[str] = None

    def _queue_toast(self, item: Toast) -> None:
        self.outbox.put_nowait({"type": "toast", **item.model_dump()})

    def _on_success(self, path: str):
        def deliver(data: Any) -> None:
            self.outbox.put_nowait({"type": "snapshot", "path": path, "data": data})
        return deliver

    def _on_error(self, path: str):
        def deliver(error: Exception) -> None:
            self.outbox.put_nowait(error_frame(path, error))
        return deliver

    async def switch(self, path: Optional[str]) -> None:
        if path == self.path and self.subscriber is not None:
            return

        if self.subscriber is not None:
            await self.subscriber.close()
            self.subscriber = None
        self.path = path

        if not path:
            return

        try:
            cls = subscriber_class(path)
        except ValueError as e:
            self.outbox.put_nowait({"type": "error", "path": path, "error": str(e), "code": "INVALID_PATH", "details": None})
            self.path = None
            return

        app_state = self.websocket.app.state
        self.subscriber = cls(
            app_state.store,
            app_state.emitter,
            self.auth,
            on_success=self._on_success(path),
            on_error=self._on_error(path),
        )
        # The subscription task inherits this connection's toast sink
        with toast_scope(self.sink):
            await self.subscriber.subscribe(path)

    async def send_loop(self) -> None:
        while True:
            frame = await self.outbox.get()
            await self.websocket.send_json(jsonable_encoder(frame))

    async def close(self) -> None:
        if self.subscriber is not None:
            await self.subscriber.close()
            self.subscriber = None


@router.websocket("/ws/subscribe")
async def subscribe(websocket: WebSocket, token: Optional[str] = Query(default=None)):
    try:
        auth = decode_access_token(token or "")
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    session = SnapshotSession(websocket, auth)
    sender = asyncio.create_task(session.send_loop(), name=f"ws-send:{auth.uid}")

    with LogContext(user_id=auth.uid):
        logger.info("Snapshot session opened")
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    message = json.loads(text)
                except ValueError:
                    message = None
                if not isinstance(message, dict):
                    session.outbox.put_nowait(INVALID_FRAME)
                    continue
                await session.switch(message.get("path"))
        except WebSocketDisconnect:
            logger.info("Snapshot session closed by client")
        finally:
            await session.close()
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Sender stopped with {type(e).__name__}")
