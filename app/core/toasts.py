"""
app/core/toasts.py

Purpose: User-facing notifications

- Toast model shared by HTTP responses and WebSocket frames
- Per-request / per-connection sink bound through a context variable
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Iterator, List, Literal, Optional

from pydantic import BaseModel

from app.core.logging import get_logger

logger = get_logger(__name__)


class Toast(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class ToastSink:
    """Collects toasts for one request or connection."""

    def __init__(self, on_push: Optional[Callable[[Toast], None]] = None):
        self._toasts: List[Toast] = []
        self._on_push = on_push

    def push(self, toast: Toast) -> None:
        self._toasts.append(toast)
        if self._on_push is not None:
            self._on_push(toast)

    def drain(self) -> List[Toast]:
        toasts, self._toasts = self._toasts, []
        return toasts

    def __len__(self) -> int:
        return len(self._toasts)


_current_sink: ContextVar[Optional[ToastSink]] = ContextVar("toast_sink", default=None)


def toast(item: Toast) -> None:
    """Deliver a toast to the active sink, or log it when there is none."""
    sink = _current_sink.get()
    if sink is None:
        logger.info(f"Toast without receiver: {item.title} - {item.description}")
        return
    sink.push(item)


@contextmanager
def toast_scope(sink: Optional[ToastSink] = None) -> Iterator[ToastSink]:
    """
    Binds a sink for the duration of the block.

    Tasks created inside the block inherit the binding.
    """
    if sink is None:
        sink = ToastSink()
    token = _current_sink.set(sink)
    try:
        yield sink
    finally:
        _current_sink.reset(token)
