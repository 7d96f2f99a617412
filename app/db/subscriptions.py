"""
app/db/subscriptions.py

Purpose: Live snapshot subscribers

- CollectionSubscriber: ordered `{id, ...fields}` lists for a collection/query
- DocumentSubscriber: a single `{id, ...fields}` or None when missing
- At most one live subscription per subscriber; the previous one is fully
  closed before the next reference is subscribed
- Permission denials are published on the error bus, never raised to the
  caller that asked for the subscription
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from pymongo.errors import PyMongoError

from app.core.events import ErrorEmitter, PERMISSION_ERROR
from app.core.exceptions import PermissionDeniedError
from app.core.logging import get_logger
from app.db.paths import CollectionRef, DocumentRef, Query
from app.db.resolver import ReferenceResolver, Target
from app.db.rules import Principal
from app.db.store import DocumentStore

logger = get_logger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]


async def _invoke(callback: Optional[Callback], value: Any) -> None:
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class SnapshotSubscriber:
    """
    Base class; subclasses define the reference kind, the operation name
    reported on failures and how a snapshot is read.
    """

    kind = "collection"
    operation = "list"

    def __init__(
        self,
        store: Optional[DocumentStore],
        emitter: ErrorEmitter,
        auth: Optional[Principal],
        *,
        on_success: Optional[Callback] = None,
        on_error: Optional[Callback] = None,
    ):
        self._store = store
        self._emitter = emitter
        self._auth = auth
        self._on_success = on_success
        self._on_error = on_error
        self._resolver = ReferenceResolver(self.kind)

        self._ref = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._delivered = False

        self.data: Any = None
        self.loading = True
        self.error: Optional[Exception] = None

    @property
    def reference(self):
        return self._ref

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def subscribe(self, target: Target) -> None:
        ref = self._resolver.resolve(self._store, target)
        if ref is self._ref and self._task is not None:
            return

        await self._stop()
        self._ref = ref

        if ref is None or self._store is None:
            self.loading = False
            return

        self._generation += 1
        self._delivered = False
        self.loading = True
        self.error = None

        self._task = asyncio.create_task(
            self._run(ref, self._generation),
            name=f"snapshot:{self.operation}:{getattr(ref, 'path', ref)}",
        )
        self._task.add_done_callback(self._log_task_failure)

    async def close(self) -> None:
        await self._stop()
        self._ref = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return

        # Anything the old task still delivers is stale from here on
        self._generation += 1
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            logger.debug(f"Previous subscription ended with {type(exc).__name__}")

    def _log_task_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Snapshot subscription failed: {exc}",
                extra={"operation": self.operation},
                exc_info=exc,
            )

    async def _read(self, ref) -> Any:
        raise NotImplementedError

    def _error_path(self, ref) -> str:
        return ref.path

    async def _run(self, ref, generation: int) -> None:
        try:
            async with self._store.watch(ref, self._auth) as changes:
                await self._publish(await self._read(ref), generation)
                async for _change in changes:
                    await self._publish(await self._read(ref), generation)
        except PermissionDeniedError:
            await self._fail_permission(ref, generation)
        except PyMongoError as exc:
            await self._fail_connectivity(ref, exc, generation)

    async def _publish(self, snapshot: Any, generation: int) -> None:
        if generation != self._generation:
            return
        if self._delivered and snapshot == self.data:
            return

        self.data = snapshot
        self.loading = False
        self.error = None
        self._delivered = True
        await _invoke(self._on_success, snapshot)

    async def _fail_permission(self, ref, generation: int) -> None:
        if generation != self._generation:
            return

        error = PermissionDeniedError(self._error_path(ref), self.operation)
        self.error = error
        self.loading = False
        try:
            self._emitter.emit(PERMISSION_ERROR, error)
        finally:
            await _invoke(self._on_error, error)

    async def _fail_connectivity(self, ref, exc: Exception, generation: int) -> None:
        if generation != self._generation:
            return

        logger.error(
            f"Snapshot listener lost: {exc}",
            extra={"path": self._error_path(ref), "operation": self.operation},
        )
        self.error = exc
        self.loading = False
        await _invoke(self._on_error, exc)


class CollectionSubscriber(SnapshotSubscriber):
    kind = "collection"
    operation = "list"

    async def _read(self, ref: Union[CollectionRef, Query]):
        return await self._store.list(ref, self._auth)


class DocumentSubscriber(SnapshotSubscriber):
    kind = "document"
    operation = "get"

    async def _read(self, ref: DocumentRef):
        return await self._store.get(ref, self._auth)
