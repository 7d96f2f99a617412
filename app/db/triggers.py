"""
app/db/triggers.py

Purpose: Document on-create triggers

- Watches one MongoDB collection for inserts through a change stream
- Hands each new document (`{id, ...fields}`) to an async handler
- Handler failures are logged and never stop the trigger
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from pymongo.errors import PyMongoError

from app.core.logging import get_logger
from app.db.store import snapshot_from_raw

logger = get_logger(__name__)

CreateHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class OnCreateTrigger:

    def __init__(self, database, collection_name: str, handler: CreateHandler, name: Optional[str] = None):
        self._database = database
        self._collection_name = collection_name
        self._handler = handler
        self.name = name or f"{collection_name}.onCreate"
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning(f"Trigger {self.name} already running")
            return
        self._task = asyncio.create_task(self._run(), name=f"trigger:{self.name}")
        logger.info(f"Trigger {self.name} started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Trigger {self.name} stopped")

    async def dispatch(self, document: Dict[str, Any]) -> None:
        try:
            await self._handler(document)
        except Exception as e:
            logger.error(
                f"Trigger {self.name} failed for {document.get('id')}: {e}",
                extra={"collection": self._collection_name},
                exc_info=True
            )

    async def _run(self) -> None:
        pipeline = [{"$match": {"operationType": "insert"}}]
        try:
            async with self._database[self._collection_name].watch(pipeline) as stream:
                async for change in stream:
                    document = snapshot_from_raw(change.get("fullDocument"))
                    if document is None:
                        logger.error(f"Trigger {self.name} received an insert without a document")
                        continue
                    await self.dispatch(document)
        except PyMongoError as e:
            logger.error(
                f"Trigger {self.name} change stream closed: {e}",
                extra={"collection": self._collection_name},
                exc_info=True
            )
