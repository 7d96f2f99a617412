import asyncio
import logging

import pytest

from app.core.logging import ContextFilter, LogContext, get_logger


class ListHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(ContextFilter())

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = ListHandler()
    logger = get_logger("tests.logging")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield logger, handler.records
    logger.removeHandler(handler)


def test_context_applies_inside_block_only(captured):
    logger, records = captured

    with LogContext(user_id="alice", path="users/alice/qarzs"):
        logger.info("inside")
    logger.info("outside")

    assert records[0].user_id == "alice"
    assert records[0].path == "users/alice/qarzs"
    assert not hasattr(records[1], "user_id")


def test_nested_contexts_merge_and_explicit_extra_wins(captured):
    logger, records = captured

    with LogContext(user_id="alice"):
        with LogContext(flow="chatbot"):
            logger.info("nested", extra={"user_id": "explicit"})

    assert records[0].flow == "chatbot"
    assert records[0].user_id == "explicit"


async def test_concurrent_tasks_keep_their_own_context(captured):
    logger, records = captured

    async def work(uid):
        with LogContext(user_id=uid):
            await asyncio.sleep(0.01)
            logger.info("done")

    await asyncio.gather(work("alice"), work("bob"))

    assert sorted(record.user_id for record in records) == ["alice", "bob"]
