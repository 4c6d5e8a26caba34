from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import pytest_asyncio
import structlog

from code_assist_adapter.transport import HttpTransport
from tests.helpers import RecordingSleep


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture(name="transport")
async def transport_fixture() -> AsyncIterator[HttpTransport]:
    async with httpx.AsyncClient() as client:
        yield HttpTransport(client)


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    """Undo the global changes made by configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    filters = list(root.filters)
    level = root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.filters[:] = filters
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)
    structlog.reset_defaults()
