from unittest.mock import AsyncMock

import pytest

from lendind.storage.memory import InMemoryEntityStore


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock()
    rpc.get_logs = AsyncMock(return_value=[])
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.get_block_timestamp = AsyncMock(return_value=1_700_000_000)
    rpc.aclose = AsyncMock()
    return rpc


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def manifest():
    repo = AsyncMock()
    repo.append = AsyncMock()
    return repo
