"""Pytest configuration and shared fixtures."""

import asyncio

import pytest
import pytest_asyncio

from tsserver_client.client import create_mock_client

# Upper bound for awaiting anything the read loop should deliver promptly
DELIVERY_TIMEOUT = 2.0


@pytest.fixture
def settle():
    """Await a future the read loop is expected to complete promptly."""

    async def _settle(future):
        return await asyncio.wait_for(future, timeout=DELIVERY_TIMEOUT)

    return _settle


@pytest_asyncio.fixture
async def mock_client():
    """A started client backed by an in-memory supervisor."""
    client, supervisor = create_mock_client()
    await client.start()
    yield client, supervisor
    if client.is_running:
        await client.stop()
