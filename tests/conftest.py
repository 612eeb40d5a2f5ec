"""
Pytest fixtures shared by the unit tests.

Provides fixtures for:
- ApiResult builders for canned upstream responses
- A mocked GTExClient whose coroutines return those results
- A real GTExClient wired to an httpx.MockTransport
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.schemas import ApiResult, PagingInfo


@pytest.fixture
def ok():
    """Build a successful ApiResult, optionally with a total item count."""

    def build(data, total=None) -> ApiResult:
        paging = PagingInfo(totalNumberOfItems=total) if total is not None else None
        return ApiResult(data=data, paging_info=paging)

    return build


@pytest.fixture
def failed():
    """Build a failed ApiResult (404 by default)."""

    def build(message="Not Found: The requested resource was not found.", status=404) -> ApiResult:
        return ApiResult(error=message, status=status)

    return build


@pytest.fixture
def mock_client():
    """
    GTExClient stand-in.

    Every endpoint coroutine is an AsyncMock; tests set return values on
    the ones they exercise.
    """
    client = AsyncMock(spec=GTExClient)
    client.default_dataset_id = "gtex_v8"
    return client


@pytest.fixture
async def transport_client():
    """
    Factory for a real GTExClient backed by a request handler.

    Usage:
        client = transport_client(lambda request: httpx.Response(200, json={...}))
    """
    clients = []

    def factory(handler):
        client = GTExClient(
            base_url="https://gtex.test/api/v2",
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
