"""Shared fixtures.

HTTP is mocked with aioresponses, which patches aiohttp's ClientSession so
the shared session pool can be used unchanged.
"""

import pytest
from aioresponses import aioresponses

import spidey.utils.http_pool as http_pool
from spidey.utils.http_pool import close_session

HOST = "http://spidey.test"


@pytest.fixture(autouse=True)
async def reset_http_session():
    """Reset the shared HTTP session before each test.

    This prevents 'Event loop is closed' errors when tests run in different event loops.
    """
    http_pool._session = None
    yield
    await close_session()


@pytest.fixture
def mock_http():
    with aioresponses() as m:
        yield m


@pytest.fixture
def host() -> str:
    return HOST
