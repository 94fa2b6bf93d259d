"""Pytest fixtures for the tally API tests.

API tests run in-process: each test gets its own VoteStore wrapped in a
fresh application, reached through httpx's ASGI transport.
"""

from typing import AsyncGenerator, List

import httpx
import pytest
from fastapi import FastAPI

from services.tally_api.main import create_app
from services.tally_api.store import VoteStore


@pytest.fixture
def store() -> VoteStore:
    """Empty vote store isolated to one test."""
    return VoteStore()


@pytest.fixture
def app(store: VoteStore) -> FastAPI:
    """Application bound to the test's store."""
    return create_app(store)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for making API requests.

    Returns an async httpx client talking to the app without a network.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        timeout=10.0
    ) as client:
        yield client


@pytest.fixture
def sample_votes() -> List[int]:
    """Candidate IDs for a small election: 1 gets 2 votes, 2 gets 1, 3 gets 3."""
    return [1, 1, 2, 3, 3, 3]


@pytest.fixture
def invalid_vote_bodies() -> List[str]:
    """Raw request bodies that must be rejected with 400."""
    return [
        # Not JSON at all
        "not-json",
        # Empty body
        "",
        # Missing candidate_id (zero sentinel)
        '{"passport": "AB1234567"}',
        # Zero candidate_id
        '{"candidate_id": 0}',
        # Negative candidate_id
        '{"candidate_id": -3}',
        # String candidate_id
        '{"candidate_id": "5"}',
        # Fractional candidate_id
        '{"candidate_id": 5.5}',
        # candidate_id beyond the unsigned 64-bit range
        '{"candidate_id": 18446744073709551616}',
        # Passport of the wrong type
        '{"candidate_id": 5, "passport": 123}',
        # JSON array instead of an object
        "[5]",
    ]


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running"
    )
