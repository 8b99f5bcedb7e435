"""Integration test fixtures for the HTTP app.

The app is driven through httpx's ASGITransport, which does not run the
lifespan, so the AppState from the root conftest is attached directly.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.scenevault.core.config import Settings
from src.scenevault.core.state import AppState
from src.scenevault.main import create_app
from tests.helpers import DEFAULT_TEST_PASSWORD


@pytest.fixture
def app(settings: Settings, app_state: AppState) -> FastAPI:
    app = create_app(settings)
    app.state.scenevault = app_state
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def other_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """A second client with its own cookie jar, for a second user."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def register(
    client: AsyncClient, username: str, password: str = DEFAULT_TEST_PASSWORD
) -> dict:
    """Register through the API (which also logs in) and return the user."""
    response = await client.post(
        "/api/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()["user"]


@pytest.fixture
async def alice(client: AsyncClient) -> dict:
    return await register(client, "alice")


@pytest.fixture
async def bob(other_client: AsyncClient) -> dict:
    return await register(other_client, "bob")
