"""Root test fixtures shared across all test types.

Integration fixtures (ASGI app and HTTP client) are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
# Cheap Argon2 parameters; the hasher is built at import time
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.scenevault.core.config import Settings, get_settings
from src.scenevault.core.locks import KeyedLock
from src.scenevault.core.shutdown import MutationTracker
from src.scenevault.core.state import AppState
from src.scenevault.core.storage import JSONFileStore
from src.scenevault.services import AuthService, ProjectService
from tests.helpers import TEST_BACKUP_RETENTION

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"

@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return Settings(
        app_env="testing",
        data_dir=data_dir,
        backup_retention=TEST_BACKUP_RETENTION,
        shutdown_grace_period=1,
    )

@pytest.fixture
def store(data_dir: Path) -> JSONFileStore:
    return JSONFileStore(data_dir)

@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()

@pytest.fixture
def tracker() -> MutationTracker:
    return MutationTracker()

@pytest.fixture
async def auth_service(
    store: JSONFileStore, locks: KeyedLock, tracker: MutationTracker, settings: Settings
) -> AuthService:
    service = AuthService(store, locks, tracker, settings)
    await service.ensure_namespaces()
    return service

@pytest.fixture
async def project_service(
    store: JSONFileStore, locks: KeyedLock, tracker: MutationTracker
) -> ProjectService:
    service = ProjectService(store, locks, tracker, backup_retention=TEST_BACKUP_RETENTION)
    await service.ensure_namespaces()
    return service

@pytest.fixture
async def app_state(settings: Settings) -> AsyncGenerator[AppState]:
    state = await AppState.open(settings)
    yield state
    await state.close(timeout=1.0)
