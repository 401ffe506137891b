"""Shared fixtures for the test suite."""
from collections.abc import Iterator
from pathlib import Path

import pytest
from fakes import FakeModioApi, make_profile

from modio_sync.core.config import Settings
from modio_sync.core.redis import set_redis_client
from modio_sync.services.session import UserSession
from modio_sync.storage.user_data import LocalUserStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, writing user data under tmp_path."""
    return Settings(
        _env_file=None,
        game_id=1,
        game_api_key="test-key",
        user_directory=str(tmp_path / "game-$GAME_ID$"),
        max_page_size=100,
    )


@pytest.fixture
def api() -> FakeModioApi:
    """Fake API with ten mods."""
    return FakeModioApi(mods=[make_profile(i) for i in range(1, 11)])


@pytest.fixture
def user_store(settings: Settings) -> LocalUserStore:
    """User store writing to the test settings' user data path."""
    return LocalUserStore(settings.user_data_path)


@pytest.fixture
def session(user_store: LocalUserStore, api: FakeModioApi) -> UserSession:
    """Session for an authenticated user."""
    session = UserSession(user_store, api)
    session.user.oauth_token = "token-abc"
    return session


@pytest.fixture(autouse=True)
def reset_redis_client() -> Iterator[None]:
    """Keep the global Redis client from leaking between tests."""
    set_redis_client(None)
    yield
    set_redis_client(None)

