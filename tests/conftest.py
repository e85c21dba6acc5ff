"""Shared fixtures for Last.fm provider tests."""

from unittest.mock import MagicMock

import pytest

from lastfm_provider.config import PackageConfig, ProviderSettings
from lastfm_provider.domain.dtos import AuthorizedSession, PlayResult, Track
from lastfm_provider.domain.exceptions import AuthError
from lastfm_provider.domain.ports import Authorizer, ILastfmClient, MusicCache, PlayActor
from lastfm_provider.infrastructure.providers import ActiveInstanceRegistry

VALID_OPTIONS = {
    "apiKey": "k",
    "apiSecret": "s",
    "dbUrl": "sqlite+aiosqlite:///:memory:",
    "dbUsername": "u",
    "dbPassword": "p",
}


class FakeOrchestrator:
    """Stand-in for the host's TrackOrchestrator."""

    def __init__(self, play_actor: PlayActor, cache: MusicCache) -> None:
        self.play_actor = play_actor
        self.cache = cache

    async def play(self, track: Track) -> PlayResult:
        return await self.play_actor.play_track(track)


class StaticAuthorizer(Authorizer):
    """Authorizer that succeeds or fails without touching the network."""

    def __init__(self, session: AuthorizedSession | None = None, error: Exception | None = None):
        self.session = session
        self.error = error
        self.calls = 0

    async def authorize(self) -> AuthorizedSession:
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert self.session is not None
        return self.session


@pytest.fixture
def settings() -> ProviderSettings:
    """Settings with fast auth polling."""
    return ProviderSettings(
        api_base_url="https://ws.audioscrobbler.com/2.0/",
        auth_poll_interval=0,
        auth_max_attempts=3,
        cache_ttl_seconds=60,
    )


@pytest.fixture
def valid_config() -> PackageConfig:
    return PackageConfig(VALID_OPTIONS)


@pytest.fixture
def registry() -> ActiveInstanceRegistry:
    return ActiveInstanceRegistry()


@pytest.fixture
def mock_client() -> MagicMock:
    """ILastfmClient mock; spec turns the async methods into AsyncMocks."""
    client = MagicMock(spec=ILastfmClient)
    client.api_key = "k"
    return client


@pytest.fixture
def session(mock_client: MagicMock) -> AuthorizedSession:
    return AuthorizedSession(client=mock_client, session_key="session-key", username="tester")


@pytest.fixture
def ok_authorizer(session: AuthorizedSession) -> StaticAuthorizer:
    return StaticAuthorizer(session=session)


@pytest.fixture
def failing_authorizer() -> StaticAuthorizer:
    return StaticAuthorizer(error=AuthError("Invalid API key", error_code=10))


@pytest.fixture
def orchestrator_factory() -> type[FakeOrchestrator]:
    """The class itself is a valid (play_actor, cache) -> orchestrator factory."""
    return FakeOrchestrator


@pytest.fixture
def static_authorizer() -> type[StaticAuthorizer]:
    """Build authorizers with a custom outcome: static_authorizer(error=...)."""
    return StaticAuthorizer
