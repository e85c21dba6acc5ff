"""Tests for the LastFmServiceProvider lifecycle.

Hey future me - these tests pin the state machine:
1. Config errors are raised synchronously, nothing async ever starts
2. Authorization is the only await; failure leaves the provider FAILED
3. The graph is only reachable once READY, and is then published to the registry
4. get_string_identifier() is compute-once
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from lastfm_provider.application.services import LastFmServiceProvider, ProviderState
from lastfm_provider.config import PackageConfig
from lastfm_provider.domain.dtos import AuthorizedSession, PlayResult, Track
from lastfm_provider.domain.exceptions import (
    AuthError,
    ConfigError,
    MissingConfigError,
    ProviderStateError,
    RegistryEmptyError,
    UninitializedAccessError,
)
from lastfm_provider.domain.ports import Authorizer, PlayActor
from lastfm_provider.infrastructure.music import LastFmMusicCache, ReroutablePlayActor
from lastfm_provider.infrastructure.observability import get_correlation_id, set_correlation_id
from lastfm_provider.infrastructure.persistence import close_database, get_database
from lastfm_provider.infrastructure.providers import ActiveInstanceRegistry

REQUIRED = ["apiKey", "apiSecret", "dbUrl", "dbUsername", "dbPassword"]

ACCESSORS = [
    ("get_music_cache", "MusicCache"),
    ("get_music_fetcher", "MusicFetcher"),
    ("get_track_orchestrator", "TrackOrchestrator"),
    ("get_music_strategies", "MusicStrategies"),
    ("get_music_type_converter", "MusicTypeConverter"),
    ("get_play_actor", "PlayActor"),
]


def make_provider(registry, authorizer, settings, database_initializer=None):
    return LastFmServiceProvider(
        registry=registry,
        authorizer_factory=lambda config: authorizer,
        settings=settings,
        database_initializer=database_initializer or MagicMock(),
    )


class BlockingAuthorizer(Authorizer):
    """Never finishes on its own - models a handshake the user never approves."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def authorize(self) -> AuthorizedSession:
        self.started.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


class RecordingPlayActor(PlayActor):
    def __init__(self) -> None:
        self.played: list[Track] = []

    async def play_track(self, track: Track) -> PlayResult:
        self.played.append(track)
        return PlayResult.PLAYED


class TestConfigValidation:
    """initialize() must reject incomplete config synchronously."""

    async def test_empty_db_url_names_only_db_url(
        self, registry, ok_authorizer, settings, orchestrator_factory
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        config = {"apiKey": "k", "apiSecret": "s", "dbUrl": "", "dbUsername": "u", "dbPassword": "p"}

        with pytest.raises(MissingConfigError) as exc_info:
            provider.initialize(orchestrator_factory, config)

        assert exc_info.value.missing_options == ["dbUrl"]
        assert provider.state is ProviderState.FAILED
        assert ok_authorizer.calls == 0

    @pytest.mark.parametrize(
        "missing",
        [
            ["apiKey"],
            ["apiSecret"],
            ["dbUsername", "dbPassword"],
            ["apiKey", "dbUrl", "dbPassword"],
            REQUIRED,
        ],
    )
    async def test_lists_exactly_the_missing_keys(
        self, missing, registry, ok_authorizer, settings, orchestrator_factory
    ):
        database_initializer = MagicMock()
        provider = make_provider(registry, ok_authorizer, settings, database_initializer)
        config = {key: "x" for key in REQUIRED if key not in missing}

        with pytest.raises(MissingConfigError) as exc_info:
            provider.initialize(orchestrator_factory, config)

        assert exc_info.value.missing_options == missing
        database_initializer.assert_not_called()
        for accessor, _ in ACCESSORS:
            with pytest.raises(UninitializedAccessError):
                getattr(provider, accessor)()

    async def test_invalid_db_url_is_config_error(
        self, registry, ok_authorizer, settings, orchestrator_factory
    ):
        provider = LastFmServiceProvider(
            registry=registry,
            authorizer_factory=lambda config: ok_authorizer,
            settings=settings,
        )
        config = PackageConfig({**dict.fromkeys(REQUIRED, "x"), "dbUrl": "not a url"})

        with pytest.raises(ConfigError):
            provider.initialize(orchestrator_factory, config)

        assert provider.state is ProviderState.FAILED

    async def test_sync_database_driver_is_config_error(
        self, registry, ok_authorizer, settings, orchestrator_factory, tmp_path
    ):
        provider = LastFmServiceProvider(
            registry=registry,
            authorizer_factory=lambda config: ok_authorizer,
            settings=settings,
        )
        sync_url = f"sqlite:///{tmp_path / 'x.db'}"
        config = PackageConfig({**dict.fromkeys(REQUIRED, "x"), "dbUrl": sync_url})

        with pytest.raises(ConfigError, match="Cannot create database engine"):
            provider.initialize(orchestrator_factory, config)

        assert provider.state is ProviderState.FAILED
        assert ok_authorizer.calls == 0

    def test_initialize_requires_running_loop(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)

        with pytest.raises(RuntimeError):
            provider.initialize(orchestrator_factory, valid_config)

        assert provider.state is ProviderState.UNINITIALIZED


class TestSuccessfulInitialization:
    """Valid config + successful handshake -> READY with a full graph."""

    async def test_reaches_ready_and_publishes(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)

        task = provider.initialize(orchestrator_factory, valid_config)
        assert provider.state is ProviderState.AUTHORIZING
        await task

        assert provider.state is ProviderState.READY
        assert registry.get() is provider
        assert ok_authorizer.calls == 1

    async def test_cache_wraps_constructed_fetcher(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)

        cache = provider.get_music_cache()
        assert isinstance(cache, LastFmMusicCache)
        assert cache.fetcher is provider.get_music_fetcher()

    async def test_orchestrator_receives_play_actor_and_cache(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)

        orchestrator = provider.get_track_orchestrator()
        assert orchestrator.play_actor is provider.get_play_actor()
        assert orchestrator.cache is provider.get_music_cache()

    async def test_play_actor_can_be_rerouted_without_rebuilding(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)
        track = Track(name="One More Time", artist="Daft Punk")

        play_actor = provider.get_play_actor()
        assert isinstance(play_actor, ReroutablePlayActor)
        assert await provider.get_track_orchestrator().play(track) is PlayResult.NO_ROUTE

        target = RecordingPlayActor()
        play_actor.reroute(target)

        assert await provider.get_track_orchestrator().play(track) is PlayResult.PLAYED
        assert target.played == [track]
        assert provider.get_play_actor() is play_actor

    async def test_accessors_fail_while_authorizing(
        self, registry, settings, orchestrator_factory, valid_config
    ):
        authorizer = BlockingAuthorizer()
        provider = make_provider(registry, authorizer, settings)

        task = provider.initialize(orchestrator_factory, valid_config)
        await authorizer.started.wait()

        for accessor, component in ACCESSORS:
            with pytest.raises(UninitializedAccessError) as exc_info:
                getattr(provider, accessor)()
            assert component in str(exc_info.value)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_lifecycle_order(self, registry, settings, valid_config):
        events: list[str] = []

        class RecordingAuthorizer(Authorizer):
            async def authorize(self) -> AuthorizedSession:
                events.append("authorize")
                return AuthorizedSession(client=MagicMock(), session_key="key")

        def orchestrator_factory(play_actor, cache):
            events.append("build")
            return MagicMock()

        provider = make_provider(
            registry,
            RecordingAuthorizer(),
            settings,
            database_initializer=lambda *args: events.append("validate"),
        )
        task = provider.initialize(orchestrator_factory, valid_config)
        assert events == ["validate"]

        await task
        assert events == ["validate", "authorize", "build"]

    async def test_real_database_is_bootstrapped(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = LastFmServiceProvider(
            registry=registry,
            authorizer_factory=lambda config: ok_authorizer,
            settings=settings,
        )
        try:
            await provider.initialize(orchestrator_factory, valid_config)
            assert get_database().url.get_backend_name() == "sqlite"
        finally:
            await close_database()

    async def test_default_authorizer_uses_configured_session_key(
        self, registry, settings, orchestrator_factory, valid_config
    ):
        provider = LastFmServiceProvider(
            registry=registry, settings=settings, database_initializer=MagicMock()
        )
        config = PackageConfig({**valid_config, "sessionKey": "stored-key"})

        await provider.initialize(orchestrator_factory, config)

        fetcher = provider.get_music_fetcher()
        assert fetcher.session.session_key == "stored-key"
        assert fetcher.client.api_key == "k"

    async def test_shutdown_is_noop(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)

        provider.shutdown()

        assert provider.state is ProviderState.READY
        assert provider.get_music_cache() is not None

    async def test_correlation_id_does_not_leak_to_caller(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        set_correlation_id("caller-id")
        provider = make_provider(registry, ok_authorizer, settings)

        await provider.initialize(orchestrator_factory, valid_config)

        assert get_correlation_id() == "caller-id"


class TestFailedAuthorization:
    """A failed handshake is fatal to the attempt."""

    async def test_auth_error_fails_task_and_provider(
        self, registry, failing_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, failing_authorizer, settings)

        task = provider.initialize(orchestrator_factory, valid_config)
        with pytest.raises(AuthError):
            await task

        assert provider.state is ProviderState.FAILED

    async def test_all_accessors_fail_after_auth_error(
        self, registry, failing_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, failing_authorizer, settings)
        with pytest.raises(AuthError):
            await provider.initialize(orchestrator_factory, valid_config)

        for accessor, _ in ACCESSORS:
            with pytest.raises(UninitializedAccessError):
                getattr(provider, accessor)()
        with pytest.raises(UninitializedAccessError):
            provider.get_string_identifier(MagicMock(), MagicMock(), MagicMock())
        with pytest.raises(RegistryEmptyError):
            registry.get()

    async def test_build_is_unreachable_on_auth_failure(
        self, registry, failing_authorizer, settings, valid_config
    ):
        orchestrator_factory = MagicMock()
        provider = make_provider(registry, failing_authorizer, settings)

        with pytest.raises(AuthError):
            await provider.initialize(orchestrator_factory, valid_config)

        orchestrator_factory.assert_not_called()

    async def test_unexpected_authorizer_error_becomes_auth_error(
        self, registry, settings, orchestrator_factory, valid_config, static_authorizer
    ):
        cause = KeyError("session")
        provider = make_provider(registry, static_authorizer(error=cause), settings)

        with pytest.raises(AuthError) as exc_info:
            await provider.initialize(orchestrator_factory, valid_config)

        assert exc_info.value.__cause__ is cause
        assert provider.state is ProviderState.FAILED

    async def test_previous_active_instance_survives_failure(
        self, registry, ok_authorizer, failing_authorizer, settings, orchestrator_factory, valid_config
    ):
        good = make_provider(registry, ok_authorizer, settings)
        await good.initialize(orchestrator_factory, valid_config)

        bad = make_provider(registry, failing_authorizer, settings)
        with pytest.raises(AuthError):
            await bad.initialize(orchestrator_factory, valid_config)

        assert registry.get() is good

    async def test_cancelled_authorization_stays_authorizing(
        self, registry, settings, orchestrator_factory, valid_config
    ):
        authorizer = BlockingAuthorizer()
        provider = make_provider(registry, authorizer, settings)

        task = provider.initialize(orchestrator_factory, valid_config)
        await authorizer.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert provider.state is ProviderState.AUTHORIZING
        assert registry.peek() is None


class TestBuildFailure:
    """An exception while building the graph is a bug, not a retryable condition."""

    async def test_orchestrator_factory_error_fails_provider(
        self, registry, ok_authorizer, settings, valid_config
    ):
        def broken_factory(play_actor, cache):
            raise RuntimeError("boom")

        provider = make_provider(registry, ok_authorizer, settings)

        with pytest.raises(RuntimeError, match="boom"):
            await provider.initialize(broken_factory, valid_config)

        assert provider.state is ProviderState.FAILED
        assert registry.peek() is None


class TestReinitialization:
    """initialize() twice on one instance."""

    async def test_rejected_when_ready(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)
        cache = provider.get_music_cache()

        with pytest.raises(ProviderStateError):
            provider.initialize(orchestrator_factory, valid_config)

        assert provider.get_music_cache() is cache
        assert ok_authorizer.calls == 1

    async def test_rejected_while_authorizing(
        self, registry, settings, orchestrator_factory, valid_config
    ):
        authorizer = BlockingAuthorizer()
        provider = make_provider(registry, authorizer, settings)
        task = provider.initialize(orchestrator_factory, valid_config)

        with pytest.raises(ProviderStateError):
            provider.initialize(orchestrator_factory, valid_config)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_allowed_after_failure(
        self, registry, session, settings, orchestrator_factory, valid_config, static_authorizer
    ):
        authorizers = iter(
            [static_authorizer(error=AuthError("network down")), static_authorizer(session=session)]
        )
        provider = LastFmServiceProvider(
            registry=registry,
            authorizer_factory=lambda config: next(authorizers),
            settings=settings,
            database_initializer=MagicMock(),
        )

        with pytest.raises(AuthError):
            await provider.initialize(orchestrator_factory, valid_config)
        await provider.initialize(orchestrator_factory, valid_config)

        assert provider.state is ProviderState.READY
        assert registry.get() is provider

    async def test_retry_reuses_database_engine(
        self, registry, session, settings, orchestrator_factory, valid_config, static_authorizer
    ):
        authorizers = iter(
            [static_authorizer(error=AuthError("network down")), static_authorizer(session=session)]
        )
        provider = LastFmServiceProvider(
            registry=registry,
            authorizer_factory=lambda config: next(authorizers),
            settings=settings,
        )
        try:
            with pytest.raises(AuthError):
                await provider.initialize(orchestrator_factory, valid_config)
            first = get_database()

            await provider.initialize(orchestrator_factory, valid_config)

            assert provider.state is ProviderState.READY
            assert get_database() is first
        finally:
            await close_database()


class TestActiveInstance:
    """Registry semantics as seen through providers."""

    async def test_last_ready_provider_wins(
        self, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        registry = ActiveInstanceRegistry()
        first = make_provider(registry, ok_authorizer, settings)
        second = make_provider(registry, ok_authorizer, settings)

        await first.initialize(orchestrator_factory, valid_config)
        assert registry.get() is first

        await second.initialize(orchestrator_factory, valid_config)
        assert registry.get() is second

    def test_empty_registry_raises(self):
        with pytest.raises(RegistryEmptyError):
            ActiveInstanceRegistry().get()


class TestStringIdentifier:
    """get_string_identifier() is a compute-once cell."""

    async def test_first_factories_win(
        self, registry, ok_authorizer, settings, orchestrator_factory, valid_config
    ):
        provider = make_provider(registry, ok_authorizer, settings)
        await provider.initialize(orchestrator_factory, valid_config)
        first_factories = (MagicMock(), MagicMock(), MagicMock())

        first = provider.get_string_identifier(*first_factories)
        second = provider.get_string_identifier(MagicMock(), MagicMock(), MagicMock())

        assert first is second
        assert first.song_factory is first_factories[0]
        assert first.collection_factory is first_factories[1]
        assert first.album_factory is first_factories[2]
        assert first.cache is provider.get_music_cache()

    async def test_fails_before_ready(self, registry, ok_authorizer, settings):
        provider = make_provider(registry, ok_authorizer, settings)

        with pytest.raises(UninitializedAccessError, match="StringIdentifier"):
            provider.get_string_identifier(MagicMock(), MagicMock(), MagicMock())

    def test_name(self, registry, ok_authorizer, settings):
        assert make_provider(registry, ok_authorizer, settings).name == "LastFm"
