"""Last.fm service provider lifecycle.

Hey future me - this is the state machine the host drives:

    UNINITIALIZED --initialize()--> AUTHORIZING --authorized + built--> READY
                         |                   \\
                         | bad config         \\--auth failed / build bug--> FAILED
                         v
                       FAILED  (ConfigError raised synchronously)

initialize() is split in two on purpose:
1. SYNC: validate config (+ bootstrap the database). Fails by raising right away.
2. ASYNC: a Task that authorizes (the ONLY await), then builds the component graph and
   publishes the provider. Fails through the Task (AuthError).

Accessors never wait for READY. Ask too early and you get UninitializedAccessError.
"""

import asyncio
import contextvars
import logging
import threading
from collections.abc import Callable, Mapping
from enum import Enum

from lastfm_provider.application.services.authorization import (
    AuthorizationGate,
    AuthorizerFactory,
)
from lastfm_provider.application.services.component_graph import (
    ComponentGraph,
    ComponentGraphBuilder,
)
from lastfm_provider.application.services.config_validator import (
    ConfigValidator,
    ValidatedConfig,
)
from lastfm_provider.config.package_config import PackageConfig
from lastfm_provider.config.settings import ProviderSettings, get_settings
from lastfm_provider.domain.exceptions import (
    AuthError,
    ConfigError,
    ProviderStateError,
    UninitializedAccessError,
)
from lastfm_provider.domain.ports import (
    AlbumTypeFactory,
    Authorizer,
    CollectionTypeFactory,
    MusicCache,
    MusicFetcher,
    MusicStrategies,
    MusicTypeConverter,
    OrchestratorFactory,
    PlayActor,
    ServiceProvider,
    SongTypeFactory,
    StringIdentifier,
    TrackOrchestrator,
)
from lastfm_provider.infrastructure.auth import LastFmAuthorizer
from lastfm_provider.infrastructure.integrations import LastfmClient
from lastfm_provider.infrastructure.music import LastFmStringIdentifier
from lastfm_provider.infrastructure.observability import set_correlation_id
from lastfm_provider.infrastructure.persistence import initialize_database
from lastfm_provider.infrastructure.providers import (
    ActiveInstanceRegistry,
    get_default_registry,
)

logger = logging.getLogger(__name__)

DatabaseInitializer = Callable[[str, str, str], object]


class ProviderState(str, Enum):
    """Where a provider is in its lifecycle."""

    UNINITIALIZED = "uninitialized"
    AUTHORIZING = "authorizing"
    READY = "ready"
    FAILED = "failed"


class LastFmServiceProvider(ServiceProvider):
    """Supplies the Last.fm music stack to the host."""

    def __init__(
        self,
        registry: ActiveInstanceRegistry | None = None,
        authorizer_factory: AuthorizerFactory | None = None,
        settings: ProviderSettings | None = None,
        database_initializer: DatabaseInitializer = initialize_database,
    ) -> None:
        """
        Args:
            registry: Where to publish this provider once READY (default: process-wide one)
            authorizer_factory: Builds the Authorizer from validated config (default: Last.fm)
            settings: Provider settings, defaults to get_settings()
            database_initializer: Bootstraps persistence from dbUrl/dbUsername/dbPassword
        """
        self.settings = settings or get_settings()
        self.registry = registry or get_default_registry()
        self._validator = ConfigValidator()
        self._gate = AuthorizationGate(authorizer_factory or self._default_authorizer)
        self._builder = ComponentGraphBuilder(self.settings)
        self._database_initializer = database_initializer

        self._state = ProviderState.UNINITIALIZED
        self._graph: ComponentGraph | None = None
        self._string_identifier: StringIdentifier | None = None
        self._string_identifier_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "LastFm"

    @property
    def state(self) -> ProviderState:
        return self._state

    def _default_authorizer(self, config: ValidatedConfig) -> Authorizer:
        client = LastfmClient(config.api_key, config.api_secret, self.settings)
        return LastFmAuthorizer(client, session_key=config.get("sessionKey"), settings=self.settings)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(
        self,
        orchestrator_factory: OrchestratorFactory,
        config: PackageConfig | Mapping[str, str],
    ) -> "asyncio.Task[None]":
        """
        Start initializing the provider.

        Must be called from a running event loop.

        Args:
            orchestrator_factory: Host hook building the TrackOrchestrator from (play actor, cache)
            config: Loaded package configuration

        Returns:
            Task that completes once the provider is READY, or fails with AuthError

        Raises:
            ConfigError: Synchronously, if config is incomplete or unusable
            ProviderStateError: If this provider is already authorizing or ready
            RuntimeError: If there is no running event loop
        """
        if self._state in (ProviderState.AUTHORIZING, ProviderState.READY):
            raise ProviderStateError(
                f"{self.name} provider is already {self._state.value}, create a new instance instead"
            )

        loop = asyncio.get_running_loop()
        if not isinstance(config, PackageConfig):
            config = PackageConfig(config)

        # One correlation id per attempt, shared by the sync part and the task, without
        # leaking into the caller's context
        context = contextvars.copy_context()
        context.run(set_correlation_id)
        validated = context.run(self._validate, config)

        self._state = ProviderState.AUTHORIZING
        return loop.create_task(
            self._authorize_and_build(validated, orchestrator_factory),
            name=f"{self.name}-initialize",
            context=context,
        )

    def _validate(self, config: PackageConfig) -> ValidatedConfig:
        logger.info("Initializing %s provider", self.name)
        try:
            validated = self._validator.validate(config)
            self._database_initializer(
                validated.db_url, validated.db_username, validated.db_password
            )
        except ConfigError:
            self._state = ProviderState.FAILED
            raise
        return validated

    async def _authorize_and_build(
        self, config: ValidatedConfig, orchestrator_factory: OrchestratorFactory
    ) -> None:
        # If this await is cancelled we stay AUTHORIZING, timeouts are the caller's business
        try:
            session = await self._gate.authorize(config)
        except AuthError:
            self._state = ProviderState.FAILED
            logger.error("%s provider failed to authorize", self.name)
            raise

        try:
            graph = self._builder.build(session, orchestrator_factory)
        except Exception:
            self._state = ProviderState.FAILED
            logger.exception("Building the %s component graph failed", self.name)
            raise

        self._graph = graph
        self._state = ProviderState.READY
        self.registry.publish(self)
        logger.info("%s provider ready", self.name)

    def shutdown(self) -> None:
        """Nothing to release: sessions and persistence manage their own lifecycle."""
        logger.debug("%s provider shutdown requested", self.name)

    # =========================================================================
    # Guarded accessors
    # =========================================================================

    def _require_graph(self, component_name: str) -> ComponentGraph:
        graph = self._graph
        if self._state is not ProviderState.READY or graph is None:
            raise UninitializedAccessError(component_name)
        return graph

    def get_music_cache(self) -> MusicCache:
        return self._require_graph("MusicCache").cache

    def get_music_fetcher(self) -> MusicFetcher:
        return self._require_graph("MusicFetcher").fetcher

    def get_track_orchestrator(self) -> TrackOrchestrator:
        return self._require_graph("TrackOrchestrator").orchestrator

    def get_music_strategies(self) -> MusicStrategies:
        return self._require_graph("MusicStrategies").strategies

    def get_music_type_converter(self) -> MusicTypeConverter:
        return self._require_graph("MusicTypeConverter").type_converter

    def get_play_actor(self) -> PlayActor:
        return self._require_graph("PlayActor").play_actor

    # Hey future me – compute-once cell! The FIRST caller's factories win forever, later
    # calls get the same identifier back no matter which factories they pass. The lock
    # makes check-and-set atomic if two threads race on the first call.
    def get_string_identifier(
        self,
        song_factory: SongTypeFactory,
        collection_factory: CollectionTypeFactory,
        album_factory: AlbumTypeFactory,
    ) -> StringIdentifier:
        graph = self._require_graph("StringIdentifier")
        with self._string_identifier_lock:
            if self._string_identifier is None:
                self._string_identifier = LastFmStringIdentifier(
                    graph.cache, song_factory, collection_factory, album_factory
                )
            return self._string_identifier
