"""Builds the provider's component graph once authorization succeeded."""

import logging
from dataclasses import dataclass

from lastfm_provider.config.settings import ProviderSettings, get_settings
from lastfm_provider.domain.dtos import AuthorizedSession
from lastfm_provider.domain.ports import OrchestratorFactory, TrackOrchestrator
from lastfm_provider.infrastructure.music import (
    LastFmMusicCache,
    LastFmMusicFetcher,
    LastFmMusicStrategies,
    LastFmMusicTypeConverter,
    ReroutablePlayActor,
)
from lastfm_provider.infrastructure.music.strategies import FuzzyBestMatchStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentGraph:
    """Everything initialize() builds. The references never change after READY."""

    fetcher: LastFmMusicFetcher
    cache: LastFmMusicCache
    play_actor: ReroutablePlayActor
    orchestrator: TrackOrchestrator
    type_converter: LastFmMusicTypeConverter
    strategies: LastFmMusicStrategies


class ComponentGraphBuilder:
    """Constructs the graph in dependency order.

    Hey future me – the ORDER is the contract, later components may use earlier ones:
    1. fetcher        (session only)
    2. cache          (wraps fetcher)
    3. play actor     (independent, reroutable later)
    4. orchestrator   (host factory gets play actor + cache)
    5. type converter (cache)
    6. strategies     (independent)

    The string identifier is NOT in here - it needs host type factories we only get
    on the first get_string_identifier() call.

    build() has no failure mode of its own. If it raises, that's a bug (ours or the
    orchestrator factory's), not something to retry.
    """

    def __init__(self, settings: ProviderSettings | None = None) -> None:
        self.settings = settings or get_settings()

    def build(
        self, session: AuthorizedSession, orchestrator_factory: OrchestratorFactory
    ) -> ComponentGraph:
        fetcher = LastFmMusicFetcher(session)
        cache = LastFmMusicCache(fetcher, ttl_seconds=self.settings.cache_ttl_seconds)
        play_actor = ReroutablePlayActor()
        orchestrator = orchestrator_factory(play_actor, cache)
        type_converter = LastFmMusicTypeConverter(
            cache, resolver=FuzzyBestMatchStrategy(self.settings.match_threshold)
        )
        strategies = LastFmMusicStrategies(self.settings.match_threshold)

        logger.debug("Component graph built for session %r", session)
        return ComponentGraph(
            fetcher=fetcher,
            cache=cache,
            play_actor=play_actor,
            orchestrator=orchestrator,
            type_converter=type_converter,
            strategies=strategies,
        )
