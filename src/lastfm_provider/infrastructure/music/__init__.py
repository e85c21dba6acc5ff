"""Components built once the provider is authorized."""

from lastfm_provider.infrastructure.music.cache import LastFmMusicCache
from lastfm_provider.infrastructure.music.fetcher import LastFmMusicFetcher
from lastfm_provider.infrastructure.music.play_actor import ReroutablePlayActor
from lastfm_provider.infrastructure.music.strategies import LastFmMusicStrategies
from lastfm_provider.infrastructure.music.string_identifier import LastFmStringIdentifier
from lastfm_provider.infrastructure.music.type_converter import LastFmMusicTypeConverter

__all__ = [
    "LastFmMusicCache",
    "LastFmMusicFetcher",
    "LastFmMusicStrategies",
    "LastFmMusicTypeConverter",
    "LastFmStringIdentifier",
    "ReroutablePlayActor",
]
