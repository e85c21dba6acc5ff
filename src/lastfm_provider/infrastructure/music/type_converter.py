"""Converts music values from other providers into Last.fm ones."""

import logging

from lastfm_provider.domain.dtos import Album, Track
from lastfm_provider.domain.ports import MusicCache, MusicTypeConverter, TrackResolveStrategy
from lastfm_provider.infrastructure.music.strategies import FuzzyBestMatchStrategy

logger = logging.getLogger(__name__)


class LastFmMusicTypeConverter(MusicTypeConverter):
    """Resolves foreign tracks/albums through the Last.fm cache.

    Tracks: exact lookup first, then a search whose results go through the resolver
    (fuzzy best match by default) - other services spell titles differently
    ("Song - Remastered 2011" vs "Song").
    """

    def __init__(self, cache: MusicCache, resolver: TrackResolveStrategy | None = None) -> None:
        self.cache = cache
        self.resolver = resolver or FuzzyBestMatchStrategy()

    async def convert_track(self, track: Track) -> Track | None:
        found = await self.cache.get_track(track.name, track.artist)
        if found is not None:
            return found

        candidates = await self.cache.search_tracks(track.name, track.artist)
        resolved = self.resolver.resolve(track, candidates)
        if resolved is None:
            logger.info("Could not convert %s by %s to a Last.fm track", track.name, track.artist)
        return resolved

    async def convert_album(self, album: Album) -> Album | None:
        found = await self.cache.get_album(album.name, album.artist)
        if found is None:
            logger.info("Could not convert album %s by %s", album.name, album.artist)
        return found
