"""Read-through Last.fm music cache."""

import logging

from lastfm_provider.application.cache import InMemoryCache
from lastfm_provider.domain.dtos import Album, Artist, Track
from lastfm_provider.domain.ports import MusicCache
from lastfm_provider.infrastructure.music.fetcher import LastFmMusicFetcher

logger = logging.getLogger(__name__)


def _key(kind: str, *parts: str | int | None) -> str:
    # Last.fm lookups are case-insensitive, so are our keys
    return kind + ":" + "\x1f".join(str(p).casefold() for p in parts if p is not None)


class LastFmMusicCache(MusicCache):
    """Caches fetcher results in memory with a TTL.

    Hey future me – this WRAPS the fetcher, it never talks to Last.fm itself. Misses go
    to the fetcher, hits never leave the process. "Not found" is not cached so a typo
    fixed on Last.fm's side shows up on the next lookup.
    """

    def __init__(self, fetcher: LastFmMusicFetcher, ttl_seconds: int = 3600) -> None:
        self.fetcher = fetcher
        self._tracks: InMemoryCache[str, Track] = InMemoryCache(ttl_seconds)
        self._albums: InMemoryCache[str, Album] = InMemoryCache(ttl_seconds)
        self._artists: InMemoryCache[str, Artist] = InMemoryCache(ttl_seconds)
        self._searches: InMemoryCache[str, list[Track]] = InMemoryCache(ttl_seconds)

    async def get_track(self, name: str, artist: str) -> Track | None:
        return await self._tracks.get_or_load(
            _key("track", name, artist),
            lambda: self.fetcher.fetch_track(name, artist),
        )

    async def get_album(self, name: str, artist: str) -> Album | None:
        album = await self._albums.get_or_load(
            _key("album", name, artist),
            lambda: self.fetcher.fetch_album(name, artist),
        )
        if album is not None:
            # Tracklists come for free with the album, remember them too
            for track in album.tracks:
                await self._tracks.set(_key("track", track.name, track.artist), track)
        return album

    async def get_artist(self, name: str) -> Artist | None:
        return await self._artists.get_or_load(
            _key("artist", name),
            lambda: self.fetcher.fetch_artist(name),
        )

    async def search_tracks(
        self, name: str, artist: str | None = None, limit: int = 10
    ) -> list[Track]:
        results = await self._searches.get_or_load(
            _key("search", name, artist, limit),
            lambda: self.fetcher.search_tracks(name, artist, limit),
        )
        return list(results or [])

    async def clear(self) -> None:
        """Drop every cached entry."""
        for cache in (self._tracks, self._albums, self._artists, self._searches):
            await cache.clear()
        logger.debug("Last.fm music cache cleared")

    async def cleanup_expired(self) -> int:
        """Drop expired entries from every cache, returns how many went."""
        removed = 0
        for cache in (self._tracks, self._albums, self._artists, self._searches):
            removed += await cache.cleanup_expired()
        return removed
