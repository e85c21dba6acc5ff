"""Turns user-typed strings and last.fm URLs into host music types."""

import logging
import re
from typing import Any
from urllib.parse import unquote_plus, urlparse

from lastfm_provider.domain.ports import (
    AlbumTypeFactory,
    CollectionTypeFactory,
    MusicCache,
    SongTypeFactory,
    StringIdentifier,
)

logger = logging.getLogger(__name__)

_LASTFM_HOSTS = {"last.fm", "www.last.fm", "m.last.fm"}
_BY_PATTERN = re.compile(r"^\s*(?P<title>.+)\s+by\s+(?P<artist>.+?)\s*$", re.IGNORECASE)


def parse_lastfm_url(text: str) -> tuple[str, ...] | None:
    """Split a last.fm music URL into its decoded path parts after /music/.

    https://www.last.fm/music/Daft+Punk/_/One+More+Time -> ("Daft Punk", "_", "One More Time")
    """
    parsed = urlparse(text.strip())
    if parsed.scheme not in ("http", "https") or parsed.netloc.lower() not in _LASTFM_HOSTS:
        return None

    parts = [p for p in parsed.path.split("/") if p]
    # Localized URLs look like /de/music/...
    if parts and parts[0] != "music" and len(parts) > 1 and parts[1] == "music":
        parts = parts[1:]
    if not parts or parts[0] != "music":
        return None
    return tuple(unquote_plus(p) for p in parts[1:])


def split_title_artist(text: str) -> tuple[str, str] | None:
    """Split "Title by Artist" into (title, artist)."""
    # Greedy title: titles can contain " by " themselves, the artist follows the LAST one
    match = _BY_PATTERN.match(text)
    if match:
        return match.group("title"), match.group("artist")
    return None


class LastFmStringIdentifier(StringIdentifier):
    """Parses songs and albums; Last.fm has no public playlists, so no collections."""

    def __init__(
        self,
        cache: MusicCache,
        song_factory: SongTypeFactory,
        collection_factory: CollectionTypeFactory,
        album_factory: AlbumTypeFactory,
    ) -> None:
        self.cache = cache
        self.song_factory = song_factory
        self.collection_factory = collection_factory
        self.album_factory = album_factory

    async def parse_song(self, text: str) -> Any | None:
        url_parts = parse_lastfm_url(text)
        if url_parts is not None:
            # music/<artist>/_/<track>
            if len(url_parts) < 3 or url_parts[1] != "_":
                return None
            artist, title = url_parts[0], url_parts[2]
        else:
            split = split_title_artist(text)
            if split is None:
                return await self._search_song(text)
            title, artist = split

        track = await self.cache.get_track(title, artist)
        if track is None:
            return None
        return self.song_factory.create_song(track)

    async def _search_song(self, text: str) -> Any | None:
        results = await self.cache.search_tracks(text.strip(), limit=1)
        if not results:
            logger.debug("No Last.fm track matches '%s'", text)
            return None
        return self.song_factory.create_song(results[0])

    async def parse_album(self, text: str) -> Any | None:
        url_parts = parse_lastfm_url(text)
        if url_parts is not None:
            # music/<artist>/<album>
            if len(url_parts) != 2 or url_parts[1] in ("_", "+albums", "+tracks"):
                return None
            artist, title = url_parts
        else:
            split = split_title_artist(text)
            if split is None:
                return None
            title, artist = split

        album = await self.cache.get_album(title, artist)
        if album is None:
            return None
        return self.album_factory.create_album(album)

    async def parse_collection(self, text: str) -> Any | None:
        logger.debug("Last.fm has no playlist support, cannot parse collection '%s'", text)
        return None
