"""Last.fm music fetcher - raw API payloads in, DTOs out."""

import logging
from typing import Any

from lastfm_provider.domain.dtos import Album, Artist, AuthorizedSession, Track
from lastfm_provider.domain.ports import MusicFetcher

logger = logging.getLogger(__name__)


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _artist_name(raw: Any) -> str:
    # track.getInfo nests {"name": ...}, track.search and album tracks send a plain string
    if isinstance(raw, dict):
        return str(raw.get("name") or raw.get("#text") or "")
    return str(raw or "")


def _is_complete(data: dict[str, Any]) -> bool:
    """Whether a track payload has the name and artist a Track needs."""
    return bool(str(data.get("name") or "").strip() and _artist_name(data.get("artist")).strip())


def track_from_payload(
    data: dict[str, Any], album: str | None = None, duration_in_seconds: bool = False
) -> Track:
    """Convert a Last.fm track payload to a Track.

    track.getInfo reports duration in milliseconds, album.getInfo tracklists in seconds.
    """
    album_data = data.get("album")
    if album is None and isinstance(album_data, dict):
        album = album_data.get("title") or album_data.get("#text")

    duration = _int_or_none(data.get("duration"))
    if duration is not None and duration_in_seconds:
        duration *= 1000
    return Track(
        name=str(data["name"]),
        artist=_artist_name(data.get("artist")),
        album=album or None,
        mbid=data.get("mbid") or None,
        url=data.get("url") or None,
        duration_ms=duration or None,
        listeners=_int_or_none(data.get("listeners")),
    )


class LastFmMusicFetcher(MusicFetcher):
    """Fetches tracks, albums and artists from Last.fm.

    Only needs the authorized session; the client inside it carries the credentials.
    """

    def __init__(self, session: AuthorizedSession) -> None:
        self.session = session
        self.client = session.client

    async def fetch_track(self, name: str, artist: str) -> Track | None:
        data = await self.client.get_track_info(artist=artist, track=name)
        if not data:
            logger.debug("Track not found on Last.fm: %s by %s", name, artist)
            return None
        return track_from_payload(data)

    async def fetch_album(self, name: str, artist: str) -> Album | None:
        data = await self.client.get_album_info(artist=artist, album=name)
        if not data:
            logger.debug("Album not found on Last.fm: %s by %s", name, artist)
            return None

        album_name = str(data.get("name") or name)
        raw_tracks = (data.get("tracks") or {}).get("track", [])
        if isinstance(raw_tracks, dict):
            raw_tracks = [raw_tracks]

        # One broken tracklist entry must not cost us the whole album
        usable = [t for t in raw_tracks if _is_complete(t)]
        if len(usable) < len(raw_tracks):
            logger.debug(
                "Skipped %d malformed tracks on %s by %s",
                len(raw_tracks) - len(usable),
                album_name,
                artist,
            )

        return Album(
            name=album_name,
            artist=_artist_name(data.get("artist")) or artist,
            mbid=data.get("mbid") or None,
            url=data.get("url") or None,
            tracks=tuple(
                track_from_payload(t, album=album_name, duration_in_seconds=True) for t in usable
            ),
        )

    async def fetch_artist(self, name: str) -> Artist | None:
        data = await self.client.get_artist_info(artist=name)
        if not data:
            logger.debug("Artist not found on Last.fm: %s", name)
            return None
        return Artist(
            name=str(data.get("name") or name),
            mbid=data.get("mbid") or None,
            url=data.get("url") or None,
        )

    async def search_tracks(
        self, name: str, artist: str | None = None, limit: int = 10
    ) -> list[Track]:
        matches = await self.client.search_tracks(track=name, artist=artist, limit=limit)
        return [track_from_payload(m) for m in matches if _is_complete(m)]
