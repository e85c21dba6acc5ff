"""
Value objects passed between the provider's components.

Hey future me – these are "dumb data carriers". The fetcher converts raw Last.fm
JSON into these, everything downstream (cache, type converter, strategies, string
identifier) only ever sees these. Never leak raw API dicts past the fetcher!

Flow: Last.fm JSON → LastFmMusicFetcher → DTO → LastFmMusicCache → host
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from lastfm_provider.domain.exceptions import ValidationError

if TYPE_CHECKING:
    from lastfm_provider.domain.ports import ILastfmClient


@dataclass(frozen=True)
class Artist:
    """Artist as known to Last.fm."""

    name: str
    mbid: str | None = None  # MusicBrainz ID, Last.fm sends "" when unknown
    url: str | None = None

    def __post_init__(self) -> None:
        """Validate essential fields."""
        if not self.name or not self.name.strip():
            raise ValidationError("Artist name cannot be empty")


@dataclass(frozen=True)
class Track:
    """Track as known to Last.fm."""

    name: str
    artist: str
    album: str | None = None
    mbid: str | None = None
    url: str | None = None
    duration_ms: int | None = None
    listeners: int | None = None

    def __post_init__(self) -> None:
        """Validate essential fields."""
        if not self.name or not self.name.strip():
            raise ValidationError("Track name cannot be empty")
        if not self.artist or not self.artist.strip():
            raise ValidationError("Track artist cannot be empty")


@dataclass(frozen=True)
class Album:
    """Album as known to Last.fm, with its tracklist if the API sent one."""

    name: str
    artist: str
    mbid: str | None = None
    url: str | None = None
    tracks: tuple[Track, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate essential fields."""
        if not self.name or not self.name.strip():
            raise ValidationError("Album name cannot be empty")


# Hey future me – AuthorizedSession is the OPAQUE proof that the handshake worked.
# Only the fetcher looks inside it (it needs the client). It is never written to disk;
# every initialize() authorizes from scratch.
@dataclass(frozen=True)
class AuthorizedSession:
    """Result of a successful authorization handshake."""

    client: ILastfmClient
    session_key: str
    username: str | None = None

    def __repr__(self) -> str:
        # session_key is a credential, keep it out of logs
        return f"AuthorizedSession(username={self.username!r})"


class PlayResult(str, Enum):
    """Outcome of handing a track to a play actor."""

    PLAYED = "played"
    NO_ROUTE = "no_route"  # ReroutablePlayActor has nowhere to send the track
    FAILED = "failed"


__all__ = [
    "Artist",
    "Track",
    "Album",
    "AuthorizedSession",
    "PlayResult",
]
