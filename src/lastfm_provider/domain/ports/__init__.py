"""
Capability interfaces (ports) for the Last.fm service provider.

Hey future me – these are the seams between the provider core and everything
around it. The host application talks to the provider ONLY through ServiceProvider
and the component interfaces below. Concrete Last.fm implementations live in
infrastructure/, the host supplies its own TrackOrchestrator and type factories.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from lastfm_provider.domain.dtos import Album, Artist, AuthorizedSession, PlayResult, Track

if TYPE_CHECKING:
    import asyncio


class ILastfmClient(ABC):
    """Port for the Last.fm web API."""

    api_key: str

    @abstractmethod
    async def get_token(self) -> str:
        """Request an unauthorized request token (auth.getToken)."""
        pass

    @abstractmethod
    async def get_session(self, token: str) -> dict[str, Any]:
        """Exchange an approved token for a session (auth.getSession)."""
        pass

    @abstractmethod
    async def get_track_info(
        self, artist: str, track: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """Get track information."""
        pass

    @abstractmethod
    async def get_artist_info(
        self, artist: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """Get artist information."""
        pass

    @abstractmethod
    async def get_album_info(
        self, artist: str, album: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """Get album information."""
        pass

    @abstractmethod
    async def search_tracks(
        self, track: str, artist: str | None = None, limit: int = 10
    ) -> list[dict[str, Any]]:
        """Search tracks by name."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        pass


class Authorizer(ABC):
    """Performs the remote authorization handshake."""

    @abstractmethod
    async def authorize(self) -> AuthorizedSession:
        """Run the handshake.

        Returns:
            Session usable to construct authenticated downstream clients

        Raises:
            AuthError: If the remote service rejects us or cannot be reached
        """
        pass


class MusicFetcher(ABC):
    """Fetches music metadata straight from the remote service (no caching)."""

    @abstractmethod
    async def fetch_track(self, name: str, artist: str) -> Track | None:
        pass

    @abstractmethod
    async def fetch_album(self, name: str, artist: str) -> Album | None:
        pass

    @abstractmethod
    async def fetch_artist(self, name: str) -> Artist | None:
        pass

    @abstractmethod
    async def search_tracks(
        self, name: str, artist: str | None = None, limit: int = 10
    ) -> list[Track]:
        pass


class MusicCache(ABC):
    """Read-through cache in front of a MusicFetcher."""

    @abstractmethod
    async def get_track(self, name: str, artist: str) -> Track | None:
        pass

    @abstractmethod
    async def get_album(self, name: str, artist: str) -> Album | None:
        pass

    @abstractmethod
    async def get_artist(self, name: str) -> Artist | None:
        pass

    @abstractmethod
    async def search_tracks(
        self, name: str, artist: str | None = None, limit: int = 10
    ) -> list[Track]:
        pass


class PlayActor(ABC):
    """Something that can play a track."""

    @abstractmethod
    async def play_track(self, track: Track) -> PlayResult:
        pass


class TrackOrchestrator(Protocol):
    """Host-side playback orchestration; the provider only sequences its creation."""

    async def play(self, track: Track) -> PlayResult: ...


# Hey future me – the orchestrator is NOT ours to build. The host hands us this factory
# and we call it exactly once, after the play actor and cache exist.
OrchestratorFactory = Callable[[PlayActor, MusicCache], TrackOrchestrator]


class MusicTypeConverter(ABC):
    """Converts music values from other providers into Last.fm-resolved ones."""

    @abstractmethod
    async def convert_track(self, track: Track) -> Track | None:
        pass

    @abstractmethod
    async def convert_album(self, album: Album) -> Album | None:
        pass


class TrackResolveStrategy(Protocol):
    """Picks the best candidate for a wanted track."""

    def resolve(self, wanted: Track, candidates: list[Track]) -> Track | None: ...


class MusicStrategies(ABC):
    """Named strategies the host can look up."""

    @abstractmethod
    def get_strategy(self, name: str) -> TrackResolveStrategy:
        pass

    @property
    @abstractmethod
    def strategies(self) -> Mapping[str, TrackResolveStrategy]:
        pass


class SongTypeFactory(Protocol):
    """Host factory turning a Track into the host's song type."""

    def create_song(self, track: Track) -> Any: ...


class CollectionTypeFactory(Protocol):
    """Host factory for the host's collection (playlist) type."""

    def create_collection(self, name: str, owner: str | None = None) -> Any: ...


class AlbumTypeFactory(Protocol):
    """Host factory turning an Album into the host's album type."""

    def create_album(self, album: Album) -> Any: ...


class StringIdentifier(ABC):
    """Parses free-form user strings (titles, URLs) into host music types."""

    @abstractmethod
    async def parse_song(self, text: str) -> Any | None:
        pass

    @abstractmethod
    async def parse_album(self, text: str) -> Any | None:
        pass

    @abstractmethod
    async def parse_collection(self, text: str) -> Any | None:
        pass


class ServiceProvider(ABC):
    """
    Contract every music service provider fulfils towards the host.

    Hey future me – this mirrors the lifecycle: initialize() first, accessors after.
    Accessors MUST raise UninitializedAccessError before READY, never return None.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def initialize(
        self, orchestrator_factory: OrchestratorFactory, config: Any
    ) -> "asyncio.Task[None]":
        pass

    @abstractmethod
    def shutdown(self) -> None:
        pass

    @abstractmethod
    def get_music_cache(self) -> MusicCache:
        pass

    @abstractmethod
    def get_music_fetcher(self) -> MusicFetcher:
        pass

    @abstractmethod
    def get_track_orchestrator(self) -> TrackOrchestrator:
        pass

    @abstractmethod
    def get_music_strategies(self) -> MusicStrategies:
        pass

    @abstractmethod
    def get_music_type_converter(self) -> MusicTypeConverter:
        pass

    @abstractmethod
    def get_play_actor(self) -> PlayActor:
        pass

    @abstractmethod
    def get_string_identifier(
        self,
        song_factory: SongTypeFactory,
        collection_factory: CollectionTypeFactory,
        album_factory: AlbumTypeFactory,
    ) -> StringIdentifier:
        pass


# Hey future me – the callback the authorizer uses to show the user where to approve access.
ApprovalCallback = Callable[[str], Awaitable[None]]


__all__ = [
    "ILastfmClient",
    "Authorizer",
    "MusicFetcher",
    "MusicCache",
    "PlayActor",
    "TrackOrchestrator",
    "OrchestratorFactory",
    "MusicTypeConverter",
    "TrackResolveStrategy",
    "MusicStrategies",
    "SongTypeFactory",
    "CollectionTypeFactory",
    "AlbumTypeFactory",
    "StringIdentifier",
    "ServiceProvider",
    "ApprovalCallback",
]
