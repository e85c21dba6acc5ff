"""Play actor whose target can be swapped after construction."""

import logging
import threading

from lastfm_provider.domain.dtos import PlayResult, Track
from lastfm_provider.domain.ports import PlayActor

logger = logging.getLogger(__name__)


class ReroutablePlayActor(PlayActor):
    """Forwards play requests to whatever actor it currently routes to.

    Hey future me – Last.fm can't play audio. The host reroutes this actor to a real
    player (Spotify, local files, ...) whenever it likes, WITHOUT rebuilding the
    component graph - the orchestrator keeps holding this same object.
    """

    def __init__(self, route: PlayActor | None = None) -> None:
        self._route = route
        self._lock = threading.Lock()

    @property
    def route(self) -> PlayActor | None:
        return self._route

    def reroute(self, route: PlayActor | None) -> None:
        """Send future play requests to route (None = nowhere)."""
        with self._lock:
            self._route = route
        logger.info("Play actor rerouted to %s", type(route).__name__ if route else "nothing")

    async def play_track(self, track: Track) -> PlayResult:
        route = self._route
        if route is None:
            logger.warning("No play route set, cannot play %s by %s", track.name, track.artist)
            return PlayResult.NO_ROUTE
        return await route.play_track(track)
