"""Last.fm HTTP client implementation."""

import hashlib
import logging
from typing import Any, cast

import httpx

from lastfm_provider.config.settings import ProviderSettings, get_settings
from lastfm_provider.domain.exceptions import LastFmAPIError
from lastfm_provider.domain.ports import ILastfmClient

logger = logging.getLogger(__name__)

# Last.fm error 6: "Invalid parameters" - what it sends for unknown track/album/artist
NOT_FOUND_ERROR = 6

# Params that Last.fm leaves out of the api_sig computation
_UNSIGNED_PARAMS = frozenset({"format", "callback"})


class LastfmClient(ILastfmClient):
    """HTTP client for Last.fm API operations."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        settings: ProviderSettings | None = None,
    ) -> None:
        """
        Initialize Last.fm client.

        Args:
            api_key: Last.fm API key
            api_secret: Last.fm shared secret (used for signing)
            settings: Provider settings, defaults to get_settings()
        """
        self.api_key = api_key
        self.api_secret = api_secret
        self.settings = settings or get_settings()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=self.settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _sign_request(self, params: dict[str, str]) -> str:
        """
        Create API signature for authenticated requests.

        Args:
            params: Request parameters

        Returns:
            MD5 signature string
        """
        sorted_params = sorted(
            (k, v) for k, v in params.items() if k not in _UNSIGNED_PARAMS
        )
        sig_string = "".join(f"{k}{v}" for k, v in sorted_params)
        sig_string += self.api_secret

        # MD5 is used for Last.fm API signature, not for security purposes
        return hashlib.md5(  # nosec B324
            sig_string.encode("utf-8"), usedforsecurity=False
        ).hexdigest()

    async def _make_request(
        self, method: str, params: dict[str, Any], signed: bool = False
    ) -> dict[str, Any]:
        """
        Make a request to Last.fm API.

        Args:
            method: API method name
            params: Request parameters
            signed: Whether the request needs an api_sig

        Returns:
            Response data

        Raises:
            LastFmAPIError: If Last.fm answers with an error payload
            httpx.HTTPError: If the request fails at the transport/HTTP level
        """
        client = await self._get_client()

        request_params = {
            "method": method,
            "api_key": self.api_key,
            "format": "json",
            **{k: str(v) for k, v in params.items()},
        }

        if signed:
            request_params["api_sig"] = self._sign_request(request_params)

        response = await client.get("", params=request_params)

        # Hey future me - Last.fm sends error payloads with 4xx status codes too
        # ({"error": 10, "message": "Invalid API key"}). Read the payload BEFORE
        # raise_for_status so callers get the real error code, not a bare 403.
        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            raise LastFmAPIError(0, f"Non-JSON response for {method}") from None

        if isinstance(data, dict) and "error" in data:
            raise LastFmAPIError(int(data["error"]), str(data.get("message", "")))

        response.raise_for_status()
        return cast(dict[str, Any], data)

    async def _lookup(self, method: str, params: dict[str, Any]) -> dict[str, Any] | None:
        """Make a lookup request, mapping "not found" answers to None."""
        try:
            return await self._make_request(method, params)
        except LastFmAPIError as e:
            if e.code == NOT_FOUND_ERROR:
                return None
            raise
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def get_token(self) -> str:
        """
        Request a new unauthorized token (auth.getToken).

        Returns:
            Token the user has to approve on last.fm
        """
        response = await self._make_request("auth.getToken", {}, signed=True)
        return str(response["token"])

    async def get_session(self, token: str) -> dict[str, Any]:
        """
        Exchange an approved token for a web service session (auth.getSession).

        Args:
            token: Token from get_token() that the user approved

        Returns:
            Session dict with "name" (username) and "key" (session key)

        Raises:
            LastFmAPIError: 14 while the token is not approved yet, 15 once it expired
        """
        response = await self._make_request("auth.getSession", {"token": token}, signed=True)
        return cast(dict[str, Any], response["session"])

    async def get_track_info(
        self, artist: str, track: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """
        Get track information including tags.

        Args:
            artist: Artist name
            track: Track title
            mbid: Optional MusicBrainz ID

        Returns:
            Track information or None if not found
        """
        params: dict[str, Any] = {}

        if mbid:
            params["mbid"] = mbid
        else:
            params["artist"] = artist
            params["track"] = track

        response = await self._lookup("track.getInfo", params)
        return response.get("track") if response else None

    async def get_artist_info(
        self, artist: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """
        Get artist information including tags.

        Args:
            artist: Artist name
            mbid: Optional MusicBrainz ID

        Returns:
            Artist information or None if not found
        """
        params: dict[str, Any] = {}

        if mbid:
            params["mbid"] = mbid
        else:
            params["artist"] = artist

        response = await self._lookup("artist.getInfo", params)
        return response.get("artist") if response else None

    async def get_album_info(
        self, artist: str, album: str, mbid: str | None = None
    ) -> dict[str, Any] | None:
        """
        Get album information including tags.

        Args:
            artist: Artist name
            album: Album title
            mbid: Optional MusicBrainz ID

        Returns:
            Album information or None if not found
        """
        params: dict[str, Any] = {}

        if mbid:
            params["mbid"] = mbid
        else:
            params["artist"] = artist
            params["album"] = album

        response = await self._lookup("album.getInfo", params)
        return response.get("album") if response else None

    async def search_tracks(
        self, track: str, artist: str | None = None, limit: int = 10
    ) -> list[dict[str, Any]]:
        """
        Search tracks by name (track.search).

        Args:
            track: Track title to search for
            artist: Optional artist name to narrow the search
            limit: Max results

        Returns:
            List of raw track matches (may be empty)
        """
        params: dict[str, Any] = {"track": track, "limit": limit}
        if artist:
            params["artist"] = artist

        response = await self._lookup("track.search", params)
        if not response:
            return []

        matches = response.get("results", {}).get("trackmatches", {}).get("track", [])
        # Last.fm collapses single-element lists into a bare object
        if isinstance(matches, dict):
            matches = [matches]
        return cast(list[dict[str, Any]], matches)

    async def __aenter__(self) -> "LastfmClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
