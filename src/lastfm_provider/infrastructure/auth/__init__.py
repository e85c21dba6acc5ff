"""Remote authorization implementations."""

from lastfm_provider.infrastructure.auth.lastfm_authorizer import LastFmAuthorizer

__all__ = ["LastFmAuthorizer"]
