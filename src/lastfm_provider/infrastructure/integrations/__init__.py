"""External API integrations."""

from lastfm_provider.infrastructure.integrations.lastfm_client import LastfmClient

__all__ = ["LastfmClient"]
