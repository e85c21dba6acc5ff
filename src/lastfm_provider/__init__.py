"""Last.fm service provider.

Supplies a Last.fm backed music stack (fetching, caching, type conversion, playback
routing) to a host application through the ServiceProvider contract.
"""

__version__ = "0.1.0"

from lastfm_provider.application.services import LastFmServiceProvider, ProviderState
from lastfm_provider.config import PackageConfig
from lastfm_provider.infrastructure.providers import (
    ActiveInstanceRegistry,
    get_active_provider,
)

__all__ = [
    "ActiveInstanceRegistry",
    "LastFmServiceProvider",
    "PackageConfig",
    "ProviderState",
    "get_active_provider",
]
