"""Provider registry."""

from lastfm_provider.infrastructure.providers.registry import (
    ActiveInstanceRegistry,
    get_active_provider,
    get_default_registry,
)

__all__ = ["ActiveInstanceRegistry", "get_active_provider", "get_default_registry"]
