"""Application services: config validation, authorization, graph building, lifecycle."""

from lastfm_provider.application.services.authorization import AuthorizationGate
from lastfm_provider.application.services.component_graph import (
    ComponentGraph,
    ComponentGraphBuilder,
)
from lastfm_provider.application.services.config_validator import (
    REQUIRED_OPTIONS,
    ConfigValidator,
    ValidatedConfig,
)
from lastfm_provider.application.services.provider_lifecycle import (
    LastFmServiceProvider,
    ProviderState,
)

__all__ = [
    "REQUIRED_OPTIONS",
    "AuthorizationGate",
    "ComponentGraph",
    "ComponentGraphBuilder",
    "ConfigValidator",
    "LastFmServiceProvider",
    "ProviderState",
    "ValidatedConfig",
]
