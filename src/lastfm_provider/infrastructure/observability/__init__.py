"""Observability infrastructure for structured logging."""

from lastfm_provider.infrastructure.observability.logger_template import log_operation
from lastfm_provider.infrastructure.observability.logging import (
    configure_logging,
    configure_logging_from_settings,
    get_correlation_id,
    set_correlation_id,
)

__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_correlation_id",
    "log_operation",
    "set_correlation_id",
]
