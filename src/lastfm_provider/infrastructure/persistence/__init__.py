"""Persistence bootstrap."""

from lastfm_provider.infrastructure.persistence.database import (
    Database,
    close_database,
    get_database,
    initialize_database,
)

__all__ = ["Database", "close_database", "get_database", "initialize_database"]
