"""
Active provider registry.

Hey future me – this holds THE provider the host should talk to: the most recent
one that finished initialize(). It is a single slot, last writer wins.

Verwendung:
    registry = ActiveInstanceRegistry()
    provider = LastFmServiceProvider(registry=registry)
    await provider.initialize(factory, config)

    registry.get() is provider  # True

Prefer passing your own registry around (tests, multiple hosts in one process).
The module default + get_active_provider() exist for hosts that need one
well-known instance.

Thread-Safety:
    publish() and get() take a lock, so readers see either the previous or the newly
    published provider - never anything in between. Providers are only published once
    their component graph is complete.
"""

import logging
import threading

from lastfm_provider.domain.exceptions import RegistryEmptyError
from lastfm_provider.domain.ports import ServiceProvider

logger = logging.getLogger(__name__)


class ActiveInstanceRegistry:
    """Single-writer, last-writer-wins slot for the active provider."""

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._active: ServiceProvider | None = None
        self._lock = threading.Lock()

    def publish(self, provider: ServiceProvider) -> None:
        """
        Make provider the active instance.

        Overwrites whatever was active before - that's intended, a re-initialized or
        newer provider replaces the old one.

        Args:
            provider: A provider whose component graph is fully built
        """
        with self._lock:
            previous, self._active = self._active, provider
        if previous is not None and previous is not provider:
            logger.info("Replaced active provider %s", previous.name)
        logger.info("Published active provider %s", provider.name)

    def get(self) -> ServiceProvider:
        """
        Get the active provider.

        Returns:
            The most recently published provider

        Raises:
            RegistryEmptyError: If no provider was ever published
        """
        with self._lock:
            active = self._active
        if active is None:
            raise RegistryEmptyError()
        return active

    def peek(self) -> ServiceProvider | None:
        """Get the active provider or None, without raising."""
        with self._lock:
            return self._active

    def clear(self) -> None:
        """
        Forget the active provider.

        Hey future me – nur für Tests verwenden!
        """
        with self._lock:
            self._active = None


# Global default instance
_default_registry: ActiveInstanceRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> ActiveInstanceRegistry:
    """
    Get the process-wide registry.

    Returns:
        The global ActiveInstanceRegistry instance
    """
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = ActiveInstanceRegistry()
        return _default_registry


def get_active_provider() -> ServiceProvider:
    """
    Get the active provider from the process-wide registry.

    Raises:
        RegistryEmptyError: If no provider ever finished initializing
    """
    return get_default_registry().get()


__all__ = [
    "ActiveInstanceRegistry",
    "get_active_provider",
    "get_default_registry",
]
