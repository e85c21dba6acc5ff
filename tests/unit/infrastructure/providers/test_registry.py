"""Tests for the active provider registry."""

import threading
from unittest.mock import MagicMock

import pytest

from lastfm_provider.domain.exceptions import RegistryEmptyError
from lastfm_provider.domain.ports import ServiceProvider
from lastfm_provider.infrastructure.providers import (
    ActiveInstanceRegistry,
    get_active_provider,
    get_default_registry,
)


def make_provider(name: str = "LastFm") -> MagicMock:
    provider = MagicMock(spec=ServiceProvider)
    provider.name = name
    return provider


class TestActiveInstanceRegistry:
    def test_empty_registry_raises(self):
        with pytest.raises(RegistryEmptyError, match="initialize ServiceProvider"):
            ActiveInstanceRegistry().get()

    def test_peek_empty(self):
        assert ActiveInstanceRegistry().peek() is None

    def test_publish_and_get(self):
        registry = ActiveInstanceRegistry()
        provider = make_provider()

        registry.publish(provider)

        assert registry.get() is provider

    def test_last_writer_wins(self, caplog):
        registry = ActiveInstanceRegistry()
        first, second = make_provider("first"), make_provider("second")

        registry.publish(first)
        with caplog.at_level("INFO"):
            registry.publish(second)

        assert registry.get() is second
        assert "Replaced active provider first" in caplog.text

    def test_clear(self):
        registry = ActiveInstanceRegistry()
        registry.publish(make_provider())

        registry.clear()

        assert registry.peek() is None

    def test_concurrent_publishers_leave_one_winner(self):
        registry = ActiveInstanceRegistry()
        providers = [make_provider(f"p{i}") for i in range(20)]
        threads = [threading.Thread(target=registry.publish, args=(p,)) for p in providers]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.get() in providers


class TestDefaultRegistry:
    def test_is_singleton(self):
        assert get_default_registry() is get_default_registry()

    def test_get_active_provider(self):
        registry = get_default_registry()
        provider = make_provider()
        registry.publish(provider)
        try:
            assert get_active_provider() is provider
        finally:
            registry.clear()
