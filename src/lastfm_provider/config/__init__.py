"""Configuration module for the Last.fm provider."""

from .package_config import PackageConfig
from .settings import ProviderSettings, get_settings

__all__ = ["PackageConfig", "ProviderSettings", "get_settings"]
