"""Validates the package configuration before anything else runs."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from lastfm_provider.config.package_config import PackageConfig
from lastfm_provider.domain.exceptions import MissingConfigError

logger = logging.getLogger(__name__)

# Order matters: missing options are reported in exactly this order
REQUIRED_OPTIONS: tuple[str, ...] = ("apiKey", "apiSecret", "dbUrl", "dbUsername", "dbPassword")


@dataclass(frozen=True)
class ValidatedConfig:
    """A PackageConfig that passed validation. Same values, just tagged."""

    config: PackageConfig

    def get(self, key: str) -> str | None:
        return self.config.get(key)

    def get_or_throw(self, key: str) -> str:
        return self.config.get_or_throw(key)

    @property
    def api_key(self) -> str:
        return self.config.get_or_throw("apiKey")

    @property
    def api_secret(self) -> str:
        return self.config.get_or_throw("apiSecret")

    @property
    def db_url(self) -> str:
        return self.config.get_or_throw("dbUrl")

    @property
    def db_username(self) -> str:
        return self.config.get_or_throw("dbUsername")

    @property
    def db_password(self) -> str:
        return self.config.get_or_throw("dbPassword")


class ConfigValidator:
    """Checks that every required option is present and non-empty.

    Hey future me – this NEVER short-circuits. Every missing option gets its own
    error log line and the raised MissingConfigError lists all of them, so the user
    fixes the config in one go instead of one restart per missing key.
    """

    def __init__(self, required_options: tuple[str, ...] = REQUIRED_OPTIONS) -> None:
        self.required_options = required_options

    def missing_options(self, config: Mapping[str, str]) -> list[str]:
        """Return the required options that are absent or blank, in declaration order."""
        missing = []
        for option in self.required_options:
            value = config.get(option)
            if value is None or not value.strip():
                missing.append(option)
        return missing

    def validate(self, config: PackageConfig) -> ValidatedConfig:
        """
        Validate config.

        Args:
            config: Already loaded package configuration

        Returns:
            The same configuration, tagged as validated

        Raises:
            MissingConfigError: If any required option is missing or empty
        """
        missing = self.missing_options(config)
        for option in missing:
            logger.error("Required config value '%s' not found in Last.fm config", option)

        if missing:
            raise MissingConfigError(missing)

        return ValidatedConfig(config)
