"""Read-only package configuration (apiKey, apiSecret, dbUrl, ...)."""

import logging
import os
import re
import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from lastfm_provider.domain.exceptions import ConfigError

logger = logging.getLogger(__name__)


def _env_to_option(name: str) -> str:
    """API_KEY -> apiKey, DB_USERNAME -> dbUsername."""
    head, *rest = name.lower().split("_")
    return head + "".join(part.capitalize() for part in rest)


class PackageConfig(Mapping[str, str]):
    """Immutable option-name -> value mapping, loaded once.

    Hey future me – this is READ-ONLY on purpose. Once the provider has validated it
    nobody may sneak in a different apiKey behind its back. Loading the backing store
    (file, env) happens in the from_* constructors; after that the values are frozen
    behind a MappingProxyType.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        frozen = {str(k): str(v) for k, v in (values or {}).items() if v is not None}
        self._values: Mapping[str, str] = MappingProxyType(frozen)

    @classmethod
    def from_toml(cls, path: str | Path) -> "PackageConfig":
        """Load a flat TOML table of options.

        Args:
            path: Path to the TOML file

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file is missing or not valid TOML
        """
        path = Path(path)
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid TOML: {e}") from e

        # Nested tables aren't options, skip them instead of stringifying dicts
        options = {k: v for k, v in data.items() if not isinstance(v, dict)}
        logger.debug("Loaded %d config options from %s", len(options), path)
        return cls(options)

    @classmethod
    def from_env(
        cls, prefix: str = "LASTFM_", environ: Mapping[str, str] | None = None
    ) -> "PackageConfig":
        """Load options from environment variables.

        LASTFM_API_KEY becomes apiKey, LASTFM_DB_URL becomes dbUrl, etc.
        """
        environ = os.environ if environ is None else environ
        pattern = re.compile(rf"^{re.escape(prefix)}([A-Z0-9_]+)$")
        options: dict[str, str] = {}
        for key, value in environ.items():
            match = pattern.match(key)
            if match:
                options[_env_to_option(match.group(1))] = value
        return cls(options)

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Get an option, or default when absent."""
        return self._values.get(key, default)

    def get_or_throw(self, key: str) -> str:
        """Get an option that must exist.

        Raises:
            ConfigError: If the option is absent
        """
        value = self._values.get(key)
        if value is None:
            raise ConfigError(f"Required config value '{key}' not found")
        return value

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        # Values are credentials - only show which options exist
        return f"PackageConfig(options={sorted(self._values)})"
