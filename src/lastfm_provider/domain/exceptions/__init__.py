"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - always use a specific subclass so the host
    # can catch precisely (ConfigError vs AuthError vs UninitializedAccessError).
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


# =============================================================================
# Validation
# =============================================================================


class ValidationError(DomainException):
    """Input validation failed.

    Example:
        raise ValidationError("Track name cannot be empty")
    """

    pass


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(DomainException):
    """Provider misconfiguration.

    Raised when required configuration is missing or invalid.

    Example:
        raise ConfigurationError("Last.fm config is missing required options")
    """

    pass


class ConfigError(ConfigurationError):
    """The package configuration cannot be used to initialize the provider.

    Always fatal to initialization and raised synchronously, before any
    asynchronous work begins.
    """

    pass


class MissingConfigError(ConfigError):
    """One or more required options are absent or empty.

    Carries EVERY missing option name, not just the first one found.
    """

    def __init__(self, missing_options: list[str]) -> None:
        super().__init__(
            "Last.fm config is missing required options, aborting: "
            + ", ".join(missing_options)
        )
        self.missing_options = list(missing_options)


# =============================================================================
# Authorization
# =============================================================================


class AuthenticationError(DomainException):
    """Authentication against a remote service failed."""

    pass


class AuthError(AuthenticationError):
    """The authorization handshake failed.

    Covers invalid credentials, network failures and remote rejections. Fatal to
    the current initialization attempt; nothing retries it automatically.
    """

    def __init__(self, message: str, error_code: int | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code  # Last.fm error number, if the API sent one


# =============================================================================
# State
# =============================================================================


class InvalidStateException(DomainException):
    """Raised when an object is in an invalid state for the requested operation."""

    pass


class UninitializedAccessError(InvalidStateException):
    """A guarded accessor was called before the provider reached READY."""

    def __init__(self, component_name: str) -> None:
        super().__init__(
            f"ServiceProvider.initialize must be invoked to initialize {component_name}"
        )
        self.component_name = component_name


class RegistryEmptyError(InvalidStateException):
    """No provider has ever reached READY, so there is no active instance."""

    def __init__(
        self,
        message: str = "ServiceProvider.initialize must be invoked to initialize ServiceProvider",
    ) -> None:
        super().__init__(message)


class ProviderStateError(InvalidStateException):
    """initialize() was called on a provider that is authorizing or already ready."""

    pass


# =============================================================================
# External services
# =============================================================================


class ExternalServiceError(DomainException):
    """External service returned an error."""

    pass


class LastFmAPIError(ExternalServiceError):
    """Last.fm answered with an error payload ({"error": 10, "message": "..."})."""

    # Yo, the codes that matter during auth: 4 = auth failed, 9 = invalid session key,
    # 10 = invalid API key, 14 = token not yet authorized, 15 = token expired.
    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"Last.fm API error {code}: {message}")
        self.code = code


__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "ConfigError",
    "MissingConfigError",
    "AuthenticationError",
    "AuthError",
    "InvalidStateException",
    "UninitializedAccessError",
    "RegistryEmptyError",
    "ProviderStateError",
    "ExternalServiceError",
    "LastFmAPIError",
]
