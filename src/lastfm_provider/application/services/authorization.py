"""The authorization gate - the single suspension point of initialize()."""

import logging
from collections.abc import Callable

from lastfm_provider.application.services.config_validator import ValidatedConfig
from lastfm_provider.domain.dtos import AuthorizedSession
from lastfm_provider.domain.exceptions import AuthError
from lastfm_provider.domain.ports import Authorizer
from lastfm_provider.infrastructure.observability import log_operation

logger = logging.getLogger(__name__)

AuthorizerFactory = Callable[[ValidatedConfig], Authorizer]


class AuthorizationGate:
    """Runs the handshake and guarantees a single failure channel: AuthError.

    Hey future me – nothing downstream gets built unless authorize() returns. Whatever
    the concrete authorizer blows up with (a bug, a stray KeyError, a transport error it
    forgot to wrap) leaves here as AuthError with the original chained as __cause__.
    Cancellation is NOT an error - CancelledError passes through untouched so the caller
    stays in control of timeouts (it is a BaseException, `except Exception` never sees it).
    """

    def __init__(self, authorizer_factory: AuthorizerFactory) -> None:
        self.authorizer_factory = authorizer_factory

    async def authorize(self, config: ValidatedConfig) -> AuthorizedSession:
        """
        Authorize with the remote service.

        Args:
            config: Validated configuration (needs apiKey and apiSecret)

        Returns:
            Opaque authorized session

        Raises:
            AuthError: On any handshake failure
        """
        authorizer = self.authorizer_factory(config)
        async with log_operation(logger, "lastfm_authorize", authorizer=type(authorizer).__name__):
            try:
                return await authorizer.authorize()
            except AuthError:
                raise
            except Exception as e:
                raise AuthError(f"Authorization failed unexpectedly: {e}") from e
