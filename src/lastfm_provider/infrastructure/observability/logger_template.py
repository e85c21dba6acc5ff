"""Shared logger helpers.

USAGE:
    from lastfm_provider.infrastructure.observability.logger_template import log_operation

    async with log_operation(logger, "lastfm_authorize", provider="LastFm"):
        session = await authorizer.authorize()
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this context manager logs start/end of an operation with automatic duration tracking.
# The **context args become extra fields in both logs. On exception it logs the failure with
# exc_info=True and RE-RAISES - it never decides for the caller whether a failure is fatal.
# Don't pass context keys that clash with LogRecord attributes (name, message, module...)!
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncGenerator[None, None]:
    """Context manager for logging operation start/end with automatic timing.

    Logs:
    - {operation}.started with context fields
    - {operation}.completed with context + duration_ms
    - {operation}.failed with context + duration_ms + error details (if exception)

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "lastfm_authorize")
        **context: Additional fields to include in logs
    """
    start = time.monotonic()
    logger.info(f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )
