"""Logging setup for the provider: text or JSON output, every line tagged with its attempt."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

from lastfm_provider.config.settings import ProviderSettings

# Hey future me, the correlation ID ties together every log line of ONE initialize() attempt
# (validate → authorize → build → publish). The authorize step suspends, so other tasks run in
# between - contextvars keeps each asyncio task's ID separate. Don't use a plain global here!
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Frames from these paths are noise in a provider traceback
_FOREIGN_FRAME_MARKERS = ("/site-packages/", "/asyncio/")


def get_correlation_id() -> str:
    """Return the current attempt's correlation ID ("" outside of initialize())."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: ID to use, a fresh UUID4 when None

    Returns:
        The ID now in effect
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


class ProviderContextFilter(logging.Filter):
    """Stamp app name and correlation ID onto every record passing the handler."""

    def __init__(self, app_name: str = "lastfm-provider") -> None:
        super().__init__()
        self.app_name = app_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.app = self.app_name
        record.correlation_id = get_correlation_id()
        return True


def _own_frames(exc: BaseException) -> list[str]:
    lines = []
    for frame in traceback.extract_tb(exc.__traceback__):
        if "lastfm_provider" not in frame.filename or any(
            marker in frame.filename for marker in _FOREIGN_FRAME_MARKERS
        ):
            continue
        lines.append(f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}')
        if frame.line:
            lines.append(f"      {frame.line.strip()}")
    return lines


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that prints exception chains root cause first, one header per link.

    ERROR │ lastfm_provider.application.services.provider_lifecycle:194 │ LastFm provider failed to authorize
    ╰─► ConnectError: All connection attempts failed
        File "lastfm_client.py", line 108, in _make_request
          response = await client.get("", params=request_params)
    ╰─► AuthError: Could not reach Last.fm: All connection attempts failed
    """

    def formatException(self, ei: Any) -> str:
        _exc_type, exc_value, _exc_tb = ei
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        # Guard against cycles, __context__ can point back up the chain
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__

        lines: list[str] = []
        for exc in reversed(chain):
            lines.append(f"╰─► {type(exc).__name__}: {exc}")
            lines.extend(_own_frames(exc))
        return "\n".join(lines)


class ProviderJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """One JSON object per line, with level/logger/source location and attempt ID."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["source"] = f"{record.module}.{record.funcName}:{record.lineno}"

        # Only present on records that went through ProviderContextFilter
        app = getattr(record, "app", None)
        if app:
            log_record["app"] = app
        correlation_id = getattr(record, "correlation_id", "")
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


# Listen future me, call this ONCE at host startup. It owns the root logger, so it wipes existing
# handlers first (important for tests and reloads). httpx/httpcore get quieted to WARNING or the
# auth polling loop drowns everything else.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "lastfm-provider",
) -> None:
    """Configure root logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names fall back to INFO)
        json_format: One JSON object per line instead of the compact text format
        app_name: Stamped onto every record as "app"
    """
    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ProviderContextFilter(app_name))

    formatter: logging.Formatter
    if json_format:
        formatter = ProviderJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = CompactExceptionFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "asyncio", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured (level=%s, json=%s)", logging.getLevelName(level), json_format
    )


def configure_logging_from_settings(settings: ProviderSettings) -> None:
    """configure_logging() driven by LASTFM_PROVIDER_LOG_LEVEL / _LOG_JSON_FORMAT / _APP_NAME."""
    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json_format,
        app_name=settings.app_name,
    )
