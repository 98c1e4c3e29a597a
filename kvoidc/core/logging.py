"""Structured logging setup."""

import logging
import sys
from typing import Any

import structlog

from kvoidc.core.settings import Settings

REDACTED = "[REDACTED]"
_SENSITIVE_FIELDS = {"access_token", "authorization", "token", "signature"}
_SENSITIVE_SUFFIXES = ("_token", "_secret", "_key")


def _is_sensitive(key: str) -> bool:
    normalized = key.lower().replace("-", "_")
    return normalized in _SENSITIVE_FIELDS or normalized.endswith(_SENSITIVE_SUFFIXES)


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask bearer credentials and minted tokens before rendering."""
    return {
        k: (REDACTED if _is_sensitive(k) else v) for k, v in event_dict.items()
    }


def configure_logging(settings: Settings) -> None:
    """Configure structlog and route stdlib logging through the same level."""
    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]
    if settings.log_json:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Azure SDK and uvicorn log through the standard library.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("azure").setLevel(max(level, logging.WARNING))
