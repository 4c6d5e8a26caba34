"""
Logging utilities for the adapter.

This module provides:
- Redaction of bearer tokens and OAuth secrets in log records
- Root logger configuration used by the command line
- A structured logger accessor for call sites that prefer key/value events
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

import structlog

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d %(message)s"

BEARER_TOKEN_PATTERN = re.compile(r"Bearer\s+([a-zA-Z0-9._~+/-]+=*)")
# Google OAuth access tokens start with "ya29."
GOOGLE_ACCESS_TOKEN_PATTERN = re.compile(r"\bya29\.[A-Za-z0-9._-]+")
# Google OAuth refresh tokens start with "1//"
GOOGLE_REFRESH_TOKEN_PATTERN = re.compile(r"\b1//[A-Za-z0-9._-]{20,}")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Args:
        name: Optional logger name

    Returns:
        A structured logger
    """
    return structlog.get_logger(name)  # type: ignore


def redact(value: str, mask: str = "***") -> str:
    """Redact a sensitive value, keeping the first and last two characters."""
    if not value:
        return value
    if len(value) > 6:
        return f"{value[0:2]}{mask}{value[-2:]}"
    return mask


class BearerTokenRedactionFilter(logging.Filter):
    """Logging filter that masks bearer tokens and known secrets.

    ``record.msg`` and string ``record.args`` are sanitized in place.
    """

    def __init__(self, secrets: Iterable[str] | None = None, mask: str = "***") -> None:
        super().__init__()
        self.mask = mask
        self.patterns: list[re.Pattern[str]] = []
        explicit = sorted({s for s in (secrets or []) if s}, key=len, reverse=True)
        if explicit:
            self.patterns.append(re.compile("|".join(re.escape(s) for s in explicit)))
        self.patterns.extend(
            [
                BEARER_TOKEN_PATTERN,
                GOOGLE_ACCESS_TOKEN_PATTERN,
                GOOGLE_REFRESH_TOKEN_PATTERN,
            ]
        )

    def sanitize(self, text: str) -> str:
        for pat in self.patterns:
            if pat is BEARER_TOKEN_PATTERN:
                text = pat.sub(f"Bearer {self.mask}", text)
            else:
                text = pat.sub(self.mask, text)
        return text

    def _sanitize(self, obj: object) -> object:
        if isinstance(obj, str):
            return self.sanitize(obj)
        if isinstance(obj, dict):
            return {k: self._sanitize(v) for k, v in obj.items()}
        if isinstance(obj, list | tuple):
            return type(obj)(self._sanitize(v) for v in obj)
        return obj

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self.sanitize(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = self._sanitize(record.args)  # type: ignore[assignment]
            elif isinstance(record.args, tuple):
                record.args = tuple(self._sanitize(a) for a in record.args)
        return True


def install_redaction_filter(
    secrets: Iterable[str] | None = None, mask: str = "***"
) -> BearerTokenRedactionFilter:
    """Install a redaction filter on the root logger and its handlers."""
    root = logging.getLogger()
    filter_instance = BearerTokenRedactionFilter(secrets, mask=mask)
    root.addFilter(filter_instance)
    for handler in list(root.handlers):
        handler.addFilter(filter_instance)
    return filter_instance


def configure_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    *,
    extra_handlers: Iterable[logging.Handler] = (),
    secrets: Iterable[str] | None = None,
) -> None:
    """Configure root logging.

    Args:
        level: Logging level (number or name)
        log_file: Optional log file path
        extra_handlers: Additional handlers, e.g. a ``LogCaptureHandler``
        secrets: Values to mask in every record besides the default token patterns
    """
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    handlers.extend(extra_handlers)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request line at INFO; keep it at WARNING unless debugging
    numeric = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if isinstance(numeric, int) and numeric > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    # Route structlog events through the stdlib handlers configured above
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    install_redaction_filter(secrets)
