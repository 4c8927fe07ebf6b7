"""Logging utilities with JSON formatting, redaction, and request correlation.

This module centralizes logging configuration, including:
- Per-request context (request id and resolved tenant) held in a contextvar
- Redaction of credentials, prompts and completions on log records
- JSON formatter for machine-friendly logs
- Configurable stdout/file handlers with rotation support

Tenant credentials travel in many places (headers, query strings, cookies,
JSON bodies) and upstream URLs embed provider keys as query parameters, so
redaction applies to both key names and credential-looking query strings
inside string values.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from spontaneity.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "apikey",
        "x-api-key",
        "authorization",
        "token",
        "access_token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        "prompt",
        "completion",
    }
)

# Any key ending like this is treated as a credential (openai_api_key, eventbrite_token, ...)
SENSITIVE_SUFFIXES: tuple[str, ...] = ("_api_key", "_apikey", "_token", "_secret")

# Credentials passed as query parameters (OpenWeather appid, Gemini key, widget apiKey)
_QUERY_SECRET_RE = re.compile(r"(?i)\b(appid|key|api_?key|access_token|token)=([^&\s\"']+)")

# Standard LogRecord attributes that are never copied into the payload
_EXCLUDED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack",
    }
)


@dataclass(frozen=True)
class RequestContext:
    request_id: str | None = None
    tenant_id: str | None = None


_context_var: ContextVar[RequestContext] = ContextVar("request_context", default=RequestContext())


def set_request_id(request_id: str | None) -> None:
    """Start a fresh request context with the given id."""
    _context_var.set(RequestContext(request_id=request_id))


def get_request_id() -> str | None:
    return _context_var.get().request_id


def bind_tenant(tenant_id: str | None) -> None:
    """Attach the resolved tenant to the current request context."""
    _context_var.set(replace(_context_var.get(), tenant_id=tenant_id))


def get_tenant_id() -> str | None:
    return _context_var.get().tenant_id


def clear_request_id() -> None:
    """Reset the request context (request id and tenant)."""
    _context_var.set(RequestContext())


def is_sensitive_key(key: str, sensitive_keys: Iterable[str] = SENSITIVE_KEYS_DEFAULT) -> bool:
    lowered = key.lower()
    return lowered in sensitive_keys or lowered.endswith(SENSITIVE_SUFFIXES)


def redact_value(value: Any, sensitive_keys: Iterable[str] = SENSITIVE_KEYS_DEFAULT) -> Any:
    """Recursively redact sensitive values within mappings, sequences and strings.

    Args:
        value: Arbitrary value from log record extras.
        sensitive_keys: Keys whose values must be replaced.

    Returns:
        The value with sensitive fields replaced by "[REDACTED]".
    """
    if isinstance(value, str):
        return _QUERY_SECRET_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", value)
    if isinstance(value, Mapping):
        return {
            k: REDACTED if is_sensitive_key(str(k), sensitive_keys) else redact_value(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(v, sensitive_keys) for v in value)
    return value


def _record_extras(record: LogRecord, sensitive_keys: Iterable[str]) -> dict[str, Any]:
    """Return a record's extra attributes with sensitive fields redacted."""
    data: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _EXCLUDED_ATTRS or key.startswith("_"):
            continue
        data[key] = REDACTED if is_sensitive_key(key, sensitive_keys) else redact_value(value, sensitive_keys)
    return data


class RequestContextFilter(logging.Filter):
    """Attach request_id and tenant_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        context = _context_var.get()
        if getattr(record, "request_id", None) is None and context.request_id:
            record.request_id = context.request_id
        if getattr(record, "tenant_id", None) is None and context.tenant_id:
            record.tenant_id = context.tenant_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive fields on the record before any formatter sees it."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in _record_extras(record, self.sensitive_keys).items():
            setattr(record, key, value)
        if isinstance(record.msg, str):
            record.msg = redact_value(record.msg, self.sensitive_keys)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event and extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(sensitive_keys or SENSITIVE_KEYS_DEFAULT)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context_var.get()
        if context.request_id:
            payload["request_id"] = context.request_id
        if context.tenant_id:
            payload["tenant_id"] = context.tenant_id

        if record.exc_info:
            payload["exc_info"] = redact_value(self.formatException(record.exc_info))

        payload.update(_record_extras(record, self.sensitive_keys))
        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/spontaneity.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single root handler with context, redaction and formatting.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """
    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestContextFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # Outbound HTTP clients log full request URLs, which can carry provider keys
    for noisy in ("httpx", "httpcore", "google_genai", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").propagate = False
