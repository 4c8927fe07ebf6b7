"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Only ``ValidationAppError``, ``AuthenticationAppError`` and
``QuotaExceededAppError`` ever reach a client. Upstream and provider errors
are raised by adapters and absorbed by the fan-out services, which turn them
into empty contributions plus a diagnostics entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    reset_at_iso: str
    operation: str
    tenant_id: str
    provider: str
    source: str
    checked_sources: list[str]
    sources: dict[str, bool]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when no tenant identity can be resolved for a request."""


class QuotaExceededAppError(AppError):
    """Raised when a tenant exhausts its quota for an operation."""


class UpstreamUnavailableError(AppError):
    """Raised by a geo/event/weather source that failed to answer."""


class LLMAppError(AppError):
    """Raised when an LLM provider call fails."""


class ProviderOverloadedError(LLMAppError):
    """Raised when an LLM provider signals rate limiting."""


class MalformedProviderOutputError(LLMAppError):
    """Raised when a completion is not a JSON array of cards."""
