"""Custom exceptions for the triage pipeline."""
from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base exception for pipeline errors. Raise this instead of sys.exit(1)."""
    pass


class ConfigError(PipelineError):
    """A required setting is missing or unusable."""
    pass


class ServiceError(PipelineError):
    """Failure talking to the classification service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientServiceError(ServiceError):
    """Upstream temporarily unavailable; safe to retry."""
    pass


class FatalServiceError(ServiceError):
    """Auth, bad request, other non-2xx status or malformed envelope. Never retried."""
    pass


class ResponseParseError(PipelineError):
    """Model output could not be parsed or repaired into JSON."""
    pass
