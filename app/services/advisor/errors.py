"""Exceptions raised by the advisor gateway, store and provider."""
from __future__ import annotations

from typing import Optional


class AdvisorError(Exception):
    """Base class for advisor failures."""


class ValidationError(AdvisorError):
    """The client sent a request that cannot be processed as-is."""


class ConfigurationError(AdvisorError):
    """Provider settings are incomplete or contradictory."""


class UpstreamError(AdvisorError):
    """The completion provider failed or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status} {self.message}"
