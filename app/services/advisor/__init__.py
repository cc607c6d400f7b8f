"""Advisor service package exports."""

from .errors import AdvisorError, ConfigurationError, UpstreamError, ValidationError
from .models import ChatMessage, ChatResult
from .service import AdvisorService, get_advisor_service

__all__ = [
    "AdvisorError",
    "AdvisorService",
    "ChatMessage",
    "ChatResult",
    "ConfigurationError",
    "UpstreamError",
    "ValidationError",
    "get_advisor_service",
]
