"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class PromptTesterError(Exception):
    """Base exception for prompt tester."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PromptTesterError):
    """Resource not found."""

    pass


class ValidationError(PromptTesterError):
    """Validation error."""

    pass


class ConfigurationError(ValidationError):
    """Submission rejected before any network call (no prompt, model or credential)."""

    pass


class CredentialResolutionError(PromptTesterError):
    """The selected credential could not be resolved to a usable secret."""

    pass


class InfrastructureError(PromptTesterError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class SessionCreationError(InfrastructureError):
    """The backing session for a submission could not be created."""

    pass


class LLMError(PromptTesterError):
    """LLM-related error."""

    pass


class UpstreamHTTPError(LLMError):
    """The model provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(
            f"Provider API error: {status_code}",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class StreamError(LLMError):
    """The provider reported an error inside the event stream."""

    pass


class BusinessLogicError(PromptTesterError):
    """Business logic constraint violation."""

    pass
