"""
Exceptions raised by ATS provider clients and adapters.
"""

from typing import Any


class AtsProviderError(Exception):
    """Base exception for ATS provider errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.provider_response = provider_response or {}


class AtsAuthError(AtsProviderError):
    """OAuth code exchange or token refresh failed."""


class AtsRequestError(AtsProviderError):
    """Provider answered a resource request with a non-success status."""


class AtsNotFoundError(AtsProviderError):
    """Requested provider entity does not exist."""
