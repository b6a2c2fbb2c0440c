"""Exception types raised by the collection core."""

from typing import Optional

QUOTA_EXCEEDED_MESSAGE = (
    "Quota Exceeded (429): The research agent has hit the daily/minute limit. "
    "Please try again later."
)


class BankAIError(Exception):
    """Base class for all BankAI errors."""


class ConfigurationError(BankAIError):
    """Credentials or provider capabilities are missing.

    Raised before any network request is attempted.
    """


class ProviderError(BankAIError):
    """A remote LLM provider call failed.

    Attributes:
        status_code: HTTP-like status reported by the provider, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuotaExceededError(ProviderError):
    """The provider's rate or usage limit was hit.

    Never triggers the knowledge-base fallback or synthetic data.
    """

    def __init__(self, message: str = QUOTA_EXCEEDED_MESSAGE):
        super().__init__(message, status_code=429)


class CollectionError(BankAIError):
    """Paper collection failed and the fallback could not recover."""
