"""
Error taxonomy for the signal pipeline.

Provider errors never leave a provider adapter; data integrity errors mark
requests that would duplicate or orphan a row; configuration errors are
raised only by explicit validation helpers.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ProviderStatus(Enum):
    """Outcome of a provider call."""
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    BLOCKED = "blocked"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    DISABLED = "disabled"


class SignalEngineError(Exception):
    """Base exception for the signal engine."""


class ProviderError(SignalEngineError):
    """Raised inside a provider adapter when a fetch cannot complete."""

    def __init__(self, message: str, status: ProviderStatus = ProviderStatus.FAILED, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)


class DataIntegrityError(SignalEngineError):
    """A write would violate a uniqueness or reference invariant."""


class DuplicateSignalError(DataIntegrityError):
    def __init__(self, article_id: int):
        self.article_id = article_id
        super().__init__(f"Signal already exists for article {article_id}")


class DuplicateImpactError(DataIntegrityError):
    def __init__(self, user_id: str, article_id: int):
        self.user_id = user_id
        self.article_id = article_id
        super().__init__(f"Impact already exists for user {user_id}, article {article_id}")


class MissingHoldingError(DataIntegrityError):
    def __init__(self, user_id: str, ticker: str):
        self.user_id = user_id
        self.ticker = ticker
        super().__init__(f"No holding for user {user_id}, ticker {ticker}")


class ConfigurationError(SignalEngineError):
    """A provider or component is missing required configuration."""
