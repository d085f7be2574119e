"""Exceptions raised by the event generation pipeline."""
from typing import Optional


class OnThisDayError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(OnThisDayError):
    """Missing or invalid configuration, fatal at startup."""


class GenerationError(OnThisDayError):
    """Transient failure of a single generation attempt."""


class GenerationTimeout(GenerationError):
    """Model call did not finish within the timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"API call timed out after {timeout}s")
        self.timeout = timeout


class EmptyResponse(GenerationError):
    """Model returned no text."""


class GenerationFailed(GenerationError):
    """Transport or model error; the cause is chained."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class AllCredentialsExhausted(OnThisDayError):
    """Retry budget used up for a language."""

    def __init__(self, language: str, attempts: int):
        super().__init__(
            f"All API keys failed to generate '{language}' content "
            f"after {attempts} attempts"
        )
        self.language = language
        self.attempts = attempts


class CacheCorrupt(OnThisDayError):
    """Cache entry exists but cannot be deserialized."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Cache entry '{key}' is corrupt: {reason}")
        self.key = key
