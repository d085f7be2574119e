"""Rotation over a fixed set of API credentials."""
import logging
from typing import Sequence

from processor.errors import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialRotator:
    """Hands out the current API key and advances on failure."""

    def __init__(self, credentials: Sequence[str]):
        """
        Initialize the rotator.

        Args:
            credentials: Ordered API keys; empty values are ignored

        Raises:
            ConfigurationError: If no usable credential is given
        """
        self._credentials = tuple(c for c in credentials if c)
        if not self._credentials:
            raise ConfigurationError("No valid Gemini API key configured")
        self._index = 0

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def index(self) -> int:
        """Zero-based position of the current credential."""
        return self._index

    def current(self) -> str:
        return self._credentials[self._index]

    def advance(self) -> str:
        """Move to the next credential, wrapping around, and return it."""
        self._index = (self._index + 1) % len(self._credentials)
        logger.warning(f"Switched to API key #{self._index + 1}")
        return self.current()
