"""Retry with credential rotation around the generation client."""
import logging
from enum import Enum

from generator.credentials import CredentialRotator
from processor.errors import AllCredentialsExhausted, GenerationError

logger = logging.getLogger(__name__)


class RetryAction(Enum):
    ROTATE = "rotate"
    STOP = "stop"


def next_action(attempts_made: int, budget: int) -> RetryAction:
    """
    Decide what to do after a failed attempt.

    Args:
        attempts_made: Attempts made so far, including the failed one
        budget: Total attempts allowed across all credentials

    Returns:
        RetryAction.ROTATE while budget remains, else RetryAction.STOP
    """
    if attempts_made < budget:
        return RetryAction.ROTATE
    return RetryAction.STOP


class RetryOrchestrator:
    """Runs generation attempts, rotating credentials until success or exhaustion."""

    def __init__(
        self,
        client,
        rotator: CredentialRotator,
        retries_per_credential: int = 3,
        timeout: float = 30.0
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Object with generate(prompt, api_key, timeout) -> str
            rotator: Credential rotator owned by the current pipeline
            retries_per_credential: Budget multiplier per credential
            timeout: Per-attempt timeout in seconds
        """
        self.client = client
        self.rotator = rotator
        self.retries_per_credential = retries_per_credential
        self.timeout = timeout

    @property
    def budget(self) -> int:
        return len(self.rotator) * self.retries_per_credential

    def generate(self, prompt: str, language: str) -> str:
        """
        Generate raw text for one language.

        Args:
            prompt: Prompt built for the language
            language: Language code, used for logging and errors

        Returns:
            Raw model text

        Raises:
            AllCredentialsExhausted: If every attempt in the budget failed
        """
        budget = self.budget
        attempts = 0

        while True:
            attempts += 1
            logger.info(
                f"Generating '{language}' content with API key "
                f"#{self.rotator.index + 1} (attempt {attempts}/{budget})"
            )
            try:
                return self.client.generate(prompt, self.rotator.current(), self.timeout)
            except GenerationError as e:
                logger.warning(
                    f"Failed to generate '{language}' content "
                    f"(attempt {attempts}/{budget}): {e}"
                )
                if next_action(attempts, budget) is RetryAction.STOP:
                    logger.error(f"Retry budget exhausted for '{language}'")
                    raise AllCredentialsExhausted(language, attempts) from e
                self.rotator.advance()
