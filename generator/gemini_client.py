"""Client for the Gemini text generation REST API."""
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import requests

from processor.errors import EmptyResponse, GenerationFailed, GenerationTimeout

logger = logging.getLogger(__name__)


class GeminiClient:
    """Client for Gemini generateContent calls."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.6,
        max_output_tokens: int = 800
    ):
        """
        Initialize the Gemini client.

        Args:
            model: Gemini model name
            temperature: Sampling temperature
            max_output_tokens: Maximum tokens in the response
        """
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @property
    def endpoint(self) -> str:
        return f"{self.BASE_URL}/{self.model}:generateContent"

    def generate(self, prompt: str, api_key: str, timeout: float) -> str:
        """
        Generate text for a prompt with a single API key.

        The request runs on a worker thread raced against `timeout`. When the
        timer wins the request is abandoned and its late result discarded.

        Args:
            prompt: Prompt text
            api_key: Gemini API key to use
            timeout: Seconds to wait for the response

        Returns:
            Stripped response text

        Raises:
            GenerationTimeout: If no response arrived in time
            EmptyResponse: If the model returned no text
            GenerationFailed: On transport, HTTP or payload errors
        """
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._request, prompt, api_key, timeout)
        try:
            text = future.result(timeout=timeout)
        except FutureTimeoutError:
            raise GenerationTimeout(timeout) from None
        finally:
            executor.shutdown(wait=False)

        logger.debug(f"Gemini raw response:\n{text or '<empty>'}")
        if not text:
            raise EmptyResponse("Gemini returned empty content")
        return text

    def _request(self, prompt: str, api_key: str, timeout: float) -> str:
        payload = {
            'contents': [{'parts': [{'text': prompt}]}],
            'generationConfig': {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_output_tokens,
                'responseMimeType': 'text/plain'
            }
        }

        try:
            response = requests.post(
                self.endpoint,
                headers={'x-goog-api-key': api_key},
                json=payload,
                timeout=timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationFailed(f"Gemini request failed: {e}", cause=e) from e

        return self._extract_text(data)

    def _extract_text(self, data: dict) -> str:
        """
        Join the text parts of the first candidate.

        A response without candidates (e.g. a blocked prompt) yields an
        empty string.
        """
        try:
            candidates = data.get('candidates') or []
            if not candidates:
                return ''
            parts = candidates[0].get('content', {}).get('parts', [])
            return ''.join(part.get('text', '') for part in parts).strip()
        except (AttributeError, TypeError) as e:
            raise GenerationFailed(f"Unexpected Gemini payload: {e}", cause=e) from e
