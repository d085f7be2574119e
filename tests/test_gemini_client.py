"""Unit tests for GeminiClient."""
import json
import threading
from unittest.mock import patch

import pytest
import responses
from requests.exceptions import ConnectionError

from generator.gemini_client import GeminiClient
from processor.errors import EmptyResponse, GenerationFailed, GenerationTimeout

ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"


def gemini_payload(*texts):
    return {
        'candidates': [
            {'content': {'parts': [{'text': text} for text in texts], 'role': 'model'}}
        ]
    }


class TestGeminiClient:
    """Test cases for GeminiClient class."""

    @responses.activate
    def test_generate_success(self):
        """Test a successful call returns the stripped text."""
        responses.add(
            responses.POST,
            ENDPOINT,
            json=gemini_payload("1969|Apollo 11 moon landing|Technology\n"),
            status=200
        )

        client = GeminiClient()
        text = client.generate("prompt text", "secret-key", timeout=5)

        assert text == "1969|Apollo 11 moon landing|Technology"
        request = responses.calls[0].request
        assert request.headers['x-goog-api-key'] == "secret-key"
        body = json.loads(request.body)
        assert body['contents'][0]['parts'][0]['text'] == "prompt text"
        assert body['generationConfig'] == {
            'temperature': 0.6,
            'maxOutputTokens': 800,
            'responseMimeType': 'text/plain'
        }

    @responses.activate
    def test_generate_joins_parts(self):
        responses.add(responses.POST, ENDPOINT, json=gemini_payload("2020|A|Other\n", "2019|B|Other"))

        text = GeminiClient().generate("prompt", "key", timeout=5)

        assert text == "2020|A|Other\n2019|B|Other"

    @responses.activate
    def test_custom_model_endpoint(self):
        url = "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-pro:generateContent"
        responses.add(responses.POST, url, json=gemini_payload("ok"))

        assert GeminiClient(model="gemini-1.5-pro").generate("p", "k", timeout=5) == "ok"

    @responses.activate
    def test_empty_text_raises_empty_response(self):
        responses.add(responses.POST, ENDPOINT, json=gemini_payload("   "))

        with pytest.raises(EmptyResponse):
            GeminiClient().generate("prompt", "key", timeout=5)

    @responses.activate
    def test_no_candidates_raises_empty_response(self):
        responses.add(responses.POST, ENDPOINT, json={'promptFeedback': {'blockReason': 'SAFETY'}})

        with pytest.raises(EmptyResponse):
            GeminiClient().generate("prompt", "key", timeout=5)

    @responses.activate
    def test_http_error_raises_generation_failed(self):
        """Test that a quota error is reported as a generation failure."""
        responses.add(
            responses.POST,
            ENDPOINT,
            json={'error': {'code': 429, 'message': 'Resource exhausted'}},
            status=429
        )

        with pytest.raises(GenerationFailed) as exc_info:
            GeminiClient().generate("prompt", "key", timeout=5)

        assert exc_info.value.cause is not None
        assert "429" in str(exc_info.value)

    @responses.activate
    def test_connection_error_raises_generation_failed(self):
        responses.add(responses.POST, ENDPOINT, body=ConnectionError("Connection refused"))

        with pytest.raises(GenerationFailed):
            GeminiClient().generate("prompt", "key", timeout=5)

    @responses.activate
    def test_invalid_json_raises_generation_failed(self):
        responses.add(responses.POST, ENDPOINT, body="not json", status=200)

        with pytest.raises(GenerationFailed):
            GeminiClient().generate("prompt", "key", timeout=5)

    def test_timeout_abandons_slow_call(self):
        """Test that a call slower than the timeout raises GenerationTimeout."""
        release = threading.Event()

        def slow_request(prompt, api_key, timeout):
            release.wait(5)
            return "too late"

        client = GeminiClient()
        with patch.object(client, '_request', side_effect=slow_request):
            with pytest.raises(GenerationTimeout) as exc_info:
                client.generate("prompt", "key", timeout=0.05)

        release.set()
        assert exc_info.value.timeout == 0.05
