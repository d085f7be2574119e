"""Unit tests for credential rotation, prompts and retry orchestration."""
from unittest.mock import Mock

import pytest

from generator.credentials import CredentialRotator
from generator.prompt_builder import build_prompt
from generator.retry import RetryAction, RetryOrchestrator, next_action
from processor.errors import (
    AllCredentialsExhausted,
    ConfigurationError,
    EmptyResponse,
    GenerationFailed,
    GenerationTimeout,
)


class TestCredentialRotator:
    """Test cases for CredentialRotator."""

    def test_current_and_advance_wrap_around(self):
        rotator = CredentialRotator(['key-a', 'key-b', 'key-c'])

        assert rotator.current() == 'key-a'
        assert rotator.advance() == 'key-b'
        assert rotator.advance() == 'key-c'
        assert rotator.advance() == 'key-a'
        assert rotator.index == 0

    def test_empty_credentials_raise(self):
        with pytest.raises(ConfigurationError):
            CredentialRotator([])

    def test_blank_credentials_are_ignored(self):
        rotator = CredentialRotator(['', 'key-b', None])

        assert len(rotator) == 1
        assert rotator.current() == 'key-b'

    def test_single_credential_advances_to_itself(self):
        rotator = CredentialRotator(['only'])

        assert rotator.advance() == 'only'


class TestBuildPrompt:
    """Test cases for build_prompt."""

    def test_english_prompt_contents(self):
        prompt = build_prompt(7, 20, 'en', 2024, min_events=3, max_events=8)

        assert "7/20" in prompt
        assert "1974 - 2024" in prompt
        assert "3-8" in prompt
        assert "Year|Event description" in prompt
        assert "Politics, Economy, Technology, Culture, Sports, Disaster, Other" in prompt
        assert "2015|Paris Climate Agreement signed|Politics" in prompt

    def test_chinese_prompt_contents(self):
        prompt = build_prompt(7, 20, 'zh', 2024)

        assert "7月20日" in prompt
        assert "5-10" in prompt
        assert "政治、经济、科技、文化、体育、灾害、其他" in prompt
        assert "2015|巴黎气候协定签署|政治" in prompt

    def test_prompt_is_deterministic(self):
        assert build_prompt(1, 1, 'en', 2024) == build_prompt(1, 1, 'en', 2024)

    def test_unsupported_language_raises(self):
        with pytest.raises(ValueError):
            build_prompt(1, 1, 'fr', 2024)

    @pytest.mark.parametrize("bounds", [(0, 5), (6, 5), (5, 11)])
    def test_invalid_count_bounds_raise(self, bounds):
        with pytest.raises(ValueError):
            build_prompt(1, 1, 'en', 2024, min_events=bounds[0], max_events=bounds[1])


class TestNextAction:
    """Test cases for the retry policy."""

    def test_rotate_while_budget_remains(self):
        assert next_action(1, 6) is RetryAction.ROTATE
        assert next_action(5, 6) is RetryAction.ROTATE

    def test_stop_when_budget_used(self):
        assert next_action(6, 6) is RetryAction.STOP
        assert next_action(7, 6) is RetryAction.STOP


class TestRetryOrchestrator:
    """Test cases for RetryOrchestrator."""

    @pytest.mark.parametrize("keys,multiplier", [(1, 1), (2, 3), (3, 2)])
    def test_exact_attempts_when_every_key_fails(self, keys, multiplier):
        """Test that N keys with budget N*k make exactly N*k attempts."""
        client = Mock()
        client.generate.side_effect = GenerationFailed("quota exceeded")
        rotator = CredentialRotator([f"key-{i}" for i in range(keys)])
        orchestrator = RetryOrchestrator(client, rotator, retries_per_credential=multiplier)

        with pytest.raises(AllCredentialsExhausted) as exc_info:
            orchestrator.generate("prompt", 'en')

        assert client.generate.call_count == keys * multiplier
        assert exc_info.value.attempts == keys * multiplier
        assert exc_info.value.language == 'en'

    def test_succeeds_after_rotations(self):
        """Test that key i succeeding after i rotations takes i+1 attempts."""
        keys = ['key-0', 'key-1', 'key-2']

        def generate(prompt, key, timeout):
            if key != 'key-2':
                raise GenerationTimeout(timeout)
            return "2020|Ok|Other"

        client = Mock()
        client.generate.side_effect = generate
        orchestrator = RetryOrchestrator(client, CredentialRotator(keys), timeout=5)

        result = orchestrator.generate("prompt", 'en')

        assert result == "2020|Ok|Other"
        assert client.generate.call_count == 3
        assert [c.args[1] for c in client.generate.call_args_list] == keys

    def test_first_success_does_not_rotate(self):
        client = Mock()
        client.generate.return_value = "text"
        rotator = CredentialRotator(['a', 'b'])
        orchestrator = RetryOrchestrator(client, rotator, timeout=12)

        assert orchestrator.generate("prompt", 'zh') == "text"
        client.generate.assert_called_once_with("prompt", 'a', 12)
        assert rotator.index == 0

    def test_empty_response_is_retried(self):
        client = Mock()
        client.generate.side_effect = [EmptyResponse("empty"), "1999|Euro launched|Economy"]
        orchestrator = RetryOrchestrator(client, CredentialRotator(['a', 'b']))

        assert orchestrator.generate("prompt", 'en') == "1999|Euro launched|Economy"
        assert client.generate.call_count == 2

    def test_rotation_state_persists_between_languages(self):
        """Test that the next language starts from the last working key."""
        client = Mock()
        client.generate.side_effect = [GenerationFailed("bad key"), "zh text", "en text"]
        rotator = CredentialRotator(['a', 'b'])
        orchestrator = RetryOrchestrator(client, rotator)

        orchestrator.generate("zh prompt", 'zh')
        orchestrator.generate("en prompt", 'en')

        assert client.generate.call_args_list[-1].args[1] == 'b'

    def test_non_generation_errors_propagate(self):
        client = Mock()
        client.generate.side_effect = KeyError('boom')
        orchestrator = RetryOrchestrator(client, CredentialRotator(['a', 'b']))

        with pytest.raises(KeyError):
            orchestrator.generate("prompt", 'en')
        assert client.generate.call_count == 1
