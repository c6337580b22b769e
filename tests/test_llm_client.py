"""
Tests for task-based model configuration and the OpenAI-compatible generator
"""

from types import SimpleNamespace

import httpx
import openai
import pytest

from call_intelligence.config.llm_config import LLMConfig
from call_intelligence.exceptions import TextGenerationError
from call_intelligence.insights.llm_client import OpenAITextGenerator


class FakeCompletions:
    def __init__(self, result):
        self.result = result
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def fake_client(result):
    completions = FakeCompletions(result)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_models_per_task(monkeypatch):
    monkeypatch.delenv('LLM_MODEL_CALL_ANALYSIS', raising=False)
    config = LLMConfig('openrouter')

    assert config.get_model_for_task('call_analysis') == 'anthropic/claude-sonnet-4'
    assert config.get_generation_params('team_digest')['max_tokens'] == 6144
    assert LLMConfig('openai').get_model_for_task('team_digest') == 'gpt-4o'


def test_model_override_from_environment(monkeypatch):
    monkeypatch.setenv('LLM_MODEL_CALL_ANALYSIS', 'openai/gpt-4o-mini')

    assert LLMConfig('openrouter').get_model_for_task('call_analysis') == 'openai/gpt-4o-mini'


def test_unknown_provider_and_task():
    with pytest.raises(ValueError):
        LLMConfig('mystery')
    with pytest.raises(ValueError):
        LLMConfig('openai').get_model_for_task('poetry')


def test_openrouter_client_config():
    config = LLMConfig('openrouter').get_client_config('sk-or-test')

    assert config['api_key'] == 'sk-or-test'
    assert config['base_url'] == 'https://openrouter.ai/api/v1'
    assert 'X-Title' in config['default_headers']


def test_openai_client_config_uses_default_base_url():
    config = LLMConfig('openai').get_client_config('sk-test')

    assert 'base_url' not in config


def test_generate_sends_task_model_and_params():
    client, completions = fake_client(completion('{"ok": true}'))
    generator = OpenAITextGenerator(LLMConfig('openai'), client=client)

    assert generator.generate('Analyse this call', 'call_analysis') == '{"ok": true}'

    request = completions.requests[0]
    assert request['model'] == 'gpt-4o'
    assert request['max_tokens'] == 4096
    assert request['messages'] == [{'role': 'user', 'content': 'Analyse this call'}]


def test_timeout_becomes_generation_error():
    error = openai.APITimeoutError(request=httpx.Request('POST', 'https://api.openai.com/v1/chat/completions'))
    client, _ = fake_client(error)
    generator = OpenAITextGenerator(LLMConfig('openai'), client=client, timeout=90)

    with pytest.raises(TextGenerationError) as exc_info:
        generator.generate('prompt', 'team_digest')

    assert 'timed out' in str(exc_info.value)


def test_api_error_becomes_generation_error():
    error = openai.APIConnectionError(request=httpx.Request('POST', 'https://api.openai.com/v1/chat/completions'))
    client, _ = fake_client(error)

    with pytest.raises(TextGenerationError):
        OpenAITextGenerator(LLMConfig('openai'), client=client).generate('prompt', 'call_analysis')


def test_empty_response_is_generation_error():
    client, _ = fake_client(completion(None))

    with pytest.raises(TextGenerationError):
        OpenAITextGenerator(LLMConfig('openai'), client=client).generate('prompt', 'call_analysis')
