#!/usr/bin/env python3
"""
Task-Optimized LLM Configuration
Provider and model per pipeline task, for an OpenAI-compatible client
"""

import os
from typing import Dict, Any, Optional


class LLMConfig:
    """Task-specific LLM configuration"""

    PROVIDERS = {
        'openai': {
            'api_key_env': 'OPENAI_API_KEY',
            'base_url': None
        },
        'openrouter': {
            'api_key_env': 'OPENROUTER_API_KEY',
            'base_url': 'https://openrouter.ai/api/v1'
        }
    }

    TASK_MODELS = {
        # Per-call structured extraction - needs reliable JSON and nuance
        'call_analysis': {
            'openrouter': 'anthropic/claude-sonnet-4',
            'openai': 'gpt-4o',
            'max_tokens': 4096,
            'temperature': 0.3,
            'reason': 'Structured extraction of objections, signals and coaching notes'
        },

        # Cross-call pattern finding - larger output budget
        'team_digest': {
            'openrouter': 'anthropic/claude-sonnet-4',
            'openai': 'gpt-4o',
            'max_tokens': 6144,
            'temperature': 0.3,
            'reason': 'Aggregates many analyses into one team report'
        }
    }

    def __init__(self, provider: Optional[str] = None):
        provider = provider or os.getenv('LLM_PROVIDER', 'openrouter')
        if provider not in self.PROVIDERS:
            raise ValueError(f"Unknown provider: {provider}")
        self.provider = provider

    def get_model_for_task(self, task: str) -> str:
        """Get model name for a pipeline task"""
        if task not in self.TASK_MODELS:
            raise ValueError(f"Unknown task: {task}")

        env_override = os.getenv(f"LLM_MODEL_{task.upper()}")
        return env_override or self.TASK_MODELS[task][self.provider]

    def get_generation_params(self, task: str) -> Dict[str, Any]:
        """max_tokens and temperature for a task"""
        settings = self.TASK_MODELS[task]
        return {
            'max_tokens': settings['max_tokens'],
            'temperature': settings['temperature']
        }

    def get_api_key(self) -> Optional[str]:
        return os.getenv(self.PROVIDERS[self.provider]['api_key_env'])

    def get_client_config(self, api_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for OpenAI-compatible client"""
        provider = self.PROVIDERS[self.provider]

        config = {
            'api_key': api_key or self.get_api_key(),
        }

        if provider['base_url']:
            config['base_url'] = provider['base_url']

        if self.provider == 'openrouter':
            config['default_headers'] = {
                'X-Title': 'Call Intelligence Pipeline'
            }

        return config
