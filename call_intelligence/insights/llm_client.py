"""
Text generation client
OpenAI-compatible chat completions with a bounded timeout, and parsing of
JSON payloads that may arrive wrapped in a markdown code fence
"""

import json
import logging
import re
from typing import Dict, Any, Optional

import openai
from openai import OpenAI

from call_intelligence.config.llm_config import LLMConfig
from call_intelligence.exceptions import AnalysisParseError, TextGenerationError

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r'^```(?:json)?\n?')
_FENCE_CLOSE = re.compile(r'\n?```$')


def strip_code_fence(text: str) -> str:
    """Remove a leading/trailing markdown fence around a payload"""
    content = text.strip()
    if content.startswith('```'):
        content = _FENCE_OPEN.sub('', content)
        content = _FENCE_CLOSE.sub('', content)
    return content.strip()


def parse_json_payload(text: str) -> Dict[str, Any]:
    """
    Parse a text-generation response as a JSON object

    Args:
        text: Raw response text, optionally fence-wrapped

    Returns:
        Parsed object

    Raises:
        AnalysisParseError: If the payload is not a JSON object
    """
    content = strip_code_fence(text)

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        logger.debug(f"Raw content: {text[:200]}...")
        raise AnalysisParseError(f"Response is not valid JSON: {e}", raw_response=text) from e

    if not isinstance(payload, dict):
        raise AnalysisParseError(
            f"Expected a JSON object, got {type(payload).__name__}",
            raw_response=text
        )

    return payload


class TextGenerator:
    """Contract for the external text-generation service"""

    def generate(self, prompt: str, task: str) -> str:
        """
        Send one prompt and return the response text

        Args:
            prompt: Full instruction including the transcript or summaries
            task: Pipeline task name ('call_analysis' or 'team_digest')

        Returns:
            Response text

        Raises:
            TextGenerationError: If the service call fails or times out
        """
        raise NotImplementedError


class OpenAITextGenerator(TextGenerator):
    """
    Text generator backed by an OpenAI-compatible endpoint (OpenAI or OpenRouter)

    The client never retries on its own; retry policy belongs to the caller.
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        api_key: Optional[str] = None,
        timeout: float = 90.0,
        client: Optional[OpenAI] = None
    ):
        """
        Initialize the generator

        Args:
            llm_config: Task/model configuration
            api_key: Overrides the provider's API key environment variable
            timeout: Seconds before a single request is abandoned
            client: Pre-built OpenAI client
        """
        self.llm_config = llm_config or LLMConfig()
        self.timeout = timeout
        self.client = client or OpenAI(
            timeout=timeout,
            max_retries=0,
            **self.llm_config.get_client_config(api_key)
        )

        logger.info(f"Text generator initialized with provider {self.llm_config.provider}")

    def generate(self, prompt: str, task: str) -> str:
        model = self.llm_config.get_model_for_task(task)
        params = self.llm_config.get_generation_params(task)

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                **params
            )
        except openai.APITimeoutError as e:
            raise TextGenerationError(f"{task} request to {model} timed out after {self.timeout}s") from e
        except openai.OpenAIError as e:
            raise TextGenerationError(f"{task} request to {model} failed: {e}") from e

        if not response.choices or response.choices[0].message.content is None:
            raise TextGenerationError(f"Empty response from {model} for {task}")

        return response.choices[0].message.content
