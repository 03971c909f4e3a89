# study_material.py
import logging
import os
from typing import Optional

import openai
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_MAX_TOKENS = 500

SYSTEM_PROMPT = "You are a helpful assistant that provides study material for Jeopardy answers."


class StudyMaterialError(Exception):
    pass


class ConfigurationError(StudyMaterialError):
    pass


class LookupFailure(StudyMaterialError):
    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


def build_messages(answer: str) -> list:
    return [
        {
            "role": "system",
            "content": SYSTEM_PROMPT
        },
        {
            "role": "user",
            "content": (
                f'Provide study material for the Jeopardy answer: "{answer}". '
                "Include: 1) Key Points, 2) Related Topics, 3) Common Misconceptions, "
                "4) Fun Fact, and 5) Study Tips."
            )
        }
    ]


class StudyMaterialClient:
    """
    Fetches study material for a missed answer from the OpenAI chat API.

    The API key, model and token cap are resolved on every call so bad
    configuration is reported before any request is made.
    """
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 max_tokens: Optional[int] = None, client=None):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self):
        api_key = self.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("OpenAI API key is not set")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=api_key)
        return self._client

    def _get_max_tokens(self) -> int:
        if self.max_tokens is not None:
            return self.max_tokens
        raw = os.getenv("STUDY_MATERIAL_MAX_TOKENS")
        if not raw:
            return DEFAULT_MAX_TOKENS
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(f"STUDY_MATERIAL_MAX_TOKENS must be an integer, got {raw!r}")
        if value <= 0:
            raise ConfigurationError(f"STUDY_MATERIAL_MAX_TOKENS must be positive, got {value}")
        return value

    async def __call__(self, answer: str) -> str:
        client = self._get_client()
        max_tokens = self._get_max_tokens()
        model = self.model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=build_messages(answer),
                max_tokens=max_tokens
            )
        except openai.APIStatusError as e:
            logger.warning("Study material request failed with status %s", e.status_code)
            raise LookupFailure(
                f"HTTP error! status: {e.status_code}",
                status=e.status_code,
                body=e.response.text
            ) from e
        except openai.APIError as e:
            logger.warning("Study material request failed: %s", e)
            raise LookupFailure(f"Request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LookupFailure("Empty study material response")
        return content
