"""OpenAI-compatible chat completion client.

Talks to OpenRouter (or any OpenAI-compatible endpoint) through the openai
SDK. complete() is the plain "send prompt, receive text" contract used by the
contextualized workflow; run_structured() parses JSON answers into pydantic
models for the staged analysis.
"""

import json
import re
from typing import Optional, Type, TypeVar

from openai import APIConnectionError, APIError, OpenAI
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..config import get_settings
from ..errors import LLMConfigurationError, LLMError
from ..log import get_logger

logger = get_logger("llm")

T = TypeVar("T", bound=BaseModel)

DEFAULT_SYSTEM_PROMPT = "You are a helpful research assistant."

_FENCE_RE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$")


def parse_ai_json(content: str):
    """Parse a JSON answer, tolerating a surrounding ```json fence."""
    text = content.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMError(f"Model did not return valid JSON: {e}") from e


class LLMClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.base_url = base_url or settings.LLM_BASE_URL
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise LLMConfigurationError("LLM API key not configured (set LLM_API_KEY)")
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers={"X-Title": "Source Docs"},
            )
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(APIConnectionError),
        reraise=True,
    )
    def _create(self, **kwargs):
        return self.client.chat.completions.create(**kwargs)

    def complete(self, prompt: str, system_prompt: Optional[str] = None, model: Optional[str] = None,
                 json_mode: bool = False) -> str:
        settings = get_settings()
        model = model or settings.LLM_MODEL
        kwargs = dict(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt if system_prompt and system_prompt.strip() else DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
        )
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._create(**kwargs)
        except APIError as e:
            raise LLMError(f"LLM API error ({model}): {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(f"LLM returned an empty response ({model})")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(f"LLM {model}: {usage.prompt_tokens} prompt / {usage.completion_tokens} completion tokens")
        return content

    def run_structured(self, prompt: str, schema_model: Type[T], system_prompt: Optional[str] = None,
                       model: Optional[str] = None) -> T:
        content = self.complete(prompt, system_prompt=system_prompt, model=model, json_mode=True)
        data = parse_ai_json(content)
        try:
            return schema_model.model_validate(data)
        except ValidationError as e:
            raise LLMError(f"Model output does not match {schema_model.__name__}: {e}") from e

llm_client = LLMClient()
