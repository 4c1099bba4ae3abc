# portal/services/generation.py
"""
Generation Invoker - Integration with the OpenAI Chat Completions API

Single entry point for every outbound model call in the portal:
- Free text generation (strategy documents, agents, chat replies)
- Structured JSON generation (QA review, milestone suggestions, gifts)

Provider failures never leave this module as provider exceptions. They are
logged here and re-raised as ``GenerationFailed`` so handlers can answer
with a public message.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from portal.config import Settings
from portal.errors import GenerationFailed, StructuredOutputError

logger = logging.getLogger(__name__)


class GenerationInvoker:
    """Service for calling the chat completions API."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client
        self.default_model = settings.OPENAI_MODEL
        self.fast_model = settings.OPENAI_FAST_MODEL
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        """
        Build the OpenAI client on first use.

        Raises:
            GenerationFailed: If OPENAI_API_KEY is not configured
        """
        if self._client is None:
            if not self.settings.OPENAI_API_KEY:
                logger.error("❌ OPENAI_API_KEY not configured")
                raise GenerationFailed("Generation service is not configured")

            client_kwargs: Dict[str, Any] = {
                "api_key": self.settings.OPENAI_API_KEY,
                "timeout": self.settings.OPENAI_TIMEOUT_SECONDS,
                "max_retries": self.settings.OPENAI_MAX_RETRIES,
            }
            if self.settings.OPENAI_BASE_URL:
                client_kwargs["base_url"] = self.settings.OPENAI_BASE_URL
            if self.http_client is not None:
                client_kwargs["http_client"] = self.http_client

            self._client = AsyncOpenAI(**client_kwargs)
        return self._client

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        model: Optional[str],
        response_format: Optional[Dict[str, str]] = None
    ) -> str:
        client = self._get_client()
        model = model or self.default_model

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            kwargs["response_format"] = response_format

        logger.info(f"🤖 Calling {model} (temperature={temperature}, max_tokens={max_tokens})")

        try:
            completion = await client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            logger.error(f"❌ Generation call to {model} failed: {e}")
            raise GenerationFailed("Generation call failed") from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def generate_text(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
        fallback: Optional[str] = None
    ) -> str:
        """
        Generate free text.

        Args:
            system_prompt: System message
            messages: Conversation turns, each ``{"role", "content"}``
            temperature: Sampling temperature
            max_tokens: Completion token limit
            model: Model override, defaults to OPENAI_MODEL
            fallback: Returned when the model answers with no content

        Returns:
            Generated text

        Raises:
            GenerationFailed: On provider errors, or on empty content
                without a fallback
        """
        content = await self._complete(
            [{"role": "system", "content": system_prompt}, *messages],
            temperature=temperature,
            max_tokens=max_tokens,
            model=model,
        )

        if not content.strip():
            if fallback is not None:
                logger.warning("⚠️  Empty generation result, using fallback text")
                return fallback
            logger.error("❌ Empty generation result")
            raise GenerationFailed("Generation returned no content")

        return content

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_hint: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Generate a JSON object.

        The schema hint is appended to the user prompt and the call asks
        the provider for JSON output.

        Raises:
            StructuredOutputError: If the output is not a JSON object
            GenerationFailed: On provider errors
        """
        prompt = f"{user_prompt}\n\n{schema_hint}" if schema_hint else user_prompt

        raw = await self._complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            model=model,
            response_format={"type": "json_object"},
        )

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.error(f"❌ Structured output could not be parsed: {e}")
            raise StructuredOutputError("Failed to parse structured output", raw=raw) from e

        if not isinstance(parsed, dict):
            logger.error("❌ Structured output is not a JSON object")
            raise StructuredOutputError("Structured output is not an object", raw=raw)

        return parsed
