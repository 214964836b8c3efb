"""Text-generation client: tries OpenAI first and falls back to Anthropic."""

import logging

import anthropic
from openai import AsyncOpenAI

from weatherguard.config import settings
from weatherguard.services.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

OPENAI_MODEL = "gpt-4o-mini"
ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"


class LLMClient:
    """Async completion client with OpenAI primary + Anthropic fallback."""

    def __init__(self, openai_api_key: str | None = None, anthropic_api_key: str | None = None):
        openai_key = settings.openai_api_key if openai_api_key is None else openai_api_key
        anthropic_key = settings.anthropic_api_key if anthropic_api_key is None else anthropic_api_key

        self._openai = AsyncOpenAI(api_key=openai_key) if openai_key else None
        self._anthropic = anthropic.AsyncAnthropic(api_key=anthropic_key) if anthropic_key else None

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0,
        json_mode: bool = False,
    ) -> str:
        """Get a completion from the first provider that answers.

        Args:
            system: System prompt
            user: User message
            max_tokens: Max output tokens
            temperature: Sampling temperature
            json_mode: If True, force JSON output (OpenAI response_format)

        Returns:
            Raw text response.

        Raises:
            ExternalServiceError if no provider is configured or all of them fail.
        """
        errors = []
        chat_messages = [{"role": "user", "content": user}]

        if self._openai:
            try:
                kwargs: dict = {
                    "model": OPENAI_MODEL,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": [{"role": "system", "content": system}] + chat_messages,
                }
                if json_mode:
                    kwargs["response_format"] = {"type": "json_object"}
                response = await self._openai.chat.completions.create(**kwargs)
                return (response.choices[0].message.content or "").strip()
            except Exception as e:
                errors.append(f"OpenAI: {e}")
                logger.warning(f"OpenAI failed, trying Anthropic: {e}")

        if self._anthropic:
            try:
                response = await self._anthropic.messages.create(
                    model=ANTHROPIC_MODEL,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system,
                    messages=chat_messages,
                )
                return response.content[0].text.strip()
            except Exception as e:
                errors.append(f"Anthropic: {e}")
                logger.warning(f"Anthropic also failed: {e}")

        if not errors:
            raise ExternalServiceError("llm", "no provider configured")
        raise ExternalServiceError("llm", f"all providers failed: {'; '.join(errors)}")


# Singleton
llm_client = LLMClient()
