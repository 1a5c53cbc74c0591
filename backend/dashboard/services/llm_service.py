"""
LLM Service — Text generation through OpenAI GPT or Anthropic Claude.

Used for headline optimization. Callers get the raw completion text; any
provider failure propagates, there is no retry and no fallback text.
"""

import logging
from typing import Optional
from fastapi import HTTPException
from openai import AsyncOpenAI
from anthropic import AsyncAnthropic
from dashboard.config import get_settings

logger = logging.getLogger(__name__)

HEADLINE_SYSTEM_PROMPT = (
    "You are a marketing expert. Generate 3 alternative headlines that are more engaging "
    "and conversion-focused than the original. Return only the headlines, one per line."
)


class LLMError(RuntimeError):
    """The text-generation provider returned nothing usable."""


def _parse_model_id(model_id: Optional[str]) -> tuple[str, str]:
    """Parse 'provider:model' into (provider, model). Bare names are OpenAI models."""
    if model_id and ":" in model_id:
        p, m = model_id.split(":", 1)
        return (p.strip().lower(), m.strip())
    return ("openai", (model_id or "gpt-4o").strip())


class LLMService:
    """Role-tagged messages in, completion text out."""

    def __init__(
        self,
        model_id: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.provider, self.model = _parse_model_id(model_id or settings.llm_model)
        self._openai_client: Optional[AsyncOpenAI] = None
        self._anthropic_client: Optional[AsyncAnthropic] = None

        openai_key = openai_api_key or settings.openai_api_key
        anthropic_key = anthropic_api_key or settings.anthropic_api_key
        timeout = timeout if timeout is not None else settings.llm_timeout_seconds

        if self.provider == "openai":
            if not openai_key:
                raise ValueError("OPENAI_API_KEY not configured.")
            self._openai_client = AsyncOpenAI(api_key=openai_key, timeout=timeout, max_retries=0)
        elif self.provider == "anthropic":
            if not anthropic_key:
                raise ValueError("ANTHROPIC_API_KEY not configured.")
            self._anthropic_client = AsyncAnthropic(api_key=anthropic_key, timeout=timeout, max_retries=0)
        else:
            raise ValueError(f"Unknown LLM provider: {self.provider}")

    async def complete(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Call the configured provider. Raises LLMError on an empty completion."""
        if self.provider == "openai":
            response = await self._openai_client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
            content = response.choices[0].message.content if response.choices else None
        else:
            # Anthropic takes the system prompt separately
            system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system" and m.get("content"))
            anthropic_messages = [
                {"role": "assistant" if m.get("role") == "assistant" else "user", "content": m.get("content", "")}
                for m in messages
                if m.get("role") != "system"
            ]
            kwargs = dict(model=self.model, max_tokens=max_tokens, temperature=temperature, messages=anthropic_messages)
            if system:
                kwargs["system"] = system
            response = await self._anthropic_client.messages.create(**kwargs)
            content = None
            if response.content and response.content[0].type == "text":
                content = response.content[0].text

        if not isinstance(content, str) or not content.strip():
            raise LLMError(f"{self.provider}:{self.model} returned an empty completion")
        return content

    async def generate_headline_alternatives(self, current_headline: str) -> str:
        """Three alternatives, one per line, exactly as the model returned them."""
        messages = [
            {"role": "system", "content": HEADLINE_SYSTEM_PROMPT},
            {"role": "user", "content": f'Original headline: "{current_headline}". Generate better alternatives.'},
        ]
        return await self.complete(messages)


def get_llm_service() -> LLMService:
    """Dependency / factory. Keys and model come from settings."""
    try:
        return LLMService()
    except ValueError as e:
        logger.error(f"LLM not configured: {e}")
        raise HTTPException(status_code=503, detail="Text generation is not configured.")
