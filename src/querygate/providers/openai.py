"""OpenAI generation provider."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from querygate.core.types import LLMConfig
from querygate.exceptions import ConfigurationError, ProviderError
from querygate.providers.base import SYSTEM_PROMPT, LLMProvider

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider.

    Example:
        >>> provider = OpenAIProvider()  # Uses OPENAI_API_KEY env var
        >>> sql = await provider.generate("...prompt...")
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, config: LLMConfig | None = None, client: Any | None = None) -> None:
        """Initialize OpenAI provider.

        Args:
            config: Model, temperature, token limit and API key.
            client: Pre-built ``AsyncOpenAI`` client (skips key resolution).
        """
        super().__init__(config or LLMConfig(provider="openai"))

        if client is not None:
            self._client = client
            return

        try:
            from openai import AsyncOpenAI
        except ImportError as e:
            raise ImportError(
                "openai is required for the OpenAI provider. "
                "Install it with: pip install querygate[openai]"
            ) from e

        api_key = self.config.api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                "or pass api_key in the LLM config.",
                {"provider": "openai"},
            )

        self._client: AsyncOpenAI = AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Generate a completion with the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            raise ProviderError(
                f"OpenAI API error: {e}", "OPENAI_API_ERROR", {"cause": repr(e)}
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("No response from OpenAI", "OPENAI_EMPTY_RESPONSE")

        return str(content).strip()

    async def validate_api_key(self) -> bool:
        """Probe the key by listing models."""
        try:
            await self._client.models.list()
            return True
        except Exception as e:
            logger.debug(f"OpenAI credentials probe failed: {e}")
            return False

    @property
    def default_model(self) -> str:
        """Default OpenAI model."""
        return self.DEFAULT_MODEL
