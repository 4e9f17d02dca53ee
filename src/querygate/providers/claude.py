"""Anthropic Claude generation provider."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from querygate.core.types import LLMConfig
from querygate.exceptions import ConfigurationError, ProviderError
from querygate.providers.base import SYSTEM_PROMPT, LLMProvider

if TYPE_CHECKING:
    from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)


class ClaudeProvider(LLMProvider):
    """Anthropic messages API provider.

    Example:
        >>> provider = ClaudeProvider()  # Uses ANTHROPIC_API_KEY env var
        >>> sql = await provider.generate("...prompt...")
    """

    DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

    def __init__(self, config: LLMConfig | None = None, client: Any | None = None) -> None:
        """Initialize Claude provider.

        Args:
            config: Model, temperature, token limit and API key.
            client: Pre-built ``AsyncAnthropic`` client (skips key resolution).
        """
        super().__init__(config or LLMConfig(provider="claude"))

        if client is not None:
            self._client = client
            return

        try:
            from anthropic import AsyncAnthropic
        except ImportError as e:
            raise ImportError(
                "anthropic is required for the Claude provider. "
                "Install it with: pip install querygate[anthropic]"
            ) from e

        api_key = self.config.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key in the LLM config.",
                {"provider": "claude"},
            )

        self._client: AsyncAnthropic = AsyncAnthropic(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Generate a completion with the messages API."""
        try:
            response = await self._client.messages.create(
                model=self.model_name,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise ProviderError(
                f"Claude API error: {e}", "CLAUDE_API_ERROR", {"cause": repr(e)}
            ) from e

        block = response.content[0] if response.content else None
        if block is None or block.type != "text":
            raise ProviderError("Unexpected response type from Claude", "CLAUDE_INVALID_RESPONSE")

        return str(block.text).strip()

    async def validate_api_key(self) -> bool:
        """Probe the key with a minimal message."""
        try:
            await self._client.messages.create(
                model=self.default_model,
                max_tokens=10,
                messages=[{"role": "user", "content": "test"}],
            )
            return True
        except Exception as e:
            logger.debug(f"Claude credentials probe failed: {e}")
            return False

    @property
    def default_model(self) -> str:
        """Default Claude model."""
        return self.DEFAULT_MODEL
