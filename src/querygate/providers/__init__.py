"""Generation service providers.

This module provides the text-generation services the QueryGenerator calls.

Example:
    >>> from querygate.providers import create_provider
    >>> from querygate.core.types import LLMConfig
    >>>
    >>> provider = create_provider(LLMConfig(provider="claude"))
    >>> provider = create_provider(MyCustomProvider())
"""

from querygate.core.types import LLMConfig
from querygate.exceptions import UnsupportedProviderError
from querygate.providers.base import LLMProvider

__all__ = [
    "LLMProvider",
    "create_provider",
]


def create_provider(provider: LLMConfig | LLMProvider) -> LLMProvider:
    """Create a provider from config or return the provider if already instantiated.

    Args:
        provider: LLMConfig naming "openai" or "claude", or an LLMProvider instance.

    Returns:
        LLMProvider instance.

    Raises:
        UnsupportedProviderError: If the provider name is unknown.
        ConfigurationError: If no API key can be resolved.
        ImportError: If the provider SDK is not installed.
    """
    if isinstance(provider, LLMProvider):
        return provider

    name = provider.provider.lower()
    if name == "openai":
        from querygate.providers.openai import OpenAIProvider

        return OpenAIProvider(provider)
    elif name in ("claude", "anthropic"):
        from querygate.providers.claude import ClaudeProvider

        return ClaudeProvider(provider)
    else:
        raise UnsupportedProviderError(provider.provider)
