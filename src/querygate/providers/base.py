"""Generation service interface."""

from abc import ABC, abstractmethod

from querygate.core.types import LLMConfig

SYSTEM_PROMPT = (
    "You are a database query generator. Generate only valid SQL queries based on the "
    "provided schema and user request. Return ONLY the query without explanations "
    "unless specifically asked."
)


class LLMProvider(ABC):
    """Interface for text-generation services.

    One call per ``generate``: no retries, no timeout. Failures surface as
    ProviderError so the generator can report them uniformly.
    """

    def __init__(self, config: LLMConfig | None = None) -> None:
        self.config = config or LLMConfig()

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate a completion for a prompt.

        Args:
            prompt: Full prompt text.

        Returns:
            Completion text.

        Raises:
            ProviderError: If the service call fails or returns nothing usable.
        """
        ...

    @abstractmethod
    async def validate_api_key(self) -> bool:
        """Best-effort credentials probe. Never raises."""
        ...

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when the config does not name one."""
        ...

    @property
    def model_name(self) -> str:
        """Model identifier in use."""
        return self.config.model or self.default_model
