"""Natural-language to SQL query generation.

Orchestrates the full pipeline for one request:
    prompt -> generation service -> extract/sanitize -> syntax check
    -> row-level security -> limit injection -> security validation
    -> metadata

Every stage either succeeds or the whole call raises; a partially validated
query is never returned.
"""

from __future__ import annotations

import logging
import re

from querygate.core.types import (
    Complexity,
    GeneratorConfig,
    QueryMetadata,
    QueryOperation,
    QueryResult,
    UserContext,
)
from querygate.exceptions import (
    ConfigurationError,
    InvalidSyntaxError,
    QueryGateError,
    QueryGenerationError,
    SecurityValidationError,
)
from querygate.generator.prompts import PromptBuilder
from querygate.providers import LLMProvider, create_provider
from querygate.schema.registry import SchemaRegistry
from querygate.security.inspector import (
    METADATA_TABLE_KEYWORDS,
    QueryInspector,
    RegexQueryInspector,
)
from querygate.security.sanitizer import QuerySanitizer
from querygate.security.validator import SecurityValidator

logger = logging.getLogger(__name__)

NESTED_SELECT_PATTERN = re.compile(r"\bselect\b.*\bselect\b", re.IGNORECASE | re.DOTALL)
JOIN_PATTERN = re.compile(r"\bjoin\b", re.IGNORECASE)


def estimate_complexity(query: str) -> Complexity:
    """Estimate a query's structural complexity from keyword presence.

    Score: +1 JOIN, +2 nested SELECT, +1 GROUP BY, +1 HAVING, +2 UNION,
    +2 more when there are more than two JOINs.

    Args:
        query: Final query

    Returns:
        LOW for 0, MEDIUM for 1-2, HIGH for 3 and above
    """
    normalized = query.lower()
    join_count = len(JOIN_PATTERN.findall(query))

    score = 0
    if join_count:
        score += 1
    if "subquery" in normalized or NESTED_SELECT_PATTERN.search(query):
        score += 2
    if re.search(r"\bgroup\s+by\b", normalized):
        score += 1
    if re.search(r"\bhaving\b", normalized):
        score += 1
    if re.search(r"\bunion\b", normalized):
        score += 2
    if join_count > 2:
        score += 2

    if score == 0:
        return Complexity.LOW
    if score <= 2:
        return Complexity.MEDIUM
    return Complexity.HIGH


class QueryGenerator:
    """Generates validated database queries from natural language.

    Owns one SchemaRegistry, QuerySanitizer and SecurityValidator for its
    lifetime. Holds no per-call state, so ``generate`` may run concurrently
    on one instance.

    Example:
        >>> generator = QueryGenerator(GeneratorConfig(llm=LLMConfig(), database=schema))
        >>> result = await generator.generate("Show all users", user_context)
        >>> result.query
        'SELECT id, email, name FROM users LIMIT 1000'
    """

    def __init__(
        self,
        config: GeneratorConfig,
        provider: LLMProvider | None = None,
        inspector: QueryInspector | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            config: Schema, security policy, LLM settings, default user context
            provider: Generation service (created from ``config.llm`` if omitted)
            inspector: Lexical inspector shared by the validator and metadata

        Raises:
            ConfigurationError: If neither a provider nor an LLM config is given
            UnsupportedProviderError: If ``config.llm`` names an unknown provider
        """
        self._config = config

        if provider is None:
            if config.llm is None:
                raise ConfigurationError(
                    "QueryGenerator needs a provider or an LLM config",
                    {"hint": "pass provider=... or GeneratorConfig(llm=LLMConfig(...))"},
                )
            provider = create_provider(config.llm)
        self._provider = provider

        self._inspector = inspector or RegexQueryInspector()
        self._sanitizer = QuerySanitizer()
        self._registry = SchemaRegistry(config.database)
        self._validator = SecurityValidator(
            config.security, inspector=self._inspector, sanitizer=self._sanitizer
        )
        self._prompts = PromptBuilder(self._registry, config.security)

        self._log("QueryGenerator initialized")

    @property
    def config(self) -> GeneratorConfig:
        """Construction-time configuration."""
        return self._config

    @property
    def validator(self) -> SecurityValidator:
        """Validator enforcing the configured policy."""
        return self._validator

    @property
    def registry(self) -> SchemaRegistry:
        """Schema registry used for prompts."""
        return self._registry

    async def generate(
        self,
        user_input: str,
        user_context: UserContext | None = None,
    ) -> QueryResult:
        """Generate a validated query from natural language.

        Args:
            user_input: Natural-language request
            user_context: Requesting user (overrides the configured default)

        Returns:
            QueryResult with the final query, warnings and metadata

        Raises:
            InvalidSyntaxError: If the sanitized query fails the syntax check
            SecurityValidationError: If the policy rejects the query
            ProviderError: If the generation service fails
            QueryGenerationError: For any other failure
        """
        try:
            return await self._generate(user_input, user_context)
        except QueryGateError as e:
            self._log(f"Error generating query: {e.message}")
            raise
        except Exception as e:
            self._log(f"Error generating query: {e}")
            raise QueryGenerationError(
                f"Failed to generate query: {e}", {"cause": repr(e)}
            ) from e

    async def _generate(
        self,
        user_input: str,
        user_context: UserContext | None,
    ) -> QueryResult:
        self._log(f'Generating query for input: "{user_input}"')
        context = user_context if user_context is not None else self._config.user_context
        security = self._config.security

        prompt = self._prompts.build(user_input, context)
        raw_response = await self._provider.generate(prompt)
        self._log(f"Received LLM response: {raw_response[:100]}...")

        query = self._sanitizer.sanitize(self._sanitizer.extract_from_code(raw_response))

        syntax = self._sanitizer.validate_syntax(query)
        if not syntax.valid:
            raise InvalidSyntaxError(syntax.error or "unknown error", query)

        if security.enable_row_level_security and context is not None:
            query = self._validator.add_row_level_security(query, context)
            self._log("Applied row-level security")

        operation = self._inspector.detect_operation(query)
        if operation == QueryOperation.SELECT:
            query = self._sanitizer.add_limit_if_missing(query, security.max_row_limit)

        report = await self._validator.validate(query, context)
        if not report.valid:
            raise SecurityValidationError(report.errors, report.warnings)
        if operation is None:
            raise SecurityValidationError(["Could not determine query operation"])

        result = QueryResult(
            query=query,
            explanation=f'Generated {operation.value} query for: "{user_input}"',
            warnings=report.warnings,
            metadata=QueryMetadata(
                operation=operation,
                tables=self._inspector.extract_tables(query, METADATA_TABLE_KEYWORDS),
                estimated_complexity=estimate_complexity(query),
            ),
        )

        self._log("Query generated successfully")
        return result

    async def generate_with_explanation(
        self,
        user_input: str,
        user_context: UserContext | None = None,
    ) -> QueryResult:
        """Generate a query, then ask the service to explain it.

        The explanation is prose, so only code-block extraction is applied.

        Raises:
            Same as ``generate``
        """
        result = await self.generate(user_input, user_context)

        try:
            explanation = await self._provider.generate(
                self._prompts.build_explanation(result.query)
            )
        except QueryGateError:
            raise
        except Exception as e:
            raise QueryGenerationError(
                f"Failed to generate explanation: {e}", {"cause": repr(e)}
            ) from e

        return result.model_copy(
            update={"explanation": self._sanitizer.extract_from_code(explanation)}
        )

    async def validate_credentials(self) -> bool:
        """Check the provider credentials. Never raises."""
        try:
            return await self._provider.validate_api_key()
        except Exception as e:
            logger.debug(f"Credential check failed: {e}")
            return False

    def get_schema(self) -> str:
        """Schema description as sent to the LLM."""
        return self._registry.generate_schema_prompt()

    def get_example_queries(self) -> list[str]:
        """Example queries for the configured schema."""
        return self._registry.generate_example_queries()

    def _log(self, message: str) -> None:
        logger.log(logging.INFO if self._config.debug else logging.DEBUG, message)
