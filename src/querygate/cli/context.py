"""CLI context: option resolution and lazily built collaborators."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from querygate.cli.parsing import read_json_file
from querygate.core.types import (
    GeneratorConfig,
    LLMConfig,
    Schema,
    SecurityConfig,
    UserContext,
)
from querygate.exceptions import ConfigurationError
from querygate.generator import QueryGenerator
from querygate.providers import LLMProvider
from querygate.schema.introspection import DatabaseIntrospector


def get_database_url(url: str | None) -> str | None:
    """Resolve database URL from CLI arg or environment variable.

    Priority:
    1. Explicit URL argument
    2. QUERYGATE_DATABASE_URL environment variable
    """
    if url:
        return url
    return os.getenv("QUERYGATE_DATABASE_URL") or None


def get_provider_name(provider: str | None) -> str:
    """Resolve provider name: argument, then QUERYGATE_PROVIDER, then "openai"."""
    if provider:
        return provider
    return os.getenv("QUERYGATE_PROVIDER") or "openai"


def get_model_name(model: str | None) -> str | None:
    """Resolve model name: argument, then QUERYGATE_MODEL, then provider default."""
    if model:
        return model
    return os.getenv("QUERYGATE_MODEL") or None


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds resolved global options and builds the schema, policy, database
    connection and generator on first use.
    """

    database_url: str | None
    schema_path: str | None
    policy_path: str | None
    json_output: bool
    verbose: bool = False
    provider: str = "openai"
    model: str | None = None
    _introspector: DatabaseIntrospector | None = field(default=None, init=False, repr=False)
    _schema: Schema | None = field(default=None, init=False, repr=False)

    def get_introspector(self) -> DatabaseIntrospector:
        """Get or create the database introspector.

        Raises:
            ConfigurationError: If no database URL was given
        """
        if self._introspector is None:
            if not self.database_url:
                raise ConfigurationError(
                    "No database configured. Pass --database or set QUERYGATE_DATABASE_URL."
                )
            self._introspector = DatabaseIntrospector(self.database_url)
        return self._introspector

    def get_schema(self) -> Schema:
        """Load the schema from --schema, else introspect --database.

        Raises:
            ConfigurationError: If neither source is configured
        """
        if self._schema is None:
            if self.schema_path:
                self._schema = Schema.model_validate(read_json_file(self.schema_path))
            elif self.database_url:
                self._schema = self.get_introspector().extract_schema()
            else:
                raise ConfigurationError(
                    "No schema source. Pass --schema FILE or --database URL."
                )
        return self._schema

    def get_security(self) -> SecurityConfig:
        """Load the security policy from --policy, else defaults."""
        if self.policy_path:
            return SecurityConfig.model_validate(read_json_file(self.policy_path))
        return SecurityConfig()

    def get_generator(
        self,
        user_context: UserContext | None = None,
        provider: LLMProvider | None = None,
    ) -> QueryGenerator:
        """Build a generator from the resolved options.

        Args:
            user_context: Default requesting user
            provider: Provider instance (built from --provider/--model if omitted)
        """
        config = GeneratorConfig(
            llm=LLMConfig(provider=self.provider, model=self.model),
            database=self.get_schema(),
            security=self.get_security(),
            user_context=user_context,
            debug=self.verbose,
        )
        return QueryGenerator(config, provider=provider)

    def close(self) -> None:
        """Close database connection if open."""
        if self._introspector is not None:
            self._introspector.close()
            self._introspector = None
