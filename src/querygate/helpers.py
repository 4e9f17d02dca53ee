"""Composition helpers for common setups.

Wire a QueryGenerator to a schema source in one call, and pair it with a
query executor for question-answering chatbots.

Example:
    >>> from querygate.helpers import create_chatbot_from_database
    >>>
    >>> chatbot = create_chatbot_from_database(
    ...     "sqlite:///shop.db",
    ...     LLMConfig(provider="claude"),
    ...     security=SecurityConfig(enable_row_level_security=True),
    ... )
    >>> answer = await chatbot.ask("How many orders did I place?", user_context)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from sqlalchemy import Engine, MetaData
from sqlalchemy.engine.url import URL

from querygate.core.types import (
    ChatbotAnswer,
    DatabaseType,
    GeneratorConfig,
    LLMConfig,
    QueryResult,
    Schema,
    SchemaExtractionOptions,
    SecurityConfig,
    UserContext,
)
from querygate.generator import QueryGenerator
from querygate.providers import LLMProvider, create_provider
from querygate.schema.introspection import DatabaseIntrospector, MetadataSchemaAdapter

logger = logging.getLogger(__name__)


class QueryExecutor(Protocol):
    """Anything that can run a finished query and return rows."""

    def execute_query(
        self,
        query: str,
        parameters: Sequence[Any] | Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...


def _build_generator(
    schema: Schema,
    llm: LLMConfig | LLMProvider,
    security: SecurityConfig | None,
    user_context: UserContext | None,
    debug: bool,
) -> QueryGenerator:
    provider = create_provider(llm)
    config = GeneratorConfig(
        llm=None if isinstance(llm, LLMProvider) else llm,
        database=schema,
        security=security or SecurityConfig(),
        user_context=user_context,
        debug=debug,
    )
    return QueryGenerator(config, provider=provider)


def create_from_database(
    database: DatabaseIntrospector | Engine | str | URL,
    llm: LLMConfig | LLMProvider,
    security: SecurityConfig | None = None,
    options: SchemaExtractionOptions | None = None,
    user_context: UserContext | None = None,
    debug: bool = False,
) -> QueryGenerator:
    """Create a generator from a live database schema.

    Args:
        database: Introspector, SQLAlchemy engine or database URL
        llm: LLM config or a ready provider instance
        security: Security policy (defaults apply if omitted)
        options: Table filters and sensitive-column patterns
        user_context: Default requesting user
        debug: Log pipeline milestones at INFO

    Returns:
        Configured QueryGenerator

    Raises:
        SchemaIntrospectionError: If the schema cannot be read
        UnsupportedDialectError: If the database dialect is not supported
    """
    if isinstance(database, DatabaseIntrospector):
        schema = database.extract_schema()
    else:
        with DatabaseIntrospector(database, options) as introspector:
            schema = introspector.extract_schema()

    logger.debug(f"Loaded schema with {len(schema.tables)} tables")
    return _build_generator(schema, llm, security, user_context, debug)


def create_from_metadata(
    metadata: MetaData,
    database_type: DatabaseType | str,
    llm: LLMConfig | LLMProvider,
    security: SecurityConfig | None = None,
    options: SchemaExtractionOptions | None = None,
    user_context: UserContext | None = None,
    debug: bool = False,
) -> QueryGenerator:
    """Create a generator from SQLAlchemy ORM model metadata.

    Args:
        metadata: ``Base.metadata`` of the declarative models
        database_type: Dialect the models are deployed on
        llm: LLM config or a ready provider instance
        security: Security policy (defaults apply if omitted)
        options: Table filters and sensitive-column patterns
        user_context: Default requesting user
        debug: Log pipeline milestones at INFO

    Returns:
        Configured QueryGenerator
    """
    schema = MetadataSchemaAdapter(metadata, database_type, options).extract_schema()
    return _build_generator(schema, llm, security, user_context, debug)


class ChatbotHelper:
    """Answers questions by generating a query and running it.

    Queries run in a worker thread off the event loop.
    """

    def __init__(self, generator: QueryGenerator, executor: QueryExecutor) -> None:
        self._generator = generator
        self._executor = executor

    @property
    def generator(self) -> QueryGenerator:
        """The underlying query generator."""
        return self._generator

    async def ask(
        self,
        question: str,
        user_context: UserContext | None = None,
    ) -> ChatbotAnswer:
        """Generate a query for the question and return its rows.

        Raises:
            QueryGateError: If generation or execution fails
        """
        result = await self._generator.generate(question, user_context)
        return await self._answer(question, result)

    async def ask_with_explanation(
        self,
        question: str,
        user_context: UserContext | None = None,
    ) -> ChatbotAnswer:
        """Like ``ask``, with a plain-language explanation of the query."""
        result = await self._generator.generate_with_explanation(question, user_context)
        return await self._answer(question, result)

    def close(self) -> None:
        """Close the executor, if it holds resources."""
        close = getattr(self._executor, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> ChatbotHelper:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    async def _answer(self, question: str, result: QueryResult) -> ChatbotAnswer:
        rows = await asyncio.to_thread(
            self._executor.execute_query, result.query, result.parameters
        )
        logger.debug(f"Query returned {len(rows)} rows")
        return ChatbotAnswer(
            question=question,
            query=result.query,
            results=rows,
            explanation=result.explanation,
            metadata=result.metadata,
            warnings=result.warnings,
        )


def create_chatbot_from_database(
    database: DatabaseIntrospector | Engine | str | URL,
    llm: LLMConfig | LLMProvider,
    security: SecurityConfig | None = None,
    options: SchemaExtractionOptions | None = None,
    user_context: UserContext | None = None,
    debug: bool = False,
) -> ChatbotHelper:
    """Create a chatbot that generates and executes queries on one database.

    The introspector used for the schema is kept as the executor; call
    ``close()`` on the chatbot (or use it as a context manager) to release it.
    """
    if isinstance(database, DatabaseIntrospector):
        introspector = database
    else:
        introspector = DatabaseIntrospector(database, options)

    try:
        generator = create_from_database(
            introspector, llm, security, options, user_context, debug
        )
    except Exception:
        if introspector is not database:
            introspector.close()
        raise
    return ChatbotHelper(generator, introspector)
