"""Shared test fixtures for querygate."""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.pool import StaticPool

from querygate.core.types import (
    Column,
    ColumnType,
    DatabaseType,
    ForeignKey,
    LLMConfig,
    Schema,
    Table,
    UserContext,
)
from querygate.providers import LLMProvider


class ScriptedProvider(LLMProvider):
    """Provider that replays canned completions and records every prompt.

    An Exception in the script is raised instead of returned.
    """

    def __init__(self, responses: list[str | Exception], valid_key: bool = True) -> None:
        super().__init__(LLMConfig(provider="openai", model="scripted"))
        self._responses = list(responses)
        self._valid_key = valid_key
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._responses:
            raise AssertionError("ScriptedProvider ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def validate_api_key(self) -> bool:
        return self._valid_key

    @property
    def default_model(self) -> str:
        return "scripted"


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for providers that replay the given completions."""

    def factory(*responses: str | Exception, valid_key: bool = True) -> ScriptedProvider:
        return ScriptedProvider(list(responses), valid_key=valid_key)

    return factory


@pytest.fixture
def sample_schema() -> Schema:
    """Users and orders, with one sensitive column."""
    return Schema(
        database_type=DatabaseType.POSTGRES,
        tables=[
            Table(
                name="users",
                description="Registered customers",
                primary_key="id",
                columns=[
                    Column(name="id", type=ColumnType.INTEGER, nullable=False),
                    Column(name="email", type=ColumnType.VARCHAR, nullable=False),
                    Column(name="name", type=ColumnType.VARCHAR),
                    Column(name="password_hash", type=ColumnType.VARCHAR, sensitive=True),
                    Column(name="created_at", type=ColumnType.TIMESTAMP),
                ],
            ),
            Table(
                name="orders",
                primary_key="id",
                columns=[
                    Column(name="id", type=ColumnType.INTEGER, nullable=False),
                    Column(name="user_id", type=ColumnType.INTEGER, nullable=False),
                    Column(name="total", type=ColumnType.DECIMAL, description="Order total"),
                    Column(name="created_at", type=ColumnType.TIMESTAMP),
                ],
                foreign_keys=[
                    ForeignKey(column="user_id", referenced_table="users", referenced_column="id")
                ],
            ),
        ],
    )


@pytest.fixture
def user_context() -> UserContext:
    """A regular user with a numeric id."""
    return UserContext(user_id=123, role="user", permissions=["read"])


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite database shared across connections, with sample data."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users ("
                "id INTEGER PRIMARY KEY, "
                "email VARCHAR(255) NOT NULL, "
                "name TEXT, "
                "password_hash VARCHAR(255), "
                "is_active BOOLEAN, "
                "created_at DATETIME)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE orders ("
                "id INTEGER PRIMARY KEY, "
                "user_id INTEGER NOT NULL REFERENCES users(id), "
                "total NUMERIC(10, 2), "
                "created_at DATETIME)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO users (id, email, name, password_hash, is_active) VALUES "
                "(1, 'ada@example.com', 'Ada', 'x', 1), "
                "(2, 'bob@example.com', 'Bob', 'y', 1)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO orders (id, user_id, total) VALUES "
                "(10, 1, 25.50), (11, 1, 12.00), (12, 2, 99.99)"
            )
        )
    yield engine
    engine.dispose()
