"""Core types and specifications for querygate.

All types are designed to be JSON-serializable for agent consumption.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from querygate.exceptions import UnsupportedDialectError


class DatabaseType(StrEnum):
    """Supported database dialects. Only affects prompt hints."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"
    MSSQL = "mssql"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid database type values."""
        return [t.value for t in cls]

    @classmethod
    def parse(cls, value: str | DatabaseType) -> DatabaseType:
        """Resolve a dialect name, accepting SQLAlchemy dialect aliases.

        Raises:
            UnsupportedDialectError: If the dialect is not supported
        """
        if isinstance(value, DatabaseType):
            return value
        name = str(value).strip().lower()
        name = DIALECT_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedDialectError(str(value)) from None


# SQLAlchemy dialect names that map onto a supported database type
DIALECT_ALIASES = {
    "postgresql": "postgres",
    "mariadb": "mysql",
    "sqlserver": "mssql",
}


class ColumnType(StrEnum):
    """Semantic column types used in schema descriptions."""

    INTEGER = "integer"
    VARCHAR = "varchar"
    TEXT = "text"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    DATE = "date"
    DECIMAL = "decimal"
    JSON = "json"
    BLOB = "blob"


class QueryOperation(StrEnum):
    """Query operations the validator can recognize."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Complexity(StrEnum):
    """Coarse structural complexity tier of a query."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Column(BaseModel):
    """A column in a table."""

    name: str
    type: ColumnType = ColumnType.VARCHAR
    nullable: bool = True
    description: str | None = None
    sensitive: bool = Field(
        default=False, description="Data that must never be exposed (passwords, SSNs, ...)"
    )


class ForeignKey(BaseModel):
    """Foreign key relation from a local column to another table."""

    column: str
    referenced_table: str
    referenced_column: str


class Table(BaseModel):
    """A table and its columns."""

    name: str
    columns: list[Column] = Field(default_factory=list)
    primary_key: str | None = None
    foreign_keys: list[ForeignKey] = Field(default_factory=list)
    description: str | None = None


class Schema(BaseModel):
    """Authoritative database schema handed to the generator."""

    database_type: DatabaseType
    tables: list[Table] = Field(default_factory=list)


class UserContext(BaseModel):
    """Requesting user, created per call by the calling application."""

    user_id: int | str
    role: str
    permissions: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SecurityConfig(BaseModel):
    """Security policy applied to every generated query.

    Immutable once constructed; share one instance across concurrent calls.
    """

    allowed_operations: tuple[QueryOperation, ...] = Field(
        default=(QueryOperation.SELECT,),
        description="Operations the query may perform",
    )
    allowed_tables: tuple[str, ...] = Field(
        default=(), description="Table allow-list (empty = no restriction)"
    )
    restricted_columns: tuple[str, ...] = Field(
        default=(), description="Columns the query must never mention"
    )
    max_row_limit: int = Field(default=1000, ge=1, description="Maximum LIMIT for SELECT")
    require_user_context: bool = True
    enable_row_level_security: bool = False
    owner_column: str = Field(
        default="user_id", description="Column bound to the user id by row-level security"
    )
    custom_validator: Callable[..., Any] | None = Field(
        default=None,
        description="(query, user_context) -> bool, sync or async",
        exclude=True,
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class ValidationReport(BaseModel):
    """Outcome of a security validation pass."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SyntaxCheck(BaseModel):
    """Outcome of the lexical syntax check."""

    valid: bool
    error: str | None = None


class QueryMetadata(BaseModel):
    """Facts derived from the final query."""

    operation: QueryOperation
    tables: list[str] = Field(default_factory=list)
    estimated_complexity: Complexity = Complexity.LOW


class QueryResult(BaseModel):
    """A validated, ready-to-execute query."""

    query: str
    parameters: list[Any] | None = None
    explanation: str | None = None
    warnings: list[str] = Field(default_factory=list)
    metadata: QueryMetadata


class LLMConfig(BaseModel):
    """Generation service configuration."""

    provider: str = Field(default="openai", description="'openai' or 'claude'")
    api_key: str | None = Field(default=None, description="Falls back to the provider env var")
    model: str | None = None
    temperature: float = 0.1
    max_tokens: int = 1000


class GeneratorConfig(BaseModel):
    """Everything a QueryGenerator needs at construction time."""

    llm: LLMConfig | None = None
    database: Schema
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    user_context: UserContext | None = None
    debug: bool = False

    model_config = {"frozen": True}


class SchemaExtractionOptions(BaseModel):
    """Filters applied while discovering a schema."""

    include_tables: list[str] | None = None
    exclude_tables: list[str] | None = None
    mark_sensitive_columns: list[str] = Field(
        default_factory=list, description="Substrings that flag a column as sensitive"
    )
    include_descriptions: bool = False


class ChatbotAnswer(BaseModel):
    """A generated query together with the rows it returned."""

    question: str
    query: str
    results: list[dict[str, Any]] = Field(default_factory=list)
    explanation: str | None = None
    metadata: QueryMetadata | None = None
    warnings: list[str] = Field(default_factory=list)
