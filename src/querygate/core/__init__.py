"""Core types for querygate."""

from querygate.core.types import (
    ChatbotAnswer,
    Column,
    ColumnType,
    Complexity,
    DatabaseType,
    ForeignKey,
    GeneratorConfig,
    LLMConfig,
    QueryMetadata,
    QueryOperation,
    QueryResult,
    Schema,
    SchemaExtractionOptions,
    SecurityConfig,
    SyntaxCheck,
    Table,
    UserContext,
    ValidationReport,
)

__all__ = [
    "ChatbotAnswer",
    "Column",
    "ColumnType",
    "Complexity",
    "DatabaseType",
    "ForeignKey",
    "GeneratorConfig",
    "LLMConfig",
    "QueryMetadata",
    "QueryOperation",
    "QueryResult",
    "Schema",
    "SchemaExtractionOptions",
    "SecurityConfig",
    "SyntaxCheck",
    "Table",
    "UserContext",
    "ValidationReport",
]
