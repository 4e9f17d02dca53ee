"""Custom exceptions for querygate.

Every failure carries a stable ``code`` and a JSON-serializable ``context`` so
callers (agents, HTTP layers, the CLI) can branch on the kind of failure
without parsing messages.
"""

from __future__ import annotations

from typing import Any


class QueryGateError(Exception):
    """Base exception for all querygate errors."""

    code = "QUERYGATE_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict for agent consumption."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(QueryGateError):
    """Generator or provider configuration is incomplete."""

    code = "CONFIGURATION_ERROR"


class UnsupportedProviderError(QueryGateError):
    """Requested LLM provider is not supported."""

    code = "UNSUPPORTED_PROVIDER"
    VALID_PROVIDERS = ["openai", "claude"]

    def __init__(self, provider: str) -> None:
        message = (
            f"Unsupported LLM provider: {provider}. "
            f"Valid providers: {', '.join(self.VALID_PROVIDERS)}"
        )
        super().__init__(message, {"provider": provider, "valid_providers": self.VALID_PROVIDERS})
        self.provider = provider


class UnsupportedDialectError(QueryGateError):
    """Requested database dialect is not supported."""

    code = "UNSUPPORTED_DIALECT"
    VALID_DIALECTS = ["postgres", "mysql", "sqlite", "mongodb", "mssql"]

    def __init__(self, dialect: str) -> None:
        message = (
            f"Unsupported database type: {dialect}. "
            f"Valid types: {', '.join(self.VALID_DIALECTS)}"
        )
        super().__init__(message, {"dialect": dialect, "valid_dialects": self.VALID_DIALECTS})
        self.dialect = dialect


class InvalidSyntaxError(QueryGateError):
    """Sanitized query failed the lexical syntax check."""

    code = "INVALID_SQL_SYNTAX"

    def __init__(self, reason: str, query: str | None = None) -> None:
        super().__init__(f"Invalid SQL syntax: {reason}", {"reason": reason, "query": query})
        self.reason = reason


class SecurityValidationError(QueryGateError):
    """Query was rejected by the security validator."""

    code = "SECURITY_VALIDATION_FAILED"

    def __init__(self, errors: list[str], warnings: list[str] | None = None) -> None:
        warnings = warnings or []
        message = f"Security validation failed: {', '.join(errors)}"
        super().__init__(message, {"errors": errors, "warnings": warnings})
        self.errors = errors
        self.warnings = warnings


class QueryGenerationError(QueryGateError):
    """Query generation failed for a reason other than validation."""

    code = "QUERY_GENERATION_FAILED"


class ProviderError(QueryGenerationError):
    """The external generation service failed or returned unusable output."""

    def __init__(
        self, message: str, code: str, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, context)
        self.code = code


class SchemaIntrospectionError(QueryGateError):
    """Reading table metadata from the database failed."""

    code = "SCHEMA_INTROSPECTION_FAILED"


class QueryExecutionError(QueryGateError):
    """Executing a generated query failed."""

    code = "QUERY_EXECUTION_FAILED"
