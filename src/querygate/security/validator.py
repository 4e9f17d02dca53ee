"""Security validator for LLM-generated queries.

Validates queries against a SecurityConfig before they are executed:
- Only allow-listed operations
- Table access limited to the allow-list
- No restricted columns
- No statement-injection or DDL patterns
- SELECT row limits
- Optional custom policy hook

Also performs the row-level-security rewrite that binds the owner column to
the requesting user.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from typing import Any

from querygate.core.types import (
    QueryOperation,
    SecurityConfig,
    UserContext,
    ValidationReport,
)
from querygate.security.inspector import QueryInspector, RegexQueryInspector
from querygate.security.sanitizer import QuerySanitizer

logger = logging.getLogger(__name__)

RLS_OPERATIONS = (QueryOperation.SELECT, QueryOperation.UPDATE, QueryOperation.DELETE)

ORDER_BY_PATTERN = re.compile(r"ORDER\s+BY", re.IGNORECASE)
LIMIT_KEYWORD_PATTERN = re.compile(r"\bLIMIT\b", re.IGNORECASE)
WHERE_PATTERN = re.compile(r"\bWHERE\b", re.IGNORECASE)


class SecurityValidator:
    """Validates queries against an immutable security policy.

    Holds no per-call state, so one instance can serve concurrent requests.
    Errors accumulate after the first two checks; warnings never affect
    validity.
    """

    def __init__(
        self,
        config: SecurityConfig | None = None,
        inspector: QueryInspector | None = None,
        sanitizer: QuerySanitizer | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            config: Security policy (defaults to SELECT-only with user context required)
            inspector: Lexical inspector (defaults to the regex implementation)
            sanitizer: Used for literal escaping in the row-level-security rewrite
        """
        self._config = config or SecurityConfig()
        self._inspector = inspector or RegexQueryInspector()
        self._sanitizer = sanitizer or QuerySanitizer()

    @property
    def config(self) -> SecurityConfig:
        """The security policy in force."""
        return self._config

    async def validate(
        self,
        query: str,
        user_context: UserContext | None = None,
    ) -> ValidationReport:
        """Validate a query against the security policy.

        Args:
            query: Query to validate
            user_context: Requesting user, if any

        Returns:
            ValidationReport with accumulated errors and warnings
        """
        errors: list[str] = []
        warnings: list[str] = []
        config = self._config

        if config.require_user_context and user_context is None:
            errors.append("User context is required but not provided")
            return ValidationReport(valid=False, errors=errors, warnings=warnings)

        operation = self._inspector.detect_operation(query)
        if operation is None:
            errors.append("Could not determine query operation")
            return ValidationReport(valid=False, errors=errors, warnings=warnings)

        if operation not in config.allowed_operations:
            allowed = ", ".join(op.value for op in config.allowed_operations)
            errors.append(
                f"Operation {operation.value} is not allowed. Allowed operations: {allowed}"
            )

        dangerous = self._inspector.matched_patterns(query)
        if dangerous:
            errors.append(f"Query contains dangerous patterns: {', '.join(dangerous)}")

        restricted = self._find_restricted_columns(query)
        if restricted:
            errors.append(f"Query accesses restricted columns: {', '.join(restricted)}")

        if config.allowed_tables:
            allowed_tables = {t.lower() for t in config.allowed_tables}
            unauthorized = [
                t for t in self._inspector.extract_tables(query) if t not in allowed_tables
            ]
            if unauthorized:
                errors.append(f"Query accesses unauthorized tables: {', '.join(unauthorized)}")

        if operation == QueryOperation.SELECT:
            limit = self._inspector.find_limit(query)
            if limit is None:
                warnings.append(
                    "Query does not have a LIMIT clause. "
                    f"Maximum {config.max_row_limit} rows will be enforced."
                )
            elif limit > config.max_row_limit:
                errors.append(
                    f"LIMIT {limit} exceeds maximum allowed limit of {config.max_row_limit}"
                )

        if config.custom_validator is not None:
            error = await self._run_custom_validator(
                config.custom_validator, query, user_context
            )
            if error:
                errors.append(error)

        if errors:
            logger.debug(f"Query rejected with {len(errors)} error(s): {errors}")

        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)

    async def _run_custom_validator(
        self,
        validator: Callable[..., Any],
        query: str,
        user_context: UserContext | None,
    ) -> str | None:
        """Run a custom validator, awaiting it when it is async.

        Returns:
            Error message, or None if the query was accepted
        """
        try:
            outcome = validator(query, user_context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            logger.warning(f"Custom validator raised: {e}")
            return f"Custom validation error: {e}"
        if not outcome:
            return "Custom validation failed"
        return None

    def _find_restricted_columns(self, query: str) -> list[str]:
        """Find restricted column names anywhere in the query text.

        Plain case-insensitive substring search, so it also matches inside
        longer identifiers and string literals.
        """
        lowered = query.lower()
        return [c for c in self._config.restricted_columns if c.lower() in lowered]

    def add_row_level_security(
        self,
        query: str,
        user_context: UserContext | None,
    ) -> str:
        """Bind the owner column to the requesting user.

        Textual splice: the filter goes before the first ORDER BY, else before
        the first LIMIT, else at the end. An existing WHERE predicate is
        parenthesized and AND-ed with the filter. Subqueries are not understood; a
        query that already has a WHERE clause mentioning the owner column
        is returned unchanged.

        Args:
            query: Sanitized query
            user_context: Requesting user

        Returns:
            Rewritten query, or the input when no rewrite applies
        """
        config = self._config
        if not config.enable_row_level_security or user_context is None:
            return query

        if self._inspector.detect_operation(query) not in RLS_OPERATIONS:
            return query

        if self._inspector.has_owner_filter(query, config.owner_column):
            return query

        owner_filter = f"{config.owner_column} = {self._literal(user_context.user_id)}"

        where = WHERE_PATTERN.search(query)
        end = self._clause_end(query, where.end() if where else 0)

        if where:
            # The owner filter binds to the whole existing predicate
            predicate = query[where.end():end].strip()
            rewritten = f"{query[:where.start()]}WHERE ({predicate}) AND {owner_filter}"
        else:
            rewritten = f"{query[:end].rstrip()} WHERE {owner_filter}"

        tail = query[end:].strip()
        return f"{rewritten} {tail}" if tail else rewritten

    def _literal(self, value: int | str) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return f"'{self._sanitizer.escape_value(str(value))}'"

    @staticmethod
    def _clause_end(query: str, start: int) -> int:
        """Position of the first ORDER BY, else the first LIMIT, else the end."""
        for pattern in (ORDER_BY_PATTERN, LIMIT_KEYWORD_PATTERN):
            match = pattern.search(query, start)
            if match:
                return match.start()
        return len(query)
