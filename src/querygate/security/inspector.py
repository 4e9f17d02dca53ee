"""Lexical query inspection.

The validator and the generator never look at query text directly; they ask a
QueryInspector. The shipped implementation works on the flat string with
regular expressions, so a real SQL parser can replace it later without
touching policy code.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol

from querygate.core.types import QueryOperation


def _keyword(word: str) -> str:
    """Match a keyword not embedded in a longer identifier.

    A leading digit still counts as a boundary, so ``1UNION`` matches.
    """
    return rf"(?<![A-Z_]){word}(?![A-Z0-9_])"


# (name reported to the caller, regex applied to the uppercased query)
DANGEROUS_PATTERNS: list[tuple[str, str]] = [
    ("EXEC", _keyword("EXEC")),
    ("EXECUTE", _keyword("EXECUTE")),
    ("xp_cmdshell", _keyword("XP_CMDSHELL")),
    ("sp_executesql", _keyword("SP_EXECUTESQL")),
    ("UNION.*SELECT", f"{_keyword('UNION')}.*{_keyword('SELECT')}"),
    ("--", r"--"),
    ("/*", r"/\*"),
    ("DROP", _keyword("DROP")),
    ("TRUNCATE", _keyword("TRUNCATE")),
    ("ALTER", _keyword("ALTER")),
    ("CREATE", _keyword("CREATE")),
    ("GRANT", _keyword("GRANT")),
    ("REVOKE", _keyword("REVOKE")),
]

MULTIPLE_STATEMENTS = "Multiple statements detected"

TABLE_KEYWORDS = ("FROM", "JOIN", "INTO", "UPDATE")
METADATA_TABLE_KEYWORDS = ("FROM", "JOIN")

LIMIT_PATTERN = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)


class QueryInspector(Protocol):
    """Answers structural questions about a query string."""

    def detect_operation(self, query: str) -> QueryOperation | None: ...

    def extract_tables(
        self, query: str, keywords: Iterable[str] = TABLE_KEYWORDS
    ) -> list[str]: ...

    def find_limit(self, query: str) -> int | None: ...

    def has_owner_filter(self, query: str, owner_column: str) -> bool: ...

    def matched_patterns(self, query: str) -> list[str]: ...


class RegexQueryInspector:
    """QueryInspector backed by regular expressions over the raw text.

    Coarse: no knowledge of subqueries or string literals.
    """

    def detect_operation(self, query: str) -> QueryOperation | None:
        """Detect the operation from the leading keyword.

        Args:
            query: Query text

        Returns:
            QueryOperation, or None for any other leading keyword
        """
        normalized = query.strip().upper()
        for operation in QueryOperation:
            if normalized.startswith(operation.value):
                return operation
        return None

    def extract_tables(
        self, query: str, keywords: Iterable[str] = TABLE_KEYWORDS
    ) -> list[str]:
        """Extract table names following the given keywords.

        Names may be bare or wrapped in ``"..."``, backticks or ``[...]``.

        Args:
            query: Query text
            keywords: Keywords whose next identifier is a table name

        Returns:
            Lowercased, de-duplicated table names in order of appearance
        """
        alternatives = "|".join(re.escape(k) for k in keywords)
        pattern = re.compile(
            rf"\b(?:{alternatives})\s+[\"`\[]?([a-z_][a-z0-9_]*)", re.IGNORECASE
        )

        tables: list[str] = []
        for match in pattern.finditer(query):
            name = match.group(1).lower()
            if name not in tables:
                tables.append(name)
        return tables

    def find_limit(self, query: str) -> int | None:
        """Return the first LIMIT value, or None when absent."""
        match = LIMIT_PATTERN.search(query)
        return int(match.group(1)) if match else None

    def has_owner_filter(self, query: str, owner_column: str) -> bool:
        """Check for a WHERE clause mentioning the owner column anywhere after it."""
        pattern = rf"WHERE.*{re.escape(owner_column)}"
        return re.search(pattern, query, re.IGNORECASE | re.DOTALL) is not None

    def matched_patterns(self, query: str) -> list[str]:
        """Names of every dangerous pattern present in the query.

        Args:
            query: Query text

        Returns:
            Pattern names, multiple-statement indicator first
        """
        matched: list[str] = []

        # A terminator run at the very end is fine; any other ';' is not
        if ";" in query.strip().rstrip(";"):
            matched.append(MULTIPLE_STATEMENTS)

        upper_query = query.upper()
        for name, pattern in DANGEROUS_PATTERNS:
            if re.search(pattern, upper_query, re.DOTALL):
                matched.append(name)

        return matched
