"""Query sanitizer for raw LLM completions.

Reduces an arbitrary completion to one canonical, single-line query
candidate. Nothing in here decides whether a query is *safe*; that is the
SecurityValidator's job.
"""

from __future__ import annotations

import re

from querygate.core.types import SyntaxCheck
from querygate.security.inspector import LIMIT_PATTERN

SQL_BLOCK_PATTERN = re.compile(r"```sql\s*\n(.*?)```", re.DOTALL | re.IGNORECASE)
CODE_BLOCK_PATTERN = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)

LINE_COMMENT_PATTERN = re.compile(r"--[^\n]*")
BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
TRAILING_TERMINATORS_PATTERN = re.compile(r"[;\s]+$")

VALID_STARTS = ("SELECT", "INSERT", "UPDATE", "DELETE", "WITH")


class QuerySanitizer:
    """Cleans and normalizes query text. Stateless."""

    def extract_from_code(self, text: str) -> str:
        """Extract the query from a fenced code block if present.

        Args:
            text: Raw completion

        Returns:
            Interior of the first ```sql block, else of the first fenced
            block, else the text unchanged
        """
        sql_block = SQL_BLOCK_PATTERN.search(text)
        if sql_block:
            return sql_block.group(1).strip()

        code_block = CODE_BLOCK_PATTERN.search(text)
        if code_block:
            return code_block.group(1).strip()

        return text

    def sanitize(self, query: str) -> str:
        """Sanitize a query string.

        Strips comments and trailing terminators, collapses whitespace and
        removes NUL characters. Never fails.

        Args:
            query: Candidate query text

        Returns:
            Single-line query without trailing ';'
        """
        sanitized = query.strip()
        sanitized = self._remove_comments(sanitized)
        sanitized = TRAILING_TERMINATORS_PATTERN.sub("", sanitized)
        sanitized = self._normalize_whitespace(sanitized)
        sanitized = sanitized.replace("\0", "")
        # A NUL after the terminators hid them from the first pass
        return TRAILING_TERMINATORS_PATTERN.sub("", sanitized)

    def _remove_comments(self, query: str) -> str:
        without_line_comments = LINE_COMMENT_PATTERN.sub("", query)
        return BLOCK_COMMENT_PATTERN.sub("", without_line_comments)

    def _normalize_whitespace(self, query: str) -> str:
        lines = (line.strip() for line in query.split("\n"))
        joined = " ".join(line for line in lines if line)
        return re.sub(r"\s+", " ", joined)

    def validate_syntax(self, query: str) -> SyntaxCheck:
        """Heuristic lexical check, not a grammar.

        Accepts many invalid queries and rejects some valid ones, e.g. a
        quote character inside an escaped sequence such as ``'it\\'s'``.

        Args:
            query: Sanitized query

        Returns:
            SyntaxCheck naming the first problem found
        """
        trimmed = query.strip().upper()
        if not trimmed.startswith(VALID_STARTS):
            return SyntaxCheck(
                valid=False,
                error=f"Query must start with one of: {', '.join(VALID_STARTS)}",
            )

        depth = 0
        for char in query:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            if depth < 0:
                return SyntaxCheck(valid=False, error="Unbalanced parentheses")
        if depth != 0:
            return SyntaxCheck(valid=False, error="Unbalanced parentheses")

        if query.count("'") % 2 != 0:
            return SyntaxCheck(valid=False, error="Unbalanced single quotes")
        if query.count('"') % 2 != 0:
            return SyntaxCheck(valid=False, error="Unbalanced double quotes")

        return SyntaxCheck(valid=True)

    def escape_value(self, value: str) -> str:
        """Escape a string literal by doubling single quotes."""
        return value.replace("'", "''")

    def add_limit_if_missing(self, query: str, limit: int) -> str:
        """Append a LIMIT clause unless one is already present."""
        if LIMIT_PATTERN.search(query):
            return query
        return f"{query} LIMIT {limit}"
