"""Schema Registry for LLM query generation.

Holds the authoritative table/column model and renders it for prompts.

The rendered description includes:
- Database type and dialect hints
- Tables with columns, types, nullability and descriptions
- Sensitive column markers
- Primary and foreign keys
"""

from __future__ import annotations

from typing import Any

from querygate.core.types import DatabaseType, Schema, Table

# Prompt hints per dialect
DATABASE_HINTS = {
    DatabaseType.POSTGRES: (
        "Use PostgreSQL syntax. Support for RETURNING clause, JSON operators, and CTEs."
    ),
    DatabaseType.MYSQL: "Use MySQL syntax. Backticks for identifiers, LIMIT syntax.",
    DatabaseType.SQLITE: "Use SQLite syntax. Limited JOIN support, no RIGHT JOIN.",
    DatabaseType.MONGODB: "Generate MongoDB aggregation pipeline or query syntax.",
    DatabaseType.MSSQL: "Use T-SQL syntax. Support for TOP, OFFSET-FETCH.",
}

DEFAULT_HINT = "Use standard SQL syntax."

SENSITIVE_MARKER = " [SENSITIVE - DO NOT EXPOSE]"


class SchemaRegistry:
    """Read-only view over a Schema.

    Never mutates the schema it was given.
    """

    def __init__(self, schema: Schema) -> None:
        """Initialize the registry.

        Args:
            schema: Schema supplied by introspection or by hand
        """
        self._schema = schema

    @property
    def schema(self) -> Schema:
        """The underlying schema."""
        return self._schema

    @property
    def database_type(self) -> DatabaseType:
        """Database dialect of the schema."""
        return self._schema.database_type

    def generate_schema_prompt(self) -> str:
        """Generate a human-readable schema description for the LLM.

        Returns:
            Multi-line schema description
        """
        prompt = f"Database Type: {self.database_type.value.upper()}\n\n"
        prompt += "Available Tables:\n\n"

        for table in self._schema.tables:
            prompt += self._format_table(table)
            prompt += "\n"

        return prompt

    def _format_table(self, table: Table) -> str:
        formatted = f"Table: {table.name}\n"

        if table.description:
            formatted += f"Description: {table.description}\n"

        formatted += "Columns:\n"
        for column in table.columns:
            nullable = " (nullable)" if column.nullable else " (required)"
            description = f" - {column.description}" if column.description else ""
            sensitive = SENSITIVE_MARKER if column.sensitive else ""
            formatted += f"  - {column.name}: {column.type.value}{nullable}{description}{sensitive}\n"

        if table.primary_key:
            formatted += f"Primary Key: {table.primary_key}\n"

        if table.foreign_keys:
            formatted += "Foreign Keys:\n"
            for fk in table.foreign_keys:
                formatted += f"  - {fk.column} -> {fk.referenced_table}.{fk.referenced_column}\n"

        return formatted

    def get_database_hints(self) -> str:
        """Dialect-specific hints for the prompt."""
        return DATABASE_HINTS.get(self.database_type, DEFAULT_HINT)

    def find_table(self, table_name: str) -> Table | None:
        """Find a table by name (case-insensitive)."""
        wanted = table_name.lower()
        for table in self._schema.tables:
            if table.name.lower() == wanted:
                return table
        return None

    def get_table_names(self) -> list[str]:
        """All table names in schema order."""
        return [t.name for t in self._schema.tables]

    def get_sensitive_columns(self) -> list[tuple[str, str]]:
        """Sensitive columns across all tables.

        Returns:
            List of (table, column) pairs
        """
        return [
            (table.name, column.name)
            for table in self._schema.tables
            for column in table.columns
            if column.sensitive
        ]

    def generate_example_queries(self) -> list[str]:
        """Generate example queries for the schema.

        Returns:
            One projection example per table, plus a JOIN example for every
            table that declares foreign keys
        """
        examples = []

        for table in self._schema.tables:
            columns = [c.name for c in table.columns if not c.sensitive][:3]
            if columns:
                examples.append(f"SELECT {', '.join(columns)} FROM {table.name} LIMIT 10")

            if table.foreign_keys:
                fk = table.foreign_keys[0]
                examples.append(
                    f"SELECT {table.name}.* FROM {table.name} "
                    f"JOIN {fk.referenced_table} "
                    f"ON {table.name}.{fk.column} = {fk.referenced_table}.{fk.referenced_column}"
                )

        return examples

    def validate_tables(self, table_names: list[str]) -> tuple[bool, list[str]]:
        """Check that tables exist in the schema.

        Args:
            table_names: Names to check (case-insensitive)

        Returns:
            (all_present, missing_names)
        """
        known = {name.lower() for name in self.get_table_names()}
        missing = [name for name in table_names if name.lower() not in known]
        return not missing, missing

    def build_context(self) -> dict[str, Any]:
        """Build a JSON-serializable schema context.

        Returns:
            Schema context dict for agents and --json output
        """
        return {
            "database": self.database_type.value,
            "hints": self.get_database_hints(),
            "tables": [table.model_dump(mode="json") for table in self._schema.tables],
            "sensitive_columns": [
                f"{table}.{column}" for table, column in self.get_sensitive_columns()
            ],
            "example_queries": self.generate_example_queries(),
        }
