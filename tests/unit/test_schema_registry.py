"""Tests for schema rendering and lookup."""

from __future__ import annotations

from querygate.core.types import DatabaseType, Schema, Table
from querygate.schema.registry import DEFAULT_HINT, SchemaRegistry


class TestSchemaPrompt:
    """Test the schema description sent to the LLM."""

    def test_header(self, sample_schema: Schema) -> None:
        """Test that the prompt starts with the uppercased database type."""
        prompt = SchemaRegistry(sample_schema).generate_schema_prompt()
        assert prompt.startswith("Database Type: POSTGRES\n\nAvailable Tables:\n\n")

    def test_tables_and_columns(self, sample_schema: Schema) -> None:
        """Test that every table and column is described."""
        prompt = SchemaRegistry(sample_schema).generate_schema_prompt()
        assert "Table: users\n" in prompt
        assert "Description: Registered customers\n" in prompt
        assert "  - email: varchar (required)\n" in prompt
        assert "  - name: varchar (nullable)\n" in prompt
        assert "  - total: decimal (nullable) - Order total\n" in prompt
        assert "Primary Key: id\n" in prompt

    def test_sensitive_marker(self, sample_schema: Schema) -> None:
        """Test that sensitive columns are marked."""
        prompt = SchemaRegistry(sample_schema).generate_schema_prompt()
        assert "  - password_hash: varchar (nullable) [SENSITIVE - DO NOT EXPOSE]\n" in prompt

    def test_foreign_keys(self, sample_schema: Schema) -> None:
        """Test that foreign keys are listed."""
        prompt = SchemaRegistry(sample_schema).generate_schema_prompt()
        assert "Foreign Keys:\n  - user_id -> users.id\n" in prompt


class TestRegistryLookups:
    """Test lookups and derived data."""

    def test_database_hints(self, sample_schema: Schema) -> None:
        """Test that hints depend on the dialect."""
        assert "PostgreSQL" in SchemaRegistry(sample_schema).get_database_hints()

        sqlite = Schema(database_type=DatabaseType.SQLITE)
        assert "SQLite" in SchemaRegistry(sqlite).get_database_hints()
        assert SchemaRegistry(sqlite).get_database_hints() != DEFAULT_HINT

    def test_find_table_case_insensitive(self, sample_schema: Schema) -> None:
        registry = SchemaRegistry(sample_schema)
        table = registry.find_table("USERS")
        assert table is not None
        assert table.name == "users"
        assert registry.find_table("missing") is None

    def test_table_names(self, sample_schema: Schema) -> None:
        assert SchemaRegistry(sample_schema).get_table_names() == ["users", "orders"]

    def test_sensitive_columns(self, sample_schema: Schema) -> None:
        assert SchemaRegistry(sample_schema).get_sensitive_columns() == [
            ("users", "password_hash")
        ]

    def test_validate_tables(self, sample_schema: Schema) -> None:
        """Test that missing tables are reported."""
        registry = SchemaRegistry(sample_schema)
        assert registry.validate_tables(["Users", "orders"]) == (True, [])
        assert registry.validate_tables(["users", "invoices"]) == (False, ["invoices"])

    def test_example_queries(self, sample_schema: Schema) -> None:
        """Test that examples skip sensitive columns and include joins."""
        examples = SchemaRegistry(sample_schema).generate_example_queries()
        assert "SELECT id, email, name FROM users LIMIT 10" in examples
        assert "SELECT id, user_id, total FROM orders LIMIT 10" in examples
        assert (
            "SELECT orders.* FROM orders JOIN users ON orders.user_id = users.id" in examples
        )
        assert not any("password_hash" in example for example in examples)

    def test_example_queries_skip_empty_tables(self) -> None:
        schema = Schema(database_type=DatabaseType.MYSQL, tables=[Table(name="empty")])
        assert SchemaRegistry(schema).generate_example_queries() == []

    def test_build_context(self, sample_schema: Schema) -> None:
        """Test that the JSON context carries everything an agent needs."""
        context = SchemaRegistry(sample_schema).build_context()
        assert context["database"] == "postgres"
        assert [t["name"] for t in context["tables"]] == ["users", "orders"]
        assert context["sensitive_columns"] == ["users.password_hash"]
        assert context["example_queries"]

    def test_schema_not_mutated(self, sample_schema: Schema) -> None:
        """Test that rendering leaves the schema as it was."""
        before = sample_schema.model_dump()
        registry = SchemaRegistry(sample_schema)
        registry.generate_schema_prompt()
        registry.build_context()
        assert sample_schema.model_dump() == before
