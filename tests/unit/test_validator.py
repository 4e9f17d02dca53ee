"""Tests for the security validator and the row-level-security rewrite."""

from __future__ import annotations

import pytest

from querygate.core.types import QueryOperation, SecurityConfig, UserContext
from querygate.security.inspector import MULTIPLE_STATEMENTS, RegexQueryInspector
from querygate.security.validator import SecurityValidator


def make_validator(**overrides: object) -> SecurityValidator:
    return SecurityValidator(SecurityConfig(**overrides))  # type: ignore[arg-type]


class TestValidatePreconditions:
    """Test the checks that stop validation early."""

    @pytest.mark.asyncio
    async def test_missing_user_context(self) -> None:
        """Test that a required context must be present."""
        report = await make_validator().validate("SELECT * FROM users LIMIT 1")
        assert not report.valid
        assert report.errors == ["User context is required but not provided"]

    @pytest.mark.asyncio
    async def test_context_optional(self) -> None:
        """Test that validation proceeds when the context is not required."""
        validator = make_validator(require_user_context=False)
        report = await validator.validate("SELECT * FROM users LIMIT 1")
        assert report.valid

    @pytest.mark.asyncio
    async def test_drop_is_unknown_operation(self, user_context: UserContext) -> None:
        """Test that DROP is rejected as an unrecognized operation."""
        report = await make_validator().validate("DROP TABLE users", user_context)
        assert not report.valid
        assert report.errors == ["Could not determine query operation"]


class TestValidatePolicy:
    """Test the accumulated policy checks."""

    @pytest.mark.asyncio
    async def test_valid_select(self, user_context: UserContext) -> None:
        """Test that a plain bounded SELECT passes with no warnings."""
        report = await make_validator().validate(
            "SELECT id, email FROM users LIMIT 10", user_context
        )
        assert report.valid
        assert report.errors == []
        assert report.warnings == []

    @pytest.mark.asyncio
    async def test_disallowed_operation(self, user_context: UserContext) -> None:
        """Test that DELETE is rejected under the default SELECT-only policy."""
        report = await make_validator().validate("DELETE FROM users WHERE id = 1", user_context)
        assert not report.valid
        assert report.errors == [
            "Operation DELETE is not allowed. Allowed operations: SELECT"
        ]

    @pytest.mark.asyncio
    async def test_allowed_write_operation(self, user_context: UserContext) -> None:
        """Test that UPDATE passes when explicitly allowed."""
        validator = make_validator(
            allowed_operations=[QueryOperation.SELECT, QueryOperation.UPDATE]
        )
        report = await validator.validate(
            "UPDATE users SET name = 'x' WHERE id = 1", user_context
        )
        assert report.valid

    @pytest.mark.asyncio
    async def test_multiple_statements(self, user_context: UserContext) -> None:
        """Test that a stacked statement is reported."""
        report = await make_validator().validate("SELECT 1; SELECT 2", user_context)
        assert not report.valid
        assert any(MULTIPLE_STATEMENTS in error for error in report.errors)

    @pytest.mark.asyncio
    async def test_trailing_semicolon_is_not_multiple(self, user_context: UserContext) -> None:
        """Test that a lone trailing terminator is not a second statement."""
        report = await make_validator().validate("SELECT 1 LIMIT 1;", user_context)
        assert report.valid

    @pytest.mark.asyncio
    async def test_stacked_drop(self, user_context: UserContext) -> None:
        """Test that an injected DROP is reported alongside the stacking."""
        report = await make_validator().validate(
            "SELECT * FROM users LIMIT 1; DROP TABLE users", user_context
        )
        assert not report.valid
        assert report.errors == [
            f"Query contains dangerous patterns: {MULTIPLE_STATEMENTS}, DROP"
        ]

    @pytest.mark.asyncio
    async def test_union_select(self, user_context: UserContext) -> None:
        """Test that UNION ... SELECT is flagged."""
        report = await make_validator().validate(
            "SELECT id FROM users UNION SELECT id FROM admins LIMIT 5", user_context
        )
        assert not report.valid
        assert "UNION.*SELECT" in report.errors[0]

    @pytest.mark.asyncio
    async def test_union_glued_to_number(self, user_context: UserContext) -> None:
        """Test that UNION directly after a digit is still flagged."""
        report = await make_validator().validate(
            "SELECT id FROM users WHERE id = 1UNION SELECT password FROM vault LIMIT 10",
            user_context,
        )
        assert not report.valid
        assert report.errors == ["Query contains dangerous patterns: UNION.*SELECT"]

    @pytest.mark.asyncio
    async def test_drop_glued_to_number(self, user_context: UserContext) -> None:
        report = await make_validator().validate(
            "SELECT id FROM users WHERE id = 1DROP LIMIT 1", user_context
        )
        assert report.errors == ["Query contains dangerous patterns: DROP"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "table", ['"admin_secrets"', "`admin_secrets`", "[admin_secrets]", '"Admin_Secrets"']
    )
    async def test_quoted_unauthorized_table(
        self, table: str, user_context: UserContext
    ) -> None:
        """Test that quoting a table name does not bypass the allow-list."""
        validator = make_validator(allowed_tables=["users", "orders"])
        report = await validator.validate(f"SELECT * FROM {table} LIMIT 10", user_context)
        assert not report.valid
        assert report.errors == ["Query accesses unauthorized tables: admin_secrets"]

    @pytest.mark.asyncio
    async def test_quoted_allowed_table(self, user_context: UserContext) -> None:
        validator = make_validator(allowed_tables=["users"])
        report = await validator.validate('SELECT * FROM "users" LIMIT 10', user_context)
        assert report.valid

    @pytest.mark.asyncio
    async def test_keywords_inside_identifiers_are_allowed(
        self, user_context: UserContext
    ) -> None:
        """Test that created_at and executed_by do not trip CREATE or EXECUTE."""
        report = await make_validator().validate(
            "SELECT created_at, executed_by FROM jobs LIMIT 5", user_context
        )
        assert report.valid

    @pytest.mark.asyncio
    async def test_restricted_columns(self, user_context: UserContext) -> None:
        """Test that restricted column names are cited."""
        validator = make_validator(restricted_columns=["password_hash", "ssn"])
        report = await validator.validate(
            "SELECT email, PASSWORD_HASH FROM users LIMIT 5", user_context
        )
        assert not report.valid
        assert report.errors == ["Query accesses restricted columns: password_hash"]

    @pytest.mark.asyncio
    async def test_unauthorized_tables(self, user_context: UserContext) -> None:
        """Test that tables outside the allow-list are cited."""
        validator = make_validator(allowed_tables=["orders"])
        report = await validator.validate(
            "SELECT * FROM orders JOIN users ON users.id = orders.user_id LIMIT 5",
            user_context,
        )
        assert not report.valid
        assert report.errors == ["Query accesses unauthorized tables: users"]

    @pytest.mark.asyncio
    async def test_allowed_tables_case_insensitive(self, user_context: UserContext) -> None:
        """Test that allow-list matching ignores case."""
        validator = make_validator(allowed_tables=["Orders"])
        report = await validator.validate("SELECT * FROM ORDERS LIMIT 5", user_context)
        assert report.valid

    @pytest.mark.asyncio
    async def test_errors_accumulate(self, user_context: UserContext) -> None:
        """Test that independent violations are all reported."""
        validator = make_validator(
            restricted_columns=["ssn"],
            allowed_tables=["orders"],
            max_row_limit=10,
        )
        report = await validator.validate("SELECT ssn FROM users LIMIT 500", user_context)
        assert not report.valid
        assert len(report.errors) == 3


class TestRowLimits:
    """Test LIMIT enforcement for SELECT."""

    @pytest.mark.asyncio
    async def test_limit_over_maximum(self, user_context: UserContext) -> None:
        """Test that LIMIT 500 fails against a maximum of 100."""
        report = await make_validator(max_row_limit=100).validate(
            "SELECT * FROM users LIMIT 500", user_context
        )
        assert not report.valid
        assert report.errors == ["LIMIT 500 exceeds maximum allowed limit of 100"]

    @pytest.mark.asyncio
    async def test_limit_within_maximum(self, user_context: UserContext) -> None:
        """Test that LIMIT 50 passes against a maximum of 100."""
        report = await make_validator(max_row_limit=100).validate(
            "SELECT * FROM users LIMIT 50", user_context
        )
        assert report.valid

    @pytest.mark.asyncio
    async def test_missing_limit_warns(self, user_context: UserContext) -> None:
        """Test that a missing LIMIT is a warning, not an error."""
        report = await make_validator(max_row_limit=100).validate(
            "SELECT * FROM users", user_context
        )
        assert report.valid
        assert report.warnings == [
            "Query does not have a LIMIT clause. Maximum 100 rows will be enforced."
        ]


class TestCustomValidator:
    """Test the custom policy hook."""

    @pytest.mark.asyncio
    async def test_sync_rejection(self, user_context: UserContext) -> None:
        """Test that a falsy result adds a generic error."""
        validator = make_validator(custom_validator=lambda query, ctx: False)
        report = await validator.validate("SELECT 1 LIMIT 1", user_context)
        assert report.errors == ["Custom validation failed"]

    @pytest.mark.asyncio
    async def test_async_acceptance(self, user_context: UserContext) -> None:
        """Test that async validators are awaited and receive the context."""
        seen: list[object] = []

        async def check(query: str, ctx: UserContext | None) -> bool:
            seen.append(ctx)
            return True

        validator = make_validator(custom_validator=check)
        report = await validator.validate("SELECT 1 LIMIT 1", user_context)
        assert report.valid
        assert seen == [user_context]

    @pytest.mark.asyncio
    async def test_exception_becomes_error(self, user_context: UserContext) -> None:
        """Test that a raising validator never propagates."""

        def explode(query: str, ctx: UserContext | None) -> bool:
            raise RuntimeError("policy service down")

        validator = make_validator(custom_validator=explode)
        report = await validator.validate("SELECT 1 LIMIT 1", user_context)
        assert not report.valid
        assert report.errors == ["Custom validation error: policy service down"]


class TestRowLevelSecurity:
    """Test the owner-column rewrite."""

    @pytest.fixture
    def validator(self) -> SecurityValidator:
        return make_validator(enable_row_level_security=True)

    def test_adds_where(self, validator: SecurityValidator, user_context: UserContext) -> None:
        """Test that a numeric id is inlined unquoted."""
        result = validator.add_row_level_security("SELECT * FROM orders", user_context)
        assert result == "SELECT * FROM orders WHERE user_id = 123"

    def test_string_id_is_quoted(self, validator: SecurityValidator) -> None:
        """Test that a string id is quoted."""
        ctx = UserContext(user_id="abc-123", role="user")
        result = validator.add_row_level_security("SELECT * FROM orders", ctx)
        assert result == "SELECT * FROM orders WHERE user_id = 'abc-123'"

    def test_string_id_is_escaped(self, validator: SecurityValidator) -> None:
        """Test that quotes inside a string id are doubled."""
        ctx = UserContext(user_id="o'neil", role="user")
        result = validator.add_row_level_security("SELECT * FROM orders", ctx)
        assert result == "SELECT * FROM orders WHERE user_id = 'o''neil'"

    def test_extends_existing_where(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that an existing WHERE is parenthesized and AND-ed."""
        result = validator.add_row_level_security(
            "SELECT * FROM orders WHERE total > 10", user_context
        )
        assert result == "SELECT * FROM orders WHERE (total > 10) AND user_id = 123"

    def test_or_predicate_stays_scoped(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that the owner filter applies to every branch of an OR."""
        result = validator.add_row_level_security(
            "SELECT * FROM orders WHERE status = 'open' OR status = 'late'", user_context
        )
        assert result == (
            "SELECT * FROM orders WHERE (status = 'open' OR status = 'late') AND user_id = 123"
        )

    def test_existing_where_with_order_by_and_limit(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        result = validator.add_row_level_security(
            "SELECT * FROM orders where total > 10 or total < 1 ORDER BY id LIMIT 5",
            user_context,
        )
        assert result == (
            "SELECT * FROM orders WHERE (total > 10 or total < 1) AND user_id = 123 "
            "ORDER BY id LIMIT 5"
        )

    def test_inserted_before_order_by(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that the filter lands before ORDER BY."""
        result = validator.add_row_level_security(
            "SELECT * FROM orders ORDER BY created_at DESC LIMIT 5", user_context
        )
        assert result == (
            "SELECT * FROM orders WHERE user_id = 123 ORDER BY created_at DESC LIMIT 5"
        )

    def test_inserted_before_limit(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that the filter lands before LIMIT when there is no ORDER BY."""
        result = validator.add_row_level_security("SELECT * FROM orders LIMIT 5", user_context)
        assert result == "SELECT * FROM orders WHERE user_id = 123 LIMIT 5"

    def test_existing_owner_filter_untouched(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that a query already filtering on the owner column is unchanged."""
        query = "SELECT * FROM orders WHERE user_id = 7"
        assert validator.add_row_level_security(query, user_context) == query

    def test_insert_untouched(
        self, validator: SecurityValidator, user_context: UserContext
    ) -> None:
        """Test that INSERT is never rewritten."""
        query = "INSERT INTO orders (user_id) VALUES (1)"
        assert validator.add_row_level_security(query, user_context) == query

    def test_disabled_is_noop(self, user_context: UserContext) -> None:
        """Test that nothing happens when the feature is off."""
        query = "SELECT * FROM orders"
        assert make_validator().add_row_level_security(query, user_context) == query

    def test_no_context_is_noop(self, validator: SecurityValidator) -> None:
        """Test that nothing happens without a user."""
        query = "SELECT * FROM orders"
        assert validator.add_row_level_security(query, None) == query

    def test_custom_owner_column(self, user_context: UserContext) -> None:
        """Test that the owner column is configurable."""
        validator = make_validator(enable_row_level_security=True, owner_column="tenant_id")
        result = validator.add_row_level_security("DELETE FROM orders", user_context)
        assert result == "DELETE FROM orders WHERE tenant_id = 123"


class TestRegexQueryInspector:
    """Test the lexical helpers behind the validator."""

    def test_detect_operation(self) -> None:
        inspector = RegexQueryInspector()
        assert inspector.detect_operation("  select 1") == QueryOperation.SELECT
        assert inspector.detect_operation("WITH x AS (SELECT 1) SELECT 1") is None

    def test_extract_tables(self) -> None:
        """Test that tables are lowercased and de-duplicated in order."""
        inspector = RegexQueryInspector()
        query = "SELECT * FROM Orders o JOIN users u ON u.id = o.user_id JOIN orders x ON 1 = 1"
        assert inspector.extract_tables(query) == ["orders", "users"]

    def test_extract_tables_write_keywords(self) -> None:
        inspector = RegexQueryInspector()
        assert inspector.extract_tables("INSERT INTO audit_log (a) VALUES (1)") == ["audit_log"]
        assert inspector.extract_tables("UPDATE users SET a = 1") == ["users"]

    def test_extract_quoted_tables(self) -> None:
        """Test that quoted identifiers are unwrapped."""
        inspector = RegexQueryInspector()
        query = 'SELECT * FROM "Orders" JOIN `users` ON 1 = 1 JOIN [audit_log] ON 1 = 1'
        assert inspector.extract_tables(query) == ["orders", "users", "audit_log"]

    def test_matched_patterns_boundaries(self) -> None:
        inspector = RegexQueryInspector()
        assert inspector.matched_patterns("SELECT created_at, exec_count FROM t") == []
        assert inspector.matched_patterns("SELECT 1 WHERE 2=2UNION SELECT 3") == [
            "UNION.*SELECT"
        ]

    def test_find_limit(self) -> None:
        inspector = RegexQueryInspector()
        assert inspector.find_limit("SELECT 1 LIMIT 25") == 25
        assert inspector.find_limit("SELECT 1") is None
