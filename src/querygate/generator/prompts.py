"""Prompt assembly for query generation.

The generation prompt is a fixed sequence of sections:
- Database schema (rendered by the SchemaRegistry)
- Dialect notes
- Security constraints, including sensitive columns from the schema
- User context
- The user's request
- Output instructions
"""

from __future__ import annotations

from querygate.core.types import SecurityConfig, UserContext
from querygate.schema.registry import SchemaRegistry

PROMPT_HEADER = (
    "You are a database query generator. "
    "Generate a SQL query based on the following information:\n\n"
)

INSTRUCTIONS = [
    "Be valid SQL for the specified database type",
    "Follow all security constraints",
    "Only use tables and columns from the provided schema",
    "Not expose sensitive columns",
    "Be safe to execute",
]

EXPLANATION_PROMPT = (
    "Explain the following SQL query in simple terms:\n\n"
    "{query}\n\n"
    "Provide a brief explanation of what this query does and what data it will return."
)


class PromptBuilder:
    """Builds generation and explanation prompts. Stateless."""

    def __init__(self, registry: SchemaRegistry, security: SecurityConfig) -> None:
        self._registry = registry
        self._security = security

    def build(self, user_input: str, user_context: UserContext | None = None) -> str:
        """Build the generation prompt.

        Args:
            user_input: Natural-language request
            user_context: Requesting user, if any

        Returns:
            Prompt text
        """
        prompt = PROMPT_HEADER

        prompt += "=== DATABASE SCHEMA ===\n"
        prompt += self._registry.generate_schema_prompt()
        prompt += "\n"

        prompt += "=== DATABASE NOTES ===\n"
        prompt += self._registry.get_database_hints()
        prompt += "\n\n"

        prompt += self._security_section()

        if user_context is not None:
            prompt += self._user_context_section(user_context)

        prompt += "=== USER REQUEST ===\n"
        prompt += user_input
        prompt += "\n\n"

        prompt += self._instructions(user_context)
        return prompt

    def _security_section(self) -> str:
        security = self._security
        section = "=== SECURITY CONSTRAINTS ===\n"
        section += (
            f"Allowed operations: {', '.join(op.value for op in security.allowed_operations)}\n"
        )

        if security.allowed_tables:
            section += f"Allowed tables: {', '.join(security.allowed_tables)}\n"

        if security.restricted_columns:
            section += (
                f"Restricted columns (DO NOT USE): {', '.join(security.restricted_columns)}\n"
            )

        sensitive = self._registry.get_sensitive_columns()
        if sensitive:
            section += "Sensitive columns (DO NOT EXPOSE):\n"
            for table, column in sensitive:
                section += f"  - {table}.{column}\n"

        section += f"Maximum rows: {security.max_row_limit}\n"
        return section + "\n"

    def _user_context_section(self, user_context: UserContext) -> str:
        section = "=== USER CONTEXT ===\n"
        section += f"User ID: {user_context.user_id}\n"
        section += f"Role: {user_context.role}\n"
        if user_context.permissions:
            section += f"Permissions: {', '.join(user_context.permissions)}\n"
        return section + "\n"

    def _instructions(self, user_context: UserContext | None) -> str:
        rules = list(INSTRUCTIONS)
        if user_context is not None and self._security.enable_row_level_security:
            rules.append(
                "Consider that results will be filtered for "
                f"{self._security.owner_column} = {user_context.user_id}"
            )

        section = "=== INSTRUCTIONS ===\n"
        section += (
            "Generate ONLY the SQL query without any explanations, markdown formatting, "
            "or additional text.\n"
        )
        section += "The query must:\n"
        for number, rule in enumerate(rules, start=1):
            section += f"{number}. {rule}\n"
        return section

    @staticmethod
    def build_explanation(query: str) -> str:
        """Build the follow-up prompt asking for a plain-language explanation."""
        return EXPLANATION_PROMPT.format(query=query)
