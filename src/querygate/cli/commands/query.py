"""Query generation and validation commands."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from querygate.cli.context import CLIContext
from querygate.cli.output import OutputFormatter
from querygate.cli.parsing import build_user_context
from querygate.exceptions import InvalidSyntaxError
from querygate.security.sanitizer import QuerySanitizer
from querygate.security.validator import SecurityValidator

# Create query subcommand group
app = typer.Typer(help="Generate and validate queries")

UserIdOption = Annotated[
    str | None,
    typer.Option("--user-id", "-u", help="Requesting user id (digits are treated as a number)"),
]
RoleOption = Annotated[
    str,
    typer.Option("--role", "-r", help="Requesting user role"),
]


@app.command("validate")
def query_validate(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="Query to validate"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load the query from file"),
    ] = None,
    user_id: UserIdOption = None,
    role: RoleOption = "user",
) -> None:
    """Sanitize and validate a query against the security policy.

    No LLM is involved. Row-level security is applied first when the policy
    enables it and a user id is given, so the output shows the query that
    would actually run.

    Examples:

        querygate query validate "SELECT * FROM users LIMIT 10"
        querygate --policy policy.json query validate --file query.sql --user-id 42
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        if from_file:
            raw = Path(from_file).read_text()
        elif sql:
            raw = sql
        else:
            raise typer.BadParameter("Either provide a query or use --file")

        sanitizer = QuerySanitizer()
        query = sanitizer.sanitize(sanitizer.extract_from_code(raw))
        syntax = sanitizer.validate_syntax(query)
        if not syntax.valid:
            raise InvalidSyntaxError(syntax.error or "unknown error", query)

        user_context = build_user_context(user_id, role)
        validator = SecurityValidator(cli_ctx.get_security(), sanitizer=sanitizer)
        if validator.config.enable_row_level_security and user_context is not None:
            query = validator.add_row_level_security(query, user_context)

        report = asyncio.run(validator.validate(query, user_context))
        formatter.print_validation(query, report)
        if not report.valid:
            raise typer.Exit(code=1)

    except typer.Exit:
        raise
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("generate")
def query_generate(
    ctx: typer.Context,
    request: Annotated[str, typer.Argument(help="Natural-language request")],
    user_id: UserIdOption = None,
    role: RoleOption = "user",
    explain: Annotated[
        bool,
        typer.Option("--explain", help="Ask the LLM to explain the generated query"),
    ] = False,
    execute: Annotated[
        bool,
        typer.Option("--execute", "-x", help="Run the query against --database"),
    ] = False,
) -> None:
    """Generate a validated query from natural language.

    Examples:

        querygate --schema schema.json query generate "Show all users"
        querygate -d sqlite:///shop.db query generate "My last 5 orders" -u 42 --execute
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        user_context = build_user_context(user_id, role)
        generator = cli_ctx.get_generator(user_context)

        if explain:
            result = asyncio.run(generator.generate_with_explanation(request))
        else:
            result = asyncio.run(generator.generate(request))

        if not execute:
            formatter.print_query_result(result)
            return

        rows = cli_ctx.get_introspector().execute_query(result.query, result.parameters)
        if cli_ctx.json_output:
            formatter.print_data({**result.model_dump(mode="json"), "rows": rows})
        else:
            formatter.print_query_result(result)
            if rows:
                formatter.print_table(f"{len(rows)} rows", rows, list(rows[0].keys()))
            else:
                typer.echo("Query executed successfully (no results)")

    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
