"""querygate CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import querygate
from querygate.cli.context import (
    CLIContext,
    get_database_url,
    get_model_name,
    get_provider_name,
)

# Create main Typer app
app = typer.Typer(
    name="querygate",
    help="querygate CLI - Natural language to validated SQL",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="QUERYGATE_DATABASE_URL",
            help="Database URL to introspect and execute against",
        ),
    ] = None,
    schema: Annotated[
        str | None,
        typer.Option(
            "--schema",
            "-s",
            help="Schema JSON file (takes precedence over --database introspection)",
        ),
    ] = None,
    policy: Annotated[
        str | None,
        typer.Option(
            "--policy",
            "-p",
            help="Security policy JSON file",
        ),
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option(
            "--provider",
            envvar="QUERYGATE_PROVIDER",
            help="LLM provider: openai or claude",
        ),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option(
            "--model",
            "-m",
            envvar="QUERYGATE_MODEL",
            help="Model name (provider default if omitted)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log pipeline steps to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli_ctx = CLIContext(
        database_url=get_database_url(database),
        schema_path=schema,
        policy_path=policy,
        json_output=json_output,
        verbose=verbose,
        provider=get_provider_name(provider),
        model=get_model_name(model),
    )

    # Store in Typer context for command access
    ctx.obj = cli_ctx


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"querygate v{querygate.__version__}")


# Register command groups
from querygate.cli.commands import query, schema  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(query.app, name="query")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
