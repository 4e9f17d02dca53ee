"""Schema inspection commands."""

import typer

from querygate.cli.context import CLIContext
from querygate.cli.output import OutputFormatter
from querygate.schema.registry import SchemaRegistry

# Create schema subcommand group
app = typer.Typer(help="Inspect the schema the generator sees")


@app.command("show")
def schema_show(ctx: typer.Context) -> None:
    """Show the schema description sent to the LLM.

    Examples:

        querygate --schema schema.json schema show
        querygate --database sqlite:///shop.db --json schema show
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        registry = SchemaRegistry(cli_ctx.get_schema())
        if cli_ctx.json_output:
            formatter.print_data(registry.build_context())
        else:
            formatter.print_text(registry.generate_schema_prompt())
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("examples")
def schema_examples(ctx: typer.Context) -> None:
    """Show example queries for the schema."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        examples = SchemaRegistry(cli_ctx.get_schema()).generate_example_queries()
        if cli_ctx.json_output:
            formatter.print_data(examples)
        else:
            formatter.print_table(
                f"Example queries ({len(examples)})",
                [{"Query": example} for example in examples],
                ["Query"],
            )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
