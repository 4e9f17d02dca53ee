"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from querygate.core.types import QueryResult, ValidationReport
from querygate.exceptions import QueryGateError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_query_result(self, result: QueryResult) -> None:
        """Print a generated query with its metadata, warnings and explanation."""
        if self.json_mode:
            print(json.dumps(result.model_dump(mode="json"), indent=2))
            return

        console.print(Syntax(result.query, "sql", word_wrap=True))
        console.print(
            f"Operation: {result.metadata.operation.value}  "
            f"Tables: {', '.join(result.metadata.tables) or '-'}  "
            f"Complexity: {result.metadata.estimated_complexity.value}",
            style="dim",
        )
        if result.explanation:
            console.print(f"\n{result.explanation}")
        self.print_warnings(result.warnings)

    def print_validation(self, query: str, report: ValidationReport) -> None:
        """Print the outcome of validating a query."""
        if self.json_mode:
            print(json.dumps({"query": query, **report.model_dump()}, indent=2))
            return

        console.print(Syntax(query, "sql", word_wrap=True))
        if report.valid:
            console.print("✓ Query is valid", style="green")
        else:
            console.print("✗ Query is invalid", style="red")
            for error in report.errors:
                console.print(f"  • {error}", style="red")
        self.print_warnings(report.warnings)

    def print_warnings(self, warnings: list[str]) -> None:
        """Print warnings (terminal mode only)."""
        if self.json_mode or not warnings:
            return
        console.print("\n⚠️  Warnings:", style="yellow")
        for warning in warnings:
            console.print(f"  • {warning}", style="yellow")

    def print_text(self, text: str) -> None:
        """Print plain text, or a JSON object with a ``text`` key."""
        if self.json_mode:
            print(json.dumps({"text": text}, indent=2))
        else:
            console.print(text, markup=False, highlight=False)

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, QueryGateError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, QueryGateError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.).

        Args:
            data: Data to print
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print_json(json.dumps(data, default=str))
