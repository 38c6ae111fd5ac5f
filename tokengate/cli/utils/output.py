"""Output formatting utilities for CLI."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


class OutputFormatter:
    """Handle output formatting for different formats."""

    def __init__(self, format_type: str = "table"):
        """
        Initialize output formatter.

        Args:
            format_type: Output format (table, json)
        """
        self.console = Console()
        try:
            self.format = OutputFormat(format_type.lower())
        except ValueError:
            self.format = OutputFormat.TABLE

    @property
    def is_json(self) -> bool:
        return self.format == OutputFormat.JSON

    def print_json(self, payload: Any):
        # Raw print: JSON brackets must not be read as rich markup
        self.console.print(
            json.dumps(payload, indent=2, default=str),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def print_list(
        self,
        items: List[Dict[str, Any]],
        columns: Optional[List[str]] = None,
        title: Optional[str] = None,
    ):
        """
        Print a list of items.

        Args:
            items: List of items to print
            columns: Column names to display (for table format)
            title: Table title (for table format)
        """
        if self.is_json:
            self.print_json(items)
            return

        if not items:
            self.console.print("[dim]No items found[/dim]")
            return

        if not columns:
            columns = list(items[0].keys())

        table = Table(title=title)
        for col in columns:
            table.add_column(col.replace("_", " ").title())

        for item in items:
            row = []
            for col in columns:
                value = item.get(col, "")
                if value is None:
                    value = "[dim]-[/dim]"
                elif isinstance(value, bool):
                    value = "[green]✓[/green]" if value else "[red]✗[/red]"
                elif isinstance(value, list):
                    value = escape(", ".join(str(v) for v in value)) or "[dim]any[/dim]"
                else:
                    value = escape(str(value))
                row.append(value)
            table.add_row(*row)

        self.console.print(table)

    def print_detail(self, item: Dict[str, Any], title: Optional[str] = None):
        """Print detailed view of a single item."""
        if self.is_json:
            self.print_json(item)
            return

        if title:
            self.console.print(f"[bold]{title}[/bold]\n")

        for key, value in item.items():
            formatted_key = key.replace("_", " ").title()

            if value is None:
                formatted_value = "[dim]Not set[/dim]"
            elif isinstance(value, bool):
                formatted_value = "[green]Yes[/green]" if value else "[red]No[/red]"
            elif isinstance(value, (list, dict)):
                formatted_value = escape(json.dumps(value, default=str))
            else:
                formatted_value = escape(str(value))

            self.console.print(f"[cyan]{formatted_key}:[/cyan] {formatted_value}", soft_wrap=True)

    def print_success(self, message: str):
        """Print success message."""
        if self.is_json:
            self.print_json({"status": "success", "message": message})
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str):
        """Print error message."""
        if self.is_json:
            self.print_json({"status": "error", "message": message})
        else:
            self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str):
        """Print warning message."""
        if self.is_json:
            self.print_json({"status": "warning", "message": message})
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
