"""Rich output for the pinsync CLI.

Results go to stdout and failures to stderr, so `pinsync pins ... > out`
only captures data.
"""

from functools import cache
from typing import Any

from rich.console import Console as RichConsole
from rich.table import Table

# Usage percentages above these are shown yellow / red.
WARN_PERCENT = 70
CRITICAL_PERCENT = 90


class Console:
    def __init__(self, *, quiet: bool = False) -> None:
        self.out = RichConsole()
        self.err = RichConsole(stderr=True)
        self.quiet = quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        self.out.print(*args, **kwargs)

    def success(self, message: str) -> None:
        self.out.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self.out.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        if not self.quiet:
            self.out.print(message, style="dim")

    def error(self, message: str, *, hint: str | None = None) -> None:
        self.err.print(f"[red]✗[/red] {message}")
        if hint:
            self.err.print(f"  {hint}", style="dim")

    def status(self, message: str):
        return self.out.status(message)

    def table(self, rows: list[dict[str, Any]], columns: dict[str, str], *, title: str | None = None) -> None:
        """Render ``rows`` with one column per ``columns`` entry (key -> header)."""
        table = Table(*columns.values(), title=title, header_style="bold")
        for row in rows:
            table.add_row(*(str(row.get(key, "")) for key in columns))
        self.out.print(table)

    def usage(self, label: str, usage: dict[str, Any]) -> None:
        """Print one storage usage line from a ``{total, used, percentageUsed}`` payload."""
        percent = usage.get("percentageUsed", 0)
        color = "red" if percent > CRITICAL_PERCENT else "yellow" if percent > WARN_PERCENT else "green"
        self.out.print(
            f"  {label}: [{color}]{percent}%[/{color}] "
            f"[dim]({usage.get('used', 0):,} / {usage.get('total', 0):,} bytes)[/dim]"
        )


@cache
def get_console() -> Console:
    return Console()
