import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIBRARY_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_list_result(books: List[Any]) -> None:
    """Print the book list in the current output mode.
    - plain: '<id> - Title by Author' lines, or 'No books in library.'
    - json: JSON array of book records
    - rich: Rich table with reader and favorites columns
    """
    mode = get_output_mode()

    if not books:
        print("No books in library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Reader", style="green")
        table.add_column("Return by", style="yellow")
        table.add_column("♥", justify="right")
        for b in books:
            table.add_row(
                str(b.id),
                b.title,
                b.author,
                b.reader_name or "-",
                b.return_date_time or "-",
                str(b.favorites_count),
            )
        _console.print(table)
    else:
        for b in books:
            print(f"{b.id} - {b.title} by {b.author}")


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print dashboard stats in the current output mode."""
    mode = get_output_mode()

    total = stats.get("bookCount", 0)
    owners = stats.get("connectedOwners", 0)
    top = stats.get("mostFavorited")
    top_count = stats.get("mostFavoritedCount", 0)

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total Books:[/] {total}\n"
            f"[bold]Owners Viewing:[/] {owners}\n"
            f"[bold]Most Favorited:[/] {top or '-'} ({top_count})"
        )
        _console.print(Panel.fit(content, title="📊 Dashboard", border_style="blue"))
    else:
        print(f"Total Books: {total}")
        print(f"Owners Viewing: {owners}")
        if top:
            print(f"Most Favorited: {top} ({top_count})")
        else:
            print("Most Favorited: none")
