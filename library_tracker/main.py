import logging
import os
import subprocess
import sys
from typing import Optional

import typer

from .config import settings
from .library import Library
from .services.dashboard import compute_dashboard_stats
from .store import BookStore
from .utils.ui_helpers import set_output_mode, print_list_result, print_stats_result

APP_NAME = "Library Tracker CLI"

app = typer.Typer(help=APP_NAME)

_state = {"books_file": settings.books_file}


def _load_library() -> Library:
    return Library(BookStore(_state["books_file"]))


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    books_file: Optional[str] = typer.Option(
        None,
        "--books-file",
        "-f",
        help="JSON file holding the book collection",
    ),
):
    """Global CLI options (output mode, data file)."""
    logging.basicConfig(level=settings.log_level)
    if output:
        set_output_mode(output)
    _state["books_file"] = books_file or settings.books_file


@app.command("list")
def cli_list():
    """List every stored book."""
    print_list_result(_load_library().list_books())


@app.command("stats")
def cli_stats():
    """Show dashboard statistics for the stored collection (no live owners offline)."""
    stats = compute_dashboard_stats(_load_library().list_books(), connected_owners=0)
    print_stats_result(stats.to_dict())


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the REST + Socket.IO server with uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting server on http://{host}:{port}/")

    args = [
        sys.executable,
        "-m", "uvicorn",
        "library_tracker.api:create_asgi_app",
        "--factory",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")

    env = dict(os.environ, LIBRARY_BOOKS_FILE=_state["books_file"])
    try:
        result = subprocess.run(args, env=env)
    except KeyboardInterrupt:
        raise typer.Exit(code=0)
    if result.returncode:
        raise typer.Exit(code=result.returncode)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
