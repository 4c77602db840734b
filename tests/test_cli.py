import json

import pytest
from typer.testing import CliRunner
from unittest.mock import patch, MagicMock

from library_tracker.main import app
from library_tracker.utils.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")


@pytest.fixture
def stocked_file(write_books):
    return write_books([
        {"id": 1, "title": "Dune", "author": "Frank Herbert", "favorites": ["u1"]},
        {"id": 2, "title": "Emma", "author": "Jane Austen", "readerName": "Ann", "favorites": ["u1", "u2"]},
    ])


def test_list_no_books(books_file):
    result = runner.invoke(app, ["--books-file", str(books_file), "list"])
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_list_books(stocked_file):
    result = runner.invoke(app, ["--books-file", str(stocked_file), "list"])
    assert result.exit_code == 0
    assert "1 - Dune by Frank Herbert" in result.stdout
    assert "2 - Emma by Jane Austen" in result.stdout


def test_list_books_json(stocked_file):
    result = runner.invoke(app, ["--output", "json", "--books-file", str(stocked_file), "list"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert [b["title"] for b in payload] == ["Dune", "Emma"]
    assert payload[1]["readerName"] == "Ann"


def test_list_books_rich(stocked_file):
    result = runner.invoke(app, ["-o", "rich", "-f", str(stocked_file), "list"])
    assert result.exit_code == 0
    assert "Dune" in result.stdout
    assert "Emma" in result.stdout


def test_stats(stocked_file):
    result = runner.invoke(app, ["--books-file", str(stocked_file), "stats"])
    assert result.exit_code == 0
    assert "Total Books: 2" in result.stdout
    assert "Owners Viewing: 0" in result.stdout
    assert "Most Favorited: Emma (2)" in result.stdout


def test_stats_empty(books_file):
    result = runner.invoke(app, ["--books-file", str(books_file), "stats"])
    assert result.exit_code == 0
    assert "Most Favorited: none" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run, books_file):
    mock_subprocess_run.return_value = MagicMock(returncode=0)

    result = runner.invoke(app, ["--books-file", str(books_file), "serve", "--port", "4100"])
    assert result.exit_code == 0
    assert "Starting server on http://" in result.stdout
    mock_subprocess_run.assert_called_once()

    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "library_tracker.api:create_asgi_app" in args
    assert "--factory" in args
    assert args[args.index("--port") + 1] == "4100"
    assert "--reload" not in args
    assert mock_subprocess_run.call_args.kwargs["env"]["LIBRARY_BOOKS_FILE"] == str(books_file)


@patch("subprocess.run")
def test_serve_propagates_exit_code(mock_subprocess_run, books_file):
    mock_subprocess_run.return_value = MagicMock(returncode=3)
    result = runner.invoke(app, ["--books-file", str(books_file), "serve", "--reload"])
    assert result.exit_code == 3
    assert "--reload" in mock_subprocess_run.call_args[0][0]
