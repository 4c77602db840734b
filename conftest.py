import json

import pytest
from fastapi.testclient import TestClient

from library_tracker.api import create_app
from library_tracker.library import Library
from library_tracker.store import BookStore


class EventRecorder:
    """Broadcaster subscriber that remembers every event it receives."""

    def __init__(self):
        self.events = []

    async def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [name for name, _ in self.events]

    def payloads(self, name):
        return [payload for event, payload in self.events if event == name]


@pytest.fixture
def books_file(tmp_path):
    # Each test gets its own books file
    return tmp_path / "books.json"


@pytest.fixture
def write_books(books_file):
    def _write(records):
        books_file.write_text(json.dumps(records), encoding="utf-8")
        return books_file
    return _write


@pytest.fixture
def store(books_file):
    return BookStore(books_file)


@pytest.fixture
def lib(store):
    return Library(store)


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def app(books_file, recorder):
    application = create_app(books_file=str(books_file))
    application.state.broadcaster.subscribe(recorder)
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
