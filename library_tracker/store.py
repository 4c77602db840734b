"""Flat-file persistence for the book collection.

The whole collection lives in a single JSON array. It is read once at startup
and rewritten in full after every mutation. Both directions fail soft: problems
are logged and never propagate to the caller.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Union

from .book import Book

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the books file cannot be written."""


class BookStore:
    """Loads and saves the book collection as one JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        # Saves are applied in the order they were issued
        self._write_lock = asyncio.Lock()

    def load(self) -> List[Book]:
        """Read all books from disk. Missing or unreadable files give an empty list."""
        if not self.path.exists():
            logger.info(f"No existing books file at {self.path}, starting with empty collection")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {self.path}: {e}. Starting with empty collection")
            return []

        if not isinstance(data, list):
            logger.warning(f"{self.path} does not contain a JSON array. Starting with empty collection")
            return []

        books: List[Book] = []
        seen_ids = set()
        for item in data:
            try:
                book = Book.from_dict(item)
            except ValueError as e:
                logger.warning(f"Skipping invalid book record: {e}")
                continue
            if book.id in seen_ids:
                logger.warning(f"Skipping duplicate book id {book.id}")
                continue
            seen_ids.add(book.id)
            books.append(book)

        logger.info(f"Loaded {len(books)} books from {self.path}")
        return books

    async def save(self, books: List[Book]) -> bool:
        """Persist ``books``, replacing the file contents.

        The snapshot is taken before the first suspension point so later
        in-memory changes cannot leak into this write. Returns False when the
        write failed; the failure is logged only.
        """
        payload = [book.to_dict() for book in books]
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write, payload)
            except PersistenceError as e:
                logger.error(f"Error saving books to file: {e}")
                return False
        logger.debug(f"Saved {len(payload)} books to {self.path}")
        return True

    def _write(self, payload: List[Dict[str, Any]]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"{self.path}: {e}") from e
