from __future__ import annotations

import logging
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class Book:
    """Represents a single tracked book in the library."""

    def __init__(self, book_id: int, title: str, author: str, return_date_time: str | None = None,
                 reader_name: str | None = None, favorites: Iterable[str] | None = None) -> None:
        self.id = book_id
        self.title = title.strip()
        self.author = author.strip()
        self.return_date_time = return_date_time
        self.reader_name = reader_name
        self.favorites: list[str] = []
        for user_id in favorites or []:
            if user_id not in self.favorites:
                self.favorites.append(user_id)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.id})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, title={self.title!r})"

    @property
    def favorites_count(self) -> int:
        return len(self.favorites)

    def toggle_favorite(self, user_id: str) -> int:
        """Add ``user_id`` if absent, remove it if present. Returns the new count."""
        if user_id in self.favorites:
            self.favorites.remove(user_id)
        else:
            self.favorites.append(user_id)
        return self.favorites_count

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "returnDateTime": self.return_date_time,
            "readerName": self.reader_name,
            "favorites": list(self.favorites),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Book":
        """Build a Book from its JSON form.

        Raises ValueError when the record is not a usable book (missing id,
        blank title/author, or wrongly typed fields).
        """
        if not isinstance(data, dict):
            raise ValueError("book record must be an object")

        book_id = data.get("id")
        if isinstance(book_id, bool) or not isinstance(book_id, int):
            raise ValueError(f"invalid book id: {book_id!r}")

        title = data.get("title")
        author = data.get("author")
        if not isinstance(title, str) or not title.strip():
            raise ValueError(f"book {book_id} has no title")
        if not isinstance(author, str) or not author.strip():
            raise ValueError(f"book {book_id} has no author")

        return_date_time = data.get("returnDateTime")
        reader_name = data.get("readerName")
        for key, value in (("returnDateTime", return_date_time), ("readerName", reader_name)):
            if value is not None and not isinstance(value, str):
                raise ValueError(f"book {book_id} has a non-string {key}")

        favorites = data.get("favorites") or []
        if not isinstance(favorites, list):
            raise ValueError(f"book {book_id} favorites must be a list")
        user_ids = [f for f in favorites if isinstance(f, str) and f.strip()]
        if len(user_ids) != len(favorites):
            logger.warning(f"Skipping {len(favorites) - len(user_ids)} invalid favorite entries on book {book_id}")

        return Book(
            book_id=book_id,
            title=title,
            author=author,
            return_date_time=return_date_time or None,
            reader_name=reader_name or None,
            favorites=user_ids,
        )
