import logging
import time
from typing import List, Optional, Union

from .book import Book
from .store import BookStore
from .utils.validators import (
    MAX_AUTHOR_LENGTH,
    MAX_READER_NAME_LENGTH,
    MAX_TITLE_LENGTH,
    BookValidator,
)

logger = logging.getLogger(__name__)

BookId = Union[int, str]


class Library:
    """Owns the in-memory book collection and writes it through to the store."""

    def __init__(self, store: BookStore, books: Optional[List[Book]] = None) -> None:
        self.store = store
        self.books: List[Book] = store.load() if books is None else list(books)
        self._last_id = max((b.id for b in self.books), default=0)

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        return list(self.books)

    def find_book(self, book_id: BookId) -> Optional[Book]:
        key = self._coerce_id(book_id)
        if key is None:
            return None
        for book in self.books:
            if book.id == key:
                return book
        return None

    async def add_book(self, title: Optional[str], author: Optional[str],
                       return_date_time: Optional[str] = None,
                       reader_name: Optional[str] = None) -> Book:
        """Create a book with a fresh id, append it and persist the collection."""
        title = BookValidator.clean_text(title)
        author = BookValidator.clean_text(author)
        if not title or not author:
            raise ValidationError("Title and author are required")

        return_date_time = BookValidator.clean_text(return_date_time)
        reader_name = BookValidator.clean_text(reader_name)
        self._check_fields(title, author, return_date_time, reader_name)

        book = Book(
            book_id=self._next_id(),
            title=title,
            author=author,
            return_date_time=return_date_time,
            reader_name=reader_name,
        )
        self.books.append(book)
        await self._persist()
        logger.info(f"Added book {book.id}: {book.title}")
        return book

    async def update_book(self, book_id: BookId, *, title: Optional[str] = None,
                          author: Optional[str] = None,
                          return_date_time: Optional[str] = None,
                          reader_name: Optional[str] = None) -> Book:
        """Overwrite a book's client fields.

        Title and author keep their previous value when omitted; return time
        and reader name are replaced outright, so omitting them clears them.
        """
        book = self.find_book(book_id)
        if not book:
            raise NotFoundError("Book not found")

        new_title = BookValidator.clean_text(title) or book.title
        new_author = BookValidator.clean_text(author) or book.author
        new_return = BookValidator.clean_text(return_date_time)
        new_reader = BookValidator.clean_text(reader_name)
        self._check_fields(new_title, new_author, new_return, new_reader)

        book.title = new_title
        book.author = new_author
        book.return_date_time = new_return
        book.reader_name = new_reader
        await self._persist()
        return book

    async def remove_book(self, book_id: BookId) -> Book:
        book = self.find_book(book_id)
        if not book:
            raise NotFoundError("Book not found")
        self.books.remove(book)
        await self._persist()
        logger.info(f"Removed book {book.id}: {book.title}")
        return book

    async def toggle_favorite(self, book_id: BookId, user_id: Optional[str]) -> int:
        """Flip ``user_id``'s membership in the book's favorites. Returns the new count.

        The user id is checked before the book is looked up.
        """
        user_id = BookValidator.clean_text(user_id)
        if not user_id:
            raise ValidationError("userId is required")
        book = self.find_book(book_id)
        if not book:
            raise NotFoundError("Book not found")
        count = book.toggle_favorite(user_id)
        await self._persist()
        return count

    # ------------------------- Persistence ------------------------- #
    async def _persist(self) -> None:
        # A failed save is logged by the store; memory stays authoritative.
        await self.store.save(self.books)

    # ------------------------- Utilities ------------------------- #
    def _next_id(self) -> int:
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    @staticmethod
    def _coerce_id(book_id: BookId) -> Optional[int]:
        if isinstance(book_id, bool):
            return None
        if isinstance(book_id, int):
            return book_id
        try:
            return int(str(book_id).strip())
        except ValueError:
            return None

    @staticmethod
    def _check_fields(title: str, author: str, return_date_time: Optional[str],
                      reader_name: Optional[str]) -> None:
        errors = [
            BookValidator.length_error("Title", title, MAX_TITLE_LENGTH),
            BookValidator.length_error("Author", author, MAX_AUTHOR_LENGTH),
            BookValidator.length_error("Reader name", reader_name, MAX_READER_NAME_LENGTH),
            BookValidator.return_date_time_error(return_date_time),
        ]
        errors = [e for e in errors if e]
        if errors:
            raise ValidationError("; ".join(errors))


class LibraryError(Exception):
    """Base class for errors raised by library operations."""


class ValidationError(LibraryError):
    """Client supplied missing or invalid input."""


class NotFoundError(LibraryError):
    """The referenced book does not exist."""
