from dataclasses import dataclass
from typing import Iterable, Optional

from ..book import Book


@dataclass(frozen=True)
class DashboardStats:
    book_count: int
    connected_owners: int
    most_favorited: Optional[str]
    most_favorited_count: int

    def to_dict(self) -> dict:
        return {
            "bookCount": self.book_count,
            "connectedOwners": self.connected_owners,
            "mostFavorited": self.most_favorited,
            "mostFavoritedCount": self.most_favorited_count,
        }


def compute_dashboard_stats(books: Iterable[Book], connected_owners: int) -> DashboardStats:
    """Derive owner-dashboard figures from the current collection.

    The most-favorited book is the first one, in collection order, holding the
    strictly highest non-zero favorite count.
    """
    count = 0
    top: Optional[Book] = None
    for book in books:
        count += 1
        if book.favorites_count > (top.favorites_count if top else 0):
            top = book

    return DashboardStats(
        book_count=count,
        connected_owners=max(0, connected_owners),
        most_favorited=top.title if top else None,
        most_favorited_count=top.favorites_count if top else 0,
    )
