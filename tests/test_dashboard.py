from library_tracker.book import Book
from library_tracker.services.dashboard import DashboardStats, compute_dashboard_stats


def _book(book_id, title, fans):
    return Book(book_id, title, "Author", favorites=[f"u{i}" for i in range(fans)])


def test_most_favorited_wins():
    books = [_book(1, "A", 3), _book(2, "B", 5)]
    stats = compute_dashboard_stats(books, connected_owners=2)
    assert stats == DashboardStats(book_count=2, connected_owners=2, most_favorited="B", most_favorited_count=5)


def test_empty_collection():
    stats = compute_dashboard_stats([], connected_owners=0)
    assert stats.to_dict() == {
        "bookCount": 0,
        "connectedOwners": 0,
        "mostFavorited": None,
        "mostFavoritedCount": 0,
    }


def test_ties_go_to_first_in_order():
    books = [_book(1, "First", 2), _book(2, "Second", 2), _book(3, "Third", 1)]
    stats = compute_dashboard_stats(books, connected_owners=0)
    assert stats.most_favorited == "First"
    assert stats.most_favorited_count == 2


def test_no_favorites_means_no_winner():
    stats = compute_dashboard_stats([_book(1, "A", 0), _book(2, "B", 0)], connected_owners=1)
    assert stats.book_count == 2
    assert stats.most_favorited is None
    assert stats.most_favorited_count == 0


def test_owner_count_never_negative():
    assert compute_dashboard_stats([], connected_owners=-3).connected_owners == 0
