"""In-process publish/subscribe hub for library events.

Tracks who is connected and how many owner dashboards are open, and fans
every event out to the registered subscribers. Intended for a single-process
deployment; the Socket.IO gateway is one such subscriber.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from ..book import Book
from ..library import Library
from .dashboard import DashboardStats, compute_dashboard_stats

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Any], Awaitable[None]]


class EventType(str, Enum):
    """Server to client events."""

    BOOK_ADDED = "bookAdded"
    BOOK_UPDATED = "bookUpdated"
    BOOK_DELETED = "bookDeleted"
    FAVORITE_UPDATED = "favoriteUpdated"
    USER_STATUS = "userStatus"
    DASHBOARD_STATS = "dashboardStats"


class ClientEvent(str, Enum):
    """Client to server events."""

    OWNER_JOIN = "ownerJoinDashboard"
    OWNER_LEAVE = "ownerLeaveDashboard"


class Role(str, Enum):
    READER = "reader"
    OWNER = "owner"


@dataclass(slots=True)
class ConnectionContext:
    """Identity of one connected client, fixed at connect time."""

    sid: str
    user_id: str
    role: Role

    @classmethod
    def from_query(cls, sid: str, query: Optional[Mapping[str, Any]] = None) -> "ConnectionContext":
        query = query or {}
        user_id = str(query.get("userId") or "").strip()
        if not user_id:
            user_id = f"user_{random.randint(0, 9999)}"
        try:
            role = Role(str(query.get("role") or "").strip().lower())
        except ValueError:
            role = Role.READER
        return cls(sid=sid, user_id=user_id, role=role)

    def to_dict(self) -> dict:
        return {"id": self.user_id, "role": self.role.value, "socketId": self.sid}


class EventBroadcaster:
    """Fans library events out to subscribers and keeps presence state."""

    def __init__(self, library: Library) -> None:
        self.library = library
        self._subscribers: List[Subscriber] = []
        self._presence: Dict[str, ConnectionContext] = {}
        self._dashboard_views: Counter = Counter()

    # ------------------------- Subscribers ------------------------- #
    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    async def publish(self, event: EventType, payload: Any) -> None:
        """Deliver ``payload`` to every subscriber. Subscriber errors are only logged."""
        for callback in list(self._subscribers):
            try:
                await callback(event.value, payload)
            except Exception:
                logger.exception(f"Subscriber failed while handling {event.value}")

    # ------------------------- Presence ------------------------- #
    @property
    def connected_owners(self) -> int:
        return sum(self._dashboard_views.values())

    def presence(self) -> List[dict]:
        return [ctx.to_dict() for ctx in self._presence.values()]

    def get_connection(self, sid: str) -> Optional[ConnectionContext]:
        return self._presence.get(sid)

    async def connect(self, sid: str, query: Optional[Mapping[str, Any]] = None) -> ConnectionContext:
        ctx = ConnectionContext.from_query(sid, query)
        self._presence[sid] = ctx
        logger.info(f"Client connected: {ctx.user_id} ({ctx.role.value}) sid={sid}")
        await self.publish(EventType.USER_STATUS, self.presence())
        return ctx

    async def disconnect(self, sid: str) -> None:
        ctx = self._presence.pop(sid, None)
        if ctx:
            logger.info(f"Client disconnected: {ctx.user_id} sid={sid}")
        await self.publish(EventType.USER_STATUS, self.presence())
        # Dashboards left open by a dropped connection no longer count
        if self._dashboard_views.pop(sid, 0):
            await self.publish_dashboard_stats()

    async def owner_join(self, sid: str) -> None:
        self._dashboard_views[sid] += 1
        await self.publish_dashboard_stats()

    async def owner_leave(self, sid: str) -> None:
        views = self._dashboard_views.get(sid, 0)
        if views > 1:
            self._dashboard_views[sid] = views - 1
        else:
            self._dashboard_views.pop(sid, None)
        await self.publish_dashboard_stats()

    # ------------------------- Dashboard ------------------------- #
    def dashboard_stats(self) -> DashboardStats:
        return compute_dashboard_stats(self.library.list_books(), self.connected_owners)

    async def publish_dashboard_stats(self) -> None:
        await self.publish(EventType.DASHBOARD_STATS, self.dashboard_stats().to_dict())

    # ------------------------- Mutations ------------------------- #
    async def book_added(self, book: Book) -> None:
        await self.publish(EventType.BOOK_ADDED, book.to_dict())
        await self.publish_dashboard_stats()

    async def book_updated(self, book: Book) -> None:
        await self.publish(EventType.BOOK_UPDATED, book.to_dict())
        await self.publish_dashboard_stats()

    async def book_deleted(self, book: Book) -> None:
        await self.publish(EventType.BOOK_DELETED, book.to_dict())
        await self.publish_dashboard_stats()

    async def favorite_updated(self, book_id: int, favorites_count: int) -> None:
        await self.publish(EventType.FAVORITE_UPDATED, {"bookId": book_id, "favoritesCount": favorites_count})
        await self.publish_dashboard_stats()
