# standup_sync/services/session_events.py
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import AsyncIterator, DefaultDict, Set, Tuple

from standup_sync.schemas.session import SessionKind, SessionView

logger = logging.getLogger(__name__)

_Key = Tuple[SessionKind, str]


@dataclass(frozen=True)
class SessionUpdate:
    """
    Both role shapes of a session after a write.

    Subscribers pick the one matching their role, so the live stream never
    needs database access of its own.
    """

    admin_view: SessionView
    member_view: SessionView


class SessionBroadcaster:
    """
    In-process fan-out of session changes to live subscribers.

    Each subscriber owns a bounded queue. A slow subscriber loses the oldest
    pending update rather than blocking the publisher; only the latest state
    matters to a viewer.
    """

    def __init__(self, max_pending: int = 8) -> None:
        self._max_pending = max_pending
        self._subscribers: DefaultDict[_Key, Set[asyncio.Queue]] = defaultdict(set)

    def subscribe(self, kind: SessionKind, session_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_pending)
        self._subscribers[(kind, session_id)].add(queue)
        return queue

    def unsubscribe(self, kind: SessionKind, session_id: str, queue: asyncio.Queue) -> None:
        key = (kind, session_id)
        subscribers = self._subscribers.get(key)
        if not subscribers:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[key]

    def subscriber_count(self, kind: SessionKind, session_id: str) -> int:
        return len(self._subscribers.get((kind, session_id), ()))

    def publish(self, kind: SessionKind, session_id: str, update: SessionUpdate) -> None:
        for queue in list(self._subscribers.get((kind, session_id), ())):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(update)

    async def iter_views(
        self,
        kind: SessionKind,
        session_id: str,
        queue: asyncio.Queue,
        is_admin: bool,
    ) -> AsyncIterator[SessionView]:
        """
        Yield the role-appropriate view for every update delivered to ``queue``.

        ``queue`` must come from ``subscribe`` and be taken before the caller
        reads the initial state, so no write lands unseen in between. It is
        unsubscribed when iteration stops.
        """
        try:
            while True:
                update: SessionUpdate = await queue.get()
                yield update.admin_view if is_admin else update.member_view
        finally:
            self.unsubscribe(kind, session_id, queue)


_broadcaster = SessionBroadcaster()


def get_broadcaster() -> SessionBroadcaster:
    return _broadcaster
