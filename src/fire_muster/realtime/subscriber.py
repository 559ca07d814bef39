from __future__ import annotations

import logging
import queue
from typing import Callable, Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import ChangeKind, Table
from .events import AttendanceReloaded, FeedEvent, from_notification
from .feed import ChangeFeed, ChangeNotification, RowFilter, Subscription

logger = logging.getLogger(__name__)

AttendanceLoader = Callable[[int], Iterable[AttendanceRecord]]


class ChangeFeedSubscriber:
    """Turns store notifications into typed events in a single inbox queue.

    Three channels feed the inbox:

    - new drill sessions anywhere (so the setup view sees other marshals' drills),
    - updates of the joined drill session,
    - attendance writes of the joined drill session.

    The queue is filled on the publisher's thread and drained by the owner with
    ``next_event``/``drain``. After a ``disconnect`` nothing is replayed:
    ``reconnect`` re-subscribes and queues a full attendance snapshot instead.
    """

    def __init__(self, feed: ChangeFeed, load_attendance: AttendanceLoader, *, name: str = "subscriber"):
        self._feed = feed
        self._load_attendance = load_attendance
        self._name = name
        self._inbox: "queue.Queue[FeedEvent]" = queue.Queue()
        self._created_sub: Optional[Subscription] = None
        self._session_subs: list[Subscription] = []
        self._session_id: Optional[int] = None
        self._watch_created = False

    @property
    def session_id(self) -> Optional[int]:
        return self._session_id

    @property
    def connected(self) -> bool:
        subs = list(self._session_subs)
        if self._watch_created:
            subs.append(self._created_sub)
        return bool(subs) and all(s is not None and not s.closed for s in subs)

    def _on_notification(self, notification: ChangeNotification) -> None:
        event = from_notification(notification)
        if event is not None:
            self._inbox.put(event)

    def watch_new_sessions(self) -> None:
        self._watch_created = True
        if self._created_sub is None or self._created_sub.closed:
            self._created_sub = self._feed.subscribe(
                Table.DRILL_SESSIONS,
                self._on_notification,
                kinds=(ChangeKind.INSERT,),
            )

    def bind(self, session_id: int) -> None:
        """Scope the session and attendance channels to ``session_id``."""
        self._close_session_subs()
        self._session_id = int(session_id)
        self._open_session_subs()
        logger.debug("%s bound to drill %s", self._name, self._session_id)

    def unbind(self) -> None:
        self._close_session_subs()
        self._session_id = None

    def _open_session_subs(self) -> None:
        if self._session_id is None:
            return
        self._session_subs = [
            self._feed.subscribe(
                Table.DRILL_SESSIONS,
                self._on_notification,
                kinds=(ChangeKind.UPDATE,),
                row_filter=RowFilter("session_id", self._session_id),
            ),
            self._feed.subscribe(
                Table.ATTENDANCE,
                self._on_notification,
                row_filter=RowFilter("session_id", self._session_id),
            ),
        ]

    def _close_session_subs(self) -> None:
        for sub in self._session_subs:
            sub.close()
        self._session_subs = []

    def disconnect(self) -> None:
        """Drop every channel, as a lost connection would. Keeps the binding."""
        self._close_session_subs()
        if self._created_sub is not None:
            self._created_sub.close()
        logger.warning("%s disconnected from change feed", self._name)

    def reconnect(self) -> None:
        """Re-open the channels and queue a full reload of the joined session."""
        if self._watch_created:
            self.watch_new_sessions()
        self._close_session_subs()
        self._open_session_subs()
        if self._session_id is not None:
            records = tuple(self._load_attendance(self._session_id))
            self._inbox.put(AttendanceReloaded(session_id=self._session_id, records=records))
        logger.info("%s reconnected (drill=%s)", self._name, self._session_id)

    def next_event(self, timeout: Optional[float] = None) -> Optional[FeedEvent]:
        """Block up to ``timeout`` seconds (forever if None); None when nothing arrived."""
        try:
            return self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[FeedEvent]:
        events: list[FeedEvent] = []
        while True:
            try:
                events.append(self._inbox.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        self._watch_created = False
        self._close_session_subs()
        if self._created_sub is not None:
            self._created_sub.close()
            self._created_sub = None
        self._session_id = None
