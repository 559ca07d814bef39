"""In-process change-notification feed.

Repositories publish one notification per committed row change; subscribers
register a handler per table with an optional row filter. Delivery happens on the
publisher's thread, outside the feed lock. A closed subscription simply misses
notifications: nothing is buffered or replayed for it.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, Optional

from ..core.enums import ChangeKind, Table
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeNotification:
    table: Table
    kind: ChangeKind
    new: dict = field(default_factory=dict)
    old: Optional[dict] = None

    @property
    def row(self) -> dict:
        """Row the notification is about (the old row for deletes)."""
        if self.kind == ChangeKind.DELETE and self.old:
            return self.old
        return self.new


@dataclass(frozen=True)
class RowFilter:
    """``column = value`` filter on the notified row."""

    column: str
    value: object

    @classmethod
    def parse(cls, expression: str) -> "RowFilter":
        """Parse the ``column=eq.value`` form, e.g. ``session_id=eq.42``."""
        column, sep, rest = (expression or "").partition("=")
        op, dot, value = rest.partition(".")
        if not sep or not dot or op != "eq" or not column.strip():
            raise ValidationError(f"Unsupported row filter: {expression!r}")
        return cls(column=column.strip(), value=value)

    def matches(self, row: dict) -> bool:
        if self.column not in row:
            return False
        # Compare as text so "42" from a parsed expression matches the int 42.
        return str(row[self.column]) == str(self.value)


Handler = Callable[[ChangeNotification], None]


class Subscription:
    def __init__(
        self,
        feed: "ChangeFeed",
        table: Table,
        handler: Handler,
        *,
        kinds: Optional[FrozenSet[ChangeKind]] = None,
        row_filter: Optional[RowFilter] = None,
    ):
        self._feed = feed
        self.table = table
        self.kinds = kinds
        self.row_filter = row_filter
        self._handler = handler
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def accepts(self, notification: ChangeNotification) -> bool:
        if self._closed or notification.table != self.table:
            return False
        if self.kinds is not None and notification.kind not in self.kinds:
            return False
        if self.row_filter is not None and not self.row_filter.matches(notification.row):
            return False
        return True

    def deliver(self, notification: ChangeNotification) -> None:
        self._handler(notification)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self)

    def __repr__(self) -> str:
        flt = f" {self.row_filter.column}={self.row_filter.value}" if self.row_filter else ""
        return f"<Subscription {self.table.value}{flt}{' closed' if self._closed else ''}>"


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        table: Table,
        handler: Handler,
        *,
        kinds: Optional[Iterable[ChangeKind]] = None,
        row_filter: Optional[RowFilter] = None,
    ) -> Subscription:
        sub = Subscription(
            self,
            Table(table),
            handler,
            kinds=frozenset(ChangeKind(k) for k in kinds) if kinds is not None else None,
            row_filter=row_filter,
        )
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("Subscribed %r", sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
        logger.debug("Unsubscribed %r", sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, notification: ChangeNotification) -> int:
        """Deliver to every matching open subscription; returns the delivery count."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.accepts(notification)]

        delivered = 0
        for sub in targets:
            try:
                sub.deliver(notification)
                delivered += 1
            except Exception:
                # One broken consumer must not stop fan-out to the others.
                logger.exception("Change handler failed for %r", sub)
        return delivered

    def publish_row(self, table: Table, kind: ChangeKind, new: dict, *, old: Optional[dict] = None) -> int:
        return self.publish(ChangeNotification(table=table, kind=kind, new=dict(new), old=old))
