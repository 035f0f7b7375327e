"""Row-change notifications.

Subscribers register for a table, optionally narrowed with a
``column=eq.value`` filter. Each published change carries the full row so a
consumer can merge it by id instead of re-fetching the whole list.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

Callback = Callable[[dict], None]


def parse_filter(expr: str | None) -> tuple[str, str] | None:
    """``"order_id=eq.12"`` -> ``("order_id", "12")``; empty -> None."""
    if not expr:
        return None
    column, sep, rest = expr.partition("=")
    if not sep or not rest.startswith("eq."):
        raise ValueError(f"Unsupported realtime filter: {expr}")
    return column.strip(), rest[3:].strip()


def room_name(table: str, expr: str | None = None) -> str:
    return f"{table}:{expr}" if expr else table


def filter_matches(parsed: tuple[str, str] | None, row: dict) -> bool:
    if parsed is None:
        return True
    column, value = parsed
    if column not in row or row[column] is None:
        return False
    return str(row[column]) == value


@dataclass
class _Subscription:
    token: int
    table: str
    expr: str | None
    parsed: tuple[str, str] | None
    callback: Callback


class RealtimeHub:
    def __init__(self, emitter: Callable[[str, dict], Any] | None = None, logger: logging.Logger | None = None):
        self._subs: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._emitter = emitter
        self.logger = logger or logging.getLogger("automart.realtime")

    def subscribe(self, table: str, callback: Callback, expr: str | None = None) -> int:
        parsed = parse_filter(expr)
        with self._lock:
            token = next(self._ids)
            self._subs[token] = _Subscription(token, table, expr, parsed, callback)
        return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            return self._subs.pop(token, None) is not None

    def publish(self, table: str, event: str, row: dict, old: dict | None = None, filter_columns: tuple[str, ...] = ("order_id", "user_id")) -> int:
        payload = {"table": table, "event": event, "new": row, "old": old or {}}

        with self._lock:
            targets = [s for s in self._subs.values() if s.table == table and filter_matches(s.parsed, row)]

        delivered = 0
        for sub in targets:
            try:
                sub.callback(payload)
                delivered += 1
            except Exception:
                self.logger.exception("Realtime subscriber %s failed for %s", sub.token, table)

        if self._emitter is not None:
            rooms = [room_name(table)]
            for col in filter_columns:
                if row.get(col) is not None:
                    rooms.append(room_name(table, f"{col}=eq.{row[col]}"))
            if table == "orders" and row.get("id") is not None:
                rooms.append(room_name(table, f"id=eq.{row['id']}"))
            for room in rooms:
                try:
                    self._emitter(room, payload)
                except Exception:
                    self.logger.warning("Realtime emit to %s failed", room)

        return delivered

    def subscriber_count(self, table: str | None = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subs)
            return sum(1 for s in self._subs.values() if s.table == table)
