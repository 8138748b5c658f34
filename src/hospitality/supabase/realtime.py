"""
Realtime manager for guest changes.

Every insert, update or delete on the guests table is published on the
channel ``guests:room:<room_id>``. In-process subscribers get a callback;
HTTP clients poll the persisted ``realtime_events`` rows.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select

from hospitality.constants import REALTIME_EVENT_RETENTION_DAYS, RealtimeEventType
from hospitality.datetime_utils import utcnow
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import RealtimeEvent
from hospitality.schemas import RealtimeEventRecord

logger = get_logger(__name__)

GuestChangeCallback = Callable[[dict[str, Any]], None]


def room_channel(room_id: uuid.UUID | str) -> str:
    return f"guests:room:{room_id}"


class RealtimeManager:
    """
    Publishes guest changes to per-room subscribers and persists them for
    polling clients.
    """

    def __init__(self, store: Store):
        self.store = store
        self._subscribers: dict[str, list[GuestChangeCallback]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _serialize_value(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (set, tuple)):
            return list(value)
        return value

    @classmethod
    def _serialize_row(cls, row: dict[str, Any] | None) -> dict[str, Any] | None:
        if row is None:
            return None
        return {key: cls._serialize_value(value) for key, value in row.items()}

    def subscribe_room(self, room_id: uuid.UUID | str, callback: GuestChangeCallback):
        """
        Register ``callback`` for guest changes in one room.

        Returns a zero-argument function that removes the subscription.
        """
        channel = room_channel(room_id)
        with self._lock:
            self._subscribers.setdefault(channel, []).append(callback)
        logger.debug(f"Subscribed to {channel}")

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(channel, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(channel, None)
            logger.debug(f"Unsubscribed from {channel}")

        return unsubscribe

    def subscriber_count(self, room_id: uuid.UUID | str) -> int:
        with self._lock:
            return len(self._subscribers.get(room_channel(room_id), []))

    def publish_guest_change(
        self,
        event_type: RealtimeEventType,
        new: dict[str, Any] | None = None,
        old: dict[str, Any] | None = None,
    ) -> None:
        """
        Publish one guest change. Failures are logged, never raised: the
        mutation that triggered the event has already been committed.
        """
        source = new if new is not None else old
        if not source or source.get("room_id") is None:
            logger.warning(f"Realtime {event_type.value} without room_id; skipped")
            return

        payload = {
            "event": event_type.value,
            "table": "guests",
            "new": self._serialize_row(new),
            "old": self._serialize_row(old),
        }
        channels = {room_channel(source["room_id"])}
        # A guest moved between rooms is announced in both.
        if new and old and old.get("room_id") and old.get("room_id") != new.get("room_id"):
            channels.add(room_channel(old["room_id"]))

        for channel in channels:
            self._persist_event(channel, event_type, payload)
            self._dispatch(channel, payload)

    def _dispatch(self, channel: str, payload: dict[str, Any]) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(channel, []))
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Realtime subscriber on {channel} failed: {e}")

    def _persist_event(
        self, channel: str, event_type: RealtimeEventType, payload: dict[str, Any]
    ) -> None:
        try:
            with self.store.session() as session:
                session.add(
                    RealtimeEvent(channel=channel, event_type=event_type.value, payload=payload)
                )
        except Exception as e:
            logger.error(f"Error persisting realtime event on {channel}: {e}")

    def read_events(
        self, room_id: uuid.UUID | str, after_id: int = 0, limit: int = 100
    ) -> list[RealtimeEventRecord]:
        """Events for one room with id greater than ``after_id``, oldest first."""
        with self.store.session() as session:
            rows = session.execute(
                select(RealtimeEvent)
                .where(RealtimeEvent.channel == room_channel(room_id))
                .where(RealtimeEvent.id > after_id)
                .order_by(RealtimeEvent.id)
                .limit(limit)
            ).scalars().all()
            return [RealtimeEventRecord.model_validate(row) for row in rows]

    def prune_events(self, older_than: datetime | None = None) -> int:
        """Delete persisted events created before ``older_than``. Returns the count."""
        if older_than is None:
            older_than = utcnow() - timedelta(days=REALTIME_EVENT_RETENTION_DAYS)
        with self.store.session() as session:
            result = session.execute(
                delete(RealtimeEvent).where(RealtimeEvent.created_at < older_than)
            )
            deleted = result.rowcount or 0
        logger.info(f"Pruned {deleted} realtime events older than {older_than.isoformat()}")
        return deleted
