"""
Room Service - hospitality rooms guests are assigned to.
"""

from __future__ import annotations

import uuid

from sqlalchemy import case, delete, func, select

from hospitality.constants import RealtimeEventType
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import Guest, Room
from hospitality.schemas import RoomOverview, RoomRecord, RoomStats
from hospitality.services.guest_service import GuestService
from hospitality.validation import NotFoundError, require_text

logger = get_logger(__name__)


class RoomService:
    """Service for managing rooms."""

    def __init__(self, store: Store, guest_service: GuestService):
        self.store = store
        self.guest_service = guest_service

    def get_all_rooms(self) -> list[RoomRecord]:
        """All rooms ordered by name."""
        with self.store.session() as session:
            rooms = session.execute(select(Room).order_by(Room.name)).scalars().all()
            return [RoomRecord.model_validate(room) for room in rooms]

    def get_room(self, room_id: uuid.UUID) -> RoomRecord:
        with self.store.session() as session:
            room = session.get(Room, room_id)
            if room is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            return RoomRecord.model_validate(room)

    def find_by_name(self, name: str) -> RoomRecord | None:
        """Case-insensitive lookup on the trimmed name."""
        key = (name or "").strip().upper()
        with self.store.session() as session:
            room = session.execute(
                select(Room).where(func.upper(Room.name) == key)
            ).scalars().first()
            return RoomRecord.model_validate(room) if room else None

    def create_room(self, name: str) -> RoomRecord:
        """
        Create a room. Name uniqueness is enforced by the store, so a duplicate
        surfaces as an IntegrityError.
        """
        name = require_text(name, "Il nome della sala è obbligatorio")
        with self.store.session() as session:
            room = Room(name=name)
            session.add(room)
            session.flush()
            record = RoomRecord.model_validate(room)
        logger.info(f"Created room {record.name} ({record.id})")
        return record

    def update_room(self, room_id: uuid.UUID, name: str) -> RoomRecord:
        name = require_text(name, "Il nome della sala è obbligatorio")
        with self.store.session() as session:
            room = session.get(Room, room_id)
            if room is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            room.name = name
            session.flush()
            record = RoomRecord.model_validate(room)
        logger.info(f"Renamed room {room_id} to {name}")
        return record

    def delete_room(self, room_id: uuid.UUID) -> int:
        """
        Delete a room together with its guests. Returns the number of guests
        removed.
        """
        with self.store.session() as session:
            if session.get(Room, room_id) is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            snapshots = self.guest_service.delete_guests_in_room(session, room_id)
            session.execute(delete(Room).where(Room.id == room_id))

        for snapshot in snapshots:
            self.guest_service.publish_change(RealtimeEventType.DELETE, old=snapshot)
        logger.info(f"Deleted room {room_id} and {len(snapshots)} guests")
        return len(snapshots)

    def get_room_stats(self, room_id: uuid.UUID) -> RoomStats:
        """
        ``get_room_stats(room_uuid)``: guest totals and check-in rate for one room.
        """
        with self.store.session() as session:
            if session.get(Room, room_id) is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            total, checked_in = session.execute(
                select(
                    func.count(Guest.id),
                    func.coalesce(func.sum(case((Guest.checked_in.is_(True), 1), else_=0)), 0),
                ).where(Guest.room_id == room_id)
            ).one()

        total = int(total or 0)
        checked_in = int(checked_in or 0)
        percentage = round(checked_in * 100.0 / total, 2) if total else 0.0
        return RoomStats(
            room_id=room_id,
            total_guests=total,
            checked_in=checked_in,
            pending=total - checked_in,
            check_in_percentage=percentage,
        )

    def get_rooms_overview(self) -> list[RoomOverview]:
        """Every room with its guest total and checked-in count, ordered by name."""
        with self.store.session() as session:
            results = session.execute(
                select(
                    Room,
                    func.count(Guest.id),
                    func.coalesce(func.sum(case((Guest.checked_in.is_(True), 1), else_=0)), 0),
                )
                .outerjoin(Guest, Guest.room_id == Room.id)
                .group_by(Room.id)
                .order_by(Room.name)
            ).all()
            return [
                RoomOverview.model_validate(room).model_copy(
                    update={"total_guests": int(total or 0), "checked_in": int(checked or 0)}
                )
                for room, total, checked in results
            ]
