"""
Guest Service - data access for guests.

Each public operation runs in one transaction, returns typed records and
raises on failure. Committed inserts, updates and deletes are announced on the
guest's room channel.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.orm import Session

from hospitality.auth.service import Principal
from hospitality.constants import AuditAction, RealtimeEventType, Roles
from hospitality.datetime_utils import utcnow
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import Guest, Profile, Room, UserRoom
from hospitality.schemas import GuestRecord, GuestView
from hospitality.services.audit_service import AuditService
from hospitality.supabase.realtime import RealtimeManager
from hospitality.validation import NotFoundError, ValidationError, parse_uuid, require_text

logger = get_logger(__name__)

EDITABLE_FIELDS = ("room_id", "first_name", "last_name", "table_number", "seat_number")


def guest_snapshot(guest: Guest) -> dict[str, Any]:
    """JSON-safe copy of a guest row, used for audit rows and realtime payloads."""
    return {
        "id": str(guest.id),
        "room_id": str(guest.room_id),
        "first_name": guest.first_name,
        "last_name": guest.last_name,
        "table_number": guest.table_number,
        "seat_number": guest.seat_number,
        "checked_in": bool(guest.checked_in),
        "checked_in_at": guest.checked_in_at.isoformat() if guest.checked_in_at else None,
        "checked_in_by": str(guest.checked_in_by) if guest.checked_in_by else None,
    }


def _clean_optional(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class GuestService:
    """Guest CRUD plus the check-in and check-out mutations."""

    def __init__(self, store: Store, realtime: RealtimeManager | None = None):
        self.store = store
        self.realtime = realtime

    # --- realtime ---------------------------------------------------------

    def publish_change(
        self,
        event_type: RealtimeEventType,
        new: dict[str, Any] | None = None,
        old: dict[str, Any] | None = None,
    ) -> None:
        if self.realtime is not None:
            self.realtime.publish_guest_change(event_type, new=new, old=old)

    # --- reads ------------------------------------------------------------

    @staticmethod
    def _load(session: Session, guest_id: uuid.UUID) -> Guest:
        guest = session.get(Guest, guest_id)
        if guest is None:
            raise NotFoundError(f"Ospite {guest_id} non trovato")
        return guest

    @staticmethod
    def _view_query():
        return (
            select(Guest, Room.name, Profile.full_name, Profile.email)
            .join(Room, Room.id == Guest.room_id)
            .outerjoin(Profile, Profile.id == Guest.checked_in_by)
        )

    @staticmethod
    def _to_view(result) -> GuestView:
        guest, room_name, full_name, email = result
        view = GuestView.model_validate(guest)
        return view.model_copy(
            update={"room_name": room_name, "checked_in_by_name": full_name or email}
        )

    def get_all_guests(self, room_id: uuid.UUID | None = None) -> list[GuestRecord]:
        """All guests ordered by last name, optionally limited to one room."""
        with self.store.session() as session:
            query = select(Guest)
            if room_id is not None:
                query = query.where(Guest.room_id == room_id)
            query = query.order_by(Guest.last_name, Guest.first_name)
            guests = session.execute(query).scalars().all()
            return [GuestRecord.model_validate(guest) for guest in guests]

    def get_guest(self, guest_id: uuid.UUID) -> GuestRecord:
        with self.store.session() as session:
            return GuestRecord.model_validate(self._load(session, guest_id))

    def get_guest_view(self, guest_id: uuid.UUID) -> GuestView:
        """Guest joined with its room name and the name of whoever checked it in."""
        with self.store.session() as session:
            result = session.execute(
                self._view_query().where(Guest.id == guest_id)
            ).one_or_none()
            if result is None:
                raise NotFoundError(f"Ospite {guest_id} non trovato")
            return self._to_view(result)

    def search_guests(
        self,
        search_term: str | None = None,
        room_filter: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
    ) -> list[GuestView]:
        """
        ``search_guests(search_term, room_filter, user_id)``.

        Case-insensitive match on first name, last name, "first last" or table
        number. When ``user_id`` belongs to a hostess the result is limited to
        the rooms assigned to that hostess.
        """
        with self.store.session() as session:
            query = self._view_query()

            term = (search_term or "").strip().lower()
            if term:
                pattern = f"%{term}%"
                query = query.where(
                    or_(
                        func.lower(Guest.first_name).like(pattern),
                        func.lower(Guest.last_name).like(pattern),
                        func.lower(Guest.first_name + " " + Guest.last_name).like(pattern),
                        func.lower(func.coalesce(Guest.table_number, "")).like(pattern),
                    )
                )

            if room_filter is not None:
                query = query.where(Guest.room_id == room_filter)

            if user_id is not None:
                role = session.execute(
                    select(Profile.role).where(Profile.id == user_id)
                ).scalar_one_or_none()
                if role is None:
                    return []
                if role != Roles.ADMIN.value:
                    query = query.where(
                        Guest.room_id.in_(
                            select(UserRoom.room_id).where(UserRoom.user_id == user_id)
                        )
                    )

            query = query.order_by(Guest.last_name, Guest.first_name)
            return [self._to_view(result) for result in session.execute(query).all()]

    def get_guests_for_principal(
        self,
        principal: Principal,
        room_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> list[GuestView]:
        """Guest list as seen by ``principal``: hostesses only see assigned rooms."""
        if (
            room_id is not None
            and not principal.is_admin
            and room_id not in principal.room_ids
        ):
            return []
        return self.search_guests(search, room_filter=room_id, user_id=principal.id)

    # --- writes -----------------------------------------------------------

    def _validate_fields(self, session: Session, fields: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if "room_id" in fields and fields["room_id"] is not None:
            room_id = parse_uuid(fields["room_id"], "room_id")
            if session.get(Room, room_id) is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            values["room_id"] = room_id
        if "first_name" in fields:
            values["first_name"] = require_text(fields["first_name"], "Il nome è obbligatorio")
        if "last_name" in fields:
            values["last_name"] = require_text(fields["last_name"], "Il cognome è obbligatorio")
        for key in ("table_number", "seat_number"):
            if key in fields:
                values[key] = _clean_optional(fields[key])
        return values

    def create_guest(
        self, fields: dict[str, Any], acting_profile_id: uuid.UUID | None = None
    ) -> GuestRecord:
        for key in ("room_id", "first_name", "last_name"):
            if fields.get(key) in (None, ""):
                raise ValidationError(f"Campo obbligatorio mancante: {key}")

        with self.store.session() as session:
            guest = Guest(**self._validate_fields(session, fields), checked_in=False)
            session.add(guest)
            session.flush()
            snapshot = guest_snapshot(guest)
            AuditService.record(
                session, guest.id, acting_profile_id, AuditAction.CREATE, new_data=snapshot
            )
            record = GuestRecord.model_validate(guest)

        logger.info(f"Created guest {record.id} in room {record.room_id}")
        self.publish_change(RealtimeEventType.INSERT, new=snapshot)
        return record

    def update_guest(
        self,
        guest_id: uuid.UUID,
        partial: dict[str, Any],
        acting_profile_id: uuid.UUID | None = None,
    ) -> GuestRecord:
        """
        Edit name, table, seat or room. Check-in fields change only through
        ``check_in_guest`` / ``check_out_guest``.
        """
        unknown = set(partial) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Campi non modificabili: {', '.join(sorted(unknown))}")

        with self.store.session() as session:
            guest = self._load(session, guest_id)
            old = guest_snapshot(guest)
            for key, value in self._validate_fields(session, partial).items():
                setattr(guest, key, value)
            session.flush()
            new = guest_snapshot(guest)
            AuditService.record(
                session, guest.id, acting_profile_id, AuditAction.UPDATE, old_data=old, new_data=new
            )
            record = GuestRecord.model_validate(guest)

        self.publish_change(RealtimeEventType.UPDATE, new=new, old=old)
        return record

    def delete_guest(self, guest_id: uuid.UUID, acting_profile_id: uuid.UUID | None = None) -> None:
        with self.store.session() as session:
            guest = self._load(session, guest_id)
            old = guest_snapshot(guest)
            session.delete(guest)
            AuditService.record(session, guest_id, acting_profile_id, AuditAction.DELETE, old_data=old)

        logger.info(f"Deleted guest {guest_id}")
        self.publish_change(RealtimeEventType.DELETE, old=old)

    def apply_check_in(
        self, session: Session, guest_id: uuid.UUID, acting_profile_id: uuid.UUID
    ) -> tuple[dict[str, Any], Guest]:
        """
        Check-in mutation inside the caller's transaction.

        Returns the snapshot before the change and the updated row.
        """
        guest = self._load(session, guest_id)
        old = guest_snapshot(guest)
        guest.checked_in = True
        guest.checked_in_at = utcnow()
        guest.checked_in_by = acting_profile_id
        session.flush()
        return old, guest

    def apply_check_out(self, session: Session, guest_id: uuid.UUID) -> tuple[dict[str, Any], Guest]:
        """
        Check-out mutation inside the caller's transaction. Clears all three
        check-in fields whatever the previous state.
        """
        guest = self._load(session, guest_id)
        old = guest_snapshot(guest)
        guest.checked_in = False
        guest.checked_in_at = None
        guest.checked_in_by = None
        session.flush()
        return old, guest

    def check_in_guest(self, guest_id: uuid.UUID, acting_profile_id: uuid.UUID) -> GuestRecord:
        """Set ``checked_in``, ``checked_in_at=now`` and ``checked_in_by``."""
        with self.store.session() as session:
            old, guest = self.apply_check_in(session, guest_id, acting_profile_id)
            new = guest_snapshot(guest)
            record = GuestRecord.model_validate(guest)

        self.publish_change(RealtimeEventType.UPDATE, new=new, old=old)
        return record

    def check_out_guest(self, guest_id: uuid.UUID) -> GuestRecord:
        with self.store.session() as session:
            old, guest = self.apply_check_out(session, guest_id)
            new = guest_snapshot(guest)
            record = GuestRecord.model_validate(guest)

        self.publish_change(RealtimeEventType.UPDATE, new=new, old=old)
        return record

    def bulk_create_guests(self, rows: list[dict[str, Any]]) -> list[GuestRecord]:
        """
        Insert all rows in one transaction. Any failing row rejects the batch.
        """
        if not rows:
            return []

        with self.store.session() as session:
            guests = [Guest(**row) for row in rows]
            for guest in guests:
                if guest.checked_in is None:
                    guest.checked_in = False
            session.add_all(guests)
            session.flush()
            snapshots = [guest_snapshot(guest) for guest in guests]
            records = [GuestRecord.model_validate(guest) for guest in guests]

        logger.info(f"Bulk inserted {len(records)} guests")
        for snapshot in snapshots:
            self.publish_change(RealtimeEventType.INSERT, new=snapshot)
        return records

    def delete_guests_in_room(self, session: Session, room_id: uuid.UUID) -> list[dict[str, Any]]:
        """Delete every guest of a room inside the caller's transaction."""
        guests = session.execute(select(Guest).where(Guest.room_id == room_id)).scalars().all()
        snapshots = [guest_snapshot(guest) for guest in guests]
        session.execute(delete(Guest).where(Guest.room_id == room_id))
        return snapshots

    def delete_all_guests_in_room(self, room_id: uuid.UUID) -> int:
        with self.store.session() as session:
            snapshots = self.delete_guests_in_room(session, room_id)

        for snapshot in snapshots:
            self.publish_change(RealtimeEventType.DELETE, old=snapshot)
        logger.info(f"Deleted {len(snapshots)} guests from room {room_id}")
        return len(snapshots)

    def count_guests(self, room_id: uuid.UUID | None = None) -> tuple[int, int]:
        """(total, checked_in) counts, optionally for one room."""
        with self.store.session() as session:
            query = select(
                func.count(Guest.id),
                func.coalesce(func.sum(case((Guest.checked_in.is_(True), 1), else_=0)), 0),
            )
            if room_id is not None:
                query = query.where(Guest.room_id == room_id)
            total, checked_in = session.execute(query).one()
            return int(total or 0), int(checked_in or 0)
