"""
Profile Service - user management, hostess room assignments and notification
recipient resolution.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select

from hospitality.constants import (
    NOTIFICATION_DEFAULT_PRIORITY,
    NOTIFICATION_PREFERENCE_FLAGS,
    EmailFrequency,
    NotificationPriority,
    NotificationType,
    Roles,
)
from hospitality.datetime_utils import in_quiet_hours
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import EmailPreferences, Profile, Room, UserRoom
from hospitality.schemas import HostessWithRooms, ProfileRecord, RoomRecord, UpdateProfileRequest
from hospitality.validation import NotFoundError

logger = get_logger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str | None = None


class ProfileService:
    """Profiles, hostess-room edges and who gets which email."""

    def __init__(self, store: Store):
        self.store = store

    # --- profiles ---------------------------------------------------------

    def get_all_profiles(self) -> list[ProfileRecord]:
        with self.store.session() as session:
            profiles = session.execute(
                select(Profile).order_by(Profile.full_name, Profile.email)
            ).scalars().all()
            return [ProfileRecord.model_validate(profile) for profile in profiles]

    def get_profile(self, user_id: uuid.UUID) -> ProfileRecord:
        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                raise NotFoundError(f"Profilo {user_id} non trovato")
            return ProfileRecord.model_validate(profile)

    def update_profile(
        self, user_id: uuid.UUID, partial: dict[str, Any] | UpdateProfileRequest
    ) -> ProfileRecord:
        """Change display name and/or role."""
        if not isinstance(partial, UpdateProfileRequest):
            partial = UpdateProfileRequest.model_validate(partial)
        changes = partial.model_dump(exclude_unset=True, exclude_none=True)

        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                raise NotFoundError(f"Profilo {user_id} non trovato")
            for key, value in changes.items():
                setattr(profile, key, value.strip() if isinstance(value, str) else value)
            session.flush()
            record = ProfileRecord.model_validate(profile)

        logger.info(f"Updated profile {user_id}: {sorted(changes)}")
        return record

    def delete_profile(self, user_id: uuid.UUID) -> None:
        """
        Delete the profile, its credentials, its room assignments and its email
        preferences. Tokens issued for it stop authenticating.
        """
        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                raise NotFoundError(f"Profilo {user_id} non trovato")
            session.delete(profile)
        logger.info(f"Deleted profile {user_id}")

    # --- hostess rooms ----------------------------------------------------

    def get_hostess_rooms(self, user_id: uuid.UUID) -> list[RoomRecord]:
        with self.store.session() as session:
            rooms = session.execute(
                select(Room)
                .join(UserRoom, UserRoom.room_id == Room.id)
                .where(UserRoom.user_id == user_id)
                .order_by(Room.name)
            ).scalars().all()
            return [RoomRecord.model_validate(room) for room in rooms]

    def get_hostesses_with_rooms(self) -> list[HostessWithRooms]:
        with self.store.session() as session:
            hostesses = session.execute(
                select(Profile)
                .where(Profile.role == Roles.HOSTESS.value)
                .order_by(Profile.full_name, Profile.email)
            ).scalars().all()
            edges = session.execute(
                select(UserRoom.user_id, Room)
                .join(Room, Room.id == UserRoom.room_id)
                .order_by(Room.name)
            ).all()

            rooms_by_user: dict[uuid.UUID, list[RoomRecord]] = {}
            for user_id, room in edges:
                rooms_by_user.setdefault(user_id, []).append(RoomRecord.model_validate(room))

            return [
                HostessWithRooms.model_validate(hostess).model_copy(
                    update={"rooms": rooms_by_user.get(hostess.id, [])}
                )
                for hostess in hostesses
            ]

    def get_assignments(self) -> set[tuple[uuid.UUID, uuid.UUID]]:
        """Every (user_id, room_id) edge."""
        with self.store.session() as session:
            return {
                (user_id, room_id)
                for user_id, room_id in session.execute(
                    select(UserRoom.user_id, UserRoom.room_id)
                ).all()
            }

    def assign_room_to_hostess(self, user_id: uuid.UUID, room_id: uuid.UUID) -> None:
        """
        Add the (hostess, room) edge. A duplicate edge is rejected by the store.
        """
        with self.store.session() as session:
            if session.get(Profile, user_id) is None:
                raise NotFoundError(f"Profilo {user_id} non trovato")
            if session.get(Room, room_id) is None:
                raise NotFoundError(f"Sala {room_id} non trovata")
            session.add(UserRoom(user_id=user_id, room_id=room_id))
        logger.info(f"Assigned room {room_id} to {user_id}")

    def remove_room_from_hostess(self, user_id: uuid.UUID, room_id: uuid.UUID) -> None:
        with self.store.session() as session:
            session.execute(
                delete(UserRoom).where(UserRoom.user_id == user_id, UserRoom.room_id == room_id)
            )
        logger.info(f"Removed room {room_id} from {user_id}")

    def toggle_room_assignment(
        self, user_id: uuid.UUID, room_id: uuid.UUID, is_assigned: bool | None = None
    ) -> bool:
        """
        Flip the (hostess, room) edge and return the new state.

        ``is_assigned`` is the state the caller believes is current; when
        omitted it is read from the store.
        """
        if is_assigned is None:
            is_assigned = (user_id, room_id) in self.get_assignments()
        if is_assigned:
            self.remove_room_from_hostess(user_id, room_id)
            return False
        self.assign_room_to_hostess(user_id, room_id)
        return True

    # --- notification recipients -----------------------------------------

    def resolve_notification_recipients(
        self, notification_type: NotificationType | str, now: datetime | None = None
    ) -> list[Recipient]:
        """
        Admins who should receive a notification of ``notification_type``.

        A recipient must opt into the category, must not have frequency
        ``disabled``, and (unless the category is high priority) must not be
        inside their quiet hours at ``now``. Admins who never saved preferences
        get the defaults: every category on, real time, no quiet hours.
        """
        notification_type = NotificationType(notification_type)
        flag = NOTIFICATION_PREFERENCE_FLAGS[notification_type]
        high_priority = (
            NOTIFICATION_DEFAULT_PRIORITY[notification_type] == NotificationPriority.HIGH
        )
        now = now or datetime.now().astimezone()

        with self.store.session() as session:
            results = session.execute(
                select(Profile, EmailPreferences)
                .outerjoin(EmailPreferences, EmailPreferences.user_id == Profile.id)
                .where(Profile.role == Roles.ADMIN.value)
                .order_by(Profile.email)
            ).all()

            recipients = []
            for profile, prefs in results:
                if prefs is not None:
                    if not getattr(prefs, flag):
                        continue
                    if prefs.email_frequency == EmailFrequency.DISABLED.value:
                        continue
                    if not high_priority and in_quiet_hours(
                        prefs.quiet_hours_start, prefs.quiet_hours_end, now
                    ):
                        continue
                recipients.append(Recipient(email=profile.email, name=profile.full_name))

        return recipients

    def get_admin_emails(self) -> list[str]:
        """
        ``get_admin_emails()``: addresses of admins opted into check-in mail.
        """
        return [
            recipient.email
            for recipient in self.resolve_notification_recipients(NotificationType.GUEST_CHECK_IN)
        ]

