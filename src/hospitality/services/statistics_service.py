"""
Statistics Service - dashboard counters, per-room windows and hostess
performance.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import case, func, select

from hospitality.constants import HOSTESS_RECENT_ACTIVITY_LIMIT, AuditAction, Roles
from hospitality.datetime_utils import as_utc
from hospitality.db import Store
from hospitality.models import Guest, Profile, Room
from hospitality.schemas import GlobalStats, GuestRecord, HostessPerformance, RoomWindowStats
from hospitality.services.audit_service import AuditService


class StatisticsService:
    def __init__(self, store: Store, audit_service: AuditService):
        self.store = store
        self.audit_service = audit_service

    def get_global_stats(self) -> GlobalStats:
        with self.store.session() as session:
            total, checked_in = session.execute(
                select(
                    func.count(Guest.id),
                    func.coalesce(func.sum(case((Guest.checked_in.is_(True), 1), else_=0)), 0),
                )
            ).one()
            rooms = session.execute(select(func.count(Room.id))).scalar_one()
            hostesses = session.execute(
                select(func.count(Profile.id)).where(Profile.role == Roles.HOSTESS.value)
            ).scalar_one()

        total = int(total or 0)
        checked_in = int(checked_in or 0)
        return GlobalStats(
            total_guests=total,
            checked_in=checked_in,
            pending=total - checked_in,
            rooms=int(rooms or 0),
            hostesses=int(hostesses or 0),
        )

    def get_room_stats_by_date(
        self, room_id: uuid.UUID, start: datetime, end: datetime
    ) -> RoomWindowStats:
        """Guests of one room currently checked in with a check-in time in ``[start, end]``."""
        with self.store.session() as session:
            guests = session.execute(
                select(Guest)
                .where(Guest.room_id == room_id)
                .where(Guest.checked_in.is_(True))
                .where(Guest.checked_in_at >= as_utc(start))
                .where(Guest.checked_in_at <= as_utc(end))
                .order_by(Guest.checked_in_at)
            ).scalars().all()
            records = [GuestRecord.model_validate(guest) for guest in guests]

        return RoomWindowStats(
            room_id=room_id, start=start, end=end, checked_in=len(records), guests=records
        )

    def get_hostess_performance(self, user_id: uuid.UUID) -> HostessPerformance:
        """
        Guests currently checked in by the hostess, plus the latest check-in
        audit rows attributed to them.
        """
        with self.store.session() as session:
            total = session.execute(
                select(func.count(Guest.id))
                .where(Guest.checked_in_by == user_id)
                .where(Guest.checked_in.is_(True))
            ).scalar_one()

        recent = self.audit_service.get_recent_by_user(
            user_id, AuditAction.CHECK_IN, HOSTESS_RECENT_ACTIVITY_LIMIT
        )
        return HostessPerformance(
            user_id=user_id, total_check_ins=int(total or 0), recent_activity=recent
        )
