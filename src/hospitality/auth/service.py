"""Authentication boundary: principals, sign-up, sign-in and sign-out."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from http import HTTPStatus

from sqlalchemy import select

from hospitality.constants import Roles
from hospitality.datetime_utils import utcnow
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import Profile, Room, UserRoom
from hospitality.schemas import ProfileRecord
from hospitality.security import hash_password, normalize_identifier, verify_password
from hospitality.validation import (
    NotFoundError,
    ValidationError,
    validate_email,
    validate_password,
    validate_role,
)

logger = get_logger(__name__)


class AuthError(Exception):
    """Raised when an authentication or authorization error occurs."""

    def __init__(self, message: str, status: HTTPStatus = HTTPStatus.UNAUTHORIZED) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class Principal:
    """The signed-in profile, detached from any database session."""

    id: uuid.UUID
    email: str
    full_name: str | None
    role: str
    room_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return Roles.is_admin(self.role)


class AuthService:
    """Creates and verifies principals backed by profile rows."""

    def __init__(self, store: Store):
        self.store = store

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = Roles.HOSTESS.value,
        room_ids: list[uuid.UUID] | tuple[uuid.UUID, ...] = (),
    ) -> ProfileRecord:
        """
        Create the credentials, the profile row and its room assignments in
        one transaction. An unknown room leaves nothing behind.

        Raises:
            ValidationError: bad input or email already registered
        """
        email = normalize_identifier(email)
        validate_email(email)
        validate_password(password)
        validate_role(role)
        full_name = (full_name or "").strip()
        if not full_name:
            raise ValidationError("Il nome completo è obbligatorio")

        with self.store.session() as session:
            existing = session.execute(
                select(Profile.id).where(Profile.email == email)
            ).scalar_one_or_none()
            if existing is not None:
                raise ValidationError(f"Esiste già un utente con email {email}")

            profile = Profile(
                email=email,
                full_name=full_name,
                role=role,
                password_hash=hash_password(password),
            )
            session.add(profile)
            session.flush()
            for room_id in dict.fromkeys(room_ids):
                if session.get(Room, room_id) is None:
                    raise NotFoundError(f"Sala {room_id} non trovata")
                session.add(UserRoom(user_id=profile.id, room_id=room_id))
            record = ProfileRecord.model_validate(profile)

        logger.info(f"Signed up {record.role} {record.email} ({record.id})")
        return record

    def sign_in(self, email: str, password: str) -> ProfileRecord:
        """
        Verify credentials and stamp the sign-in time.

        Raises:
            AuthError: unknown email or wrong password
        """
        email = normalize_identifier(email)
        with self.store.session() as session:
            profile = session.execute(
                select(Profile).where(Profile.email == email)
            ).scalar_one_or_none()
            if profile is None or not verify_password(password, profile.password_hash):
                raise AuthError("Credenziali non valide", status=HTTPStatus.UNAUTHORIZED)

            profile.signed_in_at = utcnow()
            session.flush()
            record = ProfileRecord.model_validate(profile)

        logger.info(f"Profile {record.id} ({record.email}) signed in")
        return record

    def sign_out(self, user_id: uuid.UUID) -> None:
        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is not None:
                profile.signed_in_at = None
        logger.info(f"Profile {user_id} signed out")

    def change_password(self, user_id: uuid.UUID, current: str, new: str) -> None:
        validate_password(new)
        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is None or not verify_password(current, profile.password_hash):
                raise AuthError("Credenziali non valide", status=HTTPStatus.UNAUTHORIZED)
            profile.password_hash = hash_password(new)

    def load_principal(self, user_id: uuid.UUID) -> Principal | None:
        """
        Rebuild the principal from the store.

        Returns None when the profile no longer exists, which is how deleting a
        profile revokes any token issued for it.
        """
        with self.store.session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                return None
            room_ids = session.execute(
                select(UserRoom.room_id).where(UserRoom.user_id == user_id)
            ).scalars().all()
            return Principal(
                id=profile.id,
                email=profile.email,
                full_name=profile.full_name,
                role=profile.role,
                room_ids=frozenset(room_ids),
            )
