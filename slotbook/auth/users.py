"""
User storage and management.

Backed by the relational store. Users are indexed by canonical phone number
(unique); the database's uniqueness constraint is what keeps concurrent first
logins from creating duplicate rows.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..db.models import User, Event, Role
from ..errors import EmailInUse, SetupFailed, SetupAlreadyComplete, PreferencesUpdateFailed, Unauthenticated
from .phone import digits_only, mask_phone

logger = logging.getLogger(__name__)


def default_display_name(phone: str) -> str:
    """Placeholder name derived from the last four digits."""
    return f"User {digits_only(phone)[-4:]}"


class UserRepository:
    """
    Database-backed user storage.

    Each operation runs in its own short session from the factory.
    Returned rows are detached (the factory is built with
    expire_on_commit=False) and safe to read after the session closes.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the repository.

        Args:
            session_factory: SQLAlchemy sessionmaker bound to the engine
        """
        self.session_factory = session_factory

    def get_by_phone(self, phone: str) -> Optional[User]:
        """
        Get user by canonical phone number.

        Args:
            phone: Canonical (E.164) phone number

        Returns:
            User if found, None otherwise
        """
        with self.session_factory() as db:
            return db.execute(select(User).where(User.phone_number == phone)).scalar_one_or_none()

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self.session_factory() as db:
            return db.get(User, user_id)

    def get_or_create_by_phone(self, phone: str) -> Tuple[User, bool]:
        """
        Look up a user by phone, creating one on first login.

        New users get a placeholder name from the last four digits, role
        CLIENT and setup_complete False. If a concurrent request inserts the
        same phone first, the unique constraint rejects our insert and the
        winner's row is returned instead.

        Args:
            phone: Canonical (E.164) phone number

        Returns:
            Tuple of (user, created)
        """
        existing = self.get_by_phone(phone)
        if existing:
            return existing, False

        user = User(
            phone_number=phone,
            name=default_display_name(phone),
            role=Role.CLIENT,
            setup_complete=False,
        )

        with self.session_factory() as db:
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(f"Concurrent first login for {mask_phone(phone)}, using existing user")
                winner = db.execute(select(User).where(User.phone_number == phone)).scalar_one_or_none()
                if winner is None:
                    # The violation was not on phone_number
                    raise
                return winner, False

        logger.info(f"Created user {user.id} for {mask_phone(phone)}")
        return user, True

    def find_active_event_by_password(self, password: str) -> Optional[Event]:
        """
        Find an active, non-deleted event whose professional password matches.

        Args:
            password: Candidate role password (already trimmed)

        Returns:
            The oldest matching Event, or None
        """
        if not password:
            return None

        with self.session_factory() as db:
            stmt = (
                select(Event)
                .where(
                    Event.professional_password == password,
                    Event.is_active.is_(True),
                    Event.deleted_at.is_(None),
                )
                .order_by(Event.created_at, Event.id)
                .limit(1)
            )
            return db.execute(stmt).scalar_one_or_none()

    def complete_setup(
        self,
        user_id: str,
        name: str,
        email: Optional[str],
        role: Role,
        event_id: Optional[str] = None
    ) -> User:
        """
        Persist the result of first-login setup in a single update.

        Args:
            user_id: User to update
            name: Validated display name
            email: Validated email or None
            role: Final role
            event_id: Event link for professionals

        Returns:
            Updated User

        Raises:
            EmailInUse: email belongs to another user
            SetupAlreadyComplete: the user already finished setup
            SetupFailed: any other storage failure
        """
        values = {"name": name, "email": email, "role": role, "setup_complete": True}
        if event_id:
            values["event_id"] = event_id

        with self.session_factory() as db:
            try:
                # Only a row still awaiting setup is written, so concurrent
                # setups for one user cannot both succeed
                result = db.execute(
                    update(User)
                    .where(User.id == user_id, User.setup_complete.is_(False))
                    .values(**values)
                )
                if result.rowcount == 0:
                    db.rollback()
                    if db.get(User, user_id) is None:
                        raise SetupFailed()
                    logger.warning(f"Setup for user {user_id} lost to an earlier setup")
                    raise SetupAlreadyComplete()

                db.commit()
                return db.get(User, user_id, populate_existing=True)

            except IntegrityError as e:
                db.rollback()
                if email and _is_email_violation(e):
                    logger.info(f"Setup rejected for user {user_id}: email already in use")
                    raise EmailInUse()
                logger.error(f"Setup failed for user {user_id}: {e.orig}")
                raise SetupFailed()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Setup failed for user {user_id}: {e}")
                raise SetupFailed()

    def update_preferences(self, user_id: str, **fields) -> User:
        """
        Update display preference columns.

        Raises:
            Unauthenticated: user no longer exists
            PreferencesUpdateFailed: storage failure
        """
        with self.session_factory() as db:
            try:
                user = db.get(User, user_id)
                if user is None:
                    raise Unauthenticated("User not found")

                for key, value in fields.items():
                    setattr(user, key, value)

                db.commit()
                return user

            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Preference update failed for user {user_id}: {e}")
                raise PreferencesUpdateFailed()

    def ping(self) -> None:
        """Round-trip the database; raises on failure."""
        with self.session_factory() as db:
            db.execute(text("SELECT 1"))


def _is_email_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "email" in message and ("unique" in message or "duplicate" in message)
