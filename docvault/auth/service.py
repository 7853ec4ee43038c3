
import logging
import time
from typing import Callable
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from docvault.errors import (
    DuplicateIdentityError,
    InvalidKeyError,
    InvalidPasswordError,
    InvalidSessionError,
    PersistenceError,
)
from docvault.models.session import AuthSession
from docvault.models.user import Key, User
from docvault.utils.security import (
    generate_session_id,
    generate_user_id,
    hash_password,
    is_well_formed_session_id,
    now_ms,
    verify_password,
)

ACTIVE = "active"
IDLE = "idle"
EXPIRED = "expired"


def key_id(provider_id: str, provider_user_id: str) -> str:
    return f"{provider_id}:{provider_user_id}"


def session_state(now: int, active_expires: int, idle_expires: int) -> str:
    """Active strictly before active_expires, idle up to (excluding) idle_expires."""
    if now < active_expires:
        return ACTIVE
    if now < idle_expires:
        return IDLE
    return EXPIRED


class SessionStore:
    """Users, credential keys and bearer sessions on top of one SQLAlchemy session.

    Validation reads the session row on every call. A session found in its
    idle window is renewed in place (both expiries pushed forward and
    committed), so the write happens only when the active window has lapsed.
    """

    def __init__(
        self,
        db: Session,
        *,
        active_period_seconds: int,
        idle_period_seconds: int,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ):
        self.db = db
        self.active_period_ms = active_period_seconds * 1000
        self.idle_period_ms = idle_period_seconds * 1000
        self.clock = clock
        self.log = logger or logging.getLogger(__name__)

    def _now(self) -> int:
        return now_ms(self.clock)

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

    # ----- users / keys -----

    def create_user(self, provider_id: str, provider_user_id: str, password: str, attributes: dict) -> User:
        kid = key_id(provider_id, provider_user_id)
        if self.db.get(Key, kid) is not None:
            raise DuplicateIdentityError()

        user = User(id=generate_user_id(), username=attributes.get("username", provider_user_id))
        user.keys.append(Key(id=kid, hashed_password=hash_password(password)))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateIdentityError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

        self.log.info("user created id=%s key=%s", user.id, kid)
        return user

    def use_key(self, provider_id: str, provider_user_id: str, password: str) -> Key:
        key = self.db.get(Key, key_id(provider_id, provider_user_id))
        if key is None:
            raise InvalidKeyError()
        if not verify_password(password, key.hashed_password):
            raise InvalidPasswordError()
        return key

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise InvalidKeyError("AUTH_INVALID_USER_ID")
        return user

    # ----- sessions -----

    def _windows(self, now: int) -> tuple[int, int]:
        active = now + self.active_period_ms
        return active, active + self.idle_period_ms

    def create_session(self, user_id: str) -> AuthSession:
        active, idle = self._windows(self._now())
        session = AuthSession(id=generate_session_id(), user_id=user_id, active_expires=active, idle_expires=idle)
        self.db.add(session)
        self._commit()
        return session

    def validate_session(self, token: str | None) -> AuthSession:
        if not is_well_formed_session_id(token):
            raise InvalidSessionError()

        session = self.db.get(AuthSession, token, populate_existing=True)
        if session is None:
            raise InvalidSessionError()

        now = self._now()
        state = session_state(now, session.active_expires, session.idle_expires)
        if state == EXPIRED:
            self.db.delete(session)
            self._commit()
            raise InvalidSessionError()

        if state == IDLE:
            session.active_expires, session.idle_expires = self._windows(now)
            self._commit()
            self.log.debug("session renewed user=%s", session.user_id)

        return session

    def _delete(self, stmt) -> int:
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e
        return result.rowcount or 0

    def invalidate_session(self, session_id: str):
        self._delete(delete(AuthSession).where(AuthSession.id == session_id))

    def invalidate_user_sessions(self, user_id: str):
        self._delete(delete(AuthSession).where(AuthSession.user_id == user_id))

    def delete_expired_sessions(self) -> int:
        return self._delete(delete(AuthSession).where(AuthSession.idle_expires <= self._now()))
