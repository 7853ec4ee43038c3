
from fastapi import Request, Depends
from sqlalchemy.orm import Session
from docvault.auth.service import SessionStore
from docvault.config import Settings
from docvault.errors import Unauthorized
from docvault.models.session import AuthSession
from docvault.models.user import User


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def build_session_store(db: Session, settings: Settings) -> SessionStore:
    return SessionStore(
        db,
        active_period_seconds=settings.session_active_period_seconds,
        idle_period_seconds=settings.session_idle_period_seconds,
    )

def get_session_store(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> SessionStore:
    return build_session_store(db, settings)

def get_current_session(request: Request) -> AuthSession:
    # populated by auth_middleware; absent means the gate did not run for this path
    session = getattr(request.state, "session", None)
    if session is None:
        raise Unauthorized()
    return session

def get_current_user(request: Request, session: AuthSession = Depends(get_current_session)) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise Unauthorized()
    return user
