
import logging
from fastapi import APIRouter, Depends
from docvault.auth.deps import get_current_session, get_session_store, get_settings
from docvault.auth.service import SessionStore
from docvault.config import Settings
from docvault.errors import InvalidCredentialsError
from docvault.models.session import AuthSession
from docvault.schemas.auth import AccountIn, MessageOut, SessionOut

log = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

@router.post("/register", response_model=MessageOut)
def register(body: AccountIn, store: SessionStore = Depends(get_session_store)):
    store.create_user("email", body.email, body.password, {"username": body.email})
    return MessageOut(message="Account created!")

@router.post("/login", response_model=SessionOut)
def login(
    body: AccountIn,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    try:
        key = store.use_key("email", body.email, body.password)
    except InvalidCredentialsError as e:
        log.info("login failed for %s: %s", body.email, type(e).__name__)
        if settings.unify_credential_errors:
            raise InvalidCredentialsError() from e
        raise
    user = store.get_user(key.user_id)
    session = store.create_session(user.id)
    return SessionOut(session=session.id)

@router.post("/logout", response_model=MessageOut)
def logout(
    session: AuthSession = Depends(get_current_session),
    store: SessionStore = Depends(get_session_store),
):
    store.invalidate_session(session.id)
    return MessageOut(message="Logged out")
