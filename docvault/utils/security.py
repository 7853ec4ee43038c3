
import re
import secrets
import string
import time
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt_sha256", "bcrypt"], deprecated="auto")

ID_ALPHABET = string.ascii_lowercase + string.digits
SESSION_ID_LENGTH = 40
USER_ID_LENGTH = 15

_SESSION_ID_RE = re.compile(rf"^[{ID_ALPHABET}]{{{SESSION_ID_LENGTH}}}$")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)

def generate_random_id(length: int) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))

def generate_session_id() -> str:
    return generate_random_id(SESSION_ID_LENGTH)

def generate_user_id() -> str:
    return generate_random_id(USER_ID_LENGTH)

def is_well_formed_session_id(token: str | None) -> bool:
    return bool(token) and _SESSION_ID_RE.match(token) is not None

def now_ms(clock=time.time) -> int:
    return int(clock() * 1000)
