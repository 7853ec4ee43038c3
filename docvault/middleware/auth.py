import logging
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from docvault.auth.deps import build_session_store
from docvault.errors import DocVaultError, Unauthorized

log = logging.getLogger(__name__)

PUBLIC_PATHS = ["/register", "/login", "/health", "/docs", "/redoc", "/openapi.json"]

def _is_public(path: str) -> bool:
    return path == "/" or any(path == p or path.startswith(p + "/") for p in PUBLIC_PATHS)

def _get_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip()
    return None

def _resolve(request: Request, token: str | None):
    db = request.app.state.session_factory()
    try:
        store = build_session_store(db, request.app.state.settings)
        session = store.validate_session(token)
        user = store.get_user(session.user_id)
        return session, user
    finally:
        db.close()

def _reject(message: str, status_code: int = 401) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "status": status_code, "message": message},
        headers=headers,
    )

async def auth_middleware(request: Request, call_next):
    path = request.url.path

    # public paths
    if request.method == "OPTIONS" or _is_public(path):
        return await call_next(request)

    token = _get_token(request)
    if not token:
        return _reject("Missing bearer token")

    try:
        session, user = await run_in_threadpool(_resolve, request, token)
    except Unauthorized as e:
        log.info("rejected %s %s: %s", request.method, path, e.message)
        return _reject(e.message)
    except DocVaultError as e:
        log.error("auth gate failed for %s %s: %s", request.method, path, e.message)
        return _reject(e.message, e.status_code)

    request.state.session = session
    request.state.user = user
    return await call_next(request)
