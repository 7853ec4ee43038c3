import logging
import time
from fastapi import Request

log = logging.getLogger("docvault.request")

def _client(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

async def request_logging_middleware(request: Request, call_next):
    method, path, client = request.method, request.url.path, _client(request)
    log.info("--> %s %s %s", method, path, client)
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    log.info("<-- %s %s %s %.0fms %s", method, path, response.status_code, elapsed_ms, client)
    return response
