
import asyncio
import logging
import traceback
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from docvault.auth.deps import build_session_store
from docvault.auth.routes import router as auth_router
from docvault.config import Settings, settings as default_settings
from docvault.db.session import SessionLocal, init_db
from docvault.documents.routes import router as documents_router
from docvault.enrichment.pipeline import EnrichmentScheduler, KeywordExtractionPipeline
from docvault.errors import DocVaultError
from docvault.llm.assistant import KeywordAnalyzer, OpenAIAssistantAnalyzer
from docvault.logging_setup import configure_logging
from docvault.middleware.auth import auth_middleware
from docvault.middleware.logging import request_logging_middleware

log = logging.getLogger(__name__)


def _error_body(status: int, message: str, exc: Exception, settings: Settings) -> dict:
    body = {"success": False, "status": status, "message": message}
    if settings.is_development:
        body["stackTrace"] = "".join(traceback.format_exception(exc))
    return body


def register_error_handlers(app: FastAPI, settings: Settings):
    @app.exception_handler(DocVaultError)
    async def docvault_error(request: Request, exc: DocVaultError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, exc.message, exc, settings))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"success": False, "status": 400, "message": message})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body(500, "Something went wrong", exc, settings))


async def sweep_expired_sessions(app: FastAPI):
    interval = app.state.settings.session_sweep_interval_seconds

    def _sweep() -> int:
        db = app.state.session_factory()
        try:
            return build_session_store(db, app.state.settings).delete_expired_sessions()
        finally:
            db.close()

    while True:
        await asyncio.sleep(interval)
        try:
            removed = await run_in_threadpool(_sweep)
            if removed:
                log.info("removed %d expired session(s)", removed)
        except DocVaultError as e:
            log.error("session sweep failed: %s", e.message)
        except Exception:
            log.exception("session sweep failed")


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
    analyzer: KeywordAnalyzer | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.session_factory = session_factory or SessionLocal
    app.state.scheduler = EnrichmentScheduler()
    app.state.pipeline = KeywordExtractionPipeline(
        app.state.session_factory,
        analyzer if analyzer is not None else OpenAIAssistantAnalyzer.from_settings(settings),
        poll_interval=settings.analysis_poll_interval_seconds,
        max_poll_attempts=settings.analysis_max_poll_attempts,
        max_input_chars=settings.analysis_max_input_chars,
    )

    app.middleware("http")(auth_middleware)
    app.middleware("http")(request_logging_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    app.include_router(auth_router)
    app.include_router(documents_router)

    @app.on_event("startup")
    async def on_startup():
        init_db(app.state.session_factory.kw["bind"])
        app.state.sweeper = asyncio.create_task(sweep_expired_sessions(app))
        if app.state.pipeline.analyzer is None:
            log.warning("OPENAI_API_KEY/ANALYZER_ASSISTANT_ID not set: uploads will get no keywords")

    @app.on_event("shutdown")
    async def on_shutdown():
        app.state.sweeper.cancel()
        await app.state.scheduler.cancel_all()

    @app.get("/", tags=["root"])
    def root():
        return {"name": settings.app_name, "env": settings.app_env}

    @app.get("/health", tags=["root"])
    def health():
        return {"status": "ok", "env": settings.app_env, "enrichment_pending": app.state.scheduler.pending}

    return app

app = create_app()
