import json
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from docvault.config import settings

class Base(DeclarativeBase):
    pass

DEFAULT_URL = "sqlite:///./docvault.db"


def normalize_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _json_serializer(value) -> str:
    # keep accented keywords searchable with LIKE
    return json.dumps(value, ensure_ascii=False)


def make_engine(url: str | None = None) -> Engine:
    url = normalize_url(url or settings.database_url or DEFAULT_URL)

    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    return create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        json_serializer=_json_serializer,
        future=True,
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
        future=True,
    )


engine = make_engine()
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine | None = None):
    from docvault.models import user, session, document  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
