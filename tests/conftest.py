"""
Shared fixtures.

Every test gets its own SQLite file database under tmp_path, so the
enrichment tasks (which open their own sessions from worker threads) and the
request path see the same data. The analysis provider is always the
in-process FakeAnalyzer; no network calls are made.
"""

from __future__ import annotations

import asyncio
import io
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docvault.config import Settings
from docvault.db.session import init_db, make_engine, make_session_factory
from docvault.llm.assistant import AnalysisMessage, AnalysisRun
from docvault.models.user import User


# ─────────────────────────────────────────────────────────────────────────────
# Test doubles
# ─────────────────────────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeAnalyzer:
    """
    KeywordAnalyzer double.

    statuses : sequence returned by run_status; the last one repeats forever
    reply    : text of the assistant message for the submitted run
    release  : optional asyncio.Event that submit() waits on
    """

    def __init__(self, reply: str = '["invoice", "payment", "total"]',
                 statuses=("queued", "in_progress", "completed"),
                 release: asyncio.Event | None = None,
                 with_reply: bool = True):
        self.reply = reply
        self.statuses = list(statuses)
        self.release = release
        self.with_reply = with_reply
        self.submitted: list[str] = []
        self.status_checks = 0

    async def submit(self, text: str) -> AnalysisRun:
        if self.release is not None:
            await self.release.wait()
        self.submitted.append(text)
        n = len(self.submitted)
        return AnalysisRun(thread_id=f"thread_{n}", run_id=f"run_{n}")

    async def run_status(self, run: AnalysisRun) -> str:
        self.status_checks += 1
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    async def list_messages(self, run: AnalysisRun) -> list[AnalysisMessage]:
        messages = [
            AnalysisMessage(role="user", run_id=None, text=self.submitted[-1]),
            AnalysisMessage(role="assistant", run_id="run_previous", text='["stale"]'),
        ]
        if self.with_reply:
            messages.append(AnalysisMessage(role="assistant", run_id=run.run_id, text=self.reply))
        return messages


# ─────────────────────────────────────────────────────────────────────────────
# Sample file bytes
# ─────────────────────────────────────────────────────────────────────────────

def make_pdf(pages: list[str]) -> bytes:
    """Build a small but well-formed PDF, one Helvetica text line per page."""
    n = len(pages)
    font_id = 3
    page_ids = [4 + 2 * i for i in range(n)]
    objects: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids [" + b" ".join(b"%d 0 R" % p for p in page_ids) + b"] /Count %d >>" % n,
        font_id: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for page_id, text in zip(page_ids, pages):
        stream = b"BT /F1 24 Tf 72 700 Td (" + text.encode("latin-1") + b") Tj ET"
        objects[page_id] = (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % (page_id + 1)
        )
        objects[page_id + 1] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = {}
    for obj_id in sorted(objects):
        offsets[obj_id] = out.tell()
        out.write(b"%d 0 obj\n" % obj_id + objects[obj_id] + b"\nendobj\n")
    xref_at = out.tell()
    size = max(objects) + 1
    out.write(b"xref\n0 %d\n" % size)
    out.write(b"0000000000 65535 f \n")
    for obj_id in range(1, size):
        out.write(b"%010d 00000 n \n" % offsets[obj_id])
    out.write(b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_at))
    return out.getvalue()


def make_docx(paragraphs: list[str]) -> bytes:
    import docx

    document = docx.Document()
    for p in paragraphs:
        document.add_paragraph(p)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def invoice_pdf() -> bytes:
    return make_pdf(["Invoice 2024-001", "Total due 120 EUR"])


# ─────────────────────────────────────────────────────────────────────────────
# Database
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'docvault-test.db'}",
        log_level="DEBUG",
        session_active_period_seconds=60,
        session_idle_period_seconds=120,
        session_sweep_interval_seconds=3600,
        analysis_poll_interval_seconds=0,
        analysis_max_poll_attempts=5,
        max_upload_mb=1,
        openai_api_key=None,
        analyzer_assistant_id=None,
    )


@pytest.fixture
def engine(settings):
    eng = make_engine(settings.database_url)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db) -> User:
    u = User(id="u" * 15, username="owner@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ─────────────────────────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def app(settings, session_factory, analyzer):
    from docvault.main import create_app
    return create_app(settings=settings, session_factory=session_factory, analyzer=analyzer)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await app.state.scheduler.cancel_all()


@pytest.fixture
def login(client):
    """Register (if needed) and log in; returns the Authorization header."""
    async def _login(email: str = "alice@example.com", password: str = "secret1") -> dict:
        await client.post("/register", json={"email": email, "password": password})
        resp = await client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['session']}"}
    return _login
