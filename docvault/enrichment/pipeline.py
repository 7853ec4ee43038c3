"""Deferred keyword enrichment of uploaded documents.

A document moves through

    PENDING -> TEXT_EXTRACTED -> ANALYSIS_SUBMITTED -> POLLING -> COMPLETED

or ends in FAILED. Runs are started after the upload response by the
``EnrichmentScheduler``; failures are logged and never reach the uploader.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Coroutine
from sqlalchemy.orm import sessionmaker
from docvault.documents.repository import DocumentRepository
from docvault.enrichment.extractors import extract_text
from docvault.errors import ExternalServiceError
from docvault.llm.assistant import (
    COMPLETED,
    TERMINAL_FAILURES,
    AnalysisRun,
    KeywordAnalyzer,
    parse_keywords,
    select_reply,
)


MAX_INPUT_CHARS = 25000


class EnrichmentState(str, enum.Enum):
    PENDING = "pending"
    TEXT_EXTRACTED = "text_extracted"
    ANALYSIS_SUBMITTED = "analysis_submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class EnrichmentResult:
    document_id: int
    state: EnrichmentState = EnrichmentState.PENDING
    keywords: list[str] = field(default_factory=list)
    error: str | None = None


class KeywordExtractionPipeline:
    def __init__(
        self,
        session_factory: sessionmaker,
        analyzer: KeywordAnalyzer | None,
        *,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 150,
        max_input_chars: int = MAX_INPUT_CHARS,
        logger: logging.Logger | None = None,
    ):
        self.session_factory = session_factory
        self.analyzer = analyzer
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.max_input_chars = max_input_chars
        self.log = logger or logging.getLogger(__name__)

    async def run(self, document_id: int, content: bytes, mimetype: str) -> EnrichmentResult:
        result = EnrichmentResult(document_id=document_id)
        try:
            text = await asyncio.to_thread(extract_text, content, mimetype)
            result.state = EnrichmentState.TEXT_EXTRACTED

            if not text.strip():
                self.log.info("document %s has no extractable text (%s)", document_id, mimetype)
                keywords = []
            elif self.analyzer is None:
                self.log.warning("no analysis provider configured, document %s keeps no keywords", document_id)
                keywords = []
            else:
                if len(text) > self.max_input_chars:
                    self.log.info("document %s text truncated from %d to %d chars",
                                  document_id, len(text), self.max_input_chars)
                    text = text[:self.max_input_chars]
                keywords = await self._analyze(text, result)

            await asyncio.to_thread(self._persist, document_id, keywords)
            result.keywords = keywords
            result.state = EnrichmentState.COMPLETED
            self.log.info("document %s enriched with %d keywords", document_id, len(keywords))
        except Exception as e:
            result.state = EnrichmentState.FAILED
            result.error = str(e) or type(e).__name__
            self.log.exception("enrichment of document %s failed", document_id)
        return result

    async def _analyze(self, text: str, result: EnrichmentResult) -> list[str]:
        run = await self.analyzer.submit(text)
        result.state = EnrichmentState.ANALYSIS_SUBMITTED

        result.state = EnrichmentState.POLLING
        await self._wait_for_completion(run)

        reply = select_reply(await self.analyzer.list_messages(run), run.run_id)
        if reply is None:
            return []
        return parse_keywords(reply.text)

    async def _wait_for_completion(self, run: AnalysisRun):
        for attempt in range(1, self.max_poll_attempts + 1):
            status = await self.analyzer.run_status(run)
            if status == COMPLETED:
                return
            if status in TERMINAL_FAILURES:
                raise ExternalServiceError(f"analysis run {run.run_id} ended with status {status}")
            if attempt < self.max_poll_attempts:
                await asyncio.sleep(self.poll_interval)
        raise ExternalServiceError(
            f"analysis run {run.run_id} not completed after {self.max_poll_attempts} checks"
        )

    def _persist(self, document_id: int, keywords: list[str]):
        db = self.session_factory()
        try:
            DocumentRepository(db).update_keywords(document_id, keywords)
        finally:
            db.close()


class EnrichmentScheduler:
    """Keeps a strong reference to every in-flight enrichment task."""

    def __init__(self, logger: logging.Logger | None = None):
        self._tasks: set[asyncio.Task] = set()
        self.log = logger or logging.getLogger(__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, coro: Coroutine, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self):
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            self.log.info("cancelled %d enrichment task(s)", len(tasks))
