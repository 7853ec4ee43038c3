"""Keyword analysis through an OpenAI assistant.

The pipeline only depends on the ``KeywordAnalyzer`` protocol: submit a text,
ask for the run status, list the messages of the thread. ``OpenAIAssistantAnalyzer``
implements it with the Assistants API (thread -> message -> run).
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol
from openai import AsyncOpenAI, OpenAIError
from docvault.config import Settings
from docvault.errors import ExternalServiceError

log = logging.getLogger(__name__)

COMPLETED = "completed"
TERMINAL_FAILURES = ("failed", "cancelled", "expired", "incomplete")
ANALYZER_ROLE = "assistant"


@dataclass(frozen=True)
class AnalysisRun:
    thread_id: str
    run_id: str


@dataclass(frozen=True)
class AnalysisMessage:
    role: str
    run_id: str | None
    text: str


class KeywordAnalyzer(Protocol):
    async def submit(self, text: str) -> AnalysisRun: ...

    async def run_status(self, run: AnalysisRun) -> str: ...

    async def list_messages(self, run: AnalysisRun) -> list[AnalysisMessage]: ...


def _json_from_llm(raw: str):
    m = re.search(r"```(?:json)?\s*(\{[\s\S]*\}|\[[\s\S]*\])\s*```", raw, re.IGNORECASE)
    if m: raw = m.group(1)
    m2 = re.search(r"(\{[\s\S]*\}|\[[\s\S]*\])", raw)
    if m2: raw = m2.group(1)
    return json.loads(raw)


def parse_keywords(payload: str) -> list[str]:
    """Read the analyzer reply as a list of keyword strings.

    The assistant is instructed to answer with a JSON array; a plain
    comma/newline separated reply is accepted as well.
    """
    payload = (payload or "").strip()
    if not payload:
        return []
    try:
        data = _json_from_llm(payload)
    except ValueError:
        data = re.split(r"[,\n]", payload)
    if isinstance(data, dict):
        data = data.get("keywords", [])
    if not isinstance(data, list):
        data = [data]

    out = []
    for item in data:
        kw = re.sub(r'^(?:[-*•]|\d+[.):])\s*', '', str(item)).strip().strip('"').strip()
        if kw and kw not in out:
            out.append(kw)
    return out


def select_reply(messages: list[AnalysisMessage], run_id: str) -> AnalysisMessage | None:
    """Last analyzer message produced by the given run."""
    replies = [m for m in messages if m.role == ANALYZER_ROLE and m.run_id == run_id]
    return replies[-1] if replies else None


class OpenAIAssistantAnalyzer:
    def __init__(self, client: AsyncOpenAI, assistant_id: str):
        self.client = client
        self.assistant_id = assistant_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIAssistantAnalyzer | None":
        if not (settings.openai_api_key and settings.analyzer_assistant_id):
            return None
        client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return cls(client, settings.analyzer_assistant_id)

    async def submit(self, text: str) -> AnalysisRun:
        try:
            thread = await self.client.beta.threads.create()
            await self.client.beta.threads.messages.create(thread.id, role="user", content=text)
            run = await self.client.beta.threads.runs.create(thread.id, assistant_id=self.assistant_id)
        except OpenAIError as e:
            raise ExternalServiceError(f"analysis submit failed: {e}") from e
        log.debug("analysis run %s started on thread %s", run.id, thread.id)
        return AnalysisRun(thread_id=thread.id, run_id=run.id)

    async def run_status(self, run: AnalysisRun) -> str:
        try:
            current = await self.client.beta.threads.runs.retrieve(run.run_id, thread_id=run.thread_id)
        except OpenAIError as e:
            raise ExternalServiceError(f"analysis status check failed: {e}") from e
        return current.status

    async def list_messages(self, run: AnalysisRun) -> list[AnalysisMessage]:
        try:
            page = await self.client.beta.threads.messages.list(run.thread_id, order="asc")
        except OpenAIError as e:
            raise ExternalServiceError(f"analysis result fetch failed: {e}") from e

        out = []
        for message in page.data:
            text = "".join(
                block.text.value for block in (message.content or [])
                if getattr(block, "type", None) == "text"
            )
            out.append(AnalysisMessage(role=message.role, run_id=message.run_id, text=text))
        return out
