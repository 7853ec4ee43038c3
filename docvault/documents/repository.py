
import logging
from datetime import datetime, timezone
from sqlalchemy import String, cast, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from docvault.errors import NotFoundError, PersistenceError
from docvault.models.document import Document

SEARCH_FIELDS = ("fieldname", "originalname", "encoding", "mimetype")
KEYWORD_WEIGHT = 2


def _terms(text_query: str) -> list[str]:
    seen = []
    for term in text_query.lower().split():
        if term not in seen:
            seen.append(term)
    return seen


def relevance(doc: Document, terms: list[str]) -> int:
    score = 0
    for term in terms:
        for field in SEARCH_FIELDS:
            if term in (getattr(doc, field) or "").lower():
                score += 1
        if any(term in kw.lower() for kw in (doc.keywords or [])):
            score += KEYWORD_WEIGHT
    return score


class DocumentRepository:
    """Owner-scoped access to document rows. Trashed rows are hidden unless asked for."""

    def __init__(self, db: Session, logger: logging.Logger | None = None):
        self.db = db
        self.log = logger or logging.getLogger(__name__)

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self.log.error("document write failed: %s", e)
            raise PersistenceError(str(e)) from e

    def _owned(self, user_id: str, include_trashed: bool):
        stmt = select(Document).where(Document.user_id == user_id)
        if not include_trashed:
            stmt = stmt.where(Document.trashed.is_(False))
        return stmt

    def create(self, *, user_id: str, fieldname: str, originalname: str, encoding: str,
               mimetype: str, content: bytes, hash: str) -> Document:
        doc = Document(
            user_id=user_id,
            fieldname=fieldname,
            originalname=originalname,
            encoding=encoding,
            mimetype=mimetype,
            date=datetime.now(timezone.utc),
            content=content,
            size=len(content),
            hash=hash,
            keywords=[],
            trashed=False,
        )
        self.db.add(doc)
        self._commit()
        self.db.refresh(doc)
        return doc

    def list_by_owner(self, user_id: str, text_query: str | None = None,
                      include_trashed: bool = False) -> list[Document]:
        stmt = self._owned(user_id, include_trashed).order_by(Document.id)
        terms = _terms(text_query or "")
        if not terms:
            return list(self.db.scalars(stmt))

        columns = [getattr(Document, f) for f in SEARCH_FIELDS] + [cast(Document.keywords, String)]
        stmt = stmt.where(or_(*[col.ilike(f"%{term}%") for term in terms for col in columns]))
        candidates = list(self.db.scalars(stmt))

        # LIKE over the serialised keyword list can hit JSON punctuation; score drops those
        scored = [(relevance(doc, terms), doc) for doc in candidates]
        return [doc for score, doc in sorted(
            (pair for pair in scored if pair[0] > 0), key=lambda pair: -pair[0]
        )]

    def find_by_hash(self, user_id: str, hash: str, include_trashed: bool = False) -> Document | None:
        stmt = self._owned(user_id, include_trashed).where(Document.hash == hash).order_by(Document.id.desc())
        return self.db.scalars(stmt).first()

    def get(self, document_id: int) -> Document | None:
        return self.db.get(Document, document_id)

    def soft_delete(self, user_id: str, hash: str) -> Document:
        doc = self.find_by_hash(user_id, hash)
        if doc is None:
            raise NotFoundError()
        doc.trashed = True
        doc.trashed_at = datetime.now(timezone.utc)
        self._commit()
        return doc

    def update_keywords(self, document_id: int, keywords: list[str]) -> Document:
        doc = self.get(document_id)
        if doc is None:
            raise NotFoundError(f"Document {document_id} not found")
        doc.keywords = list(keywords)
        self._commit()
        return doc
