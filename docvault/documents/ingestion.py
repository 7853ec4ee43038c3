
import asyncio
import logging
import pydantic
from docvault.documents.filetypes import INVALID_CONTENT_TYPE, is_allowed
from docvault.documents.repository import DocumentRepository
from docvault.enrichment.pipeline import EnrichmentScheduler, KeywordExtractionPipeline
from docvault.errors import Unauthorized, UploadTooLargeError, ValidationError
from docvault.models.document import Document
from docvault.schemas.document import UploadedFile
from docvault.utils.hashing import content_hash


def parse_upload(**fields) -> UploadedFile:
    if not is_allowed(fields.get("mimetype")):
        raise ValidationError(INVALID_CONTENT_TYPE)
    try:
        return UploadedFile(**fields)
    except pydantic.ValidationError as e:
        raise ValidationError(e.errors()[0].get("msg", "Error parsing file object")) from e


class IngestionOrchestrator:
    """validate -> hash -> persist, then hand the document to enrichment.

    The enrichment task is only scheduled; the caller gets the stored row
    back with empty keywords and answers the request right away. The
    insert runs in a worker thread so the event loop keeps serving requests.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        pipeline: KeywordExtractionPipeline,
        scheduler: EnrichmentScheduler,
        *,
        max_upload_bytes: int,
        logger: logging.Logger | None = None,
    ):
        self.repository = repository
        self.pipeline = pipeline
        self.scheduler = scheduler
        self.max_upload_bytes = max_upload_bytes
        self.log = logger or logging.getLogger(__name__)

    async def ingest(self, user_id: str | None, upload: UploadedFile) -> Document:
        if not user_id:
            raise Unauthorized()
        if upload.size > self.max_upload_bytes:
            raise UploadTooLargeError(
                f"{upload.originalname} larger than {self.max_upload_bytes // (1024 * 1024)}MB"
            )

        digest = content_hash(upload.content)
        doc = await asyncio.to_thread(
            self.repository.create,
            user_id=user_id,
            fieldname=upload.fieldname,
            originalname=upload.originalname,
            encoding=upload.encoding,
            mimetype=upload.mimetype,
            content=upload.content,
            hash=digest,
        )
        self.log.info("document %s stored for user %s hash=%s", doc.id, user_id, digest)

        self.scheduler.schedule(
            self.pipeline.run(doc.id, upload.content, upload.mimetype),
            name=f"enrich-{doc.id}",
        )
        return doc
