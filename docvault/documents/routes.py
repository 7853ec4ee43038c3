
from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session
from docvault.auth.deps import get_current_user, get_db, get_settings
from docvault.config import Settings
from docvault.documents.ingestion import IngestionOrchestrator, parse_upload
from docvault.documents.repository import DocumentRepository
from docvault.errors import NotFoundError, ValidationError
from docvault.models.user import User
from docvault.schemas.document import DocumentDeleteOut, DocumentListOut, DocumentOut, UploadOut

router = APIRouter(tags=["documents"])

UPLOAD_FIELD = "document"

def get_repository(db: Session = Depends(get_db)) -> DocumentRepository:
    return DocumentRepository(db)

def get_orchestrator(
    request: Request,
    repository: DocumentRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        repository,
        request.app.state.pipeline,
        request.app.state.scheduler,
        max_upload_bytes=settings.max_upload_mb * 1024 * 1024,
    )

@router.post("/uploadDocument", response_model=UploadOut)
async def upload_document(
    document: UploadFile | None = File(None),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: User = Depends(get_current_user),
):
    if document is None:
        raise ValidationError("Error parsing file object")

    data = await document.read()
    upload = parse_upload(
        fieldname=UPLOAD_FIELD,
        originalname=document.filename or "",
        encoding=document.headers.get("content-transfer-encoding", "7bit"),
        mimetype=document.content_type,
        content=data,
        size=len(data),
    )
    doc = await orchestrator.ingest(user.id, upload)
    return UploadOut(message="File uploaded successfully", hash=doc.hash)

@router.get("/getDocuments", response_model=DocumentListOut)
def get_documents(
    search: str | None = None,
    repository: DocumentRepository = Depends(get_repository),
    user: User = Depends(get_current_user),
):
    docs = repository.list_by_owner(user.id, search)
    return DocumentListOut(docs=[DocumentOut.model_validate(d) for d in docs])

@router.delete("/deleteDocument/{hash}", response_model=DocumentDeleteOut)
def delete_document(
    hash: str,
    repository: DocumentRepository = Depends(get_repository),
    user: User = Depends(get_current_user),
):
    doc = repository.soft_delete(user.id, hash)
    return DocumentDeleteOut(doc=DocumentOut.model_validate(doc))

@router.get("/searchDocument/{search}", response_model=DocumentListOut, deprecated=True)
def search_document(
    search: str,
    repository: DocumentRepository = Depends(get_repository),
    user: User = Depends(get_current_user),
):
    docs = repository.list_by_owner(user.id, search)
    if not docs:
        raise NotFoundError()
    return DocumentListOut(docs=[DocumentOut.model_validate(d) for d in docs])
