
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class UploadedFile(BaseModel):
    """A multipart file as received, before anything is persisted.

    The content type is checked against the allow-list by ``parse_upload``.
    """
    fieldname: str = Field(min_length=1)
    originalname: str = Field(min_length=1, max_length=255)
    encoding: str = "7bit"
    mimetype: str
    content: bytes
    size: int = Field(ge=0)

class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    fieldname: str
    originalname: str
    encoding: str
    mimetype: str
    date: datetime | None = None
    size: int
    hash: str
    keywords: list[str] = []
    trashed: bool = False
    trashed_at: datetime | None = None

class UploadOut(BaseModel):
    message: str
    success: bool = True
    hash: str

class DocumentListOut(BaseModel):
    docs: list[DocumentOut]
    success: bool = True

class DocumentDeleteOut(BaseModel):
    doc: DocumentOut
    success: bool = True
