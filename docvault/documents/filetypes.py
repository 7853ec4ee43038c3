
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
JPEG = "image/jpeg"
PNG = "image/png"

ALLOWED_MIME_TYPES = (PDF, DOCX, JPEG, PNG)
IMAGE_MIME_TYPES = (JPEG, PNG)

INVALID_CONTENT_TYPE = "Invalid content-type"


def is_allowed(mime_type: str | None) -> bool:
    # the declared type is trusted; the bytes are not sniffed
    return mime_type in ALLOWED_MIME_TYPES
