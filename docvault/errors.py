"""Error taxonomy shared by the synchronous request path and the enrichment tasks.

Every error carries the HTTP status it maps to; the handlers registered in
``docvault.main`` render them as ``{"success": false, "status", "message"}``.
"""


class DocVaultError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(DocVaultError):
    status_code = 400
    default_message = "Invalid request"


class UploadTooLargeError(ValidationError):
    status_code = 413
    default_message = "File too large"


class Unauthorized(DocVaultError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidSessionError(Unauthorized):
    default_message = "AUTH_INVALID_SESSION_ID"


class InvalidCredentialsError(Unauthorized):
    default_message = "Invalid credentials"


class InvalidKeyError(InvalidCredentialsError):
    default_message = "AUTH_INVALID_KEY_ID"


class InvalidPasswordError(InvalidCredentialsError):
    default_message = "AUTH_INVALID_PASSWORD"


class DuplicateIdentityError(DocVaultError):
    status_code = 409
    default_message = "AUTH_DUPLICATE_KEY_ID"


class NotFoundError(DocVaultError):
    status_code = 404
    default_message = "Document not found"


class ExternalServiceError(DocVaultError):
    status_code = 502
    default_message = "Analysis provider unavailable"


class PersistenceError(DocVaultError):
    status_code = 500
    default_message = "Storage failure"
