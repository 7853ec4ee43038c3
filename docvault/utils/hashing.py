import hashlib
import hmac


def content_hash(data: bytes) -> str:
    """Hex SHA-256 of the raw bytes; metadata never takes part."""
    return hashlib.sha256(data).hexdigest()


def verify_content_hash(data: bytes, expected: str) -> bool:
    return hmac.compare_digest(content_hash(data), (expected or "").lower())
