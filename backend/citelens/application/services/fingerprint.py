"""Content fingerprinting — the dedup and cache key for embeddings."""

import hashlib

FINGERPRINT_LENGTH = 64


def content_fingerprint(text: str) -> str:
    """SHA-256 hex digest of the exact UTF-8 bytes of ``text``.

    No normalization is applied: texts that differ only in whitespace
    produce different fingerprints.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
