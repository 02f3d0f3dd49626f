"""Domain-specific exceptions — framework-independent."""

from typing import Any


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ConfigurationError(Exception):
    """Raised for deployment mistakes that retrying cannot fix.

    Examples: a provider emitting vectors of the wrong dimension, or a
    chunk overlap that is not smaller than the chunk window.
    """


class ProviderError(Exception):
    """Raised when a third-party provider returns an error or times out.

    Provider-agnostic — works for OpenRouter, Cohere, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class EmbeddingProviderError(ProviderError):
    """Raised when embedding generation fails."""


class ChatProviderError(ProviderError):
    """Raised when a chat completion provider returns an error."""


class IndexUnavailableError(Exception):
    """Raised when the external vector index cannot be reached or rejects a call.

    When raised from a write, ``record`` holds the EmbeddingRecord that was
    already stored durably and is waiting for reconciliation.
    """

    def __init__(self, operation: str, message: str, record: Any = None):
        self.operation = operation
        self.message = message
        self.record = record
        super().__init__(f"Vector index {operation} failed: {message}")


class GenerativeParseError(Exception):
    """Raised when a generative response cannot be parsed into the expected shape."""

    def __init__(self, raw: str, message: str):
        self.raw = raw
        self.message = message
        super().__init__(message)
