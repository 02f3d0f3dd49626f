"""Vector index adapters."""

from .astra_vector_index import AstraVectorIndex
from .pgvector_index import PgVectorIndex

__all__ = ["AstraVectorIndex", "PgVectorIndex"]
