"""Cohere infrastructure package."""

from .cohere_embedding_provider import CohereEmbeddingProvider

__all__ = ["CohereEmbeddingProvider"]
