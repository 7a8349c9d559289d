"""Embedding providers for vector generation."""

from memory_bank.embeddings.base import EmbeddingProvider
from memory_bank.embeddings.hashing import HashEmbeddingProvider
from memory_bank.embeddings.local import LocalEmbeddingProvider
from memory_bank.embeddings.openai import OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "LocalEmbeddingProvider",
    "OpenAIEmbeddingProvider",
]
