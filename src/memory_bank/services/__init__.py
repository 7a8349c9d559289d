"""Service layer for ranking, summarization and context assembly."""

from memory_bank.services.clustering import Clusterer, ContiguousClusterer, EmbeddingClusterer
from memory_bank.services.context_assembler import ContextAssembler
from memory_bank.services.embedding_service import EmbeddingService
from memory_bank.services.hybrid_ranker import HybridRanker
from memory_bank.services.memory_service import MemoryService
from memory_bank.services.summary_compiler import SummaryCompiler

__all__ = [
    "Clusterer",
    "ContiguousClusterer",
    "ContextAssembler",
    "EmbeddingClusterer",
    "EmbeddingService",
    "HybridRanker",
    "MemoryService",
    "SummaryCompiler",
]
