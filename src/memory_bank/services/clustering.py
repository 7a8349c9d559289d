"""Grouping of NODE summaries into SECTION clusters."""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np

from memory_bank.models.summary import Summary

logger = logging.getLogger(__name__)


class Clusterer(ABC):
    """Splits an ordered list of NODE summaries into groups."""

    @abstractmethod
    def cluster(self, nodes: list[Summary]) -> list[list[Summary]]:
        """Group nodes.

        Returns:
            Non-empty groups covering every node exactly once
        """
        pass


def contiguous_groups(nodes: list[Summary], chunk_size: int) -> list[list[Summary]]:
    """Cut nodes into consecutive slices of `chunk_size`; the last may be shorter."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [nodes[i : i + chunk_size] for i in range(0, len(nodes), chunk_size)]


class ContiguousClusterer(Clusterer):
    """Order-preserving split into at most `max_clusters` slices.

    Slices hold `ceil(n / max_clusters)` nodes each. An explicit
    `cluster_size` raises that chunk size but never produces more than
    `max_clusters` slices.
    """

    def __init__(self, max_clusters: int = 3, cluster_size: int | None = None) -> None:
        if max_clusters < 1 or (cluster_size is not None and cluster_size < 1):
            raise ValueError("max_clusters and cluster_size must be at least 1")
        self.max_clusters = max_clusters
        self.cluster_size = cluster_size

    def cluster(self, nodes: list[Summary]) -> list[list[Summary]]:
        if not nodes:
            return []
        chunk = math.ceil(len(nodes) / self.max_clusters)
        if self.cluster_size is not None:
            chunk = max(chunk, self.cluster_size)
        return contiguous_groups(nodes, chunk)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norms = np.linalg.norm(va) * np.linalg.norm(vb)
    if norms == 0:
        return 0.0
    return float(np.dot(va, vb) / norms)


class EmbeddingClusterer(Clusterer):
    """Greedy centroid clustering of NODE embeddings.

    Each node joins the most similar existing cluster when the cosine
    similarity to its centroid reaches `similarity_threshold`; otherwise
    it opens a new cluster while fewer than `max_clusters` exist, and
    joins the closest one after that. Clusters keep node order and are
    ordered by their first node. Without embeddings on every node the
    contiguous policy is used.
    """

    def __init__(self, max_clusters: int = 3, similarity_threshold: float = 0.75) -> None:
        if max_clusters < 1:
            raise ValueError("max_clusters must be at least 1")
        self.max_clusters = max_clusters
        self.similarity_threshold = similarity_threshold

    def cluster(self, nodes: list[Summary]) -> list[list[Summary]]:
        if not nodes:
            return []
        if any(node.embedding is None for node in nodes):
            logger.warning("Missing NODE embeddings, falling back to contiguous clustering")
            return ContiguousClusterer(self.max_clusters).cluster(nodes)

        clusters: list[list[Summary]] = []
        centroids: list[np.ndarray] = []

        for node in nodes:
            vector = np.asarray(node.embedding, dtype=float)
            similarities = [cosine_similarity(vector, c) for c in centroids]
            best = int(np.argmax(similarities)) if similarities else -1

            if best >= 0 and (
                similarities[best] >= self.similarity_threshold
                or len(clusters) >= self.max_clusters
            ):
                clusters[best].append(node)
                # running mean of the members' vectors
                centroids[best] += (vector - centroids[best]) / len(clusters[best])
            else:
                clusters.append([node])
                centroids.append(vector.copy())

        return clusters
