"""Tests for NODE clustering policies."""

import numpy as np
import pytest

from memory_bank.models.summary import Summary, SummaryLevel
from memory_bank.services.clustering import (
    ContiguousClusterer,
    EmbeddingClusterer,
    contiguous_groups,
    cosine_similarity,
)


def make_node(name: str, embedding: list[float] | None = None) -> Summary:
    return Summary(
        id=f"demo:node:{name}",
        project_name="demo",
        level=SummaryLevel.NODE,
        text=f"text of {name}",
        source_item_ids=[f"demo:{name}"],
        embedding=embedding,
    )


def names(groups: list[list[Summary]]) -> list[list[str]]:
    return [[node.id.rsplit(":", 1)[1] for node in group] for group in groups]


class TestContiguousGroups:
    """Test contiguous slicing."""

    def test_slices_of_chunk_size(self):
        nodes = [make_node(str(i)) for i in range(7)]

        groups = contiguous_groups(nodes, 3)

        assert [len(g) for g in groups] == [3, 3, 1]
        assert [n for g in groups for n in g] == nodes

    def test_chunk_larger_than_nodes(self):
        nodes = [make_node("a"), make_node("b")]

        assert names(contiguous_groups(nodes, 5)) == [["a", "b"]]

    def test_empty(self):
        assert contiguous_groups([], 3) == []

    def test_rejects_zero_chunk(self):
        with pytest.raises(ValueError):
            contiguous_groups([make_node("a")], 0)


class TestContiguousClusterer:
    """Test ContiguousClusterer."""

    @pytest.mark.parametrize(
        "count,sizes",
        [
            (1, [1]),
            (2, [1, 1]),
            (3, [1, 1, 1]),
            (4, [2, 2]),
            (7, [3, 3, 1]),
            (10, [4, 4, 2]),
        ],
    )
    def test_chunks_by_ceil_of_count_over_max(self, count: int, sizes: list[int]):
        nodes = [make_node(str(i)) for i in range(count)]

        groups = ContiguousClusterer().cluster(nodes)

        assert [len(g) for g in groups] == sizes
        assert [n for g in groups for n in g] == nodes

    def test_no_nodes(self):
        assert ContiguousClusterer().cluster([]) == []

    def test_cluster_size_override(self):
        nodes = [make_node(str(i)) for i in range(5)]

        groups = ContiguousClusterer(max_clusters=10, cluster_size=2).cluster(nodes)

        assert names(groups) == [["0", "1"], ["2", "3"], ["4"]]

    def test_cluster_size_never_exceeds_max_clusters(self):
        nodes = [make_node(str(i)) for i in range(9)]

        groups = ContiguousClusterer(max_clusters=2, cluster_size=1).cluster(nodes)

        assert [len(g) for g in groups] == [5, 4]

    def test_rejects_invalid_parameters(self):
        with pytest.raises(ValueError):
            ContiguousClusterer(max_clusters=0)
        with pytest.raises(ValueError):
            ContiguousClusterer(cluster_size=0)


class TestEmbeddingClusterer:
    """Test EmbeddingClusterer."""

    def test_cosine_similarity(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_groups_similar_nodes(self):
        nodes = [
            make_node("a1", [1.0, 0.0]),
            make_node("b1", [0.0, 1.0]),
            make_node("a2", [0.95, 0.05]),
            make_node("b2", [0.05, 0.95]),
        ]

        groups = EmbeddingClusterer(max_clusters=3).cluster(nodes)

        assert names(groups) == [["a1", "a2"], ["b1", "b2"]]

    def test_cluster_cap_joins_closest(self):
        nodes = [
            make_node("x", [1.0, 0.0, 0.0]),
            make_node("y", [0.0, 1.0, 0.0]),
            make_node("z", [0.0, 0.2, 1.0]),
        ]

        groups = EmbeddingClusterer(max_clusters=2).cluster(nodes)

        assert names(groups) == [["x"], ["y", "z"]]

    def test_missing_embedding_falls_back_to_contiguous(self):
        nodes = [make_node("a", [1.0, 0.0]), make_node("b"), make_node("c", [0.0, 1.0])]

        groups = EmbeddingClusterer(max_clusters=3).cluster(nodes)

        assert names(groups) == [["a"], ["b"], ["c"]]

    def test_every_node_assigned_once(self):
        nodes = [make_node(str(i), [float(i % 3), 1.0, float(i % 2)]) for i in range(9)]

        groups = EmbeddingClusterer(max_clusters=3, similarity_threshold=0.9).cluster(nodes)

        assert len(groups) <= 3
        assert sorted(n.id for g in groups for n in g) == sorted(n.id for n in nodes)

    def test_cosine_similarity_accepts_arrays(self):
        a = np.array([3.0, 4.0])

        assert cosine_similarity(a, [6.0, 8.0]) == pytest.approx(1.0)
        assert isinstance(cosine_similarity(a, a), float)
