"""
Unit Tests for combinatorial rigidity-matroid analysis.

These tests validate:
1. Clique number (exact and greedy) and maximal cliques
2. The Laman count, including the subgraph condition
3. Rigidity circuits in 2D and 3D
4. The heuristic minimal dimension and its explanation

Run with: pytest tests/test_matroid.py -v
"""

from itertools import combinations

import pytest

from linkage_net.data.core import LinkageGraph, label_table
from linkage_net.topology.matroid import (
    analyze_rigidity_matroid,
    check_laman,
    clique_number,
    compute_minimal_dimension,
    find_circuits,
    is_path_like,
    is_tree,
    maximal_cliques,
    maximum_cliques,
    sparsity_bound,
)
from linkage_net.utils.config import SearchConfig

from conftest import DIAMOND_EDGES, K4_EDGES, SQUARE_EDGES


def complete(n):
    return LinkageGraph(n, list(combinations(range(n), 2)))


def path(n):
    return LinkageGraph(n, [(i, i + 1) for i in range(n - 1)])


# =============================================================================
# TEST: CLIQUES
# =============================================================================

class TestCliques:
    """Tests for clique detection."""

    def test_clique_numbers(self):
        assert clique_number(complete(4)) == 4
        assert clique_number(LinkageGraph(4, SQUARE_EDGES)) == 2
        assert clique_number(LinkageGraph(3)) == 1
        assert clique_number(LinkageGraph(0)) == 0

    def test_greedy_for_large_graphs(self):
        tail = [(i, i + 1) for i in range(3, 11)]
        graph = LinkageGraph(12, K4_EDGES + tail)
        assert clique_number(graph) == 4

    def test_diamond_maximal_cliques(self):
        cliques = maximal_cliques(LinkageGraph(4, DIAMOND_EDGES))
        assert cliques == [(0, 1, 2), (0, 1, 3)]

    def test_triangle_free_graph_has_no_cliques_of_three(self):
        assert maximal_cliques(LinkageGraph(4, SQUARE_EDGES)) == []

    def test_maximum_cliques_of_cycle(self):
        assert maximum_cliques(LinkageGraph(4, SQUARE_EDGES)) == [(0, 1), (0, 3), (1, 2), (2, 3)]

    def test_maximum_cliques_of_k4_with_tail(self):
        graph = LinkageGraph(5, K4_EDGES + [(3, 4)])
        assert maximum_cliques(graph) == [(0, 1, 2, 3)]


# =============================================================================
# TEST: LAMAN
# =============================================================================

class TestLaman:
    """Tests for the Laman count."""

    def test_diamond_is_laman(self):
        result = check_laman(LinkageGraph(4, DIAMOND_EDGES))
        assert result.is_laman
        assert result.reason == "Satisfies |E| = 2|V| - 3 = 5"

    def test_square_under_constrained(self):
        result = check_laman(LinkageGraph(4, SQUARE_EDGES))
        assert not result.is_laman
        assert result.reason == "Under-constrained: |E| = 4, need 5 for minimal rigidity"

    def test_k4_over_constrained(self):
        result = check_laman(complete(4))
        assert not result.is_laman
        assert result.reason == "Over-constrained: |E| = 6, max 5 for Laman"

    def test_dense_subgraph_detected(self):
        graph = LinkageGraph(5, K4_EDGES + [(0, 4)])
        result = check_laman(graph)
        assert not result.is_laman
        assert result.reason == "Subgraph on 4 vertices has 6 edges (max 5)"

    def test_trivial_graph(self):
        assert check_laman(LinkageGraph(1)).is_laman

    def test_large_graph_skips_subgraph_condition(self):
        # K4 plus a pendant vertex passes the global count only
        graph = LinkageGraph(5, K4_EDGES + [(0, 4)])
        result = check_laman(graph, SearchConfig(laman_subgraph_limit=4))
        assert result.is_laman
        assert "not verified" in result.reason


# =============================================================================
# TEST: CIRCUITS
# =============================================================================

class TestCircuits:
    """Tests for rigidity-circuit detection."""

    @pytest.mark.parametrize("size,d,expected", [(3, 2, 3), (4, 2, 5), (4, 3, 6), (5, 3, 9)])
    def test_sparsity_bound(self, size, d, expected):
        assert sparsity_bound(size, d) == expected

    def test_k4_is_a_planar_circuit(self):
        circuits = find_circuits(complete(4), dimension=2)
        assert len(circuits) == 1
        assert len(circuits[0]) == 6

    def test_k5_planar_circuits(self):
        assert len(find_circuits(complete(5), dimension=2)) == 5

    def test_k5_spatial_circuit(self):
        circuits = find_circuits(complete(5), dimension=3)
        assert len(circuits) == 1
        assert len(circuits[0]) == 10

    def test_labels(self):
        graph = complete(4)
        circuits = find_circuits(graph, 2, label_table(["a", "b", "c", "d"]))
        assert circuits[0][0] == "a-b"

    def test_subset_cap(self):
        assert find_circuits(complete(4), 2, config=SearchConfig(max_subset_size=3)) == []

    def test_independent_graph_has_no_circuits(self):
        assert find_circuits(LinkageGraph(4, DIAMOND_EDGES), 2) == []


# =============================================================================
# TEST: MINIMAL DIMENSION
# =============================================================================

class TestMinimalDimension:
    """Tests for the heuristic minimal dimension."""

    def test_tree_predicates(self):
        star = LinkageGraph(4, [(0, 1), (0, 2), (0, 3)])
        assert is_tree(star)
        assert not is_path_like(star)
        assert is_path_like(path(5))
        assert not is_tree(LinkageGraph(4, SQUARE_EDGES))
        assert not is_tree(LinkageGraph(0))

    @pytest.mark.parametrize(
        "graph,expected",
        [
            (complete(4), 3),
            (complete(3), 2),
            (path(5), 1),
            (LinkageGraph(4, SQUARE_EDGES), 1),
            (LinkageGraph(4, [(0, 1), (0, 2), (0, 3)]), 1),
            (LinkageGraph(4, DIAMOND_EDGES), 2),
        ],
    )
    def test_minimal_dimension(self, graph, expected):
        assert compute_minimal_dimension(graph) == expected

    def test_degenerate_graphs(self):
        assert compute_minimal_dimension(LinkageGraph(1)) == 0
        assert compute_minimal_dimension(LinkageGraph(3)) == 0


# =============================================================================
# TEST: FULL ANALYSIS
# =============================================================================

class TestMatroidAnalysis:
    """Tests for the combined analysis."""

    def test_tetrahedron(self):
        result = analyze_rigidity_matroid(complete(4))
        assert result.d_min == 3
        assert result.clique_number == 4
        assert result.explanation == "Requires 3D embedding. Contains K₄ or equivalent structure."
        assert result.lower_bound_reason == "Contains K₄ (tetrahedron) → requires at least 3D"
        assert len(result.circuits) == 1
        assert result.max_cliques == [(0, 1, 2, 3)]

    def test_path(self):
        result = analyze_rigidity_matroid(path(4))
        assert result.d_min == 1
        assert result.explanation == "Path graph with 4 vertices. Can always fold to a line (1D)."

    def test_laman_graph(self):
        result = analyze_rigidity_matroid(LinkageGraph(4, DIAMOND_EDGES))
        assert result.is_laman
        assert result.explanation.startswith("Laman graph: minimally rigid in 2D.")

    def test_empty(self):
        assert analyze_rigidity_matroid(LinkageGraph(0)).explanation == "Empty graph"
