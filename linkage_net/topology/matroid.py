"""
Combinatorial rigidity-matroid analysis.

Provides lower bounds on the embedding dimension of a linkage from its
graph alone:
- clique number and maximal cliques (Bron-Kerbosch with pivoting)
- the Laman count for minimal rigidity in the plane
- rigidity circuits (minimal over-braced vertex subsets)
- a heuristic minimal dimension

Vertex subsets are handled as integer bitmasks. All exhaustive searches are
bounded by ``SearchConfig``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Callable, Iterator, List, Optional, Tuple

import networkx as nx

from linkage_net.data.core import AttributeTable, LinkageGraph
from linkage_net.topology.graph_rigidity import trivial_dof
from linkage_net.utils.config import SearchConfig

logger = logging.getLogger(__name__)

Clique = Tuple[int, ...]


def _bits(mask: int) -> Iterator[int]:
    v = 0
    while mask:
        if mask & 1:
            yield v
        mask >>= 1
        v += 1


def _popcount(mask: int) -> int:
    return bin(mask).count("1")


def _mask_of(vertices) -> int:
    mask = 0
    for v in vertices:
        mask |= 1 << v
    return mask


# =============================================================================
# CLIQUES
# =============================================================================


def _is_clique(mask: int, adjacency: Tuple[int, ...]) -> bool:
    return all(mask & ~(1 << v) & ~adjacency[v] == 0 for v in _bits(mask))


def clique_number(graph: LinkageGraph, config: Optional[SearchConfig] = None) -> int:
    """
    Size of the largest clique.

    Exact for graphs up to ``exhaustive_clique_limit`` vertices (subsets are
    tried from the largest size downward). Larger graphs use a greedy
    extension from every seed vertex, which can underestimate.
    """
    config = config or SearchConfig()
    n = graph.num_nodes
    if n == 0:
        return 0
    if graph.num_edges == 0:
        return 1

    adjacency = graph.adjacency_masks
    if n <= config.subset_cap(config.exhaustive_clique_limit):
        for size in range(n, 2, -1):
            for subset in combinations(range(n), size):
                if _is_clique(_mask_of(subset), adjacency):
                    return size
        return 2

    logger.debug("clique_number: greedy approximation for %d vertices", n)
    best = 2
    for seed in graph.vertices:
        clique = 1 << seed
        candidates = sorted(graph.neighbors(seed), key=graph.degree, reverse=True)
        for v in candidates:
            if clique & ~adjacency[v] == 0:
                clique |= 1 << v
        best = max(best, _popcount(clique))
    return best


def _bron_kerbosch(r: int, p: int, x: int, adjacency: Tuple[int, ...], out: List[int]) -> None:
    if p == 0 and x == 0:
        out.append(r)
        return
    pivot = max(_bits(p | x), key=lambda u: _popcount(p & adjacency[u]))
    for v in list(_bits(p & ~adjacency[pivot])):
        bit = 1 << v
        _bron_kerbosch(r | bit, p & adjacency[v], x & adjacency[v], adjacency, out)
        p &= ~bit
        x |= bit


def maximal_cliques(graph: LinkageGraph, min_size: int = 3) -> List[Clique]:
    """
    All maximal cliques with at least ``min_size`` vertices.

    Sorted largest first, ties broken by vertex order.
    """
    if graph.num_nodes == 0:
        return []
    found: List[int] = []
    _bron_kerbosch(0, (1 << graph.num_nodes) - 1, 0, graph.adjacency_masks, found)
    cliques = [tuple(_bits(mask)) for mask in found if _popcount(mask) >= min_size]
    return sorted(cliques, key=lambda c: (-len(c), c))


def maximum_cliques(graph: LinkageGraph) -> List[Clique]:
    """The maximal cliques of the largest size."""
    cliques = maximal_cliques(graph, min_size=1)
    if not cliques:
        return []
    top = len(cliques[0])
    return [c for c in cliques if len(c) == top]


# =============================================================================
# LAMAN COUNT
# =============================================================================


@dataclass
class LamanResult:
    is_laman: bool
    is_minimally_rigid_2d: bool
    reason: str


def check_laman(graph: LinkageGraph, config: Optional[SearchConfig] = None) -> LamanResult:
    """
    Check the Laman conditions for generic minimal rigidity in the plane.

    |E| must equal 2|V| - 3 and every vertex subset S with |S| >= 2 must
    span at most 2|S| - 3 edges. The subset condition is checked
    exhaustively only up to ``laman_subgraph_limit`` vertices.
    """
    config = config or SearchConfig()
    n = graph.num_nodes
    m = graph.num_edges

    if n < 2:
        return LamanResult(True, True, "Trivial graph")

    expected_edges = 2 * n - 3
    if m < expected_edges:
        return LamanResult(
            False, False, f"Under-constrained: |E| = {m}, need {expected_edges} for minimal rigidity"
        )
    if m > expected_edges:
        return LamanResult(False, False, f"Over-constrained: |E| = {m}, max {expected_edges} for Laman")

    limit = config.subset_cap(config.laman_subgraph_limit)
    if n > limit:
        logger.warning(
            "check_laman: %d vertices exceed the subgraph limit %d; only the global count was checked",
            n, limit,
        )
        return LamanResult(
            True, True, f"Satisfies |E| = 2|V| - 3 = {expected_edges} (subgraph condition not verified)"
        )

    for size in range(2, n + 1):
        max_allowed = 2 * size - 3
        for subset in combinations(range(n), size):
            sub_edges = graph.induced_edge_count(_mask_of(subset))
            if sub_edges > max_allowed:
                return LamanResult(
                    False,
                    False,
                    f"Subgraph on {size} vertices has {sub_edges} edges (max {max_allowed})",
                )

    return LamanResult(True, True, f"Satisfies |E| = 2|V| - 3 = {expected_edges}")


# =============================================================================
# CIRCUITS
# =============================================================================


def sparsity_bound(size: int, dimension: int) -> int:
    """Maximum independent edge count on ``size`` vertices in dimension d."""
    if size <= dimension + 1:
        return size * (size - 1) // 2
    return dimension * size - trivial_dof(dimension)


def _is_sparse_below(graph: LinkageGraph, subset: Tuple[int, ...], dimension: int) -> bool:
    """Every proper vertex subset of ``subset`` respects the sparsity bound."""
    for size in range(2, len(subset)):
        bound = sparsity_bound(size, dimension)
        for sub in combinations(subset, size):
            if graph.induced_edge_count(_mask_of(sub)) > bound:
                return False
    return True


def find_circuits(
    graph: LinkageGraph,
    dimension: int = 2,
    attributes: Optional[AttributeTable] = None,
    config: Optional[SearchConfig] = None,
) -> List[Tuple[str, ...]]:
    """
    Find rigidity circuits on up to ``circuit_max_subset`` vertices.

    A circuit is a vertex subset whose induced edge count is one more than
    the sparsity bound while every proper subset stays within its bound;
    removing any single edge then restores independence.

    Returns:
        Edge-label tuples (``"s-t"``), one per circuit.
    """
    config = config or SearchConfig()
    label = _labeler(attributes)
    n = graph.num_nodes
    max_size = min(n, config.subset_cap(config.circuit_max_subset))

    circuits: List[Tuple[str, ...]] = []
    for size in range(3, max_size + 1):
        threshold = sparsity_bound(size, dimension) + 1
        for subset in combinations(range(n), size):
            mask = _mask_of(subset)
            edges = graph.induced_edges(mask)
            if len(edges) != threshold:
                continue
            if not _is_sparse_below(graph, subset, dimension):
                continue
            circuits.append(tuple(f"{label(e.source)}-{label(e.target)}" for e in edges))

    logger.debug("find_circuits d=%d: found %d circuits", dimension, len(circuits))
    return circuits


# =============================================================================
# MINIMAL DIMENSION
# =============================================================================


def is_tree(graph: LinkageGraph) -> bool:
    return graph.num_nodes > 0 and nx.is_tree(graph.to_networkx())


def is_path_like(graph: LinkageGraph) -> bool:
    """A tree whose vertices all have degree at most 2."""
    return is_tree(graph) and graph.max_degree() <= 2


def compute_minimal_dimension(graph: LinkageGraph, config: Optional[SearchConfig] = None) -> int:
    """
    Heuristic lower bound on the dimension a linkage can be folded into.

    A clique K_w can only be realised in w - 1 dimensions, so the bound is
    ``max(1, w - 1)``. Trees are capped by their maximum degree and paths
    always fold onto a line. This is not a proof of foldability.
    """
    n = graph.num_nodes
    if n <= 1 or graph.num_edges == 0:
        return 0
    if is_path_like(graph):
        return 1

    omega = clique_number(graph, config)
    lower_bound = max(1, omega - 1)
    if is_tree(graph):
        return min(graph.max_degree(), lower_bound)
    return lower_bound


# =============================================================================
# FULL ANALYSIS
# =============================================================================


@dataclass
class MatroidAnalysis:
    """
    Summary of the combinatorial analysis.

    Attributes:
        d_min: Heuristic minimal dimension.
        clique_number: Size of the largest clique.
        is_laman: Laman count satisfied.
        is_minimally_rigid_2d: Generically minimally rigid in the plane.
        circuits: 2D circuits (computed for small graphs only).
        max_cliques: Cliques of maximum size.
        explanation: Human-readable summary.
        lower_bound_reason: Why d_min cannot be lower.
    """

    d_min: int = 0
    clique_number: int = 0
    is_laman: bool = True
    is_minimally_rigid_2d: bool = True
    circuits: List[Tuple[str, ...]] = field(default_factory=list)
    max_cliques: List[Clique] = field(default_factory=list)
    explanation: str = ""
    lower_bound_reason: str = ""


def _labeler(attributes: Optional[AttributeTable]) -> Callable[[int], str]:
    attributes = attributes or {}

    def label(v: int) -> str:
        attrs = attributes.get(v)
        return attrs.label if attrs is not None else str(v)

    return label


def _clique_name(size: int) -> str:
    names = {2: "K₂ (edge)", 3: "K₃ (triangle)", 4: "K₄ (tetrahedron)"}
    return names.get(size, f"K{size}")


def analyze_rigidity_matroid(
    graph: LinkageGraph,
    attributes: Optional[AttributeTable] = None,
    config: Optional[SearchConfig] = None,
) -> MatroidAnalysis:
    """Run every combinatorial check and explain the resulting bound."""
    config = config or SearchConfig()
    n = graph.num_nodes
    m = graph.num_edges

    if n == 0:
        return MatroidAnalysis(explanation="Empty graph", lower_bound_reason="No vertices")

    omega = clique_number(graph, config)
    d_min = compute_minimal_dimension(graph, config)
    laman = check_laman(graph, config)
    circuits = (
        find_circuits(graph, 2, attributes, config)
        if n <= config.subset_cap(config.laman_subgraph_limit)
        else []
    )

    lower_bound_reason = ""
    if omega >= 2:
        lower_bound_reason = f"Contains {_clique_name(omega)} → requires at least {d_min}D"

    if is_path_like(graph):
        explanation = f"Path graph with {n} vertices. Can always fold to a line (1D)."
        lower_bound_reason = "Path graphs have d_min = 1"
    elif is_tree(graph):
        explanation = f"Tree graph with {n} vertices and max degree {graph.max_degree()}."
    elif d_min == 2 and laman.is_laman:
        explanation = f"Laman graph: minimally rigid in 2D. {laman.reason}"
    elif d_min == 2:
        explanation = f"Requires 2D embedding. {laman.reason}"
    elif d_min == 3:
        explanation = "Requires 3D embedding. Contains K₄ or equivalent structure."
    else:
        explanation = f"Graph with {n} vertices and {m} edges. d_min = {d_min}."

    return MatroidAnalysis(
        d_min=d_min,
        clique_number=omega,
        is_laman=laman.is_laman,
        is_minimally_rigid_2d=laman.is_minimally_rigid_2d,
        circuits=circuits,
        max_cliques=maximum_cliques(graph),
        explanation=explanation,
        lower_bound_reason=lower_bound_reason,
    )
