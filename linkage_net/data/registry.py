"""
Registry of example linkages.

Each entry couples a factory producing a labelled ``LinkageGraph`` with a
``GraphInfo`` record describing it. Frameworks are placed at generic
"independent" coordinates so that no accidental collinearity or coplanarity
hides their rigidity.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from linkage_net.data.core import (
    Coordinates,
    Framework,
    LinkageGraph,
    VertexAttributes,
)

NODE_COLORS = [
    "#3b82f6",
    "#ef4444",
    "#22c55e",
    "#a855f7",
    "#f97316",
    "#06b6d4",
    "#ec4899",
    "#eab308",
]

CATEGORIES = ("complete", "bipartite", "cycle", "path", "platonic", "other")


@dataclass(frozen=True)
class GraphInfo:
    """
    Metadata of a registered linkage.

    Attributes:
        id: Registry key.
        name: Human-readable name.
        description: One-line summary.
        vertices: Number of vertices.
        edges: Number of edges.
        expected_rigid: Whether the generic framework is rigid in 3D.
        category: One of ``CATEGORIES``.
    """

    id: str
    name: str
    description: str
    vertices: int
    edges: int
    expected_rigid: bool
    category: str


@dataclass(frozen=True)
class RegistryEntry:
    info: GraphInfo
    create: Callable[[], Framework]


# =============================================================================
# COORDINATES
# =============================================================================


def independent_coordinates(num_nodes: int) -> Coordinates:
    """
    Place vertices at generic positions in 3D.

    The first four vertices sit at the origin and the unit axes, so any
    four of them span ℝ³. The remaining vertices are spread over a grid
    offset from the first four.
    """
    base = [
        (0.0, 0.0, 0.0),
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 1.0),
    ]
    positions = {}
    for i in range(num_nodes):
        if i < len(base):
            positions[i] = base[i]
        else:
            positions[i] = ((i % 3) * 0.5 + 0.25, (i // 3) * 0.5 + 0.25, (i % 2) * 0.5)
    return Coordinates(positions, dimension=3)


def identity_coordinates(num_nodes: int) -> Coordinates:
    """Place vertex i at the unit vector e_i of ℝⁿ (maximal-dimension start)."""
    return Coordinates.from_matrix(np.eye(num_nodes))


def _framework(
    num_nodes: int,
    edges: Sequence[Tuple[int, int]],
    labels: Sequence[str],
    colors: Optional[Sequence[int]] = None,
) -> Framework:
    graph = LinkageGraph(num_nodes, edges)
    color_index = colors if colors is not None else range(num_nodes)
    attributes = {
        i: VertexAttributes(label=labels[i], color=NODE_COLORS[c % len(NODE_COLORS)])
        for i, c in zip(range(num_nodes), color_index)
    }
    return Framework(graph, independent_coordinates(num_nodes), attributes)


def _subscript_labels(n: int, prefix: str = "v") -> List[str]:
    digits = "₀₁₂₃₄₅₆₇₈₉"
    return [prefix + "".join(digits[int(c)] for c in str(i + 1)) for i in range(n)]


# =============================================================================
# FACTORIES
# =============================================================================


def create_complete_graph(n: int) -> Framework:
    return _framework(n, list(combinations(range(n), 2)), _subscript_labels(n))


def create_k3_graph() -> Framework:
    return create_complete_graph(3)


def create_k4_graph() -> Framework:
    return create_complete_graph(4)


def create_k5_graph() -> Framework:
    return create_complete_graph(5)


def create_path_graph(n: int) -> Framework:
    return _framework(n, [(i, i + 1) for i in range(n - 1)], _subscript_labels(n))


def create_v_graph() -> Framework:
    """Two edges sharing a vertex (P₃)."""
    return create_path_graph(3)


def create_p4_graph() -> Framework:
    return create_path_graph(4)


def create_cycle_graph(n: int) -> Framework:
    return _framework(n, [(i, (i + 1) % n) for i in range(n)], _subscript_labels(n))


def create_bipartite_graph(m: int, n: int) -> Framework:
    """Complete bipartite K_{m,n}; side A is ``0..m-1``."""
    labels = _subscript_labels(m, "a") + _subscript_labels(n, "b")
    edges = [(i, m + j) for i in range(m) for j in range(n)]
    return _framework(m + n, edges, labels, colors=[0] * m + [1] * n)


def create_wheel_graph(rim: int = 4) -> Framework:
    """Hub vertex 0 joined to every vertex of a rim cycle."""
    labels = ["hub"] + _subscript_labels(rim)
    edges = [(1 + i, 1 + (i + 1) % rim) for i in range(rim)]
    edges += [(0, 1 + i) for i in range(rim)]
    return _framework(rim + 1, edges, labels)


def create_cube_graph() -> Framework:
    """Q₃: vertices are 3-bit strings, edges join strings differing in one bit."""
    labels = [format(i, "03b") for i in range(8)]
    edges = [(i, j) for i, j in combinations(range(8), 2) if bin(i ^ j).count("1") == 1]
    return _framework(8, edges, labels)


def create_octahedron_graph() -> Framework:
    labels = ["top", "bottom", "N", "E", "S", "W"]
    edges = [(0, k) for k in range(2, 6)] + [(1, k) for k in range(2, 6)]
    edges += [(2, 3), (3, 4), (4, 5), (5, 2)]
    return _framework(6, edges, labels)


def create_k222_graph() -> Framework:
    """Complete tripartite graph on three pairs."""
    labels = ["a₁", "a₂", "b₁", "b₂", "c₁", "c₂"]
    parts = [(0, 1), (2, 3), (4, 5)]
    edges = [
        (u, v)
        for p, q in combinations(parts, 2)
        for u in p
        for v in q
    ]
    return _framework(6, edges, labels, colors=[0, 0, 1, 1, 2, 2])


def create_square_pyramid_graph() -> Framework:
    """Square base cycle with an apex joined to every base vertex."""
    labels = ["apex"] + _subscript_labels(4)
    edges = [(1, 2), (2, 3), (3, 4), (4, 1)] + [(0, k) for k in range(1, 5)]
    return _framework(5, edges, labels)


# =============================================================================
# REGISTRY
# =============================================================================

GRAPH_REGISTRY: List[RegistryEntry] = [
    RegistryEntry(GraphInfo("v-graph", "V-Graph (P₃)", "Path with 3 vertices - flexible hinge", 3, 2, False, "path"), create_v_graph),
    RegistryEntry(GraphInfo("k3", "Triangle (K₃)", "Complete graph on 3 vertices - rigid", 3, 3, True, "complete"), create_k3_graph),
    RegistryEntry(GraphInfo("k4", "Tetrahedron (K₄)", "Complete graph on 4 vertices - rigid in ℝ³", 4, 6, True, "complete"), create_k4_graph),
    RegistryEntry(GraphInfo("k5", "K₅", "Complete graph on 5 vertices - over-constrained", 5, 10, True, "complete"), create_k5_graph),
    RegistryEntry(GraphInfo("c4", "Square (C₄)", "Cycle on 4 vertices - flexible", 4, 4, False, "cycle"), lambda: create_cycle_graph(4)),
    RegistryEntry(GraphInfo("c5", "Pentagon (C₅)", "Cycle on 5 vertices - flexible", 5, 5, False, "cycle"), lambda: create_cycle_graph(5)),
    RegistryEntry(GraphInfo("c6", "Hexagon (C₆)", "Cycle on 6 vertices - flexible", 6, 6, False, "cycle"), lambda: create_cycle_graph(6)),
    RegistryEntry(GraphInfo("p4", "Path (P₄)", "Path with 4 vertices - very flexible", 4, 3, False, "path"), create_p4_graph),
    RegistryEntry(GraphInfo("k23", "K₂,₃", "Complete bipartite graph - flexible", 5, 6, False, "bipartite"), lambda: create_bipartite_graph(2, 3)),
    RegistryEntry(GraphInfo("k33", "K₃,₃", "Complete bipartite graph - non-planar", 6, 9, False, "bipartite"), lambda: create_bipartite_graph(3, 3)),
    RegistryEntry(GraphInfo("w4", "Wheel (W₄)", "Wheel with 4 rim vertices", 5, 8, True, "other"), create_wheel_graph),
    RegistryEntry(GraphInfo("cube", "Cube (Q₃)", "3D hypercube skeleton - flexible", 8, 12, False, "platonic"), create_cube_graph),
    RegistryEntry(GraphInfo("octahedron", "Octahedron", "Octahedron skeleton - rigid in ℝ³", 6, 12, True, "platonic"), create_octahedron_graph),
    RegistryEntry(GraphInfo("k222", "K₂,₂,₂", "Complete tripartite graph - d_min = 4", 6, 12, True, "other"), create_k222_graph),
    RegistryEntry(GraphInfo("square-pyramid", "Square Pyramid", "Octahedron minus one vertex - d_min = 3", 5, 8, True, "other"), create_square_pyramid_graph),
]

_BY_ID: Dict[str, RegistryEntry] = {entry.info.id: entry for entry in GRAPH_REGISTRY}


def list_graph_ids() -> List[str]:
    return [entry.info.id for entry in GRAPH_REGISTRY]


def get_graph_by_id(graph_id: str) -> Optional[Framework]:
    """Create the registered framework, or ``None`` for an unknown id."""
    entry = _BY_ID.get(graph_id)
    return entry.create() if entry is not None else None


def get_graph_info_by_id(graph_id: str) -> Optional[GraphInfo]:
    entry = _BY_ID.get(graph_id)
    return entry.info if entry is not None else None
