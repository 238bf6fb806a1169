"""
Graph Rigidity Analysis for bar-and-joint frameworks.

This module provides tools for analyzing the infinitesimal rigidity of
linkages using:
- The rigidity matrix (constraint Jacobian)
- Trivial / internal degree-of-freedom counting
- Maxwell counting and redundant-edge detection

A framework is infinitesimally rigid in dimension d when the rank of its
rigidity matrix reaches d|V| - d(d+1)/2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np

from linkage_net.data.core import Coordinates, Edge, Framework, LinkageGraph
from linkage_net.errors import InputError
from linkage_net.linalg.matrix_kernel import null_space, rank
from linkage_net.utils.config import EngineConfig

logger = logging.getLogger(__name__)

AXIS_NAMES = "xyzw"


def trivial_dof(dimension: int) -> int:
    """Translations plus rotations in ℝ^d: d(d+1)/2."""
    return dimension * (dimension + 1) // 2


def expected_rank(dimension: int, num_vertices: int) -> int:
    return dimension * num_vertices - trivial_dof(dimension)


def internal_dof(matrix_rank: int, num_vertices: int, dimension: int) -> int:
    return max(0, dimension * num_vertices - trivial_dof(dimension) - matrix_rank)


@dataclass
class RigidityMatrix:
    """
    Rigidity matrix of a framework.

    Attributes:
        matrix: Array of shape (num_edges, dimension * num_vertices).
        edges: Edge order of the rows.
        dimension: Embedding dimension d.
        num_vertices: Number of vertices; vertex i owns columns d*i .. d*i+d-1.
    """

    matrix: np.ndarray
    edges: Tuple[Edge, ...]
    dimension: int
    num_vertices: int

    @property
    def shape(self) -> Tuple[int, int]:
        return self.matrix.shape

    def column_labels(self) -> List[str]:
        names = AXIS_NAMES if self.dimension <= len(AXIS_NAMES) else None
        labels = []
        for v in range(self.num_vertices):
            for k in range(self.dimension):
                axis = names[k] if names else f"x{k}"
                labels.append(f"{v}.{axis}")
        return labels

    def row_labels(self) -> List[str]:
        return [f"{e.source}-{e.target}" for e in self.edges]

    def rank(self, tolerance: float = 1e-10) -> int:
        return rank(self.matrix, tolerance)

    def null_space(self, tolerance: float = 1e-10) -> np.ndarray:
        return null_space(self.matrix, tolerance)


def compute_rigidity_matrix(
    graph: LinkageGraph,
    coordinates: Coordinates,
    dimension: int = 3,
) -> RigidityMatrix:
    """
    Compute the rigidity matrix for a framework.

    For edge (u, v) the row contains:
    - (p_u - p_v) at columns [d*u : d*u + d]
    - (p_v - p_u) at columns [d*v : d*v + d]

    Only the first ``dimension`` components of each position are used.

    Args:
        graph: Linkage graph.
        coordinates: Vertex positions.
        dimension: Embedding dimension.

    Returns:
        RigidityMatrix of shape (num_edges, dimension * num_vertices).

    Raises:
        MissingCoordinateError: If an edge endpoint has no position.
        InputError: If positions have fewer than ``dimension`` components.
    """
    if dimension < 1:
        raise InputError("dimension must be at least 1")

    n = graph.num_nodes
    R = np.zeros((graph.num_edges, dimension * n))
    if graph.num_edges and coordinates.dimension < dimension:
        raise InputError(
            f"Coordinates have dimension {coordinates.dimension}, need at least {dimension}"
        )

    for row, edge in enumerate(graph.edges):
        u, v = edge.source, edge.target
        diff = coordinates[u][:dimension] - coordinates[v][:dimension]
        R[row, dimension * u : dimension * u + dimension] = diff
        R[row, dimension * v : dimension * v + dimension] = -diff

    return RigidityMatrix(matrix=R, edges=graph.edges, dimension=dimension, num_vertices=n)


def is_infinitesimally_rigid(
    framework: Framework, dimension: int = 3, tolerance: float = 1e-10
) -> bool:
    R = compute_rigidity_matrix(framework.graph, framework.coordinates, dimension)
    return R.rank(tolerance) >= expected_rank(dimension, framework.graph.num_nodes)


def trivial_motions(
    coordinates: Coordinates,
    vertices: Iterable[int],
    dimension: int,
) -> np.ndarray:
    """
    Velocity fields of the rigid motions of ℝ^d.

    One translation per axis and one infinitesimal rotation per axis pair
    (i, j), which moves p to ``x_i e_j - x_j e_i``.

    Returns:
        Array of shape (d(d+1)/2, d * n), rows in the rigidity-matrix column order.
    """
    order = list(vertices)
    n = len(order)
    P = coordinates.as_matrix(order)[:, :dimension] if n else np.zeros((0, dimension))
    motions = []

    for axis in range(dimension):
        field_ = np.zeros((n, dimension))
        field_[:, axis] = 1.0
        motions.append(field_.reshape(-1))

    for i in range(dimension):
        for j in range(i + 1, dimension):
            field_ = np.zeros((n, dimension))
            field_[:, j] = P[:, i]
            field_[:, i] = -P[:, j]
            motions.append(field_.reshape(-1))

    return np.array(motions).reshape(len(motions), n * dimension)


@dataclass
class VertexDOF:
    """Local freedom of one vertex: d minus its number of bars, floored at 0."""

    vertex: int
    degree: int
    dof: int
    is_flexible: bool


def vertex_dofs(graph: LinkageGraph, dimension: int = 3) -> List[VertexDOF]:
    result = []
    for v in graph.vertices:
        degree = graph.degree(v)
        dof = max(0, dimension - degree)
        result.append(VertexDOF(vertex=v, degree=degree, dof=dof, is_flexible=dof > 0))
    return result


@dataclass
class RigidityMetrics:
    """
    Container for rigidity analysis results.

    Attributes:
        dimension: Embedding dimension used.
        rank: Rank of the rigidity matrix.
        expected_rank: d|V| - d(d+1)/2.
        trivial_dof: Number of rigid-body modes.
        internal_dof: Non-trivial infinitesimal flexes.
        is_rigid: Whether the framework is infinitesimally rigid.
        maxwell_count: |E| - expected rank (positive = over-constrained).
        mean_coordination: Average vertex degree.
        edge_density: Fraction of possible edges present.
        redundant_edges: Edges whose removal leaves the rank unchanged.
        num_motions: Dimension of the null space, trivial motions included.
    """

    dimension: int = 3
    rank: int = 0
    expected_rank: int = 0
    trivial_dof: int = 0
    internal_dof: int = 0
    is_rigid: bool = False
    maxwell_count: int = 0
    mean_coordination: float = 0.0
    edge_density: float = 0.0
    redundant_edges: List[Edge] = field(default_factory=list)
    num_motions: int = 0


class RigidityAnalyzer:
    """
    Analyzes infinitesimal rigidity of frameworks.

    Works in any dimension; 2 and 3 are the intended use.
    """

    def __init__(self, dimension: int = 3, config: Optional[EngineConfig] = None):
        """
        Initialize the rigidity analyzer.

        Args:
            dimension: Embedding dimension.
            config: Engine configuration (tolerances).
        """
        self.dimension = dimension
        self.config = config or EngineConfig()
        self.tolerance = self.config.tolerances.rank_tolerance
        self.rigid_body_modes = trivial_dof(dimension)

    def analyze(self, framework: Framework) -> RigidityMetrics:
        """
        Perform complete rigidity analysis on a framework.

        Args:
            framework: Framework to analyze.

        Returns:
            RigidityMetrics containing all analysis results.
        """
        graph = framework.graph
        d = self.dimension
        metrics = RigidityMetrics(dimension=d, trivial_dof=self.rigid_body_modes)

        if graph.num_nodes == 0:
            return metrics

        R = compute_rigidity_matrix(graph, framework.coordinates, d)
        r = R.rank(self.tolerance)
        n = graph.num_nodes
        m = graph.num_edges

        metrics.rank = r
        metrics.expected_rank = expected_rank(d, n)
        metrics.internal_dof = internal_dof(r, n, d)
        metrics.is_rigid = r >= metrics.expected_rank
        metrics.maxwell_count = m - metrics.expected_rank
        metrics.num_motions = d * n - r

        degrees = graph.get_degree_sequence()
        metrics.mean_coordination = float(np.mean(degrees))
        if n > 1:
            metrics.edge_density = m / (n * (n - 1) / 2)

        metrics.redundant_edges = self._find_redundant_edges(R, r)

        logger.debug(
            "rigidity d=%d: rank=%d expected=%d internal_dof=%d",
            d, r, metrics.expected_rank, metrics.internal_dof,
        )
        return metrics

    def _find_redundant_edges(self, R: RigidityMatrix, full_rank: int) -> List[Edge]:
        """
        Find redundant (over-constraining) edges.

        An edge is redundant if deleting its row does not lower the rank.
        """
        redundant = []
        for row, edge in enumerate(R.edges):
            reduced = np.delete(R.matrix, row, axis=0)
            if rank(reduced, self.tolerance) == full_rank:
                redundant.append(edge)
        return redundant

    def analyze_sequence(
        self, framework: Framework, snapshots: Iterable[Coordinates]
    ) -> List[RigidityMetrics]:
        """Analyze rigidity for each coordinate snapshot of a fold trace."""
        return [self.analyze(framework.with_coordinates(c)) for c in snapshots]


def count_internal_dof(framework: Framework, dimension: int = 3) -> int:
    """
    Convenience function to count internal degrees of freedom.

    Args:
        framework: Framework to analyze.
        dimension: Embedding dimension.

    Returns:
        Number of non-trivial infinitesimal flexes.
    """
    analyzer = RigidityAnalyzer(dimension=dimension)
    return analyzer.analyze(framework).internal_dof
