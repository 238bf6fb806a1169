"""
Core data structures for representing linkages.

This module defines the fundamental representations used throughout the
engine: edges, the immutable linkage graph, coordinate snapshots, the
attribute side table and the framework that binds them together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np

from linkage_net.errors import InputError, MissingCoordinateError

VertexId = int


@dataclass(frozen=True)
class Edge:
    """
    A bar between two vertices.

    Orientation matters only for edge vectors (target minus source); two
    edges with the same unordered endpoints are the same constraint.
    """

    source: VertexId
    target: VertexId

    @property
    def key(self) -> FrozenSet[VertexId]:
        return frozenset((self.source, self.target))

    @property
    def endpoints(self) -> Tuple[VertexId, VertexId]:
        return (self.source, self.target)

    def other(self, vertex: VertexId) -> VertexId:
        """Return the endpoint opposite to ``vertex``."""
        if vertex == self.source:
            return self.target
        if vertex == self.target:
            return self.source
        raise InputError(f"Vertex {vertex} is not an endpoint of {self}")

    def shared_vertex(self, other: Edge) -> Optional[VertexId]:
        """Return the vertex shared with ``other``, if any."""
        common = self.key & other.key
        if len(common) == 1:
            return next(iter(common))
        return None

    def __contains__(self, vertex: object) -> bool:
        return vertex == self.source or vertex == self.target


@dataclass(frozen=True)
class VertexAttributes:
    """Display attributes of a vertex, kept outside the graph."""

    label: str
    color: Optional[str] = None


AttributeTable = Mapping[VertexId, VertexAttributes]


class LinkageGraph:
    """
    Immutable undirected simple graph of a linkage.

    Vertices are the integers ``0 .. num_nodes - 1``. Every derived structure
    is computed on construction; the graph is never mutated afterwards.
    """

    __slots__ = ("_num_nodes", "_edges", "_neighbors", "_adjacency_masks", "_edge_masks")

    def __init__(
        self,
        num_nodes: int = 0,
        edges: Optional[Iterable[Union[Edge, Tuple[int, int]]]] = None,
    ):
        if num_nodes < 0:
            raise InputError("num_nodes must be non-negative")

        normalized: List[Edge] = []
        seen = set()
        for item in edges or []:
            edge = item if isinstance(item, Edge) else Edge(int(item[0]), int(item[1]))
            if not (0 <= edge.source < num_nodes and 0 <= edge.target < num_nodes):
                raise InputError(f"Edge {edge.endpoints} references a vertex out of bounds")
            if edge.source == edge.target:
                raise InputError(f"Self-loop on vertex {edge.source}")
            if edge.key in seen:
                raise InputError(f"Duplicate edge {edge.endpoints}")
            seen.add(edge.key)
            normalized.append(edge)

        neighbors: List[set] = [set() for _ in range(num_nodes)]
        masks = [0] * num_nodes
        for edge in normalized:
            neighbors[edge.source].add(edge.target)
            neighbors[edge.target].add(edge.source)
            masks[edge.source] |= 1 << edge.target
            masks[edge.target] |= 1 << edge.source

        self._num_nodes = num_nodes
        self._edges = tuple(normalized)
        self._neighbors = tuple(frozenset(n) for n in neighbors)
        self._adjacency_masks = tuple(masks)
        self._edge_masks = tuple((1 << e.source) | (1 << e.target) for e in normalized)

    @property
    def num_nodes(self) -> int:
        return self._num_nodes

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @property
    def vertices(self) -> range:
        return range(self._num_nodes)

    @property
    def adjacency_masks(self) -> Tuple[int, ...]:
        """Bitmask of neighbors for every vertex."""
        return self._adjacency_masks

    @property
    def edge_masks(self) -> Tuple[int, ...]:
        """Bitmask of the two endpoints for every edge."""
        return self._edge_masks

    def neighbors(self, vertex: VertexId) -> FrozenSet[VertexId]:
        return self._neighbors[vertex]

    def degree(self, vertex: VertexId) -> int:
        return len(self._neighbors[vertex])

    def max_degree(self) -> int:
        return max((len(n) for n in self._neighbors), default=0)

    def has_edge(self, u: VertexId, v: VertexId) -> bool:
        return 0 <= u < self._num_nodes and v in self._neighbors[u]

    def get_degree_sequence(self) -> np.ndarray:
        """Get the degree sequence of the graph."""
        return np.array([len(n) for n in self._neighbors], dtype=float)

    def induced_edge_count(self, vertex_mask: int) -> int:
        """Number of edges with both endpoints inside ``vertex_mask``."""
        return sum(1 for m in self._edge_masks if m & vertex_mask == m)

    def induced_edges(self, vertex_mask: int) -> List[Edge]:
        return [e for e, m in zip(self._edges, self._edge_masks) if m & vertex_mask == m]

    def to_networkx(self) -> nx.Graph:
        """Convert to NetworkX graph."""
        G = nx.Graph()
        G.add_nodes_from(self.vertices)
        G.add_edges_from(e.endpoints for e in self._edges)
        return G

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinkageGraph):
            return NotImplemented
        return self._num_nodes == other._num_nodes and {e.key for e in self._edges} == {
            e.key for e in other._edges
        }

    def __hash__(self) -> int:
        return hash((self._num_nodes, frozenset(e.key for e in self._edges)))

    def __repr__(self) -> str:
        return f"LinkageGraph(num_nodes={self._num_nodes}, num_edges={len(self._edges)})"


class Coordinates(Mapping[VertexId, np.ndarray]):
    """
    Immutable snapshot of vertex positions.

    Every vector has the same dimension and is stored read-only. Looking up a
    vertex without a position raises ``MissingCoordinateError``; nothing is
    ever filled with zeros.
    """

    __slots__ = ("_positions", "_dimension")

    def __init__(
        self,
        positions: Mapping[VertexId, Sequence[float]],
        dimension: Optional[int] = None,
    ):
        stored: Dict[VertexId, np.ndarray] = {}
        for vertex, vector in positions.items():
            arr = np.array(vector, dtype=float).reshape(-1)
            if dimension is None:
                dimension = arr.shape[0]
            if arr.shape[0] != dimension:
                raise InputError(
                    f"Coordinate of vertex {vertex} has dimension {arr.shape[0]}, expected {dimension}"
                )
            if not np.all(np.isfinite(arr)):
                raise InputError(f"Coordinate of vertex {vertex} is not finite")
            arr.setflags(write=False)
            stored[int(vertex)] = arr
        self._positions = stored
        self._dimension = dimension or 0

    @classmethod
    def from_matrix(cls, matrix: Union[np.ndarray, Sequence[Sequence[float]]]) -> Coordinates:
        """Build coordinates from an (n, d) array; row i is vertex i."""
        arr = np.atleast_2d(np.asarray(matrix, dtype=float))
        if arr.size == 0:
            return cls({}, dimension=arr.shape[1] if arr.ndim == 2 else 0)
        return cls({i: row for i, row in enumerate(arr)}, dimension=arr.shape[1])

    @property
    def dimension(self) -> int:
        return self._dimension

    def __getitem__(self, vertex: VertexId) -> np.ndarray:
        try:
            return self._positions[vertex]
        except KeyError:
            raise MissingCoordinateError(vertex) from None

    def __iter__(self) -> Iterator[VertexId]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coordinates):
            return NotImplemented
        if self._positions.keys() != other._positions.keys():
            return False
        return all(np.array_equal(v, other._positions[k]) for k, v in self._positions.items())

    __hash__ = None  # type: ignore[assignment]

    def require(self, vertices: Iterable[VertexId]) -> None:
        """Raise ``MissingCoordinateError`` for the first vertex without a position."""
        for vertex in vertices:
            if vertex not in self._positions:
                raise MissingCoordinateError(vertex)

    def as_matrix(self, order: Optional[Iterable[VertexId]] = None) -> np.ndarray:
        """Stack positions into an (n, d) array following ``order``."""
        if order is None:
            order = sorted(self._positions)
        rows = [self[v] for v in order]
        if not rows:
            return np.zeros((0, self._dimension))
        return np.vstack(rows)

    def replace(self, updates: Mapping[VertexId, Sequence[float]]) -> Coordinates:
        """Return a new snapshot with ``updates`` applied."""
        merged: Dict[VertexId, Sequence[float]] = dict(self._positions)
        merged.update(updates)
        return Coordinates(merged, dimension=self._dimension)

    def padded(self, dimension: int) -> Coordinates:
        """Return a copy embedded in a higher dimension with zero padding."""
        if dimension < self._dimension:
            raise InputError("Cannot pad to a lower dimension")
        return Coordinates(
            {v: np.concatenate([p, np.zeros(dimension - self._dimension)]) for v, p in self._positions.items()},
            dimension=dimension,
        )

    def allclose(self, other: Coordinates, atol: float = 1e-9) -> bool:
        if self._positions.keys() != other._positions.keys():
            return False
        return all(np.allclose(v, other._positions[k], atol=atol) for k, v in self._positions.items())

    def to_dict(self) -> Dict[VertexId, List[float]]:
        return {v: p.tolist() for v, p in self._positions.items()}

    def __repr__(self) -> str:
        return f"Coordinates(n={len(self._positions)}, dimension={self._dimension})"


@dataclass(frozen=True)
class EdgeConstraint:
    """Target length of a single edge."""

    source: VertexId
    target: VertexId
    target_length: float


@dataclass(frozen=True)
class Framework:
    """
    A linkage graph together with a coordinate snapshot.

    Attributes:
        graph: Immutable linkage graph.
        coordinates: Vertex positions.
        attributes: Optional display attributes keyed by vertex id.
    """

    graph: LinkageGraph
    coordinates: Coordinates
    attributes: AttributeTable = field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return self.coordinates.dimension

    def label(self, vertex: VertexId) -> str:
        attrs = self.attributes.get(vertex)
        return attrs.label if attrs is not None else str(vertex)

    def edge_label(self, edge: Edge) -> str:
        return f"{self.label(edge.source)}-{self.label(edge.target)}"

    def require_coordinates(self) -> None:
        self.coordinates.require(self.graph.vertices)

    def edge_vector(self, edge: Edge) -> np.ndarray:
        return self.coordinates[edge.target] - self.coordinates[edge.source]

    def edge_vectors(self) -> np.ndarray:
        """Edge vectors stacked in edge order, shape (m, d)."""
        if not self.graph.edges:
            return np.zeros((0, self.dimension))
        return np.vstack([self.edge_vector(e) for e in self.graph.edges])

    def edge_lengths(self) -> np.ndarray:
        return np.linalg.norm(self.edge_vectors(), axis=1)

    def edge_constraints(self) -> List[EdgeConstraint]:
        """Constraints that hold every edge at its current length."""
        return [
            EdgeConstraint(e.source, e.target, float(length))
            for e, length in zip(self.graph.edges, self.edge_lengths())
        ]

    def with_coordinates(self, coordinates: Coordinates) -> Framework:
        return Framework(self.graph, coordinates, self.attributes)


def label_table(labels: Sequence[str]) -> Dict[VertexId, VertexAttributes]:
    """Build an attribute table from labels given in vertex order."""
    return {i: VertexAttributes(label=str(lab)) for i, lab in enumerate(labels)}
