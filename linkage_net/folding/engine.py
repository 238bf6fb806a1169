"""
Length-preserving folds that lower the dimension of a framework.

Four kinds of fold are proposed:
- edge alignment: a bar pivots on a vertex it shares with another bar
  until the two are parallel or anti-parallel
- vertex swing: a leaf vertex swings around its only neighbour onto the
  line toward another vertex
- collinear vertex: a degree-2 vertex moves onto the line through its two
  neighbours, keeping its distance to the first one
- hinge fold: a rigid clique rotates about the bar it shares with another
  clique (Rodrigues' rotation)

A candidate is kept only if every bar keeps its length within tolerance
and the rank of the edge-vector matrix strictly drops, so repeated folding
always terminates.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

import networkx as nx
import numpy as np

from linkage_net.data.core import Coordinates, Edge, EdgeConstraint, Framework, LinkageGraph
from linkage_net.errors import ConstraintViolationError, DegenerateGeometryError, InputError
from linkage_net.folding.projector import EdgeViolation, compute_violations
from linkage_net.linalg.matrix_kernel import rank
from linkage_net.topology.matroid import maximal_cliques
from linkage_net.utils.config import EngineConfig

logger = logging.getLogger(__name__)

DEGENERATE_LENGTH = 1e-10


class FoldType(Enum):
    """Kinds of fold."""

    ALIGN_EDGE = "align_edge"
    SWING_VERTEX = "swing_vertex"
    COLLINEAR_VERTEX = "collinear_vertex"
    HINGE_FOLD = "hinge_fold"


class FoldState(Enum):
    UNFOLDED = "unfolded"
    MINIMAL = "minimal"


# =============================================================================
# ROTATION
# =============================================================================


def rotation_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    """
    Rodrigues' rotation matrix about ``axis`` by ``angle`` radians.

    R = I + sin(θ) K + (1 - cos(θ)) K², with K the cross-product matrix of
    the unit axis.

    Raises:
        DegenerateGeometryError: If the axis has (near) zero length.
    """
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm < DEGENERATE_LENGTH:
        raise DegenerateGeometryError("Rotation axis has zero length")
    kx, ky, kz = axis / norm
    K = np.array([[0.0, -kz, ky], [kz, 0.0, -kx], [-ky, kx, 0.0]])
    return np.eye(3) + math.sin(angle) * K + (1.0 - math.cos(angle)) * (K @ K)


def rotate_about_axis(
    points: np.ndarray, axis_start: np.ndarray, axis_end: np.ndarray, angle: float
) -> np.ndarray:
    """Rotate 3D points (rows) about the line through ``axis_start`` and ``axis_end``."""
    R = rotation_matrix(axis_end - axis_start, angle)
    return (np.atleast_2d(points) - axis_start) @ R.T + axis_start


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class RigidClique:
    """A maximal clique; rigid in dimension ``len(vertices) - 1``."""

    vertices: Tuple[int, ...]

    @property
    def dimension(self) -> int:
        return len(self.vertices) - 1


@dataclass(frozen=True)
class Hinge:
    """Two maximal cliques sharing exactly one bar, the rotation axis."""

    axis: Tuple[int, int]
    clique_a: RigidClique
    clique_b: RigidClique

    def moving_vertices(self, clique: RigidClique) -> Tuple[int, ...]:
        return tuple(v for v in clique.vertices if v not in self.axis)


@dataclass(frozen=True)
class FoldingOperation:
    """
    A proposed fold and everything needed to replay it.

    Attributes:
        fold_type: Kind of fold.
        description: Human-readable summary.
        resulting_coord_rank: Rank of the coordinate matrix after the fold.
        resulting_edge_rank: Rank of the edge-vector matrix after the fold.
        preserves_lengths: Every bar kept its length within tolerance.
        moved_edge: Bar that pivots (edge alignment).
        reference_edge: Bar it aligns with (edge alignment).
        anti_parallel: Align against the reference direction.
        vertex: Moving vertex (vertex swing, collinear vertex).
        toward: Vertex whose line the leaf swings onto (vertex swing).
        anchors: The two neighbours spanning the target line (collinear
            vertex); the first keeps its distance to ``vertex``.
        hinge: Hinge used (hinge fold).
        moving_vertices: Vertices rotated by the hinge fold.
        angle: Rotation angle in radians (hinge fold).
    """

    fold_type: FoldType
    description: str
    resulting_coord_rank: int
    resulting_edge_rank: int
    preserves_lengths: bool = True
    moved_edge: Optional[Edge] = None
    reference_edge: Optional[Edge] = None
    anti_parallel: bool = False
    vertex: Optional[int] = None
    toward: Optional[int] = None
    anchors: Tuple[int, ...] = ()
    hinge: Optional[Hinge] = None
    moving_vertices: Tuple[int, ...] = ()
    angle: float = 0.0

    @property
    def key(self) -> Tuple[FoldType, str, int]:
        return (self.fold_type, self.description, self.resulting_edge_rank)


@dataclass
class LengthCheck:
    valid: bool
    max_error: float
    violations: List[EdgeViolation] = field(default_factory=list)


@dataclass
class FoldingTrace:
    """
    Snapshots produced by repeated folding.

    ``snapshots[0]`` is the starting position and ``snapshots[i + 1]`` the
    result of ``operations[i]``; callers keep it as their undo history.
    """

    snapshots: List[Coordinates] = field(default_factory=list)
    operations: List[FoldingOperation] = field(default_factory=list)
    edge_ranks: List[int] = field(default_factory=list)

    @property
    def final(self) -> Coordinates:
        return self.snapshots[-1]

    @property
    def steps(self) -> List[str]:
        return [
            f"{op.description} → rank {r}" for op, r in zip(self.operations, self.edge_ranks[1:])
        ]


# =============================================================================
# ENGINE
# =============================================================================


class FoldingEngine:
    """
    Proposes, verifies and applies dimension-lowering folds.

    Args:
        config: Engine configuration (tolerances and fold settings).
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.rank_tolerance = self.config.tolerances.rank_tolerance
        self.length_tolerance = self.config.tolerances.length_tolerance

    # -------------------------------------------------------------------------
    # Measurements
    # -------------------------------------------------------------------------

    def coordinate_rank(self, coordinates: Coordinates, graph: Optional[LinkageGraph] = None) -> int:
        order = list(graph.vertices) if graph is not None else None
        return rank(coordinates.as_matrix(order), self.rank_tolerance)

    def edge_vector_rank(self, framework: Framework, coordinates: Optional[Coordinates] = None) -> int:
        if coordinates is not None:
            framework = framework.with_coordinates(coordinates)
        return rank(framework.edge_vectors(), self.rank_tolerance)

    def check_edge_lengths(
        self,
        framework: Framework,
        coordinates: Coordinates,
        constraints: Optional[Sequence[EdgeConstraint]] = None,
    ) -> LengthCheck:
        """
        Compare every bar length in ``coordinates`` with its target.

        Targets are ``constraints`` when given, otherwise the current
        lengths in ``framework``. An error exactly at the tolerance counts
        as preserved.
        """
        if constraints is None:
            constraints = framework.edge_constraints()
        violations = compute_violations(coordinates, constraints)
        broken = [v for v in violations if v.error > self.length_tolerance]
        max_error = max((v.error for v in violations), default=0.0)
        return LengthCheck(valid=not broken, max_error=max_error, violations=broken)

    # -------------------------------------------------------------------------
    # Edge alignment
    # -------------------------------------------------------------------------

    def _hanging_side(self, nx_graph: nx.Graph, edge: Edge, free: int) -> Set[int]:
        """Vertices that follow ``free`` when ``edge`` is a bridge, else just ``free``."""
        if not self.config.folding.propagate_bridges:
            return {free}
        nx_graph.remove_edge(edge.source, edge.target)
        try:
            side = nx.node_connected_component(nx_graph, free)
        finally:
            nx_graph.add_edge(edge.source, edge.target)
        pivot = edge.other(free)
        return {free} if pivot in side else set(side)

    def _replay_alignment(
        self,
        framework: Framework,
        moved: Edge,
        reference: Edge,
        anti_parallel: bool,
        nx_graph: Optional[nx.Graph] = None,
    ) -> Coordinates:
        coords = framework.coordinates
        pivot = moved.shared_vertex(reference)
        if pivot is None:
            raise InputError(f"Edges {moved.endpoints} and {reference.endpoints} share no vertex")
        free = moved.other(pivot)

        ref_vec = framework.edge_vector(reference)
        ref_len = np.linalg.norm(ref_vec)
        if ref_len < DEGENERATE_LENGTH:
            raise DegenerateGeometryError(f"Reference edge {reference.endpoints} has zero length")

        length = np.linalg.norm(framework.edge_vector(moved))
        direction = ref_vec / ref_len * (-1.0 if anti_parallel else 1.0)
        # edge vectors point source -> target
        if free == moved.source:
            direction = -direction
        delta = coords[pivot] + direction * length - coords[free]

        if nx_graph is None:
            nx_graph = framework.graph.to_networkx()
        side = self._hanging_side(nx_graph, moved, free)
        return coords.replace({v: coords[v] + delta for v in side})

    def edge_alignment_operations(
        self, framework: Framework, constraints: Optional[Sequence[EdgeConstraint]] = None
    ) -> List[FoldingOperation]:
        """Align each bar with every other bar it touches, in both orientations."""
        framework.require_coordinates()
        graph = framework.graph
        current_edge_rank = self.edge_vector_rank(framework)
        nx_graph = graph.to_networkx()
        operations = []

        for reference in graph.edges:
            for moved in graph.edges:
                if moved is reference or moved.shared_vertex(reference) is None:
                    continue
                for anti_parallel in (False, True):
                    try:
                        new_coords = self._replay_alignment(
                            framework, moved, reference, anti_parallel, nx_graph
                        )
                    except DegenerateGeometryError as exc:
                        logger.debug("skipping alignment: %s", exc)
                        continue
                    verb = "back along" if anti_parallel else "to align with"
                    description = (
                        f"Fold {framework.edge_label(moved)} {verb} {framework.edge_label(reference)}"
                    )
                    op = self._accept(
                        framework,
                        new_coords,
                        current_edge_rank,
                        constraints=constraints,
                        fold_type=FoldType.ALIGN_EDGE,
                        description=description,
                        moved_edge=moved,
                        reference_edge=reference,
                        anti_parallel=anti_parallel,
                    )
                    if op is not None:
                        operations.append(op)
        return operations

    # -------------------------------------------------------------------------
    # Vertex swing
    # -------------------------------------------------------------------------

    def _replay_swing(self, framework: Framework, vertex: int, toward: int) -> Coordinates:
        coords = framework.coordinates
        (neighbor,) = framework.graph.neighbors(vertex)
        direction = coords[toward] - coords[neighbor]
        norm = np.linalg.norm(direction)
        if norm < DEGENERATE_LENGTH:
            raise DegenerateGeometryError(f"Vertex {toward} coincides with {neighbor}")
        length = np.linalg.norm(coords[vertex] - coords[neighbor])
        return coords.replace({vertex: coords[neighbor] + direction / norm * length})

    def vertex_swing_operations(
        self, framework: Framework, constraints: Optional[Sequence[EdgeConstraint]] = None
    ) -> List[FoldingOperation]:
        """Swing every leaf vertex onto the line from its neighbour to another vertex."""
        framework.require_coordinates()
        graph = framework.graph
        current_edge_rank = self.edge_vector_rank(framework)
        operations = []

        for vertex in graph.vertices:
            if graph.degree(vertex) != 1:
                continue
            (neighbor,) = graph.neighbors(vertex)
            for toward in graph.vertices:
                if toward in (vertex, neighbor):
                    continue
                try:
                    new_coords = self._replay_swing(framework, vertex, toward)
                except DegenerateGeometryError as exc:
                    logger.debug("skipping swing: %s", exc)
                    continue
                op = self._accept(
                    framework,
                    new_coords,
                    current_edge_rank,
                    constraints=constraints,
                    fold_type=FoldType.SWING_VERTEX,
                    description=f"Move {framework.label(vertex)} toward {framework.label(toward)} line",
                    vertex=vertex,
                    toward=toward,
                )
                if op is not None:
                    operations.append(op)
        return operations

    # -------------------------------------------------------------------------
    # Collinear vertex
    # -------------------------------------------------------------------------

    def _replay_collinear(self, framework: Framework, vertex: int, first: int, second: int) -> Coordinates:
        coords = framework.coordinates
        direction = coords[second] - coords[first]
        norm = np.linalg.norm(direction)
        if norm < DEGENERATE_LENGTH:
            raise DegenerateGeometryError(f"Vertex {first} coincides with {second}")
        length = np.linalg.norm(coords[vertex] - coords[first])
        return coords.replace({vertex: coords[first] + direction / norm * length})

    def collinear_vertex_operations(
        self, framework: Framework, constraints: Optional[Sequence[EdgeConstraint]] = None
    ) -> List[FoldingOperation]:
        """Move every degree-2 vertex onto the line through its two neighbours."""
        framework.require_coordinates()
        graph = framework.graph
        current_edge_rank = self.edge_vector_rank(framework)
        operations = []

        for vertex in graph.vertices:
            if graph.degree(vertex) != 2:
                continue
            pair = sorted(graph.neighbors(vertex))
            for first, second in (pair, pair[::-1]):
                try:
                    new_coords = self._replay_collinear(framework, vertex, first, second)
                except DegenerateGeometryError as exc:
                    logger.debug("skipping collinear move: %s", exc)
                    continue
                description = (
                    f"Align {framework.label(vertex)} with "
                    f"{framework.label(first)}-{framework.label(second)}"
                )
                op = self._accept(
                    framework,
                    new_coords,
                    current_edge_rank,
                    constraints=constraints,
                    fold_type=FoldType.COLLINEAR_VERTEX,
                    description=description,
                    vertex=vertex,
                    anchors=(first, second),
                )
                if op is not None:
                    operations.append(op)
        return operations

    # -------------------------------------------------------------------------
    # Hinge folds
    # -------------------------------------------------------------------------

    def find_hinges(self, graph: LinkageGraph) -> List[Hinge]:
        """Pairs of maximal cliques sharing exactly two vertices joined by a bar."""
        cliques = [RigidClique(c) for c in maximal_cliques(graph, min_size=3)]
        hinges = []
        for i in range(len(cliques)):
            for j in range(i + 1, len(cliques)):
                shared = sorted(set(cliques[i].vertices) & set(cliques[j].vertices))
                if len(shared) == 2 and graph.has_edge(shared[0], shared[1]):
                    hinges.append(Hinge((shared[0], shared[1]), cliques[i], cliques[j]))
        return hinges

    @staticmethod
    def is_hinge_fold_valid(graph: LinkageGraph, hinge: Hinge, moving: Sequence[int]) -> bool:
        """Every neighbour of a moving vertex must move too or lie on the axis."""
        allowed: FrozenSet[int] = frozenset(moving) | frozenset(hinge.axis)
        return all(graph.neighbors(v) <= allowed for v in moving)

    def _replay_hinge(
        self, framework: Framework, hinge: Hinge, moving: Sequence[int], angle: float
    ) -> Coordinates:
        coords = framework.coordinates
        d = coords.dimension
        if d > 3:
            raise DegenerateGeometryError(f"Hinge rotation is undefined in dimension {d}")

        lifted = coords.padded(3) if d < 3 else coords
        a, b = hinge.axis
        points = np.vstack([lifted[v] for v in moving])
        rotated = rotate_about_axis(points, lifted[a], lifted[b], angle)

        if d < 3 and np.max(np.abs(rotated[:, d:])) > self.length_tolerance:
            raise DegenerateGeometryError(f"Rotation leaves the {d}D subspace")
        return coords.replace({v: rotated[i, :d] for i, v in enumerate(moving)})

    def hinge_fold_operations(
        self, framework: Framework, constraints: Optional[Sequence[EdgeConstraint]] = None
    ) -> List[FoldingOperation]:
        """Rotate one clique of every hinge by each configured angle."""
        framework.require_coordinates()
        if framework.dimension > 3:
            logger.debug("no hinge folds in dimension %d", framework.dimension)
            return []

        graph = framework.graph
        settings = self.config.folding
        hinges = self.find_hinges(graph)
        if not hinges:
            return []

        current_edge_rank = self.edge_vector_rank(framework)
        angles = list(settings.hinge_angles_deg)
        if settings.try_negative_angles:
            angles += [-a for a in settings.hinge_angles_deg]

        operations = []
        for hinge in hinges:
            a, b = hinge.axis
            if np.linalg.norm(framework.coordinates[b] - framework.coordinates[a]) < DEGENERATE_LENGTH:
                logger.debug("hinge %s has a degenerate axis", hinge.axis)
                continue

            sides = [hinge.clique_b, hinge.clique_a] if settings.rotate_both_cliques else [hinge.clique_b]
            for clique in sides:
                moving = hinge.moving_vertices(clique)
                if not self.is_hinge_fold_valid(graph, hinge, moving):
                    logger.debug("hinge %s: clique %s is held by outside bars", hinge.axis, clique.vertices)
                    continue
                for degrees in angles:
                    try:
                        new_coords = self._replay_hinge(framework, hinge, moving, math.radians(degrees))
                    except DegenerateGeometryError as exc:
                        logger.debug("skipping hinge fold: %s", exc)
                        continue
                    side = ",".join(framework.label(v) for v in moving)
                    description = (
                        f"Fold at hinge [{framework.label(a)}-{framework.label(b)}] "
                        f"by {degrees:g}° moving {side}"
                    )
                    op = self._accept(
                        framework,
                        new_coords,
                        current_edge_rank,
                        constraints=constraints,
                        fold_type=FoldType.HINGE_FOLD,
                        description=description,
                        hinge=hinge,
                        moving_vertices=moving,
                        angle=math.radians(degrees),
                    )
                    if op is not None:
                        operations.append(op)
        return operations

    # -------------------------------------------------------------------------
    # Candidate handling
    # -------------------------------------------------------------------------

    def _accept(
        self,
        framework: Framework,
        new_coords: Coordinates,
        current_edge_rank: int,
        constraints: Optional[Sequence[EdgeConstraint]] = None,
        **params,
    ) -> Optional[FoldingOperation]:
        check = self.check_edge_lengths(framework, new_coords, constraints)
        if not check.valid:
            logger.debug("%s: breaks %d bar(s)", params["description"], len(check.violations))
            return None
        edge_rank = self.edge_vector_rank(framework, new_coords)
        if edge_rank >= current_edge_rank:
            return None
        return FoldingOperation(
            resulting_coord_rank=self.coordinate_rank(new_coords, framework.graph),
            resulting_edge_rank=edge_rank,
            preserves_lengths=True,
            **params,
        )

    def folding_operations(
        self, framework: Framework, constraints: Optional[Sequence[EdgeConstraint]] = None
    ) -> List[FoldingOperation]:
        """
        Every valid fold, best first.

        Bar lengths are checked against ``constraints`` when given, otherwise
        against the lengths in ``framework``. Duplicates (same type,
        description and resulting edge rank) are dropped; the rest are
        ordered by resulting edge rank, then by coordinate rank.
        """
        candidates = (
            self.edge_alignment_operations(framework, constraints)
            + self.vertex_swing_operations(framework, constraints)
            + self.collinear_vertex_operations(framework, constraints)
            + self.hinge_fold_operations(framework, constraints)
        )
        seen = set()
        unique = []
        for op in candidates:
            if op.key in seen:
                continue
            seen.add(op.key)
            unique.append(op)
        unique.sort(key=lambda op: (op.resulting_edge_rank, op.resulting_coord_rank))
        logger.debug("folding_operations: %d candidates, %d unique", len(candidates), len(unique))
        return unique

    def state(self, framework: Framework) -> FoldState:
        if self.edge_vector_rank(framework) <= 1 or not self.folding_operations(framework):
            return FoldState.MINIMAL
        return FoldState.UNFOLDED

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def replay(self, framework: Framework, operation: FoldingOperation) -> Coordinates:
        """Recompute the coordinates an operation leads to, without verification."""
        if operation.fold_type is FoldType.ALIGN_EDGE:
            return self._replay_alignment(
                framework, operation.moved_edge, operation.reference_edge, operation.anti_parallel
            )
        if operation.fold_type is FoldType.SWING_VERTEX:
            return self._replay_swing(framework, operation.vertex, operation.toward)
        if operation.fold_type is FoldType.COLLINEAR_VERTEX:
            return self._replay_collinear(framework, operation.vertex, *operation.anchors)
        return self._replay_hinge(framework, operation.hinge, operation.moving_vertices, operation.angle)

    def apply(
        self,
        framework: Framework,
        operation: FoldingOperation,
        constraints: Optional[Sequence[EdgeConstraint]] = None,
    ) -> Coordinates:
        """
        Apply a fold and verify the result.

        Lengths and both ranks are recomputed rather than taken from the
        operation. Lengths are compared with ``constraints`` when given,
        otherwise with the lengths in ``framework``.

        Returns:
            New coordinate snapshot; ``framework`` is unchanged.

        Raises:
            ConstraintViolationError: If a bar length breaks or the ranks
                differ from the ones the operation declared.
        """
        new_coords = self.replay(framework, operation)

        check = self.check_edge_lengths(framework, new_coords, constraints)
        if not check.valid:
            raise ConstraintViolationError(
                f"{operation.description} changes {len(check.violations)} bar length(s)",
                check.violations,
            )

        edge_rank = self.edge_vector_rank(framework, new_coords)
        coord_rank = self.coordinate_rank(new_coords, framework.graph)
        if (edge_rank, coord_rank) != (operation.resulting_edge_rank, operation.resulting_coord_rank):
            raise ConstraintViolationError(
                f"{operation.description}: ranks ({edge_rank}, {coord_rank}) differ from declared "
                f"({operation.resulting_edge_rank}, {operation.resulting_coord_rank})"
            )

        logger.info("%s → edge rank %d", operation.description, edge_rank)
        return new_coords

    def fold_to_minimal(self, framework: Framework, max_steps: Optional[int] = None) -> FoldingTrace:
        """
        Greedily apply the best fold until none remains.

        Stops when the edge-vector rank reaches 1, no fold is available or
        ``max_steps`` folds have been applied. Every fold is checked against
        the bar lengths of the starting position, so errors cannot build up
        across steps.
        """
        max_steps = self.config.folding.max_fold_steps if max_steps is None else max_steps
        framework.require_coordinates()
        reference = framework.edge_constraints()

        trace = FoldingTrace(
            snapshots=[framework.coordinates],
            edge_ranks=[self.edge_vector_rank(framework)],
        )
        current = framework

        for _ in range(max_steps):
            if trace.edge_ranks[-1] <= 1:
                break
            operations = self.folding_operations(current, reference)
            if not operations:
                break
            best = operations[0]
            new_coords = self.apply(current, best, reference)
            current = current.with_coordinates(new_coords)
            trace.snapshots.append(new_coords)
            trace.operations.append(best)
            trace.edge_ranks.append(best.resulting_edge_rank)

        logger.info(
            "fold_to_minimal: %d fold(s), edge rank %d → %d",
            len(trace.operations), trace.edge_ranks[0], trace.edge_ranks[-1],
        )
        return trace


def compute_edge_vectors(framework: Framework) -> Dict[Edge, np.ndarray]:
    """Edge vectors keyed by edge, target minus source."""
    return {e: framework.edge_vector(e) for e in framework.graph.edges}
