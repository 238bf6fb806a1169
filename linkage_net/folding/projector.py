"""
Iterative projection of positions onto edge-length constraints.

A FABRIK / position-based-dynamics style relaxation: every sweep visits the
constraints in order and moves the endpoints of each violated bar along the
bar until its length matches. Pinned vertices never move.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional, Sequence

import numpy as np
from scipy import linalg

from linkage_net.data.core import Coordinates, EdgeConstraint
from linkage_net.errors import DegenerateGeometryError
from linkage_net.linalg.matrix_kernel import null_space
from linkage_net.utils.config import ProjectionConfig

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 0.01
ERROR_THRESHOLD = 0.05


@dataclass
class EdgeViolation:
    """
    Length error of one constraint.

    Attributes:
        edge_id: Identifier of the constraint (``e{index}``).
        source: Source vertex.
        target: Target vertex.
        current_length: Measured length.
        target_length: Required length.
        error: Absolute difference.
        relative_error: ``error / target_length`` (``error`` for zero targets).
    """

    edge_id: str
    source: int
    target: int
    current_length: float
    target_length: float
    error: float
    relative_error: float

    @property
    def severity(self) -> str:
        if self.relative_error > ERROR_THRESHOLD:
            return "error"
        if self.relative_error > WARNING_THRESHOLD:
            return "warning"
        return "ok"


@dataclass
class ProjectionResult:
    positions: Coordinates
    violations: List[EdgeViolation] = field(default_factory=list)
    total_violation: float = 0.0
    converged: bool = False
    iterations: int = 0

    @property
    def max_error(self) -> float:
        return max((v.error for v in self.violations), default=0.0)


def compute_edge_constraints(
    coordinates: Coordinates, edges: Sequence
) -> List[EdgeConstraint]:
    """Constraints holding each ``(source, target)`` pair at its current distance."""
    constraints = []
    for edge in edges:
        source, target = (edge.source, edge.target) if hasattr(edge, "source") else edge
        length = float(np.linalg.norm(coordinates[target] - coordinates[source]))
        constraints.append(EdgeConstraint(source, target, length))
    return constraints


def compute_violations(
    coordinates: Coordinates, constraints: Sequence[EdgeConstraint]
) -> List[EdgeViolation]:
    violations = []
    for i, c in enumerate(constraints):
        current = float(np.linalg.norm(coordinates[c.target] - coordinates[c.source]))
        error = abs(current - c.target_length)
        relative = error / c.target_length if c.target_length > 0 else error
        violations.append(
            EdgeViolation(
                edge_id=f"e{i}",
                source=c.source,
                target=c.target,
                current_length=current,
                target_length=c.target_length,
                error=error,
                relative_error=relative,
            )
        )
    return violations


def project_to_constraints(
    coordinates: Coordinates,
    constraints: Sequence[EdgeConstraint],
    iterations: Optional[int] = None,
    tolerance: Optional[float] = None,
    pinned: Collection[int] = (),
    relaxation_factor: Optional[float] = None,
    config: Optional[ProjectionConfig] = None,
) -> ProjectionResult:
    """
    Relax positions toward the constraint lengths.

    For each bar with error ``e = current - target`` outside ``tolerance``
    the correction ``dir(source -> target) * e * relaxation_factor`` moves
    the source forward and the target back. If one endpoint is pinned the
    other takes twice the correction; if both are pinned the bar is
    skipped. Iteration stops once the summed absolute error of a sweep is
    below ``tolerance * len(constraints)``.

    Args:
        coordinates: Starting positions (left untouched).
        constraints: Edge-length constraints.
        iterations: Maximum number of sweeps.
        tolerance: Per-bar error accepted as satisfied.
        pinned: Vertices that must not move.
        relaxation_factor: Fraction of the error corrected per endpoint.
        config: Defaults for the unspecified arguments.

    Returns:
        ProjectionResult with the new positions and per-bar violations.
    """
    config = config or ProjectionConfig()
    iterations = config.iterations if iterations is None else iterations
    tolerance = config.tolerance if tolerance is None else tolerance
    relaxation_factor = config.relaxation_factor if relaxation_factor is None else relaxation_factor
    pinned = set(pinned)

    positions: Dict[int, np.ndarray] = {v: np.array(p, dtype=float) for v, p in coordinates.items()}
    for c in constraints:
        coordinates.require((c.source, c.target))

    converged = False
    total_violation = float("inf") if constraints else 0.0
    used = 0

    for sweep in range(iterations):
        used = sweep + 1
        total_violation = 0.0

        for c in constraints:
            source_pos = positions[c.source]
            target_pos = positions[c.target]
            delta = target_pos - source_pos
            current = float(np.linalg.norm(delta))
            error = current - c.target_length
            total_violation += abs(error)

            if abs(error) < tolerance or current == 0.0:
                continue

            correction = delta / current * error * relaxation_factor
            source_pinned = c.source in pinned
            target_pinned = c.target in pinned

            if source_pinned and target_pinned:
                continue
            elif source_pinned:
                target_pos -= 2 * correction
            elif target_pinned:
                source_pos += 2 * correction
            else:
                source_pos += correction
                target_pos -= correction

        if total_violation < tolerance * len(constraints):
            converged = True
            break

    if not constraints:
        converged = True

    result_coords = Coordinates(positions, dimension=coordinates.dimension)
    logger.debug(
        "project_to_constraints: %d sweeps, total violation %.3g, converged=%s",
        used, total_violation, converged,
    )
    return ProjectionResult(
        positions=result_coords,
        violations=compute_violations(result_coords, constraints),
        total_violation=total_violation,
        converged=converged,
        iterations=used,
    )


def flex_directions(
    vertex: int,
    coordinates: Coordinates,
    constraints: Sequence[EdgeConstraint],
    tolerance: float = 1e-10,
) -> List[np.ndarray]:
    """
    Orthonormal directions in which ``vertex`` can move to first order.

    Each incident bar fixes the distance to a neighbour, so admissible
    velocities are orthogonal to every bar direction: the null space of the
    matrix of unit bar directions. A vertex without bars can move along
    every axis.
    """
    position = coordinates[vertex]
    d = coordinates.dimension

    normals = []
    for c in constraints:
        if vertex not in (c.source, c.target):
            continue
        other = c.target if c.source == vertex else c.source
        normal = coordinates[other] - position
        norm = np.linalg.norm(normal)
        if norm < tolerance:
            continue
        normals.append(normal / norm)

    if not normals:
        return [row for row in np.eye(d)]

    basis = null_space(np.vstack(normals), tolerance)
    if basis.shape[0] == 0:
        return []
    return [column for column in linalg.orth(basis.T).T]


def nudge_with_constraints(
    vertex: int,
    direction: Sequence[float],
    amount: float,
    coordinates: Coordinates,
    constraints: Sequence[EdgeConstraint],
    pinned: Collection[int] = (),
    config: Optional[ProjectionConfig] = None,
) -> ProjectionResult:
    """
    Displace one vertex and project the result back onto the constraints.

    A pinned vertex is not displaced. The projection uses the tighter nudge
    iteration budget and tolerance.

    Raises:
        DegenerateGeometryError: If ``direction`` has zero length.
    """
    config = config or ProjectionConfig()
    direction = np.asarray(direction, dtype=float)
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        raise DegenerateGeometryError("Nudge direction has zero length")

    moved = coordinates
    if vertex not in pinned:
        moved = coordinates.replace({vertex: coordinates[vertex] + direction / norm * amount})

    return project_to_constraints(
        moved,
        constraints,
        iterations=config.nudge_iterations,
        tolerance=config.nudge_tolerance,
        pinned=pinned,
        config=config,
    )
