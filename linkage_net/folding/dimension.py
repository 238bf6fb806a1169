"""
Dimension-folding analysis.

Compares the dimension a framework currently spans with the lowest one its
graph could be folded into, and finds an infinitesimal motion that starts
such a fold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import linalg

from linkage_net.data.core import Framework
from linkage_net.topology.cayley_menger import affine_dimension
from linkage_net.topology.graph_rigidity import (
    compute_rigidity_matrix,
    expected_rank,
    internal_dof,
    trivial_motions,
)
from linkage_net.topology.matroid import compute_minimal_dimension, is_path_like
from linkage_net.utils.config import EngineConfig

logger = logging.getLogger(__name__)


@dataclass
class DimensionAnalysis:
    """
    Folding potential of a framework.

    Attributes:
        current_dimension: Affine dimension of the current positions.
        minimal_dimension: Combinatorial lower bound from the graph.
        dof_estimate: Estimate from rigidity in 2D / 3D and internal DOF.
        can_fold: ``minimal_dimension < current_dimension``.
        foldable_dimensions: How many dimensions could be folded away.
        internal_dof: Internal DOF of the rigidity matrix in the coordinate
            dimension (at most 3).
        is_flat: Positions span fewer than 3 dimensions.
        explanation: Human-readable summary.
    """

    current_dimension: int
    minimal_dimension: int
    dof_estimate: int
    can_fold: bool
    foldable_dimensions: int
    internal_dof: int
    is_flat: bool
    explanation: str

    def display(self) -> str:
        if self.can_fold:
            return f"{self.current_dimension}D → {self.minimal_dimension}D"
        return f"{self.current_dimension}D (min)"


def _rank_in(framework: Framework, dimension: int, tolerance: float) -> int:
    return compute_rigidity_matrix(framework.graph, framework.coordinates, dimension).rank(tolerance)


def estimate_minimal_dimension_from_dof(
    framework: Framework, config: Optional[EngineConfig] = None
) -> int:
    """
    Minimal dimension guessed from infinitesimal rigidity.

    Rigid in 2D gives 2; flexible in 3D with at least two internal DOF
    gives 1, with one gives 2; anything rigid in 3D but not in 2D needs 3.
    This is a heuristic and can disagree with ``compute_minimal_dimension``.
    """
    config = config or EngineConfig()
    tol = config.tolerances.rank_tolerance
    graph = framework.graph
    n, m = graph.num_nodes, graph.num_edges

    if n <= 1 or m == 0:
        return 0
    if n == 2 and m == 1:
        return 1

    coords_dim = framework.dimension
    rigid_2d = _rank_in(framework, 2, tol) >= expected_rank(2, n) if coords_dim >= 2 else False
    rank_3d = _rank_in(framework, 3, tol) if coords_dim >= 3 else 0
    rigid_3d = coords_dim >= 3 and rank_3d >= expected_rank(3, n)

    if not rigid_3d:
        if rigid_2d:
            return 2
        if is_path_like(graph):
            return 1
        dof = internal_dof(rank_3d, n, 3)
        if dof >= 2:
            return 1
        if dof >= 1:
            return 2
    if rigid_2d:
        return 2
    return 3


def analyze_dimension_folding(
    framework: Framework, config: Optional[EngineConfig] = None
) -> DimensionAnalysis:
    """Perform complete dimension folding analysis."""
    config = config or EngineConfig()
    graph = framework.graph

    if graph.num_nodes == 0 or len(framework.coordinates) == 0:
        return DimensionAnalysis(0, 0, 0, False, 0, 0, True, "Empty graph")

    framework.require_coordinates()
    current = affine_dimension(framework.coordinates, config=config)
    minimal = compute_minimal_dimension(graph, config.search)
    estimate = estimate_minimal_dimension_from_dof(framework, config)

    # counted in the coordinate dimension, capped at 3
    dof = 0
    dof_dimension = min(framework.dimension, 3)
    if dof_dimension >= 1:
        dof = internal_dof(
            _rank_in(framework, dof_dimension, config.tolerances.rank_tolerance),
            graph.num_nodes,
            dof_dimension,
        )

    can_fold = minimal < current
    foldable = max(0, current - minimal)

    if can_fold:
        if minimal == 1:
            explanation = (
                f"This linkage can fold from {current}D to a line (1D). "
                f"It has {dof} internal degree(s) of freedom."
            )
        elif minimal == 2:
            explanation = (
                f"This linkage can fold from {current}D to a plane (2D). "
                f"It has {dof} internal degree(s) of freedom."
            )
        else:
            explanation = f"This linkage can potentially fold to {minimal}D."
    elif dof == 0:
        explanation = f"This linkage is rigid in {current}D and cannot fold to a lower dimension."
    else:
        explanation = (
            f"This linkage has {dof} internal DOF but is already at its minimal dimension ({minimal}D)."
        )

    return DimensionAnalysis(
        current_dimension=current,
        minimal_dimension=minimal,
        dof_estimate=estimate,
        can_fold=can_fold,
        foldable_dimensions=foldable,
        internal_dof=dof,
        is_flat=current < 3,
        explanation=explanation,
    )


def can_fold_to_dimension(
    framework: Framework, target_dimension: int, config: Optional[EngineConfig] = None
) -> bool:
    config = config or EngineConfig()
    return compute_minimal_dimension(framework.graph, config.search) <= target_dimension


def folding_direction(
    framework: Framework, config: Optional[EngineConfig] = None
) -> Optional[np.ndarray]:
    """
    A non-trivial infinitesimal flex of the framework.

    The null space of the rigidity matrix is stripped of its rigid-motion
    component; the dominant direction of what remains is returned if its
    weight exceeds the direction tolerance.

    Returns:
        Array of shape (num_vertices, d) with one velocity per vertex, or
        ``None`` when the framework has no non-trivial flex.
    """
    config = config or EngineConfig()
    graph = framework.graph
    d = framework.dimension
    n = graph.num_nodes
    if n == 0 or d == 0:
        return None

    framework.require_coordinates()
    R = compute_rigidity_matrix(graph, framework.coordinates, d)
    motions = R.null_space(config.tolerances.rank_tolerance)
    if motions.shape[0] == 0:
        return None

    N = linalg.orth(motions.T)
    trivial = trivial_motions(framework.coordinates, graph.vertices, d)
    Q = linalg.orth(trivial.T) if trivial.size else np.zeros((n * d, 0))

    remainder = N - Q @ (Q.T @ N)
    U, singular, _ = np.linalg.svd(remainder, full_matrices=False)
    if singular.size == 0 or singular[0] <= config.tolerances.direction_tolerance:
        logger.debug("folding_direction: every motion is trivial")
        return None

    flex = U[:, 0]
    return (flex / np.linalg.norm(flex)).reshape(n, d)
