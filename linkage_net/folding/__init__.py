"""
Folding module for Linkage-Net.

Provides the folding engine, the iterative constraint projector and the
dimension-folding analysis.
"""

from linkage_net.folding.engine import (
    FoldingEngine,
    FoldingOperation,
    FoldingTrace,
    FoldState,
    FoldType,
    Hinge,
    LengthCheck,
    RigidClique,
    compute_edge_vectors,
    rotate_about_axis,
    rotation_matrix,
)
from linkage_net.folding.projector import (
    EdgeViolation,
    ProjectionResult,
    compute_edge_constraints,
    compute_violations,
    flex_directions,
    nudge_with_constraints,
    project_to_constraints,
)
from linkage_net.folding.dimension import (
    DimensionAnalysis,
    analyze_dimension_folding,
    can_fold_to_dimension,
    estimate_minimal_dimension_from_dof,
    folding_direction,
)

__all__ = [
    # Engine
    "FoldingEngine",
    "FoldingOperation",
    "FoldingTrace",
    "FoldState",
    "FoldType",
    "Hinge",
    "LengthCheck",
    "RigidClique",
    "compute_edge_vectors",
    "rotate_about_axis",
    "rotation_matrix",
    # Projector
    "EdgeViolation",
    "ProjectionResult",
    "compute_edge_constraints",
    "compute_violations",
    "flex_directions",
    "nudge_with_constraints",
    "project_to_constraints",
    # Dimension analysis
    "DimensionAnalysis",
    "analyze_dimension_folding",
    "can_fold_to_dimension",
    "estimate_minimal_dimension_from_dof",
    "folding_direction",
]
