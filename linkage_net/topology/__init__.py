"""
Topology module for Linkage-Net.

Provides infinitesimal rigidity analysis, combinatorial rigidity-matroid
bounds and Cayley-Menger volume measures.
"""

from linkage_net.topology.graph_rigidity import (
    RigidityAnalyzer,
    RigidityMatrix,
    RigidityMetrics,
    VertexDOF,
    compute_rigidity_matrix,
    count_internal_dof,
    expected_rank,
    internal_dof,
    is_infinitesimally_rigid,
    trivial_dof,
    trivial_motions,
    vertex_dofs,
)
from linkage_net.topology.matroid import (
    LamanResult,
    MatroidAnalysis,
    analyze_rigidity_matroid,
    check_laman,
    clique_number,
    compute_minimal_dimension,
    find_circuits,
    is_path_like,
    is_tree,
    maximal_cliques,
    maximum_cliques,
)
from linkage_net.topology.cayley_menger import (
    CMAnalysis,
    TangencyInfo,
    affine_dimension,
    analyze_tangency,
    analyze_volumes,
    cayley_menger,
    simplex_volume,
    tangency_gap,
    tetrahedron_volume,
    triangle_area,
)

__all__ = [
    # Rigidity
    "RigidityAnalyzer",
    "RigidityMatrix",
    "RigidityMetrics",
    "VertexDOF",
    "compute_rigidity_matrix",
    "count_internal_dof",
    "expected_rank",
    "internal_dof",
    "is_infinitesimally_rigid",
    "trivial_dof",
    "trivial_motions",
    "vertex_dofs",
    # Matroid
    "LamanResult",
    "MatroidAnalysis",
    "analyze_rigidity_matroid",
    "check_laman",
    "clique_number",
    "compute_minimal_dimension",
    "find_circuits",
    "is_path_like",
    "is_tree",
    "maximal_cliques",
    "maximum_cliques",
    # Cayley-Menger
    "CMAnalysis",
    "TangencyInfo",
    "affine_dimension",
    "analyze_tangency",
    "analyze_volumes",
    "cayley_menger",
    "simplex_volume",
    "tangency_gap",
    "tetrahedron_volume",
    "triangle_area",
]
