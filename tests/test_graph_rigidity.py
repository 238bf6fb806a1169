"""
Unit Tests for rigidity-matrix analysis.

These tests validate:
1. Rigidity matrix layout (row per edge, d columns per vertex)
2. Rank and internal DOF counting in 2D and 3D
3. Trivial motions lying in the null space
4. Redundant-edge detection and per-vertex DOF

Run with: pytest tests/test_graph_rigidity.py -v
"""

import numpy as np
import pytest

from linkage_net.data.core import Coordinates, Framework, LinkageGraph
from linkage_net.errors import InputError, MissingCoordinateError
from linkage_net.topology.graph_rigidity import (
    RigidityAnalyzer,
    compute_rigidity_matrix,
    count_internal_dof,
    expected_rank,
    internal_dof,
    is_infinitesimally_rigid,
    trivial_dof,
    trivial_motions,
    vertex_dofs,
)

from conftest import K4_EDGES


# =============================================================================
# TEST: COUNTING FORMULAS
# =============================================================================

class TestCounting:
    """Tests for the DOF formulas."""

    @pytest.mark.parametrize("d,expected", [(1, 1), (2, 3), (3, 6), (4, 10)])
    def test_trivial_dof(self, d, expected):
        assert trivial_dof(d) == expected

    def test_expected_rank(self):
        assert expected_rank(3, 4) == 6
        assert expected_rank(2, 3) == 3

    def test_internal_dof_floors_at_zero(self):
        assert internal_dof(10, 3, 2) == 0
        assert internal_dof(4, 4, 2) == 1


# =============================================================================
# TEST: RIGIDITY MATRIX
# =============================================================================

class TestRigidityMatrix:
    """Tests for rigidity-matrix construction."""

    def test_shape(self, tetrahedron):
        R = compute_rigidity_matrix(tetrahedron.graph, tetrahedron.coordinates, 3)
        assert R.shape == (6, 12)

    def test_triangle_first_row(self, triangle_2d):
        R = compute_rigidity_matrix(triangle_2d.graph, triangle_2d.coordinates, 2)
        np.testing.assert_array_equal(R.matrix[0], [-1.0, 0.0, 1.0, 0.0, 0.0, 0.0])

    def test_labels(self, triangle_2d):
        R = compute_rigidity_matrix(triangle_2d.graph, triangle_2d.coordinates, 2)
        assert R.column_labels()[:3] == ["0.x", "0.y", "1.x"]
        assert R.row_labels() == ["0-1", "1-2", "0-2"]

    def test_uses_leading_components(self, triangle_3d):
        R = compute_rigidity_matrix(triangle_3d.graph, triangle_3d.coordinates, 2)
        assert R.shape == (3, 6)
        assert R.rank() == 3

    def test_too_few_components(self, triangle_2d):
        with pytest.raises(InputError):
            compute_rigidity_matrix(triangle_2d.graph, triangle_2d.coordinates, 3)

    def test_missing_coordinate(self):
        graph = LinkageGraph(3, [(0, 1), (1, 2)])
        coords = Coordinates({0: [0.0, 0.0], 1: [1.0, 0.0]})
        with pytest.raises(MissingCoordinateError):
            compute_rigidity_matrix(graph, coords, 2)

    def test_trivial_motions_in_null_space(self, tetrahedron):
        R = compute_rigidity_matrix(tetrahedron.graph, tetrahedron.coordinates, 3)
        motions = trivial_motions(tetrahedron.coordinates, tetrahedron.graph.vertices, 3)
        assert motions.shape == (6, 12)
        np.testing.assert_allclose(R.matrix @ motions.T, 0.0, atol=1e-12)


# =============================================================================
# TEST: RIGIDITY
# =============================================================================

class TestRigidity:
    """Tests for rank-based rigidity."""

    def test_triangle_rigid_in_plane(self, triangle_2d):
        metrics = RigidityAnalyzer(dimension=2).analyze(triangle_2d)
        assert metrics.rank == 3
        assert metrics.internal_dof == 0
        assert metrics.is_rigid

    def test_triangle_in_space(self, triangle_3d):
        # 3 * 3 - 6 - 3 = 0: three points have no internal motion in 3D either
        assert count_internal_dof(triangle_3d, 3) == 0

    def test_tetrahedron_rigid(self, tetrahedron):
        metrics = RigidityAnalyzer(dimension=3).analyze(tetrahedron)
        assert metrics.rank == 6
        assert metrics.internal_dof == 0
        assert metrics.is_rigid
        assert metrics.maxwell_count == 0
        assert metrics.edge_density == 1.0
        assert metrics.redundant_edges == []

    def test_square_flexible(self, square):
        assert count_internal_dof(square, 2) == 1
        assert count_internal_dof(square, 3) == 2
        assert not is_infinitesimally_rigid(square, 3)

    def test_square_with_diagonal_rigid_in_plane(self):
        fw = Framework(
            LinkageGraph(4, [(0, 1), (1, 2), (2, 3), (3, 0), (0, 2)]),
            Coordinates.from_matrix([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]]),
        )
        assert is_infinitesimally_rigid(fw, 2)

    def test_k4_in_plane_all_edges_redundant(self):
        fw = Framework(
            LinkageGraph(4, K4_EDGES),
            Coordinates.from_matrix([[0.0, 0.0], [1.0, 0.0], [1.1, 0.9], [0.1, 1.2]]),
        )
        metrics = RigidityAnalyzer(dimension=2).analyze(fw)
        assert metrics.rank == 5
        assert metrics.is_rigid
        assert len(metrics.redundant_edges) == 6

    def test_collinear_triangle_is_flexible(self):
        fw = Framework(
            LinkageGraph(3, [(0, 1), (1, 2), (0, 2)]),
            Coordinates.from_matrix([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]]),
        )
        assert count_internal_dof(fw, 2) == 1

    def test_empty_framework(self):
        fw = Framework(LinkageGraph(0), Coordinates({}))
        metrics = RigidityAnalyzer().analyze(fw)
        assert metrics.rank == 0
        assert metrics.trivial_dof == 6

    def test_analyze_sequence(self, square):
        flat = square.coordinates
        lifted = flat.replace({2: [1.0, 0.0, 1.0], 3: [0.0, 0.0, 1.0]})
        results = RigidityAnalyzer(dimension=3).analyze_sequence(square, [flat, lifted])
        assert len(results) == 2
        assert all(r.internal_dof == 2 for r in results)


# =============================================================================
# TEST: VERTEX DOF
# =============================================================================

class TestVertexDOF:
    """Tests for local vertex freedom."""

    def test_path_vertex_dofs(self):
        dofs = vertex_dofs(LinkageGraph(3, [(0, 1), (1, 2)]), 3)
        assert [v.dof for v in dofs] == [2, 1, 2]
        assert all(v.is_flexible for v in dofs)

    def test_saturated_vertices(self):
        dofs = vertex_dofs(LinkageGraph(4, K4_EDGES), 3)
        assert all(v.dof == 0 and not v.is_flexible for v in dofs)
