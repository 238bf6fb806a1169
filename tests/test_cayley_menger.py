"""
Unit Tests for Cayley-Menger volumes and sphere tangency.

Run with: pytest tests/test_cayley_menger.py -v
"""

import math

import numpy as np
import pytest

from linkage_net.data.core import Coordinates, Framework, LinkageGraph
from linkage_net.topology.cayley_menger import (
    affine_dimension,
    analyze_tangency,
    analyze_volumes,
    cayley_menger,
    simplex_volume,
    tangency_gap,
    tetrahedron_volume,
    triangle_area,
)
from linkage_net.utils.config import EngineConfig, ToleranceConfig

UNIT_TETRAHEDRON = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]


def tolerances(**values):
    return EngineConfig(tolerances=ToleranceConfig(**values))


# =============================================================================
# TEST: VOLUMES
# =============================================================================

class TestVolumes:
    """Tests for simplex volumes from pairwise distances."""

    def test_segment(self):
        points = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]
        assert abs(cayley_menger(points) - 2.0) < 1e-12
        assert abs(simplex_volume(points) - 1.0) < 1e-12

    def test_right_triangle_area(self):
        area = triangle_area([0.0, 0.0], [1.0, 0.0], [0.0, 1.0])
        assert abs(area - 0.5) < 1e-12, f"Expected 0.5, got {area}"

    def test_unit_tetrahedron_volume(self):
        volume = tetrahedron_volume(*UNIT_TETRAHEDRON)
        assert abs(volume - 1.0 / 6.0) < 1e-12

    def test_volume_is_motion_invariant(self):
        P = np.array(UNIT_TETRAHEDRON)
        angle = 0.7
        rotation = np.array(
            [[math.cos(angle), -math.sin(angle), 0.0], [math.sin(angle), math.cos(angle), 0.0], [0.0, 0.0, 1.0]]
        )
        moved = P @ rotation.T + np.array([3.0, -1.0, 2.0])
        assert abs(simplex_volume(moved) - simplex_volume(P)) < 1e-9

    def test_degenerate_triangle(self):
        collinear = [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]]
        assert abs(cayley_menger(collinear)) < 1e-8
        assert triangle_area(*collinear) < 1e-6

    def test_single_point(self):
        assert cayley_menger([[1.0, 2.0]]) == 0.0
        assert simplex_volume([[1.0, 2.0]]) == 0.0

    def test_pivot_tolerance_from_config(self):
        points = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]
        coarse = tolerances(determinant_pivot_tolerance=5.0)
        assert cayley_menger(points, config=coarse) == 0.0
        assert simplex_volume(points, config=coarse) == 0.0
        # an explicit pivot tolerance wins over the config
        assert cayley_menger(points, pivot_tolerance=1e-12, config=coarse) == pytest.approx(2.0)


# =============================================================================
# TEST: AFFINE DIMENSION
# =============================================================================

class TestAffineDimension:
    """Tests for affine-hull dimension."""

    @pytest.mark.parametrize(
        "points,expected",
        [
            ([], 0),
            ([[0.0, 0.0, 0.0]], 0),
            ([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]], 1),
            ([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [3.0, 0.0, 0.0]], 1),
            ([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]], 2),
            (UNIT_TETRAHEDRON, 3),
        ],
    )
    def test_dimension(self, points, expected):
        assert affine_dimension(points) == expected

    def test_accepts_coordinates(self):
        assert affine_dimension(Coordinates.from_matrix(UNIT_TETRAHEDRON)) == 3

    def test_high_dimensional_points_are_capped(self):
        assert affine_dimension(np.eye(5)) == 3

    def test_volume_tolerance_from_config(self):
        square = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]]
        assert affine_dimension(square, config=tolerances(volume_tolerance=1.0)) == 1
        assert affine_dimension(UNIT_TETRAHEDRON, config=tolerances(volume_tolerance=0.2)) == 2
        assert affine_dimension(UNIT_TETRAHEDRON, tolerance=1e-8, config=tolerances(volume_tolerance=0.2)) == 3


# =============================================================================
# TEST: VOLUME ANALYSIS
# =============================================================================

class TestVolumeAnalysis:
    """Tests for collapse progress."""

    def test_without_reference(self):
        result = analyze_volumes(Coordinates.from_matrix(UNIT_TETRAHEDRON))
        assert result.current_dimension == 3
        assert result.progress == 0.0
        assert abs(result.max_volume - 1.0 / 6.0) < 1e-12

    def test_flattened_tetrahedron(self):
        initial = Coordinates.from_matrix(UNIT_TETRAHEDRON)
        flat = initial.replace({3: [1.0, 1.0, 0.0]})
        result = analyze_volumes(flat, initial)
        assert result.current_dimension == 2
        assert result.progress == pytest.approx(1.0)

    def test_triangle_only(self):
        result = analyze_volumes(Coordinates.from_matrix([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]))
        assert result.tetrahedron_volume is None
        assert result.max_volume == pytest.approx(0.5)


# =============================================================================
# TEST: TANGENCY
# =============================================================================

class TestTangency:
    """Tests for sphere tangency gaps."""

    def test_gap(self):
        assert tangency_gap([0.0, 0.0], 1.0, [3.0, 0.0], 1.0) == pytest.approx(1.0)
        assert tangency_gap([0.0, 0.0], 1.0, [2.0, 0.0], 1.0) == pytest.approx(0.0)

    def test_straight_path_is_tangent(self):
        fw = Framework(
            LinkageGraph(3, [(0, 1), (1, 2)]),
            Coordinates.from_matrix([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]]),
        )
        results = analyze_tangency(fw)
        assert len(results) == 1
        assert results[0].constrained_vertex == 1
        assert results[0].is_tangent
        assert not results[0].is_transverse

    def test_tangency_tolerance_from_config(self):
        fw = Framework(
            LinkageGraph(3, [(0, 1), (1, 2)]),
            Coordinates.from_matrix([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.3, 0.0]]),
        )
        (strict,) = analyze_tangency(fw)
        assert strict.tangency_gap == pytest.approx(math.sqrt(4.09) - 1.0 - math.sqrt(1.09))
        assert not strict.is_tangent
        assert strict.is_transverse

        (loose,) = analyze_tangency(fw, config=tolerances(tangency_tolerance=0.05))
        assert loose.is_tangent
        assert not loose.is_transverse

    def test_bent_triangle_is_transverse(self, triangle_2d):
        results = analyze_tangency(triangle_2d)
        assert len(results) == 3
        first = results[0]
        assert first.constrained_vertex == 0
        assert first.is_transverse
        assert first.normalized_gap == pytest.approx(2.0 - math.sqrt(2.0))

    def test_leaves_are_skipped(self):
        fw = Framework(LinkageGraph(2, [(0, 1)]), Coordinates.from_matrix([[0.0], [1.0]]))
        assert analyze_tangency(fw) == []
