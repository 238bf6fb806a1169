"""
Cayley-Menger volumes and sphere tangency.

The Cayley-Menger determinant expresses the volume of a simplex through
its pairwise squared distances alone, so it is invariant under rigid
motions. It is used here to measure how far a point set is from collapsing
into a lower dimension.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional, Sequence, Union

import numpy as np

from linkage_net.data.core import Coordinates, Framework
from linkage_net.linalg.matrix_kernel import determinant
from linkage_net.utils.config import EngineConfig, ToleranceConfig

PointSet = Union[Coordinates, Sequence[Sequence[float]], np.ndarray]


def _tolerances(config: Optional[EngineConfig]) -> ToleranceConfig:
    return (config or EngineConfig()).tolerances


def _points(points: PointSet) -> np.ndarray:
    if isinstance(points, Coordinates):
        return points.as_matrix()
    arr = np.asarray(points, dtype=float)
    if arr.size == 0:
        return np.zeros((0, 0))
    return np.atleast_2d(arr)


def cayley_menger(
    points: PointSet,
    pivot_tolerance: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> float:
    """
    Cayley-Menger determinant of k+1 points.

    The (k+2) x (k+2) bordered matrix has a zero corner, ones along the
    first row and column and squared distances elsewhere.

    Args:
        points: k+1 points, one per row.
        pivot_tolerance: Pivot below which the determinant is 0. Defaults
            to ``determinant_pivot_tolerance`` of ``config``.
        config: Engine configuration.

    Returns:
        The determinant, 0.0 for fewer than two points or a vanishing pivot.
    """
    if pivot_tolerance is None:
        pivot_tolerance = _tolerances(config).determinant_pivot_tolerance
    P = _points(points)
    count = P.shape[0]
    if count < 2:
        return 0.0

    diff = P[:, None, :] - P[None, :, :]
    squared = np.sum(diff * diff, axis=-1)

    M = np.ones((count + 1, count + 1))
    M[0, 0] = 0.0
    M[1:, 1:] = squared
    return determinant(M, pivot_tolerance)


def simplex_volume(points: PointSet, config: Optional[EngineConfig] = None) -> float:
    """
    Volume of the k-simplex spanned by k+1 points.

    V² = (-1)^(k+1) CM / (2^k (k!)²)
    """
    P = _points(points)
    k = P.shape[0] - 1
    if k < 1:
        return 0.0
    cm = cayley_menger(P, config=config)
    sign = -1.0 if (k + 1) % 2 else 1.0
    squared = sign * cm / (2**k * math.factorial(k) ** 2)
    return math.sqrt(abs(squared))


def triangle_area(p1, p2, p3) -> float:
    return simplex_volume([p1, p2, p3])


def tetrahedron_volume(p1, p2, p3, p4) -> float:
    return simplex_volume([p1, p2, p3, p4])


def affine_dimension(
    points: PointSet,
    tolerance: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> int:
    """
    Dimension of the affine hull, capped at 3.

    A single triangle with area above ``tolerance`` lifts the answer to 2,
    a single such tetrahedron to 3. Two points always count as a line.
    ``tolerance`` defaults to ``volume_tolerance`` of ``config``.
    """
    if tolerance is None:
        tolerance = _tolerances(config).volume_tolerance
    P = _points(points)
    count = P.shape[0]
    if count <= 1:
        return 0
    if count == 2:
        return 1

    is_planar = False
    for triple in combinations(range(count), 3):
        if simplex_volume(P[list(triple)], config) > tolerance:
            is_planar = True
            break
    if not is_planar:
        return 1

    for quad in combinations(range(count), 4):
        if simplex_volume(P[list(quad)], config) > tolerance:
            return 3
    return 2


def tangency_gap(c1, r1: float, c2, r2: float) -> float:
    """
    Gap to external tangency of two spheres, |c1 - c2| - (r1 + r2).

    Negative when the spheres meet in a circle, zero when tangent.
    """
    distance = float(np.linalg.norm(np.asarray(c2, dtype=float) - np.asarray(c1, dtype=float)))
    return distance - (r1 + r2)


@dataclass
class CMAnalysis:
    """
    Volume analysis of a coordinate snapshot.

    Attributes:
        current_dimension: Affine dimension of the point set.
        collinearity_det: CM determinant of the first three points.
        coplanarity_det: CM determinant of the first four points, if any.
        triangle_area: Area of the first three points.
        tetrahedron_volume: Volume of the first four points, if any.
        max_volume: Tetrahedron volume when available, else triangle area.
        progress: 0 at the initial volume, 1 once collapsed.
        initial_volume: Reference volume for ``progress``.
    """

    current_dimension: int
    collinearity_det: float
    coplanarity_det: Optional[float]
    triangle_area: float
    tetrahedron_volume: Optional[float]
    max_volume: float
    progress: float
    initial_volume: float


def _leading_volume(P: np.ndarray, config: Optional[EngineConfig] = None) -> float:
    if P.shape[0] >= 4:
        return simplex_volume(P[:4], config)
    if P.shape[0] >= 3:
        return simplex_volume(P[:3], config)
    return 0.0


def analyze_volumes(
    coordinates: Coordinates,
    initial_coordinates: Optional[Coordinates] = None,
    config: Optional[EngineConfig] = None,
) -> CMAnalysis:
    """Volumes of the leading simplices and progress toward collapse."""
    order = sorted(coordinates)
    P = coordinates.as_matrix(order)
    count = P.shape[0]

    collinearity_det = 0.0
    area = 0.0
    if count >= 3:
        collinearity_det = cayley_menger(P[:3], config=config)
        area = simplex_volume(P[:3], config)

    coplanarity_det = None
    volume = None
    if count >= 4:
        coplanarity_det = cayley_menger(P[:4], config=config)
        volume = simplex_volume(P[:4], config)

    max_volume = volume if volume is not None else area

    initial_volume = max_volume
    if initial_coordinates is not None:
        initial_order = [v for v in order if v in initial_coordinates]
        initial_volume = _leading_volume(initial_coordinates.as_matrix(initial_order), config)

    if initial_volume > 0:
        progress = max(0.0, min(1.0, 1.0 - max_volume / initial_volume))
    else:
        progress = 1.0 if max_volume < _tolerances(config).volume_tolerance else 0.0

    return CMAnalysis(
        current_dimension=affine_dimension(P, config=config),
        collinearity_det=collinearity_det,
        coplanarity_det=coplanarity_det,
        triangle_area=area,
        tetrahedron_volume=volume,
        max_volume=max_volume,
        progress=progress,
        initial_volume=initial_volume,
    )


@dataclass
class TangencyInfo:
    """
    Two constraint spheres around a vertex.

    The spheres are centred on two neighbours of ``constrained_vertex`` with
    radii equal to the bar lengths; the vertex lies on their intersection.
    """

    sphere1_center: int
    sphere2_center: int
    constrained_vertex: int
    center_distance: float
    radius1: float
    radius2: float
    tangency_gap: float
    normalized_gap: float
    is_tangent: bool
    is_transverse: bool


def analyze_tangency(
    framework: Framework,
    tolerance: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> List[TangencyInfo]:
    """
    Tangency gap of every sphere pair at every vertex with two or more bars.

    ``tolerance`` defaults to ``tangency_tolerance`` of ``config``.
    """
    if tolerance is None:
        tolerance = _tolerances(config).tangency_tolerance
    coords = framework.coordinates
    graph = framework.graph
    results = []

    for vertex in graph.vertices:
        neighbors = sorted(graph.neighbors(vertex))
        if len(neighbors) < 2:
            continue
        center = coords[vertex]
        for a, b in combinations(neighbors, 2):
            pa, pb = coords[a], coords[b]
            r1 = float(np.linalg.norm(pa - center))
            r2 = float(np.linalg.norm(pb - center))
            gap = tangency_gap(pa, r1, pb, r2)
            depth = min(r1, r2)
            normalized = max(0.0, min(1.0, -gap / depth)) if depth > 0 else 0.0
            results.append(
                TangencyInfo(
                    sphere1_center=a,
                    sphere2_center=b,
                    constrained_vertex=vertex,
                    center_distance=float(np.linalg.norm(pb - pa)),
                    radius1=r1,
                    radius2=r2,
                    tangency_gap=gap,
                    normalized_gap=normalized,
                    is_tangent=abs(gap) <= tolerance,
                    is_transverse=gap < -tolerance,
                )
            )
    return results
