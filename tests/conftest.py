"""
Shared fixtures for the Linkage-Net test suite.
"""

import os
import sys

import pytest

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from linkage_net.data.core import Coordinates, Framework, LinkageGraph  # noqa: E402

TRIANGLE_EDGES = [(0, 1), (1, 2), (0, 2)]
K4_EDGES = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
SQUARE_EDGES = [(0, 1), (1, 2), (2, 3), (3, 0)]
# two triangles glued along the bar 0-1
DIAMOND_EDGES = [(0, 1), (0, 2), (1, 2), (0, 3), (1, 3)]


@pytest.fixture
def triangle_2d():
    return Framework(
        LinkageGraph(3, TRIANGLE_EDGES),
        Coordinates.from_matrix([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]]),
    )


@pytest.fixture
def triangle_3d():
    return Framework(
        LinkageGraph(3, TRIANGLE_EDGES),
        Coordinates.from_matrix([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
    )


@pytest.fixture
def tetrahedron():
    return Framework(
        LinkageGraph(4, K4_EDGES),
        Coordinates.from_matrix(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        ),
    )


@pytest.fixture
def square():
    return Framework(
        LinkageGraph(4, SQUARE_EDGES),
        Coordinates.from_matrix(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]]
        ),
    )


@pytest.fixture
def diamond():
    return Framework(
        LinkageGraph(4, DIAMOND_EDGES),
        Coordinates.from_matrix(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.5, 1.0, 0.0], [0.5, 0.0, 1.0]]
        ),
    )


@pytest.fixture
def path4():
    return Framework(
        LinkageGraph(4, [(0, 1), (1, 2), (2, 3)]),
        Coordinates.from_matrix(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        ),
    )
