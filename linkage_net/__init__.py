"""
Linkage-Net: Rigidity Analysis and Dimension Folding of Bar-and-Joint Linkages

This library decides whether a linkage is rigid, bounds the lowest dimension
it can be folded into, and computes length-preserving folds that lower the
dimension it occupies.
"""

import logging

__version__ = "0.1.0"
__author__ = "Linkage-Net Contributors"

from linkage_net.errors import (
    ConstraintViolationError,
    DegenerateGeometryError,
    InputError,
    LinkageError,
    MissingCoordinateError,
)
from linkage_net.data.core import (
    Coordinates,
    Edge,
    EdgeConstraint,
    Framework,
    LinkageGraph,
    VertexAttributes,
)
from linkage_net.data.registry import get_graph_by_id, get_graph_info_by_id
from linkage_net.topology.graph_rigidity import RigidityAnalyzer, compute_rigidity_matrix
from linkage_net.topology.matroid import analyze_rigidity_matroid
from linkage_net.folding.engine import FoldingEngine, FoldingOperation
from linkage_net.folding.projector import project_to_constraints
from linkage_net.folding.dimension import analyze_dimension_folding
from linkage_net.utils.config import EngineConfig

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    "ConstraintViolationError",
    "DegenerateGeometryError",
    "InputError",
    "LinkageError",
    "MissingCoordinateError",
    # Core data structures
    "Coordinates",
    "Edge",
    "EdgeConstraint",
    "Framework",
    "LinkageGraph",
    "VertexAttributes",
    "get_graph_by_id",
    "get_graph_info_by_id",
    # Analysis
    "RigidityAnalyzer",
    "compute_rigidity_matrix",
    "analyze_rigidity_matroid",
    "analyze_dimension_folding",
    # Folding
    "FoldingEngine",
    "FoldingOperation",
    "project_to_constraints",
    # Configuration
    "EngineConfig",
]
