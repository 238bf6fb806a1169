"""
Data module for Linkage-Net.

Provides the immutable graph, coordinate and framework types together with
the registry of example linkages.
"""

from linkage_net.data.core import (
    AttributeTable,
    Coordinates,
    Edge,
    EdgeConstraint,
    Framework,
    LinkageGraph,
    VertexAttributes,
    VertexId,
    label_table,
)
from linkage_net.data.registry import (
    GRAPH_REGISTRY,
    GraphInfo,
    get_graph_by_id,
    get_graph_info_by_id,
    identity_coordinates,
    independent_coordinates,
    list_graph_ids,
)

__all__ = [
    # Core data structures
    "AttributeTable",
    "Coordinates",
    "Edge",
    "EdgeConstraint",
    "Framework",
    "LinkageGraph",
    "VertexAttributes",
    "VertexId",
    "label_table",
    # Registry
    "GRAPH_REGISTRY",
    "GraphInfo",
    "get_graph_by_id",
    "get_graph_info_by_id",
    "identity_coordinates",
    "independent_coordinates",
    "list_graph_ids",
]
