"""
Layout Layer

RESPONSIBILITY: Cluster assignment and force-directed positions for a
network view
ALLOWED INPUTS: EntityGraph snapshots from the registry
OUTPUTS: ForceSimulation (ticked externally), Cluster and ClusterHull
records

WHAT THIS LAYER MUST NOT DO:
============================
- Query or mutate the registry
- Drive its own timer (callers invoke ``step()``)
- Raise during a tick for bad cluster keys
"""

from .clusters import (
    ALL,
    UNGROUPED,
    Cluster,
    ClusterBy,
    build_clusters,
    cluster_color,
    resolve_key_func,
    safe_key,
)
from .engine import ClusteringLayoutEngine, grid_offsets
from .forces import CenterForce, ClusterCentroidForce, Force, LinkForce, ManyBodyForce, SimulationState
from .hulls import ClusterHull, compute_hull, convex_hull
from .simulation import PRIMARY, SECONDARY, ForceSimulation, LayoutNode, NodePositions

__all__ = [
    "ALL",
    "UNGROUPED",
    "Cluster",
    "ClusterBy",
    "build_clusters",
    "cluster_color",
    "resolve_key_func",
    "safe_key",
    "ClusteringLayoutEngine",
    "grid_offsets",
    "Force",
    "SimulationState",
    "ClusterCentroidForce",
    "LinkForce",
    "ManyBodyForce",
    "CenterForce",
    "ClusterHull",
    "compute_hull",
    "convex_hull",
    "PRIMARY",
    "SECONDARY",
    "ForceSimulation",
    "LayoutNode",
    "NodePositions",
]
