"""
Clustering Layout Engine

Builds a seeded ForceSimulation from an EntityGraph snapshot.

SINGLE LEVEL:
=============
- one cluster key per node
- cluster centres spread on a circle, members on a grid around them
- a centroid force pulls members together every tick
- links inside a cluster are stiff, links across clusters are loose

NESTED:
=======
- primary key (e.g. domain) and secondary key (e.g. theme)
- secondary centres sit on a small circle around their primary centre
- two centroid forces with independent strengths
"""

from __future__ import annotations
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import LayoutConfig
from ..contracts.entities import EntityGraph
from .clusters import (
    ClusterBy,
    ClusterSpec,
    assign_keys,
    cluster_color,
    group_indices,
    resolve_key_func,
)
from .forces import CenterForce, ClusterCentroidForce, LinkForce, ManyBodyForce
from .simulation import PRIMARY, SECONDARY, ForceSimulation

logger = logging.getLogger(__name__)


def circle_point(index: int, count: int, radius: float) -> Tuple[float, float]:
    angle = 2 * math.pi * index / max(count, 1)
    return math.cos(angle) * radius, math.sin(angle) * radius


def grid_offsets(count: int, spacing: float) -> np.ndarray:
    """Centred square-ish grid of ``count`` offsets."""
    if count == 0:
        return np.zeros((0, 2))
    cols = max(1, math.ceil(math.sqrt(count)))
    rows = math.ceil(count / cols)
    idx = np.arange(count)
    col, row = idx % cols, idx // cols
    return np.column_stack([
        (col - (cols - 1) / 2) * spacing,
        (row - (rows - 1) / 2) * spacing,
    ])


class ClusteringLayoutEngine:
    """Single entry point: ``build(graph, cluster_by, secondary_by=None)``."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def build(
        self,
        graph: EntityGraph,
        cluster_by: ClusterSpec = ClusterBy.DOMAIN,
        secondary_by: Optional[ClusterSpec] = None,
    ) -> ForceSimulation:
        cfg = self.config
        nodes = list(graph.nodes)
        ids = [n.id for n in nodes]
        index = {node_id: i for i, node_id in enumerate(ids)}

        key_func, dimension = resolve_key_func(cluster_by)
        primary = assign_keys(nodes, key_func)
        clustered = dimension is not ClusterBy.NONE

        secondary: Optional[List[str]] = None
        secondary_dimension = None
        if secondary_by is not None:
            sec_func, secondary_dimension = resolve_key_func(secondary_by)
            secondary = assign_keys(nodes, sec_func)

        positions = self._seed(primary, secondary)

        colors: Dict[Tuple[str, str], str] = {}
        for key in set(primary):
            colors[(PRIMARY, key)] = cluster_color(key, dimension)
        for key in set(secondary or ()):
            colors[(SECONDARY, key)] = cluster_color(key, secondary_dimension)

        # Links between nodes present in this view
        sources, targets, strengths = [], [], []
        for edge in graph.edges:
            s, t = index.get(edge.source), index.get(edge.target)
            if s is None or t is None or s == t:
                continue
            sources.append(s)
            targets.append(t)
            strengths.append(self._link_strength(s, t, primary, secondary, clustered))

        forces = [
            LinkForce(sources, targets, strengths, len(ids), cfg.link_distance),
            ManyBodyForce(cfg.charge, cfg.distance_min),
            CenterForce(strength=cfg.center_strength),
        ]
        if secondary is not None:
            primary_strength, secondary_strength = cfg.nested_strengths()
            if clustered:
                forces.append(ClusterCentroidForce(list(group_indices(primary).values()), primary_strength))
            nested_keys = [f"{p}\x1f{s}" for p, s in zip(primary, secondary)]
            forces.append(ClusterCentroidForce(list(group_indices(nested_keys).values()), secondary_strength))
        elif clustered:
            forces.append(ClusterCentroidForce(list(group_indices(primary).values()), cfg.cluster_strength))

        logger.debug(
            "Built layout: %d nodes, %d links, %d primary clusters",
            len(ids), len(sources), len(set(primary)),
        )
        return ForceSimulation(
            ids,
            positions,
            forces=forces,
            config=cfg,
            primary_keys=primary,
            secondary_keys=secondary,
            colors=colors,
        )

    # =========================================================================
    # SEEDING
    # =========================================================================

    def _seed(self, primary: Sequence[str], secondary: Optional[Sequence[str]]) -> np.ndarray:
        cfg = self.config
        positions = np.zeros((len(primary), max(2, cfg.dimensions)))
        radius = cfg.cluster_radius * cfg.cluster_spacing

        primary_groups = group_indices(primary)
        for i, (key, members) in enumerate(primary_groups.items()):
            center = np.array(circle_point(i, len(primary_groups), radius))
            if secondary is None:
                positions[members, :2] = center + grid_offsets(len(members), cfg.grid_spacing)
                continue
            sub_groups = group_indices([secondary[m] for m in members])
            for j, sub_members in enumerate(sub_groups.values()):
                if len(sub_groups) > 1:
                    sub_center = center + np.array(circle_point(j, len(sub_groups), cfg.secondary_radius))
                else:
                    sub_center = center
                rows = [members[k] for k in sub_members]
                positions[rows, :2] = sub_center + grid_offsets(len(rows), cfg.grid_spacing)

        if cfg.jitter:
            rng = np.random.default_rng(cfg.seed)
            positions += rng.uniform(-cfg.jitter, cfg.jitter, size=positions.shape)
        return positions

    def _link_strength(
        self,
        s: int,
        t: int,
        primary: Sequence[str],
        secondary: Optional[Sequence[str]],
        clustered: bool,
    ) -> float:
        cfg = self.config
        if secondary is not None:
            if primary[s] != primary[t]:
                return cfg.link_cross_primary
            if secondary[s] == secondary[t]:
                return cfg.link_same_secondary
            return cfg.link_same_primary
        if not clustered:
            return cfg.link_unclustered
        return cfg.link_same_cluster if primary[s] == primary[t] else cfg.link_cross_cluster
