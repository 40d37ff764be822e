"""
Force simulation driven one tick at a time.

There is no internal timer: an external scheduler (animation frame,
test loop, batch job) calls ``step()``; each call completes before the
next. ``run()`` exists for offline use.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..config import LayoutConfig
from .clusters import Cluster, cluster_label
from .forces import Force, SimulationState
from .hulls import ClusterHull, compute_hull, label_position

logger = logging.getLogger(__name__)


PRIMARY = "primary"
SECONDARY = "secondary"


@dataclass(frozen=True, eq=False)
class NodePositions:
    """Immutable position snapshot returned by each tick."""
    ids: Tuple[str, ...]
    coordinates: np.ndarray
    alpha: float
    # id -> row; built from ``ids`` when not supplied
    index: Optional[Dict[str, int]] = field(default=None, repr=False)

    def __post_init__(self):
        self.coordinates.setflags(write=False)
        if self.index is None:
            object.__setattr__(self, "index", {node_id: i for i, node_id in enumerate(self.ids)})

    def __getitem__(self, node_id: str) -> Tuple[float, ...]:
        """Coordinates of one node; KeyError for an unknown id."""
        return tuple(float(c) for c in self.coordinates[self.index[node_id]])

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def as_dict(self) -> Dict[str, Tuple[float, ...]]:
        return {node_id: tuple(float(c) for c in row) for node_id, row in zip(self.ids, self.coordinates)}


@dataclass
class LayoutNode:
    """Per-node record handed to renderers."""
    id: str
    cluster: str
    secondary: Optional[str]
    x: float
    y: float
    z: float
    vx: float
    vy: float
    vz: float
    fixed: bool = False


class ForceSimulation:
    """
    Semi-implicit Euler integration with d3-force conventions.

    One tick:
    1. cool: ``alpha += (alpha_target - alpha) * alpha_decay`` (after
       repairing any non-finite coordinate left by the caller)
    2. apply every force (velocities mutated in place)
    3. decay velocities, clamp to ``max_velocity``
    4. integrate positions (pinned nodes stay put)
    5. clamp positions to ``max_distance`` from the origin
    6. repair any non-finite coordinate
    """

    def __init__(
        self,
        ids: Sequence[str],
        positions: np.ndarray,
        forces: Sequence[Force] = (),
        config: Optional[LayoutConfig] = None,
        primary_keys: Optional[Sequence[str]] = None,
        secondary_keys: Optional[Sequence[Optional[str]]] = None,
        colors: Optional[Dict[Tuple[str, str], str]] = None,
    ):
        self.config = config or LayoutConfig()
        self.ids: Tuple[str, ...] = tuple(ids)
        self._index = {node_id: i for i, node_id in enumerate(self.ids)}
        if self.ids:
            positions = np.array(positions, dtype=float).reshape(len(self.ids), -1)
        else:
            positions = np.zeros((0, self.config.dimensions))
        self.state = SimulationState(
            positions=positions,
            velocities=np.zeros_like(positions),
        )
        self._pinned = np.zeros_like(positions)
        self.forces: List[Force] = list(forces)
        self.primary_keys: Tuple[str, ...] = tuple(primary_keys or ["all"] * len(self.ids))
        self.secondary_keys: Tuple[Optional[str], ...] = tuple(secondary_keys or [None] * len(self.ids))
        self._colors = dict(colors or {})
        self.alpha = self.config.alpha
        self.tick_count = 0

    # =========================================================================
    # TICKING
    # =========================================================================

    def step(self, dt: float = 1.0) -> NodePositions:
        """Advance one tick and return the new positions."""
        cfg = self.config
        state = self.state
        self._repair()
        self.alpha += (cfg.alpha_target - self.alpha) * cfg.alpha_decay

        for force in self.forces:
            force(state, self.alpha)

        state.velocities *= (1.0 - cfg.velocity_decay)
        self._clamp_rows(state.velocities, cfg.max_velocity)

        state.positions += state.velocities * dt
        if state.fixed.any():
            state.positions[state.fixed] = self._pinned[state.fixed]
            state.velocities[state.fixed] = 0.0

        self._clamp_rows(state.positions, cfg.max_distance)
        self._repair()
        self.tick_count += 1
        return self.positions()

    def run(self, ticks: Optional[int] = None) -> NodePositions:
        """
        Tick ``ticks`` times, or until settled when ``ticks`` is None.
        """
        if ticks is None:
            ticks = self.ticks_to_settle()
        result = self.positions()
        for _ in range(ticks):
            result = self.step()
        logger.debug("Ran %d ticks, alpha=%.4f", ticks, self.alpha)
        return result

    def ticks_to_settle(self) -> int:
        cfg = self.config
        if self.alpha <= cfg.alpha_min or cfg.alpha_decay <= 0:
            return 0
        if cfg.alpha_target >= cfg.alpha_min:
            # Never cools below alpha_min; bound the run like d3's default
            return 300
        ratio = (cfg.alpha_min - cfg.alpha_target) / (self.alpha - cfg.alpha_target)
        return int(math.ceil(math.log(ratio) / math.log(1 - cfg.alpha_decay)))

    def reheat(self, alpha: float = 1.0) -> None:
        self.alpha = alpha

    @property
    def is_settled(self) -> bool:
        return self.alpha < self.config.alpha_min

    @staticmethod
    def _clamp_rows(values: np.ndarray, limit: float) -> None:
        if limit is None or not len(values):
            return
        norms = np.linalg.norm(values, axis=1)
        over = norms > limit
        if over.any():
            values[over] *= (limit / norms[over])[:, None]

    def _repair(self) -> None:
        state = self.state
        bad = ~np.isfinite(state.positions).all(axis=1)
        if bad.any():
            logger.debug("Repairing %d non-finite node positions", int(bad.sum()))
            good = ~bad
            fallback = state.positions[good].mean(axis=0) if good.any() else 0.0
            state.positions[bad] = fallback
        bad_v = ~np.isfinite(state.velocities).all(axis=1)
        if bad_v.any():
            state.velocities[bad_v] = 0.0

    # =========================================================================
    # RENDERING CONTRACT
    # =========================================================================

    def positions(self) -> NodePositions:
        return NodePositions(
            ids=self.ids, coordinates=self.state.positions.copy(), alpha=self.alpha, index=self._index
        )

    @property
    def nodes(self) -> List[LayoutNode]:
        pos, vel = self.state.positions, self.state.velocities
        dims = self.state.dimensions
        records = []
        for i, node_id in enumerate(self.ids):
            records.append(LayoutNode(
                id=node_id,
                cluster=self.primary_keys[i],
                secondary=self.secondary_keys[i],
                x=float(pos[i, 0]),
                y=float(pos[i, 1]) if dims > 1 else 0.0,
                z=float(pos[i, 2]) if dims > 2 else 0.0,
                vx=float(vel[i, 0]),
                vy=float(vel[i, 1]) if dims > 1 else 0.0,
                vz=float(vel[i, 2]) if dims > 2 else 0.0,
                fixed=bool(self.state.fixed[i]),
            ))
        return records

    def pin(self, node_id: str, x: float, y: float, z: float = 0.0) -> None:
        """Fix a node at a position (e.g. while dragged)."""
        i = self._index[node_id]
        coords = [x, y, z][: self.state.dimensions]
        self._pinned[i] = coords
        self.state.positions[i] = coords
        self.state.velocities[i] = 0.0
        self.state.fixed[i] = True

    def unpin(self, node_id: str) -> None:
        self.state.fixed[self._index[node_id]] = False

    # =========================================================================
    # DERIVED CLUSTERS
    # =========================================================================

    def _groups(self, level: str) -> Dict[Tuple[Optional[str], str], List[int]]:
        if level not in (PRIMARY, SECONDARY):
            raise ValueError(f"level must be {PRIMARY!r} or {SECONDARY!r}, got {level!r}")
        groups: Dict[Tuple[Optional[str], str], List[int]] = {}
        for i, primary in enumerate(self.primary_keys):
            if level == PRIMARY:
                key = (None, primary)
            else:
                secondary = self.secondary_keys[i]
                if secondary is None:
                    continue
                key = (primary, secondary)
            groups.setdefault(key, []).append(i)
        return groups

    def clusters(self, level: str = PRIMARY) -> List[Cluster]:
        """Clusters with centroids taken from the current positions."""
        pos = self.state.positions
        result = []
        for (parent, key), members in self._groups(level).items():
            result.append(Cluster(
                key=key,
                label=cluster_label(key),
                color=self._colors.get((level, key), "#9ca3af"),
                member_ids=tuple(self.ids[i] for i in members),
                centroid=tuple(float(c) for c in pos[members].mean(axis=0)),
                parent_key=parent,
            ))
        return result

    def hulls(self, level: str = PRIMARY) -> List[ClusterHull]:
        """Padded hulls for clusters with at least three non-collinear members."""
        pos = self.state.positions
        result = []
        for (parent, key), members in self._groups(level).items():
            points = pos[members]
            vertices = compute_hull(points, self.config.hull_padding)
            if vertices is None:
                continue
            result.append(ClusterHull(
                key=key,
                label=cluster_label(key),
                color=self._colors.get((level, key), "#9ca3af"),
                vertices=tuple((float(x), float(y)) for x, y in vertices),
                label_position=label_position(points),
            ))
        return result

    def __len__(self) -> int:
        return len(self.ids)
