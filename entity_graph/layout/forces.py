"""
Simulation forces.

Each force is a callable ``force(state, alpha)`` that adds to
``state.velocities`` in place (the centre force shifts positions, as in
d3-force). All maths is vectorized over numpy arrays of shape (n, dims).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np


@dataclass
class SimulationState:
    """Mutable per-tick arrays. Rows align with the simulation's node ids."""
    positions: np.ndarray
    velocities: np.ndarray
    fixed: np.ndarray = None

    def __post_init__(self):
        if self.fixed is None:
            self.fixed = np.zeros(len(self.positions), dtype=bool)

    @property
    def size(self) -> int:
        return int(self.positions.shape[0])

    @property
    def dimensions(self) -> int:
        return int(self.positions.shape[1])


class Force:
    """Base class; subclasses implement ``__call__``."""

    name = "force"

    def __call__(self, state: SimulationState, alpha: float) -> None:
        raise NotImplementedError


# =============================================================================
# CLUSTER CENTROID
# =============================================================================

class ClusterCentroidForce(Force):
    """
    Pull members of each group toward the group's current centroid.

    ``v += (d / |d|) * |d| * strength * alpha`` which reduces to
    ``v += d * strength * alpha``. Centroids are recomputed from positions
    on every call; groups of one member are skipped.
    """

    name = "cluster"

    def __init__(self, groups: Sequence[Sequence[int]], strength: float):
        self.groups = [np.asarray(g, dtype=int) for g in groups if len(g) > 1]
        self.strength = strength

    def __call__(self, state: SimulationState, alpha: float) -> None:
        if not self.strength:
            return
        pos, vel = state.positions, state.velocities
        for members in self.groups:
            centroid = pos[members].mean(axis=0)
            vel[members] += (centroid - pos[members]) * (self.strength * alpha)

    def centroids(self, state: SimulationState) -> List[np.ndarray]:
        return [state.positions[m].mean(axis=0) for m in self.groups]


# =============================================================================
# LINKS
# =============================================================================

class LinkForce(Force):
    """
    Spring force along edges (d3 forceLink).

    Displacement is split between endpoints by degree so that
    high-degree nodes move less.
    """

    name = "link"

    def __init__(
        self,
        sources: Sequence[int],
        targets: Sequence[int],
        strengths: Sequence[float],
        node_count: int,
        distance: float = 60.0,
    ):
        self.sources = np.asarray(sources, dtype=int)
        self.targets = np.asarray(targets, dtype=int)
        self.strengths = np.asarray(strengths, dtype=float)
        self.distance = distance

        degree = np.zeros(node_count, dtype=float)
        np.add.at(degree, self.sources, 1.0)
        np.add.at(degree, self.targets, 1.0)
        with np.errstate(invalid="ignore", divide="ignore"):
            bias = degree[self.sources] / (degree[self.sources] + degree[self.targets])
        self.bias = np.nan_to_num(bias, nan=0.5)

    def __len__(self) -> int:
        return len(self.sources)

    def __call__(self, state: SimulationState, alpha: float) -> None:
        if not len(self.sources):
            return
        pos, vel = state.positions, state.velocities
        s, t = self.sources, self.targets

        delta = (pos[t] + vel[t]) - (pos[s] + vel[s])
        length = np.linalg.norm(delta, axis=1)
        length = np.where(length == 0, 1e-6, length)
        scale = (length - self.distance) / length * alpha * self.strengths
        delta *= scale[:, None]

        np.add.at(vel, t, -delta * self.bias[:, None])
        np.add.at(vel, s, delta * (1.0 - self.bias)[:, None])


# =============================================================================
# MANY-BODY / CENTRE
# =============================================================================

class ManyBodyForce(Force):
    """
    Pairwise charge; negative strength repels.

    Exact O(n^2) evaluation. ``distance_min`` bounds the force between
    near-coincident nodes.
    """

    name = "charge"

    def __init__(self, strength: float = -120.0, distance_min: float = 1.0, distance_max: Optional[float] = None):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = None if distance_max is None else distance_max * distance_max

    def __call__(self, state: SimulationState, alpha: float) -> None:
        n = state.size
        if n < 2 or not self.strength:
            return
        pos = state.positions
        diff = pos[None, :, :] - pos[:, None, :]            # diff[i, j] = p_j - p_i
        dist2 = np.einsum("ijk,ijk->ij", diff, diff)
        np.fill_diagonal(dist2, np.inf)
        dist2 = np.maximum(dist2, self.distance_min2)
        weight = self.strength * alpha / dist2
        if self.distance_max2 is not None:
            weight = np.where(dist2 > self.distance_max2, 0.0, weight)
        state.velocities += np.einsum("ij,ijk->ik", weight, diff)


class CenterForce(Force):
    """Translate all nodes so their mean sits at ``center``."""

    name = "center"

    def __init__(self, center: Optional[Sequence[float]] = None, strength: float = 1.0):
        self.center = None if center is None else np.asarray(center, dtype=float)
        self.strength = strength

    def __call__(self, state: SimulationState, alpha: float) -> None:
        if state.size == 0:
            return
        center = self.center if self.center is not None else np.zeros(state.dimensions)
        shift = (state.positions.mean(axis=0) - center) * self.strength
        state.positions[~state.fixed] -= shift
