"""
Cluster hulls: padded convex outlines around cluster members.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


Point = Tuple[float, float]


@dataclass(frozen=True)
class ClusterHull:
    key: str
    label: str
    color: str
    vertices: Tuple[Point, ...]
    label_position: Point

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "vertices": [list(v) for v in self.vertices],
            "labelPosition": list(self.label_position),
        }


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))


def convex_hull(points: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Andrew's monotone chain over the x/y columns.

    Returns the hull vertices counter-clockwise, without repeating the
    first vertex. Collinear points are dropped.
    """
    pts = np.unique(np.asarray(points, dtype=float)[:, :2], axis=0)
    if len(pts) < 3:
        return pts

    lower: List[np.ndarray] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: List[np.ndarray] = []
    for p in pts[::-1]:
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return np.array(lower[:-1] + upper[:-1])


def compute_hull(points: Sequence[Sequence[float]], padding: float = 30.0) -> Optional[np.ndarray]:
    """
    Convex hull pushed outward by ``padding`` from its own centroid.

    None when fewer than three non-collinear points are given.
    """
    if len(points) < 3:
        return None
    hull = convex_hull(points)
    if len(hull) < 3:
        return None
    centroid = hull.mean(axis=0)
    offsets = hull - centroid
    norms = np.linalg.norm(offsets, axis=1)
    norms = np.where(norms == 0, 1.0, norms)
    return hull + offsets / norms[:, None] * padding


def label_position(points: Sequence[Sequence[float]]) -> Point:
    """Above the member centroid, further up for larger clusters."""
    arr = np.asarray(points, dtype=float)[:, :2]
    cx, cy = arr.mean(axis=0)
    return float(cx), float(cy - len(arr) * 3 - 40)
