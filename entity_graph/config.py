"""
Configuration

One dataclass per layer, composed into GraphConfig. Every field has a
default so ``GraphConfig()`` is a working configuration.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import os
from typing import Any, Dict, Mapping, Optional


ENV_PREFIX = "ENTITY_GRAPH_"


@dataclass
class AdapterConfig:
    """Relationship normalization and similarity-edge settings."""
    reference_max_weight: float = 10_000_000.0
    # None rejects relationships without a usable weight
    default_strength: Optional[float] = 0.5
    similarity_threshold: float = 0.3


@dataclass
class LayoutConfig:
    """Force simulation parameters (d3-force conventions)."""
    dimensions: int = 2

    # Cooling
    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228
    alpha_target: float = 0.0
    velocity_decay: float = 0.4

    # Clustering
    cluster_strength: float = 0.3
    cluster_radius: float = 120.0
    cluster_spacing: float = 1.0
    grid_spacing: float = 45.0
    secondary_radius: float = 50.0
    tightness: float = 0.5
    primary_strength: Optional[float] = None
    secondary_strength: Optional[float] = None

    # Links
    link_distance: float = 60.0
    link_same_cluster: float = 0.7
    link_cross_cluster: float = 0.1
    link_unclustered: float = 0.3
    link_same_secondary: float = 0.9
    link_same_primary: float = 0.3
    link_cross_primary: float = 0.05

    # Many-body / center
    charge: float = -120.0
    distance_min: float = 1.0
    center_strength: float = 1.0

    # Clamps
    max_velocity: float = 18.0
    max_distance: float = 1000.0

    # Hulls
    hull_padding: float = 30.0

    jitter: float = 0.0
    seed: int = 0

    def nested_strengths(self):
        """
        Primary and secondary centroid strengths.

        Derived from ``tightness`` (0.5 gives 0.2 / 0.3) unless set
        explicitly.
        """
        primary = self.primary_strength
        if primary is None:
            primary = 0.4 * self.tightness
        secondary = self.secondary_strength
        if secondary is None:
            secondary = 0.6 * self.tightness
        return primary, secondary


@dataclass
class ToolConfig:
    preview_limit: int = 50
    compare_preview_limit: int = 10
    default_top_k: int = 5


@dataclass
class GraphConfig:
    """Unified configuration for the whole package."""
    adapters: AdapterConfig = None
    layout: LayoutConfig = None
    tools: ToolConfig = None
    dataset_path: Optional[str] = None

    def __post_init__(self):
        self.adapters = self.adapters or AdapterConfig()
        self.layout = self.layout or LayoutConfig()
        self.tools = self.tools or ToolConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> GraphConfig:
        """
        Build a config from ``ENTITY_GRAPH_*`` variables.

        ``ENTITY_GRAPH_DATASET`` sets the dataset path; any other variable
        named ``ENTITY_GRAPH_<SECTION>_<FIELD>`` (e.g.
        ``ENTITY_GRAPH_LAYOUT_CHARGE``) overrides that field.
        """
        env = os.environ if environ is None else environ
        config = cls(dataset_path=env.get(f"{ENV_PREFIX}DATASET"))
        for section in ("adapters", "layout", "tools"):
            target = getattr(config, section)
            for f in fields(target):
                key = f"{ENV_PREFIX}{section.upper()}_{f.name.upper()}"
                if key in env:
                    setattr(target, f.name, _coerce(getattr(target, f.name), env[key], key))
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adapters": dict(vars(self.adapters)),
            "layout": dict(vars(self.layout)),
            "tools": dict(vars(self.tools)),
            "dataset_path": self.dataset_path,
        }


def _coerce(current: Any, raw: str, key: str) -> Any:
    if raw.strip().lower() in ("none", "null", ""):
        return None
    try:
        if isinstance(current, bool):
            return raw.strip().lower() in ("1", "true", "yes", "on")
        if isinstance(current, int):
            return int(raw)
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be numeric, got {raw!r}") from None
