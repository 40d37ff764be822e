"""
Cluster keys, palettes and the derived Cluster record.

A cluster key function maps an entity to a string. Keys are resolved
defensively: a key function that raises, or returns something that is
not a non-empty string, puts the entity in ``"ungrouped"`` so a bad
accessor can never break a simulation tick.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import hashlib
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity

logger = logging.getLogger(__name__)


KeyFunc = Callable[[Entity], str]

UNGROUPED = "ungrouped"
ALL = "all"
FALLBACK_COLOR = "#9ca3af"


class ClusterBy(str, Enum):
    """Built-in clustering dimensions."""
    NONE = "none"
    DOMAIN = "domain"
    ENTITY_TYPE = "entity_type"
    SECTOR = "sector"
    MODE = "mode"
    THEME = "theme"


# =============================================================================
# PALETTES
# =============================================================================

DOMAIN_COLORS: Dict[str, str] = {
    Domain.ATLAS.value: "#006E51",
    Domain.NAVIGATE.value: "#4A90E2",
    Domain.CPC_INTERNAL.value: "#8b5cf6",
    Domain.REFERENCE.value: "#F5A623",
    Domain.CROSS_DOMAIN.value: "#e76f51",
}

ENTITY_TYPE_COLORS: Dict[str, str] = {
    EntityType.CHALLENGE.value: "#006E51",
    EntityType.STAKEHOLDER.value: "#7b2cbf",
    EntityType.TECHNOLOGY.value: "#10b981",
    EntityType.PROJECT.value: "#f59e0b",
    EntityType.FUNDING_EVENT.value: "#ef4444",
    EntityType.CAPABILITY.value: "#0ea5e9",
    EntityType.INITIATIVE.value: "#ec4899",
    EntityType.INNOVATION.value: "#14b8a6",
    EntityType.RAIL_CHALLENGE.value: "#2d8f6f",
    EntityType.RAIL_STAKEHOLDER.value: "#9333ea",
}

SECTOR_COLORS: Dict[str, str] = {
    "rail": "#006E51",
    "energy": "#4A90E2",
    "local_gov": "#8b5cf6",
    "transport": "#50C878",
    "built_env": "#F5A623",
    "aviation": "#e76f51",
    "maritime": "#0ea5e9",
    "highways": "#64748b",
}

# Caller-supplied accessors get a stable colour from this list
HASHED_PALETTE: Tuple[str, ...] = (
    "#4A90E2", "#50C878", "#F5A623", "#e76f51", "#8b5cf6",
    "#ec4899", "#14b8a6", "#f59e0b", "#0ea5e9", "#84cc16",
)

_PALETTES: Dict[ClusterBy, Mapping[str, str]] = {
    ClusterBy.NONE: {},
    ClusterBy.DOMAIN: DOMAIN_COLORS,
    ClusterBy.ENTITY_TYPE: ENTITY_TYPE_COLORS,
    ClusterBy.SECTOR: SECTOR_COLORS,
    ClusterBy.MODE: SECTOR_COLORS,
    ClusterBy.THEME: {},
}


def hashed_color(key: str) -> str:
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return HASHED_PALETTE[digest[0] % len(HASHED_PALETTE)]


def cluster_color(key: str, dimension: Optional[ClusterBy]) -> str:
    if key in (UNGROUPED, ALL):
        return FALLBACK_COLOR
    if dimension is None:
        return hashed_color(key)
    palette = _PALETTES[dimension]
    if palette:
        return palette.get(key, FALLBACK_COLOR)
    return hashed_color(key)


def cluster_label(key: str) -> str:
    return key.replace("_", " ").replace("-", " ").title()


# =============================================================================
# KEY FUNCTIONS
# =============================================================================

def _first_sector(entity: Entity) -> Optional[str]:
    sectors = entity.sectors
    return sectors[0] if sectors else None


def _mode(entity: Entity) -> Optional[str]:
    return entity.custom.get("mode") or _first_sector(entity)


def _theme(entity: Entity) -> Optional[str]:
    return entity.custom.get("theme") or entity.metadata.category


_KEY_FUNCS: Dict[ClusterBy, KeyFunc] = {
    ClusterBy.NONE: lambda entity: ALL,
    ClusterBy.DOMAIN: lambda entity: entity.domain.value,
    ClusterBy.ENTITY_TYPE: lambda entity: entity.entity_type.value,
    ClusterBy.SECTOR: _first_sector,
    ClusterBy.MODE: _mode,
    ClusterBy.THEME: _theme,
}


ClusterSpec = Union[ClusterBy, str, KeyFunc]


def resolve_key_func(spec: ClusterSpec) -> Tuple[KeyFunc, Optional[ClusterBy]]:
    """
    Turn a ClusterBy member, its string value, or a caller accessor into
    a key function plus the built-in dimension it came from (if any).
    """
    if callable(spec) and not isinstance(spec, (str, ClusterBy)):
        return spec, None
    dimension = ClusterBy(spec)
    return _KEY_FUNCS[dimension], dimension


def safe_key(key_func: KeyFunc, entity: Entity) -> str:
    try:
        key = key_func(entity)
    except Exception as e:  # caller accessors are arbitrary code
        logger.debug("Cluster key failed for %s: %s", entity.id, e)
        return UNGROUPED
    if not isinstance(key, str) or not key.strip():
        return UNGROUPED
    return key


def assign_keys(entities: Iterable[Entity], key_func: KeyFunc) -> List[str]:
    return [safe_key(key_func, e) for e in entities]


def group_indices(keys: Sequence[str]) -> Dict[str, List[int]]:
    """Key → member indices, keys in first-seen order."""
    groups: Dict[str, List[int]] = {}
    for i, key in enumerate(keys):
        groups.setdefault(key, []).append(i)
    return groups


# =============================================================================
# CLUSTER RECORD
# =============================================================================

@dataclass(frozen=True)
class Cluster:
    """Derived grouping; recomputed from current positions on demand."""
    key: str
    label: str
    color: str
    member_ids: Tuple[str, ...]
    centroid: Tuple[float, ...]
    parent_key: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.member_ids)

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "memberIds": list(self.member_ids),
            "centroid": list(self.centroid),
            "parentKey": self.parent_key,
        }


def build_clusters(
    entities: Sequence[Entity],
    spec: ClusterSpec,
    positions: Optional[Sequence[Sequence[float]]] = None,
) -> List[Cluster]:
    """
    Partition entities by cluster key.

    Centroids are the mean of ``positions`` (aligned with ``entities``)
    or the origin when no positions are given.
    """
    key_func, dimension = resolve_key_func(spec)
    keys = assign_keys(entities, key_func)
    clusters = []
    for key, members in group_indices(keys).items():
        if positions is not None and members:
            dims = len(positions[members[0]])
            centroid = tuple(
                sum(float(positions[i][d]) for i in members) / len(members) for d in range(dims)
            )
        else:
            centroid = (0.0, 0.0)
        clusters.append(Cluster(
            key=key,
            label=cluster_label(key),
            color=cluster_color(key, dimension),
            member_ids=tuple(entities[i].id for i in members),
            centroid=centroid,
        ))
    return clusters
