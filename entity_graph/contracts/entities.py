"""
Universal Entity Contracts

The single typed schema every domain record is normalized into.

BOUNDARY ENFORCEMENT:
=====================
- Models are FROZEN; a filter or dataset change produces new objects
- Wire names (camelCase, ``_version``, ``_original``) are aliases; Python
  code uses snake_case attribute names
- ``_original`` is a debugging back-reference only and is never serialized
  or read by core logic
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, model_validator

from .base import Derivation, Domain, EntityType


_FROZEN = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

NonBlank = Annotated[str, Field(min_length=1, pattern=r"\S")]
TRLLevel = Annotated[float, Field(ge=1, le=9)]


# =============================================================================
# METADATA SUB-OBJECTS
# =============================================================================

class TRLRange(BaseModel):
    """Technology Readiness Level expressed as a range."""
    model_config = _FROZEN

    current: TRLLevel
    target: Optional[TRLLevel] = None
    min: Optional[TRLLevel] = None
    max: Optional[TRLLevel] = None

    @model_validator(mode="after")
    def _ordered_bounds(self) -> "TRLRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"TRL range min {self.min:g} exceeds max {self.max:g}")
        return self


def _trl_shape(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return "level"
    if isinstance(value, (dict, TRLRange)):
        return "range"
    return None


TRLValue = Annotated[
    Union[Annotated[TRLLevel, Tag("level")], Annotated[TRLRange, Tag("range")]],
    Discriminator(
        _trl_shape,
        custom_error_type="invalid_trl",
        custom_error_message="TRL must be a number in [1, 9] or a {current, target, min, max} object",
    ),
]

# Union member tags that appear in validation locations but are not fields.
UNION_TAGS = frozenset({"level", "range"})


class Funding(BaseModel):
    model_config = _FROZEN

    amount: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    source: Optional[str] = None
    type: Optional[str] = None


DateLike = Union[datetime, date, str]


class Milestone(BaseModel):
    model_config = _FROZEN

    date: DateLike
    label: str


class Dates(BaseModel):
    model_config = _FROZEN

    start: Optional[DateLike] = None
    end: Optional[DateLike] = None
    milestones: Optional[List[Milestone]] = None


class Coordinates(BaseModel):
    model_config = _FROZEN

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Location(BaseModel):
    model_config = _FROZEN

    country: Optional[str] = None
    region: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class EntityMetadata(BaseModel):
    """Optional, semantically-typed attributes plus an open ``custom`` map."""
    model_config = _FROZEN

    sector: Optional[Union[str, List[str]]] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    trl: Optional[TRLValue] = None
    status: Optional[str] = None
    funding: Optional[Funding] = None
    dates: Optional[Dates] = None
    location: Optional[Location] = None
    custom: Optional[Dict[str, Any]] = None


class InlineRelationship(BaseModel):
    """Denormalized convenience edge carried on the entity itself."""
    model_config = _FROZEN

    target_id: NonBlank = Field(alias="targetId")
    type: NonBlank
    strength: Optional[float] = Field(default=None, ge=0, le=1)
    metadata: Optional[Dict[str, Any]] = None


class VisualizationHints(BaseModel):
    """Advisory rendering hints. Never load-bearing."""
    model_config = _FROZEN

    color: Optional[str] = None
    size: Optional[float] = None
    icon: Optional[str] = None
    priority: Optional[float] = None


# =============================================================================
# ENTITY
# =============================================================================

class Entity(BaseModel):
    """Universal record for any domain object."""
    model_config = _FROZEN

    version: Literal["1.0"] = Field(alias="_version")
    id: NonBlank
    name: NonBlank
    description: str = ""
    entity_type: EntityType = Field(alias="entityType")
    domain: Domain
    metadata: EntityMetadata = Field(default_factory=EntityMetadata)
    relationships: Optional[List[InlineRelationship]] = None
    visualization_hints: Optional[VisualizationHints] = Field(default=None, alias="visualizationHints")
    original: Any = Field(default=None, alias="_original", exclude=True, repr=False)

    @property
    def sectors(self) -> List[str]:
        sector = self.metadata.sector
        if sector is None:
            return []
        if isinstance(sector, str):
            return [sector]
        return list(sector)

    @property
    def tags(self) -> List[str]:
        return list(self.metadata.tags or [])

    @property
    def trl_level(self) -> Optional[float]:
        """Representative TRL: the bare number, or ``current`` of a range."""
        trl = self.metadata.trl
        if trl is None:
            return None
        if isinstance(trl, TRLRange):
            return trl.current
        return float(trl)

    @property
    def funding_amount(self) -> float:
        funding = self.metadata.funding
        if funding is None or funding.amount is None:
            return 0.0
        return funding.amount

    @property
    def custom(self) -> Dict[str, Any]:
        return dict(self.metadata.custom or {})

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict using wire (alias) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def summary(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "entityType": self.entity_type.value,
            "domain": self.domain.value,
        }


# =============================================================================
# RELATIONSHIP
# =============================================================================

class RelationshipMetadata(BaseModel):
    """Unnormalized provenance carried alongside an edge. Extra keys allowed."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    original_strength: Optional[float] = Field(default=None, alias="originalStrength")
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    bidirectional: Optional[bool] = None
    amount: Optional[float] = None
    program: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None


class Relationship(BaseModel):
    """Universal edge between two entities."""
    model_config = _FROZEN

    id: NonBlank
    source: NonBlank
    target: NonBlank
    source_type: EntityType = Field(alias="sourceType")
    target_type: EntityType = Field(alias="targetType")
    type: NonBlank
    strength: float = Field(ge=0, le=1)
    derivation: Derivation
    metadata: Optional[RelationshipMetadata] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def touches(self, entity_id: str) -> bool:
        return self.source == entity_id or self.target == entity_id

    def other_end(self, entity_id: str) -> str:
        return self.target if self.source == entity_id else self.source

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# QUERY CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class EntityFilter:
    """
    Composable filter for network views.
    Every populated constraint must hold (logical AND).
    """
    entity_types: Tuple[EntityType, ...] = ()
    domains: Tuple[Domain, ...] = ()
    sectors: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    trl_range: Optional[Tuple[float, float]] = None
    status: Tuple[str, ...] = ()
    search_query: Optional[str] = None

    def matches(self, entity: Entity) -> bool:
        if self.entity_types and entity.entity_type not in self.entity_types:
            return False
        if self.domains and entity.domain not in self.domains:
            return False
        if self.sectors and not any(s in self.sectors for s in entity.sectors):
            return False
        if self.tags and not any(t in entity.tags for t in self.tags):
            return False
        if self.trl_range is not None:
            level = entity.trl_level
            if level is None:
                return False
            low, high = self.trl_range
            if not low <= level <= high:
                return False
        if self.status and entity.metadata.status not in self.status:
            return False
        if self.search_query:
            query = self.search_query.lower()
            haystacks = [entity.name.lower(), entity.description.lower()]
            haystacks.extend(t.lower() for t in entity.tags)
            if not any(query in h for h in haystacks):
                return False
        return True


@dataclass(frozen=True)
class EntityGraph:
    """Immutable node/edge view of (part of) the registry."""
    nodes: Tuple[Entity, ...] = field(default_factory=tuple)
    edges: Tuple[Relationship, ...] = field(default_factory=tuple)

    @property
    def node_ids(self) -> FrozenSet[str]:
        return frozenset(n.id for n in self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_wire() for n in self.nodes],
            "edges": [e.to_wire() for e in self.edges],
        }
