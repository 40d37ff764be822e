"""
Contracts shared by every layer.

Layers import types from here and nowhere else in the contracts package.
"""

from .base import (
    SCHEMA_VERSION,
    EntityType,
    Domain,
    Derivation,
    ErrorCode,
    SchemaViolation,
    ValidationFailure,
    Result,
)
from .entities import (
    Entity,
    EntityMetadata,
    TRLRange,
    Funding,
    Dates,
    Milestone,
    Location,
    Coordinates,
    InlineRelationship,
    VisualizationHints,
    Relationship,
    RelationshipMetadata,
    EntityFilter,
    EntityGraph,
)

__all__ = [
    "SCHEMA_VERSION",
    "EntityType",
    "Domain",
    "Derivation",
    "ErrorCode",
    "SchemaViolation",
    "ValidationFailure",
    "Result",
    "Entity",
    "EntityMetadata",
    "TRLRange",
    "Funding",
    "Dates",
    "Milestone",
    "Location",
    "Coordinates",
    "InlineRelationship",
    "VisualizationHints",
    "Relationship",
    "RelationshipMetadata",
    "EntityFilter",
    "EntityGraph",
]
