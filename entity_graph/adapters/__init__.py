"""
Adapter Layer

RESPONSIBILITY: Map source-shaped records onto the universal schema
ALLOWED INPUTS: Raw challenge / stakeholder / technology / project /
relationship records
OUTPUTS: Entity and Relationship models (validated)

WHAT THIS LAYER MUST NOT DO:
============================
- Register anything (adapters are pure functions)
- Coerce an invalid record into a valid one
- Depend on the registry except through a type-lookup callable
"""

from typing import Any, Callable, Dict, Mapping

from ..contracts.entities import Entity
from . import challenge, project, stakeholder, technology
from .base import AdapterBatch, RecordFailure, adapt_all
from .relationship import normalize_strength, to_relationship, to_relationships
from .similarity import build_similarity_relationships, jaccard


# Source collection name (as it appears in a dataset bundle) → converter
ADAPTERS: Dict[str, Callable[[Mapping[str, Any]], Entity]] = {
    "challenges": challenge.to_entity,
    "stakeholders": stakeholder.to_entity,
    "technologies": technology.to_entity,
    "projects": project.to_entity,
}


__all__ = [
    "ADAPTERS",
    "AdapterBatch",
    "RecordFailure",
    "adapt_all",
    "challenge",
    "stakeholder",
    "technology",
    "project",
    "normalize_strength",
    "to_relationship",
    "to_relationships",
    "build_similarity_relationships",
    "jaccard",
]
