"""
Tool parameter models and their JSON-schema declarations.

The pydantic models validate what arrives; the schema dicts are what
function-calling agents and form UIs are shown. Wire names are
camelCase.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..contracts.base import Domain, EntityType


_PARAMS = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class FilterParams(BaseModel):
    model_config = _PARAMS

    domain: Optional[Domain] = None
    entity_type: Optional[EntityType] = Field(default=None, alias="entityType")
    trl_range: Optional[Tuple[float, float]] = Field(default=None, alias="trlRange")
    sector: Optional[str] = None
    min_funding: Optional[float] = Field(default=None, alias="minFunding")
    max_funding: Optional[float] = Field(default=None, alias="maxFunding")

    @field_validator("trl_range")
    @classmethod
    def _ordered(cls, value):
        if value is not None and value[0] > value[1]:
            raise ValueError("trlRange must be [min, max] with min <= max")
        return value


class FundingGapParams(BaseModel):
    model_config = _PARAMS

    sector: Optional[str] = None
    entity_ids: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("entityIds", "challengeIds", "entity_ids"),
    )
    funding_multiplier: float = Field(default=1.0, ge=0, alias="fundingMultiplier")


class SimilarParams(BaseModel):
    model_config = _PARAMS

    entity_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("entityId", "challengeId", "entity_id"),
    )
    cross_domain: bool = Field(default=False, alias="crossDomain")
    top_k: Optional[int] = Field(default=None, ge=1, alias="topK")


class DependencyParams(BaseModel):
    model_config = _PARAMS

    entity_id: str = Field(min_length=1, alias="entityId")
    relationship_types: Optional[List[str]] = Field(default=None, alias="relationshipTypes")


class RemovalParams(BaseModel):
    model_config = _PARAMS

    entity_id: str = Field(min_length=1, alias="entityId")


class CompareParams(BaseModel):
    model_config = _PARAMS

    scenario_a: FilterParams = Field(alias="scenarioA")
    scenario_b: FilterParams = Field(alias="scenarioB")


class StatisticsParams(BaseModel):
    model_config = _PARAMS

    entity_ids: Optional[List[str]] = Field(default=None, alias="entityIds")


# =============================================================================
# JSON SCHEMA DECLARATIONS
# =============================================================================

_DOMAIN_ENUM = [d.value for d in Domain]
_TYPE_ENUM = [t.value for t in EntityType]

_FILTER_PROPERTIES: Dict[str, Any] = {
    "domain": {"type": "string", "enum": _DOMAIN_ENUM, "description": "Filter by domain"},
    "entityType": {"type": "string", "enum": _TYPE_ENUM, "description": "Filter by entity type"},
    "trlRange": {
        "type": "array",
        "items": {"type": "number"},
        "minItems": 2,
        "maxItems": 2,
        "description": "TRL range [min, max] (1-9)",
    },
    "sector": {"type": "string", "description": "Filter by sector"},
    "minFunding": {"type": "number", "description": "Minimum funding amount"},
    "maxFunding": {"type": "number", "description": "Maximum funding amount"},
}


def _object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


FILTER_SCHEMA = _object(_FILTER_PROPERTIES)

FUNDING_GAP_SCHEMA = _object({
    "sector": {"type": "string", "description": "Sector to analyze"},
    "entityIds": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Specific challenge IDs to analyze",
    },
    "fundingMultiplier": {
        "type": "number",
        "description": "Multiplier on available funding (2.0 = double, 0.5 = halve)",
        "default": 1.0,
    },
})

SIMILAR_SCHEMA = _object({
    "entityId": {"type": "string", "description": "Entity ID to find similar entities for"},
    "crossDomain": {
        "type": "boolean",
        "description": "Search across domains (e.g. rail solutions for an aviation challenge)",
        "default": False,
    },
    "topK": {"type": "integer", "description": "Number of similar entities to return", "default": 5},
}, required=["entityId"])

DEPENDENCY_SCHEMA = _object({
    "entityId": {"type": "string", "description": "Entity ID to find dependencies for"},
    "relationshipTypes": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Filter by relationship types (funds, collaborates_with, ...)",
    },
}, required=["entityId"])

REMOVAL_SCHEMA = _object({
    "entityId": {"type": "string", "description": "Entity ID to simulate removal of"},
}, required=["entityId"])

COMPARE_SCHEMA = _object({
    "scenarioA": dict(FILTER_SCHEMA, description="Filter criteria for scenario A"),
    "scenarioB": dict(FILTER_SCHEMA, description="Filter criteria for scenario B"),
}, required=["scenarioA", "scenarioB"])

STATISTICS_SCHEMA = _object({
    "entityIds": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Entity IDs to analyze (all entities when omitted or empty)",
    },
})
