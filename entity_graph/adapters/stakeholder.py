"""
Stakeholder (Navigate) → Entity.
"""

from __future__ import annotations
from typing import Any, List, Mapping

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity
from .base import adapt_all, bounded_size, color_for, compact, finalize_entity, log_score, section


KIND = "stakeholder"

TYPE_COLORS = {
    "Government": "#006E51",
    "Research": "#7b2cbf",
    "Industry": "#e76f51",
    "Intermediary": "#2d8f6f",
    "Working Group": "#ec4899",
}

CAPACITY_PRIORITY = {
    "High": 3,
    "Medium": 2,
    "Low": 1,
}

# High-influence stakeholders get one extra priority step
INFLUENCE_BOOST_THRESHOLD = 0.7


def stakeholder_size(record: Mapping[str, Any]) -> float:
    funding_score = log_score(record.get("total_funding_provided"), 5, 20.0)
    relationship_score = (record.get("relationship_count") or 0) * 2
    return bounded_size(funding_score + relationship_score)


def stakeholder_priority(record: Mapping[str, Any]) -> int:
    base = CAPACITY_PRIORITY.get(record.get("funding_capacity"), 1)
    influence = record.get("influence_score") or 0
    return base + (1 if influence > INFLUENCE_BOOST_THRESHOLD else 0)


def to_entity(record: Mapping[str, Any]) -> Entity:
    """Convert one stakeholder record. Raises AdapterValidationError."""
    kind = record.get("type")
    provided = record.get("total_funding_provided")
    location = section(record, "location")

    candidate = {
        "id": record.get("id"),
        "name": record.get("name"),
        "description": record.get("description") or "",
        "entityType": EntityType.STAKEHOLDER,
        "domain": Domain.NAVIGATE,
        "metadata": compact({
            "sector": record.get("sector"),
            "tags": record.get("tags"),
            # Research organisations are grouped with academia
            "category": "Academia" if kind == "Research" else kind,
            "status": "active",
            "funding": {"amount": provided, "currency": "GBP", "type": "grant"} if provided else None,
            "location": compact({
                "country": location.get("country"),
                "region": location.get("region"),
            }) if location else None,
            "custom": compact({
                "type": kind,
                "funding_capacity": record.get("funding_capacity"),
                "total_funding_provided": provided,
                "total_funding_received": record.get("total_funding_received"),
                "relationship_count": record.get("relationship_count"),
                "influence_score": record.get("influence_score"),
                "contact": record.get("contact"),
                "capacity_scenarios": record.get("capacity_scenarios"),
            }),
        }),
        "visualizationHints": {
            "color": color_for(kind, TYPE_COLORS),
            "size": stakeholder_size(record),
            "priority": stakeholder_priority(record),
        },
    }
    return finalize_entity(candidate, KIND, original=record)


def to_entities(records: List[Mapping[str, Any]]) -> List[Entity]:
    return list(adapt_all(records, to_entity, KIND).entities)
