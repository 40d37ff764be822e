"""
Technology (Navigate) → Entity.

Navigate technologies are aviation-focused; their TRL is a current value
with a 2030 projection used as the target.
"""

from __future__ import annotations
from typing import Any, List, Mapping, Optional

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity
from .base import adapt_all, bounded_size, color_for, compact, finalize_entity, log_score, section


KIND = "technology"
SECTOR = "aviation"

TRL_COLORS = {
    "red": "#ef4444",
    "amber": "#f59e0b",
    "green": "#10b981",
}


def technology_size(record: Mapping[str, Any]) -> float:
    funding_score = log_score(record.get("total_funding"), 5, 20.0)
    stakeholder_score = (record.get("stakeholder_count") or 0) * 3
    return bounded_size(funding_score + stakeholder_score)


def technology_priority(record: Mapping[str, Any]) -> int:
    trl = record.get("trl_current")
    base = int(trl // 3) if isinstance(trl, (int, float)) and not isinstance(trl, bool) else 0
    return base + (1 if record.get("deployment_ready") else 0)


def _funding_type(record: Mapping[str, Any]) -> Optional[str]:
    by_type = section(record, "funding_by_type")
    if not by_type:
        return None
    return "grant" if (by_type.get("public") or 0) > 0 else "investment"


def to_entity(record: Mapping[str, Any]) -> Entity:
    """Convert one technology record. Raises AdapterValidationError."""
    total = record.get("total_funding")
    regions = record.get("regional_availability") or []
    trl_current = record.get("trl_current")

    candidate = {
        "id": record.get("id"),
        "name": record.get("name"),
        "description": record.get("description") or "",
        "entityType": EntityType.TECHNOLOGY,
        "domain": Domain.NAVIGATE,
        "metadata": compact({
            "sector": SECTOR,
            "tags": record.get("tags"),
            "category": record.get("category"),
            "trl": compact({
                "current": trl_current,
                "target": record.get("trl_projected_2030"),
            }) if trl_current is not None else None,
            "status": "active" if record.get("deployment_ready") else "planned",
            "funding": compact({
                "amount": total,
                "currency": "GBP",
                "type": _funding_type(record),
            }) if total else None,
            "location": {"region": regions[0]} if regions else None,
            "custom": compact({
                "category": record.get("category"),
                "trl_color": record.get("trl_color"),
                "trl_projected_2030": record.get("trl_projected_2030"),
                "trl_projected_2050": record.get("trl_projected_2050"),
                "maturity_risk": record.get("maturity_risk"),
                "deployment_ready": record.get("deployment_ready"),
                "funding_by_type": record.get("funding_by_type"),
                "stakeholder_count": record.get("stakeholder_count"),
                "project_count": record.get("project_count"),
                "regional_availability": record.get("regional_availability"),
            }),
        }),
        "visualizationHints": {
            "color": color_for(record.get("trl_color"), TRL_COLORS),
            "size": technology_size(record),
            "priority": technology_priority(record),
        },
    }
    return finalize_entity(candidate, KIND, original=record)


def to_entities(records: List[Mapping[str, Any]]) -> List[Entity]:
    return list(adapt_all(records, to_entity, KIND).entities)
