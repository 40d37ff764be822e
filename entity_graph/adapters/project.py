"""
Project (Navigate) → Entity.
"""

from __future__ import annotations
from typing import Any, List, Mapping

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity
from .base import adapt_all, bounded_size, color_for, compact, finalize_entity, log_score, section


KIND = "project"
SECTOR = "aviation"

STATUS_COLORS = {
    "Active": "#10b981",
    "Completed": "#6b7280",
    "Planned": "#f59e0b",
}

STATUS_PRIORITY = {
    "Active": 3,
    "Planned": 2,
    "Completed": 1,
}


def project_size(record: Mapping[str, Any]) -> float:
    budget_score = log_score(record.get("total_budget"), 5, 20.0)
    participant_score = len(record.get("participants") or []) * 2
    return bounded_size(budget_score + participant_score)


def project_priority(record: Mapping[str, Any]) -> int:
    base = STATUS_PRIORITY.get(record.get("status"), 1)
    outcomes = section(record, "outcomes")
    significant = any(outcomes.get(k) for k in ("trl_advancement", "publications", "patents"))
    return base + (1 if significant else 0)


def _dates(record: Mapping[str, Any]):
    start, end = record.get("start_date"), record.get("end_date")
    objectives = record.get("objectives") or []
    # Objectives have no dates of their own; they are pinned to the start
    milestones = [{"date": start, "label": str(obj)} for obj in objectives] if start else None
    dates = compact({"start": start, "end": end, "milestones": milestones})
    return dates or None


def to_entity(record: Mapping[str, Any]) -> Entity:
    """Convert one project record. Raises AdapterValidationError."""
    status = record.get("status")
    budget = record.get("total_budget")

    candidate = {
        "id": record.get("id"),
        "name": record.get("name"),
        "description": record.get("description") or "",
        "entityType": EntityType.PROJECT,
        "domain": Domain.NAVIGATE,
        "metadata": compact({
            "sector": SECTOR,
            "tags": record.get("tags"),
            "status": status.lower() if isinstance(status, str) else None,
            "funding": {"amount": budget, "currency": "GBP", "type": "grant"} if budget else None,
            "dates": _dates(record),
            "custom": compact({
                "status": status,
                "participants": record.get("participants"),
                "lead_organization": record.get("lead_organization"),
                "technologies": record.get("technologies"),
                "primary_technology": record.get("primary_technology"),
                "funding_events": record.get("funding_events"),
                "objectives": record.get("objectives"),
                "outcomes": record.get("outcomes"),
                "duration_months": record.get("duration_months"),
            }),
        }),
        "visualizationHints": {
            "color": color_for(status, STATUS_COLORS),
            "size": project_size(record),
            "priority": project_priority(record),
        },
    }
    return finalize_entity(candidate, KIND, original=record)


def to_entities(records: List[Mapping[str, Any]]) -> List[Entity]:
    return list(adapt_all(records, to_entity, KIND).entities)
