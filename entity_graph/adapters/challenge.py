"""
Challenge (Atlas) → Entity.

Challenges name themselves with ``title``, carry funding and TRL as
min/max ranges, and express priority through timeline urgency.
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity
from .base import adapt_all, bounded_size, color_for, compact, finalize_entity, log_score, section


KIND = "challenge"

SECTOR_COLORS = {
    "rail": "#006E51",
    "energy": "#4A90E2",
    "local_gov": "#8b5cf6",
    "transport": "#50C878",
    "built_env": "#F5A623",
    "aviation": "#e76f51",
}

URGENCY_PRIORITY = {
    "critical": 3,
    "moderate": 2,
    "flexible": 1,
}


def _representative(low: Optional[float], high: Optional[float]) -> Optional[float]:
    return high if high is not None else low


def _trl(maturity: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    low, high = maturity.get("trl_min"), maturity.get("trl_max")
    if low is None and high is None:
        return None
    return compact({
        "current": _representative(low, high),
        "min": low if low is not None else high,
        "max": high if high is not None else low,
    })


def _funding(funding: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    low, high = funding.get("amount_min"), funding.get("amount_max")
    if low is None and high is None:
        return None
    return compact({
        "amount": _representative(low, high),
        "currency": funding.get("currency"),
        "type": funding.get("mechanism"),
    })


def _location(geography: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    scope = geography.get("scope")
    if not scope:
        return None
    locations = geography.get("specific_locations") or []
    return compact({
        "country": "UK" if scope == "UK-wide" else None,
        "region": locations[0] if locations else None,
    })


def challenge_size(record: Mapping[str, Any]) -> float:
    funding = section(record, "funding")
    amount = _representative(funding.get("amount_min"), funding.get("amount_max"))
    if not amount:
        return 30.0
    return bounded_size(log_score(amount, 10, 30.0))


def to_entity(record: Mapping[str, Any]) -> Entity:
    """Convert one challenge record. Raises AdapterValidationError."""
    sector = section(record, "sector")
    problem = section(record, "problem_type")
    funding = section(record, "funding")
    timeline = section(record, "timeline")
    maturity = section(record, "maturity")
    geography = section(record, "geography")

    deadline = timeline.get("deadline")
    custom = {
        "problem_type": dict(problem) or None,
        "buyer": record.get("buyer"),
        "source_url": record.get("source_url"),
        "cross_sector_signals": sector.get("cross_sector_signals"),
        "technology_domains": problem.get("technology_domains"),
        "evidence_required": maturity.get("evidence_required"),
        "deployment_ready": maturity.get("deployment_ready"),
        "trial_expected": maturity.get("trial_expected"),
    }
    if funding.get("amount_min") is not None or funding.get("amount_max") is not None:
        custom["funding_range"] = compact({
            "min": funding.get("amount_min"),
            "max": funding.get("amount_max"),
        })

    candidate = {
        "id": record.get("id"),
        "name": record.get("title"),
        "description": record.get("description") or "",
        "entityType": EntityType.CHALLENGE,
        "domain": Domain.ATLAS,
        "metadata": compact({
            "sector": sector.get("primary"),
            "tags": record.get("keywords"),
            "category": problem.get("primary"),
            "trl": _trl(maturity),
            "status": timeline.get("urgency"),
            "funding": _funding(funding),
            "dates": {"end": deadline} if deadline else None,
            "location": _location(geography),
            "custom": compact(custom),
        }),
        "visualizationHints": {
            "color": color_for(sector.get("primary"), SECTOR_COLORS),
            "size": challenge_size(record),
            "priority": URGENCY_PRIORITY.get(timeline.get("urgency"), 1),
        },
    }
    return finalize_entity(candidate, KIND, original=record)


def to_entities(records: List[Mapping[str, Any]]) -> List[Entity]:
    """Convert a batch; bad records are logged and skipped."""
    return list(adapt_all(records, to_entity, KIND).entities)
