"""
Test Fixtures

Source-shaped records for every adapter plus builders for universal
entities and relationships. All fixtures are explicit - no random
generation.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from entity_graph.contracts.base import SCHEMA_VERSION, Derivation, Domain, EntityType
from entity_graph.contracts.entities import Entity, Relationship


# =============================================================================
# SOURCE RECORDS
# =============================================================================

CHALLENGE_RECORD: Dict[str, Any] = {
    "id": "ch-001",
    "title": "Regional rail decarbonisation",
    "description": "Reduce diesel emissions on regional rail lines",
    "sector": {"primary": "rail", "cross_sector_signals": ["energy"]},
    "keywords": ["decarbonisation", "hydrogen", "rail"],
    "problem_type": {"primary": "decarbonisation", "technology_domains": ["hydrogen", "battery"]},
    "funding": {"amount_min": 1_000_000, "amount_max": 2_000_000, "currency": "GBP", "mechanism": "grant"},
    "timeline": {"urgency": "critical", "deadline": "2026-06-30"},
    "maturity": {"trl_min": 4, "trl_max": 6, "evidence_required": "field trial", "deployment_ready": False, "trial_expected": True},
    "geography": {"scope": "UK-wide", "specific_locations": ["Scotland", "Wales"]},
    "buyer": "Network Rail",
    "source_url": "https://example.org/challenges/ch-001",
}

STAKEHOLDER_RECORD: Dict[str, Any] = {
    "id": "sh-001",
    "name": "Department for Transport",
    "description": "Government department funding transport innovation",
    "type": "Government",
    "sector": "transport",
    "tags": ["policy", "funding"],
    "location": {"country": "UK", "region": "London"},
    "total_funding_provided": 5_000_000,
    "total_funding_received": 0,
    "funding_capacity": "High",
    "relationship_count": 4,
    "influence_score": 0.9,
    "contact": {"email": "innovation@example.org"},
    "capacity_scenarios": {"baseline": 5_000_000},
}

TECHNOLOGY_RECORD: Dict[str, Any] = {
    "id": "tech-001",
    "name": "Hydrogen fuel cells",
    "description": "Fuel cell propulsion for regional aircraft",
    "category": "Propulsion",
    "tags": ["hydrogen", "propulsion"],
    "trl_current": 5,
    "trl_projected_2030": 8,
    "trl_projected_2050": 9,
    "trl_color": "amber",
    "maturity_risk": "medium",
    "deployment_ready": False,
    "total_funding": 2_500_000,
    "funding_by_type": {"public": 1_500_000, "private": 1_000_000},
    "stakeholder_count": 3,
    "project_count": 2,
    "regional_availability": ["UK", "EU"],
}

PROJECT_RECORD: Dict[str, Any] = {
    "id": "proj-001",
    "name": "Hydrogen flight trial",
    "description": "Demonstrate a hydrogen powertrain in flight",
    "status": "Active",
    "tags": ["hydrogen", "trial"],
    "total_budget": 3_000_000,
    "start_date": "2024-01-01",
    "end_date": "2025-12-31",
    "objectives": ["Fly a hydrogen aircraft", "Certify the powertrain"],
    "participants": ["sh-001", "sh-002"],
    "lead_organization": "sh-001",
    "technologies": ["tech-001"],
    "primary_technology": "tech-001",
    "funding_events": [],
    "outcomes": {"trl_advancement": 2},
    "duration_months": 24,
}

RELATIONSHIP_RECORDS: List[Dict[str, Any]] = [
    {
        "id": "rel-001",
        "source": "sh-001",
        "target": "proj-001",
        "type": "funds",
        "weight": 2_000_000,
        "bidirectional": False,
        "metadata": {"amount": 2_000_000, "program": "ATI", "project_id": "proj-001"},
    },
    {
        "id": "rel-002",
        "source": "proj-001",
        "target": "tech-001",
        "type": "uses",
        "weight": 0.8,
    },
    {
        "id": "rel-003",
        "source": "tech-001",
        "target": "ch-001",
        "type": "addresses",
    },
    {
        "id": "rel-404",
        "source": "sh-001",
        "target": "ghost-entity",
        "type": "funds",
        "weight": 10,
    },
]


def record(base: Dict[str, Any], **overrides) -> Dict[str, Any]:
    """Deep copy of a fixture record with top-level overrides."""
    data = copy.deepcopy(base)
    data.update(overrides)
    return data


def bundle() -> Dict[str, Any]:
    """One record of every source shape plus their relationships."""
    return {
        "challenges": [copy.deepcopy(CHALLENGE_RECORD)],
        "stakeholders": [copy.deepcopy(STAKEHOLDER_RECORD)],
        "technologies": [copy.deepcopy(TECHNOLOGY_RECORD)],
        "projects": [copy.deepcopy(PROJECT_RECORD)],
        "relationships": copy.deepcopy(RELATIONSHIP_RECORDS),
    }


def funding_gap_bundle() -> Dict[str, Any]:
    """Two challenges needing £2M and £3M; one stakeholder providing £4M."""
    return {
        "challenges": [
            {"id": "gap-ch-1", "title": "Challenge one", "sector": {"primary": "rail"},
             "funding": {"amount_max": 2_000_000, "currency": "GBP"}},
            {"id": "gap-ch-2", "title": "Challenge two", "sector": {"primary": "rail"},
             "funding": {"amount_max": 3_000_000, "currency": "GBP"}},
        ],
        "stakeholders": [
            {"id": "gap-sh-1", "name": "Funder", "type": "Government", "sector": "rail",
             "total_funding_provided": 4_000_000},
        ],
    }


# =============================================================================
# UNIVERSAL BUILDERS
# =============================================================================

def entity_data(
    entity_id: str,
    entity_type: EntityType = EntityType.STAKEHOLDER,
    domain: Domain = Domain.NAVIGATE,
    name: Optional[str] = None,
    description: str = "",
    **metadata,
) -> Dict[str, Any]:
    return {
        "_version": SCHEMA_VERSION,
        "id": entity_id,
        "name": name or entity_id.replace("-", " ").title(),
        "description": description,
        "entityType": entity_type.value,
        "domain": domain.value,
        "metadata": metadata,
    }


def make_entity(entity_id: str, **kwargs) -> Entity:
    return Entity.model_validate(entity_data(entity_id, **kwargs))


def make_relationship(
    source: Entity,
    target: Entity,
    rel_type: str = "collaborates_with",
    strength: float = 0.5,
    rel_id: Optional[str] = None,
) -> Relationship:
    return Relationship.model_validate({
        "id": rel_id or f"{source.id}->{target.id}",
        "source": source.id,
        "target": target.id,
        "sourceType": source.entity_type.value,
        "targetType": target.entity_type.value,
        "type": rel_type,
        "strength": strength,
        "derivation": Derivation.EXPLICIT.value,
    })


def star(leaves: int = 5):
    """One hub connected to ``leaves`` leaves, no leaf-leaf edges."""
    hub = make_entity("hub", name="Hub")
    spokes = [make_entity(f"leaf-{i}") for i in range(leaves)]
    edges = [make_relationship(hub, leaf, "funds") for leaf in spokes]
    return hub, spokes, edges


def chain(ids: Iterable[str]):
    """Entities linked a -> b -> c ... in order."""
    entities = [make_entity(i) for i in ids]
    edges = [make_relationship(a, b) for a, b in zip(entities, entities[1:])]
    return entities, edges
