"""
Scenario Tools

"What-if" operations for analysts and function-calling agents. Every
tool reads the registry snapshot and returns a JSON-serializable dict
with structured data plus a one-line ``summary`` or ``message``.

READ-ONLY:
==========
No tool registers, removes or edits anything. ``simulate_removal``
answers a hypothetical; the registry is untouched.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import ToolConfig
from ..contracts.entities import Entity, Relationship, TRLRange
from ..errors import EntityNotFoundError
from ..registry import EntityRegistry
from ..topology import TopologyEngine
from .base import ScenarioTool, ToolRegistry, ToolResult
from .params import (
    COMPARE_SCHEMA,
    DEPENDENCY_SCHEMA,
    FILTER_SCHEMA,
    FUNDING_GAP_SCHEMA,
    REMOVAL_SCHEMA,
    SIMILAR_SCHEMA,
    STATISTICS_SCHEMA,
    CompareParams,
    DependencyParams,
    FilterParams,
    FundingGapParams,
    RemovalParams,
    SimilarParams,
    StatisticsParams,
)
from .similarity import SearchOptions, SimilarityBackend, build_embedding_text, heuristic_similarity

logger = logging.getLogger(__name__)


def millions(amount: float) -> str:
    return f"£{amount / 1_000_000:.1f}M"


def _brief(entity: Entity, with_domain: bool = True) -> Dict[str, str]:
    brief = {"id": entity.id, "name": entity.name, "entityType": entity.entity_type.value}
    if with_domain:
        brief["domain"] = entity.domain.value
    return brief


# =============================================================================
# PREDICATES
# =============================================================================

def trl_in_range(entity: Entity, low: float, high: float) -> bool:
    """
    Bare TRL: inside [low, high]. Range with bounds: the whole range
    inside. Range without bounds: ``current`` inside.
    """
    trl = entity.metadata.trl
    if trl is None:
        return False
    if isinstance(trl, TRLRange):
        if trl.min is not None or trl.max is not None:
            lo = trl.min if trl.min is not None else trl.max
            hi = trl.max if trl.max is not None else trl.min
            return lo >= low and hi <= high
        return low <= trl.current <= high
    return low <= trl <= high


def matches_filter(entity: Entity, params: FilterParams) -> bool:
    if params.domain is not None and entity.domain != params.domain:
        return False
    if params.entity_type is not None and entity.entity_type != params.entity_type:
        return False
    if params.trl_range is not None and not trl_in_range(entity, *params.trl_range):
        return False
    if params.sector is not None and params.sector not in entity.sectors:
        return False
    if params.min_funding is not None and entity.funding_amount < params.min_funding:
        return False
    if params.max_funding is not None and entity.funding_amount > params.max_funding:
        return False
    return True


def funding_needed(entity: Entity) -> float:
    """Amount, else midpoint of the recorded min/max range, else 0."""
    funding = entity.metadata.funding
    if funding is not None and funding.amount is not None:
        return funding.amount
    custom = entity.custom
    bounds = custom.get("funding_range")
    if isinstance(bounds, dict):
        low, high = bounds.get("min"), bounds.get("max")
    else:
        low, high = custom.get("amount_min"), custom.get("amount_max")
    values = [float(v) for v in (low, high) if isinstance(v, (int, float)) and not isinstance(v, bool)]
    return sum(values) / len(values) if values else 0.0


def funding_available(entity: Entity) -> float:
    funding = entity.metadata.funding
    if funding is not None and funding.amount is not None:
        return funding.amount
    provided = entity.custom.get("total_funding_provided")
    if isinstance(provided, (int, float)) and not isinstance(provided, bool):
        return float(provided)
    return 0.0


# =============================================================================
# TOOLKIT
# =============================================================================

class ScenarioToolkit(ToolRegistry):
    """The seven scenario tools bound to one registry."""

    def __init__(
        self,
        registry: EntityRegistry,
        similarity_backend: Optional[SimilarityBackend] = None,
        config: Optional[ToolConfig] = None,
    ):
        self.registry = registry
        self.similarity_backend = similarity_backend
        self.config = config or ToolConfig()
        super().__init__([
            ScenarioTool(
                "filter_entities",
                "Filter entities by criteria (domain, TRL, sector, funding, entity type). "
                "Use for 'show only', 'filter by' or 'what if we only consider' queries.",
                FILTER_SCHEMA, FilterParams, self.filter_entities,
            ),
            ScenarioTool(
                "calculate_funding_gap",
                "Calculate the funding gap for a sector or set of challenges. A multiplier "
                "models 'what if funding changed' scenarios.",
                FUNDING_GAP_SCHEMA, FundingGapParams, self.calculate_funding_gap,
            ),
            ScenarioTool(
                "find_similar_entities",
                "Find entities similar to a given entity, optionally across domains.",
                SIMILAR_SCHEMA, SimilarParams, self.find_similar_entities,
            ),
            ScenarioTool(
                "find_dependencies",
                "Find entities directly connected to a given entity, in either direction.",
                DEPENDENCY_SCHEMA, DependencyParams, self.find_dependencies,
            ),
            ScenarioTool(
                "simulate_removal",
                "Show the network impact of removing an entity: which neighbours would "
                "be left with no other connections.",
                REMOVAL_SCHEMA, RemovalParams, self.simulate_removal,
            ),
            ScenarioTool(
                "compare_scenarios",
                "Compare two filtered views (scenario A vs scenario B): entity overlap, "
                "funding and count differences.",
                COMPARE_SCHEMA, CompareParams, self.compare_scenarios,
            ),
            ScenarioTool(
                "get_network_statistics",
                "Statistics for the network or a subset of it: counts by type and domain, "
                "funding totals, relationships and structure.",
                STATISTICS_SCHEMA, StatisticsParams, self.get_network_statistics,
            ),
        ])

    def _require(self, entity_id: str) -> Entity:
        entity = self.registry.get_entity(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        return entity

    # =========================================================================
    # 1. FILTER
    # =========================================================================

    def _filtered(self, params: FilterParams) -> List[Entity]:
        return [e for e in self.registry.entities() if matches_filter(e, params)]

    def filter_entities(self, params: FilterParams) -> ToolResult:
        matched = self._filtered(params)
        total = sum(e.funding_amount for e in matched)
        return {
            "count": len(matched),
            "entities": [_brief(e) for e in matched[: self.config.preview_limit]],
            "totalFunding": total,
            "averageFunding": total / len(matched) if matched else 0.0,
            "summary": f"Found {len(matched)} entities matching criteria. Total funding: {millions(total)}",
        }

    # =========================================================================
    # 2. FUNDING GAP
    # =========================================================================

    def calculate_funding_gap(self, params: FundingGapParams) -> ToolResult:
        entities = self.registry.entities()
        challenges = [e for e in entities if e.entity_type.is_challenge_like]
        stakeholders = [e for e in entities if e.entity_type.is_stakeholder_like]
        if params.sector is not None:
            challenges = [c for c in challenges if params.sector in c.sectors]
            stakeholders = [s for s in stakeholders if params.sector in s.sectors]
        if params.entity_ids is not None:
            for entity_id in params.entity_ids:
                self._require(entity_id)
            wanted = set(params.entity_ids)
            challenges = [c for c in challenges if c.id in wanted]

        needed = sum(funding_needed(c) for c in challenges)
        available = sum(funding_available(s) for s in stakeholders)
        multiplier = params.funding_multiplier
        adjusted = available * multiplier
        gap = needed - adjusted

        if gap > 0:
            message = (
                f"Funding gap of {millions(gap)}. {len(challenges)} challenges need "
                f"{millions(needed)} but only {millions(adjusted)} is available."
            )
        else:
            message = f"Funding surplus of {millions(abs(gap))}."

        return {
            "sector": params.sector or "all",
            "challenges": len(challenges),
            "stakeholders": len(stakeholders),
            "totalNeeded": needed,
            "availableFunding": available,
            "adjustedAvailable": adjusted,
            "multiplier": multiplier,
            "gap": gap,
            "isGap": gap > 0,
            "message": message,
        }

    # =========================================================================
    # 3. SIMILAR ENTITIES
    # =========================================================================

    def _candidates(self, source: Entity, cross_domain: bool) -> List[Entity]:
        return [
            e for e in self.registry.get_by_type(source.entity_type)
            if e.id != source.id and (cross_domain or e.domain == source.domain)
        ]

    def _scored(self, source: Entity, cross_domain: bool, top_k: int) -> List[Tuple[Entity, float]]:
        if self.similarity_backend is not None:
            options = SearchOptions(
                domain=None if cross_domain else source.domain,
                entity_type=source.entity_type,
                top_k=top_k + 1,
            )
            matches = self.similarity_backend.search(build_embedding_text(source), options)
            logger.debug("Similarity backend returned %d matches for %s", len(matches), source.id)
            return [(m.entity, m.similarity) for m in matches if m.entity.id != source.id][:top_k]

        scored = [(c, heuristic_similarity(source, c)) for c in self._candidates(source, cross_domain)]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:top_k]

    def find_similar_entities(self, params: SimilarParams) -> ToolResult:
        source = self._require(params.entity_id)
        top_k = params.top_k or self.config.default_top_k
        top = self._scored(source, params.cross_domain, top_k)
        plural = "" if len(top) == 1 else "s"
        scope = " across domains" if params.cross_domain else ""
        return {
            "sourceEntity": {"id": source.id, "name": source.name, "domain": source.domain.value},
            "similarEntities": [
                {
                    "id": e.id,
                    "name": e.name,
                    "domain": e.domain.value,
                    "similarity": round(score * 100),
                }
                for e, score in top
            ],
            "crossDomain": params.cross_domain,
            "message": f"Found {len(top)} similar {source.entity_type.value}{plural}{scope}",
        }

    # =========================================================================
    # 4. DEPENDENCIES
    # =========================================================================

    def _dependencies(
        self, entity_id: str, relationship_types: Optional[Iterable[str]] = None
    ) -> Tuple[List[Relationship], List[Entity]]:
        edges = self.registry.edges_touching(entity_id)
        if relationship_types is not None:
            allowed = set(relationship_types)
            edges = [r for r in edges if r.type in allowed]
        connected: Dict[str, Entity] = {}
        for rel in edges:
            other_id = rel.other_end(entity_id)
            other = self.registry.get_entity(other_id)
            if other is not None and other_id != entity_id and other_id not in connected:
                connected[other_id] = other
        return edges, list(connected.values())

    def find_dependencies(self, params: DependencyParams) -> ToolResult:
        entity = self._require(params.entity_id)
        edges, connected = self._dependencies(entity.id, params.relationship_types)
        breakdown: Dict[str, int] = {}
        for rel in edges:
            breakdown[rel.type] = breakdown.get(rel.type, 0) + 1
        return {
            "entity": _brief(entity, with_domain=False),
            "connections": len(edges),
            "connectedEntities": [_brief(e) for e in connected],
            "relationshipBreakdown": breakdown,
            "message": (
                f"{entity.name} is connected to {len(connected)} entities "
                f"through {len(edges)} relationships."
            ),
        }

    # =========================================================================
    # 5. SIMULATE REMOVAL
    # =========================================================================

    def simulate_removal(self, params: RemovalParams) -> ToolResult:
        removed = self._require(params.entity_id)
        edges, connected = self._dependencies(removed.id)

        isolated = []
        for entity in connected:
            remaining = [r for r in self.registry.edges_touching(entity.id) if not r.touches(removed.id)]
            if not remaining:
                isolated.append(entity)

        total = len(self.registry)
        fragmentation = len(isolated) / total if total else 0.0
        return {
            "removedEntity": {"id": removed.id, "name": removed.name},
            "disconnectedEntities": len(connected),
            "isolatedEntities": [_brief(e, with_domain=False) for e in isolated],
            "impact": {
                "connectionsLost": len(edges),
                "entitiesIsolated": len(isolated),
                "networkFragmentation": fragmentation,
            },
            "message": (
                f"Removing {removed.name} would disconnect {len(connected)} entities, "
                f"of which {len(isolated)} would become isolated."
            ),
        }

    # =========================================================================
    # 6. COMPARE SCENARIOS
    # =========================================================================

    def compare_scenarios(self, params: CompareParams) -> ToolResult:
        matched_a = self._filtered(params.scenario_a)
        matched_b = self._filtered(params.scenario_b)
        ids_a = {e.id for e in matched_a}
        ids_b = {e.id for e in matched_b}
        funding_a = sum(e.funding_amount for e in matched_a)
        funding_b = sum(e.funding_amount for e in matched_b)
        in_both = len(ids_a & ids_b)
        limit = self.config.compare_preview_limit

        return {
            "scenarioA": {
                "count": len(matched_a),
                "funding": funding_a,
                "entities": [_brief(e) for e in matched_a[:limit]],
            },
            "scenarioB": {
                "count": len(matched_b),
                "funding": funding_b,
                "entities": [_brief(e) for e in matched_b[:limit]],
            },
            "differences": {
                "onlyInA": len(ids_a - ids_b),
                "onlyInB": len(ids_b - ids_a),
                "inBoth": in_both,
                "fundingDifference": funding_b - funding_a,
                "countDifference": len(matched_b) - len(matched_a),
            },
            "summary": (
                f"Scenario A has {len(matched_a)} entities ({millions(funding_a)}). "
                f"Scenario B has {len(matched_b)} entities ({millions(funding_b)}). "
                f"{in_both} entities appear in both scenarios."
            ),
        }

    # =========================================================================
    # 7. NETWORK STATISTICS
    # =========================================================================

    def get_network_statistics(self, params: StatisticsParams) -> ToolResult:
        if params.entity_ids:
            seen = set()
            entities = []
            for entity_id in params.entity_ids:
                entity = self.registry.get_entity(entity_id)
                if entity is not None and entity_id not in seen:
                    seen.add(entity_id)
                    entities.append(entity)
        else:
            entities = self.registry.entities()

        by_type: Dict[str, int] = {}
        by_domain: Dict[str, int] = {}
        for e in entities:
            by_type[e.entity_type.value] = by_type.get(e.entity_type.value, 0) + 1
            by_domain[e.domain.value] = by_domain.get(e.domain.value, 0) + 1

        ids = {e.id for e in entities}
        edges = [r for r in self.registry.relationships() if r.source in ids and r.target in ids]
        total = sum(e.funding_amount for e in entities)

        topology = TopologyEngine()
        topology.build_graph(ids, edges)
        metrics = topology.compute_metrics(include_diameter=False)

        count = len(entities)
        return {
            "totalEntities": count,
            "byType": by_type,
            "byDomain": by_domain,
            "totalFunding": total,
            "averageFunding": total / count if count else 0.0,
            "relationships": len(edges),
            "averageDegree": 2 * len(edges) / count if count else 0.0,
            "density": metrics.density,
            "connectedComponents": metrics.connected_components_count,
            "summary": (
                f"Network contains {count} entities across {len(by_domain)} domains, "
                f"with {len(edges)} relationships and {millions(total)} in total funding."
            ),
        }
