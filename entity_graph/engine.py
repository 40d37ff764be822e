"""
Engine Orchestration Module

Unified interface over the layers: load a dataset bundle through the
adapters into a registry, then serve network views, layouts and
scenario tools from that registry.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. A dataset change is a full reset: ``clear()`` then re-register
3. One engine owns one registry; engines never share state
"""

from __future__ import annotations
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .adapters import ADAPTERS, adapt_all, build_similarity_relationships
from .adapters.base import finalize_relationship
from .adapters.relationship import to_relationship
from .config import GraphConfig
from .contracts.entities import Entity, EntityFilter, EntityGraph, Relationship
from .layout import ClusterBy, ClusteringLayoutEngine, ForceSimulation
from .layout.clusters import ClusterSpec
from .registry import EntityRegistry
from .tools import ScenarioToolkit, SimilarityBackend, ToolResult
from .validation import validate_entity

logger = logging.getLogger(__name__)


BUNDLE_KEYS = ("challenges", "stakeholders", "technologies", "projects", "entities", "relationships")


@dataclass(frozen=True)
class ImportReport:
    """Outcome of loading one dataset bundle."""
    entities_registered: int
    relationships_registered: int
    relationships_skipped: int
    similarity_edges: int = 0
    by_collection: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, tuple] = field(default_factory=dict)

    @property
    def failure_count(self) -> int:
        return sum(len(f) for f in self.failures.values())

    @property
    def ok(self) -> bool:
        return self.failure_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entitiesRegistered": self.entities_registered,
            "relationshipsRegistered": self.relationships_registered,
            "relationshipsSkipped": self.relationships_skipped,
            "similarityEdges": self.similarity_edges,
            "byCollection": dict(self.by_collection),
            "failures": {
                name: [
                    {"sourceId": f.source_id, "error": f.error, "fields": list(f.fields)}
                    for f in failures
                ]
                for name, failures in self.failures.items()
            },
        }


def _universal_entity(record: Mapping[str, Any]) -> Entity:
    result = validate_entity(record)
    if result.is_failure:
        result.error.raise_for(record.get("id") if isinstance(record, Mapping) else None, "entity")
    return result.value


def read_bundle(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Dataset bundle {path} must be a JSON object")
    unknown = sorted(set(data) - set(BUNDLE_KEYS))
    if unknown:
        logger.warning("Ignoring unknown dataset keys: %s", ", ".join(unknown))
    return data


class EntityGraphEngine:
    """
    Unified entity graph.

    FLOW:
    =====
    1. Adapters: raw records → Entity / Relationship
    2. Registry: register entities, then relationships
    3. Consumers: network views, layout simulations, scenario tools
    """

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        similarity_backend: Optional[SimilarityBackend] = None,
    ):
        self._config = config or GraphConfig()
        self._registry = EntityRegistry()
        self._layout = ClusteringLayoutEngine(self._config.layout)
        self._toolkit = ScenarioToolkit(self._registry, similarity_backend, self._config.tools)

    @property
    def config(self) -> GraphConfig:
        return self._config

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    @property
    def toolkit(self) -> ScenarioToolkit:
        return self._toolkit

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self, bundle: Mapping[str, Any], include_similarity: bool = False) -> ImportReport:
        """
        Replace the graph with the contents of ``bundle``.

        Bad records are collected in the report; they never abort the
        load.
        """
        self._registry.clear()
        by_collection: Dict[str, int] = {}
        failures: Dict[str, tuple] = {}

        entities: List[Entity] = []
        for name, convert in ADAPTERS.items():
            records = bundle.get(name) or []
            batch = adapt_all(records, convert, name)
            entities.extend(batch.entities)
            by_collection[name] = len(batch.entities)
            if batch.failures:
                failures[name] = batch.failures

        universal = adapt_all(bundle.get("entities") or [], _universal_entity, "entity")
        entities.extend(universal.entities)
        by_collection["entities"] = len(universal.entities)
        if universal.failures:
            failures["entities"] = universal.failures

        registered = self._registry.register(entities)

        relationships = self._adapt_relationships(bundle.get("relationships") or [], failures)
        similarity: List[Relationship] = []
        if include_similarity:
            similarity = build_similarity_relationships(
                entities, self._config.adapters.similarity_threshold
            )
        accepted = self._registry.register_relationships(relationships + similarity)
        offered = len(bundle.get("relationships") or []) + len(similarity)

        report = ImportReport(
            entities_registered=registered,
            relationships_registered=accepted,
            relationships_skipped=offered - accepted,
            similarity_edges=len(similarity),
            by_collection=by_collection,
            failures=failures,
        )
        logger.info(
            "Loaded %d entities, %d relationships (%d skipped, %d record failures)",
            report.entities_registered, report.relationships_registered,
            report.relationships_skipped, report.failure_count,
        )
        return report

    def load_file(self, path: Union[str, Path], include_similarity: bool = False) -> ImportReport:
        return self.load(read_bundle(path), include_similarity=include_similarity)

    def _adapt_relationships(self, records: Sequence[Any], failures: Dict[str, tuple]) -> List[Relationship]:
        config = self._config.adapters
        type_of = self._registry.type_of

        def convert(record: Mapping[str, Any]) -> Optional[Relationship]:
            if "derivation" in record:
                # Already in the universal shape
                return finalize_relationship(dict(record))
            source_type, target_type = type_of(record.get("source")), type_of(record.get("target"))
            if source_type is None or target_type is None:
                logger.debug("Cannot determine entity types for relationship %s", record.get("id"))
                return None
            return to_relationship(record, source_type, target_type, config)

        batch = adapt_all(records, convert, "relationship")
        if batch.failures:
            failures["relationships"] = batch.failures
        return list(batch.entities)

    # =========================================================================
    # CONSUMERS
    # =========================================================================

    def network(self, entity_filter: Optional[EntityFilter] = None) -> EntityGraph:
        return self._registry.to_network_data(entity_filter)

    def build_layout(
        self,
        entity_filter: Optional[EntityFilter] = None,
        cluster_by: ClusterSpec = ClusterBy.DOMAIN,
        secondary_by: Optional[ClusterSpec] = None,
    ) -> ForceSimulation:
        """Seeded simulation over a filtered view; tick it with ``step()``."""
        return self._layout.build(self.network(entity_filter), cluster_by, secondary_by)

    def execute_tool(self, name: str, params: Optional[Mapping[str, Any]] = None) -> ToolResult:
        return self._toolkit.execute(name, params)

    def describe_tools(self) -> List[Dict[str, Any]]:
        return self._toolkit.describe()

    def clear(self) -> None:
        self._registry.clear()
