"""
Entity Registry Layer

RESPONSIBILITY: In-memory graph store indexed by id, type and adjacency
ALLOWED INPUTS: Validated Entity and Relationship models
OUTPUTS: Point lookups, typed scans, neighbour queries, bounded BFS
sub-graphs, filtered network views and text context blocks

WHAT THIS LAYER MUST NOT DO:
============================
- Validate or adapt raw records (adapters do that)
- Raise on lookup misses (absence returns None / empty)
- Index edges whose endpoints are unknown or mistyped
- Mutate registered models

The registry is an explicit object; nothing here is module-global, so
independent graphs can coexist (one per test, one per API process).
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ..contracts.base import EntityType
from ..contracts.entities import Entity, EntityFilter, EntityGraph, Relationship, TRLRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryStats:
    """Snapshot counts for monitoring and the stats endpoint."""
    total_entities: int
    total_relationships: int
    by_type: Dict[str, int] = field(default_factory=dict)
    by_domain: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalEntities": self.total_entities,
            "totalRelationships": self.total_relationships,
            "byType": dict(self.by_type),
            "byDomain": dict(self.by_domain),
        }


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class EntityRegistry:
    """
    Graph store over universal entities.

    Indices:
    - entities by id
    - entity ids by type (insertion ordered)
    - relationships by source id (forward) and by target id (reverse),
      each keyed by relationship id so re-registration is an upsert
    """

    def __init__(self):
        self._entities: Dict[str, Entity] = {}
        self._by_type: Dict[EntityType, Dict[str, None]] = {}
        self._relationships: Dict[str, Relationship] = {}
        self._forward: Dict[str, Dict[str, Relationship]] = {}
        self._reverse: Dict[str, Dict[str, Relationship]] = {}

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, entities: Iterable[Entity]) -> int:
        """
        Upsert entities by id. Returns the number processed.

        Re-registering an id under a different type moves it in the type
        index and drops its indexed edges, whose declared endpoint types
        no longer hold.
        """
        count = 0
        for entity in entities:
            previous = self._entities.get(entity.id)
            if previous is not None and previous.entity_type != entity.entity_type:
                self._by_type[previous.entity_type].pop(entity.id, None)
                dropped = self._drop_edges(entity.id)
                if dropped:
                    logger.warning(
                        "Entity %s re-typed %s -> %s; dropped %d relationships",
                        entity.id, previous.entity_type.value, entity.entity_type.value, dropped,
                    )
            self._entities[entity.id] = entity
            self._by_type.setdefault(entity.entity_type, {})[entity.id] = None
            count += 1
        return count

    def register_relationships(self, relationships: Iterable[Relationship]) -> int:
        """
        Index relationships whose endpoints are registered and typed as
        declared. Returns the number accepted; the rest are dropped.
        """
        accepted = 0
        for rel in relationships:
            source = self._entities.get(rel.source)
            target = self._entities.get(rel.target)
            if source is None or target is None:
                logger.debug(
                    "Dropping dangling relationship %s (%s -> %s)", rel.id, rel.source, rel.target
                )
                continue
            if source.entity_type != rel.source_type or target.entity_type != rel.target_type:
                logger.warning(
                    "Dropping relationship %s: declared %s -> %s but endpoints are %s -> %s",
                    rel.id, rel.source_type.value, rel.target_type.value,
                    source.entity_type.value, target.entity_type.value,
                )
                continue

            previous = self._relationships.get(rel.id)
            if previous is not None:
                self._forward.get(previous.source, {}).pop(rel.id, None)
                self._reverse.get(previous.target, {}).pop(rel.id, None)

            self._relationships[rel.id] = rel
            self._forward.setdefault(rel.source, {})[rel.id] = rel
            self._reverse.setdefault(rel.target, {})[rel.id] = rel
            accepted += 1
        return accepted

    def _drop_edges(self, entity_id: str) -> int:
        edges = self.edges_touching(entity_id)
        for rel in edges:
            self._relationships.pop(rel.id, None)
            self._forward.get(rel.source, {}).pop(rel.id, None)
            self._reverse.get(rel.target, {}).pop(rel.id, None)
        return len(edges)

    def clear(self) -> None:
        """Full reset."""
        self._entities.clear()
        self._by_type.clear()
        self._relationships.clear()
        self._forward.clear()
        self._reverse.clear()

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_entity(self, entity_id: str, expected_type: Optional[EntityType] = None) -> Optional[Entity]:
        entity = self._entities.get(entity_id)
        if entity is None:
            return None
        if expected_type is not None and entity.entity_type != expected_type:
            return None
        return entity

    def type_of(self, entity_id: Optional[str]) -> Optional[EntityType]:
        """Registered type of an id; usable as a relationship adapter lookup."""
        entity = self._entities.get(entity_id) if entity_id is not None else None
        return entity.entity_type if entity is not None else None

    def get_by_type(self, entity_type: EntityType) -> List[Entity]:
        return [self._entities[i] for i in self._by_type.get(entity_type, {})]

    def get_relationships(self, entity_id: str, relationship_type: Optional[str] = None) -> List[Relationship]:
        """Outgoing edges."""
        edges = self._forward.get(entity_id, {}).values()
        return [r for r in edges if relationship_type is None or r.type == relationship_type]

    def get_reverse_relationships(self, entity_id: str, relationship_type: Optional[str] = None) -> List[Relationship]:
        """Incoming edges."""
        edges = self._reverse.get(entity_id, {}).values()
        return [r for r in edges if relationship_type is None or r.type == relationship_type]

    def get_related(self, entity_id: str, relationship_type: Optional[str] = None) -> List[Entity]:
        """Targets of outgoing edges, de-duplicated in first-seen order."""
        seen: Dict[str, Entity] = {}
        for rel in self.get_relationships(entity_id, relationship_type):
            target = self._entities.get(rel.target)
            if target is not None and rel.target not in seen:
                seen[rel.target] = target
        return list(seen.values())

    def edges_touching(self, entity_id: str) -> List[Relationship]:
        """Outgoing then incoming edges; a self-loop appears once."""
        out = self.get_relationships(entity_id)
        out_ids = {r.id for r in out}
        return out + [r for r in self.get_reverse_relationships(entity_id) if r.id not in out_ids]

    # =========================================================================
    # TRAVERSAL
    # =========================================================================

    def find_connections(
        self,
        entity_id: str,
        max_depth: int = 2,
        bidirectional: bool = False,
    ) -> EntityGraph:
        """
        Breadth-first sub-graph around ``entity_id``.

        Each node is visited once; nodes are never further than
        ``max_depth`` hops from the origin. ``bidirectional`` controls which
        edges the walk follows. The returned edges are the induced
        sub-graph: every registered edge whose endpoints were both visited,
        in either direction. Only the visited nodes' adjacency is read, so
        cost is O(V + E) within the explored radius.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        if entity_id not in self._entities:
            return EntityGraph()

        depth_of: Dict[str, int] = {entity_id: 0}
        queue = deque([entity_id])
        while queue:
            current = queue.popleft()
            depth = depth_of[current]
            if depth >= max_depth:
                continue
            for neighbour in self._neighbours(current, bidirectional):
                if neighbour not in depth_of:
                    depth_of[neighbour] = depth + 1
                    queue.append(neighbour)

        edges = [
            r
            for node_id in depth_of
            for r in self._forward.get(node_id, {}).values()
            if r.target in depth_of
        ]
        return EntityGraph(
            nodes=tuple(self._entities[i] for i in depth_of),
            edges=tuple(edges),
        )

    def depths_from(self, entity_id: str, max_depth: int = 2, bidirectional: bool = False) -> Dict[str, int]:
        """Hop distance of every node reached by ``find_connections``."""
        graph = self.find_connections(entity_id, max_depth, bidirectional)
        result: Dict[str, int] = {}
        if not graph.nodes:
            return result
        result[entity_id] = 0
        queue = deque([entity_id])
        allowed = graph.node_ids
        while queue:
            current = queue.popleft()
            for neighbour in self._neighbours(current, bidirectional):
                if neighbour in allowed and neighbour not in result:
                    result[neighbour] = result[current] + 1
                    queue.append(neighbour)
        return result

    def _neighbours(self, entity_id: str, bidirectional: bool) -> Iterator[str]:
        for rel in self._forward.get(entity_id, {}).values():
            yield rel.target
        if bidirectional:
            for rel in self._reverse.get(entity_id, {}).values():
                yield rel.source

    # =========================================================================
    # VIEWS
    # =========================================================================

    def to_network_data(self, entity_filter: Optional[EntityFilter] = None) -> EntityGraph:
        """Filtered node set plus the edges whose endpoints both survive."""
        if entity_filter is None:
            nodes = list(self._entities.values())
        else:
            nodes = [e for e in self._entities.values() if entity_filter.matches(e)]
        kept: Set[str] = {n.id for n in nodes}
        edges = [r for r in self._relationships.values() if r.source in kept and r.target in kept]
        return EntityGraph(nodes=tuple(nodes), edges=tuple(edges))

    def to_context_string(self, entity_ids: Iterable[str]) -> str:
        """
        Flatten entities into a text block, one paragraph per entity in
        input order. Unknown ids are skipped.
        """
        blocks = []
        for entity_id in entity_ids:
            entity = self._entities.get(entity_id)
            if entity is None:
                continue
            blocks.append("\n".join(self._context_lines(entity)))
        return "\n\n".join(blocks)

    @staticmethod
    def _context_lines(entity: Entity) -> List[str]:
        lines = [
            f"Entity: {entity.name} ({entity.entity_type.value})",
            f"Description: {entity.description}",
        ]
        if entity.sectors:
            lines.append(f"Sector: {', '.join(entity.sectors)}")
        if entity.tags:
            lines.append(f"Tags: {', '.join(entity.tags)}")
        trl = entity.metadata.trl
        if isinstance(trl, TRLRange):
            target = f" (target: {_fmt_number(trl.target)})" if trl.target is not None else ""
            lines.append(f"TRL: {_fmt_number(trl.current)}{target}")
        elif trl is not None:
            lines.append(f"TRL: {_fmt_number(trl)}")
        funding = entity.metadata.funding
        if funding is not None and funding.amount is not None:
            currency = f"{funding.currency} " if funding.currency else ""
            lines.append(f"Funding: {currency}{funding.amount:,.0f}")
        return lines

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    def relationships(self) -> List[Relationship]:
        return list(self._relationships.values())

    def stats(self) -> RegistryStats:
        by_domain: Dict[str, int] = {}
        for entity in self._entities.values():
            by_domain[entity.domain.value] = by_domain.get(entity.domain.value, 0) + 1
        return RegistryStats(
            total_entities=len(self._entities),
            total_relationships=len(self._relationships),
            by_type={t.value: len(ids) for t, ids in self._by_type.items() if ids},
            by_domain=by_domain,
        )

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities


__all__ = ["EntityRegistry", "RegistryStats"]
