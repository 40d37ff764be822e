"""
Topology Engine
===============

Structural analysis of entity graphs using graph topology.

SCOPE:
======
This engine computes TOPOLOGY (shape), not IMPORTANCE (judgment).

ALLOWED:
- Graph construction from entity ids and relationships
- Connected components (structural clusters)
- Path finding between entities
- Structural metrics (density, components, degree)

FORBIDDEN:
- Centrality measures (PageRank, Betweenness) - implies ranking
- Weighting by strength - topology is binary: connected or not
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

import networkx as nx

from .contracts.entities import EntityGraph, Relationship


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for a graph or subgraph."""
    node_count: int
    edge_count: int
    density: float
    is_connected: bool
    connected_components_count: int
    isolated_count: int
    diameter: Optional[int] = None  # Only for connected graphs


class TopologyEngine:
    """
    Engine for structural analysis of entity graphs.

    Wraps NetworkX as an undirected simple graph: parallel and reverse
    relationships between the same pair collapse to one structural link.
    """

    def __init__(self):
        self._graph = nx.Graph()

    def build_graph(self, entity_ids: Iterable[str], relationships: Iterable[Relationship]) -> None:
        """
        Build graph from entity ids and relationships.

        Replaces internal graph state. Relationships touching ids outside
        ``entity_ids`` are ignored.
        """
        self._graph = nx.Graph()
        self._graph.add_nodes_from(entity_ids)

        for rel in relationships:
            if rel.source in self._graph and rel.target in self._graph:
                self._graph.add_edge(rel.source, rel.target, relationship_type=rel.type)

    @classmethod
    def from_entity_graph(cls, graph: EntityGraph) -> TopologyEngine:
        engine = cls()
        engine.build_graph((n.id for n in graph.nodes), graph.edges)
        return engine

    def get_connected_components(self) -> List[Set[str]]:
        """
        Identify disjoint subgraphs (structural clusters).

        Returned in arbitrary order.
        """
        if not self._graph:
            return []
        return [set(c) for c in nx.connected_components(self._graph)]

    def compute_metrics(self, include_diameter: bool = True) -> GraphMetrics:
        """
        Purely structural metrics. Diameter is O(V*E); skip it for large
        ad-hoc views with ``include_diameter=False``.
        """
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, False, 0, 0, None)

        is_connected = nx.is_connected(self._graph)

        diameter = None
        if include_diameter and is_connected and len(self._graph) > 1:
            diameter = nx.diameter(self._graph)

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            is_connected=is_connected,
            connected_components_count=nx.number_connected_components(self._graph),
            isolated_count=nx.number_of_isolates(self._graph),
            diameter=diameter,
        )

    def get_shortest_path(self, start_id: str, end_id: str) -> Optional[List[str]]:
        """Shortest undirected path between two entities, or None."""
        try:
            return nx.shortest_path(self._graph, source=start_id, target=end_id)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

    def clear(self) -> None:
        self._graph.clear()
