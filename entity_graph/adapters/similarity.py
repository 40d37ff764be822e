"""
Computed ``similar_to`` edges from tag overlap.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List

from ..contracts.base import Derivation, EntityType
from ..contracts.entities import Entity, Relationship
from .base import finalize_relationship


def jaccard(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def build_similarity_relationships(
    entities: Iterable[Entity],
    threshold: float = 0.3,
) -> List[Relationship]:
    """
    Link same-type entities whose lowercased tag sets overlap.

    Pairs are visited in input order; a pair with similarity at or above
    ``threshold`` (and above zero) yields one edge ``sim-{a}-{b}``.
    """
    by_type: Dict[EntityType, List[Entity]] = defaultdict(list)
    for entity in entities:
        by_type[entity.entity_type].append(entity)

    edges: List[Relationship] = []
    for entity_type, members in by_type.items():
        tag_sets = [frozenset(t.lower() for t in m.tags) for m in members]
        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                shared = tag_sets[i] & tag_sets[j]
                similarity = jaccard(tag_sets[i], tag_sets[j])
                if similarity <= 0 or similarity < threshold:
                    continue
                a, b = members[i], members[j]
                edges.append(finalize_relationship({
                    "id": f"sim-{a.id}-{b.id}",
                    "source": a.id,
                    "target": b.id,
                    "sourceType": entity_type,
                    "targetType": entity_type,
                    "type": "similar_to",
                    "strength": similarity,
                    "derivation": Derivation.COMPUTED,
                    "metadata": {
                        "originalStrength": len(shared),
                        "confidence": similarity,
                        "shared_keywords": sorted(shared),
                        "matching_method": "keyword_overlap",
                    },
                }, "similarity"))
    return edges
