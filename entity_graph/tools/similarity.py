"""
Similarity seam for the "similar entities" tool.

ML FENCE POST:
==============
This module defines the INTERFACE to an embedding backend and a
placeholder heuristic. Computing real embeddings is out of scope:
backends receive an ``embed`` callable from the caller.

ALLOWED:
- Building embedding text from entities
- Cosine similarity over caller-provided vectors
- Token-overlap heuristic as a fallback / test double

FORBIDDEN:
- Loading or training models here
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..contracts.base import Domain, EntityType
from ..contracts.entities import Entity, TRLRange


MAX_EMBEDDING_TEXT = 8000

Embedder = Callable[[str], Sequence[float]]


@dataclass(frozen=True)
class SearchOptions:
    domain: Optional[Domain] = None
    entity_type: Optional[EntityType] = None
    top_k: int = 5
    threshold: float = 0.0


@dataclass(frozen=True)
class SimilarityMatch:
    entity: Entity
    similarity: float


class SimilarityBackend(ABC):
    """Vector store consumed by the scenario tools."""

    @abstractmethod
    def embed_entity(self, entity: Entity) -> None:
        ...

    @abstractmethod
    def search(self, query: str, options: Optional[SearchOptions] = None) -> List[SimilarityMatch]:
        ...

    @abstractmethod
    def delete_embedding(self, entity_id: str) -> bool:
        ...

    def embed_all(self, entities: Iterable[Entity]) -> int:
        count = 0
        for entity in entities:
            self.embed_entity(entity)
            count += 1
        return count


# =============================================================================
# EMBEDDING TEXT
# =============================================================================

def _money(amount: float) -> str:
    if amount >= 1_000_000:
        return f"£{amount / 1_000_000:.1f}M"
    return f"£{amount / 1000:.0f}K"


def build_embedding_text(entity: Entity) -> str:
    """
    Contextual text for embedding: name, description, sector, TRL,
    funding and type, separated by blank lines.
    """
    parts = [entity.name]
    if entity.description:
        parts.append(entity.description)
    if entity.tags:
        parts.append(f"Keywords: {', '.join(entity.tags)}")
    if entity.sectors:
        parts.append(f"Sector: {', '.join(entity.sectors)}")

    trl = entity.metadata.trl
    if isinstance(trl, TRLRange) and trl.min is not None and trl.max is not None:
        parts.append(f"TRL: {trl.min:g}-{trl.max:g}")
    elif entity.trl_level is not None:
        parts.append(f"TRL: {entity.trl_level:g}")

    if entity.funding_amount > 0:
        parts.append(f"Funding: {_money(entity.funding_amount)}")
    parts.append(f"Type: {entity.entity_type.value}")

    return "\n\n".join(parts)[:MAX_EMBEDDING_TEXT]


# =============================================================================
# HEURISTIC (fallback)
# =============================================================================

def tokenize(text: str) -> set:
    return set(re.findall(r'\b\w+\b', text.lower()))


def heuristic_similarity(a: Entity, b: Entity) -> float:
    """
    0.5 for case-insensitive name equality plus 0.5 times the Jaccard
    overlap of description tokens. In [0, 1].
    """
    score = 0.5 if a.name.lower() == b.name.lower() else 0.0
    words_a, words_b = tokenize(a.description), tokenize(b.description)
    union = words_a | words_b
    if union:
        score += 0.5 * len(words_a & words_b) / len(union)
    return min(1.0, score)


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

class InMemorySimilarityBackend(SimilarityBackend):
    """
    Cosine-similarity index held in memory.

    Vectors come from the ``embed`` callable; they are normalized to unit
    length on insert so search is a single matrix product.
    """

    def __init__(self, embed: Embedder):
        self._embed = embed
        self._vectors: Dict[str, np.ndarray] = {}
        self._entities: Dict[str, Entity] = {}

    def _unit(self, text: str) -> np.ndarray:
        vector = np.asarray(self._embed(text), dtype=float)
        norm = np.linalg.norm(vector)
        return vector / norm if norm > 0 else vector

    def embed_entity(self, entity: Entity) -> None:
        self._vectors[entity.id] = self._unit(build_embedding_text(entity))
        self._entities[entity.id] = entity

    def delete_embedding(self, entity_id: str) -> bool:
        self._entities.pop(entity_id, None)
        return self._vectors.pop(entity_id, None) is not None

    def search(self, query: str, options: Optional[SearchOptions] = None) -> List[SimilarityMatch]:
        options = options or SearchOptions()
        ids = [
            i for i, e in self._entities.items()
            if (options.domain is None or e.domain == options.domain)
            and (options.entity_type is None or e.entity_type == options.entity_type)
        ]
        if not ids:
            return []
        matrix = np.stack([self._vectors[i] for i in ids])
        scores = matrix @ self._unit(query)
        order = np.argsort(-scores, kind="stable")
        matches = []
        for idx in order:
            score = float(scores[idx])
            if score < options.threshold:
                break
            matches.append(SimilarityMatch(self._entities[ids[idx]], score))
            if len(matches) >= options.top_k:
                break
        return matches

    def __len__(self) -> int:
        return len(self._vectors)
