"""
Scenario Tool Layer

RESPONSIBILITY: Declarative, schema-described analytical operations
ALLOWED INPUTS: Parameter objects matching each tool's JSON schema
OUTPUTS: JSON-serializable dicts with a ``summary`` or ``message``

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the registry
- Compute embeddings (a SimilarityBackend is injected)
"""

from .base import ScenarioTool, ToolRegistry, ToolResult
from .scenario import ScenarioToolkit, funding_available, funding_needed, matches_filter, trl_in_range
from .similarity import (
    InMemorySimilarityBackend,
    SearchOptions,
    SimilarityBackend,
    SimilarityMatch,
    build_embedding_text,
    heuristic_similarity,
)

__all__ = [
    "ScenarioTool",
    "ToolRegistry",
    "ToolResult",
    "ScenarioToolkit",
    "funding_available",
    "funding_needed",
    "matches_filter",
    "trl_in_range",
    "InMemorySimilarityBackend",
    "SearchOptions",
    "SimilarityBackend",
    "SimilarityMatch",
    "build_embedding_text",
    "heuristic_similarity",
]
