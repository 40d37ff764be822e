"""
Universal Entity Graph

This package maps heterogeneous innovation-landscape records (challenges,
stakeholders, technologies, projects, funding relationships) onto one
universal entity schema, stores them in an in-memory graph, lays them out
with a clustering force simulation and answers scenario questions over
them. Each layer communicates only through explicit contracts.

LAYER STRUCTURE:
================

1. CONTRACTS & VALIDATION (contracts/, validation/)
   - Responsibility: Universal Entity / Relationship schema and checks
   - Allowed inputs: Mappings or model instances
   - Outputs: Result carrying a model or a ValidationFailure
   - MUST NOT: Coerce invalid input into valid output

2. ADAPTER LAYER (adapters/)
   - Responsibility: Source-shaped records → universal entities
   - Allowed inputs: Raw challenge/stakeholder/technology/project/
     relationship records
   - Outputs: Validated Entity and Relationship models
   - MUST NOT: Register anything, swallow validation failures

3. ENTITY REGISTRY (registry/)
   - Responsibility: Indexed graph store, BFS, filtered views
   - Allowed inputs: Validated models
   - Outputs: Lookups, EntityGraph views, context strings
   - MUST NOT: Raise on lookup misses, index dangling edges

4. LAYOUT LAYER (layout/)
   - Responsibility: Cluster assignment, force simulation, hulls
   - Allowed inputs: EntityGraph snapshots
   - Outputs: Per-tick NodePositions, Cluster and ClusterHull records
   - MUST NOT: Touch the registry, run its own timer

5. SCENARIO TOOLS (tools/)
   - Responsibility: Declarative read-only analytical operations
   - Allowed inputs: Schema-validated parameter objects
   - Outputs: JSON-serializable result dicts
   - MUST NOT: Mutate the registry

6. SURFACES (engine.py, api/, cli.py)
   - Responsibility: Load dataset bundles, serve HTTP, command line
   - MUST NOT: Hold domain logic

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: entities and relationships are frozen models
- Explicit errors: enumerated error codes, every violated field reported
- Deterministic: identical inputs and seed give identical outputs
"""

from .config import AdapterConfig, GraphConfig, LayoutConfig, ToolConfig
from .contracts import (
    SCHEMA_VERSION,
    Derivation,
    Domain,
    Entity,
    EntityFilter,
    EntityGraph,
    EntityType,
    Relationship,
    Result,
    SchemaViolation,
    ValidationFailure,
)
from .engine import EntityGraphEngine, ImportReport
from .errors import (
    AdapterValidationError,
    EntityGraphError,
    EntityNotFoundError,
    InvalidToolParameters,
    ToolExecutionError,
    UnknownToolError,
)
from .layout import ClusterBy, ClusteringLayoutEngine, ForceSimulation
from .registry import EntityRegistry
from .tools import ScenarioToolkit, SimilarityBackend
from .validation import validate_entity, validate_relationship

__version__ = "0.1.0"

__all__ = [
    "AdapterConfig",
    "GraphConfig",
    "LayoutConfig",
    "ToolConfig",
    "SCHEMA_VERSION",
    "Derivation",
    "Domain",
    "Entity",
    "EntityFilter",
    "EntityGraph",
    "EntityType",
    "Relationship",
    "Result",
    "SchemaViolation",
    "ValidationFailure",
    "EntityGraphEngine",
    "ImportReport",
    "AdapterValidationError",
    "EntityGraphError",
    "EntityNotFoundError",
    "InvalidToolParameters",
    "ToolExecutionError",
    "UnknownToolError",
    "ClusterBy",
    "ClusteringLayoutEngine",
    "ForceSimulation",
    "EntityRegistry",
    "ScenarioToolkit",
    "SimilarityBackend",
    "validate_entity",
    "validate_relationship",
    "__version__",
]
