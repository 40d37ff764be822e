"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
Enumerations are CLOSED: adding a member forces a review of every
lookup table keyed by it (see the exhaustiveness tests).

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- Result/Error types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


SCHEMA_VERSION = "1.0"


# =============================================================================
# CLOSED ENUMERATIONS
# =============================================================================

class EntityType(str, Enum):
    """Kind of domain object an entity represents."""
    CHALLENGE = "challenge"
    STAKEHOLDER = "stakeholder"
    TECHNOLOGY = "technology"
    PROJECT = "project"
    FUNDING_EVENT = "funding_event"
    CAPABILITY = "capability"          # CPC internal
    INITIATIVE = "initiative"          # CPC internal
    INNOVATION = "innovation"
    RAIL_CHALLENGE = "rail_challenge"
    RAIL_STAKEHOLDER = "rail_stakeholder"

    @property
    def is_challenge_like(self) -> bool:
        return self in _CHALLENGE_LIKE

    @property
    def is_stakeholder_like(self) -> bool:
        return self in _STAKEHOLDER_LIKE


_CHALLENGE_LIKE = frozenset({EntityType.CHALLENGE, EntityType.RAIL_CHALLENGE})
_STAKEHOLDER_LIKE = frozenset({EntityType.STAKEHOLDER, EntityType.RAIL_STAKEHOLDER})


class Domain(str, Enum):
    """
    Originating dataset / source system.

    Not to be confused with EntityType: a stakeholder may come from
    any domain.
    """
    ATLAS = "atlas"
    NAVIGATE = "navigate"
    CPC_INTERNAL = "cpc-internal"
    REFERENCE = "reference"
    CROSS_DOMAIN = "cross-domain"


class Derivation(str, Enum):
    """Provenance of a relationship."""
    EXPLICIT = "explicit"    # Given by the source dataset
    COMPUTED = "computed"    # Derived deterministically
    INFERRED = "inferred"    # Heuristic / ML


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    Every error state is enumerated.
    """
    # Validation errors
    SCHEMA_VIOLATION = "schema_violation"
    UNSUPPORTED_INPUT = "unsupported_input"

    # Adapter errors
    ADAPTER_FAILED = "adapter_failed"
    MISSING_ENDPOINT_TYPE = "missing_endpoint_type"

    # Tool errors
    ENTITY_NOT_FOUND = "entity_not_found"
    INVALID_PARAMETERS = "invalid_parameters"
    UNKNOWN_TOOL = "unknown_tool"


@dataclass(frozen=True)
class SchemaViolation:
    """One violated field, addressed by dotted path (e.g. ``metadata.trl``)."""
    field: str
    message: str
    kind: str = "value_error"

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class ValidationFailure:
    """
    Immutable validation failure enumerating EVERY violated field.
    Failures are data, not exceptions - batch runs can collect them.
    """
    code: ErrorCode
    message: str
    violations: Tuple[SchemaViolation, ...] = field(default_factory=tuple)

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)

    def describe(self) -> str:
        if not self.violations:
            return self.message
        return "; ".join(str(v) for v in self.violations)

    def raise_for(self, source_id: Optional[str], kind: str) -> None:
        """Escalate to an AdapterValidationError naming the source record."""
        from ..errors import AdapterValidationError
        raise AdapterValidationError(kind, source_id, self.violations)


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[Any] = None
    error: Optional[ValidationFailure] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: Any) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: ValidationFailure) -> Result:
        return Result(value=None, error=error)
