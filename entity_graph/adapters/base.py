"""
Shared adapter machinery: fail-loud finalization, batch collection and
the deterministic hint helpers every source shape uses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..contracts.base import SCHEMA_VERSION, SchemaViolation
from ..contracts.entities import Entity, Relationship
from ..errors import AdapterValidationError
from ..validation import validate_entity, validate_relationship

logger = logging.getLogger(__name__)


DEFAULT_COLOR = "#6b7280"
MIN_SIZE = 20.0
MAX_SIZE = 60.0


# =============================================================================
# FINALIZATION (validate or raise)
# =============================================================================

def source_id_of(record: Any) -> Optional[str]:
    if isinstance(record, Mapping):
        value = record.get("id")
        return None if value is None else str(value)
    return None


def finalize_entity(candidate: Dict[str, Any], kind: str, original: Any = None) -> Entity:
    """
    Validate an adapter's output and attach the source back-reference.

    Raises AdapterValidationError listing every violated field.
    """
    candidate.setdefault("_version", SCHEMA_VERSION)
    result = validate_entity(candidate)
    if result.is_failure:
        source_id = source_id_of(original) or source_id_of(candidate)
        logger.debug("%s adapter rejected %s: %s", kind, source_id, result.error.describe())
        result.error.raise_for(source_id, kind)
    entity = result.value
    if original is not None:
        entity = entity.model_copy(update={"original": original})
    return entity


def finalize_relationship(candidate: Dict[str, Any], kind: str = "relationship") -> Relationship:
    result = validate_relationship(candidate)
    if result.is_failure:
        result.error.raise_for(source_id_of(candidate), kind)
    return result.value


def compact(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in values.items() if v is not None}


def section(record: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Nested source object, or an empty mapping when absent."""
    value = record.get(key)
    return value if isinstance(value, Mapping) else {}


# =============================================================================
# VISUALIZATION HINT HELPERS
# =============================================================================

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def log_score(amount: Optional[float], scale: float, default: float) -> float:
    """``log10(amount) * scale`` for positive amounts, else ``default``."""
    if amount is None or isinstance(amount, bool):
        return default
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(amount) or amount <= 0:
        return default
    return math.log10(amount) * scale


def bounded_size(score: float) -> float:
    return clamp(score, MIN_SIZE, MAX_SIZE)


def color_for(key: Any, palette: Mapping[str, str]) -> str:
    return palette.get(key, DEFAULT_COLOR) if isinstance(key, str) else DEFAULT_COLOR


# =============================================================================
# BATCH COLLECTION
# =============================================================================

@dataclass(frozen=True)
class RecordFailure:
    """One source record that could not be converted."""
    source_id: Optional[str]
    error: str
    violations: Tuple[SchemaViolation, ...] = ()

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)


@dataclass(frozen=True)
class AdapterBatch:
    """Result of converting a batch: survivors plus per-record failures."""
    entities: Tuple[Any, ...] = field(default_factory=tuple)
    failures: Tuple[RecordFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __len__(self) -> int:
        return len(self.entities)


def adapt_all(
    records: Iterable[Any],
    convert: Callable[[Any], Any],
    kind: str = "record",
) -> AdapterBatch:
    """
    Convert every record, collecting failures instead of aborting.

    ``convert`` may return None to skip a record without recording a
    failure (e.g. an edge whose endpoints are unknown).
    """
    converted: List[Any] = []
    failures: List[RecordFailure] = []
    for record in records:
        try:
            value = convert(record)
        except AdapterValidationError as e:
            failures.append(RecordFailure(e.source_id, str(e), e.violations))
            continue
        except (TypeError, AttributeError, KeyError, ValueError) as e:
            # Record is not even shaped like the source contract
            failures.append(RecordFailure(
                source_id_of(record),
                f"{kind} record is malformed: {e}",
                (SchemaViolation("<root>", str(e), "malformed_record"),),
            ))
            continue
        if value is not None:
            converted.append(value)

    for failure in failures:
        logger.warning("Skipping %s %s: %s", kind, failure.source_id, failure.error)
    return AdapterBatch(entities=tuple(converted), failures=tuple(failures))
