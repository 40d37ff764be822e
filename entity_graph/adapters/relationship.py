"""
Navigate relationship → universal Relationship.

Source weights are heterogeneous: similarity scores already in [0, 1]
and raw funding amounts in pounds. Both are mapped onto a [0, 1]
strength; the raw weight is kept as ``metadata.originalStrength``.
"""

from __future__ import annotations
import logging
import math
from typing import Any, Callable, List, Mapping, Optional

from ..config import AdapterConfig
from ..contracts.base import Derivation, EntityType, SchemaViolation
from ..contracts.entities import Relationship
from ..errors import AdapterValidationError
from .base import adapt_all, compact, finalize_relationship, section

logger = logging.getLogger(__name__)


KIND = "relationship"

TypeLookup = Callable[[str], Optional[EntityType]]


def normalize_strength(weight: float, reference_max: float = 10_000_000) -> float:
    """
    Map a raw weight onto [0, 1].

    Weights at or below 1 are treated as already normalized (clamped).
    Larger weights are funding-scale and use log10 relative to
    ``reference_max``.
    """
    if weight <= 1:
        return max(0.0, min(1.0, float(weight)))
    scaled = math.log10(weight + 1) / math.log10(reference_max + 1)
    return max(0.0, min(1.0, scaled))


def _numeric_weight(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return None
    return weight if math.isfinite(weight) else None


def to_relationship(
    record: Mapping[str, Any],
    source_type: EntityType,
    target_type: EntityType,
    config: Optional[AdapterConfig] = None,
) -> Relationship:
    """
    Convert one source relationship whose endpoint types are known.

    A missing or non-numeric weight gets ``config.default_strength`` and
    is flagged with ``metadata.strength_defaulted``; with
    ``default_strength=None`` it is rejected instead.
    """
    config = config or AdapterConfig()
    source_meta = section(record, "metadata")
    raw_weight = record.get("weight")
    weight = _numeric_weight(raw_weight)

    metadata = compact({
        "originalStrength": weight,
        "bidirectional": record.get("bidirectional"),
        "amount": source_meta.get("amount"),
        "program": source_meta.get("program"),
        "start_date": source_meta.get("start_date"),
        "end_date": source_meta.get("end_date"),
        "description": source_meta.get("description"),
        "project_id": source_meta.get("project_id"),
    })

    if weight is None:
        if config.default_strength is None:
            raise AdapterValidationError(KIND, record.get("id"), (
                SchemaViolation("weight", f"missing or non-numeric weight: {raw_weight!r}", "missing_weight"),
            ))
        logger.warning(
            "Relationship %s has no usable weight (%r); defaulting strength to %s",
            record.get("id"), raw_weight, config.default_strength,
        )
        strength = config.default_strength
        metadata["strength_defaulted"] = True
    else:
        strength = normalize_strength(weight, config.reference_max_weight)

    candidate = compact({
        "id": record.get("id"),
        "source": record.get("source"),
        "target": record.get("target"),
        "sourceType": source_type,
        "targetType": target_type,
        "type": record.get("type"),
        "strength": strength,
        "derivation": Derivation.EXPLICIT,
        "metadata": metadata,
        "created_at": record.get("created_at"),
        "updated_at": record.get("updated_at"),
    })
    return finalize_relationship(candidate, KIND)


def to_relationships(
    records: List[Mapping[str, Any]],
    type_lookup: TypeLookup,
    config: Optional[AdapterConfig] = None,
) -> List[Relationship]:
    """
    Convert a batch, resolving endpoint types through ``type_lookup``.

    Edges whose endpoint types cannot be resolved are skipped; records
    that fail validation are logged and skipped.
    """
    def convert(record: Mapping[str, Any]) -> Optional[Relationship]:
        source_type = type_lookup(record.get("source"))
        target_type = type_lookup(record.get("target"))
        if source_type is None or target_type is None:
            logger.warning("Cannot determine entity types for relationship %s", record.get("id"))
            return None
        return to_relationship(record, source_type, target_type, config)

    return list(adapt_all(records, convert, KIND).entities)
