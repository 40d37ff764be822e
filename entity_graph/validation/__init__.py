"""
Validation Layer

RESPONSIBILITY: Decide whether a candidate record is a well-formed Entity
or Relationship.
ALLOWED INPUTS: Mappings (wire aliases or field names) or model instances
OUTPUTS: Result carrying either the model or a ValidationFailure

WHAT THIS LAYER MUST NOT DO:
============================
- Coerce invalid data into valid data
- Stop at the first problem (every violated field is reported)
- Raise for invalid input (adapters decide whether to escalate)
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from ..contracts.base import ErrorCode, Result, SchemaViolation, ValidationFailure
from ..contracts.entities import UNION_TAGS, Entity, Relationship


# Labels pydantic inserts into error locations for smart-mode unions
# (e.g. sector: str | list[str], dates: datetime | date | str).
_TYPE_LABELS = frozenset({
    "str", "int", "float", "bool", "list[str]", "datetime", "date",
})

_ROOT_FIELD = "<root>"


def _field_path(loc: Tuple[Union[str, int], ...]) -> str:
    parts = [
        str(part) for part in loc
        if not (isinstance(part, str) and (part in UNION_TAGS or part in _TYPE_LABELS))
    ]
    return ".".join(parts) or _ROOT_FIELD


def violations_from(error: ValidationError) -> Tuple[SchemaViolation, ...]:
    """
    Flatten a pydantic ValidationError into one violation per field.

    Union branches report the same field several times; only the first
    message for a path is kept.
    """
    seen = {}
    for detail in error.errors():
        path = _field_path(tuple(detail.get("loc", ())))
        if path in seen:
            continue
        seen[path] = SchemaViolation(
            field=path,
            message=detail.get("msg", "invalid value"),
            kind=detail.get("type", "value_error"),
        )
    return tuple(seen.values())


def _validate(candidate: Any, model: Type[BaseModel], label: str) -> Result:
    original = None
    if isinstance(candidate, model):
        original = getattr(candidate, "original", None)
        data = candidate.model_dump(by_alias=True)
    elif isinstance(candidate, Mapping):
        data = dict(candidate)
    else:
        return Result.failure(ValidationFailure(
            code=ErrorCode.UNSUPPORTED_INPUT,
            message=f"{label} candidate must be a mapping, got {type(candidate).__name__}",
            violations=(SchemaViolation(_ROOT_FIELD, "expected a mapping", "model_type"),),
        ))

    try:
        value = model.model_validate(data)
    except ValidationError as e:
        violations = violations_from(e)
        fields = ", ".join(v.field for v in violations)
        return Result.failure(ValidationFailure(
            code=ErrorCode.SCHEMA_VIOLATION,
            message=f"Invalid {label}: {len(violations)} violation(s) [{fields}]",
            violations=violations,
        ))

    if original is not None:
        value = value.model_copy(update={"original": original})
    return Result.success(value)


def validate_entity(candidate: Any) -> Result:
    """Validate a candidate against the universal Entity schema."""
    return _validate(candidate, Entity, "entity")


def validate_relationship(candidate: Any) -> Result:
    """Validate a candidate against the universal Relationship schema."""
    return _validate(candidate, Relationship, "relationship")


def validate_entities(candidates: Iterable[Any]) -> List[Result]:
    return [validate_entity(c) for c in candidates]


__all__ = [
    "validate_entity",
    "validate_relationship",
    "validate_entities",
    "violations_from",
]
