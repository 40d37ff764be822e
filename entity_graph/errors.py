"""
Exception hierarchy.

Value-level failures at the validation boundary are ``Result`` objects
(see contracts.base). Exceptions are raised where a caller must not
continue: an adapter that cannot produce a valid entity, or a tool
asked about something that does not exist.
"""

from __future__ import annotations
from typing import Optional, Tuple

from .contracts.base import ErrorCode, SchemaViolation


class EntityGraphError(Exception):
    """Base class for all errors raised by this package."""

    code: ErrorCode = ErrorCode.UNSUPPORTED_INPUT


class AdapterValidationError(EntityGraphError):
    """
    An adapter produced output that fails the universal schema.

    Carries the offending source id and the full list of violations so a
    batch run can report every problem at once.
    """

    code = ErrorCode.ADAPTER_FAILED

    def __init__(
        self,
        kind: str,
        source_id: Optional[str],
        violations: Tuple[SchemaViolation, ...],
    ):
        self.kind = kind
        self.source_id = source_id
        self.violations = tuple(violations)
        detail = "; ".join(str(v) for v in self.violations) or "no detail"
        super().__init__(
            f"{kind} adapter validation failed for {source_id or '<missing id>'}: {detail}"
        )

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)


class ToolExecutionError(EntityGraphError):
    """A scenario tool could not answer the request."""

    code = ErrorCode.INVALID_PARAMETERS


class EntityNotFoundError(ToolExecutionError):
    code = ErrorCode.ENTITY_NOT_FOUND

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Entity {entity_id} not found")


class InvalidToolParameters(ToolExecutionError):
    code = ErrorCode.INVALID_PARAMETERS

    def __init__(self, tool_name: str, violations: Tuple[SchemaViolation, ...]):
        self.tool_name = tool_name
        self.violations = tuple(violations)
        detail = "; ".join(str(v) for v in self.violations)
        super().__init__(f"Invalid parameters for {tool_name}: {detail}")


class UnknownToolError(ToolExecutionError):
    code = ErrorCode.UNKNOWN_TOOL

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")
