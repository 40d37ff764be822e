"""
Tool declaration and dispatch.

A ScenarioTool is data (name, description, JSON-schema parameters) plus
a handler. The toolkit binds handlers to one registry and is the only
place parameters are validated.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from ..errors import InvalidToolParameters, UnknownToolError
from ..validation import violations_from

logger = logging.getLogger(__name__)


ToolResult = Dict[str, Any]


@dataclass(frozen=True)
class ScenarioTool:
    """Declarative, read-only operation over the registry."""
    name: str
    description: str
    parameters: Dict[str, Any]
    params_model: Type[BaseModel]
    handler: Callable[[Any], ToolResult]

    def parse(self, params: Optional[Mapping[str, Any]] = None) -> BaseModel:
        try:
            return self.params_model.model_validate(dict(params or {}))
        except ValidationError as e:
            raise InvalidToolParameters(self.name, violations_from(e)) from e

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> ToolResult:
        return self.handler(self.parse(params))

    def declaration(self) -> Dict[str, Any]:
        """JSON-serializable function declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


class ToolRegistry:
    """Ordered name → tool mapping."""

    def __init__(self, tools: Optional[List[ScenarioTool]] = None):
        self._tools: Dict[str, ScenarioTool] = {}
        for tool in tools or []:
            self.add(tool)

    def add(self, tool: ScenarioTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> ScenarioTool:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def execute(self, name: str, params: Optional[Mapping[str, Any]] = None) -> ToolResult:
        tool = self.get(name)
        logger.debug("Executing tool %s with %s", name, dict(params or {}))
        return tool.execute(params)

    def describe(self) -> List[Dict[str, Any]]:
        return [t.declaration() for t in self._tools.values()]

    @property
    def tools(self) -> List[ScenarioTool]:
        return list(self._tools.values())

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
