"""Base types for the tool system: descriptors, registry and argument checks."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional

from desktop_agent.desktop import FacadeError
from desktop_agent.tool_result import ToolResult

if TYPE_CHECKING:
    from desktop_agent.context import AgentContext
    from desktop_agent.desktop import Desktop

_log = logging.getLogger(__name__)


class ToolError(Exception):
    """Dispatch-level failure that ends the current turn."""


class ToolNotFound(ToolError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' is not registered.")
        self.name = name


class InvalidArguments(ToolError):
    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__(f"Invalid arguments for '{tool_name}': {reason}")
        self.tool_name = tool_name
        self.reason = reason


class DuplicateToolError(ValueError):
    """Raised when two tools with the same name are registered."""


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool available to the agent."""

    name: str
    description: str
    schema: Dict[str, Any]
    handler: Callable[[Dict[str, Any]], ToolResult]

    @property
    def parameters(self) -> Dict[str, Any]:
        return self.schema.get("properties", {})

    @property
    def required(self) -> list[str]:
        return list(self.schema.get("required", []))

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": self.parameters,
                    "required": self.required,
                },
            },
        }


_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}


def _coerce(value: Any, expected: str) -> Any:
    """Return ``value`` converted to the schema type, or raise ValueError."""
    if expected == "string":
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    elif expected == "integer":
        if isinstance(value, bool):
            raise ValueError
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            return int(value.strip())
    elif expected == "number":
        if isinstance(value, bool):
            raise ValueError
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                return float(text)
    elif expected == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
            return value.strip().lower() in _TRUE
    elif expected == "array":
        if isinstance(value, list):
            return value
    elif expected == "object":
        if isinstance(value, dict):
            return value
    else:
        return value
    raise ValueError


def validate_arguments(tool: ToolDefinition, raw_args: Any) -> Dict[str, Any]:
    """Check and coerce raw model arguments against a tool's schema.

    Missing optional fields get their declared default; keys the schema does
    not know are dropped.

    Raises:
        InvalidArguments: On a non-mapping payload, a missing required field,
            a type mismatch, an enum violation, or an out-of-range number.
    """
    if raw_args is None:
        raw_args = {}
    if not isinstance(raw_args, dict):
        raise InvalidArguments(tool.name, f"expected an object, got {type(raw_args).__name__}")

    for field_name in tool.required:
        if raw_args.get(field_name) is None:
            raise InvalidArguments(tool.name, f"missing required field '{field_name}'")

    clean: Dict[str, Any] = {}
    for key, prop in tool.parameters.items():
        if key not in raw_args or raw_args[key] is None:
            if "default" in prop:
                clean[key] = prop["default"]
            continue

        value = raw_args[key]
        expected = prop.get("type")
        if expected:
            try:
                value = _coerce(value, expected)
            except ValueError:
                raise InvalidArguments(
                    tool.name,
                    f"field '{key}' expected type '{expected}', got {type(raw_args[key]).__name__}",
                ) from None
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidArguments(tool.name, f"field '{key}' must be a finite number")

        if "enum" in prop and value not in prop["enum"]:
            allowed = ", ".join(str(v) for v in prop["enum"])
            raise InvalidArguments(tool.name, f"field '{key}' must be one of: {allowed}")
        if "minimum" in prop and value < prop["minimum"]:
            raise InvalidArguments(tool.name, f"field '{key}' must be >= {prop['minimum']}")
        if "maximum" in prop and value > prop["maximum"]:
            raise InvalidArguments(tool.name, f"field '{key}' must be <= {prop['maximum']}")
        clean[key] = value

    dropped = set(raw_args) - set(tool.parameters)
    if dropped:
        _log.debug("Dropping unknown arguments for %s: %s", tool.name, sorted(dropped))
    return clean


class Tool:
    """Base for concrete tools.

    Subclasses set ``name`` and ``SCHEMA`` and implement ``_run``. ``run``
    is the registered handler: it never raises, any failure of the desktop
    or the filesystem becomes a failed ToolResult.
    """

    name: str = ""
    SCHEMA: Dict[str, Any] = {}

    def __init__(self, context: "AgentContext") -> None:
        self.context = context

    @property
    def desktop(self) -> "Desktop":
        return self.context.desktop

    def schema(self) -> Dict[str, Any]:
        return self.SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError

    def run(self, args: Dict[str, Any]) -> ToolResult:
        try:
            return self._run(args)
        except FacadeError as exc:
            _log.info("%s failed: %s", self.name, exc)
            return ToolResult.failure(str(exc))
        except Exception as exc:
            _log.warning("%s raised unexpectedly", self.name, exc_info=True)
            return ToolResult.failure(f"{type(exc).__name__}: {exc}")

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.SCHEMA["description"],
            schema=self.SCHEMA,
            handler=self.run,
        )

    def best_effort(self, step: str, fn: Callable[[], Any], warnings: list[str]) -> Any:
        """Run an optional sub-step.

        With ``strict_substeps`` off, a failure is logged and appended to
        ``warnings``; with it on, the failure propagates and fails the tool.
        """
        try:
            return fn()
        except FacadeError as exc:
            if self.context.config.strict_substeps:
                raise FacadeError(f"{step} failed: {exc}") from exc
            _log.warning("%s: %s (continuing)", step, exc)
            warnings.append(f"{step}: {exc}")
            return None


class ToolRegistry:
    """Fixed name → descriptor mapping, built once per process."""

    def __init__(self, tools: Optional[list[ToolDefinition]] = None) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool '{tool.name}' is already registered.")
        self._tools[tool.name] = tool

    def resolve(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(name) from None

    def validate(self, name: str, raw_args: Any) -> Dict[str, Any]:
        return validate_arguments(self.resolve(name), raw_args)

    def execute(self, name: str, raw_args: Any) -> ToolResult:
        """Validate then run a tool. Dispatch-level errors propagate."""
        tool = self.resolve(name)
        args = validate_arguments(tool, raw_args)
        return tool.handler(args)

    def to_openai_tools(self) -> list[Dict[str, Any]]:
        return [tool.to_openai() for tool in self._tools.values()]

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
