from __future__ import annotations

from typing import Any, Dict

from desktop_agent.calculator import CalculatorError, evaluate, format_number
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

SCHEMA = {
    "name": "calculate",
    "description": (
        "Evaluate an arithmetic expression (+ - * / // % ** ^, parentheses, "
        "pi, e, sqrt, sin, cos, log, ...). Optionally also launch the Calculator app."
    ),
    "properties": {
        "expression": {"type": "string", "description": "Mathematical expression to evaluate."},
        "use_app": {
            "type": "boolean",
            "description": "Also open the Calculator app for demonstration.",
            "default": False,
        },
    },
    "required": ["expression"],
}


class CalculateTool(Tool):
    name = "calculate"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        expression: str = args["expression"].strip()
        try:
            value = evaluate(expression)
        except CalculatorError as exc:
            return ToolResult.failure(str(exc))

        result = format_number(value)
        data: Dict[str, Any] = {"result": result, "expression": expression, "method": "programmatic"}

        if args.get("use_app"):
            warnings: list[str] = []
            app = self.best_effort(
                "Launching Calculator", lambda: self.desktop.open_application("calc"), warnings
            )
            if app is not None:
                data["method"] = "app + programmatic"
                data["app"] = {"name": app.name, "role": app.role}
            if warnings:
                data["warnings"] = warnings

        return ToolResult.ok_result(f"{expression} = {result}", data)
