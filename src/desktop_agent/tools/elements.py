from __future__ import annotations

from typing import Any, Dict

from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

CLICK_SCHEMA = {
    "name": "click_element",
    "description": (
        "Click a UI element located by selector, e.g. 'name:Seven', "
        "'role:Button', 'text:OK', 'window:Calculator', 'automationid:CalculatorResults'."
    ),
    "properties": {
        "selector": {"type": "string", "description": "Element selector in kind:value form."},
        "action": {
            "type": "string",
            "enum": ["click", "double_click", "right_click"],
            "description": "Click action type. Default: click.",
            "default": "click",
        },
    },
    "required": ["selector"],
}

FIND_SCHEMA = {
    "name": "find_elements",
    "description": "Find and list UI elements on screen that match a selector.",
    "properties": {
        "selector": {"type": "string", "description": "Element selector to search for."},
        "limit": {
            "type": "integer",
            "description": "Maximum number of elements to describe. Default: 5.",
            "default": 5,
            "minimum": 1,
            "maximum": 50,
        },
    },
    "required": ["selector"],
}

_ACTION_LABELS = {
    "click": "Clicked",
    "double_click": "Double-clicked",
    "right_click": "Right-clicked",
}


class ClickElementTool(Tool):
    name = "click_element"
    SCHEMA = CLICK_SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        selector: str = args["selector"]
        action: str = args.get("action", "click")

        element = self.desktop.locator(selector).first()
        getattr(element, action)()

        return ToolResult.ok_result(
            f"{_ACTION_LABELS[action]} {selector}",
            {"selector": selector, "action": action},
        )


class FindElementsTool(Tool):
    name = "find_elements"
    SCHEMA = FIND_SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        selector: str = args["selector"]
        limit: int = args.get("limit", 5)

        elements = self.desktop.locator(selector).all()
        details = [el.describe() for el in elements[:limit]]

        return ToolResult.ok_result(
            f"Found {len(elements)} elements matching {selector}",
            {
                "selector": selector,
                "count": len(elements),
                "returned": len(details),
                "elements": details,
            },
        )
