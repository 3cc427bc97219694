from __future__ import annotations

from typing import Any, Dict

from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool
from desktop_agent.utils import preview

SCHEMA = {
    "name": "type_text",
    "description": (
        "Type text into the currently focused element, or into the element "
        "matching an optional selector."
    ),
    "properties": {
        "text": {"type": "string", "description": "Text to type."},
        "selector": {
            "type": "string",
            "description": "Optional selector of the element to type into.",
        },
        "use_clipboard": {
            "type": "boolean",
            "description": "Paste through the clipboard instead of typing keys.",
            "default": False,
        },
    },
    "required": ["text"],
}


class TypeTextTool(Tool):
    name = "type_text"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        text: str = args["text"]
        selector = args.get("selector")
        use_clipboard: bool = args.get("use_clipboard", False)

        if selector:
            element = self.desktop.locator(selector).first()
        else:
            element = self.desktop.focused_element()
        element.type_text(text, use_clipboard)

        return ToolResult.ok_result(
            f'Typed: "{preview(text, 50)}"',
            {
                "method": "clipboard" if use_clipboard else "keyboard",
                "target": selector or "focused element",
            },
        )
