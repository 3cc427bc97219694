from __future__ import annotations

from typing import Any, Dict

from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

SCHEMA = {
    "name": "web",
    "description": "Open a URL in a browser, or describe the current browser window.",
    "properties": {
        "action": {
            "type": "string",
            "enum": ["open", "current_browser"],
            "description": "Web action to perform.",
        },
        "url": {"type": "string", "description": "URL to open (open action)."},
        "browser": {"type": "string", "description": "Specific browser to use. Default: system default."},
    },
    "required": ["action"],
}


def normalize_url(url: str) -> str:
    url = url.strip()
    if "://" not in url:
        return "https://" + url
    return url


class WebTool(Tool):
    name = "web"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        action: str = args["action"]

        if action == "open":
            url = args.get("url")
            if not url:
                return ToolResult.failure("URL required for open action")
            url = normalize_url(url)
            browser = args.get("browser")
            self.desktop.open_url(url, browser)
            return ToolResult.ok_result(
                f"Opened {url} in browser",
                {"action": "open", "url": url, "browser": browser or "default"},
            )

        window = self.desktop.current_browser_window()
        return ToolResult.ok_result(
            f"Current browser window: {window.name()}",
            {
                "action": "current_browser",
                "browser": {
                    "name": window.name(),
                    "role": window.role(),
                    "bounds": window.bounds().as_dict(),
                    "text": window.text(1),
                },
            },
        )
