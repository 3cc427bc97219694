from __future__ import annotations

from typing import Any, Dict

from desktop_agent.desktop import FacadeError
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

OPEN_APP_SCHEMA = {
    "name": "open_app",
    "description": "Launch an application by name (e.g. 'notepad', 'calc', 'mspaint').",
    "properties": {
        "app_name": {"type": "string", "description": "Name of the application to open."},
    },
    "required": ["app_name"],
}

APP_CONTROL_SCHEMA = {
    "name": "app_control",
    "description": "Launch, list, focus, or activate desktop applications.",
    "properties": {
        "action": {
            "type": "string",
            "enum": ["launch", "list", "focus", "activate"],
            "description": "Application action.",
        },
        "app_name": {
            "type": "string",
            "description": "Application name (required for launch/focus/activate).",
        },
    },
    "required": ["action"],
}

LIST_LIMIT = 10


class OpenAppTool(Tool):
    name = "open_app"
    SCHEMA = OPEN_APP_SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        app_name: str = args["app_name"]
        app = self.desktop.open_application(app_name)
        return ToolResult.ok_result(
            f"Opened {app_name}",
            {"app": {"name": app.name, "role": app.role}},
        )


class AppControlTool(Tool):
    name = "app_control"
    SCHEMA = APP_CONTROL_SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        action: str = args["action"]
        app_name: str = (args.get("app_name") or "").strip()

        if action == "list":
            apps = self.desktop.applications()
            listed = []
            for app in apps[:LIST_LIMIT]:
                entry: Dict[str, Any] = {"name": app.name(), "role": app.role()}
                try:
                    entry["bounds"] = app.bounds().as_dict()
                except FacadeError:
                    entry["bounds"] = None
                listed.append(entry)
            return ToolResult.ok_result(
                f"Found {len(apps)} applications",
                {"action": "list", "count": len(apps), "applications": listed},
            )

        if not app_name:
            return ToolResult.failure(f"App name required for {action}")

        if action == "launch":
            app = self.desktop.open_application(app_name)
            return ToolResult.ok_result(
                f"Launched {app_name}",
                {"action": "launch", "app": {"name": app.name, "role": app.role}},
            )

        if action == "activate":
            self.desktop.activate_application(app_name)
            return ToolResult.ok_result(f"Activated {app_name}", {"action": action})

        self.desktop.application(app_name).focus()
        return ToolResult.ok_result(f"Focused {app_name}", {"action": action})
