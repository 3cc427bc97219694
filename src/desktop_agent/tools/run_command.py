from __future__ import annotations

import sys
from typing import Any, Dict

from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool
from desktop_agent.utils import truncate_output

SCHEMA = {
    "name": "run_command",
    "description": (
        "Execute a shell command on this machine (cmd on Windows, sh elsewhere) "
        "and return its exit code, stdout and stderr."
    ),
    "properties": {
        "command": {"type": "string", "description": "Command to execute."},
        "timeout_sec": {
            "type": "number",
            "description": "Timeout in seconds. Default: 30.",
            "default": 30,
            "minimum": 1,
        },
    },
    "required": ["command"],
}


class RunCommandTool(Tool):
    name = "run_command"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        command: str = args["command"]
        timeout = args.get("timeout_sec", 30)

        is_windows = sys.platform == "win32"
        output = self.desktop.run_command(
            windows_command=command if is_windows else None,
            unix_command=None if is_windows else command,
            timeout=timeout,
        )
        return ToolResult.ok_result(
            f"Command executed with exit code {output.exit_status}",
            {
                "command": command,
                "exit_code": output.exit_status,
                "stdout": truncate_output(output.stdout),
                "stderr": truncate_output(output.stderr),
            },
        )
