from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool
from desktop_agent.utils import truncate_output

SCHEMA = {
    "name": "file_manager",
    "description": (
        "Read, write, or list files, or open a file with its default application."
    ),
    "properties": {
        "action": {
            "type": "string",
            "enum": ["read", "write", "list", "open"],
            "description": "File operation to perform.",
        },
        "filepath": {"type": "string", "description": "Path to the file (read/write/open)."},
        "content": {"type": "string", "description": "Content to write (write)."},
        "directory": {"type": "string", "description": "Directory to list. Default: current."},
    },
    "required": ["action"],
}

MAX_READ_CHARS = 20000


class FileManagerTool(Tool):
    name = "file_manager"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        action: str = args["action"]
        filepath = args.get("filepath")

        if action == "list":
            directory = Path(args.get("directory") or ".")
            if not directory.is_dir():
                return ToolResult.failure(f"Not a directory: {directory}")
            files = sorted(entry.name for entry in directory.iterdir())
            return ToolResult.ok_result(
                f"Listed {len(files)} entries in {directory}",
                {"action": "list", "directory": str(directory), "files": files},
            )

        if not filepath:
            return ToolResult.failure(f"Filepath required for {action} action")
        path = Path(filepath)

        if action == "read":
            if not path.is_file():
                return ToolResult.failure(f"File not found: {path}")
            content = path.read_text(encoding="utf-8", errors="replace")
            return ToolResult.ok_result(
                f"Read {len(content)} characters from {path}",
                {"action": "read", "filepath": str(path), "content": truncate_output(content, MAX_READ_CHARS)},
            )

        if action == "write":
            content = args.get("content")
            if content is None:
                return ToolResult.failure("Content required for write action")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            return ToolResult.ok_result(
                "File written successfully",
                {"action": "write", "filepath": str(path), "bytes": len(content.encode("utf-8"))},
            )

        self.desktop.open_file(path)
        return ToolResult.ok_result(
            "File opened with default application",
            {"action": "open", "filepath": str(path)},
        )
