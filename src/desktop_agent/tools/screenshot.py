from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from desktop_agent.desktop import run_with_timeout
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

SCHEMA = {
    "name": "screenshot",
    "description": (
        "Take a screenshot of the desktop. Optionally extract the visible text "
        "with OCR and/or save the image to a PNG file."
    ),
    "properties": {
        "with_ocr": {
            "type": "boolean",
            "description": "Whether to extract text from the screenshot.",
            "default": False,
        },
        "save_path": {
            "type": "string",
            "description": "Optional path to save the screenshot as PNG.",
        },
    },
    "required": [],
}


class ScreenshotTool(Tool):
    name = "screenshot"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        shot = self.desktop.capture_screen()
        message = f"Screenshot taken ({shot.width}x{shot.height})"
        data: Dict[str, Any] = {
            "width": shot.width,
            "height": shot.height,
            "size": f"{shot.width}x{shot.height}",
        }

        save_path = args.get("save_path")
        if save_path:
            target = Path(save_path)
            if not target.is_absolute():
                target = self.context.output_dir / target
            data["saved_to"] = str(shot.save(target))
            message += f", saved to {data['saved_to']}"

        if args.get("with_ocr"):
            text = run_with_timeout(
                lambda: self.desktop.ocr_screenshot(shot),
                self.context.config.ocr_timeout,
                what="OCR",
            )
            data["extracted_text"] = text
            message += f" with {len(text)} characters of text extracted"

        return ToolResult.ok_result(message, data)
