from __future__ import annotations

from typing import Any, Dict

from desktop_agent.desktop import run_with_timeout
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools.base import Tool

SCHEMA = {
    "name": "ocr",
    "description": (
        "Recognize text with OCR, either from an image file or, when no path "
        "is given, from a fresh screenshot."
    ),
    "properties": {
        "image_path": {
            "type": "string",
            "description": "Path to an image file. Leave empty to OCR the screen.",
        },
    },
    "required": [],
}

PREVIEW_CHARS = 1000


class OcrTool(Tool):
    name = "ocr"
    SCHEMA = SCHEMA

    def _run(self, args: Dict[str, Any]) -> ToolResult:
        image_path = args.get("image_path")
        timeout = self.context.config.ocr_timeout

        if image_path:
            text = run_with_timeout(lambda: self.desktop.ocr_image_path(image_path), timeout, what="OCR")
            source = image_path
        else:
            shot = self.desktop.capture_screen()
            text = run_with_timeout(lambda: self.desktop.ocr_screenshot(shot), timeout, what="OCR")
            source = "screenshot"

        words = len(text.split())
        shown = text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")
        return ToolResult.ok_result(
            f"OCR completed on {source}: {words} words ({len(text)} characters)",
            {
                "source": source,
                "text_length": len(text),
                "word_count": words,
                "text": shown,
                "extracted_text": text,
            },
        )
