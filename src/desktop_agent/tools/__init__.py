"""
desktop_agent.tools
~~~~~~~~~~~~~~~~~~~
All tool classes in one place. Import from here so callers don't need to know
individual module paths.

Quick registration example::

    from desktop_agent.tools import build_tools

    registry = build_tools(context)
    schemas  = registry.to_openai_tools()
    result   = registry.execute("calculate", {"expression": "2+2"})
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from desktop_agent.tools.apps import AppControlTool, OpenAppTool
from desktop_agent.tools.artist import (
    AnalyzeArtworkTool,
    CaptureArtworkTool,
    DrawShapeTool,
    OpenPaintTool,
    SetupBrushTool,
    VisionAnalyzer,
)
from desktop_agent.tools.base import (
    DuplicateToolError,
    InvalidArguments,
    Tool,
    ToolDefinition,
    ToolError,
    ToolNotFound,
    ToolRegistry,
)
from desktop_agent.tools.calculate import CalculateTool
from desktop_agent.tools.elements import ClickElementTool, FindElementsTool
from desktop_agent.tools.file_manager import FileManagerTool
from desktop_agent.tools.ocr import OcrTool
from desktop_agent.tools.run_command import RunCommandTool
from desktop_agent.tools.screenshot import ScreenshotTool
from desktop_agent.tools.type_text import TypeTextTool
from desktop_agent.tools.web import WebTool

if TYPE_CHECKING:
    from desktop_agent.context import AgentContext

__all__ = [
    "Tool", "ToolDefinition", "ToolRegistry",
    "ToolError", "ToolNotFound", "InvalidArguments", "DuplicateToolError",
    "ScreenshotTool", "ClickElementTool", "FindElementsTool",
    "OpenAppTool", "AppControlTool", "OcrTool", "TypeTextTool",
    "CalculateTool", "FileManagerTool", "WebTool", "RunCommandTool",
    "OpenPaintTool", "SetupBrushTool", "DrawShapeTool",
    "CaptureArtworkTool", "AnalyzeArtworkTool",
    "build_tools", "build_artist_tools",
]


def build_tools(context: "AgentContext") -> ToolRegistry:
    instances: list[Tool] = [
        ScreenshotTool(context),
        ClickElementTool(context),
        FindElementsTool(context),
        OpenAppTool(context),
        AppControlTool(context),
        OcrTool(context),
        TypeTextTool(context),
        CalculateTool(context),
        FileManagerTool(context),
        WebTool(context),
        RunCommandTool(context),
    ]
    return ToolRegistry([t.definition() for t in instances])


def build_artist_tools(
    context: "AgentContext",
    analyzer: Optional[VisionAnalyzer] = None,
) -> ToolRegistry:
    # analyze_artwork falls back to a technical report without an analyzer
    instances: list[Tool] = [
        OpenPaintTool(context),
        SetupBrushTool(context),
        DrawShapeTool(context),
        CaptureArtworkTool(context),
        AnalyzeArtworkTool(context, analyzer),
    ]
    return ToolRegistry([t.definition() for t in instances])
