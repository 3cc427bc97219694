from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ToolResult:
    """Standard envelope for all tool responses.

    A successful result carries ``message`` plus a tool-specific ``data``
    payload; a failed one carries only ``error``.
    """

    success: bool
    message: str = ""
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.success

    @property
    def is_error(self) -> bool:
        return not self.success

    @classmethod
    def ok_result(
        cls,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "ToolResult":
        return cls(success=True, message=message, error=None, data=data or {})

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, message="", error=error or "Unknown error", data={})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into the shape shown to the model and the transcript."""
        if not self.success:
            return {"success": False, "error": self.error}
        out: Dict[str, Any] = {"success": True, "message": self.message}
        for key, value in self.data.items():
            if key not in out:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ToolResult":
        if not payload.get("success"):
            return cls.failure(str(payload.get("error") or "Unknown error"))
        data = {k: v for k, v in payload.items() if k not in ("success", "message")}
        return cls.ok_result(str(payload.get("message", "")), data)
