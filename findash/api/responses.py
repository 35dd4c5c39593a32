"""Response envelope helpers."""

from typing import Any


def ok(data: Any = None, **extra: Any) -> dict[str, Any]:
    """Success envelope: ``{"success": true, "data": ..., **extra}``."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def error(message: str) -> dict[str, Any]:
    """Failure envelope: ``{"success": false, "error": ...}``."""
    return {"success": False, "error": message}
