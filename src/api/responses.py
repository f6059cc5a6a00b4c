"""Response envelopes shared by every HTTP route."""

from typing import Any, Dict

from utils.misc import time_iso8601
from utils.model_parser import to_plain


def success(data: Any) -> Dict[str, Any]:
    """Wrap ``data`` as ``{success: true, data, timestamp}``."""
    return {"success": True, "data": to_plain(data), "timestamp": time_iso8601()}


def error_body(message: str, **extra: Any) -> Dict[str, Any]:
    """Build the ``{error, timestamp}`` body, with optional extra fields."""
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    body["timestamp"] = time_iso8601()
    return body
