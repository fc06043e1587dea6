"""
JSON envelopes for the few JSON endpoints (``/health``, ``/api/*``).

Success: ``{"success": true, "data": ...}``
Failure: ``{"success": false, "error": {"message", "code"?, "details"?}}``
"""

from typing import Any, Dict, Optional


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build an error envelope.

    Args:
        message: Text safe to show the user
        code: Stable machine-readable code, e.g. ``SELF_DELETION_FORBIDDEN``
        details: Extra context such as the list of failed form rules
    """
    error: Dict[str, Any] = {"message": message}
    if code:
        error["code"] = code
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
