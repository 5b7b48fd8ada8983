from typing import Any

API_VERSION = "v1"


def envelope(data: Any = None, message: str = "", **meta: Any) -> dict[str, Any]:
    """Standard API response body."""
    body: dict[str, Any] = {
        "success": True,
        "message": message,
        "meta": {"api_version": API_VERSION, **meta},
    }
    if data is not None:
        body["data"] = data
    return body
