"""Detect which API description dialect a decoded document uses."""


def detect_dialect(data: dict) -> str:
    """Return 'openapi', 'swagger', or 'unknown'.

    The OpenAPI version marker wins when both markers are present.
    """
    if not isinstance(data, dict):
        return "unknown"
    if data.get("openapi"):
        return "openapi"
    if data.get("swagger") or "host" in data or "definitions" in data:
        return "swagger"
    return "unknown"
