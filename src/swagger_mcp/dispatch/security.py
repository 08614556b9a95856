"""Authentication and fixed headers applied to outgoing requests.

Supported schemes:
  - basic:  Authorization: Basic base64(user:pass)
  - bearer: Authorization: Bearer <token>
  - apiKey: comma-separated `passAs:name=value` entries, where passAs is
    header, query or cookie

Examples:
  header:X-API-KEY=abc               -> X-API-KEY: abc
  query:key=abc                      -> ?key=abc
  cookie:sid=1,cookie:theme=dark     -> Cookie: sid=1; theme=dark
"""

import base64

import requests
import structlog

from swagger_mcp.config import ApiConfig
from swagger_mcp.dispatch.urls import merge_query

logger = structlog.get_logger(__name__)

_PASS_AS = ("header", "query", "cookie")


def parse_api_keys(api_key_auth: str) -> list[tuple[str, str, str]]:
    """Parse apiKey entries into (passAs, name, value), skipping malformed ones."""
    entries = []
    for part in api_key_auth.split(","):
        part = part.strip()
        if not part:
            continue
        colon = part.find(":")
        equals = part.find("=")
        # need a colon, an "=", and at least one name character between them
        if colon == -1 or equals == -1 or equals < colon + 2:
            logger.debug("api_key_entry_skipped", entry=part)
            continue
        pass_as = part[:colon].strip().lower()
        name = part[colon + 1:equals].strip()
        value = part[equals + 1:].strip()
        entries.append((pass_as, name, value))
    return entries


def _add_cookie(request: requests.Request, name: str, value: str) -> None:
    existing = request.headers.get("Cookie", "")
    pair = f"{name}={value}"
    request.headers["Cookie"] = f"{existing}; {pair}" if existing else pair


def apply_security(
    request: requests.Request,
    security: str,
    basic_auth: str = "",
    api_key_auth: str = "",
    bearer_auth: str = "",
) -> None:
    """Attach credentials for the configured scheme to `request` in place."""
    scheme = security.strip()

    if scheme == "basic":
        if basic_auth:
            token = base64.b64encode(basic_auth.encode()).decode()
            request.headers["Authorization"] = f"Basic {token}"
    elif scheme == "bearer":
        if bearer_auth:
            request.headers["Authorization"] = f"Bearer {bearer_auth}"
    elif scheme == "apiKey":
        api_keys = api_key_auth or basic_auth
        for pass_as, name, value in parse_api_keys(api_keys):
            if pass_as == "header":
                request.headers[name] = value
            elif pass_as == "query":
                request.url = merge_query(request.url, {name: value})
            elif pass_as == "cookie":
                _add_cookie(request, name, value)
            else:
                logger.debug("api_key_pass_as_unknown", pass_as=pass_as, expected=_PASS_AS)


def apply_custom_headers(request: requests.Request, config: ApiConfig) -> None:
    """Add the fixed `--headers` values, appending to any header already set."""
    for name, value in config.custom_headers():
        existing = request.headers.get(name)
        request.headers[name] = f"{existing}, {value}" if existing else value
