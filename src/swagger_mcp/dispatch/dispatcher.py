"""Turn tool arguments into one outbound HTTP call.

`dispatch` is the single handler shared by every compiled tool. It never
raises: each failure becomes a `ToolResult` whose text starts with
``[Error]`` so the calling agent can branch on it.
"""

import json
import re
from typing import Any, Union

import requests
import structlog
from pydantic import BaseModel
from requests.structures import CaseInsensitiveDict

from swagger_mcp.compiler.tools import CompiledTool
from swagger_mcp.config import ApiConfig
from swagger_mcp.dispatch.security import apply_custom_headers, apply_security
from swagger_mcp.dispatch.urls import merge_query, substitute_path

logger = structlog.get_logger(__name__)

ERROR_PREFIX = "[Error]"

# Values as delivered by the transport
ArgValue = Union[str, int, float, bool, list, dict, None]

_INT_RE = re.compile(r"[+-]?\d+")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


class ToolResult(BaseModel):
    text: str
    is_error: bool = False
    status_code: int | None = None


class DispatchError(Exception):
    """A per-call failure; `kind` names the failing phase."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def _coerce_int(name: str, value: ArgValue) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value):
        return int(value)
    raise DispatchError("invalid_param_type", f"invalid type for parameter {name}, expected int")


def _coerce_float(name: str, value: ArgValue) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise DispatchError("invalid_param_type", f"invalid type for parameter {name}, expected float")


def _coerce_bool(name: str, value: ArgValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
    raise DispatchError("invalid_param_type", f"invalid type for parameter {name}, expected bool")


def _coerce_json(name: str, value: ArgValue, expected: type, kind: str) -> Any:
    if isinstance(value, expected):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            parsed = None
        if isinstance(parsed, expected):
            return parsed
    raise DispatchError("invalid_param_type", f"invalid type for parameter {name}, expected {kind}")


def coerce_value(name: str, declared_type: str, value: ArgValue) -> Any:
    """Convert one body argument to the JSON value its declared type calls for."""
    if declared_type == "string":
        if not isinstance(value, str):
            raise DispatchError("invalid_param_type", f"invalid type for parameter {name}, expected string")
        return value
    if declared_type in ("int", "integer"):
        return _coerce_int(name, value)
    if declared_type == "float":
        return _coerce_float(name, value)
    if declared_type in ("bool", "boolean"):
        return _coerce_bool(name, value)
    if declared_type == "array":
        return _coerce_json(name, value, list, "array")
    if declared_type == "object":
        return _coerce_json(name, value, dict, "object")
    raise DispatchError("unsupported_param_type", f"unsupported parameter type: {declared_type} for {name}")


def _require_text(arguments: dict[str, ArgValue], name: str, kind: str, label: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str):
        raise DispatchError(kind, f"missing or invalid {label}: {name}")
    return value


def build_url(tool: CompiledTool, arguments: dict[str, ArgValue]) -> str:
    url = tool.url
    for name in tool.path_params:
        value = _require_text(arguments, name, "missing_or_invalid_path_param", "Path Parameter")
        url = substitute_path(url, name, value)

    if tool.query_params:
        query = {}
        for name in tool.query_params:
            query[name] = _require_text(arguments, name, "missing_or_invalid_query_param", "Query Parameter")
        try:
            url = merge_query(url, query)
        except ValueError as e:
            raise DispatchError("url_parse_failed", f"failed to parse URL: {e}") from e
    return url


def build_body(tool: CompiledTool, arguments: dict[str, ArgValue]) -> bytes:
    body = {}
    for name, declared_type in tool.body_fields.items():
        if name not in arguments or arguments[name] is None:
            raise DispatchError("missing_body_param", f"missing Body Parameter: {name}")
        body[name] = coerce_value(name, declared_type, arguments[name])
    try:
        return json.dumps(body, allow_nan=False).encode()
    except ValueError as e:
        raise DispatchError("body_marshal_failed", f"failed to marshal request body: {e}") from e


def build_request(
    tool: CompiledTool,
    arguments: dict[str, ArgValue],
    config: ApiConfig,
    context_headers: dict[str, str] | None = None,
) -> requests.PreparedRequest:
    """Bind arguments, credentials and headers into a prepared request."""
    url = build_url(tool, arguments)
    body = build_body(tool, arguments)

    headers = CaseInsensitiveDict()
    for name in tool.header_params:
        headers[name] = _require_text(arguments, name, "missing_or_invalid_header", "Header")
    headers["Content-Type"] = "application/json"

    request = requests.Request(method=tool.method, url=url, headers=headers, data=body)
    try:
        apply_security(request, config.security, config.basic_auth, config.api_key_auth, config.bearer_auth)
        apply_custom_headers(request, config)
        for name, value in (context_headers or {}).items():
            request.headers[name] = value
        return request.prepare()
    except (requests.RequestException, ValueError) as e:
        raise DispatchError("request_build_failed", f"failed to create HTTP request: {e}") from e


def _send(session: requests.Session, prepared: requests.PreparedRequest, timeout: float) -> ToolResult:
    try:
        response = session.send(prepared, stream=True, timeout=timeout)
    except (requests.RequestException, ValueError) as e:
        # http.client rejects header values outside latin-1 with UnicodeEncodeError
        raise DispatchError("request_failed", f"failed to make HTTP request: {e}") from e

    try:
        content = response.content
    except requests.RequestException as e:
        raise DispatchError("response_unreadable", f"failed to read HTTP Response: {e}") from e
    finally:
        response.close()

    # charset labels are ignored, bodies are read as UTF-8
    text = content.decode("utf-8", errors="replace")
    return ToolResult(text=text, status_code=response.status_code)


def dispatch(
    tool: CompiledTool,
    arguments: dict[str, ArgValue],
    config: ApiConfig,
    context_headers: dict[str, str] | None = None,
    session: requests.Session | None = None,
) -> ToolResult:
    """Invoke `tool` with `arguments` and return the response body or an error."""
    log = logger.bind(tool=tool.name)
    try:
        prepared = build_request(tool, arguments or {}, config, context_headers)
        log.info("request", method=prepared.method, url=prepared.url)
        if session is not None:
            result = _send(session, prepared, config.timeout)
        else:
            with requests.Session() as own_session:
                result = _send(own_session, prepared, config.timeout)
    except DispatchError as e:
        log.warning("dispatch_failed", kind=e.kind, error=e.message)
        return ToolResult(text=f"{ERROR_PREFIX} {e.message}", is_error=True)

    log.info("response", status=result.status_code, size=len(result.text))
    return result
