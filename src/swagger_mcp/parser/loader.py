"""Retrieve and decode an API description.

Accepts a ``file://`` URL, any other ``scheme://`` URL fetched over HTTP,
or a bare filesystem path. Reads are capped at a maximum size.
"""

import json
from pathlib import Path

import requests
import structlog
import yaml

from swagger_mcp.config import Settings
from swagger_mcp.parser.base import ApiDocument
from swagger_mcp.parser.detect import detect_dialect

logger = structlog.get_logger(__name__)

DEFAULT_MAX_SPEC_SIZE = 10 * 1024 * 1024  # 10 MiB
FETCH_TIMEOUT = 30.0

_SIZE_SUFFIXES = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}


class LoadError(Exception):
    """The API description could not be read or decoded."""


def parse_size(text: str) -> int:
    """Parse '1048576', '10KB', '10MB' or '1GB' into bytes."""
    s = text.strip().upper()
    mult = 1
    for suffix, factor in _SIZE_SUFFIXES.items():
        if s.endswith(suffix):
            mult = factor
            s = s[: -len(suffix)].strip()
            break
    if not s.isdigit():
        raise ValueError(f"invalid size: {text}")
    return int(s) * mult


def get_max_spec_size(override: int | None = None) -> int:
    """Resolve the size cap: explicit override, then environment, then default."""
    if override is not None and override > 0:
        return override
    env_value = Settings().max_spec_size
    if env_value:
        try:
            return parse_size(env_value)
        except ValueError:
            logger.warning("invalid_max_spec_size", value=env_value)
    return DEFAULT_MAX_SPEC_SIZE


def _read_file(path: str, max_size: int) -> bytes:
    try:
        with open(path, "rb") as f:
            body = f.read(max_size + 1)
    except OSError as e:
        raise LoadError(f"error reading file: {e}") from e
    if len(body) > max_size:
        raise LoadError(f"spec file too large (max {max_size} bytes)")
    return body


def _read_url(url: str, max_size: int) -> bytes:
    try:
        resp = requests.get(url, stream=True, timeout=FETCH_TIMEOUT)
    except requests.RequestException as e:
        raise LoadError(f"error getting spec: {e}") from e

    with resp:
        if resp.status_code < 200 or resp.status_code >= 300:
            raise LoadError(f"error getting spec: status {resp.status_code}")
        body = b""
        try:
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                body += chunk
                if len(body) > max_size:
                    raise LoadError(f"spec file too large (max {max_size} bytes)")
        except requests.RequestException as e:
            raise LoadError(f"error reading spec: {e}") from e
    return body


def read_location(location: str, max_size: int) -> bytes:
    """Read raw bytes from a file path, file:// URL, or network URL."""
    if location.startswith("file://"):
        return _read_file(location[len("file://"):], max_size)
    if "://" in location:
        return _read_url(location, max_size)
    return _read_file(location, max_size)


def parse_document(body: bytes) -> ApiDocument:
    """Decode JSON (or YAML) bytes into an ApiDocument."""
    try:
        data = json.loads(body)
    except ValueError as json_error:
        try:
            data = yaml.safe_load(body)
        except yaml.YAMLError:
            raise LoadError(f"error parsing JSON: {json_error}") from json_error

    if not isinstance(data, dict):
        raise LoadError("error parsing JSON: document is not an object")

    try:
        document = ApiDocument.model_validate(data)
    except ValueError as e:
        raise LoadError(f"error parsing JSON: {e}") from e

    logger.debug("document_parsed", dialect=detect_dialect(data), paths=len(document.paths))
    return document


def load_document(location: str, max_size: int | None = None) -> ApiDocument:
    """Load an API description from `location`."""
    limit = get_max_spec_size(max_size)
    body = read_location(location, limit)
    return parse_document(body)
