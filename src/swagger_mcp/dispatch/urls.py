"""URL manipulation used while materializing a request."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def substitute_path(url: str, name: str, value: str) -> str:
    """Replace the first `{name}` placeholder in `url`."""
    return url.replace("{" + name + "}", value, 1)


def merge_query(url: str, params: dict[str, str]) -> str:
    """Set query parameters on `url`, overwriting existing values of the same name.

    Keys are emitted in sorted order. Raises ValueError on an unparsable URL.
    """
    parts = urlsplit(url)
    query: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        query.setdefault(key, []).append(value)
    for key, value in params.items():
        query[key] = [value]
    encoded = urlencode([(key, value) for key in sorted(query) for value in query[key]])
    return urlunsplit((parts.scheme, parts.netloc, parts.path, encoded, parts.fragment))
