"""Path and method filtering for tool generation.

An empty include list admits everything; an exclude match always wins.
"""

import re

import structlog
from pydantic import BaseModel

from swagger_mcp.config import ApiConfig

logger = structlog.get_logger(__name__)


def compile_patterns(patterns: str) -> list[re.Pattern]:
    """Compile comma-separated regexes, skipping invalid ones."""
    compiled = []
    for pattern in patterns.split(","):
        pattern = pattern.strip()
        if not pattern:
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            logger.warning("invalid_regex_pattern", pattern=pattern, error=str(e))
    return compiled


def split_list(items: str) -> list[str]:
    return [item.strip() for item in items.split(",") if item.strip()]


def should_include_path(path: str, include: list[re.Pattern], exclude: list[re.Pattern]) -> bool:
    if include and not any(regex.search(path) for regex in include):
        return False
    return not any(regex.search(path) for regex in exclude)


def should_include_method(method: str, include: list[str], exclude: list[str]) -> bool:
    method = method.strip().lower()
    if include and method not in {m.strip().lower() for m in include}:
        return False
    return method not in {m.strip().lower() for m in exclude}


class OperationFilter(BaseModel):
    """Compiled include/exclude lists for one compilation pass."""

    model_config = {"frozen": True}

    include_paths: list[re.Pattern] = []
    exclude_paths: list[re.Pattern] = []
    include_methods: list[str] = []
    exclude_methods: list[str] = []

    @classmethod
    def from_config(cls, config: ApiConfig) -> "OperationFilter":
        return cls(
            include_paths=compile_patterns(config.include_paths),
            exclude_paths=compile_patterns(config.exclude_paths),
            include_methods=split_list(config.include_methods),
            exclude_methods=split_list(config.exclude_methods),
        )

    def accepts_path(self, path: str) -> bool:
        return should_include_path(path, self.include_paths, self.exclude_paths)

    def accepts_method(self, method: str) -> bool:
        return should_include_method(method, self.include_methods, self.exclude_methods)
