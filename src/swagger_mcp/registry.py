"""Registry of compiled tools handed to the hosting transport."""

import threading

import requests
import structlog

from swagger_mcp.compiler.tools import CompiledTool
from swagger_mcp.config import ApiConfig
from swagger_mcp.dispatch.dispatcher import ERROR_PREFIX, ArgValue, ToolResult, dispatch

logger = structlog.get_logger(__name__)


class ToolCollisionError(Exception):
    """Two operations compiled to the same tool name."""


class ToolRegistry:
    """Holds compiled tools by name and invokes them with the shared config.

    A name registered twice is recorded in `collisions`. The later tool
    replaces the earlier one unless `allow_overwrite` is False, in which
    case `register` raises ToolCollisionError.
    """

    def __init__(self, config: ApiConfig, allow_overwrite: bool = True):
        self.config = config
        self.allow_overwrite = allow_overwrite
        self.collisions: list[str] = []
        self._tools: dict[str, CompiledTool] = {}
        self._lock = threading.Lock()

    def register(self, tool: CompiledTool) -> None:
        with self._lock:
            previous = self._tools.get(tool.name)
            if previous is not None:
                if not self.allow_overwrite:
                    raise ToolCollisionError(
                        f"tool name {tool.name!r} is produced by more than one operation ({previous.url}, {tool.url})"
                    )
                self.collisions.append(tool.name)
                logger.warning("tool_name_collision", tool=tool.name, replaced=previous.url, url=tool.url)
            self._tools[tool.name] = tool
        logger.debug("tool_registered", tool=tool.name, method=tool.method, url=tool.url)

    def register_all(self, tools: list[CompiledTool]) -> int:
        for tool in tools:
            self.register(tool)
        return self.count

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._tools)

    def get(self, name: str) -> CompiledTool | None:
        with self._lock:
            return self._tools.get(name)

    def tools(self) -> list[CompiledTool]:
        with self._lock:
            return list(self._tools.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._tools)

    def invoke(
        self,
        name: str,
        arguments: dict[str, ArgValue],
        context_headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> ToolResult:
        tool = self.get(name)
        if tool is None:
            return ToolResult(text=f"{ERROR_PREFIX} unknown tool: {name}", is_error=True)
        return dispatch(tool, arguments, self.config, context_headers=context_headers, session=session)
