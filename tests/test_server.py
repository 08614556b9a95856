from types import SimpleNamespace

import anyio
import mcp.types as types
import pytest

from conftest import make_tool
from swagger_mcp.config import ApiConfig
from swagger_mcp.registry import ToolRegistry
from swagger_mcp.server import build_server, capture_headers, resolve_sse_endpoint


class TestResolveSseEndpoint:
    def test_both_given_used_as_is(self):
        assert resolve_sse_endpoint("http://public:9000", ":8080") == ("http://public:9000", ":8080")

    def test_from_address(self):
        assert resolve_sse_endpoint("", ":8080") == ("http://localhost:8080", ":8080")
        assert resolve_sse_endpoint("", "0.0.0.0:9000") == ("http://0.0.0.0:9000", "0.0.0.0:9000")

    def test_from_url(self):
        assert resolve_sse_endpoint("http://example.com:8081", "") == ("http://example.com:8081", "example.com:8081")
        assert resolve_sse_endpoint("https://example.com", "") == ("https://example.com", "example.com:443")
        assert resolve_sse_endpoint("http://example.com/", "") == ("http://example.com/", "example.com:80")

    @pytest.mark.parametrize(
        "url, addr",
        [("", ""), ("", "8080"), ("", "host:port"), ("ftp://example.com", ""), ("not a url", "")],
    )
    def test_invalid(self, url, addr):
        with pytest.raises(ValueError):
            resolve_sse_endpoint(url, addr)


class TestCaptureHeaders:
    def test_copies_present_headers_only(self):
        request = SimpleNamespace(headers={"Authorization": "Bearer x", "X-Other": "y"})
        assert capture_headers(request, ["Authorization", "X-Tenant"]) == {"Authorization": "Bearer x"}

    def test_no_request_or_names(self):
        assert capture_headers(None, ["Authorization"]) == {}
        assert capture_headers(SimpleNamespace(headers={"A": "1"}), []) == {}


class TestBuildServer:
    def test_lists_registered_tools(self):
        registry = ToolRegistry(ApiConfig())
        registry.register(make_tool(path_params=("id",), inputs=()))
        server = build_server(registry, version="9.9.9")

        handler = server.request_handlers[types.ListToolsRequest]
        result = anyio.run(handler, types.ListToolsRequest(method="tools/list"))

        tools = result.root.tools
        assert [t.name for t in tools] == ["post_api/id"]
        assert tools[0].description == "test tool"
        assert tools[0].inputSchema["type"] == "object"

    def test_version_in_initialization_options(self):
        server = build_server(ToolRegistry(ApiConfig()), version="1.2.3")
        options = server.create_initialization_options()
        assert options.server_name == "swagger-mcp"
        assert options.server_version == "1.2.3"
