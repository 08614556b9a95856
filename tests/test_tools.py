import itertools

from swagger_mcp.compiler.filters import compile_patterns, should_include_method, should_include_path
from swagger_mcp.compiler.tools import (
    build_description,
    build_tool_name,
    compile_tools,
    join_url,
    resolve_base_url,
)
from swagger_mcp.config import ApiConfig
from swagger_mcp.parser.base import ApiDocument, Operation
from swagger_mcp.parser.loader import load_document


def _by_name(tools):
    return {t.name: t for t in tools}


class TestResolveBaseUrl:
    def test_host_gets_https(self):
        assert resolve_base_url(ApiDocument(host="foo.com")) == "https://foo.com"

    def test_host_with_scheme_unchanged(self):
        assert resolve_base_url(ApiDocument(host="http://foo.com")) == "http://foo.com"
        assert resolve_base_url(ApiDocument(host="https://foo.com")) == "https://foo.com"

    def test_host_with_base_path(self):
        assert resolve_base_url(ApiDocument(host="foo.com", basePath="/bar/")) == "https://foo.com/bar/"

    def test_openapi_server_verbatim(self):
        doc = ApiDocument.model_validate({"openapi": "3.0.0", "servers": [{"url": "https://api.example.com/v1/"}]})
        assert resolve_base_url(doc) == "https://api.example.com/v1/"

    def test_openapi_without_servers(self):
        assert resolve_base_url(ApiDocument(openapi="3.0.0")) == "/"

    def test_openapi_marker_ignores_host(self):
        doc = ApiDocument.model_validate({"openapi": "3.0.1", "host": "ignored.com", "servers": [{"url": "https://x.io"}]})
        assert resolve_base_url(doc) == "https://x.io"

    def test_override_verbatim(self):
        assert resolve_base_url(ApiDocument(host="foo.com"), "http://localhost:9000/") == "http://localhost:9000/"


class TestHelpers:
    def test_join_url(self):
        assert join_url("https://api.example.com/v1/", "/pets") == "https://api.example.com/v1/pets"
        assert join_url("/", "/pets") == "/pets"

    def test_tool_name_strips_braces(self):
        assert build_tool_name("get", "/users/{id}/orders/{orderId}") == "get_/users/id/orders/orderId"

    def test_description_mentions_summary_and_description(self):
        text = build_description(Operation(summary="List pets", description="All of them"))
        assert "exactly matches List pets or All of them" in text
        assert "ask the user" in text


class TestCompileSwagger:
    def test_tool_names(self, petstore_path):
        tools = _by_name(compile_tools(load_document(str(petstore_path)), ApiConfig()))
        assert set(tools) == {
            "get_/pets",
            "post_/pets",
            "get_/pets/petId",
            "delete_/pets/petId",
            "post_/admin/reset",
        }

    def test_url_and_bindings(self, petstore_path):
        tools = _by_name(compile_tools(load_document(str(petstore_path)), ApiConfig()))
        get_pet = tools["get_/pets/petId"]
        assert get_pet.method == "GET"
        assert get_pet.url == "https://petstore.example.com/v1/pets/{petId}"
        assert get_pet.path_params == ("petId",)
        assert get_pet.query_params == ()

        list_pets = tools["get_/pets"]
        assert list_pets.query_params == ("limit",)
        assert list_pets.inputs[0].required is False

    def test_body_fields_from_definition(self, petstore_path):
        tools = _by_name(compile_tools(load_document(str(petstore_path)), ApiConfig()))
        create = tools["post_/pets"]
        assert create.header_params == ("X-Request-Id",)
        assert create.body_fields == {"name": "string", "age": "int", "vaccinated": "bool", "tags": "array"}
        body_inputs = [i for i in create.inputs if i.name in create.body_fields]
        assert all(i.required for i in body_inputs)
        assert "format of int" in next(i.description for i in body_inputs if i.name == "age")

    def test_input_order_header_query_path_body(self):
        doc = ApiDocument.model_validate(
            {
                "host": "a.com",
                "paths": {
                    "/x/{id}": {
                        "put": {
                            "parameters": [
                                {"name": "id", "in": "path", "required": True},
                                {"name": "q", "in": "query"},
                                {"name": "body", "in": "body", "schema": {"$ref": "#/definitions/X"}},
                                {"name": "H", "in": "header"},
                            ]
                        }
                    }
                },
                "definitions": {"X": {"properties": {"v": {"type": "string"}}}},
            }
        )
        (tool,) = compile_tools(doc, ApiConfig())
        assert [i.name for i in tool.inputs] == ["H", "q", "id", "v"]

    def test_missing_schema_yields_no_fields(self, petstore_path):
        tools = _by_name(compile_tools(load_document(str(petstore_path)), ApiConfig()))
        reset = tools["post_/admin/reset"]
        assert reset.body_fields == {}
        assert reset.inputs == ()

    def test_raw_body_type_without_ref(self):
        doc = ApiDocument.model_validate(
            {"host": "a.com", "paths": {"/n": {"post": {"parameters": [{"name": "n", "in": "body", "type": "string"}]}}}}
        )
        (tool,) = compile_tools(doc, ApiConfig())
        assert tool.body_fields == {}

    def test_parameter_without_location_is_unbound(self):
        doc = ApiDocument.model_validate(
            {"host": "a.com", "paths": {"/n": {"get": {"parameters": [{"name": "loose", "required": True}]}}}}
        )
        (tool,) = compile_tools(doc, ApiConfig())
        assert tool.query_params == ()
        assert tool.path_params == ()
        assert tool.header_params == ()
        assert tool.inputs == ()

    def test_base_url_override(self, petstore_path):
        tools = compile_tools(load_document(str(petstore_path)), ApiConfig(base_url="http://localhost:8080/"))
        assert all(t.url.startswith("http://localhost:8080/pets") or t.url.startswith("http://localhost:8080/admin") for t in tools)

    def test_input_schema(self, petstore_path):
        tools = _by_name(compile_tools(load_document(str(petstore_path)), ApiConfig()))
        schema = tools["post_/pets"].input_schema()
        assert schema["type"] == "object"
        assert schema["properties"]["age"]["type"] == "string"
        assert set(schema["required"]) == {"X-Request-Id", "name", "age", "vaccinated", "tags"}
        assert "required" not in tools["get_/pets"].input_schema()


class TestCompileOpenApi:
    def test_request_body_and_servers(self, openapi_path):
        tools = _by_name(compile_tools(load_document(str(openapi_path)), ApiConfig()))
        create = tools["post_/pets"]
        assert create.url == "https://api.example.com/v1/pets"
        assert create.body_fields == {"name": "string", "age": "integer"}

    def test_inline_body_schema(self):
        doc = ApiDocument.model_validate(
            {
                "openapi": "3.0.0",
                "servers": [{"url": "https://x.io"}],
                "paths": {
                    "/notes": {
                        "post": {
                            "requestBody": {
                                "content": {
                                    "application/json": {
                                        "schema": {"type": "object", "properties": {"text": {"type": "string"}}}
                                    }
                                }
                            }
                        }
                    }
                },
            }
        )
        (tool,) = compile_tools(doc, ApiConfig())
        assert tool.body_fields == {"text": "string"}


class TestFiltering:
    def test_exclude_paths_and_methods(self, petstore_path):
        config = ApiConfig(exclude_paths="^/admin", exclude_methods="delete")
        names = {t.name for t in compile_tools(load_document(str(petstore_path)), config)}
        assert names == {"get_/pets", "post_/pets", "get_/pets/petId"}

    def test_generated_iff_filters_accept(self, petstore_path):
        doc = load_document(str(petstore_path))
        path_options = ["", "^/pets", "petId", "[broken"]
        method_options = ["", "get", "GET,delete", "post"]
        for inc_p, exc_p, inc_m, exc_m in itertools.product(path_options, path_options, method_options, method_options):
            config = ApiConfig(include_paths=inc_p, exclude_paths=exc_p, include_methods=inc_m, exclude_methods=exc_m)
            names = {t.name for t in compile_tools(doc, config)}
            expected = {
                build_tool_name(method, path)
                for path, methods in doc.paths.items()
                for method in methods
                if should_include_path(path, compile_patterns(inc_p), compile_patterns(exc_p))
                and should_include_method(
                    method,
                    [m for m in inc_m.split(",") if m],
                    [m for m in exc_m.split(",") if m],
                )
            }
            assert names == expected

    def test_recompile_is_idempotent(self, petstore_path):
        doc = load_document(str(petstore_path))
        config = ApiConfig(exclude_methods="delete")
        first = sorted(compile_tools(doc, config), key=lambda t: t.name)
        second = sorted(compile_tools(doc, config), key=lambda t: t.name)
        assert first == second
