"""Compile API operations into tool definitions.

Each (path, method) pair that passes the filters becomes one immutable
`CompiledTool`. The tool records everything the dispatcher needs: the
absolute URL template and which arguments go to the path, query string,
headers and JSON body.
"""

import structlog
from pydantic import BaseModel

from swagger_mcp.compiler.filters import OperationFilter
from swagger_mcp.config import ApiConfig
from swagger_mcp.parser.base import ApiDocument, Operation, ParameterSpec, extract_schema_name

logger = structlog.get_logger(__name__)

DESCRIPTION_TEMPLATE = (
    "Use this tool only when the request exactly matches {summary} or {description}. "
    "If you don't have any of the required parameters then always ask the user for it, "
    "*Don't fill any parameter on your own or keep it empty*. "
    "If there is [Error], only state that error in your response and stop the response there itself. "
    "*Do not ever maintain records in your memory for eg list of users or orders*"
)


class ToolInput(BaseModel):
    """One string input field exposed to the calling agent."""

    model_config = {"frozen": True}

    name: str
    description: str
    required: bool


class CompiledTool(BaseModel):
    """Request template for a single operation."""

    model_config = {"frozen": True}

    name: str
    method: str
    url: str  # absolute, with {param} placeholders
    description: str
    path_params: tuple[str, ...] = ()
    query_params: tuple[str, ...] = ()
    header_params: tuple[str, ...] = ()
    body_fields: dict[str, str] = {}  # field name -> declared type
    inputs: tuple[ToolInput, ...] = ()

    def input_schema(self) -> dict:
        """JSON schema of the tool arguments; every field is a string."""
        properties = {
            inp.name: {"type": "string", "description": inp.description} for inp in self.inputs
        }
        required = [inp.name for inp in self.inputs if inp.required]
        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = list(dict.fromkeys(required))
        return schema


def resolve_base_url(document: ApiDocument, override: str = "") -> str:
    """Pick the base URL for every operation of the document.

    An explicit override is used verbatim. OpenAPI documents use their
    first server (or "/" when none is listed); Swagger documents use
    host + basePath, defaulting the scheme to https.
    """
    if override:
        return override

    if document.is_openapi:
        if document.servers:
            return document.servers[0].url
        return "/"

    base_url = document.host
    if not base_url.startswith(("http://", "https://")):
        base_url = "https://" + base_url
    if document.base_path:
        base_url = base_url.rstrip("/") + "/" + document.base_path.lstrip("/")
    return base_url


def join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def build_tool_name(method: str, path: str) -> str:
    return f"{method}_{path.replace('{', '').replace('}', '')}"


def build_description(operation: Operation) -> str:
    return DESCRIPTION_TEMPLATE.format(summary=operation.summary, description=operation.description)


def _body_fields(document: ApiDocument, param: ParameterSpec) -> dict[str, str]:
    schema = param.schema_ref
    if schema is None:
        schema_name = param.param_type
    else:
        if not schema.ref and schema.properties:
            return {name: prop.type for name, prop in schema.properties.items()}
        schema_name = extract_schema_name(schema.ref, param.type or schema.type)

    definition = document.schemas.get(schema_name)
    if definition is None:
        logger.debug("body_schema_not_found", parameter=param.name, schema=schema_name)
        return {}
    return {name: prop.type for name, prop in definition.properties.items()}


def compile_operation(
    document: ApiDocument,
    path: str,
    method: str,
    operation: Operation,
    base_url: str,
) -> CompiledTool:
    """Build the tool for a single operation."""
    inputs: list[ToolInput] = []
    bound: dict[str, list[str]] = {"header": [], "query": [], "path": []}

    for location in ("header", "query", "path"):
        for param in operation.parameters:
            if param.location != location:
                continue
            inputs.append(
                ToolInput(name=param.name, description=f"The data for {param.name}", required=param.required)
            )
            bound[location].append(param.name)

    body_fields: dict[str, str] = {}
    for param in operation.body_parameters():
        for prop_name, prop_type in _body_fields(document, param).items():
            inputs.append(
                ToolInput(
                    name=prop_name,
                    description=f"The data for {prop_name}, it should be in format of {prop_type}",
                    required=True,
                )
            )
            body_fields[prop_name] = prop_type

    return CompiledTool(
        name=build_tool_name(method, path),
        method=method.upper(),
        url=join_url(base_url, path),
        description=build_description(operation),
        path_params=tuple(bound["path"]),
        query_params=tuple(bound["query"]),
        header_params=tuple(bound["header"]),
        body_fields=body_fields,
        inputs=tuple(inputs),
    )


def compile_tools(document: ApiDocument, config: ApiConfig) -> list[CompiledTool]:
    """Compile every operation of `document` admitted by the config filters."""
    operation_filter = OperationFilter.from_config(config)
    base_url = resolve_base_url(document, config.base_url)

    tools = []
    for path, methods in document.paths.items():
        if not operation_filter.accepts_path(path):
            continue
        for method, operation in methods.items():
            if not operation_filter.accepts_method(method):
                continue
            tools.append(compile_operation(document, path, method, operation, base_url))
    return tools
