"""Human-readable dump of every operation in a document."""

from swagger_mcp.compiler.tools import join_url, resolve_base_url
from swagger_mcp.parser.base import ApiDocument, Operation, extract_schema_name

SEPARATOR = "----------------------------"


def describe_document(document: ApiDocument, base_url: str = "") -> str:
    """Render endpoint, parameters, request body and responses per operation."""
    base = resolve_base_url(document, base_url)
    blocks = []
    for path, methods in document.paths.items():
        for method, operation in methods.items():
            blocks.append(_describe_operation(document, join_url(base, path), method, operation))
    return "\n".join(blocks)


def _describe_operation(document: ApiDocument, url: str, method: str, operation: Operation) -> str:
    schemas = document.schemas
    lines = [
        f"Endpoint: {url}",
        f"Method: {method.upper()}",
        f"Summary: {operation.summary}",
        f"Description: {operation.description}",
        "",
        "Headers:",
    ]
    for param in operation.parameters:
        if param.location == "header":
            lines.append(f"  - {param.name} (Required: {_flag(param.required)})")

    lines += ["", "Path Parameters:"]
    for param in operation.parameters:
        if param.location == "path":
            lines.append(f"  - {param.name} (Required: {_flag(param.required)}, Type: {param.param_type})")
            if param.description:
                lines.append(f"    Description: {param.description}")

    lines += ["", "Request Body:"]
    for param in operation.body_parameters():
        ref = param.schema_ref.ref if param.schema_ref else ""
        schema_name = extract_schema_name(ref, param.param_type)
        lines.append(f"  Schema: {schema_name}")
        if schema_name in schemas:
            for prop_name, prop in schemas[schema_name].properties.items():
                lines.append(f"    - {prop_name}: {prop.type}")
        elif schema_name:
            lines.append(f"    Type: {schema_name}")

    lines += ["", "Response Body:"]
    for status, resp in operation.responses.items():
        lines.append(f"  Status {status}:")
        body_schema = resp.body_schema
        if body_schema is not None:
            schema_name = extract_schema_name(body_schema.ref, body_schema.type)
            if schema_name in schemas:
                lines.append(f"    Schema: {schema_name}")
                for prop_name, prop in schemas[schema_name].properties.items():
                    lines.append(f"      - {prop_name}: {prop.type}")
            elif body_schema.type:
                lines.append(f"    Type: {body_schema.type}")
            else:
                lines.append(f"    Schema Reference: {body_schema.ref}")
        elif resp.type:
            lines.append(f"    Type: {resp.type}")
        else:
            lines.append("    No response schema defined")
        if resp.description:
            lines.append(f"    Description: {resp.description}")

    lines += ["", SEPARATOR]
    return "\n".join(lines)


def _flag(value: bool) -> str:
    return "true" if value else "false"
