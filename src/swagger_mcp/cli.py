"""CLI entry point for swagger-mcp."""

import click

from swagger_mcp.compiler.describe import describe_document
from swagger_mcp.compiler.tools import CompiledTool, compile_tools
from swagger_mcp.config import ApiConfig, Settings
from swagger_mcp.logger import configure
from swagger_mcp.parser.base import ApiDocument
from swagger_mcp.parser.loader import LoadError, load_document, parse_size
from swagger_mcp.registry import ToolCollisionError, ToolRegistry
from swagger_mcp.server import DEFAULT_VERSION, build_server, resolve_sse_endpoint, run_sse, run_stdio

MISSING_SPEC_URL = "Please provide the Swagger JSON URL or file path using the --spec-url flag"


def _load(spec_url: str, max_spec_size: str | None) -> ApiDocument:
    """Load the document, turning load failures into CLI errors."""
    try:
        max_size = parse_size(max_spec_size) if max_spec_size else None
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--max-spec-size")
    try:
        return load_document(spec_url, max_size)
    except LoadError as e:
        raise click.ClickException(str(e))


def _filter_options(func):
    """Options shared by every command that compiles tools."""
    options = [
        click.option("--base-url", default="", help="Override the base URL derived from the document."),
        click.option("--include-paths", default="", help="Comma-separated path regexes to include."),
        click.option("--exclude-paths", default="", help="Comma-separated path regexes to exclude."),
        click.option("--include-methods", default="", help="Comma-separated HTTP methods to include."),
        click.option("--exclude-methods", default="", help="Comma-separated HTTP methods to exclude."),
        click.option("--max-spec-size", default=None, help="Maximum document size, e.g. 10MB."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _echo_tool(tool: CompiledTool) -> None:
    click.echo(f"{tool.name}  {tool.method} {tool.url}")
    for inp in tool.inputs:
        marker = "*" if inp.required else " "
        click.echo(f"  {marker} {inp.name}")


@click.group()
@click.option("--log-level", default=None, help="Log level (default: SWAGGER_MCP_LOG_LEVEL or INFO).")
@click.option("--log-json/--no-log-json", default=None, help="Emit JSON log lines.")
def main(log_level: str | None, log_json: bool | None):
    """swagger-mcp: serve a Swagger / OpenAPI API as MCP tools."""
    settings = Settings()
    configure(
        level=log_level or settings.log_level,
        json_out=settings.log_json if log_json is None else log_json,
    )


@main.command()
@click.option("--spec-url", default="", help="Swagger/OpenAPI JSON URL, file:// URL or file path.")
@_filter_options
@click.option("--security", default="", help="Authentication scheme: basic, bearer or apiKey.")
@click.option("--basic-auth", default="", help="Basic auth credentials as user:pass.")
@click.option("--api-key-auth", default="", help="API keys as passAs:name=value,... (passAs: header, query, cookie).")
@click.option("--bearer-auth", default="", help="Bearer token.")
@click.option("--headers", default="", help="Headers sent with every request as name=value,...")
@click.option("--sse-headers", default="", help="Comma-separated header names forwarded from SSE requests.")
@click.option("--sse", "sse_mode", is_flag=True, help="Serve over SSE instead of stdio.")
@click.option("--sse-addr", default="", help="SSE listen address, e.g. :8080.")
@click.option("--sse-url", default="", help="Public SSE base URL, e.g. http://localhost:8080.")
@click.option("--timeout", default=None, type=float, help="Per-request timeout in seconds.")
@click.option("--fail-on-collision", is_flag=True, help="Abort when two operations map to the same tool name.")
def serve(
    spec_url: str,
    base_url: str,
    include_paths: str,
    exclude_paths: str,
    include_methods: str,
    exclude_methods: str,
    max_spec_size: str | None,
    security: str,
    basic_auth: str,
    api_key_auth: str,
    bearer_auth: str,
    headers: str,
    sse_headers: str,
    sse_mode: bool,
    sse_addr: str,
    sse_url: str,
    timeout: float | None,
    fail_on_collision: bool,
):
    """Compile the document into tools and serve them."""
    if not spec_url:
        raise click.UsageError(MISSING_SPEC_URL)
    if sse_mode:
        try:
            resolve_sse_endpoint(sse_url, sse_addr)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--sse-url/--sse-addr")

    config = ApiConfig(
        base_url=base_url,
        include_paths=include_paths,
        exclude_paths=exclude_paths,
        include_methods=include_methods,
        exclude_methods=exclude_methods,
        security=security,
        basic_auth=basic_auth,
        api_key_auth=api_key_auth,
        bearer_auth=bearer_auth,
        headers=headers,
        sse_headers=sse_headers,
        timeout=timeout if timeout is not None else Settings().timeout,
    )

    document = _load(spec_url, max_spec_size)
    registry = ToolRegistry(config, allow_overwrite=not fail_on_collision)
    try:
        count = registry.register_all(compile_tools(document, config))
    except ToolCollisionError as e:
        raise click.ClickException(str(e))

    click.echo(f"Registered {count} tools.", err=True)
    if registry.collisions:
        click.echo(f"Tool name collisions (later operation kept): {', '.join(registry.collisions)}", err=True)

    version = document.info.version if document.info and document.info.version else DEFAULT_VERSION
    server = build_server(registry, version=version)
    if sse_mode:
        run_sse(server, sse_url, sse_addr)
    else:
        run_stdio(server)


@main.command()
@click.argument("spec_url")
@_filter_options
def tools(
    spec_url: str,
    base_url: str,
    include_paths: str,
    exclude_paths: str,
    include_methods: str,
    exclude_methods: str,
    max_spec_size: str | None,
):
    """List the tools a document compiles to (required inputs marked *)."""
    config = ApiConfig(
        base_url=base_url,
        include_paths=include_paths,
        exclude_paths=exclude_paths,
        include_methods=include_methods,
        exclude_methods=exclude_methods,
    )
    document = _load(spec_url, max_spec_size)
    compiled = sorted(compile_tools(document, config), key=lambda t: t.name)
    for tool in compiled:
        _echo_tool(tool)
    click.echo(f"{len(compiled)} tools.")


@main.command()
@click.argument("spec_url")
@click.option("--base-url", default="", help="Override the base URL derived from the document.")
@click.option("--max-spec-size", default=None, help="Maximum document size, e.g. 10MB.")
def describe(spec_url: str, base_url: str, max_spec_size: str | None):
    """Print every endpoint with its parameters, request body and responses."""
    document = _load(spec_url, max_spec_size)
    click.echo(describe_document(document, base_url))
