"""Normalized data models for parsed API descriptions.

Both Swagger 2.0 and OpenAPI 3.0 documents are validated into these
models. Only the fields needed to build tools are kept; anything else
in the document is ignored.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Property(_Model):
    """A first-level property of a schema definition."""

    type: str = ""


class SchemaRef(_Model):
    """A schema reference as found on parameters and responses."""

    ref: str = Field(default="", alias="$ref")
    type: str = ""
    properties: dict[str, Property] = {}


class SchemaDefinition(_Model):
    """A named schema. Nested schemas are not expanded."""

    type: str = ""
    properties: dict[str, Property] = {}


class ParameterSpec(_Model):
    """A single operation parameter (path, query, header, or body)."""

    name: str
    location: str = Field(default="", alias="in")  # path / query / header / body
    required: bool = False
    type: str = ""
    description: str = ""
    schema_ref: SchemaRef | None = Field(default=None, alias="schema")

    @property
    def param_type(self) -> str:
        # OpenAPI 3 puts the type under "schema"
        if self.type:
            return self.type
        if self.schema_ref is not None:
            return self.schema_ref.type
        return ""


class ResponseSpec(_Model):
    description: str = ""
    schema_ref: SchemaRef | None = Field(default=None, alias="schema")
    type: str = ""
    content: dict = {}

    @property
    def body_schema(self) -> SchemaRef | None:
        """The Swagger `schema`, or the JSON schema under OpenAPI `content`."""
        if self.schema_ref is not None:
            return self.schema_ref
        schema = _json_content_schema(self.content)
        if schema is None:
            return None
        return SchemaRef.model_validate(schema)


class Operation(_Model):
    """One HTTP method under one path template."""

    summary: str = ""
    description: str = ""
    parameters: list[ParameterSpec] = []
    responses: dict[str, ResponseSpec] = {}
    request_body: dict | None = Field(default=None, alias="requestBody")
    consumes: list[str] = []
    produces: list[str] = []

    @field_validator("parameters", mode="before")
    @classmethod
    def _named_only(cls, value):
        # unresolved $ref parameters carry no name
        if isinstance(value, list):
            return [p for p in value if isinstance(p, dict) and "name" in p]
        return value

    @field_validator("responses", mode="before")
    @classmethod
    def _stringify_status(cls, value):
        if isinstance(value, dict):
            return {str(status): resp for status, resp in value.items() if isinstance(resp, dict)}
        return value

    def body_parameters(self) -> list[ParameterSpec]:
        """Return Swagger body parameters plus one derived from an OpenAPI requestBody."""
        params = [p for p in self.parameters if p.location == "body"]
        schema = _json_body_schema(self.request_body)
        if schema is not None:
            params.append(
                ParameterSpec(
                    name="body",
                    location="body",
                    required=bool(self.request_body.get("required", False)),
                    schema_ref=SchemaRef.model_validate(schema),
                )
            )
        return params


class ServerSpec(_Model):
    url: str = ""
    description: str = ""


class Info(_Model):
    title: str = ""
    version: str = ""


class Components(_Model):
    schemas: dict[str, SchemaDefinition] = {}


class ApiDocument(_Model):
    """A Swagger 2.0 or OpenAPI 3.0 document."""

    # Swagger 2.0
    swagger: str = ""
    host: str = ""
    base_path: str = Field(default="", alias="basePath")
    definitions: dict[str, SchemaDefinition] = {}

    # OpenAPI 3.0
    openapi: str = ""
    servers: list[ServerSpec] = []
    components: Components | None = None

    info: Info | None = None
    paths: dict[str, dict[str, Operation]] = {}

    @field_validator("swagger", "openapi", mode="before")
    @classmethod
    def _version_as_text(cls, value):
        # YAML reads `swagger: 2.0` as a float
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("paths", mode="before")
    @classmethod
    def _keep_operations(cls, value):
        if not isinstance(value, dict):
            return value
        paths = {}
        for path, item in value.items():
            if not isinstance(item, dict):
                continue
            paths[path] = {
                method: op
                for method, op in item.items()
                if method.lower() in HTTP_METHODS and isinstance(op, dict)
            }
        return paths

    @property
    def is_openapi(self) -> bool:
        return bool(self.openapi)

    @property
    def schemas(self) -> dict[str, SchemaDefinition]:
        """Schema table of the active dialect, backed by the other one."""
        components = self.components.schemas if self.components else {}
        if self.is_openapi:
            return {**self.definitions, **components}
        return {**components, **self.definitions}


def extract_schema_name(ref: str, schema_type: str) -> str:
    """Return the last segment of a $ref, or the raw type when there is no ref."""
    if ref:
        return ref.split("/")[-1]
    return schema_type


def _json_content_schema(content: dict) -> dict | None:
    for content_type in ("application/json", "*/*"):
        media = content.get(content_type)
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    return None


def _json_body_schema(request_body: dict | None) -> dict | None:
    if not request_body:
        return None
    return _json_content_schema(request_body.get("content", {}))
