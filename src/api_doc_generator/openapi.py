"""Pydantic models for the emitted OpenAPI 3.0 document."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

OPENAPI_VERSION = "3.0.0"
SCHEMA_REF_PREFIX = "#/components/schemas/"
JSON_MEDIA_TYPE = "application/json"


class Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    format: str | None = None
    description: str | None = None
    properties: dict[str, Schema] | None = None
    required: list[str] | None = None
    items: Schema | None = None
    ref: str | None = Field(default=None, alias="$ref")
    additional_properties: Schema | None = Field(default=None, alias="additionalProperties")

    @classmethod
    def reference(cls, type_name: str) -> Schema:
        return cls(ref=SCHEMA_REF_PREFIX + type_name)

    @classmethod
    def generic_object(cls) -> Schema:
        return cls(type="object")


Schema.model_rebuild()  # necessary for recursive types


class Info(BaseModel):
    title: str = "API"
    description: str | None = None
    version: str = "1.0.0"


class Parameter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(alias="in")
    description: str | None = None
    required: bool
    schema_: Schema = Field(alias="schema")


class MediaType(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_: Schema = Field(alias="schema")


class RequestBody(BaseModel):
    description: str | None = None
    required: bool
    content: dict[str, MediaType]


class Response(BaseModel):
    description: str
    content: dict[str, MediaType] | None = None


class Operation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    parameters: list[Parameter] | None = None
    request_body: RequestBody | None = Field(default=None, alias="requestBody")
    responses: dict[str, Response] = Field(default_factory=dict)


class Components(BaseModel):
    schemas: dict[str, Schema] = Field(default_factory=dict)


class Document(BaseModel):
    openapi: str = OPENAPI_VERSION
    info: Info = Field(default_factory=Info)
    paths: dict[str, dict[str, Operation]] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)

    def add_path(self, path: str, method: str, operation: Operation) -> None:
        self.paths.setdefault(path, {})[method.lower()] = operation

    def add_schema(self, name: str, schema: Schema) -> None:
        self.components.schemas[name] = schema

    def operation(self, path: str, method: str) -> Operation | None:
        return self.paths.get(path, {}).get(method.lower())

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
