import re

from api_doc_generator.core.ast import is_generic_object
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.core.services import ServiceAnalyzer
from api_doc_generator.core.structs import StructAnalyzer, primitive_schema
from api_doc_generator.models import HandlerInfo, PendingServiceCall, ResolvedType, RouteInfo, TypeRef
from api_doc_generator.openapi import (
    JSON_MEDIA_TYPE,
    Document,
    Info,
    MediaType,
    Operation,
    Parameter,
    RequestBody,
    Response,
    Schema,
)

ENVELOPE_SCHEMA_NAME = "ApiResponse"
DEFAULT_TAG = "Default"

_INTERNAL_CAPITAL = re.compile(r"(?<!^)(?=[A-Z])")
_VERSION_SEGMENT = re.compile(r"^v\d+$")

_ERROR_RESPONSES = {
    "400": "Bad request",
    "404": "Not found",
    "500": "Internal server error",
}


def summarize(handler: str) -> str:
    """``CreateUserProfile`` -> ``Create User Profile``."""
    return _INTERNAL_CAPITAL.sub(" ", handler).strip()


def tags_for(path: str, skip_prefixes: tuple[str, ...] = ("api",)) -> list[str]:
    for part in path.strip("/").split("/"):
        if not part or part.startswith("{") or part in skip_prefixes or _VERSION_SEGMENT.match(part):
            continue
        return [part[:1].upper() + part[1:]]
    return [DEFAULT_TAG]


def schema_for_type(type_name: str) -> Schema:
    """Payload schema for a resolved type string: a reference, an array of one, or a generic object."""
    if not type_name or type_name.startswith("map[") or is_generic_object(type_name):
        return Schema.generic_object()
    if type_name.startswith("[]"):
        return Schema(type="array", items=schema_for_type(type_name[2:]))
    return primitive_schema(type_name) or Schema.reference(type_name)


def response_envelope(data: Schema) -> Schema:
    return Schema(
        type="object",
        properties={
            "code": Schema(type="integer", description="Response status code"),
            "message": Schema(type="string", description="Response message"),
            "data": data,
        },
    )


def _json_content(schema: Schema) -> dict[str, MediaType]:
    return {JSON_MEDIA_TYPE: MediaType(schema=schema)}


class DocumentAssembler:
    """Links routes to handler and service information and renders them into a Document.

    Reads the analyzer outputs; never modifies them.
    """

    def __init__(
        self,
        structs: StructAnalyzer,
        handlers: dict[str, HandlerInfo],
        services: ServiceAnalyzer,
        conventions: FrameworkConventions = GIN_CONVENTIONS,
        info: Info | None = None,
    ) -> None:
        self.handlers = handlers
        self.services = services
        self.conventions = conventions
        self.document = Document(info=info or Info())
        for name, schema in structs.schemas.items():
            self.document.add_schema(name, schema.model_copy(deep=True))
        if ENVELOPE_SCHEMA_NAME not in self.document.components.schemas:
            self.document.add_schema(
                ENVELOPE_SCHEMA_NAME,
                response_envelope(Schema(type="object", description="Response payload")),
            )

    def add_route(self, route: RouteInfo) -> RouteInfo:
        linked = self.link(route)
        self.document.add_path(linked.path, linked.method, self.to_operation(linked))
        return linked

    def link(self, route: RouteInfo) -> RouteInfo:
        handler = self.handlers.get(route.handler)
        if handler is None:
            return route
        return route.model_copy(
            update={
                "request_type": self.resolve(handler.request),
                "response_type": self.resolve(handler.response),
                "query_params": list(handler.query_params),
            }
        )

    def resolve(self, ref: TypeRef | None) -> str:
        match ref:
            case ResolvedType(name=name):
                return name
            case PendingServiceCall(package=package, function=function, variable=variable):
                if variable not in self.conventions.response_variables:
                    return ""
                service = self.services.get(package, function)
                if service is None:
                    return ""
                if service.data_type and not is_generic_object(service.data_type):
                    return service.data_type
                if service.return_type and not is_generic_object(service.return_type):
                    return service.return_type
                return ""
            case _:
                return ""

    def to_operation(self, route: RouteInfo) -> Operation:
        parameters = [
            Parameter(name=name, location="path", required=True, schema=Schema(type="string"))
            for name in route.path_params
        ]
        parameters.extend(
            Parameter(name=name, location="query", required=False, schema=Schema(type="string"))
            for name in route.query_params
            if name not in route.path_params
        )

        request_body = None
        if route.has_body:
            request_body = RequestBody(required=True, content=_json_content(schema_for_type(route.request_type)))

        responses = {
            "200": Response(
                description="Successful response",
                content=_json_content(response_envelope(schema_for_type(route.response_type))),
            )
        }
        for code, description in _ERROR_RESPONSES.items():
            responses[code] = Response(description=description)

        return Operation(
            summary=summarize(route.handler),
            tags=tags_for(route.path, self.conventions.tag_skip_prefixes),
            parameters=parameters or None,
            request_body=request_body,
            responses=responses,
        )
