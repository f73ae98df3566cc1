from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class ResolvedType:
    name: str


@dataclass(frozen=True)
class PendingServiceCall:
    """A value produced by a service-layer call, resolved once the service layer has been analyzed."""

    package: str
    function: str
    variable: str


TypeRef = ResolvedType | PendingServiceCall


@dataclass(frozen=True)
class ServiceCall:
    package: str
    function: str
    variable: str


class HandlerInfo(BaseModel):
    name: str
    request: TypeRef | None = None
    response: TypeRef | None = None
    query_params: list[str] = Field(default_factory=list)
    path_params: list[str] = Field(default_factory=list)
    service_calls: list[ServiceCall] = Field(default_factory=list)

    @property
    def request_type(self) -> str:
        return self.request.name if isinstance(self.request, ResolvedType) else ""

    @property
    def response_type(self) -> str:
        return self.response.name if isinstance(self.response, ResolvedType) else ""


class ServiceFuncInfo(BaseModel):
    package: str
    name: str
    return_type: str = ""
    data_type: str = ""


class RouteInfo(BaseModel):
    method: str
    path: str
    handler: str
    has_body: bool = False
    group_prefix: str = ""
    path_params: list[str] = Field(default_factory=list)
    query_params: list[str] = Field(default_factory=list)
    request_type: str = ""
    response_type: str = ""
