"""Structural naming conventions that drive the analyzers.

Everything the analyzers match by name lives in ``FrameworkConventions`` so the
same engine can be pointed at a differently named framework by swapping the table.
"""

from enum import IntEnum
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict


class Layer(IntEnum):
    """Source layer of a file; the value is its schema overwrite priority."""

    OTHER = 0
    HANDLER = 10
    SERVICE = 50
    MODEL = 100


class FrameworkConventions(BaseModel):
    model_config = ConfigDict(frozen=True)

    # *gin.Context
    context_package: str = "gin"
    context_type: str = "Context"

    bind_methods: frozenset[str] = frozenset({"ShouldBindJSON", "BindJSON", "ShouldBind", "Bind", "ShouldBindQuery"})
    response_methods: frozenset[str] = frozenset({"JSON"})
    success_wrappers: frozenset[str] = frozenset({"SetResponseOK", "Success", "OK"})
    query_methods: frozenset[str] = frozenset({"Query", "DefaultQuery"})
    path_param_methods: frozenset[str] = frozenset({"Param"})

    group_method: str = "Group"
    http_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
    body_methods: frozenset[str] = frozenset({"POST", "PUT", "PATCH"})

    json_tag: str = "json"
    validation_tags: tuple[str, ...] = ("binding",)
    gorm_tag: str = "gorm"

    # Map aliases qualified by the framework package, e.g. gin.H
    untyped_map_types: frozenset[str] = frozenset({"H"})
    error_types: frozenset[str] = frozenset({"error"})
    allocation_builtins: frozenset[str] = frozenset({"make", "new"})

    service_marker: str = "service"
    data_variable: str = "data"
    response_variables: frozenset[str] = frozenset({"data"})

    model_patterns: tuple[str, ...] = ("model", "dao", "entity")
    service_patterns: tuple[str, ...] = ("service",)
    handler_patterns: tuple[str, ...] = ("handler", "controller", "api", "router")

    tag_skip_prefixes: tuple[str, ...] = ("api",)
    excluded_segments: frozenset[str] = frozenset({"vendor", "tools", ".git", "node_modules"})
    source_suffix: str = ".go"
    test_suffix: str = "_test.go"

    def layer_for(self, relative_path: PurePath) -> Layer:
        """Classify a file by the directory it lives in."""
        package = relative_path.parent.name.lower()
        if not package:
            return Layer.OTHER
        if any(pattern in package for pattern in self.model_patterns):
            return Layer.MODEL
        if any(pattern in package for pattern in self.service_patterns):
            return Layer.SERVICE
        if any(pattern in package for pattern in self.handler_patterns):
            return Layer.HANDLER
        return Layer.OTHER

    def service_package_for(self, relative_path: PurePath) -> str | None:
        """Return the service package a file belongs to, or None outside the service layer.

        ``service/user/user.go`` belongs to ``user``; ``service/user.go`` to ``service``.
        """
        directories = relative_path.parts[:-1]
        for index, part in enumerate(directories):
            if part == self.service_marker:
                if index + 1 < len(directories):
                    return directories[index + 1]
                return part
        return None


GIN_CONVENTIONS = FrameworkConventions()
