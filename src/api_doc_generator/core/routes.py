import logging
import re

from tree_sitter import Node

from api_doc_generator.core.ast import (
    SyntaxTree,
    assignment_pairs,
    call_arguments,
    function_declarations,
    named,
    node_text,
    selector_call,
    string_value,
    var_spec_parts,
    walk,
)
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.models import RouteInfo

logger = logging.getLogger(__name__)

_FRAMEWORK_PARAM = re.compile(r"(^|/)[:*]([A-Za-z0-9_]+)")
_DOCUMENT_PARAM = re.compile(r"\{([A-Za-z0-9_]+)\}")

DEFAULT_HANDLER_NAME = "handler"


def convert_path(framework_path: str) -> str:
    """``/users/:id/*file`` -> ``/users/{id}/{file}``."""
    return _FRAMEWORK_PARAM.sub(r"\1{\2}", framework_path)


def path_parameters(path: str) -> list[str]:
    return _DOCUMENT_PARAM.findall(path)


def join_paths(prefix: str, path: str) -> str:
    if not prefix:
        return path
    if not path:
        return prefix
    return prefix.rstrip("/") + "/" + path.lstrip("/")


def handler_name(node: Node) -> str:
    if node.type == "identifier":
        return node_text(node)
    if node.type == "selector_expression":
        return node_text(node.child_by_field_name("field"))
    return DEFAULT_HANDLER_NAME


class RouteScope:
    """Group prefixes bound to router variables inside one function body."""

    def __init__(self, conventions: FrameworkConventions = GIN_CONVENTIONS) -> None:
        self.conventions = conventions
        self.prefixes: dict[str, str] = {}

    def bind(self, variable: str, value: Node) -> None:
        group = self._group_call(value)
        if group is not None:
            receiver, literal = group
            self.prefixes[variable] = join_paths(self.prefix_of(receiver), literal)

    def prefix_of(self, receiver: Node) -> str:
        if receiver.type == "identifier":
            return self.prefixes.get(node_text(receiver), "")
        if receiver.type == "parenthesized_expression":
            inner = named(receiver)
            return self.prefix_of(inner[0]) if inner else ""
        group = self._group_call(receiver)
        if group is not None:
            parent, literal = group
            return join_paths(self.prefix_of(parent), literal)
        return ""

    def route(self, call: Node) -> RouteInfo | None:
        parts = selector_call(call)
        if parts is None:
            return None
        receiver, method = parts
        if method not in self.conventions.http_methods:
            return None
        args = call_arguments(call)
        if len(args) < 2:
            return None
        literal = string_value(args[0])
        if literal is None:
            return None

        prefix = self.prefix_of(receiver)
        full_path = join_paths(prefix, literal) or "/"
        if not full_path.startswith("/"):
            full_path = "/" + full_path
        path = convert_path(full_path)
        return RouteInfo(
            method=method,
            path=path,
            handler=handler_name(args[-1]),
            has_body=method in self.conventions.body_methods,
            group_prefix=prefix,
            path_params=path_parameters(path),
        )

    def _group_call(self, node: Node) -> tuple[Node, str] | None:
        parts = selector_call(node)
        if parts is None or parts[1] != self.conventions.group_method:
            return None
        args = call_arguments(node)
        literal = string_value(args[0]) if args else None
        if literal is None:
            return None
        return parts[0], literal


def extract_routes(tree: SyntaxTree, conventions: FrameworkConventions = GIN_CONVENTIONS) -> list[RouteInfo]:
    """Find route registrations in every function of a file, in source order."""
    routes: list[RouteInfo] = []
    for _, _, body in function_declarations(tree):
        scope = RouteScope(conventions)
        for node in walk(body):
            if node.type in ("short_var_declaration", "assignment_statement"):
                for lhs, rhs in assignment_pairs(node):
                    if lhs.type == "identifier":
                        scope.bind(node_text(lhs), rhs)
            elif node.type == "var_spec":
                names, _, values = var_spec_parts(node)
                for variable, value in zip(names, values, strict=False):
                    scope.bind(variable, value)
            elif node.type == "call_expression":
                route = scope.route(node)
                if route is not None:
                    routes.append(route)
    if routes:
        logger.debug("Found %d route(s) in %s", len(routes), tree.path)
    return routes
