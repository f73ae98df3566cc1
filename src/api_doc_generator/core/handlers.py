import logging

from tree_sitter import Node

from api_doc_generator.core.ast import (
    SyntaxTree,
    assignment_pairs,
    call_arguments,
    function_declarations,
    is_generic_object,
    named,
    node_text,
    selector_call,
    string_value,
    type_name,
    unwrap_address,
    var_spec_parts,
    walk,
)
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.models import HandlerInfo, PendingServiceCall, ResolvedType, ServiceCall, TypeRef

logger = logging.getLogger(__name__)

_ASSIGNMENTS = frozenset({"short_var_declaration", "assignment_statement"})


def context_parameters(declaration: Node, conventions: FrameworkConventions = GIN_CONVENTIONS) -> list[str]:
    """Names of the parameters typed ``*gin.Context``; an empty list means not a handler.

    An unnamed context parameter yields ``"_"``.
    """
    names: list[str] = []
    for param in named(declaration.child_by_field_name("parameters")):
        if param.type != "parameter_declaration":
            continue
        param_type = param.child_by_field_name("type")
        if param_type is None or param_type.type != "pointer_type":
            continue
        inner = named(param_type)
        if not inner or inner[0].type != "qualified_type":
            continue
        package = node_text(inner[0].child_by_field_name("package"))
        type_ = node_text(inner[0].child_by_field_name("name"))
        if package == conventions.context_package and type_ == conventions.context_type:
            names.extend(node_text(n) for n in param.children_by_field_name("name"))
            names = names or ["_"]
    return names


def analyze_handlers(tree: SyntaxTree, conventions: FrameworkConventions = GIN_CONVENTIONS) -> dict[str, HandlerInfo]:
    handlers: dict[str, HandlerInfo] = {}
    for declaration, name, body in function_declarations(tree):
        context_names = context_parameters(declaration, conventions)
        if not context_names:
            continue
        handlers[name] = HandlerBodyAnalyzer(name, context_names, conventions).analyze(body)
        logger.debug("Handler %s in %s", name, tree.path)
    return handlers


class HandlerBodyAnalyzer:
    """Traces local bindings in one handler body to find what it binds and what it returns."""

    def __init__(
        self,
        name: str,
        context_names: list[str] | None = None,
        conventions: FrameworkConventions = GIN_CONVENTIONS,
    ) -> None:
        self.conventions = conventions
        self.info = HandlerInfo(name=name)
        self._context_names = set(context_names or [])
        self._locals: dict[str, TypeRef] = {}

    def analyze(self, body: Node) -> HandlerInfo:
        self._collect_bindings(body)
        self._collect_call_sites(body)
        return self.info

    def local_type(self, variable: str) -> TypeRef | None:
        return self._locals.get(variable)

    # ------------------------------------------------------------------
    # Pass 1: local bindings
    # ------------------------------------------------------------------

    def _collect_bindings(self, body: Node) -> None:
        for node in walk(body):
            if node.type in _ASSIGNMENTS:
                for lhs, rhs in assignment_pairs(node):
                    if lhs.type == "identifier" and node_text(lhs) != "_":
                        self._bind(node_text(lhs), rhs)
            elif node.type == "var_spec":
                names, declared, values = var_spec_parts(node)
                if declared is not None:
                    declared_name = type_name(declared)
                    if declared_name:
                        for variable in names:
                            self._locals[variable] = ResolvedType(declared_name)
                    continue
                for index, variable in enumerate(names):
                    if index < len(values):
                        self._bind(variable, values[index])

    def _bind(self, variable: str, value: Node) -> None:
        parts = selector_call(value)
        if parts is not None:
            receiver, function = parts
            if receiver.type == "identifier" and node_text(receiver) not in self._context_names:
                package = node_text(receiver)
                self.info.service_calls.append(ServiceCall(package=package, function=function, variable=variable))
                self._locals[variable] = PendingServiceCall(package=package, function=function, variable=variable)
                return
        literal = self._literal_type(value)
        if literal:
            self._locals[variable] = ResolvedType(literal)

    # ------------------------------------------------------------------
    # Pass 2: call sites
    # ------------------------------------------------------------------

    def _collect_call_sites(self, body: Node) -> None:
        for node in walk(body):
            parts = selector_call(node)
            if parts is None:
                continue
            _, method = parts
            args = call_arguments(node)
            if method in self.conventions.bind_methods:
                self._on_bind(args)
            elif method in self.conventions.response_methods:
                self._on_response(args)
            elif method in self.conventions.success_wrappers:
                self._on_success(args)
            elif method in self.conventions.query_methods:
                _append_literal(self.info.query_params, args)
            elif method in self.conventions.path_param_methods:
                _append_literal(self.info.path_params, args)

    def _on_bind(self, args: list[Node]) -> None:
        if self.info.request is not None or not args:
            return
        target = unwrap_address(args[0])
        if target.type == "identifier":
            local = self._locals.get(node_text(target))
            if isinstance(local, ResolvedType):
                self.info.request = local
                return
        literal = self._literal_type(args[0])
        if literal:
            self.info.request = ResolvedType(literal)

    def _on_response(self, args: list[Node]) -> None:
        if self.info.response is not None or len(args) < 2:
            return
        value = unwrap_address(args[1])
        if value.type == "identifier":
            local = self._locals.get(node_text(value))
            if local is not None:
                self.info.response = local
            return
        literal = self._literal_type(value)
        if literal:
            self.info.response = ResolvedType(literal)

    def _on_success(self, args: list[Node]) -> None:
        if len(args) < 2:
            return
        value = unwrap_address(args[1])
        if value.type == "identifier":
            variable = node_text(value)
            self.info.response = self._locals.get(variable) or ResolvedType(variable)
            return
        literal = self._literal_type(value)
        if literal:
            self.info.response = ResolvedType(literal)

    # ------------------------------------------------------------------
    # Literal types
    # ------------------------------------------------------------------

    def _literal_type(self, expr: Node) -> str:
        """Type named by ``T{...}``, ``&T{...}`` or ``new(T)``; empty for untyped maps and anything else."""
        target = unwrap_address(expr)
        if target.type == "composite_literal":
            literal_type = target.child_by_field_name("type")
            if literal_type is None or self._is_untyped(literal_type):
                return ""
            return type_name(literal_type)
        if expr.type == "call_expression":
            function = expr.child_by_field_name("function")
            if function is not None and function.type == "identifier" and node_text(function) == "new":
                args = call_arguments(expr)
                return type_name(args[0]) if args else ""
        return ""

    def _is_untyped(self, node: Node) -> bool:
        match node.type:
            case "qualified_type":
                package = node_text(node.child_by_field_name("package"))
                name = node_text(node.child_by_field_name("name"))
                return package == self.conventions.context_package and name in self.conventions.untyped_map_types
            case "map_type":
                value = node.child_by_field_name("value")
                return value is None or is_generic_object(type_name(node)) or self._is_untyped(value)
            case "slice_type" | "array_type" | "implicit_length_array_type":
                element = node.child_by_field_name("element")
                return element is None or self._is_untyped(element)
            case "struct_type" | "interface_type":
                return True
        return False


def _append_literal(target: list[str], args: list[Node]) -> None:
    value = string_value(args[0]) if args else None
    if value and value not in target:
        target.append(value)
