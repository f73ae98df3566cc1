import logging

from tree_sitter import Node

from api_doc_generator.core.ast import (
    SyntaxTree,
    assignment_pairs,
    call_arguments,
    function_declarations,
    is_exported,
    is_generic_object,
    named,
    node_text,
    type_name,
    unwrap_address,
    var_spec_parts,
    walk,
)
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions
from api_doc_generator.models import ServiceFuncInfo

logger = logging.getLogger(__name__)


class ServiceAnalyzer:
    """Records what exported service-layer functions return, keyed by (package, function)."""

    def __init__(self, conventions: FrameworkConventions = GIN_CONVENTIONS) -> None:
        self.conventions = conventions
        self._functions: dict[tuple[str, str], ServiceFuncInfo] = {}

    @property
    def functions(self) -> dict[tuple[str, str], ServiceFuncInfo]:
        return self._functions

    def get(self, package: str, function: str) -> ServiceFuncInfo | None:
        return self._functions.get((package, function))

    def analyze_file(self, tree: SyntaxTree, package: str) -> None:
        for declaration, name, body in function_declarations(tree):
            if not is_exported(name):
                continue
            self._functions[(package, name)] = ServiceFuncInfo(
                package=package,
                name=name,
                return_type=self._return_type(declaration),
                data_type=self._infer_data_type(body),
            )
            logger.debug("Service function %s.%s in %s", package, name, tree.path)

    def _return_type(self, declaration: Node) -> str:
        result = declaration.child_by_field_name("result")
        if result is None:
            return ""
        if result.type == "parameter_list":
            result_types = [param.child_by_field_name("type") for param in named(result)]
        else:
            result_types = [result]
        for result_type in result_types:
            name = type_name(result_type)
            if name and name not in self.conventions.error_types:
                return name
        return ""

    def _infer_data_type(self, body: Node) -> str:
        """First concrete type assigned to the ``data`` variable; a generic object only as a fallback."""
        variable = self.conventions.data_variable
        concrete = ""
        fallback = ""
        for node in walk(body):
            candidates: list[str] = []
            if node.type in ("short_var_declaration", "assignment_statement"):
                for lhs, rhs in assignment_pairs(node):
                    if lhs.type == "identifier" and node_text(lhs) == variable:
                        candidates.append(self._assigned_type(rhs))
            elif node.type == "var_spec":
                names, declared, values = var_spec_parts(node)
                for index, name in enumerate(names):
                    if name != variable:
                        continue
                    if declared is not None:
                        candidates.append(type_name(declared))
                    elif index < len(values):
                        candidates.append(self._assigned_type(values[index]))
            for candidate in candidates:
                if not candidate:
                    continue
                if is_generic_object(candidate):
                    fallback = fallback or candidate
                elif not concrete:
                    concrete = candidate
        return concrete or fallback

    def _assigned_type(self, expr: Node) -> str:
        target = unwrap_address(expr)
        if target.type == "composite_literal":
            return type_name(target.child_by_field_name("type"))
        if expr.type == "call_expression":
            function = expr.child_by_field_name("function")
            if function is not None and function.type == "identifier":
                if node_text(function) in self.conventions.allocation_builtins:
                    args = call_arguments(expr)
                    return type_name(args[0]) if args else ""
        return ""
