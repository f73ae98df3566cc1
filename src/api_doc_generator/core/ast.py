import re
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cache
from pathlib import Path, PurePath

from tree_sitter import Node, Query, QueryCursor, Tree
from tree_sitter_language_pack import get_language, get_parser

LANGUAGE = "go"

_STRING_LITERALS = frozenset({"interpreted_string_literal", "raw_string_literal"})
_GENERIC_INTERFACES = frozenset({"interface{}", "any"})
_ESCAPE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class GoParseError(Exception):
    """A source file could not be read or does not parse cleanly."""


@dataclass(frozen=True)
class SyntaxTree:
    path: Path
    relative_path: PurePath
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node


@cache
def _load_query(query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{LANGUAGE}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(LANGUAGE), query_text)


def parse_source(source_bytes: bytes, path: Path | None = None, relative_path: PurePath | None = None) -> SyntaxTree:
    file_path = path or Path("<memory>.go")
    tree = get_parser(LANGUAGE).parse(source_bytes)
    if tree.root_node.has_error:
        raise GoParseError(f"Syntax error in {file_path}")
    return SyntaxTree(path=file_path, relative_path=relative_path or PurePath(file_path.name), tree=tree)


def parse(path: str | Path, relative_path: PurePath | None = None) -> SyntaxTree:
    file_path = Path(path)
    try:
        source_bytes = file_path.read_bytes()
    except OSError as exc:
        raise GoParseError(f"Cannot read {file_path}: {exc}") from exc
    return parse_source(source_bytes, file_path, relative_path)


def query_matches(tree: SyntaxTree, query_type: str = "declarations") -> list[dict[str, Node]]:
    """Run a query file against a tree; one dict of capture name to node per match, in source order."""
    cursor = QueryCursor(_load_query(query_type))
    matches = [
        {name: nodes[0] for name, nodes in captures.items() if nodes} for _, captures in cursor.matches(tree.root)
    ]
    return sorted((m for m in matches if m), key=lambda m: min(node.start_byte for node in m.values()))


def struct_declarations(tree: SyntaxTree) -> list[tuple[Node, Node, Node]]:
    """Return (type_spec, name, struct_type) for every struct declaration."""
    return [(m["struct"], m["struct.name"], m["struct.body"]) for m in query_matches(tree) if "struct" in m]


def function_declarations(tree: SyntaxTree) -> list[tuple[Node, str, Node]]:
    """Return (declaration, name, body) for every function and method with a body."""
    return [(m["func"], node_text(m["func.name"]), m["func.body"]) for m in query_matches(tree) if "func" in m]


def package_name(tree: SyntaxTree) -> str:
    for child in tree.root.named_children:
        if child.type == "package_clause":
            for ident in child.named_children:
                if ident.type == "package_identifier":
                    return node_text(ident)
    return ""


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal, children in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def named(node: Node | None) -> list[Node]:
    """Named children without comments, e.g. the items of an expression_list."""
    if node is None:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def string_value(node: Node | None) -> str | None:
    """Return the contents of a string literal node, or None for anything else."""
    if node is None or node.type not in _STRING_LITERALS:
        return None
    text = node_text(node)[1:-1]
    if node.type == "interpreted_string_literal":
        return _ESCAPE.sub(lambda match: _ESCAPES.get(match.group(1), match.group(1)), text)
    return text


def call_arguments(call: Node) -> list[Node]:
    return named(call.child_by_field_name("arguments"))


def selector_call(call: Node) -> tuple[Node, str] | None:
    """For ``receiver.Method(...)`` return (receiver, "Method")."""
    if call.type != "call_expression":
        return None
    function = call.child_by_field_name("function")
    if function is None or function.type != "selector_expression":
        return None
    operand = function.child_by_field_name("operand")
    field = function.child_by_field_name("field")
    if operand is None or field is None:
        return None
    return operand, node_text(field)


def assignment_pairs(node: Node) -> list[tuple[Node, Node]]:
    """Pair left and right sides of ``a, b := x, y`` / ``a = x``; extra left names are dropped."""
    left = named(node.child_by_field_name("left"))
    right = named(node.child_by_field_name("right"))
    return [(lhs, right[i]) for i, lhs in enumerate(left) if i < len(right)]


def var_spec_parts(node: Node) -> tuple[list[str], Node | None, list[Node]]:
    """For a ``var_spec`` return (names, declared type, values)."""
    names = [node_text(n) for n in node.children_by_field_name("name")]
    return names, node.child_by_field_name("type"), named(node.child_by_field_name("value"))


def unwrap_address(node: Node) -> Node:
    """``&x`` -> ``x``; any other node is returned unchanged."""
    if node.type != "unary_expression":
        return node
    operator = node.child_by_field_name("operator")
    operand = node.child_by_field_name("operand")
    if operator is None or operand is None or node_text(operator) != "&":
        return node
    return operand


def is_exported(name: str) -> bool:
    return bool(name) and "A" <= name[0] <= "Z"


def strip_qualifier(type_name: str) -> str:
    return type_name.rsplit(".", 1)[-1]


def type_name(node: Node | None) -> str:
    """Compose a type string from a type (or type-like expression) node, dropping package qualifiers.

    ``*model.User`` -> ``User``, ``[]model.User`` -> ``[]User``, ``map[string]any`` -> ``map[string]any``.
    """
    if node is None:
        return ""
    match node.type:
        case "type_identifier" | "identifier" | "field_identifier" | "package_identifier":
            return node_text(node)
        case "qualified_type":
            return node_text(node.child_by_field_name("name"))
        case "selector_expression":
            return node_text(node.child_by_field_name("field"))
        case "pointer_type":
            inner = named(node)
            return type_name(inner[0]) if inner else ""
        case "parenthesized_type":
            inner = named(node)
            return type_name(inner[0]) if inner else ""
        case "slice_type" | "array_type" | "implicit_length_array_type":
            element = type_name(node.child_by_field_name("element"))
            return f"[]{element}" if element else ""
        case "map_type":
            key = type_name(node.child_by_field_name("key"))
            value = type_name(node.child_by_field_name("value"))
            return f"map[{key}]{value}" if key and value else ""
        case "interface_type":
            return "interface{}"
        case "generic_type":
            return type_name(node.child_by_field_name("type"))
    return ""


def is_generic_object(type_string: str) -> bool:
    """``interface{}``, ``any`` and maps of them carry no concrete schema."""
    if type_string in _GENERIC_INTERFACES:
        return True
    if type_string.startswith("map["):
        value = type_string.split("]", 1)[-1]
        return value in _GENERIC_INTERFACES
    return False
