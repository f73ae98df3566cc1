import logging
import re

from tree_sitter import Node

from api_doc_generator.core.ast import (
    SyntaxTree,
    is_exported,
    named,
    node_text,
    string_value,
    strip_qualifier,
    struct_declarations,
    type_name,
)
from api_doc_generator.core.conventions import GIN_CONVENTIONS, FrameworkConventions, Layer
from api_doc_generator.openapi import Schema

logger = logging.getLogger(__name__)

_INTEGER_TYPES = frozenset(
    {
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
    }
)
_NUMBER_TYPES = frozenset({"float32", "float64"})
_OBJECT_IDENTIFIERS = frozenset({"any", "error", "complex64", "complex128"})
_QUALIFIED_TYPES = {
    "time.Time": Schema(type="string", format="date-time"),
}

_TAG_PAIR = re.compile(r'([^\s:"]+):"((?:[^"\\]|\\.)*)"')


def parse_struct_tag(tag: str) -> dict[str, str]:
    """Split a Go struct tag (``json:"id" binding:"required"``) into key/value pairs."""
    return {key: value for key, value in _TAG_PAIR.findall(tag)}


def primitive_schema(name: str) -> Schema | None:
    """Schema for a predeclared Go type, or None for named types."""
    if name == "string":
        return Schema(type="string")
    if name in _INTEGER_TYPES:
        return Schema(type="integer")
    if name in _NUMBER_TYPES:
        return Schema(type="number")
    if name == "bool":
        return Schema(type="boolean")
    if name in _OBJECT_IDENTIFIERS:
        return Schema.generic_object()
    return None


def lower_camel_case(name: str) -> str:
    return name[:1].lower() + name[1:]


def _comment_text(comment: Node) -> str:
    text = node_text(comment).strip()
    if text.startswith("//"):
        return text[2:].strip()
    if text.startswith("/*") and text.endswith("*/"):
        return text[2:-2].strip()
    return text


def _is_trailing(comment: Node) -> bool:
    previous = comment.prev_named_sibling
    return previous is not None and previous.type != "comment" and previous.end_point[0] == comment.start_point[0]


def leading_comment(node: Node) -> str:
    """Contiguous comment lines directly above a node."""
    lines: list[str] = []
    expected_row = node.start_point[0] - 1
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type == "comment" and sibling.end_point[0] == expected_row:
        if _is_trailing(sibling):
            break
        lines.append(_comment_text(sibling))
        expected_row = sibling.start_point[0] - 1
        sibling = sibling.prev_named_sibling
    return " ".join(line for line in reversed(lines) if line)


def trailing_comment(node: Node) -> str:
    """Comment on the same line, after the node."""
    sibling = node.next_named_sibling
    if sibling is not None and sibling.type == "comment" and sibling.start_point[0] == node.end_point[0]:
        return _comment_text(sibling)
    return ""


def _merge_embedded(schema: Schema, embedded: Schema) -> None:
    """Add the embedded type's properties the owner lacks and every required name it misses."""
    if embedded.properties:
        if schema.properties is None:
            schema.properties = {}
        for prop_name, prop_schema in embedded.properties.items():
            if prop_name not in schema.properties:
                schema.properties[prop_name] = prop_schema.model_copy(deep=True)
    for required_name in embedded.required or []:
        if schema.required is None:
            schema.required = []
        if required_name not in schema.required:
            schema.required.append(required_name)


class StructAnalyzer:
    """Converts Go struct declarations into OpenAPI schemas.

    The same type name may be declared in several layers (a ``User`` in ``model`` and
    another in ``handler``); the declaration from the highest-priority layer wins,
    with ties going to the last one seen.
    """

    def __init__(self, conventions: FrameworkConventions = GIN_CONVENTIONS) -> None:
        self.conventions = conventions
        self._schemas: dict[str, Schema] = {}
        self._priority: dict[str, Layer] = {}
        self._embedded: dict[str, list[str]] = {}

    @property
    def schemas(self) -> dict[str, Schema]:
        return self._schemas

    @property
    def embedded_fields(self) -> dict[str, list[str]]:
        return self._embedded

    def get_schema(self, type_name: str) -> Schema | None:
        return self._schemas.get(type_name)

    def priority(self, type_name: str) -> Layer | None:
        return self._priority.get(type_name)

    def analyze_file(self, tree: SyntaxTree, layer: Layer = Layer.OTHER) -> None:
        for spec, name_node, struct_node in struct_declarations(tree):
            name = node_text(name_node)
            embedded: list[str] = []
            schema = self._struct_schema(struct_node, embedded)

            declaration = spec.parent if spec.parent is not None and spec.parent.type == "type_declaration" else spec
            description = leading_comment(spec) or leading_comment(declaration)
            if description:
                schema.description = description

            existing = self._priority.get(name)
            if existing is not None and layer < existing:
                logger.debug("Keeping %s from %s layer over %s in %s", name, existing.name, layer.name, tree.path)
                continue
            self._schemas[name] = schema
            self._priority[name] = layer
            if embedded:
                self._embedded[name] = embedded
            else:
                self._embedded.pop(name, None)

    def expand_embedded_fields(self) -> None:
        """Copy properties and required names of embedded types into their owners."""
        done: set[str] = set()

        def expand(owner: str, visiting: set[str]) -> None:
            if owner in done or owner in visiting:
                return
            visiting.add(owner)
            schema = self._schemas.get(owner)
            for embedded_name in self._embedded.get(owner, []):
                expand(embedded_name, visiting)
                embedded_schema = self._schemas.get(embedded_name)
                if schema is not None and embedded_schema is not None:
                    _merge_embedded(schema, embedded_schema)
            visiting.discard(owner)
            done.add(owner)

        for owner in list(self._embedded):
            expand(owner, set())

    def _inlined_copy(self, name: str, visiting: frozenset[str] = frozenset()) -> Schema | None:
        """Copy of a known schema with its embedded types already merged in."""
        known = self._schemas.get(name)
        if known is None:
            return None
        schema = known.model_copy(deep=True)
        visiting = visiting | {name}
        for embedded_name in self._embedded.get(name, []):
            if embedded_name in visiting:
                continue
            embedded_schema = self._inlined_copy(embedded_name, visiting)
            if embedded_schema is not None:
                _merge_embedded(schema, embedded_schema)
        return schema

    # ------------------------------------------------------------------
    # Struct bodies
    # ------------------------------------------------------------------

    def _struct_schema(self, struct_node: Node, embedded: list[str] | None) -> Schema:
        properties: dict[str, Schema] = {}
        required: list[str] = []

        field_lists = [child for child in struct_node.named_children if child.type == "field_declaration_list"]
        fields = named(field_lists[0]) if field_lists else []

        for field in fields:
            if field.type != "field_declaration":
                continue
            type_node = field.child_by_field_name("type")
            tag = parse_struct_tag(string_value(field.child_by_field_name("tag")) or "")
            json_name, omitempty, skip = self._json_options(tag)
            if skip:
                continue

            names = [node_text(n) for n in field.children_by_field_name("name")]
            if not names:
                embedded_name = strip_qualifier(type_name(type_node))
                if not json_name:
                    if embedded_name and embedded is not None:
                        embedded.append(embedded_name)
                    continue
                names = [embedded_name]

            description = trailing_comment(field) or leading_comment(field)
            for field_name in names:
                if not is_exported(field_name):
                    continue
                prop_name = json_name or lower_camel_case(field_name)
                prop = self._field_schema(type_node)
                if description:
                    prop.description = description
                self._apply_validation(tag, prop)
                self._apply_gorm_comment(tag, prop)
                if not omitempty and prop_name not in required:
                    required.append(prop_name)
                properties[prop_name] = prop

        return Schema(type="object", properties=properties or None, required=required or None)

    def _json_options(self, tag: dict[str, str]) -> tuple[str, bool, bool]:
        """Return (name, omitempty, skip) from the json tag."""
        value = tag.get(self.conventions.json_tag, "")
        if not value:
            return "", False, False
        name, *options = value.split(",")
        if name == "-" and not options:
            return "", False, True
        return name, "omitempty" in options, False

    def _field_schema(self, node: Node | None) -> Schema:
        if node is None:
            return Schema.generic_object()
        match node.type:
            case "type_identifier":
                return self._named_schema(node_text(node))
            case "qualified_type":
                package = node_text(node.child_by_field_name("package"))
                name = node_text(node.child_by_field_name("name"))
                qualified = _QUALIFIED_TYPES.get(f"{package}.{name}")
                if qualified is not None:
                    return qualified.model_copy(deep=True)
                known = self._inlined_copy(name)
                if known is not None:
                    return known
                return Schema.generic_object()
            case "pointer_type" | "parenthesized_type":
                inner = named(node)
                return self._field_schema(inner[0] if inner else None)
            case "slice_type" | "array_type" | "implicit_length_array_type":
                return Schema(type="array", items=self._field_schema(node.child_by_field_name("element")))
            case "map_type":
                return Schema(
                    type="object",
                    additional_properties=self._field_schema(node.child_by_field_name("value")),
                )
            case "generic_type":
                return self._field_schema(node.child_by_field_name("type"))
            case "struct_type":
                return self._struct_schema(node, None)
        return Schema.generic_object()

    def _named_schema(self, name: str) -> Schema:
        primitive = primitive_schema(name)
        if primitive is not None:
            return primitive
        known = self._inlined_copy(name)
        if known is not None:
            return known
        return Schema.reference(name)

    def _apply_validation(self, tag: dict[str, str], schema: Schema) -> None:
        # required/min/max are accepted but not encoded as schema keywords
        for key in self.conventions.validation_tags:
            for rule in tag.get(key, "").split(","):
                rule = rule.strip()
                if rule == "email":
                    schema.format = "email"
                elif rule == "url":
                    schema.format = "uri"
                elif rule.startswith("gte="):
                    if not schema.description:
                        schema.description = "Must be greater than or equal to " + rule.removeprefix("gte=")
                elif rule.startswith("gt="):
                    if not schema.description:
                        schema.description = "Must be greater than " + rule.removeprefix("gt=")

    def _apply_gorm_comment(self, tag: dict[str, str], schema: Schema) -> None:
        gorm = tag.get(self.conventions.gorm_tag, "")
        if "comment:" not in gorm or schema.description:
            return
        comment = gorm.split("comment:", 1)[1].split(";", 1)[0].strip("\"' ")
        if comment:
            schema.description = comment
