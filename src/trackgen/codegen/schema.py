"""Schema node IR: the recursive, target-independent view of an event schema.

``parse_schema`` walks a draft-07 document and produces SchemaNode trees.
Every node carries its two orthogonal modifiers: ``required`` (absence is
not allowed) and ``nullable`` (an explicit null is allowed). Both are
decided by the parent: ``required`` from the parent's ``required`` list,
``nullable`` from a ``"null"`` entry in the node's own ``type``.

Recursion is explicit and bounded by ``max_depth``; deeper documents are
rejected rather than trusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import SchemaDepthError, UnsupportedSchemaConstructError

MAX_SCHEMA_DEPTH = 32

# Keywords that change the meaning of a node in ways no target can express
UNSUPPORTED_KEYWORDS = ("$ref", "allOf", "not", "if", "then", "else", "dependencies")


class Kind(str, Enum):
    ANY = "any"
    ARRAY = "array"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    OBJECT = "object"
    STRING = "string"
    UNION = "union"


_PRIMITIVE_KINDS = {
    "boolean": Kind.BOOLEAN,
    "integer": Kind.INTEGER,
    "number": Kind.NUMBER,
    "string": Kind.STRING,
    "array": Kind.ARRAY,
    "object": Kind.OBJECT,
}


@dataclass(frozen=True)
class SchemaNode:
    """One typed position in an event schema.

    Attributes:
        name: Source name (property key, event name, or synthesized item name).
        kind: Shape of the value.
        required: False if the key may be absent from its parent object.
        nullable: True if an explicit null is allowed.
        description: Documentation copied into generated code.
        pattern: Regex constraint for strings.
        items: Element node for arrays.
        properties: Member nodes for objects, in schema order.
        members: Alternatives for unions.
        raw: The source sub-schema, embedded for runtime validation.
    """

    name: str
    kind: Kind
    required: bool = True
    nullable: bool = False
    description: str = ""
    pattern: Optional[str] = None
    items: Optional["SchemaNode"] = None
    properties: Tuple["SchemaNode", ...] = ()
    members: Tuple["SchemaNode", ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_empty_object(self) -> bool:
        return self.kind is Kind.OBJECT and not self.properties

    @property
    def has_required_properties(self) -> bool:
        return any(p.required for p in self.properties)


def _types_of(schema: Dict[str, Any], path: str) -> Tuple[List[str], bool]:
    """Split ``type`` into non-null type names and a nullable flag."""
    raw_type = schema.get("type")
    if raw_type is None:
        types: List[str] = []
    elif isinstance(raw_type, str):
        types = [raw_type]
    elif isinstance(raw_type, list) and all(isinstance(t, str) for t in raw_type):
        types = list(raw_type)
    else:
        raise UnsupportedSchemaConstructError(f"type={raw_type!r}", path)

    nullable = "null" in types
    concrete = []
    for t in types:
        if t == "null" or t in concrete:
            continue
        if t not in _PRIMITIVE_KINDS:
            raise UnsupportedSchemaConstructError(f"type={t}", path)
        concrete.append(t)
    return concrete, nullable


def parse_schema(
    schema: Any,
    name: str,
    required: bool = True,
    path: str = "",
    depth: int = 0,
    max_depth: int = MAX_SCHEMA_DEPTH,
) -> SchemaNode:
    """Parse one draft-07 sub-schema into a SchemaNode tree.

    Raises:
        SchemaDepthError: If nesting exceeds ``max_depth``.
        UnsupportedSchemaConstructError: If a node uses a construct that has
            no mapping (``$ref``, ``allOf``, unknown types, ...).
    """
    path = path or name
    if depth > max_depth:
        raise SchemaDepthError(path, max_depth)
    if schema is True or schema is None:
        schema = {}
    if not isinstance(schema, dict):
        raise UnsupportedSchemaConstructError(f"schema={schema!r}", path)

    for keyword in UNSUPPORTED_KEYWORDS:
        if keyword in schema:
            raise UnsupportedSchemaConstructError(keyword, path)

    types, nullable = _types_of(schema, path)
    description = schema.get("description") or ""
    common = dict(name=name, required=required, description=description, raw=schema)

    alternatives = schema.get("anyOf", schema.get("oneOf"))
    if alternatives is not None:
        if not isinstance(alternatives, list) or not alternatives:
            raise UnsupportedSchemaConstructError("anyOf", path)
        members = []
        for i, alternative in enumerate(alternatives):
            member = parse_schema(alternative, name, True, f"{path}|{i}", depth + 1, max_depth)
            nullable = nullable or member.nullable
            if not _is_null_only(member, alternative):
                members.append(member)
        if not members:
            return SchemaNode(kind=Kind.ANY, nullable=True, **common)
        if len(members) == 1:
            return _with_modifiers(members[0], required, nullable, schema, description)
        return SchemaNode(kind=Kind.UNION, nullable=nullable, members=tuple(members), **common)

    if not types:
        # No declared type: infer from structural keywords, else anything goes
        if "properties" in schema:
            types = ["object"]
        elif "items" in schema:
            types = ["array"]
        else:
            return SchemaNode(kind=Kind.ANY, nullable=nullable, **common)

    if len(types) > 1:
        members = tuple(
            parse_schema({**schema, "type": t}, name, True, f"{path}|{t}", depth + 1, max_depth)
            for t in types
        )
        return SchemaNode(kind=Kind.UNION, nullable=nullable, members=members, **common)

    kind = _PRIMITIVE_KINDS[types[0]]
    if kind is Kind.OBJECT:
        return SchemaNode(
            kind=kind,
            nullable=nullable,
            properties=_parse_properties(schema, path, depth, max_depth),
            **common,
        )
    if kind is Kind.ARRAY:
        return SchemaNode(
            kind=kind,
            nullable=nullable,
            items=_parse_items(schema, name, path, depth, max_depth),
            **common,
        )
    if kind is Kind.STRING:
        return SchemaNode(kind=kind, nullable=nullable, pattern=schema.get("pattern"), **common)
    return SchemaNode(kind=kind, nullable=nullable, **common)


def _with_modifiers(
    node: SchemaNode, required: bool, nullable: bool, raw: Dict[str, Any], description: str
) -> SchemaNode:
    return SchemaNode(
        name=node.name,
        kind=node.kind,
        required=required,
        nullable=nullable or node.nullable,
        description=description or node.description,
        pattern=node.pattern,
        items=node.items,
        properties=node.properties,
        members=node.members,
        raw=raw,
    )


def _parse_properties(
    schema: Dict[str, Any], path: str, depth: int, max_depth: int
) -> Tuple[SchemaNode, ...]:
    properties = schema.get("properties") or {}
    if not isinstance(properties, dict):
        raise UnsupportedSchemaConstructError("properties", path)
    required_keys = set(schema.get("required") or [])
    return tuple(
        parse_schema(
            sub_schema,
            key,
            key in required_keys,
            f"{path}.{key}",
            depth + 1,
            max_depth,
        )
        for key, sub_schema in properties.items()
    )


def _parse_items(
    schema: Dict[str, Any], name: str, path: str, depth: int, max_depth: int
) -> SchemaNode:
    items = schema.get("items")
    item_name = f"{name} item"
    if items is None:
        return SchemaNode(name=item_name, kind=Kind.ANY)
    if isinstance(items, list):
        # Tuple-style items describe a mixed array: each element is one of them
        if not items:
            return SchemaNode(name=item_name, kind=Kind.ANY)
        return parse_schema(
            {"anyOf": items}, item_name, True, f"{path}[]", depth + 1, max_depth
        )
    return parse_schema(items, item_name, True, f"{path}[]", depth + 1, max_depth)


def parse_event(properties_schema: Dict[str, Any], event_name: str) -> SchemaNode:
    """Parse an event's payload schema into its root object node.

    A payload schema without declared properties yields an empty object:
    the event accepts any properties.
    """
    root = parse_schema(properties_schema or {}, event_name)
    if root.kind is Kind.ANY:
        return SchemaNode(name=event_name, kind=Kind.OBJECT, raw=root.raw)
    if root.kind is not Kind.OBJECT:
        raise UnsupportedSchemaConstructError(f"payload type {root.kind.value}", event_name)
    return root


def _is_null_only(node: SchemaNode, schema: Any) -> bool:
    """True for an alternative such as ``{"type": "null"}`` or ``{"type": ["null"]}``."""
    return node.kind is Kind.ANY and node.nullable and isinstance(schema, dict) and "type" in schema
