"""Type mapper base: SchemaNode -> target type fragment + validation fragment.

Subclasses supply the language surface (primitive names, how to spell
arrays, unions, nullability and optional keys, schema literals, templates).
The walk itself lives here so every target handles nesting, modifiers and
capability degradation the same way.

Nested objects become named declarations. They are appended in post-order
(children before parents) so languages that evaluate type references
eagerly see every name before it is used.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from jinja2 import DictLoader, Environment, StrictUndefined

from ...exceptions import UnsupportedSchemaConstructError
from ...naming import Case, NameScope
from ..schema import Kind, SchemaNode
from ..targets import Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedType:
    """Result of mapping one node.

    Attributes:
        annotation: Type fragment for the value, nullability included.
        validation: Schema literal in target syntax for runtime validation,
            or None when the target does not validate.
    """

    annotation: str
    validation: Optional[str]


@dataclass(frozen=True)
class FieldSpec:
    """One member of a generated object type."""

    key: str
    identifier: str
    annotation: str
    base_annotation: str
    required: bool
    nullable: bool
    description: str


@dataclass(frozen=True)
class Declaration:
    """A named object type emitted at module level."""

    name: str
    description: str
    fields: tuple[FieldSpec, ...]

    @property
    def all_optional(self) -> bool:
        return not any(f.required for f in self.fields)


class TypeMapper(ABC):
    """Maps schema nodes to one language's types.

    One instance is used per generation run; it accumulates declarations
    and owns the type namespace.
    """

    language: str = ""
    type_case: Case = Case.PASCAL
    function_case: Case = Case.CAMEL
    member_case: Case = Case.CAMEL
    reserved: FrozenSet[str] = frozenset()
    comment_prefix: str = "//"
    templates: Mapping[str, str] = {}

    def __init__(self, target: Target) -> None:
        self.target = target
        self.capabilities = target.capabilities
        self.types = NameScope(self.type_case, self.reserved)
        self.declarations: List[Declaration] = []
        self.env = Environment(
            loader=DictLoader(dict(self.templates)),
            autoescape=False,  # generating code, not HTML
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters.update(self.filters())

    # ── language surface ──────────────────────────────────────────────

    @abstractmethod
    def primitive(self, kind: Kind) -> str:
        """Type for any/boolean/integer/number/string."""

    @abstractmethod
    def empty_object(self) -> str:
        """Type for an object that declares no properties (open map)."""

    @abstractmethod
    def array(self, item: str) -> str: ...

    @abstractmethod
    def union(self, members: List[str]) -> str: ...

    @abstractmethod
    def nullable(self, annotation: str) -> str: ...

    @abstractmethod
    def field_annotation(self, annotation: str, required: bool) -> str:
        """Wrap a value type for a key that may be absent."""

    @abstractmethod
    def literal(self, value: Any) -> str:
        """Render a JSON value as a literal in the target language."""

    @abstractmethod
    def output_files(self) -> Dict[str, str]:
        """Output path -> template name."""

    def filters(self) -> Dict[str, Any]:
        return {"literal": self.literal}

    def payload_default(self, payload_type: str) -> str:
        """Default argument for an event whose properties may be omitted."""
        return ""

    def member_scope(self) -> NameScope:
        return self.types.child(self.member_case)

    # ── the walk ──────────────────────────────────────────────────────

    def map(self, node: SchemaNode, type_name: Optional[str] = None) -> MappedType:
        """Map a node to its type fragment and validation fragment."""
        annotation = self.base_type(node, type_name)
        if node.nullable:
            annotation = self.nullable(annotation)
        return MappedType(annotation=annotation, validation=self.validation(node.raw))

    def validation(self, schema: Dict[str, Any]) -> Optional[str]:
        if not self.capabilities.runtime_validation:
            return None
        return self.literal(schema)

    def base_type(self, node: SchemaNode, type_name: Optional[str] = None) -> str:
        """Type of the node's value, ignoring the nullable modifier."""
        kind = node.kind
        if kind in (Kind.ANY, Kind.BOOLEAN, Kind.INTEGER, Kind.NUMBER, Kind.STRING):
            return self.primitive(kind)
        if kind is Kind.ARRAY:
            item = node.items or SchemaNode(name=f"{node.name} item", kind=Kind.ANY)
            inner = self.base_type(item)
            if item.nullable:
                inner = self.nullable(inner)
            return self.array(inner)
        if kind is Kind.OBJECT:
            if node.is_empty_object:
                return self.empty_object()
            return self.declare(node, type_name)
        if kind is Kind.UNION:
            if not node.members:
                raise UnsupportedSchemaConstructError("empty union", node.name, self.target.id)
            if not self.capabilities.unions:
                logger.debug("Degrading union at %s to any for %s", node.name, self.target.id)
                return self.primitive(Kind.ANY)
            members: List[str] = []
            for member in node.members:
                annotation = self.base_type(member)
                if annotation not in members:
                    members.append(annotation)
            return members[0] if len(members) == 1 else self.union(members)
        raise UnsupportedSchemaConstructError(str(kind), node.name, self.target.id)

    def declare(self, node: SchemaNode, type_name: Optional[str] = None) -> str:
        """Emit a named declaration for an object node and return its name."""
        name = type_name or self.types.register(node.name)
        scope = self.member_scope()
        fields = tuple(self.field(prop, scope) for prop in node.properties)
        self.declarations.append(Declaration(name=name, description=node.description, fields=fields))
        return name

    def field(self, node: SchemaNode, scope: NameScope) -> FieldSpec:
        value = self.base_type(node)
        if node.nullable:
            value = self.nullable(value)
        return FieldSpec(
            key=node.name,
            identifier=scope.register(node.name),
            annotation=self.field_annotation(value, node.required),
            base_annotation=value,
            required=node.required,
            nullable=node.nullable,
            description=node.description,
        )

    # ── rendering ─────────────────────────────────────────────────────

    def comment(self, text: str) -> str:
        return f"{self.comment_prefix} {text}"

    def render(self, context: Dict[str, Any]) -> Dict[str, str]:
        """Render every output file of this target. Returns path -> body."""
        rendered = {}
        for path, template_name in self.output_files().items():
            template = self.env.get_template(template_name)
            rendered[path] = template.render(
                declarations=self.declarations, capabilities=self.capabilities, **context
            )
        return rendered
