"""Swift target over analytics-ios.

Swift has no anonymous union types, so unions arrive here already degraded
to ``Any``. Nullability and optionality are distinct: an optional key is a
Swift optional (``T?``), an explicit null is ``TrackgenNullable<T>``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from ...naming import Case
from ..schema import Kind
from .base import TypeMapper

_PRIMITIVES = {
    Kind.ANY: "Any",
    Kind.BOOLEAN: "Bool",
    Kind.INTEGER: "Int",
    Kind.NUMBER: "Double",
    Kind.STRING: "String",
}

SWIFT_RESERVED = frozenset(
    """
    associatedtype class deinit enum extension fileprivate func import init inout
    internal let open operator private protocol public rethrows static struct
    subscript typealias var break case continue default defer do else fallthrough
    for guard if in repeat return switch where while as catch false is nil super
    self Self throw throws true try Any Type Protocol
    Bool Int Double String Array Dictionary Optional NSNull
    SEGAnalytics TrackgenAnalytics TrackgenNullable TrackgenSerializable
    TrackgenAnyNullable trackgenSerialize properties value
    """.split()
)


def _doc(text: str) -> str:
    return " ".join(text.split())


CLIENT_TEMPLATE = """import Foundation
import Analytics

let trackgenVersion = {{ version | json }}

/// A value that was sent as an explicit null.
public enum TrackgenNullable<T> {
    case value(T)
    case null
}

protocol TrackgenAnyNullable {
    var trackgenValue: Any { get }
}

extension TrackgenNullable: TrackgenAnyNullable {
    var trackgenValue: Any {
        switch self {
        case .value(let wrapped):
            return trackgenSerialize(wrapped)
        case .null:
            return NSNull()
        }
    }
}

public protocol TrackgenSerializable {
    func serialize() -> [String: Any]
}

func trackgenSerialize(_ value: Any) -> Any {
    if let serializable = value as? TrackgenSerializable {
        return serializable.serialize()
    }
    if let nullable = value as? TrackgenAnyNullable {
        return nullable.trackgenValue
    }
    if let array = value as? [Any] {
        return array.map { trackgenSerialize($0) }
    }
    return value
}
{% for decl in declarations %}

{% if decl.description %}
/// {{ decl.description | doc }}
{% endif %}
public struct {{ decl.name }}: TrackgenSerializable {
{% for field in decl.fields %}
{% if field.description %}
    /// {{ field.description | doc }}
{% endif %}
    public var {{ field.identifier }}: {{ field.annotation }}
{% endfor %}

    public init({% for field in decl.fields %}{{ field.identifier }}: {{ field.annotation }}{% if not field.required %} = nil{% endif %}{% if not loop.last %}, {% endif %}{% endfor %}) {
{% for field in decl.fields %}
        self.{{ field.identifier }} = {{ field.identifier }}
{% endfor %}
    }

    public func serialize() -> [String: Any] {
        var properties: [String: Any] = [:]
{% for field in decl.fields %}
{% if field.required %}
        properties[{{ field.key | json }}] = trackgenSerialize({{ field.identifier }})
{% else %}
        if let value = {{ field.identifier }} {
            properties[{{ field.key | json }}] = trackgenSerialize(value)
        }
{% endif %}
{% endfor %}
        return properties
    }
}
{% endfor %}

public class TrackgenAnalytics {
    /// The analytics instance calls are sent through. Defaults to the shared instance.
    public static var analytics: SEGAnalytics?

    static func track(_ event: String, properties: Any, options: [String: Any]?) {
        var options = options ?? [:]
        var context = options["context"] as? [String: Any] ?? [:]
        context["trackgen"] = ["language": "swift", "version": trackgenVersion]
        options["context"] = context
        let payload = trackgenSerialize(properties) as? [String: Any] ?? [:]
{% if capabilities.default_instance %}
        (analytics ?? SEGAnalytics.shared())?.track(event, properties: payload, options: options)
{% else %}
        guard let analytics = analytics else {
            fatalError("Set TrackgenAnalytics.analytics before tracking events")
        }
        analytics.track(event, properties: payload, options: options)
{% endif %}
    }
{% for unit in units %}

    /// {{ unit.description | doc }}
    public static func {{ unit.function_name }}(_ props: {{ unit.payload_type }}{% if unit.payload_optional %} = {{ unit.payload_default }}{% endif %}, options: [String: Any]? = nil) {
        track({{ unit.event_name | json }}, properties: props, options: options)
    }
{% endfor %}
}
"""


class SwiftMapper(TypeMapper):
    language = "swift"
    type_case = Case.PASCAL
    function_case = Case.CAMEL
    member_case = Case.CAMEL
    reserved = SWIFT_RESERVED
    comment_prefix = "//"
    templates = {"client.swift.j2": CLIENT_TEMPLATE}

    def primitive(self, kind: Kind) -> str:
        return _PRIMITIVES[kind]

    def empty_object(self) -> str:
        return "[String: Any]"

    def array(self, item: str) -> str:
        return f"[{item}]"

    def union(self, members: List[str]) -> str:
        # Only reached if a capability record claims union support
        return "Any"

    def nullable(self, annotation: str) -> str:
        return f"TrackgenNullable<{annotation}>"

    def field_annotation(self, annotation: str, required: bool) -> str:
        return annotation if required else f"{annotation}?"

    def literal(self, value: Any) -> str:
        return json.dumps(value, sort_keys=True, ensure_ascii=True)

    def filters(self) -> Dict[str, Any]:
        return {"literal": self.literal, "json": self.literal, "doc": _doc}

    def payload_default(self, payload_type: str) -> str:
        """Default argument for an event whose properties may be omitted."""
        if payload_type == self.empty_object():
            return "[:]"
        return f"{payload_type}()"

    def output_files(self) -> Dict[str, str]:
        return {"TrackgenAnalytics.swift": "client.swift.j2"}
