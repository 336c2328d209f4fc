"""Python target: TypedDict payloads over analytics-python."""

from __future__ import annotations

import builtins
import keyword
import pprint
from typing import Any, Dict, List

from ...naming import Case
from ..schema import Kind
from .base import TypeMapper

_PRIMITIVES = {
    Kind.ANY: "Any",
    Kind.BOOLEAN: "bool",
    Kind.INTEGER: "int",
    Kind.NUMBER: "float",
    Kind.STRING: "str",
}

# Names the generated module defines or imports itself
_MODULE_NAMES = frozenset(
    {
        "Any",
        "Callable",
        "Dict",
        "Draft7Validator",
        "List",
        "NotRequired",
        "Optional",
        "SCHEMAS",
        "TRACKGEN_VERSION",
        "TypedDict",
        "Union",
        "ViolationError",
        "ViolationHandler",
        "AnalyticsInstanceMissingError",
        "default_violation_handler",
        "set_trackgen_options",
        "logger",
        "logging",
        "os",
        "sys",
    }
)


def _docstring(text: str) -> str:
    """Escape text for a triple-quoted docstring."""
    return text.replace("\\", "\\\\").replace('"', '\\"').strip()


def _oneline(text: str) -> str:
    return " ".join(text.split())


CLIENT_TEMPLATE = '''"""Typed analytics calls generated from a tracking plan.

Every function forwards its payload to the analytics client.
{% if validate %}
Payloads are validated against the tracking plan first; violations go to
the handler configured with ``set_trackgen_options``.
{% else %}
This is a production build: payloads are forwarded without validation.
{% endif %}
"""

import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Union

if sys.version_info >= (3, 11):
    from typing import NotRequired, TypedDict
else:
    from typing_extensions import NotRequired, TypedDict
{% if validate %}

from jsonschema import Draft7Validator
{% endif %}

TRACKGEN_VERSION = {{ version | pyrepr }}

logger = logging.getLogger("trackgen.client")

ViolationHandler = Callable[[Dict[str, Any], List[Any]], None]


class ViolationError(Exception):
    """Raised by the default violation handler while tests are running."""

    def __init__(self, event: str, violations: List[Any]) -> None:
        details = "; ".join(getattr(v, "message", str(v)) for v in violations)
        super().__init__(f"Invalid payload for {event!r}: {details}")
        self.event = event
        self.violations = violations


class AnalyticsInstanceMissingError(RuntimeError):
    """Raised when no analytics instance has been configured."""


def default_violation_handler(message: Dict[str, Any], violations: List[Any]) -> None:
{% if capabilities.handler_raises_in_tests %}
    if "PYTEST_CURRENT_TEST" in os.environ or os.environ.get("TRACKGEN_ENV") == "test":
        raise ViolationError(message["event"], violations)
{% endif %}
    logger.warning(
        "Analytics call %r does not match the tracking plan: %s",
        message["event"],
        "; ".join(getattr(v, "message", str(v)) for v in violations),
    )


_options: Dict[str, Any] = {"analytics": None, "on_violation": default_violation_handler}


def set_trackgen_options(
    analytics: Any = None, on_violation: Optional[ViolationHandler] = None
) -> None:
    """Configure the analytics instance and the violation handler."""
    _options["analytics"] = analytics
    _options["on_violation"] = on_violation or default_violation_handler


def _analytics() -> Any:
    client = _options["analytics"]
    if client is None:
{% if capabilities.default_instance %}
        import {{ analytics_module }} as client
{% else %}
        raise AnalyticsInstanceMissingError(
            "Call set_trackgen_options(analytics=...) before tracking events"
        )
{% endif %}
    return client


def _with_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(context or {})
    merged["trackgen"] = {"language": "python", "version": TRACKGEN_VERSION}
    return merged
{% if validate %}


SCHEMAS: Dict[str, Dict[str, Any]] = {
{% for unit in units %}
    {{ unit.event_name | pyrepr }}: {{ unit.validation | indent(4) }},
{% endfor %}
}

_VALIDATORS = {event: Draft7Validator(schema) for event, schema in SCHEMAS.items()}
{% endif %}


def _track(event: str, properties: Dict[str, Any], options: Dict[str, Any]) -> None:
    message = dict(options, event=event, properties=properties)
    try:
{% if validate %}
        violations = list(_VALIDATORS[event].iter_errors(properties))
        if violations:
            _options["on_violation"](message, violations)
{% else %}
        pass
{% endif %}
    finally:
        _analytics().track(
            user_id=options.get("user_id"),
            event=event,
            properties=properties,
            context=_with_context(options.get("context")),
            timestamp=options.get("timestamp"),
            anonymous_id=options.get("anonymous_id"),
            integrations=options.get("integrations"),
        )
{% for decl in declarations %}


{{ decl.name }} = TypedDict(
    {{ decl.name | pyrepr }},
    {
{% for field in decl.fields %}
{% if field.description %}
        # {{ field.description | oneline }}
{% endif %}
        {{ field.key | pyrepr }}: {{ field.annotation }},
{% endfor %}
    },
)
{% endfor %}
{% for unit in units %}


def {{ unit.function_name }}(
    properties: {% if unit.payload_optional %}Optional[{{ unit.payload_type }}] = None{% else %}{{ unit.payload_type }}{% endif %},
    *,
    user_id: Optional[str] = None,
    anonymous_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    integrations: Optional[Dict[str, Any]] = None,
    timestamp: Any = None,
) -> None:
    """{{ unit.description | docstring }}"""
    _track(
        {{ unit.event_name | pyrepr }},
{% if unit.payload_optional %}
        properties if properties is not None else {},
{% else %}
        properties,
{% endif %}
        {
            "user_id": user_id,
            "anonymous_id": anonymous_id,
            "context": context,
            "integrations": integrations,
            "timestamp": timestamp,
        },
    )
{% endfor %}
'''


class PythonMapper(TypeMapper):
    language = "python"
    type_case = Case.PASCAL
    function_case = Case.SNAKE
    member_case = Case.SNAKE
    reserved = (
        frozenset(keyword.kwlist)
        | frozenset(keyword.softkwlist)
        | frozenset(dir(builtins))
        | _MODULE_NAMES
    )
    comment_prefix = "#"
    templates = {"client.py.j2": CLIENT_TEMPLATE}

    def primitive(self, kind: Kind) -> str:
        return _PRIMITIVES[kind]

    def empty_object(self) -> str:
        return "Dict[str, Any]"

    def array(self, item: str) -> str:
        return f"List[{item}]"

    def union(self, members: List[str]) -> str:
        return f"Union[{', '.join(members)}]"

    def nullable(self, annotation: str) -> str:
        if annotation == "Any":
            return annotation
        return f"Optional[{annotation}]"

    def field_annotation(self, annotation: str, required: bool) -> str:
        return annotation if required else f"NotRequired[{annotation}]"

    def literal(self, value: Any) -> str:
        return pprint.pformat(value, indent=1, width=88, sort_dicts=True)

    def filters(self) -> Dict[str, Any]:
        return {
            "literal": self.literal,
            "pyrepr": repr,
            "docstring": _docstring,
            "oneline": _oneline,
        }

    def output_files(self) -> Dict[str, str]:
        return {"tracking.py": "client.py.j2"}
