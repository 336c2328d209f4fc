"""TypeScript and JavaScript targets over analytics.js / analytics-node.

Both languages share one type vocabulary. TypeScript emits it as
interfaces; JavaScript emits the same types as JSDoc typedefs so editors
still type-check calls.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from ...naming import Case
from ..schema import Kind
from .base import TypeMapper

_PRIMITIVES = {
    Kind.ANY: "any",
    Kind.BOOLEAN: "boolean",
    Kind.INTEGER: "number",
    Kind.NUMBER: "number",
    Kind.STRING: "string",
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

TS_RESERVED = frozenset(
    """
    any as async await boolean break case catch class const constructor continue
    debugger declare default delete do else enum export extends false finally for
    from function get if implements import in instanceof interface is keyof let
    module namespace never new null number object of package private protected
    public readonly require return set static string super switch symbol this
    throw true try type typeof undefined unique unknown var void while with yield
    Array Boolean Date Error Function Map Number Object Promise Record RegExp Set
    String Symbol JSON console process
    Ajv Callback SegmentOptions TrackMessage TrackgenOptions ViolationHandler
    ajv analytics defaultViolationHandler getAnalytics onViolation
    setTrackgenOptions validateAgainstSchema withTrackgenContext window
    """.split()
)


def _json_key(key: str) -> str:
    return json.dumps(key, ensure_ascii=True)


def _jsdoc(text: str) -> str:
    return " ".join(text.replace("*/", "*\\/").split())


def _jsdoc_key(key: str) -> str:
    return key if _IDENTIFIER_RE.match(key) else _json_key(key)


CLIENT_TEMPLATE = """/* eslint-disable */
{% if typed %}
/* tslint:disable */
{% endif %}
{% if validate %}
import Ajv from 'ajv'
{% endif %}
{% if typed %}

export interface SegmentOptions {
  integrations?: Record<string, any>
  context?: Record<string, any>
  anonymousId?: string
  timestamp?: Date | string
}

export interface TrackMessage {
  userId?: string | number
  anonymousId?: string | number
  context?: Record<string, any>
  integrations?: Record<string, any>
  timestamp?: Date
}

export type Callback = (err?: Error) => void

export type ViolationHandler = (message: Record<string, any>, violations: any[]) => void

export interface TrackgenOptions {
  analytics?: any
  onViolation?: ViolationHandler
}
{% else %}

/**
 * @typedef {(message: Record<string, any>, violations: any[]) => void} ViolationHandler
 */
{% endif %}

const TRACKGEN_VERSION = {{ version | json }}

/**
 * Logs violations.{% if capabilities.handler_raises_in_tests %} Throws instead while a test runner is detected.{% endif %}

{% if not typed %}
 *
 * @type {ViolationHandler}
{% endif %}
 */
export const defaultViolationHandler{% if typed %}: ViolationHandler{% endif %} = (message, violations) => {
  const details = JSON.stringify(violations, null, 2)
{% if capabilities.handler_raises_in_tests %}
  if (
    typeof process !== 'undefined' &&
    (process.env.JEST_WORKER_ID !== undefined || process.env.NODE_ENV === 'test')
  ) {
    throw new Error(`Invalid payload for "${message.event}": ${details}`)
  }
{% endif %}
  console.warn(`[trackgen] Invalid payload for "${message.event}": ${details}`)
}

let analytics{% if typed %}: any{% endif %} = undefined
let onViolation{% if typed %}: ViolationHandler{% endif %} = defaultViolationHandler

/**
 * Configures the analytics instance and the violation handler.
{% if not typed %}
 *
 * @param {{ '{{' }} analytics?: any, onViolation?: ViolationHandler {{ '}}' }} options
{% endif %}
 */
export function setTrackgenOptions(options{% if typed %}: TrackgenOptions{% endif %}) {
  analytics = options.analytics
  onViolation = options.onViolation || defaultViolationHandler
}

function getAnalytics(){% if typed %}: any{% endif %} {
  if (analytics) {
    return analytics
  }
{% if capabilities.default_instance %}
  return {{ analytics_module }}
{% else %}
  throw new Error('Call setTrackgenOptions({ analytics }) before tracking events')
{% endif %}
}

function withTrackgenContext(context{% if typed %}?: Record<string, any>{% endif %}) {
  return {
    ...(context || {}),
    trackgen: { language: {{ language | json }}, version: TRACKGEN_VERSION },
  }
}
{% if validate %}

const ajv = new Ajv({ allErrors: true, verbose: true })

function validateAgainstSchema(message{% if typed %}: Record<string, any>{% endif %}, schema{% if typed %}: object{% endif %}) {
  if (!ajv.validate(schema, message.properties)) {
    onViolation(message, ajv.errors || [])
  }
}
{% endif %}
{% for decl in declarations %}

{% if typed %}
{% if decl.description %}
/**
 * {{ decl.description | jsdoc }}
 */
{% endif %}
export interface {{ decl.name }} {
{% for field in decl.fields %}
{% if field.description %}
  /**
   * {{ field.description | jsdoc }}
   */
{% endif %}
  {{ field.key | json }}{% if not field.required %}?{% endif %}: {{ field.annotation }}
{% endfor %}
}
{% else %}
/**
{% if decl.description %}
 * {{ decl.description | jsdoc }}
 *
{% endif %}
 * @typedef {Object} {{ decl.name }}
{% for field in decl.fields %}
 * @property {{ '{' }}{{ field.annotation }}{{ '}' }} {% if field.required %}{{ field.key | jsdoc_key }}{% else %}[{{ field.key | jsdoc_key }}]{% endif %}{% if field.description %} - {{ field.description | jsdoc }}{% endif %}

{% endfor %}
 */
{% endif %}
{% endfor %}
{% for unit in units %}

/**
 * {{ unit.description | jsdoc }}
{% if not typed %}
 *
{% if call_style == "positional" %}
 * @param {{ '{' }}{{ unit.payload_type }}{{ '}' }} {% if unit.payload_optional %}[props]{% else %}props{% endif %} The analytics properties.
 * @param {Record<string, any>} [options] Options for the analytics call.
 * @param {Function} [callback] Called once the call is queued.
{% else %}
 * @param {{ '{' }}Object{{ '}' }} message The analytics message.
 * @param {{ '{' }}{{ unit.payload_type }}{{ '}' }} {% if unit.payload_optional %}[message.properties]{% else %}message.properties{% endif %} The analytics properties.
 * @param {Function} [callback] Called once the call is queued.
{% endif %}
{% endif %}
 */
{% if call_style == "positional" %}
export function {{ unit.function_name }}(
  props{% if typed %}{% if unit.payload_optional %}?{% endif %}: {{ unit.payload_type }}{% endif %},
  options{% if typed %}?: SegmentOptions{% endif %},
  callback{% if typed %}?: Callback{% endif +%}
) {
  const message = {
    event: {{ unit.event_name | json }},
    properties: props || {},
    options,
  }
  try {
{% if validate %}
    validateAgainstSchema(message, {{ unit.validation | indent(4) }})
{% endif %}
  } finally {
    getAnalytics().track(
      message.event,
      message.properties,
      { ...(options || {}), context: withTrackgenContext(options && options.context) },
      callback
    )
  }
}
{% else %}
export function {{ unit.function_name }}(
  message{% if typed %}: TrackMessage & { properties{% if unit.payload_optional %}?{% endif %}: {{ unit.payload_type }} }{% endif %},
  callback{% if typed %}?: Callback{% endif +%}
) {
  const msg = {
    ...message,
    event: {{ unit.event_name | json }},
    properties: message.properties || {},
    context: withTrackgenContext(message.context),
  }
  try {
{% if validate %}
    validateAgainstSchema(msg, {{ unit.validation | indent(4) }})
{% endif %}
  } finally {
    getAnalytics().track(msg, callback)
  }
}
{% endif %}
{% endfor %}
"""


class TypeScriptMapper(TypeMapper):
    language = "typescript"
    type_case = Case.PASCAL
    function_case = Case.CAMEL
    member_case = Case.CAMEL
    reserved = TS_RESERVED
    comment_prefix = "//"
    templates = {"client.ts.j2": CLIENT_TEMPLATE}
    filename = "index.ts"
    typed = True

    def primitive(self, kind: Kind) -> str:
        return _PRIMITIVES[kind]

    def empty_object(self) -> str:
        return "Record<string, any>"

    def array(self, item: str) -> str:
        return f"Array<{item}>"

    def union(self, members: List[str]) -> str:
        return " | ".join(members)

    def nullable(self, annotation: str) -> str:
        if annotation == "any":
            return annotation
        return f"{annotation} | null"

    def field_annotation(self, annotation: str, required: bool) -> str:
        # Optionality is spelled on the key ("k?:"), not the type
        return annotation

    def literal(self, value: Any) -> str:
        return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=True)

    def filters(self) -> Dict[str, Any]:
        return {
            "literal": self.literal,
            "json": _json_key,
            "jsdoc": _jsdoc,
            "jsdoc_key": _jsdoc_key,
        }

    def output_files(self) -> Dict[str, str]:
        return {self.filename: "client.ts.j2"}

    def render(self, context: Dict[str, Any]) -> Dict[str, str]:
        return super().render(dict(context, typed=self.typed))


class JavaScriptMapper(TypeScriptMapper):
    language = "javascript"
    filename = "index.js"
    typed = False

    def nullable(self, annotation: str) -> str:
        if annotation == "any":
            return annotation
        return f"({annotation} | null)"
