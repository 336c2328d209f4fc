"""Target platforms and their static capability records.

A target is one SDK + language combination. What a target can express is
declared up front in its Capabilities record and queried by the type
mappers; nothing branches on target identity at generation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from ..exceptions import InvalidConfigError


@dataclass(frozen=True)
class Capabilities:
    """What generated code for a target can do.

    Attributes:
        default_instance: The SDK exposes a shared analytics instance, so
            calls work before the user supplies one.
        unions: The language can express union types. Without it, unions
            degrade to the target's "any" type.
        runtime_validation: Development builds validate payloads against
            the embedded schema.
        handler_raises_in_tests: The default violation handler raises when
            it can detect a test harness, instead of logging.
    """

    default_instance: bool = True
    unions: bool = True
    runtime_validation: bool = True
    handler_raises_in_tests: bool = True


@dataclass(frozen=True)
class Target:
    """One supported client platform."""

    id: str
    sdk: str
    language: str
    capabilities: Capabilities
    # Package or module the generated code talks to
    analytics_module: str
    # "message": track() takes one message object; "positional": track(event, props, options)
    call_style: str = "message"


TARGETS: Dict[str, Target] = {
    t.id: t
    for t in (
        Target(
            id="python",
            sdk="python",
            language="python",
            capabilities=Capabilities(),
            analytics_module="analytics",
        ),
        Target(
            id="web-typescript",
            sdk="web",
            language="typescript",
            # analytics.js has no standard way to detect a test run
            capabilities=Capabilities(handler_raises_in_tests=False),
            analytics_module="window.analytics",
            call_style="positional",
        ),
        Target(
            id="web-javascript",
            sdk="web",
            language="javascript",
            capabilities=Capabilities(handler_raises_in_tests=False),
            analytics_module="window.analytics",
            call_style="positional",
        ),
        Target(
            id="node-typescript",
            sdk="node",
            language="typescript",
            # analytics-node must be initialized by the user before any call
            capabilities=Capabilities(default_instance=False),
            analytics_module="analytics-node",
        ),
        Target(
            id="node-javascript",
            sdk="node",
            language="javascript",
            capabilities=Capabilities(default_instance=False),
            analytics_module="analytics-node",
        ),
        Target(
            id="ios-swift",
            sdk="ios",
            language="swift",
            capabilities=Capabilities(
                unions=False,
                runtime_validation=False,
                handler_raises_in_tests=False,
            ),
            analytics_module="Analytics",
            call_style="positional",
        ),
    )
}


def resolve_target(sdk: str, language: str) -> Target:
    """Look up the target for an SDK + language pair.

    Raises:
        InvalidConfigError: If the pair is not supported.
    """
    for target in TARGETS.values():
        if target.sdk == sdk and target.language == language:
            return target
    supported = ", ".join(f"{t.sdk}/{t.language}" for t in TARGETS.values())
    raise InvalidConfigError("client", f"{sdk}/{language}", f"supported targets: {supported}")


def list_targets() -> List[Target]:
    return list(TARGETS.values())
