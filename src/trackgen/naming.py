"""Identifier sanitization for generated code.

Event and property names in a tracking plan are free text: symbols,
whitespace, any script. Targets need legal identifiers in a consistent case
convention. Sanitizing is lossy, so two distinct source names can land on
the same identifier ("Event Collided" and "event_collided"). A NameScope
hands out unique identifiers within one namespace so both survive as
separate, independently callable entries.

Example:
    >>> scope = NameScope(Case.CAMEL)
    >>> scope.register("Event Collided")
    'eventCollided'
    >>> scope.register("event_collided")
    'eventCollided1'
"""

from __future__ import annotations

import re
import unicodedata
from enum import Enum
from typing import AbstractSet, FrozenSet, Set

# Acronym runs, capitalized words, lowercase runs, digit runs
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")

DEFAULT_FALLBACK = "unnamed"


class Case(str, Enum):
    """Case conventions used by the targets."""

    CAMEL = "camel"  # eventCollided
    PASCAL = "pascal"  # EventCollided
    SNAKE = "snake"  # event_collided


def split_words(name: str) -> list[str]:
    """Split free text into ASCII word tokens.

    Accented letters are folded to their base letter; characters with no
    ASCII decomposition (most non-Latin scripts, symbols) act as separators.
    """
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    return _WORD_RE.findall(folded)


def _join(words: list[str], case: Case) -> str:
    if case is Case.SNAKE:
        return "_".join(w.lower() for w in words)
    joined = "".join(w[:1].upper() + w[1:].lower() for w in words)
    if case is Case.CAMEL:
        return joined[:1].lower() + joined[1:]
    return joined


def sanitize_identifier(
    name: str,
    case: Case = Case.CAMEL,
    reserved: AbstractSet[str] = frozenset(),
    fallback: str = DEFAULT_FALLBACK,
) -> str:
    """Turn an arbitrary source name into a legal identifier.

    Steps: drop illegal characters, apply the case convention, prefix a
    leading digit (``i`` or ``I`` for PascalCase), then suffix ``_`` if the
    result is a reserved word of the target language.
    """
    words = split_words(name) or split_words(fallback)
    identifier = _join(words, case)
    if identifier[0].isdigit():
        identifier = ("I" if case is Case.PASCAL else "i") + identifier
    if identifier in reserved:
        identifier += "_"
    return identifier


class NameScope:
    """One namespace of generated identifiers with collision handling.

    Each ``register`` call returns a fresh identifier, even for a source
    name seen before: two nested objects both called "universe" are two
    types. Nested objects get their own scope for their members, so
    collisions are resolved independently at each level.
    """

    def __init__(
        self,
        case: Case,
        reserved: AbstractSet[str] = frozenset(),
        fallback: str = DEFAULT_FALLBACK,
    ) -> None:
        self.case = case
        self.reserved: FrozenSet[str] = frozenset(reserved)
        self.fallback = fallback
        self._taken: Set[str] = set(self.reserved)

    def register(self, source: str) -> str:
        base = sanitize_identifier(source, self.case, self.reserved, self.fallback)
        candidate = base
        counter = 0
        while candidate in self._taken:
            counter += 1
            separator = "_" if self.case is Case.SNAKE else ""
            candidate = f"{base}{separator}{counter}"
        self._taken.add(candidate)
        return candidate

    def child(self, case: Case | None = None) -> "NameScope":
        """A fresh, independent scope sharing this scope's reserved words."""
        return NameScope(case or self.case, self.reserved, self.fallback)
