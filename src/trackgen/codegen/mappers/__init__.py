"""Per-language type mappers."""

from typing import Dict, Type

from .base import Declaration, FieldSpec, MappedType, TypeMapper
from .python import PythonMapper
from .swift import SwiftMapper
from .typescript import JavaScriptMapper, TypeScriptMapper

MAPPERS: Dict[str, Type[TypeMapper]] = {
    mapper.language: mapper
    for mapper in (PythonMapper, TypeScriptMapper, JavaScriptMapper, SwiftMapper)
}

__all__ = [
    "MAPPERS",
    "Declaration",
    "FieldSpec",
    "JavaScriptMapper",
    "MappedType",
    "PythonMapper",
    "SwiftMapper",
    "TypeMapper",
    "TypeScriptMapper",
]
