"""Type compatibility between a source and a destination field type.

Types are expected to be normalized through StructIndex.normalize(), so a
named reference to a known struct already carries the ``struct`` kind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from struct_copy.core.enums import Compatibility, TypeKind
from struct_copy.core.types import (
    COMPLEX_TYPES,
    FLOAT_TYPES,
    INTEGER_TYPES,
    TypeRef,
    canonical_primitive,
)

if TYPE_CHECKING:
    from struct_copy.core.registry import StructIndex

_EMPTY_INTERFACES = frozenset({"any", "interface{}"})


def _numeric_family(name: str) -> str | None:
    name = canonical_primitive(name)
    if name in INTEGER_TYPES or name in FLOAT_TYPES:
        return "real"
    if name in COMPLEX_TYPES:
        return "complex"
    return None


def classify_primitives(source: str, destination: str) -> Compatibility:
    """Classify two builtin type names."""
    if canonical_primitive(source) == canonical_primitive(destination):
        return Compatibility.IDENTICAL
    family = _numeric_family(source)
    if family is not None and family == _numeric_family(destination):
        return Compatibility.LOSSY
    return Compatibility.INCOMPATIBLE


def classify(
    source: TypeRef,
    destination: TypeRef,
    index: StructIndex | None = None,
) -> Compatibility:
    """Classify how a value of ``source`` type copies into ``destination``.

    IDENTICAL: plain assignment. CONVERTIBLE: needs a conversion, nested
    copy or allocation but keeps all data. LOSSY: may lose data (numeric
    width or precision, nil pointer collapsing to a zero value).
    INCOMPATIBLE: no copy is possible.
    """
    if source == destination:
        return Compatibility.IDENTICAL

    s_kind, d_kind = source.kind, destination.kind

    if d_kind is TypeKind.INTERFACE:
        if s_kind is TypeKind.INTERFACE and source.name == destination.name:
            return Compatibility.IDENTICAL
        if (destination.name or "interface{}") in _EMPTY_INTERFACES:
            return Compatibility.CONVERTIBLE
        return Compatibility.INCOMPATIBLE

    if s_kind is TypeKind.POINTER and d_kind is TypeKind.POINTER:
        return classify(_elem(source), _elem(destination), index)
    if s_kind is TypeKind.POINTER:
        inner = classify(_elem(source), destination, index)
        if inner is Compatibility.INCOMPATIBLE:
            return inner
        return Compatibility.worst(inner, Compatibility.LOSSY)
    if d_kind is TypeKind.POINTER:
        inner = classify(source, _elem(destination), index)
        if inner is Compatibility.INCOMPATIBLE:
            return inner
        return Compatibility.worst(inner, Compatibility.CONVERTIBLE)

    if s_kind is TypeKind.SLICE and d_kind is TypeKind.SLICE:
        return classify(_elem(source), _elem(destination), index)
    if s_kind is TypeKind.ARRAY and d_kind is TypeKind.ARRAY:
        if source.length != destination.length:
            return Compatibility.INCOMPATIBLE
        return classify(_elem(source), _elem(destination), index)
    if s_kind is TypeKind.MAP and d_kind is TypeKind.MAP:
        if source.key is None or destination.key is None:
            return Compatibility.INCOMPATIBLE
        return Compatibility.worst(
            classify(source.key, destination.key, index),
            classify(_elem(source), _elem(destination), index),
        )

    if s_kind is TypeKind.STRUCT and d_kind is TypeKind.STRUCT:
        return Compatibility.CONVERTIBLE

    if TypeKind.NAMED in (s_kind, d_kind) and index is not None:
        s_under = index.underlying(source)
        d_under = index.underlying(destination)
        if (s_under, d_under) != (source, destination):
            inner = classify(s_under, d_under, index)
            if inner is Compatibility.INCOMPATIBLE:
                return inner
            # A named type always needs an explicit conversion
            return Compatibility.worst(inner, Compatibility.CONVERTIBLE)

    if s_kind is TypeKind.PRIMITIVE and d_kind is TypeKind.PRIMITIVE:
        return classify_primitives(source.name or "", destination.name or "")

    return Compatibility.INCOMPATIBLE


def _elem(ref: TypeRef) -> TypeRef:
    if ref.elem is None:
        return TypeRef(kind=TypeKind.INTERFACE, name="interface{}")
    return ref.elem
