"""Enumerations shared across the matcher, builder and emitters."""

from __future__ import annotations

from enum import Enum


class TypeKind(Enum):
    """Semantic kind of a Go type expression."""

    PRIMITIVE = "primitive"
    NAMED = "named"
    POINTER = "pointer"
    SLICE = "slice"
    ARRAY = "array"
    MAP = "map"
    STRUCT = "struct"
    INTERFACE = "interface"
    FUNC = "func"
    CHAN = "chan"

    @property
    def is_indirection(self) -> bool:
        """True for kinds that break struct containment cycles."""
        return self in (TypeKind.POINTER, TypeKind.SLICE, TypeKind.MAP)

    @property
    def is_nilable(self) -> bool:
        """True for kinds whose zero value is nil."""
        return self in (
            TypeKind.POINTER,
            TypeKind.SLICE,
            TypeKind.MAP,
            TypeKind.INTERFACE,
            TypeKind.FUNC,
            TypeKind.CHAN,
        )


class MatchRule(Enum):
    """Rule that paired a destination field with its source."""

    EXACT_NAME = "exact-name"
    CASE_INSENSITIVE = "case-insensitive"
    TAG_ALIAS = "tag-alias"
    EMBEDDED = "embedded"
    UNMATCHED = "unmatched"


class Compatibility(Enum):
    """How a source type relates to a destination type.

    Members are ordered from best to worst; ``worst`` combines the
    classification of composite parts (map keys and values, elements).
    """

    IDENTICAL = "identical"
    CONVERTIBLE = "convertible"
    LOSSY = "lossy"
    INCOMPATIBLE = "incompatible"

    @property
    def rank(self) -> int:
        return _COMPATIBILITY_ORDER.index(self)

    @classmethod
    def worst(cls, *values: Compatibility) -> Compatibility:
        return max(values, key=lambda value: value.rank)


_COMPATIBILITY_ORDER = [
    Compatibility.IDENTICAL,
    Compatibility.CONVERTIBLE,
    Compatibility.LOSSY,
    Compatibility.INCOMPATIBLE,
]


class EmitTarget(Enum):
    """Artifact produced by an emitter."""

    SOURCE_TEXT = "source-text"
    CALLABLE = "callable"


class ConversionKind(Enum):
    """How one value is carried from the source to the destination."""

    ASSIGN = "assign"
    CONVERT = "convert"
    NESTED = "nested"
    POINTER = "pointer"
    DEREF = "deref"
    ADDRESS = "address"
    SLICE = "slice"
    ARRAY = "array"
    MAP = "map"
