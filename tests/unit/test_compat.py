"""Unit tests for type compatibility classification."""

from __future__ import annotations

import pytest

from struct_copy.core.descriptors import AliasDescriptor
from struct_copy.core.enums import Compatibility
from struct_copy.core.registry import StructIndex
from struct_copy.core.types import TypeRef
from struct_copy.mapping.compat import classify, classify_primitives


def _classify(source: str, destination: str, index: StructIndex | None = None) -> Compatibility:
    return classify(TypeRef.parse(source), TypeRef.parse(destination), index)


class TestPrimitives:
    @pytest.mark.parametrize(
        ("source", "destination", "expected"),
        [
            ("int", "int", Compatibility.IDENTICAL),
            ("byte", "uint8", Compatibility.IDENTICAL),
            ("int", "int32", Compatibility.LOSSY),
            ("int32", "int64", Compatibility.LOSSY),
            ("float64", "int", Compatibility.LOSSY),
            ("complex64", "complex128", Compatibility.LOSSY),
            ("int", "complex128", Compatibility.INCOMPATIBLE),
            ("string", "int", Compatibility.INCOMPATIBLE),
            ("bool", "string", Compatibility.INCOMPATIBLE),
        ],
    )
    def test_classify_primitives(
        self, source: str, destination: str, expected: Compatibility
    ) -> None:
        assert classify_primitives(source, destination) is expected


class TestComposites:
    def test_pointer_to_pointer(self) -> None:
        assert _classify("*int", "*int") is Compatibility.IDENTICAL
        assert _classify("*int", "*int32") is Compatibility.LOSSY

    def test_pointer_to_value_is_lossy(self) -> None:
        assert _classify("*string", "string") is Compatibility.LOSSY

    def test_value_to_pointer_is_convertible(self) -> None:
        assert _classify("string", "*string") is Compatibility.CONVERTIBLE

    def test_slices_and_arrays(self) -> None:
        assert _classify("[]int32", "[]int64") is Compatibility.LOSSY
        assert _classify("[4]int", "[4]int") is Compatibility.IDENTICAL
        assert _classify("[4]int", "[8]int") is Compatibility.INCOMPATIBLE
        assert _classify("[]int", "[4]int") is Compatibility.INCOMPATIBLE

    def test_map_takes_worst_part(self) -> None:
        assert _classify("map[string]int", "map[string]int64") is Compatibility.LOSSY
        assert _classify("map[int]string", "map[string]string") is Compatibility.INCOMPATIBLE

    def test_structs_are_convertible(self) -> None:
        source = TypeRef.struct("Address", "models")
        destination = TypeRef.struct("AddressDTO", "api")
        assert classify(source, destination) is Compatibility.CONVERTIBLE

    def test_empty_interface_accepts_anything(self) -> None:
        assert _classify("[]string", "any") is Compatibility.CONVERTIBLE
        assert _classify("int", "interface{}") is Compatibility.CONVERTIBLE
        assert _classify("int", "error") is Compatibility.INCOMPATIBLE
        assert _classify("error", "error") is Compatibility.IDENTICAL


class TestNamedTypes:
    def test_alias_to_underlying(self) -> None:
        index = StructIndex(
            aliases=[AliasDescriptor(name="UserID", package="models", underlying="int64")]
        )
        alias = TypeRef.named("UserID", "models")
        assert classify(alias, TypeRef.primitive("int64"), index) is Compatibility.CONVERTIBLE
        assert classify(TypeRef.primitive("int32"), alias, index) is Compatibility.LOSSY
        assert classify(alias, TypeRef.primitive("string"), index) is Compatibility.INCOMPATIBLE

    def test_unknown_named_types(self) -> None:
        assert _classify("time.Time", "time.Time") is Compatibility.IDENTICAL
        assert _classify("time.Time", "time.Duration") is Compatibility.INCOMPATIBLE
