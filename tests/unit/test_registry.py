"""Unit tests for StructIndex."""

from __future__ import annotations

from pathlib import Path

import pytest

from struct_copy.core.descriptors import AliasDescriptor, StructDescriptor
from struct_copy.core.enums import TypeKind
from struct_copy.core.exceptions import DescriptorError, DuplicateStructError, StructNotFoundError
from struct_copy.core.registry import StructIndex
from struct_copy.core.types import TypeRef


class TestStructIndexLookup:
    def test_get_qualified_and_simple(self, user_index: StructIndex) -> None:
        assert user_index.get("models.User").name == "User"
        assert user_index.get("User").qualified_name == "models.User"
        assert user_index.get("User", "models").name == "User"

    def test_get_missing(self, user_index: StructIndex) -> None:
        with pytest.raises(StructNotFoundError) as exc_info:
            user_index.get("Order")
        assert exc_info.value.type_name == "Order"

    def test_ambiguous_simple_name(self) -> None:
        index = StructIndex(
            structs=[
                StructDescriptor(name="Config", package="a"),
                StructDescriptor(name="Config", package="b"),
            ]
        )
        with pytest.raises(StructNotFoundError):
            index.get("Config")
        assert index.get("b.Config").package == "b"

    def test_duplicate_rejected(self) -> None:
        index = StructIndex(structs=[StructDescriptor(name="User", package="models")])
        with pytest.raises(DuplicateStructError):
            index.add(StructDescriptor(name="User", package="models"), origin="other.json")

    def test_has_and_len(self, user_index: StructIndex) -> None:
        assert user_index.has("Address")
        assert not user_index.has("UserID")
        assert len(user_index) == 6
        assert user_index.alias_names == ["models.UserID"]


class TestStructIndexResolution:
    def test_normalize_named_struct(self, user_index: StructIndex) -> None:
        ref = user_index.normalize(TypeRef.parse("[]*Address"), "models")
        assert ref == TypeRef.slice_of(TypeRef.pointer_to(TypeRef.struct("Address", "models")))

    def test_normalize_alias_is_qualified(self, user_index: StructIndex) -> None:
        ref = user_index.normalize(TypeRef.parse("UserID"), "models")
        assert ref == TypeRef.named("UserID", "models")

    def test_normalize_unknown_is_unchanged(self, user_index: StructIndex) -> None:
        ref = TypeRef.parse("time.Time")
        assert user_index.normalize(ref, "models") == ref

    def test_underlying(self, user_index: StructIndex) -> None:
        alias = TypeRef.named("UserID", "models")
        assert user_index.underlying(alias) == TypeRef.primitive("int64")

    def test_resolve_struct_through_alias(self) -> None:
        index = StructIndex(
            structs=[StructDescriptor.from_go("Point", "struct { X, Y int }", package="geo")],
            aliases=[AliasDescriptor(name="Vertex", package="geo", underlying="Point")],
        )
        found = index.resolve_struct(TypeRef.named("Vertex", "geo"))
        assert found is not None
        assert found.name == "Point"

    def test_resolve_anonymous_struct(self, user_index: StructIndex) -> None:
        ref = TypeRef.parse("struct { Value string }")
        found = user_index.resolve_struct(ref, "models")
        assert found is not None
        assert found.is_anonymous
        assert found.field_names == ["Value"]


class TestStructIndexFromDirectory:
    def test_package_from_directory(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        write_descriptor(
            "models/user.json",
            {"name": "User", "fields": [{"name": "Name", "type": "string"}]},
        )
        write_descriptor(
            "api/dto.json",
            [
                {"name": "UserDTO", "fields": [{"name": "Name", "type": "string"}]},
                {"name": "Status", "underlying": "int"},
            ],
        )
        index = StructIndex.from_directory(tmp_descriptor_dir)
        assert index.struct_names == ["api.UserDTO", "models.User"]
        assert index.get_alias("api.Status").underlying.kind is TypeKind.PRIMITIVE

    def test_explicit_package_wins(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        write_descriptor("misc/user.json", {"name": "User", "package": "models"})
        index = StructIndex.from_directory(tmp_descriptor_dir)
        assert index.struct_names == ["models.User"]

    def test_structs_and_aliases_document(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        write_descriptor(
            "models/all.json",
            {"structs": [{"name": "User"}], "aliases": [{"name": "ID", "underlying": "int64"}]},
        )
        index = StructIndex.from_directory(tmp_descriptor_dir)
        assert index.has("models.User")
        assert index.alias_names == ["models.ID"]

    def test_duplicate_across_files(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        write_descriptor("models/a.json", {"name": "User"})
        write_descriptor("models/b.json", {"name": "User"})
        with pytest.raises(DuplicateStructError):
            StructIndex.from_directory(tmp_descriptor_dir)

    def test_invalid_json(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        path = write_descriptor("models/bad.json", {})
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DescriptorError):
            StructIndex.from_directory(tmp_descriptor_dir)

    def test_invalid_type_expression(self, write_descriptor, tmp_descriptor_dir: Path) -> None:
        write_descriptor(
            "models/bad.json", {"name": "User", "fields": [{"name": "X", "type": "[]"}]}
        )
        with pytest.raises(DescriptorError):
            StructIndex.from_directory(tmp_descriptor_dir)

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert len(StructIndex.from_directory(tmp_path / "missing")) == 0
