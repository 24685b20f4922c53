"""Unit tests for StructExpander."""

from __future__ import annotations

import pytest

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import AliasDescriptor, StructDescriptor
from struct_copy.core.exceptions import StructNotFoundError
from struct_copy.core.registry import StructIndex
from struct_copy.expand.expander import StructExpander


def _struct(
    name: str,
    body: str,
    package: str = "main",
    import_path: str | None = None,
) -> StructDescriptor:
    return StructDescriptor.from_go(name, body, package=package, import_path=import_path)


def _expand(index: StructIndex, name: str) -> str:
    result = StructExpander(index).expand(name)
    assert result.success, result.message
    assert result.content is not None
    return result.content


class TestStructExpander:
    def test_collects_nested_structs(self) -> None:
        index = StructIndex(
            structs=[
                _struct("User", "struct { Name string; Address Address }"),
                _struct("Address", "struct { Street string }"),
            ]
        )
        assert _expand(index, "User") == (
            "type User struct {\n"
            "\tName string\n"
            "\tAddress Address\n"
            "}\n"
            "\n"
            "type Address struct {\n"
            "\tStreet string\n"
            "}\n"
        )

    def test_recursive_pointer_emitted_once(self) -> None:
        index = StructIndex(structs=[_struct("Node", "struct { Next *Node }")])
        assert _expand(index, "Node") == "type Node struct {\n\tNext *Node\n}\n"

    def test_stops_at_standard_library(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Object", "struct { Name string; Modified time.Time }"),
                _struct("Time", "struct { wall uint64 }", package="time", import_path="time"),
            ]
        )
        assert _expand(index, "Object") == (
            "type Object struct {\n\tName string\n\tModified time.Time\n}\n"
        )

    def test_expands_type_aliases(self) -> None:
        index = StructIndex(
            structs=[_struct("Flag", "struct { Name string; NormalizedName NormalizedName }")],
            aliases=[AliasDescriptor(name="NormalizedName", package="main", underlying="string")],
        )
        assert _expand(index, "Flag") == (
            "type Flag struct {\n"
            "\tName string\n"
            "\tNormalizedName NormalizedName\n"
            "}\n"
            "\n"
            "type NormalizedName string\n"
        )

    def test_expands_aliases_inside_composite_types(self) -> None:
        index = StructIndex(
            structs=[
                _struct("FlagSet", "struct { Usage func(); actual map[NormalizedName]*Flag }")
            ],
            aliases=[AliasDescriptor(name="NormalizedName", package="main", underlying="string")],
        )
        assert _expand(index, "FlagSet") == (
            "type FlagSet struct {\n"
            "\tUsage func()\n"
            "\tactual map[NormalizedName]*Flag\n"
            "}\n"
            "\n"
            "type NormalizedName string\n"
        )

    def test_expands_structs_across_imported_packages(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Outer", "struct { Name string; Inner innerpkg.Inner }", package="outer"),
                _struct(
                    "Inner",
                    "struct { ID int; Deep deeppkg.Deep }",
                    package="innerpkg",
                    import_path="github.com/example/innerpkg",
                ),
                _struct(
                    "Deep",
                    "struct { Value string }",
                    package="deeppkg",
                    import_path="github.com/example/deeppkg",
                ),
            ]
        )
        assert _expand(index, "Outer") == (
            "type Outer struct {\n"
            "\tName string\n"
            "\tInner Inner\n"
            "}\n"
            "\n"
            "type Inner struct {\n"
            "\tID int\n"
            "\tDeep Deep\n"
            "}\n"
            "\n"
            "type Deep struct {\n"
            "\tValue string\n"
            "}\n"
        )

    def test_same_named_structs_from_different_packages(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Outer", "struct { Name string; Config innerpkg.Config }", package="outer"),
                _struct(
                    "Config",
                    "struct { Enabled bool; Config deeppkg.Config }",
                    package="innerpkg",
                    import_path="github.com/example/innerpkg",
                ),
                _struct(
                    "Config",
                    "struct { Value string }",
                    package="deeppkg",
                    import_path="github.com/example/deeppkg",
                ),
            ]
        )
        assert _expand(index, "Outer") == (
            "type Outer struct {\n"
            "\tName string\n"
            "\tConfig Config\n"
            "}\n"
            "\n"
            "type Config struct {\n"
            "\tEnabled bool\n"
            "\tConfig DeeppkgConfig\n"
            "}\n"
            "\n"
            "type DeeppkgConfig struct {\n"
            "\tValue string\n"
            "}\n"
        )

    def test_chain_of_same_named_structs(self) -> None:
        structs = [_struct("Main", "struct { Name string; Config pkg1.Config }")]
        for n in (1, 2, 3):
            body = f"struct {{ Value{n} string; Config{n + 1} pkg{n + 1}.Config }}"
            if n == 3:
                body = "struct { Value3 string }"
            structs.append(
                _struct("Config", body, package=f"pkg{n}", import_path=f"github.com/example/pkg{n}")
            )
        content = _expand(StructIndex(structs=structs), "main.Main")
        assert "\tConfig Config\n" in content
        assert "type Config struct {\n\tValue1 string\n\tConfig2 Pkg2Config\n}\n" in content
        assert "type Pkg2Config struct {\n\tValue2 string\n\tConfig3 Pkg3Config\n}\n" in content
        assert content.endswith("type Pkg3Config struct {\n\tValue3 string\n}\n")

    def test_same_named_aliases(self) -> None:
        index = StructIndex(
            structs=[
                _struct(
                    "Main",
                    "struct { StringId UserId; IntId pkg2.UserId }",
                    package="pkg1",
                    import_path="example.com/pkg1",
                )
            ],
            aliases=[
                AliasDescriptor(
                    name="UserId",
                    package="pkg1",
                    import_path="example.com/pkg1",
                    underlying="string",
                ),
                AliasDescriptor(
                    name="UserId",
                    package="pkg2",
                    import_path="example.com/pkg2",
                    underlying="int64",
                ),
            ],
        )
        assert _expand(index, "Main") == (
            "type Main struct {\n"
            "\tStringId UserId\n"
            "\tIntId Pkg2UserId\n"
            "}\n"
            "\n"
            "type UserId string\n"
            "type Pkg2UserId int64\n"
        )

    def test_anonymous_struct_becomes_named(self) -> None:
        index = StructIndex(structs=[_struct("Main", "struct { Meta struct { Value string } }")])
        assert _expand(index, "Main") == (
            "type Main struct {\n"
            "\tMeta Meta\n"
            "}\n"
            "\n"
            "type Meta struct {\n"
            "\tValue string\n"
            "}\n"
        )

    def test_keeps_only_json_tags(self) -> None:
        index = StructIndex(
            structs=[
                _struct(
                    "User", 'struct { Name string `json:"name" db:"user_name"`; ID int `db:"id"` }'
                )
            ]
        )
        assert _expand(index, "User") == (
            'type User struct {\n\tName string `json:"name"`\n\tID int\n}\n'
        )

    def test_embedded_fields(self) -> None:
        index = StructIndex(
            structs=[
                _struct("User", "struct { Base; Name string }"),
                _struct("Base", "struct { ID int }"),
            ]
        )
        assert _expand(index, "User").startswith("type User struct {\n\tBase\n\tName string\n}\n")

    def test_custom_indent(self) -> None:
        index = StructIndex(structs=[_struct("Node", "struct { Next *Node }")])
        result = StructExpander(index, CopyConfig(indent="    ")).expand("Node")
        assert result.content == "type Node struct {\n    Next *Node\n}\n"

    def test_alias_root(self) -> None:
        level = AliasDescriptor(name="Level", package="main", underlying="int")
        index = StructIndex(aliases=[level])
        assert _expand(index, "Level") == "type Level int\n"


class TestStructExpanderFailures:
    def test_standard_library_root(self) -> None:
        index = StructIndex(
            structs=[_struct("Time", "struct { wall uint64 }", package="time", import_path="time")]
        )
        result = StructExpander(index).expand("time.Time")
        assert not result.success
        assert result.content is None

    def test_unknown_name(self) -> None:
        with pytest.raises(StructNotFoundError):
            StructExpander(StructIndex()).expand("Missing")
