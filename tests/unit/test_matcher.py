"""Unit tests for FieldMatcher."""

from __future__ import annotations

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import StructDescriptor
from struct_copy.core.enums import Compatibility, MatchRule
from struct_copy.core.registry import StructIndex
from struct_copy.mapping.matcher import FieldMatcher


def _struct(name: str, body: str, package: str = "models") -> StructDescriptor:
    return StructDescriptor.from_go(name, body, package=package)


class TestMatchRules:
    def test_exact_name_exact_type(self) -> None:
        src = _struct("User", "struct { Name string; Email string }")
        dst = _struct("UserDTO", "struct { Email string; Name string }")
        mappings = FieldMatcher().match(src, dst)
        assert [m.rule for m in mappings] == [MatchRule.EXACT_NAME, MatchRule.EXACT_NAME]
        assert all(m.compatibility is Compatibility.IDENTICAL for m in mappings)
        assert [m.destination.name for m in mappings] == ["Email", "Name"]

    def test_lossy_numeric_exact_name(self) -> None:
        src = _struct("User", "struct { Name string; Age int }")
        dst = _struct("UserDTO", "struct { Name string; Age int32 }")
        age = FieldMatcher().match(src, dst).get("Age")
        assert age is not None
        assert age.rule is MatchRule.EXACT_NAME
        assert age.lossy
        assert age.source is not None and age.source.name == "Age"

    def test_lossy_exact_name_beats_case_insensitive(self) -> None:
        src = _struct("User", "struct { age int32; Age int64 }")
        dst = _struct("UserDTO", "struct { Age int32 }")
        age = FieldMatcher().match(src, dst)[0]
        assert age.rule is MatchRule.EXACT_NAME
        assert age.source is not None and age.source.type.name == "int64"

    def test_case_insensitive(self) -> None:
        src = _struct("User", "struct { username string }")
        dst = _struct("UserDTO", "struct { UserName string }")
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.rule is MatchRule.CASE_INSENSITIVE
        assert mapping.source is not None and mapping.source.name == "username"

    def test_case_insensitive_skips_incompatible_exact_name(self) -> None:
        src = _struct("User", "struct { Name int; NAME string }")
        dst = _struct("UserDTO", "struct { Name string }")
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.rule is MatchRule.CASE_INSENSITIVE
        assert mapping.source is not None and mapping.source.name == "NAME"

    def test_declaration_order_breaks_ties(self) -> None:
        src = _struct("User", "struct { name string; NAME string }")
        dst = _struct("UserDTO", "struct { Name string }")
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.source is not None and mapping.source.name == "name"

    def test_destination_tag_alias(self) -> None:
        src = _struct("User", "struct { Nm string }")
        dst = _struct("UserDTO", 'struct { Name string `copy:"nm"` }')
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.rule is MatchRule.TAG_ALIAS
        assert mapping.source is not None and mapping.source.name == "Nm"

    def test_source_tag_alias(self) -> None:
        src = _struct("User", 'struct { FullName string `json:"display_name"` }')
        dst = _struct("UserDTO", "struct { Display_Name string }")
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.rule is MatchRule.TAG_ALIAS

    def test_unmatched(self) -> None:
        src = _struct("User", "struct { Name string }")
        dst = _struct("UserDTO", "struct { Name string; Email string }")
        mappings = FieldMatcher().match(src, dst)
        email = mappings.get("Email")
        assert email is not None
        assert email.rule is MatchRule.UNMATCHED
        assert email.source is None
        assert mappings.unmatched == [email]

    def test_incompatible_candidate_is_kept(self) -> None:
        src = _struct("User", "struct { Age string }")
        dst = _struct("UserDTO", "struct { Age int }")
        mapping = FieldMatcher().match(src, dst)[0]
        assert mapping.rule is MatchRule.EXACT_NAME
        assert mapping.compatibility is Compatibility.INCOMPATIBLE

    def test_each_source_used_once_per_destination(self) -> None:
        src = _struct("User", "struct { Name string }")
        dst = _struct("UserDTO", "struct { Name string; Title string }")
        mappings = FieldMatcher().match(src, dst)
        assert sum(1 for m in mappings if m.source is not None) == 1


class TestMatchOptions:
    def test_case_insensitive_disabled(self) -> None:
        src = _struct("User", "struct { username string }")
        dst = _struct("UserDTO", "struct { UserName string }")
        config = CopyConfig(match_case_insensitive=False)
        assert FieldMatcher(config).match(src, dst)[0].rule is MatchRule.UNMATCHED

    def test_tag_aliases_disabled_with_camel_case_key(self) -> None:
        src = _struct("User", "struct { Nm string }")
        dst = _struct("UserDTO", 'struct { Name string `copy:"nm"` }')
        config = CopyConfig.model_validate({"useTagAliases": False})
        assert FieldMatcher(config).match(src, dst)[0].rule is MatchRule.UNMATCHED

    def test_custom_alias_keys(self) -> None:
        src = _struct("User", "struct { Nm string }")
        dst = _struct("UserDTO", 'struct { Name string `db:"nm"` }')
        config = CopyConfig(alias_tag_keys=("db",))
        assert FieldMatcher(config).match(src, dst)[0].rule is MatchRule.TAG_ALIAS

    def test_skip_tag(self) -> None:
        src = _struct("User", 'struct { Name string; Secret string `copy:"-"` }')
        dst = _struct("UserDTO", 'struct { Name string `copy:"-"`; Secret string }')
        mappings = FieldMatcher().match(src, dst)
        assert all(m.rule is MatchRule.UNMATCHED for m in mappings)


class TestEmbedded:
    def test_promoted_source_field(self, user_index: StructIndex) -> None:
        matcher = FieldMatcher(index=user_index)
        mappings = matcher.match(user_index.get("User"), user_index.get("UserDTO"))
        id_mapping = mappings.get("ID")
        assert id_mapping is not None
        assert id_mapping.rule is MatchRule.EXACT_NAME
        assert id_mapping.source_path == ("Base",)
        assert id_mapping.source_selector == ("Base", "ID")

    def test_promotion_disabled(self, user_index: StructIndex) -> None:
        matcher = FieldMatcher(CopyConfig(promote_embedded=False), user_index)
        mappings = matcher.match(user_index.get("User"), user_index.get("UserDTO"))
        id_mapping = mappings.get("ID")
        assert id_mapping is not None
        assert not id_mapping.is_matched

    def test_direct_field_shadows_promoted(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Base", "struct { ID string }"),
                _struct("User", "struct { Base; ID int64 }"),
                _struct("UserDTO", "struct { ID int64 }"),
            ]
        )
        mapping = FieldMatcher(index=index).match(index.get("User"), index.get("UserDTO"))[0]
        assert mapping.source_path == ()
        assert mapping.compatibility is Compatibility.IDENTICAL

    def test_embedded_destination_filled_from_source(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Audit", "struct { CreatedBy string }"),
                _struct("Order", "struct { ID int; CreatedBy string }"),
                _struct("OrderDTO", "struct { Audit; ID int }"),
            ]
        )
        mappings = FieldMatcher(index=index).match(index.get("Order"), index.get("OrderDTO"))
        audit = mappings.get("Audit")
        assert audit is not None
        assert audit.rule is MatchRule.EMBEDDED
        assert audit.source is None

    def test_same_depth_promoted_names_are_ambiguous(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Left", "struct { ID int64; Name string }"),
                _struct("Right", "struct { ID int64 }"),
                _struct("User", "struct { Left; Right }"),
                _struct("UserDTO", 'struct { ID int64 `json:",omitempty"`; Name string }'),
            ]
        )
        mappings = FieldMatcher(index=index).match(index.get("User"), index.get("UserDTO"))
        id_mapping = mappings.get("ID")
        assert id_mapping is not None
        assert not id_mapping.is_matched
        name_mapping = mappings.get("Name")
        assert name_mapping is not None
        assert name_mapping.source_selector == ("Left", "Name")

    def test_ambiguous_name_hides_deeper_fields(self) -> None:
        index = StructIndex(
            structs=[
                _struct("Deep", "struct { ID int64 }"),
                _struct("Left", "struct { ID int64; Deep }"),
                _struct("Right", "struct { ID int64 }"),
                _struct("User", "struct { Left; Right }"),
                _struct("UserDTO", "struct { ID int64 }"),
            ]
        )
        mappings = FieldMatcher(index=index).match(index.get("User"), index.get("UserDTO"))
        assert not mappings[0].is_matched
