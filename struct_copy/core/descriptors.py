"""Struct and field descriptors.

Descriptors are immutable snapshots supplied by whatever indexes the Go
sources (an IDE, gopls, a JSON dump). They validate from plain data, so a
field type may be given as a Go type expression string:

    StructDescriptor.model_validate({
        "name": "User",
        "package": "models",
        "fields": [{"name": "Tags", "type": "[]string", "tags": {"json": "tags"}}],
    })
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from struct_copy.core.exceptions import TypeParseError
from struct_copy.core.tags import has_omitempty, is_skipped
from struct_copy.core.types import TypeRef, parse_type


class FieldDescriptor(BaseModel):
    """One field of a struct.

    Embedded fields use the embedded type's name as ``name``.
    ``optional`` overrides the required/optional decision derived from the
    field type and tags.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    tags: dict[str, str] = {}
    embedded: bool = False
    optional: bool | None = None

    @property
    def is_skipped(self) -> bool:
        return is_skipped(self.tags)

    @property
    def is_required(self) -> bool:
        """Whether a copy must populate this field.

        Nil-able types, ``omitempty`` JSON fields and ``copy:"-"`` fields are
        optional unless ``optional`` says otherwise.
        """
        if self.optional is not None:
            return not self.optional
        if self.type.kind.is_nilable:
            return False
        return not (has_omitempty(self.tags) or self.is_skipped)

    def __hash__(self) -> int:
        return hash((self.name, self.type, tuple(sorted(self.tags.items())), self.embedded))


class StructDescriptor(BaseModel):
    """A named Go struct type and its ordered fields."""

    model_config = ConfigDict(frozen=True)

    name: str
    package: str | None = None
    import_path: str | None = None
    fields: tuple[FieldDescriptor, ...] = ()

    @classmethod
    def from_go(
        cls,
        name: str,
        body: str,
        package: str | None = None,
        import_path: str | None = None,
    ) -> StructDescriptor:
        """Build a descriptor from a Go struct type literal.

        Example:
            StructDescriptor.from_go("User", "struct { Name string; Age int }")
        """
        parsed = parse_type(body)
        if not parsed.is_anonymous_struct:
            raise TypeParseError(body, "not a struct type literal")
        return cls(name=name, package=package, import_path=import_path, fields=parsed.fields or ())

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef.struct(self.name, self.package)

    @property
    def is_anonymous(self) -> bool:
        """True for descriptors resolved from an inline ``struct { ... }`` literal."""
        return self.name.startswith("struct{") or self.name.startswith("struct {")

    def field(self, name: str) -> FieldDescriptor | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


class AliasDescriptor(BaseModel):
    """A named non-struct type, e.g. ``type NormalizedName string``."""

    model_config = ConfigDict(frozen=True)

    name: str
    package: str | None = None
    import_path: str | None = None
    underlying: TypeRef

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef.named(self.name, self.package)


TypeRef.model_rebuild()
FieldDescriptor.model_rebuild()
StructDescriptor.model_rebuild()
AliasDescriptor.model_rebuild()
