"""Struct index - the resolved universe of struct and alias descriptors.

Descriptors can be registered in memory or loaded from a directory of JSON
documents. The directory layout supplies the default package:

    structs/models/user.json       -> package "models"
    structs/api/v1/user_dto.json   -> package "v1"

A document is a struct, an alias (has ``underlying``), a list of either, or
``{"structs": [...], "aliases": [...]}``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from struct_copy.core.descriptors import AliasDescriptor, StructDescriptor
from struct_copy.core.enums import TypeKind
from struct_copy.core.exceptions import DescriptorError, DuplicateStructError, StructNotFoundError
from struct_copy.core.types import TypeRef

logger = logging.getLogger(__name__)


def _qualify(name: str, package: str | None) -> str:
    return f"{package}.{name}" if package else name


class StructIndex:
    """Immutable-after-load lookup of struct and alias descriptors.

    Args:
        structs: Struct descriptors to register.
        aliases: Alias descriptors to register.

    Raises:
        DuplicateStructError: If two descriptors share a qualified name.
    """

    def __init__(
        self,
        structs: Iterable[StructDescriptor] = (),
        aliases: Iterable[AliasDescriptor] = (),
    ) -> None:
        self._structs: dict[str, StructDescriptor] = {}
        self._aliases: dict[str, AliasDescriptor] = {}
        self._origins: dict[str, str] = {}
        for struct in structs:
            self.add(struct)
        for alias in aliases:
            self.add(alias)

    @classmethod
    def from_directory(cls, root_dir: Path | str) -> StructIndex:
        """Recursively load every ``*.json`` descriptor document under ``root_dir``."""
        index = cls()
        root = Path(root_dir)
        if not root.exists():
            return index

        for json_file in sorted(root.rglob("*.json")):
            relative = json_file.relative_to(root)
            default_package = relative.parts[-2] if len(relative.parts) > 1 else None
            try:
                document = json.loads(json_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise DescriptorError(f"Invalid JSON in {json_file}: {e}") from e
            for entry in _document_entries(document):
                index.add(_validate_entry(entry, default_package, json_file), origin=str(json_file))

        logger.info(
            "Loaded %d structs and %d aliases from %s",
            len(index._structs),
            len(index._aliases),
            root,
        )
        return index

    def add(self, descriptor: StructDescriptor | AliasDescriptor, origin: str = "<memory>") -> None:
        """Register one descriptor."""
        key = descriptor.qualified_name
        if key in self._origins:
            raise DuplicateStructError(key, self._origins[key], origin)
        if isinstance(descriptor, StructDescriptor):
            self._structs[key] = descriptor
        else:
            self._aliases[key] = descriptor
        self._origins[key] = origin

    # --- Lookup ---

    def get(self, name: str, package: str | None = None) -> StructDescriptor:
        """Look up a struct by name.

        ``name`` may be qualified (``models.User``). An unqualified name with
        no package matches when exactly one registered struct has that name.

        Raises:
            StructNotFoundError: If no struct matches.
        """
        found = self._find(self._structs, name, package)
        if found is None:
            raise StructNotFoundError(_qualify(name, package))
        return found

    def get_alias(self, name: str, package: str | None = None) -> AliasDescriptor:
        found = self._find(self._aliases, name, package)
        if found is None:
            raise StructNotFoundError(_qualify(name, package))
        return found

    def has(self, name: str, package: str | None = None) -> bool:
        return self._find(self._structs, name, package) is not None

    @staticmethod
    def _find(table: dict[str, Any], name: str, package: str | None) -> Any:
        if package is None and "." in name:
            package, _, name = name.rpartition(".")
        key = _qualify(name, package)
        if key in table:
            return table[key]
        if package is None:
            candidates = [d for d in table.values() if d.name == name]
            if len(candidates) == 1:
                return candidates[0]
        return None

    # --- Type resolution ---

    def lookup(
        self, ref: TypeRef, context_package: str | None = None
    ) -> StructDescriptor | AliasDescriptor | None:
        """Find the declaration a named or struct reference points to.

        Unqualified names are looked up in ``context_package`` first.
        """
        if ref.kind not in (TypeKind.NAMED, TypeKind.STRUCT) or not ref.name:
            return None
        package = ref.package or context_package
        for table in (self._structs, self._aliases):
            key = _qualify(ref.name, package)
            if key in table:
                return table[key]
        if ref.package is None:
            for table in (self._structs, self._aliases):
                if ref.name in table:
                    return table[ref.name]
        return None

    def resolve_struct(
        self, ref: TypeRef, context_package: str | None = None
    ) -> StructDescriptor | None:
        """Return the struct a reference denotes, following aliases.

        Anonymous inline structs resolve to a descriptor named after their
        Go literal, so identical literals share one identity.
        """
        if ref.is_anonymous_struct:
            return StructDescriptor(
                name=ref.go_type(context_package),
                package=context_package,
                fields=ref.fields or (),
            )
        seen: set[str] = set()
        current: TypeRef = ref
        while True:
            found = self.lookup(current, context_package)
            if isinstance(found, StructDescriptor):
                return found
            if not isinstance(found, AliasDescriptor) or found.qualified_name in seen:
                return None
            seen.add(found.qualified_name)
            context_package = found.package
            current = found.underlying
            if current.is_anonymous_struct:
                return self.resolve_struct(current, context_package)

    def normalize(self, ref: TypeRef, context_package: str | None = None) -> TypeRef:
        """Qualify a reference and classify named references.

        Named references to known structs become ``struct`` references, and
        unqualified names declared in ``context_package`` gain that package.
        Composite types are normalized recursively.
        """
        kind = ref.kind
        if kind in (TypeKind.POINTER, TypeKind.SLICE, TypeKind.ARRAY, TypeKind.MAP, TypeKind.CHAN):
            update: dict[str, Any] = {}
            if ref.elem is not None:
                update["elem"] = self.normalize(ref.elem, context_package)
            if ref.key is not None:
                update["key"] = self.normalize(ref.key, context_package)
            return ref.model_copy(update=update)
        if kind not in (TypeKind.NAMED, TypeKind.STRUCT) or ref.is_anonymous_struct:
            return ref
        found = self.lookup(ref, context_package)
        if found is None:
            return ref
        return found.type_ref

    def underlying(self, ref: TypeRef, context_package: str | None = None) -> TypeRef:
        """Follow alias declarations down to a non-alias type.

        References that are not registered aliases are returned unchanged.
        """
        seen: set[str] = set()
        current = ref
        while current.kind is TypeKind.NAMED:
            found = self.lookup(current, context_package)
            if not isinstance(found, AliasDescriptor) or found.qualified_name in seen:
                break
            seen.add(found.qualified_name)
            context_package = found.package
            current = self.normalize(found.underlying, found.package)
        return current

    # --- Introspection ---

    @property
    def struct_names(self) -> list[str]:
        """Qualified names of registered structs, sorted alphabetically."""
        return sorted(self._structs)

    @property
    def alias_names(self) -> list[str]:
        return sorted(self._aliases)

    def __iter__(self) -> Iterator[StructDescriptor]:
        return iter(self._structs.values())

    def __len__(self) -> int:
        """Number of registered structs and aliases."""
        return len(self._structs) + len(self._aliases)


def _document_entries(document: Any) -> list[dict[str, Any]]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict) and ("structs" in document or "aliases" in document):
        return [*document.get("structs", []), *document.get("aliases", [])]
    return [document]


def _validate_entry(
    entry: dict[str, Any], default_package: str | None, origin: Path
) -> StructDescriptor | AliasDescriptor:
    if not isinstance(entry, dict):
        raise DescriptorError(f"Invalid descriptor in {origin}: expected an object")
    data = dict(entry)
    data.setdefault("package", default_package)
    model = AliasDescriptor if "underlying" in data else StructDescriptor
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DescriptorError(f"Invalid descriptor in {origin}: {e}") from e
