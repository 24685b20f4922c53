"""Struct expander.

Flattens a struct and every struct or named type it references into
standalone Go definitions that can be pasted into another package:

    type User struct {
    	Name string
    	Address Address
    }

    type Address struct {
    	Street string
    }

Referenced types are collected breadth-first. Struct definitions come
first, separated by blank lines; alias definitions follow as one block.
Types from the Go standard library (import paths without a dot) are left
as references. Same-named types from different packages get the package
name as a prefix (``DeeppkgConfig``).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import AliasDescriptor, StructDescriptor
from struct_copy.core.enums import TypeKind
from struct_copy.core.exceptions import StructNotFoundError
from struct_copy.core.naming import NameReserver, capitalize, type_name_candidates
from struct_copy.core.registry import StructIndex
from struct_copy.core.tags import render_tags
from struct_copy.core.types import TypeRef

logger = logging.getLogger(__name__)

# Only these tag keys survive expansion
KEPT_TAG_KEYS = ("json",)


@dataclass(frozen=True)
class ExpandResult:
    """Outcome of an expansion; ``content`` is None on failure."""

    success: bool
    content: str | None
    message: str

    @classmethod
    def ok(cls, content: str, message: str) -> ExpandResult:
        return cls(success=True, content=content, message=message)

    @classmethod
    def failure(cls, message: str) -> ExpandResult:
        return cls(success=False, content=None, message=message)


@dataclass(frozen=True)
class _FieldLine:
    name: str | None
    type: str
    tag: str | None = None


@dataclass(frozen=True)
class _Definition:
    name: str
    fields: list[_FieldLine] = field(default_factory=list)
    underlying: str | None = None

    @property
    def is_alias(self) -> bool:
        return self.underlying is not None


def should_expand(descriptor: StructDescriptor | AliasDescriptor) -> bool:
    """Standard library types (import path without a dot) stay references."""
    return not descriptor.import_path or "." in descriptor.import_path


class StructExpander:
    """Expands indexed structs into standalone Go definitions.

    Args:
        index: Declarations the expansion may follow.
        config: Uses ``indent``.
    """

    def __init__(self, index: StructIndex, config: CopyConfig | None = None) -> None:
        self._index = index
        self._config = config or CopyConfig()

    def expand(self, name: str, package: str | None = None) -> ExpandResult:
        """Expand the struct or alias ``name``.

        Raises:
            StructNotFoundError: If neither a struct nor an alias has that name.
        """
        root: StructDescriptor | AliasDescriptor
        try:
            root = self._index.get(name, package)
        except StructNotFoundError:
            root = self._index.get_alias(name, package)

        definitions = _Collector(self._index).collect(root)
        if not definitions:
            return ExpandResult.failure(f"{root.qualified_name} cannot be expanded")

        content = render_definitions(definitions, self._config.indent)
        logger.info("Expanded %s into %d definitions", root.qualified_name, len(definitions))
        return ExpandResult.ok(content, f"Expanded struct {root.name}")


def render_definitions(definitions: list[_Definition], indent: str = "\t") -> str:
    blocks: list[str] = []
    aliases: list[str] = []
    for definition in definitions:
        if definition.is_alias:
            aliases.append(f"type {definition.name} {definition.underlying}\n")
            continue
        lines = [f"type {definition.name} struct {{"]
        for line in definition.fields:
            text = line.type if line.name is None else f"{line.name} {line.type}"
            if line.tag is not None:
                text += " " + line.tag
            lines.append(indent + text)
        lines.append("}")
        blocks.append("\n".join(lines) + "\n")
    if aliases:
        blocks.append("".join(aliases))
    return "\n".join(blocks)


class _Collector:
    """Breadth-first walk over referenced declarations; one instance per expansion."""

    def __init__(self, index: StructIndex) -> None:
        self._index = index
        self._names = NameReserver()
        self._queue: deque[tuple[str, StructDescriptor]] = deque()
        self._structs: dict[str, _Definition] = {}
        self._aliases: dict[str, _Definition] = {}
        self._anonymous: dict[tuple[str | None, str], str] = {}

    def collect(self, root: StructDescriptor | AliasDescriptor) -> list[_Definition]:
        self.enqueue(root)
        while self._queue:
            name, struct = self._queue.popleft()
            if name in self._structs:
                continue
            self._structs[name] = _Definition(name, self._fields(name, struct))
        return [*self._structs.values(), *self._aliases.values()]

    def enqueue(self, descriptor: StructDescriptor | AliasDescriptor) -> str | None:
        """Reserve a name for ``descriptor`` and schedule it; returns the name used."""
        if not should_expand(descriptor):
            return None
        candidates = type_name_candidates(
            descriptor.name, descriptor.package, descriptor.import_path
        )
        name, new = self._names.reserve(candidates, owner=descriptor.qualified_name)
        if not new:
            return name

        if isinstance(descriptor, StructDescriptor):
            self._queue.append((name, descriptor))
            return name

        struct = self._index.resolve_struct(descriptor.type_ref, descriptor.package)
        if struct is not None:
            # A named type over a struct expands as that struct
            self._queue.append((name, struct.model_copy(update={"package": descriptor.package})))
            return name

        underlying = self._render(descriptor.underlying, descriptor.package, name, None)
        self._aliases[name] = _Definition(name, underlying=underlying)
        return name

    def _fields(self, owner: str, struct: StructDescriptor) -> list[_FieldLine]:
        lines = []
        for f in struct.fields:
            tag = render_tags(f.tags, KEPT_TAG_KEYS)
            field_name = None if f.embedded else f.name
            type_text = self._render(f.type, struct.package, owner, field_name)
            lines.append(_FieldLine(field_name, type_text, tag))
        return lines

    def _render(
        self,
        ref: TypeRef,
        package: str | None,
        owner: str,
        field_name: str | None,
    ) -> str:
        kind = ref.kind
        if ref.is_anonymous_struct:
            return self._anonymous_struct(ref, package, owner, field_name)
        if kind is TypeKind.POINTER and ref.elem is not None:
            return "*" + self._render(ref.elem, package, owner, field_name)
        if kind is TypeKind.SLICE and ref.elem is not None:
            return "[]" + self._render(ref.elem, package, owner, field_name)
        if kind is TypeKind.ARRAY and ref.elem is not None:
            return f"[{ref.length or ''}]" + self._render(ref.elem, package, owner, field_name)
        if kind is TypeKind.MAP and ref.elem is not None:
            key = self._render(ref.key, package, owner, field_name) if ref.key else "interface{}"
            return f"map[{key}]" + self._render(ref.elem, package, owner, field_name)
        if kind is TypeKind.CHAN and ref.elem is not None:
            return f"{ref.name or 'chan'} " + self._render(ref.elem, package, owner, field_name)
        if kind in (TypeKind.NAMED, TypeKind.STRUCT):
            found = self._index.lookup(ref, package)
            if found is not None:
                assigned = self.enqueue(found)
                if assigned is not None:
                    return assigned
        return ref.go_type(package)

    def _anonymous_struct(
        self,
        ref: TypeRef,
        package: str | None,
        owner: str,
        field_name: str | None,
    ) -> str:
        key = (package, ref.go_type(package))
        if key in self._anonymous:
            return self._anonymous[key]
        base = capitalize(field_name) if field_name else capitalize(owner) + "Anonymous"
        name, _ = self._names.reserve([base or "Anonymous"])
        self._anonymous[key] = name
        self._queue.append(
            (name, StructDescriptor(name=name, package=package, fields=ref.fields or ()))
        )
        return name

