"""Go type references.

TypeRef is the immutable, syntax-independent description of a field type.
It can be built directly, validated from plain data, or parsed from a Go
type expression:

    TypeRef.parse("map[string][]*models.Address")

Identifiers that are not Go builtins parse as ``named`` references. The
StructIndex decides whether a named reference is a struct or an alias.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, model_validator

from struct_copy.core.enums import TypeKind
from struct_copy.core.exceptions import TypeParseError
from struct_copy.core.tags import parse_tag_text, render_tags

if TYPE_CHECKING:
    from struct_copy.core.descriptors import FieldDescriptor

# Bit width and signedness of Go integer types (int/uint assume 64-bit targets)
INTEGER_TYPES: dict[str, tuple[int, bool]] = {
    "int": (64, True),
    "int8": (8, True),
    "int16": (16, True),
    "int32": (32, True),
    "int64": (64, True),
    "uint": (64, False),
    "uint8": (8, False),
    "uint16": (16, False),
    "uint32": (32, False),
    "uint64": (64, False),
    "uintptr": (64, False),
}
FLOAT_TYPES = frozenset({"float32", "float64"})
COMPLEX_TYPES = frozenset({"complex64", "complex128"})

# Builtin aliases: byte is uint8, rune is int32
BUILTIN_ALIASES = {"byte": "uint8", "rune": "int32"}

PRIMITIVE_TYPES = (
    frozenset(INTEGER_TYPES)
    | FLOAT_TYPES
    | COMPLEX_TYPES
    | frozenset(BUILTIN_ALIASES)
    | frozenset({"bool", "string"})
)

_INTERFACE_BUILTINS = frozenset({"any", "error"})


def canonical_primitive(name: str) -> str:
    """Resolve builtin aliases (byte, rune) to the type they stand for."""
    return BUILTIN_ALIASES.get(name, name)


def is_numeric(name: str) -> bool:
    name = canonical_primitive(name)
    return name in INTEGER_TYPES or name in FLOAT_TYPES or name in COMPLEX_TYPES


class TypeRef(BaseModel):
    """Reference to a Go type.

    Attributes:
        kind: Semantic kind of the type.
        name: Type name for primitive, named, struct and interface kinds;
              the literal signature for func types; the direction for chans.
        package: Package qualifier of a named or struct type.
        elem: Pointee, element or map value type.
        key: Map key type.
        length: Array length expression ("4", "N", "...").
        fields: Fields of an anonymous inline struct.
    """

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    name: str | None = None
    package: str | None = None
    elem: TypeRef | None = None
    key: TypeRef | None = None
    length: str | None = None
    fields: tuple[FieldDescriptor, ...] | None = None

    @model_validator(mode="before")
    @classmethod
    def _parse_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return dict(parse_type(data))
        return data

    # --- Constructors ---

    @classmethod
    def parse(cls, text: str) -> TypeRef:
        """Parse a Go type expression."""
        return parse_type(text)

    @classmethod
    def primitive(cls, name: str) -> TypeRef:
        return cls(kind=TypeKind.PRIMITIVE, name=name)

    @classmethod
    def struct(cls, name: str, package: str | None = None) -> TypeRef:
        return cls(kind=TypeKind.STRUCT, name=name, package=package)

    @classmethod
    def named(cls, name: str, package: str | None = None) -> TypeRef:
        return cls(kind=TypeKind.NAMED, name=name, package=package)

    @classmethod
    def pointer_to(cls, elem: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.POINTER, elem=elem)

    @classmethod
    def slice_of(cls, elem: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.SLICE, elem=elem)

    @classmethod
    def array_of(cls, elem: TypeRef, length: int | str) -> TypeRef:
        return cls(kind=TypeKind.ARRAY, elem=elem, length=str(length))

    @classmethod
    def map_of(cls, key: TypeRef, value: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.MAP, key=key, elem=value)

    # --- Queries ---

    @property
    def qualified_name(self) -> str:
        """``package.Name`` for named types, the Go text otherwise."""
        if self.kind in (TypeKind.NAMED, TypeKind.STRUCT) and self.name:
            return f"{self.package}.{self.name}" if self.package else self.name
        return self.go_type()

    @property
    def is_anonymous_struct(self) -> bool:
        return self.kind is TypeKind.STRUCT and self.fields is not None

    def go_type(self, package: str | None = None) -> str:
        """Render as Go source text.

        Names declared in ``package`` are left unqualified; names from any
        other package keep their qualifier.
        """
        kind = self.kind
        if kind is TypeKind.POINTER:
            return "*" + self._elem().go_type(package)
        if kind is TypeKind.SLICE:
            return "[]" + self._elem().go_type(package)
        if kind is TypeKind.ARRAY:
            return f"[{self.length or ''}]" + self._elem().go_type(package)
        if kind is TypeKind.MAP:
            key = self.key.go_type(package) if self.key is not None else "interface{}"
            return f"map[{key}]" + self._elem().go_type(package)
        if kind is TypeKind.CHAN:
            return f"{self.name or 'chan'} " + self._elem().go_type(package)
        if self.is_anonymous_struct:
            return _render_anonymous_struct(self.fields or (), package)
        if kind in (TypeKind.NAMED, TypeKind.STRUCT):
            if self.package and self.package != package:
                return f"{self.package}.{self.name}"
            return self.name or ""
        if kind is TypeKind.INTERFACE:
            return self.name or "interface{}"
        return self.name or ""

    def _elem(self) -> TypeRef:
        if self.elem is None:
            raise TypeParseError(self.kind.value, "missing element type")
        return self.elem

    def __str__(self) -> str:
        return self.go_type()


def _render_anonymous_struct(fields: tuple[FieldDescriptor, ...], package: str | None) -> str:
    if not fields:
        return "struct{}"
    parts = []
    for f in fields:
        text = f.type.go_type(package) if f.embedded else f"{f.name} {f.type.go_type(package)}"
        tag = render_tags(f.tags)
        if tag is not None:
            text += " " + tag
        parts.append(text)
    return "struct { " + "; ".join(parts) + " }"


# ---------------------------------------------------------------------------
# Type expression parser
# ---------------------------------------------------------------------------

_TOKEN_PATTERN = re.compile(
    r"""[ \t\r]*(?:
        (?P<raw>`[^`]*`)
      | (?P<string>"(?:[^"\\]|\\.)*")
      | (?P<ellipsis>\.\.\.)
      | (?P<arrow><-)
      | (?P<ident>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)?)
      | (?P<number>\d+)
      | (?P<sep>[;\n])
      | (?P<punct>[*\[\]{}(),])
    )""",
    re.VERBOSE,
)


def _tokenize(text: str) -> list[tuple[str, str, int, int]]:
    """Split ``text`` into ``(kind, value, start, end)`` tokens."""
    tokens: list[tuple[str, str, int, int]] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        if match is None or match.end() == pos:
            if text[pos:].strip() == "":
                break
            raise TypeParseError(text, f"unexpected character {text[pos]!r} at {pos}")
        kind = match.lastgroup
        if kind is not None:
            tokens.append((kind, match.group(kind), match.start(kind), match.end(kind)))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser over the token list of one type expression."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.index = 0

    def peek(self) -> tuple[str, str, int, int] | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def next(self) -> tuple[str, str, int, int]:
        token = self.peek()
        if token is None:
            raise TypeParseError(self.text, "unexpected end of input")
        self.index += 1
        return token

    def expect(self, value: str) -> tuple[str, str, int, int]:
        token = self.next()
        if token[1] != value:
            raise TypeParseError(self.text, f"expected '{value}', found '{token[1]}'")
        return token

    def skip_separators(self) -> None:
        while (token := self.peek()) is not None and token[0] == "sep":
            self.index += 1

    def parse(self) -> TypeRef:
        self.skip_separators()
        result = self.parse_type()
        self.skip_separators()
        token = self.peek()
        if token is not None:
            raise TypeParseError(self.text, f"trailing input '{token[1]}'")
        return result

    def parse_type(self) -> TypeRef:
        kind, value, start, _ = self.next()

        if value == "*":
            return TypeRef.pointer_to(self.parse_type())

        if value == "[":
            token = self.next()
            if token[1] == "]":
                return TypeRef.slice_of(self.parse_type())
            length = token[1]
            self.expect("]")
            return TypeRef.array_of(self.parse_type(), length)

        if value == "(":
            inner = self.parse_type()
            self.expect(")")
            return inner

        if value == "<-":
            self.expect("chan")
            return TypeRef(kind=TypeKind.CHAN, name="<-chan", elem=self.parse_type())

        if kind != "ident":
            raise TypeParseError(self.text, f"unexpected token '{value}'")

        if value == "map":
            self.expect("[")
            key = self.parse_type()
            self.expect("]")
            return TypeRef.map_of(key, self.parse_type())

        if value == "chan":
            direction = "chan"
            token = self.peek()
            if token is not None and token[0] == "arrow":
                self.index += 1
                direction = "chan<-"
            return TypeRef(kind=TypeKind.CHAN, name=direction, elem=self.parse_type())

        if value == "struct":
            return self.parse_struct_body()

        if value == "interface":
            end = self.skip_balanced("{", "}")
            body = " ".join(self.text[start:end].split())
            return TypeRef(kind=TypeKind.INTERFACE, name=body.replace("interface {", "interface{"))

        if value == "func":
            end = self.skip_balanced("(", ")")
            token = self.peek()
            if token is not None and token[1] == "(":
                end = self.skip_balanced("(", ")")
            elif token is not None and token[0] not in ("sep", "raw") and token[1] not in "]),}":
                self.parse_type()
                end = self.tokens[self.index - 1][3]
            return TypeRef(kind=TypeKind.FUNC, name=" ".join(self.text[start:end].split()))

        if value in _INTERFACE_BUILTINS:
            return TypeRef(kind=TypeKind.INTERFACE, name=value)

        if value in PRIMITIVE_TYPES:
            return TypeRef.primitive(value)

        package, _, name = value.rpartition(".")
        return TypeRef.named(name, package or None)

    def skip_balanced(self, opening: str, closing: str) -> int:
        """Consume a balanced bracket group and return its end offset."""
        self.expect(opening)
        depth = 1
        while depth:
            token = self.next()
            if token[1] == opening:
                depth += 1
            elif token[1] == closing:
                depth -= 1
        return self.tokens[self.index - 1][3]

    def parse_struct_body(self) -> TypeRef:
        from struct_copy.core.descriptors import FieldDescriptor

        self.expect("{")
        fields: list[FieldDescriptor] = []
        while True:
            self.skip_separators()
            token = self.peek()
            if token is None:
                raise TypeParseError(self.text, "unterminated struct")
            if token[1] == "}":
                self.index += 1
                break

            if token[1] == "*":
                # Embedded pointer field
                field_type = self.parse_type()
                embedded_name = field_type.elem.name if field_type.elem is not None else None
                fields.append(
                    FieldDescriptor(
                        name=embedded_name or field_type.go_type(),
                        type=field_type,
                        tags=self.parse_tag(),
                        embedded=True,
                    )
                )
                continue

            names = [self.next()[1]]
            while (token := self.peek()) is not None and token[1] == ",":
                self.index += 1
                names.append(self.next()[1])

            token = self.peek()
            if len(names) == 1 and (token is None or token[0] in ("sep", "raw") or token[1] == "}"):
                # Embedded field: the identifier is the type
                field_type = _Parser(names[0]).parse()
                embedded_name = field_type.name or names[0]
                tags = self.parse_tag()
                fields.append(
                    FieldDescriptor(name=embedded_name, type=field_type, tags=tags, embedded=True)
                )
                continue

            field_type = self.parse_type()
            tags = self.parse_tag()
            for name in names:
                fields.append(FieldDescriptor(name=name, type=field_type, tags=tags))
        return TypeRef(kind=TypeKind.STRUCT, fields=tuple(fields))

    def parse_tag(self) -> dict[str, str]:
        token = self.peek()
        if token is None or token[0] not in ("raw", "string"):
            return {}
        self.index += 1
        return parse_tag_text(token[1])


def parse_type(text: str) -> TypeRef:
    """Parse a Go type expression into a TypeRef.

    Raises:
        TypeParseError: If the text is empty or not a supported type expression.
    """
    if not text or not text.strip():
        raise TypeParseError(text, "empty type expression")
    return _Parser(text).parse()
