"""Callable emitter.

Compiles a CopyPlan tree into a Python callable that copies a source value
into a new destination value. Source values are read as mappings (by field
name) or through attributes. Destination values are built by a factory per
struct, looked up in CopyConfig.factories by qualified name, then by simple
name; the default factory is ``dict``.

Values follow Go semantics where Python differs:

- integer conversions wrap around to the destination width
- float to integer conversions truncate toward zero
- float32 destinations are rounded to single precision
- nil (None) pointers, slices and maps stay nil
- a nil pointer copied into a struct value yields that struct's zero value,
  built by its factory from the zero values of its fields

Nested plans are compiled once per plan key and referenced lazily, so
recursive types copy through their pointers without compiling forever.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import StructDescriptor
from struct_copy.core.enums import ConversionKind, EmitTarget, MatchRule, TypeKind
from struct_copy.core.exceptions import CopyExecutionError, EmitterError
from struct_copy.core.registry import StructIndex
from struct_copy.core.types import (
    COMPLEX_TYPES,
    FLOAT_TYPES,
    INTEGER_TYPES,
    TypeRef,
    canonical_primitive,
)
from struct_copy.mapping.plan import Conversion, CopyPlan, FieldCopy, PlanKey

logger = logging.getLogger(__name__)

Converter = Callable[[Any], Any]


class CopyFunction:
    """Compiled copy for one plan tree.

    Call it with a source value to get a new destination value.
    """

    def __init__(self, plan: CopyPlan, functions: dict[PlanKey, Converter]) -> None:
        self._plan = plan
        self._functions = functions

    @property
    def plan(self) -> CopyPlan:
        return self._plan

    @property
    def key(self) -> PlanKey:
        return self._plan.key

    def __call__(self, value: Any) -> Any:
        return self._functions[self._plan.key](value)

    def copy_many(self, values: Iterable[Any]) -> list[Any]:
        """Copy every value, preserving order."""
        return [self(value) for value in values]

    def __repr__(self) -> str:
        return f"CopyFunction({self.key[0]} -> {self.key[1]})"


class CallableEmitter:
    """Emits CopyFunction callables for the ``callable`` target.

    Args:
        config: Uses ``factories``.
        index: Resolves named non-struct types to their underlying type, so
               conversions into aliases of numeric types still wrap.
    """

    def __init__(self, config: CopyConfig | None = None, index: StructIndex | None = None) -> None:
        self._config = config or CopyConfig()
        self._index = index

    @property
    def target(self) -> EmitTarget:
        return EmitTarget.CALLABLE

    def emit(self, plan: CopyPlan) -> CopyFunction:
        """Compile ``plan`` and every nested plan into a CopyFunction."""
        functions: dict[PlanKey, Converter] = {}
        structs = {p.destination.qualified_name: p.destination for p in plan.walk()}
        for nested in plan.walk():
            functions[nested.key] = _StructCopier(nested, self, functions, structs)
        logger.debug("Compiled %d copy functions for %s -> %s", len(functions), *plan.key)
        return CopyFunction(plan, functions)

    # --- Factories ---

    def factory(self, descriptor: StructDescriptor) -> Callable[..., Any]:
        factories = self._config.factories
        return factories.get(descriptor.qualified_name) or factories.get(descriptor.name) or dict

    # --- Converters ---

    def converter(
        self,
        conv: Conversion,
        functions: dict[PlanKey, Converter],
        structs: Mapping[str, StructDescriptor] | None = None,
    ) -> Converter:
        """Build the function that carries one value through ``conv``.

        ``structs`` maps qualified names to destination structs whose zero
        values a nil pointer may have to produce.
        """
        kind = conv.kind
        if kind is ConversionKind.ASSIGN:
            return _identity
        if kind is ConversionKind.CONVERT:
            return self._value_converter(conv.destination_type)
        if kind is ConversionKind.NESTED:
            plan_key = conv.plan_key
            if plan_key is None:
                raise EmitterError("Nested conversion without a plan key")

            def nested(value: Any) -> Any:
                return functions[plan_key](value)

            return nested

        elem = self.converter(_elem(conv), functions, structs)
        if kind in (ConversionKind.POINTER, ConversionKind.ADDRESS):
            # Pointers are plain references in Python
            return lambda value: None if value is None else elem(value)
        if kind is ConversionKind.DEREF:
            zero = self.zero_value(conv.destination_type, structs)
            return lambda value: zero() if value is None else elem(value)
        if kind is ConversionKind.SLICE:
            return lambda value: None if value is None else [elem(item) for item in value]
        if kind is ConversionKind.ARRAY:
            return lambda value: [elem(item) for item in value]
        if kind is ConversionKind.MAP:
            if conv.key is None:
                raise EmitterError("Map conversion without a key conversion")
            key = self.converter(conv.key, functions, structs)
            return lambda value: (
                None if value is None else {key(k): elem(v) for k, v in value.items()}
            )
        raise EmitterError(f"Unsupported conversion kind: {kind.value}")

    def _value_converter(self, destination: TypeRef) -> Converter:
        if self._index is not None:
            destination = self._index.underlying(destination)
        if destination.kind is not TypeKind.PRIMITIVE or not destination.name:
            return _identity
        name = canonical_primitive(destination.name)
        if name in INTEGER_TYPES:
            bits, signed = INTEGER_TYPES[name]
            return lambda value: wrap_integer(value, bits, signed)
        if name == "float32":
            return to_float32
        if name in FLOAT_TYPES:
            return float
        if name in COMPLEX_TYPES:
            return complex
        return _identity

    def zero_value(
        self,
        ref: TypeRef,
        structs: Mapping[str, StructDescriptor] | None = None,
        package: str | None = None,
    ) -> Callable[[], Any]:
        """Factory for the Go zero value of ``ref`` declared in ``package``."""
        if self._index is not None:
            ref = self._index.underlying(ref, package)
        if ref.kind is TypeKind.PRIMITIVE and ref.name:
            name = canonical_primitive(ref.name)
            if name in INTEGER_TYPES:
                return int
            if name in FLOAT_TYPES:
                return float
            if name in COMPLEX_TYPES:
                return complex
            if name == "string":
                return str
            if name == "bool":
                return bool
        if ref.kind is TypeKind.ARRAY and ref.elem is not None and (ref.length or "").isdigit():
            length = int(ref.length or 0)
            elem_zero = self.zero_value(ref.elem, structs, package)
            return lambda: [elem_zero() for _ in range(length)]
        if ref.kind in (TypeKind.STRUCT, TypeKind.NAMED):
            descriptor = self._struct(ref, structs or {}, package)
            if descriptor is not None:
                return self.zero_struct(descriptor, structs)
        # Nil-able kinds and structs nothing describes
        return _none

    def zero_struct(
        self,
        descriptor: StructDescriptor,
        structs: Mapping[str, StructDescriptor] | None = None,
    ) -> Callable[[], Any]:
        """Factory building ``descriptor`` from the zero values of its fields."""
        factory = self.factory(descriptor)
        fields = [
            (f.name, self.zero_value(f.type, structs, descriptor.package))
            for f in descriptor.fields
        ]
        return lambda: factory(**{name: zero() for name, zero in fields})

    def _struct(
        self,
        ref: TypeRef,
        structs: Mapping[str, StructDescriptor],
        package: str | None,
    ) -> StructDescriptor | None:
        if ref.is_anonymous_struct:
            return StructDescriptor(
                name=ref.go_type(package), package=package, fields=ref.fields or ()
            )
        if self._index is not None:
            found = self._index.resolve_struct(ref, package)
            if found is not None:
                return found
        if not ref.name:
            return None
        owner = ref.package or package
        qualified = f"{owner}.{ref.name}" if owner else ref.name
        return structs.get(qualified) or structs.get(ref.name)


class _StructCopier:
    """Copies one struct pair; the callable registered for a plan key."""

    def __init__(
        self,
        plan: CopyPlan,
        emitter: CallableEmitter,
        functions: dict[PlanKey, Converter],
        structs: Mapping[str, StructDescriptor],
    ) -> None:
        self._plan = plan
        self._factory = emitter.factory(plan.destination)
        self._steps: list[tuple[str, Converter]] = []
        for field_copy in plan.copies:
            step = self._step(field_copy, emitter, functions, structs, plan.destination.package)
            self._steps.append((field_copy.destination_name, step))

    @staticmethod
    def _step(
        field_copy: FieldCopy,
        emitter: CallableEmitter,
        functions: dict[PlanKey, Converter],
        structs: Mapping[str, StructDescriptor],
        package: str | None,
    ) -> Converter:
        mapping = field_copy.mapping
        if field_copy.conversion is None:
            dst_type = mapping.destination_type or mapping.destination.type
            zero = emitter.zero_value(dst_type, structs, package)
            return lambda _source: zero()
        convert = emitter.converter(field_copy.conversion, functions, structs)
        if mapping.rule is MatchRule.EMBEDDED:
            return convert
        selector = mapping.source_selector
        return lambda source: convert(_select(source, selector))

    def __call__(self, source: Any) -> Any:
        if source is None:
            raise CopyExecutionError(self._plan.key, "source value is None")
        try:
            values = {name: step(source) for name, step in self._steps}
            return self._factory(**values)
        except CopyExecutionError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
            raise CopyExecutionError(self._plan.key, str(e)) from e


def _select(source: Any, selector: tuple[str, ...]) -> Any:
    value = source
    for name in selector:
        if isinstance(value, Mapping):
            if name not in value:
                raise KeyError(f"missing field '{name}'")
            value = value[name]
        else:
            value = getattr(value, name)
    return value


def wrap_integer(value: Any, bits: int, signed: bool) -> int:
    """Convert to a Go integer of the given width: truncate, then wrap around."""
    number = int(value)
    mask = (1 << bits) - 1
    number &= mask
    if signed and number >= 1 << (bits - 1):
        number -= 1 << bits
    return number


def to_float32(value: Any) -> float:
    """Round to the nearest single-precision value."""
    return struct.unpack("f", struct.pack("f", float(value)))[0]


def _identity(value: Any) -> Any:
    return value


def _none() -> None:
    return None


def _elem(conv: Conversion) -> Conversion:
    if conv.elem is None:
        raise EmitterError(f"{conv.kind.value} conversion without an element conversion")
    return conv.elem
