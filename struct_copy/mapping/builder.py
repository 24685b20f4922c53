"""Copy plan builder.

Compiles a MappingSet into a CopyPlan. Nested struct pairs are matched and
built recursively, once per (source type, destination type) pair. Failures
of individual fields are collected so independent sub-trees still complete;
they are raised together once the whole tree has been built.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import StructDescriptor
from struct_copy.core.enums import Compatibility, ConversionKind, MatchRule, TypeKind
from struct_copy.core.exceptions import (
    CyclicStructureError,
    IncompatiblePlanError,
    TypeIncompatibleError,
    UnmatchedRequiredFieldError,
)
from struct_copy.core.registry import StructIndex
from struct_copy.core.types import TypeRef
from struct_copy.mapping.compat import classify
from struct_copy.mapping.matcher import FieldMatcher
from struct_copy.mapping.plan import (
    Conversion,
    CopyPlan,
    FieldCopy,
    FieldMapping,
    MappingSet,
    PlanKey,
)

logger = logging.getLogger(__name__)

_COLLECTIONS = frozenset(
    {TypeKind.POINTER, TypeKind.SLICE, TypeKind.ARRAY, TypeKind.MAP}
)


class _StructResolver:
    """Resolves struct references through the index, then through known descriptors."""

    def __init__(self, index: StructIndex | None, known: Iterable[StructDescriptor] = ()) -> None:
        self._index = index
        self._known: dict[str, StructDescriptor] = {}
        for struct in known:
            self.remember(struct)

    def remember(self, struct: StructDescriptor) -> None:
        self._known.setdefault(struct.qualified_name, struct)

    def struct(self, ref: TypeRef, package: str | None) -> StructDescriptor | None:
        if ref.is_anonymous_struct:
            return StructDescriptor(
                name=ref.go_type(package), package=package, fields=ref.fields or ()
            )
        if ref.kind not in (TypeKind.STRUCT, TypeKind.NAMED) or not ref.name:
            return None
        if self._index is not None:
            found = self._index.resolve_struct(ref, package)
            if found is not None:
                return found
        qualified = f"{ref.package or package}.{ref.name}" if (ref.package or package) else ref.name
        return self._known.get(qualified) or self._known.get(ref.name)

    def direct_structs(self, ref: TypeRef, package: str | None) -> list[StructDescriptor]:
        """Structs stored inline in a value of type ``ref`` (no indirection)."""
        if ref.kind is TypeKind.ARRAY and ref.elem is not None:
            return self.direct_structs(ref.elem, package)
        found = self.struct(ref, package)
        return [found] if found is not None else []


def check_acyclic(
    root: StructDescriptor,
    index: StructIndex | None = None,
    known: Iterable[StructDescriptor] = (),
) -> None:
    """Ensure ``root`` never contains itself without a pointer, slice or map in between.

    Raises:
        CyclicStructureError: With the containment path of the first cycle found.
    """
    _check_acyclic(root, _StructResolver(index, [root, *known]), set())


def _check_acyclic(root: StructDescriptor, resolver: _StructResolver, done: set[str]) -> None:
    path: list[str] = []

    def visit(struct: StructDescriptor) -> None:
        name = struct.qualified_name
        if name in path:
            raise CyclicStructureError([*path[path.index(name) :], name])
        if name in done:
            return
        path.append(name)
        for f in struct.fields:
            for child in resolver.direct_structs(f.type, struct.package):
                visit(child)
        path.pop()
        done.add(name)

    visit(root)


class _TypeConflict(Exception):
    """Internal: a value of one type cannot be copied into another."""


class CopyPlanBuilder:
    """Builds CopyPlans from matcher output.

    Args:
        config: Matching options used for nested pairs.
        index: Resolves nested struct references.
        matcher: Matcher for nested pairs; defaults to FieldMatcher(config, index).
    """

    def __init__(
        self,
        config: CopyConfig | None = None,
        index: StructIndex | None = None,
        matcher: FieldMatcher | None = None,
    ) -> None:
        self._config = config or CopyConfig()
        self._index = index
        self._matcher = matcher or FieldMatcher(self._config, index)

    def build(self, mappings: MappingSet) -> CopyPlan:
        """Compile and validate ``mappings`` into a CopyPlan.

        Raises:
            CyclicStructureError: If a struct contains itself directly.
            UnmatchedRequiredFieldError: If one required field has no source.
            TypeIncompatibleError: If one matched pair cannot be copied.
            IncompatiblePlanError: If several fields fail; ``errors`` lists them.
        """
        run = _BuildRun(self._matcher, self._index, mappings)
        plan = run.build(mappings)

        issues = plan.all_issues
        if len(issues) == 1:
            issues[0].partial_plan = plan
            raise issues[0]
        if issues:
            raise IncompatiblePlanError(
                f"{len(issues)} fields cannot be copied: " + "; ".join(str(i) for i in issues),
                errors=issues,
                partial_plan=plan,
            )

        logger.debug(
            "Built copy plan %s -> %s with %d nested plans",
            plan.key[0],
            plan.key[1],
            len(plan.plans()) - 1,
        )
        return plan


class _BuildRun:
    """State of one build() call: finished plans, pairs in progress, checked structs."""

    def __init__(self, matcher: FieldMatcher, index: StructIndex | None, root: MappingSet) -> None:
        self._matcher = matcher
        self._index = index
        self._resolver = _StructResolver(index, [root.source, root.destination])
        self._built: dict[PlanKey, CopyPlan] = {}
        self._in_progress: set[PlanKey] = set()
        self._acyclic: set[str] = set()

    def build(self, mappings: MappingSet) -> CopyPlan:
        source, destination = mappings.source, mappings.destination
        for struct in (source, destination):
            self._resolver.remember(struct)
            _check_acyclic(struct, self._resolver, self._acyclic)

        key = (source.qualified_name, destination.qualified_name)
        self._in_progress.add(key)
        nested: list[CopyPlan] = []
        copies: list[FieldCopy] = []
        issues: list[IncompatiblePlanError] = []

        for mapping in mappings:
            try:
                copies.append(FieldCopy(mapping, self._field_conversion(mapping, mappings, nested)))
            except IncompatiblePlanError as e:
                logger.debug("Sub-tree aborted: %s", e)
                issues.append(e)
                copies.append(FieldCopy(mapping))

        self._in_progress.discard(key)
        plan = CopyPlan(
            source=source,
            destination=destination,
            copies=copies,
            nested=nested,
            issues=issues,
        )
        self._built[key] = plan
        return plan

    def _field_conversion(
        self,
        mapping: FieldMapping,
        mappings: MappingSet,
        nested: list[CopyPlan],
    ) -> Conversion | None:
        destination = mappings.destination
        field = mapping.destination
        dst_type = mapping.destination_type or field.type

        if not mapping.is_matched:
            if field.is_required:
                raise UnmatchedRequiredFieldError(destination.name, field.name)
            return None

        if mapping.rule is MatchRule.EMBEDDED:
            src_type = mappings.source.type_ref
        else:
            assert mapping.source is not None
            src_type = mapping.source_type or mapping.source.type

        if mapping.compatibility is Compatibility.INCOMPATIBLE:
            raise TypeIncompatibleError(destination.name, field.name, str(src_type), str(dst_type))
        try:
            return self._conversion(src_type, dst_type, mappings, nested)
        except _TypeConflict:
            raise TypeIncompatibleError(
                destination.name, field.name, str(src_type), str(dst_type)
            ) from None

    def _conversion(
        self,
        src: TypeRef,
        dst: TypeRef,
        mappings: MappingSet,
        nested: list[CopyPlan],
    ) -> Conversion:
        src = self._as_struct(src, mappings.source.package)
        dst = self._as_struct(dst, mappings.destination.package)
        s_kind, d_kind = src.kind, dst.kind

        if d_kind is TypeKind.INTERFACE:
            if classify(src, dst, self._index) is Compatibility.INCOMPATIBLE:
                raise _TypeConflict
            return Conversion(ConversionKind.ASSIGN, src, dst)

        collection = self._named_collection(src, dst, mappings, nested)
        if collection is not None:
            return collection

        if s_kind is TypeKind.POINTER and d_kind is TypeKind.POINTER:
            inner = self._conversion(_elem(src), _elem(dst), mappings, nested)
            return Conversion(ConversionKind.POINTER, src, dst, elem=inner)
        if s_kind is TypeKind.POINTER:
            inner = self._conversion(_elem(src), dst, mappings, nested)
            return Conversion(ConversionKind.DEREF, src, dst, elem=inner)
        if d_kind is TypeKind.POINTER:
            inner = self._conversion(src, _elem(dst), mappings, nested)
            return Conversion(ConversionKind.ADDRESS, src, dst, elem=inner)

        if s_kind is TypeKind.SLICE and d_kind is TypeKind.SLICE:
            inner = self._conversion(_elem(src), _elem(dst), mappings, nested)
            return Conversion(ConversionKind.SLICE, src, dst, elem=inner)
        if s_kind is TypeKind.ARRAY and d_kind is TypeKind.ARRAY:
            if src.length != dst.length:
                raise _TypeConflict
            inner = self._conversion(_elem(src), _elem(dst), mappings, nested)
            return Conversion(ConversionKind.ARRAY, src, dst, elem=inner)
        if s_kind is TypeKind.MAP and d_kind is TypeKind.MAP:
            if src.key is None or dst.key is None:
                raise _TypeConflict
            key = self._conversion(src.key, dst.key, mappings, nested)
            value = self._conversion(_elem(src), _elem(dst), mappings, nested)
            return Conversion(ConversionKind.MAP, src, dst, elem=value, key=key)

        if s_kind is TypeKind.STRUCT and d_kind is TypeKind.STRUCT:
            src_struct = self._resolver.struct(src, mappings.source.package)
            dst_struct = self._resolver.struct(dst, mappings.destination.package)
            if src_struct is None or dst_struct is None:
                # Opaque struct outside the index: only an identical type can be assigned
                if src == dst:
                    return Conversion(ConversionKind.ASSIGN, src, dst)
                raise _TypeConflict
            plan_key = self._nested_plan(src_struct, dst_struct, nested)
            return Conversion(ConversionKind.NESTED, src, dst, plan_key=plan_key)

        compatibility = classify(src, dst, self._index)
        if compatibility is Compatibility.IDENTICAL:
            return Conversion(ConversionKind.ASSIGN, src, dst)
        if compatibility is Compatibility.INCOMPATIBLE:
            raise _TypeConflict
        return Conversion(ConversionKind.CONVERT, src, dst)

    def _named_collection(
        self,
        src: TypeRef,
        dst: TypeRef,
        mappings: MappingSet,
        nested: list[CopyPlan],
    ) -> Conversion | None:
        """Element-wise conversion for named types over pointers, slices, arrays or maps.

        The conversion keeps the named types so emitters allocate the declared type.
        """
        if self._index is None or TypeKind.NAMED not in (src.kind, dst.kind):
            return None
        s_under = self._index.underlying(src, mappings.source.package)
        d_under = self._index.underlying(dst, mappings.destination.package)
        if (s_under, d_under) == (src, dst):
            return None
        if s_under.kind not in _COLLECTIONS and d_under.kind not in _COLLECTIONS:
            return None
        if classify(s_under, d_under, self._index) is Compatibility.IDENTICAL:
            # Same underlying type: a plain Go conversion
            return None
        inner = self._conversion(s_under, d_under, mappings, nested)
        return replace(inner, source_type=src, destination_type=dst)

    def _as_struct(self, ref: TypeRef, package: str | None) -> TypeRef:
        """Treat a named reference to a known struct as a struct reference."""
        if ref.kind is TypeKind.NAMED:
            found = self._resolver.struct(ref, package)
            if found is not None:
                return found.type_ref
        return ref

    def _nested_plan(
        self,
        source: StructDescriptor,
        destination: StructDescriptor,
        nested: list[CopyPlan],
    ) -> PlanKey:
        key = (source.qualified_name, destination.qualified_name)
        if key in self._built or key in self._in_progress:
            return key
        logger.debug("Building nested plan %s -> %s", key[0], key[1])
        nested.append(self.build(self._matcher.match(source, destination)))
        return key


def _elem(ref: TypeRef) -> TypeRef:
    if ref.elem is None:
        raise _TypeConflict
    return ref.elem
