"""Copy plan data classes.

Frozen dataclasses representing matched fields and compiled copy plans.
Produced by FieldMatcher and CopyPlanBuilder, consumed by the emitters.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import overload

from struct_copy.core.descriptors import FieldDescriptor, StructDescriptor
from struct_copy.core.enums import Compatibility, ConversionKind, MatchRule
from struct_copy.core.exceptions import IncompatiblePlanError
from struct_copy.core.types import TypeRef

# (source qualified type, destination qualified type)
PlanKey = tuple[str, str]


@dataclass(frozen=True)
class FieldMapping:
    """Decision for one destination field.

    ``source`` is None for unmatched fields and for ``embedded`` mappings,
    which fill an embedded destination struct from the whole source struct.
    ``source_path`` names the embedded source fields traversed to reach a
    promoted source field. ``source_type`` and ``destination_type`` are the
    field types normalized against the struct index.
    """

    destination: FieldDescriptor
    source: FieldDescriptor | None = None
    rule: MatchRule = MatchRule.UNMATCHED
    compatibility: Compatibility | None = None
    source_path: tuple[str, ...] = ()
    source_type: TypeRef | None = None
    destination_type: TypeRef | None = None

    @property
    def is_matched(self) -> bool:
        return self.rule is not MatchRule.UNMATCHED

    @property
    def lossy(self) -> bool:
        return self.compatibility is Compatibility.LOSSY

    @property
    def source_selector(self) -> tuple[str, ...]:
        """Field names to follow from the source value, outermost first."""
        if self.source is None:
            return ()
        return (*self.source_path, self.source.name)


@dataclass(frozen=True)
class MappingSet(Sequence[FieldMapping]):
    """Matcher output: one FieldMapping per destination field, in destination order."""

    source: StructDescriptor
    destination: StructDescriptor
    mappings: tuple[FieldMapping, ...] = ()

    @overload
    def __getitem__(self, index: int) -> FieldMapping: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[FieldMapping]: ...

    def __getitem__(self, index: int | slice) -> FieldMapping | Sequence[FieldMapping]:
        return self.mappings[index]

    def __len__(self) -> int:
        return len(self.mappings)

    def get(self, destination_name: str) -> FieldMapping | None:
        """Mapping for the named destination field."""
        for mapping in self.mappings:
            if mapping.destination.name == destination_name:
                return mapping
        return None

    @property
    def unmatched(self) -> list[FieldMapping]:
        return [m for m in self.mappings if not m.is_matched]


@dataclass(frozen=True)
class Conversion:
    """Copy instruction for one value.

    Collection conversions carry a single element conversion that applies to
    every element; map conversions carry a key conversion as well. Nested
    conversions refer to their CopyPlan by key.
    """

    kind: ConversionKind
    source_type: TypeRef
    destination_type: TypeRef
    elem: Conversion | None = None
    key: Conversion | None = None
    plan_key: PlanKey | None = None

    @property
    def is_simple(self) -> bool:
        """True when the conversion is a single expression (no statements)."""
        return self.kind in (ConversionKind.ASSIGN, ConversionKind.CONVERT, ConversionKind.NESTED)


@dataclass(frozen=True)
class FieldCopy:
    """One destination field and how it is filled; ``conversion`` is None when it is not."""

    mapping: FieldMapping
    conversion: Conversion | None = None

    @property
    def destination_name(self) -> str:
        return self.mapping.destination.name


@dataclass(frozen=True)
class CopyPlan:
    """Compiled plan for one (source struct, destination struct) pair.

    ``copies`` follow destination declaration order. ``nested`` holds the
    plans first built under this one; a pair already built elsewhere in the
    tree is only referenced by key from a Conversion. ``issues`` lists the
    failures that aborted sub-trees of this plan.
    """

    source: StructDescriptor
    destination: StructDescriptor
    copies: list[FieldCopy] = field(default_factory=list)
    nested: list[CopyPlan] = field(default_factory=list)
    issues: list[IncompatiblePlanError] = field(default_factory=list)

    @property
    def key(self) -> PlanKey:
        return (self.source.qualified_name, self.destination.qualified_name)

    @property
    def mappings(self) -> list[FieldMapping]:
        return [c.mapping for c in self.copies]

    def walk(self) -> Iterator[CopyPlan]:
        """Yield this plan and every nested plan once, depth-first."""
        seen: set[PlanKey] = set()
        stack = [self]
        while stack:
            plan = stack.pop()
            if plan.key in seen:
                continue
            seen.add(plan.key)
            yield plan
            stack.extend(reversed(plan.nested))

    def plans(self) -> dict[PlanKey, CopyPlan]:
        """All plans in the tree by key."""
        return {plan.key: plan for plan in self.walk()}

    @property
    def all_issues(self) -> list[IncompatiblePlanError]:
        return [issue for plan in self.walk() for issue in plan.issues]

    @property
    def ok(self) -> bool:
        return not self.all_issues
