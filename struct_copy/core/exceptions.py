"""struct-copy exception hierarchy.

Every failure the library reports is a StructCopyError. Callers that want a
result object instead of an exception use StructCopier.generate().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from struct_copy.mapping.plan import CopyPlan


class StructCopyError(Exception):
    """Base exception for all struct-copy errors."""


# --- Descriptors ---


class DescriptorError(StructCopyError):
    """Base for descriptor and index errors."""


class TypeParseError(DescriptorError):
    """Raised when a Go type expression cannot be parsed."""

    def __init__(self, text: str, detail: str) -> None:
        self.text = text
        super().__init__(f"Cannot parse type '{text}': {detail}")


class StructNotFoundError(DescriptorError):
    """Raised when a struct or named type is not present in the index."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Struct not found: '{type_name}'")


class DuplicateStructError(DescriptorError):
    """Raised when two descriptors resolve to the same qualified name."""

    def __init__(self, type_name: str, origin_a: str, origin_b: str) -> None:
        self.type_name = type_name
        super().__init__(f"Duplicate type name '{type_name}': {origin_a} and {origin_b}")


# --- Mapping ---


class MappingError(StructCopyError):
    """Base for matching and plan errors."""


class IncompatiblePlanError(MappingError):
    """Raised when a copy plan cannot be built without losing data.

    When several sub-trees fail, one IncompatiblePlanError is raised with
    every individual failure in ``errors``. ``partial_plan`` holds the plan
    with the failed sub-trees left out.
    """

    def __init__(
        self,
        message: str,
        errors: list[IncompatiblePlanError] | None = None,
        partial_plan: CopyPlan | None = None,
    ) -> None:
        self.errors = errors if errors is not None else [self]
        self.partial_plan = partial_plan
        super().__init__(message)


class UnmatchedRequiredFieldError(IncompatiblePlanError):
    """Raised when a required destination field has no source."""

    def __init__(self, struct_name: str, field_name: str) -> None:
        self.struct_name = struct_name
        self.field_name = field_name
        super().__init__(f"Required field {struct_name}.{field_name} has no source field")


class TypeIncompatibleError(IncompatiblePlanError):
    """Raised when matched fields have irreconcilable types."""

    def __init__(
        self,
        struct_name: str,
        field_name: str,
        source_type: str,
        destination_type: str,
    ) -> None:
        self.struct_name = struct_name
        self.field_name = field_name
        self.source_type = source_type
        self.destination_type = destination_type
        super().__init__(
            f"Cannot copy {source_type} into {struct_name}.{field_name} ({destination_type})"
        )


class CyclicStructureError(MappingError):
    """Raised when a struct contains itself without an indirection."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Cyclic struct containment: {' -> '.join(cycle)}")


# --- Emitters ---


class EmitterError(StructCopyError):
    """Base for emitter errors."""


class CopyExecutionError(EmitterError):
    """Raised when a compiled copy callable fails on a value."""

    def __init__(self, plan_key: Any, detail: str) -> None:
        self.plan_key = plan_key
        super().__init__(f"Copy {plan_key[0]} -> {plan_key[1]} failed: {detail}")
