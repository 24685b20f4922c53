"""Mapping layer - match fields and compile copy plans."""

from __future__ import annotations

from struct_copy.mapping.builder import CopyPlanBuilder, check_acyclic
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

__all__ = [
    "FieldMatcher",
    "CopyPlanBuilder",
    "check_acyclic",
    "classify",
    "MappingSet",
    "FieldMapping",
    "Conversion",
    "FieldCopy",
    "CopyPlan",
    "PlanKey",
]
