"""struct_copy - Go struct-to-struct copy function generator."""

from __future__ import annotations

from struct_copy.copier import CopyResult, StructCopier
from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import AliasDescriptor, FieldDescriptor, StructDescriptor
from struct_copy.core.enums import (
    Compatibility,
    ConversionKind,
    EmitTarget,
    MatchRule,
    TypeKind,
)
from struct_copy.core.exceptions import (
    CopyExecutionError,
    CyclicStructureError,
    DescriptorError,
    DuplicateStructError,
    EmitterError,
    IncompatiblePlanError,
    MappingError,
    StructCopyError,
    StructNotFoundError,
    TypeIncompatibleError,
    TypeParseError,
    UnmatchedRequiredFieldError,
)
from struct_copy.core.registry import StructIndex
from struct_copy.core.types import TypeRef
from struct_copy.emitters.protocol import Emitter
from struct_copy.expand.expander import ExpandResult, StructExpander
from struct_copy.mapping.builder import CopyPlanBuilder
from struct_copy.mapping.matcher import FieldMatcher
from struct_copy.mapping.plan import CopyPlan, FieldMapping, MappingSet

__all__ = [
    # Facade
    "StructCopier",
    "CopyResult",
    "CopyConfig",
    # Descriptors
    "TypeRef",
    "FieldDescriptor",
    "StructDescriptor",
    "AliasDescriptor",
    "StructIndex",
    # Mapping
    "FieldMatcher",
    "CopyPlanBuilder",
    "MappingSet",
    "FieldMapping",
    "CopyPlan",
    # Emission
    "Emitter",
    # Expansion
    "StructExpander",
    "ExpandResult",
    # Enums
    "TypeKind",
    "MatchRule",
    "Compatibility",
    "EmitTarget",
    "ConversionKind",
    # Exceptions
    "StructCopyError",
    "DescriptorError",
    "TypeParseError",
    "StructNotFoundError",
    "DuplicateStructError",
    "MappingError",
    "IncompatiblePlanError",
    "UnmatchedRequiredFieldError",
    "TypeIncompatibleError",
    "CyclicStructureError",
    "EmitterError",
    "CopyExecutionError",
]
