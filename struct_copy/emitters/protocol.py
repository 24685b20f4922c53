"""Emitter protocol.

Every emitter turns a CopyPlan into an artifact for one EmitTarget. The
StructCopier picks the emitter for CopyConfig.target.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from struct_copy.core.enums import EmitTarget
from struct_copy.mapping.plan import CopyPlan


@runtime_checkable
class Emitter(Protocol):
    """Copy plan emitter protocol."""

    @property
    def target(self) -> EmitTarget:
        """Artifact kind this emitter produces."""
        ...

    def emit(self, plan: CopyPlan) -> Any:
        """Render ``plan`` (and every nested plan once) into the artifact."""
        ...
