"""Emitters turning a CopyPlan into an artifact.

Emitter classes are loaded lazily by StructCopier; import them from their
modules when used directly.
"""

from struct_copy.emitters.protocol import Emitter

__all__ = ["Emitter"]
