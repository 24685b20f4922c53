"""Struct expansion into standalone Go definitions."""

from struct_copy.expand.expander import ExpandResult, StructExpander

__all__ = ["ExpandResult", "StructExpander"]
