"""Copy configuration.

CopyConfig is a frozen Pydantic model. Field names are snake_case; the
camelCase spellings used by host integrations (``matchCaseInsensitive``,
``useTagAliases``) are accepted as aliases.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from struct_copy.core.enums import EmitTarget


class CopyConfig(BaseModel):
    """Options for matching, plan building and emission."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    match_case_insensitive: bool = True
    use_tag_aliases: bool = True
    target: EmitTarget = EmitTarget.SOURCE_TEXT

    # Tag keys whose names act as field aliases, in priority order
    alias_tag_keys: tuple[str, ...] = ("copy", "json")
    # Offer fields promoted from embedded source structs as candidates
    promote_embedded: bool = True

    # Source-text target
    function_prefix: str = "copy"
    package: str | None = None
    indent: str = "\t"

    # Callable target: struct qualified name -> constructor taking field kwargs
    factories: dict[str, Callable[..., Any]] = {}
