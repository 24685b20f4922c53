"""Unique Go identifier reservation.

Generated definitions and functions share one namespace per artifact. A
name is reserved once per owner key; later requests for the same key get
the same name back.
"""

from __future__ import annotations

import re
from collections.abc import Hashable, Iterable

_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]+")


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:] if name else name


def to_identifier(text: str, fallback: str = "Type") -> str:
    """Collapse arbitrary text into a CamelCase Go identifier."""
    parts = [p for p in _NON_IDENTIFIER.split(text) if p]
    ident = "".join(capitalize(p) for p in parts)
    if not ident or ident[0].isdigit():
        ident = fallback + ident
    return ident


def last_segment(import_path: str) -> str:
    """``github.com/acme/models`` -> ``models``."""
    return import_path.rstrip("/").rsplit("/", 1)[-1]


class NameReserver:
    """Hands out unique names, trying candidates in order, then numeric suffixes."""

    def __init__(self) -> None:
        self._taken: set[str] = set()
        self._by_owner: dict[Hashable, str] = {}

    def name_for(self, owner: Hashable) -> str | None:
        return self._by_owner.get(owner)

    def reserve(self, candidates: Iterable[str], owner: Hashable | None = None) -> tuple[str, bool]:
        """Reserve the first free candidate.

        Returns:
            ``(name, newly_reserved)``. ``newly_reserved`` is False when
            ``owner`` already holds a name.
        """
        if owner is not None and owner in self._by_owner:
            return self._by_owner[owner], False

        names = [c for c in candidates if c]
        for candidate in names:
            if candidate not in self._taken:
                return self._claim(candidate, owner), True

        base = names[-1] if names else "Type"
        counter = 2
        while f"{base}{counter}" in self._taken:
            counter += 1
        return self._claim(f"{base}{counter}", owner), True

    def _claim(self, name: str, owner: Hashable | None) -> str:
        self._taken.add(name)
        if owner is not None:
            self._by_owner[owner] = name
        return name

    def __contains__(self, name: str) -> bool:
        return name in self._taken


def type_name_candidates(name: str, package: str | None, import_path: str | None) -> list[str]:
    """Candidates for a type name: as is, package-prefixed, import-path-prefixed."""
    result = [name]
    if package:
        result.append(capitalize(package) + name)
    if import_path:
        segment = last_segment(import_path)
        if segment:
            result.append(capitalize(segment) + name)
    return result
