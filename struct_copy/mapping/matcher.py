"""Field matcher - pairs destination fields with source fields.

For each destination field the rules are tried in priority order and the
first that produces a type-compatible candidate wins:

1. exact name, identical or convertible type   -> exact-name
2. exact name, lossy type                      -> exact-name (lossy)
3. case-insensitive name                       -> case-insensitive
4. tag alias declared on either side           -> tag-alias
5. embedded destination struct, no candidate   -> embedded

Within a rule, source declaration order breaks ties. When the only
candidates have irreconcilable types, the first of them is kept so the plan
builder can report the type conflict instead of silently dropping the field.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import FieldDescriptor, StructDescriptor
from struct_copy.core.enums import Compatibility, MatchRule, TypeKind
from struct_copy.core.registry import StructIndex
from struct_copy.core.tags import alias_names
from struct_copy.core.types import TypeRef
from struct_copy.mapping.compat import classify
from struct_copy.mapping.plan import FieldMapping, MappingSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    """A source field reachable from the source struct."""

    field: FieldDescriptor
    type: TypeRef
    path: tuple[str, ...] = ()


class FieldMatcher:
    """Pure source-to-destination field matcher.

    Args:
        config: Matching options. Defaults to CopyConfig().
        index: Resolves named types and embedded structs. Without it, types
               are compared as written and promoted fields are not offered.
    """

    def __init__(self, config: CopyConfig | None = None, index: StructIndex | None = None) -> None:
        self._config = config or CopyConfig()
        self._index = index

    @property
    def config(self) -> CopyConfig:
        return self._config

    @property
    def index(self) -> StructIndex | None:
        return self._index

    def normalize(self, ref: TypeRef, package: str | None) -> TypeRef:
        """Normalize a field type declared in ``package``."""
        if self._index is None:
            return ref
        return self._index.normalize(ref, package)

    def match(self, source: StructDescriptor, destination: StructDescriptor) -> MappingSet:
        """Match every destination field against the source struct."""
        candidates = self._candidates(source)
        mappings = tuple(
            self._match_field(dst_field, destination, candidates)
            for dst_field in destination.fields
        )
        logger.debug(
            "Matched %s -> %s: %d of %d fields",
            source.qualified_name,
            destination.qualified_name,
            sum(1 for m in mappings if m.is_matched),
            len(mappings),
        )
        return MappingSet(source=source, destination=destination, mappings=mappings)

    # --- Candidates ---

    def _candidates(self, source: StructDescriptor) -> list[_Candidate]:
        """Direct fields first, then promoted fields, shallowest depth first.

        A name declared twice at the same promotion depth is ambiguous, so
        neither field is offered and deeper fields with that name stay hidden.
        """
        result: list[_Candidate] = []
        seen_names: set[str] = set()
        visited: set[str] = {source.qualified_name}
        level: list[tuple[StructDescriptor, tuple[str, ...]]] = [(source, ())]

        while level:
            next_level: list[tuple[StructDescriptor, tuple[str, ...]]] = []
            found: list[_Candidate] = []
            counts: dict[str, int] = {}
            for struct, path in level:
                for f in struct.fields:
                    if f.is_skipped:
                        continue
                    if f.name not in seen_names:
                        counts[f.name] = counts.get(f.name, 0) + 1
                        found.append(_Candidate(f, self.normalize(f.type, struct.package), path))
                    embedded = self._promotable(f, struct.package)
                    if embedded is not None and embedded.qualified_name not in visited:
                        visited.add(embedded.qualified_name)
                        next_level.append((embedded, (*path, f.name)))
            for candidate in found:
                if counts[candidate.field.name] == 1:
                    result.append(candidate)
                else:
                    logger.debug("Promoted field %s is ambiguous", candidate.field.name)
            seen_names |= counts.keys()
            level = next_level
        return result

    def _promotable(self, f: FieldDescriptor, package: str | None) -> StructDescriptor | None:
        if not (f.embedded and self._config.promote_embedded and self._index is not None):
            return None
        ref = self.normalize(f.type, package)
        if ref.kind is not TypeKind.STRUCT:
            return None
        return self._index.resolve_struct(ref, package)

    # --- Rules ---

    def _match_field(
        self,
        dst_field: FieldDescriptor,
        destination: StructDescriptor,
        candidates: list[_Candidate],
    ) -> FieldMapping:
        dst_type = self.normalize(dst_field.type, destination.package)
        if dst_field.is_skipped:
            logger.debug("%s.%s skipped by tag", destination.name, dst_field.name)
            return FieldMapping(destination=dst_field, destination_type=dst_type)

        compat_cache: dict[int, Compatibility] = {}

        def compat(position: int) -> Compatibility:
            if position not in compat_cache:
                compat_cache[position] = classify(candidates[position].type, dst_type, self._index)
            return compat_cache[position]

        exact = [i for i, c in enumerate(candidates) if c.field.name == dst_field.name]
        folded = dst_field.name.casefold()
        insensitive = [i for i, c in enumerate(candidates) if c.field.name.casefold() == folded]
        aliased = self._alias_candidates(dst_field, candidates)

        rules: list[tuple[MatchRule, list[int], Callable[[Compatibility], bool]]] = [
            (MatchRule.EXACT_NAME, exact, _preserving),
            (MatchRule.EXACT_NAME, exact, _is_lossy),
        ]
        if self._config.match_case_insensitive:
            rules.append((MatchRule.CASE_INSENSITIVE, insensitive, _usable))
        if self._config.use_tag_aliases:
            rules.append((MatchRule.TAG_ALIAS, aliased, _usable))

        for rule, positions, accept in rules:
            for position in positions:
                if accept(compat(position)):
                    return self._mapping(
                        dst_field, destination, candidates[position], rule, compat(position)
                    )

        if dst_field.embedded and dst_type.kind in (TypeKind.STRUCT, TypeKind.POINTER):
            logger.debug(
                "%s.%s filled from the whole source struct", destination.name, dst_field.name
            )
            return FieldMapping(
                destination=dst_field,
                rule=MatchRule.EMBEDDED,
                compatibility=Compatibility.CONVERTIBLE,
                destination_type=dst_type,
            )

        # Only type-incompatible candidates left: keep the first so the conflict is reported
        for rule, positions, _ in rules:
            if positions:
                return self._mapping(
                    dst_field, destination, candidates[positions[0]], rule, compat(positions[0])
                )

        logger.debug("%s.%s has no source field", destination.name, dst_field.name)
        return FieldMapping(destination=dst_field, destination_type=dst_type)

    def _alias_candidates(
        self, dst_field: FieldDescriptor, candidates: list[_Candidate]
    ) -> list[int]:
        keys = self._config.alias_tag_keys
        dst_names = {dst_field.name.casefold()}
        dst_aliases = {a.casefold() for a in alias_names(dst_field.tags, keys)}
        positions = []
        for i, c in enumerate(candidates):
            src_names = {c.field.name.casefold()}
            src_aliases = {a.casefold() for a in alias_names(c.field.tags, keys)}
            if dst_aliases & (src_names | src_aliases) or src_aliases & dst_names:
                positions.append(i)
        return positions

    def _mapping(
        self,
        dst_field: FieldDescriptor,
        destination: StructDescriptor,
        candidate: _Candidate,
        rule: MatchRule,
        compatibility: Compatibility,
    ) -> FieldMapping:
        if compatibility is Compatibility.LOSSY:
            logger.warning(
                "Lossy copy %s -> %s.%s (%s -> %s)",
                ".".join((*candidate.path, candidate.field.name)),
                destination.name,
                dst_field.name,
                candidate.field.type,
                dst_field.type,
            )
        else:
            logger.debug("%s.%s matched by %s", destination.name, dst_field.name, rule.value)
        return FieldMapping(
            destination=dst_field,
            source=candidate.field,
            rule=rule,
            compatibility=compatibility,
            source_path=candidate.path,
            source_type=candidate.type,
            destination_type=self.normalize(dst_field.type, destination.package),
        )


def _preserving(compatibility: Compatibility) -> bool:
    return compatibility in (Compatibility.IDENTICAL, Compatibility.CONVERTIBLE)


def _is_lossy(compatibility: Compatibility) -> bool:
    return compatibility is Compatibility.LOSSY


def _usable(compatibility: Compatibility) -> bool:
    return compatibility is not Compatibility.INCOMPATIBLE
