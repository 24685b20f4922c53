"""StructCopier facade.

Ties the index, matcher, plan builder, emitters and expander together:

    index = StructIndex.from_directory("descriptors/")
    copier = StructCopier(index)
    result = copier.generate("models.User", "api.UserDTO")
    if result.success:
        print(result.artifact)
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import StructDescriptor
from struct_copy.core.enums import EmitTarget
from struct_copy.core.exceptions import EmitterError, IncompatiblePlanError, StructCopyError
from struct_copy.core.registry import StructIndex
from struct_copy.expand.expander import ExpandResult, StructExpander
from struct_copy.mapping.builder import CopyPlanBuilder
from struct_copy.mapping.matcher import FieldMatcher
from struct_copy.mapping.plan import CopyPlan, MappingSet

logger = logging.getLogger(__name__)

# Emitter mapping: target → (module_path, class_name)
_EMITTER_MAP: dict[EmitTarget, tuple[str, str]] = {
    EmitTarget.SOURCE_TEXT: ("struct_copy.emitters.source", "GoSourceEmitter"),
    EmitTarget.CALLABLE: ("struct_copy.emitters.callable", "CallableEmitter"),
}

StructRef = StructDescriptor | str


def _load_emitter(target: EmitTarget | str, config: CopyConfig, index: StructIndex | None) -> Any:
    """Instantiate the emitter registered for ``target``."""
    try:
        target = EmitTarget(target)
    except ValueError:
        raise EmitterError(f"Unsupported emit target: {target}") from None
    if target not in _EMITTER_MAP:
        raise EmitterError(f"Unsupported emit target: {target.value}")

    module_path, cls_name = _EMITTER_MAP[target]
    try:
        module = importlib.import_module(module_path)
        emitter_cls = getattr(module, cls_name)
    except (ImportError, AttributeError) as e:
        raise EmitterError(f"Failed to load emitter for '{target.value}': {e}") from e
    if target is EmitTarget.CALLABLE:
        return emitter_cls(config, index)
    return emitter_cls(config)


@dataclass(frozen=True)
class CopyResult:
    """Outcome of StructCopier.generate().

    ``artifact`` is the emitted source text or callable on success. On
    failure ``errors`` lists every problem found and ``plan`` holds the
    partial plan when one was built.
    """

    success: bool
    artifact: Any
    message: str
    errors: list[StructCopyError] = field(default_factory=list)
    plan: CopyPlan | None = None


class StructCopier:
    """Copy-function generator.

    Args:
        index: Declarations used to resolve struct names and nested types.
        config: Matching and emission options. Defaults to CopyConfig().
    """

    def __init__(self, index: StructIndex | None = None, config: CopyConfig | None = None) -> None:
        self._index = index
        self._config = config or CopyConfig()
        self._matcher = FieldMatcher(self._config, index)
        self._builder = CopyPlanBuilder(self._config, index, self._matcher)
        self._emitter = _load_emitter(self._config.target, self._config, index)

    @property
    def config(self) -> CopyConfig:
        return self._config

    @property
    def index(self) -> StructIndex | None:
        return self._index

    @property
    def emitter(self) -> Any:
        return self._emitter

    def resolve(self, ref: StructRef) -> StructDescriptor:
        """Turn a struct name into its descriptor; descriptors pass through.

        Raises:
            StructNotFoundError: If the name is not in the index.
            StructCopyError: If a name is given without an index.
        """
        if isinstance(ref, StructDescriptor):
            return ref
        if self._index is None:
            raise StructCopyError(f"Cannot resolve struct '{ref}' without a StructIndex")
        return self._index.get(ref)

    def match(self, source: StructRef, destination: StructRef) -> MappingSet:
        return self._matcher.match(self.resolve(source), self.resolve(destination))

    def plan(self, source: StructRef, destination: StructRef) -> CopyPlan:
        """Match and build the copy plan for ``source`` -> ``destination``.

        Raises:
            MappingError: If the pair cannot be copied (see CopyPlanBuilder.build).
        """
        return self._builder.build(self.match(source, destination))

    def emit(self, plan: CopyPlan) -> Any:
        """Render ``plan`` with the emitter for the configured target."""
        return self._emitter.emit(plan)

    def generate(self, source: StructRef, destination: StructRef) -> CopyResult:
        """Plan and emit in one step, reporting failures in the result."""
        try:
            plan = self.plan(source, destination)
        except IncompatiblePlanError as e:
            logger.info("Copy generation failed: %s", e)
            return CopyResult(
                success=False,
                artifact=None,
                message=str(e),
                errors=list(e.errors),
                plan=e.partial_plan,
            )
        except StructCopyError as e:
            logger.info("Copy generation failed: %s", e)
            return CopyResult(success=False, artifact=None, message=str(e), errors=[e])

        try:
            artifact = self.emit(plan)
        except StructCopyError as e:
            logger.info("Copy emission failed: %s", e)
            return CopyResult(success=False, artifact=None, message=str(e), errors=[e], plan=plan)

        src, dst = plan.key
        logger.info("Generated %s copy %s -> %s", self._config.target.value, src, dst)
        return CopyResult(
            success=True,
            artifact=artifact,
            message=f"Generated copy {src} -> {dst}",
            plan=plan,
        )

    def expand(self, name: str, package: str | None = None) -> ExpandResult:
        """Expand a struct into standalone Go definitions."""
        if self._index is None:
            raise StructCopyError(f"Cannot expand '{name}' without a StructIndex")
        return StructExpander(self._index, self._config).expand(name, package)
