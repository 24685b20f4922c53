"""Go source emitter.

Renders a CopyPlan tree as Go functions, one per plan key:

    func copyUserToUserDTO(src User) UserDTO {
    	var dst UserDTO
    	dst.Name = src.Name
    	dst.Age = int32(src.Age)
    	return dst
    }

The top-level function comes first, nested ones follow in the order the
plan tree first uses them. Output depends only on the plan and config, so
emitting the same plan twice yields identical text.
"""

from __future__ import annotations

import logging

from struct_copy.core.config import CopyConfig
from struct_copy.core.descriptors import StructDescriptor
from struct_copy.core.enums import ConversionKind, EmitTarget, MatchRule
from struct_copy.core.exceptions import EmitterError
from struct_copy.core.naming import NameReserver, capitalize, last_segment, to_identifier
from struct_copy.mapping.plan import Conversion, CopyPlan, FieldCopy, PlanKey

logger = logging.getLogger(__name__)


class GoSourceEmitter:
    """Emits Go copy functions for the ``source-text`` target.

    Args:
        config: Uses ``function_prefix``, ``package`` and ``indent``.
    """

    def __init__(self, config: CopyConfig | None = None) -> None:
        self._config = config or CopyConfig()

    @property
    def target(self) -> EmitTarget:
        return EmitTarget.SOURCE_TEXT

    def emit(self, plan: CopyPlan) -> str:
        """Render ``plan`` and every nested plan as Go source text."""
        package = self._config.package or plan.destination.package
        plans = plan.plans()
        names = self.function_names(plans)
        indent = self._config.indent
        chunks = [_FunctionWriter(p, names, package, indent).render() for p in plans.values()]
        logger.debug("Emitted %d Go functions for %s -> %s", len(chunks), *plan.key)
        return "\n".join(chunks)

    def function_names(self, plans: dict[PlanKey, CopyPlan]) -> dict[PlanKey, str]:
        """Unique function name per plan key, in plan order."""
        reserver = NameReserver()
        names: dict[PlanKey, str] = {}
        for key, plan in plans.items():
            names[key], _ = reserver.reserve(self._name_candidates(plan), owner=key)
        return names

    def _name_candidates(self, plan: CopyPlan) -> list[str]:
        prefix = self._config.function_prefix
        src, dst = _type_word(plan.source), _type_word(plan.destination)
        plain = f"{src}To{dst}"
        qualified = f"{_package_word(plan.source)}{src}To{_package_word(plan.destination)}{dst}"
        if prefix:
            return [prefix + plain, prefix + qualified]
        # Without a prefix the name must still start with a letter
        return [_lower_first(plain), _lower_first(qualified)]


def _type_word(struct: StructDescriptor) -> str:
    if struct.is_anonymous:
        return "Anonymous"
    return to_identifier(struct.name)


def _package_word(struct: StructDescriptor) -> str:
    if struct.package:
        return capitalize(to_identifier(struct.package))
    if struct.import_path:
        return capitalize(to_identifier(last_segment(struct.import_path)))
    return ""


def _lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


class _FunctionWriter:
    """Renders one copy function; holds the temporaries it has named."""

    def __init__(
        self,
        plan: CopyPlan,
        names: dict[PlanKey, str],
        package: str | None,
        indent: str,
    ) -> None:
        self._plan = plan
        self._names = names
        self._package = package
        self._indent = indent
        self._used: dict[str, int] = {}
        self._lines: list[str] = []

    def render(self) -> str:
        plan = self._plan
        src_type = plan.source.type_ref.go_type(self._package)
        dst_type = plan.destination.type_ref.go_type(self._package)
        name = self._names[plan.key]

        self._lines = [f"func {name}(src {src_type}) {dst_type} {{"]
        self._line(1, f"var dst {dst_type}")
        for field_copy in plan.copies:
            self._field(field_copy)
        self._line(1, "return dst")
        self._lines.append("}")
        return "\n".join(self._lines) + "\n"

    def _line(self, depth: int, text: str) -> None:
        self._lines.append(self._indent * depth + text)

    def _fresh(self, base: str) -> str:
        count = self._used.get(base, 0) + 1
        self._used[base] = count
        return base if count == 1 else f"{base}{count}"

    def _field(self, field_copy: FieldCopy) -> None:
        mapping = field_copy.mapping
        target = f"dst.{field_copy.destination_name}"
        if field_copy.conversion is None:
            reason = "skipped" if mapping.destination.is_skipped else "no source field"
            self._line(1, f"// {field_copy.destination_name}: {reason}")
            return
        if mapping.rule is MatchRule.EMBEDDED:
            source = "src"
        else:
            source = ".".join(("src", *mapping.source_selector))
        self._assign(field_copy.conversion, source, target, 1)

    # --- Statements ---

    def _assign(self, conv: Conversion, source: str, target: str, depth: int) -> None:
        """Emit statements that copy ``source`` into the addressable ``target``."""
        if conv.is_simple:
            self._line(depth, f"{target} = {self._expr(conv, source)}")
            return

        kind = conv.kind
        if kind is ConversionKind.POINTER:
            self._line(depth, f"if {source} != nil {{")
            self._address(_elem(conv), "*" + source, target, depth + 1)
            self._line(depth, "}")
        elif kind is ConversionKind.DEREF:
            self._line(depth, f"if {source} != nil {{")
            self._assign(_elem(conv), "*" + source, target, depth + 1)
            self._line(depth, "}")
        elif kind is ConversionKind.ADDRESS:
            self._address(_elem(conv), source, target, depth)
        elif kind is ConversionKind.SLICE:
            self._slice(conv, source, target, depth)
        elif kind is ConversionKind.ARRAY:
            self._array(conv, source, target, depth)
        elif kind is ConversionKind.MAP:
            self._map(conv, source, target, depth)
        else:
            raise EmitterError(f"Unsupported conversion kind: {kind.value}")

    def _address(self, elem: Conversion, source: str, target: str, depth: int) -> None:
        """``target = &copy-of(source)`` through a fresh temporary."""
        tmp = self._fresh("tmp")
        if elem.is_simple:
            self._line(depth, f"{tmp} := {self._expr(elem, source)}")
        else:
            self._line(depth, f"var {tmp} {self._type(elem)}")
            self._assign(elem, source, tmp, depth)
        self._line(depth, f"{target} = &{tmp}")

    def _slice(self, conv: Conversion, source: str, target: str, depth: int) -> None:
        elem = _elem(conv)
        self._line(depth, f"if {source} != nil {{")
        self._line(depth + 1, f"{target} = make({self._type(conv)}, len({source}))")
        if _same_elements(elem):
            self._line(depth + 1, f"copy({target}, {source})")
        else:
            i, v = self._fresh("i"), self._fresh("v")
            self._line(depth + 1, f"for {i}, {v} := range {source} {{")
            self._assign(elem, v, f"{target}[{i}]", depth + 2)
            self._line(depth + 1, "}")
        self._line(depth, "}")

    def _array(self, conv: Conversion, source: str, target: str, depth: int) -> None:
        elem = _elem(conv)
        if _same_elements(elem):
            self._line(depth, f"{target} = {source}")
            return
        i, v = self._fresh("i"), self._fresh("v")
        self._line(depth, f"for {i}, {v} := range {source} {{")
        self._assign(elem, v, f"{target}[{i}]", depth + 1)
        self._line(depth, "}")

    def _map(self, conv: Conversion, source: str, target: str, depth: int) -> None:
        elem, key = _elem(conv), conv.key
        if key is None:
            raise EmitterError("Map conversion without a key conversion")
        self._line(depth, f"if {source} != nil {{")
        self._line(depth + 1, f"{target} = make({self._type(conv)}, len({source}))")
        k, v = self._fresh("k"), self._fresh("v")
        self._line(depth + 1, f"for {k}, {v} := range {source} {{")
        if key.is_simple and elem.is_simple:
            self._line(depth + 2, f"{target}[{self._expr(key, k)}] = {self._expr(elem, v)}")
        else:
            key_var = self._fresh("key")
            value_var = self._fresh("value")
            self._line(depth + 2, f"var {key_var} {self._type(key)}")
            self._assign(key, k, key_var, depth + 2)
            self._line(depth + 2, f"var {value_var} {self._type(elem)}")
            self._assign(elem, v, value_var, depth + 2)
            self._line(depth + 2, f"{target}[{key_var}] = {value_var}")
        self._line(depth + 1, "}")
        self._line(depth, "}")

    # --- Expressions ---

    def _expr(self, conv: Conversion, source: str) -> str:
        if conv.kind is ConversionKind.ASSIGN:
            return source
        if conv.kind is ConversionKind.CONVERT:
            return f"{self._type(conv)}({source})"
        if conv.kind is ConversionKind.NESTED:
            if conv.plan_key is None or conv.plan_key not in self._names:
                raise EmitterError(f"Nested conversion refers to an unknown plan: {conv.plan_key}")
            return f"{self._names[conv.plan_key]}({source})"
        raise EmitterError(f"Conversion {conv.kind.value} is not an expression")

    def _type(self, conv: Conversion) -> str:
        return conv.destination_type.go_type(self._package)


def _same_elements(elem: Conversion) -> bool:
    """Whole-collection copies need identical element types; interface elements loop."""
    return elem.kind is ConversionKind.ASSIGN and elem.source_type == elem.destination_type


def _elem(conv: Conversion) -> Conversion:
    if conv.elem is None:
        raise EmitterError(f"{conv.kind.value} conversion without an element conversion")
    return conv.elem
