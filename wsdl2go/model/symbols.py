"""Symbol table: lookup maps built once from the unified Definitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

from wsdl2go.errors import UndefinedMessage
from wsdl2go.model.wsdl import (
    AnyElement,
    Attribute,
    AttributeGroup,
    BindingOperation,
    ComplexExtension,
    ComplexRestriction,
    ComplexType,
    Definitions,
    Element,
    GroupContent,
    Message,
    ModelGroup,
    Operation,
    SimpleContent,
    SimpleType,
    local_name,
    strip_array_bounds,
)
from wsdl2go.parser.name_transform import sanitize, unique_name

logger = logging.getLogger(__name__)


@dataclass
class SymbolTable:
    """Lookups by local (namespace-stripped) name."""

    definitions: Definitions
    simple_types: dict[str, SimpleType] = field(default_factory=dict)
    complex_types: dict[str, ComplexType] = field(default_factory=dict)
    elements: dict[str, Element] = field(default_factory=dict)
    attribute_groups: dict[str, AttributeGroup] = field(default_factory=dict)
    messages: dict[str, Message] = field(default_factory=dict)
    operations: dict[str, Operation] = field(default_factory=dict)  # document order
    binding_operations: dict[str, BindingOperation] = field(default_factory=dict)
    # id() of a nested element with an anonymous complex type -> synthetic type name
    inline_types: dict[int, str] = field(default_factory=dict)

    def element(self, qname: str) -> Element | None:
        return self.elements.get(local_name(qname))

    def message(self, op: Operation, qname: str, direction: str) -> Message:
        """Look up the input or output message of op, failing with UndefinedMessage."""
        name = local_name(qname)
        try:
            return self.messages[name]
        except KeyError:
            raise UndefinedMessage(op.name, direction, name) from None


def group_of(ct: ComplexType) -> ModelGroup | None:
    """The model group holding a complex type's own elements, if any."""
    content = ct.content
    if isinstance(content, GroupContent):
        return content.group
    if isinstance(content, (ComplexExtension, ComplexRestriction)):
        return content.group
    return None


def single_child(ct: ComplexType) -> Element | AnyElement | None:
    """The only particle of a sequence wrapping exactly one element or wildcard.

    Such anonymous types are the schema idiom for "array of X wrapped in a
    named element" and collapse into a slice field instead of a struct.
    """
    if not isinstance(ct.content, GroupContent) or ct.attributes or ct.attribute_groups:
        return None
    group = ct.content.group
    if group.kind != "sequence" or len(group.particles) != 1:
        return None
    only = group.particles[0]
    if isinstance(only, AnyElement):
        return only
    if isinstance(only, Element) and only.complex_type is None:
        return only
    return None


def iter_elements(group: ModelGroup | None, nested: bool = True) -> Iterator[Element]:
    """Depth-first walk over the elements of a group.

    With nested=False the walk does not descend into anonymous element types.
    """
    if group is None:
        return
    for particle in group.particles:
        if isinstance(particle, Element):
            yield particle
            if nested and particle.complex_type is not None:
                yield from iter_elements(group_of(particle.complex_type))
        elif isinstance(particle, ModelGroup):
            yield from iter_elements(particle, nested)
        elif isinstance(particle, ComplexType):
            yield from iter_elements(group_of(particle), nested)


def build_cache(defs: Definitions) -> SymbolTable:
    """Index the unified schema, messages, operations and binding operations."""
    table = SymbolTable(definitions=defs)
    schema = defs.schema

    # Top-level elements with an anonymous complex type become named types.
    for el in schema.elements:
        if not el.type and el.complex_type is not None and el.name:
            table.complex_types[el.name] = el.complex_type
    for st in schema.simple_types:
        table.simple_types[st.name] = st
    for ct in schema.complex_types:
        if ct.name in table.complex_types:
            logger.debug("complex type %r replaces the element type of the same name", ct.name)
        table.complex_types[ct.name] = ct

    # Top-level declarations register before anything nested.
    for el in schema.elements:
        _register_element(table, el)
    for el in schema.elements:
        if el.complex_type is not None:
            for nested in iter_elements(group_of(el.complex_type)):
                _register_element(table, nested)
    for ct in schema.complex_types:
        for nested in iter_elements(group_of(ct)):
            _register_element(table, nested)

    for group in schema.attribute_groups:
        if group.name:
            table.attribute_groups.setdefault(group.name, group)

    _register_inline_types(table)

    for msg in defs.messages:
        table.messages[msg.name] = msg
    for op in defs.port_type.operations:
        table.operations[op.name] = op
    for bop in defs.binding.operations:
        table.binding_operations.setdefault(bop.name, bop)

    logger.info(
        "cached %d simple types, %d complex types, %d elements, %d operations",
        len(table.simple_types), len(table.complex_types),
        len(table.elements), len(table.operations),
    )
    return table


def _register_element(table: SymbolTable, el: Element) -> None:
    if not el.name:
        return
    table.elements.setdefault(local_name(el.name), el)


def _register_inline_types(table: SymbolTable) -> None:
    """Give nested anonymous complex types that do not collapse a synthetic name."""
    pending = list(table.complex_types.items())
    while pending:
        parent, ct = pending.pop(0)
        for el in iter_elements(group_of(ct), nested=False):
            inline = el.complex_type
            if inline is None or id(el) in table.inline_types or single_child(inline) is not None:
                continue
            name = unique_name(sanitize(parent) + sanitize(el.name), set(table.complex_types))
            table.inline_types[id(el)] = name
            table.complex_types[name] = inline
            pending.append((name, inline))


def restrict_operations(table: SymbolTable, names: list[str]) -> None:
    """Keep only the named operations and the schema types they reach.

    The roots are the parts of each kept operation's messages plus the
    elements named after the operation and its Response. Elements stay
    indexed so references keep resolving; simple and complex types outside
    the closure are dropped.
    """
    for name in names:
        if name not in table.operations:
            logger.warning("included operation %r is not defined", name)
    wanted = set(names)
    table.operations = {name: op for name, op in table.operations.items() if name in wanted}

    reach = _Reachable(table)
    for op in table.operations.values():
        for qname in (op.input, op.output):
            msg = table.messages.get(local_name(qname)) if qname else None
            for part in msg.parts if msg is not None else []:
                if part.element:
                    reach.element_ref(part.element)
                else:
                    reach.type_ref(part.type)
        reach.element_ref(op.name)
        reach.element_ref(op.name + "Response")

    before = len(table.simple_types) + len(table.complex_types)
    table.simple_types = {k: v for k, v in table.simple_types.items() if k in reach.types}
    table.complex_types = {k: v for k, v in table.complex_types.items() if k in reach.types}
    dropped = before - len(table.simple_types) - len(table.complex_types)
    logger.info("kept %d operations, dropped %d unreachable types", len(table.operations), dropped)


class _Reachable:
    """Transitive closure of type names reachable from elements and type references."""

    def __init__(self, table: SymbolTable) -> None:
        self.table = table
        self.types: set[str] = set()
        self._seen: set[int] = set()

    def _first_visit(self, node: object) -> bool:
        if id(node) in self._seen:
            return False
        self._seen.add(id(node))
        return True

    def type_ref(self, qname: str) -> None:
        name = local_name(qname)
        if not name or name in self.types:
            return
        if name in self.table.simple_types:
            self.types.add(name)
            self.simple(self.table.simple_types[name])
        if name in self.table.complex_types:
            self.types.add(name)
            self.complex(self.table.complex_types[name])

    def element_ref(self, qname: str) -> None:
        el = self.table.element(qname)
        if el is not None:
            self.element(el)

    def element(self, el: Element) -> None:
        if not self._first_visit(el):
            return
        if el.ref:
            self.element_ref(el.ref)
        if el.type:
            self.type_ref(el.type)
        if el.simple_type is not None:
            self.simple(el.simple_type)
        if el.complex_type is not None:
            named = self.table.inline_types.get(id(el))
            if named is None and self.table.complex_types.get(el.name) is el.complex_type:
                named = el.name
            if named is not None:
                self.types.add(named)
            self.complex(el.complex_type)

    def simple(self, st: SimpleType) -> None:
        if not self._first_visit(st):
            return
        if st.restriction is not None:
            self.type_ref(st.restriction.base)
        if st.union is not None:
            for member in st.union.member_types:
                self.type_ref(member)

    def complex(self, ct: ComplexType) -> None:
        if not self._first_visit(ct):
            return
        attributes = list(ct.attributes)
        attribute_groups = list(ct.attribute_groups)
        content = ct.content
        if isinstance(content, (ComplexExtension, ComplexRestriction, SimpleContent)):
            self.type_ref(content.base)
            attributes += content.attributes
            attribute_groups += content.attribute_groups
        for attr in attributes:
            self.attribute(attr)
        for group in attribute_groups:
            self.attribute_group(group)
        self.group(group_of(ct))

    def attribute(self, attr: Attribute) -> None:
        if attr.type:
            self.type_ref(attr.type)
        if attr.array_type:
            self.type_ref(strip_array_bounds(attr.array_type))
        if attr.simple_type is not None:
            self.simple(attr.simple_type)

    def attribute_group(self, group: AttributeGroup) -> None:
        if not self._first_visit(group):
            return
        if group.ref:
            declared = self.table.attribute_groups.get(local_name(group.ref))
            if declared is not None:
                self.attribute_group(declared)
        for attr in group.attributes:
            self.attribute(attr)
        for nested in group.groups:
            self.attribute_group(nested)

    def group(self, group: ModelGroup | None) -> None:
        if group is None:
            return
        for particle in group.particles:
            if isinstance(particle, Element):
                self.element(particle)
            elif isinstance(particle, ModelGroup):
                self.group(particle)
            elif isinstance(particle, ComplexType):
                self.complex(particle)
