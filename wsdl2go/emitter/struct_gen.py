"""Turn cached simple and complex types into Go type declarations."""

from __future__ import annotations

import logging
import re

from wsdl2go.emitter.type_mapper import (
    ABSTRACT,
    ANY,
    ARRAY,
    COMPLEX,
    PRIMITIVE,
    GoType,
    TypeMapper,
    is_array_restriction,
)
from wsdl2go.emitter.views import (
    FieldView,
    TypeDecl,
    VisitStep,
    WireTypeView,
    comment_lines,
    element_tag,
    go_quote,
    struct_tag,
)
from wsdl2go.errors import UndefinedType
from wsdl2go.model.symbols import SymbolTable, group_of, single_child
from wsdl2go.model.wsdl import (
    XML_NAMESPACE,
    XSD_NAMESPACE,
    AnyElement,
    Attribute,
    AttributeGroup,
    ComplexExtension,
    ComplexRestriction,
    ComplexType,
    Element,
    GroupContent,
    ModelGroup,
    SimpleContent,
    SimpleType,
    local_name,
    split_qname,
)
from wsdl2go.parser.name_transform import sanitize

logger = logging.getLogger(__name__)

_INTERFACE = GoType("interface{}", ANY, "nil")
_STRING = GoType("string", PRIMITIVE, '""')

# Identifiers generated structs use for their own fields and methods.
_RESERVED_FIELDS = {"XMLName", "TypeAttrXSI", "TypeNamespace", "SetXMLType", "PrepareXML", "Validate"}

_NUMBER = re.compile(r"^[-+]?[0-9]+(\.[0-9]+)?([eE][-+]?[0-9]+)?$")
_INTEGER = re.compile(r"^[-+]?[0-9]+$")


class StructGenerator:
    """Builds TypeDecl views for the types of one generation run."""

    def __init__(self, table: SymbolTable, mapper: TypeMapper) -> None:
        self.table = table
        self.mapper = mapper

    # Simple types

    def generate_simple(self, key: str) -> TypeDecl:
        st = self.table.simple_types[key]
        name = self.mapper.simple_names[key]
        if st.union is not None:
            members = ", ".join(local_name(m) for m in st.union.member_types) or "any simple type"
            return TypeDecl(
                name=name,
                comments=comment_lines(name, f"{name} is a union of: {members}."),
                kind="alias",
                alias="interface{}",
            )
        if st.restriction is None:
            return TypeDecl(name=name, comments=comment_lines(name), kind="alias", alias="string")

        base = self._alias_target(st.restriction.base, name)
        decl = TypeDecl(name=name, comments=comment_lines(name), kind="alias", alias=base.name)
        decl.enum_values = self._enum_literals(st, base)
        return decl

    def _alias_target(self, qname: str, name: str) -> GoType:
        go = self.mapper.map_type(qname, referrer=f"simple type {name}")
        if go.kind == COMPLEX or go.name == name:
            logger.debug("simple type %s cannot alias %r, using string", name, qname)
            return _STRING
        return go

    def _enum_literals(self, st: SimpleType, base: GoType) -> list[str]:
        values: list[str] = []
        integral = base.name.startswith(("int", "uint"))
        for value in st.restriction.enumerations:
            if base.is_string:
                literal = go_quote(value)
            elif base.name == "bool" and value in ("true", "false"):
                literal = value
            elif base.zero == "0" and (_INTEGER if integral else _NUMBER).match(value):
                literal = value
            else:
                logger.debug("enumeration %r of %s does not fit %s", value, st.name, base.name)
                continue
            if literal not in values:
                values.append(literal)
        return values

    # Complex types

    def generate_type(self, key: str) -> TypeDecl:
        """Declaration for the complex type cached under key."""
        ct = self.table.complex_types[key]
        name = self.mapper.complex_names[key]
        comments = comment_lines(name, ct.doc)

        if ct.abstract:
            return TypeDecl(name=name, comments=comments, kind="interface")

        if is_array_restriction(ct):
            item = self.mapper.complex_type(key).item
            return TypeDecl(
                name=name, comments=comments, kind="alias",
                alias="[]" + item.ref, array_item=item,
            )

        group = group_of(ct)
        if isinstance(ct.content, GroupContent) and group.is_wildcard_only and group.kind != "all":
            return TypeDecl(name=name, comments=comments, kind="alias", alias="[]interface{}")

        decl = TypeDecl(name=name, comments=comments, kind="struct")
        decl.fields = self._dedupe(self._fields(ct, name, {key}))
        if isinstance(ct.content, ComplexExtension) and self._known(ct.content.base):
            decl.wire_type = WireTypeView(
                type_name=go_quote("objtype:" + local_name(ct.name or key)),
                namespace=go_quote(ct.target_namespace or self.table.definitions.target_namespace),
            )
            decl.fields.extend([
                FieldView("TypeAttrXSI", "string",
                          struct_tag(("xml", "xsi:type,attr,omitempty"), ("json", "-"), ("yaml", "-"))),
                FieldView("TypeNamespace", "string",
                          struct_tag(("xml", "xmlns:objtype,attr,omitempty"), ("json", "-"), ("yaml", "-"))),
            ])
        return decl

    def _known(self, qname: str) -> bool:
        return local_name(qname) in self.table.complex_types

    def _fields(self, ct: ComplexType, owner: str, seen: set[str]) -> list[FieldView]:
        """Fields of ct: inherited ones first, then attributes, then elements."""
        content = ct.content
        fields: list[FieldView] = []

        if isinstance(content, ComplexExtension):
            base = local_name(content.base)
            if base in self.table.complex_types and base not in seen:
                fields += self._fields(self.table.complex_types[base], owner, seen | {base})
            elif base not in self.table.complex_types:
                logger.debug("%s extends non-complex base %r", owner, content.base)
        elif isinstance(content, SimpleContent):
            fields += self._simple_content(content, owner, seen)

        fields += self._attributes(ct.attributes, ct.attribute_groups, owner)
        if isinstance(content, (ComplexExtension, ComplexRestriction, SimpleContent)):
            fields += self._attributes(content.attributes, content.attribute_groups, owner)
        fields += self._group_fields(group_of(ct), owner)
        return fields

    def _simple_content(self, content: SimpleContent, owner: str, seen: set[str]) -> list[FieldView]:
        base = local_name(content.base)
        if base in self.table.complex_types and base not in self.table.simple_types:
            # Derived from another complex type with simple content.
            if base in seen:
                return []
            return self._fields(self.table.complex_types[base], owner, seen | {base})
        go = self.mapper.map_type(content.base, referrer=owner)
        if go.kind == COMPLEX:
            go = _STRING
        return [FieldView("Value", go.ref, struct_tag(("xml", ",chardata"), ("json", "value"), ("yaml", "value")))]

    def _dedupe(self, fields: list[FieldView]) -> list[FieldView]:
        """Drop repeated field names, first occurrence wins."""
        out, names = [], set()
        for f in fields:
            if f.name in _RESERVED_FIELDS:
                f.name += "Field"
            if f.name in names:
                logger.debug("dropping duplicate field %s", f.name)
                continue
            names.add(f.name)
            out.append(f)
        return out

    # Attributes

    def _attributes(
        self, attributes: list[Attribute], groups: list[AttributeGroup], owner: str,
    ) -> list[FieldView]:
        fields = [self._attribute_field(attr, owner) for attr in attributes]
        for group in groups:
            fields += self._attribute_group(group, owner, set())
        return fields

    def _attribute_group(self, group: AttributeGroup, owner: str, seen: set[str]) -> list[FieldView]:
        if group.ref:
            key = local_name(group.ref)
            if key in seen:
                return []
            try:
                group = self.table.attribute_groups[key]
            except KeyError:
                raise UndefinedType(owner, key) from None
            seen = seen | {key}
        fields = [self._attribute_field(attr, owner) for attr in group.attributes]
        for nested in group.groups:
            fields += self._attribute_group(nested, owner, seen)
        return fields

    def _attribute_field(self, attr: Attribute, owner: str) -> FieldView:
        wire = attr.name or local_name(attr.ref)
        if attr.simple_type is not None:
            go = self._inline_simple(attr.simple_type, owner)
        elif attr.type:
            go = self.mapper.map_type(attr.type, referrer=owner)
        else:
            go = _STRING
        optional = attr.use != "required"
        value = wire + ",attr" + (",omitempty" if optional else "")
        json_value = wire + (",omitempty" if optional else "")
        return FieldView(
            name=sanitize(wire) or "Attr",
            type=go.ref,
            tag=struct_tag(("xml", value), ("json", json_value), ("yaml", json_value)),
        )

    def _inline_simple(self, st: SimpleType, owner: str) -> GoType:
        if st.restriction is not None:
            go = self.mapper.map_type(st.restriction.base, referrer=owner)
            if go.kind != COMPLEX:
                return go
        if st.union is not None:
            return _INTERFACE
        return _STRING

    # Elements

    def _group_fields(
        self, group: ModelGroup | None, owner: str, optional: bool = False, repeated: bool = False,
    ) -> list[FieldView]:
        if group is None:
            return []
        optional = optional or group.kind == "choice" or group.min_occurs == 0
        repeated = repeated or group.max_occurs not in ("", "1")
        fields = []
        for particle in group.particles:
            if isinstance(particle, Element):
                f = self._element_field(particle, owner, optional, repeated)
                if f is not None:
                    fields.append(f)
            elif isinstance(particle, ModelGroup):
                fields += self._group_fields(particle, owner, optional, repeated)
            elif isinstance(particle, ComplexType):
                fields += self._group_fields(group_of(particle), owner, optional, repeated)
            elif isinstance(particle, AnyElement):
                logger.debug("ignoring wildcard mixed with elements in %s", owner)
        return fields

    def _resolve_ref(self, el: Element, owner: str) -> Element | None:
        """The element an element ref points at; occurrence bounds stay on the ref."""
        target = self.table.element(el.ref)
        if target is None:
            prefix, local = split_qname(el.ref)
            namespace = self.table.definitions.resolve_prefix(prefix)
            if namespace in (XSD_NAMESPACE, XML_NAMESPACE):
                logger.debug("skipping reference to %r in %s", el.ref, owner)
                return None
            raise UndefinedType(owner, local)
        return Element(
            name=target.name,
            type=target.type,
            min_occurs=el.min_occurs,
            max_occurs=el.max_occurs,
            nillable=el.nillable or target.nillable,
            complex_type=target.complex_type,
            simple_type=target.simple_type,
            target_namespace=target.target_namespace,
        )

    def _element_field(
        self, el: Element, owner: str, optional: bool = False, repeated: bool = False,
    ) -> FieldView | None:
        source = el
        if el.ref:
            el = self._resolve_ref(el, owner)
            if el is None:
                return None
        path = local_name(el.name)
        repeated = repeated or el.is_repeated
        optional = optional or el.is_optional

        go, inner_repeated, path = self.element_type(el, source, path, owner)
        repeated = repeated or inner_repeated

        if repeated:
            type_expr = "[]" + go.ref
        elif optional and go.kind != COMPLEX and not go.nilable:
            type_expr = "*" + go.ref
        else:
            type_expr = go.ref
        return FieldView(
            name=sanitize(local_name(el.name)) or "Field",
            type=type_expr,
            tag=element_tag(path, optional),
            go_type=go,
            repeated=repeated,
        )

    def element_type(
        self, el: Element, source: Element, path: str, owner: str,
    ) -> tuple[GoType, bool, str]:
        """Go type of an element, whether it collapsed into a slice, and its wire path."""
        if el.type:
            return self.mapper.map_type(el.type, referrer=owner), False, path
        if el.simple_type is not None:
            return self._inline_simple(el.simple_type, owner), False, path
        inline = el.complex_type
        if inline is None:
            return _STRING, False, path

        if source.ref and el.name in self.table.complex_types:
            # Top-level element whose anonymous type was registered under its name.
            return self.mapper.complex_type(el.name), False, path

        child = single_child(inline)
        if isinstance(child, AnyElement):
            return _INTERFACE, True, path
        if isinstance(child, Element):
            inner = child
            if child.ref:
                inner = self._resolve_ref(child, owner)
                if inner is None:
                    return _INTERFACE, True, path
            go, _, _ = self.element_type(inner, child, local_name(inner.name), owner)
            return go, True, f"{path}>{local_name(inner.name)}"

        # A ref resolves to a copy; the synthetic name is keyed by the referenced element.
        declared = self.table.element(source.ref) if source.ref else source
        synthetic = self.table.inline_types.get(id(declared))
        if synthetic is None:
            logger.debug("no synthetic type for inline element %s in %s", el.name, owner)
            return _INTERFACE, False, path
        return self.mapper.complex_type(synthetic), False, path

    # Wire type visitors

    def plan_visitors(self, decls: list[TypeDecl]) -> None:
        """Mark every struct or array that can reach a wire-type-annotated value.

        Marked structs get a PrepareXML visitor listing exactly the fields
        that lead to such values; marked arrays visit each of their items.
        """
        structs = {d.name: d for d in decls if d.kind == "struct"}
        arrays = {d.name: d for d in decls if d.array_item is not None}
        needy = {name for name, d in structs.items() if d.wire_type is not None}
        changed = True
        while changed:
            changed = False
            for name, decl in structs.items():
                if name not in needy and any(self._visit_mode(f, needy) for f in decl.fields):
                    needy.add(name)
                    changed = True
            for name, decl in arrays.items():
                if name not in needy and item_mode(decl.array_item, needy):
                    needy.add(name)
                    changed = True

        for name in needy:
            if name in arrays:
                decl = arrays[name]
                decl.visits = [VisitStep("", item_mode(decl.array_item, needy))]
            else:
                decl = structs[name]
                decl.visits = [
                    VisitStep(f.name, mode) for f in decl.fields
                    if (mode := self._visit_mode(f, needy))
                ]
            decl.needs_visitor = True

    @staticmethod
    def _visit_mode(f: FieldView, needy: set[str]) -> str:
        go = f.go_type
        if go is None:
            return ""
        if f.repeated:
            return item_mode(go, needy)
        return value_mode(go, needy)


def value_mode(go: GoType, needy: set[str]) -> str:
    """How a single value of type go is prepared, empty when it needs nothing."""
    if go.kind == ABSTRACT:
        return "dynamic"
    if go.kind == COMPLEX and go.name in needy:
        return "pointer"
    if go.kind == ARRAY and go.name in needy:
        return "value"
    return ""


def item_mode(go: GoType, needy: set[str]) -> str:
    """How every item of a slice of go is prepared."""
    mode = value_mode(go, needy)
    if mode == "dynamic":
        return "dynamic_slice"
    return "slice" if mode else ""
