"""Dataclasses describing a decoded WSDL 1.1 document and its XML Schema."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
WSDL_NAMESPACE = "http://schemas.xmlsoap.org/wsdl/"
SOAP11_NAMESPACE = "http://schemas.xmlsoap.org/wsdl/soap/"
SOAP12_NAMESPACE = "http://schemas.xmlsoap.org/wsdl/soap12/"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

_ARRAY_BOUNDS = re.compile(r"\[[0-9,]*\]")


def split_qname(qname: str) -> tuple[str, str]:
    """Split 'prefix:local' into ('prefix', 'local'); unprefixed names get ''."""
    prefix, sep, local = qname.partition(":")
    if not sep:
        return "", qname
    return prefix, local


def local_name(qname: str) -> str:
    """Strip the namespace prefix from a qualified name."""
    return split_qname(qname)[1]


def strip_array_bounds(array_type: str) -> str:
    """Item type of a wsdl:arrayType hint, as in tns:Item[] or xsd:int[2,3]."""
    return _ARRAY_BOUNDS.sub("", array_type)


@dataclass
class Restriction:
    base: str
    enumerations: list[str] = field(default_factory=list)


@dataclass
class UnionType:
    member_types: list[str] = field(default_factory=list)


@dataclass
class SimpleType:
    name: str
    restriction: Restriction | None = None
    union: UnionType | None = None
    target_namespace: str = ""


@dataclass
class Attribute:
    name: str = ""
    type: str = ""
    ref: str = ""
    array_type: str = ""  # SOAP-encoding wsdl:arrayType hint, e.g. "tns:Item[]"
    use: str = ""  # "required", "optional", or ""
    simple_type: SimpleType | None = None


@dataclass
class AttributeGroup:
    name: str = ""
    ref: str = ""
    attributes: list[Attribute] = field(default_factory=list)
    groups: list[AttributeGroup] = field(default_factory=list)


@dataclass
class AnyElement:
    min_occurs: int = 1
    max_occurs: str = "1"


@dataclass
class Element:
    name: str = ""
    type: str = ""
    ref: str = ""
    min_occurs: int = 1
    max_occurs: str = "1"  # a number or "unbounded"
    nillable: bool = False
    complex_type: ComplexType | None = None
    simple_type: SimpleType | None = None
    target_namespace: str = ""

    @property
    def is_repeated(self) -> bool:
        return self.max_occurs not in ("", "1")

    @property
    def is_optional(self) -> bool:
        return self.nillable or self.min_occurs == 0


Particle = Union[Element, "ModelGroup", AnyElement, "ComplexType"]


@dataclass
class ModelGroup:
    """A sequence, choice or all group; particles keep document order."""

    kind: str  # "sequence", "choice" or "all"
    particles: list[Particle] = field(default_factory=list)
    min_occurs: int = 1
    max_occurs: str = "1"

    @property
    def elements(self) -> list[Element]:
        return [p for p in self.particles if isinstance(p, Element)]

    @property
    def groups(self) -> list[ModelGroup]:
        return [p for p in self.particles if isinstance(p, ModelGroup)]

    @property
    def wildcards(self) -> list[AnyElement]:
        return [p for p in self.particles if isinstance(p, AnyElement)]

    @property
    def complex_types(self) -> list[ComplexType]:
        return [p for p in self.particles if isinstance(p, ComplexType)]

    @property
    def is_wildcard_only(self) -> bool:
        return len(self.particles) == 1 and isinstance(self.particles[0], AnyElement)


# Content variants of a complex type. Exactly one is held by ComplexType.content.

@dataclass
class EmptyContent:
    pass


@dataclass
class GroupContent:
    """Direct sequence, choice or all content."""

    group: ModelGroup


@dataclass
class ComplexExtension:
    base: str
    group: ModelGroup | None = None
    attributes: list[Attribute] = field(default_factory=list)
    attribute_groups: list[AttributeGroup] = field(default_factory=list)


@dataclass
class ComplexRestriction:
    base: str
    group: ModelGroup | None = None
    attributes: list[Attribute] = field(default_factory=list)
    attribute_groups: list[AttributeGroup] = field(default_factory=list)


@dataclass
class SimpleContent:
    base: str
    derivation: str = "extension"  # or "restriction"
    attributes: list[Attribute] = field(default_factory=list)
    attribute_groups: list[AttributeGroup] = field(default_factory=list)


Content = Union[EmptyContent, GroupContent, ComplexExtension, ComplexRestriction, SimpleContent]


@dataclass
class ComplexType:
    name: str = ""
    abstract: bool = False
    doc: str = ""
    content: Content = field(default_factory=EmptyContent)
    attributes: list[Attribute] = field(default_factory=list)
    attribute_groups: list[AttributeGroup] = field(default_factory=list)
    target_namespace: str = ""


@dataclass
class SchemaImport:
    namespace: str = ""
    location: str = ""
    include: bool = False


@dataclass
class Schema:
    target_namespace: str = ""
    namespaces: dict[str, str] = field(default_factory=dict)
    imports: list[SchemaImport] = field(default_factory=list)
    simple_types: list[SimpleType] = field(default_factory=list)
    complex_types: list[ComplexType] = field(default_factory=list)
    elements: list[Element] = field(default_factory=list)
    attribute_groups: list[AttributeGroup] = field(default_factory=list)

    def merge(self, other: Schema) -> None:
        """Union other into this schema: lists concatenate, namespaces later-wins."""
        if not self.target_namespace:
            self.target_namespace = other.target_namespace
        self.namespaces.update(other.namespaces)
        self.imports.extend(other.imports)
        self.simple_types.extend(other.simple_types)
        self.complex_types.extend(other.complex_types)
        self.elements.extend(other.elements)
        self.attribute_groups.extend(other.attribute_groups)


@dataclass
class Part:
    name: str
    type: str = ""
    element: str = ""


@dataclass
class Message:
    name: str
    parts: list[Part] = field(default_factory=list)


@dataclass
class Operation:
    name: str
    doc: str = ""
    input: str | None = None  # qualified message name
    output: str | None = None
    parameter_order: list[str] = field(default_factory=list)


@dataclass
class PortType:
    name: str = ""
    operations: list[Operation] = field(default_factory=list)


@dataclass
class BindingBody:
    use: str = ""
    namespace: str = ""
    parts: list[str] = field(default_factory=list)


@dataclass
class BindingOperation:
    name: str
    soap12_action: str = ""
    soap11_action: str = ""
    style: str = ""  # per-operation override of the binding style
    input: BindingBody | None = None
    output: BindingBody | None = None


@dataclass
class Binding:
    name: str = ""
    type: str = ""  # qualified port type name
    style: str = ""
    transport: str = ""
    operations: list[BindingOperation] = field(default_factory=list)


@dataclass
class Port:
    name: str
    binding: str = ""
    address: str = ""


@dataclass
class Service:
    name: str = ""
    doc: str = ""
    ports: list[Port] = field(default_factory=list)


@dataclass
class Import:
    namespace: str = ""
    location: str = ""


@dataclass
class Definitions:
    name: str = ""
    target_namespace: str = ""
    namespaces: dict[str, str] = field(default_factory=dict)
    schema: Schema = field(default_factory=Schema)
    messages: list[Message] = field(default_factory=list)
    port_type: PortType = field(default_factory=PortType)
    binding: Binding = field(default_factory=Binding)
    service: Service = field(default_factory=Service)
    imports: list[Import] = field(default_factory=list)
    location: str = ""  # where the document was read from, if known

    def resolve_prefix(self, prefix: str) -> str | None:
        """Return the namespace URI bound to prefix, schema declarations first."""
        if prefix == "xml":
            return XML_NAMESPACE
        if prefix in self.schema.namespaces:
            return self.schema.namespaces[prefix]
        return self.namespaces.get(prefix)
