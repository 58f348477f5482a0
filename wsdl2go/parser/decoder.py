"""Decode WSDL documents and XML Schema fragments into model dataclasses."""

from __future__ import annotations

import codecs
import io
import logging
import re
import xml.etree.ElementTree as ET

from wsdl2go.errors import MalformedDocument
from wsdl2go.model.wsdl import (
    SOAP11_NAMESPACE,
    SOAP12_NAMESPACE,
    AnyElement,
    Attribute,
    AttributeGroup,
    Binding,
    BindingBody,
    BindingOperation,
    ComplexExtension,
    ComplexRestriction,
    ComplexType,
    Definitions,
    Element,
    EmptyContent,
    GroupContent,
    Import,
    Message,
    ModelGroup,
    Operation,
    Part,
    Port,
    PortType,
    Restriction,
    Schema,
    SchemaImport,
    Service,
    SimpleContent,
    SimpleType,
    UnionType,
)

logger = logging.getLogger(__name__)

_XML_DECL = re.compile(rb"""^(\s*<\?xml[^>]*?encoding\s*=\s*["'])([A-Za-z0-9._:\-]+)(["'])""")

_GROUP_TAGS = ("sequence", "choice", "all")

# Namespace declarations seen on each element, keyed by id() of the element.
NamespaceDecls = dict[int, dict[str, str]]


def decode(raw: bytes | str) -> Definitions:
    """Decode a WSDL document rooted at <definitions>."""
    root, declared = _parse(raw)
    if _local(root.tag) != "definitions":
        raise MalformedDocument(f"root element is <{_local(root.tag)}>, want <definitions>")
    return _decode_definitions(root, declared)


def decode_schema(raw: bytes | str) -> Schema:
    """Decode a standalone XML Schema document rooted at <schema>."""
    root, declared = _parse(raw)
    if _local(root.tag) != "schema":
        raise MalformedDocument(f"root element is <{_local(root.tag)}>, want <schema>")
    return _decode_schema(root, declared)


def _parse(raw: bytes | str) -> tuple[ET.Element, NamespaceDecls]:
    """Parse raw XML, recording the xmlns declarations made on every element.

    ElementTree resolves prefixes in tags but not in attribute values such as
    type="tns:Foo", so the declarations are captured from start-ns events and
    attached to the element that follows them.
    """
    if isinstance(raw, str):
        raw = _XML_DECL.sub(rb"\g<1>utf-8\g<3>", raw.encode("utf-8"), count=1)
    else:
        raw = _transcode(raw)

    declared: NamespaceDecls = {}
    pending: dict[str, str] = {}
    root: ET.Element | None = None
    try:
        for event, item in ET.iterparse(io.BytesIO(raw), events=("start-ns", "start")):
            if event == "start-ns":
                prefix, uri = item
                pending[prefix] = uri
                continue
            if pending:
                declared[id(item)] = pending
                pending = {}
            if root is None:
                root = item
    except ET.ParseError as exc:
        raise MalformedDocument(f"malformed XML: {exc}") from exc
    if root is None:
        raise MalformedDocument("malformed XML: no root element")
    return root, declared


def _transcode(raw: bytes) -> bytes:
    """Re-encode a document declaring a non UTF-8 charset as UTF-8."""
    match = _XML_DECL.match(raw)
    if not match:
        return raw
    label = match.group(2).decode("ascii")
    try:
        codec = codecs.lookup(label)
    except LookupError as exc:
        raise MalformedDocument(f"unknown document encoding {label!r}") from exc
    if codec.name == "utf-8":
        return raw
    try:
        text = raw.decode(codec.name)
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"document is not valid {label}: {exc}") from exc
    logger.debug("transcoding document from %s to utf-8", label)
    return _XML_DECL.sub(rb"\g<1>utf-8\g<3>", text.encode("utf-8"), count=1)


def _local(tag: str) -> str:
    """Strip the {namespace} part of an ElementTree tag or attribute key."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local(child.tag) == name]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _doc(elem: ET.Element) -> str:
    """Text of a <documentation> child, directly or under <annotation>."""
    doc = _child(elem, "documentation")
    if doc is None:
        annotation = _child(elem, "annotation")
        if annotation is not None:
            doc = _child(annotation, "documentation")
    if doc is None:
        return ""
    return "".join(doc.itertext()).strip()


def _attr(elem: ET.Element, name: str) -> str:
    """Attribute value by local name, ignoring any namespace on the key."""
    if name in elem.attrib:
        return elem.attrib[name]
    for key, value in elem.attrib.items():
        if _local(key) == name:
            return value
    return ""


def _bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1")


def _min_occurs(elem: ET.Element) -> int:
    value = elem.attrib.get("minOccurs", "")
    try:
        return int(value) if value else 1
    except ValueError:
        return 1


def _max_occurs(elem: ET.Element) -> str:
    return elem.attrib.get("maxOccurs", "1") or "1"


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def _decode_definitions(root: ET.Element, declared: NamespaceDecls) -> Definitions:
    defs = Definitions(
        name=root.attrib.get("name", ""),
        target_namespace=root.attrib.get("targetNamespace", ""),
    )
    defs.namespaces.update(declared.get(id(root), {}))

    for child in root:
        tag = _local(child.tag)
        if tag == "import":
            defs.imports.append(Import(
                namespace=child.attrib.get("namespace", ""),
                location=child.attrib.get("location", ""),
            ))
        elif tag == "types":
            for schema_elem in _children(child, "schema"):
                defs.schema.merge(_decode_schema(schema_elem, declared))
            continue
        elif tag == "message":
            defs.messages.append(_decode_message(child))
        elif tag == "portType":
            if defs.port_type.name or defs.port_type.operations:
                logger.debug("ignoring extra portType %r", child.attrib.get("name", ""))
            else:
                defs.port_type = _decode_port_type(child)
        elif tag == "binding":
            if defs.binding.name or defs.binding.operations:
                logger.debug("ignoring extra binding %r", child.attrib.get("name", ""))
            else:
                defs.binding = _decode_binding(child)
        elif tag == "service":
            if not defs.service.name:
                defs.service = _decode_service(child)
        # Declarations outside <types> belong to the document scope.
        for elem in child.iter():
            defs.namespaces.update(declared.get(id(elem), {}))

    return defs


def _decode_message(elem: ET.Element) -> Message:
    return Message(
        name=elem.attrib.get("name", ""),
        parts=[
            Part(
                name=part.attrib.get("name", ""),
                type=part.attrib.get("type", ""),
                element=part.attrib.get("element", ""),
            )
            for part in _children(elem, "part")
        ],
    )


def _decode_port_type(elem: ET.Element) -> PortType:
    port_type = PortType(name=elem.attrib.get("name", ""))
    for op_elem in _children(elem, "operation"):
        op = Operation(
            name=op_elem.attrib.get("name", ""),
            doc=_doc(op_elem),
            parameter_order=op_elem.attrib.get("parameterOrder", "").split(),
        )
        input_elem = _child(op_elem, "input")
        if input_elem is not None:
            op.input = input_elem.attrib.get("message", "")
        output_elem = _child(op_elem, "output")
        if output_elem is not None:
            op.output = output_elem.attrib.get("message", "")
        port_type.operations.append(op)
    return port_type


def _decode_binding(elem: ET.Element) -> Binding:
    binding = Binding(name=elem.attrib.get("name", ""), type=elem.attrib.get("type", ""))
    for child in elem:
        tag = _local(child.tag)
        if tag == "binding" and _namespace(child.tag) in (SOAP11_NAMESPACE, SOAP12_NAMESPACE):
            binding.style = child.attrib.get("style", "")
            binding.transport = child.attrib.get("transport", "")
        elif tag == "operation":
            binding.operations.append(_decode_binding_operation(child))
    return binding


def _decode_binding_operation(elem: ET.Element) -> BindingOperation:
    bop = BindingOperation(name=elem.attrib.get("name", ""))
    for child in elem:
        tag, ns = _local(child.tag), _namespace(child.tag)
        if tag == "operation" and ns == SOAP12_NAMESPACE:
            bop.soap12_action = child.attrib.get("soapAction", "")
            bop.style = bop.style or child.attrib.get("style", "")
        elif tag == "operation" and ns == SOAP11_NAMESPACE:
            bop.soap11_action = child.attrib.get("soapAction", "")
            bop.style = bop.style or child.attrib.get("style", "")
        elif tag in ("input", "output"):
            body = _child(child, "body")
            if body is None:
                continue
            decoded = BindingBody(
                use=body.attrib.get("use", ""),
                namespace=body.attrib.get("namespace", ""),
                parts=body.attrib.get("parts", "").split(),
            )
            if tag == "input":
                bop.input = decoded
            else:
                bop.output = decoded
    return bop


def _decode_service(elem: ET.Element) -> Service:
    service = Service(name=elem.attrib.get("name", ""), doc=_doc(elem))
    for port_elem in _children(elem, "port"):
        address = _child(port_elem, "address")
        service.ports.append(Port(
            name=port_elem.attrib.get("name", ""),
            binding=port_elem.attrib.get("binding", ""),
            address=address.attrib.get("location", "") if address is not None else "",
        ))
    return service


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

def _decode_schema(elem: ET.Element, declared: NamespaceDecls) -> Schema:
    tns = elem.attrib.get("targetNamespace", "")
    schema = Schema(target_namespace=tns)
    for sub in elem.iter():
        schema.namespaces.update(declared.get(id(sub), {}))

    for child in elem:
        tag = _local(child.tag)
        if tag in ("import", "include"):
            schema.imports.append(SchemaImport(
                namespace=child.attrib.get("namespace", ""),
                location=child.attrib.get("schemaLocation", ""),
                include=tag == "include",
            ))
        elif tag == "simpleType":
            schema.simple_types.append(_decode_simple_type(child, tns))
        elif tag == "complexType":
            schema.complex_types.append(_decode_complex_type(child, tns))
        elif tag == "element":
            schema.elements.append(_decode_element(child, tns))
        elif tag == "attributeGroup":
            schema.attribute_groups.append(_decode_attribute_group(child))
    return schema


def _decode_simple_type(elem: ET.Element, tns: str, name: str = "") -> SimpleType:
    st = SimpleType(name=name or elem.attrib.get("name", ""), target_namespace=tns)
    restriction = _child(elem, "restriction")
    if restriction is not None:
        st.restriction = Restriction(
            base=restriction.attrib.get("base", ""),
            enumerations=[e.attrib.get("value", "") for e in _children(restriction, "enumeration")],
        )
    union = _child(elem, "union")
    if union is not None:
        st.union = UnionType(member_types=union.attrib.get("memberTypes", "").split())
    if st.restriction is None and st.union is None and _child(elem, "list") is not None:
        # xs:list values travel as whitespace separated strings.
        st.restriction = Restriction(base="string")
    return st


def _decode_complex_type(elem: ET.Element, tns: str, name: str = "") -> ComplexType:
    ct = ComplexType(
        name=name or elem.attrib.get("name", ""),
        abstract=_bool(elem.attrib.get("abstract", "")),
        doc=_doc(elem),
        target_namespace=tns,
    )
    for child in elem:
        tag = _local(child.tag)
        if tag in _GROUP_TAGS:
            if isinstance(ct.content, EmptyContent):
                ct.content = GroupContent(group=_decode_group(child, tns))
        elif tag == "complexContent":
            ct.content = _decode_complex_content(child, tns)
        elif tag == "simpleContent":
            ct.content = _decode_simple_content(child)
        elif tag == "attribute":
            ct.attributes.append(_decode_attribute(child))
        elif tag == "attributeGroup":
            ct.attribute_groups.append(_decode_attribute_group(child))
    return ct


def _decode_complex_content(elem: ET.Element, tns: str) -> ComplexExtension | ComplexRestriction | EmptyContent:
    for child in elem:
        tag = _local(child.tag)
        if tag not in ("extension", "restriction"):
            continue
        group = None
        attributes: list[Attribute] = []
        attribute_groups: list[AttributeGroup] = []
        for sub in child:
            sub_tag = _local(sub.tag)
            if sub_tag in _GROUP_TAGS and group is None:
                group = _decode_group(sub, tns)
            elif sub_tag == "attribute":
                attributes.append(_decode_attribute(sub))
            elif sub_tag == "attributeGroup":
                attribute_groups.append(_decode_attribute_group(sub))
        cls = ComplexExtension if tag == "extension" else ComplexRestriction
        return cls(
            base=child.attrib.get("base", ""),
            group=group,
            attributes=attributes,
            attribute_groups=attribute_groups,
        )
    return EmptyContent()


def _decode_simple_content(elem: ET.Element) -> SimpleContent | EmptyContent:
    for child in elem:
        tag = _local(child.tag)
        if tag not in ("extension", "restriction"):
            continue
        return SimpleContent(
            base=child.attrib.get("base", ""),
            derivation=tag,
            attributes=[_decode_attribute(a) for a in _children(child, "attribute")],
            attribute_groups=[_decode_attribute_group(g) for g in _children(child, "attributeGroup")],
        )
    return EmptyContent()


def _decode_group(elem: ET.Element, tns: str) -> ModelGroup:
    group = ModelGroup(
        kind=_local(elem.tag),
        min_occurs=_min_occurs(elem),
        max_occurs=_max_occurs(elem),
    )
    for child in elem:
        tag = _local(child.tag)
        if tag == "element":
            group.particles.append(_decode_element(child, tns))
        elif tag in _GROUP_TAGS:
            group.particles.append(_decode_group(child, tns))
        elif tag == "any":
            group.particles.append(AnyElement(
                min_occurs=_min_occurs(child),
                max_occurs=_max_occurs(child),
            ))
        elif tag == "complexType":
            group.particles.append(_decode_complex_type(child, tns))
        elif tag == "group":
            logger.debug("model group reference %r is not supported", child.attrib.get("ref", ""))
    return group


def _decode_element(elem: ET.Element, tns: str) -> Element:
    el = Element(
        name=elem.attrib.get("name", ""),
        type=elem.attrib.get("type", ""),
        ref=elem.attrib.get("ref", ""),
        min_occurs=_min_occurs(elem),
        max_occurs=_max_occurs(elem),
        nillable=_bool(elem.attrib.get("nillable", "")),
        target_namespace=tns,
    )
    complex_elem = _child(elem, "complexType")
    if complex_elem is not None:
        el.complex_type = _decode_complex_type(complex_elem, tns, name=el.name)
    simple_elem = _child(elem, "simpleType")
    if simple_elem is not None:
        el.simple_type = _decode_simple_type(simple_elem, tns, name=el.name)
    return el


def _decode_attribute(elem: ET.Element) -> Attribute:
    attr = Attribute(
        name=elem.attrib.get("name", ""),
        type=elem.attrib.get("type", ""),
        ref=elem.attrib.get("ref", ""),
        array_type=_attr(elem, "arrayType"),
        use=elem.attrib.get("use", ""),
    )
    simple_elem = _child(elem, "simpleType")
    if simple_elem is not None:
        attr.simple_type = _decode_simple_type(simple_elem, "", name=attr.name)
    return attr


def _decode_attribute_group(elem: ET.Element) -> AttributeGroup:
    return AttributeGroup(
        name=elem.attrib.get("name", ""),
        ref=elem.attrib.get("ref", ""),
        attributes=[_decode_attribute(a) for a in _children(elem, "attribute")],
        groups=[_decode_attribute_group(g) for g in _children(elem, "attributeGroup")],
    )


def decode_document(raw: bytes | str) -> Definitions | Schema:
    """Decode either a WSDL document or a standalone schema, by root element."""
    root, declared = _parse(raw)
    tag = _local(root.tag)
    if tag == "definitions":
        return _decode_definitions(root, declared)
    if tag == "schema":
        return _decode_schema(root, declared)
    raise MalformedDocument(f"root element is <{tag}>, want <definitions> or <schema>")
