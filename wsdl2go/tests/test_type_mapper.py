"""Tests for wsdl2go.emitter.type_mapper module."""

from __future__ import annotations

import pytest

from wsdl2go.emitter.type_mapper import (
    ABSTRACT,
    ANY,
    ARRAY,
    COMPLEX,
    MARKER,
    PRIMITIVE,
    SIMPLE,
    TypeMapper,
)
from wsdl2go.model.symbols import build_cache
from wsdl2go.parser.decoder import decode


def _mapper(types: str = "") -> TypeMapper:
    defs = decode(
        '<definitions name="Svc" targetNamespace="urn:svc"'
        ' xmlns="http://schemas.xmlsoap.org/wsdl/"'
        ' xmlns:tns="urn:svc" xmlns:xsd="http://www.w3.org/2001/XMLSchema"'
        ' xmlns:soapenc="http://schemas.xmlsoap.org/soap/encoding/"'
        ' xmlns:wsdl="http://schemas.xmlsoap.org/wsdl/">'
        f'<types><xsd:schema targetNamespace="urn:svc">{types}</xsd:schema></types>'
        "</definitions>"
    )
    return TypeMapper(build_cache(defs))


class TestPrimitives:
    """Tests for built-in XSD type mapping."""

    @pytest.mark.parametrize("qname,go", [
        ("xsd:int", "int32"),
        ("xsd:long", "int64"),
        ("xsd:short", "int16"),
        ("xsd:unsignedByte", "uint8"),
        ("xsd:integer", "int64"),
        ("xsd:decimal", "float64"),
        ("xsd:double", "float64"),
        ("xsd:float", "float64"),
        ("xsd:boolean", "bool"),
        ("xsd:string", "string"),
        ("xsd:anyURI", "string"),
        ("xsd:token", "string"),
        ("xsd:QName", "string"),
        ("xsd:normalizedString", "string"),
        ("xsd:language", "string"),
        ("xsd:ID", "string"),
        ("xsd:base64Binary", "[]byte"),
        ("xsd:hexBinary", "[]byte"),
    ])
    def test_table(self, qname, go):
        assert _mapper().map_type(qname).name == go

    def test_case_insensitive(self):
        assert _mapper().map_type("xsd:STRING").name == "string"

    def test_unprefixed(self):
        assert _mapper().map_type("boolean").name == "bool"

    @pytest.mark.parametrize("qname", ["xsd:anyType", "xsd:anySimpleType", "anySequence"])
    def test_dynamic(self, qname):
        go = _mapper().map_type(qname)
        assert go.name == "interface{}"
        assert go.kind == ANY

    def test_zero_values(self):
        mapper = _mapper()
        assert mapper.map_type("xsd:int").zero == "0"
        assert mapper.map_type("xsd:string").zero == '""'
        assert mapper.map_type("xsd:boolean").zero == "false"
        assert mapper.map_type("xsd:base64Binary").zero == "nil"

    def test_unknown_xsd_type_is_string(self):
        go = _mapper().map_type("xsd:gibberish")
        assert go.name == "string"
        assert go.kind == PRIMITIVE


class TestMarkers:
    """Tests for the Date/Time/DateTime/Duration marker types."""

    @pytest.mark.parametrize("qname,go", [
        ("xsd:date", "Date"),
        ("xsd:time", "Time"),
        ("xsd:dateTime", "DateTime"),
        ("xsd:duration", "Duration"),
    ])
    def test_flagged(self, qname, go):
        mapper = _mapper()
        mapped = mapper.map_type(qname)
        assert mapped.name == go
        assert mapped.kind == MARKER
        assert mapper.needs == {go}

    def test_not_flagged_without_use(self):
        mapper = _mapper()
        mapper.map_type("xsd:string")
        assert mapper.needs == set()


class TestSchemaTypes:
    """Tests for simple and complex types from the schema."""

    def test_simple_type_first(self):
        mapper = _mapper('<xsd:simpleType name="int"><xsd:restriction base="xsd:long"/></xsd:simpleType>')
        go = mapper.map_type("tns:int")
        assert go.kind == SIMPLE
        assert go.name == "Int"
        assert go.zero == "0"

    def test_simple_type_zero_follows_base(self):
        mapper = _mapper(
            '<xsd:simpleType name="Color"><xsd:restriction base="xsd:string"/></xsd:simpleType>'
            '<xsd:simpleType name="Shade"><xsd:restriction base="tns:Color"/></xsd:simpleType>'
        )
        assert mapper.map_type("tns:Shade").zero == '""'

    def test_self_referencing_simple_type(self):
        mapper = _mapper('<xsd:simpleType name="Loop"><xsd:restriction base="tns:Loop"/></xsd:simpleType>')
        assert mapper.map_type("tns:Loop").zero == '""'

    def test_complex_type_pointer(self):
        go = _mapper('<xsd:complexType name="point"/>').map_type("tns:point")
        assert go.kind == COMPLEX
        assert go.name == "Point"
        assert go.ref == "*Point"
        assert go.zero == "nil"

    def test_complex_type_shadows_primitive_name(self):
        go = _mapper('<xsd:complexType name="Date"/>').map_type("tns:Date")
        assert go.kind == COMPLEX
        # Date is taken by the marker type.
        assert go.name == "DateType"

    def test_xsd_prefix_not_shadowed(self):
        mapper = _mapper('<xsd:complexType name="string"/>')
        assert mapper.map_type("xsd:string").name == "string"

    def test_abstract(self):
        go = _mapper('<xsd:complexType name="Shape" abstract="true"/>').map_type("tns:Shape")
        assert go.kind == ABSTRACT
        assert go.ref == "Shape"

    def test_array(self):
        go = _mapper(
            '<xsd:complexType name="ItemArray"><xsd:complexContent>'
            '<xsd:restriction base="soapenc:Array">'
            '<xsd:attribute ref="soapenc:arrayType" wsdl:arrayType="tns:Item[]"/>'
            "</xsd:restriction></xsd:complexContent></xsd:complexType>"
            '<xsd:complexType name="Item"/>'
        ).map_type("tns:ItemArray")
        assert go.kind == ARRAY
        assert go.ref == "ItemArray"
        assert go.item.ref == "*Item"

    def test_unknown_recorded_as_pending(self):
        mapper = _mapper()
        go = mapper.map_type("tns:some.thing", referrer="field x")
        assert go.name == "SomeThing"
        assert mapper.references == {"some.thing": "field x"}


class TestNames:
    """Tests for the Go type name registry."""

    def test_deterministic_collisions(self):
        mapper = _mapper(
            '<xsd:complexType name="foo_bar"/>'
            '<xsd:complexType name="fooBar"/>'
            '<xsd:simpleType name="FooBar"><xsd:restriction base="xsd:string"/></xsd:simpleType>'
        )
        assert mapper.simple_names == {"FooBar": "FooBar"}
        assert mapper.complex_names == {"fooBar": "FooBarType", "foo_bar": "FooBar2"}

    def test_reserved_names(self):
        mapper = _mapper('<xsd:complexType name="Namespace"/>')
        assert mapper.complex_names["Namespace"] == "NamespaceType"

    def test_claim(self):
        mapper = _mapper('<xsd:complexType name="Service"/>')
        assert mapper.claim("Service", "Interface") == "ServiceInterface"
        assert mapper.claim("Other") == "Other"
        assert "Other" in mapper.taken
