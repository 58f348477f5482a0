"""Tests for wsdl2go.emitter.operation_gen module."""

from __future__ import annotations

import pytest

from wsdl2go.emitter.operation_gen import OperationGenerator, check_binding, fix_conflicts, order_parts
from wsdl2go.emitter.struct_gen import StructGenerator
from wsdl2go.emitter.type_mapper import GoType, TypeMapper
from wsdl2go.emitter.views import ParamView
from wsdl2go.errors import BindingMismatch, UndefinedMessage, UndefinedType
from wsdl2go.model.symbols import build_cache
from wsdl2go.model.wsdl import Part
from wsdl2go.parser.decoder import decode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _wsdl(body: str, types: str = "") -> str:
    return (
        '<definitions name="Svc" targetNamespace="urn:svc"'
        ' xmlns="http://schemas.xmlsoap.org/wsdl/"'
        ' xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"'
        ' xmlns:soap12="http://schemas.xmlsoap.org/wsdl/soap12/"'
        ' xmlns:soapenc="http://schemas.xmlsoap.org/soap/encoding/"'
        ' xmlns:wsdl="http://schemas.xmlsoap.org/wsdl/"'
        ' xmlns:tns="urn:svc" xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
        f'<types><xsd:schema targetNamespace="urn:svc">{types}</xsd:schema></types>'
        + body + "</definitions>"
    )


def _generator(body: str, types: str = "") -> OperationGenerator:
    table = build_cache(decode(_wsdl(body, types)))
    mapper = TypeMapper(table)
    return OperationGenerator(table, mapper, StructGenerator(table, mapper))


def _operation(gen: OperationGenerator, name: str):
    return gen.generate(gen.table.operations[name])


def _param(name: str, go: str = "string") -> ParamView:
    return ParamView(name=name, type=GoType(go, "primitive", '""'), wire=name)


_RPC = (
    '<message name="PingRequest"><part name="status" type="xsd:string"/></message>'
    '<message name="PingResponse"><part name="ok" type="xsd:boolean"/></message>'
    '<portType name="PingPort">'
    '<operation name="Ping"><input message="tns:PingRequest"/><output message="tns:PingResponse"/></operation>'
    "</portType>"
    '<binding name="PingBinding" type="tns:PingPort">'
    '<soap:binding style="rpc" transport="http://schemas.xmlsoap.org/soap/http"/>'
    '<operation name="Ping"><soap:operation soapAction="Ping"/>'
    '<input><soap:body use="literal" namespace="urn:ping"/></input>'
    '<output><soap:body use="literal" namespace="urn:ping"/></output>'
    "</operation></binding>"
)

_DOC_TYPES = (
    '<xsd:element name="GetQuote"><xsd:complexType><xsd:sequence>'
    '<xsd:element name="symbol" type="xsd:string"/>'
    "</xsd:sequence></xsd:complexType></xsd:element>"
    '<xsd:element name="GetQuoteResponse"><xsd:complexType><xsd:sequence>'
    '<xsd:element name="price" type="xsd:double"/>'
    "</xsd:sequence></xsd:complexType></xsd:element>"
)

_DOC = (
    '<message name="GetQuoteIn"><part name="parameters" element="tns:GetQuote"/></message>'
    '<message name="GetQuoteOut"><part name="parameters" element="tns:GetQuoteResponse"/></message>'
    '<portType name="QuotePort">'
    '<operation name="GetQuote"><input message="tns:GetQuoteIn"/><output message="tns:GetQuoteOut"/></operation>'
    "</portType>"
    '<binding name="QuoteBinding" type="tns:QuotePort"><soap12:binding style="document"/>'
    '<operation name="GetQuote"><soap12:operation soapAction="urn:GetQuote"/></operation>'
    "</binding>"
)


# ---------------------------------------------------------------------------
# order_parts / fix_conflicts
# ---------------------------------------------------------------------------

class TestOrderParts:
    """Tests for order_parts."""

    def test_no_override(self):
        parts = [Part("a"), Part("b")]
        assert order_parts(parts, []) == parts

    def test_override(self):
        parts = [Part("a"), Part("b"), Part("c")]
        assert [p.name for p in order_parts(parts, ["c", "a"])] == ["c", "a", "b"]

    def test_unknown_names_ignored(self):
        assert [p.name for p in order_parts([Part("a")], ["zz", "a"])] == ["a"]


class TestFixConflicts:
    """Tests for fix_conflicts."""

    def test_no_conflict(self):
        outputs = [_param("ok")]
        fix_conflicts([_param("status")], outputs)
        assert outputs[0].name == "ok"

    def test_conflict_prefixed(self):
        outputs = [_param("status")]
        fix_conflicts([_param("status")], outputs)
        assert outputs[0].name == "respStatus"

    def test_repeated_until_distinct(self):
        outputs = [_param("status")]
        fix_conflicts([_param("status"), _param("respStatus")], outputs)
        assert outputs[0].name == "respRespStatus"

    def test_outputs_distinct_from_each_other(self):
        outputs = [_param("value"), _param("value")]
        fix_conflicts([], outputs)
        assert [p.name for p in outputs] == ["value", "respValue"]


# ---------------------------------------------------------------------------
# check_binding
# ---------------------------------------------------------------------------

class TestCheckBinding:
    """Tests for check_binding."""

    def test_match(self):
        check_binding(build_cache(decode(_wsdl(_RPC))))

    def test_mismatch(self):
        body = _RPC.replace('type="tns:PingPort"', 'type="tns:OtherPort"')
        with pytest.raises(BindingMismatch, match="OtherPort"):
            check_binding(build_cache(decode(_wsdl(body))))


# ---------------------------------------------------------------------------
# OperationGenerator
# ---------------------------------------------------------------------------

class TestRpcStyle:
    """Tests for RPC style operations."""

    def test_signature(self):
        view = _operation(_generator(_RPC), "Ping")
        assert view.signature == "Ping(ctx context.Context, status string) (ok bool, err error)"

    def test_action_dispatch(self):
        view = _operation(_generator(_RPC), "Ping")
        assert view.round_trip == "RoundTripWithAction"
        assert view.action == '"Ping"'

    def test_wrapper(self):
        view = _operation(_generator(_RPC), "Ping")
        assert view.request_tag == 'xml:"urn:ping Ping"'
        assert [(f.name, f.type, f.tag, f.value) for f in view.request_fields] == [
            ("Status", "string", 'xml:"status"', "status"),
        ]
        assert view.response_wrapper == "PingResponse"
        assert view.returns == ["resp.M.Ok"]
        assert view.zero_returns == ["false"]

    def test_empty_wrapper(self):
        body = _RPC.replace('<part name="status" type="xsd:string"/>', "")
        view = _operation(_generator(body), "Ping")
        assert view.request_fields == []
        assert view.request_tag == 'xml:"urn:ping Ping"'

    def test_parameter_order(self):
        body = (
            '<message name="In"><part name="a" type="xsd:int"/><part name="b" type="xsd:string"/></message>'
            '<portType name="P"><operation name="Op" parameterOrder="b a"><input message="tns:In"/></operation></portType>'
            '<binding name="B" type="tns:P"><soap:binding style="rpc"/><operation name="Op"/></binding>'
        )
        view = _operation(_generator(body), "Op")
        assert [p.code for p in view.inputs] == ["b string", "a int32"]
        assert view.round_trip == "RoundTrip"
        assert view.action == ""

    def test_keyword_parameters(self):
        body = (
            '<message name="In"><part name="type" type="xsd:string"/><part name="err" type="xsd:string"/></message>'
            '<message name="Out"><part name="type" type="xsd:string"/></message>'
            '<portType name="P"><operation name="Op"><input message="tns:In"/><output message="tns:Out"/></operation></portType>'
            '<binding name="B" type="tns:P"><soap:binding style="rpc"/><operation name="Op"/></binding>'
        )
        view = _operation(_generator(body), "Op")
        assert [p.name for p in view.inputs] == ["typeVal", "errVal"]
        assert [p.name for p in view.outputs] == ["respTypeVal"]

    def test_operation_style_overrides_binding(self):
        body = _RPC.replace('<soap:operation soapAction="Ping"/>', '<soap:operation soapAction="Ping" style="document"/>')
        view = _operation(_generator(body), "Ping")
        assert view.response_wrapper == ""


class TestDocumentStyle:
    """Tests for document style operations."""

    def test_signature(self):
        view = _operation(_generator(_DOC, _DOC_TYPES), "GetQuote")
        assert view.signature == (
            "GetQuote(ctx context.Context, parameters *GetQuote) "
            "(respParameters *GetQuoteResponse, err error)"
        )

    def test_soap12_dispatch(self):
        view = _operation(_generator(_DOC, _DOC_TYPES), "GetQuote")
        assert view.round_trip == "RoundTripSoap12"
        assert view.action == '"urn:GetQuote"'

    def test_element_wrapping(self):
        view = _operation(_generator(_DOC, _DOC_TYPES), "GetQuote")
        assert view.request_tag == 'xml:"urn:svc GetQuote"'
        embedded = view.request_fields[0]
        assert (embedded.name, embedded.type, embedded.key, embedded.value) == (
            "", "*GetQuote", "GetQuote", "parameters",
        )
        assert [(f.name, f.tag) for f in view.response_fields] == [
            ("GetQuoteResponse", 'xml:"GetQuoteResponse"'),
        ]
        assert view.returns == ["resp.GetQuoteResponse"]
        assert view.zero_returns == ["nil"]

    def test_simple_element_part(self):
        body = (
            '<message name="In"><part name="body" element="tns:Text"/></message>'
            '<portType name="P"><operation name="Echo"><input message="tns:In"/></operation></portType>'
            '<binding name="B" type="tns:P"><operation name="Echo"/></binding>'
        )
        view = _operation(_generator(body, '<xsd:element name="Text" type="xsd:string"/>'), "Echo")
        assert view.request_tag == 'xml:"urn:svc Text"'
        assert view.request_fields[0].tag == 'xml:",chardata"'

    def test_missing_element(self):
        body = _DOC.replace("tns:GetQuoteResponse", "tns:Gone")
        with pytest.raises(UndefinedType, match="Gone"):
            _operation(_generator(body, _DOC_TYPES), "GetQuote")


class TestStubs:
    """Tests for operations without a SOAP binding entry."""

    def test_stub(self):
        body = _RPC.replace('<operation name="Ping"><soap:operation', '<operation name="Other"><soap:operation')
        view = _operation(_generator(body), "Ping")
        assert not view.bound
        assert view.zero_returns == ["false"]
        assert view.signature == "Ping(ctx context.Context, status string) (ok bool, err error)"


class TestMissingMessage:
    """Tests for UndefinedMessage."""

    def test_output_missing(self):
        body = _RPC.replace('<output message="tns:PingResponse"/>', '<output message="tns:Nope"/>')
        with pytest.raises(UndefinedMessage) as excinfo:
            _operation(_generator(body), "Ping")
        assert "Ping" in str(excinfo.value)
        assert "Nope" in str(excinfo.value)


class TestPrepare:
    """Tests for PrepareXML calls on request parameters."""

    _TYPES = (
        '<xsd:complexType name="Base"><xsd:sequence>'
        '<xsd:element name="id" type="xsd:int"/>'
        "</xsd:sequence></xsd:complexType>"
        '<xsd:complexType name="Circle"><xsd:complexContent><xsd:extension base="tns:Base">'
        '<xsd:sequence><xsd:element name="radius" type="xsd:double"/></xsd:sequence>'
        "</xsd:extension></xsd:complexContent></xsd:complexType>"
        '<xsd:complexType name="CircleArray"><xsd:complexContent>'
        '<xsd:restriction base="soapenc:Array">'
        '<xsd:attribute ref="soapenc:arrayType" wsdl:arrayType="tns:Circle[]"/>'
        "</xsd:restriction></xsd:complexContent></xsd:complexType>"
        '<xsd:complexType name="Shape" abstract="true"/>'
    )

    _BODY = (
        '<message name="In">'
        '<part name="circles" type="tns:CircleArray"/>'
        '<part name="circle" type="tns:Circle"/>'
        '<part name="base" type="tns:Base"/>'
        '<part name="shape" type="tns:Shape"/>'
        '<part name="count" type="xsd:int"/>'
        "</message>"
        '<portType name="P"><operation name="Draw"><input message="tns:In"/></operation></portType>'
        '<binding name="B" type="tns:P"><soap:binding style="rpc"/><operation name="Draw"/></binding>'
    )

    def test_steps(self):
        table = build_cache(decode(_wsdl(self._BODY, self._TYPES)))
        mapper = TypeMapper(table)
        structs = StructGenerator(table, mapper)
        gen = OperationGenerator(table, mapper, structs)
        decls = [structs.generate_type(key) for key in sorted(table.complex_types)]
        structs.plan_visitors(decls)
        gen.needy = {d.name for d in decls if d.needs_visitor}

        view = gen.generate(table.operations["Draw"])
        assert view.inputs[0].code == "circles CircleArray"
        assert [(s.field, s.mode) for s in view.prepares] == [
            ("circles", "value"), ("circle", "pointer"), ("shape", "dynamic"),
        ]
