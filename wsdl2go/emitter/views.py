"""Template-friendly views of the declarations making up a generated Go file."""

from __future__ import annotations

import json
import textwrap
from dataclasses import dataclass, field

from wsdl2go.emitter.type_mapper import GoType


def go_quote(s: str) -> str:
    """Quote s as a Go interpreted string literal."""
    return json.dumps(s, ensure_ascii=False)


def comment_lines(name: str, doc: str = "") -> list[str]:
    """Doc comment lines for a declaration, wrapped at ~60 columns."""
    text = " ".join(doc.split())
    if not text:
        text = f"{name} was auto-generated from WSDL."
    return ["// " + line for line in textwrap.wrap(text, width=60, break_long_words=False)]


def struct_tag(*parts: tuple[str, str]) -> str:
    """Render struct tag pairs such as ('xml', 'name,omitempty')."""
    return " ".join(f"{key}:{go_quote(value)}" for key, value in parts)


def element_tag(path: str, optional: bool) -> str:
    value = path + (",omitempty" if optional else "")
    return struct_tag(("xml", value), ("json", value), ("yaml", value))


@dataclass
class FieldView:
    name: str
    type: str
    tag: str
    go_type: GoType | None = None  # mapped element type, for the wire type visitor
    repeated: bool = False


@dataclass
class VisitStep:
    """One statement of a generated PrepareXML visitor."""

    field: str
    mode: str  # "pointer", "value", "slice", "dynamic" or "dynamic_slice"


@dataclass
class WireTypeView:
    type_name: str  # quoted value of the xsi:type attribute
    namespace: str  # quoted


@dataclass
class TypeDecl:
    name: str
    comments: list[str]
    kind: str  # "struct", "alias" or "interface"
    alias: str = ""
    fields: list[FieldView] = field(default_factory=list)
    enum_values: list[str] = field(default_factory=list)  # Go literals for Validate()
    wire_type: WireTypeView | None = None
    array_item: GoType | None = None  # element type of a SOAP-encoding array alias
    visits: list[VisitStep] = field(default_factory=list)
    needs_visitor: bool = False


@dataclass
class ParamView:
    name: str
    type: GoType
    wire: str  # element or part name on the wire

    @property
    def code(self) -> str:
        return f"{self.name} {self.type.ref}"


@dataclass
class BodyFieldView:
    """A field of an anonymous request or response struct in a method body."""

    name: str  # empty for an embedded struct
    type: str
    tag: str = ""
    key: str = ""  # composite literal key, request fields only
    value: str = ""


@dataclass
class OperationView:
    name: str
    comments: list[str]
    inputs: list[ParamView]
    outputs: list[ParamView]  # without the trailing err
    bound: bool  # has a SOAP binding entry: method on the port type, else stub
    round_trip: str = ""  # RoundTrip, RoundTripWithAction or RoundTripSoap12
    action: str = ""  # quoted Go literal, empty for RoundTrip
    request_tag: str = ""  # struct tag naming the request wrapper element
    request_fields: list[BodyFieldView] = field(default_factory=list)
    response_wrapper: str = ""  # RPC response element; empty in document style
    response_fields: list[BodyFieldView] = field(default_factory=list)
    returns: list[str] = field(default_factory=list)  # success return expressions
    zero_returns: list[str] = field(default_factory=list)  # error path / stub values
    prepares: list[VisitStep] = field(default_factory=list)  # parameters needing PrepareXML()

    @property
    def signature(self) -> str:
        params = ", ".join(["ctx context.Context"] + [p.code for p in self.inputs])
        results = ", ".join([p.code for p in self.outputs] + ["err error"])
        return f"{self.name}({params}) ({results})"


@dataclass
class PortTypeView:
    interface: str
    impl: str
    constructor: str
    comments: list[str]
    operations: list[OperationView] = field(default_factory=list)


@dataclass
class FileView:
    package: str
    std_imports: list[str]
    ext_imports: list[str]
    namespace: str  # quoted Go literal, empty when the document has none
    port_type: PortTypeView | None
    simple_types: list[TypeDecl]
    complex_types: list[TypeDecl]
    marker_types: list[TypeDecl]
    stubs: list[OperationView]
