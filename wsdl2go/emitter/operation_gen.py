"""Turn port type operations into Go method and stub views."""

from __future__ import annotations

import logging

from wsdl2go.emitter.struct_gen import StructGenerator, value_mode
from wsdl2go.emitter.type_mapper import COMPLEX, GoType, TypeMapper
from wsdl2go.emitter.views import (
    BodyFieldView,
    OperationView,
    ParamView,
    VisitStep,
    comment_lines,
    go_quote,
    struct_tag,
)
from wsdl2go.errors import BindingMismatch, UndefinedType
from wsdl2go.model.symbols import SymbolTable
from wsdl2go.model.wsdl import BindingOperation, Message, Operation, Part, local_name
from wsdl2go.parser.name_transform import param_name, sanitize, unique_name

logger = logging.getLogger(__name__)


def check_binding(table: SymbolTable) -> None:
    """Fail when the binding names a port type other than the one defined."""
    defs = table.definitions
    wanted = local_name(defs.binding.type)
    defined = defs.port_type.name
    if wanted and defined and wanted != defined:
        raise BindingMismatch(defs.binding.name, wanted, defined)


def order_parts(parts: list[Part], parameter_order: list[str]) -> list[Part]:
    """Apply a parameterOrder override: listed parts first, the rest after in document order."""
    if not parameter_order:
        return list(parts)
    by_name = {part.name: part for part in parts}
    ordered = [by_name[name] for name in parameter_order if name in by_name]
    listed = {part.name for part in ordered}
    return ordered + [part for part in parts if part.name not in listed]


def fix_conflicts(inputs: list[ParamView], outputs: list[ParamView]) -> None:
    """Rename output parameters that collide with input names or with each other.

    A colliding output gets a 'resp' prefix and a title-cased tail, repeated
    until every name is distinct. Each pass strictly changes the colliding
    name, so the loop ends.
    """
    taken = {p.name for p in inputs}
    for p in outputs:
        while p.name in taken:
            p.name = "resp" + p.name[:1].upper() + p.name[1:]
        taken.add(p.name)


def _wrapper_tag(name: str) -> str:
    return struct_tag(("xml", name.strip()))


class OperationGenerator:
    """Builds OperationView entries for every cached operation, in document order."""

    def __init__(self, table: SymbolTable, mapper: TypeMapper, structs: StructGenerator) -> None:
        self.table = table
        self.mapper = mapper
        self.structs = structs
        self.needy: set[str] = set()  # struct and array names with a PrepareXML visitor
        self.method_names: set[str] = set()

    def generate_all(self) -> list[OperationView]:
        return [self.generate(op) for op in self.table.operations.values()]

    def generate(self, op: Operation) -> OperationView:
        inputs = self._params(op, op.input, "input")
        outputs = self._params(op, op.output, "output")
        fix_conflicts(inputs, outputs)

        bop = self.table.binding_operations.get(op.name)
        if bop is None:
            name = self.mapper.claim(sanitize(op.name) or "Operation", "Func")
            logger.debug("operation %s has no SOAP binding, emitting a stub", op.name)
            return OperationView(
                name=name,
                comments=comment_lines(name, op.doc),
                inputs=inputs,
                outputs=outputs,
                bound=False,
                zero_returns=[p.type.zero for p in outputs],
            )

        name = unique_name(sanitize(op.name) or "Operation", self.method_names)
        self.method_names.add(name)
        view = OperationView(
            name=name,
            comments=comment_lines(name, op.doc),
            inputs=inputs,
            outputs=outputs,
            bound=True,
            zero_returns=[p.type.zero for p in outputs],
        )
        self._dispatch(view, bop)
        if self._style(bop) == "rpc":
            self._rpc_body(view, op, bop)
        else:
            self._document_body(view, op)
        view.prepares = [step for p in inputs if (step := self._prepare(p))]
        return view

    # Parameters

    def _params(self, op: Operation, qname: str | None, direction: str) -> list[ParamView]:
        if not qname:
            return []
        msg: Message = self.table.message(op, qname, direction)
        params, names = [], set()
        for part in order_parts(msg.parts, op.parameter_order):
            go, wire = self._part_type(op, part)
            name = unique_name(param_name(part.name), names)
            names.add(name)
            params.append(ParamView(name=name, type=go, wire=wire))
        return params

    def _part_type(self, op: Operation, part: Part) -> tuple[GoType, str]:
        """Go type of a message part and its element name on the wire."""
        if not part.element:
            return self.mapper.map_type(part.type or "string", referrer=f"operation {op.name}"), part.name
        el = self.table.element(part.element)
        if el is None:
            raise UndefinedType(f"operation {op.name}", local_name(part.element))
        wire = local_name(el.name)
        if el.complex_type is not None and not el.type and wire in self.table.complex_types:
            return self.mapper.complex_type(wire), wire
        go, _, _ = self.structs.element_type(el, el, wire, f"operation {op.name}")
        return go, wire

    # Method bodies

    def _style(self, bop: BindingOperation) -> str:
        return bop.style or self.table.definitions.binding.style or "document"

    def _dispatch(self, view: OperationView, bop: BindingOperation) -> None:
        if bop.soap12_action:
            view.round_trip = "RoundTripSoap12"
            view.action = go_quote(bop.soap12_action)
        elif bop.soap11_action:
            view.round_trip = "RoundTripWithAction"
            view.action = go_quote(bop.soap11_action)
        else:
            view.round_trip = "RoundTrip"

    def _namespace(self, bop: BindingOperation) -> str:
        if bop.input is not None and bop.input.namespace:
            return bop.input.namespace
        return self.table.definitions.target_namespace

    def _rpc_body(self, view: OperationView, op: Operation, bop: BindingOperation) -> None:
        """Wrap every parameter in one element named after the operation."""
        view.request_tag = _wrapper_tag(f"{self._namespace(bop)} {op.name}")
        view.request_fields = self._value_fields(view.inputs, with_values=True)
        view.response_wrapper = op.name + "Response"
        view.response_fields = self._value_fields(view.outputs)
        names = [f.name for f in view.response_fields]
        view.returns = [f"resp.M.{name}" for name in names]

    def _document_body(self, view: OperationView, op: Operation) -> None:
        """Use the message's own element wrapping."""
        inputs = view.inputs
        if len(inputs) == 1 and inputs[0].type.kind == COMPLEX:
            only = inputs[0]
            namespace = self._element_namespace(only.wire)
            view.request_tag = _wrapper_tag(f"{namespace} {only.wire}")
            view.request_fields = [
                BodyFieldView(name="", type=only.type.ref, key=only.type.name, value=only.name),
            ]
        elif len(inputs) == 1:
            only = inputs[0]
            namespace = self._element_namespace(only.wire)
            view.request_tag = _wrapper_tag(f"{namespace} {only.wire}")
            view.request_fields = [BodyFieldView(
                name="Value", type=only.type.ref,
                tag=struct_tag(("xml", ",chardata")), key="Value", value=only.name,
            )]
        else:
            view.request_tag = _wrapper_tag(f"{self.table.definitions.target_namespace} {op.name}")
            view.request_fields = self._value_fields(inputs, with_values=True)
        view.response_fields = self._value_fields(view.outputs)
        view.returns = [f"resp.{f.name}" for f in view.response_fields]

    def _element_namespace(self, wire: str) -> str:
        el = self.table.elements.get(wire)
        if el is not None and el.target_namespace:
            return el.target_namespace
        return self.table.definitions.schema.target_namespace or self.table.definitions.target_namespace

    @staticmethod
    def _value_fields(params: list[ParamView], with_values: bool = False) -> list[BodyFieldView]:
        fields, names = [], set()
        for p in params:
            name = unique_name(sanitize(p.wire) or "Param", names)
            names.add(name)
            fields.append(BodyFieldView(
                name=name,
                type=p.type.ref,
                tag=struct_tag(("xml", p.wire)),
                key=name if with_values else "",
                value=p.name if with_values else "",
            ))
        return fields

    def _prepare(self, p: ParamView) -> VisitStep | None:
        mode = value_mode(p.type, self.needy)
        return VisitStep(p.name, mode) if mode else None
