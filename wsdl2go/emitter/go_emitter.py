"""Emit a Go SOAP client from a unified WSDL symbol table."""

from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from wsdl2go.config import Options
from wsdl2go.emitter.operation_gen import OperationGenerator, check_binding
from wsdl2go.emitter.struct_gen import StructGenerator
from wsdl2go.emitter.type_mapper import TypeMapper
from wsdl2go.emitter.views import FileView, PortTypeView, TypeDecl, comment_lines, go_quote
from wsdl2go.errors import UndefinedType
from wsdl2go.model.symbols import SymbolTable, restrict_operations
from wsdl2go.parser.name_transform import lower_first, package_name, sanitize

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

_MARKER_DOCS = {
    "Date": 'Date in RFC "full-date" format, r.f. https://www.w3.org/TR/xmlschema-2/#date.',
    "Time": 'Time in RFC "partial-time" format, r.f. https://www.w3.org/TR/xmlschema-2/#time.',
    "DateTime": 'DateTime in RFC "date-time" format, r.f. https://www.w3.org/TR/xmlschema-2/#dateTime.',
    "Duration": "Duration in ISO 8601 format, r.f. https://www.w3.org/TR/xmlschema-2/#duration.",
}


def make_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


class GoEmitter:
    """One generation session: every cache and name registry lives here.

    Nothing is shared between instances, so independent runs never observe
    each other's state.
    """

    def __init__(self, table: SymbolTable, options: Options | None = None) -> None:
        self.table = table
        self.options = options or Options()
        if self.options.include:
            restrict_operations(table, self.options.include)
        self.mapper = TypeMapper(table)
        self.structs = StructGenerator(table, self.mapper)
        self.operations = OperationGenerator(table, self.mapper, self.structs)

    def package(self) -> str:
        if self.options.package:
            return package_name(self.options.package)
        return package_name(self.table.definitions.binding.name)

    def build(self) -> FileView:
        """Resolve every declaration of the output file.

        Fails before anything is rendered when the binding and port type
        disagree, a message is missing, or a referenced type is never defined.
        """
        check_binding(self.table)
        defs = self.table.definitions

        port_type = None
        if defs.port_type.name or defs.port_type.operations:
            interface = self.mapper.claim(sanitize(defs.port_type.name) or "PortType", "Interface")
            port_type = PortTypeView(
                interface=interface,
                impl=self.mapper.claim(lower_first(interface), "Impl"),
                constructor=self.mapper.claim("New" + interface),
                comments=comment_lines(
                    interface,
                    f"{interface} was auto-generated from WSDL and defines the interface "
                    "for the remote service. Useful for testing.",
                ),
            )

        simple = [self.structs.generate_simple(key) for key in sorted(self.table.simple_types)]
        complex_ = [self.structs.generate_type(key) for key in sorted(self.table.complex_types)]
        self.structs.plan_visitors(complex_)
        self.operations.needy = {d.name for d in complex_ if d.needs_visitor}

        ops = self.operations.generate_all()
        self._check_references()

        bound = [op for op in ops if op.bound]
        stubs = [op for op in ops if not op.bound]
        if port_type is not None:
            port_type.operations = bound

        std_imports = []
        if port_type is not None or stubs:
            std_imports.append("context")
        if bound:
            std_imports.append("encoding/xml")
        if stubs:
            std_imports.append("errors")
        ext_imports = [self.options.soap_import] if port_type is not None else []

        namespace = defs.target_namespace
        return FileView(
            package=self.package(),
            std_imports=sorted(std_imports),
            ext_imports=sorted(ext_imports),
            namespace=go_quote(namespace) if namespace else "",
            port_type=port_type,
            simple_types=simple,
            complex_types=complex_,
            marker_types=[self._marker(name) for name in sorted(self.mapper.needs)],
            stubs=stubs,
        )

    def _marker(self, name: str) -> TypeDecl:
        return TypeDecl(name=name, comments=comment_lines(name, _MARKER_DOCS[name]), kind="alias", alias="string")

    def _check_references(self) -> None:
        for name, referrer in sorted(self.mapper.references.items()):
            if name not in self.table.complex_types:
                raise UndefinedType(referrer, name)

    def render(self, env: Environment | None = None) -> str:
        view = self.build()
        env = env or make_environment()
        source = env.get_template("client.go.j2").render(file=view)
        logger.info(
            "rendered %d simple types, %d complex types, %d operations",
            len(view.simple_types), len(view.complex_types),
            len(view.port_type.operations if view.port_type else []) + len(view.stubs),
        )
        return source


def emit(table: SymbolTable, options: Options | None = None) -> str:
    """Render the unformatted Go source for table."""
    return GoEmitter(table, options).render()
