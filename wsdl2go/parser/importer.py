"""Merge imported WSDL documents and schema fragments into one Definitions."""

from __future__ import annotations

import logging

from wsdl2go.errors import MalformedDocument, UnresolvedImport
from wsdl2go.model.wsdl import Definitions, Import, Schema, SchemaImport
from wsdl2go.parser.decoder import decode_document
from wsdl2go.parser.transport import Transport, resolve_location

logger = logging.getLogger(__name__)


def resolve_imports(defs: Definitions, transport: Transport) -> None:
    """Fetch and merge every import reachable from defs, in place.

    Root-level <import> elements are resolved first, then the <import> and
    <include> directives of the root schema. Each location is fetched at most
    once; the root document's own location counts as already visited.
    """
    importer = _Importer(transport)
    if defs.location:
        importer.visited.add(resolve_location(defs.location))
    root_schema_imports = list(defs.schema.imports)
    importer.import_definitions(defs, list(defs.imports), defs.location)
    importer.import_schemas(defs.schema, root_schema_imports, defs.location)
    logger.info("resolved %d imports", len(importer.visited) - (1 if defs.location else 0))


class _Importer:
    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.visited: set[str] = set()

    def import_definitions(self, defs: Definitions, imports: list[Import], base: str) -> None:
        for imp in imports:
            location = self._claim(imp.location, base)
            if not location:
                continue
            doc = self._load(location)
            if isinstance(doc, Schema):
                nested = list(doc.imports)
                defs.schema.merge(doc)
                self.import_schemas(defs.schema, nested, location)
                continue
            nested_schema = list(doc.schema.imports)
            _merge_definitions(defs, doc)
            self.import_definitions(defs, doc.imports, location)
            self.import_schemas(defs.schema, nested_schema, location)

    def import_schemas(self, schema: Schema, imports: list[SchemaImport], base: str) -> None:
        for imp in imports:
            location = self._claim(imp.location, base)
            if not location:
                continue
            doc = self._load(location)
            fragment = doc.schema if isinstance(doc, Definitions) else doc
            nested = list(fragment.imports)
            schema.merge(fragment)
            self.import_schemas(schema, nested, location)

    def _claim(self, location: str, base: str) -> str:
        """Resolve location and mark it visited; '' when there is nothing to fetch."""
        if not location:
            return ""
        resolved = resolve_location(location, base)
        if resolved in self.visited:
            logger.debug("skipping already imported %s", resolved)
            return ""
        self.visited.add(resolved)
        return resolved

    def _load(self, location: str) -> Definitions | Schema:
        logger.debug("importing %s", location)
        try:
            raw = self.transport.fetch(location)
        except UnresolvedImport:
            raise
        except OSError as exc:
            raise UnresolvedImport(location, str(exc)) from exc
        try:
            doc = decode_document(raw)
        except MalformedDocument as exc:
            raise UnresolvedImport(location, str(exc)) from exc
        if isinstance(doc, Definitions):
            doc.location = location
        return doc


def _merge_definitions(defs: Definitions, other: Definitions) -> None:
    """Augment defs with an imported WSDL document."""
    if not defs.name:
        defs.name = other.name
    if not defs.target_namespace:
        defs.target_namespace = other.target_namespace
    defs.namespaces.update(other.namespaces)
    defs.schema.merge(other.schema)
    defs.messages.extend(other.messages)
    if not defs.port_type.operations:
        defs.port_type = other.port_type
    if not defs.binding.operations:
        defs.binding = other.binding
    if not defs.service.ports:
        defs.service = other.service
