"""Decode, resolve, cache, emit and format: one complete generation run."""

from __future__ import annotations

import logging
from typing import Callable

from wsdl2go.config import Options
from wsdl2go.emitter.formatter import Formatter, GoFmt, PassThrough, format_source
from wsdl2go.emitter.go_emitter import emit
from wsdl2go.model.symbols import build_cache
from wsdl2go.parser.decoder import decode
from wsdl2go.parser.importer import resolve_imports
from wsdl2go.parser.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)


def make_transport(options: Options) -> RequestsTransport:
    return RequestsTransport(
        insecure=options.insecure,
        cert=options.cert,
        key=options.key,
        timeout=options.timeout,
    )


def make_formatter(options: Options) -> Formatter:
    return GoFmt() if options.format else PassThrough()


def _quiet(message: str) -> None:
    pass


def convert(
    raw: bytes | str,
    options: Options | None = None,
    location: str = "",
    transport: Transport | None = None,
    formatter: Formatter | None = None,
    stage: Callable[[str], None] = _quiet,
) -> str:
    """Generate formatted Go source from a WSDL document.

    location is where raw was read from; relative imports resolve against
    it, or against the working directory when empty. stage receives one
    progress line per step. Either the complete source is returned or an
    error is raised.
    """
    options = options or Options()
    transport = transport or make_transport(options)
    formatter = formatter or make_formatter(options)

    stage("Stage 1: Decoding WSDL...")
    defs = decode(raw)
    defs.location = location
    logger.info("decoded %s", location or "document")
    stage(f"  Decoded {len(defs.port_type.operations)} operations, {len(defs.messages)} messages\n")

    stage("Stage 2: Resolving imports...")
    resolve_imports(defs, transport)
    schema = defs.schema
    stage(f"  Unified {len(schema.complex_types)} complex types, {len(schema.simple_types)} simple types\n")

    stage("Stage 3: Building symbol cache...")
    table = build_cache(defs)
    stage(f"  Cached {len(table.elements)} elements, {len(table.operations)} operations\n")

    stage("Stage 4: Emitting Go code...")
    return format_source(emit(table, options), formatter)
