"""Command line entry point: generate a Go SOAP client from a WSDL document."""

from __future__ import annotations

import argparse
import functools
import logging
import os
import sys
import tempfile
from pathlib import Path

from wsdl2go.config import DEFAULT_SOAP_IMPORT, VERSION, Options
from wsdl2go.errors import Wsdl2GoError
from wsdl2go.parser.transport import is_url, resolve_location
from wsdl2go.pipeline import convert, make_transport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wsdl2go",
        description="Generates Go code from a WSDL document.",
    )
    parser.add_argument("-i", dest="input", default="-",
                        help="input file, URL, or '-' for stdin (default: -)")
    parser.add_argument("-o", dest="output", default="-",
                        help="output file, or '-' for stdout (default: -)")
    parser.add_argument("-p", dest="package", default="",
                        help="Go package name (default: derived from the binding name)")
    parser.add_argument("--soap-import", default=DEFAULT_SOAP_IMPORT,
                        help="import path of the SOAP runtime package")
    parser.add_argument("--yolo", action="store_true",
                        help="accept invalid TLS certificates when fetching")
    parser.add_argument("--cert", default="", help="client certificate file")
    parser.add_argument("--key", default="", help="client certificate key file")
    parser.add_argument("--include", default="",
                        help="comma separated operations to generate (default: all)")
    parser.add_argument("--no-format", dest="format", action="store_false",
                        help="do not run gofmt on the output")
    parser.add_argument("-v", dest="verbose", action="store_true",
                        help="print progress to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def split_names(value: str) -> list[str]:
    """Non-empty names of a comma separated list."""
    return [name.strip() for name in value.split(",") if name.strip()]


def _stage(verbose: bool, message: str) -> None:
    if verbose:
        print(message, file=sys.stderr)


def read_input(location: str, options: Options) -> tuple[bytes, str]:
    """Raw bytes of the root document and the location imports resolve against."""
    if location == "-":
        return sys.stdin.buffer.read(), ""
    if is_url(location):
        return make_transport(options).fetch(location), location
    path = resolve_location(location)
    return Path(path).read_bytes(), path


def write_output(location: str, source: str) -> None:
    """Write source to stdout or atomically replace the output file."""
    if location == "-":
        sys.stdout.write(source)
        sys.stdout.flush()
        return
    target = Path(location)
    fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(source)
        os.replace(tmp, target)
    except BaseException:
        os.unlink(tmp)
        raise


def run(args: argparse.Namespace) -> None:
    options = Options(
        package=args.package,
        soap_import=args.soap_import,
        format=args.format,
        insecure=args.yolo,
        cert=args.cert,
        key=args.key,
        include=split_names(args.include),
    )
    stage = functools.partial(_stage, args.verbose)

    raw, location = read_input(args.input, options)
    source = convert(raw, options, location=location, stage=stage)
    write_output(args.output, source)
    stage(f"  Wrote {len(source.splitlines())} lines to {args.output}\n")
    stage("Done!")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        run(args)
    except (Wsdl2GoError, OSError) as exc:
        print(f"wsdl2go: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
