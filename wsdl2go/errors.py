"""Error taxonomy for the WSDL to Go generator."""

from __future__ import annotations


class Wsdl2GoError(Exception):
    """Base class for every error raised by the generator."""


class MalformedDocument(Wsdl2GoError):
    """Input is not well-formed XML or lacks the expected root element."""


class UnresolvedImport(Wsdl2GoError):
    """An import location could not be fetched or decoded."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"import {location!r}: {reason}")
        self.location = location
        self.reason = reason


class UnsupportedLocation(UnresolvedImport):
    """A location uses a scheme the transport cannot fetch."""

    def __init__(self, location: str) -> None:
        super().__init__(location, "unsupported location scheme")


class UndefinedMessage(Wsdl2GoError):
    """An operation references a message missing from the symbol table."""

    def __init__(self, operation: str, direction: str, message: str) -> None:
        super().__init__(
            f"operation {operation!r} wants {direction} message {message!r} "
            f"but it's not defined"
        )
        self.operation = operation
        self.direction = direction
        self.message = message


class UndefinedType(Wsdl2GoError):
    """A field or parameter references a type or element that is never defined."""

    def __init__(self, referrer: str, symbol: str) -> None:
        super().__init__(f"{referrer} references {symbol!r} but it's not defined")
        self.referrer = referrer
        self.symbol = symbol


class BindingMismatch(Wsdl2GoError):
    """The binding's port type does not match the defined port type."""

    def __init__(self, binding: str, wanted: str, defined: str) -> None:
        super().__init__(
            f"binding {binding!r} requires port type {wanted!r} "
            f"but {defined!r} is defined"
        )
        self.binding = binding
        self.wanted = wanted
        self.defined = defined


class GeneratedSyntaxError(Wsdl2GoError):
    """The generated Go source is not syntactically valid.

    This is a generator bug, never a problem with the input document, so the
    full numbered listing is attached to help diagnose it.
    """

    def __init__(self, reason: str, source: str) -> None:
        self.reason = reason
        self.listing = numbered_listing(source)
        super().__init__(f"generated bad code: {reason}\n{self.listing}")


class FormatterUnavailable(Wsdl2GoError):
    """The external formatter could not be located or invoked."""


def numbered_listing(source: str) -> str:
    """Prefix every line of source with its 1-based line number."""
    return "".join(
        f"{n:5d}\t{line}\n" for n, line in enumerate(source.splitlines(), start=1)
    )
