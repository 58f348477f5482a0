"""Name transformation utilities for turning schema names into Go identifiers."""

from __future__ import annotations

import re

from wsdl2go.config import FALLBACK_PACKAGE

# Go reserved words
GO_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
}

# Identifiers generated method bodies rely on; parameters must not shadow them.
_BODY_IDENTIFIERS = {"ctx", "err", "p", "req", "resp", "xml", "soap", "context", "errors", "nil"}

_SEGMENT = re.compile(r"[A-Za-z]+|[0-9]+")


def _segments(name: str) -> list[str]:
    """Split a name on punctuation and letter/digit boundaries.

    tns:foo.bar-baz -> ['tns', 'foo', 'bar', 'baz']
    item2value -> ['item', '2', 'value']
    """
    return _SEGMENT.findall(name)


def sanitize(name: str) -> str:
    """Convert a schema name into an exported Go identifier.

    Every segment gets its first letter upper-cased, the rest is kept as is,
    so applying the function twice gives the same result as once.

    Examples:
        getQuote -> GetQuote
        foo.bar_baz -> FooBarBaz
        item2value -> Item2Value
        2fa -> X2Fa
    """
    result = "".join(seg[0].upper() + seg[1:] for seg in _segments(name))
    if result[:1].isdigit():
        result = "X" + result
    return result


def lower_first(name: str) -> str:
    """Lower-case the leading word of an identifier, treating acronyms as one word.

    Status -> status
    OK -> ok
    XMLData -> xmlData
    """
    n = 0
    while n < len(name) and name[n].isupper():
        n += 1
    if n == 0:
        return name
    if n == len(name):
        return name.lower()
    if n > 1 and name[n].islower():
        n -= 1
    return name[:n].lower() + name[n:]


def param_name(name: str) -> str:
    """Convert a message part name into an unexported Go parameter name.

    Names that collide with Go keywords or with identifiers used inside the
    generated method bodies get a 'Val' suffix.

    Examples:
        status -> status
        Type -> typeVal
        err -> errVal
    """
    ident = lower_first(sanitize(name)) or "param"
    if ident in GO_KEYWORDS or ident in _BODY_IDENTIFIERS:
        ident += "Val"
    return ident


def package_name(name: str) -> str:
    """Convert a binding or user supplied name into a Go package name.

    DataEndpointSoap11Binding -> dataendpointsoap11binding
    Some.Dotted.Name -> somedottedname
    """
    pkg = re.sub(r"[^a-z0-9]", "", name.lower())
    pkg = pkg.lstrip("0123456789")
    if not pkg:
        return FALLBACK_PACKAGE
    if pkg in GO_KEYWORDS:
        pkg += "api"
    return pkg


def unique_name(name: str, taken: set[str], suffix: str = "") -> str:
    """Return name, or a variant of it not present in taken.

    The suffix is tried first, then numeric suffixes.
    """
    if name not in taken:
        return name
    if suffix and name + suffix not in taken:
        return name + suffix
    n = 2
    while f"{name}{n}" in taken:
        n += 1
    return f"{name}{n}"
