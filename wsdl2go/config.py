"""Options for one generation run."""

from __future__ import annotations

from dataclasses import dataclass, field

VERSION = "0.4.0"

DEFAULT_SOAP_IMPORT = "github.com/fiorix/wsdl2go/soap"
FALLBACK_PACKAGE = "internal"
DEFAULT_TIMEOUT = 30  # seconds per fetched import


@dataclass
class Options:
    package: str = ""  # empty: derive from the binding name
    soap_import: str = DEFAULT_SOAP_IMPORT
    format: bool = True  # pipe output through gofmt
    insecure: bool = False
    cert: str = ""
    key: str = ""
    timeout: float = DEFAULT_TIMEOUT
    include: list[str] = field(default_factory=list)  # operations to keep, empty keeps all
