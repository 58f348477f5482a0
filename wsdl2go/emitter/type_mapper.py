"""Map schema type references onto Go types."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wsdl2go.model.symbols import SymbolTable
from wsdl2go.model.wsdl import (
    XSD_NAMESPACE,
    ComplexRestriction,
    ComplexType,
    local_name,
    split_qname,
    strip_array_bounds,
)
from wsdl2go.parser.name_transform import sanitize, unique_name

logger = logging.getLogger(__name__)

# Kinds of mapped types
PRIMITIVE = "primitive"
SIMPLE = "simple"  # alias declared by a schema simpleType
MARKER = "marker"  # string-backed Date/Time/DateTime/Duration emitted on demand
ANY = "any"
COMPLEX = "complex"
ABSTRACT = "abstract"
ARRAY = "array"  # SOAP-encoding array alias

_PRIMITIVES = {
    "byte": "int8",
    "unsignedbyte": "uint8",
    "short": "int16",
    "unsignedshort": "uint16",
    "int": "int32",
    "unsignedint": "uint32",
    "long": "int64",
    "unsignedlong": "uint64",
    "integer": "int64",
    "nonpositiveinteger": "int64",
    "negativeinteger": "int64",
    "nonnegativeinteger": "uint64",
    "positiveinteger": "uint64",
    "decimal": "float64",
    "float": "float64",
    "double": "float64",
    "boolean": "bool",
    "string": "string",
    "anyuri": "string",
    "token": "string",
    "qname": "string",
    "normalizedstring": "string",
    "language": "string",
    "id": "string",
    "idref": "string",
    "idrefs": "string",
    "ncname": "string",
    "name": "string",
    "nmtoken": "string",
    "nmtokens": "string",
    "entity": "string",
    "entities": "string",
    "notation": "string",
    "gyear": "string",
    "gyearmonth": "string",
    "gmonth": "string",
    "gmonthday": "string",
    "gday": "string",
    "hexbinary": "[]byte",
    "base64binary": "[]byte",
    "anytype": "interface{}",
    "anysimpletype": "interface{}",
    "anysequence": "interface{}",
}

MARKER_TYPES = {
    "date": "Date",
    "time": "Time",
    "datetime": "DateTime",
    "duration": "Duration",
}

_ZEROS = {
    "bool": "false",
    "string": '""',
    "[]byte": "nil",
    "interface{}": "nil",
}


# Names the generated file declares itself.
RESERVED_NAMES = {"Namespace", *MARKER_TYPES.values()}


@dataclass(frozen=True)
class GoType:
    name: str  # bare Go type name, never a pointer
    kind: str
    zero: str  # zero value of ref
    item: GoType | None = None  # element type of an ARRAY

    @property
    def ref(self) -> str:
        """Type expression used for fields and parameters."""
        if self.kind == COMPLEX:
            return "*" + self.name
        return self.name

    @property
    def nilable(self) -> bool:
        """Whether the Go type already has a nil value, so optionality needs no pointer."""
        return self.zero == "nil"

    @property
    def is_string(self) -> bool:
        return self.zero == '""'


def is_array_restriction(ct: ComplexType) -> bool:
    """SOAP-encoding arrays: a restriction of soapenc:Array with one arrayType attribute.

    Restrictions carrying more than one attribute fall through to generic
    struct generation.
    """
    content = ct.content
    if not isinstance(content, ComplexRestriction):
        return False
    if local_name(content.base) != "Array" or len(content.attributes) != 1:
        return False
    return bool(content.attributes[0].array_type)


class TypeMapper:
    """Resolves qualified type names against the symbol table.

    Also owns the Go names of every schema type, made unique in lexicographic
    order so output never depends on hash ordering.
    """

    def __init__(self, table: SymbolTable) -> None:
        self.table = table
        self.taken: set[str] = set(RESERVED_NAMES)
        self.simple_names: dict[str, str] = {}
        self.complex_names: dict[str, str] = {}
        for name in sorted(table.simple_types):
            self.simple_names[name] = self.claim(sanitize(name) or "SimpleType", "Type")
        for name in sorted(table.complex_types):
            self.complex_names[name] = self.claim(sanitize(name) or "ComplexType", "Type")
        self.needs: set[str] = set()  # marker types referenced so far
        self.references: dict[str, str] = {}  # unknown complex name -> first referrer
        self._resolving: set[str] = set()
        self._arrays: set[str] = set()

    def claim(self, name: str, suffix: str = "") -> str:
        """Reserve a unique top-level Go identifier."""
        name = unique_name(name, self.taken, suffix)
        self.taken.add(name)
        return name

    def map_type(self, qname: str, referrer: str = "") -> GoType:
        """Convert a schema type reference into a Go type.

        Resolution order: schema simple types, built-in XSD types (case
        insensitive), then complex types, which may not have been seen yet.
        """
        prefix, local = split_qname(qname.strip())
        namespace = self.table.definitions.resolve_prefix(prefix)

        if local in self.table.simple_types:
            return GoType(self.simple_names[local], SIMPLE, self._simple_zero(local))

        lower = local.lower()
        shadowed = local in self.table.complex_types and namespace != XSD_NAMESPACE
        if not shadowed:
            if lower in MARKER_TYPES:
                self.needs.add(MARKER_TYPES[lower])
                return GoType(MARKER_TYPES[lower], MARKER, '""')
            if lower in _PRIMITIVES:
                go = _PRIMITIVES[lower]
                kind = ANY if go == "interface{}" else PRIMITIVE
                return GoType(go, kind, _ZEROS.get(go, "0"))

        if local in self.table.complex_types:
            return self.complex_type(local)

        if namespace == XSD_NAMESPACE:
            logger.debug("unknown XSD type %r mapped to string", qname)
            return GoType("string", PRIMITIVE, '""')

        self.references.setdefault(local, referrer or qname)
        return GoType(sanitize(local), COMPLEX, "nil")

    def complex_type(self, key: str) -> GoType:
        """Go type of a cached complex type, addressed by its symbol table key."""
        ct = self.table.complex_types[key]
        name = self.complex_names[key]
        if ct.abstract:
            return GoType(name, ABSTRACT, "nil")
        if is_array_restriction(ct):
            return GoType(name, ARRAY, "nil", self.array_item(key))
        return GoType(name, COMPLEX, "nil")

    def array_item(self, key: str) -> GoType | None:
        """Element type of a SOAP-encoding array.

        None while the same array is already being resolved, so an array of
        itself maps to a slice of its own name.
        """
        if key in self._arrays:
            return None
        array_type = self.table.complex_types[key].content.attributes[0].array_type
        self._arrays.add(key)
        try:
            return self.map_type(strip_array_bounds(array_type), referrer=f"array type {key}")
        finally:
            self._arrays.discard(key)

    def _simple_zero(self, name: str) -> str:
        st = self.table.simple_types[name]
        if st.restriction is None or name in self._resolving:
            return "nil" if st.union is not None else '""'
        self._resolving.add(name)
        try:
            return self.map_type(st.restriction.base).zero
        finally:
            self._resolving.discard(name)
