"""
RDF term types used by the graph layer and the SHACL shapes model.

Terms are immutable and compare by kind and value, so they can be used
directly as dictionary keys and set members.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

XSD_NS = "http://www.w3.org/2001/XMLSchema#"
RDF_LANG_STRING = "http://www.w3.org/1999/02/22-rdf-syntax-ns#langString"
XSD_STRING = f"{XSD_NS}string"
XSD_BOOLEAN = f"{XSD_NS}boolean"

_INTEGER_TYPES = {
    f"{XSD_NS}{name}" for name in (
        "integer", "int", "long", "short", "byte",
        "nonNegativeInteger", "nonPositiveInteger",
        "positiveInteger", "negativeInteger",
        "unsignedLong", "unsignedInt", "unsignedShort", "unsignedByte",
    )
}
_FLOAT_TYPES = {f"{XSD_NS}double", f"{XSD_NS}float"}
_DECIMAL_TYPE = f"{XSD_NS}decimal"
_DATE_TYPE = f"{XSD_NS}date"
_DATETIME_TYPE = f"{XSD_NS}dateTime"


# =============================================================================
# Term Types
# =============================================================================

@dataclass(frozen=True)
class Variable:
    """
    A query variable (e.g., ?shape).

    Variables are bound to terms when a graph query is evaluated.
    """
    name: str

    def __str__(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True)
class IRI:
    """An Internationalized Resource Identifier."""
    value: str

    def __str__(self) -> str:
        return f"<{self.value}>"

    def n3(self) -> str:
        return f"<{self.value}>"

    @property
    def local_name(self) -> str:
        """The part of the IRI after the last '#' or '/'."""
        return get_local_name(self.value)


@dataclass(frozen=True)
class BlankNode:
    """A blank node (anonymous resource)."""
    label: str

    @property
    def value(self) -> str:
        return self.label

    def __str__(self) -> str:
        return f"_:{self.label}"

    def n3(self) -> str:
        return f"_:{self.label}"


@dataclass(frozen=True)
class Literal:
    """
    An RDF Literal value.

    Holds the lexical form with an optional language tag (@en) or
    datatype (^^xsd:integer). A literal with neither is an xsd:string.
    """
    value: str
    language: Optional[str] = None
    datatype: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if self.language:
            object.__setattr__(self, "language", self.language.lower())
            object.__setattr__(self, "datatype", RDF_LANG_STRING)
        elif self.datatype is None:
            object.__setattr__(self, "datatype", XSD_STRING)

    def __str__(self) -> str:
        return self.n3()

    def n3(self) -> str:
        escaped = (
            self.value.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\r", "\\r")
        )
        base = f'"{escaped}"'
        if self.language:
            return f"{base}@{self.language}"
        if self.datatype != XSD_STRING:
            return f"{base}^^<{self.datatype}>"
        return base

    @classmethod
    def from_python(cls, value: Any) -> "Literal":
        """Create a typed literal from a Python value."""
        if isinstance(value, bool):
            return cls(str(value).lower(), datatype=XSD_BOOLEAN)
        if isinstance(value, int):
            return cls(str(value), datatype=f"{XSD_NS}integer")
        if isinstance(value, Decimal):
            return cls(str(value), datatype=_DECIMAL_TYPE)
        if isinstance(value, float):
            return cls(repr(value), datatype=f"{XSD_NS}double")
        if isinstance(value, datetime):
            return cls(value.isoformat(), datatype=_DATETIME_TYPE)
        if isinstance(value, date):
            return cls(value.isoformat(), datatype=_DATE_TYPE)
        return cls(str(value))

    def is_well_formed(self) -> bool:
        """Check the lexical form against the datatypes we know how to parse."""
        try:
            self._convert()
        except (ValueError, InvalidOperation):
            return False
        return True

    def to_python(self) -> Any:
        """
        Convert to a native Python value.

        Unknown datatypes and ill-formed lexical forms fall back to the
        lexical string.
        """
        try:
            return self._convert()
        except (ValueError, InvalidOperation):
            return self.value

    def _convert(self) -> Any:
        dt = self.datatype
        lex = self.value.strip()
        if dt in _INTEGER_TYPES:
            return int(lex)
        if dt == _DECIMAL_TYPE:
            return Decimal(lex)
        if dt in _FLOAT_TYPES:
            if lex in ("INF", "+INF"):
                return float("inf")
            if lex == "-INF":
                return float("-inf")
            return float(lex)
        if dt == XSD_BOOLEAN:
            if lex in ("true", "1"):
                return True
            if lex in ("false", "0"):
                return False
            raise ValueError(f"Invalid boolean literal: {lex}")
        if dt == _DATETIME_TYPE:
            return datetime.fromisoformat(lex.replace("Z", "+00:00"))
        if dt == _DATE_TYPE:
            return date.fromisoformat(lex)
        return self.value


# Type alias for any concrete RDF term
Term = Union[IRI, BlankNode, Literal]

# Any position of a triple pattern: a term, a variable, or None as wildcard
PatternTerm = Union[IRI, BlankNode, Literal, Variable, None]


def get_local_name(iri: str) -> str:
    """Return the local part of an IRI string."""
    for sep in ("#", "/"):
        idx = iri.rfind(sep)
        if idx != -1 and idx < len(iri) - 1:
            return iri[idx + 1:]
    return iri


def is_iri(term: Any) -> bool:
    return isinstance(term, IRI)


def is_blank(term: Any) -> bool:
    return isinstance(term, BlankNode)


def is_literal(term: Any) -> bool:
    return isinstance(term, Literal)


def is_true(term: Any) -> bool:
    """Check whether a term is the boolean literal true."""
    return isinstance(term, Literal) and term.value.strip() == "true"
