"""
Vocabulary namespaces and a factory for well-known terms.
"""

from typing import Optional

from rdf_shacl.terms import IRI, BlankNode, Literal, Term

# SHACL namespace
SH_NS = "http://www.w3.org/ns/shacl#"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"


class Namespace(str):
    """
    An IRI prefix that mints IRI terms by attribute or item access.

    >>> SH.minCount
    IRI(value='http://www.w3.org/ns/shacl#minCount')
    """

    def term(self, name: str) -> IRI:
        return IRI(str(self) + name)

    def __getattr__(self, name: str) -> IRI:
        if name.startswith("__"):
            raise AttributeError(name)
        return self.term(name)

    def __getitem__(self, name) -> IRI:  # type: ignore[override]
        if isinstance(name, str):
            return self.term(name)
        return str.__getitem__(self, name)


SH = Namespace(SH_NS)
RDF = Namespace(RDF_NS)
RDFS = Namespace(RDFS_NS)
XSD = Namespace(XSD_NS)

DEFAULT_PREFIXES = {
    "sh": SH_NS,
    "rdf": RDF_NS,
    "rdfs": RDFS_NS,
    "xsd": XSD_NS,
}


class TermFactory:
    """
    Builds terms from prefixed names, full IRIs and plain values.

    Used wherever the shapes model needs a well-known vocabulary term
    on demand, such as the default sh:Violation severity.
    """

    def __init__(self, prefixes: Optional[dict[str, str]] = None):
        self.prefixes = dict(DEFAULT_PREFIXES)
        if prefixes:
            self.prefixes.update(prefixes)

    def expand(self, name: str) -> str:
        """Expand a prefixed name to a full IRI string."""
        if name.startswith("<") and name.endswith(">"):
            return name[1:-1]
        if ":" in name:
            prefix, local = name.split(":", 1)
            if prefix in self.prefixes:
                return self.prefixes[prefix] + local
        return name

    def term(self, name: str) -> Term:
        """Create a term from '_:label', a prefixed name or an IRI."""
        if name.startswith("_:"):
            return BlankNode(name[2:])
        return IRI(self.expand(name))

    def iri(self, value: str) -> IRI:
        return IRI(self.expand(value))

    def literal(
        self,
        value: str,
        language: Optional[str] = None,
        datatype: Optional[str] = None,
    ) -> Literal:
        return Literal(
            value,
            language=language,
            datatype=self.expand(datatype) if datatype else None,
        )

    def blank_node(self, label: str) -> BlankNode:
        return BlankNode(label)
