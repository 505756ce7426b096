"""
SHACL Core constraint component declarations as RDF.

The component table in the validator registry is rendered into triples
so that built-in components are discovered from the shapes graph the
same way as user-declared ones:

    sh:MinCountConstraintComponent a sh:ConstraintComponent ;
        sh:parameter [ sh:path sh:minCount ] .
"""

from typing import Optional

from rdf_shacl.namespaces import RDF, SH
from rdf_shacl.shacl.validators import VALIDATORS_REGISTRY, ValidatorRegistry
from rdf_shacl.storage.graph import Graph, Triple
from rdf_shacl.terms import XSD_BOOLEAN, BlankNode, Literal

_TRUE = Literal("true", datatype=XSD_BOOLEAN)


def vocabulary_triples(registry: Optional[ValidatorRegistry] = None) -> list[Triple]:
    """Declare every component of the registry with its parameters."""
    if registry is None:
        registry = VALIDATORS_REGISTRY
    triples: list[Triple] = []

    for definition in registry.definitions():
        component = definition.iri
        triples.append((component, RDF.type, SH.ConstraintComponent))
        for parameter in definition.parameters:
            # Labels are derived from the table so repeated builds agree
            node = BlankNode(f"shacl-{component.local_name}-{parameter.name}")
            triples.append((component, SH.parameter, node))
            triples.append((node, SH.path, parameter.iri))
            if parameter.optional:
                triples.append((node, SH.optional, _TRUE))

    return triples


def vocabulary_graph(registry: Optional[ValidatorRegistry] = None) -> Graph:
    return Graph(vocabulary_triples(registry))
