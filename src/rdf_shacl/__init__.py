"""
RDF-SHACL: SHACL validation for RDF graphs, with a Polars-backed store.

Compiles SHACL shapes graphs into shapes, constraints and property paths,
and validates data graphs against them.
"""

__version__ = "0.1.0"

from rdf_shacl.terms import IRI, BlankNode, Literal, Variable, Term
from rdf_shacl.namespaces import SH, RDF, RDFS, XSD, Namespace, TermFactory
from rdf_shacl.node_set import NodeSet
from rdf_shacl.storage import Graph, GraphQuery
from rdf_shacl.formats import parse_turtle, TurtleSyntaxError
from rdf_shacl.config import (
    ValidatorConfig,
    ShapesConfig,
    EngineConfig,
    ConfigValidationError,
)
from rdf_shacl.shacl import (
    ShapesGraph,
    Shape,
    Constraint,
    ConstraintComponent,
    ValidationEngine,
    ValidationReport,
    ValidationResult,
    UnsupportedPathError,
    validate,
)

__all__ = [
    # Terms
    "IRI",
    "BlankNode",
    "Literal",
    "Variable",
    "Term",
    "SH",
    "RDF",
    "RDFS",
    "XSD",
    "Namespace",
    "TermFactory",
    "NodeSet",
    # Storage
    "Graph",
    "GraphQuery",
    "parse_turtle",
    "TurtleSyntaxError",
    # Configuration
    "ValidatorConfig",
    "ShapesConfig",
    "EngineConfig",
    "ConfigValidationError",
    # SHACL
    "ShapesGraph",
    "Shape",
    "Constraint",
    "ConstraintComponent",
    "ValidationEngine",
    "ValidationReport",
    "ValidationResult",
    "UnsupportedPathError",
    "validate",
]
