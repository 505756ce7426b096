"""
SHACL shapes graph model, property paths and validation.
"""

from rdf_shacl.shacl.paths import (
    PathAlternative,
    PathCompiler,
    PathInverse,
    PathIRI,
    PathMod,
    PathSequence,
    PropertyPath,
    PropertyPathModifier,
    UnsupportedPathError,
    compile_path,
    evaluate_path,
)
from rdf_shacl.shacl.validators import (
    CORE_COMPONENTS,
    VALIDATORS_REGISTRY,
    ComponentDefinition,
    Parameter,
    Validator,
    ValidatorKind,
    ValidatorRegistry,
    Violation,
)
from rdf_shacl.shacl.vocabulary import vocabulary_graph, vocabulary_triples
from rdf_shacl.shacl.components import ConstraintComponent, ValidationFunction
from rdf_shacl.shacl.constraints import Constraint
from rdf_shacl.shacl.shapes import ParameterIndex, Shape
from rdf_shacl.shacl.shapes_graph import CacheState, LazyValue, ShapesGraph
from rdf_shacl.shacl.report import Severity, ValidationReport, ValidationResult
from rdf_shacl.shacl.engine import ValidationEngine, validate

__all__ = [
    # Paths
    "PathAlternative",
    "PathCompiler",
    "PathInverse",
    "PathIRI",
    "PathMod",
    "PathSequence",
    "PropertyPath",
    "PropertyPathModifier",
    "UnsupportedPathError",
    "compile_path",
    "evaluate_path",
    # Validators
    "CORE_COMPONENTS",
    "VALIDATORS_REGISTRY",
    "ComponentDefinition",
    "Parameter",
    "Validator",
    "ValidatorKind",
    "ValidatorRegistry",
    "Violation",
    "vocabulary_graph",
    "vocabulary_triples",
    # Shapes graph
    "ConstraintComponent",
    "ValidationFunction",
    "Constraint",
    "ParameterIndex",
    "Shape",
    "CacheState",
    "LazyValue",
    "ShapesGraph",
    # Validation
    "Severity",
    "ValidationReport",
    "ValidationResult",
    "ValidationEngine",
    "validate",
]
