"""
Constraint components discovered in a shapes graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from rdf_shacl.namespaces import SH
from rdf_shacl.shacl.validators import (
    Validator,
    ValidatorFunc,
    ValidatorKind,
    ValidatorRegistry,
    Violation,
)
from rdf_shacl.storage.graph import Graph
from rdf_shacl.terms import Term, is_true

if TYPE_CHECKING:
    from rdf_shacl.shacl.constraints import Constraint
    from rdf_shacl.shacl.engine import ValidationEngine
    from rdf_shacl.shacl.shapes import Shape

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationFunction:
    """A registered validator bound to the component it checks."""

    name: str
    kind: ValidatorKind
    validator: Validator

    @property
    def message(self) -> Optional[str]:
        return self.validator.message

    def __call__(
        self,
        engine: "ValidationEngine",
        focus_node: Term,
        value_nodes: list[Term],
        constraint: "Constraint",
    ) -> Iterable[Violation]:
        func: ValidatorFunc = self.validator.func
        return func(engine, focus_node, value_nodes, constraint)


class ConstraintComponent:
    """
    A SHACL constraint component and its parameters.

    Parameters are read from the shapes graph:

        ?component sh:parameter ?param .
        ?param sh:path ?path .
        ?param sh:optional true .   # optional parameters only

    Validator slots come from the registry. A node shape uses the
    sh:nodeValidator entry, a property shape the sh:propertyValidator
    entry, and both fall back to the generic sh:validator entry.
    """

    def __init__(self, node: Term, shapes: Graph, registry: ValidatorRegistry):
        self.node = node
        self.shapes = shapes
        self.registry = registry

        self.parameters: list[Term] = []
        self.parameter_nodes: list[Term] = []
        self.required_parameters: list[Term] = []
        self.optionals: set[Term] = set()

        bindings = (
            shapes.query()
            .match(node, SH.parameter, "?parameter")
            .match("?parameter", SH.path, "?path")
        )
        for binding in bindings:
            parameter_node = binding["parameter"]
            path = binding["path"]
            self.parameters.append(path)
            self.parameter_nodes.append(parameter_node)
            if any(is_true(o) for o in shapes.objects(parameter_node, SH.optional)):
                self.optionals.add(path)
            else:
                self.required_parameters.append(path)

        self.node_validation_function = self.find_validation_function(ValidatorKind.NODE_VALIDATOR)
        self.node_validation_function_generic = False
        if self.node_validation_function is None:
            self.node_validation_function = self.find_validation_function(ValidatorKind.VALIDATOR)
            self.node_validation_function_generic = True

        self.property_validation_function = self.find_validation_function(ValidatorKind.PROPERTY_VALIDATOR)
        self.property_validation_function_generic = False
        if self.property_validation_function is None:
            self.property_validation_function = self.find_validation_function(ValidatorKind.VALIDATOR)
            self.property_validation_function_generic = True

    def find_validation_function(self, kind: ValidatorKind) -> Optional[ValidationFunction]:
        validator = self.registry.find_validator(self.node, kind)
        if validator is None:
            return None
        return ValidationFunction(name=str(self.node), kind=kind, validator=validator)

    def get_messages(self, shape: "Shape") -> list[str]:
        """Return the message template for the slot used with this shape."""
        if shape.is_property_shape():
            generic = self.property_validation_function_generic
            kind = ValidatorKind.VALIDATOR if generic else ValidatorKind.PROPERTY_VALIDATOR
        else:
            generic = self.node_validation_function_generic
            kind = ValidatorKind.VALIDATOR if generic else ValidatorKind.NODE_VALIDATOR

        validator = self.registry.find_validator(self.node, kind)
        if validator is None or not validator.message:
            return []
        return [validator.message]

    def get_validation_function(self, shape: "Shape") -> Optional[ValidationFunction]:
        if shape.is_property_shape():
            return self.property_validation_function
        return self.node_validation_function

    def get_parameters(self) -> list[Term]:
        return list(self.parameters)

    def is_optional(self, parameter: Term) -> bool:
        return parameter in self.optionals

    def is_complete(self, shape_node: Term) -> bool:
        """Check that shape_node declares every required parameter."""
        return all(
            self.shapes.has_triple(shape_node, parameter, None)
            for parameter in self.required_parameters
        )

    def has_validator(self) -> bool:
        return self.node_validation_function is not None or self.property_validation_function is not None

    def __repr__(self) -> str:
        return f"ConstraintComponent({self.node}, parameters={len(self.parameters)})"
