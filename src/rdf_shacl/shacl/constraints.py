"""
A constraint component applied to one shape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rdf_shacl.storage.graph import Graph
from rdf_shacl.terms import Term, get_local_name

if TYPE_CHECKING:
    from rdf_shacl.shacl.components import ConstraintComponent
    from rdf_shacl.shacl.shapes import Shape


class Constraint:
    """
    Binds the parameters of a component to their values on a shape.

    An explicit param_value is used for every parameter; otherwise each
    parameter is looked up on the shape node. Parameters without a value
    are left out of parameter_values.
    """

    def __init__(
        self,
        shape: "Shape",
        component: "ConstraintComponent",
        param_value: Optional[Term],
        shapes: Graph,
    ):
        self.shape = shape
        self.component = component
        self.param_value = param_value

        self.parameter_values: dict[str, Term] = {}
        for parameter in component.get_parameters():
            value = param_value if param_value is not None else shapes.value(shape.shape_node, parameter)
            if value is not None:
                self.parameter_values[get_local_name(parameter.value)] = value

    def get_parameter_value(self, name: str) -> Optional[Term]:
        return self.parameter_values.get(name)

    @property
    def component_messages(self) -> list[str]:
        return self.component.get_messages(self.shape)

    def __repr__(self) -> str:
        return f"Constraint({self.component.node} on {self.shape.shape_node})"
