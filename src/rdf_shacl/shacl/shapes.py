"""
Shapes: a node of the shapes graph with its constraints and targets.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Iterable, Iterator, Optional

from rdf_shacl.namespaces import RDFS, SH, TermFactory
from rdf_shacl.node_set import NodeSet
from rdf_shacl.shacl.components import ConstraintComponent
from rdf_shacl.shacl.constraints import Constraint
from rdf_shacl.shacl.paths import PathCompiler, PropertyPath
from rdf_shacl.storage.graph import Graph
from rdf_shacl.terms import Term, is_true

logger = logging.getLogger(__name__)


class ParameterIndex(Mapping):
    """
    Read-only map of parameter IRI to the component declaring it.

    When two components declare the same parameter, the one indexed
    last wins.
    """

    def __init__(self, components: Iterable[ConstraintComponent] = ()):
        self._index: dict[Term, ConstraintComponent] = {}
        for component in components:
            for parameter in component.get_parameters():
                self._index[parameter] = component

    def __getitem__(self, parameter: Term) -> ConstraintComponent:
        return self._index[parameter]

    def __iter__(self) -> Iterator[Term]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)


class Shape:
    """
    A SHACL shape.

    Constraints are collected from the outgoing triples of the shape
    node. A single-parameter component yields one constraint per value
    (two sh:minCount values give two constraints); a multi-parameter
    component yields at most one constraint, and only when every
    required parameter is present.
    """

    def __init__(
        self,
        shape_node: Term,
        shapes: Graph,
        parameter_index: Mapping,
        factory: Optional[TermFactory] = None,
        path_compiler: Optional[PathCompiler] = None,
    ):
        factory = factory or TermFactory()
        self.shape_node = shape_node
        self.shapes = shapes

        self.severity: Term = shapes.value(shape_node, SH.severity) or factory.term("sh:Violation")
        self.deactivated = any(is_true(o) for o in shapes.objects(shape_node, SH.deactivated))
        self.path: Optional[Term] = shapes.value(shape_node, SH.path)

        # Compiled on first use
        self._path_compiler = path_compiler
        self._compiled_path: Optional[PropertyPath] = None

        self.constraints: list[Constraint] = []
        handled: set[Term] = set()
        for _s, predicate, obj in shapes.triples(shape_node, None, None):
            component = parameter_index.get(predicate)
            if component is None or component.node in handled:
                continue
            if len(component.get_parameters()) == 1:
                self.constraints.append(Constraint(self, component, obj, shapes))
            elif component.is_complete(shape_node):
                self.constraints.append(Constraint(self, component, None, shapes))
                handled.add(component.node)

        logger.debug(f"Built shape {shape_node} with {len(self.constraints)} constraints")

    @property
    def compiled_path(self) -> Optional[PropertyPath]:
        """
        The sh:path compiled to a path expression, or None for a node shape.

        Raises:
            UnsupportedPathError: If sh:path is not a valid SHACL path
        """
        if self.path is None:
            return None
        if self._compiled_path is None:
            compiler = self._path_compiler or PathCompiler(self.shapes)
            self._compiled_path = compiler.compile(self.path)
        return self._compiled_path

    def get_constraints(self) -> list[Constraint]:
        return list(self.constraints)

    def is_property_shape(self) -> bool:
        return self.path is not None

    def get_target_nodes(self, data_graph: Graph) -> list[Term]:
        """Collect the focus nodes selected by this shape's targets."""
        results = NodeSet()
        shapes = self.shapes
        node = self.shape_node

        # Implicit class target
        if shapes.is_instance_of(node, RDFS.Class):
            results.add_all(data_graph.instances_of(node))

        for cls in shapes.objects(node, SH.targetClass):
            results.add_all(data_graph.instances_of(cls))

        results.add_all(shapes.objects(node, SH.targetNode))

        for predicate in shapes.objects(node, SH.targetSubjectsOf):
            results.add_all(data_graph.subjects(predicate, None))

        for predicate in shapes.objects(node, SH.targetObjectsOf):
            results.add_all(data_graph.objects(None, predicate))

        return results.to_list()

    def get_value_nodes(self, focus_node: Term, data_graph: Graph) -> list[Term]:
        path = self.compiled_path
        if path is None:
            return [focus_node]
        return data_graph.path(focus_node, path)

    def __repr__(self) -> str:
        kind = "PropertyShape" if self.is_property_shape() else "NodeShape"
        return f"Shape({kind} {self.shape_node}, constraints={len(self.constraints)})"
