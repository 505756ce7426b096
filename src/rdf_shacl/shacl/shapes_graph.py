"""
The shapes graph model.

Built once from a shapes graph, then queried during validation:
- components and a parameter index, computed at construction
- Shape objects, created on first request and memoized
- the shape nodes with constraints and the shapes with targets,
  computed lazily and cached
"""

from __future__ import annotations

import logging
from enum import IntEnum, auto
from threading import Lock, RLock
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

from rdf_shacl.namespaces import RDFS, SH, TermFactory
from rdf_shacl.node_set import NodeSet
from rdf_shacl.shacl.components import ConstraintComponent
from rdf_shacl.shacl.paths import PathCompiler
from rdf_shacl.shacl.shapes import ParameterIndex, Shape
from rdf_shacl.shacl.validators import VALIDATORS_REGISTRY, ValidatorRegistry
from rdf_shacl.shacl.vocabulary import vocabulary_graph
from rdf_shacl.storage.graph import Graph
from rdf_shacl.terms import Term

if TYPE_CHECKING:
    from rdf_shacl.config import ShapesConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

TARGET_PREDICATES = (
    SH.targetClass,
    SH.targetNode,
    SH.targetSubjectsOf,
    SH.targetObjectsOf,
    SH.target,
)


class CacheState(IntEnum):
    """Population state of a lazily computed value."""
    PENDING = auto()   # Not computed yet
    READY = auto()     # Computed and cached


class LazyValue(Generic[T]):
    """A value computed on first access, at most once."""

    def __init__(self, compute: Callable[[], T]):
        self._compute = compute
        self._lock = Lock()
        self._value: Optional[T] = None
        self.state = CacheState.PENDING

    def get(self) -> T:
        if self.state == CacheState.READY:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if self.state == CacheState.PENDING:
                self._value = self._compute()
                self.state = CacheState.READY
        return self._value  # type: ignore[return-value]

    @property
    def is_ready(self) -> bool:
        return self.state == CacheState.READY


class ShapesGraph:
    """
    Compiled view of a SHACL shapes graph.

    The user's graph is merged with the SHACL Core component declarations
    (unless include_core_vocabulary is False); the input graph itself is
    never modified.

    Example:
        shapes_graph = ShapesGraph(Graph.from_turtle(shapes_ttl))
        for shape in shapes_graph.get_shapes_with_target():
            print(shape.shape_node, shape.get_target_nodes(data))
    """

    def __init__(
        self,
        graph: Graph,
        registry: Optional[ValidatorRegistry] = None,
        factory: Optional[TermFactory] = None,
        include_core_vocabulary: bool = True,
    ):
        self.registry = registry if registry is not None else VALIDATORS_REGISTRY
        self.factory = factory or TermFactory()

        # Declarations from the graph come after the core vocabulary, so
        # they win parameter collisions
        if include_core_vocabulary:
            self.graph = vocabulary_graph(self.registry).union(graph)
        else:
            self.graph = graph

        self.components: list[ConstraintComponent] = [
            ConstraintComponent(node, self.graph, self.registry)
            for node in self.graph.instances_of(SH.ConstraintComponent)
        ]
        self.parameter_index = ParameterIndex(self.components)
        self.path_compiler = PathCompiler(self.graph)

        self._shapes: dict[Term, Shape] = {}
        self._shapes_lock = RLock()
        self._shape_nodes_with_constraints: LazyValue[list[Term]] = LazyValue(
            self._find_shape_nodes_with_constraints
        )
        self._shapes_with_target: LazyValue[list[Shape]] = LazyValue(self._find_shapes_with_target)

        for component in self.components:
            if not component.has_validator():
                logger.debug(f"No validator registered for {component.node}")
        logger.debug(
            f"Built shapes graph: {len(self.graph)} triples, "
            f"{len(self.components)} components, {len(self.parameter_index)} parameters"
        )

    @classmethod
    def build(
        cls,
        graph: Graph,
        config: Optional["ShapesConfig"] = None,
        registry: Optional[ValidatorRegistry] = None,
    ) -> "ShapesGraph":
        """Create a shapes graph from configuration."""
        from rdf_shacl.config import ShapesConfig

        config = config or ShapesConfig()
        shapes_graph = cls(
            graph,
            registry=registry,
            include_core_vocabulary=config.include_core_vocabulary,
        )
        if config.eager_caches:
            shapes_graph.warm()
        return shapes_graph

    def get_component_with_parameter(self, parameter: Term) -> Optional[ConstraintComponent]:
        return self.parameter_index.get(parameter)

    def get_shape(self, shape_node: Term) -> Shape:
        """Return the Shape for a node, creating it on first request."""
        shape = self._shapes.get(shape_node)
        if shape is not None:
            return shape
        with self._shapes_lock:
            shape = self._shapes.get(shape_node)
            if shape is None:
                shape = Shape(
                    shape_node,
                    self.graph,
                    self.parameter_index,
                    factory=self.factory,
                    path_compiler=self.path_compiler,
                )
                self._shapes[shape_node] = shape
        return shape

    def get_shape_nodes_with_constraints(self) -> list[Term]:
        return list(self._shape_nodes_with_constraints.get())

    def get_shapes_with_target(self) -> list[Shape]:
        return list(self._shapes_with_target.get())

    def warm(self) -> "ShapesGraph":
        """Compute the lazy caches now."""
        self._shape_nodes_with_constraints.get()
        self._shapes_with_target.get()
        return self

    @property
    def cache_state(self) -> CacheState:
        if self._shape_nodes_with_constraints.is_ready and self._shapes_with_target.is_ready:
            return CacheState.READY
        return CacheState.PENDING

    def _find_shape_nodes_with_constraints(self) -> list[Term]:
        nodes = NodeSet()
        for component in self.components:
            for parameter in component.required_parameters:
                nodes.add_all(self.graph.subjects(parameter, None))
        logger.debug(f"Found {len(nodes)} shape nodes with constraints")
        return nodes.to_list()

    def _find_shapes_with_target(self) -> list[Shape]:
        shapes = []
        for node in self._shape_nodes_with_constraints.get():
            if self.graph.is_instance_of(node, RDFS.Class) or any(
                self.graph.has_triple(node, predicate, None) for predicate in TARGET_PREDICATES
            ):
                shapes.append(self.get_shape(node))
        logger.debug(f"Found {len(shapes)} shapes with targets")
        return shapes

    def __repr__(self) -> str:
        return f"ShapesGraph(components={len(self.components)}, shapes={len(self._shapes)})"
