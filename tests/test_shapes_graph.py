"""Tests for the shapes graph model: components, constraints and shapes."""

import threading

import pytest

from rdf_shacl.config import ShapesConfig
from rdf_shacl.namespaces import SH, Namespace
from rdf_shacl.shacl import (
    CacheState,
    LazyValue,
    ParameterIndex,
    PathIRI,
    ShapesGraph,
    UnsupportedPathError,
    vocabulary_triples,
)
from rdf_shacl.storage import Graph
from rdf_shacl.terms import XSD_NS, BlankNode, Literal


EX = Namespace("http://example.org/")

PREFIXES = "@prefix ex: <http://example.org/> .\n"


def integer(value: int) -> Literal:
    return Literal(str(value), datatype=f"{XSD_NS}integer")


def shapes_graph(turtle: str, **kwargs) -> ShapesGraph:
    return ShapesGraph(Graph.from_turtle(PREFIXES + turtle), **kwargs)


PERSON_SHAPES = """
    ex:PersonShape a sh:NodeShape ;
        sh:targetClass ex:Person ;
        sh:property [ sh:path ex:name ; sh:minCount 1 ] .
"""


# ============================================================================
# Core Vocabulary Tests
# ============================================================================

class TestVocabulary:
    """Tests for the generated component declarations."""

    def test_declares_components(self):
        """Test that every core component is declared."""
        triples = vocabulary_triples()
        components = [s for s, p, o in triples if o == SH.ConstraintComponent]
        assert SH.MinCountConstraintComponent in components
        assert SH.QualifiedMaxCountConstraintComponent in components

    def test_optional_parameters_marked(self):
        """Test that optional parameters are marked."""
        graph = Graph(vocabulary_triples())
        optional_paths = [
            graph.value(node, SH.path) for node in graph.subjects(SH.optional, None)
        ]
        assert SH.flags in optional_paths
        assert SH.ignoredProperties in optional_paths
        assert SH.minCount not in optional_paths

    def test_user_graph_not_modified(self):
        """Test that the input graph is not modified."""
        graph = Graph.from_turtle(PREFIXES + PERSON_SHAPES)
        size = len(graph)
        ShapesGraph(graph)
        assert len(graph) == size


# ============================================================================
# ConstraintComponent Tests
# ============================================================================

class TestConstraintComponent:
    """Tests for component parameters and validator slots."""

    @pytest.fixture
    def sg(self):
        return shapes_graph(PERSON_SHAPES)

    def test_single_parameter(self, sg):
        """Test a single-parameter component."""
        component = sg.get_component_with_parameter(SH.minCount)
        assert component.node == SH.MinCountConstraintComponent
        assert component.get_parameters() == [SH.minCount]

    def test_optional_parameter(self, sg):
        """Test an optional parameter."""
        component = sg.get_component_with_parameter(SH.pattern)
        assert component.get_parameters() == [SH.pattern, SH.flags]
        assert component.is_optional(SH.flags)
        assert not component.is_optional(SH.pattern)
        assert component.required_parameters == [SH.pattern]

    def test_parameter_order(self, sg):
        """Test that parameters keep declaration order."""
        component = sg.get_component_with_parameter(SH.qualifiedMinCount)
        assert component.get_parameters() == [
            SH.qualifiedValueShape,
            SH.qualifiedMinCount,
            SH.qualifiedValueShapesDisjoint,
        ]

    def test_last_registration_wins(self, sg):
        """Test that the last registration of a parameter wins."""
        component = sg.get_component_with_parameter(SH.qualifiedValueShape)
        assert component.node == SH.QualifiedMaxCountConstraintComponent

    def test_unknown_parameter(self, sg):
        """Test looking up an unknown parameter."""
        assert sg.get_component_with_parameter(EX.notAParameter) is None

    def test_property_only_slot(self, sg):
        """Test a component with a property-only validator."""
        component = sg.get_component_with_parameter(SH.minCount)
        assert component.property_validation_function is not None
        assert not component.property_validation_function_generic
        assert component.node_validation_function is None
        assert component.node_validation_function_generic

    def test_generic_slot(self, sg):
        """Test a component with a generic validator."""
        component = sg.get_component_with_parameter(SH.datatype)
        assert component.node_validation_function == component.property_validation_function
        assert component.node_validation_function_generic
        assert component.property_validation_function_generic

    def test_messages_depend_on_shape_kind(self, sg):
        """Test that messages depend on the shape kind."""
        component = sg.get_component_with_parameter(SH.minCount)
        property_shape = sg.get_shape(sg.graph.value(EX.PersonShape, SH.property))
        node_shape = sg.get_shape(EX.PersonShape)
        assert component.get_messages(property_shape) == ["Less than {$minCount} values"]
        assert component.get_messages(node_shape) == []

    def test_is_complete(self):
        """Test completeness of a multi-parameter declaration."""
        sg = shapes_graph("""
            ex:Full sh:qualifiedValueShape ex:Q ; sh:qualifiedMinCount 1 .
            ex:Partial sh:qualifiedMinCount 1 .
        """)
        component = sg.get_component_with_parameter(SH.qualifiedMinCount)
        assert component.is_complete(EX.Full)
        assert not component.is_complete(EX.Partial)

    def test_no_required_parameters_always_complete(self):
        """Test that a component without required parameters is always complete."""
        sg = shapes_graph("""
            ex:OptionalComponent a sh:ConstraintComponent ;
                sh:parameter [ sh:path ex:opt ; sh:optional true ] .
        """, include_core_vocabulary=False)
        component = sg.get_component_with_parameter(EX.opt)
        assert component.node == EX.OptionalComponent
        assert component.is_complete(EX.anything)
        assert not component.has_validator()

    def test_user_component_overrides_core_parameter(self):
        """Test that a user component overrides a core parameter."""
        sg = shapes_graph("""
            ex:MyMinCount a sh:ConstraintComponent ;
                sh:parameter [ sh:path sh:minCount ] .
        """)
        assert sg.get_component_with_parameter(SH.minCount).node == EX.MyMinCount


# ============================================================================
# Shape and Constraint Tests
# ============================================================================

class TestShape:
    """Tests for shape construction."""

    def test_defaults(self):
        """Test shape defaults."""
        sg = shapes_graph(PERSON_SHAPES)
        shape = sg.get_shape(EX.PersonShape)
        assert shape.severity == SH.Violation
        assert not shape.deactivated
        assert shape.path is None
        assert not shape.is_property_shape()

    def test_severity_and_deactivated(self):
        """Test severity and deactivation."""
        sg = shapes_graph("""
            ex:S sh:targetNode ex:a ; sh:severity sh:Warning ; sh:deactivated true ;
                sh:nodeKind sh:IRI .
        """)
        shape = sg.get_shape(EX.S)
        assert shape.severity == SH.Warning
        assert shape.deactivated

    def test_property_shape_path(self):
        """Test the path of a property shape."""
        sg = shapes_graph(PERSON_SHAPES)
        shape = sg.get_shape(sg.graph.value(EX.PersonShape, SH.property))
        assert shape.is_property_shape()
        assert shape.path == EX.name
        assert shape.compiled_path == PathIRI(EX.name)

    def test_constraint_parameter_values(self):
        """Test constraint parameter values."""
        sg = shapes_graph(PERSON_SHAPES)
        shape = sg.get_shape(sg.graph.value(EX.PersonShape, SH.property))
        [constraint] = shape.get_constraints()
        assert constraint.component.node == SH.MinCountConstraintComponent
        assert constraint.get_parameter_value("minCount") == integer(1)
        assert constraint.component_messages == ["Less than {$minCount} values"]

    def test_repeated_single_parameter(self):
        """Test that repeated single parameters give one constraint each."""
        sg = shapes_graph("ex:S sh:targetNode ex:a ; sh:path ex:p ; sh:minCount 1, 2 .")
        constraints = sg.get_shape(EX.S).get_constraints()
        assert [c.get_parameter_value("minCount") for c in constraints] == [integer(1), integer(2)]

    def test_multi_parameter_once(self):
        """Test that a multi-parameter component gives one constraint."""
        sg = shapes_graph("""
            ex:S sh:targetNode ex:a ; sh:path ex:p ;
                sh:qualifiedValueShape ex:Q ; sh:qualifiedMinCount 1 ; sh:qualifiedMaxCount 3 .
        """)
        components = [c.component.node for c in sg.get_shape(EX.S).get_constraints()]
        assert components.count(SH.QualifiedMinCountConstraintComponent) == 1
        assert components.count(SH.QualifiedMaxCountConstraintComponent) == 1

    def test_multi_parameter_values(self):
        """Test the parameter values of a multi-parameter constraint."""
        sg = shapes_graph("""
            ex:S sh:targetNode ex:a ; sh:path ex:p ;
                sh:qualifiedValueShape ex:Q ; sh:qualifiedMinCount 2 .
        """)
        [constraint] = sg.get_shape(EX.S).get_constraints()
        assert constraint.get_parameter_value("qualifiedValueShape") == EX.Q
        assert constraint.get_parameter_value("qualifiedMinCount") == integer(2)
        assert constraint.get_parameter_value("qualifiedValueShapesDisjoint") is None

    def test_incomplete_multi_parameter_skipped(self):
        """Test that an incomplete multi-parameter declaration is skipped."""
        sg = shapes_graph("ex:S sh:targetNode ex:a ; sh:path ex:p ; sh:qualifiedMinCount 1 .")
        assert sg.get_shape(EX.S).get_constraints() == []

    def test_optional_parameter_absent(self):
        """Test that an absent optional parameter has no value."""
        sg = shapes_graph('ex:S sh:targetNode ex:a ; sh:pattern "^a" .')
        [constraint] = sg.get_shape(EX.S).get_constraints()
        assert constraint.get_parameter_value("pattern") == Literal("^a")
        assert "flags" not in constraint.parameter_values

    def test_unsupported_path(self):
        """Test that a malformed path raises when first used, not when the shape is built."""
        sg = shapes_graph("ex:S sh:targetNode ex:a ; sh:path [ ex:bogus ex:p ] ; sh:minCount 1 .")
        shape = sg.get_shape(EX.S)
        assert shape.is_property_shape()
        with pytest.raises(UnsupportedPathError):
            shape.get_value_nodes(EX.a, Graph())

    def test_compiled_path_cached(self):
        """Test that the compiled path is computed once per shape."""
        sg = shapes_graph(PERSON_SHAPES)
        shape = sg.get_shape(sg.graph.value(EX.PersonShape, SH.property))
        assert shape.compiled_path is shape.compiled_path

    def test_node_shape_has_no_compiled_path(self):
        """Test that a node shape compiles no path and yields the focus node."""
        sg = shapes_graph("ex:S sh:targetNode ex:a ; sh:nodeKind sh:IRI .")
        shape = sg.get_shape(EX.S)
        assert shape.compiled_path is None
        assert shape.get_value_nodes(EX.a, Graph()) == [EX.a]


class TestTargets:
    """Tests for target node discovery."""

    def test_target_class_with_subclasses(self):
        """Test class targets including subclass instances."""
        sg = shapes_graph(PERSON_SHAPES)
        data = Graph.from_turtle(PREFIXES + """
            ex:alice a ex:Person .
            ex:bob a ex:Student .
            ex:Student rdfs:subClassOf ex:Person .
            ex:rex a ex:Dog .
        """)
        shape = sg.get_shape(EX.PersonShape)
        assert shape.get_target_nodes(data) == [EX.alice, EX.bob]

    def test_targets_deduplicated(self):
        """Test that target nodes are deduplicated."""
        sg = shapes_graph("""
            ex:S sh:targetClass ex:Person ; sh:targetNode ex:alice ;
                sh:targetSubjectsOf ex:name ; sh:nodeKind sh:IRI .
        """)
        data = Graph.from_turtle(PREFIXES + 'ex:alice a ex:Person ; ex:name "Alice" .')
        assert sg.get_shape(EX.S).get_target_nodes(data) == [EX.alice]

    def test_target_subjects_and_objects_of(self):
        """Test subjects-of and objects-of targets."""
        sg = shapes_graph("""
            ex:S sh:targetSubjectsOf ex:knows ; sh:targetObjectsOf ex:knows ;
                sh:nodeKind sh:IRI .
        """)
        data = Graph.from_turtle(PREFIXES + "ex:a ex:knows ex:b . ex:b ex:knows ex:c .")
        assert sg.get_shape(EX.S).get_target_nodes(data) == [EX.a, EX.b, EX.c]

    def test_target_node_not_in_data(self):
        """Test that a target node need not be in the data."""
        sg = shapes_graph("ex:S sh:targetNode ex:ghost ; sh:nodeKind sh:IRI .")
        assert sg.get_shape(EX.S).get_target_nodes(Graph()) == [EX.ghost]

    def test_implicit_class_target(self):
        """Test the implicit class target."""
        sg = shapes_graph("""
            ex:Person a rdfs:Class, sh:NodeShape ;
                sh:property [ sh:path ex:name ; sh:minCount 1 ] .
        """)
        data = Graph.from_turtle(PREFIXES + "ex:alice a ex:Person .")
        assert sg.get_shape(EX.Person).get_target_nodes(data) == [EX.alice]

    def test_node_shape_value_nodes(self):
        """Test that a node shape's value node is the focus node."""
        sg = shapes_graph(PERSON_SHAPES)
        assert sg.get_shape(EX.PersonShape).get_value_nodes(EX.alice, Graph()) == [EX.alice]

    def test_property_shape_value_nodes(self):
        """Test the value nodes of a property shape."""
        sg = shapes_graph(PERSON_SHAPES)
        data = Graph.from_turtle(PREFIXES + 'ex:alice ex:name "Alice", "Ali" .')
        shape = sg.get_shape(sg.graph.value(EX.PersonShape, SH.property))
        assert shape.get_value_nodes(EX.alice, data) == [Literal("Alice"), Literal("Ali")]


# ============================================================================
# ShapesGraph Tests
# ============================================================================

class TestShapesGraph:
    """Tests for memoization and the lazily computed shape lists."""

    def test_get_shape_memoized(self):
        """Test that get_shape() returns the same object."""
        sg = shapes_graph(PERSON_SHAPES)
        assert sg.get_shape(EX.PersonShape) is sg.get_shape(EX.PersonShape)

    def test_get_shape_concurrent_first_access(self):
        """Test concurrent first access to get_shape()."""
        sg = shapes_graph(PERSON_SHAPES)
        results = []

        def worker():
            results.append(sg.get_shape(EX.PersonShape))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert all(shape is results[0] for shape in results)

    def test_shape_nodes_with_constraints(self):
        """Test finding shape nodes with constraints."""
        sg = shapes_graph(PERSON_SHAPES)
        nodes = sg.get_shape_nodes_with_constraints()
        assert EX.PersonShape in nodes
        assert sg.graph.value(EX.PersonShape, SH.property) in nodes
        assert len(nodes) == len(set(nodes))

    def test_shapes_with_target(self):
        """Test finding shapes with targets."""
        sg = shapes_graph(PERSON_SHAPES)
        assert [s.shape_node for s in sg.get_shapes_with_target()] == [EX.PersonShape]

    def test_sh_target_recognized(self):
        """Test that sh:target counts as a target."""
        sg = shapes_graph("ex:S sh:target [ a ex:CustomTarget ] ; sh:nodeKind sh:IRI .")
        shapes = sg.get_shapes_with_target()
        assert [s.shape_node for s in shapes] == [EX.S]
        assert shapes[0].get_target_nodes(Graph()) == []

    def test_shape_without_constraints_ignored(self):
        """Test that a shape without constraints is ignored."""
        sg = shapes_graph("ex:S sh:targetNode ex:a .")
        assert sg.get_shapes_with_target() == []

    def test_cache_state(self):
        """Test the cache state before and after warming."""
        sg = shapes_graph(PERSON_SHAPES)
        assert sg.cache_state == CacheState.PENDING
        sg.warm()
        assert sg.cache_state == CacheState.READY

    def test_build_with_eager_caches(self):
        """Test building with eager caches."""
        graph = Graph.from_turtle(PREFIXES + PERSON_SHAPES)
        sg = ShapesGraph.build(graph, ShapesConfig(eager_caches=True))
        assert sg.cache_state == CacheState.READY

    def test_without_core_vocabulary(self):
        """Test building without the core vocabulary."""
        sg = shapes_graph(PERSON_SHAPES, include_core_vocabulary=False)
        assert sg.components == []
        assert sg.get_shapes_with_target() == []


class TestSupportTypes:
    """Tests for the parameter index and lazy values."""

    def test_parameter_index_is_read_only(self):
        """Test that the parameter index is read-only."""
        index = ParameterIndex()
        assert len(index) == 0
        with pytest.raises(TypeError):
            index[SH.minCount] = None

    def test_lazy_value_computes_once(self):
        """Test that a lazy value is computed once."""
        calls = []

        def compute():
            calls.append(1)
            return [BlankNode("x")]

        lazy = LazyValue(compute)
        assert lazy.state == CacheState.PENDING
        assert lazy.get() is lazy.get()
        assert calls == [1]
        assert lazy.is_ready


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
