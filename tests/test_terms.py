"""Tests for RDF terms, namespaces and NodeSet."""

from datetime import date
from decimal import Decimal

import pytest

from rdf_shacl.namespaces import RDF, SH, XSD, Namespace, TermFactory
from rdf_shacl.node_set import NodeSet
from rdf_shacl.terms import (
    RDF_LANG_STRING,
    XSD_STRING,
    IRI,
    BlankNode,
    Literal,
    get_local_name,
    is_true,
)


EX = Namespace("http://example.org/")


# ============================================================================
# Term Tests
# ============================================================================

class TestIRI:
    """Tests for IRI terms."""

    def test_equality_by_value(self):
        """Test that IRIs compare by value."""
        assert IRI("http://example.org/a") == IRI("http://example.org/a")
        assert IRI("http://example.org/a") != IRI("http://example.org/b")

    def test_n3(self):
        """Test the N-Triples form of an IRI."""
        assert IRI("http://example.org/a").n3() == "<http://example.org/a>"

    def test_local_name(self):
        """Test extracting the local name of an IRI."""
        assert IRI("http://example.org/ns#Person").local_name == "Person"
        assert IRI("http://example.org/people/alice").local_name == "alice"

    def test_hashable(self):
        """Test using IRIs as dict keys."""
        assert len({IRI("http://example.org/a"), IRI("http://example.org/a")}) == 1


class TestBlankNode:
    """Tests for blank nodes."""

    def test_n3(self):
        """Test the N-Triples form of a blank node."""
        assert BlankNode("b1").n3() == "_:b1"

    def test_not_equal_to_iri(self):
        """Test that a blank node never equals an IRI with the same text."""
        assert BlankNode("b1") != IRI("b1")


class TestLiteral:
    """Tests for literals and value conversion."""

    def test_plain_literal_is_string(self):
        """Test that a plain literal is an xsd:string."""
        lit = Literal("hello")
        assert lit.datatype == XSD_STRING
        assert lit.n3() == '"hello"'

    def test_language_tag(self):
        """Test a language-tagged literal."""
        lit = Literal("hello", language="EN")
        assert lit.language == "en"
        assert lit.datatype == RDF_LANG_STRING
        assert lit.n3() == '"hello"@en'

    def test_typed_n3(self):
        """Test the N-Triples form of a typed literal."""
        lit = Literal("5", datatype=f"{XSD}integer")
        assert lit.n3() == f'"5"^^<{XSD}integer>'

    def test_escaping(self):
        """Test escaping of quotes and control characters."""
        assert Literal('say "hi"\n').n3() == '"say \\"hi\\"\\n"'

    def test_equality_includes_datatype(self):
        """Test that literal equality includes the datatype."""
        assert Literal("1", datatype=f"{XSD}integer") != Literal("1")

    def test_to_python(self):
        """Test converting literals to Python values."""
        assert Literal("42", datatype=f"{XSD}integer").to_python() == 42
        assert Literal("1.5", datatype=f"{XSD}decimal").to_python() == Decimal("1.5")
        assert Literal("true", datatype=f"{XSD}boolean").to_python() is True
        assert Literal("-INF", datatype=f"{XSD}double").to_python() == float("-inf")
        assert Literal("2024-01-02", datatype=f"{XSD}date").to_python() == date(2024, 1, 2)

    def test_ill_formed_falls_back_to_lexical(self):
        """Test that an ill-formed literal converts to its lexical form."""
        lit = Literal("abc", datatype=f"{XSD}integer")
        assert lit.to_python() == "abc"
        assert not lit.is_well_formed()

    def test_from_python(self):
        """Test creating literals from Python values."""
        assert Literal.from_python(True) == Literal("true", datatype=f"{XSD}boolean")
        assert Literal.from_python(7) == Literal("7", datatype=f"{XSD}integer")
        assert Literal.from_python("x") == Literal("x")


class TestHelpers:
    """Tests for term helper functions."""

    def test_get_local_name(self):
        """Test the local name helper."""
        assert get_local_name("http://www.w3.org/ns/shacl#minCount") == "minCount"

    def test_is_true(self):
        """Test boolean truth of literals."""
        assert is_true(Literal("true", datatype=f"{XSD}boolean"))
        assert not is_true(Literal("false", datatype=f"{XSD}boolean"))
        assert not is_true(IRI("true"))
        assert not is_true(None)


# ============================================================================
# Namespace Tests
# ============================================================================

class TestNamespace:
    """Tests for namespaces and the term factory."""

    def test_attribute_access(self):
        """Test namespace attribute access."""
        assert SH.minCount == IRI("http://www.w3.org/ns/shacl#minCount")
        assert RDF.type == IRI("http://www.w3.org/1999/02/22-rdf-syntax-ns#type")

    def test_item_access_for_keywords(self):
        """Test item access for names that are Python keywords."""
        assert SH["in"] == IRI("http://www.w3.org/ns/shacl#in")
        assert SH["class"].local_name == "class"

    def test_factory_prefixed_name(self):
        """Test resolving a prefixed name."""
        factory = TermFactory()
        assert factory.term("sh:Violation") == SH.Violation

    def test_factory_custom_prefix(self):
        """Test resolving a custom prefix."""
        factory = TermFactory({"ex": "http://example.org/"})
        assert factory.term("ex:alice") == EX.alice
        assert factory.iri("<http://example.org/bob>") == EX.bob

    def test_factory_blank_node(self):
        """Test creating a blank node from a label."""
        assert TermFactory().term("_:b0") == BlankNode("b0")

    def test_factory_literal(self):
        """Test creating a literal through the factory."""
        lit = TermFactory().literal("5", datatype="xsd:integer")
        assert lit.datatype == f"{XSD}integer"


# ============================================================================
# NodeSet Tests
# ============================================================================

class TestNodeSet:
    """Tests for the deduplicating node collection."""

    def test_add_reports_new(self):
        """Test that add() reports whether the node was new."""
        nodes = NodeSet()
        assert nodes.add(EX.a) is True
        assert nodes.add(EX.a) is False
        assert len(nodes) == 1

    def test_insertion_order(self):
        """Test that iteration follows insertion order."""
        nodes = NodeSet([EX.b, EX.a, EX.b, EX.c])
        assert nodes.to_list() == [EX.b, EX.a, EX.c]

    def test_union(self):
        """Test merging two node sets."""
        left = NodeSet([EX.a])
        merged = left.union([EX.a, EX.b])
        assert merged.to_list() == [EX.a, EX.b]
        assert left.to_list() == [EX.a]

    def test_membership(self):
        """Test node set membership."""
        nodes = NodeSet([EX.a])
        assert EX.a in nodes
        assert nodes.has(EX.a)
        assert EX.b not in nodes

    def test_bool_and_equality(self):
        """Test truthiness and equality of node sets."""
        assert not NodeSet()
        assert NodeSet([EX.a, EX.b]) == NodeSet([EX.b, EX.a])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
