"""
In-memory RDF graph backed by a Polars DataFrame.

Key design:
- Terms are keyed by their N-Triples form; the DataFrame holds the keys
  in subject/predicate/object string columns
- The DataFrame view is materialized on demand and invalidated on writes
- Point lookups read per-column position indexes; get_triples() filters
  the DataFrame view lazily
- GraphQuery chains patterns into joined variable bindings
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Union

import polars as pl

from rdf_shacl.namespaces import RDF, RDFS
from rdf_shacl.node_set import NodeSet
from rdf_shacl.storage.indexing import IndexManager, IndexStats
from rdf_shacl.terms import IRI, BlankNode, Literal, PatternTerm, Term, Variable

if TYPE_CHECKING:
    from rdf_shacl.shacl.paths import PropertyPath

logger = logging.getLogger(__name__)

Triple = tuple[Term, Term, Term]

_COLUMNS = ("subject", "predicate", "object")

# Blank node scope for each parsed document
_document_ids = itertools.count(1)


class Graph:
    """
    A set of RDF triples with pattern-matching queries.

    Adding a triple that is already present is a no-op. Query results
    follow insertion order.
    """

    def __init__(self, triples: Optional[Iterable[Triple]] = None):
        self._terms: dict[str, Term] = {}
        self._rows: list[tuple[str, str, str]] = []
        self._row_keys: set[tuple[str, str, str]] = set()
        self._indexes = IndexManager(_COLUMNS)

        # Cache for the DataFrame view
        self._df_cache: Optional[pl.DataFrame] = None
        self._df_cache_valid = False

        if triples is not None:
            self.add_all(triples)

    # ========== Construction ==========

    @classmethod
    def from_turtle(cls, turtle: str, prefixes: Optional[dict[str, str]] = None) -> "Graph":
        """Create a graph from a Turtle document."""
        graph = cls()
        graph.parse(turtle, prefixes=prefixes)
        return graph

    def parse(self, turtle: str, prefixes: Optional[dict[str, str]] = None) -> int:
        """
        Parse Turtle into this graph. Returns the number of triples read.

        Blank nodes are scoped to the document: labels get a prefix unique
        to this parse, so separate documents never share a blank node.
        """
        from rdf_shacl.formats.turtle import parse_turtle

        scope = f"d{next(_document_ids)}-"
        triples = parse_turtle(turtle, prefixes=prefixes, blank_node_prefix=scope)
        self.add_all(triples)
        return len(triples)

    def _intern(self, term: Term) -> str:
        key = term.n3()
        self._terms.setdefault(key, term)
        return key

    def add(self, subject: Term, predicate: Term, obj: Term) -> None:
        """Add a single triple."""
        if not isinstance(subject, (IRI, BlankNode)):
            raise TypeError(f"Subject must be an IRI or blank node, got {subject!r}")
        if not isinstance(predicate, IRI):
            raise TypeError(f"Predicate must be an IRI, got {predicate!r}")
        if not isinstance(obj, (IRI, BlankNode, Literal)):
            raise TypeError(f"Object must be an RDF term, got {obj!r}")

        row = (self._intern(subject), self._intern(predicate), self._intern(obj))
        if row in self._row_keys:
            return
        self._row_keys.add(row)
        self._indexes.add_row(row, len(self._rows))
        self._rows.append(row)
        self._invalidate_cache()

    def add_all(self, triples: Iterable[Triple]) -> None:
        for s, p, o in triples:
            self.add(s, p, o)

    def union(self, other: "Graph") -> "Graph":
        """Return a new graph holding the triples of both graphs."""
        merged = Graph(self)
        merged.add_all(other)
        return merged

    def _invalidate_cache(self) -> None:
        self._df_cache_valid = False

    @property
    def _df(self) -> pl.DataFrame:
        if not self._df_cache_valid or self._df_cache is None:
            if self._rows:
                subjects, predicates, objects = zip(*self._rows)
            else:
                subjects, predicates, objects = (), (), ()
            self._df_cache = pl.DataFrame(
                {
                    "subject": list(subjects),
                    "predicate": list(predicates),
                    "object": list(objects),
                },
                schema={col: pl.Utf8 for col in _COLUMNS},
            )
            self._df_cache_valid = True
        return self._df_cache

    # ========== Pattern Queries ==========

    def get_triples(
        self,
        subject: Optional[Term] = None,
        predicate: Optional[Term] = None,
        obj: Optional[Term] = None,
    ) -> pl.DataFrame:
        """
        Query triples with optional filters.

        Returns the matching rows of the string-keyed DataFrame view.
        """
        df = self._df.lazy()

        if subject is not None:
            df = df.filter(pl.col("subject") == subject.n3())
        if predicate is not None:
            df = df.filter(pl.col("predicate") == predicate.n3())
        if obj is not None:
            df = df.filter(pl.col("object") == obj.n3())

        return df.collect()

    def triples(
        self,
        subject: Optional[Term] = None,
        predicate: Optional[Term] = None,
        obj: Optional[Term] = None,
    ) -> list[Triple]:
        """
        Return matching triples as term tuples. None acts as a wildcard.

        Bound positions are answered from the positional indexes.
        """
        keys = tuple(None if term is None else term.n3() for term in (subject, predicate, obj))
        for key in keys:
            if key is not None and key not in self._terms:
                return []

        rows = self._rows
        terms = self._terms
        result = []
        for pos in self._indexes.lookup(rows, keys):
            s, p, o = rows[pos]
            result.append((terms[s], terms[p], terms[o]))
        return result

    def objects(self, subject: Optional[Term] = None, predicate: Optional[Term] = None) -> list[Term]:
        return [o for _s, _p, o in self.triples(subject, predicate, None)]

    def subjects(self, predicate: Optional[Term] = None, obj: Optional[Term] = None) -> list[Term]:
        return [s for s, _p, _o in self.triples(None, predicate, obj)]

    def value(self, subject: Term, predicate: Term) -> Optional[Term]:
        """Return one object for (subject, predicate), or None."""
        for _s, _p, o in self.triples(subject, predicate, None):
            return o
        return None

    def has_triple(
        self,
        subject: Optional[Term] = None,
        predicate: Optional[Term] = None,
        obj: Optional[Term] = None,
    ) -> bool:
        if subject is not None and predicate is not None and obj is not None:
            key = (subject.n3(), predicate.n3(), obj.n3())
            return key in self._row_keys
        return bool(self.triples(subject, predicate, obj))

    def index_stats(self) -> list[IndexStats]:
        """Key and entry counts of the positional indexes."""
        return self._indexes.stats()

    def query(self) -> "GraphQuery":
        """Start a chained pattern query over this graph."""
        return GraphQuery(self)

    # ========== RDF Utilities ==========

    def rdf_list(self, head: Term) -> list[Term]:
        """Decode an RDF collection starting at head into a Python list."""
        items: list[Term] = []
        visited: set[Term] = set()
        current: Optional[Term] = head
        nil = RDF.nil

        while current is not None and current != nil:
            if current in visited:
                logger.warning(f"Cyclic RDF list detected at {current}")
                break
            visited.add(current)
            first = self.value(current, RDF.first)
            if first is not None:
                items.append(first)
            current = self.value(current, RDF.rest)

        return items

    def is_list(self, node: Term) -> bool:
        """Check whether node is the head of an RDF collection."""
        return node == RDF.nil or self.value(node, RDF.first) is not None

    def subclasses_of(self, cls: Term) -> NodeSet:
        """Return cls and all its transitive rdfs:subClassOf descendants."""
        result = NodeSet([cls])
        frontier = [cls]
        while frontier:
            current = frontier.pop()
            for sub in self.subjects(RDFS.subClassOf, current):
                if result.add(sub):
                    frontier.append(sub)
        return result

    def superclasses_of(self, cls: Term) -> NodeSet:
        """Return cls and all its transitive rdfs:subClassOf ancestors."""
        result = NodeSet([cls])
        frontier = [cls]
        while frontier:
            current = frontier.pop()
            for sup in self.objects(current, RDFS.subClassOf):
                if result.add(sup):
                    frontier.append(sup)
        return result

    def instances_of(self, cls: Term) -> NodeSet:
        """Return all nodes typed with cls or one of its subclasses."""
        instances = NodeSet()
        for sub in self.subclasses_of(cls):
            instances.add_all(self.subjects(RDF.type, sub))
        return instances

    def is_instance_of(self, node: Term, cls: Term) -> bool:
        for node_type in self.objects(node, RDF.type):
            if cls in self.superclasses_of(node_type):
                return True
        return False

    def path(self, focus_node: Term, path: "PropertyPath") -> list[Term]:
        """Evaluate a compiled property path from focus_node."""
        from rdf_shacl.shacl.paths import evaluate_path

        return evaluate_path(self, focus_node, path)

    # ========== Protocol ==========

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Triple]:
        return iter(self.triples())

    def __contains__(self, triple: object) -> bool:
        if not isinstance(triple, tuple) or len(triple) != 3:
            return False
        return self.has_triple(*triple)

    def __repr__(self) -> str:
        return f"Graph(triples={len(self)}, terms={len(self._terms)})"


def _as_pattern_term(value: Union[PatternTerm, str]) -> PatternTerm:
    if isinstance(value, str):
        if value.startswith("?") or value.startswith("$"):
            return Variable(value[1:])
        raise TypeError(f"Pattern position must be a term, a variable or None: {value!r}")
    return value


class GraphQuery:
    """
    A chain of triple patterns evaluated into variable bindings.

    Each match() adds a pattern; variables shared between patterns are
    joined. Positions may be terms, Variables, '?name' strings or None.

    Example:
        graph.query().match(component, SH.parameter, "?param") \\
            .match("?param", SH.path, "?path")
    """

    def __init__(self, graph: Graph, patterns: tuple = ()):
        self.graph = graph
        self.patterns: tuple[tuple[PatternTerm, PatternTerm, PatternTerm], ...] = patterns

    def match(self, subject, predicate, obj) -> "GraphQuery":
        pattern = (
            _as_pattern_term(subject),
            _as_pattern_term(predicate),
            _as_pattern_term(obj),
        )
        return GraphQuery(self.graph, self.patterns + (pattern,))

    def __iter__(self) -> Iterator[dict[str, Term]]:
        solutions: list[dict[str, Term]] = [{}]
        for pattern in self.patterns:
            solutions = self._extend(solutions, pattern)
            if not solutions:
                break
        return iter(solutions)

    def _extend(
        self,
        solutions: list[dict[str, Term]],
        pattern: tuple[PatternTerm, PatternTerm, PatternTerm],
    ) -> list[dict[str, Term]]:
        extended = []
        for binding in solutions:
            bound = [
                binding.get(pos.name) if isinstance(pos, Variable) else pos
                for pos in pattern
            ]
            for triple in self.graph.triples(*bound):
                candidate = dict(binding)
                consistent = True
                for pos, value in zip(pattern, triple):
                    if not isinstance(pos, Variable):
                        continue
                    existing = candidate.get(pos.name)
                    if existing is None:
                        candidate[pos.name] = value
                    elif existing != value:
                        consistent = False
                        break
                if consistent:
                    extended.append(candidate)
        return extended

    def solutions(self) -> list[dict[str, Term]]:
        return list(self)

    def has_solution(self) -> bool:
        for _ in self:
            return True
        return False

    def get_node(self, var: str) -> Optional[Term]:
        """Return the first binding of var, or None."""
        name = var.lstrip("?$")
        for solution in self:
            node = solution.get(name)
            if node is not None:
                return node
        return None

    def get_node_array(self, var: str) -> list[Term]:
        """Return every binding of var, in solution order."""
        name = var.lstrip("?$")
        return [s[name] for s in self if name in s]

    def nodes(self, var: str) -> Iterator[Term]:
        return iter(self.get_node_array(var))

    def add_all_nodes(self, var: str, node_set: NodeSet) -> NodeSet:
        node_set.add_all(self.get_node_array(var))
        return node_set
