"""
SHACL property paths: compilation from the shapes graph and evaluation.

A declarative sh:path term is compiled into an immutable expression tree:

- PathIRI: a single predicate (ex:knows)
- PathSequence: an RDF list of paths (ex:a/ex:b)
- PathAlternative: sh:alternativePath (ex:a|ex:b)
- PathInverse: sh:inversePath (^ex:knows)
- PathMod: sh:zeroOrMorePath, sh:oneOrMorePath, sh:zeroOrOnePath
  (ex:knows*, ex:knows+, ex:knows?)

Evaluation walks the data graph from a focus node. Closures are computed
breadth-first over a visited set, so cyclic data always terminates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Union

from rdf_shacl.namespaces import RDF, SH
from rdf_shacl.node_set import NodeSet
from rdf_shacl.terms import IRI, BlankNode, Term

if TYPE_CHECKING:
    from rdf_shacl.storage.graph import Graph

logger = logging.getLogger(__name__)


class UnsupportedPathError(Exception):
    """The path term does not match any SHACL path form."""

    def __init__(self, term: Term, reason: Optional[str] = None):
        self.term = term
        message = f"Unsupported SHACL path {term}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PropertyPathModifier(Enum):
    """Repetition modifiers for a path."""
    ZERO_OR_MORE = "*"
    ONE_OR_MORE = "+"
    ZERO_OR_ONE = "?"


# =============================================================================
# Path Expression Tree
# =============================================================================

@dataclass(frozen=True)
class PathIRI:
    """A direct predicate step."""
    iri: IRI

    def __str__(self) -> str:
        return f"<{self.iri.value}>"


@dataclass(frozen=True)
class PathSequence:
    """Paths applied one after the other, left to right."""
    paths: tuple["PropertyPath", ...]

    def __str__(self) -> str:
        return "/".join(_group(p) for p in self.paths)


@dataclass(frozen=True)
class PathAlternative:
    """Union of the nodes reached by any of the paths."""
    paths: tuple["PropertyPath", ...]

    def __str__(self) -> str:
        return "(" + "|".join(str(p) for p in self.paths) + ")"


@dataclass(frozen=True)
class PathInverse:
    """A path followed against the direction of its edges."""
    path: "PropertyPath"

    def __str__(self) -> str:
        return f"^{_group(self.path)}"


@dataclass(frozen=True)
class PathMod:
    """A path repeated according to a modifier."""
    path: "PropertyPath"
    modifier: PropertyPathModifier

    def __str__(self) -> str:
        return f"{_group(self.path)}{self.modifier.value}"


PropertyPath = Union[PathIRI, PathSequence, PathAlternative, PathInverse, PathMod]


def _group(path: PropertyPath) -> str:
    if isinstance(path, PathSequence):
        return f"({path})"
    return str(path)


_MODIFIER_PREDICATES = (
    (SH.zeroOrMorePath, PropertyPathModifier.ZERO_OR_MORE),
    (SH.oneOrMorePath, PropertyPathModifier.ONE_OR_MORE),
    (SH.zeroOrOnePath, PropertyPathModifier.ZERO_OR_ONE),
)


# =============================================================================
# Compilation
# =============================================================================

class PathCompiler:
    """
    Compiles sh:path terms of one shapes graph into path expressions.

    Each distinct path term is compiled once and cached.
    """

    def __init__(self, shapes: "Graph"):
        self.shapes = shapes
        self._cache: dict[Term, PropertyPath] = {}

    def compile(self, path_term: Term) -> PropertyPath:
        cached = self._cache.get(path_term)
        if cached is None:
            cached = compile_path(self.shapes, path_term)
            self._cache[path_term] = cached
            logger.debug(f"Compiled path {path_term} as {cached}")
        return cached


def compile_path(shapes: "Graph", path_term: Term) -> PropertyPath:
    """
    Translate a declarative SHACL path into a path expression.

    Raises:
        UnsupportedPathError: If the term is not a valid SHACL path
    """
    return _compile(shapes, path_term, ())


def _compile(shapes: "Graph", term: Term, active: tuple[Term, ...]) -> PropertyPath:
    if isinstance(term, IRI):
        return PathIRI(term)

    if not isinstance(term, BlankNode):
        raise UnsupportedPathError(term)

    if term in active:
        raise UnsupportedPathError(term, "path refers to itself")
    active = active + (term,)

    # RDF list: sequence path
    if shapes.value(term, RDF.first) is not None:
        return PathSequence(tuple(
            _compile(shapes, member, active) for member in shapes.rdf_list(term)
        ))

    alternatives = shapes.value(term, SH.alternativePath)
    if alternatives is not None:
        members = shapes.rdf_list(alternatives)
        if not members:
            raise UnsupportedPathError(term, "sh:alternativePath requires a non-empty list")
        return PathAlternative(tuple(
            _compile(shapes, member, active) for member in members
        ))

    for predicate, modifier in _MODIFIER_PREDICATES:
        inner = shapes.value(term, predicate)
        if inner is not None:
            return PathMod(_compile(shapes, inner, active), modifier)

    inverse = shapes.value(term, SH.inversePath)
    if inverse is not None:
        return PathInverse(_compile(shapes, inverse, active))

    raise UnsupportedPathError(term)


# =============================================================================
# Evaluation
# =============================================================================

def evaluate_path(graph: "Graph", focus_node: Term, path: PropertyPath) -> list[Term]:
    """Return the nodes reachable from focus_node along path, each once."""
    return _evaluate(graph, path, [focus_node], inverse=False).to_list()


def _evaluate(
    graph: "Graph",
    path: PropertyPath,
    nodes: Iterable[Term],
    inverse: bool,
) -> NodeSet:
    if isinstance(path, PathIRI):
        result = NodeSet()
        for node in nodes:
            if inverse:
                result.add_all(graph.subjects(path.iri, node))
            else:
                result.add_all(graph.objects(node, path.iri))
        return result

    if isinstance(path, PathInverse):
        return _evaluate(graph, path.path, nodes, not inverse)

    if isinstance(path, PathSequence):
        steps = reversed(path.paths) if inverse else path.paths
        frontier = NodeSet(nodes)
        for step in steps:
            if not frontier:
                break
            frontier = _evaluate(graph, step, frontier, inverse)
        return frontier

    if isinstance(path, PathAlternative):
        start = list(nodes)
        result = NodeSet()
        for alternative in path.paths:
            result.add_all(_evaluate(graph, alternative, start, inverse))
        return result

    if isinstance(path, PathMod):
        return _evaluate_mod(graph, path, list(nodes), inverse)

    raise TypeError(f"Not a property path: {path!r}")


def _evaluate_mod(
    graph: "Graph",
    path: PathMod,
    nodes: list[Term],
    inverse: bool,
) -> NodeSet:
    if path.modifier == PropertyPathModifier.ZERO_OR_ONE:
        result = NodeSet(nodes)
        result.add_all(_evaluate(graph, path.path, nodes, inverse))
        return result

    # Reachability closure; the visited set doubles as the result
    if path.modifier == PropertyPathModifier.ZERO_OR_MORE:
        result = NodeSet(nodes)
    else:
        result = NodeSet()

    frontier = nodes
    while frontier:
        reached = _evaluate(graph, path.path, frontier, inverse)
        frontier = [node for node in reached if result.add(node)]
    return result
