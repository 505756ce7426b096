"""
Deduplicating collection of RDF terms.
"""

from typing import Iterable, Iterator, Optional

from rdf_shacl.terms import Term


class NodeSet:
    """
    A set of terms that remembers the order in which they were first added.

    Duplicates are dropped on insertion, so iterating yields each term
    exactly once.
    """

    __slots__ = ("_nodes",)

    def __init__(self, nodes: Optional[Iterable[Term]] = None):
        self._nodes: dict[Term, None] = {}
        if nodes is not None:
            self.add_all(nodes)

    def add(self, node: Term) -> bool:
        """Add a node. Returns True if it was not already present."""
        if node in self._nodes:
            return False
        self._nodes[node] = None
        return True

    def add_all(self, nodes: Iterable[Term]) -> "NodeSet":
        for node in nodes:
            self._nodes.setdefault(node, None)
        return self

    def union(self, other: Iterable[Term]) -> "NodeSet":
        result = NodeSet(self)
        result.add_all(other)
        return result

    def has(self, node: Term) -> bool:
        return node in self._nodes

    def to_list(self) -> list[Term]:
        return list(self._nodes)

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def __iter__(self) -> Iterator[Term]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodeSet):
            return set(self._nodes) == set(other._nodes)
        return NotImplemented

    def __repr__(self) -> str:
        return f"NodeSet({list(self._nodes)!r})"
