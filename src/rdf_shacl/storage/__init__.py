"""
RDF-SHACL Storage Layer.

In-memory triple store with positional indexes and pattern queries
over a Polars view.
"""

from rdf_shacl.storage.graph import Graph, GraphQuery, Triple
from rdf_shacl.storage.indexing import IndexManager, IndexStats, PositionIndex

__all__ = [
    "Graph",
    "GraphQuery",
    "Triple",
    "IndexManager",
    "IndexStats",
    "PositionIndex",
]
