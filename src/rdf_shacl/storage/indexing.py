"""
Positional indexes over the triple rows of a graph.

Each index maps the term key found in one column (subject, predicate or
object) to the row positions holding it, in insertion order. Point
lookups with a bound position read these lists instead of scanning the
whole table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import polars as pl


@dataclass
class IndexStats:
    """Statistics for an index."""
    column_name: str
    num_keys: int
    num_entries: int


class PositionIndex:
    """
    Hash index from a column value to its row positions.

    Example:
        idx = PositionIndex("subject")
        idx.build(df)
        positions = idx.lookup("<http://example.org/alice>")
    """

    def __init__(self, column_name: str):
        self.column_name = column_name
        self._positions: dict[str, list[int]] = {}
        self._num_entries = 0

    def build(self, df: "pl.DataFrame") -> None:
        """Rebuild the index from a DataFrame."""
        self.clear()
        if self.column_name not in df.columns:
            return
        for row_idx, value in enumerate(df[self.column_name].to_list()):
            self.add(value, row_idx)

    def add(self, key: str, position: int) -> None:
        self._positions.setdefault(key, []).append(position)
        self._num_entries += 1

    def lookup(self, key: str) -> list[int]:
        """Row positions holding key, oldest first. Do not mutate."""
        return self._positions.get(key, [])

    def contains(self, key: str) -> bool:
        return key in self._positions

    def count(self, key: str) -> int:
        return len(self._positions.get(key, ()))

    def stats(self) -> IndexStats:
        return IndexStats(self.column_name, len(self._positions), self._num_entries)

    def clear(self) -> None:
        self._positions.clear()
        self._num_entries = 0


class IndexManager:
    """
    One PositionIndex per triple column.

    lookup() intersects the bound positions by scanning the shortest
    position list and checking the other columns on each row.
    """

    def __init__(self, columns: tuple[str, ...]):
        self.columns = columns
        self.indexes = {column: PositionIndex(column) for column in columns}

    def add_row(self, row: tuple[str, ...], position: int) -> None:
        for column, key in zip(self.columns, row):
            self.indexes[column].add(key, position)

    def build_all(self, df: "pl.DataFrame") -> None:
        """Build all indexes from a DataFrame."""
        for index in self.indexes.values():
            index.build(df)

    def lookup(self, rows: list[tuple[str, ...]], keys: tuple[Optional[str], ...]) -> list[int]:
        """
        Positions of the rows matching every bound key.

        A None key is a wildcard. With no bound key every position
        matches.
        """
        bound = [(i, key) for i, key in enumerate(keys) if key is not None]
        if not bound:
            return list(range(len(rows)))

        pivot, pivot_key = min(bound, key=lambda item: self.indexes[self.columns[item[0]]].count(item[1]))
        candidates = self.indexes[self.columns[pivot]].lookup(pivot_key)
        rest = [(i, key) for i, key in bound if i != pivot]
        if not rest:
            return list(candidates)
        return [pos for pos in candidates if all(rows[pos][i] == key for i, key in rest)]

    def stats(self) -> list[IndexStats]:
        return [index.stats() for index in self.indexes.values()]
