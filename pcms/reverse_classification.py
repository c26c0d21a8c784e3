"""Reverse classification of mesh vertices on geometric model entities."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from os import PathLike
from typing import IO

_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class DimID:
    """Geometric model entity given by its dimension and id."""

    dim: int
    id: int


class ReverseClassificationVertex:
    """For each geometric entity, the set of mesh vertices classified on it.

    Vertices of an entity are always reported in ascending order.
    """

    def __init__(self) -> None:
        self._data: dict[DimID, set[int]] = {}
        self._total_verts = 0

    def insert(self, key: DimID, vertex: int) -> None:
        """Classify ``vertex`` on the geometric entity ``key``."""
        self._data.setdefault(key, set()).add(int(vertex))
        self._total_verts += 1

    def insert_many(self, key: DimID, vertices: Iterable[int]) -> None:
        """Classify every vertex in ``vertices`` on ``key``."""
        for vertex in vertices:
            self.insert(key, vertex)

    @property
    def total_verts(self) -> int:
        """Number of insertions made, duplicates included."""
        return self._total_verts

    def count_verts(self) -> int:
        """Number of distinct (entity, vertex) classifications."""
        return sum(len(verts) for verts in self._data.values())

    def serialize(self) -> list[int]:
        """Flatten to ``[dim, id, count, vertices...]`` per entity."""
        serialized: list[int] = []
        for geom, verts in self:
            serialized.extend((geom.dim, geom.id, len(verts)))
            serialized.extend(verts)
        return serialized

    @classmethod
    def deserialize(cls, data: Sequence[int]) -> ReverseClassificationVertex:
        """Rebuild from the output of :meth:`serialize`."""
        rc = cls()
        i = 0
        while i < len(data):
            if i + 3 > len(data):
                raise ValueError("serialized data ends inside an entity header")
            geom = DimID(int(data[i]), int(data[i + 1]))
            nverts = int(data[i + 2])
            i += 3
            if nverts < 0 or i + nverts > len(data):
                raise ValueError(f"serialized data too short for {nverts} vertices")
            verts = rc._data.setdefault(geom, set())
            verts.update(int(v) for v in data[i:i + nverts])
            if len(verts) != nverts:
                raise ValueError(f"inconsistent vertex count for entity {geom}")
            i += nverts
        return rc

    def query(self, geometry: DimID) -> tuple[int, ...] | None:
        """Vertices classified on ``geometry`` in ascending order, or None."""
        verts = self._data.get(geometry)
        if verts is None:
            return None
        return tuple(sorted(verts))

    def write(self, stream: IO[str]) -> None:
        """Write in the text format with one-based vertex ids."""
        stream.write(f"{self._total_verts}\n")
        for geom, verts in self:
            stream.write(f"{geom.dim} {geom.id}\n")
            stream.write("".join(f"{v + 1} " for v in verts))
            stream.write("\n")

    def __iter__(self) -> Iterator[tuple[DimID, tuple[int, ...]]]:
        for geom, verts in self._data.items():
            yield geom, tuple(sorted(verts))

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReverseClassificationVertex):
            return NotImplemented
        return self._data == other._data


class _Scanner:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def read_int(self) -> int | None:
        match = _INT.match(self._text, self._pos)
        if match is None:
            return None
        self._pos = match.end()
        return int(match.group(1))

    def read_line(self) -> str:
        end = self._text.find("\n", self._pos)
        if end == -1:
            line = self._text[self._pos:]
            self._pos = len(self._text)
        else:
            line = self._text[self._pos:end]
            self._pos = end + 1
        return line


def _leading_ints(line: str) -> Iterator[int]:
    scanner = _Scanner(line)
    while (value := scanner.read_int()) is not None:
        yield value


def read_reverse_classification(stream: IO[str]) -> ReverseClassificationVertex:
    """Read the text format: a vertex total, then per entity a ``dim id``
    line followed by a line of one-based vertex ids. Negative ids are skipped.
    """
    scanner = _Scanner(stream.read())
    rc = ReverseClassificationVertex()
    if scanner.read_int() is None:
        return rc
    while True:
        dim = scanner.read_int()
        if dim is None:
            break
        ident = scanner.read_int()
        if ident is None:
            break
        scanner.read_line()
        geometry = DimID(dim, ident)
        for node_id in _leading_ints(scanner.read_line()):
            if node_id >= 0:
                rc.insert(geometry, node_id - 1)
    return rc


def read_reverse_classification_file(path: str | PathLike[str]) -> ReverseClassificationVertex:
    """Read a reverse classification from the file at ``path``."""
    with open(path, encoding="utf-8") as stream:
        return read_reverse_classification(stream)