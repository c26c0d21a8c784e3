"""Field adapters for XGC vertex data and a no-op adapter."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from pcms.array_mask import ArrayMask
from pcms.layout import ClassPartition
from pcms.reverse_classification import ReverseClassificationVertex
from pcms.types import GO

PLANE_ROOT = 0


class XGCFieldAdapter:
    """Exposes the overlap-region vertices of an XGC field for coupling.

    ``data`` is the full vertex array of the field and is updated in place
    by :meth:`deserialize`. Only the root rank of a plane takes part in the
    coupling exchange; other ranks serialize nothing. Global ids are one-based
    and follow the vertex iteration order.
    """

    def __init__(
        self,
        name: str,
        data: np.ndarray,
        reverse_classification: ReverseClassificationVertex,
        in_overlap: Callable[[int, int], Any],
        plane_rank: int = PLANE_ROOT,
    ) -> None:
        if not isinstance(data, np.ndarray) or data.ndim != 1:
            raise TypeError("data must be a one dimensional numpy array")
        self.name = name
        self.data = data
        self.plane_rank = plane_rank
        self._reverse_classification = reverse_classification
        self._in_overlap = in_overlap
        self._gids = np.arange(1, data.size + 1, dtype=GO)
        self._mask = ArrayMask()
        if self.participates():
            if not callable(in_overlap):
                raise ValueError("in_overlap must be a function of (dim, id)")
            flags = np.zeros(data.size, dtype=np.int8)
            for geom, verts in reverse_classification:
                if bool(in_overlap(geom.dim, geom.id)):
                    for vert in verts:
                        if not 0 <= vert < data.size:
                            raise ValueError(
                                f"vertex {vert} out of range for {data.size} values"
                            )
                        flags[vert] = 1
            self._mask = ArrayMask(flags)
            if self._mask.empty():
                raise ValueError("no vertex lies in the overlap region")

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def participates(self) -> bool:
        """True on the plane rank that performs the coupling communication."""
        return self.plane_rank == PLANE_ROOT

    def serialize(self, permutation: Sequence[int] | np.ndarray | None = None) -> np.ndarray:
        """Overlap values in message order; empty on non-participating ranks."""
        if not self.participates():
            return np.zeros(0, dtype=self.data.dtype)
        return self._mask.apply(self.data, permutation)

    def deserialize(
        self,
        buffer: Sequence[Any] | np.ndarray,
        permutation: Sequence[int] | np.ndarray | None = None,
    ) -> None:
        """Write received overlap values back into ``data``."""
        if self.participates():
            self._mask.to_full_array(np.asarray(buffer), self.data, permutation)

    def gids(self) -> list[int]:
        """Global ids of the overlap vertices."""
        if not self.participates():
            return []
        return [int(g) for g in self._mask.apply(self._gids)]

    def reverse_partition_map(self, partition: ClassPartition) -> dict[int, list[int]]:
        """Destination rank -> sorted local indices, ranks in ascending order."""
        if not self.participates():
            return {}
        if not callable(self._in_overlap):
            raise ValueError("in_overlap must be a function of (dim, id)")
        index_map = self._mask.index_map()
        reverse: dict[int, list[int]] = {}
        for geom, verts in self._reverse_classification:
            if not bool(self._in_overlap(geom.dim, geom.id)):
                continue
            indices = reverse.setdefault(partition.get_rank(geom.dim, geom.id), [])
            for vert in verts:
                idx = int(index_map[vert])
                if idx <= 0:
                    raise ValueError(f"vertex {vert} is not in the overlap region")
                indices.append(idx - 1)
        return {rank: sorted(indices) for rank, indices in sorted(reverse.items())}


class DummyFieldAdapter:
    """An adapter with no data, for ranks that take part in no exchange."""

    dtype = np.dtype(np.int32)

    def serialize(self, permutation: Sequence[int] | np.ndarray | None = None) -> np.ndarray:
        """Always an empty buffer."""
        return np.zeros(0, dtype=self.dtype)

    def deserialize(
        self,
        buffer: Sequence[Any] | np.ndarray,
        permutation: Sequence[int] | np.ndarray | None = None,
    ) -> None:
        """Discard the buffer."""

    def gids(self) -> list[int]:
        """No global ids."""
        return []

    def reverse_partition_map(self, partition: ClassPartition) -> dict[int, list[int]]:
        """No destinations."""
        return {}