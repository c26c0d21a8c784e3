"""Masks that select and scatter the active entries of an array."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from itertools import accumulate
from typing import Any

import numpy as np

from pcms.types import LO


def inclusive_scan(values: Iterable[Any]) -> list[Any]:
    """Running sums of ``values``, the i-th entry including the i-th value."""
    return list(accumulate(values))


class ArrayMask:
    """Selects the entries of an array whose mask value is positive.

    The index map holds, for each entry, zero when the entry is inactive and
    otherwise one plus the position of the entry in the filtered array.
    """

    def __init__(self, mask: Sequence[int] | np.ndarray | None = None) -> None:
        if mask is None:
            self._map = np.zeros(0, dtype=LO)
            self._num_active = 0
            return
        flags = np.asarray(mask)
        if flags.ndim != 1:
            raise ValueError("mask must be one dimensional")
        active = flags > 0
        self._map = (np.cumsum(active, dtype=LO) * active).astype(LO)
        self._num_active = int(active.sum())

    def _check_permutation(self, permutation: Any) -> np.ndarray | None:
        if permutation is None:
            return None
        perm = np.asarray(permutation, dtype=np.intp)
        if perm.size == 0:
            return None
        if perm.shape != (self._num_active,):
            raise ValueError("permutation must have one entry per active entry")
        return perm

    def apply(self, data: Sequence[Any] | np.ndarray, permutation: Any = None) -> np.ndarray:
        """Return the active entries of ``data``, optionally permuted.

        With a permutation, the k-th active entry lands at ``permutation[k]``.
        """
        if self.empty():
            raise ValueError("cannot apply an empty mask")
        values = np.asarray(data)
        if values.shape[:1] != self._map.shape:
            raise ValueError("data size does not match the mask size")
        selected = values[self._map > 0]
        perm = self._check_permutation(permutation)
        if perm is None:
            return selected
        result = np.empty_like(selected)
        result[perm] = selected
        return result

    def to_full_array(
        self,
        filtered_data: Sequence[Any] | np.ndarray,
        output: np.ndarray,
        permutation: Any = None,
    ) -> np.ndarray:
        """Write filtered data back into the active entries of ``output``.

        With an empty mask the filtered data is copied whole. ``output`` is
        modified in place and returned.
        """
        if not isinstance(output, np.ndarray):
            raise TypeError("output must be a numpy array")
        filtered = np.asarray(filtered_data)
        if self.empty():
            if not np.shares_memory(filtered, output):
                if len(output) != len(filtered):
                    raise ValueError("output and filtered data sizes differ")
                output[...] = filtered
            return output
        if len(output) != len(self._map):
            raise ValueError("output size does not match the mask size")
        if len(filtered) != self._num_active:
            raise ValueError("filtered data size does not match the active entries")
        perm = self._check_permutation(permutation)
        output[self._map > 0] = filtered if perm is None else filtered[perm]
        return output

    def empty(self) -> bool:
        """True when no entry is active."""
        return self._num_active == 0

    def __bool__(self) -> bool:
        return not self.empty()

    def size(self) -> int:
        """Number of active entries."""
        return self._num_active

    def index_map(self) -> np.ndarray:
        """Read-only view of the index map."""
        view = self._map.view()
        view.flags.writeable = False
        return view