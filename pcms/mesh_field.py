"""Fields stored as vertex tags on a triangle mesh, and their adapters."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from pcms.array_mask import ArrayMask
from pcms.layout import ClassPartition
from pcms.point_search import GridPointSearch, SearchResult, TriangleMesh
from pcms.types import GO, LO, Lagrange, NearestNeighbor, Real

CLASS_ID_TAG = "class_id"
CLASS_DIM_TAG = "class_dim"


def filter_array(
    array: Sequence[Any] | np.ndarray,
    mask: Sequence[int] | np.ndarray,
    size: int,
    dim: int = 1,
) -> np.ndarray:
    """Gather the active entries of ``array`` into a flat array.

    ``mask`` is an index map: zero for inactive entries, otherwise one plus
    the position in the result. Each entry consists of ``dim`` values.
    """
    if dim <= 0:
        raise ValueError("array dimension must be positive")
    index_map = np.asarray(mask, dtype=np.intp)
    flat = np.asarray(array).reshape(-1)
    if flat.size != index_map.size * dim:
        raise ValueError("array size does not match the mask size")
    if size * dim > flat.size:
        raise ValueError("filtered size exceeds the array size")
    rows = flat.reshape(index_map.size, dim)
    result = np.zeros((size, dim), dtype=flat.dtype)
    active = index_map > 0
    result[index_map[active] - 1] = rows[active]
    return result.reshape(-1)


class MeshField:
    """A named vertex field on a triangle mesh, optionally restricted by a mask."""

    def __init__(
        self,
        name: str,
        mesh: TriangleMesh,
        mask: Sequence[int] | np.ndarray | None = None,
        global_id_name: str = "",
        search_nx: int = 10,
        search_ny: int = 10,
        dtype: Any = Real,
    ) -> None:
        self.name = name
        self.mesh = mesh
        self.global_id_name = global_id_name
        self.dtype = np.dtype(dtype)
        self._search = GridPointSearch(mesh, search_nx, search_ny)
        if mask is None:
            self._mask: np.ndarray | None = None
            self._size = mesh.nverts()
        else:
            flags = np.asarray(mask)
            if flags.shape != (mesh.nverts(),):
                raise ValueError("mask must have one entry per mesh vertex")
            array_mask = ArrayMask(flags)
            self._mask = np.array(array_mask.index_map(), dtype=LO)
            self._size = array_mask.size()

    @property
    def mask(self) -> np.ndarray | None:
        """Index map of the mask, or None when the field is unmasked."""
        return self._mask

    def has_mask(self) -> bool:
        """True when the field is restricted by a mask."""
        return self._mask is not None

    def size(self) -> int:
        """Number of vertices the field covers."""
        return self._size

    def search(self, points: Sequence[Sequence[float]] | np.ndarray) -> list[SearchResult]:
        """Locate ``(x, y)`` points in the mesh."""
        return self._search.search(points)

    def _filtered(self, array: np.ndarray, dim: int = 1) -> np.ndarray:
        if self._mask is None:
            return array
        return filter_array(array, self._mask, self._size, dim)

    def class_ids(self) -> np.ndarray:
        """Geometric classification ids of the covered vertices."""
        return self._filtered(self.mesh.get_tag(CLASS_ID_TAG))

    def class_dims(self) -> np.ndarray:
        """Geometric classification dimensions of the covered vertices."""
        return self._filtered(self.mesh.get_tag(CLASS_DIM_TAG))

    def gids(self) -> np.ndarray:
        """Global ids of the covered vertices."""
        if not self.global_id_name:
            gid_array = np.asarray(self.mesh.global_ids, dtype=GO)
        else:
            tag = np.asarray(self.mesh.get_tag(self.global_id_name))
            if not np.issubdtype(tag.dtype, np.integer):
                raise TypeError(
                    f"global id tag {self.global_id_name!r} has non-integer type {tag.dtype}"
                )
            gid_array = tag.astype(GO)
        return self._filtered(gid_array)


def get_nodal_data(field: MeshField) -> np.ndarray:
    """Values of the field at its covered vertices, in iteration order."""
    full = np.asarray(field.mesh.get_tag(field.name)).astype(field.dtype, copy=False)
    if field.has_mask():
        return filter_array(full, field.mask, field.size())
    return full


def get_nodal_coordinates(field: MeshField) -> np.ndarray:
    """Interleaved ``x, y`` coordinates of the covered vertices."""
    coords = np.asarray(field.mesh.coords, dtype=Real).reshape(-1)
    if field.has_mask():
        return filter_array(coords, field.mask, field.size(), 2)
    return coords


def set_nodal_data(field: MeshField, data: Sequence[Any] | np.ndarray) -> None:
    """Store ``data`` (one value per covered vertex) in the mesh tag.

    Vertices outside the mask keep their previous value, or zero when the
    tag did not exist yet.
    """
    mesh = field.mesh
    values = np.asarray(data).astype(field.dtype)
    if field.has_mask():
        index_map = field.mask.astype(np.intp)
        if values.shape != (field.size(),):
            raise ValueError("data must have one value per active vertex")
        if mesh.has_tag(field.name):
            result = np.array(mesh.get_tag(field.name)).astype(field.dtype)
            if result.shape != index_map.shape:
                raise ValueError("existing tag size does not match the mask size")
        else:
            result = np.zeros(index_map.size, dtype=field.dtype)
        active = index_map > 0
        result[active] = values[index_map[active] - 1]
    else:
        if values.shape != (mesh.nverts(),):
            raise ValueError("data must have one value per mesh vertex")
        result = values
    mesh.set_tag(field.name, result)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def evaluate(
    field: MeshField,
    method: Lagrange | NearestNeighbor,
    coordinates: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Evaluate the field at interleaved ``x, y`` coordinates.

    Every point must lie inside the mesh.
    """
    if isinstance(method, Lagrange):
        if method.order != 1:
            raise ValueError(f"Lagrange evaluation of order {method.order} is not supported")
    elif not isinstance(method, NearestNeighbor):
        raise TypeError(f"unsupported evaluation method {method!r}")
    flat = np.asarray(coordinates, dtype=Real).reshape(-1)
    npoints = flat.size // 2
    values = np.zeros(npoints, dtype=field.dtype)
    if npoints == 0:
        return values
    points = flat[: 2 * npoints].reshape(npoints, 2)
    field_values = np.asarray(field.mesh.get_tag(field.name), dtype=Real)
    results = field.search(points)
    integral = np.issubdtype(field.dtype, np.integer)
    for i, result in enumerate(results):
        if result.tri_id < 0:
            x, y = points[i]
            raise ValueError(f"point ({x}, {y}) lies outside the mesh")
        verts = field.mesh.elem_verts[result.tri_id]
        coords = np.asarray(result.parametric_coords, dtype=Real)
        if isinstance(method, Lagrange):
            val = float(np.dot(field_values[verts], coords))
            if integral:
                val = float(_round_half_away(np.array(val)))
            values[i] = val
        else:
            values[i] = field_values[verts[int(np.argmax(coords))]]
    return values


class MeshFieldAdapter:
    """Serializes a :class:`MeshField` for exchange between coupled codes."""

    def __init__(
        self,
        name: str,
        mesh: TriangleMesh,
        mask: Sequence[int] | np.ndarray | None = None,
        global_id_name: str = "",
        search_nx: int = 10,
        search_ny: int = 10,
        dtype: Any = Real,
    ) -> None:
        self.field = MeshField(name, mesh, mask, global_id_name, search_nx, search_ny, dtype)

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def dtype(self) -> np.dtype:
        return self.field.dtype

    def serialize(self, permutation: Sequence[int] | np.ndarray | None = None) -> np.ndarray:
        """Message buffer whose i-th entry is the value at ``permutation[i]``."""
        data = get_nodal_data(self.field)
        if permutation is None:
            return np.array(data)
        perm = np.asarray(permutation, dtype=np.intp)
        if perm.shape != data.shape:
            raise ValueError("permutation must have one entry per field value")
        return data[perm]

    def deserialize(
        self,
        buffer: Sequence[Any] | np.ndarray,
        permutation: Sequence[int] | np.ndarray | None = None,
    ) -> None:
        """Store a received buffer; entry i goes to vertex ``permutation[i]``."""
        values = np.asarray(buffer)
        if permutation is None:
            perm = np.arange(values.size, dtype=np.intp)
        else:
            perm = np.asarray(permutation, dtype=np.intp)
        if values.shape != perm.shape:
            raise ValueError("buffer and permutation sizes differ")
        ordered = np.empty(values.size, dtype=self.field.dtype)
        ordered[perm] = values
        set_nodal_data(self.field, ordered)

    def gids(self) -> list[int]:
        """Global ids of the covered vertices."""
        return [int(g) for g in self.field.gids()]

    def reverse_partition_map(self, partition: ClassPartition) -> dict[int, list[int]]:
        """Destination rank -> local indices, ranks in ascending order."""
        ids = self.field.class_ids()
        dims = self.field.class_dims()
        if len(ids) != len(dims):
            raise ValueError("class ids and class dimensions differ in length")
        reverse: dict[int, list[int]] = {}
        for local_index, (dim, ident) in enumerate(zip(dims, ids)):
            rank = partition.get_rank(int(dim), int(ident))
            reverse.setdefault(rank, []).append(local_index)
        return dict(sorted(reverse.items()))