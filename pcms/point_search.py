"""Triangle meshes and grid-accelerated point location within them."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from pcms.geometry import AABBox, UniformGrid, intersects
from pcms.types import GO, LO, Real

FUZZ = 1e-6


class TriangleMesh:
    """A two dimensional triangle mesh with per-vertex tags.

    ``coords`` holds one ``(x, y)`` row per vertex and ``elem_verts`` one row
    of three vertex indices per triangle.
    """

    def __init__(
        self,
        coords: Sequence[Sequence[float]] | np.ndarray,
        elem_verts: Sequence[Sequence[int]] | np.ndarray,
        tags: Mapping[str, Any] | None = None,
        global_ids: Sequence[int] | np.ndarray | None = None,
    ) -> None:
        self.coords = np.array(coords, dtype=Real).reshape(-1, 2) if len(coords) == 0 else np.array(coords, dtype=Real)
        if self.coords.ndim != 2 or self.coords.shape[1] != 2:
            raise ValueError("coords must have shape (nverts, 2)")
        verts = np.array(elem_verts, dtype=LO)
        if verts.size == 0:
            verts = verts.reshape(0, 3)
        if verts.ndim != 2 or verts.shape[1] != 3:
            raise ValueError("elem_verts must have shape (nelems, 3)")
        if verts.size and (verts.min() < 0 or verts.max() >= len(self.coords)):
            raise ValueError("element refers to a vertex that does not exist")
        self.elem_verts = verts
        if global_ids is None:
            self.global_ids = np.arange(self.nverts(), dtype=GO)
        else:
            ids = np.array(global_ids, dtype=GO)
            if ids.shape != (self.nverts(),):
                raise ValueError("global_ids must have one entry per vertex")
            self.global_ids = ids
        self._tags: dict[str, np.ndarray] = {}
        for name, values in (tags or {}).items():
            self.set_tag(name, values)

    def nverts(self) -> int:
        """Number of vertices."""
        return len(self.coords)

    def nelems(self) -> int:
        """Number of triangles."""
        return len(self.elem_verts)

    def bounding_box(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Lower-left and upper-right corners of the mesh."""
        if self.nverts() == 0:
            raise ValueError("an empty mesh has no bounding box")
        lower = self.coords.min(axis=0)
        upper = self.coords.max(axis=0)
        return (float(lower[0]), float(lower[1])), (float(upper[0]), float(upper[1]))

    def element_coords(self, elem: int) -> np.ndarray:
        """Vertex coordinates of triangle ``elem`` as a ``(3, 2)`` array."""
        return self.coords[self.elem_verts[elem]]

    def has_tag(self, name: str) -> bool:
        """True when a vertex tag called ``name`` exists."""
        return name in self._tags

    def get_tag(self, name: str) -> np.ndarray:
        """The values of vertex tag ``name``."""
        try:
            return self._tags[name]
        except KeyError:
            raise KeyError(f"mesh has no tag named {name!r}") from None

    def set_tag(self, name: str, values: Sequence[Any] | np.ndarray) -> None:
        """Create or replace vertex tag ``name``; one value per vertex."""
        array = np.array(values)
        if array.shape[:1] != (self.nverts(),):
            raise ValueError(f"tag {name!r} must have one value per vertex")
        self._tags[name] = array


def barycentric_from_global(
    point: Sequence[float] | np.ndarray, vertex_coords: Sequence[Sequence[float]] | np.ndarray
) -> tuple[float, float, float]:
    """Barycentric coordinates of ``point`` within a triangle."""
    verts = np.asarray(vertex_coords, dtype=Real)
    basis = np.column_stack((verts[1] - verts[0], verts[2] - verts[0]))
    xi = np.linalg.pinv(basis) @ (np.asarray(point, dtype=Real) - verts[0])
    return float(1.0 - xi[0] - xi[1]), float(xi[0]), float(xi[1])


def _is_barycentric_inside(xi: Sequence[float], fuzz: float = FUZZ) -> bool:
    return min(xi) + fuzz >= 0.0 and max(xi) - fuzz <= 1.0


def _triangle_bbox(coords: np.ndarray) -> AABBox:
    lower = coords.min(axis=0)
    upper = coords.max(axis=0)
    return AABBox(center=tuple((upper + lower) / 2.0), half_width=tuple((upper - lower) / 2.0))


def _bbox_limits(bbox: AABBox) -> tuple[float, float, float, float]:
    (cx, cy), (hx, hy) = bbox.center, bbox.half_width
    return cx - hx, cx + hx, cy - hy, cy + hy


def _clipt(p: float, q: float, t0: float, t1: float) -> tuple[float, float] | None:
    """One Liang-Barsky clipping step; None when the segment is rejected."""
    if p < 0:
        r = q / p
        if r > t1:
            return None
        return max(t0, r), t1
    if p > 0:
        r = q / p
        if r < t0:
            return None
        return t0, min(t1, r)
    if q < 0:
        return None
    return t0, t1


def _line_intersects_bbox(p0: np.ndarray, p1: np.ndarray, bbox: AABBox) -> bool:
    left, right, bottom, top = _bbox_limits(bbox)
    dx = p1[0] - p0[0]
    dy = p1[1] - p0[1]
    params: tuple[float, float] | None = (0.0, 1.0)
    for p, q in ((-dx, p0[0] - left), (dx, right - p0[0]), (-dy, p0[1] - bottom), (dy, top - p0[1])):
        params = _clipt(p, q, *params)
        if params is None:
            return False
    return True


def _within_bbox(coord: np.ndarray, bbox: AABBox) -> bool:
    left, right, bottom, top = _bbox_limits(bbox)
    return left <= coord[0] <= right and bottom <= coord[1] <= top


def _bbox_verts_within_triangle(bbox: AABBox, coords: np.ndarray) -> bool:
    left, right, bottom, top = _bbox_limits(bbox)
    corners = ((left, bottom), (left, top), (right, top), (right, bottom))
    return any(_is_barycentric_inside(barycentric_from_global(c, coords)) for c in corners)


def triangle_intersects_bbox(coords: Sequence[Sequence[float]] | np.ndarray, bbox: AABBox) -> bool:
    """True when the triangle with vertex rows ``coords`` overlaps ``bbox``."""
    verts = np.asarray(coords, dtype=Real)
    if not intersects(_triangle_bbox(verts), bbox):
        return False
    if any(_within_bbox(v, bbox) for v in verts):
        return True
    if _bbox_verts_within_triangle(bbox, verts):
        return True
    return any(
        _line_intersects_bbox(verts[a], verts[b], bbox) for a, b in ((0, 1), (1, 2), (2, 0))
    )


def construct_intersection_map(mesh: TriangleMesh, grid: UniformGrid) -> tuple[np.ndarray, np.ndarray]:
    """CSR map from grid cells to the triangles that intersect them.

    Returns ``(offsets, entries)``: the triangles of cell ``c`` are
    ``entries[offsets[c]:offsets[c + 1]]`` in ascending order.
    """
    tri_coords = mesh.coords[mesh.elem_verts] if mesh.nelems() else np.zeros((0, 3, 2))
    lower = tri_coords.min(axis=1) if mesh.nelems() else np.zeros((0, 2))
    upper = tri_coords.max(axis=1) if mesh.nelems() else np.zeros((0, 2))
    centers = (upper + lower) / 2.0
    halves = (upper - lower) / 2.0
    counts: list[int] = []
    entries: list[int] = []
    for cell in range(grid.num_cells()):
        cell_box = grid.cell_bbox(cell)
        near = np.all(
            np.abs(centers - np.asarray(cell_box.center)) <= halves + np.asarray(cell_box.half_width),
            axis=1,
        )
        hits = [
            int(elem)
            for elem in np.flatnonzero(near)
            if triangle_intersects_bbox(tri_coords[elem], cell_box)
        ]
        counts.append(len(hits))
        entries.extend(hits)
    offsets = np.zeros(len(counts) + 1, dtype=LO)
    np.cumsum(counts, out=offsets[1:])
    return offsets, np.array(entries, dtype=LO)


@dataclass(frozen=True)
class SearchResult:
    """Triangle containing a point (-1 if none) and its barycentric coordinates."""

    tri_id: int
    parametric_coords: tuple[float, float, float]


class GridPointSearch:
    """Locates points in a triangle mesh using a uniform background grid."""

    dim = 2

    def __init__(self, mesh: TriangleMesh, nx: int = 10, ny: int = 10) -> None:
        (xmin, ymin), (xmax, ymax) = mesh.bounding_box()
        self.mesh = mesh
        self.grid = UniformGrid(
            edge_length=(xmax - xmin, ymax - ymin),
            bot_left=(xmin, ymin),
            divisions=(nx, ny),
        )
        self._offsets, self._entries = construct_intersection_map(mesh, self.grid)

    def search(self, points: Sequence[Sequence[float]] | np.ndarray) -> list[SearchResult]:
        """Find the containing triangle of every ``(x, y)`` point."""
        pts = np.asarray(points, dtype=Real)
        if pts.size == 0:
            return []
        if pts.ndim != 2 or pts.shape[1] != self.dim:
            raise ValueError("points must have shape (npoints, 2)")
        results = []
        for x, y in pts:
            point = (float(x), float(y))
            cell = self.grid.closest_cell_id(point)
            found = SearchResult(-1, (0.0, 0.0, 0.0))
            for elem in self._entries[self._offsets[cell]:self._offsets[cell + 1]]:
                xi = barycentric_from_global(point, self.mesh.element_coords(elem))
                if _is_barycentric_inside(xi):
                    found = SearchResult(int(elem), xi)
                    break
            results.append(found)
        return results