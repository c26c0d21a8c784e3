import numpy as np
import pytest

from pcms.geometry import AABBox, UniformGrid
from pcms.point_search import (
    GridPointSearch,
    SearchResult,
    TriangleMesh,
    barycentric_from_global,
    construct_intersection_map,
    triangle_intersects_bbox,
)

SQUARE_COORDS = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
SQUARE_ELEMS = [(0, 1, 2), (0, 2, 3)]


def square_mesh():
    return TriangleMesh(SQUARE_COORDS, SQUARE_ELEMS)


def test_mesh_counts_and_bbox():
    mesh = square_mesh()
    assert mesh.nverts() == 4
    assert mesh.nelems() == 2
    assert mesh.bounding_box() == ((0.0, 0.0), (1.0, 1.0))


def test_element_coords_rows_are_vertices():
    mesh = square_mesh()
    np.testing.assert_array_equal(mesh.element_coords(1), np.array([SQUARE_COORDS[i] for i in (0, 2, 3)]))


def test_mesh_rejects_bad_vertex_index():
    with pytest.raises(ValueError):
        TriangleMesh(SQUARE_COORDS, [(0, 1, 7)])


def test_mesh_rejects_bad_coord_shape():
    with pytest.raises(ValueError):
        TriangleMesh([(0.0, 0.0, 0.0)], [])


def test_tags_round_trip_and_errors():
    mesh = square_mesh()
    assert not mesh.has_tag("temp")
    mesh.set_tag("temp", [1.0, 2.0, 3.0, 4.0])
    assert mesh.has_tag("temp")
    np.testing.assert_array_equal(mesh.get_tag("temp"), [1.0, 2.0, 3.0, 4.0])
    with pytest.raises(ValueError):
        mesh.set_tag("temp", [1.0])
    with pytest.raises(KeyError):
        mesh.get_tag("missing")


def test_default_global_ids_follow_vertex_order():
    mesh = square_mesh()
    np.testing.assert_array_equal(mesh.global_ids, np.arange(4))


@pytest.mark.parametrize("vertex", [0, 1, 2])
def test_barycentric_of_vertex_is_unit_vector(vertex):
    tri = [(0.0, 0.0), (2.0, 0.0), (0.0, 3.0)]
    xi = barycentric_from_global(tri[vertex], tri)
    expected = np.zeros(3)
    expected[vertex] = 1.0
    np.testing.assert_allclose(xi, expected, atol=1e-12)


def test_barycentric_reconstructs_point():
    tri = np.array([(0.5, -1.0), (3.0, 0.25), (-0.5, 2.0)])
    point = (0.7, 0.4)
    xi = barycentric_from_global(point, tri)
    assert sum(xi) == pytest.approx(1.0)
    np.testing.assert_allclose(np.asarray(xi) @ tri, point)


def test_triangle_far_from_box():
    tri = [(5.0, 5.0), (6.0, 5.0), (5.0, 6.0)]
    box = AABBox(center=(0.5, 0.5), half_width=(0.5, 0.5))
    assert triangle_intersects_bbox(tri, box) is False


def test_triangle_vertex_inside_box():
    tri = [(0.5, 0.5), (3.0, 0.5), (0.5, 3.0)]
    box = AABBox(center=(0.5, 0.5), half_width=(0.5, 0.5))
    assert triangle_intersects_bbox(tri, box) is True


def test_box_inside_triangle():
    tri = [(-10.0, -10.0), (10.0, -10.0), (0.0, 10.0)]
    box = AABBox(center=(0.0, 0.0), half_width=(0.1, 0.1))
    assert triangle_intersects_bbox(tri, box) is True


def test_triangle_edge_crosses_box():
    tri = [(-1.0, 0.5), (2.0, 0.4), (2.0, 0.6)]
    box = AABBox(center=(0.5, 0.5), half_width=(0.5, 0.5))
    assert triangle_intersects_bbox(tri, box) is True


def test_triangle_bbox_overlaps_but_triangle_misses():
    tri = [(0.0, 2.0), (2.0, 0.0), (2.0, 2.0)]
    box = AABBox(center=(0.25, 0.25), half_width=(0.25, 0.25))
    assert triangle_intersects_bbox(tri, box) is False


def test_intersection_map_single_cell_has_every_element():
    mesh = square_mesh()
    grid = UniformGrid(edge_length=(1.0, 1.0), bot_left=(0.0, 0.0), divisions=(1, 1))
    offsets, entries = construct_intersection_map(mesh, grid)
    assert offsets.tolist() == [0, 2]
    assert sorted(entries.tolist()) == [0, 1]


def test_intersection_map_covers_all_elements():
    mesh = square_mesh()
    grid = UniformGrid(edge_length=(1.0, 1.0), bot_left=(0.0, 0.0), divisions=(4, 3))
    offsets, entries = construct_intersection_map(mesh, grid)
    assert len(offsets) == grid.num_cells() + 1
    assert offsets[0] == 0 and offsets[-1] == len(entries)
    assert np.all(np.diff(offsets) >= 1)
    assert set(entries.tolist()) == {0, 1}


def test_search_finds_containing_triangle():
    mesh = square_mesh()
    search = GridPointSearch(mesh, 3, 3)
    points = [(0.75, 0.25), (0.25, 0.75)]
    results = search.search(points)
    assert [r.tri_id for r in results] == [0, 1]
    for point, result in zip(points, results):
        coords = mesh.element_coords(result.tri_id)
        np.testing.assert_allclose(np.asarray(result.parametric_coords) @ coords, point)
        assert min(result.parametric_coords) >= 0.0


def test_search_outside_mesh():
    search = GridPointSearch(square_mesh(), 2, 2)
    results = search.search([(5.0, 5.0), (-1.0, 0.5)])
    assert results == [SearchResult(-1, (0.0, 0.0, 0.0))] * 2


def test_search_rejects_bad_points_shape():
    search = GridPointSearch(square_mesh())
    with pytest.raises(ValueError):
        search.search([(0.1, 0.2, 0.3)])


def test_search_grid_matches_mesh_bbox():
    mesh = TriangleMesh([(1.0, 2.0), (4.0, 2.0), (1.0, 6.0)], [(0, 1, 2)])
    search = GridPointSearch(mesh, 5, 7)
    assert search.grid.bot_left == (1.0, 2.0)
    assert search.grid.edge_length == (3.0, 4.0)
    assert search.grid.divisions == (5, 7)