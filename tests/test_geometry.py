import math

import pytest

from pcms.geometry import (
    AABBox,
    Coordinate,
    CoordinateSystem,
    UniformGrid,
    coordinate_transform,
    intersects,
)


def test_cartesian_cylindrical_round_trip():
    original = Coordinate(CoordinateSystem.CARTESIAN, (1.5, -2.25, 0.75))
    cyl = coordinate_transform(original, CoordinateSystem.CYLINDRICAL)
    back = coordinate_transform(cyl, CoordinateSystem.CARTESIAN)
    assert cyl.system is CoordinateSystem.CYLINDRICAL
    assert back.system is CoordinateSystem.CARTESIAN
    assert back.values == pytest.approx(original.values)


def test_cartesian_to_cylindrical_radius():
    cyl = coordinate_transform(Coordinate(CoordinateSystem.CARTESIAN, (3, 4, 2)), CoordinateSystem.CYLINDRICAL)
    assert cyl[0] == pytest.approx(5.0)
    assert cyl[2] == 2.0


def test_cylindrical_zero_angle_lies_on_x_axis():
    cart = coordinate_transform(Coordinate(CoordinateSystem.CYLINDRICAL, (2, 0, 7)), CoordinateSystem.CARTESIAN)
    assert cart.values == pytest.approx((2.0, 0.0, 7.0))


def test_transform_to_same_system_raises():
    with pytest.raises(ValueError):
        coordinate_transform(Coordinate(CoordinateSystem.CARTESIAN, (1, 2, 3)), CoordinateSystem.CARTESIAN)


def test_coordinate_requires_three_components():
    with pytest.raises(ValueError):
        Coordinate(CoordinateSystem.CARTESIAN, (1, 2))


def test_boxes_overlapping_and_touching_intersect():
    a = AABBox(center=(0, 0), half_width=(1, 1))
    assert intersects(a, AABBox(center=(1.5, 0.5), half_width=(1, 1)))
    assert intersects(a, AABBox(center=(2, 0), half_width=(1, 1)))


def test_separated_boxes_do_not_intersect():
    a = AABBox(center=(0, 0), half_width=(1, 1))
    assert not intersects(a, AABBox(center=(0, 2.5), half_width=(1, 1)))


def test_intersects_dimension_mismatch():
    with pytest.raises(ValueError):
        intersects(AABBox((0, 0), (1, 1)), AABBox((0, 0, 0), (1, 1, 1)))


@pytest.fixture
def grid():
    return UniformGrid(edge_length=(8.0, 6.0), bot_left=(-1.0, 2.0), divisions=(4, 3))


def test_num_cells(grid):
    assert grid.num_cells() == 12


def test_two_d_index_round_trip(grid):
    for idx in range(grid.num_cells()):
        i, j = grid.two_d_cell_index(idx)
        assert grid.cell_index(i, j) == idx


def test_cell_center_maps_back_to_cell(grid):
    for idx in range(grid.num_cells()):
        assert grid.closest_cell_id(grid.cell_bbox(idx).center) == idx


def test_cell_bboxes_tile_the_grid(grid):
    row = [grid.cell_bbox(grid.cell_index(0, j)) for j in range(grid.divisions[0])]
    assert sum(2 * box.half_width[0] for box in row) == pytest.approx(grid.edge_length[0])
    assert row[0].center[0] - row[0].half_width[0] == pytest.approx(grid.bot_left[0])


def test_points_outside_clamp_to_corner_cells(grid):
    assert grid.closest_cell_id((-100.0, -100.0)) == 0
    assert grid.closest_cell_id((100.0, 100.0)) == grid.num_cells() - 1


def test_cell_index_out_of_range(grid):
    with pytest.raises(ValueError):
        grid.cell_index(grid.divisions[1], 0)
    with pytest.raises(ValueError):
        grid.cell_index(0, -1)


def test_point_must_be_two_dimensional(grid):
    with pytest.raises(ValueError):
        grid.closest_cell_id((0.0, 0.0, 0.0))


def test_bbox_of_cell_contains_its_center_point(grid):
    box = grid.cell_bbox(5)
    assert all(math.isfinite(c) for c in box.center)
    assert intersects(box, AABBox(center=box.center, half_width=(0.0, 0.0)))