"""Coordinates, coordinate transforms, bounding boxes and uniform grids."""

from __future__ import annotations

import enum
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import ClassVar


class CoordinateSystem(enum.Enum):
    """Supported coordinate systems."""

    CARTESIAN = "cartesian"
    CYLINDRICAL = "cylindrical"


@dataclass(frozen=True)
class Coordinate:
    """A three component point tagged with its coordinate system."""

    system: CoordinateSystem
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in self.values)
        if len(values) != 3:
            raise ValueError(f"a coordinate has 3 components, got {len(values)}")
        object.__setattr__(self, "values", values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __iter__(self):
        return iter(self.values)


def coordinate_transform(coordinate: Coordinate, target: CoordinateSystem) -> Coordinate:
    """Convert ``coordinate`` into the ``target`` coordinate system."""
    source = coordinate.system
    if source is CoordinateSystem.CYLINDRICAL and target is CoordinateSystem.CARTESIAN:
        r, theta, z = coordinate.values
        return Coordinate(target, (r * math.cos(theta), r * math.sin(theta), z))
    if source is CoordinateSystem.CARTESIAN and target is CoordinateSystem.CYLINDRICAL:
        x, y, z = coordinate.values
        return Coordinate(target, (math.sqrt(x * x + y * y), math.atan2(y, x), z))
    raise ValueError(f"no coordinate transform from {source.value} to {target.value}")


@dataclass(frozen=True)
class AABBox:
    """Axis aligned bounding box given by its center and half widths."""

    center: tuple[float, ...]
    half_width: tuple[float, ...]

    def __post_init__(self) -> None:
        center = tuple(float(c) for c in self.center)
        half_width = tuple(float(h) for h in self.half_width)
        if len(center) != len(half_width):
            raise ValueError("center and half_width must have the same dimension")
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "half_width", half_width)

    @property
    def dim(self) -> int:
        return len(self.center)


def intersects(a: AABBox, b: AABBox) -> bool:
    """True when the two boxes overlap or touch."""
    if a.dim != b.dim:
        raise ValueError("bounding boxes have different dimensions")
    return all(
        abs(ca - cb) <= ha + hb
        for ca, cb, ha, hb in zip(a.center, b.center, a.half_width, b.half_width)
    )


def _axis_index(distance: float, length: float, divisions: int) -> int:
    if distance <= 0:
        return 0
    if distance >= length:
        return divisions - 1
    return math.floor(distance * divisions / length)


@dataclass(frozen=True)
class UniformGrid:
    """Two dimensional grid of equally sized cells numbered row by row."""

    dim: ClassVar[int] = 2
    edge_length: tuple[float, float]
    bot_left: tuple[float, float]
    divisions: tuple[int, int] = field(default=(1, 1))

    def __post_init__(self) -> None:
        object.__setattr__(self, "edge_length", tuple(float(v) for v in self.edge_length))
        object.__setattr__(self, "bot_left", tuple(float(v) for v in self.bot_left))
        object.__setattr__(self, "divisions", tuple(int(v) for v in self.divisions))
        for name in ("edge_length", "bot_left", "divisions"):
            if len(getattr(self, name)) != self.dim:
                raise ValueError(f"{name} must have {self.dim} components")

    def num_cells(self) -> int:
        """Total number of grid cells."""
        return math.prod(self.divisions)

    def closest_cell_id(self, point: Sequence[float]) -> int:
        """Id of the cell containing ``point``, or the nearest cell if outside."""
        if len(point) != self.dim:
            raise ValueError(f"point must have {self.dim} components")
        col, row = (
            _axis_index(p - b, length, div)
            for p, b, length, div in zip(point, self.bot_left, self.edge_length, self.divisions)
        )
        return self.cell_index(row, col)

    def cell_bbox(self, idx: int) -> AABBox:
        """Bounding box of cell ``idx``."""
        i, j = self.two_d_cell_index(idx)
        half_width = (
            self.edge_length[0] / (2.0 * self.divisions[0]),
            self.edge_length[1] / (2.0 * self.divisions[1]),
        )
        center = (
            (2.0 * j + 1.0) * half_width[0] + self.bot_left[0],
            (2.0 * i + 1.0) * half_width[1] + self.bot_left[1],
        )
        return AABBox(center=center, half_width=half_width)

    def two_d_cell_index(self, idx: int) -> tuple[int, int]:
        """Row and column of cell ``idx``."""
        return idx // self.divisions[0], idx % self.divisions[0]

    def cell_index(self, i: int, j: int) -> int:
        """Cell id of row ``i`` and column ``j``."""
        if not (0 <= i < self.divisions[1] and 0 <= j < self.divisions[0]):
            raise ValueError(f"cell ({i}, {j}) lies outside the grid")
        return i * self.divisions[0] + j