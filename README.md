# pcms

Building blocks for coupling field data between simulation codes that share
a region of a two-dimensional triangle mesh.

## Installation

```
pip install .
```

To run the tests, install the `test` extra and run pytest:

```
pip install ".[test]"
pytest
```

## What is in the package

- `pcms.types`: the scalar type tags (`Type`, `type_enum_from_type`), the
  transfer and evaluation choices (`FieldTransferMethod`,
  `FieldEvaluationMethod`, `Lagrange`, `NearestNeighbor`,
  `TransferOptions`) and the lookups `find_or_error` and
  `find_many_or_error`, which raise `KeyError` for a missing name.
- `pcms.geometry`: `Coordinate` values in a `CoordinateSystem`,
  `coordinate_transform` between Cartesian and cylindrical coordinates,
  axis-aligned boxes (`AABBox`, `intersects`) and the `UniformGrid` used to
  bucket mesh elements (`num_cells`, `closest_cell_id`, `cell_bbox`,
  `two_d_cell_index`, `cell_index`).
- `pcms.array_mask`: `ArrayMask` selects the entries of an array whose mask
  value is positive. `apply` returns the active entries as a new numpy
  array; `to_full_array` writes filtered values back into a numpy array in
  place. Both accept an optional permutation. `inclusive_scan` returns the
  running sums of a sequence.
- `pcms.point_search`: a `TriangleMesh` with per-vertex tags,
  `barycentric_from_global`, `triangle_intersects_bbox`,
  `construct_intersection_map` (a CSR map from grid cells to triangles) and
  `GridPointSearch`, whose `search` returns, for each query point, a
  `SearchResult` with the containing triangle (or `-1`) and the point's
  barycentric coordinates in it.
- `pcms.layout`: the message layout for sending field data to the ranks of a
  coupling server: `OutMessage`, `construct_out_message`,
  `construct_out_message_from_layout`, `count_entries`,
  `construct_permutation`, `construct_gid_permutation`, `has_duplicates`,
  and `ClassPartition`, which maps a geometric model entity to a rank.
- `pcms.reverse_classification`: `ReverseClassificationVertex` maps each
  geometric entity (`DimID`) to the mesh vertices classified on it. It is
  read from the text format with `read_reverse_classification` or
  `read_reverse_classification_file`, written back with `write` (vertex ids
  one-based), and packed into a flat integer list with `serialize` /
  `deserialize`.
- `pcms.mesh_field`: `MeshField` and `MeshFieldAdapter`, nodal fields stored
  as tags on a `TriangleMesh` with an optional mask, plus `filter_array`,
  `get_nodal_data`, `get_nodal_coordinates`, `set_nodal_data` and
  `evaluate` (linear Lagrange or nearest-vertex evaluation at points inside
  the mesh).
- `pcms.xgc_field_adapter`: `XGCFieldAdapter`, an adapter over a flat numpy
  data array restricted to the vertices of an overlap region, and the no-op
  `DummyFieldAdapter`.
- `pcms.transfer`: `copy_field`, `interpolate_field` and `transfer_field`
  for moving values from one mesh field to another.

## Example

Read a reverse classification and count its vertices:

```python
import io
from pcms.reverse_classification import read_reverse_classification

text = "4\n0 1\n1 2\n1 7\n3 4\n"
rc = read_reverse_classification(io.StringIO(text))
print(rc.count_verts())  # 4
```

Filter an array down to its active entries and put it back:

```python
import numpy as np
from pcms.array_mask import ArrayMask

mask = ArrayMask([1, 0, 1, 1])
filtered = mask.apply([10, 20, 30, 40])   # array([10, 30, 40])
full = np.zeros(4, dtype=int)
mask.to_full_array(filtered, full)        # full == array([10, 0, 30, 40])
```

## What the package does not do

The package prepares and consumes the data of a coupling exchange (layouts,
permutations, serialized buffers) but does not move it: there is no network
transport, no parallel communication between processes, and no coupling
client or server that runs the send and receive phases. The plane rank of an
`XGCFieldAdapter` is a plain constructor argument, and received data is not
broadcast to other ranks. It has no command-line program.