"""Copying and interpolating data between fields."""

from __future__ import annotations

from typing import Any

from pcms.mesh_field import evaluate, get_nodal_coordinates, get_nodal_data, set_nodal_data
from pcms.types import FieldEvaluationMethod, FieldTransferMethod, Lagrange, NearestNeighbor


def copy_field(source: Any, target: Any) -> None:
    """Copy values pointwise; both fields share size and iteration order."""
    set_nodal_data(target, get_nodal_data(source))


def interpolate_field(
    source: Any, target: Any, method: Lagrange | NearestNeighbor | None = None
) -> None:
    """Evaluate ``source`` at the vertices of ``target`` and store the result."""
    if method is None:
        method = Lagrange(1)
    coordinates = get_nodal_coordinates(target)
    set_nodal_data(target, evaluate(source, method, coordinates))


def _same_kind(source: Any, target: Any) -> bool:
    if type(source) is not type(target):
        return False
    return getattr(source, "dtype", None) == getattr(target, "dtype", None)


def transfer_field(
    source: Any,
    target: Any,
    transfer_method: FieldTransferMethod,
    evaluation_method: FieldEvaluationMethod,
) -> None:
    """Move data from ``source`` to ``target`` using the given methods."""
    if transfer_method is FieldTransferMethod.NONE:
        return
    if transfer_method is FieldTransferMethod.COPY:
        if not _same_kind(source, target):
            raise TypeError("source and target fields must have the same type to copy")
        copy_field(source, target)
        return
    if transfer_method is FieldTransferMethod.INTERPOLATE:
        if evaluation_method is FieldEvaluationMethod.LAGRANGE1:
            interpolate_field(source, target, Lagrange(1))
        elif evaluation_method is FieldEvaluationMethod.NEAREST_NEIGHBOR:
            interpolate_field(source, target, NearestNeighbor())
        elif evaluation_method is FieldEvaluationMethod.NONE:
            raise ValueError("cannot interpolate a field with no evaluation method")
        else:
            raise ValueError(f"unknown evaluation method {evaluation_method!r}")
        return
    raise ValueError(f"unknown transfer method {transfer_method!r}")