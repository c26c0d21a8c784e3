"""Scalar types, field transfer options and mapping lookup helpers."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import numpy as np

Real = np.float64
LO = np.int32
GO = np.int64

K = TypeVar("K")
V = TypeVar("V")


class Type(enum.Enum):
    """Scalar kinds exchanged between coupled codes."""

    REAL = "real"
    LO = "lo"
    GO = "go"


_DTYPE_TO_TYPE = {
    np.dtype(Real): Type.REAL,
    np.dtype(LO): Type.LO,
    np.dtype(GO): Type.GO,
}


def type_enum_from_type(value: Any) -> Type:
    """Return the :class:`Type` matching a value, a scalar type or a dtype.

    Python ``int`` is treated as a global ordinal (64 bit); ``float`` as real.
    Anything that is not a 64-bit float, 32-bit or 64-bit integer raises
    :class:`TypeError`.
    """
    if isinstance(value, (bool, np.bool_)) or value is bool:
        raise TypeError("boolean values have no scalar type")
    if value is int or isinstance(value, int):
        return Type.GO
    try:
        if isinstance(value, (type, np.dtype, str)):
            dtype = np.dtype(value)
        else:
            dtype = np.asarray(value).dtype
    except TypeError as exc:
        raise TypeError(f"cannot determine scalar type of {value!r}") from exc
    try:
        return _DTYPE_TO_TYPE[dtype]
    except KeyError:
        raise TypeError(f"unsupported scalar type {dtype}") from None


class FieldTransferMethod(enum.Enum):
    """How data moves from one field to another."""

    NONE = enum.auto()
    INTERPOLATE = enum.auto()
    COPY = enum.auto()


class FieldEvaluationMethod(enum.Enum):
    """How a field is evaluated at arbitrary points."""

    NONE = enum.auto()
    LAGRANGE1 = enum.auto()
    NEAREST_NEIGHBOR = enum.auto()


@dataclass(frozen=True)
class Lagrange:
    """Lagrange interpolation of the given order."""

    order: int = 1


@dataclass(frozen=True)
class NearestNeighbor:
    """Nearest-vertex evaluation."""


@dataclass(frozen=True)
class TransferOptions:
    """Transfer and evaluation methods used when syncing a field."""

    transfer_method: FieldTransferMethod
    evaluation_method: FieldEvaluationMethod


def find_or_error(name: K, mapping: Mapping[K, V]) -> V:
    """Return ``mapping[name]``, raising :class:`KeyError` naming the key."""
    try:
        return mapping[name]
    except KeyError:
        raise KeyError(f"no entry named {name!r}") from None


def find_many_or_error(keys: Iterable[K], mapping: Mapping[K, V]) -> list[V]:
    """Look up every key in order; any missing key raises :class:`KeyError`."""
    return [find_or_error(key, mapping) for key in keys]