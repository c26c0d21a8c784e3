import numpy as np
import pytest

from pcms.types import (
    FieldEvaluationMethod,
    FieldTransferMethod,
    Lagrange,
    NearestNeighbor,
    TransferOptions,
    Type,
    find_many_or_error,
    find_or_error,
    type_enum_from_type,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (np.float64(1.5), Type.REAL),
        (2.0, Type.REAL),
        (np.int32(3), Type.LO),
        (np.int64(4), Type.GO),
        (7, Type.GO),
        (np.float64, Type.REAL),
        (np.int32, Type.LO),
        (np.dtype("int64"), Type.GO),
    ],
)
def test_type_enum_from_type(value, expected):
    assert type_enum_from_type(value) is expected


@pytest.mark.parametrize("value", [np.float32(1.0), True, "not a number", np.int8(1)])
def test_type_enum_from_type_rejects_other_types(value):
    with pytest.raises(TypeError):
        type_enum_from_type(value)


def test_find_or_error_returns_value():
    mapping = {"density": 1, "temperature": 2}
    assert find_or_error("temperature", mapping) == 2


def test_find_or_error_missing_key_names_it():
    with pytest.raises(KeyError, match="pressure"):
        find_or_error("pressure", {"density": 1})


def test_find_many_or_error_preserves_key_order():
    mapping = {"a": "x", "b": "y", "c": "z"}
    assert find_many_or_error(["c", "a", "b"], mapping) == ["z", "x", "y"]


def test_find_many_or_error_missing_key():
    with pytest.raises(KeyError):
        find_many_or_error(["a", "missing"], {"a": 1})


def test_lagrange_default_order_is_linear():
    assert Lagrange().order == 1
    assert Lagrange(3).order == 3


def test_evaluation_method_tags_compare_by_value():
    assert NearestNeighbor() == NearestNeighbor()
    assert Lagrange(2) != Lagrange(1)


def test_transfer_options_holds_methods():
    options = TransferOptions(FieldTransferMethod.INTERPOLATE, FieldEvaluationMethod.LAGRANGE1)
    assert options.transfer_method is FieldTransferMethod.INTERPOLATE
    assert options.evaluation_method is FieldEvaluationMethod.LAGRANGE1