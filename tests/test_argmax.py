import numpy as np
import pytest

from onnx_lowering.core.errors import (
    ArityMismatch,
    AttributeTypeMismatch,
    ExecutionError,
    ShapeError,
    UnsupportedConfiguration,
    UnsupportedOperand,
)
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.tensor import Tensor
from onnx_lowering.core.types import DataType
from onnx_lowering.operators.reduction import ArgMaxOperator


def _init(**attributes):
    op = ArgMaxOperator()
    op.init(ExternalNode("ArgMax", ["x"], ["y"], attributes))
    return op


def test_init_defaults_to_axis_zero():
    op = _init(keepdims=0)
    assert op.axis == 0
    assert op.keepdims is False


def test_init_reads_axis():
    assert _init(axis=2, keepdims=0).axis == 2


@pytest.mark.parametrize("attributes", [{}, {"keepdims": 1}, {"keepdims": -3}, {"axis": 1}])
def test_init_rejects_keepdims(attributes):
    with pytest.raises(UnsupportedConfiguration, match="keepdims must be false"):
        _init(**attributes)


def test_init_rejects_non_int_attributes():
    with pytest.raises(AttributeTypeMismatch):
        _init(axis=1.0, keepdims=0)
    with pytest.raises(AttributeTypeMismatch):
        _init(keepdims="no")


@pytest.mark.parametrize("shape", [[4], [2, 3], [2, 3, 4], [5, 1, 2, 7]])
def test_infer_shape_collapses_axis(shape):
    for axis in range(len(shape)):
        out = ArgMaxOperator(axis=axis, keepdims=False).infer_shape([shape])
        expected = shape[:axis] + shape[axis + 1:]
        assert out == expected
        assert len(out) == len(shape) - 1


def test_infer_shape_scalar_when_last_axis_removed():
    assert ArgMaxOperator(axis=0, keepdims=False).infer_shape([[7]]) == []


@pytest.mark.parametrize("shape", [[4], [2, 3], [2, 3, 4]])
def test_infer_shape_keepdims(shape):
    for axis in range(len(shape)):
        out = ArgMaxOperator(axis=axis, keepdims=True).infer_shape([shape])
        assert len(out) == len(shape)
        assert out[axis] == 1
        assert [d for i, d in enumerate(out) if i != axis] == [d for i, d in enumerate(shape) if i != axis]


def test_infer_shape_does_not_alias_input():
    shape = [2, 3]
    out = ArgMaxOperator(axis=0, keepdims=True).infer_shape([shape])
    out[1] = 99
    assert shape == [2, 3]


def test_infer_shape_axis_out_of_range():
    with pytest.raises(ShapeError):
        ArgMaxOperator(axis=2, keepdims=False).infer_shape([[2, 3]])
    with pytest.raises(ShapeError):
        ArgMaxOperator(axis=0, keepdims=False).infer_shape([[]])


def test_infer_shape_wrong_input_count():
    op = ArgMaxOperator(axis=0, keepdims=False)
    with pytest.raises(ShapeError):
        op.infer_shape([])
    with pytest.raises(ShapeError):
        op.infer_shape([[2], [2]])


def test_configure_normalizes_negative_axis():
    op = ArgMaxOperator(axis=-1, keepdims=False)
    op.configure([[2, 3, 4]])
    assert op.axis == 2
    assert op.input_dims == 3
    assert op.infer_shape([[2, 3, 4]]) == [2, 3]


def test_configure_keeps_too_negative_axis_invalid():
    op = ArgMaxOperator(axis=-4, keepdims=False)
    op.configure([[2, 3, 4]])
    with pytest.raises(ShapeError):
        op.infer_shape([[2, 3, 4]])


def test_execute_matrix_axis_zero():
    data = np.array([[1.0, 5.0, 2.0], [3.0, 4.0, 9.0]], dtype=np.float32)
    out = ArgMaxOperator(axis=0, keepdims=False).execute([data])
    assert out.dtype == np.int64
    assert out.shape == (3,)
    np.testing.assert_array_equal(out, [1, 0, 1])
    assert all(0 <= i < 2 for i in out)


def test_execute_matrix_axis_one():
    data = np.array([[1, 5, 2], [3, 4, 9]], dtype=np.int32)
    out = ArgMaxOperator(axis=1, keepdims=False).execute([data])
    np.testing.assert_array_equal(out, [1, 2])
    assert out.dtype == np.int64


@pytest.mark.parametrize("keepdims", [False, True])
def test_execute_vector_returns_scalar(keepdims):
    data = np.array([0.1, 0.7, 0.3, 0.2])
    out = ArgMaxOperator(axis=0, keepdims=keepdims).execute([data])
    assert isinstance(out, np.int64)
    assert out == 1
    assert 0 <= out < len(data)


def test_execute_keepdims_reshapes_result():
    data = np.arange(24, dtype=np.float64).reshape(2, 3, 4)
    op = ArgMaxOperator(axis=1, keepdims=True)
    out = op.execute([data])
    assert list(out.shape) == op.infer_shape([list(data.shape)]) == [2, 1, 4]
    np.testing.assert_array_equal(out, np.argmax(data, axis=1, keepdims=True))


def test_execute_does_not_mutate_input():
    data = np.array([[3, 1], [2, 4]])
    before = data.copy()
    op = ArgMaxOperator(axis=0, keepdims=False)
    op.execute([data])
    np.testing.assert_array_equal(data, before)
    assert op.overwrites_input() is None


def test_execute_accepts_constant_tensor():
    tensor = Tensor("w", data=np.array([[1, 9], [8, 2]], dtype=np.float32))
    out = ArgMaxOperator(axis=1, keepdims=False).execute([tensor])
    np.testing.assert_array_equal(out, [1, 0])


@pytest.mark.parametrize("value", [
    [[1, 2], [3, 4]],
    np.ma.masked_array([1, 2, 3], mask=[0, 1, 0]),
    "not a tensor",
])
def test_execute_rejects_non_dense_operands(value):
    with pytest.raises(UnsupportedOperand):
        ArgMaxOperator(axis=0, keepdims=False).execute([value])


def test_execute_wraps_primitive_failure():
    with pytest.raises(ExecutionError) as excinfo:
        ArgMaxOperator(axis=3, keepdims=False).execute([np.zeros((2, 2))])
    assert excinfo.value.__cause__ is not None

    with pytest.raises(ExecutionError):
        ArgMaxOperator(axis=0, keepdims=False).execute([np.zeros((0, 3))])


def test_execute_wrong_input_count():
    with pytest.raises(ArityMismatch):
        ArgMaxOperator(axis=0, keepdims=False).execute([])


def test_type_signature_is_int64_for_any_input():
    sig = ArgMaxOperator().type_signature()
    assert sig.resolve([DataType.FLOAT]) == DataType.INT64
    assert sig.resolve([DataType.UINT8]) == DataType.INT64


def test_identity_hash_depends_on_configuration_only():
    a = ArgMaxOperator(axis=1, keepdims=False)
    b = ArgMaxOperator(axis=1, keepdims=False, input_dims=4)
    c = ArgMaxOperator(axis=2, keepdims=False)
    assert a.identity_hash() == b.identity_hash()
    assert a == b
    assert hash(a) == hash(b)
    assert a.identity_hash() != c.identity_hash()
    assert a != c
    assert 0 <= a.identity_hash() < 2 ** 32


def test_identity_hash_after_init_from_attributes():
    assert _init(axis=1, keepdims=0).identity_hash() == _init(axis=1, keepdims=0).identity_hash()
    assert _init(axis=1, keepdims=0).identity_hash() != _init(axis=0, keepdims=0).identity_hash()


def test_display_name():
    op = ArgMaxOperator(axis=2, keepdims=False)
    assert op.display_name() == "ArgMaxAlong2"
    assert str(op) == "ArgMaxAlong2"
    assert repr(op) == "ArgMaxOperator(axis=2, keepdims=False)"


def test_execute_negative_axis_with_keepdims():
    data = np.array([[0.0, 2.0, 1.0], [3.0, 1.0, 0.0]])
    out = ArgMaxOperator(axis=-1, keepdims=True).execute([data])
    assert out.shape == (2, 1)
    np.testing.assert_array_equal(out, np.argmax(data, axis=-1, keepdims=True))


def test_execute_axis_below_rank_fails():
    with pytest.raises(ExecutionError):
        ArgMaxOperator(axis=-3, keepdims=False).execute([np.zeros((2, 3))])


def test_execute_rejects_rank_other_than_configured():
    op = ArgMaxOperator(axis=0, keepdims=False)
    op.configure([[2, 3, 4]])
    assert op.input_dims == 3
    with pytest.raises(ExecutionError, match="rank 3"):
        op.execute([np.zeros((2, 3))])
