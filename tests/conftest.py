import numpy as np
import pytest
from onnx import TensorProto, helper, numpy_helper

from onnx_lowering.core.node import ExternalNode


def make_argmax_model(input_shape, axis=0, keepdims=0, with_initializer=False):
    """Single ArgMax model reading graph input ``x`` and producing ``y``."""
    x = helper.make_tensor_value_info("x", TensorProto.FLOAT, input_shape)
    y = helper.make_tensor_value_info("y", TensorProto.INT64, None)
    node = helper.make_node("ArgMax", ["x"], ["y"], name="argmax", axis=axis, keepdims=keepdims)
    initializers = []
    if with_initializer:
        initializers.append(numpy_helper.from_array(np.arange(6, dtype=np.float32).reshape(2, 3), name="w"))
    graph = helper.make_graph([node], "argmax_graph", [x], [y], initializer=initializers)
    return helper.make_model(graph)


@pytest.fixture
def argmax_node():
    return ExternalNode("ArgMax", ["x"], ["y"], {"axis": 0, "keepdims": 0}, name="argmax")


@pytest.fixture
def argmax_model():
    return make_argmax_model([2, 3])
