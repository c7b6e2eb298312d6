"""
Reduction operators for ONNX Lowering.
"""

import numpy as np
from typing import Any, Dict, Optional, Sequence

from onnx_lowering.core.attributes import get_attribute
from onnx_lowering.core.errors import (
    ArityMismatch,
    ExecutionError,
    ShapeError,
    UnsupportedConfiguration,
)
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.tensor import to_dense
from onnx_lowering.core.types import AttributeKind, DataType, SCALAR_SHAPE, Shape
from onnx_lowering.operators.base import Operator, TypeSignature
from onnx_lowering.operators.registry import OPERATOR_REGISTRY
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

@OPERATOR_REGISTRY.register("ArgMax")
class ArgMaxOperator(Operator):
    """
    Index of the maximum element along one axis.

    The output element type is always INT64, whatever the input type. With
    ``keepdims`` the reduced axis stays in the shape with size 1, otherwise it
    is removed; removing the last remaining axis yields a scalar.
    """

    op_type = "ArgMax"

    def __init__(self, axis: int = 0, keepdims: bool = True, input_dims: Optional[int] = None):
        self.axis = axis
        self.keepdims = keepdims
        # Input rank seen by configure; execute rejects inputs of another rank
        self.input_dims = input_dims

    def init(self, node: ExternalNode) -> None:
        """
        Read ``axis`` and ``keepdims`` from the node attributes.

        ``keepdims`` defaults to true and only an explicit 0 turns it off.
        Dimension-preserving execution is not supported for imported nodes,
        so anything but ``keepdims=0`` is rejected.

        Raises:
            AttributeTypeMismatch: If an attribute is not an int
            UnsupportedConfiguration: If keepdims is not 0
        """
        self.axis = get_attribute(node.attributes, "axis", AttributeKind.INT, 0)
        self.keepdims = get_attribute(node.attributes, "keepdims", AttributeKind.INT, 1) != 0

        if self.keepdims:
            raise UnsupportedConfiguration("keepdims must be false")

    def configure(self, input_shapes: Sequence[Shape]) -> None:
        """Cache the input rank and count a negative axis from the last dimension."""
        if not input_shapes:
            return
        dims = len(input_shapes[0])
        self.input_dims = dims
        if self.axis < 0:
            self.axis = dims + self.axis

    def type_signature(self) -> TypeSignature:
        return TypeSignature(("a",), DataType.INT64)

    def infer_shape(self, input_shapes: Sequence[Shape]) -> Shape:
        (in_shape,) = self._check_input_shapes(input_shapes)
        return self._reduced_shape(in_shape, self.axis)

    def _reduced_shape(self, in_shape: Shape, axis: int) -> Shape:
        if axis < 0 or axis >= len(in_shape):
            raise ShapeError(f"shape error, axis {axis} is not a valid axis for shape {in_shape}")

        if self.keepdims:
            # The reduced axis is kept with a single element
            shape = list(in_shape)
            shape[axis] = 1
            return shape

        shape = [d for i, d in enumerate(in_shape) if i != axis]
        if not shape:
            return list(SCALAR_SHAPE)
        return shape

    def execute(self, inputs: Sequence[Any]) -> Any:
        """
        Compute the arg-max of one dense tensor.

        A reduction down to a single value is returned as an ``np.int64``
        scalar, whatever ``keepdims`` says. Otherwise the result is an int64
        array, reshaped to the inferred shape when ``keepdims`` is set since
        ``np.argmax`` drops the reduced axis. A negative axis that was never
        configured counts from the last dimension of the input.
        """
        if len(inputs) != self.arity():
            raise ArityMismatch(self.op_type, self.arity(), len(inputs))

        data = to_dense(inputs[0], self.op_type)
        if self.input_dims is not None and data.ndim != self.input_dims:
            raise ExecutionError(f"{self.display_name()} was configured for rank {self.input_dims} input, got rank {data.ndim}")

        axis = self.axis + data.ndim if self.axis < 0 else self.axis
        try:
            ret = np.argmax(data, axis=axis)
        except (ValueError, IndexError) as e:
            raise ExecutionError(f"failed to apply argmax along axis {self.axis}: {e}") from e

        logger.debug(f"{self.display_name()} output: {ret!r}")

        if np.ndim(ret) == 0:
            return np.int64(ret)

        # ONNX specifies int64 indices, numpy returns intp
        ret = ret.astype(np.int64)
        if not self.keepdims:
            return ret

        shape = self._reduced_shape(list(data.shape), axis)
        try:
            return ret.reshape(shape)
        except ValueError as e:
            raise ExecutionError(f"cannot reshape argmax result {ret.shape} to {shape}") from e

    def config(self) -> Dict[str, Any]:
        return {"axis": self.axis, "keepdims": self.keepdims}

    def display_name(self) -> str:
        return f"ArgMaxAlong{self.axis}"
