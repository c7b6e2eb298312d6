"""
Tensor descriptions and concrete operand handling for ONNX Lowering.
"""

import onnx
from onnx import numpy_helper
import numpy as np
from typing import Any, Optional

from onnx_lowering.core.types import DataType, Shape
from onnx_lowering.core.errors import UnsupportedOperand
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

# Map from ONNX data types to numpy data types
ONNX_TO_NUMPY_DTYPE = {
    DataType.FLOAT: np.float32,
    DataType.UINT8: np.uint8,
    DataType.INT8: np.int8,
    DataType.UINT16: np.uint16,
    DataType.INT16: np.int16,
    DataType.INT32: np.int32,
    DataType.INT64: np.int64,
    DataType.BOOL: np.bool_,
    DataType.FLOAT16: np.float16,
    DataType.DOUBLE: np.float64,
    DataType.UINT32: np.uint32,
    DataType.UINT64: np.uint64,
    DataType.COMPLEX64: np.complex64,
    DataType.COMPLEX128: np.complex128,
}

# Map from numpy data types to ONNX data types
NUMPY_TO_ONNX_DTYPE = {np.dtype(v): k for k, v in ONNX_TO_NUMPY_DTYPE.items()}


def dtype_from_onnx(code: int) -> DataType:
    """Map an ONNX element type code onto DataType, UNDEFINED when unknown."""
    try:
        return DataType(code)
    except ValueError:
        logger.warning(f"Unknown ONNX element type {code}")
        return DataType.UNDEFINED


def dtype_from_numpy(np_dtype) -> DataType:
    """Map a numpy dtype onto an ONNX data type, UNDEFINED when unknown."""
    return NUMPY_TO_ONNX_DTYPE.get(np.dtype(np_dtype), DataType.UNDEFINED)


def to_dense(value: Any, op_type: str) -> np.ndarray:
    """
    Return ``value`` as the dense numpy array an operator computes on.
    
    Only plain ``numpy.ndarray`` values (and numpy scalars) are accepted.
    Masked arrays and every other representation are rejected.
    
    Args:
        value: Concrete input value
        op_type: Operator type, used in the error message
        
    Returns:
        Dense numpy array
        
    Raises:
        UnsupportedOperand: If the value is not a dense numpy array
    """
    if isinstance(value, Tensor):
        value = value.numpy
    if isinstance(value, np.generic):
        return np.asarray(value)
    if isinstance(value, np.ma.MaskedArray) or not isinstance(value, np.ndarray):
        raise UnsupportedOperand(f"{op_type} only supports dense numpy arrays, got {type(value).__name__}")
    return value


class Tensor:
    """Named tensor description: element type, shape and optional constant data."""
    
    def __init__(self,
                 name: str = "",
                 dtype: DataType = DataType.UNDEFINED,
                 shape: Optional[Shape] = None,
                 data: Optional[np.ndarray] = None):
        """
        Initialize a tensor.
        
        Args:
            name: Tensor name
            dtype: ONNX data type
            shape: Tensor shape, ``-1`` marks an unknown dimension
            data: Constant value (optional)
        """
        self.name = name
        self.dtype = dtype
        self.shape = list(shape) if shape is not None else []
        self.numpy = data
        if data is not None:
            self.shape = list(data.shape)
            if self.dtype == DataType.UNDEFINED:
                self.dtype = dtype_from_numpy(data.dtype)
    
    @classmethod
    def from_onnx(cls, value_info: onnx.ValueInfoProto) -> 'Tensor':
        """
        Create a Tensor from an ONNX ValueInfoProto.
        
        Symbolic or missing dimensions are recorded as ``-1``.
        """
        tensor = cls(value_info.name)
        if value_info.type.HasField('tensor_type'):
            tensor_type = value_info.type.tensor_type
            tensor.dtype = dtype_from_onnx(tensor_type.elem_type)
            if tensor_type.HasField('shape'):
                tensor.shape = [
                    dim.dim_value if dim.HasField('dim_value') else -1
                    for dim in tensor_type.shape.dim
                ]
        else:
            logger.warning(f"Value '{value_info.name}' is not a tensor type")
        return tensor
    
    @classmethod
    def from_onnx_tensor(cls, tensor: onnx.TensorProto) -> 'Tensor':
        """Create a constant Tensor from an ONNX TensorProto."""
        return cls(tensor.name, dtype_from_onnx(tensor.data_type), list(tensor.dims), numpy_helper.to_array(tensor))
    
    @property
    def is_constant(self) -> bool:
        """True when the tensor carries data."""
        return self.numpy is not None
    
    def has_static_shape(self) -> bool:
        """True when every dimension is known."""
        return all(isinstance(dim, int) and dim >= 0 for dim in self.shape)
    
    def __repr__(self) -> str:
        kind = "constant" if self.is_constant else "variable"
        return f"Tensor(name='{self.name}', dtype={self.dtype.name}, shape={self.shape}, {kind})"
