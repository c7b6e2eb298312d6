"""
Core type definitions for ONNX Lowering.
"""

from enum import Enum
from typing import List

class DataType(Enum):
    """Enum of ONNX data types."""
    UNDEFINED = 0
    FLOAT = 1
    UINT8 = 2
    INT8 = 3
    UINT16 = 4
    INT16 = 5
    INT32 = 6
    INT64 = 7
    STRING = 8
    BOOL = 9
    FLOAT16 = 10
    DOUBLE = 11
    UINT32 = 12
    UINT64 = 13
    COMPLEX64 = 14
    COMPLEX128 = 15
    BFLOAT16 = 16

class AttributeKind(Enum):
    """Tags of the attribute values an external node can carry."""
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    TENSOR = "tensor"
    INTS = "ints"
    FLOATS = "floats"
    STRINGS = "strings"
    TENSORS = "tensors"
    GRAPH = "graph"
    GRAPHS = "graphs"
    # Kinds the lowering layer carries but never decodes (sparse tensors, type protos)
    OPAQUE = "opaque"

# One entry per dimension, an empty list is a scalar
Shape = List[int]

SCALAR_SHAPE: Shape = []
