"""
Operators module initialization.

Importing this package registers every operator kind with the global
registry and then freezes it.
"""

# Import registry first
from onnx_lowering.operators.registry import OPERATOR_REGISTRY, OperatorRegistry
from onnx_lowering.operators.base import Operator, TypeSignature

# Import all operators to register them
from onnx_lowering.operators.reduction import ArgMaxOperator

OPERATOR_REGISTRY.freeze()
