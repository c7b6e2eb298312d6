"""
ONNX Lowering - lowers imported ONNX nodes into a typed, shape-checked execution graph.
"""

# Import operators first to register them
from onnx_lowering.operators import OPERATOR_REGISTRY, OperatorRegistry, Operator

# Import version information
from onnx_lowering.version import __version__

# Import core classes
from onnx_lowering.core.attributes import AttributeValue, get_attribute, require_attribute
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.types import AttributeKind, DataType
from onnx_lowering.engines.lowering_engine import LoweringEngine
from onnx_lowering.graph.graph import Graph, GraphNode
from onnx_lowering.model import Model, ModelConfig

def lower_model(path_or_model, input_shapes=None, skip_unsupported=False):
    """Load an ONNX model and lower it into an execution graph."""
    model = Model(path_or_model, ModelConfig(skip_unsupported=skip_unsupported))
    model.lower(input_shapes)
    return model
