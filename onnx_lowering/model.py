"""
Top-level model class for ONNX Lowering.
"""

import os
import onnx
import networkx as nx
from typing import Any, Dict, List, Optional, Union

from onnx_lowering.core.errors import LoweringError
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.tensor import Tensor
from onnx_lowering.engines.lowering_engine import LoweringEngine
from onnx_lowering.graph.graph import Graph, GraphNode
from onnx_lowering.operators.registry import OperatorRegistry
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

class ModelConfig:
    """Configuration for Model."""

    def __init__(self,
                 input_shapes: Optional[Dict[str, List[int]]] = None,
                 skip_unsupported: bool = False,
                 verbose: bool = True):
        """
        Initialize model configuration.

        Args:
            input_shapes: Shapes overriding the declared graph input shapes
            skip_unsupported: Skip nodes that fail to lower (and their dependents)
                instead of aborting the import
            verbose: Whether to enable verbose logging
        """
        self.input_shapes = dict(input_shapes or {})
        self.skip_unsupported = skip_unsupported
        self.verbose = verbose

class Model:
    """Imports an ONNX model and lowers it into an execution graph."""

    def __init__(self,
                 path_or_model: Union[str, onnx.ModelProto, None] = None,
                 config: Optional[ModelConfig] = None,
                 registry: Optional[OperatorRegistry] = None):
        """
        Initialize model.

        Args:
            path_or_model: Model path or ONNX ModelProto object
            config: Model configuration
            registry: Operator registry used for lowering, the global one by default
        """
        self.config = config or ModelConfig()
        self.engine = LoweringEngine(registry)
        self.onnx_model = None
        self.modelpath = None
        self.nodes: List[ExternalNode] = []
        self.inputs: List[Tensor] = []
        self.initializers: List[Tensor] = []
        self.outputs: List[str] = []
        self.graph: Optional[Graph] = None
        self.skipped: List[str] = []
        # Tensor name -> graph node producing it
        self._producers: Dict[str, GraphNode] = {}

        if path_or_model is not None:
            self.load(path_or_model)

    def load(self, path_or_model: Union[str, onnx.ModelProto]) -> 'Model':
        """
        Load model from path or ONNX ModelProto.

        Args:
            path_or_model: Model path or ONNX ModelProto object

        Returns:
            Self for method chaining
        """
        if isinstance(path_or_model, (str, os.PathLike)):
            if not os.path.exists(path_or_model):
                raise FileNotFoundError(f"Model file not found: {path_or_model}")
            self.modelpath = str(path_or_model)
            self.onnx_model = onnx.load(self.modelpath)
            logger.info(f"Model loaded from {path_or_model}")
        elif isinstance(path_or_model, onnx.ModelProto):
            self.onnx_model = path_or_model
            logger.info("Model loaded from ModelProto object")
        else:
            raise TypeError("path_or_model must be a file path or an onnx.ModelProto object")

        graph_proto = self.onnx_model.graph
        self.initializers = [Tensor.from_onnx_tensor(t) for t in graph_proto.initializer]
        initializer_names = {t.name for t in self.initializers}
        # Initializers may also be listed as inputs
        self.inputs = [Tensor.from_onnx(v) for v in graph_proto.input if v.name not in initializer_names]
        self.outputs = [v.name for v in graph_proto.output]
        self.nodes = [ExternalNode.from_onnx(n) for n in graph_proto.node]
        self.graph = None

        return self

    def lower(self, input_shapes: Optional[Dict[str, List[int]]] = None) -> Graph:
        """
        Lower every node of the model into a new execution graph.

        Args:
            input_shapes: Shapes overriding the declared input shapes, merged
                over ``config.input_shapes``

        Returns:
            The execution graph
        """
        if self.onnx_model is None:
            raise ValueError("No model to lower, load a model first")

        shapes = dict(self.config.input_shapes)
        shapes.update(input_shapes or {})

        graph = Graph()
        self._producers = {}
        self.skipped = []

        for tensor in self.inputs:
            shape = list(shapes.get(tensor.name, tensor.shape))
            if any(dim < 0 for dim in shape):
                raise ValueError(f"Input tensor '{tensor.name}' has unknown dimensions {shape}, provide its shape")
            self._producers[tensor.name] = graph.add_input(tensor.name, shape, tensor.dtype)

        for tensor in self.initializers:
            self._producers[tensor.name] = graph.add_input(tensor.name, tensor.shape, tensor.dtype, tensor.numpy)

        for node in self._sorted_nodes():
            self._lower_node(graph, node)

        for name in self.outputs:
            if name not in self._producers:
                logger.warning(f"Output tensor '{name}' not lowered")

        self.graph = graph
        if self.config.verbose:
            logger.info(f"Lowered {len(self.nodes) - len(self.skipped)}/{len(self.nodes)} nodes")
        return graph

    def _sorted_nodes(self) -> List[ExternalNode]:
        """External nodes in topological order."""
        producer_index = {}
        for i, node in enumerate(self.nodes):
            for output_name in node.outputs:
                producer_index[output_name] = i

        dg = nx.DiGraph()
        dg.add_nodes_from(range(len(self.nodes)))
        for i, node in enumerate(self.nodes):
            for input_name in node.inputs:
                if input_name in producer_index:
                    dg.add_edge(producer_index[input_name], i)

        try:
            order = list(nx.lexicographical_topological_sort(dg))
        except nx.NetworkXUnfeasible:
            raise ValueError("Graph contains cycles, topological sort not possible") from None
        return [self.nodes[i] for i in order]

    def _lower_node(self, graph: Graph, node: ExternalNode) -> None:
        missing = [name for name in node.inputs if name not in self._producers]
        if missing:
            if self.config.skip_unsupported:
                logger.warning(f"Skipping node {node.name} ({node.op_type}): inputs {missing} not available")
                self.skipped.append(node.name)
                return
            raise ValueError(f"Input tensors {missing} not found for node {node.name}")

        children = [self._producers[name] for name in node.inputs]
        try:
            lowered = self.engine.apply(graph, node, children)
        except LoweringError as e:
            if not self.config.skip_unsupported:
                raise
            logger.warning(f"Skipping node {node.name} ({node.op_type}): {e}")
            self.skipped.append(node.name)
            return

        for output_name in node.outputs:
            self._producers[output_name] = lowered

    def node_for(self, tensor_name: str) -> GraphNode:
        """Graph node producing the given tensor."""
        if self.graph is None:
            raise ValueError("Model has not been lowered yet")
        if tensor_name not in self._producers:
            raise KeyError(f"Tensor '{tensor_name}' is not produced by the lowered graph")
        return self._producers[tensor_name]

    def run_node(self, name: str, *values: Any) -> Any:
        """
        Execute a single lowered node against concrete input values.

        Args:
            name: Node name, or the name of a tensor it produces
            values: One concrete value per node input

        Returns:
            Output value
        """
        if self.graph is None:
            raise ValueError("Model has not been lowered yet")
        node = self.graph.node_map.get(name) or self.node_for(name)
        return node.execute(values)

    def __repr__(self) -> str:
        """String representation of the model."""
        if self.onnx_model is not None:
            return f"Model(nodes={len(self.nodes)}, inputs={len(self.inputs)}, outputs={len(self.outputs)})"
        return "Model(not loaded)"
