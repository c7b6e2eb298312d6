"""
Lowering Engine for ONNX Lowering.
"""

from typing import Optional, Sequence

from onnx_lowering.core.errors import ArityMismatch, LoweringError
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.graph.graph import Graph, GraphNode
from onnx_lowering.operators.base import Operator
from onnx_lowering.operators.registry import OperatorRegistry
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

class LoweringEngine:
    """Turns external nodes into operator nodes of the execution graph."""

    def __init__(self, registry: Optional[OperatorRegistry] = None):
        """
        Initialize lowering engine.

        Args:
            registry: Operator registry, the global one by default
        """
        if registry is None:
            from onnx_lowering.operators import OPERATOR_REGISTRY
            registry = OPERATOR_REGISTRY
        self.registry = registry

    def create_operator(self, node: ExternalNode) -> Operator:
        """
        Build and configure the operator for an external node.

        Raises:
            UnknownOperator: If the operator type is not registered
        """
        constructor = self.registry.resolve(node.op_type)
        op = constructor()
        op.init(node)
        return op

    def apply(self,
              graph: Graph,
              node: ExternalNode,
              children: Sequence[GraphNode]) -> GraphNode:
        """
        Lower one external node whose children are already lowered.

        The node is attached only when every step succeeds; on failure the
        graph is left as it was and the error propagates.

        Args:
            graph: Execution graph to append to
            node: External node
            children: Lowered input nodes, in input order

        Returns:
            The new graph node
        """
        try:
            op = self.create_operator(node)

            if len(children) != op.arity():
                raise ArityMismatch(node.op_type, op.arity(), len(children))

            input_shapes = [list(child.shape) for child in children]
            op.configure(input_shapes)
            shape = op.infer_shape(input_shapes)
            dtype = op.type_signature().resolve([child.dtype for child in children])

            # Node names may collide with input tensors or earlier nodes
            name = graph.unique_name(node.name)
            lowered = graph.add_node(GraphNode(name, op, children, shape, dtype))
        except LoweringError as e:
            logger.error(f"Lowering failed for node {node.name} ({node.op_type}): {e}")
            raise

        logger.debug(f"Lowered {node.name} as {name}, {op.display_name()}: shape={shape}, dtype={dtype.name}")
        return lowered
