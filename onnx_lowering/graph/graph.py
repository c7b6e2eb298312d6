"""
Internal execution graph for ONNX Lowering.
"""

import numpy as np
from typing import Any, Dict, List, Optional, Sequence
from collections import defaultdict
import networkx as nx

from onnx_lowering.core.types import DataType, Shape
from onnx_lowering.operators.base import Operator
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

class GraphNode:
    """
    A lowered, shape-checked node of the execution graph.

    Operator nodes wrap exactly one operator instance and reference their
    predecessors in input order. Graph inputs and constants have no operator.
    """

    def __init__(self,
                 name: str,
                 op: Optional[Operator],
                 inputs: Sequence['GraphNode'],
                 shape: Shape,
                 dtype: DataType = DataType.UNDEFINED,
                 value: Optional[np.ndarray] = None):
        self.name = name
        self.op = op
        self.inputs: List[GraphNode] = list(inputs)
        self.shape: Shape = list(shape)
        self.dtype = dtype
        self.value = value

    @property
    def is_input(self) -> bool:
        """True for graph inputs and constants."""
        return self.op is None

    @property
    def is_constant(self) -> bool:
        return self.op is None and self.value is not None

    def execute(self, values: Sequence[Any]) -> Any:
        """
        Run the wrapped operator on concrete input values.

        Args:
            values: One concrete value per input, in input order

        Returns:
            Output value
        """
        if self.op is None:
            raise ValueError(f"Node '{self.name}' has no operator to execute")
        return self.op.execute(values)

    def __repr__(self) -> str:
        label = self.op.display_name() if self.op is not None else ("Constant" if self.is_constant else "Input")
        return f"GraphNode(name='{self.name}', op={label}, shape={self.shape}, dtype={self.dtype.name})"


class Graph:
    """Execution graph; nodes are kept in topological order."""

    def __init__(self):
        """Initialize an empty graph."""
        self.nodes: List[GraphNode] = []  # Nodes in insertion (topological) order
        self.node_map: Dict[str, GraphNode] = {}
        self._dg = nx.DiGraph()

    def add_input(self,
                  name: str,
                  shape: Shape,
                  dtype: DataType = DataType.UNDEFINED,
                  value: Optional[np.ndarray] = None) -> GraphNode:
        """
        Add a graph input, or a constant when ``value`` is given.

        Returns:
            The new node
        """
        return self.add_node(GraphNode(name, None, [], shape, dtype, value))

    def add_node(self, node: GraphNode) -> GraphNode:
        """
        Append a node.

        Its predecessors must already be in the graph, which keeps the node
        list in topological order. Nothing is changed when validation fails.

        Raises:
            ValueError: On a duplicate name or a predecessor outside the graph
        """
        if node.name in self.node_map:
            raise ValueError(f"Node with name '{node.name}' already exists in the graph")
        for pred in node.inputs:
            if self.node_map.get(pred.name) is not pred:
                raise ValueError(f"Input '{pred.name}' of node '{node.name}' is not in the graph")

        self.nodes.append(node)
        self.node_map[node.name] = node
        self._dg.add_node(node.name)
        for pred in node.inputs:
            self._dg.add_edge(pred.name, node.name)

        return node

    def unique_name(self, name: str) -> str:
        """``name`` if no node uses it yet, else the first free ``name_<n>``."""
        if name not in self.node_map:
            return name
        index = 1
        while f"{name}_{index}" in self.node_map:
            index += 1
        return f"{name}_{index}"

    def predecessors(self, name: str) -> List[str]:
        """Names of the distinct nodes feeding ``name``."""
        return list(self._dg.predecessors(name))

    def successors(self, name: str) -> List[str]:
        """Names of the nodes consuming ``name``."""
        return list(self._dg.successors(name))

    def topological_sort(self) -> List[GraphNode]:
        """Nodes in a topological order computed from the edges."""
        return [self.node_map[name] for name in nx.topological_sort(self._dg)]

    def find_duplicates(self) -> List[List[GraphNode]]:
        """
        Group operator nodes that compute the same thing.

        Two nodes are duplicates when their operators compare equal and they
        read the same inputs in the same order. Only groups with more than one
        node are returned.
        """
        buckets = defaultdict(list)
        for node in self.nodes:
            if node.op is None:
                continue
            key = (node.op.identity_hash(), tuple(pred.name for pred in node.inputs))
            buckets[key].append(node)

        groups = []
        for candidates in buckets.values():
            # Equal hashes may still differ in configuration
            while candidates:
                head = candidates[0]
                same = [n for n in candidates if n.op == head.op]
                candidates = [n for n in candidates if n.op != head.op]
                if len(same) > 1:
                    groups.append(same)
        return groups

    def __contains__(self, name: str) -> bool:
        return name in self.node_map

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        n_inputs = sum(1 for node in self.nodes if node.is_input)
        return f"Graph(nodes={len(self.nodes)}, inputs={n_inputs})"
