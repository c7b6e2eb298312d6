"""
External node class for ONNX Lowering.
"""

import onnx
from collections import OrderedDict
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from onnx_lowering.core.attributes import AttributeValue
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

class ExternalNode:
    """One operation record of an imported graph description. Read-only once built."""

    def __init__(self,
                 op_type: str,
                 inputs: Sequence[str] = (),
                 outputs: Sequence[str] = (),
                 attributes: Optional[Mapping[str, Any]] = None,
                 name: str = "",
                 domain: str = ""):
        """
        Initialize a node.

        Args:
            op_type: Operator type
            inputs: Input tensor names, in order
            outputs: Output tensor names, in order
            attributes: Attribute mapping; plain Python values are tagged
            name: Node name
            domain: Operator domain (empty for ai.onnx)
        """
        attrs: Dict[str, AttributeValue] = OrderedDict()
        for key, value in (attributes or {}).items():
            attrs[key] = AttributeValue.from_python(value, key)

        self._op_type = op_type
        self._name = name or (outputs[0] if outputs else op_type)
        self._domain = domain
        self._inputs = tuple(inputs)
        self._outputs = tuple(outputs)
        self._attributes = MappingProxyType(attrs)

    @classmethod
    def from_onnx(cls, node_proto: onnx.NodeProto) -> 'ExternalNode':
        """
        Create an ExternalNode from an ONNX NodeProto.

        Args:
            node_proto: ONNX NodeProto object

        Returns:
            New ExternalNode instance
        """
        attributes = OrderedDict(
            (attr.name, AttributeValue.from_onnx(attr)) for attr in node_proto.attribute
        )
        return cls(node_proto.op_type,
                   list(node_proto.input),
                   list(node_proto.output),
                   attributes,
                   name=node_proto.name,
                   domain=node_proto.domain)

    @property
    def op_type(self) -> str:
        return self._op_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def inputs(self) -> List[str]:
        # Empty names mark omitted optional inputs
        return [name for name in self._inputs if name]

    @property
    def outputs(self) -> List[str]:
        return list(self._outputs)

    @property
    def attributes(self) -> Mapping[str, AttributeValue]:
        return self._attributes

    def __repr__(self) -> str:
        return f"ExternalNode(name='{self.name}', op_type='{self.op_type}', inputs={len(self.inputs)}, outputs={len(self.outputs)})"
