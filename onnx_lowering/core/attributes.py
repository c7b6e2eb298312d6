"""
Typed access to the attributes attached to an external graph node.
"""

import onnx
from onnx import numpy_helper
import numpy as np
from typing import Any, Mapping, Optional

from onnx_lowering.core.types import AttributeKind
from onnx_lowering.core.errors import AttributeTypeMismatch, MissingRequiredAttribute
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

# ONNX attribute proto types understood by the lowering layer
_PROTO_KINDS = {
    onnx.AttributeProto.INT: AttributeKind.INT,
    onnx.AttributeProto.FLOAT: AttributeKind.FLOAT,
    onnx.AttributeProto.STRING: AttributeKind.STRING,
    onnx.AttributeProto.TENSOR: AttributeKind.TENSOR,
    onnx.AttributeProto.INTS: AttributeKind.INTS,
    onnx.AttributeProto.FLOATS: AttributeKind.FLOATS,
    onnx.AttributeProto.STRINGS: AttributeKind.STRINGS,
    onnx.AttributeProto.TENSORS: AttributeKind.TENSORS,
    onnx.AttributeProto.GRAPH: AttributeKind.GRAPH,
    onnx.AttributeProto.GRAPHS: AttributeKind.GRAPHS,
}

_LIST_KINDS = {
    AttributeKind.INT: AttributeKind.INTS,
    AttributeKind.FLOAT: AttributeKind.FLOATS,
    AttributeKind.STRING: AttributeKind.STRINGS,
    AttributeKind.TENSOR: AttributeKind.TENSORS,
}

_SEQUENCE_KINDS = frozenset(_LIST_KINDS.values()) | {AttributeKind.GRAPHS}


class AttributeValue:
    """
    A decoded attribute: a kind tag plus the Python value it carries.

    Integers are Python ints (64-bit signed on the wire), floats are Python
    floats, strings are decoded text and tensors are numpy arrays. List kinds
    hold Python lists of the scalar kind. Graph kinds hold undecoded GraphProtos.
    """

    __slots__ = ("kind", "value")

    def __init__(self, kind: AttributeKind, value: Any):
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)

    def __setattr__(self, name, value):
        raise AttributeError("AttributeValue is read-only")

    @classmethod
    def from_onnx(cls, attr: onnx.AttributeProto) -> 'AttributeValue':
        """
        Decode an ONNX AttributeProto.

        Graph attributes keep their GraphProto(s) undecoded. Sparse tensors,
        type protos and unknown kinds are kept as the raw AttributeProto under
        the OPAQUE tag; reading them with any other kind fails later, in the
        operator that asks for them.

        Args:
            attr: ONNX AttributeProto

        Returns:
            Decoded attribute value
        """
        kind = _PROTO_KINDS.get(attr.type)
        if kind is None:
            logger.debug(f"Keeping attribute '{attr.name}' of type {attr.type} undecoded")
            return cls(AttributeKind.OPAQUE, attr)

        if kind == AttributeKind.INT:
            value = int(attr.i)
        elif kind == AttributeKind.FLOAT:
            value = float(attr.f)
        elif kind == AttributeKind.STRING:
            value = attr.s.decode('utf-8')
        elif kind == AttributeKind.TENSOR:
            value = numpy_helper.to_array(attr.t)
        elif kind == AttributeKind.INTS:
            value = [int(i) for i in attr.ints]
        elif kind == AttributeKind.FLOATS:
            value = [float(f) for f in attr.floats]
        elif kind == AttributeKind.STRINGS:
            value = [s.decode('utf-8') for s in attr.strings]
        elif kind == AttributeKind.TENSORS:
            value = [numpy_helper.to_array(t) for t in attr.tensors]
        elif kind == AttributeKind.GRAPH:
            value = attr.g
        else:
            value = list(attr.graphs)

        return cls(kind, value)

    @classmethod
    def from_python(cls, value: Any, name: str = "") -> 'AttributeValue':
        """
        Tag a plain Python value.

        Non-empty lists must be homogeneous so their kind can be told. An
        empty list is tagged INTS and reads as any list kind.

        Raises:
            AttributeTypeMismatch: If the value has no attribute kind
        """
        if isinstance(value, AttributeValue):
            return value
        kind = _scalar_kind(value)
        if kind is not None:
            if kind == AttributeKind.INT:
                value = int(value)
            elif kind == AttributeKind.FLOAT:
                value = float(value)
            return cls(kind, value)

        if isinstance(value, (list, tuple)):
            if not value:
                return cls(AttributeKind.INTS, [])
            kinds = {_scalar_kind(v) for v in value}
            if len(kinds) == 1 and None not in kinds:
                item_kind = kinds.pop()
                return cls(_LIST_KINDS[item_kind], list(value))
            # Ints mixed with floats widen to floats
            if kinds == {AttributeKind.INT, AttributeKind.FLOAT}:
                return cls(AttributeKind.FLOATS, [float(v) for v in value])

        raise AttributeTypeMismatch(name, "an attribute value", type(value).__name__)

    def __eq__(self, other) -> bool:
        if not isinstance(other, AttributeValue) or self.kind != other.kind:
            return NotImplemented
        if self.kind == AttributeKind.TENSOR:
            return np.array_equal(self.value, other.value)
        if self.kind == AttributeKind.TENSORS:
            return len(self.value) == len(other.value) and all(
                np.array_equal(a, b) for a, b in zip(self.value, other.value))
        return self.value == other.value

    __hash__ = None

    def __repr__(self) -> str:
        return f"AttributeValue({self.kind.name}, {self.value!r})"


def _scalar_kind(value: Any) -> Optional[AttributeKind]:
    if isinstance(value, (bool, int, np.integer)):
        return AttributeKind.INT
    if isinstance(value, (float, np.floating)):
        return AttributeKind.FLOAT
    if isinstance(value, str):
        return AttributeKind.STRING
    if isinstance(value, np.ndarray):
        return AttributeKind.TENSOR
    return None


def get_attribute(attrs: Mapping[str, AttributeValue],
                  name: str,
                  kind: AttributeKind,
                  default: Any = None) -> Any:
    """
    Read an attribute of the expected kind.

    Absence is not an error here: ``default`` is returned and the caller
    decides whether the attribute was required.

    Args:
        attrs: Attribute mapping of the node
        name: Attribute name
        kind: Expected attribute kind
        default: Value returned when the attribute is absent

    Returns:
        The attribute value coerced to ``kind``, or ``default``

    Raises:
        AttributeTypeMismatch: If the attribute is present with another kind
    """
    if name not in attrs:
        return default

    attr = attrs[name]
    if not isinstance(attr, AttributeValue):
        attr = AttributeValue.from_python(attr, name)
    # An empty list reads as any list kind
    empty_list = attr.kind in _SEQUENCE_KINDS and kind in _SEQUENCE_KINDS and not attr.value
    if attr.kind != kind and not empty_list:
        raise AttributeTypeMismatch(name, kind, attr.kind)

    value = attr.value
    if kind == AttributeKind.INT:
        return int(value)
    if kind == AttributeKind.FLOAT:
        return float(value)
    if kind in _SEQUENCE_KINDS:
        return list(value)
    return value


def require_attribute(attrs: Mapping[str, AttributeValue],
                      name: str,
                      kind: AttributeKind,
                      op_type: Optional[str] = None) -> Any:
    """Like :func:`get_attribute`, but a missing attribute raises MissingRequiredAttribute."""
    if name not in attrs:
        raise MissingRequiredAttribute(name, op_type)
    return get_attribute(attrs, name, kind)
