"""
Base operator contract for ONNX Lowering.

Every operator kind subclasses :class:`Operator` and registers a
zero-argument constructor with the operator registry.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from onnx_lowering.core.errors import ShapeError
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.types import DataType, Shape

# 32-bit FNV-1a parameters
FNV32_OFFSET = 0x811C9DC5
FNV32_PRIME = 0x01000193


def fnv1a_32(data: bytes) -> int:
    """32-bit FNV-1a hash of ``data``."""
    h = FNV32_OFFSET
    for byte in data:
        h ^= byte
        h = (h * FNV32_PRIME) & 0xFFFFFFFF
    return h


TypeEntry = Union[DataType, str]


class TypeSignature(NamedTuple):
    """
    Function type of an operator.

    Entries are either concrete data types or type-variable names such as
    ``"a"``; the output is bound through the inputs carrying the same
    variable.
    """
    inputs: Tuple[TypeEntry, ...]
    output: TypeEntry

    def resolve(self, input_dtypes: Sequence[DataType]) -> DataType:
        """
        Compute the output data type for concrete input types.

        Args:
            input_dtypes: Data types of the inputs, in order

        Returns:
            Output data type
        """
        bindings: Dict[str, DataType] = {}
        for expected, actual in zip(self.inputs, input_dtypes):
            if isinstance(expected, str):
                bound = bindings.setdefault(expected, actual)
                if bound != actual:
                    raise TypeError(f"type variable '{expected}' bound to both {bound.name} and {actual.name}")
            elif expected != actual:
                raise TypeError(f"expected input of type {expected.name}, got {actual.name}")

        if isinstance(self.output, str):
            return bindings.get(self.output, DataType.UNDEFINED)
        return self.output


class Operator(ABC):
    """
    Capability contract of an operator instance.

    Instances are created empty by the registry, configured once from the
    attributes of one external node, then used for shape inference and
    execution. Two instances of the same kind with the same configuration
    hash and compare equal.
    """

    op_type: str = ""

    def arity(self) -> int:
        """Exact number of inputs."""
        return 1

    @abstractmethod
    def type_signature(self) -> TypeSignature:
        """Function type from input types to the output type."""

    def init(self, node: ExternalNode) -> None:
        """
        Configure the operator from the attributes of ``node``.

        Raises:
            AttributeTypeMismatch: On attributes of the wrong kind
            UnsupportedConfiguration: On configurations this operator cannot run
        """

    def configure(self, input_shapes: Sequence[Shape]) -> None:
        """Derive structural parameters (e.g. normalized axes) from the input shapes."""

    @abstractmethod
    def infer_shape(self, input_shapes: Sequence[Shape]) -> Shape:
        """
        Infer the output shape from the input shapes.

        Raises:
            ShapeError: On a wrong number of shapes or an invalid configuration for them
        """

    @abstractmethod
    def execute(self, inputs: Sequence[Any]) -> Any:
        """
        Compute the output value from concrete inputs.

        Raises:
            UnsupportedOperand: If an input is not a representation this operator handles
            ExecutionError: If the underlying tensor primitive fails
        """

    @abstractmethod
    def config(self) -> Dict[str, Any]:
        """Configuration fields that identify this operator instance."""

    def overwrites_input(self) -> Optional[int]:
        """Index of the input slot overwritten in place, None if inputs are left untouched."""
        return None

    def display_name(self) -> str:
        return self.op_type

    def identity_hash(self) -> int:
        """Structural hash over the kind tag and configuration, never over input values."""
        fields = "-".join(f"{key}={value}" for key, value in sorted(self.config().items()))
        return fnv1a_32(f"{self.op_type.lower()}-{fields}".encode('utf-8'))

    def _check_input_shapes(self, input_shapes: Sequence[Shape]) -> List[List[int]]:
        if len(input_shapes) != self.arity():
            raise ShapeError(f"{self.op_type} expects {self.arity()} input shape(s), got {len(input_shapes)}")
        return [list(shape) for shape in input_shapes]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Operator):
            return NotImplemented
        return type(self) is type(other) and self.config() == other.config()

    def __hash__(self) -> int:
        return self.identity_hash()

    def __str__(self) -> str:
        return self.display_name()

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self.config().items())
        return f"{type(self).__name__}({fields})"
