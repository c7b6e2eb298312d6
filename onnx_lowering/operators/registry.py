"""
Operator registry for ONNX Lowering.
"""

from typing import Callable, Dict, Optional

from onnx_lowering.core.errors import DuplicateOperator, RegistryFrozenError, UnknownOperator
from onnx_lowering.utils.logging import get_logger

logger = get_logger(__name__)

OperatorConstructor = Callable[[], 'Operator']

class OperatorRegistry:
    """
    Maps external operator names to zero-argument operator constructors.

    The registry is filled during a single-threaded startup phase and then
    frozen. Lookups after that need no locking since nothing writes anymore.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._operators: Dict[str, OperatorConstructor] = {}
        self._frozen = False

    def register(self, op_type: str, constructor: Optional[OperatorConstructor] = None):
        """
        Register an operator constructor.

        Can be called directly or used as a class decorator::

            @OPERATOR_REGISTRY.register("ArgMax")
            class ArgMaxOperator(Operator): ...

        Args:
            op_type: ONNX operator type name
            constructor: Zero-argument callable returning a fresh operator

        Returns:
            The constructor, or a decorator when no constructor is given

        Raises:
            DuplicateOperator: If ``op_type`` is already registered
            RegistryFrozenError: If the registry has been frozen
        """
        if constructor is None:
            def decorator(cls):
                self.register(op_type, cls)
                return cls
            return decorator

        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{op_type}': registry is frozen")
        if op_type in self._operators:
            raise DuplicateOperator(f"Operator '{op_type}' already registered")

        self._operators[op_type] = constructor
        logger.debug(f"Registered operator {op_type}")
        return constructor

    def resolve(self, op_type: str) -> OperatorConstructor:
        """
        Get the constructor registered for an operator type.

        Raises:
            UnknownOperator: If operator is not registered
        """
        try:
            return self._operators[op_type]
        except KeyError:
            raise UnknownOperator(op_type) from None

    def freeze(self) -> None:
        """End the registration phase."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def contains(self, op_type: str) -> bool:
        return op_type in self._operators

    def list_operators(self) -> Dict[str, OperatorConstructor]:
        """Get a copy of the name to constructor mapping."""
        return self._operators.copy()

    def __contains__(self, op_type: str) -> bool:
        return self.contains(op_type)

    def __len__(self) -> int:
        return len(self._operators)

# Global operator registry
OPERATOR_REGISTRY = OperatorRegistry()
