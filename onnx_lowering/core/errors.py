"""
Error types raised while lowering and executing operators.

Each error also derives from the closest builtin exception, so callers that
catch ``ValueError`` or ``TypeError`` keep working.
"""

from typing import Optional


class LoweringError(Exception):
    """Base class of every error raised by ONNX Lowering."""


class AttributeTypeMismatch(LoweringError, TypeError):
    """An attribute is present but carries a value of the wrong kind."""

    def __init__(self, name: str, expected, actual):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"attribute '{name}' is not {_kind_name(expected)} (got {_kind_name(actual)})")


class MissingRequiredAttribute(LoweringError, ValueError):
    """An operator requires an attribute the node does not carry."""

    def __init__(self, name: str, op_type: Optional[str] = None):
        self.name = name
        self.op_type = op_type
        where = f" for {op_type}" if op_type else ""
        super().__init__(f"missing required attribute '{name}'{where}")


class UnsupportedConfiguration(LoweringError, ValueError):
    """The attributes decode to a configuration this operator cannot run."""


class ArityMismatch(LoweringError, ValueError):
    """The number of inputs differs from the operator's arity."""

    def __init__(self, op_type: str, expected: int, got: int):
        self.op_type = op_type
        self.expected = expected
        self.got = got
        super().__init__(f"{op_type} expects {expected} input(s), got {got}")


class ShapeError(LoweringError, ValueError):
    """Shape inference failed (bad axis, wrong number of input shapes)."""


class UnknownOperator(LoweringError, KeyError):
    """No operator is registered under the requested name."""

    def __init__(self, op_type: str):
        self.op_type = op_type
        super().__init__(op_type)

    def __str__(self) -> str:
        return f"Operator '{self.op_type}' not registered"


class DuplicateOperator(LoweringError, ValueError):
    """An operator name is registered twice."""


class RegistryFrozenError(LoweringError, RuntimeError):
    """Registration was attempted after the registry was frozen."""


class UnsupportedOperand(LoweringError, TypeError):
    """An input's concrete representation is not one the operator handles."""


class ExecutionError(LoweringError, RuntimeError):
    """The underlying tensor primitive failed; the cause is chained."""


def _kind_name(kind) -> str:
    return getattr(kind, "value", None) or getattr(kind, "__name__", None) or str(kind)
