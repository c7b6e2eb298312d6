"""Version information for ONNX Lowering."""

__version__ = "0.1.0"
