"""Core data model: types, errors, attributes, nodes and tensors."""
