import numpy as np
import pytest

from onnx_lowering.core.errors import (
    ArityMismatch,
    ShapeError,
    UnknownOperator,
    UnsupportedConfiguration,
)
from onnx_lowering.core.node import ExternalNode
from onnx_lowering.core.types import DataType
from onnx_lowering.engines.lowering_engine import LoweringEngine
from onnx_lowering.graph.graph import Graph
from onnx_lowering.operators import OPERATOR_REGISTRY, OperatorRegistry
from onnx_lowering.operators.reduction import ArgMaxOperator


@pytest.fixture
def engine():
    return LoweringEngine()


@pytest.fixture
def graph():
    g = Graph()
    g.add_input("x", [2, 3, 4], DataType.FLOAT)
    return g


def test_engine_uses_global_registry_by_default(engine):
    assert engine.registry is OPERATOR_REGISTRY


def test_apply_attaches_node(engine, graph, argmax_node):
    x = graph.node_map["x"]
    lowered = engine.apply(graph, argmax_node, [x])

    assert graph.nodes[-1] is lowered
    assert lowered.name == "argmax"
    assert lowered.inputs == [x]
    assert lowered.shape == [3, 4]
    assert lowered.dtype == DataType.INT64
    assert isinstance(lowered.op, ArgMaxOperator)
    assert graph.predecessors("argmax") == ["x"]


def test_apply_normalizes_negative_axis(engine, graph):
    node = ExternalNode("ArgMax", ["x"], ["y"], {"axis": -1, "keepdims": 0})
    lowered = engine.apply(graph, node, [graph.node_map["x"]])
    assert lowered.op.axis == 2
    assert lowered.op.input_dims == 3
    assert lowered.shape == [2, 3]
    assert lowered.op.display_name() == "ArgMaxAlong2"


def test_apply_then_execute(engine, graph):
    node = ExternalNode("ArgMax", ["x"], ["y"], {"axis": -2, "keepdims": 0})
    lowered = engine.apply(graph, node, [graph.node_map["x"]])

    data = np.random.default_rng(0).standard_normal((2, 3, 4)).astype(np.float32)
    out = lowered.execute([data])
    assert list(out.shape) == lowered.shape
    np.testing.assert_array_equal(out, np.argmax(data, axis=1))


@pytest.mark.parametrize("n_children", [0, 2])
def test_apply_arity_mismatch_attaches_nothing(engine, graph, argmax_node, n_children):
    children = [graph.node_map["x"]] * n_children
    with pytest.raises(ArityMismatch) as excinfo:
        engine.apply(graph, argmax_node, children)
    assert excinfo.value.expected == 1
    assert excinfo.value.got == n_children
    assert len(graph) == 1
    assert "argmax" not in graph


def test_apply_unknown_operator(engine, graph):
    node = ExternalNode("Nonexistent", ["x"], ["y"])
    with pytest.raises(UnknownOperator):
        engine.apply(graph, node, [graph.node_map["x"]])
    assert len(graph) == 1


def test_apply_unsupported_configuration(engine, graph):
    node = ExternalNode("ArgMax", ["x"], ["y"], {"axis": 0})
    with pytest.raises(UnsupportedConfiguration):
        engine.apply(graph, node, [graph.node_map["x"]])
    assert len(graph) == 1


def test_apply_axis_out_of_range(engine, graph):
    node = ExternalNode("ArgMax", ["x"], ["y"], {"axis": 3, "keepdims": 0})
    with pytest.raises(ShapeError):
        engine.apply(graph, node, [graph.node_map["x"]])
    assert len(graph) == 1


def test_apply_renames_colliding_node(engine, graph, argmax_node):
    first = engine.apply(graph, argmax_node, [graph.node_map["x"]])
    second = engine.apply(graph, argmax_node, [graph.node_map["x"]])
    assert (first.name, second.name) == ("argmax", "argmax_1")
    assert len(graph) == 3
    assert graph.find_duplicates() == [[first, second]]


def test_apply_node_named_like_its_input(engine, graph):
    node = ExternalNode("ArgMax", ["x"], ["y"], {"axis": 0, "keepdims": 0}, name="x")
    lowered = engine.apply(graph, node, [graph.node_map["x"]])
    assert lowered.name == "x_1"
    assert lowered.inputs == [graph.node_map["x"]]
    assert graph.predecessors("x_1") == ["x"]


def test_apply_with_injected_registry(graph):
    registry = OperatorRegistry()
    registry.register("Argmax", lambda: ArgMaxOperator(axis=1))
    registry.freeze()
    engine = LoweringEngine(registry)

    lowered = engine.apply(graph, ExternalNode("Argmax", ["x"], ["y"], {"axis": 1, "keepdims": 0}), [graph.node_map["x"]])
    assert lowered.shape == [2, 4]

    with pytest.raises(UnknownOperator):
        engine.create_operator(ExternalNode("ArgMax", ["x"], ["z"], {"keepdims": 0}))


def test_lowered_duplicates_are_detected(engine, graph):
    x = graph.node_map["x"]
    a = engine.apply(graph, ExternalNode("ArgMax", ["x"], ["a"], {"axis": 1, "keepdims": 0}), [x])
    b = engine.apply(graph, ExternalNode("ArgMax", ["x"], ["b"], {"axis": -2, "keepdims": 0}), [x])
    engine.apply(graph, ExternalNode("ArgMax", ["x"], ["c"], {"axis": 0, "keepdims": 0}), [x])

    assert graph.find_duplicates() == [[a, b]]
