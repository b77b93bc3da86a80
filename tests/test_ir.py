from pathlib import Path
import pytest
from pydantic import ValidationError
from flow2chain.ir import Edge, Graph, Node, Parameter
from flow2chain.loader import load_graph, save_graph
from flow2chain.validator import validate_graph_from_file


def _graph():
    return Graph(
        nodes=[
            Node(id="llm1", type="chatOpenAI", parameters=[Parameter(name="modelName", value="gpt-4o")]),
            Node(id="chain1", type="conversationChain"),
        ],
        edges=[Edge(source="llm1", source_output="out", target="chain1", target_input="model")],
    )


def test_save_load_and_validate(tmp_path: Path):
    g = _graph()
    path = tmp_path / "flow.yaml"
    save_graph(g, path)
    assert load_graph(path) == g
    ok, messages = validate_graph_from_file(path)
    assert ok, messages


def test_json_round_trip(tmp_path: Path):
    path = tmp_path / "flow.json"
    save_graph(_graph(), path)
    assert load_graph(path).node_map()["llm1"].param("modelName") == "gpt-4o"


def test_duplicate_node_ids_rejected():
    with pytest.raises(ValidationError):
        Graph(nodes=[Node(id="a", type="x"), Node(id="a", type="y")])


def test_edge_to_missing_node_rejected():
    with pytest.raises(ValidationError, match="missing"):
        Graph(nodes=[Node(id="a", type="x")], edges=[Edge(source="a", target="ghost")])


def test_param_falls_back_to_default():
    node = Node(id="n", type="t", parameters=[Parameter(name="k", value=None), Parameter(name="x", value=0)])
    assert node.param("k", 5) == 5
    assert node.param("missing", "d") == "d"
    assert node.param("x", 9) == 0
    assert node.has_param("k") and not node.has_param("missing")


def test_incoming_outgoing():
    g = _graph()
    assert [e.source for e in g.incoming("chain1")] == ["llm1"]
    assert [e.target for e in g.outgoing("llm1")] == ["chain1"]
    assert list(g.to_networkx().edges()) == [("llm1", "chain1")]
