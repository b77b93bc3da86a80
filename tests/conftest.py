import pytest
from flow2chain.converters import default_registry
from flow2chain.ir import Node, Parameter


def _make_node(node_id, node_type, label="", **params):
    return Node(
        id=node_id,
        type=node_type,
        label=label,
        parameters=[Parameter(name=k, value=v) for k, v in params.items()],
    )


@pytest.fixture
def make_node():
    return _make_node


@pytest.fixture
def registry():
    return default_registry()
