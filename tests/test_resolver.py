import pytest
from flow2chain.errors import CyclicDependencyError
from flow2chain.resolver import Binding, ReferenceResolver


def _resolver(*bindings):
    r = ReferenceResolver()
    for node_id, var, role in bindings:
        r.register_node(node_id, var, role)
    return r


def test_dependencies_come_first():
    r = _resolver(("agent1", "agent1_agent", "agent"), ("llm1", "llm1_llm", "llm"), ("tool1", "tool1_tool", "tool"))
    r.add_dependency("agent1", "tool1")
    r.add_dependency("agent1", "llm1")
    order = r.topological_order()
    assert order == ["tool1", "llm1", "agent1"]
    for src in ("agent1",):
        for dep in r.dependencies_of(src):
            assert order.index(dep) < order.index(src)


def test_unconstrained_nodes_keep_registration_order():
    r = _resolver(("c", "c_llm", "llm"), ("a", "a_tool", "tool"), ("b", "b_memory", "memory"))
    assert r.topological_order() == ["c", "a", "b"]


def test_two_node_cycle_detected():
    r = _resolver(("a", "a_chain", "chain"), ("b", "b_chain", "chain"))
    r.add_dependency("a", "b")
    r.add_dependency("b", "a")
    assert r.has_circular_dependency("a")
    assert r.has_circular_dependency("b")
    with pytest.raises(CyclicDependencyError) as exc:
        r.topological_order()
    assert exc.value.cycle == ["a", "b", "a"]


def test_self_dependency_is_a_cycle():
    r = _resolver(("a", "a_chain", "chain"))
    r.add_dependency("a", "a")
    assert r.has_circular_dependency("a")


def test_acyclic_graph_reports_no_cycle():
    r = _resolver(("a", "a_agent", "agent"), ("b", "b_llm", "llm"), ("c", "c_tool", "tool"))
    r.add_dependency("a", "b")
    r.add_dependency("a", "c")
    r.add_dependency("c", "b")
    assert not r.has_circular_dependency("a")
    assert r.topological_order() == ["b", "c", "a"]


def test_unbound_reference_is_none():
    r = ReferenceResolver()
    assert r.resolve_reference("nope") is None
    assert r.get_binding("nope") is None
    assert not r.is_registered("nope")


def test_last_registration_wins_but_keeps_position():
    r = _resolver(("a", "a_llm", "llm"), ("b", "b_tool", "tool"))
    r.register_node("a", "a_renamed", "llm")
    assert r.resolve_reference("a") == "a_renamed"
    assert [b.node_id for b in r.bindings()] == ["a", "b"]


def test_unregistered_dependency_target_not_emitted():
    r = _resolver(("a", "a_agent", "agent"))
    r.add_dependency("a", "ghost")
    assert r.topological_order() == ["a"]


def test_dependencies_are_a_set():
    r = _resolver(("a", "a_agent", "agent"), ("b", "b_llm", "llm"))
    r.add_dependency("a", "b")
    r.add_dependency("a", "b")
    assert r.dependencies_of("a") == ["b"]
    assert r.dependencies_of("b") == []


def test_nodes_by_role_and_initialization_order():
    r = _resolver(("t2", "t2_tool", "tool"), ("agent", "agent_agent", "agent"), ("t1", "t1_tool", "tool"))
    r.add_dependency("agent", "t1")
    assert [b.node_id for b in r.get_nodes_by_role("tool")] == ["t2", "t1"]
    assert r.initialization_order() == [
        Binding("t2", "t2_tool", "tool"),
        Binding("t1", "t1_tool", "tool"),
        Binding("agent", "agent_agent", "agent"),
    ]


def test_clear_resets_everything():
    r = _resolver(("a", "a_llm", "llm"))
    r.add_dependency("a", "b")
    r.clear()
    assert r.bindings() == []
    assert r.dependencies_of("a") == []
    assert r.topological_order() == []


def test_reaches_follows_transitive_dependencies():
    r = _resolver(("a", "a_agent", "agent"), ("b", "b_chain", "chain"), ("c", "c_llm", "llm"))
    r.add_dependency("a", "b")
    r.add_dependency("b", "c")
    assert r.reaches("a", "c")
    assert not r.reaches("c", "a")
    assert not r.reaches("a", "ghost")
