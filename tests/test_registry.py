import logging
import pytest
from flow2chain.context import GenerationContext
from flow2chain.converter import Converter
from flow2chain.converters import BUILTIN_CONVERTERS, DEFAULT_ALIASES
from flow2chain.errors import (
    DuplicateTypeError, InvalidNodeError, PluginError, UnknownTargetError, UnsupportedNodeError,
)
from flow2chain.ir import Graph
from flow2chain.registry import ConverterPlugin, ConverterRegistry, PluginManager


def _fake(tag="fake", **kw):
    kw.setdefault("category", "tool")
    return Converter(type_tag=tag, role="tool", package="pkg", class_name="Fake", **kw)


def test_duplicate_registration_fails():
    reg = ConverterRegistry()
    reg.register(_fake())
    with pytest.raises(DuplicateTypeError):
        reg.register(_fake())


def test_alias_requires_registered_target():
    reg = ConverterRegistry()
    with pytest.raises(UnknownTargetError):
        reg.register_alias("f", "fake")


def test_alias_aware_lookup_and_can_convert(make_node):
    reg = ConverterRegistry()
    conv = _fake()
    reg.register(conv)
    reg.register_alias("f", "fake")
    assert reg.get_converter("f") is conv
    assert reg.can_convert(conv, make_node("n1", "fake"))
    assert reg.can_convert(conv, make_node("n2", "f"))
    assert not reg.can_convert(conv, make_node("n3", "other"))
    assert reg.get_converter("other") is None


def test_unregister_is_idempotent():
    reg = ConverterRegistry()
    reg.register(_fake())
    assert reg.unregister("fake") is True
    assert reg.unregister("fake") is False
    assert not reg.has_converter("fake")


def test_convert_node_faults(make_node):
    reg = ConverterRegistry()
    reg.register(_fake(accepts=lambda node: node.has_param("name")))
    node = make_node("n1", "fake")
    ctx = GenerationContext(graph=Graph(nodes=[node]))
    with pytest.raises(InvalidNodeError):
        reg.convert_node(node, ctx)
    with pytest.raises(UnsupportedNodeError) as exc:
        reg.convert_node(make_node("n2", "nothing"), ctx)
    assert exc.value.node_id == "n2"
    assert exc.value.node_type == "nothing"


def test_deprecated_converter_warns_and_proceeds(make_node, caplog):
    reg = ConverterRegistry()
    reg.register(_fake("old", deprecated=True, replacement="new"))
    node = make_node("n1", "old")
    ctx = GenerationContext(graph=Graph(nodes=[node]))
    with caplog.at_level(logging.WARNING, logger="flow2chain.registry"):
        fragments = reg.convert_node(node, ctx)
    assert "Converter for 'old' is deprecated. Use 'new' instead." in caplog.text
    assert [f.id for f in fragments] == ["n1_import", "n1_init"]


def test_dependencies_sorted_and_unique(make_node):
    reg = ConverterRegistry()
    reg.register(_fake("a", dependencies=("zeta", "alpha")))
    reg.register(_fake("b", dependencies=("alpha", "beta")))
    nodes = [make_node("1", "a"), make_node("2", "b"), make_node("3", "unknown")]
    assert reg.get_all_dependencies(nodes) == ["alpha", "beta", "zeta"]


def test_validate_nodes_partitions(make_node):
    reg = ConverterRegistry()
    reg.register(_fake("ok"))
    reg.register(_fake("old", deprecated=True))
    report = reg.validate_nodes([make_node("1", "ok"), make_node("2", "old"), make_node("3", "nope")])
    assert [n.id for n in report.unsupported] == ["3"]
    assert [n.id for n in report.deprecated] == ["2"]
    assert not report.valid


def test_default_registry_contents(registry):
    assert set(registry.registered_types()) == {c.type_tag for c in BUILTIN_CONVERTERS}
    assert registry.registered_aliases() == DEFAULT_ALIASES
    assert registry.get_converter("agentNode").type_tag == "toolAgent"
    assert registry.suggest("chatOpenAi")[0] == "chatOpenAI"
    stats = registry.statistics()
    assert stats["total_converters"] == len(BUILTIN_CONVERTERS)
    assert stats["deprecated"] == 1
    assert stats["by_category"]["tool"] == 3
    assert [c.type_tag for c in registry.converters_by_category("memory")] == ["bufferMemory", "bufferWindowMemory"]


def test_plugin_load_and_unload():
    reg = ConverterRegistry()
    manager = PluginManager(reg)
    calls = []
    plugin = ConverterPlugin(
        name="extra", version="1.0",
        converters=[_fake("p1"), _fake("p2")],
        aliases={"pp": "p1"},
        initialize=lambda r: calls.append("init"),
        cleanup=lambda r: calls.append("cleanup"),
    )
    manager.load_plugin(plugin)
    assert manager.is_loaded("extra")
    assert reg.get_converter("pp").type_tag == "p1"
    with pytest.raises(PluginError):
        manager.load_plugin(plugin)

    assert manager.unload_plugin("extra")
    assert not manager.unload_plugin("extra")
    assert calls == ["init", "cleanup"]
    assert reg.registered_types() == []
    assert reg.registered_aliases() == {}
    assert manager.loaded_plugins() == []


def test_plugin_load_is_all_or_nothing():
    reg = ConverterRegistry()
    reg.register(_fake("taken"))
    manager = PluginManager(reg)

    with pytest.raises(DuplicateTypeError):
        manager.load_plugin(ConverterPlugin(name="a", version="1", converters=[_fake("x1"), _fake("taken")]))
    with pytest.raises(DuplicateTypeError):
        manager.load_plugin(ConverterPlugin(name="b", version="1", converters=[_fake("x1"), _fake("x1")]))
    with pytest.raises(UnknownTargetError):
        manager.load_plugin(ConverterPlugin(name="c", version="1", converters=[_fake("x1")], aliases={"y": "missing"}))

    assert reg.registered_types() == ["taken"]
    assert reg.registered_aliases() == {}
    assert manager.loaded_plugins() == []


def test_plugin_alias_collision_aborts_load(registry):
    manager = PluginManager(registry)
    plugin = ConverterPlugin(name="p", version="1", converters=[_fake("myModel")], aliases={"gpt": "myModel"})
    with pytest.raises(PluginError):
        manager.load_plugin(plugin)
    assert registry.resolve_type("gpt") == "chatOpenAI"
    assert not registry.has_converter("myModel")

    shadow = ConverterPlugin(name="q", version="1", converters=[_fake("other")], aliases={"chatOpenAI": "other"})
    with pytest.raises(PluginError):
        manager.load_plugin(shadow)
    assert registry.get_converter("chatOpenAI").class_name == "ChatOpenAI"
    assert manager.loaded_plugins() == []


def test_failed_plugin_initialize_rolls_back():
    reg = ConverterRegistry()
    manager = PluginManager(reg)

    def boom(registry):
        raise RuntimeError("init failed")

    plugin = ConverterPlugin(name="p", version="1", converters=[_fake("myModel")], aliases={"mm": "myModel"},
                             initialize=boom)
    with pytest.raises(RuntimeError):
        manager.load_plugin(plugin)
    assert not reg.has_converter("myModel")
    assert reg.registered_aliases() == {}
    assert not manager.is_loaded("p")

    plugin.initialize = None
    manager.load_plugin(plugin)
    assert manager.is_loaded("p")


def test_statistics_report_supported_versions():
    reg = ConverterRegistry()
    reg.register(_fake("a"))
    reg.register(_fake("b", supported_versions=("0.2", "0.3")))
    assert reg.statistics()["supported_versions"] == {"a": ["*"], "b": ["0.2", "0.3"]}
