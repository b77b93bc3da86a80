from flow2chain.assembly import assemble, merge_imports, order_fragments
from flow2chain.context import GenerationOptions
from flow2chain.expr import Assign, Call
from flow2chain.fragments import (
    PRIORITY_INIT, PRIORITY_POST_INIT, PRIORITY_SETUP, CodeFragment, FragmentKind, import_fragment,
)


def _init(node_id, callee="X"):
    return CodeFragment(f"{node_id}_init", FragmentKind.INITIALIZATION, Assign(node_id, Call(callee)),
                        priority=PRIORITY_INIT, node_id=node_id, metadata={"exports": [node_id]})


def test_same_import_from_two_nodes_emitted_once():
    fragments = [
        import_fragment("a_import", "P", ["X"], "a"), _init("a"),
        import_fragment("b_import", "P", ["X"], "b"), _init("b"),
    ]
    code = assemble(fragments, ["b", "a"], GenerationOptions(header=False))
    assert code == "from P import X\n\nb = X()\n\na = X()\n"
    assert code.count("from P import X") == 1


def test_imports_merge_per_package():
    fragments = [
        import_fragment("1", "P", ["Y"]),
        import_fragment("2", "Q", ["Z"]),
        import_fragment("3", "P", ["X", "Y"]),
        CodeFragment("raw", FragmentKind.IMPORT, "import os\nimport os"),
    ]
    assert merge_imports(fragments) == ["import os", "from P import X, Y", "from Q import Z"]


def test_priority_orders_fragments_inside_a_node():
    post = CodeFragment("n_post", FragmentKind.INITIALIZATION, "n.start()", priority=PRIORITY_POST_INIT, node_id="n")
    setup = CodeFragment("n_setup", FragmentKind.SETUP, "def helper(): ...", priority=PRIORITY_SETUP, node_id="n")
    orphan = CodeFragment("orphan", FragmentKind.OTHER, "print('done')", priority=0)
    ordered = order_fragments([orphan, post, _init("n"), setup], ["n"])
    assert [f.id for f in ordered] == ["n_setup", "n_init", "n_post", "orphan"]


def test_header_and_script_entrypoint():
    options = GenerationOptions(flavor="script", graph_name="demo")
    code = assemble([import_fragment("a_import", "P", ["X"], "a"), _init("a"), _init("b")], ["a", "b"],
                    options, ["langchain", "langchain-openai"])
    lines = code.splitlines()
    assert lines[0] == "# Generated by flow2chain from graph 'demo'."
    assert "# Requires: langchain, langchain-openai" in lines
    assert 'if __name__ == "__main__":' in lines
    assert code.rstrip().endswith('print(b.invoke({"input": question}))')


def test_module_flavor_has_no_entrypoint():
    code = assemble([_init("a")], ["a"], GenerationOptions())
    assert "__main__" not in code
    assert code.endswith("a = X()\n")
