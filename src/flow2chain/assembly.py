"""
Final emission: ordered, import-deduplicated Python source.

    #  header
    from langchain_openai import ChatOpenAI          ← all imports, merged
    from langchain.agents import AgentExecutor, ...

    llm1_llm = ChatOpenAI(...)                       ← node blocks in
                                                       topological order,
    agent1_agent_runnable = create_tool_calling_...    fragments by priority
    agent1_agent = AgentExecutor(...)
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Sequence

from .context import GenerationOptions
from .fragments import CodeFragment, FragmentKind


def order_fragments(fragments: Sequence[CodeFragment], order: Sequence[str]) -> List[CodeFragment]:
    """Group by owning node in `order`, then ascending priority.

    Ties keep emission order; fragments whose node is not in `order` follow
    in the order they were produced.
    """
    rank = {nid: i for i, nid in enumerate(order)}
    tail = len(order)
    indexed = list(enumerate(fragments))

    def key(item):
        pos, frag = item
        node_rank = rank.get(frag.node_id, tail)
        return (node_rank, pos if node_rank == tail else 0, frag.priority, pos)

    return [frag for _, frag in sorted(indexed, key=key)]


def merge_imports(fragments: Sequence[CodeFragment]) -> List[str]:
    """One statement per package; raw import text deduplicated line by line."""
    packages: "OrderedDict[str, List[str]]" = OrderedDict()
    raw: List[str] = []
    for frag in fragments:
        if frag.kind != FragmentKind.IMPORT:
            continue
        package = frag.metadata.get("package")
        if package:
            names = packages.setdefault(package, [])
            for sym in frag.metadata.get("symbols", []):
                if sym not in names:
                    names.append(sym)
            continue
        for line in frag.render().splitlines():
            if line.strip() and line not in raw:
                raw.append(line)
    lines = [f"from {pkg} import {', '.join(sorted(names))}" for pkg, names in packages.items() if names]
    return raw + [line for line in lines if line not in raw]


def _header(options: GenerationOptions, dependencies: Sequence[str]) -> List[str]:
    lines = [
        f"# Generated by flow2chain from graph '{options.graph_name}'.",
        "# Do not edit by hand; re-run the conversion to regenerate.",
    ]
    if dependencies:
        lines.append("# Requires: " + ", ".join(dependencies))
    return lines


def _entrypoint(var: str) -> List[str]:
    return [
        'if __name__ == "__main__":',
        "    import sys",
        "",
        '    question = " ".join(sys.argv[1:]) or input("> ")',
        f'    print({var}.invoke({{"input": question}}))',
    ]


def assemble(fragments: Sequence[CodeFragment], order: Sequence[str],
             options: GenerationOptions, dependencies: Sequence[str] = ()) -> str:
    ordered = order_fragments(fragments, order)
    sections: List[List[str]] = []
    if options.header:
        sections.append(_header(options, dependencies))

    imports = merge_imports(ordered)
    if imports:
        sections.append(imports)

    blocks: Dict[str, List[str]] = OrderedDict()
    for frag in ordered:
        if frag.kind == FragmentKind.IMPORT:
            continue
        blocks.setdefault(frag.node_id or frag.id, []).append(frag.render(options.indent, options.line_length))
    for body in blocks.values():
        sections.append(body)

    if options.flavor == "script":
        exports = [f.metadata["exports"][0] for f in ordered
                   if f.kind == FragmentKind.INITIALIZATION and f.metadata.get("exports")]
        if exports:
            sections.append(_entrypoint(exports[-1]))

    return "\n\n".join("\n".join(s) for s in sections) + "\n"
