from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import networkx as nx
from pydantic import ValidationError

from .converters import default_registry
from .ir import Graph
from .loader import load_graph_data
from .registry import ConverterRegistry


def validate_graph_data(data: Dict[str, Any], registry: Optional[ConverterRegistry] = None) -> Tuple[bool, List[str]]:
    """Pre-flight report on a raw graph mapping: structure, ports, cycles, converter support."""
    registry = registry or default_registry()
    messages: List[str] = []
    ok = True

    # 1) Model: unique ids, edges between existing nodes
    try:
        g = Graph(**data)
    except ValidationError as e:
        for err in e.errors():
            messages.append(f"ERR: {err['msg']}")
        return False, messages
    messages.append("OK: Node IDs are unique and all edges reference existing nodes.")

    # 2) Declared ports, when a node declares any
    node_map = g.node_map()
    port_ok = True
    for e in g.edges:
        outs = {p.id for p in node_map[e.source].outputs}
        ins = {p.id for p in node_map[e.target].inputs}
        if e.source_output and outs and e.source_output not in outs:
            port_ok = False
            messages.append(f"ERR: Edge from {e.source}.{e.source_output} not an output on that node.")
        if e.target_input and ins and e.target_input not in ins:
            port_ok = False
            messages.append(f"ERR: Edge to {e.target}.{e.target_input} not an input on that node.")
    if port_ok:
        messages.append("OK: All edge endpoints correspond to declared inputs/outputs.")
    ok = ok and port_ok

    # 3) Acyclic check
    try:
        cycle = nx.find_cycle(g.to_networkx())
        ok = False
        messages.append("ERR: Cycle detected in the graph: " + " -> ".join([u for u, _ in cycle] + [cycle[0][0]]))
    except nx.NetworkXNoCycle:
        messages.append("OK: Graph is acyclic.")

    # 4) Converter support
    report = registry.validate_nodes(g.nodes)
    for node in report.unsupported:
        ok = False
        hint = registry.suggest(node.type)
        msg = f"ERR: No converter for node '{node.id}' of type '{node.type}'."
        if hint:
            msg += f" Did you mean: {', '.join(hint)}?"
        messages.append(msg)
    for node in report.deprecated:
        conv = registry.get_converter(node.type)
        msg = f"WARN: Node '{node.id}' uses deprecated type '{node.type}'."
        if conv is not None and conv.replacement:
            msg += f" Use '{conv.replacement}' instead."
        messages.append(msg)
    if report.valid:
        messages.append(f"OK: All {len(g.nodes)} node types have a converter.")

    return ok, messages


def validate_graph_from_file(path: Path, registry: Optional[ConverterRegistry] = None) -> Tuple[bool, List[str]]:
    return validate_graph_data(load_graph_data(path), registry)
