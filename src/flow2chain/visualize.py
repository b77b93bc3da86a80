from typing import Optional
from .context import GenerationContext
from .ir import Graph
from .pipeline import convert_graph
from .registry import ConverterRegistry


def ascii_plan(graph: Graph, registry: Optional[ConverterRegistry] = None) -> str:
    """Initialisation plan of a converted graph: variable, role and what each node waits for."""
    ctx = GenerationContext(graph=graph)
    convert_graph(graph, ctx, registry)
    resolver = ctx.resolver
    node_map = graph.node_map()

    lines = ["# ASCII Plan (initialization order)"]
    for i, b in enumerate(resolver.initialization_order(), 1):
        node = node_map.get(b.node_id)
        kind = node.type if node else "?"
        lines.append(f"{i:02d}. {b.node_id} [{kind}] -> {b.variable_name} ({b.role})")
        for dep in resolver.dependencies_of(b.node_id):
            var = resolver.resolve_reference(dep) or "<unbound>"
            lines.append(f"    └─◀ {dep}  ({var})")
    return "\n".join(lines)
