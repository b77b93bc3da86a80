from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .assembly import assemble
from .context import GenerationContext, GenerationOptions
from .converters import default_registry
from .fragments import CodeFragment, CodeReference, FragmentKind
from .ir import Graph
from .placeholders import bind_fragments
from .registry import ConverterRegistry

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    code: str
    fragments: List[CodeFragment] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    deprecated: List[str] = field(default_factory=list)


def _produced_reference(fragments: List[CodeFragment]) -> Optional[CodeReference]:
    for frag in fragments:
        if frag.kind == FragmentKind.INITIALIZATION and frag.metadata.get("exports"):
            return CodeReference(frag.id, frag.metadata["exports"][0])
    return None


def convert_graph(graph: Graph, context: Optional[GenerationContext] = None,
                  registry: Optional[ConverterRegistry] = None) -> GenerationResult:
    """Run one full conversion of `graph`.

    Nothing is assembled unless every node converted, every placeholder
    bound and the binding graph is acyclic; any fault propagates.
    """
    if registry is None:
        registry = default_registry()
    if context is None:
        context = GenerationContext(graph=graph)
    elif context.graph is not graph:
        raise ValueError("GenerationContext was created for a different graph")
    resolver = context.resolver
    resolver.clear()
    context.produced.clear()

    fragments: List[CodeFragment] = []
    for node in graph.nodes:
        produced = registry.convert_node(node, context)
        ref = _produced_reference(produced)
        if ref is not None:
            context.record(node.id, ref)
        fragments.extend(produced)

    bind_fragments(fragments, context)
    order = resolver.topological_order()
    logger.debug("initialization order: %s", order)

    dependencies = registry.get_all_dependencies(graph.nodes)
    code = assemble(fragments, order, context.options, dependencies)
    return GenerationResult(
        code=code,
        fragments=fragments,
        order=order,
        dependencies=dependencies,
        deprecated=[n.id for n in registry.validate_nodes(graph.nodes).deprecated],
    )


def resolve_and_assemble(graph: Graph, context: Optional[GenerationContext] = None,
                         registry: Optional[ConverterRegistry] = None) -> str:
    return convert_graph(graph, context, registry).code


def new_context(graph: Graph, options: Optional[GenerationOptions] = None) -> GenerationContext:
    return GenerationContext(graph=graph, options=options or GenerationOptions())
