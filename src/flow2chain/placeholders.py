"""
Second phase of code generation: bind every Unresolved leaf.

Runs once all nodes of a run have registered themselves and their edges
with the resolver, so a leaf can bind to a node that was converted after
the one that produced it.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .context import GenerationContext
from .errors import UnresolvedReferenceError
from .expr import RefKind, Symbol, Unresolved, transform
from .fragments import CodeFragment
from .references import describe, reference_ids
from .resolver import Binding, ReferenceResolver

logger = logging.getLogger(__name__)


def _first_bound(ids: List[str], resolver: ReferenceResolver) -> Optional[Binding]:
    for nid in ids:
        binding = resolver.get_binding(nid)
        if binding:
            return binding
    return None


def _candidates(bindings: List[Binding], owner: Optional[str], resolver: ReferenceResolver) -> List[Binding]:
    # a fallback must never make the owner depend on something that needs it
    if owner is None:
        return list(bindings)
    return [b for b in bindings if b.node_id != owner and not resolver.reaches(b.node_id, owner)]


def _use(binding: Binding, owner: Optional[str], context: GenerationContext) -> Symbol:
    # whatever a node ends up bound to must be initialised before it
    if owner is not None and owner != binding.node_id:
        context.resolver.add_dependency(owner, binding.node_id)
    return Symbol(binding.variable_name)


def resolve_llm(leaf: Unresolved, owner: Optional[str], context: GenerationContext) -> Symbol:
    resolver = context.resolver
    bound = _first_bound(reference_ids(leaf.hint), resolver)
    if bound:
        return _use(bound, owner, context)
    llms = _candidates(resolver.get_nodes_by_role("llm"), owner, resolver)
    if llms:
        return _use(llms[0], owner, context)
    for chain in _candidates(resolver.get_nodes_by_role("chain"), owner, resolver):
        if "llm" in chain.variable_name or "model" in chain.variable_name:
            return _use(chain, owner, context)
    return Symbol(context.options.fallback_llm)


def resolve_tools(leaf: Unresolved, owner: Optional[str], context: GenerationContext) -> List[Symbol]:
    resolver = context.resolver
    picked: List[Binding] = []
    for nid in reference_ids(leaf.hint):
        binding = resolver.get_binding(nid)
        if binding and binding not in picked:
            picked.append(binding)
    if owner is not None:
        deps = set(resolver.dependencies_of(owner))
        for b in resolver.bindings():
            if b.node_id in deps and b.role == "tool" and b not in picked:
                picked.append(b)
    return [_use(b, owner, context) for b in picked]


def resolve_memory(leaf: Unresolved, owner: Optional[str], context: GenerationContext) -> Optional[Symbol]:
    resolver = context.resolver
    ids = reference_ids(leaf.hint)
    bound = resolver.get_binding(ids[0]) if ids else None
    if bound:
        return _use(bound, owner, context)
    memories = _candidates(resolver.get_nodes_by_role("memory"), owner, resolver)
    if memories:
        return _use(memories[0], owner, context)
    return None


def resolve_subflow(leaf: Unresolved, owner: Optional[str], context: GenerationContext) -> List[Symbol]:
    resolver = context.resolver
    wanted = reference_ids(leaf.hint)
    for b in resolver.get_nodes_by_role("subflow"):
        if b.node_id in wanted and b.node_id != owner:
            return [_use(b, owner, context)]
    return [_use(b, owner, context) for b in _candidates(resolver.get_nodes_by_role("agent"), owner, resolver)]


def resolve_node(leaf: Unresolved, owner: Optional[str], context: GenerationContext) -> Optional[Symbol]:
    bound = _first_bound(reference_ids(leaf.hint), context.resolver)
    if bound:
        return _use(bound, owner, context)
    if context.options.strict_references:
        raise UnresolvedReferenceError(owner, describe(leaf.hint))
    logger.warning("node %s: reference %s is unbound, emitting None", owner, describe(leaf.hint))
    return None


_RESOLVERS = {
    RefKind.LLM: resolve_llm,
    RefKind.TOOLS: resolve_tools,
    RefKind.MEMORY: resolve_memory,
    RefKind.SUBFLOW: resolve_subflow,
    RefKind.NODE: resolve_node,
}


def bind_placeholders(tree: Any, owner: Optional[str], context: GenerationContext) -> Any:
    """Return `tree` with every Unresolved leaf bound. Bound values are left as they are."""
    return transform(tree, lambda leaf: _RESOLVERS[leaf.kind](leaf, owner, context))


def bind_fragments(fragments: List[CodeFragment], context: GenerationContext) -> List[CodeFragment]:
    for frag in fragments:
        if not frag.is_resolved:
            frag.content = bind_placeholders(frag.content, frag.node_id, context)
    return fragments
