"""
Converters and the engine that drives them.

A Converter is a plain record: a type tag, a role, the class it
instantiates and a few optional hook functions. `run_converter` is the one
engine every converter goes through. It names the node's variable,
registers the node and its dependencies with the run's resolver, then
asks the hooks for the pieces of code it lays out in fixed priority bands.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .context import GenerationContext
from .expr import Assign, Call, RefKind, Unresolved
from .fragments import (
    PRIORITY_EXTRA_IMPORT, PRIORITY_INIT, PRIORITY_POST_INIT, PRIORITY_SETUP, PRIORITY_STATE,
    CodeFragment, Content, FragmentKind, import_fragment,
)
from .ir import Node
from .references import ById, Unbound, parse_reference, reference_ids
from .resolver import ReferenceResolver

# Parameters whose value may point at another node of the graph.
REFERENCE_PARAMS = ("llm", "tools", "memory", "chain", "prompt", "vectorStore", "subflowId")

ConfigHook = Callable[[Node, GenerationContext], Dict[str, Any]]
CodeHook = Callable[[Node, GenerationContext, str], Optional[Content]]
InitHook = Callable[[Node, GenerationContext, str, Dict[str, Any]], Content]


def _no_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {}


def _no_code(node: Node, context: GenerationContext, var: str) -> Optional[Content]:
    return None


def _no_imports(node: Node) -> Sequence[Tuple[str, Sequence[str]]]:
    return ()


def _no_state(node: Node) -> Dict[str, Any]:
    return {}


@dataclass(frozen=True)
class Converter:
    type_tag: str
    category: str
    role: str
    package: str
    class_name: str
    config: ConfigHook = _no_config
    imports: Tuple[str, ...] = ()
    extra_imports: Callable[[Node], Sequence[Tuple[str, Sequence[str]]]] = _no_imports
    state: Callable[[Node], Dict[str, Any]] = _no_state
    setup: CodeHook = _no_code
    initialize: Optional[InitHook] = None
    post_init: CodeHook = _no_code
    accepts: Optional[Callable[[Node], bool]] = None
    dependencies: Tuple[str, ...] = ("langchain-core",)
    supported_versions: Tuple[str, ...] = ("*",)
    deprecated: bool = False
    replacement: Optional[str] = None

    def can_convert(self, node: Node, resolved_type: Optional[str] = None) -> bool:
        """`resolved_type` is node.type after alias resolution, when known."""
        if (resolved_type or node.type) != self.type_tag:
            return False
        return self.accepts is None or bool(self.accepts(node))

    def convert(self, node: Node, context: GenerationContext) -> List[CodeFragment]:
        return run_converter(self, node, context)


# ── Naming ───────────────────────────────────────────────────────────────────

def variable_name(node: Node, role: str, resolver: ReferenceResolver) -> str:
    base = re.sub(r"[^0-9a-zA-Z]+", "_", node.id).strip("_").lower() or "node"
    if base[0].isdigit():
        base = "n_" + base
    name = f"{base}_{role}"
    taken = {b.variable_name for b in resolver.bindings() if b.node_id != node.id}
    candidate, n = name, 2
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    return candidate


# ── Helpers for recipe hooks ─────────────────────────────────────────────────

def as_number(value: Any, default: Any, cast: Callable[[Any], Any] = float) -> Any:
    """`cast(value)`, or `default` when the value is missing or malformed."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


def as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return default


def placeholder(node: Node, kind: RefKind, param: Optional[str] = None) -> Unresolved:
    """Deferred reference for `kind`, hinted by the node's own `param` value."""
    param = param or {RefKind.SUBFLOW: "subflowId"}.get(kind, kind.value)
    return Unresolved(kind, parse_reference(node.param(param)))


def wired_or(node: Node, context: GenerationContext, port: str, kind: RefKind,
             param: Optional[str] = None) -> Unresolved:
    """Deferred reference for `kind`, always bound after every node is registered.

    The node's own parameter wins; the node wired into `port` is the hint
    only when the parameter is absent.
    """
    leaf = placeholder(node, kind, param)
    if isinstance(leaf.hint, Unbound):
        sources = [e.source for e in context.graph.incoming(node.id) if e.target_input == port]
        if sources:
            leaf = Unresolved(kind, ById(sources[0]))
    return leaf


def node_ref(node_id: str) -> Unresolved:
    return Unresolved(RefKind.NODE, parse_reference(node_id))


def track_dependencies(node: Node, context: GenerationContext) -> None:
    resolver = context.resolver
    for edge in context.graph.incoming(node.id):
        resolver.add_dependency(node.id, edge.source)
    for name in REFERENCE_PARAMS:
        for nid in reference_ids(parse_reference(node.param(name))):
            if nid != node.id and context.graph.has_node(nid):
                resolver.add_dependency(node.id, nid)


# ── Engine ───────────────────────────────────────────────────────────────────

def run_converter(conv: Converter, node: Node, context: GenerationContext) -> List[CodeFragment]:
    var = variable_name(node, conv.role, context.resolver)
    context.resolver.register_node(node.id, var, conv.role)
    track_dependencies(node, context)

    fragments = [
        import_fragment(f"{node.id}_import", conv.package, conv.imports or (conv.class_name,), node.id),
    ]
    for i, (package, symbols) in enumerate(conv.extra_imports(node), 1):
        fragments.append(import_fragment(
            f"{node.id}_extra_import_{i}", package, symbols, node.id, PRIORITY_EXTRA_IMPORT,
        ))

    state = conv.state(node)
    if state:
        fragments.append(CodeFragment(
            id=f"{node.id}_state",
            kind=FragmentKind.DECLARATION,
            content=Assign(f"{var}_state", state),
            depends_on=[],
            priority=PRIORITY_STATE,
            node_id=node.id,
            metadata={"exports": [f"{var}_state"]},
        ))

    setup = conv.setup(node, context, var)
    if setup:
        fragments.append(CodeFragment(
            id=f"{node.id}_setup",
            kind=FragmentKind.SETUP,
            content=setup,
            depends_on=[f"{node.id}_import"],
            priority=PRIORITY_SETUP,
            node_id=node.id,
        ))

    config = conv.config(node, context)
    if conv.initialize is not None:
        init = conv.initialize(node, context, var, config)
    else:
        init = Assign(var, Call(conv.class_name, kwargs=config))
    fragments.append(CodeFragment(
        id=f"{node.id}_init",
        kind=FragmentKind.INITIALIZATION,
        content=init,
        depends_on=[f"{node.id}_import"] + ([f"{node.id}_setup"] if setup else []),
        priority=PRIORITY_INIT,
        node_id=node.id,
        metadata={"exports": [var], "role": conv.role},
    ))

    post = conv.post_init(node, context, var)
    if post:
        fragments.append(CodeFragment(
            id=f"{node.id}_post_init",
            kind=FragmentKind.INITIALIZATION,
            content=post,
            depends_on=[f"{node.id}_init"],
            priority=PRIORITY_POST_INIT,
            node_id=node.id,
        ))
    return fragments
