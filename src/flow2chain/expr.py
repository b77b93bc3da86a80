"""
Configuration trees for generated code.

Converters describe what they want emitted as ordinary Python values (str,
numbers, bools, None, lists, tuples, dicts) mixed with a handful of code
nodes:

    Symbol("llm1_llm")                     -> llm1_llm
    Call("ChatOpenAI", kwargs={...})       -> ChatOpenAI(model="gpt-4o", ...)
    Assign("agent", Call(...))             -> agent = ...
    Unresolved(RefKind.LLM, hint)          -> not renderable until bound

Unresolved leaves are the deferred cross-node bindings: they are replaced
by concrete values once every node of the run has registered itself.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List

from .errors import UnresolvedPlaceholderError
from .references import UNBOUND, Reference


class RefKind(str, Enum):
    LLM = "llm"
    TOOLS = "tools"
    MEMORY = "memory"
    SUBFLOW = "subflow"
    NODE = "node"


@dataclass(frozen=True)
class Unresolved:
    kind: RefKind
    hint: Reference = UNBOUND


@dataclass(frozen=True)
class Symbol:
    name: str


@dataclass
class Call:
    callee: str
    args: List[Any] = field(default_factory=list)
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Assign:
    target: str
    value: Any


# ── Tree walking ─────────────────────────────────────────────────────────────

def transform(value: Any, leaf: Callable[[Unresolved], Any]) -> Any:
    """Rebuild `value` with every Unresolved leaf replaced by `leaf(u)`."""
    if isinstance(value, Unresolved):
        return leaf(value)
    if isinstance(value, Assign):
        return Assign(value.target, transform(value.value, leaf))
    if isinstance(value, Call):
        return Call(
            value.callee,
            [transform(a, leaf) for a in value.args],
            {k: transform(v, leaf) for k, v in value.kwargs.items()},
        )
    if isinstance(value, list):
        return [transform(v, leaf) for v in value]
    if isinstance(value, tuple):
        return tuple(transform(v, leaf) for v in value)
    if isinstance(value, dict):
        return {k: transform(v, leaf) for k, v in value.items()}
    return value


def unresolved_leaves(value: Any) -> Iterator[Unresolved]:
    if isinstance(value, Unresolved):
        yield value
    elif isinstance(value, Assign):
        yield from unresolved_leaves(value.value)
    elif isinstance(value, Call):
        for a in value.args:
            yield from unresolved_leaves(a)
        for v in value.kwargs.values():
            yield from unresolved_leaves(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from unresolved_leaves(v)
    elif isinstance(value, dict):
        for v in value.values():
            yield from unresolved_leaves(v)


# ── Rendering ────────────────────────────────────────────────────────────────

def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _parts(value: Any):
    """(open, [(prefix, child), ...], close, trailing) for container-like values."""
    if isinstance(value, Call):
        items = [("", a) for a in value.args] + [(f"{k}=", v) for k, v in value.kwargs.items()]
        return value.callee + "(", items, ")", ""
    if isinstance(value, list):
        return "[", [("", v) for v in value], "]", ""
    if isinstance(value, tuple):
        return "(", [("", v) for v in value], ")", "," if len(value) == 1 else ""
    if isinstance(value, dict):
        return "{", [(_quote(str(k)) + ": ", v) for k, v in value.items()], "}", ""
    return None


def _flat(value: Any) -> str:
    if isinstance(value, Unresolved):
        raise UnresolvedPlaceholderError(value.kind.value)
    if isinstance(value, Symbol):
        return value.name
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    parts = _parts(value)
    if parts is None:
        return repr(value)
    opening, items, closing, trailing = parts
    return opening + ", ".join(p + _flat(c) for p, c in items) + trailing + closing


def render_value(value: Any, indent: int = 4, line_length: int = 88,
                 level: int = 0, used: int = 0) -> str:
    """Render a configuration tree as Python source.

    Containers and calls that do not fit in the remaining width are broken
    one item per line with a trailing comma.
    """
    flat = _flat(value)
    parts = _parts(value)
    if used + len(flat) <= line_length or parts is None or not parts[1]:
        return flat
    opening, items, closing, _ = parts
    pad = " " * (indent * (level + 1))
    lines = [
        pad + prefix + render_value(child, indent, line_length, level + 1, len(pad) + len(prefix)) + ","
        for prefix, child in items
    ]
    return opening + "\n" + "\n".join(lines) + "\n" + " " * (indent * level) + closing


def render_statement(stmt: Any, indent: int = 4, line_length: int = 88) -> str:
    if isinstance(stmt, str):
        return stmt
    if isinstance(stmt, Assign):
        head = f"{stmt.target} = "
        return head + render_value(stmt.value, indent, line_length, 0, len(head))
    return render_value(stmt, indent, line_length)
