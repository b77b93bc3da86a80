"""
Cross-node references found in node parameters.

A parameter that points at another node comes in a few shapes: a bare node
id, a ``{"nodeId": ...}`` record, or a list of either. ``parse_reference``
turns any of them into one ``Reference`` value and ``reference_ids`` is the
single place that flattens a reference back into node ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Tuple, Union


@dataclass(frozen=True)
class Unbound:
    pass


@dataclass(frozen=True)
class ById:
    node_id: str


@dataclass(frozen=True)
class ByObject:
    node_id: str
    extra: Tuple[Tuple[str, Any], ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class ByList:
    items: Tuple["Reference", ...] = ()


Reference = Union[Unbound, ById, ByObject, ByList]

UNBOUND = Unbound()


def parse_reference(raw: Any) -> Reference:
    if raw is None:
        return UNBOUND
    if isinstance(raw, str):
        raw = raw.strip()
        return ById(raw) if raw else UNBOUND
    if isinstance(raw, dict):
        node_id = raw.get("nodeId")
        if isinstance(node_id, str) and node_id:
            extra = tuple((k, v) for k, v in raw.items() if k != "nodeId")
            return ByObject(node_id, extra)
        return UNBOUND
    if isinstance(raw, (list, tuple)):
        items = tuple(r for r in (parse_reference(x) for x in raw) if not isinstance(r, Unbound))
        return ByList(items) if items else UNBOUND
    return UNBOUND


def reference_ids(ref: Reference) -> List[str]:
    """Node ids named by `ref`, in order, without duplicates."""
    if isinstance(ref, Unbound):
        return []
    if isinstance(ref, (ById, ByObject)):
        return [ref.node_id]
    if isinstance(ref, ByList):
        out: List[str] = []
        for item in ref.items:
            for nid in reference_ids(item):
                if nid not in out:
                    out.append(nid)
        return out
    raise TypeError(f"Not a reference: {ref!r}")


def describe(ref: Reference) -> str:
    ids = reference_ids(ref)
    if not ids:
        return "<unbound>"
    return ids[0] if len(ids) == 1 else "[" + ", ".join(ids) + "]"

