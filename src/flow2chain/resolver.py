"""
Run-scoped registry of node → variable bindings and their dependency graph.

One ReferenceResolver belongs to exactly one generation run. Converters
register the variable each node produces and the nodes it needs; once every
node has been converted the resolver answers two questions: "what variable
did node X become?" and "in which order must the nodes be initialised?".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import networkx as nx

from .errors import CyclicDependencyError

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


@dataclass(frozen=True)
class Binding:
    node_id: str
    variable_name: str
    role: str


class ReferenceResolver:
    def __init__(self) -> None:
        self._bindings: Dict[str, Binding] = {}
        self._deps = nx.DiGraph()

    # ── Registration ──────────────────────────────────────────────────────

    def register_node(self, node_id: str, variable_name: str, role: str) -> None:
        # dict keeps the position of the first registration; value is overwritten
        self._bindings[node_id] = Binding(node_id, variable_name, role)
        logger.debug("bound %s -> %s (%s)", node_id, variable_name, role)

    def add_dependency(self, from_id: str, to_id: str) -> None:
        """Record that `from_id` needs the result of `to_id`."""
        self._deps.add_edge(from_id, to_id)

    def clear(self) -> None:
        self._bindings.clear()
        self._deps.clear()

    # ── Lookup ────────────────────────────────────────────────────────────

    def resolve_reference(self, node_id: str) -> Optional[str]:
        binding = self._bindings.get(node_id)
        return binding.variable_name if binding else None

    def is_registered(self, node_id: str) -> bool:
        return node_id in self._bindings

    def get_binding(self, node_id: str) -> Optional[Binding]:
        return self._bindings.get(node_id)

    def bindings(self) -> List[Binding]:
        return list(self._bindings.values())

    def get_nodes_by_role(self, role: str) -> List[Binding]:
        return [b for b in self._bindings.values() if b.role == role]

    def dependencies_of(self, node_id: str) -> List[str]:
        if node_id not in self._deps:
            return []
        return list(self._deps.successors(node_id))

    def reaches(self, node_id: str, target: str) -> bool:
        """True if `node_id` needs `target`, directly or through other nodes."""
        if node_id not in self._deps or target not in self._deps:
            return False
        return nx.has_path(self._deps, node_id, target)

    # ── Ordering ──────────────────────────────────────────────────────────

    def _walk(self, start: str, state: Dict[str, int], path: List[str], emit: List[str]) -> None:
        """Depth-first postorder from `start`, dependencies first.

        `state` maps node ids to in-progress/done; revisiting an in-progress
        node means the current path closed a cycle.
        """
        mark = state.get(start)
        if mark == _DONE:
            return
        if mark == _IN_PROGRESS:
            raise CyclicDependencyError(path[path.index(start):] + [start])
        state[start] = _IN_PROGRESS
        path.append(start)
        for dep in self.dependencies_of(start):
            self._walk(dep, state, path, emit)
        path.pop()
        state[start] = _DONE
        if start in self._bindings:
            emit.append(start)

    def has_circular_dependency(self, node_id: str) -> bool:
        try:
            self._walk(node_id, {}, [], [])
        except CyclicDependencyError:
            return True
        return False

    def topological_order(self) -> List[str]:
        """Registered node ids, every dependency before its dependents.

        Unconstrained nodes keep their registration order.
        """
        state: Dict[str, int] = {}
        order: List[str] = []
        for node_id in self._bindings:
            self._walk(node_id, state, [], order)
        return order

    def initialization_order(self) -> List[Binding]:
        return [self._bindings[nid] for nid in self.topological_order()]
