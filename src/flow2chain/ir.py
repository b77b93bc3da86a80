from __future__ import annotations
from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Literal, Optional
import networkx as nx


class Port(BaseModel):
    id: str
    label: str = ""
    direction: Literal["input", "output"] = "input"
    type: str = "any"      # data-type tag, e.g. "BaseChatModel"
    optional: bool = False


class Parameter(BaseModel):
    name: str
    value: Any = None
    type: str = "any"      # declared type, e.g. "string" | "number" | "json"


class Node(BaseModel):
    id: str
    type: str
    label: str = ""
    category: str = ""
    inputs: List[Port] = Field(default_factory=list)
    outputs: List[Port] = Field(default_factory=list)
    parameters: List[Parameter] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def param(self, name: str, default: Any = None) -> Any:
        """Value of parameter `name`, or `default` when it is missing or None."""
        for p in self.parameters:
            if p.name == name:
                return default if p.value is None else p.value
        return default

    def has_param(self, name: str) -> bool:
        return any(p.name == name for p in self.parameters)


class Edge(BaseModel):
    source: str
    target: str
    source_output: str = ""
    target_input: str = ""


class Graph(BaseModel):
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_integrity(self) -> "Graph":
        seen = set()
        for n in self.nodes:
            if n.id in seen:
                raise ValueError(f"Duplicate node id '{n.id}'")
            seen.add(n.id)
        for e in self.edges:
            missing = [x for x in (e.source, e.target) if x not in seen]
            if missing:
                raise ValueError(f"Edge {e.source}->{e.target} references missing node(s): {', '.join(missing)}")
        return self

    def node_map(self) -> Dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def incoming(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.target == node_id]

    def outgoing(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id]

    def to_networkx(self) -> nx.DiGraph:
        nxg = nx.DiGraph()
        nxg.add_nodes_from([n.id for n in self.nodes])
        for e in self.edges:
            nxg.add_edge(e.source, e.target, label=f"{e.source_output}->{e.target_input}")
        return nxg
