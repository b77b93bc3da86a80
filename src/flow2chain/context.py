from __future__ import annotations
from pathlib import Path
from typing import Callable, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .fragments import CodeReference
from .ir import Graph
from .resolver import ReferenceResolver

PortLookup = Callable[[str, str], Optional[CodeReference]]


class GenerationOptions(BaseModel):
    flavor: Literal["module", "script"] = "module"
    indent: int = Field(4, ge=1, le=8)
    line_length: int = Field(88, ge=20)
    header: bool = True
    graph_name: str = "flow"
    fallback_llm: str = "defaultLLM"
    strict_references: bool = True

    @classmethod
    def from_file(cls, path: Path, **overrides) -> "GenerationOptions":
        data = yaml.safe_load(Path(path).read_text()) or {}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


class GenerationContext(BaseModel):
    """Everything one conversion run shares with the converters.

    The resolver is owned by this context and must never be shared with
    another run. `produced` is written by the run as nodes are converted;
    converters only read it through `reference_for`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    graph: Graph
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    resolver: ReferenceResolver = Field(default_factory=ReferenceResolver)
    produced: Dict[str, CodeReference] = Field(default_factory=dict)
    port_lookup: Optional[PortLookup] = None

    def reference_for(self, node_id: str, port_id: str) -> Optional[CodeReference]:
        """What the node wired into `node_id`'s input `port_id` has produced so far."""
        if self.port_lookup is not None:
            return self.port_lookup(node_id, port_id)
        for edge in self.graph.incoming(node_id):
            if edge.target_input == port_id and edge.source in self.produced:
                return self.produced[edge.source]
        return None

    def record(self, node_id: str, ref: CodeReference) -> None:
        self.produced[node_id] = ref
