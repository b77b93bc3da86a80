from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .expr import Assign, render_statement, unresolved_leaves


class FragmentKind(str, Enum):
    IMPORT = "import"
    DECLARATION = "declaration"
    INITIALIZATION = "initialization"
    SETUP = "setup"
    OTHER = "other"


# Emission bands inside one node, ascending.
PRIORITY_IMPORT = 1
PRIORITY_EXTRA_IMPORT = 2
PRIORITY_STATE = 50
PRIORITY_SETUP = 75
PRIORITY_INIT = 100
PRIORITY_POST_INIT = 125


Content = Union[str, Assign, List[Union[str, Assign]]]


@dataclass
class CodeFragment:
    id: str
    kind: FragmentKind
    content: Content
    depends_on: List[str] = field(default_factory=list)
    priority: int = 0
    node_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_resolved(self) -> bool:
        return next(unresolved_leaves(self.content), None) is None

    def render(self, indent: int = 4, line_length: int = 88) -> str:
        statements = self.content if isinstance(self.content, list) else [self.content]
        return "\n".join(render_statement(s, indent, line_length) for s in statements)


@dataclass(frozen=True)
class CodeReference:
    fragment_id: str
    symbol: str


def import_fragment(fragment_id: str, package: str, symbols: Sequence[str],
                    node_id: Optional[str] = None, priority: int = PRIORITY_IMPORT) -> CodeFragment:
    names = list(dict.fromkeys(symbols))
    return CodeFragment(
        id=fragment_id,
        kind=FragmentKind.IMPORT,
        content=f"from {package} import {', '.join(names)}",
        depends_on=[package],
        priority=priority,
        node_id=node_id,
        metadata={"package": package, "symbols": names},
    )
