from __future__ import annotations
import re
import textwrap
from typing import Any, Dict

from ..context import GenerationContext
from ..converter import Converter, as_number
from ..expr import Symbol
from ..ir import Node


def _tool_name(node: Node) -> str:
    raw = node.param("name") or node.label or node.id
    return re.sub(r"[^0-9a-zA-Z_]+", "_", str(raw)).strip("_").lower() or "tool"


def _custom_setup(node: Node, context: GenerationContext, var: str) -> str:
    body = node.param("func")
    if not isinstance(body, str) or not body.strip():
        body = "return input"
    pad = " " * context.options.indent
    return f"def {var}_func(input: str) -> str:\n" + textwrap.indent(textwrap.dedent(body).strip(), pad)


def _custom_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {
        "name": _tool_name(node),
        "description": node.param("description", f"Custom tool {node.label or node.id}"),
        "func": Symbol(f"{context.resolver.resolve_reference(node.id)}_func"),
    }


def _tavily_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {"max_results": as_number(node.param("maxResults"), 5, int)}


CONVERTERS = [
    Converter(
        type_tag="customTool", category="tool", role="tool",
        package="langchain_core.tools", class_name="Tool",
        setup=_custom_setup, config=_custom_config,
    ),
    Converter(
        type_tag="tavilySearch", category="tool", role="tool",
        package="langchain_community.tools.tavily_search", class_name="TavilySearchResults",
        config=_tavily_config, dependencies=("langchain-community", "tavily-python"),
    ),
    Converter(
        type_tag="duckDuckGoSearch", category="tool", role="tool",
        package="langchain_community.tools", class_name="DuckDuckGoSearchRun",
        dependencies=("duckduckgo-search", "langchain-community"),
    ),
]
