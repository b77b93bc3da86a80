from __future__ import annotations
from typing import Any, Dict

from ..context import GenerationContext
from ..converter import Converter, as_number
from ..ir import Node


def _buffer_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {
        "memory_key": node.param("memoryKey", "chat_history"),
        "return_messages": True,
    }


def _window_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    config = _buffer_config(node, context)
    config["k"] = as_number(node.param("k"), 5, int)
    return config


CONVERTERS = [
    Converter(
        type_tag="bufferMemory", category="memory", role="memory",
        package="langchain.memory", class_name="ConversationBufferMemory",
        config=_buffer_config, dependencies=("langchain",),
    ),
    Converter(
        type_tag="bufferWindowMemory", category="memory", role="memory",
        package="langchain.memory", class_name="ConversationBufferWindowMemory",
        config=_window_config, dependencies=("langchain",),
    ),
]
