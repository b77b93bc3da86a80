from __future__ import annotations
from typing import Dict, List

from .converter import Converter
from .recipes import agents, memory, models, tools
from .registry import ConverterRegistry

BUILTIN_CONVERTERS: List[Converter] = [
    *models.CONVERTERS,
    *memory.CONVERTERS,
    *tools.CONVERTERS,
    *agents.CONVERTERS,
]

DEFAULT_ALIASES: Dict[str, str] = {
    # llm
    "gpt": "chatOpenAI",
    "openai": "openAI",
    "claude": "chatAnthropic",
    "anthropic": "chatAnthropic",
    "ollama": "chatOllama",
    # prompt
    "chatPrompt": "chatPromptTemplate",
    "prompt": "promptTemplate",
    # memory
    "buffer": "bufferMemory",
    "window": "bufferWindowMemory",
    # tool
    "custom": "customTool",
    "search": "tavilySearch",
    "ddg": "duckDuckGoSearch",
    # chain
    "llm_chain": "llmChain",
    "conversation_chain": "conversationChain",
    # agent / subflow
    "agentNode": "toolAgent",
    "toolCallingAgent": "toolAgent",
    "subflow": "sequentialSubflow",
}


def default_registry() -> ConverterRegistry:
    """A fresh registry holding every built-in converter and alias."""
    registry = ConverterRegistry()
    for converter in BUILTIN_CONVERTERS:
        registry.register(converter)
    for alias, target in DEFAULT_ALIASES.items():
        registry.register_alias(alias, target)
    return registry
