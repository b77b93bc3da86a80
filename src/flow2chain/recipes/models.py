"""Chat models and prompt templates."""

from __future__ import annotations
from typing import Any, Dict

from ..context import GenerationContext
from ..converter import Converter, as_bool, as_number
from ..expr import Assign, Call
from ..ir import Node


def _model_kwargs(node: Node, default_model: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "model": node.param("modelName", node.param("model", default_model)),
        "temperature": as_number(node.param("temperature"), 0.7),
    }
    max_tokens = as_number(node.param("maxTokens"), None, int)
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    if as_bool(node.param("streaming")):
        kwargs["streaming"] = True
    return kwargs


def _openai_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    kwargs = _model_kwargs(node, "gpt-4o-mini")
    base_url = node.param("basePath")
    if base_url:
        kwargs["base_url"] = base_url
    return kwargs


def _anthropic_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return _model_kwargs(node, "claude-3-5-sonnet-latest")


def _ollama_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    kwargs = _model_kwargs(node, "llama3.1")
    kwargs.pop("max_tokens", None)
    kwargs["base_url"] = node.param("baseUrl", "http://localhost:11434")
    return kwargs


def _completion_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return _model_kwargs(node, "gpt-3.5-turbo-instruct")


def _chat_prompt(node: Node, context: GenerationContext, var: str, config: Dict[str, Any]) -> Assign:
    messages = [("system", node.param("systemMessagePrompt", "You are a helpful assistant."))]
    messages.append(("human", node.param("humanMessagePrompt", "{input}")))
    return Assign(var, Call("ChatPromptTemplate.from_messages", args=[messages]))


def _plain_prompt(node: Node, context: GenerationContext, var: str, config: Dict[str, Any]) -> Assign:
    return Assign(var, Call("PromptTemplate.from_template", args=[node.param("template", "{input}")]))


CONVERTERS = [
    Converter(
        type_tag="chatOpenAI", category="llm", role="llm",
        package="langchain_openai", class_name="ChatOpenAI",
        config=_openai_config, dependencies=("langchain-openai",),
    ),
    Converter(
        type_tag="chatAnthropic", category="llm", role="llm",
        package="langchain_anthropic", class_name="ChatAnthropic",
        config=_anthropic_config, dependencies=("langchain-anthropic",),
    ),
    Converter(
        type_tag="chatOllama", category="llm", role="llm",
        package="langchain_ollama", class_name="ChatOllama",
        config=_ollama_config, dependencies=("langchain-ollama",),
    ),
    Converter(
        type_tag="openAI", category="llm", role="llm",
        package="langchain_openai", class_name="OpenAI",
        config=_completion_config, dependencies=("langchain-openai",),
        deprecated=True, replacement="chatOpenAI",
    ),
    Converter(
        type_tag="chatPromptTemplate", category="prompt", role="prompt",
        package="langchain_core.prompts", class_name="ChatPromptTemplate",
        initialize=_chat_prompt,
    ),
    Converter(
        type_tag="promptTemplate", category="prompt", role="prompt",
        package="langchain_core.prompts", class_name="PromptTemplate",
        initialize=_plain_prompt,
    ),
]
