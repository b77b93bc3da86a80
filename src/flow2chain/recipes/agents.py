"""Agents, chains and subflows: the nodes that consume other nodes."""

from __future__ import annotations
from typing import Any, Dict, List

from ..context import GenerationContext
from ..converter import Converter, as_bool, as_number, node_ref, placeholder, wired_or
from ..expr import Assign, Call, RefKind, Symbol
from ..ir import Node
from ..references import reference_ids, parse_reference


def _prompt_source(node: Node, context: GenerationContext) -> Any:
    """A wired or referenced prompt node, if the agent has one."""
    ids = [nid for nid in reference_ids(parse_reference(node.param("prompt"))) if context.graph.has_node(nid)]
    if ids:
        return node_ref(ids[0])
    for edge in context.graph.incoming(node.id):
        if edge.target_input == "prompt":
            return node_ref(edge.source)
    return None


# ── Tool-calling agent ───────────────────────────────────────────────────────

def _agent_state(node: Node) -> Dict[str, Any]:
    state = node.param("state")
    return dict(state) if isinstance(state, dict) else {}


def _agent_setup(node: Node, context: GenerationContext, var: str) -> List[Assign]:
    prompt = _prompt_source(node, context)
    statements: List[Assign] = []
    if prompt is None:
        system = node.param("systemMessage", "You are a helpful assistant.")
        statements.append(Assign(f"{var}_prompt", Call("ChatPromptTemplate.from_messages", args=[[
            ("system", system),
            Call("MessagesPlaceholder", args=["chat_history"], kwargs={"optional": True}),
            ("human", "{input}"),
            Call("MessagesPlaceholder", args=["agent_scratchpad"]),
        ]])))
        prompt = Symbol(f"{var}_prompt")
    statements.append(Assign(f"{var}_runnable", Call("create_tool_calling_agent", kwargs={
        "llm": wired_or(node, context, "model", RefKind.LLM),
        "tools": placeholder(node, RefKind.TOOLS),
        "prompt": prompt,
    })))
    return statements


def _agent_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {
        "tools": placeholder(node, RefKind.TOOLS),
        "memory": wired_or(node, context, "memory", RefKind.MEMORY),
        "max_iterations": as_number(node.param("maxIterations"), 10, int),
        "verbose": as_bool(node.param("verbose")),
        "handle_parsing_errors": as_bool(node.param("handleParsingErrors"), True),
        "return_intermediate_steps": as_bool(node.param("returnIntermediateSteps")),
    }


def _agent_init(node: Node, context: GenerationContext, var: str, config: Dict[str, Any]) -> Assign:
    return Assign(var, Call("AgentExecutor", kwargs={"agent": Symbol(f"{var}_runnable"), **config}))


# ── Chains ───────────────────────────────────────────────────────────────────

def _conversation_config(node: Node, context: GenerationContext) -> Dict[str, Any]:
    return {
        "llm": wired_or(node, context, "model", RefKind.LLM),
        "memory": wired_or(node, context, "memory", RefKind.MEMORY),
        "verbose": as_bool(node.param("verbose")),
    }


def _lcel_chain(node: Node, context: GenerationContext, var: str, config: Dict[str, Any]) -> Assign:
    prompt = _prompt_source(node, context)
    if prompt is None:
        prompt = Call("PromptTemplate.from_template", args=[node.param("template", "{input}")])
    steps = [prompt, wired_or(node, context, "model", RefKind.LLM)]
    if as_bool(node.param("parseOutput"), True):
        steps.append(Call("StrOutputParser"))
    return Assign(var, Call("RunnableSequence", args=steps))


def _lcel_imports(node: Node):
    return [
        ("langchain_core.output_parsers", ["StrOutputParser"]),
        ("langchain_core.prompts", ["PromptTemplate"]),
    ]


# ── Subflows ─────────────────────────────────────────────────────────────────

def _subflow_setup(node: Node, context: GenerationContext, var: str) -> Assign:
    return Assign(f"{var}_steps", placeholder(node, RefKind.SUBFLOW))


def _subflow_init(node: Node, context: GenerationContext, var: str, config: Dict[str, Any]) -> Assign:
    return Assign(var, Call("RunnableSequence", args=[Symbol(f"*{var}_steps")]))


CONVERTERS = [
    Converter(
        type_tag="toolAgent", category="agent", role="agent",
        package="langchain.agents", class_name="AgentExecutor",
        imports=("AgentExecutor", "create_tool_calling_agent"),
        extra_imports=lambda node: [("langchain_core.prompts", ["ChatPromptTemplate", "MessagesPlaceholder"])],
        state=_agent_state, setup=_agent_setup, config=_agent_config, initialize=_agent_init,
        dependencies=("langchain", "langchain-core"),
    ),
    Converter(
        type_tag="conversationChain", category="chain", role="chain",
        package="langchain.chains", class_name="ConversationChain",
        config=_conversation_config, dependencies=("langchain",),
    ),
    Converter(
        type_tag="llmChain", category="chain", role="chain",
        package="langchain_core.runnables", class_name="RunnableSequence",
        extra_imports=_lcel_imports, initialize=_lcel_chain,
    ),
    Converter(
        type_tag="sequentialSubflow", category="subflow", role="subflow",
        package="langchain_core.runnables", class_name="RunnableSequence",
        setup=_subflow_setup, initialize=_subflow_init,
    ),
]
