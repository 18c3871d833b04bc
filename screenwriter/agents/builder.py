"""Graph builder: wires the agent-mode nodes into a LangGraph StateGraph.

START → [plan] → [prepare_execution] → [call_model] → conditional
  route_after_completion:
    → "dispatch_tools"  → [dispatch_tools] → conditional
        route_after_dispatch:
          → "call_model"  (next iteration)
          → "__limit__"   → [iteration_limit] → END
    → "__done__"        → END   (model stopped, or run cancelled)

Phase configuration is a parameter: the plan and execute providers may be
the same object for single-model operation.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from langgraph.graph import END, StateGraph

from screenwriter.agents.nodes import (
    make_completion_node,
    make_dispatch_node,
    make_plan_node,
    make_prepare_node,
    mark_iteration_limit,
    route_after_completion,
    route_after_dispatch,
)
from screenwriter.agents.state import AgentState

if TYPE_CHECKING:
    from langgraph.graph.state import CompiledStateGraph

    from screenwriter.agents.provider import CompletionProvider
    from screenwriter.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 20  # hard bound on tool-use rounds per run
MAX_ITERATIONS_CEILING = 100
# Each iteration visits two nodes; plan, prepare and the limit node add three.
RECURSION_LIMIT = 2 * MAX_ITERATIONS_CEILING + 10


def build_agent_graph(
    plan_provider: CompletionProvider,
    execute_provider: CompletionProvider,
    dispatcher: ToolDispatcher,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> CompiledStateGraph:
    """Build and compile the plan-then-execute agent graph."""
    if not 1 <= max_iterations <= MAX_ITERATIONS_CEILING:
        raise ValueError(
            f"max_iterations must be between 1 and {MAX_ITERATIONS_CEILING}, "
            f"got {max_iterations}"
        )

    tools = dispatcher.manifest
    graph = StateGraph(AgentState)

    graph.add_node("plan", make_plan_node(plan_provider, tools))
    graph.add_node("prepare_execution", make_prepare_node(execute_provider))
    graph.add_node("call_model", make_completion_node(execute_provider, tools))
    graph.add_node("dispatch_tools", make_dispatch_node(dispatcher))
    graph.add_node("iteration_limit", mark_iteration_limit)

    graph.set_entry_point("plan")
    graph.add_edge("plan", "prepare_execution")
    graph.add_edge("prepare_execution", "call_model")

    graph.add_conditional_edges(
        "call_model",
        route_after_completion,
        {"dispatch_tools": "dispatch_tools", "__done__": END},
    )
    graph.add_conditional_edges(
        "dispatch_tools",
        partial(route_after_dispatch, max_iterations=max_iterations),
        {"call_model": "call_model", "__limit__": "iteration_limit"},
    )
    graph.add_edge("iteration_limit", END)

    logger.info(
        f"Built agent graph: tools={len(tools)}, max_iterations={max_iterations}"
    )
    return graph.compile()
