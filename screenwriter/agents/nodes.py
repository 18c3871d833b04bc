"""LangGraph node functions: the async steps of an agent run.

plan → prepare_execution → call_model ⇄ dispatch_tools → END

Nodes receive the run's event channel and cancellation flag through
``config["configurable"]``; providers and the dispatcher are bound when the
graph is built. Errors are not caught here: any provider or dispatch
failure ends the run and is reported once by the runtime.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import BaseTool

from screenwriter.agents.plan import extract_plan
from screenwriter.agents.provider import CompletionProvider, text_segments
from screenwriter.agents.state import AgentState
from screenwriter.diff.engine import compute_patch
from screenwriter.prompts import EXECUTE_INSTRUCTION, PLAN_INSTRUCTION
from screenwriter.schemas import (
    MetadataEvent,
    PlanEvent,
    StepEvent,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from screenwriter.stream import EventChannel
from screenwriter.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)


def _channel(config: RunnableConfig) -> EventChannel:
    return config["configurable"]["channel"]


def _is_cancelled(config: RunnableConfig) -> bool:
    cancel: asyncio.Event | None = config["configurable"].get("cancel")
    return cancel is not None and cancel.is_set()


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------


def make_plan_node(provider: CompletionProvider, tools: list[BaseTool]) -> Callable:
    """Planning phase: one blocking call, then the plan and its rationale.

    The tool manifest is bound so the planner can see tool shapes; it is
    not expected to call them, and any tool-use blocks it emits are never
    carried forward.
    """

    async def plan_node(state: AgentState, config: RunnableConfig) -> dict:
        channel = _channel(config)
        await channel.send(MetadataEvent(phase="plan", **provider.identity()))

        planning = [*state["request"], HumanMessage(content=PLAN_INSTRUCTION)]
        response = await provider.complete(state["system_prompt"], planning, tools or None)

        segments = text_segments(response.content)
        plan = extract_plan(segments)
        logger.info(f"Plan ready: {len(plan.steps)} step(s): {plan.summary}")

        await channel.send(PlanEvent(plan=plan))
        for text in segments:
            await channel.send(TextEvent(content=text))

        return {"plan": plan, "plan_text": segments}

    return plan_node


def make_prepare_node(provider: CompletionProvider) -> Callable:
    """Build the execution conversation from scratch.

    Only the text of the planning reply is carried over. Its reasoning
    trace belongs to the planning call's own conversation and is invalid
    under the execution configuration.
    """

    async def prepare_execution(state: AgentState, config: RunnableConfig) -> dict:
        await _channel(config).send(MetadataEvent(phase="execute", **provider.identity()))

        messages = list(state["request"])
        if state["plan_text"]:
            messages.append(
                AIMessage(content=[{"type": "text", "text": t} for t in state["plan_text"]])
            )
        messages.append(HumanMessage(content=EXECUTE_INSTRUCTION))
        return {"messages": messages}

    return prepare_execution


def make_completion_node(provider: CompletionProvider, tools: list[BaseTool]) -> Callable:
    """One execution iteration up to the assembled model reply.

    Text deltas are forwarded as they arrive. A reply without tool calls
    finishes the run.
    """

    async def call_model(state: AgentState, config: RunnableConfig) -> dict:
        if _is_cancelled(config):
            logger.info(f"Run cancelled after {state['iteration']} iteration(s)")
            return {"status": "cancelled"}

        channel = _channel(config)
        steps = state["plan"].steps
        index = state["step_index"]
        step_pending = index < len(steps)

        if step_pending:
            await channel.send(
                StepEvent(index=index, status="in_progress", description=steps[index])
            )

        stream = provider.stream(state["system_prompt"], state["messages"], tools or None)
        async for text in stream:
            await channel.send(TextEvent(content=text))

        final = stream.final_message
        if final is None:
            raise RuntimeError("Completion stream ended without a final message")

        update: dict = {
            "messages": [final],
            "iteration": state["iteration"] + 1,
        }
        if not final.tool_calls:
            if step_pending:
                await channel.send(StepEvent(index=index, status="completed"))
            update["status"] = "completed"
        return update

    return call_model


def make_dispatch_node(dispatcher: ToolDispatcher) -> Callable:
    """Run the reply's tool calls one by one, in the order the model gave them.

    Each call sees the document produced by the call before it.
    """

    async def dispatch_tools(state: AgentState, config: RunnableConfig) -> dict:
        channel = _channel(config)
        reply: AIMessage = state["messages"][-1]
        document = state["document"]
        tool_messages: list[ToolMessage] = []

        for call in reply.tool_calls:
            await channel.send(ToolCallEvent(name=call["name"], input=call["args"]))
            outcome = await dispatcher.dispatch(call["name"], call["args"], document)

            if outcome.updated_document is not None:
                patch = compute_patch(document, outcome.updated_document)
                document = outcome.updated_document
                await channel.send(
                    ToolResultEvent(
                        name=call["name"],
                        result=outcome.result,
                        patch=patch,
                        updated_document=document,
                    )
                )
            else:
                await channel.send(ToolResultEvent(name=call["name"], result=outcome.result))

            tool_messages.append(ToolMessage(content=outcome.result, tool_call_id=call["id"]))

        index = state["step_index"]
        if index < len(state["plan"].steps):
            await channel.send(StepEvent(index=index, status="completed"))
            index += 1

        return {"messages": tool_messages, "document": document, "step_index": index}

    return dispatch_tools


async def mark_iteration_limit(state: AgentState) -> dict:
    logger.warning(
        f"Iteration cap reached after {state['iteration']} iteration(s) "
        f"with tools still being requested; stopping"
    )
    return {"status": "iteration_limit"}


# ---------------------------------------------------------------------------
# Routing functions
# ---------------------------------------------------------------------------


def route_after_completion(state: AgentState) -> str:
    """Finish when the model stopped (or the run was cancelled), else dispatch."""
    if state.get("status"):
        return "__done__"
    return "dispatch_tools"


def route_after_dispatch(state: AgentState, max_iterations: int) -> str:
    if state["iteration"] >= max_iterations:
        return "__limit__"
    return "call_model"
