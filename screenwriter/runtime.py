"""Runtime: bridges HTTP requests to LangGraph execution.

Resolves the request's toolset and voice, builds the conversation, runs the
graph as a background task writing into an event channel, and yields the
channel's events as NDJSON lines.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from screenwriter.agents import cache as graph_cache
from screenwriter.agents.builder import RECURSION_LIMIT
from screenwriter.prompts import build_system_prompt
from screenwriter.schemas import AgentRequest, DoneEvent, ErrorEvent
from screenwriter.stream import EventChannel, encode_event, encode_stream

if TYPE_CHECKING:
    from langgraph.graph.state import CompiledStateGraph

    from screenwriter.config import EngineConfig, ToolsetConfig, VoiceConfig

logger = logging.getLogger(__name__)


def resolve_run(
    config: EngineConfig, request: AgentRequest
) -> tuple[ToolsetConfig, VoiceConfig | None]:
    """Look up the toolset and voice a request asks for.

    Raises ValueError when either id is unknown, before anything streams.
    """
    return config.get_toolset(request.toolset), config.get_voice(request.voice)


def build_request_messages(request: AgentRequest) -> list[BaseMessage]:
    """Caller history followed by the new request, as chat messages."""
    messages: list[BaseMessage] = []
    for turn in request.history:
        if turn.role == "user":
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    messages.append(HumanMessage(content=request.message))
    return messages


async def run_agent(
    graph: CompiledStateGraph,
    *,
    system_prompt: str,
    request_messages: list[BaseMessage],
    document: str,
    channel: EventChannel,
    cancel: asyncio.Event | None = None,
) -> None:
    """Run one agent session to completion, writing events to ``channel``.

    Exactly one terminal event is sent: ``done`` with the final document, or
    ``error`` with a message. The channel is closed on every exit path.
    """
    initial_state = {
        "system_prompt": system_prompt,
        "request": request_messages,
        "plan": None,
        "plan_text": [],
        "messages": [],
        "document": document,
        "step_index": 0,
        "iteration": 0,
        "status": None,
    }
    run_config = {
        "configurable": {"channel": channel, "cancel": cancel},
        "recursion_limit": RECURSION_LIMIT,
    }

    try:
        final_state = await graph.ainvoke(initial_state, config=run_config)
        status = final_state.get("status") or "completed"
        logger.info(
            f"Agent run finished: status={status}, "
            f"iterations={final_state.get('iteration', 0)}"
        )
        await channel.send(DoneEvent(status=status, document=final_state["document"]))
    except asyncio.CancelledError:
        logger.info("Agent run task cancelled")
        raise
    except Exception as e:
        logger.error(f"Agent run failed: {e}", exc_info=True)
        await channel.send(ErrorEvent(error=str(e) or type(e).__name__))
    finally:
        channel.close()


async def stream_agent_run(
    config: EngineConfig,
    request: AgentRequest,
    toolset: ToolsetConfig,
    voice: VoiceConfig | None,
) -> AsyncGenerator[str, None]:
    """Start the run in the background and yield its events as NDJSON lines.

    When the consumer stops early (client disconnect), the run is signalled
    to stop and its task is cancelled.
    """
    logger.info(
        f"Starting agent run: toolset={toolset.id}, "
        f"voice={voice.id if voice else None}, "
        f"history={len(request.history)}, document_chars={len(request.document)}"
    )

    channel = EventChannel(maxsize=config.channel_size)
    cancel = asyncio.Event()

    try:
        graph = graph_cache.get_or_build(config, toolset)
    except Exception as e:
        logger.error(f"Failed to build graph: {e}")
        yield encode_event(ErrorEvent(error=f"Graph build error: {e}"))
        return

    task = asyncio.create_task(
        run_agent(
            graph,
            system_prompt=build_system_prompt(request.document, voice),
            request_messages=build_request_messages(request),
            document=request.document,
            channel=channel,
            cancel=cancel,
        )
    )

    try:
        async for line in encode_stream(channel):
            yield line
    finally:
        cancel.set()
        channel.close()
        if not task.done():
            logger.info("Stream consumer went away; cancelling agent run")
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)
