"""Completion providers: the language-model side of the agent loop.

A provider answers a system prompt plus a conversation, optionally with a
tool manifest bound, either in one blocking call (planning) or as a stream
of text deltas followed by the assembled message (execution).
"""

from __future__ import annotations

import abc
import logging
import os
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.tools import BaseTool

    from screenwriter.agents.registry import ModelPreset

logger = logging.getLogger(__name__)

def text_segments(content: Any) -> list[str]:
    """Text segments of a message's content, in order.

    Anthropic content is either a plain string or a list of blocks:
    [{"type": "text", "text": "..."}, {"type": "tool_use", ...}, ...]
    """
    if isinstance(content, str):
        return [content] if content else []
    segments = []
    for block in content or []:
        if isinstance(block, str):
            if block:
                segments.append(block)
        elif isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
            segments.append(block["text"])
    return segments


class CompletionStream(abc.ABC):
    """Async-iterate for text deltas; ``final_message`` is set once exhausted."""

    final_message: AIMessage | None = None

    @abc.abstractmethod
    def __aiter__(self) -> AsyncIterator[str]:
        """Yield text deltas as they arrive."""


class CompletionProvider(abc.ABC):
    """Abstract language-model backend used by the agent loop.

    ``replays_reasoning`` declares that prior reasoning traces must be sent
    back verbatim within the same conversation lineage for multi-turn tool
    use to stay valid. Such traces are bound to the configuration that
    produced them and are never carried into a different conversation.
    """

    replays_reasoning: bool = False

    @abc.abstractmethod
    def identity(self) -> dict[str, Any]:
        """Provider identity fields for metadata events: model, label, thinking."""

    @abc.abstractmethod
    async def complete(
        self,
        system: str,
        messages: list[BaseMessage],
        tools: list[BaseTool] | None = None,
    ) -> AIMessage:
        """Return one complete assistant turn."""

    @abc.abstractmethod
    def stream(
        self,
        system: str,
        messages: list[BaseMessage],
        tools: list[BaseTool] | None = None,
    ) -> CompletionStream:
        """Return a stream of text deltas ending in an assembled turn."""


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class _AnthropicStream(CompletionStream):
    def __init__(self, llm, messages: list[BaseMessage]) -> None:
        self._llm = llm
        self._messages = messages
        self.final_message = None

    async def __aiter__(self) -> AsyncIterator[str]:
        full = None
        async for chunk in self._llm.astream(self._messages):
            full = chunk if full is None else full + chunk
            for text in text_segments(chunk.content):
                yield text
        self.final_message = full


class AnthropicProvider(CompletionProvider):
    """Anthropic models through langchain-anthropic, configured by a preset."""

    def __init__(self, preset: ModelPreset) -> None:
        self.preset = preset
        # Extended thinking requires its blocks to come back on later turns.
        self.replays_reasoning = preset.thinking

    def identity(self) -> dict[str, Any]:
        return {
            "model": self.preset.model,
            "label": self.preset.label,
            "thinking": self.preset.thinking,
        }

    def _get_llm(self, tools: list[BaseTool] | None = None):
        """Create an Anthropic LLM instance, optionally with tool bindings."""
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY environment variable is not set")

        kwargs: dict[str, Any] = {
            "model": self.preset.model,
            "max_tokens": self.preset.max_tokens,
            "api_key": api_key,
        }
        if self.preset.thinking_budget:
            kwargs["thinking"] = {
                "type": "enabled",
                "budget_tokens": self.preset.thinking_budget,
            }
        llm = ChatAnthropic(**kwargs)
        if tools:
            llm = llm.bind_tools(tools)
        return llm

    async def complete(
        self,
        system: str,
        messages: list[BaseMessage],
        tools: list[BaseTool] | None = None,
    ) -> AIMessage:
        logger.info(f"Completion call: {self.preset.label} ({len(messages)} messages)")
        llm = self._get_llm(tools)
        return await llm.ainvoke([SystemMessage(content=system), *messages])

    def stream(
        self,
        system: str,
        messages: list[BaseMessage],
        tools: list[BaseTool] | None = None,
    ) -> CompletionStream:
        logger.info(f"Streaming call: {self.preset.label} ({len(messages)} messages)")
        llm = self._get_llm(tools)
        return _AnthropicStream(llm, [SystemMessage(content=system), *messages])
