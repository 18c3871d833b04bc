"""Tool dispatcher: executes one named tool call against a document snapshot."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from screenwriter.tools import ToolResult, resolve_tools

if TYPE_CHECKING:
    from langchain_core.tools import BaseTool

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Dispatches tool calls to a fixed manifest of registered tools.

    Unknown tool names and invalid arguments are reported to the model as
    result text. Anything else a tool raises propagates to the caller.
    """

    def __init__(self, tools: list[BaseTool]) -> None:
        self._tools = {t.name: t for t in tools}

    @classmethod
    def from_names(cls, names: list[str]) -> ToolDispatcher:
        return cls(resolve_tools(names))

    @property
    def manifest(self) -> list[BaseTool]:
        """The tools offered to the model, in registration order."""
        return list(self._tools.values())

    async def dispatch(self, name: str, args: dict[str, Any], document: str) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"Model requested unknown tool '{name}'")
            return ToolResult(result=f"Unknown tool: {name}")

        try:
            output = await tool.ainvoke({**args, "document": document})
        except ValidationError as e:
            logger.warning(f"Invalid input for tool '{name}': {e}")
            return ToolResult(result=f"Invalid input for tool '{name}': {e}")

        if isinstance(output, ToolResult):
            return output
        return ToolResult(result=str(output))
