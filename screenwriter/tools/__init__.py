"""Tool registry: global name-based lookup for screenplay tools.

Tools are functions decorated with ``@register`` and ``@tool``. Each one
receives the current document through an injected ``document`` argument
(hidden from the model's tool schema) and returns a ``ToolResult``.
Toolsets in ``config.yaml`` reference tools by name; the dispatcher
resolves them at graph-build time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from langchain_core.tools import BaseTool

_registry: dict[str, BaseTool] = {}


@dataclass
class ToolResult:
    """Outcome of one tool call.

    result            text fed back to the model.
    updated_document  the new snapshot when the tool mutated the document,
                      None when it did not.
    """

    result: str
    updated_document: str | None = None


def register(tool: BaseTool) -> BaseTool:
    """Add a BaseTool to the registry by its ``.name``.

    Can be used as a decorator (applied *outside* ``@tool``)::

        @register
        @tool
        def my_tool(query: str, document: Annotated[str, InjectedToolArg]) -> ToolResult:
            ...
    """
    _registry[tool.name] = tool
    return tool


def resolve_tools(names: list[str]) -> list[BaseTool]:
    """Look up tool names and return the corresponding ``BaseTool`` objects.

    Raises ``ValueError`` if any name is not registered.
    """
    missing = [n for n in names if n not in _registry]
    if missing:
        raise ValueError(
            f"Unknown tool(s): {missing}. Available: {list(_registry.keys())}"
        )
    return [_registry[n] for n in names]


def list_tools() -> list[str]:
    """Return all registered tool names."""
    return list(_registry.keys())


# Auto-import tool modules so the registry is populated on first access.
import screenwriter.tools.editing as _editing  # noqa: E402, F401
import screenwriter.tools.reading as _reading  # noqa: E402, F401
