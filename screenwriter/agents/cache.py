"""Graph cache: one compiled agent graph per toolset.

A graph binds the phase providers, the toolset's dispatcher and the
iteration cap, so the cache is keyed by toolset id and invalidated when any
of those change. Per-run state (channel, cancellation) is passed at
invoke time and never cached.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import TYPE_CHECKING

from screenwriter.agents.builder import build_agent_graph
from screenwriter.agents.provider import AnthropicProvider
from screenwriter.agents.registry import resolve_preset
from screenwriter.tools.dispatcher import ToolDispatcher

if TYPE_CHECKING:
    from langgraph.graph.state import CompiledStateGraph

    from screenwriter.config import EngineConfig, ToolsetConfig

logger = logging.getLogger(__name__)

# Cache: {toolset_id: (config_hash, compiled_graph)}
_cache: dict[str, tuple[str, CompiledStateGraph]] = {}


def _hash_graph_config(config: EngineConfig, toolset: ToolsetConfig) -> str:
    """Hash everything the compiled graph depends on, for change detection."""
    data = {
        "phases": config.phases.model_dump(),
        "max_iterations": config.max_iterations,
        "toolset": toolset.model_dump(),
    }
    config_json = json.dumps(data, sort_keys=True)
    return hashlib.sha256(config_json.encode()).hexdigest()[:16]


def get_or_build(config: EngineConfig, toolset: ToolsetConfig) -> CompiledStateGraph:
    """Return the cached graph for this toolset, or build a new one."""
    config_hash = _hash_graph_config(config, toolset)

    if toolset.id in _cache:
        cached_hash, cached_graph = _cache[toolset.id]
        if cached_hash == config_hash:
            logger.debug(f"Graph cache hit: {toolset.id}")
            return cached_graph

    logger.info(
        f"Building graph for toolset '{toolset.id}' "
        f"(plan={config.phases.plan}, execute={config.phases.execute}, "
        f"tools={len(toolset.tools)})"
    )
    plan_provider = AnthropicProvider(resolve_preset(config.phases.plan))
    if config.phases.execute == config.phases.plan:
        execute_provider = plan_provider
    else:
        execute_provider = AnthropicProvider(resolve_preset(config.phases.execute))

    graph = build_agent_graph(
        plan_provider,
        execute_provider,
        ToolDispatcher.from_names(toolset.tools),
        max_iterations=config.max_iterations,
    )
    _cache[toolset.id] = (config_hash, graph)
    return graph


def invalidate(toolset_id: str | None = None) -> None:
    """Clear the cache. If toolset_id given, only clear that toolset."""
    if toolset_id:
        _cache.pop(toolset_id, None)
        logger.info(f"Graph cache invalidated: {toolset_id}")
    else:
        _cache.clear()
        logger.info("Graph cache invalidated: all toolsets")
