"""Prompt text for agent mode: the system prompt and the two phase instructions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from screenwriter.config import VoiceConfig

PLAN_INSTRUCTION = (
    "Before making any changes, first create a detailed plan. "
    "Respond with a JSON object in this exact format:\n"
    "```json\n"
    "{\n"
    '  "summary": "Brief description of what you will do",\n'
    '  "steps": ["Step 1 description", "Step 2 description", ...]\n'
    "}\n"
    "```\n"
    "Then explain your reasoning briefly after the JSON block."
)

EXECUTE_INSTRUCTION = (
    "Great plan. Now execute it step by step. Use the available tools to "
    "read, analyze, and modify the screenplay. Announce each step before "
    "executing it."
)

_AGENT_MODE = """You are a professional screenwriting assistant working in agent mode.
You edit a screenplay written in Fountain format by calling tools. Every edit
goes through a tool; never paste a rewritten screenplay into your reply.
Work through the plan one step at a time, read before you edit, and stop
calling tools once the request is fully handled."""


def build_system_prompt(document: str, voice: VoiceConfig | None = None) -> str:
    """Assemble the agent-mode system prompt around the current document."""
    parts = [_AGENT_MODE]

    if voice is not None:
        parts.append(f"## Voice: {voice.name}\n{voice.guidance.strip()}")

    body = document if document.strip() else "(The screenplay is currently empty.)"
    parts.append(f"## Current screenplay\n<screenplay>\n{body}\n</screenplay>")

    return "\n\n".join(parts)
