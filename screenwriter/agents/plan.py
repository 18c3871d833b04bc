"""Plan extraction: turn the planning reply into a structured Plan.

Never fails: when nothing parseable is found the default one-step plan is
returned, so a sloppy planning reply cannot sink the run.
"""

from __future__ import annotations

import json
import logging
import re

from screenwriter.schemas import Plan

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Executing the requested changes."
DEFAULT_STEP = "Execute the requested changes."

_FENCED_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)```")
_LOOSE_OBJECT_RE = re.compile(r'\{[\s\S]*"summary"[\s\S]*"steps"[\s\S]*\}')


def default_plan() -> Plan:
    return Plan(summary=DEFAULT_SUMMARY, steps=[DEFAULT_STEP])


def _parse_plan(raw: str) -> Plan | None:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    summary = data.get("summary")
    steps = data.get("steps")
    if not isinstance(summary, str) or not isinstance(steps, list):
        return None
    return Plan(summary=summary, steps=[s for s in steps if isinstance(s, str)])


def extract_plan(segments: list[str]) -> Plan:
    """Parse a ``{summary, steps}`` object out of the reply's text segments.

    Per segment: a fenced code block (or the whole segment when there is no
    fence) first, then the first loose ``{..."summary"..."steps"...}``
    substring.
    """
    for text in segments:
        match = _FENCED_RE.search(text)
        candidate = match.group(1).strip() if match else text.strip()
        plan = _parse_plan(candidate)
        if plan is not None:
            return plan

        loose = _LOOSE_OBJECT_RE.search(text)
        if loose:
            plan = _parse_plan(loose.group(0))
            if plan is not None:
                return plan

    logger.warning("Could not parse a plan from the planning reply, using default plan")
    return default_plan()
