"""Read-only screenplay tools. None of these return an updated document."""

from __future__ import annotations

from typing import Annotated

from langchain_core.tools import InjectedToolArg, tool

from screenwriter.tools import ToolResult, register
from screenwriter.tools.fountain import character_cue, find_scene, parse_scenes


def _numbered(lines: list[str], first_line: int) -> str:
    return "\n".join(f"{first_line + i}: {line}" for i, line in enumerate(lines))


@register
@tool
def read_screenplay(
    document: Annotated[str, InjectedToolArg],
    start_line: int | None = None,
    end_line: int | None = None,
) -> ToolResult:
    """Read the full screenplay text, or a specific line range.

    Returns Fountain-formatted text with line numbers. Omit start_line to
    read from the beginning and end_line (inclusive) to read to the end.
    """
    lines = document.split("\n")
    start = max(1, min(start_line or 1, len(lines)))
    end = max(start, min(end_line or len(lines), len(lines)))
    selected = lines[start - 1 : end]
    return ToolResult(
        result=f"Showing lines {start}-{end} of {len(lines)}:\n\n{_numbered(selected, start)}"
    )


@register
@tool
def read_scene(
    document: Annotated[str, InjectedToolArg],
    scene_heading: str | None = None,
    scene_number: int | None = None,
) -> ToolResult:
    """Read one scene by its heading text or 1-based sequential number.

    The heading is matched as a case-insensitive substring. Returns the
    full scene content including the heading.
    """
    scene = find_scene(document, scene_heading, scene_number)
    if scene is None:
        return ToolResult(result="Scene not found.")

    lines = document.split("\n")[scene.start_line - 1 : scene.end_line]
    return ToolResult(
        result=(
            f"Scene: {scene.heading}\n"
            f"Lines {scene.start_line}-{scene.end_line}:\n\n"
            f"{_numbered(lines, scene.start_line)}"
        )
    )


@register
@tool
def search_screenplay(
    query: str,
    document: Annotated[str, InjectedToolArg],
    case_sensitive: bool = False,
) -> ToolResult:
    """Search for text in the screenplay.

    Returns matching lines with line numbers and one line of context on
    either side.
    """
    lines = document.split("\n")
    needle = query if case_sensitive else query.lower()

    matches: list[str] = []
    for i, line in enumerate(lines):
        haystack = line if case_sensitive else line.lower()
        if needle not in haystack:
            continue
        context = []
        for j in range(max(0, i - 1), min(len(lines), i + 2)):
            marker = ">>>" if j == i else "   "
            context.append(f"{marker} {j + 1}: {lines[j]}")
        matches.append("\n".join(context))

    if not matches:
        return ToolResult(result=f'No matches found for "{query}".')
    return ToolResult(
        result=f'Found {len(matches)} match(es) for "{query}":\n\n' + "\n\n".join(matches)
    )


@register
@tool
def get_outline(document: Annotated[str, InjectedToolArg]) -> ToolResult:
    """Get a scene-level outline: each heading, its line span and who speaks in it."""
    scenes = parse_scenes(document)
    if not scenes:
        return ToolResult(result="No scenes found in the screenplay.")

    entries = []
    for scene in scenes:
        who = ", ".join(scene.characters) if scene.characters else "no dialogue"
        entries.append(
            f"{scene.number}. {scene.heading} (lines {scene.start_line}-{scene.end_line}); "
            f"characters: {who}"
        )
    return ToolResult(result=f"Outline ({len(scenes)} scenes):\n" + "\n".join(entries))


@register
@tool
def get_characters(document: Annotated[str, InjectedToolArg]) -> ToolResult:
    """List every speaking character with dialogue counts and the scenes they appear in."""
    lines = document.split("\n")
    scenes = parse_scenes(document)

    counts: dict[str, int] = {}
    for i in range(len(lines)):
        name = character_cue(lines, i)
        if name:
            counts[name] = counts.get(name, 0) + 1

    if not counts:
        return ToolResult(result="No characters found in the screenplay.")

    entries = []
    for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        appearances = [str(s.number) for s in scenes if name in s.characters]
        where = ", ".join(appearances) if appearances else "none"
        entries.append(f"- {name}: {count} dialogue block(s); scenes {where}")
    return ToolResult(result=f"Characters ({len(counts)}):\n" + "\n".join(entries))
