"""Minimal Fountain helpers: scene headings, scene spans, character cues.

Only what the screenplay tools need to locate regions of the document.
Line numbers are 1-based throughout.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HEADING_RE = re.compile(
    r"^(?:int\.?/ext|ext\.?/int|i/e|e/i|int|ext|est)[.\s]", re.IGNORECASE
)
_TITLE_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z ]*:")
_EXTENSION_RE = re.compile(r"\s*\(.*?\)\s*")


@dataclass
class Scene:
    number: int       # 1-based sequential scene number
    heading: str
    start_line: int   # the heading line
    end_line: int     # last non-blank line before the next heading
    characters: list[str] = field(default_factory=list)


def is_scene_heading(line: str) -> bool:
    stripped = line.strip()
    if stripped.startswith(".") and not stripped.startswith(".."):
        return len(stripped) > 1
    return bool(_HEADING_RE.match(stripped))


def _heading_text(line: str) -> str:
    stripped = line.strip()
    return stripped[1:].strip() if stripped.startswith(".") else stripped


def character_cue(lines: list[str], index: int) -> str | None:
    """Return the character name if ``lines[index]`` is a dialogue cue.

    A cue is an upper-case line after a blank line (or at the top) that is
    followed by a non-blank line. ``@Name`` forces a cue.
    """
    line = lines[index].strip()
    if not line or is_scene_heading(line):
        return None
    if index > 0 and lines[index - 1].strip():
        return None
    if index + 1 >= len(lines) or not lines[index + 1].strip():
        return None

    if line.startswith("@"):
        name = line[1:]
    else:
        if line != line.upper() or not any(c.isalpha() for c in line):
            return None
        if line.endswith(":") or line.startswith(">"):
            return None
        name = line
    name = _EXTENSION_RE.sub(" ", name).rstrip("^").strip()
    return name or None


def parse_scenes(document: str) -> list[Scene]:
    lines = document.split("\n")
    heading_indexes = [i for i, line in enumerate(lines) if is_scene_heading(line)]

    scenes: list[Scene] = []
    for n, start in enumerate(heading_indexes):
        stop = heading_indexes[n + 1] if n + 1 < len(heading_indexes) else len(lines)
        end = stop - 1
        while end > start and not lines[end].strip():
            end -= 1

        characters: list[str] = []
        for i in range(start + 1, end + 1):
            name = character_cue(lines, i)
            if name and name not in characters:
                characters.append(name)

        scenes.append(
            Scene(
                number=n + 1,
                heading=_heading_text(lines[start]),
                start_line=start + 1,
                end_line=end + 1,
                characters=characters,
            )
        )
    return scenes


def find_scene(
    document: str,
    heading: str | None = None,
    number: int | None = None,
) -> Scene | None:
    """Find a scene by case-insensitive heading substring or 1-based number."""
    scenes = parse_scenes(document)
    if heading:
        needle = heading.lower().strip()
        for scene in scenes:
            if needle in scene.heading.lower():
                return scene
        return None
    if number is not None and 1 <= number <= len(scenes):
        return scenes[number - 1]
    return None


def has_title_page(document: str) -> bool:
    first = document.split("\n", 1)[0]
    return bool(_TITLE_KEY_RE.match(first)) and not is_scene_heading(first)
