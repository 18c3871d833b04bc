"""Screenplay editing tools. Each returns a new document snapshot on success.

Failures (scene not found, nothing to replace) are reported back to the
model as result text, with no updated document.
"""

from __future__ import annotations

from typing import Annotated

from langchain_core.tools import InjectedToolArg, tool

from screenwriter.tools import ToolResult, register
from screenwriter.tools.fountain import find_scene, has_title_page, parse_scenes

START = "START"


@register
@tool
def edit_scene(
    scene_heading: str,
    new_content: str,
    document: Annotated[str, InjectedToolArg],
) -> ToolResult:
    """Replace the content of a scene with new Fountain-formatted content.

    Args:
        scene_heading: Heading text of the scene to replace
            (case-insensitive substring match).
        new_content: Replacement Fountain content for the entire scene,
            including its heading.
    """
    scene = find_scene(document, scene_heading)
    if scene is None:
        return ToolResult(result=f'Scene not found: "{scene_heading}"')

    lines = document.split("\n")
    updated = "\n".join(
        lines[: scene.start_line - 1] + [new_content] + lines[scene.end_line :]
    )
    return ToolResult(
        result=(
            f'Replaced scene "{scene.heading}" '
            f"(lines {scene.start_line}-{scene.end_line}) with new content."
        ),
        updated_document=updated,
    )


@register
@tool
def insert_scene(
    after_scene: str,
    content: str,
    document: Annotated[str, InjectedToolArg],
) -> ToolResult:
    """Insert a new scene after the specified scene.

    Args:
        after_scene: Heading of the scene to insert after. Use "START" to
            insert at the beginning of the screenplay.
        content: Fountain content for the new scene, starting with a scene
            heading.
    """
    if after_scene.strip().upper() == START:
        return ToolResult(
            result="Inserted new scene at the beginning of the screenplay.",
            updated_document=_insert_at_start(document, content),
        )

    scene = find_scene(document, after_scene)
    if scene is None:
        return ToolResult(result=f'Target scene not found: "{after_scene}"')

    lines = document.split("\n")
    updated = "\n".join(lines[: scene.end_line] + ["", content] + lines[scene.end_line :])
    return ToolResult(
        result=f'Inserted new scene after "{scene.heading}".',
        updated_document=updated,
    )


def _insert_at_start(document: str, content: str) -> str:
    if not document:
        return content

    # Keep a title page on top; the body starts at the first scene heading.
    scenes = parse_scenes(document)
    if has_title_page(document) and scenes:
        lines = document.split("\n")
        first = scenes[0].start_line - 1
        return "\n".join(lines[:first] + [content, ""] + lines[first:])

    return f"{content}\n\n{document}"


@register
@tool
def delete_scene(
    scene_heading: str,
    document: Annotated[str, InjectedToolArg],
) -> ToolResult:
    """Delete a scene identified by its heading, including all of its content.

    Args:
        scene_heading: Heading text of the scene to delete
            (case-insensitive substring match).
    """
    scene = find_scene(document, scene_heading)
    if scene is None:
        return ToolResult(result=f'Scene not found: "{scene_heading}"')

    lines = document.split("\n")
    start = scene.start_line - 1
    if start > 0 and not lines[start - 1].strip():
        start -= 1

    updated = "\n".join(lines[:start] + lines[scene.end_line :])
    return ToolResult(
        result=(
            f'Deleted scene "{scene.heading}" '
            f"(lines {scene.start_line}-{scene.end_line})."
        ),
        updated_document=updated,
    )


@register
@tool
def reorder_scenes(
    scene_heading: str,
    after_scene: str,
    document: Annotated[str, InjectedToolArg],
) -> ToolResult:
    """Move a scene to a new position in the screenplay.

    Args:
        scene_heading: Heading of the scene to move
            (case-insensitive substring match).
        after_scene: Heading of the scene to place it after. Use "START" to
            move it to the beginning of the screenplay.
    """
    scene = find_scene(document, scene_heading)
    if scene is None:
        return ToolResult(result=f'Source scene not found: "{scene_heading}"')

    lines = document.split("\n")
    scene_text = "\n".join(lines[scene.start_line - 1 : scene.end_line])

    # Lift the scene out together with the blank line that separated it.
    start = scene.start_line - 1
    if start > 0 and not lines[start - 1].strip():
        start -= 1
    remaining = "\n".join(lines[:start] + lines[scene.end_line :])

    if after_scene.strip().upper() == START:
        return ToolResult(
            result=f'Moved scene "{scene.heading}" to the beginning.',
            updated_document=_insert_at_start(remaining, scene_text),
        )

    target = find_scene(remaining, after_scene)
    if target is None:
        return ToolResult(result=f'Target scene not found: "{after_scene}"')

    remaining_lines = remaining.split("\n")
    updated = "\n".join(
        remaining_lines[: target.end_line] + ["", scene_text] + remaining_lines[target.end_line :]
    )
    return ToolResult(
        result=f'Moved scene "{scene.heading}" to after "{target.heading}".',
        updated_document=updated,
    )


@register
@tool
def replace_text(
    find: str,
    replace: str,
    document: Annotated[str, InjectedToolArg],
    scene_heading: str | None = None,
) -> ToolResult:
    """Find and replace literal text, globally or scoped to one scene.

    Args:
        find: The text to find.
        replace: The replacement text.
        scene_heading: Optional heading of the scene to scope the
            replacement to. Omit for a global replacement.
    """
    if not find:
        return ToolResult(result="Nothing to find: the search text is empty.")

    if scene_heading:
        scene = find_scene(document, scene_heading)
        if scene is None:
            return ToolResult(result=f'Scene not found: "{scene_heading}"')

        lines = document.split("\n")
        scene_text = "\n".join(lines[scene.start_line - 1 : scene.end_line])
        count = scene_text.count(find)
        if count == 0:
            return ToolResult(
                result=f'No occurrences of "{find}" found in scene "{scene.heading}".'
            )

        updated = "\n".join(
            lines[: scene.start_line - 1]
            + [scene_text.replace(find, replace)]
            + lines[scene.end_line :]
        )
        return ToolResult(
            result=(
                f'Replaced {count} occurrence(s) of "{find}" with "{replace}" '
                f'in scene "{scene.heading}".'
            ),
            updated_document=updated,
        )

    count = document.count(find)
    if count == 0:
        return ToolResult(result=f'No occurrences of "{find}" found in the screenplay.')
    return ToolResult(
        result=f'Replaced {count} occurrence(s) of "{find}" with "{replace}" globally.',
        updated_document=document.replace(find, replace),
    )
