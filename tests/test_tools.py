import asyncio

import pytest
from langchain_core.utils.function_calling import convert_to_openai_tool

from screenwriter.tools import ToolResult, list_tools, resolve_tools
from screenwriter.tools.dispatcher import ToolDispatcher
from screenwriter.tools.fountain import (
    character_cue,
    find_scene,
    has_title_page,
    is_scene_heading,
    parse_scenes,
)


def run_tool(name, document, **args):
    dispatcher = ToolDispatcher.from_names([name])
    return asyncio.run(dispatcher.dispatch(name, args, document))


# ---------------------------------------------------------------------------
# Fountain helpers
# ---------------------------------------------------------------------------


def test_parse_scenes_spans_and_characters(screenplay):
    scenes = parse_scenes(screenplay)
    assert [s.heading for s in scenes] == ["INT. KITCHEN - NIGHT", "EXT. GARDEN - DAY"]
    assert (scenes[0].start_line, scenes[0].end_line) == (4, 12)
    assert (scenes[1].start_line, scenes[1].end_line) == (14, 19)
    assert scenes[0].characters == ["MARY", "TOM"]
    assert scenes[1].characters == ["TOM"]


def test_find_scene_by_substring_and_number(screenplay):
    assert find_scene(screenplay, "garden").number == 2
    assert find_scene(screenplay, number=1).heading == "INT. KITCHEN - NIGHT"
    assert find_scene(screenplay, "attic") is None
    assert find_scene(screenplay, number=9) is None


def test_forced_heading_and_title_page():
    doc = ".FLASHBACK\n\nNothing."
    assert parse_scenes(doc)[0].heading == "FLASHBACK"
    assert not has_title_page(doc)
    assert has_title_page("Title: X\n\nINT. A - DAY")


def test_transitions_are_not_character_cues():
    lines = ["", "CUT TO:", "INT. B - DAY"]
    assert character_cue(lines, 1) is None


def test_reversed_and_abbreviated_mixed_headings():
    for heading in ["INT./EXT. CAR - DAY", "EXT./INT. CAR - DAY", "EXT/INT CAR - DAY",
                    "I/E CAR - DAY", "E/I CAR - DAY"]:
        assert is_scene_heading(heading), heading
    assert not is_scene_heading("EXTRA CREDIT")


# ---------------------------------------------------------------------------
# Registry & dispatcher
# ---------------------------------------------------------------------------


def test_all_builtin_tools_are_registered():
    assert set(list_tools()) >= {
        "read_screenplay", "read_scene", "search_screenplay", "get_outline",
        "get_characters", "edit_scene", "insert_scene", "delete_scene", "reorder_scenes",
        "replace_text",
    }


def test_resolve_unknown_tool_raises():
    with pytest.raises(ValueError, match="Unknown tool"):
        resolve_tools(["read_screenplay", "teleport"])


def test_document_is_hidden_from_tool_schema():
    (tool,) = resolve_tools(["replace_text"])
    properties = convert_to_openai_tool(tool)["function"]["parameters"]["properties"]
    assert set(properties) == {"find", "replace", "scene_heading"}


def test_dispatch_unknown_tool_reports_to_model(screenplay):
    dispatcher = ToolDispatcher.from_names(["read_screenplay"])
    outcome = asyncio.run(dispatcher.dispatch("edit_scene", {}, screenplay))
    assert outcome == ToolResult(result="Unknown tool: edit_scene")


def test_dispatch_invalid_input_reports_to_model(screenplay):
    outcome = run_tool("edit_scene", screenplay, scene_heading="KITCHEN")
    assert outcome.result.startswith("Invalid input for tool 'edit_scene'")
    assert outcome.updated_document is None


# ---------------------------------------------------------------------------
# Reading tools
# ---------------------------------------------------------------------------


def test_read_screenplay_range(screenplay):
    outcome = run_tool("read_screenplay", screenplay, start_line=8, end_line=9)
    assert outcome.result == "Showing lines 8-9 of 19:\n\n8: MARY\n9: Is he here?"
    assert outcome.updated_document is None


def test_read_screenplay_whole_document(screenplay):
    outcome = run_tool("read_screenplay", screenplay)
    assert outcome.result.startswith("Showing lines 1-19 of 19:")
    assert "19: Nothing here." in outcome.result


def test_read_scene(screenplay):
    outcome = run_tool("read_scene", screenplay, scene_heading="garden")
    assert outcome.result.startswith("Scene: EXT. GARDEN - DAY\nLines 14-19:")
    assert "16: TOM digs." in outcome.result

    outcome = run_tool("read_scene", screenplay, scene_number=5)
    assert outcome.result == "Scene not found."


def test_search_screenplay_with_context(screenplay):
    outcome = run_tool("search_screenplay", screenplay, query="upstairs")
    assert outcome.result.startswith('Found 1 match(es) for "upstairs":')
    assert ">>> 12: Upstairs." in outcome.result
    assert "    11: TOM (O.S.)" in outcome.result

    outcome = run_tool("search_screenplay", screenplay, query="upstairs", case_sensitive=True)
    assert outcome.result == 'No matches found for "upstairs".'


def test_get_outline(screenplay):
    outcome = run_tool("get_outline", screenplay)
    assert outcome.result == (
        "Outline (2 scenes):\n"
        "1. INT. KITCHEN - NIGHT (lines 4-12); characters: MARY, TOM\n"
        "2. EXT. GARDEN - DAY (lines 14-19); characters: TOM"
    )
    assert run_tool("get_outline", "").result == "No scenes found in the screenplay."


def test_get_characters(screenplay):
    outcome = run_tool("get_characters", screenplay)
    assert outcome.result == (
        "Characters (2):\n"
        "- TOM: 2 dialogue block(s); scenes 1, 2\n"
        "- MARY: 1 dialogue block(s); scenes 1"
    )


# ---------------------------------------------------------------------------
# Editing tools
# ---------------------------------------------------------------------------


def test_edit_scene(screenplay):
    outcome = run_tool(
        "edit_scene", screenplay,
        scene_heading="garden", new_content="EXT. GARDEN - NIGHT\n\nTOM sleeps.",
    )
    assert outcome.result == (
        'Replaced scene "EXT. GARDEN - DAY" (lines 14-19) with new content.'
    )
    assert outcome.updated_document.endswith("Upstairs.\n\nEXT. GARDEN - NIGHT\n\nTOM sleeps.")


def test_edit_missing_scene(screenplay):
    outcome = run_tool("edit_scene", screenplay, scene_heading="attic", new_content="x")
    assert outcome.result == 'Scene not found: "attic"'
    assert outcome.updated_document is None


def test_insert_scene_after(screenplay):
    outcome = run_tool(
        "insert_scene", screenplay, after_scene="KITCHEN", content="INT. HALL - NIGHT"
    )
    assert "Upstairs.\n\nINT. HALL - NIGHT\n\nEXT. GARDEN - DAY" in outcome.updated_document


def test_insert_scene_at_start_keeps_title_page(screenplay):
    outcome = run_tool("insert_scene", screenplay, after_scene="START", content="EXT. ROAD - DAY")
    assert outcome.updated_document.startswith(
        "Title: The Visit\nAuthor: Jo\n\nEXT. ROAD - DAY\n\nINT. KITCHEN - NIGHT"
    )


def test_insert_scene_at_start_of_plain_and_empty_documents():
    outcome = run_tool("insert_scene", "INT. A - DAY", after_scene="start", content="INT. B - DAY")
    assert outcome.updated_document == "INT. B - DAY\n\nINT. A - DAY"

    outcome = run_tool("insert_scene", "", after_scene="START", content="INT. B - DAY")
    assert outcome.updated_document == "INT. B - DAY"


def test_insert_scene_missing_target(screenplay):
    outcome = run_tool("insert_scene", screenplay, after_scene="attic", content="x")
    assert outcome.result == 'Target scene not found: "attic"'
    assert outcome.updated_document is None


def test_delete_scene_removes_preceding_blank_line(screenplay):
    outcome = run_tool("delete_scene", screenplay, scene_heading="GARDEN")
    assert outcome.result == 'Deleted scene "EXT. GARDEN - DAY" (lines 14-19).'
    assert outcome.updated_document.endswith("TOM (O.S.)\nUpstairs.")


def test_replace_text_globally(screenplay):
    outcome = run_tool("replace_text", screenplay, find="TOM", replace="TOMMY")
    assert outcome.result == 'Replaced 3 occurrence(s) of "TOM" with "TOMMY" globally.'
    assert outcome.updated_document.count("TOMMY") == 3


def test_replace_text_scoped_to_scene(screenplay):
    outcome = run_tool(
        "replace_text", screenplay, find="TOM", replace="TOMMY", scene_heading="GARDEN"
    )
    assert outcome.result == (
        'Replaced 2 occurrence(s) of "TOM" with "TOMMY" in scene "EXT. GARDEN - DAY".'
    )
    assert "TOM (O.S.)" in outcome.updated_document


def test_replace_text_without_matches(screenplay):
    outcome = run_tool("replace_text", screenplay, find="zebra", replace="x")
    assert outcome.result == 'No occurrences of "zebra" found in the screenplay.'
    assert run_tool("replace_text", screenplay, find="", replace="x").updated_document is None


KITCHEN_LAST = """Title: The Visit
Author: Jo

EXT. GARDEN - DAY

TOM digs.

TOM
Nothing here.

INT. KITCHEN - NIGHT

MARY enters, soaked.

MARY
Is he here?

TOM (O.S.)
Upstairs."""


def test_reorder_scene_after_another(screenplay):
    outcome = run_tool("reorder_scenes", screenplay, scene_heading="kitchen", after_scene="garden")
    assert outcome.result == 'Moved scene "INT. KITCHEN - NIGHT" to after "EXT. GARDEN - DAY".'
    assert outcome.updated_document == KITCHEN_LAST


def test_reorder_scene_to_start_keeps_title_page(screenplay):
    outcome = run_tool("reorder_scenes", screenplay, scene_heading="GARDEN", after_scene="START")
    assert outcome.result == 'Moved scene "EXT. GARDEN - DAY" to the beginning.'
    assert outcome.updated_document == KITCHEN_LAST


def test_reorder_scene_to_start_of_plain_document():
    outcome = run_tool(
        "reorder_scenes", "INT. A - DAY\n\nINT. B - DAY", scene_heading="B - DAY", after_scene="start"
    )
    assert outcome.updated_document == "INT. B - DAY\n\nINT. A - DAY"


def test_reorder_missing_source_or_target(screenplay):
    outcome = run_tool("reorder_scenes", screenplay, scene_heading="attic", after_scene="garden")
    assert outcome.result == 'Source scene not found: "attic"'
    assert outcome.updated_document is None

    outcome = run_tool("reorder_scenes", screenplay, scene_heading="garden", after_scene="attic")
    assert outcome.result == 'Target scene not found: "attic"'
    assert outcome.updated_document is None


def test_reorder_scene_cannot_follow_itself(screenplay):
    outcome = run_tool("reorder_scenes", screenplay, scene_heading="garden", after_scene="garden")
    assert outcome.result == 'Target scene not found: "garden"'
