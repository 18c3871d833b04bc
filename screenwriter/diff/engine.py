"""Diff engine: diffing, patching, and summary generation.

Built on diff-match-patch. Each line of both texts is encoded as a single
character, diffed at character level, then decoded back, so every hunk
covers whole lines. Line-granular hunks are what an editor displays and
what a writer accepts or rejects one at a time.
"""

from __future__ import annotations

import logging
import re

from diff_match_patch import diff_match_patch

from screenwriter.diff.models import DiffHunk, DiffResult, PatchPayload

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def split_lines(text: str) -> list[str]:
    """Split text into lines, each keeping its trailing newline.

    ``"".join(split_lines(text)) == text`` for every input.
    """
    return _LINE_RE.findall(text)


def _new_matcher() -> diff_match_patch:
    # diff_match_patch instances carry tunables only; one per call keeps the
    # engine free of shared state.
    return diff_match_patch()


def _line_diffs(original: str, modified: str) -> list[tuple[int, str]]:
    dmp = _new_matcher()
    chars1, chars2, line_array = dmp.diff_linesToChars(original, modified)
    diffs = dmp.diff_main(chars1, chars2, False)
    dmp.diff_cleanupSemantic(diffs)
    dmp.diff_charsToLines(diffs, line_array)
    return diffs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_diff(original: str, modified: str) -> DiffResult:
    """Compute a structured, line-oriented diff between two texts.

    Consecutive delete/insert operations that are not separated by an
    equal run collapse into one hunk: ``add`` (insert only), ``remove``
    (delete only) or ``modify`` (both). Hunk ids are numbered per call.
    """
    diffs = _line_diffs(original, modified)

    hunks: list[DiffHunk] = []
    original_line = 1
    modified_line = 1

    i = 0
    while i < len(diffs):
        op, text = diffs[i]

        if op == diff_match_patch.DIFF_EQUAL:
            count = len(split_lines(text))
            original_line += count
            modified_line += count
            i += 1
            continue

        removed: list[str] = []
        added: list[str] = []
        while i < len(diffs) and diffs[i][0] != diff_match_patch.DIFF_EQUAL:
            inner_op, inner_text = diffs[i]
            if inner_op == diff_match_patch.DIFF_DELETE:
                removed.append(inner_text)
            else:
                added.append(inner_text)
            i += 1

        removed_text = "".join(removed)
        added_text = "".join(added)
        removed_lines = len(split_lines(removed_text))
        added_lines = len(split_lines(added_text))

        if removed_text and added_text:
            kind = "modify"
        elif removed_text:
            kind = "remove"
        else:
            kind = "add"

        hunks.append(
            DiffHunk(
                id=f"hunk-{len(hunks) + 1}",
                type=kind,
                original_start=original_line,
                original_end=original_line + removed_lines - 1,
                modified_start=modified_line,
                modified_end=modified_line + added_lines - 1,
                original_text=removed_text,
                modified_text=added_text,
            )
        )

        original_line += removed_lines
        modified_line += added_lines

    result = DiffResult(hunks=hunks, original_text=original, modified_text=modified)
    result.summary = generate_summary(result)
    return result


def generate_summary(diff: DiffResult) -> str:
    """Describe a diff in plain English.

    "Added 3 lines, removed 1 line, modified 2 sections" or "No changes".
    """
    if not diff.hunks:
        return "No changes"

    added_lines = 0
    removed_lines = 0
    modified_sections = 0
    has_additions = False
    has_removals = False

    for hunk in diff.hunks:
        if hunk.type == "add":
            has_additions = True
            added_lines += len(split_lines(hunk.modified_text))
        elif hunk.type == "remove":
            has_removals = True
            removed_lines += len(split_lines(hunk.original_text))
        else:
            modified_sections += 1

    parts: list[str] = []
    if has_additions:
        parts.append(f"added {added_lines} {'line' if added_lines == 1 else 'lines'}")
    if has_removals:
        parts.append(f"removed {removed_lines} {'line' if removed_lines == 1 else 'lines'}")
    if modified_sections:
        parts.append(
            f"modified {modified_sections} "
            f"{'section' if modified_sections == 1 else 'sections'}"
        )

    summary = ", ".join(parts)
    return summary[0].upper() + summary[1:]


def apply_diff(original: str, diff: DiffResult) -> str:
    """Apply a complete diff to ``original``, producing the modified text.

    The patch is re-derived from the stored original/modified pair and
    applied fuzzily, so it still lands if ``original`` has drifted a little
    since the diff was computed.
    """
    dmp = _new_matcher()
    patches = dmp.patch_make(diff.original_text, diff.modified_text)
    patched, results = dmp.patch_apply(patches, original)
    if not all(results):
        logger.warning(
            f"apply_diff: {results.count(False)}/{len(results)} patch(es) did not apply"
        )
    return patched


def apply_selected_hunks(
    original: str,
    diff: DiffResult,
    accepted_hunk_ids: list[str],
) -> str:
    """Apply only the accepted hunks, leaving every other region untouched.

    Hunks are spliced from the end of the document backwards, so applying
    one never shifts the line numbers of the hunks still waiting.

    Raises ValueError if two accepted hunks overlap in the original.
    """
    accepted = set(accepted_hunk_ids)
    selected = [h for h in diff.hunks if h.id in accepted]
    selected.sort(key=lambda h: (h.original_start, h.original_end))

    for prev, cur in zip(selected, selected[1:]):
        if cur.original_start <= prev.original_end:
            raise ValueError(
                f"Hunks '{prev.id}' and '{cur.id}' overlap "
                f"(lines {prev.original_start}-{prev.original_end} and "
                f"{cur.original_start}-{cur.original_end})"
            )

    lines = split_lines(original)
    for hunk in reversed(selected):
        start = hunk.original_start - 1
        lines[start : start + hunk.original_line_count] = split_lines(hunk.modified_text)

    return "".join(lines)


def compute_patch(old_text: str, new_text: str) -> PatchPayload | None:
    """Compact patch between two snapshots, or None when nothing changed."""
    if old_text == new_text:
        return None
    diff = calculate_diff(old_text, new_text)
    return PatchPayload(hunks=diff.hunks, summary=diff.summary)
