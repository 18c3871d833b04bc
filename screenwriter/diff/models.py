"""Diff models: the structured difference between two document snapshots.

Field names are snake_case in Python and camelCase on the wire
(``originalStart``, ``modifiedText`` ...), matching what editor clients
already consume.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiffHunk(_WireModel):
    """One contiguous region of change.

    Line numbers are 1-based and inclusive. An empty range is expressed as
    ``end == start - 1``: for an ``add`` hunk, ``original_start`` is the
    original line the new lines go in front of; for a ``remove`` hunk,
    ``modified_start`` is where the removed lines used to be.
    """

    id: str
    type: Literal["add", "remove", "modify"]
    original_start: int
    original_end: int
    modified_start: int
    modified_end: int
    original_text: str
    modified_text: str
    accepted: bool | None = None

    @property
    def original_line_count(self) -> int:
        return self.original_end - self.original_start + 1

    @property
    def modified_line_count(self) -> int:
        return self.modified_end - self.modified_start + 1


class DiffResult(_WireModel):
    """Complete comparison of two texts. Recomputed, never edited."""

    hunks: list[DiffHunk]
    original_text: str
    modified_text: str
    summary: str = ""


class PatchPayload(_WireModel):
    """Compact form of a DiffResult streamed alongside tool results."""

    hunks: list[DiffHunk]
    summary: str
