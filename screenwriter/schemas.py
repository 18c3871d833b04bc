"""Request/response models: the contract between engine and clients."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from screenwriter.diff.models import PatchPayload


class HistoryTurn(BaseModel):
    """One prior conversation turn. ``content`` is plain text or a list of
    provider content blocks, passed through untouched."""

    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]


class AgentRequest(BaseModel):
    """Incoming request body for an agent run.

    ``document`` is required but may be empty. ``toolset`` and ``voice``
    select entries from config.yaml; omitted means the configured default.
    """

    message: str
    document: str
    history: list[HistoryTurn] = []
    toolset: str | None = None
    voice: str | None = None


class Plan(BaseModel):
    summary: str
    steps: list[str]


# ---------------------------------------------------------------------------
# Stream events: one NDJSON line each
# ---------------------------------------------------------------------------


class MetadataEvent(BaseModel):
    type: Literal["metadata"] = "metadata"
    phase: Literal["plan", "execute"]
    model: str
    label: str
    thinking: bool = False


class PlanEvent(BaseModel):
    type: Literal["plan"] = "plan"
    plan: Plan


class StepEvent(BaseModel):
    type: Literal["step"] = "step"
    index: int
    status: Literal["in_progress", "completed"]
    description: str | None = None


class TextEvent(BaseModel):
    type: Literal["text"] = "text"
    content: str


class ToolCallEvent(BaseModel):
    type: Literal["tool_call"] = "tool_call"
    name: str
    input: dict[str, Any]


class ToolResultEvent(BaseModel):
    """``patch`` and ``updatedDocument`` are present only when the tool
    changed the document."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tool_result"] = "tool_result"
    name: str
    result: str
    patch: PatchPayload | None = None
    updated_document: str | None = Field(default=None, alias="updatedDocument")


class DoneEvent(BaseModel):
    """Terminal success event.

    status:
        completed        the model stopped requesting tools
        iteration_limit  the iteration cap was reached while tools were
                         still being requested
        cancelled        the run was cancelled before finishing
    """

    type: Literal["done"] = "done"
    status: Literal["completed", "iteration_limit", "cancelled"] = "completed"
    document: str | None = None


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


StreamEvent = Annotated[
    Union[
        MetadataEvent,
        PlanEvent,
        StepEvent,
        TextEvent,
        ToolCallEvent,
        ToolResultEvent,
        DoneEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]
