"""LangGraph shared state: the working memory of a single agent run."""

from typing import Annotated

from langchain_core.messages import BaseMessage
from langgraph.graph.message import add_messages
from typing_extensions import TypedDict

from screenwriter.schemas import Plan


class AgentState(TypedDict):
    """State passed through every node in the graph.

    system_prompt  system prompt shared by both phases.
    request        caller history plus the new request message.
    plan           parsed plan; None until the plan node has run.
    plan_text      text segments of the planning reply.
    messages       execution conversation; add_messages appends rather
                   than overwriting. The planning conversation never
                   enters the state.
    document       current document snapshot, replaced on every edit.
    step_index     index of the plan step being worked on.
    iteration      completed execution iterations.
    status         None while running, then "completed",
                   "iteration_limit" or "cancelled".
    """

    system_prompt: str
    request: list[BaseMessage]
    plan: Plan | None
    plan_text: list[str]
    messages: Annotated[list[BaseMessage], add_messages]
    document: str
    step_index: int
    iteration: int
    status: str | None
