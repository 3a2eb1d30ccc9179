"""Conversation helpers — trimming, persistence shaping, and restore."""

from __future__ import annotations

import json
import time

from hwforge.llm import ConversationMessage
from hwforge.project import (
    PersistedMessage, PersistedOrchestratorState, ProjectSpec, Stage,
)

from .config import MAX_MESSAGES, TRIM_TO


def trim_history(
    history: list[ConversationMessage],
    current_stage: Stage,
    project: ProjectSpec,
    iteration: int,
) -> list[ConversationMessage]:
    """Bound the conversation sent to the model.

    At or under MAX_MESSAGES the history is returned unchanged. Above it,
    the system message is kept, followed by a one-line summary of what was
    dropped, followed by the most recent TRIM_TO messages. The kept tail is
    widened backwards while it would open on a ``tool`` message, so an
    assistant message is never separated from its tool results.

    Returns a new list; ``history`` itself is left untouched.
    """
    if len(history) <= MAX_MESSAGES:
        return history

    start = len(history) - TRIM_TO
    while start > 1 and history[start].role == "tool":
        start -= 1
    if start <= 1:
        return history

    dropped = start - 1
    completed = ", ".join(s.value for s in project.completed_stages()) or "none"
    summary = ConversationMessage.user(
        f"[{dropped} messages trimmed. Stage: {current_stage.value}. "
        f"Completed: {completed}. Iteration: {iteration}. Continue.]"
    )
    return [history[0], summary, *history[start:]]


def _content_text(content: object) -> str:
    return content if isinstance(content, str) else json.dumps(content, default=str)


def build_persisted_state(
    history: list[ConversationMessage],
    iteration: int,
    status: str,
    current_stage: Stage,
) -> PersistedOrchestratorState:
    """Snapshot for resume: tool messages dropped, role + text only."""
    return PersistedOrchestratorState(
        conversation_history=[
            PersistedMessage(role=m.role, content=_content_text(m.content))
            for m in history
            if m.role != "tool"
        ],
        iteration=iteration,
        status=status,
        current_stage=current_stage,
        updated_at=int(time.time() * 1000),
    )


def restore_history(state: PersistedOrchestratorState) -> list[ConversationMessage]:
    """Turn a persisted conversation back into live messages."""
    return [ConversationMessage(role=m.role, content=m.content)
            for m in state.conversation_history]


def resume_notice(iteration: int, current_stage: Stage) -> ConversationMessage:
    return ConversationMessage.user(
        f"[Resumed from iteration {iteration}. Current stage: {current_stage.value}. "
        f"Continue where you left off.]"
    )
