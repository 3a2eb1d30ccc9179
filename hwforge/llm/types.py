"""Provider-neutral conversation and response types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]
FinishReason = Literal["stop", "tool_calls", "length"]


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass
class ConversationMessage:
    """One message of the orchestrator conversation.

    A ``tool`` message always follows the ``assistant`` message whose
    ``tool_calls`` declared ``tool_call_id``. ``thinking_blocks`` hold the
    provider's signed reasoning blocks; they are replayed within a run and
    never persisted.
    """
    role: Role
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None
    thinking_blocks: list[dict] = field(default_factory=list)

    @classmethod
    def system(cls, content: str) -> ConversationMessage:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> ConversationMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None,
                  thinking_blocks: list[dict] | None = None) -> ConversationMessage:
        return cls(role="assistant", content=content, tool_calls=tool_calls or [],
                   thinking_blocks=thinking_blocks or [])

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> ConversationMessage:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)


@dataclass
class ChatResponse:
    content: str
    model: str = ""
    usage: dict[str, int] | None = None


@dataclass
class ToolChatResponse:
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: FinishReason = "stop"
    thinking: str | None = None
    thinking_blocks: list[dict] = field(default_factory=list)
    usage: dict[str, int] | None = None
