"""Model client — the orchestrator's only route to a language model.

``ModelClient`` is the interface the orchestrator and tools depend on.
``AnthropicClient`` implements it on the Anthropic Messages API and owns
the retry policy: status-coded client errors (4xx) fail immediately, with
the exception of timeouts, conflicts and rate limits; everything else is
retried with exponential backoff (1s, 2s, 4s).
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Protocol, TypeVar

import anthropic

from hwforge.errors import ModelCallError

from .types import ChatResponse, ConversationMessage, ToolCall, ToolChatResponse

log = logging.getLogger("hwforge.llm")

DEFAULT_MODEL = "claude-sonnet-4-6"
DEFAULT_MAX_TOKENS = 4096

_FINISH_REASONS = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "length",
}

T = TypeVar("T")


class ModelClient(Protocol):
    async def chat(
        self,
        messages: list[ConversationMessage],
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> ChatResponse:
        ...

    async def chat_with_tools(
        self,
        messages: list[ConversationMessage],
        tools: list[dict],
        temperature: float = 0.3,
        max_tokens: int | None = None,
        thinking: int | None = None,
    ) -> ToolChatResponse:
        ...


def is_retryable_status(status_code: int | None) -> bool:
    """Whether a failed call with this HTTP status is worth retrying."""
    if status_code is None:
        return True
    return not 400 <= status_code < 500


# ── Message conversion ─────────────────────────────────────────────

def to_anthropic_messages(messages: list[ConversationMessage]) -> tuple[str, list[dict]]:
    """Split out the system prompt and convert the rest to API turns.

    Tool results become ``tool_result`` blocks in a user turn; consecutive
    turns with the same role are merged so the API sees strict alternation.
    """
    system_parts: list[str] = []
    turns: list[dict] = []

    def push(role: str, blocks: list[dict]) -> None:
        if not blocks:
            return
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].extend(blocks)
        else:
            turns.append({"role": role, "content": blocks})

    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content)
        elif msg.role == "user":
            push("user", [{"type": "text", "text": msg.content}] if msg.content else [])
        elif msg.role == "tool":
            push("user", [{
                "type": "tool_result",
                "tool_use_id": msg.tool_call_id,
                "content": msg.content,
            }])
        else:
            blocks: list[dict] = list(msg.thinking_blocks)
            if msg.content:
                blocks.append({"type": "text", "text": msg.content})
            for call in msg.tool_calls:
                blocks.append({"type": "tool_use", "id": call.id,
                               "name": call.name, "input": call.arguments})
            push("assistant", blocks)

    return "\n\n".join(system_parts), turns


def _parse_content(content: list) -> tuple[str, list[ToolCall], str | None, list[dict]]:
    texts: list[str] = []
    calls: list[ToolCall] = []
    thoughts: list[str] = []
    thinking_blocks: list[dict] = []

    for block in content:
        kind = getattr(block, "type", None)
        if kind == "text":
            texts.append(block.text)
        elif kind == "tool_use":
            args = block.input if isinstance(block.input, dict) else {}
            calls.append(ToolCall(id=block.id, name=block.name, arguments=args))
        elif kind == "thinking":
            thoughts.append(block.thinking)
            thinking_blocks.append({"type": "thinking", "thinking": block.thinking,
                                    "signature": block.signature})
        elif kind == "redacted_thinking":
            thinking_blocks.append({"type": "redacted_thinking", "data": block.data})

    thinking = "\n".join(thoughts) if thoughts else None
    return "\n".join(texts), calls, thinking, thinking_blocks


def _usage(response: Any) -> dict[str, int] | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    return {"input_tokens": usage.input_tokens, "output_tokens": usage.output_tokens}


# ── Anthropic ──────────────────────────────────────────────────────

class AnthropicClient:
    """ModelClient on ``anthropic.AsyncAnthropic`` with bounded retries."""

    def __init__(self, model: str | None = None, api_key: str | None = None,
                 max_retries: int = 3, backoff_base: float = 1.0):
        key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")
        # Retries are handled here so 4xx classification stays in one place
        self._client = anthropic.AsyncAnthropic(api_key=key, max_retries=0)
        self.model = model or os.environ.get("HWFORGE_MODEL", DEFAULT_MODEL)
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    async def _with_retry(self, call: Callable[[], Awaitable[T]]) -> T:
        for attempt in range(self.max_retries + 1):
            try:
                return await call()
            except anthropic.APIStatusError as e:
                retryable = is_retryable_status(e.status_code)
                if not retryable or attempt == self.max_retries:
                    raise ModelCallError(str(e), status_code=e.status_code,
                                         retryable=retryable) from e
                reason = f"HTTP {e.status_code}"
            except anthropic.APIConnectionError as e:
                if attempt == self.max_retries:
                    raise ModelCallError(str(e), retryable=True) from e
                reason = "connection error"

            wait = self.backoff_base * (2 ** attempt)
            log.warning("Model call failed (%s), retrying in %.0fs (attempt %d/%d)...",
                        reason, wait, attempt + 1, self.max_retries)
            await asyncio.sleep(wait)

        raise ModelCallError("Max retries exceeded", retryable=True)

    async def chat(
        self,
        messages: list[ConversationMessage],
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> ChatResponse:
        system, turns = to_anthropic_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "messages": turns,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self._with_retry(lambda: self._client.messages.create(**kwargs))
        content, _, _, _ = _parse_content(response.content)
        log.debug("chat: %d chars, stop=%s", len(content), response.stop_reason)
        return ChatResponse(content=content, model=response.model, usage=_usage(response))

    async def chat_with_tools(
        self,
        messages: list[ConversationMessage],
        tools: list[dict],
        temperature: float = 0.3,
        max_tokens: int | None = None,
        thinking: int | None = None,
    ) -> ToolChatResponse:
        system, turns = to_anthropic_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "messages": turns,
            "tools": tools,
        }
        if system:
            kwargs["system"] = system
        if thinking:
            # Extended thinking runs at the API's fixed temperature
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": thinking}
            kwargs["max_tokens"] = max(kwargs["max_tokens"], thinking + 1024)
        else:
            kwargs["temperature"] = temperature

        response = await self._with_retry(lambda: self._client.messages.create(**kwargs))
        content, calls, thought, blocks = _parse_content(response.content)
        finish = _FINISH_REASONS.get(response.stop_reason or "", "stop")
        log.debug("chat_with_tools: %d tool call(s), stop=%s", len(calls), response.stop_reason)
        return ToolChatResponse(
            content=content,
            tool_calls=calls,
            finish_reason=finish,
            thinking=thought,
            thinking_blocks=blocks,
            usage=_usage(response),
        )
