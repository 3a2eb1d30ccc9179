"""Language-model and image clients."""

from .types import ToolCall, ConversationMessage, ChatResponse, ToolChatResponse
from .client import ModelClient, AnthropicClient, is_retryable_status, to_anthropic_messages
from .images import ImageClient, HttpImageClient

__all__ = [
    "ToolCall", "ConversationMessage", "ChatResponse", "ToolChatResponse",
    "ModelClient", "AnthropicClient", "is_retryable_status", "to_anthropic_messages",
    "ImageClient", "HttpImageClient",
]
