"""Async client for a hosted, OpenAI-compatible inference API."""

from __future__ import annotations

from .config import ClientConfig, Configuration
from .llm import (
    APIError,
    ChatCompletionRequest,
    ChatCompletionResponse,
    InferenceClient,
    LLMError,
    Message,
    ProtocolParseError,
    RAGChatCompletionRequest,
    StreamChunk,
    StreamingSession,
    TransportError,
    accumulate,
)

__all__ = [
    "APIError",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ClientConfig",
    "Configuration",
    "InferenceClient",
    "LLMError",
    "Message",
    "ProtocolParseError",
    "RAGChatCompletionRequest",
    "StreamChunk",
    "StreamingSession",
    "TransportError",
    "accumulate",
]
