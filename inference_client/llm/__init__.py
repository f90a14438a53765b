"""
Inference API integration.

This package provides:
- Validated request and response models
- An authenticated HTTP transport with error classification
- Streaming chat completions with accumulation into full responses
"""

from __future__ import annotations

from .client import InferenceClient
from .exceptions import (
    APIError,
    IncompleteStreamError,
    LLMError,
    ProtocolParseError,
    StreamCancelledError,
    StreamStateError,
    TransportError,
)
from .models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    Choice,
    LogProb,
    LogProbs,
    Message,
    RAGChatCompletionRequest,
    ToolCall,
    ToolFunction,
    TopLogProb,
    Usage,
)
from .streaming import (
    SessionState,
    StreamChunk,
    StreamingSession,
    accumulate,
    accumulate_content,
)
from .transport import Transport

__all__ = [
    # Client
    "InferenceClient",
    "Transport",
    # Errors
    "APIError",
    "IncompleteStreamError",
    "LLMError",
    "ProtocolParseError",
    "StreamCancelledError",
    "StreamStateError",
    "TransportError",
    # Models
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "Choice",
    "LogProb",
    "LogProbs",
    "Message",
    "RAGChatCompletionRequest",
    "ToolCall",
    "ToolFunction",
    "TopLogProb",
    "Usage",
    # Streaming
    "SessionState",
    "StreamChunk",
    "StreamingSession",
    "accumulate",
    "accumulate_content",
]
