"""
Streaming support for chat completions.

This package contains:
- Frame decoding of text/event-stream bodies
- Chunk parsing into typed deltas
- Chunk accumulation into complete responses
- Streaming sessions with pull, push and iterator consumption
"""

from __future__ import annotations

from .accumulator import ChunkAccumulator, accumulate, accumulate_content
from .decoder import FrameDecoder
from .models import (
    DONE_SENTINEL,
    FunctionDelta,
    SessionState,
    StreamChoice,
    StreamChunk,
    StreamDelta,
    StreamLogProbs,
    ToolCallDelta,
)
from .parser import ChunkParser
from .session import StreamConsumer, StreamingSession

__all__ = [
    "DONE_SENTINEL",
    "ChunkAccumulator",
    "ChunkParser",
    "FrameDecoder",
    "FunctionDelta",
    "SessionState",
    "StreamChoice",
    "StreamChunk",
    "StreamConsumer",
    "StreamDelta",
    "StreamLogProbs",
    "StreamingSession",
    "ToolCallDelta",
    "accumulate",
    "accumulate_content",
]
