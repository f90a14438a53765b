"""
Streaming chunk models and session bookkeeping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..models import LogProb, ToolCall, Usage

DONE_SENTINEL = "[DONE]"


class SessionState(Enum):
    """Lifecycle of a streaming session."""
    OPEN = "open"
    RECEIVING = "receiving"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"
    CLOSED = "closed"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FunctionDelta(_Frozen):
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(_Frozen):
    """Fragment of a tool call; fragments sharing ``index`` belong together."""
    index: int = 0
    id: str | None = None
    type: str | None = None
    function: FunctionDelta | None = None


class StreamDelta(_Frozen):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class StreamLogProbs(_Frozen):
    content: list[LogProb] | None = None


class StreamChoice(_Frozen):
    index: int = 0
    delta: StreamDelta = StreamDelta()
    logprobs: StreamLogProbs | None = None
    finish_reason: str | None = None


class StreamChunk(_Frozen):
    """One incremental fragment of a chat completion, decoded from a frame."""
    id: str
    created: int
    model: str
    choices: list[StreamChoice] = []
    usage: Usage | None = None

    @property
    def content(self) -> str | None:
        """Content fragment of the first choice."""
        if not self.choices:
            return None
        return self.choices[0].delta.content

    @property
    def finish_reason(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].finish_reason


@dataclass
class ChoiceState:
    """Mutable per-choice state while folding chunks."""
    index: int
    role: str | None = None
    content_parts: list[str] = field(default_factory=list)
    tool_calls: dict[int, ToolCall] = field(default_factory=dict)
    logprobs: list[LogProb] | None = None
    finish_reason: str | None = None


@dataclass
class AccumulatorState:
    """Mutable state for chunk accumulation."""
    id: str | None = None
    created: int | None = None
    model: str | None = None
    choices: dict[int, ChoiceState] = field(default_factory=dict)
    usage: Usage | None = None
    chunk_count: int = 0
