"""
Chat completion models with validation at construction time.

This module provides the wire-level models shared by the streaming and
non-streaming code paths:
- Message structures and role helpers
- Tool calling support
- Log probability details
- Request models with eager range validation
- Response models (also produced by stream accumulation)
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


class ToolFunction(BaseModel):
    """Function name and JSON-encoded arguments of a tool call."""
    name: str = ""
    arguments: str = ""


class ToolCall(BaseModel):
    """OpenAI-compatible tool call structure."""
    id: str = ""
    type: str = "function"
    function: ToolFunction = Field(default_factory=ToolFunction)


class Message(BaseModel):
    """OpenAI-compatible message structure."""
    role: str
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)


class TopLogProb(BaseModel):
    token: str
    logprob: float
    bytes: list[int] | None = None


class LogProb(TopLogProb):
    """Log probability of one sampled token and its top alternatives."""
    top_logprobs: list[TopLogProb] = Field(default_factory=list)


class LogProbs(BaseModel):
    content: list[LogProb] | None = None


class Usage(BaseModel):
    """Token usage statistics."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    """OpenAI-compatible choice structure."""
    index: int = 0
    message: Message
    logprobs: LogProbs | None = None
    finish_reason: str | None = None


class ChatCompletionResponse(BaseModel):
    """Complete chat completion response.

    Returned by the non-streaming endpoints and by accumulating a stream,
    so callers can treat both the same way.
    """
    id: str
    created: int
    model: str
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)

    @property
    def content(self) -> str | None:
        """Content of the first choice, if any."""
        if not self.choices:
            return None
        return self.choices[0].message.content

    @property
    def finish_reason(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].finish_reason


class ChatCompletionRequest(BaseModel):
    """
    Immutable chat completion request.

    Ranges are validated when the request is built; use ``with_options`` to
    derive a modified copy, which is validated again.
    """
    model_config = ConfigDict(frozen=True)

    model: str = Field(min_length=1)
    messages: list[Message] = Field(min_length=1)
    stream: bool | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    n: int | None = Field(default=None, ge=1)
    seed: int | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    stop: list[str] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = Field(default=None, ge=0, le=20)
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None

    def with_options(self, **changes: Any) -> Self:
        """Return a validated copy with ``changes`` applied."""
        return self.model_validate({**self.model_dump(), **changes})

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the API, omitting unset options."""
        return self.model_dump(exclude_none=True)


class RAGChatCompletionRequest(ChatCompletionRequest):
    """Chat completion grounded on a vector store collection."""
    collection: str = Field(min_length=1)
