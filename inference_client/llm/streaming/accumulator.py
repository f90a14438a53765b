"""
Folding of ordered stream chunks into a complete chat completion response.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..models import (
    ChatCompletionResponse,
    Choice,
    LogProbs,
    Message,
    ToolCall,
    ToolFunction,
    Usage,
)
from .models import AccumulatorState, ChoiceState, StreamChoice, StreamChunk, ToolCallDelta

DEFAULT_ROLE = "assistant"


class ChunkAccumulator:
    """
    Incremental chunk accumulation with tool call reconstruction.

    Chunks must be added in arrival order. Identifying fields come from the
    first chunk; per choice, the first role and the last finish reason win
    and content fragments are concatenated.
    """

    def __init__(self):
        self.state = AccumulatorState()

    def add(self, chunk: StreamChunk) -> None:
        state = self.state
        if state.chunk_count == 0:
            state.id = chunk.id
            state.created = chunk.created
            state.model = chunk.model
        state.chunk_count += 1

        if chunk.usage is not None:
            state.usage = chunk.usage

        for choice in chunk.choices:
            self._add_choice(choice)

    def _add_choice(self, choice: StreamChoice) -> None:
        slot = self.state.choices.get(choice.index)
        if slot is None:
            slot = self.state.choices[choice.index] = ChoiceState(index=choice.index)

        delta = choice.delta
        if slot.role is None and delta.role is not None:
            slot.role = delta.role
        if delta.content is not None:
            slot.content_parts.append(delta.content)
        if delta.tool_calls:
            self._accumulate_tool_calls(slot, delta.tool_calls)

        if choice.logprobs is not None and choice.logprobs.content:
            if slot.logprobs is None:
                slot.logprobs = []
            slot.logprobs.extend(choice.logprobs.content)

        if choice.finish_reason is not None:
            slot.finish_reason = choice.finish_reason

    @staticmethod
    def _accumulate_tool_calls(
        slot: ChoiceState, tool_calls_delta: list[ToolCallDelta]
    ) -> None:
        """Merge tool call fragments into their slots by index."""
        for tool_call_delta in tool_calls_delta:
            existing_call = slot.tool_calls.get(tool_call_delta.index)
            if existing_call is None:
                existing_call = ToolCall()

            new_id = existing_call.id
            if tool_call_delta.id is not None:
                new_id += tool_call_delta.id

            new_name = existing_call.function.name
            new_args = existing_call.function.arguments
            if tool_call_delta.function is not None:
                if tool_call_delta.function.name is not None:
                    new_name += tool_call_delta.function.name
                if tool_call_delta.function.arguments is not None:
                    new_args += tool_call_delta.function.arguments

            slot.tool_calls[tool_call_delta.index] = ToolCall(
                id=new_id,
                type=tool_call_delta.type or existing_call.type,
                function=ToolFunction(name=new_name, arguments=new_args),
            )

    def result(self) -> ChatCompletionResponse | None:
        """Build the response, or None if no chunk was added."""
        state = self.state
        if state.chunk_count == 0:
            return None

        choices = [
            Choice(
                index=slot.index,
                message=Message(
                    role=slot.role or DEFAULT_ROLE,
                    content="".join(slot.content_parts),
                    tool_calls=(
                        [slot.tool_calls[i] for i in sorted(slot.tool_calls)]
                        if slot.tool_calls else None
                    ),
                ),
                logprobs=(
                    LogProbs(content=list(slot.logprobs))
                    if slot.logprobs is not None else None
                ),
                finish_reason=slot.finish_reason,
            )
            for slot in (state.choices[i] for i in sorted(state.choices))
        ]

        return ChatCompletionResponse(
            id=state.id or "",
            created=state.created or 0,
            model=state.model or "",
            choices=choices,
            usage=state.usage or Usage(),
        )

    def reset(self) -> None:
        """Reset accumulator state for a new stream."""
        self.state = AccumulatorState()


def accumulate(chunks: Iterable[StreamChunk]) -> ChatCompletionResponse | None:
    """Fold an ordered chunk sequence into one response; None when empty."""
    accumulator = ChunkAccumulator()
    for chunk in chunks:
        accumulator.add(chunk)
    return accumulator.result()


def accumulate_content(chunks: Iterable[StreamChunk]) -> str:
    """Concatenate the first choice's content fragments."""
    return "".join(chunk.content or "" for chunk in chunks)
