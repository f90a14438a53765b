"""
Streaming session over one live event-stream response.

The session owns its response from open to close and supports three ways
of consuming chunks:
- pull: ``await session.receive()`` until it returns None
- push: ``await session.for_each(consumer)``
- iteration: ``async for chunk in session``

Any failure while reading or parsing a frame poisons the session. Errors
raised by a push consumer propagate unchanged and leave the session usable.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable

import httpx

from ...logging_utils import ContextualLogger, classify_error
from ..exceptions import LLMError, StreamCancelledError, StreamStateError, TransportError
from .decoder import FrameDecoder
from .models import SessionState, StreamChunk
from .parser import ChunkParser

StreamConsumer = Callable[[StreamChunk], Awaitable[object] | object]

_session_ids = itertools.count(1)


class StreamingSession:
    """Exclusively owned consumption of one streaming response.

    State machine: OPEN -> RECEIVING -> {EXHAUSTED | ERRORED}; ``close()``
    moves any state to CLOSED, which is terminal.
    """

    def __init__(
        self,
        response: httpx.Response | None,
        *,
        lines: AsyncIterable[str] | None = None,
        require_sentinel: bool = True,
        deadline: float | None = None,
        parser: ChunkParser | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """
        Args:
            response: Streamed response whose body is read and later closed.
            lines: Line source overriding ``response.aiter_lines()``.
            require_sentinel: Treat EOF without ``[DONE]`` as a transport error.
            deadline: Seconds from now after which any pending read is aborted.
            parser: Chunk parser to use; a new one by default.
            context: Extra fields bound to this session's log entries.
        """
        if response is None and lines is None:
            raise ValueError("either response or lines must be provided")

        self._response = response
        source = lines if lines is not None else response.aiter_lines()
        self._decoder = FrameDecoder(source, require_sentinel=require_sentinel)
        self._parser = parser or ChunkParser()
        self._state = SessionState.OPEN
        self._error: BaseException | None = None
        self._deadline = (
            asyncio.get_running_loop().time() + deadline
            if deadline is not None else None
        )
        self.chunks_received = 0
        self.log = ContextualLogger({
            "session_id": next(_session_ids),
            **(context or {}),
        })
        self.log.debug("Stream session opened")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is SessionState.CLOSED

    def _read_deadline(self, timeout: float | None) -> float | None:
        if timeout is None:
            return self._deadline
        call_deadline = asyncio.get_running_loop().time() + timeout
        if self._deadline is None:
            return call_deadline
        return min(self._deadline, call_deadline)

    async def receive(self, *, timeout: float | None = None) -> StreamChunk | None:
        """
        Read the next chunk.

        Args:
            timeout: Seconds to wait for this chunk, on top of any session
                deadline.

        Returns:
            The next chunk, or None once the stream is exhausted.

        Raises:
            TransportError: Reading failed, timed out or was cut short.
            ProtocolParseError: A frame did not decode into a chunk.
            APIError: The stream carried an in-band error.
            StreamStateError: The session is closed or already errored.
        """
        if self._state is SessionState.CLOSED:
            raise StreamStateError("stream session is closed")
        if self._state is SessionState.ERRORED:
            raise StreamStateError(
                "stream session failed earlier and cannot be resumed"
            ) from self._error
        if self._state is SessionState.EXHAUSTED:
            return None

        self._state = SessionState.RECEIVING
        try:
            async with asyncio.timeout_at(self._read_deadline(timeout)):
                payload = await self._decoder.next_frame()
            if payload is None:
                self._state = SessionState.EXHAUSTED
                self.log.debug(
                    "Stream exhausted", chunks_received=self.chunks_received
                )
                return None
            chunk = self._parser.parse(payload)
        except TimeoutError as e:
            raise self._fail(
                StreamCancelledError("stream read deadline exceeded")
            ) from e
        except httpx.HTTPError as e:
            raise self._fail(
                TransportError(
                    f"error reading stream: {e}", category=classify_error(e)
                )
            ) from e
        except LLMError as e:
            raise self._fail(e)
        except asyncio.CancelledError as e:
            self._fail(e)
            raise
        except Exception as e:
            raise self._fail(e)

        self.chunks_received += 1
        return chunk

    def _fail(self, error: BaseException) -> BaseException:
        self._state = SessionState.ERRORED
        self._error = error
        self._decoder.close()
        self.log.warning(
            "Stream session errored",
            error_type=type(error).__name__,
            error_message=str(error),
            chunks_received=self.chunks_received,
        )
        return error

    async def for_each(self, consumer: StreamConsumer) -> None:
        """
        Call ``consumer`` once per chunk until the stream is exhausted.

        The consumer may be a plain or async callable. Anything it raises is
        propagated as-is and no further chunks are delivered.
        """
        chunk = await self.receive()
        while chunk is not None:
            result = consumer(chunk)
            if inspect.isawaitable(result):
                await result
            if self.closed:
                return
            chunk = await self.receive()

    def __aiter__(self) -> AsyncIterator[StreamChunk]:
        return self

    async def __anext__(self) -> StreamChunk:
        chunk = await self.receive()
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    async def close(self) -> None:
        """Release the connection; safe to call any number of times."""
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        self._decoder.close()
        if self._response is not None:
            await self._response.aclose()
        self.log.debug(
            "Stream session closed", chunks_received=self.chunks_received
        )

    async def __aenter__(self) -> StreamingSession:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
