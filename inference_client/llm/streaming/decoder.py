"""
Line-oriented frame decoder for text/event-stream bodies.

Blank lines dispatch frames, ``data:`` lines carry the payload and every
other line (comments, ``event:``, ``id:``, ``retry:``, provider heartbeats)
is ignored. A ``[DONE]`` payload ends the stream.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

from ..exceptions import IncompleteStreamError, StreamStateError
from .models import DONE_SENTINEL

DATA_FIELD = "data"


class FrameDecoder:
    """Single-pass decoder yielding one frame payload per call.

    ``next_frame`` returns the payload string, or ``None`` once the sentinel
    has been seen. Any exception poisons the decoder; after exhaustion, an
    error or ``close`` further reads raise ``StreamStateError``.
    """

    def __init__(
        self, lines: AsyncIterable[str], *, require_sentinel: bool = True
    ) -> None:
        self._lines: AsyncIterator[str] = aiter(lines)
        self.require_sentinel = require_sentinel
        self._finished = False
        self.frames_decoded = 0

    @property
    def finished(self) -> bool:
        return self._finished

    async def next_frame(self) -> str | None:
        if self._finished:
            raise StreamStateError("frame decoder is no longer readable")

        try:
            payload = await self._read_frame()
        except BaseException:
            self._finished = True
            raise

        if payload is None or payload == DONE_SENTINEL:
            self._finished = True
            return None

        self.frames_decoded += 1
        return payload

    async def _read_frame(self) -> str | None:
        data_lines: list[str] = []

        async for raw_line in self._lines:
            line = raw_line.rstrip("\r\n")

            if not line:
                if data_lines:
                    return "\n".join(data_lines)
                continue

            field_name, sep, value = line.partition(":")
            if not sep or field_name != DATA_FIELD:
                continue
            data_lines.append(value[1:] if value.startswith(" ") else value)

        # Source exhausted; flush a frame missing its trailing blank line
        if data_lines:
            return "\n".join(data_lines)
        if self.require_sentinel:
            raise IncompleteStreamError()
        return None

    def close(self) -> None:
        self._finished = True
