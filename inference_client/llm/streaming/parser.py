"""
Frame payload parsing into typed stream chunks.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from ..exceptions import APIError, ProtocolParseError
from .models import StreamChunk


class ChunkParser:
    """Decodes frame payloads into StreamChunk models.

    Parsing is strict: a malformed payload raises ProtocolParseError rather
    than being skipped, and an in-band ``{"error": {...}}`` payload raises
    APIError.
    """

    def __init__(self) -> None:
        self.stats = {
            'total_chunks': 0,
            'error_chunks': 0,
        }

    def parse(self, payload: str) -> StreamChunk:
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, RecursionError) as e:
            self.stats['error_chunks'] += 1
            raise ProtocolParseError(
                f"error parsing streaming response: {e}", payload
            ) from e

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            self.stats['error_chunks'] += 1
            raise _in_band_error(data["error"], payload)

        try:
            chunk = StreamChunk.model_validate(data)
        except ValidationError as e:
            self.stats['error_chunks'] += 1
            raise ProtocolParseError(
                f"invalid streaming chunk: {e.error_count()} validation error(s)",
                payload,
            ) from e

        self.stats['total_chunks'] += 1
        return chunk

    def get_stats(self) -> dict[str, int]:
        """Get parsing statistics for monitoring."""
        return self.stats.copy()


def _in_band_error(error: dict[str, Any], payload: str) -> APIError:
    code = error.get("code")
    return APIError(
        str(error.get("message") or "stream reported an error"),
        error_type=error.get("type"),
        code=None if code is None else str(code),
        body=payload,
        response_data=error,
    )
