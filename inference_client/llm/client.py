"""
Inference API client for chat completions.

Non-streaming calls return a ChatCompletionResponse; streaming calls return
a StreamingSession the caller owns and must close, or drive a consumer and
close the session themselves.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from ..config import ClientConfig, Configuration
from ..logging_utils import (
    classify_error,
    configure_logging,
    log_operation,
    operation_context,
)
from .exceptions import ProtocolParseError, TransportError
from .models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    Message,
    RAGChatCompletionRequest,
)
from .streaming.session import StreamConsumer, StreamingSession
from .transport import CONTENT_TYPE_EVENT_STREAM, Transport

CHAT_COMPLETIONS_PATH = "/chat/completions"
RAG_CHAT_COMPLETIONS_PATH = "/chat/completions/rag"


class InferenceClient:
    """Client for the chat completion endpoints of the inference API."""

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.transport = Transport(config, http_client)

    @classmethod
    def from_configuration(
        cls, configuration: Configuration | None = None
    ) -> InferenceClient:
        """Build a client from YAML config and the environment API key.

        Also applies the configured log level.
        """
        configuration = configuration or Configuration()
        configure_logging(configuration.get_logging_config())
        return cls(ClientConfig.from_configuration(configuration))

    async def _post_json(
        self, path: str, request: ChatCompletionRequest
    ) -> ChatCompletionResponse:
        response = await self.transport.send("POST", path, request)
        try:
            raw = await response.aread()
        except httpx.HTTPError as e:
            raise TransportError(
                f"error reading response: {e}", category=classify_error(e)
            ) from e
        finally:
            await response.aclose()

        try:
            return ChatCompletionResponse.model_validate_json(raw)
        except ValidationError as e:
            raise ProtocolParseError(
                f"error decoding response: {e.error_count()} validation error(s)",
                raw.decode("utf-8", errors="replace"),
            ) from e

    @log_operation("chat_completion")
    async def create_chat_completion(
        self, request: ChatCompletionRequest
    ) -> ChatCompletionResponse:
        return await self._post_json(CHAT_COMPLETIONS_PATH, request)

    @log_operation("rag_chat_completion")
    async def create_rag_chat_completion(
        self, request: RAGChatCompletionRequest
    ) -> ChatCompletionResponse:
        return await self._post_json(RAG_CHAT_COMPLETIONS_PATH, request)

    async def simple_chat_completion(
        self, model: str, prompt: str
    ) -> ChatCompletionResponse:
        """Single user prompt, default options."""
        request = ChatCompletionRequest(model=model, messages=[Message.user(prompt)])
        return await self.create_chat_completion(request)

    async def _open_stream(
        self, path: str, request: ChatCompletionRequest
    ) -> StreamingSession:
        request = request.with_options(stream=True)
        async with operation_context(
            "open_stream", context={"path": path, "model": request.model}
        ):
            response = await self.transport.send(
                "POST",
                path,
                request,
                {"Accept": CONTENT_TYPE_EVENT_STREAM},
                stream=True,
            )
        return StreamingSession(
            response,
            require_sentinel=self.config.require_sentinel,
            deadline=self.config.stream_deadline,
            context={"path": path, "model": request.model},
        )

    async def create_chat_completion_stream(
        self, request: ChatCompletionRequest
    ) -> StreamingSession:
        """Open a streaming chat completion; the caller must close it."""
        return await self._open_stream(CHAT_COMPLETIONS_PATH, request)

    async def create_rag_chat_completion_stream(
        self, request: RAGChatCompletionRequest
    ) -> StreamingSession:
        return await self._open_stream(RAG_CHAT_COMPLETIONS_PATH, request)

    async def stream_chat_completion(
        self, request: ChatCompletionRequest, consumer: StreamConsumer
    ) -> None:
        """Stream a chat completion into ``consumer``, always closing the session."""
        async with await self.create_chat_completion_stream(request) as session:
            await session.for_each(consumer)

    async def stream_rag_chat_completion(
        self, request: RAGChatCompletionRequest, consumer: StreamConsumer
    ) -> None:
        async with await self.create_rag_chat_completion_stream(request) as session:
            await session.for_each(consumer)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.transport.aclose()

    async def __aenter__(self) -> InferenceClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
