"""
Tests for InferenceClient against a mocked inference API.
"""

import json

import httpx
import pytest

from inference_client.config import API_KEY_ENV, ClientConfig, Configuration
from inference_client.llm.client import InferenceClient
from inference_client.llm.exceptions import APIError, ProtocolParseError
from inference_client.llm.models import (
    ChatCompletionRequest,
    Message,
    RAGChatCompletionRequest,
)
from inference_client.llm.streaming.accumulator import accumulate
from inference_client.llm.streaming.models import SessionState

BASE_URL = "https://api.example.test/v1"


def sse_body(*contents: str) -> bytes:
    frames = []
    for i, content in enumerate(contents):
        finish_reason = "stop" if i == len(contents) - 1 else None
        frames.append("data: " + json.dumps({
            "id": "chat-123",
            "created": 1640995200,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "delta": {"role": "assistant", "content": content} if i == 0 else {"content": content},
                "finish_reason": finish_reason,
            }],
        }) + "\n\n")
    frames.append("data: [DONE]\n\n")
    return "".join(frames).encode()


COMPLETION = {
    "id": "chat-456",
    "created": 1640995200,
    "model": "test-model",
    "choices": [{
        "index": 0,
        "message": {"role": "assistant", "content": "Hi there"},
        "finish_reason": "stop",
    }],
    "usage": {"prompt_tokens": 4, "completion_tokens": 2, "total_tokens": 6},
}


class RecordingAPI:
    """Mock handler remembering every request it serves."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def make_client(api: RecordingAPI, **options) -> InferenceClient:
    config = ClientConfig(api_key="test-key", base_url=BASE_URL, **options)
    return InferenceClient(config, httpx.AsyncClient(transport=httpx.MockTransport(api)))


def chat_request(**options) -> ChatCompletionRequest:
    return ChatCompletionRequest(model="test-model", messages=[Message.user("Hello")], **options)


def stream_response(body: bytes) -> httpx.Response:
    return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})


class TestStreaming:

    @pytest.mark.asyncio
    async def test_stream_request_shape(self):
        api = RecordingAPI(stream_response(sse_body("Hello")))
        client = make_client(api)

        session = await client.create_chat_completion_stream(chat_request(temperature=0.5))
        await session.close()

        request = api.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/chat/completions"
        assert request.headers["Accept"] == "text/event-stream"
        assert request.headers["Content-Type"] == "application/json"
        assert api.last_body["stream"] is True
        assert api.last_body["temperature"] == 0.5

    @pytest.mark.asyncio
    async def test_stream_does_not_mutate_request(self):
        api = RecordingAPI(stream_response(sse_body("Hello")))
        request = chat_request()

        async with await make_client(api).create_chat_completion_stream(request):
            pass

        assert request.stream is None

    @pytest.mark.asyncio
    async def test_stream_session_accumulates(self):
        api = RecordingAPI(stream_response(sse_body("Hello", " world", "!")))

        async with await make_client(api).create_chat_completion_stream(chat_request()) as session:
            chunks = [chunk async for chunk in session]

        assert session.closed
        response = accumulate(chunks)
        assert response.content == "Hello world!"
        assert response.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_rag_stream_uses_rag_path(self):
        api = RecordingAPI(stream_response(sse_body("grounded")))
        request = RAGChatCompletionRequest(
            model="test-model", messages=[Message.user("q")], collection="docs"
        )

        async with await make_client(api).create_rag_chat_completion_stream(request) as session:
            assert (await session.receive()).content == "grounded"

        assert str(api.requests[0].url) == f"{BASE_URL}/chat/completions/rag"
        assert api.last_body["collection"] == "docs"
        assert api.last_body["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_chat_completion_drives_consumer(self):
        api = RecordingAPI(stream_response(sse_body("a", "b", "c")))
        received = []

        await make_client(api).stream_chat_completion(
            chat_request(), lambda chunk: received.append(chunk.content)
        )

        assert received == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_stream_rag_chat_completion_drives_async_consumer(self):
        api = RecordingAPI(stream_response(sse_body("x", "y")))
        received = []

        async def consumer(chunk):
            received.append(chunk.content)

        request = RAGChatCompletionRequest(
            model="test-model", messages=[Message.user("q")], collection="docs"
        )
        await make_client(api).stream_rag_chat_completion(request, consumer)

        assert received == ["x", "y"]

    @pytest.mark.asyncio
    async def test_consumer_error_propagates_unchanged(self):
        api = RecordingAPI(stream_response(sse_body("a", "b", "c")))
        boom = KeyError("stop here")
        received = []

        def consumer(chunk):
            received.append(chunk.content)
            raise boom

        with pytest.raises(KeyError) as exc_info:
            await make_client(api).stream_chat_completion(chat_request(), consumer)

        assert exc_info.value is boom
        assert received == ["a"]

    @pytest.mark.asyncio
    async def test_error_status_on_open_raises_api_error(self):
        api = RecordingAPI(httpx.Response(
            503, json={"error": {"message": "model is loading", "type": "unavailable"}}
        ))

        with pytest.raises(APIError) as exc_info:
            await make_client(api).create_chat_completion_stream(chat_request())

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "model is loading"

    @pytest.mark.asyncio
    async def test_config_streaming_options_reach_session(self):
        body = sse_body("only")[: -len(b"data: [DONE]\n\n")]
        api = RecordingAPI(stream_response(body))
        client = make_client(api, require_sentinel=False)

        async with await client.create_chat_completion_stream(chat_request()) as session:
            assert (await session.receive()).content == "only"
            assert await session.receive() is None
            assert session.state is SessionState.EXHAUSTED


class TestNonStreaming:

    @pytest.mark.asyncio
    async def test_create_chat_completion(self):
        api = RecordingAPI(httpx.Response(200, json=COMPLETION))

        response = await make_client(api).create_chat_completion(chat_request(max_tokens=16))

        assert response.id == "chat-456"
        assert response.content == "Hi there"
        assert response.usage.total_tokens == 6
        assert "stream" not in api.last_body
        assert api.last_body["max_tokens"] == 16

    @pytest.mark.asyncio
    async def test_create_rag_chat_completion(self):
        api = RecordingAPI(httpx.Response(200, json=COMPLETION))
        request = RAGChatCompletionRequest(
            model="test-model", messages=[Message.user("q")], collection="docs"
        )

        response = await make_client(api).create_rag_chat_completion(request)

        assert response.finish_reason == "stop"
        assert str(api.requests[0].url) == f"{BASE_URL}/chat/completions/rag"

    @pytest.mark.asyncio
    async def test_simple_chat_completion(self):
        api = RecordingAPI(httpx.Response(200, json=COMPLETION))

        response = await make_client(api).simple_chat_completion("test-model", "Hello")

        assert response.content == "Hi there"
        assert api.last_body == {
            "model": "test-model",
            "messages": [{"role": "user", "content": "Hello"}],
        }

    @pytest.mark.asyncio
    async def test_undecodable_response_raises_parse_error(self):
        api = RecordingAPI(httpx.Response(200, text="not json"))

        with pytest.raises(ProtocolParseError) as exc_info:
            await make_client(api).create_chat_completion(chat_request())

        assert exc_info.value.payload == "not json"

    @pytest.mark.asyncio
    async def test_client_context_manager_closes_owned_client(self):
        async with InferenceClient(ClientConfig(api_key="k", base_url=BASE_URL)) as client:
            assert not client.transport.client.is_closed

        assert client.transport.client.is_closed


class TestFromConfiguration:

    @pytest.mark.asyncio
    async def test_builds_client_from_yaml_and_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(
            "client:\n"
            "  base_url: http://localhost:9000/v1/\n"
            "  timeout: 15.0\n"
            "  connect_timeout: 3.0\n"
            "streaming:\n"
            "  require_sentinel: false\n"
            "  deadline: 120.0\n"
            "logging:\n"
            "  level: WARNING\n"
        )
        monkeypatch.setenv(API_KEY_ENV, "yaml-key")

        client = InferenceClient.from_configuration(Configuration(config_path=str(path)))

        assert client.config.api_key == "yaml-key"
        assert client.config.base_url == "http://localhost:9000/v1"
        assert client.config.require_sentinel is False
        assert client.config.stream_deadline == 120.0
        await client.close()
