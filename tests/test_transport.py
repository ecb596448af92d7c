"""Tests for the chat-completion transport."""

from datetime import datetime
from types import SimpleNamespace

import httpx
import openai
import pytest

from contextchat.exceptions import (
    ConfigValidationError,
    ConnectivityError,
    PayloadError,
    RequestTimeoutError,
    TransportError,
)
from contextchat.session.models import Message
from contextchat.transport import (
    ChatRequest,
    OpenAITransport,
    TransportConfig,
    build_wire_messages,
    map_openai_error,
)
from contextchat.transport.base import IMAGE_ONLY_PROMPT, format_message

REQUEST = httpx.Request("POST", "https://example.test/v1/chat/completions")


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    def __init__(self, chunks, error=None):
        self._chunks = list(chunks)
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            raise self._error
        raise StopAsyncIteration


class FakeCompletions:
    def __init__(self, stream=None, error=None):
        self.stream = stream
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.stream


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestWireFormat:
    def test_system_prompt_first(self):
        request = ChatRequest(
            system_prompt="sys",
            messages=[Message.user("hi"), Message.assistant("hello")],
        )
        assert build_wire_messages(request) == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]

    def test_stored_system_messages_skipped(self):
        request = ChatRequest(
            system_prompt="sys",
            messages=[
                Message.user("hi"),
                Message(role="system", content="note", timestamp=datetime.now()),
            ],
        )
        assert [m["role"] for m in build_wire_messages(request)] == ["system", "user"]

    def test_image_becomes_parts(self):
        wire = format_message(Message.user("what is it", image="data:image/jpeg;base64,AA"))
        assert wire["content"] == [
            {"type": "text", "text": "what is it"},
            {
                "type": "image_url",
                "image_url": {"url": "data:image/jpeg;base64,AA", "detail": "high"},
            },
        ]

    def test_image_without_text_gets_prompt(self):
        wire = format_message(Message.user("", image="data:,x"))
        assert wire["content"][0]["text"] == IMAGE_ONLY_PROMPT


class TestErrorMapping:
    def test_timeout(self):
        error = map_openai_error(openai.APITimeoutError(request=REQUEST), 30)
        assert isinstance(error, RequestTimeoutError)

    def test_connection(self):
        error = map_openai_error(openai.APIConnectionError(request=REQUEST), 30)
        assert isinstance(error, ConnectivityError)

    def test_bad_request(self):
        response = httpx.Response(400, request=REQUEST)
        error = map_openai_error(
            openai.BadRequestError("invalid", response=response, body=None), 30
        )
        assert isinstance(error, PayloadError)

    def test_image_in_message(self):
        response = httpx.Response(500, request=REQUEST)
        error = map_openai_error(
            openai.InternalServerError("failed to load image", response=response, body=None),
            30,
        )
        assert isinstance(error, PayloadError)

    def test_other_errors(self):
        response = httpx.Response(500, request=REQUEST)
        error = map_openai_error(
            openai.InternalServerError("upstream down", response=response, body=None), 30
        )
        assert type(error) is TransportError


class TestOpenAITransport:
    @pytest.mark.asyncio
    async def test_streams_content(self):
        completions = FakeCompletions(
            stream=FakeStream([chunk("Hel"), chunk(None), chunk("lo")])
        )
        transport = OpenAITransport(TransportConfig(api_key="k"), client=fake_client(completions))

        reply = await transport.complete(
            ChatRequest(system_prompt="sys", messages=[Message.user("hi")])
        )

        assert reply == "Hello"
        call = completions.calls[0]
        assert call["stream"] is True
        assert call["model"] == TransportConfig.model
        assert call["max_tokens"] == 1000
        assert call["temperature"] == 0.7
        assert call["top_p"] == 0.95
        assert call["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_request_overrides(self):
        completions = FakeCompletions(stream=FakeStream([]))
        transport = OpenAITransport(TransportConfig(api_key="k"), client=fake_client(completions))

        await transport.complete(
            ChatRequest(system_prompt="s", messages=[], model="other", temperature=0.0)
        )

        assert completions.calls[0]["model"] == "other"
        assert completions.calls[0]["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_create_error_mapped(self):
        completions = FakeCompletions(error=openai.APIConnectionError(request=REQUEST))
        transport = OpenAITransport(TransportConfig(api_key="k"), client=fake_client(completions))

        with pytest.raises(ConnectivityError):
            await transport.complete(ChatRequest(system_prompt="s", messages=[]))

    @pytest.mark.asyncio
    async def test_mid_stream_error_mapped(self):
        completions = FakeCompletions(
            stream=FakeStream([chunk("partial")], error=openai.APITimeoutError(request=REQUEST))
        )
        transport = OpenAITransport(TransportConfig(api_key="k"), client=fake_client(completions))

        with pytest.raises(RequestTimeoutError):
            await transport.complete(ChatRequest(system_prompt="s", messages=[]))


class TestFromConfig:
    def test_reads_key_from_env(self, monkeypatch):
        monkeypatch.setenv("TEST_CHAT_KEY", "secret")
        transport = OpenAITransport.from_config(
            {"api_key_env": "TEST_CHAT_KEY", "model": "m"}, timeout=5.0
        )
        assert transport.config.api_key == "secret"
        assert transport.config.model == "m"
        assert transport.timeout == 5.0

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("TEST_CHAT_KEY", raising=False)
        with pytest.raises(ConfigValidationError):
            OpenAITransport.from_config({"api_key_env": "TEST_CHAT_KEY"})
