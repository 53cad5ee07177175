"""Tests for speech and chat backend clients (HTTP mocked with MockTransport)."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from clipsplitter.services.ai_clients import (
    AIClientConfig,
    AIClientResponseError,
    AssemblyAIClient,
    ClaudeClient,
    DeepgramClient,
    OllamaClient,
    OpenAIChatClient,
    OpenAISpeechClient,
    WhisperClient,
)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def audio(tmp_path):
    path = tmp_path / "clip_audio.wav"
    path.write_bytes(b"RIFF0000WAVE")
    return path


@pytest.mark.asyncio
async def test_openai_chat():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-3.5-turbo"
        assert body["max_tokens"] == 200
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"content": "  Summary text. "}}],
                "usage": {"prompt_tokens": 42, "completion_tokens": 7},
            },
        )

    config = AIClientConfig(base_url="https://api.openai.com", api_key="sk-test")
    async with OpenAIChatClient(config, http_client=mock_client(handler)) as client:
        content, usage = await client.chat(
            [{"role": "user", "content": "hi"}], temperature=0.3, num_predict=200
        )

    assert content == "Summary text."
    assert usage.total_tokens == 49


@pytest.mark.asyncio
async def test_openai_chat_http_error_is_mapped():
    def handler(request):
        return httpx.Response(500, text="upstream exploded")

    config = AIClientConfig(base_url="https://api.openai.com", api_key="sk-test")
    async with OpenAIChatClient(config, http_client=mock_client(handler)) as client:
        with pytest.raises(AIClientResponseError) as exc_info:
            await client.chat([{"role": "user", "content": "hi"}])

    assert exc_info.value.status_code == 500
    assert exc_info.value.provider == "openai"
    assert "upstream exploded" in exc_info.value.response_body


def test_openai_chat_requires_key():
    with pytest.raises(ValueError):
        OpenAIChatClient(AIClientConfig(base_url="https://api.openai.com"))


@pytest.mark.asyncio
async def test_openai_transcription(audio):
    def handler(request):
        assert request.url.path == "/v1/audio/transcriptions"
        assert b'name="response_format"' in request.content
        assert b"verbose_json" in request.content
        assert b'name="language"' in request.content
        return httpx.Response(
            200,
            json={
                "text": " Hello there. General Kenobi. ",
                "language": "english",
                "duration": 3.2,
                "segments": [
                    {"start": 0.0, "end": 1.1, "text": " Hello there."},
                    {"start": 1.1, "end": 3.2, "text": " General Kenobi."},
                ],
            },
        )

    config = AIClientConfig(base_url="https://api.openai.com", api_key="sk-test")
    async with OpenAISpeechClient(config, http_client=mock_client(handler)) as client:
        result = await client.transcribe(audio, language="en")

    assert result.text == "Hello there. General Kenobi."
    assert result.provider == "openai"
    assert [s.text for s in result.segments] == ["Hello there.", "General Kenobi."]
    assert result.duration == 3.2


@pytest.mark.asyncio
async def test_whisper_uses_openai_compatible_endpoint(audio, settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"text": "local", "segments": []})

    settings = settings.model_copy(update={"whisper_url": "http://whisper:8000/"})
    client = WhisperClient.from_settings(settings)
    await client.http_client.aclose()
    client.http_client = mock_client(handler)

    result = await client.transcribe(audio)
    await client.close()

    assert result.text == "local"
    assert result.provider == "whisper"
    assert str(seen[0].url) == "http://whisper:8000/v1/audio/transcriptions"
    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_deepgram(audio):
    def handler(request):
        assert request.url.path == "/v1/listen"
        assert request.url.params["model"] == "nova"
        assert request.url.params["language"] == "en"
        assert request.headers["authorization"] == "Token dg-key"
        assert request.headers["content-type"] == "audio/wav"
        assert request.content == b"RIFF0000WAVE"
        return httpx.Response(
            200,
            json={
                "metadata": {"duration": 4.0},
                "results": {
                    "channels": [{"alternatives": [{"transcript": "deep words"}]}],
                    "utterances": [{"start": 0.5, "end": 2.0, "transcript": "deep words"}],
                },
            },
        )

    config = AIClientConfig(base_url="https://api.deepgram.com", api_key="dg-key")
    async with DeepgramClient(config, http_client=mock_client(handler)) as client:
        result = await client.transcribe(audio)

    assert result.text == "deep words"
    assert result.language == "en"
    assert result.segments[0].start == 0.5
    assert result.duration == 4.0


@pytest.mark.asyncio
async def test_audio_upload_is_read_off_the_event_loop(audio):
    real_to_thread = asyncio.to_thread
    offloaded = []

    async def recording_to_thread(func, *args, **kwargs):
        offloaded.append(func)
        return await real_to_thread(func, *args, **kwargs)

    def handler(request):
        return httpx.Response(
            200, json={"results": {"channels": [{"alternatives": [{"transcript": "ok"}]}]}}
        )

    config = AIClientConfig(base_url="https://api.deepgram.com", api_key="dg-key")
    with patch("asyncio.to_thread", recording_to_thread):
        async with DeepgramClient(config, http_client=mock_client(handler)) as client:
            await client.transcribe(audio)

    assert any(
        getattr(func, "__name__", "") == "read_bytes" and func.__self__ == audio
        for func in offloaded
    )

@pytest.mark.asyncio
async def test_deepgram_malformed_response(audio):
    def handler(request):
        return httpx.Response(200, json={"results": {}})

    config = AIClientConfig(base_url="https://api.deepgram.com", api_key="dg-key")
    async with DeepgramClient(config, http_client=mock_client(handler)) as client:
        with pytest.raises(AIClientResponseError, match="malformed"):
            await client.transcribe(audio)


@pytest.mark.asyncio
async def test_assemblyai_upload_create_poll(audio):
    polls = []
    words = [{"text": f"w{i}", "start": i * 100, "end": i * 100 + 90} for i in range(15)]

    def handler(request):
        assert request.headers["authorization"] == "aai-key"
        if request.url.path == "/v2/upload":
            assert request.content == b"RIFF0000WAVE"
            return httpx.Response(200, json={"upload_url": "https://cdn/upload/1"})
        if request.url.path == "/v2/transcript" and request.method == "POST":
            body = json.loads(request.content)
            assert body == {"audio_url": "https://cdn/upload/1", "language_detection": True}
            return httpx.Response(200, json={"id": "tr-1", "status": "queued"})
        assert request.url.path == "/v2/transcript/tr-1"
        polls.append(1)
        if len(polls) < 3:
            return httpx.Response(200, json={"id": "tr-1", "status": "processing"})
        return httpx.Response(
            200,
            json={
                "id": "tr-1",
                "status": "completed",
                "text": "w0 w1 w2",
                "language_code": "en",
                "audio_duration": 2,
                "words": words,
            },
        )

    config = AIClientConfig(base_url="https://api.assemblyai.com", api_key="aai-key")
    async with AssemblyAIClient(config, poll_interval=0, http_client=mock_client(handler)) as client:
        result = await client.transcribe(audio)

    assert len(polls) == 3
    assert result.text == "w0 w1 w2"
    assert result.language == "en"
    assert result.duration == 2.0
    assert len(result.segments) == 2
    assert result.segments[0].start == 0.0
    assert result.segments[0].end == pytest.approx(1.19)
    assert result.segments[1].text == "w12 w13 w14"


@pytest.mark.asyncio
async def test_assemblyai_job_error(audio):
    def handler(request):
        if request.url.path == "/v2/upload":
            return httpx.Response(200, json={"upload_url": "u"})
        if request.method == "POST":
            return httpx.Response(200, json={"id": "tr-2"})
        return httpx.Response(200, json={"status": "error", "error": "bad audio"})

    config = AIClientConfig(base_url="https://api.assemblyai.com", api_key="aai-key")
    async with AssemblyAIClient(config, poll_interval=0, http_client=mock_client(handler)) as client:
        with pytest.raises(AIClientResponseError, match="bad audio"):
            await client.transcribe(audio, language="fr")


@pytest.mark.asyncio
async def test_ollama_chat():
    def handler(request):
        assert str(request.url) == "http://ollama:11434/v1/chat/completions"
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok "}}]})

    config = AIClientConfig(base_url="http://ollama:11434")
    async with OllamaClient(config, http_client=mock_client(handler)) as client:
        content, usage = await client.chat([{"role": "user", "content": "hi"}])

    assert content == "ok"
    assert usage.total_tokens == 0


class FakeMessages:
    def __init__(self):
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=" Claude says hi ")],
            usage=SimpleNamespace(input_tokens=12, output_tokens=4),
        )


class FakeAnthropic:
    def __init__(self):
        self.messages = FakeMessages()
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_claude_moves_system_prompt():
    sdk = FakeAnthropic()
    client = ClaudeClient(AIClientConfig(base_url="https://api.anthropic.com"), client=sdk)

    content, usage = await client.chat(
        [
            {"role": "system", "content": "You write titles."},
            {"role": "user", "content": "transcript"},
        ],
        temperature=0.6,
        num_predict=30,
    )
    await client.close()

    assert content == "Claude says hi"
    assert usage.total_tokens == 16
    assert sdk.messages.kwargs["system"] == "You write titles."
    assert sdk.messages.kwargs["messages"] == [{"role": "user", "content": "transcript"}]
    assert sdk.messages.kwargs["max_tokens"] == 30
    assert sdk.closed
