from types import SimpleNamespace

import pytest

import gemini_client
from ai_models import GenerationOptions, Message
from errors import ProviderError, ProviderUnavailable
from gemini_client import GeminiClient, to_gemini_turns


class FakeChat:
    def __init__(self, history, reply):
        self.history = history
        self.reply = reply
        self.sent = None
        self.generation_config = None

    async def send_message_async(self, content, generation_config=None):
        self.sent = content
        self.generation_config = generation_config
        if isinstance(self.reply, Exception):
            raise self.reply
        return SimpleNamespace(text=self.reply)


class FakeModel:
    def __init__(self, reply="model reply"):
        self.reply = reply
        self.chats = []
        self.calls = []

    def start_chat(self, history):
        chat = FakeChat(history, self.reply)
        self.chats.append(chat)
        return chat

    async def generate_content_async(self, content, generation_config=None):
        self.calls.append((content, generation_config))
        if isinstance(self.reply, Exception):
            raise self.reply
        return SimpleNamespace(text=self.reply)


class BlockedResponse:
    @property
    def text(self):
        raise ValueError("The response was blocked")


def ready_client(reply="model reply"):
    client = GeminiClient(api_key="test-key", model_name="gemini-test")
    client._text_model = FakeModel(reply)
    client._vision_model = FakeModel(reply)
    return client


# =====================================================
# Turn conversion
# =====================================================


def test_to_gemini_turns_maps_roles_and_keeps_length():
    messages = [
        Message(role="system", content="You are a tutor."),
        Message(role="user", content="What is entropy?"),
        Message(role="assistant", content="A measure of disorder."),
        Message(role="user", content="Give an example."),
    ]
    turns = to_gemini_turns(messages)
    assert len(turns) == len(messages)
    assert turns == [
        {"role": "user", "parts": ["[System]: You are a tutor."]},
        {"role": "user", "parts": ["What is entropy?"]},
        {"role": "model", "parts": ["A measure of disorder."]},
        {"role": "user", "parts": ["Give an example."]},
    ]


def test_to_gemini_turns_empty():
    assert to_gemini_turns([]) == []


# =====================================================
# Initialization
# =====================================================


def test_initialize_without_key_leaves_client_unavailable(monkeypatch):
    monkeypatch.setattr(gemini_client.config, "GEMINI_API_KEY", "")
    client = GeminiClient()
    assert client.initialize() is None
    assert client.is_available() is False


def test_initialize_is_idempotent(monkeypatch):
    configured = []
    created = []
    monkeypatch.setattr(gemini_client.genai, "configure", lambda api_key: configured.append(api_key))
    monkeypatch.setattr(gemini_client.genai, "GenerativeModel", lambda name: created.append(name) or FakeModel())

    client = GeminiClient(api_key="abc", model_name="gemini-test")
    first = client.initialize()
    second = client.initialize()

    assert first is second
    assert configured == ["abc"]
    assert created == ["gemini-test", "gemini-test"]
    assert client.is_available() is True


def test_initialize_failure_is_logged_not_raised(monkeypatch):
    def broken(api_key):
        raise RuntimeError("bad key format")

    monkeypatch.setattr(gemini_client.genai, "configure", broken)
    client = GeminiClient(api_key="abc")
    assert client.initialize() is None
    assert client.is_available() is False


# =====================================================
# Calls
# =====================================================


@pytest.mark.asyncio
async def test_uninitialized_client_raises_unavailable():
    client = GeminiClient(api_key="abc")
    with pytest.raises(ProviderUnavailable):
        await client.generate_single("hi")
    with pytest.raises(ProviderUnavailable):
        await client.generate_with_history([Message(role="user", content="hi")])
    with pytest.raises(ProviderUnavailable):
        await client.extract_text_from_image(b"img", "image/png", "read")


@pytest.mark.asyncio
async def test_generate_single_uses_defaults():
    client = ready_client("done")
    assert await client.generate_single("hi") == "done"
    content, config = client._text_model.calls[0]
    assert content == "hi"
    assert config.temperature == gemini_client.DEFAULT_TEMPERATURE
    assert config.max_output_tokens == gemini_client.DEFAULT_MAX_TOKENS


@pytest.mark.asyncio
async def test_generate_single_honours_zero_temperature():
    client = ready_client()
    await client.generate_single("hi", GenerationOptions(temperature=0, max_tokens=50))
    _, config = client._text_model.calls[0]
    assert config.temperature == 0
    assert config.max_output_tokens == 50


@pytest.mark.asyncio
async def test_generate_with_history_sends_last_turn_separately():
    client = ready_client("answer")
    messages = [
        Message(role="system", content="sys"),
        Message(role="assistant", content="earlier"),
        Message(role="user", content="now"),
    ]

    assert await client.generate_with_history(messages) == "answer"

    chat = client._text_model.chats[0]
    assert chat.history == [
        {"role": "user", "parts": ["[System]: sys"]},
        {"role": "model", "parts": ["earlier"]},
    ]
    assert chat.sent == ["now"]


@pytest.mark.asyncio
async def test_generate_with_history_requires_messages():
    client = ready_client()
    with pytest.raises(ProviderError):
        await client.generate_with_history([])


@pytest.mark.asyncio
async def test_sdk_errors_become_provider_errors():
    client = ready_client(RuntimeError("429 Resource exhausted"))
    with pytest.raises(ProviderError) as exc_info:
        await client.generate_single("hi")
    assert "429 Resource exhausted" in str(exc_info.value)
    assert exc_info.value.provider == "gemini"


@pytest.mark.asyncio
async def test_blocked_response_is_provider_error():
    client = ready_client()

    async def blocked(content, generation_config=None):
        return BlockedResponse()

    client._text_model.generate_content_async = blocked
    with pytest.raises(ProviderError):
        await client.generate_single("hi")


@pytest.mark.asyncio
async def test_extract_text_from_image_sends_prompt_and_blob():
    client = ready_client("scanned text")
    text = await client.extract_text_from_image(b"\x89PNG", "image/png", "Read this")
    assert text == "scanned text"
    content, _ = client._vision_model.calls[0]
    assert content == ["Read this", {"mime_type": "image/png", "data": b"\x89PNG"}]
