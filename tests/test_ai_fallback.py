"""Tests for the Gemini -> Groq fallback chain."""

import pytest

from ai_fallback import AIFallback, get_ai
from ai_models import GenerationOptions, Message
from errors import GenerationFailed, ProviderError, ProviderUnavailable


HISTORY = [
    Message(role="system", content="be brief"),
    Message(role="user", content="hi"),
]


class TestSinglePrompt:

    @pytest.mark.asyncio
    async def test_primary_success_skips_secondary(self, ai, primary, secondary):
        text = await ai.generate("hello")
        assert text == "primary text"
        primary.generate_single.assert_awaited_once_with("hello", None)
        secondary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_once_on_primary_error(self, ai, primary, secondary):
        primary.generate_single.side_effect = ProviderError("gemini", "quota exceeded")
        opts = GenerationOptions(temperature=0.3, max_tokens=100)

        text = await ai.generate("hello", opts)

        assert text == "secondary text"
        secondary.generate.assert_awaited_once()
        messages, options = secondary.generate.await_args.args
        assert [m.model_dump() for m in messages] == [{"role": "user", "content": "hello"}]
        assert options is opts

    @pytest.mark.asyncio
    async def test_unavailable_primary_triggers_fallback(self, ai, primary, secondary):
        primary.generate_single.side_effect = ProviderUnavailable("gemini")
        assert await ai.generate("hello") == "secondary text"
        secondary.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_exception_triggers_fallback(self, ai, primary, secondary):
        primary.generate_single.side_effect = KeyError("boom")
        assert await ai.generate("hello") == "secondary text"

    @pytest.mark.asyncio
    async def test_both_fail_raises_generation_failed(self, ai, primary, secondary):
        primary.generate_single.side_effect = ProviderError("gemini", "quota exceeded")
        secondary.generate.side_effect = ProviderError("groq", "rate limited")

        with pytest.raises(GenerationFailed) as exc_info:
            await ai.generate("hello")

        err = exc_info.value
        assert "rate limited" in str(err)
        assert isinstance(err.__cause__, ProviderError)
        assert [a.provider for a in err.attempts] == ["gemini", "groq"]
        assert not any(a.ok for a in err.attempts)
        secondary.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_raw_provider_error_never_escapes(self, ai, primary, secondary):
        primary.generate_single.side_effect = RuntimeError("socket closed")
        secondary.generate.side_effect = ConnectionError("dns failure")

        with pytest.raises(GenerationFailed):
            await ai.generate("hello")


class TestHistory:

    @pytest.mark.asyncio
    async def test_primary_receives_messages(self, ai, primary, secondary):
        assert await ai.generate_with_history(HISTORY) == "primary text"
        messages, _ = primary.generate_with_history.await_args.args
        assert messages == HISTORY
        secondary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_secondary_receives_same_messages(self, ai, primary, secondary):
        primary.generate_with_history.side_effect = ProviderError("gemini", "500")
        await ai.generate_with_history(HISTORY)
        messages, _ = secondary.generate.await_args.args
        assert messages == HISTORY

    @pytest.mark.asyncio
    async def test_accepts_plain_dicts(self, ai, primary):
        await ai.generate_with_history([{"role": "user", "content": "hi"}])
        messages, _ = primary.generate_with_history.await_args.args
        assert messages == [Message(role="user", content="hi")]

    @pytest.mark.asyncio
    async def test_empty_history_rejected_before_any_call(self, ai, primary, secondary):
        with pytest.raises(ValueError):
            await ai.generate_with_history([])
        primary.generate_with_history.assert_not_awaited()
        secondary.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_primary_completes_before_secondary_starts(self, primary, secondary):
        order = []

        async def failing_primary(*args):
            order.append("primary:start")
            order.append("primary:end")
            raise ProviderError("gemini", "down")

        async def secondary_call(*args):
            order.append("secondary:start")
            return "ok"

        primary.generate_with_history.side_effect = failing_primary
        secondary.generate.side_effect = secondary_call

        await AIFallback(primary=primary, secondary=secondary).generate_with_history(HISTORY)
        assert order == ["primary:start", "primary:end", "secondary:start"]


class TestImage:

    @pytest.mark.asyncio
    async def test_image_uses_primary(self, ai, primary):
        text = await ai.extract_text_from_image(b"png", "image/png", "read it")
        assert text == "image text"
        primary.extract_text_from_image.assert_awaited_once_with(b"png", "image/png", "read it")

    @pytest.mark.asyncio
    async def test_image_failure_has_no_secondary_path(self, ai, primary, secondary):
        primary.extract_text_from_image.side_effect = ProviderUnavailable("gemini", "Gemini Vision not available")

        with pytest.raises(GenerationFailed) as exc_info:
            await ai.extract_text_from_image(b"png", "image/png", "read it")

        assert "Gemini Vision not available" in str(exc_info.value)
        secondary.generate.assert_not_awaited()


def test_primary_available_reflects_adapter(ai, primary):
    assert ai.primary_available() is True
    primary.is_available.return_value = False
    assert ai.primary_available() is False


def test_get_ai_is_process_wide():
    assert get_ai() is get_ai()
