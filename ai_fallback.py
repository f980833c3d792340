"""Primary/secondary provider orchestration.

Every request tries Gemini first and, if that fails for any reason, Groq
exactly once. Callers only ever see a response string or GenerationFailed.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from ai_models import GenerationOptions, Message, as_messages
from errors import GenerationFailed
from gemini_client import gemini
from groq_client import groq

logger = logging.getLogger(__name__)

Step = Tuple[str, Callable[[], Awaitable[str]]]


@dataclass
class Attempt:
    provider: str
    text: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AIFallback:
    def __init__(self, primary=None, secondary=None):
        self.primary = primary if primary is not None else gemini
        self.secondary = secondary if secondary is not None else groq

    async def _attempt(self, provider: str, call: Callable[[], Awaitable[str]]) -> Attempt:
        try:
            return Attempt(provider=provider, text=await call())
        except Exception as e:
            logger.warning(f"{provider} failed: {e}")
            return Attempt(provider=provider, error=e)

    async def _run(self, steps: List[Step]) -> str:
        attempts: List[Attempt] = []
        for provider, call in steps:
            if attempts:
                logger.warning(f"Switching to {provider} fallback")
            attempt = await self._attempt(provider, call)
            attempts.append(attempt)
            if attempt.ok:
                if len(attempts) > 1:
                    logger.info(f"{provider} fallback response received")
                return attempt.text

        last = attempts[-1]
        logger.error(f"All AI providers failed: {', '.join(a.provider for a in attempts)}")
        raise GenerationFailed(f"AI generation failed: {last.error}", attempts=attempts) from last.error

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        fallback_messages = [Message(role="user", content=prompt)]
        return await self._run([
            (self.primary.name, lambda: self.primary.generate_single(prompt, options)),
            (self.secondary.name, lambda: self.secondary.generate(fallback_messages, options)),
        ])

    async def generate_with_history(self, messages: List[Message], options: Optional[GenerationOptions] = None) -> str:
        messages = as_messages(messages)
        if not messages:
            raise ValueError("generate_with_history requires at least one message")
        return await self._run([
            (self.primary.name, lambda: self.primary.generate_with_history(messages, options)),
            (self.secondary.name, lambda: self.secondary.generate(messages, options)),
        ])

    async def extract_text_from_image(self, image_bytes: bytes, mime_type: str, prompt: str) -> str:
        # Groq has no vision model, so there is nothing to fall back to.
        return await self._run([
            (self.primary.name, lambda: self.primary.extract_text_from_image(image_bytes, mime_type, prompt)),
        ])

    def primary_available(self) -> bool:
        return bool(getattr(self.primary, "is_available", lambda: False)())


_ai = AIFallback()


def get_ai() -> AIFallback:
    return _ai
