import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

import config
from ai_models import GenerationOptions, Message, as_messages
from errors import ProviderError, ProviderUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 2048

SYSTEM_TAG = "[System]: "


def to_gemini_turns(messages: List[Message]) -> List[Dict[str, Any]]:
    """Convert chat messages to Gemini content turns.

    Gemini has no system role: system instructions become user turns tagged
    with SYSTEM_TAG, and assistant turns use Gemini's "model" role.
    """
    turns = []
    for msg in as_messages(messages):
        if msg.role == "system":
            turns.append({"role": "user", "parts": [f"{SYSTEM_TAG}{msg.content}"]})
        elif msg.role == "assistant":
            turns.append({"role": "model", "parts": [msg.content]})
        else:
            turns.append({"role": "user", "parts": [msg.content]})
    return turns


def _response_text(response) -> str:
    # response.text raises ValueError when the candidate was blocked or has no parts
    text = response.text
    if not text:
        raise ValueError("Empty response from Gemini")
    return text


class GeminiClient:
    """Primary provider: Google Gemini text and vision models.

    Model handles are created once by initialize() and shared by every request.
    """

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self._api_key = api_key
        self.model_name = model_name or config.GEMINI_MODEL
        self._text_model = None
        self._vision_model = None

    def initialize(self):
        if self._text_model is not None:
            return self._text_model

        api_key = self._api_key if self._api_key is not None else config.GEMINI_API_KEY
        if not api_key:
            logger.warning("GEMINI_API_KEY not configured, will use Groq as primary")
            return None

        try:
            genai.configure(api_key=api_key)
            text_model = genai.GenerativeModel(self.model_name)
            vision_model = genai.GenerativeModel(self.model_name)
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            return None

        self._text_model = text_model
        self._vision_model = vision_model
        logger.info(f"Gemini AI client initialized ({self.model_name})")
        return self._text_model

    def is_available(self) -> bool:
        return self._text_model is not None and self._vision_model is not None

    def _text(self):
        if self._text_model is None:
            raise ProviderUnavailable(self.name, "Gemini not available")
        return self._text_model

    def _vision(self):
        if self._vision_model is None:
            raise ProviderUnavailable(self.name, "Gemini Vision not available")
        return self._vision_model

    @staticmethod
    def _generation_config(options: Optional[GenerationOptions]) -> GenerationConfig:
        temperature, max_tokens = (options or GenerationOptions()).resolve(DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS)
        return GenerationConfig(temperature=temperature, max_output_tokens=max_tokens)

    async def generate_single(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        model = self._text()
        logger.info("Calling Gemini...")
        try:
            response = await model.generate_content_async(prompt, generation_config=self._generation_config(options))
            text = _response_text(response)
        except Exception as e:
            raise ProviderError(self.name, f"Gemini request failed: {e}") from e
        logger.info("Gemini response received")
        return text

    async def generate_with_history(self, messages: List[Message], options: Optional[GenerationOptions] = None) -> str:
        model = self._text()
        turns = to_gemini_turns(messages)
        if not turns:
            raise ProviderError(self.name, "Cannot start a Gemini chat without messages")

        logger.info(f"Calling Gemini with message history ({len(turns)} turns)...")
        try:
            chat = model.start_chat(history=turns[:-1])
            response = await chat.send_message_async(turns[-1]["parts"], generation_config=self._generation_config(options))
            text = _response_text(response)
        except Exception as e:
            raise ProviderError(self.name, f"Gemini chat request failed: {e}") from e
        logger.info("Gemini chat response received")
        return text

    async def extract_text_from_image(self, image_bytes: bytes, mime_type: str, prompt: str) -> str:
        model = self._vision()
        logger.info("Calling Gemini Vision for OCR...")
        image_part = {"mime_type": mime_type, "data": image_bytes}
        try:
            response = await model.generate_content_async([prompt, image_part])
            text = _response_text(response)
        except Exception as e:
            raise ProviderError(self.name, f"Gemini Vision failed: {e}") from e
        logger.info("Gemini Vision OCR completed")
        return text


gemini = GeminiClient()
