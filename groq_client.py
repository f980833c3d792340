import asyncio
import logging
from typing import List, Optional

import requests

import config
from ai_models import GenerationOptions, Message, as_messages
from errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 4096


class GroqClient:
    """Fallback provider: Groq's OpenAI-compatible chat completions endpoint.

    Groq accepts system/user/assistant roles natively, so messages are sent as-is.
    """

    name = "groq"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else config.GROQ_API_KEY
        self.model = model or config.GROQ_MODEL
        self.api_url = api_url or config.GROQ_API_URL
        self.timeout = timeout if timeout is not None else config.GROQ_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, payload: dict) -> str:
        response = requests.post(self.api_url, headers=self._headers(), json=payload, timeout=self.timeout)
        response.raise_for_status()
        result = response.json()
        if not result or "choices" not in result or not result["choices"]:
            raise ProviderError(self.name, "Invalid response from Groq AI: No choices found.")
        content = result["choices"][0].get("message", {}).get("content")
        if content is None:
            raise ProviderError(self.name, "Invalid response from Groq AI: Empty message content.")
        return content

    async def generate(self, messages: List[Message], options: Optional[GenerationOptions] = None) -> str:
        if not self.api_key:
            raise ProviderError(self.name, "GROQ_API_KEY environment variable not set.")

        temperature, max_tokens = (options or GenerationOptions()).resolve(DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS)
        payload = {
            "model": self.model,
            "messages": [m.model_dump() for m in as_messages(messages)],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            return await asyncio.to_thread(self._post, payload)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 429:
                message = "Groq AI rate limit hit (429)."
            elif status == 401:
                message = "Unauthorized: Invalid Groq AI API key provided."
            else:
                reason = e.response.reason if e.response is not None else e
                message = f"Unexpected error from Groq AI: {status} {reason}"
            raise ProviderError(self.name, message) from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(self.name, f"Failed to connect to Groq AI API: {e}") from e
        except ValueError as e:
            # response.json() on a non-JSON body
            raise ProviderError(self.name, f"Invalid response from Groq AI: {e}") from e


groq = GroqClient()
