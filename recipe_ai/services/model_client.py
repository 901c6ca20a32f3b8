"""
Model completion clients.

Key design:
- A prompt is either text only or text plus one image (``TextPrompt`` /
  ``ImagePrompt``); each client branches on that once.
- Clients raise ``ModelServiceError`` with the provider's status text so the
  retry policy can recognise overload ("503", "overloaded", "rate limit"...),
  and ``ModelConnectionError`` when the endpoint cannot be reached.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Union

import httpx
from google import genai
from google.genai import types

from recipe_ai.config import Settings, settings
from recipe_ai.utils.exceptions import ModelConnectionError, ModelServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageAttachment:
    data: bytes
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


@dataclass(frozen=True)
class TextPrompt:
    text: str


@dataclass(frozen=True)
class ImagePrompt:
    text: str
    image: ImageAttachment


Prompt = Union[TextPrompt, ImagePrompt]


class ModelClient(Protocol):
    """One request/response cycle with a text (or vision) model."""

    model_name: str

    async def generate_text(self, prompt: Prompt) -> str:
        ...


class GeminiModelClient:
    """Google Gemini through the google-genai SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model
        self.temperature = settings.model_temperature if temperature is None else temperature
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """Get or create Gemini client (lazy initialization)."""
        if self._client is None:
            if not self._api_key:
                raise ModelServiceError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    @staticmethod
    def _contents(prompt: Prompt) -> Any:
        if isinstance(prompt, ImagePrompt):
            return [
                prompt.text,
                {"inline_data": {"mime_type": prompt.image.mime_type, "data": prompt.image.to_base64()}},
            ]
        return prompt.text

    async def generate_text(self, prompt: Prompt) -> str:
        contents = self._contents(prompt)

        def _sync_call() -> Any:
            return self.client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(temperature=self.temperature),
            )

        try:
            resp = await asyncio.to_thread(_sync_call)
        except ModelServiceError:
            raise
        except (httpx.ConnectError, ConnectionError) as e:
            raise ModelConnectionError(f"Gemini endpoint unreachable (network error): {e}") from e
        except Exception as e:
            raise ModelServiceError(f"Gemini call failed: {e}") from e

        text = getattr(resp, "text", None)
        if not text:
            raise ModelServiceError("Gemini returned empty response")
        logger.debug("Gemini raw response:\n%s", text)
        return text.strip()


class LocalModelClient:
    """OpenAI-compatible chat completions server (LM Studio, Ollama, vLLM)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.local_model_base_url).rstrip("/")
        self.model_name = model_name or settings.local_model_name
        self.api_key = api_key or settings.local_model_api_key
        self.temperature = settings.model_temperature if temperature is None else temperature
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    @staticmethod
    def _messages(prompt: Prompt) -> List[Dict[str, Any]]:
        if isinstance(prompt, ImagePrompt):
            content: Any = [
                {"type": "text", "text": prompt.text},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{prompt.image.mime_type};base64,{prompt.image.to_base64()}"},
                },
            ]
        else:
            content = prompt.text
        return [{"role": "user", "content": content}]

    async def generate_text(self, prompt: Prompt) -> str:
        payload = {
            "model": self.model_name,
            "messages": self._messages(prompt),
            "temperature": self.temperature,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:300]
            raise ModelServiceError(
                f"{e.response.status_code} {e.response.reason_phrase}: {body}"
            ) from e
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise ModelConnectionError(
                f"Local model endpoint {self.base_url} unreachable (network error): {e}"
            ) from e
        except httpx.HTTPError as e:
            raise ModelServiceError(f"Local model request failed: {e}") from e

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ModelServiceError(f"Unexpected completion payload: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise ModelServiceError("Local model returned empty response")
        logger.debug("Local model raw response:\n%s", text)
        return text.strip()


def create_model_client(config: Settings = settings) -> ModelClient:
    """Build the client selected by ``model_provider``."""
    if config.model_provider == "local":
        return LocalModelClient(
            base_url=config.local_model_base_url,
            model_name=config.local_model_name,
            api_key=config.local_model_api_key,
            temperature=config.model_temperature,
            timeout=config.http_timeout,
        )
    return GeminiModelClient(
        api_key=config.gemini_api_key,
        model_name=config.gemini_model,
        temperature=config.model_temperature,
    )
