"""Tests for the model clients."""

import asyncio
import json

import httpx
import pytest

from recipe_ai.config import Settings
from recipe_ai.services.model_client import (
    GeminiModelClient,
    ImageAttachment,
    ImagePrompt,
    LocalModelClient,
    TextPrompt,
    create_model_client,
)
from recipe_ai.services.retry import is_overload_error
from recipe_ai.utils.exceptions import ModelConnectionError, ModelServiceError


def _client(handler):
    return LocalModelClient(
        base_url="http://model.test/v1/",
        model_name="test-model",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def _completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def test_text_prompt_payload():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _completion("  hola  ")

    text = asyncio.run(_client(handler).generate_text(TextPrompt(text="receta")))

    assert text == "hola"
    assert seen["url"] == "http://model.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"] == [{"role": "user", "content": "receta"}]


def test_image_prompt_is_sent_as_data_url():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return _completion("{}")

    prompt = ImagePrompt(text="analiza", image=ImageAttachment(data=b"abc", mime_type="image/png"))
    asyncio.run(_client(handler).generate_text(prompt))

    content = seen["body"]["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "analiza"}
    assert content[1]["image_url"]["url"] == "data:image/png;base64,YWJj"


def test_status_error_keeps_status_text():
    def handler(request):
        return httpx.Response(503, text="model is loading")

    with pytest.raises(ModelServiceError) as exc_info:
        asyncio.run(_client(handler).generate_text(TextPrompt(text="x")))
    assert "503" in str(exc_info.value)
    assert is_overload_error(exc_info.value)


def test_connect_error_maps_to_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ModelConnectionError, match="network error"):
        asyncio.run(_client(handler).generate_text(TextPrompt(text="x")))


@pytest.mark.parametrize(
    "payload",
    [{"choices": []}, {"choices": [{"message": {"content": "   "}}]}, {"unexpected": True}],
)
def test_unusable_payloads(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(ModelServiceError):
        asyncio.run(_client(handler).generate_text(TextPrompt(text="x")))


def test_gemini_requires_api_key():
    client = GeminiModelClient(api_key="")
    with pytest.raises(ModelServiceError, match="GEMINI_API_KEY"):
        asyncio.run(client.generate_text(TextPrompt(text="x")))


def test_gemini_image_contents_are_inline():
    prompt = ImagePrompt(text="analiza", image=ImageAttachment(data=b"abc", mime_type="image/jpeg"))
    contents = GeminiModelClient._contents(prompt)
    assert contents[0] == "analiza"
    assert contents[1]["inline_data"] == {"mime_type": "image/jpeg", "data": "YWJj"}


def test_factory_selects_provider():
    local = create_model_client(Settings(model_provider="local", local_model_name="gemma"))
    assert isinstance(local, LocalModelClient)
    assert local.model_name == "gemma"

    gemini = create_model_client(Settings(model_provider="gemini", gemini_api_key="k"))
    assert isinstance(gemini, GeminiModelClient)
