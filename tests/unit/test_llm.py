"""Unit tests for LLM access helpers."""

import httpx
import pytest

from serenity import llm
from serenity.core.exceptions import LLMConnectionError, LLMResponseError, LLMTimeoutError
from serenity.llm import ollama_llm_caller, parse_llm_json


def test_parse_plain_json():
    assert parse_llm_json('{"summary": "ok"}') == {"summary": "ok"}


def test_parse_fenced_json():
    reply = 'Here you go:\n```json\n{"summary": "ok", "themes": ["sleep"]}\n```'
    assert parse_llm_json(reply) == {"summary": "ok", "themes": ["sleep"]}


def test_parse_bare_fence():
    assert parse_llm_json('```\n{"a": 1}\n```') == {"a": 1}


def test_parse_embedded_object():
    assert parse_llm_json('Sure! {"a": 1} Hope that helps.') == {"a": 1}


@pytest.mark.parametrize("reply", ["", "no json here", "[1, 2]", '{"broken": '])
def test_unparseable_returns_none(reply):
    assert parse_llm_json(reply) is None


# ============================================================================
# Ollama caller
# ============================================================================

class _StubClient:
    """Stands in for httpx.AsyncClient inside the caller."""

    def __init__(self, handler):
        self.handler = handler

    def __call__(self, *args, **kwargs):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def post(self, url, json):
        return self.handler(url, json)


def _patch_client(monkeypatch, handler):
    monkeypatch.setattr(llm.httpx, "AsyncClient", _StubClient(handler))


async def test_caller_returns_stripped_text(monkeypatch):
    seen = {}

    def handler(url, body):
        seen["url"] = url
        seen["body"] = body
        return httpx.Response(200, json={"response": "  hello  "})

    _patch_client(monkeypatch, handler)

    assert await ollama_llm_caller("prompt") == "hello"
    assert seen["url"].endswith("/api/generate")
    assert seen["body"]["prompt"] == "prompt"
    assert seen["body"]["stream"] is False


async def test_caller_rejects_error_status(monkeypatch):
    _patch_client(monkeypatch, lambda url, body: httpx.Response(500, text="boom"))

    with pytest.raises(LLMResponseError) as exc_info:
        await ollama_llm_caller("prompt")
    assert exc_info.value.status_code == 500


async def test_caller_rejects_empty_completion(monkeypatch):
    _patch_client(monkeypatch, lambda url, body: httpx.Response(200, json={"response": "   "}))

    with pytest.raises(LLMResponseError):
        await ollama_llm_caller("prompt")


async def test_caller_rejects_non_json_body(monkeypatch):
    _patch_client(monkeypatch, lambda url, body: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(LLMResponseError) as exc_info:
        await ollama_llm_caller("prompt")
    assert exc_info.value.status_code == 200


async def test_caller_maps_timeout(monkeypatch):
    def handler(url, body):
        raise httpx.ReadTimeout("slow")

    _patch_client(monkeypatch, handler)

    with pytest.raises(LLMTimeoutError):
        await ollama_llm_caller("prompt")


async def test_caller_maps_connection_error(monkeypatch):
    def handler(url, body):
        raise httpx.ConnectError("refused")

    _patch_client(monkeypatch, handler)

    with pytest.raises(LLMConnectionError):
        await ollama_llm_caller("prompt")
