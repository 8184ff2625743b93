"""
LLM access for Serenity.

Summaries and weekly reports are generated by an Ollama model. Callers
receive plain text or an exception; every caller owns its own fallback.
"""

import json
from typing import Any, Awaitable, Callable, Optional

import httpx
from loguru import logger

from .config import settings
from .core.exceptions import LLMConnectionError, LLMResponseError, LLMTimeoutError

# Signature shared by every service that talks to a model: async (prompt) -> text
LLMCaller = Callable[[str], Awaitable[str]]


async def ollama_llm_caller(prompt: str) -> str:
    """
    Call Ollama's generate endpoint and return the response text.

    Raises:
        LLMTimeoutError: request exceeded LLM_TIMEOUT_SECONDS
        LLMConnectionError: Ollama is unreachable
        LLMResponseError: non-2xx status, non-JSON body or empty completion
    """
    url = f"{settings.OLLAMA_URL}/api/generate"

    try:
        async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as client:
            logger.debug(f"Calling Ollama at {settings.OLLAMA_URL} with model {settings.OLLAMA_MODEL}")
            response = await client.post(
                url,
                json={
                    "model": settings.OLLAMA_MODEL,
                    "prompt": prompt,
                    "stream": False,
                    "options": {"temperature": 0.3},
                },
            )
    except httpx.TimeoutException:
        raise LLMTimeoutError(settings.LLM_TIMEOUT_SECONDS, url)
    except httpx.HTTPError as e:
        raise LLMConnectionError(url, e)

    if response.status_code >= 400:
        raise LLMResponseError(response.status_code, response.text, url)

    try:
        body = response.json()
    except ValueError:
        raise LLMResponseError(response.status_code, response.text, url)

    text = (body.get("response") or "").strip()
    if not text:
        raise LLMResponseError(response.status_code, "empty completion", url)

    logger.debug(f"Ollama returned {len(text)} chars")
    return text


def parse_llm_json(response: str) -> Optional[dict[str, Any]]:
    """
    Best-effort JSON extraction from a model reply.

    Strips markdown code fences, then falls back to the span between the
    first ``{`` and the last ``}``. Returns None when nothing parses.
    """
    json_text = (response or "").strip()

    if "```json" in json_text:
        start = json_text.find("```json") + 7
        end = json_text.find("```", start)
        if end > start:
            json_text = json_text[start:end].strip()
    elif "```" in json_text:
        start = json_text.find("```") + 3
        end = json_text.find("```", start)
        if end > start:
            json_text = json_text[start:end].strip()

    if not json_text.startswith("{"):
        start = json_text.find("{")
        end = json_text.rfind("}")
        if start >= 0 and end > start:
            json_text = json_text[start:end + 1]

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse LLM response as JSON: {e}")
        return None

    return parsed if isinstance(parsed, dict) else None
