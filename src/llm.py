"""Shared LLM calling utilities.

Centralizes the classifier's model invocations with two backends:
1. Local OpenAI-compatible endpoint (``/v1/chat/completions`` via httpx)
2. Anthropic API (uses ANTHROPIC_API_KEY)

Every transport failure is raised as ``LLMError`` so callers have exactly
one exception to degrade on.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

import anthropic
import httpx

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base error for LLM calls."""


# ---------------------------------------------------------------------------
# Model name mapping
# ---------------------------------------------------------------------------

_MODEL_MAP: dict[str, str] = {
    "sonnet": "claude-sonnet-4-6",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-6",
}

_DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5-20251001"


def _resolve_model(model: str | None) -> str:
    """Resolve a short model name to an API model ID."""
    if not model:
        return _DEFAULT_ANTHROPIC_MODEL
    return _MODEL_MAP.get(model, model)


# ---------------------------------------------------------------------------
# Local OpenAI-compatible endpoint
# ---------------------------------------------------------------------------


def _chat_completions_url(endpoint: str) -> str:
    return f"{endpoint.rstrip('/')}/v1/chat/completions"


async def call_local(
    system_prompt: str,
    user_prompt: str,
    *,
    endpoint: str,
    model: str,
    max_tokens: int = 1500,
    timeout: float = 60,
    label: str = "classification",
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call an OpenAI-compatible chat endpoint and return the reply text.

    JSON mode is requested first. Some local servers reject
    ``response_format`` with a 400, in which case the request is sent once
    more without it.

    Raises:
        LLMError: On connection errors, timeouts, non-2xx status, or an
            empty reply.
    """
    payload: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": 0.3,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "response_format": {"type": "json_object"},
    }
    url = _chat_completions_url(endpoint)

    logger.debug("Calling local model=%s at %s (%s)", model, url, label)

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload)
            if response.status_code == 400:
                payload.pop("response_format")
                response = await client.post(url, json=payload)
    except httpx.TimeoutException as exc:
        raise LLMError(f"Local model timed out after {timeout}s (label={label})") from exc
    except httpx.HTTPError as exc:
        raise LLMError(f"Local model request failed (label={label}): {exc}") from exc

    if response.is_error:
        raise LLMError(
            f"Local model returned HTTP {response.status_code} (label={label}): "
            f"{response.text[:500]}"
        )

    try:
        data = response.json()
        text = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise LLMError(f"Local model returned an unexpected payload (label={label})") from exc

    if not isinstance(text, str) or not text.strip():
        raise LLMError(f"Local model returned empty response (label={label})")
    return text.strip()


# ---------------------------------------------------------------------------
# Anthropic API
# ---------------------------------------------------------------------------


async def call_anthropic(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str | None = None,
    max_tokens: int = 1500,
    timeout: float = 60,
    label: str = "classification",
) -> str:
    """Call Claude via the Anthropic API."""
    api_key = os.environ.get("ANTHROPIC_API_KEY", "").strip()
    if not api_key:
        raise LLMError("ANTHROPIC_API_KEY not set")

    resolved_model = _resolve_model(model)

    logger.debug("Calling Anthropic API model=%s (%s)", resolved_model, label)

    try:
        async with anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout) as client:
            response = await client.messages.create(
                model=resolved_model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
    except anthropic.APIError as exc:
        raise LLMError(f"Anthropic API failed (label={label}): {exc}") from exc

    text_parts: list[str] = []
    for block in response.content:
        if block.type == "text":
            text_parts.append(block.text)

    result = "".join(text_parts).strip()
    if not result:
        raise LLMError(f"Anthropic API returned empty response (label={label})")
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def call_llm(
    system_prompt: str,
    user_prompt: str,
    *,
    provider: str = "local",
    endpoint: str = "",
    model: str = "",
    max_tokens: int = 1500,
    timeout: float = 60,
    label: str = "classification",
) -> str:
    """Dispatch a prompt to the configured provider and return the reply text.

    Raises:
        LLMError: On any failure.
    """
    if provider == "anthropic":
        return await call_anthropic(
            system_prompt,
            user_prompt,
            model=model or None,
            max_tokens=max_tokens,
            timeout=timeout,
            label=label,
        )
    if not endpoint:
        raise LLMError(f"No local endpoint configured (label={label})")
    return await call_local(
        system_prompt,
        user_prompt,
        endpoint=endpoint,
        model=model,
        max_tokens=max_tokens,
        timeout=timeout,
        label=label,
    )


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences from LLM JSON output.

    Handles the tendency of models to wrap JSON in ```json ... ``` blocks.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    # Raw JSON: use whichever delimiter appears first
    candidates: list[tuple[int, str, str]] = []
    brace_start = text.find("{")
    bracket_start = text.find("[")
    if brace_start != -1:
        candidates.append((brace_start, "{", "}"))
    if bracket_start != -1:
        candidates.append((bracket_start, "[", "]"))
    candidates.sort()

    for start, _start_char, end_char in candidates:
        end = text.rfind(end_char)
        if end > start:
            return text[start : end + 1]

    return text


def parse_json_response(text: str) -> Any:
    """Extract JSON from an LLM response.

    Returns the decoded value, or ``None`` when nothing parseable is found.
    """
    if not text or not text.strip():
        return None
    try:
        return json.loads(text.strip())
    except (ValueError, RecursionError):
        pass
    try:
        return json.loads(strip_json_fences(text))
    except (ValueError, RecursionError):
        return None
