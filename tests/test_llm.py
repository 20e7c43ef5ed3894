"""Tests for daylens.llm — local/Anthropic transports and JSON helpers."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from daylens.llm import (
    LLMError,
    call_anthropic,
    call_llm,
    call_local,
    parse_json_response,
    strip_json_fences,
)

ENDPOINT = "http://llm.test"


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _run_local(handler, **kwargs) -> str:
    return asyncio.run(
        call_local(
            "system",
            "user",
            endpoint=ENDPOINT,
            model="llama3",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
    )


# ---------------------------------------------------------------------------
# call_local
# ---------------------------------------------------------------------------


class TestCallLocal:
    def test_returns_reply_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion("  [1, 2]  "))

        assert _run_local(handler) == "[1, 2]"
        assert str(seen[0].url) == "http://llm.test/v1/chat/completions"
        body = json.loads(seen[0].content)
        assert body["model"] == "llama3"
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0] == {"role": "system", "content": "system"}

    def test_trailing_slash_endpoint(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion("ok"))

        asyncio.run(
            call_local(
                "s", "u", endpoint=ENDPOINT + "/", model="m", transport=httpx.MockTransport(handler)
            )
        )
        assert str(seen[0].url) == "http://llm.test/v1/chat/completions"

    def test_retries_without_json_mode_on_400(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            if len(bodies) == 1:
                return httpx.Response(400, text="response_format not supported")
            return httpx.Response(200, json=_completion("ok"))

        assert _run_local(handler) == "ok"
        assert len(bodies) == 2
        assert "response_format" not in bodies[1]

    def test_server_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(LLMError, match="HTTP 500"):
            _run_local(handler)

    def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(LLMError, match="timed out"):
            _run_local(handler)

    def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(LLMError, match="request failed"):
            _run_local(handler)

    def test_empty_reply_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion("   "))

        with pytest.raises(LLMError, match="empty"):
            _run_local(handler)

    def test_unexpected_payload_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "nope"})

        with pytest.raises(LLMError, match="unexpected payload"):
            _run_local(handler)


# ---------------------------------------------------------------------------
# call_anthropic / call_llm
# ---------------------------------------------------------------------------


class TestCallAnthropic:
    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(LLMError, match="ANTHROPIC_API_KEY"):
            asyncio.run(call_anthropic("s", "u"))

    @patch("daylens.llm.anthropic.AsyncAnthropic")
    def test_joins_text_blocks(self, mock_client_cls: MagicMock, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        client = MagicMock()
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(
                content=[
                    SimpleNamespace(type="text", text="[{"),
                    SimpleNamespace(type="tool_use", text="ignored"),
                    SimpleNamespace(type="text", text="}]"),
                ]
            )
        )
        client.__aenter__.return_value = client
        mock_client_cls.return_value = client

        result = asyncio.run(call_anthropic("s", "u", model="haiku"))

        assert result == "[{}]"
        assert client.messages.create.call_args.kwargs["model"] == "claude-haiku-4-5-20251001"
        client.__aexit__.assert_awaited_once()


class TestCallLLM:
    @patch("daylens.llm.call_local", new_callable=AsyncMock)
    def test_dispatches_local(self, mock_local: AsyncMock):
        mock_local.return_value = "ok"
        result = asyncio.run(call_llm("s", "u", provider="local", endpoint=ENDPOINT, model="m"))
        assert result == "ok"
        assert mock_local.call_args.kwargs["endpoint"] == ENDPOINT

    @patch("daylens.llm.call_anthropic", new_callable=AsyncMock)
    def test_dispatches_anthropic(self, mock_anthropic: AsyncMock):
        mock_anthropic.return_value = "ok"
        assert asyncio.run(call_llm("s", "u", provider="anthropic")) == "ok"
        assert mock_anthropic.call_args.kwargs["model"] is None

    def test_local_without_endpoint_raises(self):
        with pytest.raises(LLMError, match="No local endpoint"):
            asyncio.run(call_llm("s", "u", provider="local", endpoint=""))


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


class TestStripJsonFences:
    def test_json_fence(self):
        assert strip_json_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_plain_fence(self):
        assert strip_json_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_preamble_before_array(self):
        assert strip_json_fences('Sure! [{"a": 1}] Hope that helps') == '[{"a": 1}]'

    def test_no_json(self):
        assert strip_json_fences("nothing here") == "nothing here"


class TestParseJsonResponse:
    def test_plain(self):
        assert parse_json_response('[{"a": 1}]') == [{"a": 1}]

    def test_fenced(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_empty(self):
        assert parse_json_response("") is None

    def test_unparseable(self):
        assert parse_json_response("{not json") is None

    def test_integer_over_digit_limit(self):
        assert parse_json_response("[" + "9" * 5000 + "]") is None

    def test_nesting_too_deep(self):
        assert parse_json_response("[" * 100_000 + "]" * 100_000) is None
