"""Tests for the OpenRouter extraction client.

The openai SDK client is replaced with a mock whose chat.completions.create is
an AsyncMock; backoff sleeps are injected so nothing waits or hits the network.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, call

import httpx
import openai
import pytest

from voxelroom.errors import (
    ExhaustedCandidatesError,
    NonRetryableRequestError,
    RateLimitedError,
    TransientUpstreamError,
)
from voxelroom.models.schemas import ModelRequest, PayloadKind
from voxelroom.tools.llm import SCHEMA_INSTRUCTION, ExtractionClient, build_messages, classify_failure

MODELS = ("model-a", "model-b", "model-c")
URL = "https://openrouter.ai/api/v1/chat/completions"


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _status_error(cls, status):
    request = httpx.Request("POST", URL)
    return cls(f"HTTP {status}", response=httpx.Response(status, request=request), body=None)


def _client(side_effect, models=MODELS):
    create = AsyncMock(side_effect=side_effect)
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    sleep = AsyncMock()
    client = ExtractionClient(models=models, max_attempts=3, backoff_base=2.0, api_key="test-key", client=sdk, sleep=sleep)
    return client, create, sleep


def _called_models(create):
    return [c.kwargs["model"] for c in create.await_args_list]


REQUEST = ModelRequest(payload_kind=PayloadKind.PRODUCT_QUERY, prompt_text="find me a chair")


# --- Message building ---


class TestBuildMessages:
    def test_text_only(self):
        messages = build_messages(REQUEST)
        assert messages == [{"role": "user", "content": "find me a chair"}]

    def test_system_prompt_first(self):
        req = REQUEST.model_copy(update={"system_prompt": "You are helpful"})
        messages = build_messages(req)
        assert messages[0] == {"role": "system", "content": "You are helpful"}
        assert messages[1]["role"] == "user"

    def test_schema_appended(self):
        req = REQUEST.model_copy(update={"response_schema": {"type": "object"}})
        text = build_messages(req)[0]["content"]
        assert text.startswith("find me a chair\n\n")
        assert SCHEMA_INSTRUCTION in text
        assert '"type": "object"' in text

    def test_image_data_url_passed_through(self):
        req = REQUEST.model_copy(update={"image_data": "data:image/png;base64,AAAA"})
        content = build_messages(req)[0]["content"]
        assert content[0] == {"type": "text", "text": "find me a chair"}
        assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}

    def test_image_bytes_encoded(self):
        req = REQUEST.model_copy(update={"image_data": b"abc"})
        content = build_messages(req)[0]["content"]
        assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,YWJj"

    def test_raw_base64_gets_prefix(self):
        req = REQUEST.model_copy(update={"image_data": "YWJj"})
        content = build_messages(req)[0]["content"]
        assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,YWJj"


# --- Failure classification ---


class TestClassifyFailure:
    def test_429_is_rate_limited(self):
        err = classify_failure(_status_error(openai.RateLimitError, 429), "m")
        assert isinstance(err, RateLimitedError)
        assert err.status_code == 429
        assert err.model == "m"

    def test_5xx_is_transient(self):
        err = classify_failure(_status_error(openai.InternalServerError, 503), "m")
        assert isinstance(err, TransientUpstreamError)
        assert err.status_code == 503

    def test_other_4xx_is_non_retryable(self):
        err = classify_failure(_status_error(openai.BadRequestError, 400), "m")
        assert isinstance(err, NonRetryableRequestError)

    def test_connection_error_is_transient(self):
        exc = openai.APIConnectionError(request=httpx.Request("POST", URL))
        assert isinstance(classify_failure(exc, "m"), TransientUpstreamError)

    def test_unknown_exception_rejected(self):
        with pytest.raises(TypeError):
            classify_failure(ValueError("nope"), "m")


# --- Retry and fallback ---


class TestInvoke:
    @pytest.mark.asyncio
    async def test_first_model_succeeds(self):
        client, create, sleep = _client([_completion('{"ok": true}')])
        assert await client.invoke(REQUEST) == '{"ok": true}'
        assert _called_models(create) == ["model-a"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_errors_everywhere_exhaust_all_candidates(self):
        client, create, sleep = _client(
            [_status_error(openai.InternalServerError, 503) for _ in range(9)]
        )
        with pytest.raises(ExhaustedCandidatesError) as exc_info:
            await client.invoke(REQUEST)

        assert create.await_count == 9
        assert _called_models(create) == ["model-a"] * 3 + ["model-b"] * 3 + ["model-c"] * 3
        assert exc_info.value.attempts == 9
        assert isinstance(exc_info.value.last_error, TransientUpstreamError)
        assert exc_info.value.last_error.status_code == 503
        assert sleep.await_args_list == [call(2.0), call(4.0)] * 3

    @pytest.mark.asyncio
    async def test_rate_limit_moves_to_next_model_without_retry(self):
        client, create, sleep = _client(
            [_status_error(openai.RateLimitError, 429), _completion("done")]
        )
        assert await client.invoke(REQUEST) == "done"
        assert _called_models(create) == ["model-a", "model-b"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_content_retries_same_model(self):
        client, create, sleep = _client([_completion(None), _completion("second try")])
        assert await client.invoke(REQUEST) == "second try"
        assert _called_models(create) == ["model-a", "model-a"]
        assert sleep.await_args_list == [call(2.0)]

    @pytest.mark.asyncio
    async def test_empty_choices_treated_as_missing_content(self):
        client, create, _ = _client([SimpleNamespace(choices=[]), _completion("ok")])
        assert await client.invoke(REQUEST) == "ok"
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_retries_same_model(self):
        conn_error = openai.APIConnectionError(request=httpx.Request("POST", URL))
        client, create, _ = _client([conn_error, _completion("ok")])
        assert await client.invoke(REQUEST) == "ok"
        assert _called_models(create) == ["model-a", "model-a"]

    @pytest.mark.asyncio
    async def test_bad_request_falls_through_to_next_model(self):
        client, create, sleep = _client(
            [_status_error(openai.BadRequestError, 400), _completion("ok")]
        )
        assert await client.invoke(REQUEST) == "ok"
        assert _called_models(create) == ["model-a", "model-b"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_last_error_is_most_recent_failure(self):
        client, _, _ = _client(
            [
                _status_error(openai.RateLimitError, 429),
                _status_error(openai.RateLimitError, 429),
                _status_error(openai.BadRequestError, 400),
            ]
        )
        with pytest.raises(ExhaustedCandidatesError) as exc_info:
            await client.invoke(REQUEST)
        assert isinstance(exc_info.value.last_error, NonRetryableRequestError)
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_no_models_configured(self):
        client, create, _ = _client([], models=())
        with pytest.raises(ExhaustedCandidatesError) as exc_info:
            await client.invoke(REQUEST)
        assert exc_info.value.last_error is None
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_api_key_never_calls_upstream(self):
        create = AsyncMock()
        sdk = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        client = ExtractionClient(models=MODELS, api_key="", client=sdk, sleep=AsyncMock())
        with pytest.raises(ExhaustedCandidatesError) as exc_info:
            await client.invoke(REQUEST)
        assert exc_info.value.last_error.status_code == 401
        create.assert_not_awaited()


class TestRequestShape:
    @pytest.mark.asyncio
    async def test_attribution_headers_and_temperature(self):
        client, create, _ = _client([_completion("ok")])
        await client.invoke(REQUEST.model_copy(update={"temperature": 0.3}))
        kwargs = create.await_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert "HTTP-Referer" in kwargs["extra_headers"]
        assert "X-Title" in kwargs["extra_headers"]
        assert "Authorization" not in kwargs["extra_headers"]
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_caller_token_overrides_key(self):
        client, create, _ = _client([_completion("ok")])
        await client.invoke(REQUEST.model_copy(update={"auth_token": "user-token"}))
        assert create.await_args.kwargs["extra_headers"]["Authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_json_mode_requests_json_object(self):
        client, create, _ = _client([_completion("{}")])
        await client.invoke(REQUEST.model_copy(update={"json_mode": True}))
        assert create.await_args.kwargs["response_format"] == {"type": "json_object"}

    def test_backoff_delay(self):
        client, _, _ = _client([])
        assert client.backoff_delay(1) == 2.0
        assert client.backoff_delay(2) == 4.0
