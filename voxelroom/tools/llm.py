"""OpenRouter LLM client — ordered model fallback with per-model retry and backoff.

Each candidate model runs through a small state machine:

    TRYING --success--------------------------> return content
    TRYING --HTTP 429-------------------------> RATE_LIMITED  (next model)
    TRYING --HTTP >=500 / no content / network-> SERVER_ERROR (retry same model
                                                  while attempts remain)
    TRYING --any other status-----------------> TERMINAL      (next model)

Attempt ``a > 0`` on a model waits ``backoff_base ** a`` seconds first.
"""

import asyncio
import base64
import enum
import json
import logging
from collections.abc import Awaitable, Callable, Sequence

import openai
from openai import AsyncOpenAI

from ..config import (
    APP_REFERER,
    APP_TITLE,
    OPENROUTER_API_KEY,
    OPENROUTER_BACKOFF_BASE,
    OPENROUTER_BASE_URL,
    OPENROUTER_MAX_ATTEMPTS,
    OPENROUTER_MODELS,
    OPENROUTER_TIMEOUT,
)
from ..errors import (
    ExhaustedCandidatesError,
    NonRetryableRequestError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamError,
)
from ..models.schemas import ModelRequest

logger = logging.getLogger(__name__)

_EXTRA_HEADERS = {
    "HTTP-Referer": APP_REFERER,
    "X-Title": APP_TITLE,
}

SCHEMA_INSTRUCTION = "You MUST respond with valid JSON matching this schema:"


class CandidateState(enum.Enum):
    TRYING = "trying"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TERMINAL = "terminal"


def _state_after(error: UpstreamError) -> CandidateState:
    if isinstance(error, RateLimitedError):
        return CandidateState.RATE_LIMITED
    if isinstance(error, TransientUpstreamError):
        return CandidateState.SERVER_ERROR
    return CandidateState.TERMINAL


def _image_content_part(image: str | bytes) -> dict:
    """Build an image_url content part from a URL, base64 string or raw bytes."""
    if isinstance(image, bytes):
        url = f"data:image/jpeg;base64,{base64.b64encode(image).decode()}"
    elif image.startswith("data:") or image.startswith("http"):
        url = image
    else:
        # Raw base64, assume JPEG
        url = f"data:image/jpeg;base64,{image}"

    return {"type": "image_url", "image_url": {"url": url}}


def build_messages(request: ModelRequest) -> list[dict]:
    """Turn a ModelRequest into chat-completions messages."""
    text = request.prompt_text
    if request.response_schema:
        text = f"{text}\n\n{SCHEMA_INSTRUCTION}\n{json.dumps(request.response_schema, indent=2)}"

    if request.image_data is not None:
        content: str | list[dict] = [
            {"type": "text", "text": text},
            _image_content_part(request.image_data),
        ]
    else:
        content = text

    messages = [{"role": "user", "content": content}]
    if request.system_prompt:
        messages.insert(0, {"role": "system", "content": request.system_prompt})
    return messages


def classify_failure(exc: Exception, model: str) -> UpstreamError:
    """Map an openai SDK exception onto the retry taxonomy."""
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        detail = str(exc)[:200]
        if status == 429:
            return RateLimitedError(f"Rate limited on {model}", model=model, status_code=status)
        if status >= 500:
            return TransientUpstreamError(
                f"OpenRouter API error {status} on {model}: {detail}", model=model, status_code=status
            )
        return NonRetryableRequestError(
            f"OpenRouter API error {status} on {model}: {detail}", model=model, status_code=status
        )
    if isinstance(exc, openai.APIConnectionError):
        return TransientUpstreamError(f"Connection to OpenRouter failed for {model}: {exc}", model=model)
    raise TypeError(f"Unclassifiable failure: {exc!r}")


def _message_content(response) -> str | None:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


class ExtractionClient:
    """Calls the chat-completions endpoint across an ordered list of models."""

    def __init__(
        self,
        models: Sequence[str] = OPENROUTER_MODELS,
        max_attempts: int = OPENROUTER_MAX_ATTEMPTS,
        backoff_base: float = OPENROUTER_BACKOFF_BASE,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.models = tuple(models)
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.api_key = OPENROUTER_API_KEY if api_key is None else api_key
        self._client = client
        self._sleep = sleep

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=OPENROUTER_BASE_URL,
                api_key=self.api_key,
                timeout=OPENROUTER_TIMEOUT,
                max_retries=0,
            )
        return self._client

    def backoff_delay(self, attempt: int) -> float:
        return self.backoff_base ** attempt

    async def invoke(self, request: ModelRequest) -> str:
        """Return the raw message content from the first model that answers.

        Raises ExhaustedCandidatesError carrying the last failure when every
        candidate model has been abandoned.
        """
        last_error: UpstreamError | None = None
        total_attempts = 0

        for model in self.models:
            state = CandidateState.TRYING
            for attempt in range(self.max_attempts):
                if attempt > 0:
                    delay = self.backoff_delay(attempt)
                    logger.info("Retrying %s in %.1fs (attempt %d)", model, delay, attempt)
                    await self._sleep(delay)

                total_attempts += 1
                try:
                    return await self._attempt(model, request, attempt)
                except UpstreamError as exc:
                    last_error = exc
                    state = _state_after(exc)
                    logger.warning("Model %s attempt %d failed (%s): %s", model, attempt, state.value, exc)

                if state is not CandidateState.SERVER_ERROR:
                    break

            logger.warning("Giving up on model %s after state %s", model, state.value)

        logger.error(
            "All %d candidate models failed for %s after %d attempts",
            len(self.models),
            request.payload_kind.value,
            total_attempts,
        )
        raise ExhaustedCandidatesError(
            f"Failed after all retry attempts and models: {last_error or 'no candidate models configured'}",
            last_error=last_error,
            attempts=total_attempts,
        ) from last_error

    async def _attempt(self, model: str, request: ModelRequest, attempt: int) -> str:
        token = request.auth_token or self.api_key
        if not token:
            raise NonRetryableRequestError("No OpenRouter API key configured", model=model, status_code=401)

        headers = dict(_EXTRA_HEADERS)
        if request.auth_token:
            headers["Authorization"] = f"Bearer {request.auth_token}"

        kwargs = {}
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("Calling %s for %s (attempt %d)", model, request.payload_kind.value, attempt)
        try:
            resp = await self._get_client().chat.completions.create(
                model=model,
                messages=build_messages(request),
                temperature=request.temperature,
                extra_headers=headers,
                **kwargs,
            )
        except (openai.APIStatusError, openai.APIConnectionError) as exc:
            raise classify_failure(exc, model) from exc

        content = _message_content(resp)
        if not content:
            raise TransientUpstreamError(f"No content in response from {model}", model=model)
        return content


_default_client: ExtractionClient | None = None


def get_extraction_client() -> ExtractionClient:
    global _default_client
    if _default_client is None:
        _default_client = ExtractionClient()
    return _default_client
