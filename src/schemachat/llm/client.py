"""Built-in httpx chat completion clients with tenacity retry.

Provides the shared sync HTTP machinery (retry, error mapping, context
overflow detection, conversation continuation) and the OpenAI-compatible
client. Reads configuration from constructor arguments or environment
variables.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import replace
from typing import Any, Callable, Sequence

import httpx
import tenacity

from schemachat.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    TokenOverflowError,
)
from schemachat.models.config import RequestOptions, resolve_text
from schemachat.parsing import parse_unsafe_json
from schemachat.protocols import ChatMessage, CompletionResult, TokenUsage

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504, 529}
_AUTH_ERROR_STATUS_CODES = {401, 403}

_OPENAI_OVERFLOW_RE = re.compile(
    r"maximum context length is (\d+) tokens.*?(\d+) tokens", re.DOTALL
)


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 500, 502, 503, 504, 529, connection errors.
    Not retryable: 401, 403, 400 (including context overflow), other client errors.
    """
    if isinstance(exc, (LLMAuthError, TokenOverflowError)):
        return False
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def _error_message(response: httpx.Response) -> str:
    """Return the provider's error message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return response.text


class HTTPChatClient:
    """Shared base for the built-in HTTP clients.

    Subclasses set the class attributes and implement ``_build_payload``,
    ``_check_response``, ``_to_result`` and ``_overflow_tokens``.
    """

    supports_function_calling: bool = False
    provider: str = ""
    endpoint: str = ""
    api_key_env: str = ""
    base_url_env: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "",
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key. Falls back to the provider's API key env var.
            base_url: API base URL. Falls back to the provider's base URL env
                var, then to the public endpoint.
            default_model: Model used when a request does not name one.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of attempts for retryable errors.

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get(self.api_key_env, "")
        if not self._api_key:
            raise LLMConfigError(
                f"No API key provided. Pass api_key= or set {self.api_key_env} "
                "environment variable."
            )
        self._base_url = (
            base_url or os.environ.get(self.base_url_env, self.default_base_url)
        ).rstrip("/")
        self._default_model = default_model
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = httpx.Client(timeout=timeout, headers=self._headers())

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    @property
    def default_model(self) -> str:
        return self._default_model

    def chat_completion(
        self,
        messages: Sequence[ChatMessage],
        options: RequestOptions | None = None,
    ) -> CompletionResult:
        """Send a chat completion request with retry.

        Args:
            messages: Conversation turns, oldest first.
            options: Request options. Structured-output fields, the system
                message and pass-through parameters are applied.

        Returns:
            CompletionResult whose ``respond()`` continues this conversation.

        Raises:
            TokenOverflowError: The provider rejected the request for length.
            LLMAuthError: On 401/403 (no retry).
            LLMRateLimitError: On 429 after all retries exhausted.
            LLMResponseError: On unexpected response format.
            httpx.HTTPStatusError: On other non-retryable HTTP errors.
        """
        options = options or RequestOptions()
        history = tuple(messages)
        payload = self._build_payload(history, options)
        data = self._send(payload)
        result = self._to_result(history, options, data)
        return replace(
            result,
            messages=history,
            continuation=self._continuation(history, options, result.as_message()),
        )

    def _continuation(
        self,
        history: tuple[ChatMessage, ...],
        options: RequestOptions,
        received: ChatMessage,
    ) -> Callable[..., CompletionResult]:
        def respond(
            message: str | ChatMessage,
            new_options: RequestOptions | None = None,
        ) -> CompletionResult:
            follow_up = message if isinstance(message, ChatMessage) else ChatMessage.user(message)
            return self.chat_completion(
                [*history, received, follow_up],
                new_options if new_options is not None else options,
            )

        return respond

    def _send(self, payload: dict[str, Any]) -> dict:
        """Post ``payload`` with retry.

        Uses tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._do_send, payload)

    def _do_send(self, payload: dict[str, Any]) -> dict:
        """Execute a single request (no retry)."""
        response = self._client.post(f"{self._base_url}{self.endpoint}", json=payload)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(
                f"Authentication failed: HTTP {response.status_code} - "
                f"{response.text}"
            )

        if response.status_code == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise LLMRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=retry_after,
            )

        if response.status_code in (400, 413):
            message = _error_message(response)
            overflow = self._overflow_tokens(message)
            if overflow is not None:
                raise TokenOverflowError(overflow, message)

        response.raise_for_status()

        data = response.json()
        self._check_response(data)
        return data

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _build_payload(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions
    ) -> dict[str, Any]:
        raise NotImplementedError

    def _check_response(self, data: dict) -> None:
        raise NotImplementedError

    def _to_result(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions, data: dict
    ) -> CompletionResult:
        raise NotImplementedError

    def _overflow_tokens(self, message: str) -> int | None:
        raise NotImplementedError


class OpenAIClient(HTTPChatClient):
    """Sync httpx client for OpenAI-compatible chat completions.

    Implements the ChatCompletionClient protocol with function calling:
    ``options.functions`` are sent as tools and ``options.call_function``
    forces the model to call one of them.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            result = client.chat_completion([ChatMessage.user("Hello")])
            print(result.content)
    """

    supports_function_calling = True
    provider = "openai"
    endpoint = "/chat/completions"
    api_key_env = "SCHEMACHAT_OPENAI_API_KEY"
    base_url_env = "SCHEMACHAT_OPENAI_BASE_URL"
    default_base_url = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-4o-mini",
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        super().__init__(
            api_key=api_key,
            base_url=base_url,
            default_model=default_model,
            timeout=timeout,
            max_retries=max_retries,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _build_payload(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions
    ) -> dict[str, Any]:
        wire: list[dict] = []
        system = resolve_text(options.system_message)
        if system:
            wire.append({"role": "system", "content": system})
        wire.extend(m.to_dict() for m in messages)

        payload: dict[str, Any] = {
            "model": options.model or self._default_model,
            "messages": wire,
        }
        if options.functions:
            payload["tools"] = [
                {"type": "function", "function": dict(fn)} for fn in options.functions
            ]
            if options.call_function:
                payload["tool_choice"] = {
                    "type": "function",
                    "function": {"name": options.call_function},
                }
        payload.update(options.provider_params())
        return payload

    def _check_response(self, data: dict) -> None:
        if "choices" not in data:
            raise LLMResponseError(
                f"Unexpected response format: missing 'choices' key. "
                f"Response: {data}"
            )

    def _to_result(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions, data: dict
    ) -> CompletionResult:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError(
                f"Cannot extract message from response: {exc}. "
                f"Response: {data}"
            ) from exc
        name, arguments = self._parse_function_call(message, options.call_function)
        return CompletionResult(
            content=message.get("content"),
            arguments=arguments,
            function_name=name,
            usage=self.extract_usage(data),
            raw_response=data,
        )

    @staticmethod
    def _parse_function_call(
        message: dict, preferred: str | None
    ) -> tuple[str | None, dict | None]:
        """Return (name, arguments) of the function the model called, if any.

        Prefers the call named ``preferred``. Arguments arrive as a JSON
        string and are parsed leniently.
        """
        calls = [tc.get("function") or {} for tc in message.get("tool_calls") or []]
        if message.get("function_call"):
            calls.append(message["function_call"])
        if not calls:
            return None, None
        chosen = next((c for c in calls if c.get("name") == preferred), calls[0])
        raw = chosen.get("arguments")
        arguments = raw if isinstance(raw, dict) else parse_unsafe_json(raw)
        if arguments is None:
            logger.warning("could not parse arguments of function %s", chosen.get("name"))
        return chosen.get("name"), arguments

    @staticmethod
    def extract_usage(data: dict) -> TokenUsage | None:
        usage = data.get("usage")
        if not usage:
            return None
        return TokenUsage(
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )

    def _overflow_tokens(self, message: str) -> int | None:
        match = _OPENAI_OVERFLOW_RE.search(message)
        if match is None:
            return None
        maximum, requested = int(match.group(1)), int(match.group(2))
        if requested <= maximum:
            return None
        return requested - maximum
