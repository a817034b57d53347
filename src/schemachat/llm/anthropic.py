"""Anthropic Messages API client.

Text-only for schemachat's purposes: structured output is requested through
the system message, and the response prefix is sent as an assistant
pre-fill so the model continues an already-opened JSON object.
"""

from __future__ import annotations

import re
from typing import Any

from schemachat.llm.client import HTTPChatClient
from schemachat.llm.errors import LLMResponseError
from schemachat.models.config import RequestOptions, resolve_text
from schemachat.protocols import ChatMessage, CompletionResult, TokenUsage

ANTHROPIC_VERSION = "2023-06-01"

_OVERFLOW_RE = re.compile(r"prompt is too long: (\d+) tokens > (\d+) maximum")


class AnthropicClient(HTTPChatClient):
    """Sync httpx client for the Anthropic Messages API.

    Implements the ChatCompletionClient protocol without function calling.
    System turns in the history and ``options.system_message`` are merged
    into the top-level ``system`` field.

    Usage::

        with AnthropicClient(api_key="sk-ant-...") as client:
            result = client.chat_completion([ChatMessage.user("Hello")])
    """

    supports_function_calling = False
    provider = "anthropic"
    endpoint = "/messages"
    api_key_env = "SCHEMACHAT_ANTHROPIC_API_KEY"
    base_url_env = "SCHEMACHAT_ANTHROPIC_BASE_URL"
    default_base_url = "https://api.anthropic.com/v1"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "claude-3-5-haiku-latest",
        timeout: float = 120.0,
        max_retries: int = 3,
        default_max_tokens: int = 4096,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            default_max_tokens: ``max_tokens`` sent when the request does not
                set one (the Messages API requires it).

        See HTTPChatClient for the remaining arguments.
        """
        self._default_max_tokens = default_max_tokens
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
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    @staticmethod
    def _prefill(options: RequestOptions) -> str:
        # The API rejects a final assistant turn ending in whitespace.
        return (options.response_prefix or "").rstrip()

    def _build_payload(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions
    ) -> dict[str, Any]:
        system_parts: list[str] = []
        system = resolve_text(options.system_message)
        if system:
            system_parts.append(system)
        wire: list[dict] = []
        for m in messages:
            if m.role == "system":
                system_parts.append(m.content)
            else:
                wire.append(m.to_dict())
        prefill = self._prefill(options)
        if prefill:
            wire.append({"role": "assistant", "content": prefill})

        payload: dict[str, Any] = {
            "model": options.model or self._default_model,
            "max_tokens": self._default_max_tokens,
            "messages": wire,
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        payload.update(options.provider_params())
        return payload

    def _check_response(self, data: dict) -> None:
        if not isinstance(data.get("content"), list):
            raise LLMResponseError(
                f"Unexpected response format: missing 'content' list. "
                f"Response: {data}"
            )

    def _to_result(
        self, messages: tuple[ChatMessage, ...], options: RequestOptions, data: dict
    ) -> CompletionResult:
        text = "".join(
            block.get("text", "")
            for block in data["content"]
            if isinstance(block, dict) and block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)
        return CompletionResult(
            content=self._prefill(options) + text,
            usage=TokenUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ) if usage else None,
            raw_response=data,
        )

    def _overflow_tokens(self, message: str) -> int | None:
        match = _OVERFLOW_RE.search(message)
        if match is None:
            return None
        requested, maximum = int(match.group(1)), int(match.group(2))
        return requested - maximum
