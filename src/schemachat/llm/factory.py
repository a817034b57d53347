"""Client factory for the built-in providers."""

from __future__ import annotations

from typing import Any

from schemachat.llm.anthropic import AnthropicClient
from schemachat.llm.client import HTTPChatClient, OpenAIClient
from schemachat.llm.errors import LLMConfigError

_PROVIDERS: dict[str, type[HTTPChatClient]] = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
}


def create_client(provider: str, **kwargs: Any) -> HTTPChatClient:
    """Build a client for ``provider``.

    Providers:
    - openai
    - anthropic

    Keyword arguments are passed to the client constructor. A ``model``
    keyword is accepted as an alias for ``default_model``.

    Raises:
        LLMConfigError: Unknown provider or missing API key.
    """
    key = provider.lower().strip()
    client_cls = _PROVIDERS.get(key)
    if client_cls is None:
        raise LLMConfigError(
            f"Unknown LLM provider: {provider}. Expected one of: {', '.join(sorted(_PROVIDERS))}"
        )
    model = kwargs.pop("model", None)
    if model:
        kwargs["default_model"] = model
    return client_cls(**kwargs)
