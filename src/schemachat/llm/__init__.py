"""LLM client infrastructure for schemachat.

Provides httpx clients for OpenAI-compatible and Anthropic chat APIs,
the pluggable ChatCompletionClient protocol, and the client error hierarchy.
"""

from schemachat.llm.anthropic import AnthropicClient
from schemachat.llm.client import HTTPChatClient, OpenAIClient
from schemachat.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    TokenOverflowError,
)
from schemachat.llm.factory import create_client
from schemachat.llm.protocols import ChatCompletionClient

__all__ = [
    "AnthropicClient",
    "ChatCompletionClient",
    "HTTPChatClient",
    "OpenAIClient",
    "create_client",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
    "TokenOverflowError",
]
