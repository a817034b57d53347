"""schemachat: schema-validated chat completions.

Turns a free-text or function-calling chat model into a source of values
that conform to a pydantic schema, with one bounded corrective round-trip
(autoheal) and optional prompt shrinking on context overflow (auto-slice).
"""

from schemachat._version import __version__

# Core entry point
from schemachat.completion import completion

# Request composition and healing
from schemachat.composer import ComposedRequest, compose
from schemachat.healer import heal

# Options
from schemachat.models.config import DEFAULT_OPTIONS, RequestOptions, merge_options

# Conversation and result types
from schemachat.protocols import ChatMessage, CompletionResult, TokenUsage, ValidatedResponse

# Schema contracts
from schemachat.schema import SchemaContract, ValidationIssue, ValidationOutcome
from schemachat.parsing import parse_unsafe_json

# Clients
from schemachat.llm import (
    AnthropicClient,
    ChatCompletionClient,
    OpenAIClient,
    TokenOverflowError,
    create_client,
)

# Exceptions
from schemachat.exceptions import (
    AutoHealFailedError,
    ConfigurationError,
    EmptyResponseError,
    FunctionNotCalledError,
    NoJsonFoundError,
    ResponseParsingFailedError,
    SchemaChatError,
)

__all__ = [
    "__version__",
    "completion",
    "compose",
    "ComposedRequest",
    "heal",
    "DEFAULT_OPTIONS",
    "RequestOptions",
    "merge_options",
    "ChatMessage",
    "CompletionResult",
    "TokenUsage",
    "ValidatedResponse",
    "SchemaContract",
    "ValidationIssue",
    "ValidationOutcome",
    "parse_unsafe_json",
    "AnthropicClient",
    "ChatCompletionClient",
    "OpenAIClient",
    "TokenOverflowError",
    "create_client",
    "SchemaChatError",
    "ConfigurationError",
    "EmptyResponseError",
    "FunctionNotCalledError",
    "AutoHealFailedError",
    "NoJsonFoundError",
    "ResponseParsingFailedError",
]
