"""Data types exchanged between callers, the healing core and providers.

Frozen dataclasses for conversation turns (ChatMessage), raw provider
answers (CompletionResult) and schema-checked answers (ValidatedResponse).
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, Literal, TypeVar

from schemachat.exceptions import SchemaChatError

if TYPE_CHECKING:
    from schemachat.models.config import RequestOptions, TextSource

T = TypeVar("T")

Role = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class ChatMessage:
    """A single conversation turn."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role="user", content=content)


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by an LLM API response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


Continuation = Callable[..., "CompletionResult | None"]


@dataclass(frozen=True)
class CompletionResult:
    """A provider's raw answer to one chat completion request.

    Attributes:
        content: Free-text content, if any.
        arguments: Parsed arguments of the structured function call, if the
            model made one.
        function_name: Name of the called function, if any.
        usage: Token usage from the API, or None if not reported.
        raw_response: The provider's decoded response body.
        messages: The conversation that was sent to produce this answer.
        continuation: Provider primitive behind respond().
    """

    content: str | None = None
    arguments: dict | None = None
    function_name: str | None = None
    usage: TokenUsage | None = None
    raw_response: dict | None = field(default=None, repr=False)
    messages: tuple[ChatMessage, ...] = ()
    continuation: Continuation | None = field(default=None, repr=False, compare=False)

    def as_message(self) -> ChatMessage:
        """This answer as an assistant turn for the conversation history."""
        if self.content:
            return ChatMessage(role="assistant", content=self.content)
        if self.arguments is not None:
            return ChatMessage(role="assistant", content=_json.dumps(self.arguments))
        return ChatMessage(role="assistant", content="")

    def respond(
        self,
        message: str | ChatMessage,
        options: RequestOptions | None = None,
    ) -> CompletionResult | None:
        """Send a follow-up turn in the same conversation.

        When ``options`` is None the options of the originating request are
        reused.
        """
        if self.continuation is None:
            raise SchemaChatError("Completion result has no continuation")
        return self.continuation(message, options)


@dataclass(frozen=True)
class ValidatedResponse(Generic[T]):
    """A completion whose ``data`` satisfies the requested schema.

    Without a schema, ``data`` is the response text.

    Attributes:
        data: The validated value (or the text in schemaless mode).
        completion: The provider answer ``data`` was taken from. After an
            autoheal round-trip this is the corrected answer.
        prompt: The user message that produced this response.
    """

    data: T
    completion: CompletionResult
    prompt: str | None = None
    continuation: Callable[..., ValidatedResponse] | None = field(
        default=None, repr=False, compare=False
    )

    @property
    def content(self) -> str | None:
        return self.completion.content

    @property
    def arguments(self) -> dict | None:
        return self.completion.arguments

    @property
    def usage(self) -> TokenUsage | None:
        return self.completion.usage

    def respond(
        self,
        prompt: TextSource,
        options: RequestOptions | None = None,
    ) -> ValidatedResponse:
        """Continue the conversation under the same schema contract.

        Args:
            prompt: The follow-up message, or a zero-argument producer of it.
            options: Overrides merged over the options of the original call.

        Returns:
            A new ValidatedResponse, itself continuable.
        """
        if self.continuation is None:
            raise SchemaChatError("Response has no continuation bound")
        return self.continuation(prompt, options)

    def __str__(self) -> str:
        return str(self.data)

    def pprint(self, *, abbreviate: bool = False, file: Any = None) -> None:
        """Pretty-print this response using rich formatting.

        Args:
            abbreviate: If True, truncate long text.
            file: Optional file-like object for output.
        """
        from schemachat.formatting import pprint_validated_response

        pprint_validated_response(self, abbreviate=abbreviate, file=file)
