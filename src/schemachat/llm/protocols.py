"""Chat completion client protocol.

Defines the pluggable interface the healing core dispatches through.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from schemachat.models.config import RequestOptions
    from schemachat.protocols import ChatMessage, CompletionResult


@runtime_checkable
class ChatCompletionClient(Protocol):
    """Protocol for pluggable chat completion clients.

    Any object with this shape works. The built-in OpenAIClient and
    AnthropicClient implement it.

    ``supports_function_calling`` selects how a schema is delivered: as a
    forced function definition (True) or as JSON instructions in the system
    message plus a response prefix (False).

    ``chat_completion`` must raise TokenOverflowError when the provider
    rejects the request for length, and must return results whose
    ``respond()`` continues the same conversation.
    """

    supports_function_calling: bool

    def chat_completion(
        self,
        messages: Sequence[ChatMessage],
        options: RequestOptions | None = None,
    ) -> CompletionResult | None:
        """Send messages, return the provider's answer."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
