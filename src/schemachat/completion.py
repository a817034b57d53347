"""Schema-validated chat completion entry point.

completion() composes the request, dispatches it, recovers from context
overflow by shrinking the prompt (when auto_slice is on), heals the answer,
and binds a continuation so the caller can keep chatting under the same
schema contract.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from schemachat.composer import compose
from schemachat.exceptions import EmptyResponseError
from schemachat.healer import heal
from schemachat.llm.errors import TokenOverflowError
from schemachat.llm.protocols import ChatCompletionClient
from schemachat.models.config import (
    DEFAULT_OPTIONS,
    RequestOptions,
    TextSource,
    merge_options,
)
from schemachat.protocols import ChatMessage, ValidatedResponse

logger = logging.getLogger(__name__)

# Heuristic used to turn an overflow token count into characters to drop.
CHARS_PER_TOKEN = 4


def completion(
    model: ChatCompletionClient,
    prompt: TextSource,
    options: RequestOptions | None = None,
) -> ValidatedResponse:
    """Request a completion whose ``data`` conforms to ``options.schema``.

    Args:
        model: Chat completion client (e.g. OpenAIClient, AnthropicClient).
        prompt: User message or zero-argument producer of it.
        options: Request options. Without a schema, ``data`` is the text.

    Returns:
        ValidatedResponse with a bound continuation (``response.respond()``).

    Raises:
        ConfigurationError: If the schema is not object-shaped.
        TokenOverflowError: If the prompt is too long and cannot be sliced.
        SchemaChatError: Any other failure from the healing protocol.

    Example::

        with OpenAIClient() as client:
            res = completion(client, "Who wrote Dune?", RequestOptions(schema=Book))
            print(res.data.author)
    """
    response = _completion_logic(model, prompt, options)
    return _bind_continuation(response, options, model.supports_function_calling)


def _completion_logic(
    model: ChatCompletionClient,
    prompt: TextSource,
    options: RequestOptions | None,
) -> ValidatedResponse:
    supports_function_calling = model.supports_function_calling
    request = compose(prompt, options, supports_function_calling=supports_function_calling)
    messages = [
        *(request.options.message_history or ()),
        ChatMessage.user(request.message),
    ]

    try:
        result = model.chat_completion(messages, request.dispatch_options)
    except TokenOverflowError as exc:
        if not request.options.auto_slice:
            raise
        chunk_size = len(request.message) - exc.overflow_tokens * CHARS_PER_TOKEN
        if chunk_size < 0 or chunk_size >= len(request.message):
            raise
        logger.info(
            "Request prompt too long, splitting text with chunk size of %d", chunk_size
        )
        return _completion_logic(model, request.message[:chunk_size], options)

    if result is None:
        raise EmptyResponseError()
    logger.debug("received response: %s", result)

    response = heal(
        result,
        request.schema_instructions,
        request.options,
        supports_function_calling,
    )
    return replace(response, prompt=request.message)


def _bind_continuation(
    response: ValidatedResponse,
    options: RequestOptions | None,
    supports_function_calling: bool,
) -> ValidatedResponse:
    """Attach respond() to ``response``, closing over the call's options.

    Continuation turns are not auto-sliced: an overflow on a follow-up turn
    propagates to the caller.
    """

    def respond(
        prompt: TextSource,
        override: RequestOptions | None = None,
    ) -> ValidatedResponse:
        merged = merge_options(DEFAULT_OPTIONS, options, override)
        request = compose(prompt, merged, supports_function_calling=supports_function_calling)
        result = response.completion.respond(request.message, request.dispatch_options)
        healed = heal(
            result,
            request.schema_instructions,
            request.options,
            supports_function_calling,
        )
        return _bind_continuation(
            replace(healed, prompt=request.message), merged, supports_function_calling
        )

    return replace(response, continuation=respond)
