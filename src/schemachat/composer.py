"""Request composition: turn a prompt and options into a provider request.

Function-calling providers receive the schema as a forced function
definition. Text-only providers receive it inside the system message,
plus a response prefix priming the model to open the JSON object.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace

from pydantic import PydanticUserError

from schemachat.exceptions import ConfigurationError
from schemachat.models.config import (
    DEFAULT_OPTIONS,
    RequestOptions,
    TextSource,
    merge_options,
    resolve_text,
)
from schemachat.prompts.structured import (
    FUNCTION_NAME,
    build_function_descriptor,
    build_json_system_message,
    build_response_prefix,
)
from schemachat.schema import SchemaContract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposedRequest:
    """Output of compose().

    Attributes:
        message: The resolved user message.
        options: Effective options (defaults and structured-output fields
            merged in).
        schema_instructions: Serialized JSON schema for text-only providers.
        response_prefix: JSON priming string for text-only providers.
        request_options: The options to dispatch with. Equal to ``options``
            unless the schema had to be injected into the system message.
    """

    message: str
    options: RequestOptions
    schema_instructions: str | None = None
    response_prefix: str | None = None
    request_options: RequestOptions | None = None

    @property
    def dispatch_options(self) -> RequestOptions:
        return self.request_options if self.request_options is not None else self.options


def compose(
    prompt: TextSource,
    options: RequestOptions | None,
    *,
    supports_function_calling: bool,
) -> ComposedRequest:
    """Build the provider-facing request for ``prompt``.

    Args:
        prompt: User message or zero-argument producer of it.
        options: Caller options (may be None).
        supports_function_calling: Provider capability flag.

    Returns:
        ComposedRequest ready for dispatch.

    Raises:
        ConfigurationError: If ``options.schema`` is not object-shaped.
    """
    message = resolve_text(prompt)
    schema = options.schema if options is not None else None

    if schema is None:
        effective = merge_options(DEFAULT_OPTIONS, options)
        logger.debug("sending request: %s", message)
        return ComposedRequest(message=message, options=effective)

    try:
        contract = SchemaContract.of(schema)
        is_object = contract.is_object
    except (PydanticUserError, TypeError, KeyError) as exc:
        raise ConfigurationError(f"Unusable schema {schema!r}: {exc}") from exc
    if not is_object:
        raise ConfigurationError(f"Schemas can ONLY be an object, got {contract!r}")
    json_schema = contract.json_schema()

    structured = RequestOptions(
        call_function=FUNCTION_NAME,
        functions=(build_function_descriptor(json_schema),),
    )
    effective = merge_options(DEFAULT_OPTIONS, options, structured)
    logger.debug("sending request: %s", message)

    if supports_function_calling:
        return ComposedRequest(message=message, options=effective)

    schema_instructions = json.dumps(json_schema)
    first_property = contract.first_property()
    response_prefix = build_response_prefix(first_property) if first_property else None
    request_options = replace(
        effective,
        functions=None,
        call_function=None,
        system_message=build_json_system_message(
            schema_instructions, resolve_text(effective.system_message)
        ),
        response_prefix=response_prefix,
    )
    return ComposedRequest(
        message=message,
        options=effective,
        schema_instructions=schema_instructions,
        response_prefix=response_prefix,
        request_options=request_options,
    )
