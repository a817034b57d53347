"""Response healing: validate a completion and repair it at most once.

heal() checks a provider answer against the requested schema. An answer
that skipped the structured-output function, or whose JSON fails
validation, gets exactly one corrective round-trip through the answer's own
continuation. The corrected answer is validated strictly; a second failure
is terminal.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from schemachat.exceptions import (
    AutoHealFailedError,
    EmptyResponseError,
    FunctionNotCalledError,
    NoJsonFoundError,
    ResponseParsingFailedError,
)
from schemachat.models.config import RequestOptions
from schemachat.parsing import parse_unsafe_json
from schemachat.prompts.structured import (
    FUNCTION_NAME,
    build_function_reminder,
    build_issues_message,
)
from schemachat.protocols import CompletionResult, ValidatedResponse
from schemachat.schema import SchemaContract

logger = logging.getLogger(__name__)


def _extract_json(result: CompletionResult, supports_function_calling: bool) -> dict[str, Any] | None:
    if supports_function_calling:
        return result.arguments
    return parse_unsafe_json(result.content or "")


def _require(result: CompletionResult | None) -> CompletionResult:
    if result is None:
        raise EmptyResponseError()
    return result


def heal(
    result: CompletionResult | None,
    schema_instructions: str | None,
    options: RequestOptions,
    supports_function_calling: bool,
) -> ValidatedResponse:
    """Turn a raw completion into a ValidatedResponse.

    Args:
        result: The provider answer.
        schema_instructions: Serialized JSON schema sent to text-only
            providers (restated in the corrective turn).
        options: Effective options of the request (schema, auto_heal).
        supports_function_calling: Provider capability flag.

    Returns:
        ValidatedResponse whose ``data`` satisfies ``options.schema``, or the
        response text when no schema was requested.

    Raises:
        EmptyResponseError: If the provider returned nothing.
        FunctionNotCalledError: Function not called and autoheal is off.
        NoJsonFoundError: No JSON candidate in the first answer.
        ResponseParsingFailedError: Validation failed and autoheal is off.
        AutoHealFailedError: The corrective round-trip did not fix the answer.
    """
    result = _require(result)

    if options.schema is None:
        text = "" if result.content is None else str(result.content)
        return ValidatedResponse(data=text, completion=result)

    contract = SchemaContract.of(options.schema)
    auto_heal = bool(options.auto_heal)

    if supports_function_calling and result.arguments is None:
        if not auto_heal:
            raise FunctionNotCalledError(FUNCTION_NAME)
        logger.warning("function not called, autohealing...")
        result = _require(result.respond(build_function_reminder()))
        if result.arguments is None:
            raise AutoHealFailedError("Response function autoheal failed")

    candidate = _extract_json(result, supports_function_calling)
    if candidate is None:
        raise NoJsonFoundError(result.content)

    outcome = contract.safe_validate(candidate)
    if outcome.ok:
        return ValidatedResponse(data=outcome.value, completion=result)

    if not auto_heal:
        raise ResponseParsingFailedError(outcome.issues)

    logger.warning(
        "response parsing failed, autohealing... (%d issue(s))", len(outcome.issues)
    )
    result = _require(
        result.respond(
            build_issues_message(
                outcome.issues,
                schema_instructions=schema_instructions,
                supports_function_calling=supports_function_calling,
            )
        )
    )

    candidate = _extract_json(result, supports_function_calling)
    if candidate is None:
        raise AutoHealFailedError("Response schema autoheal failed")

    try:
        data = contract.parse(candidate)
    except ValidationError as exc:
        raise AutoHealFailedError(f"Response schema autoheal failed: {exc}") from exc
    return ValidatedResponse(data=data, completion=result)
