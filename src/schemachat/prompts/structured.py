"""Structured-output prompts.

Provides the synthetic function descriptor offered to function-calling
providers, the JSON system preamble for text-only providers, and the
corrective messages sent during an autoheal round-trip.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from schemachat.schema import ValidationIssue

FUNCTION_NAME: str = "print"

FUNCTION_DESCRIPTION: str = (
    "ALWAYS respond by calling this function with the given parameters"
)

JSON_SYSTEM_PREAMBLE: str = (
    "You will respond to ALL human messages in JSON. Make sure the response "
    "correctly follow the following JSON schema specifications: "
)


def build_function_descriptor(json_schema: dict[str, Any]) -> dict[str, Any]:
    """Return the structured-output function definition for ``json_schema``."""
    return {
        "name": FUNCTION_NAME,
        "description": FUNCTION_DESCRIPTION,
        "parameters": json_schema,
    }


def build_json_system_message(schema_instructions: str, system_message: str = "") -> str:
    """Prepend the JSON-only instruction to a caller's system message."""
    return f"{JSON_SYSTEM_PREAMBLE}{schema_instructions}\n\n{system_message}".strip()


def build_response_prefix(first_property: str) -> str:
    """Priming text that starts a JSON object at the schema's first key."""
    return f'{{ "{first_property}": '


def build_function_reminder() -> str:
    """Corrective turn for a model that answered without calling the function."""
    return f"Please respond with a call to the {FUNCTION_NAME} function"


def build_issues_message(
    issues: Iterable[ValidationIssue],
    *,
    schema_instructions: str | None,
    supports_function_calling: bool,
) -> str:
    """Build the corrective turn for a response that failed validation.

    Args:
        issues: Validation issues of the rejected response.
        schema_instructions: Serialized JSON schema (text-only providers).
        supports_function_calling: Whether the provider received the schema
            as a function definition.

    Returns:
        One instruction line followed by one line per issue.
    """
    if supports_function_calling:
        text = (
            "There is an issue with that response, please rewrite by calling the "
            f"{FUNCTION_NAME} function with the correct parameters."
        )
    else:
        text = (
            "There is an issue with that response, please follow the JSON schema "
            f"EXACTLY, the output must be valid parsable JSON: {schema_instructions}"
        )
    for issue in issues:
        if issue.path:
            text += f"\nThe issue is at path {issue.dotted_path}: {issue.message}."
        else:
            text += f"\nThe issue is: {issue.message}."
    return text
