"""schemachat exception hierarchy.

All schemachat-specific exceptions inherit from SchemaChatError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemachat.schema import ValidationIssue


class SchemaChatError(Exception):
    """Base exception for all schemachat errors."""


class ConfigurationError(SchemaChatError):
    """Raised when request options are unusable (e.g. a non-object schema).

    Raised before any request is sent and never retried.
    """


class EmptyResponseError(SchemaChatError):
    """Raised when the provider returned no completion."""

    def __init__(self, message: str = "Chat request failed: no response received") -> None:
        super().__init__(message)


class FunctionNotCalledError(SchemaChatError):
    """Raised when a function-calling provider ignored the structured-output function."""

    def __init__(self, function_name: str) -> None:
        self.function_name = function_name
        super().__init__(f"Response function not called: {function_name}")


class AutoHealFailedError(SchemaChatError):
    """Raised when the single corrective round-trip still produced an unusable response."""


class NoJsonFoundError(SchemaChatError):
    """Raised when no JSON object could be extracted from the response."""

    def __init__(self, content: str | None = None) -> None:
        self.content = content
        super().__init__("No JSON object found in response")


class ResponseParsingFailedError(SchemaChatError):
    """Raised when the response fails schema validation and autoheal is off.

    Attributes:
        issues: The validation issues reported for the response.
    """

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = list(issues)
        details = "; ".join(str(issue) for issue in self.issues)
        msg = "Response parsing failed"
        if details:
            msg += f": {details}"
        super().__init__(msg)
