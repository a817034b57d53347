"""LLM-specific error hierarchy.

All LLM errors inherit from SchemaChatError for consistent exception handling.
"""

from __future__ import annotations

from schemachat.exceptions import SchemaChatError


class LLMClientError(SchemaChatError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid LLM configuration (e.g., no API key)."""


class LLMRateLimitError(LLMClientError):
    """Rate limited by the API (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""


class LLMResponseError(LLMClientError):
    """Unexpected response format from LLM API."""


class TokenOverflowError(LLMClientError):
    """The provider rejected the request for exceeding its context length.

    Attributes:
        overflow_tokens: How many tokens the request was over the limit.
    """

    def __init__(self, overflow_tokens: int, message: str | None = None) -> None:
        self.overflow_tokens = overflow_tokens
        super().__init__(
            message or f"Request exceeds the model context length by {overflow_tokens} tokens"
        )
