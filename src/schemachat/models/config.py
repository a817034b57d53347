"""Request option models for schemachat.

RequestOptions holds everything a single completion call is configured with:
the structured-output contract, conversation seed, healing/slicing switches,
and provider pass-through settings. Options are immutable; layering is done
with merge_options().
"""

from __future__ import annotations

import types
from dataclasses import dataclass, fields as dc_fields
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from schemachat.protocols import ChatMessage

TextSource = Union[str, Callable[[], str]]

_ALIASES: dict[str, str] = {
    "systemMessage": "system_message",
    "messageHistory": "message_history",
    "autoHeal": "auto_heal",
    "autoSlice": "auto_slice",
    "callFunction": "call_function",
    "responsePrefix": "response_prefix",
    "max_completion_tokens": "max_tokens",
}


def resolve_text(source: TextSource | None) -> str:
    """Return a literal string for a string or zero-argument producer."""
    if source is None:
        return ""
    if callable(source):
        return source()
    return source


@dataclass(frozen=True)
class RequestOptions:
    """Options for a single completion call.

    All fields are Optional -- None means 'not set / inherit from a lower layer.'
    ``extra`` holds provider keywords forwarded verbatim into the request
    payload.

    Example::

        from schemachat import RequestOptions
        opts = RequestOptions(schema=Person, auto_slice=True, temperature=0)
    """

    schema: Any = None
    system_message: TextSource | None = None
    message_history: tuple[ChatMessage, ...] | None = None
    auto_heal: bool | None = None
    auto_slice: bool | None = None
    functions: tuple[dict, ...] | None = None
    call_function: str | None = None
    response_prefix: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    extra: dict | None = None

    def __post_init__(self) -> None:
        if self.extra is not None:
            object.__setattr__(self, "extra", types.MappingProxyType(dict(self.extra)))
        if self.message_history is not None and not isinstance(self.message_history, tuple):
            object.__setattr__(self, "message_history", tuple(self.message_history))
        if self.functions is not None and not isinstance(self.functions, tuple):
            object.__setattr__(self, "functions", tuple(self.functions))

    @classmethod
    def from_dict(cls, d: dict | None) -> RequestOptions | None:
        """Create RequestOptions from a dict, routing unknown keys to extra.

        camelCase spellings (``autoHeal``, ``systemMessage``...) are accepted
        as aliases; the snake_case key wins if both are present.

        Returns None if d is None.
        """
        if d is None:
            return None
        d = dict(d)
        for alias, canonical in _ALIASES.items():
            if alias in d:
                if canonical not in d:
                    d[canonical] = d.pop(alias)
                else:
                    del d[alias]
        known = {f.name for f in dc_fields(cls)} - {"extra"}
        known_kwargs: dict = {}
        extra_kwargs: dict = dict(d.pop("extra", None) or {})
        for k, v in d.items():
            if k in known:
                known_kwargs[k] = v
            else:
                extra_kwargs[k] = v
        return cls(**known_kwargs, extra=extra_kwargs or None)

    def to_dict(self) -> dict:
        """Return the set (non-None) fields as a plain dict."""
        result: dict = {}
        for f in dc_fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = dict(value) if f.name == "extra" else value
        return result

    def provider_params(self) -> dict[str, Any]:
        """Pass-through payload parameters: sampling settings plus extra."""
        params: dict[str, Any] = {}
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        if self.extra:
            params.update(self.extra)
        return params


DEFAULT_OPTIONS = RequestOptions(auto_heal=True, auto_slice=False)


def merge_options(*layers: RequestOptions | None) -> RequestOptions:
    """Merge option layers, lowest precedence first.

    For every field the last layer with a non-None value wins. ``extra``
    mappings are merged key by key with the same precedence. None layers
    are skipped. No layer is mutated.

    Example::

        merge_options(DEFAULT_OPTIONS, caller_options, override_options)
    """
    merged: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        for f in dc_fields(RequestOptions):
            value = getattr(layer, f.name)
            if value is None:
                continue
            if f.name == "extra":
                extra.update(value)
            else:
                merged[f.name] = value
    return RequestOptions(**merged, extra=extra or None)
