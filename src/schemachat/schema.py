"""Schema contracts backed by pydantic.

A SchemaContract wraps any type pydantic can adapt (BaseModel subclasses,
TypedDicts, dataclasses) and exposes the three operations the healing
core needs: JSON-schema generation, non-raising validation, and strict
(raising) validation.

On Python < 3.12 pydantic only accepts ``typing_extensions.TypedDict``,
not ``typing.TypedDict``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

_DEFS_PREFIX = "#/$defs/"


@dataclass(frozen=True)
class ValidationIssue:
    """One validation failure, located by its path inside the value."""

    path: tuple[str | int, ...]
    message: str

    @property
    def dotted_path(self) -> str:
        return ".".join(str(part) for part in self.path)

    def __str__(self) -> str:
        if self.path:
            return f"{self.dotted_path}: {self.message}"
        return self.message


@dataclass(frozen=True)
class ValidationOutcome(Generic[T]):
    """Result of SchemaContract.safe_validate()."""

    ok: bool
    value: T | None = None
    issues: list[ValidationIssue] = field(default_factory=list)


def issues_from_error(exc: ValidationError) -> list[ValidationIssue]:
    """Convert a pydantic ValidationError into ValidationIssues."""
    return [
        ValidationIssue(path=tuple(err.get("loc", ())), message=err.get("msg", "invalid value"))
        for err in exc.errors()
    ]


def _inline_root_ref(js: dict[str, Any]) -> dict[str, Any]:
    ref = js.get("$ref")
    defs = js.get("$defs")
    if not isinstance(ref, str) or not ref.startswith(_DEFS_PREFIX) or not isinstance(defs, dict):
        return js
    target = defs.get(ref[len(_DEFS_PREFIX):])
    if not isinstance(target, dict):
        return js
    root = {k: v for k, v in js.items() if k != "$ref"}
    return {**target, **root}


class SchemaContract(Generic[T]):
    """Validation contract for structured responses.

    Usage::

        contract = SchemaContract(Person)
        outcome = contract.safe_validate({"name": "Al", "age": 30})
        if outcome.ok:
            person = outcome.value
    """

    def __init__(self, schema: Any) -> None:
        self.schema = schema
        self._adapter: TypeAdapter[T] = TypeAdapter(schema)

    @classmethod
    def of(cls, schema: Any) -> SchemaContract:
        """Return ``schema`` if it already is a contract, else wrap it."""
        if isinstance(schema, SchemaContract):
            return schema
        return cls(schema)

    @cached_property
    def _json_schema(self) -> dict[str, Any]:
        return _inline_root_ref(self._adapter.json_schema())

    def json_schema(self) -> dict[str, Any]:
        """Return the JSON schema describing this contract.

        Self-referencing models come back from pydantic as a bare ``$ref``
        into ``$defs``; the referenced definition is lifted to the top
        level, with ``$defs`` kept so nested references still resolve.
        """
        return copy.deepcopy(self._json_schema)

    @property
    def is_object(self) -> bool:
        """True when the top level is an object with declared properties."""
        js = self._json_schema
        return js.get("type") == "object" and isinstance(js.get("properties"), dict)

    def first_property(self) -> str | None:
        """Name of the first declared top-level property, if any."""
        properties = self._json_schema.get("properties") or {}
        return next(iter(properties), None)

    def safe_validate(self, value: Any) -> ValidationOutcome[T]:
        """Validate without raising."""
        try:
            return ValidationOutcome(ok=True, value=self._adapter.validate_python(value))
        except ValidationError as exc:
            return ValidationOutcome(ok=False, issues=issues_from_error(exc))

    def parse(self, value: Any) -> T:
        """Validate strictly.

        Raises:
            pydantic.ValidationError: If ``value`` violates the contract.
        """
        return self._adapter.validate_python(value)

    def __repr__(self) -> str:
        name = getattr(self.schema, "__name__", repr(self.schema))
        return f"SchemaContract({name})"
