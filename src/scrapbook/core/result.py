"""Explicit success/failure values for parsing steps.

Parsers in this package return a ``Parsed`` or a ``ParseFailure`` instead of
raising, so callers branch on the result type rather than on exceptions.
"""

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """A successfully parsed value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseFailure:
    """A parse that did not produce a value."""

    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[Parsed[T], ParseFailure]


def parse_json(text: str) -> "ParseResult[Any]":
    """Parse a complete JSON document."""
    try:
        return Parsed(json.loads(text))
    except json.JSONDecodeError as e:
        return ParseFailure(f"invalid JSON: {e.msg}")


def parse_json_object(text: str) -> "ParseResult[dict]":
    """Parse the first ``{...}`` object embedded in free-form model output.

    Handles code fences and leading/trailing prose around the object.
    """
    stripped = (text or "").strip()
    if not stripped:
        return ParseFailure("empty response")

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end <= start:
        return ParseFailure("no JSON object found")

    result = parse_json(stripped[start : end + 1])
    if isinstance(result, ParseFailure):
        return result
    if not isinstance(result.value, dict):
        return ParseFailure("JSON value is not an object")
    return result
