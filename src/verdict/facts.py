"""
Fact access for condition leaves.

Leaves address the fact payload with pointer-style paths: segments are
separated by "/", the leading "/" is optional, and "~1" / "~0" escape "/" and
"~" inside a segment. Lists are indexed by canonical non-negative integers.

A lookup reports absence with the MISSING sentinel instead of raising, so the
evaluator can turn it into an UNKNOWN status.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from .errors import SerializationError


class _Missing:
    """Sentinel type for an absent fact."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_INDEX_RE = re.compile(r"^(0|[1-9][0-9]*)$")


@runtime_checkable
class FactSource(Protocol):
    """Anything that can resolve a field path to a raw fact value."""

    def lookup(self, path: str) -> Any:
        """Return the value at `path`, or MISSING if it is absent."""
        ...


def split_pointer(path: str) -> list[str]:
    """
    Split a pointer-style path into unescaped segments.

    The leading "/" is optional; "" and "/" address the whole document.
    """
    if path.startswith("/"):
        path = path[1:]
    if path == "":
        return []
    return [seg.replace("~1", "/").replace("~0", "~") for seg in path.split("/")]


def resolve_pointer(document: Any, path: str) -> Any:
    """
    Resolve `path` against a nested mapping/list document.

    Returns:
        The addressed value, or MISSING if any segment does not resolve
    """
    current = document
    for segment in split_pointer(path):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not _INDEX_RE.match(segment):
                return MISSING
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


class JsonFacts:
    """
    Fact source over a JSON-compatible document (dicts, lists, scalars).

    A path without "/" that is not a top-level key but contains "." is
    retried as a dotted path, so "user.name" finds {"user": {"name": ...}}.
    """

    def __init__(self, document: Any):
        self._document = document

    @property
    def document(self) -> Any:
        return self._document

    def lookup(self, path: str) -> Any:
        value = resolve_pointer(self._document, path)
        if value is MISSING and "/" not in path and "." in path:
            value = resolve_pointer(self._document, path.replace(".", "/"))
        return value

    def __repr__(self) -> str:
        return f"JsonFacts({self._document!r})"


class FlatFacts:
    """
    Fact source over a flat field -> raw string mapping.

    Paths are used verbatim as keys; every value is treated as raw text.
    """

    def __init__(self, facts: Mapping[str, str]):
        self._facts = facts

    @property
    def document(self) -> Mapping[str, str]:
        return self._facts

    def lookup(self, path: str) -> Any:
        return self._facts.get(path, MISSING)

    def __repr__(self) -> str:
        return f"FlatFacts({dict(self._facts)!r})"


def as_fact_source(facts: Any) -> FactSource:
    """
    Adapt a fact payload to a FactSource.

    Accepts an existing FactSource, a mapping, or a JSON text (str/bytes)
    whose top level is an object.

    Raises:
        SerializationError: If the payload is not a usable fact document
    """
    if isinstance(facts, (JsonFacts, FlatFacts)):
        return facts
    if isinstance(facts, (str, bytes, bytearray)):
        try:
            facts = json.loads(facts)
        except ValueError as e:
            raise SerializationError(f"Facts are not valid JSON: {e}") from e
    if isinstance(facts, Mapping):
        return JsonFacts(facts)
    if isinstance(facts, FactSource):
        return facts
    raise SerializationError(
        f"Facts must be a JSON object, got {type(facts).__name__}"
    )


def fact_document(facts: FactSource) -> Any:
    """Return the underlying document of a fact source, if it exposes one."""
    return getattr(facts, "document", None)
