"""
Three-valued status algebra.

NOT_MET dominates AND, MET dominates OR, and UNKNOWN is whatever is left:

    &        MET      NOT_MET  UNKNOWN        |        MET  NOT_MET  UNKNOWN
    MET      MET      NOT_MET  UNKNOWN        MET      MET  MET      MET
    NOT_MET  NOT_MET  NOT_MET  NOT_MET        NOT_MET  MET  NOT_MET  UNKNOWN
    UNKNOWN  UNKNOWN  NOT_MET  UNKNOWN        UNKNOWN  MET  UNKNOWN  UNKNOWN
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class Status(str, Enum):
    """Outcome of checking a condition against facts."""

    MET = "met"  # Condition was satisfied
    NOT_MET = "not_met"  # Condition was not satisfied
    UNKNOWN = "unknown"  # Not enough information to decide

    def __and__(self, other: object) -> Status:
        if not isinstance(other, Status):
            return NotImplemented
        if self is Status.MET and other is Status.MET:
            return Status.MET
        if self is Status.NOT_MET or other is Status.NOT_MET:
            return Status.NOT_MET
        return Status.UNKNOWN

    def __or__(self, other: object) -> Status:
        if not isinstance(other, Status):
            return NotImplemented
        if self is Status.NOT_MET and other is Status.NOT_MET:
            return Status.NOT_MET
        if self is Status.MET or other is Status.MET:
            return Status.MET
        return Status.UNKNOWN

    def __invert__(self) -> Status:
        if self is Status.MET:
            return Status.NOT_MET
        if self is Status.NOT_MET:
            return Status.MET
        return Status.UNKNOWN

    @classmethod
    def from_bool(cls, value: bool) -> Status:
        return cls.MET if value else cls.NOT_MET

    @property
    def label(self) -> str:
        """CamelCase name used in explain output ("Met", "NotMet", "Unknown")."""
        return _LABELS[self]


_LABELS = {
    Status.MET: "Met",
    Status.NOT_MET: "NotMet",
    Status.UNKNOWN: "Unknown",
}


def all_of(statuses: Iterable[Status]) -> Status:
    """Fold statuses with AND. An empty input is MET."""
    result = Status.MET
    for status in statuses:
        result = result & status
    return result


def any_of(statuses: Iterable[Status]) -> Status:
    """Fold statuses with OR. An empty input is NOT_MET."""
    result = Status.NOT_MET
    for status in statuses:
        result = result | status
    return result
