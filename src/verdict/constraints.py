"""
Leaf-level constraint matching.

A Constraint pairs one Operator with its operand(s) and decides whether a raw
fact value satisfies it. Matching never returns UNKNOWN: a fact of the wrong
type (or a string that does not parse as an integer) is a failed comparison.

Operator Registry:
| Operator               | Operand       | Fact type        |
|------------------------|---------------|------------------|
| string_equals          | str           | str              |
| string_not_equals      | str           | str              |
| string_in              | set of str    | str              |
| string_not_in          | set of str    | str              |
| int_equals             | int           | int-coercible    |
| int_not_equals         | int           | int-coercible    |
| int_in                 | set of int    | int-coercible    |
| int_not_in             | set of int    | int-coercible    |
| int_in_range           | (lo, hi)      | int-coercible    |
| int_not_in_range       | (lo, hi)      | int-coercible    |
| less_than              | int           | int-coercible    |
| less_than_inclusive    | int           | int-coercible    |
| greater_than           | int           | int-coercible    |
| greater_than_inclusive | int           | int-coercible    |
| bool_equals            | bool          | bool or str      |
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .status import Status

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_TEXT_RE = re.compile(r"[+-]?[0-9]+")


class Operator(str, Enum):
    """Closed set of leaf comparison operators."""

    STRING_EQUALS = "string_equals"
    STRING_NOT_EQUALS = "string_not_equals"
    STRING_IN = "string_in"
    STRING_NOT_IN = "string_not_in"
    INT_EQUALS = "int_equals"
    INT_NOT_EQUALS = "int_not_equals"
    INT_IN = "int_in"
    INT_NOT_IN = "int_not_in"
    INT_IN_RANGE = "int_in_range"
    INT_NOT_IN_RANGE = "int_not_in_range"
    LESS_THAN = "less_than"
    LESS_THAN_INCLUSIVE = "less_than_inclusive"
    GREATER_THAN = "greater_than"
    GREATER_THAN_INCLUSIVE = "greater_than_inclusive"
    BOOL_EQUALS = "bool_equals"


STRING_OPERATORS = frozenset(
    {
        Operator.STRING_EQUALS,
        Operator.STRING_NOT_EQUALS,
        Operator.STRING_IN,
        Operator.STRING_NOT_IN,
    }
)
SET_OPERATORS = frozenset(
    {
        Operator.STRING_IN,
        Operator.STRING_NOT_IN,
        Operator.INT_IN,
        Operator.INT_NOT_IN,
    }
)
RANGE_OPERATORS = frozenset({Operator.INT_IN_RANGE, Operator.INT_NOT_IN_RANGE})


def coerce_int(value: Any) -> int | None:
    """
    Coerce a raw fact value to a signed 64-bit integer.

    Accepts ints, integral floats, and decimal strings ("42", "-7", "+3").
    Booleans, fractional floats, other text, and out-of-range values give None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        result = int(value)
    elif isinstance(value, str):
        if not _INT_TEXT_RE.fullmatch(value):
            return None
        result = int(value)
    else:
        return None

    if INT64_MIN <= result <= INT64_MAX:
        return result
    return None


def coerce_bool(value: Any) -> bool | None:
    """
    Coerce a raw fact value to a boolean.

    Booleans pass through. For text, only "true" in any letter case is True;
    every other string ("1", "yes", "", "true ") is False. Other types give None.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return None


@dataclass(frozen=True)
class Constraint:
    """
    One comparison operator and its operand.

    Set operands are stored as frozensets and range operands as (lo, hi)
    tuples. A range with lo > hi is kept as given and simply never matches.
    """

    operator: Operator
    value: Any

    def __post_init__(self) -> None:
        operator = Operator(self.operator)
        object.__setattr__(self, "operator", operator)
        if operator in SET_OPERATORS:
            object.__setattr__(self, "value", frozenset(self.value))
        elif operator in RANGE_OPERATORS:
            lo, hi = self.value
            object.__setattr__(self, "value", (lo, hi))

    def match(self, value: Any) -> Status:
        """Check a raw fact value against this constraint."""
        return _MATCHERS[self.operator](self.value, value)


def match(constraint: Constraint, value: Any) -> Status:
    """Check a raw fact value against a constraint."""
    return constraint.match(value)


# =============================================================================
# Per-operator matchers
# =============================================================================


def _string_op(test: Callable[[Any, str], bool]) -> Callable[[Any, Any], Status]:
    def matcher(operand: Any, value: Any) -> Status:
        if not isinstance(value, str):
            return Status.NOT_MET
        return Status.from_bool(test(operand, value))

    return matcher


def _int_op(test: Callable[[Any, int], bool]) -> Callable[[Any, Any], Status]:
    def matcher(operand: Any, value: Any) -> Status:
        number = coerce_int(value)
        if number is None:
            return Status.NOT_MET
        return Status.from_bool(test(operand, number))

    return matcher


def _bool_equals(operand: Any, value: Any) -> Status:
    flag = coerce_bool(value)
    if flag is None:
        return Status.NOT_MET
    return Status.from_bool(flag == operand)


_MATCHERS: dict[Operator, Callable[[Any, Any], Status]] = {
    Operator.STRING_EQUALS: _string_op(lambda s, v: v == s),
    Operator.STRING_NOT_EQUALS: _string_op(lambda s, v: v != s),
    Operator.STRING_IN: _string_op(lambda ss, v: v in ss),
    Operator.STRING_NOT_IN: _string_op(lambda ss, v: v not in ss),
    Operator.INT_EQUALS: _int_op(lambda n, v: v == n),
    Operator.INT_NOT_EQUALS: _int_op(lambda n, v: v != n),
    Operator.INT_IN: _int_op(lambda ns, v: v in ns),
    Operator.INT_NOT_IN: _int_op(lambda ns, v: v not in ns),
    Operator.INT_IN_RANGE: _int_op(lambda r, v: r[0] <= v <= r[1]),
    Operator.INT_NOT_IN_RANGE: _int_op(lambda r, v: not (r[0] <= v <= r[1])),
    Operator.LESS_THAN: _int_op(lambda n, v: v < n),
    Operator.LESS_THAN_INCLUSIVE: _int_op(lambda n, v: v <= n),
    Operator.GREATER_THAN: _int_op(lambda n, v: v > n),
    Operator.GREATER_THAN_INCLUSIVE: _int_op(lambda n, v: v >= n),
    Operator.BOOL_EQUALS: _bool_equals,
}
