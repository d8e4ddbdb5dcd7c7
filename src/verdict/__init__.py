"""
verdict - Ternary rule evaluation with notification dispatch.

Conditions are built as an immutable tree and checked against a fact payload.
Every node resolves to MET, NOT_MET, or UNKNOWN (the tested field is absent),
and the result tree mirrors the condition tree so each decision can be
explained down to the leaf that produced it.

Usage as library:
    import verdict

    tree = verdict.and_([
        verdict.string_equals("name", "John Doe"),
        verdict.or_([
            verdict.int_equals("fav_number", 5),
            verdict.int_in_range("thinking_of", 5, 10),
        ]),
    ])
    result = verdict.evaluate(tree, {"name": "John Doe", "fav_number": 5})
    assert result.status is verdict.Status.MET

Usage as CLI:
    python -m verdict check rules.yaml facts.json
    python -m verdict explain rules.yaml facts.json
    python -m verdict run rules.yaml facts.json
"""

__version__ = "0.1.0"

from collections.abc import Iterable
from typing import Any

from .conditions import And, AtLeast, Condition, ConditionResult, Leaf, Or, evaluate
from .constraints import Constraint, Operator, match
from .delivery import DeliveryClient, HttpDeliveryClient, RecordingClient, SendResult
from .engine import Rule, RuleResult, RulesEngine
from .errors import DeliveryError, RulesFileError, SerializationError, VerdictError
from .events import Event, Message, PostToCallbackUrl, materialize
from .facts import MISSING, FactSource, FlatFacts, JsonFacts
from .serialization import load_rules, rule_from_dict, rule_to_dict
from .status import Status, all_of, any_of

# =============================================================================
# Tree Builders
# =============================================================================


def and_(conditions: Iterable[Condition]) -> Condition:
    """
    All children must be MET.

    * Any NOT_MET child makes the result NOT_MET
    * Only MET and UNKNOWN children make the result UNKNOWN
    """
    return And(tuple(conditions))


def or_(conditions: Iterable[Condition]) -> Condition:
    """
    Any child must be MET.

    * Any MET child makes the result MET
    * Only NOT_MET and UNKNOWN children make the result UNKNOWN
    """
    return Or(tuple(conditions))


def at_least(threshold: int, conditions: Iterable[Condition]) -> Condition:
    """At least `threshold` children must be MET, otherwise NOT_MET."""
    return AtLeast(threshold, tuple(conditions))


def _leaf(field: str, operator: Operator, value: Any) -> Condition:
    return Leaf(field, Constraint(operator, value))


def string_equals(field: str, value: str) -> Condition:
    return _leaf(field, Operator.STRING_EQUALS, value)


def string_not_equals(field: str, value: str) -> Condition:
    return _leaf(field, Operator.STRING_NOT_EQUALS, value)


def string_in(field: str, values: Iterable[str]) -> Condition:
    return _leaf(field, Operator.STRING_IN, values)


def string_not_in(field: str, values: Iterable[str]) -> Condition:
    return _leaf(field, Operator.STRING_NOT_IN, values)


def int_equals(field: str, value: int) -> Condition:
    """Integer comparison; facts not convertible to an integer are NOT_MET."""
    return _leaf(field, Operator.INT_EQUALS, value)


def int_not_equals(field: str, value: int) -> Condition:
    return _leaf(field, Operator.INT_NOT_EQUALS, value)


def int_in(field: str, values: Iterable[int]) -> Condition:
    return _leaf(field, Operator.INT_IN, values)


def int_not_in(field: str, values: Iterable[int]) -> Condition:
    return _leaf(field, Operator.INT_NOT_IN, values)


def int_in_range(field: str, start: int, end: int) -> Condition:
    """Inclusive range check on [start, end]."""
    return _leaf(field, Operator.INT_IN_RANGE, (start, end))


def int_not_in_range(field: str, start: int, end: int) -> Condition:
    return _leaf(field, Operator.INT_NOT_IN_RANGE, (start, end))


def less_than(field: str, value: int) -> Condition:
    return _leaf(field, Operator.LESS_THAN, value)


def less_than_inclusive(field: str, value: int) -> Condition:
    return _leaf(field, Operator.LESS_THAN_INCLUSIVE, value)


def greater_than(field: str, value: int) -> Condition:
    return _leaf(field, Operator.GREATER_THAN, value)


def greater_than_inclusive(field: str, value: int) -> Condition:
    return _leaf(field, Operator.GREATER_THAN_INCLUSIVE, value)


def bool_equals(field: str, value: bool) -> Condition:
    """
    Boolean comparison.

    Boolean facts compare directly. For string facts only "true" (any case)
    is true; every other string is false.
    """
    return _leaf(field, Operator.BOOL_EQUALS, value)


def message(title: str, text: str, type: str | None = None) -> Message:
    return Message(title=title, message=text, type=type)


def post_to_callback_url(
    callback_url: str, title: str, text: str, type: str | None = None
) -> PostToCallbackUrl:
    return PostToCallbackUrl(callback_url=callback_url, title=title, message=text, type=type)


__all__ = [
    "__version__",
    # Status
    "Status",
    "all_of",
    "any_of",
    # Conditions
    "And",
    "AtLeast",
    "Condition",
    "ConditionResult",
    "Constraint",
    "Leaf",
    "Operator",
    "Or",
    "evaluate",
    "match",
    # Facts
    "MISSING",
    "FactSource",
    "FlatFacts",
    "JsonFacts",
    # Events and engine
    "DeliveryClient",
    "Event",
    "HttpDeliveryClient",
    "Message",
    "PostToCallbackUrl",
    "RecordingClient",
    "Rule",
    "RuleResult",
    "RulesEngine",
    "SendResult",
    "materialize",
    # Serialization
    "load_rules",
    "rule_from_dict",
    "rule_to_dict",
    # Errors
    "DeliveryError",
    "RulesFileError",
    "SerializationError",
    "VerdictError",
    # Builders
    "and_",
    "at_least",
    "bool_equals",
    "greater_than",
    "greater_than_inclusive",
    "int_equals",
    "int_in",
    "int_in_range",
    "int_not_equals",
    "int_not_in",
    "int_not_in_range",
    "less_than",
    "less_than_inclusive",
    "message",
    "or_",
    "post_to_callback_url",
    "string_equals",
    "string_in",
    "string_not_equals",
    "string_not_in",
]
