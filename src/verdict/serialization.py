"""
Rule document serialization.

Conditions are untagged; the key set decides the node type:

    {"and": [...]}
    {"or": [...]}
    {"should_minimum_meet": 2, "conditions": [...]}
    {"field": "age", "operator": "int_in_range", "value": [18, 65]}

Events are tagged by `type` with sibling `params`:

    {"type": "message", "params": {"title": "...", "message": "..."}}
    {"type": "post_to_callback_url",
     "params": {"callback_url": "...", "title": "...", "message": "..."}}

A rule is {"conditions": <condition>, "event": <event>, "name": optional}.
Rules files are YAML (.yaml/.yml) or JSON, holding one rule, a list of rules,
or {"rules": [...]}.

Malformed documents raise SerializationError naming the offending location
(e.g. "rules[1].conditions.and[0].value").
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .conditions import And, AtLeast, Condition, ConditionResult, Leaf, Or
from .constraints import (
    INT64_MAX,
    INT64_MIN,
    RANGE_OPERATORS,
    SET_OPERATORS,
    STRING_OPERATORS,
    Constraint,
    Operator,
)
from .engine import Rule, RuleResult
from .errors import RulesFileError, SerializationError
from .events import Event, Message, PostToCallbackUrl

_EVENT_PARAM_KEYS = {"title", "message", "type", "callback_url"}


# =============================================================================
# Constraints
# =============================================================================


def _expect_str(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise SerializationError(f"expected a string, got {type(value).__name__}", path)
    return value


def _expect_int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SerializationError(f"expected an integer, got {type(value).__name__}", path)
    if not INT64_MIN <= value <= INT64_MAX:
        raise SerializationError(f"integer {value} is outside the 64-bit range", path)
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SerializationError(f"expected an array, got {type(value).__name__}", path)
    return value


def _expect_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SerializationError(f"expected an object, got {type(value).__name__}", path)
    return value


def constraint_from_dict(data: Mapping[str, Any], path: str = "") -> Constraint:
    """Parse the `operator` / `value` pair of a leaf condition."""
    operator_name = data.get("operator")
    try:
        operator = Operator(operator_name)
    except (TypeError, ValueError):
        raise SerializationError(
            f"unknown operator {operator_name!r}", _join(path, "operator")
        ) from None

    if "value" not in data:
        raise SerializationError("missing 'value'", path)
    raw = data["value"]
    value_path = _join(path, "value")

    if operator in SET_OPERATORS:
        items = _expect_list(raw, value_path)
        if operator in STRING_OPERATORS:
            value: Any = [_expect_str(v, f"{value_path}[{i}]") for i, v in enumerate(items)]
        else:
            value = [_expect_int(v, f"{value_path}[{i}]") for i, v in enumerate(items)]
    elif operator in RANGE_OPERATORS:
        items = _expect_list(raw, value_path)
        if len(items) != 2:
            raise SerializationError(
                f"range needs exactly 2 bounds, got {len(items)}", value_path
            )
        value = (
            _expect_int(items[0], f"{value_path}[0]"),
            _expect_int(items[1], f"{value_path}[1]"),
        )
    elif operator in STRING_OPERATORS:
        value = _expect_str(raw, value_path)
    elif operator is Operator.BOOL_EQUALS:
        if not isinstance(raw, bool):
            raise SerializationError(
                f"expected a boolean, got {type(raw).__name__}", value_path
            )
        value = raw
    else:
        value = _expect_int(raw, value_path)

    return Constraint(operator, value)


def constraint_to_dict(constraint: Constraint) -> dict[str, Any]:
    """Convert a constraint to its `operator` / `value` pair."""
    value = constraint.value
    if isinstance(value, frozenset):
        value = sorted(value)
    elif isinstance(value, tuple):
        value = list(value)
    return {"operator": constraint.operator.value, "value": value}


# =============================================================================
# Conditions
# =============================================================================


def condition_from_dict(data: Any, path: str = "conditions") -> Condition:
    """
    Parse a condition node (and its subtree).

    Raises:
        SerializationError: If the node matches no known shape
    """
    data = _expect_mapping(data, path)

    if "and" in data:
        children = _expect_list(data["and"], _join(path, "and"))
        return And(_parse_children(children, _join(path, "and")))

    if "or" in data:
        children = _expect_list(data["or"], _join(path, "or"))
        return Or(_parse_children(children, _join(path, "or")))

    if "should_minimum_meet" in data:
        threshold = _expect_int(data["should_minimum_meet"], _join(path, "should_minimum_meet"))
        if threshold < 0:
            raise SerializationError(
                "threshold must be non-negative", _join(path, "should_minimum_meet")
            )
        children = _expect_list(data.get("conditions"), _join(path, "conditions"))
        return AtLeast(threshold, _parse_children(children, _join(path, "conditions")))

    if "field" in data:
        field_name = _expect_str(data["field"], _join(path, "field"))
        return Leaf(field_name, constraint_from_dict(data, path))

    raise SerializationError(
        "condition must contain one of 'and', 'or', 'should_minimum_meet' or 'field'",
        path,
    )


def _parse_children(items: list[Any], path: str) -> tuple[Condition, ...]:
    return tuple(condition_from_dict(item, f"{path}[{i}]") for i, item in enumerate(items))


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    """Convert a condition tree to its document form."""
    if isinstance(condition, And):
        return {"and": [condition_to_dict(c) for c in condition.conditions]}
    if isinstance(condition, Or):
        return {"or": [condition_to_dict(c) for c in condition.conditions]}
    if isinstance(condition, AtLeast):
        return {
            "should_minimum_meet": condition.threshold,
            "conditions": [condition_to_dict(c) for c in condition.conditions],
        }
    if isinstance(condition, Leaf):
        return {"field": condition.field, **constraint_to_dict(condition.constraint)}
    raise TypeError(f"Unsupported condition type: {type(condition).__name__}")


# =============================================================================
# Events
# =============================================================================


def event_from_dict(data: Any, path: str = "event") -> Event:
    """Parse a tagged event document."""
    data = _expect_mapping(data, path)
    kind = data.get("type")
    if kind not in (Message.kind, PostToCallbackUrl.kind):
        raise SerializationError(f"unknown event type {kind!r}", _join(path, "type"))
    params = _expect_mapping(data.get("params"), _join(path, "params"))
    params_path = _join(path, "params")

    title = _expect_str(params.get("title"), _join(params_path, "title"))
    message = _expect_str(params.get("message"), _join(params_path, "message"))
    label = params.get("type")
    if label is not None:
        label = _expect_str(label, _join(params_path, "type"))
    extra = {k: v for k, v in params.items() if k not in _EVENT_PARAM_KEYS}

    if kind == Message.kind:
        return Message(title=title, message=message, type=label, extra=extra)

    callback_url = _expect_str(params.get("callback_url"), _join(params_path, "callback_url"))
    return PostToCallbackUrl(
        callback_url=callback_url,
        title=title,
        message=message,
        type=label,
        extra=extra,
    )


def event_to_dict(event: Event) -> dict[str, Any]:
    """Convert an event to its tagged document form."""
    return {"type": event.kind, "params": event.params()}


# =============================================================================
# Rules
# =============================================================================


def rule_from_dict(data: Any, path: str = "rule") -> Rule:
    """Parse one rule document."""
    data = _expect_mapping(data, path)
    if "conditions" not in data:
        raise SerializationError("missing 'conditions'", path)
    if "event" not in data:
        raise SerializationError("missing 'event'", path)

    name = data.get("name")
    if name is not None:
        name = _expect_str(name, _join(path, "name"))

    return Rule(
        conditions=condition_from_dict(data["conditions"], _join(path, "conditions")),
        event=event_from_dict(data["event"], _join(path, "event")),
        name=name,
    )


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    """Convert a rule to its document form."""
    result: dict[str, Any] = {
        "conditions": condition_to_dict(rule.conditions),
        "event": event_to_dict(rule.event),
    }
    if rule.name is not None:
        result["name"] = rule.name
    return result


def rules_from_data(data: Any) -> list[Rule]:
    """
    Parse rules from a decoded document.

    Accepts a single rule object, a list of rules, or {"rules": [...]}.
    """
    if isinstance(data, Mapping) and "rules" in data:
        data = data["rules"]
    if isinstance(data, Mapping):
        return [rule_from_dict(data)]
    items = _expect_list(data, "rules")
    return [rule_from_dict(item, f"rules[{i}]") for i, item in enumerate(items)]


def load_rules(path: str | Path) -> list[Rule]:
    """
    Load rules from a YAML or JSON file.

    Raises:
        RulesFileError: If the file cannot be read or decoded
        SerializationError: If the decoded document is not a valid rule set
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesFileError(str(path), f"cannot read file: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, ValueError) as e:
        raise RulesFileError(str(path), f"cannot parse file: {e}") from e

    return rules_from_data(data)


# =============================================================================
# Results
# =============================================================================


def result_to_dict(result: ConditionResult) -> dict[str, Any]:
    """Convert a condition result tree to a JSON-serializable dict."""
    return result.to_dict()


def rule_result_to_dict(result: RuleResult) -> dict[str, Any]:
    """Convert a rule result to a JSON-serializable dict."""
    data: dict[str, Any] = {
        "status": result.status.value,
        "condition_result": result.condition_result.to_dict(),
        "event": event_to_dict(result.event),
    }
    if result.rule is not None and result.rule.name is not None:
        data["name"] = result.rule.name
    return data


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key
