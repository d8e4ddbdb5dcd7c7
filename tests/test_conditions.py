"""
Tests for condition tree evaluation.

Fact payload used throughout: {"foo": 1, "bar": "bar", "baz": true}
"""

from __future__ import annotations

import pytest

import verdict
from verdict import (
    and_,
    at_least,
    bool_equals,
    int_equals,
    int_in_range,
    or_,
    string_equals,
)
from verdict.conditions import And, AtLeast, ConditionResult, Leaf, Or, evaluate
from verdict.constraints import Constraint, Operator
from verdict.errors import SerializationError
from verdict.facts import FlatFacts, JsonFacts
from verdict.status import Status

MET = Status.MET
NOT_MET = Status.NOT_MET
UNKNOWN = Status.UNKNOWN


def _shape(condition) -> tuple:
    return (type(condition).__name__, tuple(_shape(c) for c in condition.children))


def _result_shape(result: ConditionResult) -> tuple:
    return (result.name, tuple(_result_shape(c) for c in result.children))


class TestAndRules:
    def test_met_and_met(self, test_data):
        root = and_([int_equals("foo", 1), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is MET

    def test_met_and_not_met(self, test_data):
        root = and_([int_equals("foo", 2), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is NOT_MET

    def test_met_and_unknown(self, test_data):
        root = and_([int_equals("quux", 2), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is UNKNOWN

    def test_not_met_and_unknown(self, test_data):
        root = and_([int_equals("quux", 2), string_equals("bar", "baz")])
        assert evaluate(root, test_data).status is NOT_MET

    def test_unknown_and_unknown(self, test_data):
        root = and_([int_equals("quux", 2), string_equals("fizz", "bar")])
        assert evaluate(root, test_data).status is UNKNOWN

    def test_empty_and_is_met(self, test_data):
        assert evaluate(and_([]), test_data).status is MET


class TestOrRules:
    def test_met_or_met(self, test_data):
        root = or_([int_equals("foo", 1), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is MET

    def test_not_met_or_met(self, test_data):
        root = or_([int_equals("foo", 2), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is MET

    def test_unknown_or_met(self, test_data):
        root = or_([int_equals("quux", 2), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is MET

    def test_unknown_or_not_met(self, test_data):
        root = or_([int_equals("quux", 2), string_equals("bar", "baz")])
        assert evaluate(root, test_data).status is UNKNOWN

    def test_unknown_or_unknown(self, test_data):
        root = or_([int_equals("quux", 2), string_equals("fizz", "bar")])
        assert evaluate(root, test_data).status is UNKNOWN

    def test_empty_or_is_not_met(self, test_data):
        assert evaluate(or_([]), test_data).status is NOT_MET


class TestAtLeastRules:
    def test_two_met_one_not_met(self, test_data):
        root = at_least(
            2,
            [int_equals("foo", 1), string_equals("bar", "bar"), bool_equals("baz", False)],
        )
        assert evaluate(root, test_data).status is MET

    def test_one_met_one_unknown_one_not_met(self, test_data):
        root = at_least(
            2,
            [int_equals("foo", 1), string_equals("quux", "bar"), bool_equals("baz", False)],
        )
        result = evaluate(root, test_data)
        assert [c.status for c in result.children] == [MET, UNKNOWN, NOT_MET]
        assert result.status is NOT_MET

    def test_unknown_children_never_make_threshold_unknown(self, test_data):
        root = at_least(
            2,
            [int_equals("foo", 2), string_equals("quux", "baz"), bool_equals("baz", False)],
        )
        assert evaluate(root, test_data).status is NOT_MET

    def test_all_unknown(self, test_data):
        root = at_least(1, [int_equals("a", 1), int_equals("b", 1)])
        assert evaluate(root, test_data).status is NOT_MET

    @pytest.mark.parametrize("children", [[], ["foo"], ["quux"], ["foo", "quux", "bar"]])
    def test_zero_threshold_is_always_met(self, test_data, children):
        root = at_least(0, [int_equals(f, 99) for f in children])
        assert evaluate(root, test_data).status is MET

    def test_threshold_above_child_count_is_not_met(self, test_data):
        root = at_least(3, [int_equals("foo", 1), string_equals("bar", "bar")])
        assert evaluate(root, test_data).status is NOT_MET

    def test_name(self, test_data):
        root = at_least(2, [int_equals("foo", 1)])
        assert evaluate(root, test_data).name == "At least 2 of"

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            AtLeast(-1, ())


class TestLeafRules:
    def test_string_equals(self, test_data):
        assert evaluate(string_equals("bar", "bar"), test_data).status is MET
        assert evaluate(string_equals("bar", "baz"), test_data).status is NOT_MET

    def test_int_equals(self, test_data):
        assert evaluate(int_equals("foo", 1), test_data).status is MET
        assert evaluate(int_equals("foo", 2), test_data).status is NOT_MET
        # Values not convertible to int are NOT_MET
        assert evaluate(int_equals("bar", 2), test_data).status is NOT_MET

    def test_int_range(self, test_data):
        assert evaluate(int_in_range("foo", 1, 3), test_data).status is MET
        assert evaluate(int_in_range("foo", 2, 3), test_data).status is NOT_MET
        assert evaluate(int_in_range("bar", 1, 3), test_data).status is NOT_MET

    def test_boolean(self, test_data):
        assert evaluate(bool_equals("baz", True), test_data).status is MET
        assert evaluate(bool_equals("baz", False), test_data).status is NOT_MET
        assert evaluate(bool_equals("bar", True), test_data).status is NOT_MET
        # "bar" is a string other than "true", so it reads as false
        assert evaluate(bool_equals("bar", False), test_data).status is MET

    def test_boolean_string_fact(self, test_data):
        test_data["quux"] = "tRuE"
        assert evaluate(bool_equals("quux", True), test_data).status is MET
        test_data["quux"] = "TRUE "
        assert evaluate(bool_equals("quux", True), test_data).status is NOT_MET

    @pytest.mark.parametrize(
        "operator, operand",
        [
            (Operator.STRING_EQUALS, "x"),
            (Operator.STRING_NOT_IN, ["x"]),
            (Operator.INT_NOT_EQUALS, 1),
            (Operator.INT_NOT_IN_RANGE, (0, 1)),
            (Operator.LESS_THAN, 0),
            (Operator.BOOL_EQUALS, False),
        ],
    )
    def test_absent_field_is_unknown_for_every_operator(self, test_data, operator, operand):
        leaf = Leaf("missing", Constraint(operator, operand))
        assert evaluate(leaf, test_data).status is UNKNOWN

    def test_null_fact_is_not_met(self):
        leaf = string_equals("a", "x")
        assert evaluate(leaf, {"a": None}).status is NOT_MET

    def test_leaf_name_is_field_path(self):
        result = evaluate(int_equals("/profile/age", 34), {"profile": {"age": 34}})
        assert result.name == "/profile/age"
        assert result.status is MET
        assert result.children == ()

    def test_nested_array_path(self, person_facts):
        assert evaluate(string_equals("profile/tags/1", "beta"), person_facts).status is MET


class TestResultTree:
    def test_scenario_nested_and_or(self):
        """The Or is MET through its first child even though the second is UNKNOWN."""
        facts = {"name": "John Doe", "fav_number": 5}
        tree = and_(
            [
                string_equals("name", "John Doe"),
                or_([int_equals("fav_number", 5), int_in_range("thinking_of", 5, 10)]),
            ]
        )

        result = evaluate(tree, facts)

        assert result == ConditionResult(
            name="And",
            status=MET,
            children=(
                ConditionResult("name", MET),
                ConditionResult(
                    "Or",
                    MET,
                    (
                        ConditionResult("fav_number", MET),
                        ConditionResult("thinking_of", UNKNOWN),
                    ),
                ),
            ),
        )

    def test_no_short_circuit(self, test_data):
        """Every child is evaluated even once the outcome is decided."""
        tree = and_([int_equals("foo", 2), string_equals("bar", "bar"), int_equals("x", 1)])
        result = evaluate(tree, test_data)
        assert [c.status for c in result.children] == [NOT_MET, MET, UNKNOWN]

    def test_result_is_isomorphic_to_tree(self, test_data):
        tree = and_(
            [
                or_([int_equals("foo", 1), at_least(1, [bool_equals("baz", True)])]),
                at_least(2, [and_([]), or_([string_equals("bar", "bar")]), int_equals("q", 1)]),
            ]
        )
        result = evaluate(tree, test_data)

        def count(node) -> int:
            return 1 + sum(count(c) for c in node.children)

        assert count(result) == count(tree)
        assert [len(n.children) for _, n in result.walk()] == [
            len(c.children) for c in _walk_conditions(tree)
        ]

    def test_walk_is_depth_first(self, test_data):
        tree = and_([or_([int_equals("foo", 1)]), string_equals("bar", "bar")])
        walked = [(depth, node.name) for depth, node in evaluate(tree, test_data).walk()]
        assert walked == [(0, "And"), (1, "Or"), (2, "foo"), (1, "bar")]

    def test_to_dict(self, test_data):
        result = evaluate(and_([int_equals("foo", 1)]), test_data)
        assert result.to_dict() == {
            "name": "And",
            "status": "met",
            "children": [{"name": "foo", "status": "met", "children": []}],
        }


def _walk_conditions(condition):
    yield condition
    for child in condition.children:
        yield from _walk_conditions(child)


class TestImmutability:
    def test_nodes_are_frozen(self):
        leaf = int_equals("foo", 1)
        with pytest.raises(AttributeError):
            leaf.field = "bar"  # type: ignore[misc]

    def test_children_are_tuples(self):
        tree = And([int_equals("foo", 1)])
        assert isinstance(tree.conditions, tuple)
        assert isinstance(Or([]).conditions, tuple)

    def test_same_tree_many_payloads(self):
        tree = int_in_range("n", 1, 5)
        statuses = [evaluate(tree, {"n": n}).status for n in range(7)]
        assert statuses == [NOT_MET, MET, MET, MET, MET, MET, NOT_MET]

    def test_structural_equality(self):
        assert and_([int_equals("a", 1)]) == and_([int_equals("a", 1)])
        assert and_([int_equals("a", 1)]) != or_([int_equals("a", 1)])


class TestFactSources:
    def test_flat_string_facts(self):
        facts = FlatFacts({"foo": "1", "bar": "bar", "baz": "true"})
        tree = and_([int_equals("foo", 1), string_equals("bar", "bar"), bool_equals("baz", True)])
        assert tree.check(facts).status is MET

    def test_flat_number_with_trailing_newline_is_not_met(self):
        facts = FlatFacts({"n": "5\n"})
        assert int_equals("n", 5).check(facts).status is NOT_MET
        assert verdict.less_than("n", 10).check(facts).status is NOT_MET

    def test_json_text_payload(self):
        assert evaluate(int_equals("a", 1), '{"a": 1}').status is MET

    def test_explicit_json_facts(self, test_data):
        assert int_equals("foo", 1).check(JsonFacts(test_data)).status is MET

    def test_malformed_payload_rejected_before_evaluation(self):
        with pytest.raises(SerializationError):
            evaluate(int_equals("a", 1), "[1, 2, 3]")


class TestBuilders:
    def test_builders_produce_expected_nodes(self):
        assert verdict.string_not_equals("a", "x") == Leaf(
            "a", Constraint(Operator.STRING_NOT_EQUALS, "x")
        )
        assert verdict.string_in("a", ["x"]).constraint.value == frozenset({"x"})
        assert verdict.string_not_in("a", ["x"]).constraint.operator is Operator.STRING_NOT_IN
        assert verdict.int_not_equals("a", 1).constraint.operator is Operator.INT_NOT_EQUALS
        assert verdict.int_in("a", [1, 2]).constraint.value == frozenset({1, 2})
        assert verdict.int_not_in("a", [1]).constraint.operator is Operator.INT_NOT_IN
        assert verdict.int_not_in_range("a", 1, 2).constraint.value == (1, 2)
        assert verdict.less_than("a", 1).constraint.operator is Operator.LESS_THAN
        assert (
            verdict.less_than_inclusive("a", 1).constraint.operator
            is Operator.LESS_THAN_INCLUSIVE
        )
        assert verdict.greater_than("a", 1).constraint.operator is Operator.GREATER_THAN
        assert (
            verdict.greater_than_inclusive("a", 1).constraint.operator
            is Operator.GREATER_THAN_INCLUSIVE
        )
        assert _shape(at_least(1, [and_([]), or_([])])) == (
            "AtLeast",
            (("And", ()), ("Or", ())),
        )
