"""
Condition trees and their evaluation.

A condition tree is built once from And / Or / AtLeast / Leaf nodes and is
never mutated afterwards, so one tree can be checked against any number of
fact payloads concurrently.

Checking is depth-first and never short-circuits: every node gets a result,
so the returned ConditionResult tree always mirrors the input tree and can
explain which leaf decided the outcome.

Aggregation:
- And: MET only if every child is MET; any NOT_MET gives NOT_MET; else UNKNOWN
- Or: MET if any child is MET; NOT_MET only if every child is NOT_MET; else UNKNOWN
- AtLeast(n): MET if at least n children are MET, otherwise NOT_MET (never UNKNOWN)
- Leaf: UNKNOWN if the field is absent, otherwise the constraint's verdict
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .constraints import Constraint
from .facts import MISSING, FactSource, as_fact_source
from .status import Status, all_of, any_of


@dataclass(frozen=True)
class ConditionResult:
    """Result of checking one node of a condition tree."""

    name: str  # Human-friendly label: field path for leaves
    status: Status
    children: tuple[ConditionResult, ...] = ()

    def walk(self) -> Iterator[tuple[int, ConditionResult]]:
        """Yield (depth, node) pairs depth-first, starting with this node."""
        stack: list[tuple[int, ConditionResult]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for child in reversed(node.children):
                stack.append((depth + 1, child))

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "name": self.name,
            "status": self.status.value,
            "children": [child.to_dict() for child in self.children],
        }


class Condition(ABC):
    """Base class for condition tree nodes."""

    @abstractmethod
    def check(self, facts: FactSource) -> ConditionResult:
        """Check this node (and its subtree) against a fact source."""
        ...

    @property
    def children(self) -> tuple[Condition, ...]:
        return ()


@dataclass(frozen=True)
class And(Condition):
    """All children must be MET."""

    conditions: tuple[Condition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def children(self) -> tuple[Condition, ...]:
        return self.conditions

    def check(self, facts: FactSource) -> ConditionResult:
        results = tuple(child.check(facts) for child in self.conditions)
        return ConditionResult(
            name="And",
            status=all_of(r.status for r in results),
            children=results,
        )


@dataclass(frozen=True)
class Or(Condition):
    """Any child must be MET."""

    conditions: tuple[Condition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def children(self) -> tuple[Condition, ...]:
        return self.conditions

    def check(self, facts: FactSource) -> ConditionResult:
        results = tuple(child.check(facts) for child in self.conditions)
        return ConditionResult(
            name="Or",
            status=any_of(r.status for r in results),
            children=results,
        )


@dataclass(frozen=True)
class AtLeast(Condition):
    """
    At least `threshold` children must be MET.

    UNKNOWN children simply do not count towards the threshold; this node
    resolves to MET or NOT_MET and never to UNKNOWN, unlike And / Or.
    """

    threshold: int
    conditions: tuple[Condition, ...] = ()

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {self.threshold}")
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def children(self) -> tuple[Condition, ...]:
        return self.conditions

    def check(self, facts: FactSource) -> ConditionResult:
        results = tuple(child.check(facts) for child in self.conditions)
        met_count = sum(1 for r in results if r.status is Status.MET)
        return ConditionResult(
            name=f"At least {self.threshold} of",
            status=Status.from_bool(met_count >= self.threshold),
            children=results,
        )


@dataclass(frozen=True)
class Leaf(Condition):
    """Test one field of the facts with one constraint."""

    field: str
    constraint: Constraint

    def check(self, facts: FactSource) -> ConditionResult:
        value = facts.lookup(self.field)
        if value is MISSING:
            status = Status.UNKNOWN
        else:
            status = self.constraint.match(value)
        return ConditionResult(name=self.field, status=status)


def evaluate(condition: Condition, facts: Any) -> ConditionResult:
    """
    Check a condition tree against a fact payload.

    Args:
        condition: Root of the condition tree
        facts: Mapping, JSON object text, or FactSource

    Returns:
        ConditionResult tree mirroring `condition`

    Raises:
        SerializationError: If `facts` is not a usable fact document
    """
    return condition.check(as_fact_source(facts))
