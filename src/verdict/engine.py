"""
Rules engine: evaluate registered rules and dispatch their notifications.

Flow for one fact payload:
1. Check every rule's condition tree (registration order, no cross-rule state)
2. Materialize the event of every rule whose root status is MET
3. POST every satisfied PostToCallbackUrl event concurrently
4. Return the satisfied rules' results, still in registration order

Delivery is all-or-nothing at the API boundary: if any POST fails, run()
raises DeliveryError for the first failure and returns nothing. Requests
already in flight are not cancelled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .conditions import Condition, ConditionResult
from .core.logging import get_logger
from .delivery import DeliveryClient, HttpDeliveryClient
from .errors import DeliveryError
from .events import Event, PostToCallbackUrl, materialize
from .facts import FactSource, as_fact_source
from .status import Status

logger = get_logger(__name__)


@dataclass(frozen=True)
class Rule:
    """A condition tree and the event to fire when it is MET."""

    conditions: Condition
    event: Event
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.event.title


@dataclass(frozen=True)
class RuleResult:
    """
    Outcome of one rule for one fact payload.

    `event` is the materialized event when the rule is satisfied, and the
    registered (unrendered) event otherwise.
    """

    condition_result: ConditionResult
    event: Event
    rule: Rule | None = None

    @property
    def status(self) -> Status:
        return self.condition_result.status

    @property
    def satisfied(self) -> bool:
        return self.condition_result.status is Status.MET


def check_rule(rule: Rule, facts: FactSource) -> RuleResult:
    """Check one rule and materialize its event if satisfied."""
    condition_result = rule.conditions.check(facts)
    event = rule.event
    if condition_result.status is Status.MET:
        event = materialize(event, facts)
    return RuleResult(condition_result=condition_result, event=event, rule=rule)


class RulesEngine:
    """
    Holds an ordered set of rules and runs them against fact payloads.

    Usage:
        engine = RulesEngine([rule_a, rule_b])
        results = engine.check(facts)          # all rules, no delivery
        satisfied = await engine.run(facts)    # satisfied rules, delivered
    """

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        client: DeliveryClient | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            rules: Rules in registration order
            client: Delivery client (default: HttpDeliveryClient per run)
        """
        self._rules: tuple[Rule, ...] = tuple(rules)
        self._client = client

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def add_rule(self, rule: Rule) -> None:
        """Register a rule after the existing ones."""
        self._rules = (*self._rules, rule)

    def check(self, facts: Any) -> list[RuleResult]:
        """
        Evaluate every rule without delivering anything.

        Args:
            facts: Mapping, JSON object text, or FactSource

        Returns:
            One RuleResult per registered rule, in registration order

        Raises:
            SerializationError: If `facts` is not a usable fact document
        """
        source = as_fact_source(facts)
        return [check_rule(rule, source) for rule in self._rules]

    async def run(self, facts: Any) -> list[RuleResult]:
        """
        Evaluate every rule and deliver the satisfied notifications.

        Args:
            facts: Mapping, JSON object text, or FactSource

        Returns:
            RuleResults of the satisfied rules only, in registration order

        Raises:
            SerializationError: If `facts` is not a usable fact document
            DeliveryError: If any callback delivery fails
        """
        source = as_fact_source(facts)
        rules = self._rules  # Snapshot; add_rule during a run has no effect

        results = [check_rule(rule, source) for rule in rules]
        satisfied = [r for r in results if r.satisfied]
        logger.debug("%d of %d rules satisfied", len(satisfied), len(results))

        deliveries = [r.event for r in satisfied if isinstance(r.event, PostToCallbackUrl)]
        if not deliveries:
            return satisfied

        if self._client is not None:
            await self._dispatch(self._client, deliveries)
        else:
            async with HttpDeliveryClient() as client:
                await self._dispatch(client, deliveries)

        return satisfied

    def run_sync(self, facts: Any) -> list[RuleResult]:
        """Blocking wrapper around run() for callers without an event loop."""
        return asyncio.run(self.run(facts))

    async def _dispatch(
        self,
        client: DeliveryClient,
        events: list[PostToCallbackUrl],
    ) -> None:
        """Deliver all events concurrently; the first failure is raised."""
        await asyncio.gather(*(_deliver(client, event) for event in events))
        logger.info("Delivered %d notification(s)", len(events))


async def _deliver(client: DeliveryClient, event: PostToCallbackUrl) -> None:
    url = event.callback_url
    try:
        result = await client.send(url, event.body())
    except DeliveryError:
        raise
    except Exception as e:
        raise DeliveryError(url, f"{type(e).__name__}: {e}") from e

    if not result.success:
        raise DeliveryError(url, result.error or "delivery failed", result.status_code)
