"""
Human-readable explanations of condition results.

Renders a ConditionResult tree one node per line, indented by depth:

    [Met]     And
      [Met]     name
      [Met]     Or
        [Met]     fav_number
        [Unknown] thinking_of
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .status import Status

if TYPE_CHECKING:
    from .conditions import ConditionResult
    from .engine import RuleResult

_MARKER_WIDTH = max(len(s.label) for s in Status) + 2


def explain_result(result: ConditionResult, indent: int = 2) -> str:
    """
    Generate a multi-line explanation of a condition result tree.

    Args:
        result: Root ConditionResult
        indent: Spaces per depth level

    Returns:
        Formatted multi-line explanation
    """
    lines = []
    for depth, node in result.walk():
        marker = f"[{node.status.label}]".ljust(_MARKER_WIDTH + 1)
        lines.append(f"{' ' * (indent * depth)}{marker}{node.name}")
    return "\n".join(lines)


def explain_rule_results(results: Iterable[RuleResult]) -> str:
    """Explain several rule results, each under a numbered header."""
    sections = []
    for index, result in enumerate(results, start=1):
        label = result.rule.label if result.rule is not None else result.event.title
        header = f"Rule {index}: {label} => {result.status.label}"
        sections.append(f"{header}\n{explain_result(result.condition_result, indent=2)}")
    return "\n\n".join(sections)


def decisive_leaves(result: ConditionResult) -> list[ConditionResult]:
    """
    Leaves whose status equals the root status.

    For a MET root these are the leaves that satisfied the tree; for a
    NOT_MET or UNKNOWN root, the ones that blocked it.
    """
    return [
        node
        for _, node in result.walk()
        if not node.children and node.status is result.status and node is not result
    ]


def format_explanation(result: ConditionResult) -> dict[str, Any]:
    """
    Format an explanation as structured data for JSON output.

    Returns:
        Dict with the status, the decisive leaf names and the full tree
    """
    return {
        "status": result.status.value,
        "decisive": [leaf.name for leaf in decisive_leaves(result)],
        "tree": result.to_dict(),
    }
