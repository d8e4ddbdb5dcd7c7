"""
Notification events and their materialization.

An event describes what to do when a rule is satisfied:
- Message: hand a rendered message back to the caller
- PostToCallbackUrl: additionally POST the rendered message to a URL

Only `message` is a template. It is rendered with Jinja2 against the fact
document ("Hi {{name}}", "{{user.email}}", "{{items[0]}}"). A template that
fails to render (bad syntax, undefined reference) is kept verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Union

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from .core.logging import get_logger
from .facts import FactSource, fact_document

logger = get_logger(__name__)

_environment = SandboxedEnvironment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class Message:
    """Notification returned to the caller only."""

    title: str
    message: str
    type: str | None = None  # Opaque passthrough label (e.g. "info", "alert")
    extra: Mapping[str, Any] = field(default_factory=dict)

    kind = "message"

    def params(self) -> dict[str, Any]:
        """Wire-format params for this event."""
        result: dict[str, Any] = dict(self.extra)
        if self.type is not None:
            result["type"] = self.type
        result["title"] = self.title
        result["message"] = self.message
        return result


@dataclass(frozen=True)
class PostToCallbackUrl:
    """Notification that is also POSTed as JSON to `callback_url`."""

    callback_url: str
    title: str
    message: str
    type: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    kind = "post_to_callback_url"

    def params(self) -> dict[str, Any]:
        """Wire-format params for this event."""
        result = self.body()
        result["callback_url"] = self.callback_url
        return result

    def body(self) -> dict[str, Any]:
        """JSON body delivered to the callback URL (params minus callback_url)."""
        result: dict[str, Any] = dict(self.extra)
        if self.type is not None:
            result["type"] = self.type
        result["title"] = self.title
        result["message"] = self.message
        return result


Event = Union[Message, PostToCallbackUrl]


def render_template(template: str, context: Mapping[str, Any]) -> str:
    """
    Render a message template against a context mapping.

    Raises:
        jinja2.TemplateError: On syntax errors or undefined references
    """
    return _environment.from_string(template).render(context)


def materialize(event: Event, facts: FactSource | Mapping[str, Any]) -> Event:
    """
    Render an event's message against the facts.

    Never raises: if the message cannot be rendered the event is returned
    with its original message.

    Args:
        event: Registered event
        facts: Fact source or plain mapping the rule was checked against

    Returns:
        Event of the same variant with `message` rendered
    """
    context = facts if isinstance(facts, Mapping) else fact_document(facts)
    if not isinstance(context, Mapping):
        logger.debug("Facts expose no mapping document; message left unrendered")
        return event

    try:
        rendered = render_template(event.message, context)
    except Exception as e:
        logger.debug("Message template not rendered (%s: %s)", type(e).__name__, e)
        return event

    return replace(event, message=rendered)
