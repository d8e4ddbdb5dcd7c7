"""
Tests for event materialization.
"""

from __future__ import annotations

import pytest

from verdict import message, post_to_callback_url
from verdict.events import Message, PostToCallbackUrl, materialize, render_template
from verdict.facts import FlatFacts, JsonFacts


class TestRenderTemplate:
    def test_simple_variable(self):
        assert render_template("Hi {{name}}", {"name": "Ann"}) == "Hi Ann"

    def test_nested_reference(self, person_facts):
        assert render_template("{{profile.email}}", person_facts) == "john@example.com"

    def test_indexed_reference(self, person_facts):
        assert render_template("{{profile.tags[0]}}", person_facts) == "admin"

    def test_no_html_escaping(self):
        assert render_template("{{x}}", {"x": "<b>&</b>"}) == "<b>&</b>"

    def test_undefined_reference_raises(self):
        with pytest.raises(Exception):
            render_template("Hi {{nobody}}", {})


class TestMaterialize:
    def test_message_rendered_against_mapping(self):
        event = message("Greeting", "Hi {{name}}")
        result = materialize(event, {"name": "Ann"})
        assert result == Message(title="Greeting", message="Hi Ann")

    def test_title_is_not_a_template(self):
        event = message("Hello {{name}}", "Hi {{name}}")
        result = materialize(event, {"name": "Ann"})
        assert result.title == "Hello {{name}}"

    def test_callback_fields_preserved(self):
        event = post_to_callback_url("https://example.com/hook", "T", "Hi {{name}}", type="alert")
        result = materialize(event, JsonFacts({"name": "Ann"}))
        assert isinstance(result, PostToCallbackUrl)
        assert result.callback_url == "https://example.com/hook"
        assert result.type == "alert"
        assert result.message == "Hi Ann"

    def test_extra_params_preserved(self):
        event = Message(title="T", message="{{n}}", extra={"priority": 3})
        result = materialize(event, {"n": 1})
        assert result.extra == {"priority": 3}
        assert result.message == "1"

    def test_flat_facts_render(self):
        result = materialize(message("T", "Hi {{name}}"), FlatFacts({"name": "Ann"}))
        assert result.message == "Hi Ann"

    @pytest.mark.parametrize(
        "template",
        [
            "Hi {{name",
            "Hi {{ missing }}",
            "{% for %}",
            "{{ name.nothing.deeper }}",
        ],
    )
    def test_render_failure_keeps_original_message(self, template):
        event = message("T", template)
        result = materialize(event, {"name": "Ann"})
        assert result.message == template
        assert result == event

    def test_plain_text_unchanged(self):
        event = message("T", "No placeholders here")
        assert materialize(event, {}).message == "No placeholders here"

    def test_original_event_untouched(self):
        event = message("T", "Hi {{name}}")
        materialize(event, {"name": "Ann"})
        assert event.message == "Hi {{name}}"


class TestEventParams:
    def test_message_params(self):
        event = message("T", "M", type="info")
        assert event.kind == "message"
        assert event.params() == {"type": "info", "title": "T", "message": "M"}

    def test_message_params_without_type(self):
        assert message("T", "M").params() == {"title": "T", "message": "M"}

    def test_callback_params_include_url(self):
        event = post_to_callback_url("https://example.com", "T", "M")
        assert event.kind == "post_to_callback_url"
        assert event.params() == {
            "title": "T",
            "message": "M",
            "callback_url": "https://example.com",
        }

    def test_callback_body_excludes_url(self):
        event = PostToCallbackUrl(
            callback_url="https://example.com",
            title="T",
            message="M",
            type="alert",
            extra={"channel": "ops"},
        )
        assert event.body() == {
            "channel": "ops",
            "type": "alert",
            "title": "T",
            "message": "M",
        }

    def test_events_are_frozen(self):
        event = message("T", "M")
        with pytest.raises(AttributeError):
            event.title = "other"  # type: ignore[misc]
