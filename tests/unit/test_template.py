"""
Unit tests for placeholder substitution.

Tests cover:
- String and non-string bindings
- Unbound placeholders
- Placeholder discovery
"""

import json

from flowreplay.template import find_placeholders, preprocess, render_value


class TestRenderValue:
    """Tests for render_value()."""

    def test_string_is_raw(self) -> None:
        """Strings are injected without quotes or escaping."""
        assert render_value('say "hi"') == 'say "hi"'

    def test_numbers_and_booleans_are_json_literals(self) -> None:
        assert render_value(42) == "42"
        assert render_value(1.5) == "1.5"
        assert render_value(True) == "true"
        assert render_value(None) == "null"

    def test_floats_keep_json_spelling(self) -> None:
        """Whole floats are not shortened to integers."""
        assert render_value(1.0) == "1.0"
        assert render_value(1e3) == "1000.0"

    def test_mappings_render_as_json(self) -> None:
        assert render_value({"a": 1, "b": [True, None]}) == '{"a": 1, "b": [true, null]}'

    def test_string_spelling_preserved(self) -> None:
        assert render_value("1.50") == "1.50"

    def test_non_ascii_kept(self) -> None:
        assert render_value(["café"]) == '["café"]'


class TestPreprocess:
    """Tests for preprocess()."""

    def test_replaces_every_occurrence(self) -> None:
        content = '{"a": "${user}", "b": "${user}-${id}"}'
        out = preprocess(content, {"user": "ann", "id": "7"})
        assert out == '{"a": "ann", "b": "ann-7"}'

    def test_unbound_placeholder_left_unchanged(self) -> None:
        content = '{"a": "${known}", "b": "${unknown}"}'
        out = preprocess(content, {"known": "x"})
        assert out == '{"a": "x", "b": "${unknown}"}'

    def test_no_inputs_returns_content(self) -> None:
        content = '{"value": "${email}"}'
        assert preprocess(content, None) == content
        assert preprocess(content, {}) == content

    def test_unquoted_placeholder_becomes_number(self) -> None:
        """A bare ${qty} turns into a JSON number."""
        out = preprocess('{"count": ${qty}}', {"qty": 3})
        assert json.loads(out) == {"count": 3}

    def test_only_word_characters_match(self) -> None:
        content = "${a-b} ${ spaced } ${ok_1}"
        out = preprocess(content, {"a-b": "no", " spaced ": "no", "ok_1": "yes"})
        assert out == "${a-b} ${ spaced } yes"

    def test_idempotent(self) -> None:
        content = '{"q": "${term}", "n": ${limit}}'
        inputs = {"term": "shoes", "limit": 10}
        once = preprocess(content, inputs)
        assert preprocess(once, inputs) == once

    def test_value_containing_placeholder_not_reprocessed(self) -> None:
        out = preprocess("${a}", {"a": "${b}", "b": "nested"})
        assert out == "${b}"


class TestFindPlaceholders:
    """Tests for find_placeholders()."""

    def test_distinct_in_first_seen_order(self) -> None:
        content = '"${email}" "${password}" "${email}"'
        assert find_placeholders(content) == ["email", "password"]

    def test_none(self) -> None:
        assert find_placeholders('{"steps": []}') == []
