"""
Tests for one-shot line triggers.

Tests cover:
- Plain substring matching (no regex)
- At-most-once firing, even when the pattern reappears
- Several triggers firing from one chunk
- Duplicate registrations staying independent
- Priority ordering among triggers matched together
"""

import pytest

from scripter.triggers import TriggerSet


@pytest.fixture
def triggers():
    return TriggerSet()


class TestMatching:
    """Substring matching against output chunks."""

    def test_fires_with_full_chunk(self, triggers):
        seen = []
        triggers.add("user name", seen.append)

        triggers.feed("banner\n? What is your user name? ")

        assert seen == ["banner\n? What is your user name? "]

    def test_pattern_is_not_a_regex(self, triggers):
        seen = []
        triggers.add("password?", seen.append)

        triggers.feed("Enter password:")
        assert seen == []

        triggers.feed("What is your password?")
        assert seen == ["What is your password?"]

    def test_non_matching_chunk_keeps_trigger_active(self, triggers):
        triggers.add("Authenticated", lambda _: None)

        assert triggers.feed("Connecting...") == []
        assert len(triggers) == 1

    def test_empty_pattern_rejected(self, triggers):
        with pytest.raises(ValueError):
            triggers.add("", lambda _: None)


class TestOneShot:
    """Each registration fires at most once."""

    def test_does_not_refire_on_reappearing_pattern(self, triggers):
        calls = []
        triggers.add("Select WiFi network ", calls.append)

        triggers.feed("? Select WiFi network (Use arrow keys)")
        triggers.feed("? Select WiFi network (Use arrow keys)")

        assert len(calls) == 1
        assert len(triggers) == 0

    def test_callback_feeding_same_pattern_does_not_refire(self, triggers):
        calls = []

        def echo(chunk):
            calls.append(chunk)
            triggers.feed(chunk)

        triggers.add("prompt", echo)
        triggers.feed("prompt")

        assert calls == ["prompt"]

    def test_trigger_registered_in_callback_waits_for_next_chunk(self, triggers):
        calls = []
        triggers.add("step", lambda _: triggers.add("step", calls.append))

        triggers.feed("step 1")
        assert calls == []

        triggers.feed("step 2")
        assert calls == ["step 2"]


class TestConcurrentTriggers:
    """Several active triggers scanned against the same chunk."""

    def test_chunk_fires_every_matching_pattern(self, triggers):
        fired = set()
        triggers.add("Clearing configuration OK", lambda _: fired.add("cleared"))
        triggers.add("To which project", lambda _: fired.add("project"))
        triggers.add("Authenticated", lambda _: fired.add("connected"))

        triggers.feed("Clearing configuration OK\n? To which project do you want to connect")

        assert fired == {"cleared", "project"}
        assert triggers.patterns == ["Authenticated"]

    def test_duplicate_registrations_both_fire(self, triggers):
        calls = []
        triggers.add("Authenticated", lambda _: calls.append("first"))
        triggers.add("Authenticated", lambda _: calls.append("second"))

        fired = triggers.feed("Authenticated")

        assert len(fired) == 2
        assert sorted(calls) == ["first", "second"]

    def test_higher_priority_runs_first(self, triggers):
        order = []
        triggers.add("user name", lambda _: order.append("answer"))
        triggers.add("Failed to connect to", lambda _: order.append("fatal"), priority=1)

        triggers.feed("Failed to connect to host\n? What is your user name")

        assert order == ["fatal", "answer"]

    def test_failing_callback_does_not_skip_others(self, triggers):
        calls = []

        def broken(_chunk):
            raise RuntimeError("stdin closed")

        triggers.add("Authenticated", broken, priority=1)
        triggers.add("Authenticated", calls.append)

        with pytest.raises(RuntimeError, match="stdin closed"):
            triggers.feed("Authenticated")

        assert calls == ["Authenticated"]
        assert len(triggers) == 0

    def test_clear_drops_all(self, triggers):
        calls = []
        triggers.add("a", calls.append)
        triggers.clear()

        triggers.feed("a")

        assert calls == []
