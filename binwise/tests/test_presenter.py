"""
Tests for the incremental presenter.

Tests:
- Markup is always the render of the full buffer
- Signal detection from accumulated text
- Failure keeps partial output and appends the error
- Events for stale requests are ignored
"""

import asyncio

import pytest

from ..classify import StreamFailed, TextDelta
from ..present import (
    GENERATING,
    PLACEHOLDER,
    SEPARATOR,
    ClassificationSignal,
    IncrementalPresenter,
    PresenterStatus,
    SignalMarkers,
    detect_signal,
    render_markup,
)


class FakeStream:
    """Stands in for a ClassificationStream."""

    def __init__(self, request_id, events):
        self.request = type("Request", (), {"request_id": request_id})()
        self.events = events

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event


async def collect(agen) -> list:
    return [item async for item in agen]


class TestRenderMarkup:
    """Tests for markdown rendering."""

    def test_renders_markdown(self):
        assert render_markup("**Yes**") == "<p><strong>Yes</strong></p>\n"

    def test_raw_html_is_escaped(self):
        markup = render_markup("<script>alert(1)</script>")
        assert "<script>" not in markup
        assert "&lt;script&gt;" in markup

    def test_is_pure(self):
        assert render_markup("# Title\n\n- a\n- b") == render_markup("# Title\n\n- a\n- b")


class TestDetectSignal:
    """Tests for verdict marker matching."""

    @pytest.mark.parametrize("text", [
        "This is a plastic bottle. Yes, this is recyclable!",
        "YES, THIS IS RECYCLABLE",
        "yes, this is recyclable because...",
    ])
    def test_affirmative(self, text):
        assert detect_signal(text) == ClassificationSignal.AFFIRMATIVE

    @pytest.mark.parametrize("text", [
        "This is a chip bag. No, this isn't recyclable.",
        "No, this isn’t recyclable.",
        "no, this is not recyclable",
        "No, this isnt recyclable",
    ])
    def test_negative(self, text):
        assert detect_signal(text) == ClassificationSignal.NEGATIVE

    @pytest.mark.parametrize("text", [
        "",
        "This is a",
        "This location does not exist. Please enter a valid location.",
        "Yes",
        "No",
    ])
    def test_unknown(self, text):
        assert detect_signal(text) == ClassificationSignal.UNKNOWN

    def test_affirmative_checked_first(self):
        text = "Yes, this is recyclable! No, this isn't recyclable."
        assert detect_signal(text) == ClassificationSignal.AFFIRMATIVE

    def test_custom_markers(self):
        markers = SignalMarkers(affirmative=("ja",), negative=("nein",))
        assert detect_signal("Nein danke", markers) == ClassificationSignal.NEGATIVE


class TestIncrementalPresenter:
    """Tests for buffer and markup handling."""

    def test_initial_placeholder(self):
        presenter = IncrementalPresenter()
        snapshot = presenter.snapshot()

        assert snapshot.markup == PLACEHOLDER
        assert snapshot.status == PresenterStatus.IDLE
        assert snapshot.request_id is None

    def test_begin_shows_generating(self):
        presenter = IncrementalPresenter()
        snapshot = presenter.begin("r1")

        assert snapshot.markup == GENERATING
        assert snapshot.status == PresenterStatus.STREAMING
        assert snapshot.signal == ClassificationSignal.UNKNOWN

    def test_markup_is_render_of_whole_buffer(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")

        fragments = ["This is a **plas", "tic** bottle.\n\n", "- Yes, this is recyclable!"]
        for i, fragment in enumerate(fragments):
            snapshot = presenter.apply("r1", TextDelta(fragment))
            assert snapshot.markup == render_markup("".join(fragments[: i + 1]))

        assert snapshot.text == "".join(fragments)
        assert "<strong>plastic</strong>" in snapshot.markup

    def test_signal_tracks_latest_text(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")

        assert presenter.apply("r1", "This is a can. ").signal == ClassificationSignal.UNKNOWN
        assert presenter.apply("r1", "Yes, this is ").signal == ClassificationSignal.UNKNOWN
        assert presenter.apply("r1", "recyclable!").signal == ClassificationSignal.AFFIRMATIVE

    def test_render_called_with_full_text(self):
        seen = []
        presenter = IncrementalPresenter(render=lambda text: seen.append(text) or text.upper())
        presenter.begin("r1")
        presenter.apply("r1", "ab")
        presenter.apply("r1", "cd")

        assert seen == ["ab", "abcd"]
        assert presenter.markup == "ABCD"

    def test_begin_discards_previous_buffer(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        presenter.apply("r1", "Yes, this is recyclable!")
        presenter.complete("r1")

        snapshot = presenter.begin("r2")

        assert snapshot.text == ""
        assert snapshot.signal == ClassificationSignal.UNKNOWN

    def test_stale_request_ignored(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        presenter.begin("r2")

        snapshot = presenter.apply("r1", "late text")

        assert snapshot.text == ""
        assert snapshot.request_id == "r2"
        assert presenter.fail("r1", "late error").status == PresenterStatus.STREAMING

    def test_events_after_complete_ignored(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        presenter.apply("r1", "done")
        presenter.complete("r1")

        snapshot = presenter.apply("r1", " more")

        assert snapshot.text == "done"
        assert snapshot.status == PresenterStatus.COMPLETE

    def test_fail_appends_separator_and_escaped_error(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        partial = presenter.apply("r1", "This is a ").markup

        snapshot = presenter.fail("r1", "Error: <quota> & limits")

        assert snapshot.markup == f"{partial}{SEPARATOR}Error: &lt;quota&gt; &amp; limits"
        assert snapshot.status == PresenterStatus.FAILED
        assert snapshot.error == "Error: <quota> & limits"
        assert snapshot.text == "This is a "

    def test_fail_before_any_delta(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        snapshot = presenter.fail("r1", "boom")
        assert snapshot.markup == f"{GENERATING}{SEPARATOR}boom"

    def test_reset(self):
        presenter = IncrementalPresenter()
        presenter.begin("r1")
        presenter.apply("r1", "text")
        presenter.reset()

        snapshot = presenter.snapshot()
        assert snapshot.markup == PLACEHOLDER
        assert snapshot.status == PresenterStatus.IDLE

        assert presenter.apply("r1", "late").text == ""


class TestConsume:
    """Tests for driving the presenter from a stream."""

    def test_consume_success(self):
        presenter = IncrementalPresenter()
        stream = FakeStream("r1", [TextDelta("This is a can. "), TextDelta("No, this isn't recyclable.")])

        snapshots = asyncio.run(collect(presenter.consume(stream)))

        assert [s.status for s in snapshots] == [
            PresenterStatus.STREAMING,
            PresenterStatus.STREAMING,
            PresenterStatus.STREAMING,
            PresenterStatus.COMPLETE,
        ]
        assert snapshots[0].markup == GENERATING
        assert snapshots[-1].signal == ClassificationSignal.NEGATIVE
        assert snapshots[-1].markup == render_markup("This is a can. No, this isn't recyclable.")

    def test_consume_failure(self):
        presenter = IncrementalPresenter()
        stream = FakeStream("r1", [TextDelta("This is a "), StreamFailed("ConnectionError: down")])

        snapshots = asyncio.run(collect(presenter.consume(stream)))

        final = snapshots[-1]
        assert len(snapshots) == 3
        assert final.status == PresenterStatus.FAILED
        assert final.markup == render_markup("This is a ") + SEPARATOR + "ConnectionError: down"
