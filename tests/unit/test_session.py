"""Test the show lifecycle: start, navigation and stop."""

import pytest
from PIL import Image

from conftest import BODY_LINE, CLOSING_LINE, DECK, DETAILS_LINE, DUPLICATE_TITLES, NO_SLIDES
from slide_presenter.config import HideTags, ShowConfig
from slide_presenter.display import DEFAULTS, META_BACKGROUND, SPELLCHECK, TAGS_COLUMN, TYPESET_SCALE, DisplaySettings
from slide_presenter.document import MarkdownDocument
from slide_presenter.errors import (
    AlreadyRunningError,
    EmptyShowError,
    NotRunningError,
    OutOfRangeError,
    StaleSlideError,
    UnknownSlideError,
)
from slide_presenter.navigator import END_OF_SHOW, START_OF_SHOW
from slide_presenter.session import FRAGMENT_REASON, TAG_REASON, ShowSession, ShowState


@pytest.fixture
def session(display, log):
    return ShowSession(display=display, environment={"log": log})


@pytest.fixture
def running(session, deck):
    session.start(deck)
    yield session
    session.stop()


class TestStart:
    def test_start_opens_first_slide(self, session, deck):
        slide = session.start(deck)

        assert slide.ordinal == 1
        assert session.state is ShowState.RUNNING
        assert session.navigator.current == 1
        assert session.view.title == "Intro [1/3]"
        session.stop()

    def test_start_applies_presentation_display(self, session, deck, display):
        session.start(deck, ShowConfig(typeset_scale=3.0))

        assert display.get(TYPESET_SCALE) == 3.0
        assert display.get(SPELLCHECK) is False
        assert display.get(TAGS_COLUMN) == 0
        session.stop()

    def test_empty_show_fails_and_restores(self, session, display, tmp_path):
        doc = MarkdownDocument(NO_SLIDES, base_dir=tmp_path)

        with pytest.raises(EmptyShowError):
            session.start(doc)

        assert session.state is ShowState.STOPPED
        assert display.as_dict() == DEFAULTS
        assert session.index is None

    def test_other_document_while_running(self, running, tmp_path):
        other = MarkdownDocument(DECK, base_dir=tmp_path)
        with pytest.raises(AlreadyRunningError):
            running.start(other)
        assert running.navigator.current == 1

    def test_restart_same_document_resets(self, running, deck, display):
        running.goto_slide(3)

        running.start(deck)

        assert running.navigator.current == 1
        running.stop()
        assert display.as_dict() == DEFAULTS

    def test_partial_start_restores_what_was_captured(self, deck, tmp_path):
        class FlakyDisplay(DisplaySettings):
            def set(self, name, value):
                if name == TAGS_COLUMN and value == 0:
                    raise RuntimeError("tag column locked")
                super().set(name, value)

        display = FlakyDisplay()
        session = ShowSession(display=display)

        with pytest.raises(RuntimeError):
            session.start(deck)

        assert session.state is ShowState.STOPPED
        assert display.as_dict() == DEFAULTS
        session.stop()  # still a no-op


class TestTagHiding:
    def test_slide_tag_only(self, running):
        running.goto_slide(2)
        assert running.view.visible_lines()[0] == "# Body :draft:"

        running.goto_slide(1)
        assert running.view.visible_lines()[0] == "# Intro"

    def test_all_tags(self, session, deck):
        session.start(deck, ShowConfig(hide_tags=HideTags.ALL_TAGS))
        session.goto_slide(2)

        assert session.view.visible_lines()[0] == "# Body"
        session.stop()

    def test_fragment_source_is_hidden(self, running):
        running.goto_slide(2)
        visible = "\n".join(running.view.visible_lines())

        assert "log.append" not in visible
        assert "not_run = True" in visible

        assert running.toggle_fragment_source() is False
        assert "```python :present ..." in running.view.visible_lines()


class TestNavigation:
    def test_next_and_previous(self, running):
        assert running.next_slide().title == "Body"
        assert running.next_slide().title == "Closing"
        assert running.previous_slide().title == "Body"

    def test_next_at_end_stays_and_notifies(self, running):
        running.goto_slide(3)

        slide = running.next_slide()

        assert slide.ordinal == 3
        assert running.navigator.current == 3
        assert running.messages[-1] == END_OF_SHOW

    def test_previous_at_start_stays_and_notifies(self, running):
        slide = running.previous_slide()

        assert slide.ordinal == 1
        assert running.navigator.current == 1
        assert running.messages[-1] == START_OF_SHOW

    def test_goto_out_of_range_keeps_position(self, running):
        running.goto_slide(2)
        before = running.view.decoration_state()

        with pytest.raises(OutOfRangeError):
            running.goto_slide(5)

        assert running.navigator.current == 2
        assert running.view.decoration_state() == before

    @pytest.mark.parametrize("ordinal", [1, 2, 3])
    def test_goto_is_idempotent(self, running, ordinal):
        running.goto_slide(ordinal)
        first = running.view.decoration_state()

        running.goto_slide(ordinal)

        assert running.view.decoration_state() == first

    def test_first_last_refresh(self, running):
        assert running.last_slide().ordinal == 3
        assert running.refresh_slide().ordinal == 3
        assert running.first_slide().ordinal == 1

    def test_list_slides(self, running):
        assert running.list_slides() == [(1, "Intro"), (2, "Body"), (3, "Closing")]

    def test_fragments_see_earlier_fragments(self, running, log):
        running.goto_slide(2)
        assert log == [1]

    def test_commands_require_running(self, session):
        for command in (session.next_slide, session.previous_slide, session.list_slides,
                        session.refresh_slide, lambda: session.goto_slide(1)):
            with pytest.raises(NotRunningError):
                command()


class TestOpenAtPoint:
    def test_section(self, running, deck):
        closing = deck.enumerate_sections()[4]
        assert running.open_at_point(closing).ordinal == 3

    def test_line_inside_subsection(self, running):
        running.goto_slide(3)
        slide = running.open_at_point(DETAILS_LINE + 2)
        assert slide.title == "Intro"
        assert running.navigator.current == 1

    def test_not_a_slide(self, running, deck):
        appendix = deck.enumerate_sections()[3]
        with pytest.raises(UnknownSlideError):
            running.open_at_point(appendix)
        assert running.navigator.current == 1

    def test_duplicate_titles_resolve_to_last(self, session, tmp_path):
        doc = MarkdownDocument(DUPLICATE_TITLES, base_dir=tmp_path)
        session.start(doc)

        first_body = doc.enumerate_sections()[1]
        assert session.open_at_point(first_body).ordinal == 3
        session.stop()


class TestEdits:
    def test_structural_edit_makes_slides_stale(self, running, deck):
        deck.replace_lines(BODY_LINE, BODY_LINE + 1, ["# Main part :slide:"])

        with pytest.raises(StaleSlideError):
            running.goto_slide(2)
        assert running.navigator.current == 1

        running.rebuild_index()
        assert running.goto_slide(2).title == "Main part"
        assert running.view.visible_lines()[0] == "# Main part"

    def test_non_structural_edit_keeps_slides(self, running, deck):
        deck.replace_lines(7, 8, ["Welcome", "to the talk."])

        running.goto_slide(3)

        assert running.view.narrowing == (CLOSING_LINE + 1, len(deck.lines))


class TestStop:
    def test_stop_restores_everything(self, session, deck, display):
        before = display.as_dict()
        session.start(deck)
        session.goto_slide(2)

        session.stop()

        assert display.as_dict() == before
        assert session.state is ShowState.STOPPED
        assert session.index is None
        assert session.navigator.state is None
        assert len(session.artifacts) == 0
        assert session.view.narrowing is None
        assert session.view.text_scale == 0
        assert TAG_REASON not in session.view.visibility.reasons
        assert FRAGMENT_REASON not in session.view.visibility.reasons

    def test_stop_when_stopped_is_noop(self, session):
        session.stop()
        session.stop()
        assert session.state is ShowState.STOPPED

    def test_stop_deletes_artifacts(self, session, deck):
        session.start(deck)
        paths = list(session.artifacts)
        assert paths

        session.stop()

        assert not any(p.exists() for p in paths)
        assert not (deck.base_dir / ".show_tmp").exists()

    def test_stop_tolerates_vanished_artifacts(self, session, deck):
        session.start(deck)
        for path in session.artifacts:
            path.unlink()

        session.stop()

        assert len(session.artifacts) == 0

    def test_stop_closes_open_buffers(self, session, tmp_path):
        Image.new("RGB", (3000, 1500), "blue").save(tmp_path / "photo.png")
        doc = MarkdownDocument("# Photo :slide:\n\n![photo](photo.png)\n", base_dir=tmp_path)
        session.start(doc)
        [path] = list(session.artifacts)
        buffer = session.artifacts.buffer_for(path)

        session.stop()

        assert buffer.closed
        assert not path.exists()
        assert session.artifacts.open_buffers == 0
        assert (tmp_path / "photo.png").exists()

    def test_stop_restores_remaining_settings_when_one_fails(self, deck):
        class StickyBackground(DisplaySettings):
            def set(self, name, value):
                if name == META_BACKGROUND and value == DEFAULTS[META_BACKGROUND]:
                    raise RuntimeError("background locked")
                super().set(name, value)

        display = StickyBackground()
        session = ShowSession(display=display)
        session.start(deck)

        session.stop()

        expected = dict(DEFAULTS, **{META_BACKGROUND: "black"})
        assert display.as_dict() == expected
        assert session.state is ShowState.STOPPED


class TestPositions:
    def test_open_at_point_does_not_accumulate_markers(self, running, deck):
        after_start = deck.live_markers

        for _ in range(20):
            running.open_at_point(CLOSING_LINE)

        assert deck.live_markers == after_start

    def test_stop_releases_every_marker(self, session, deck):
        for _ in range(3):
            session.start(deck)
            session.rebuild_index()
            session.stop()

        assert deck.live_markers == 0

    def test_released_slide_positions_are_stale(self, running, deck):
        old = running.index.get(2)

        running.rebuild_index()

        with pytest.raises(StaleSlideError):
            deck.resolve(old.position)
        assert running.goto_slide(2).title == "Body"
