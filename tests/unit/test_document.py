"""Test the Markdown outline document."""

import pytest

from conftest import BODY_LINE, CLOSING_LINE, DECK, DETAILS_LINE, INTRO_LINE
from slide_presenter.document import MarkdownDocument
from slide_presenter.errors import StaleSlideError


def test_sections_in_document_order(deck):
    """Every heading at every level becomes a section."""
    titles = [s.title for s in deck.enumerate_sections()]
    assert titles == ["Intro", "Details", "Body", "Appendix", "Closing"]


def test_tags_are_stripped_from_titles(deck):
    sections = {s.title: s for s in deck.enumerate_sections()}

    assert deck.section_tags(sections["Intro"]) == {"slide"}
    assert deck.section_tags(sections["Body"]) == {"slide", "draft"}
    assert deck.section_tags(sections["Appendix"]) == set()
    assert sections["Body"].tags == ("slide", "draft")


def test_subtree_ranges(deck):
    sections = {s.title: s for s in deck.enumerate_sections()}

    intro = sections["Intro"]
    assert intro.line == INTRO_LINE
    assert intro.end == BODY_LINE
    assert sections["Details"].end == BODY_LINE
    assert sections["Closing"].line == CLOSING_LINE
    assert sections["Closing"].end == len(deck.lines)

    text = deck.section_subtree_text(intro)
    assert text.startswith("# Intro :slide:")
    assert "## Details" in text
    assert "# Body" not in text


def test_tag_spans_point_at_tag_text(deck):
    body = deck.enumerate_sections()[2]
    line = deck.lines[body.line]

    start, end = body.tag_spans["slide"]
    assert line[start:end] == ":slide"
    start, end = body.tag_spans["draft"]
    assert line[start:end] == ":draft"
    start, end = body.tag_group_span
    assert line[:start] == "# Body"
    assert line[start:end].strip() == ":slide:draft:"


def test_heading_without_tags_has_no_spans():
    doc = MarkdownDocument("# Ratio a:b\n")
    section = doc.enumerate_sections()[0]
    assert section.title == "Ratio a:b"
    assert section.tags == ()
    assert section.tag_group_span is None


def test_find_fragments_by_kind(deck):
    body = deck.enumerate_sections()[2]

    fragments = deck.find_fragments(body, ":present")
    assert [f.source for f in fragments] == ["x = 1\n", "log.append(x)\n"]
    assert all(f.language == "python" for f in fragments)
    assert fragments[0].start < fragments[1].start

    # Ordinary code blocks are not presentation fragments
    assert len(deck.find_fragments(None, "python")) == 3
    intro = deck.enumerate_sections()[0]
    assert deck.find_fragments(intro, ":present") == []


def test_fragment_flags():
    doc = MarkdownDocument("# A :slide:\n\n```python :present :once\nx = 1\n```\n")
    fragment = doc.find_fragments(None, ":present")[0]
    assert fragment.once
    assert fragment.flags == frozenset({":present", ":once"})
    assert fragment.start == 2
    assert fragment.end == 5


def test_drawers_and_comments(deck):
    intro = deck.enumerate_sections()[0]
    assert deck.drawers(intro) == [(9, 10)]

    doc = MarkdownDocument("# A :slide:\n\n<!-- hidden -->\n\nshown\n")
    assert doc.drawers(None) == [(2, 3)]


def test_wrapped_speaker_note_is_one_drawer():
    doc = MarkdownDocument("# A :slide:\nshown\n??? first\n    second\n\nshown too\n")
    assert doc.drawers(None) == [(2, 4)]
    assert "first" not in doc.markdown_processor.render(doc.text)


def test_images_are_found_with_their_line():
    doc = MarkdownDocument("# A :slide:\n\n![chart](img/chart.png)\n")
    images = doc.images(None)
    assert len(images) == 1
    assert images[0].src == "img/chart.png"
    assert images[0].alt == "chart"
    assert images[0].line == 2


def test_front_matter(deck):
    assert deck.front_matter == {"show": {"text_scale": 3}}


def test_bad_front_matter_is_ignored():
    doc = MarkdownDocument("---\nshow: [unclosed\n---\n\n# A :slide:\n")
    assert doc.front_matter == {}
    assert len(doc.enumerate_sections()) == 1


def test_sections_at_line(deck):
    enclosing = deck.sections_at(DETAILS_LINE + 2)
    assert [s.title for s in enclosing] == ["Intro", "Details"]


def test_from_file_sets_base_dir(tmp_path):
    path = tmp_path / "talk.md"
    path.write_text(DECK, encoding="utf-8")

    doc = MarkdownDocument.from_file(path)
    assert doc.path == path
    assert doc.base_dir == tmp_path
    assert len(doc.enumerate_sections()) == 5


class TestMarkers:
    def test_marker_resolves_to_section(self, deck):
        marker = deck.marker_at(BODY_LINE)
        assert deck.resolve(marker).title == "Body"

    def test_released_markers_stop_tracking(self, deck):
        kept = deck.marker_at(BODY_LINE)
        dropped = deck.marker_at(CLOSING_LINE)

        deck.release([dropped])
        deck.replace_lines(7, 8, ["Welcome", "to the talk."])

        assert deck.live_markers == 1
        assert kept.line == BODY_LINE + 1
        assert dropped.line == CLOSING_LINE
        with pytest.raises(StaleSlideError):
            deck.resolve(dropped)

    def test_non_structural_edit_shifts_markers(self, deck):
        marker = deck.marker_at(BODY_LINE)

        structural = deck.replace_lines(7, 8, ["Welcome", "to the talk."])

        assert not structural
        assert marker.valid
        assert marker.line == BODY_LINE + 1
        assert deck.resolve(marker).title == "Body"

    def test_edit_below_marker_does_not_move_it(self, deck):
        marker = deck.marker_at(INTRO_LINE)
        deck.replace_lines(BODY_LINE + 2, BODY_LINE + 2, ["", "more text", ""])
        assert marker.line == INTRO_LINE

    def test_retitling_a_heading_is_structural(self, deck):
        marker = deck.marker_at(INTRO_LINE)

        structural = deck.replace_lines(BODY_LINE, BODY_LINE + 1, ["# Renamed :slide:"])

        assert structural
        assert not marker.valid
        with pytest.raises(StaleSlideError):
            deck.resolve(marker)

    def test_adding_a_heading_is_structural(self, deck):
        marker = deck.marker_at(INTRO_LINE)
        assert deck.replace_lines(8, 8, ["# Inserted", ""])
        assert not marker.valid

    def test_set_text_invalidates(self, deck):
        marker = deck.marker_at(INTRO_LINE)
        version = deck.structure_version
        deck.set_text(DECK)
        assert not marker.valid
        assert deck.structure_version == version + 1

    def test_marker_on_non_heading_line_is_stale(self, deck):
        marker = deck.marker_at(7)
        with pytest.raises(StaleSlideError):
            deck.resolve(marker)
