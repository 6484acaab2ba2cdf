"""Unit tests for line annotation and section building."""

import pytest

from notesense.models import LineType
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.stages.segmentation import (
    annotate_lines,
    preprocess_note,
    serialize_sections,
)


def _sections(text: str, note_id: str = "note_seg"):
    return preprocess_note(text, note_id, IdGenerator(note_id)).sections


class TestAnnotateLines:
    """Tests for structural line types."""

    def test_markdown_heading(self):
        lines = annotate_lines("## Pricing\nWe should revisit tiers.")
        assert lines[0].line_type == LineType.HEADING
        assert lines[0].heading_level == 2
        assert lines[1].line_type == LineType.PARAGRAPH

    def test_list_items_and_blanks(self):
        lines = annotate_lines("Intro line.\n\n- first\n* second")
        assert [line.line_type for line in lines] == [
            LineType.PARAGRAPH,
            LineType.BLANK,
            LineType.LIST_ITEM,
            LineType.LIST_ITEM,
        ]

    def test_code_fence_lines_are_code(self):
        lines = annotate_lines("```\n# not a heading\n```")
        assert all(line.line_type == LineType.CODE for line in lines)

    def test_crlf_is_normalised(self):
        lines = annotate_lines("# A\r\nbody text\r\n")
        assert lines[0].text == "# A"
        assert lines[1].text == "body text"

    def test_numbered_heading_followed_by_prose(self):
        lines = annotate_lines("1. Pricing\nWe should revisit tiers.")
        assert lines[0].line_type == LineType.HEADING

    def test_numbered_task_list_is_not_heading(self):
        lines = annotate_lines("1. Fix login\n2. Add SSO")
        assert [line.line_type for line in lines] == [LineType.LIST_ITEM, LineType.LIST_ITEM]

    def test_implicit_heading_before_list(self):
        lines = annotate_lines("Customer feedback\n- Too many clicks to export\n- Search is slow")
        assert lines[0].line_type == LineType.HEADING

    def test_last_line_is_never_implicit_heading(self):
        lines = annotate_lines("Move launch to next week")
        assert lines[0].line_type == LineType.PARAGRAPH

    def test_marker_only_lines_are_not_headings(self):
        lines = annotate_lines("Intro line\n#\n- Add SSO for admins")
        assert [line.line_type for line in lines] == [
            LineType.PARAGRAPH,
            LineType.PARAGRAPH,
            LineType.LIST_ITEM,
        ]

    def test_markdown_heading_without_words(self):
        lines = annotate_lines("## ##\nbody text")
        assert lines[0].line_type == LineType.PARAGRAPH

    def test_numbered_heading_without_words(self):
        lines = annotate_lines("1. --\nWe should revisit tiers.")
        assert lines[0].line_type == LineType.LIST_ITEM

    def test_empty_input(self):
        assert annotate_lines("") == []


class TestBuildSections:
    """Tests for section grouping."""

    def test_empty_and_blank_notes_have_no_sections(self):
        assert _sections("") == []
        assert _sections("   \n\n  \n") == []

    def test_markdown_sections(self):
        sections = _sections("# Roadmap\nMove launch.\n\n## Onboarding\nAdd SSO.")
        assert [s.heading_text for s in sections] == ["Roadmap", "Onboarding"]
        assert [s.heading_level for s in sections] == [1, 2]
        assert sections[0].raw_text == "Move launch."

    def test_leading_content_goes_to_general(self):
        sections = _sections("Intro line.\n# Details\nBody here.")
        assert sections[0].heading_text is None
        assert sections[0].display_heading == "General"
        assert sections[1].heading_text == "Details"

    def test_empty_heading_merges_into_next(self):
        sections = _sections("# Q3 Plan\n## Launch\nMove launch to next week")
        assert len(sections) == 1
        assert sections[0].heading_text == "Q3 Plan > Launch"
        assert sections[0].start_line == 0

    def test_trailing_empty_heading_dropped(self):
        sections = _sections("# A\nbody text\n# B")
        assert [s.heading_text for s in sections] == ["A"]

    def test_numbered_headings_split_sections(self):
        sections = _sections("1. Pricing\nWe should revisit tiers.\n2. Hiring\nOpen two roles.")
        assert [s.heading_text for s in sections] == ["Pricing", "Hiring"]

    def test_sections_never_share_lines(self):
        sections = _sections("# A\none\ntwo\n\n# B\nthree\n# C\nfour")
        for previous, current in zip(sections, sections[1:]):
            assert previous.end_line < current.start_line

    def test_section_ids_are_sequential(self):
        sections = _sections("# A\none\n# B\ntwo", note_id="abcdefghijk")
        assert [s.section_id for s in sections] == ["sec_abcdefgh_1", "sec_abcdefgh_2"]

    def test_blank_edges_trimmed(self):
        section = _sections("# A\n\n\nbody\n\n")[0]
        assert section.raw_text == "body"
        assert section.end_line == 3


class TestSerializeSections:
    """Tests for re-segmentation stability."""

    def test_resegmenting_keeps_boundaries(self):
        original = _sections(
            "# Roadmap\nMove launch to next week\n\n## Onboarding\n"
            "Please add boundary detection in onboarding\n- and a hint"
        )
        again = _sections(serialize_sections(original))
        assert [s.heading_text for s in again] == [s.heading_text for s in original]
        assert [s.raw_text for s in again] == [s.raw_text for s in original]

    @pytest.mark.parametrize("text", [
        "Intro line\n##\n\nWe should add alerts",
        "Intro line\n#\n- Add SSO for admins",
        "## ##\nbody text",
        "1. --\nWe should revisit tiers.",
        "Intro\n\nC#\n- port the parser",
    ])
    def test_marker_heavy_notes_resegment_identically(self, text):
        original = _sections(text)
        again = _sections(serialize_sections(original))
        assert [s.heading_text for s in again] == [s.heading_text for s in original]
        assert [s.raw_text for s in again] == [s.raw_text for s in original]

    def test_trailing_hash_survives_serialization(self):
        original = _sections("Intro\n\nC#\n- port the parser")
        assert original[0].heading_text == "Intro > C#"
        assert "## Intro > C# #" in serialize_sections(original)
        assert _sections(serialize_sections(original))[0].heading_text == "Intro > C#"

    def test_bare_marker_line_stays_in_body(self):
        sections = _sections("Intro line\n#\n- Add SSO for admins")
        assert [s.heading_text for s in sections] == [None]
        assert "#" in sections[0].raw_text.split("\n")
