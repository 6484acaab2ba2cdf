"""Unit tests for structural feature extraction."""

from notesense.models import Line, LineType
from notesense.pipeline.stages.features import compute_structural_features


def _lines(*texts: str, line_type: LineType = LineType.PARAGRAPH) -> list[Line]:
    return [Line(index=i, text=t, line_type=line_type) for i, t in enumerate(texts)]


class TestStructuralFeatures:
    """Tests for compute_structural_features."""

    def test_release_signals(self):
        features = compute_structural_features(_lines("Launch v2 in Q3 with 20% faster sync"))
        assert features.has_quarter_refs
        assert features.has_version_refs
        assert features.has_metrics
        assert features.has_launch_keywords

    def test_plain_text_has_no_signals(self):
        features = compute_structural_features(_lines("The team talked about the office plants"))
        assert not features.has_quarter_refs
        assert not features.has_metrics
        assert not features.has_launch_keywords
        assert features.initiative_phrase_density == 0.0

    def test_counts_skip_blank_lines(self):
        body = _lines("- one", "- two", line_type=LineType.LIST_ITEM) + [
            Line(index=2, text="", line_type=LineType.BLANK),
            Line(index=3, text="closing remark", line_type=LineType.PARAGRAPH),
        ]
        features = compute_structural_features(body)
        assert features.num_lines == 3
        assert features.num_list_items == 2

    def test_dates(self):
        assert compute_structural_features(_lines("Review on March 3")).has_dates
        assert compute_structural_features(_lines("Due 4/15")).has_dates

    def test_density_is_capped(self):
        features = compute_structural_features(_lines("build alerts ship exports"))
        assert features.initiative_phrase_density == 1.0

    def test_empty_body(self):
        features = compute_structural_features([])
        assert features.num_lines == 0
        assert features.initiative_phrase_density == 0.0
