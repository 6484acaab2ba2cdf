"""Unit tests for type classification."""

from notesense.models import StructuralHint, SuggestionType
from notesense.pipeline.stages.type_classifier import (
    classify_section,
    classify_type,
    filter_actionable_sections,
)
from notesense.pipeline.stages.intent import classify_intent


class TestClassifyType:
    """Tests for classify_type."""

    def test_plan_change_is_project_update(self, make_section):
        section = make_section("Move launch to next week")
        intent, _ = classify_intent(section)
        decision = classify_type(section, intent)
        assert decision.type_label == SuggestionType.PROJECT_UPDATE
        assert decision.structural_hint == StructuralHint.PROJECT_UPDATE

    def test_prose_request_is_feature_request(self, make_section):
        section = make_section("# Onboarding\nPlease add boundary detection in onboarding")
        intent, _ = classify_intent(section)
        decision = classify_type(section, intent)
        assert decision.type_label == SuggestionType.IDEA
        assert decision.structural_hint == StructuralHint.FEATURE_REQUEST

    def test_bulleted_request_is_execution_artifact(self, make_section):
        section = make_section("# Exports\n- Add CSV export to reports\n- Add PDF export to reports")
        intent, _ = classify_intent(section)
        decision = classify_type(section, intent)
        assert decision.type_label == SuggestionType.IDEA
        assert decision.structural_hint == StructuralHint.EXECUTION_ARTIFACT

    def test_confidence_bounds(self, make_section):
        section = make_section("PM to update the launch checklist")
        intent, _ = classify_intent(section)
        decision = classify_type(section, intent)
        assert 0.3 <= decision.confidence <= 1.0


class TestClassifySection:
    """Tests for classify_section and filter_actionable_sections."""

    def test_actionable_section_gets_type(self, make_section, thresholds):
        classified, trace = classify_section(
            make_section("# Onboarding\nPlease add boundary detection in onboarding"), thresholds
        )
        assert classified.is_actionable
        assert classified.suggested_type == SuggestionType.IDEA
        assert trace.hits

    def test_non_actionable_section_has_no_type(self, make_section, thresholds):
        classified, _ = classify_section(
            make_section("Schedule a sync meeting next Thursday with the design team"), thresholds
        )
        assert not classified.is_actionable
        assert classified.suggested_type is None
        assert classified.type_label == SuggestionType.IDEA

    def test_implicit_idea_passes_gate(self, make_section, thresholds):
        section = make_section(
            "We need better alerts for failed imports so we can respond sooner.\n"
            "The import job runs every night.\n"
            "Customers noticed gaps last quarter."
        )
        classified, _ = classify_section(section, thresholds)
        assert classified.is_actionable

    def test_filter_keeps_only_actionable(self, make_section, thresholds):
        classified = [
            classify_section(make_section("Move launch to next week"), thresholds)[0],
            classify_section(make_section("The weather was nice today"), thresholds)[0],
        ]
        kept = filter_actionable_sections(classified)
        assert [c.suggested_type for c in kept] == [SuggestionType.PROJECT_UPDATE]
