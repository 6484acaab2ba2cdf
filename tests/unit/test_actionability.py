"""Unit tests for the actionability gate."""

import pytest

from notesense.config import ThresholdConfig
from notesense.models import (
    ActionabilityResult,
    IntentClassification,
    IntentFlags,
    IntentScores,
    SuggestionType,
)
from notesense.pipeline.stages.actionability import (
    enforce_plan_change_protection,
    evaluate_actionability,
)
from notesense.pipeline.stages.type_classifier import classify_section

LONG_NOTE = "First point here.\nSecond point here.\nThird point here.\nFourth point here."


def _intent(**scores) -> IntentClassification:
    return IntentClassification(scores=IntentScores(**scores))


class TestEvaluateActionability:
    """Tests for evaluate_actionability."""

    def test_plan_change_always_actionable(self, make_section, thresholds):
        intent = IntentClassification(
            scores=IntentScores(calendar=0.9),
            flags=IntentFlags(force_decision_marker=True),
        )
        result = evaluate_actionability(make_section("x line"), intent, thresholds)
        assert result.actionable
        assert result.reason.startswith("plan change protected")

    def test_out_of_scope_dominance_drops(self, make_section, thresholds):
        result = evaluate_actionability(
            make_section(LONG_NOTE), _intent(calendar=0.9, new_workstream=0.5), thresholds
        )
        assert not result.actionable
        assert "out-of-scope dominance" in result.reason

    def test_out_of_scope_without_gap_passes(self, make_section, thresholds):
        result = evaluate_actionability(
            make_section(LONG_NOTE), _intent(calendar=0.8, new_workstream=0.7), thresholds
        )
        assert result.actionable

    def test_out_of_scope_below_floor_passes(self, make_section, thresholds):
        result = evaluate_actionability(
            make_section(LONG_NOTE), _intent(communication=0.6, new_workstream=0.55), thresholds
        )
        assert result.actionable

    def test_signal_too_low(self, make_section, thresholds):
        result = evaluate_actionability(make_section(LONG_NOTE), _intent(new_workstream=0.3), thresholds)
        assert not result.actionable
        assert "action signal too low" in result.reason

    def test_threshold_is_inclusive(self, make_section):
        thresholds = ThresholdConfig(T_action=0.6)
        result = evaluate_actionability(make_section(LONG_NOTE), _intent(new_workstream=0.6), thresholds)
        assert result.actionable

    def test_borderline_short_section_dropped(self, make_section, thresholds):
        result = evaluate_actionability(make_section("Short note"), _intent(new_workstream=0.55), thresholds)
        assert not result.actionable
        assert "borderline signal" in result.reason

    def test_borderline_long_section_kept(self, make_section, thresholds):
        result = evaluate_actionability(make_section(LONG_NOTE), _intent(new_workstream=0.55), thresholds)
        assert result.actionable

    def test_signals_reported(self, make_section, thresholds):
        result = evaluate_actionability(
            make_section(LONG_NOTE), _intent(new_workstream=0.7, micro_tasks=0.4), thresholds
        )
        assert result.actionable_signal == pytest.approx(0.7)
        assert result.out_of_scope_signal == pytest.approx(0.4)

    @pytest.mark.parametrize("low,high", [(0.3, 0.5), (0.5, 0.58), (0.58, 0.9)])
    def test_raising_threshold_never_adds(self, make_section, low, high):
        section = make_section("Short note")
        for signal in (0.2, 0.5, 0.55, 0.6, 0.65, 0.8, 1.0):
            intent = _intent(new_workstream=signal)
            strict = evaluate_actionability(section, intent, ThresholdConfig(T_action=high))
            loose = evaluate_actionability(section, intent, ThresholdConfig(T_action=low))
            assert not strict.actionable or loose.actionable


class TestEnforcePlanChangeProtection:
    """Tests for enforce_plan_change_protection."""

    def test_restores_dropped_plan_change(self):
        intent = _intent(plan_change=0.8)
        dropped = ActionabilityResult(
            actionable=False, actionable_signal=0.8, out_of_scope_signal=0.0, reason="dropped"
        )
        restored = enforce_plan_change_protection(intent, dropped, "sec_1")
        assert restored.actionable
        assert "restored" in restored.reason

    def test_leaves_ideas_alone(self):
        intent = _intent(new_workstream=0.3)
        dropped = ActionabilityResult(
            actionable=False, actionable_signal=0.3, out_of_scope_signal=0.0, reason="dropped"
        )
        assert enforce_plan_change_protection(intent, dropped, "sec_1") is dropped


class TestChatterInsideActionableSection:
    """Scheduling and messaging lines next to a real request."""

    CHATTER = "Send the invoice by Friday and email the team on Slack"

    def test_chatter_alone_is_dominated(self, make_section, thresholds):
        classified, _ = classify_section(make_section(self.CHATTER), thresholds)
        assert not classified.is_actionable
        assert "out-of-scope dominance" in classified.actionability.reason

    def test_single_chatter_line_is_too_weak(self, make_section, thresholds):
        classified, _ = classify_section(make_section("Send the invoice by Friday"), thresholds)
        assert not classified.is_actionable
        assert classified.actionability.out_of_scope_signal == pytest.approx(0.6)

    def test_request_overrides_chatter(self, make_section, thresholds):
        section = make_section(
            f"## Billing\nPlease add invoice export to the billing dashboard\n{self.CHATTER}"
        )
        classified, _ = classify_section(section, thresholds)
        assert classified.is_actionable
        assert classified.actionability.out_of_scope_signal == pytest.approx(0.9)
        assert classified.actionability.actionable_signal == pytest.approx(1.0)
        assert classified.suggested_type == SuggestionType.IDEA
