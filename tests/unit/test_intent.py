"""Unit tests for intent classification."""

import pytest

from notesense.models import IntentClassification, IntentFlags, IntentLabel, IntentScores
from notesense.pipeline.stages.intent import (
    CALENDAR_DATE_PATTERN,
    RuleFamily,
    classify_intent,
    score_sentence,
)


class TestScoreSentence:
    """Tests for the sentence rule table."""

    def test_explicit_request(self):
        score, hits = score_sentence("please add a csv export")
        assert score == 1.0
        assert "explicit_request" in [h.rule for h in hits]

    def test_imperative(self):
        score, hits = score_sentence("fix the flaky login test")
        assert score == pytest.approx(0.9)
        assert hits[0].family == RuleFamily.WORKSTREAM

    def test_target_object_bonus(self):
        score, _ = score_sentence("fix the onboarding checklist")
        assert score == 1.0

    def test_negated_directive_scores_zero(self):
        assert score_sentence("don't add dark mode to the dashboard") == (0.0, [])

    def test_no_rules(self):
        assert score_sentence("the weather was nice") == (0.0, [])

    def test_object_dependent_change_operator(self):
        _, plan_hits = score_sentence("push the release to q4")
        _, ws_hits = score_sentence("move the settings button to the header")
        assert plan_hits[0].family == RuleFamily.PLAN_CHANGE
        assert [h.family for h in ws_hits if h.rule == "change_operator"] == [RuleFamily.WORKSTREAM]


class TestClassifyIntent:
    """Tests for section-level intent scores."""

    def test_explicit_request_is_new_workstream(self, make_section):
        section = make_section("# Onboarding\nPlease add boundary detection in onboarding")
        intent, trace = classify_intent(section)
        assert intent.scores.new_workstream == 1.0
        assert intent.scores.plan_change == pytest.approx(0.4)
        assert intent.dominant_label() == IntentLabel.NEW_WORKSTREAM
        assert not intent.is_plan_change()

    def test_plan_change_clamps_calendar(self, make_section):
        intent, trace = classify_intent(make_section("Move launch to next week"))
        assert intent.scores.plan_change == pytest.approx(0.8)
        assert intent.scores.calendar == pytest.approx(0.3)
        assert trace.out_of_scope_clamped
        assert intent.is_plan_change()

    def test_scheduling_chatter_is_calendar(self, make_section):
        section = make_section("Schedule a sync meeting next Thursday with the design team")
        intent, _ = classify_intent(section)
        assert intent.scores.calendar == pytest.approx(0.9)
        assert intent.scores.actionable_signal == 0.0
        assert intent.scores.status_informational == pytest.approx(0.77)
        assert intent.dominant_label() == IntentLabel.CALENDAR

    def test_communication_markers_graduate(self, make_section):
        intent, _ = classify_intent(make_section("Send an email and ping Dana on Slack."))
        assert intent.scores.communication == pytest.approx(0.9)

    def test_research_cues(self, make_section):
        intent, _ = classify_intent(make_section("Investigate churn and interview five customers."))
        assert intent.scores.research == pytest.approx(0.5)
        assert intent.scores.out_of_scope_signal == 0.0

    def test_hedged_directive_never_plan_change(self, make_section):
        intent, trace = classify_intent(make_section("Let's rethink the empty state."))
        assert "hedged_directive" in [h.rule for h in trace.hits]
        assert intent.scores.new_workstream == pytest.approx(0.9)
        assert intent.scores.plan_change < intent.scores.new_workstream

    def test_decision_marker_sets_flag(self, make_section):
        intent, _ = classify_intent(make_section("We agreed to revisit pricing later."))
        assert intent.flags.force_decision_marker
        assert intent.is_plan_change()

    def test_role_assignment_sets_flag(self, make_section):
        section = make_section("## Release prep\nPM to update the launch checklist\nEng to fix the import bug")
        intent, _ = classify_intent(section)
        assert intent.flags.force_role_assignment
        assert intent.is_plan_change()

    def test_implicit_idea(self, make_section):
        section = make_section(
            "We need better alerts for failed imports so we can respond sooner.\n"
            "The import job runs every night.\n"
            "Customers noticed gaps last quarter."
        )
        intent, trace = classify_intent(section)
        assert "implicit_idea" in [h.rule for h in trace.hits]
        assert intent.scores.new_workstream == pytest.approx(0.61)

    def test_negated_line_contributes_nothing(self, make_section):
        intent, trace = classify_intent(make_section("Don't add dark mode to the dashboard."))
        assert intent.scores.actionable_signal == 0.0
        assert trace.negated_sentences

    def test_scores_are_bounded(self, make_section):
        section = make_section(
            "Please add search. Fix pagination. We should build alerts.\n"
            "Push the release to Q4 and email the team on Monday."
        )
        intent, _ = classify_intent(section)
        for _, score in intent.scores.items():
            assert 0.0 <= score <= 1.0


class TestCalendarMarkers:
    """Tests for date and scheduling detection."""

    @pytest.mark.parametrize("text", ["demo on may 12th", "ship by jan. 3", "review on sept 30"])
    def test_month_day_is_a_date(self, text):
        assert CALENDAR_DATE_PATTERN.search(text)

    @pytest.mark.parametrize("text", ["ship builds may 2x faster", "maybe 12 more", "dec 25k budget"])
    def test_month_word_before_other_tokens_is_not_a_date(self, text):
        assert not CALENDAR_DATE_PATTERN.search(text)

    @pytest.mark.parametrize("text", [
        "Maybe we need to add export for admins",
        "Push the reporting work to Q3, about ~2 sprints of effort",
        "Ship builds may 2x faster with the new cache",
    ])
    def test_no_calendar_score_without_dates(self, make_section, text):
        intent, trace = classify_intent(make_section(text))
        assert intent.scores.calendar == 0.0
        assert not [m for m in trace.out_of_scope_markers if m.startswith("calendar:")]

    def test_dated_line_scores_calendar(self, make_section):
        intent, _ = classify_intent(make_section("Demo the export on May 12th"))
        assert intent.scores.calendar == pytest.approx(0.6)


class TestIntentClassificationModel:
    """Tests for dominant label and plan-change protection."""

    def test_tie_resolves_to_plan_change(self):
        intent = IntentClassification(scores=IntentScores(plan_change=0.6, new_workstream=0.6))
        assert intent.dominant_label() == IntentLabel.PLAN_CHANGE

    def test_flags_force_plan_change(self):
        intent = IntentClassification(
            scores=IntentScores(new_workstream=0.9),
            flags=IntentFlags(force_role_assignment=True),
        )
        assert intent.is_plan_change()

    def test_research_is_not_out_of_scope(self):
        scores = IntentScores(research=0.7, calendar=0.2)
        assert scores.out_of_scope_signal == pytest.approx(0.2)
