"""Unit tests for advisory initiative routing."""

from notesense.models import InitiativeSnapshot
from notesense.pipeline.stages.routing import initiative_similarity, route_suggestions


class TestRouting:
    """Tests for route_suggestions."""

    def test_no_initiatives_means_create_new(self, make_suggestion):
        routed = route_suggestions([make_suggestion()], None, 0.8)
        assert routed[0].routing.create_new
        assert routed[0].routing.target_initiative_id is None

    def test_matching_initiative_attached(self, make_suggestion):
        suggestion = make_suggestion(title="Add boundary detection in onboarding")
        initiatives = [
            InitiativeSnapshot(id="init_billing", title="Billing export"),
            InitiativeSnapshot(id="init_onboarding", title="Boundary detection in onboarding"),
        ]
        routed = route_suggestions([suggestion], initiatives, 0.8)
        assert not routed[0].routing.create_new
        assert routed[0].routing.target_initiative_id == "init_onboarding"
        assert routed[0].routing.similarity == 1.0

    def test_weak_match_stays_create_new(self, make_suggestion):
        suggestion = make_suggestion(title="Add boundary detection in onboarding")
        initiatives = [InitiativeSnapshot(id="init_billing", title="Quarterly billing reconciliation")]
        routed = route_suggestions([suggestion], initiatives, 0.8)
        assert routed[0].routing.create_new
        assert (routed[0].routing.similarity or 0.0) < 0.8

    def test_routing_keeps_order_and_count(self, make_suggestion):
        suggestions = [make_suggestion(title=t) for t in ("Add SSO", "Fix search", "Add exports")]
        initiatives = [InitiativeSnapshot(id="i1", title="Search")]
        routed = route_suggestions(suggestions, initiatives, 0.8)
        assert [s.suggestion_id for s in routed] == [s.suggestion_id for s in suggestions]

    def test_similarity_is_unit_interval(self, make_suggestion):
        score = initiative_similarity(
            make_suggestion(title="Add SSO"),
            InitiativeSnapshot(id="i1", title="Single sign-on", description="SSO for enterprise"),
        )
        assert 0.0 <= score <= 1.0
