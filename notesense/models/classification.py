"""Classification models: intent scores, actionability and type decisions."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from notesense.models.enums import IntentLabel, StructuralHint, SuggestionType
from notesense.models.note import Section


class IntentScores(BaseModel):
    """Fixed-shape record of the seven label scores, each in [0, 1]."""

    plan_change: float = Field(default=0.0, ge=0.0, le=1.0)
    new_workstream: float = Field(default=0.0, ge=0.0, le=1.0)
    status_informational: float = Field(default=0.0, ge=0.0, le=1.0)
    communication: float = Field(default=0.0, ge=0.0, le=1.0)
    research: float = Field(default=0.0, ge=0.0, le=1.0)
    calendar: float = Field(default=0.0, ge=0.0, le=1.0)
    micro_tasks: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)

    def get(self, label: IntentLabel) -> float:
        return getattr(self, label.value)

    def items(self) -> list[tuple[IntentLabel, float]]:
        """(label, score) pairs in label order."""
        return [(label, self.get(label)) for label in IntentLabel]

    @property
    def actionable_signal(self) -> float:
        return max(self.plan_change, self.new_workstream)

    @property
    def out_of_scope_signal(self) -> float:
        # research is excluded
        return max(self.calendar, self.communication, self.micro_tasks)


class IntentFlags(BaseModel):
    """Rule flags kept beside the label scores, never inside them."""

    force_role_assignment: bool = Field(default=False, serialization_alias="forceRoleAssignment")
    force_decision_marker: bool = Field(default=False, serialization_alias="forceDecisionMarker")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class IntentClassification(BaseModel):
    """Output of the intent classifier for one section."""

    scores: IntentScores = Field(default_factory=IntentScores)
    flags: IntentFlags = Field(default_factory=IntentFlags)

    model_config = ConfigDict(frozen=True)

    def dominant_label(self) -> IntentLabel:
        """Argmax over the seven labels; ties resolve to plan_change."""
        best_label = IntentLabel.PLAN_CHANGE
        best_score = self.scores.plan_change
        for label, score in self.scores.items():
            if score > best_score:
                best_label, best_score = label, score
        return best_label

    def is_plan_change(self) -> bool:
        """True when the section is protected as a plan change."""
        return (
            self.dominant_label() == IntentLabel.PLAN_CHANGE
            or self.flags.force_decision_marker
            or self.flags.force_role_assignment
        )


class ActionabilityResult(BaseModel):
    """Decision of the actionability gate for one section."""

    actionable: bool
    actionable_signal: float = Field(ge=0.0, le=1.0)
    out_of_scope_signal: float = Field(ge=0.0, le=1.0)
    reason: str = Field(description="Human-readable explanation of the decision")

    model_config = ConfigDict(frozen=True)


class ClassifiedSection(BaseModel):
    """A section together with every classification decision made about it."""

    section: Section
    intent: IntentClassification
    actionability: ActionabilityResult
    type_label: Optional[SuggestionType] = Field(
        None, description="Type implied by the intent scores alone"
    )
    suggested_type: Optional[SuggestionType] = Field(
        None, description="Final type after flag overrides; None when not actionable"
    )
    type_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    structural_hint: Optional[StructuralHint] = None

    model_config = ConfigDict(frozen=True)

    @property
    def section_id(self) -> str:
        return self.section.section_id

    @property
    def is_actionable(self) -> bool:
        return self.actionability.actionable
