"""Generator result and debug payload models."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from notesense.models.enums import DropStage, IntentLabel, SuggestionType
from notesense.models.suggestion import Suggestion


class RuleHitRecord(BaseModel):
    """One scoring rule that fired while classifying a section."""

    rule: str
    score: float
    family: str
    text: str = Field(default="", description="Sentence or line that triggered the rule")


class SectionDebug(BaseModel):
    """Per-section decision trace."""

    section_id: str
    heading: str
    num_lines: int = 0
    scores: dict[IntentLabel, float] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    rule_hits: list[RuleHitRecord] = Field(default_factory=list)
    actionable_signal: float = 0.0
    out_of_scope_signal: float = 0.0
    is_actionable: bool = False
    is_plan_change: bool = False
    actionability_reason: str = ""
    suggested_type: Optional[SuggestionType] = None
    synthesis_strategy: Optional[str] = None
    emitted_suggestion_id: Optional[str] = None
    drop_stage: Optional[DropStage] = None
    drop_reason: Optional[str] = None


class DroppedSuggestion(BaseModel):
    """A candidate that did not make it into the final output."""

    section_id: str
    title: str
    type: SuggestionType
    stage: DropStage
    reason: str


class GeneratorDebugInfo(BaseModel):
    """Deterministic side channel describing how a run reached its output."""

    sections_count: int = 0
    actionable_sections_count: int = 0
    suggestions_before_validation: int = 0
    v2_drops: int = Field(default=0, description="Anti-vacuity validator drops")
    v3_drops: int = Field(default=0, description="Evidence-sanity validator drops")
    suggestions_after_validation: int = 0
    suggestions_after_scoring: int = 0
    routing_attached: int = 0
    routing_create_new: int = 0
    plan_change_count: int = 0
    plan_change_emitted_count: int = 0
    low_confidence_downgraded_count: int = 0
    high_confidence_count: int = 0
    invariant_plan_change_always_emitted: bool = True
    dropped_suggestions: list[DroppedSuggestion] = Field(default_factory=list)
    sections: list[SectionDebug] = Field(default_factory=list)
    warnings: list[dict[str, Any]] = Field(default_factory=list)


class GeneratorResult(BaseModel):
    """Final output of a generation run."""

    suggestions: list[Suggestion] = Field(default_factory=list)
    debug: Optional[GeneratorDebugInfo] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "suggestions": [s.to_payload() for s in self.suggestions],
        }
        if self.debug is not None:
            payload["debug"] = self.debug.model_dump(mode="json")
        return payload
