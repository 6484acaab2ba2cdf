"""Suggestion models emitted by the synthesis and scoring stages."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from notesense.models.enums import (
    ClarificationReason,
    StructuralHint,
    SuggestionAction,
    SuggestionType,
)


class EvidenceSpan(BaseModel):
    """Verbatim excerpt of the note backing a suggestion."""

    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    text: str = Field(description="Verbatim note text covered by the span")

    model_config = ConfigDict(frozen=True)


class SuggestionScores(BaseModel):
    """Confidence scores; overall is the minimum of the other three."""

    section_actionability: float = Field(default=0.0, ge=0.0, le=1.0)
    type_choice_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    synthesis_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    overall: float = Field(default=0.0, ge=0.0, le=1.0)


class SuggestionRouting(BaseModel):
    """Advisory routing hint toward an existing initiative."""

    create_new: bool = True
    target_initiative_id: Optional[str] = None
    similarity: Optional[float] = Field(None, ge=0.0, le=1.0)


class Suggestion(BaseModel):
    """A single actionable suggestion derived from one note section."""

    suggestion_id: str = Field(description="Run-scoped id, e.g. 'sug_note1234_1'")
    suggestion_key: str = Field(description="Stable key for deduplication across regenerations")
    note_id: str
    section_id: str
    type: SuggestionType
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    evidence_spans: list[EvidenceSpan] = Field(min_length=1)
    evidence_preview: list[str] = Field(
        default_factory=list, serialization_alias="evidencePreview"
    )
    source_section_id: str = Field(serialization_alias="sourceSectionId")
    source_heading: str = Field(serialization_alias="sourceHeading")
    structural_hint: Optional[StructuralHint] = None
    synthesis_strategy: str = Field(description="Name of the synthesis strategy that fired")
    scores: SuggestionScores = Field(default_factory=SuggestionScores)
    routing: SuggestionRouting = Field(default_factory=SuggestionRouting)
    action: SuggestionAction = SuggestionAction.CREATE
    is_high_confidence: bool = False
    needs_clarification: bool = False
    clarification_reasons: list[ClarificationReason] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using the external field names."""
        return self.model_dump(mode="json", by_alias=True)
