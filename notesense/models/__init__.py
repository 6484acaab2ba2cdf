"""Pydantic models for the note-to-suggestion pipeline."""

from notesense.models.classification import (
    ActionabilityResult,
    ClassifiedSection,
    IntentClassification,
    IntentFlags,
    IntentScores,
)
from notesense.models.enums import (
    ClarificationReason,
    DropStage,
    IntentLabel,
    LineType,
    NoteSource,
    StructuralHint,
    SuggestionAction,
    SuggestionType,
)
from notesense.models.note import (
    InitiativeSnapshot,
    Line,
    NoteInput,
    PreprocessingResult,
    Section,
    StructuralFeatures,
)
from notesense.models.result import (
    DroppedSuggestion,
    GeneratorDebugInfo,
    GeneratorResult,
    RuleHitRecord,
    SectionDebug,
)
from notesense.models.suggestion import (
    EvidenceSpan,
    Suggestion,
    SuggestionRouting,
    SuggestionScores,
)

__all__ = [
    # Enums
    "ClarificationReason",
    "DropStage",
    "IntentLabel",
    "LineType",
    "NoteSource",
    "StructuralHint",
    "SuggestionAction",
    "SuggestionType",
    # Inputs and segmentation
    "InitiativeSnapshot",
    "Line",
    "NoteInput",
    "PreprocessingResult",
    "Section",
    "StructuralFeatures",
    # Classification
    "ActionabilityResult",
    "ClassifiedSection",
    "IntentClassification",
    "IntentFlags",
    "IntentScores",
    # Suggestions
    "EvidenceSpan",
    "Suggestion",
    "SuggestionRouting",
    "SuggestionScores",
    # Results
    "DroppedSuggestion",
    "GeneratorDebugInfo",
    "GeneratorResult",
    "RuleHitRecord",
    "SectionDebug",
]
