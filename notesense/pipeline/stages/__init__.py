"""Pipeline stages - each stage has a single focused responsibility."""

from notesense.pipeline.stages.actionability import evaluate_actionability
from notesense.pipeline.stages.features import compute_structural_features
from notesense.pipeline.stages.intent import classify_intent
from notesense.pipeline.stages.routing import route_suggestions
from notesense.pipeline.stages.scoring import (
    apply_confidence_processing,
    cap_suggestions,
    refine_suggestion_scores,
)
from notesense.pipeline.stages.segmentation import preprocess_note, serialize_sections
from notesense.pipeline.stages.synthesis import synthesize_suggestion
from notesense.pipeline.stages.type_classifier import (
    classify_section,
    classify_type,
    filter_actionable_sections,
)
from notesense.pipeline.stages.validators import run_quality_validators

__all__ = [
    "apply_confidence_processing",
    "cap_suggestions",
    "classify_intent",
    "classify_section",
    "classify_type",
    "compute_structural_features",
    "evaluate_actionability",
    "filter_actionable_sections",
    "preprocess_note",
    "refine_suggestion_scores",
    "route_suggestions",
    "run_quality_validators",
    "serialize_sections",
    "synthesize_suggestion",
]
