"""Suggestion pipeline - deterministic note-to-suggestion stages.

Philosophy: "Plan changes are never silently dropped."

Usage:
    from notesense.pipeline import generate_suggestions

    result = generate_suggestions({"note_id": "n1", "raw_markdown": text})
    for suggestion in result.suggestions:
        print(suggestion.type, suggestion.title)
"""

from notesense.pipeline.evaluation import (
    EvaluationMetrics,
    NoteEvaluation,
    ThresholdSensitivity,
    analyze_threshold_sensitivity,
    evaluate_batch,
    evaluate_note,
    generate_report,
)
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.orchestrator import (
    generate_suggestions,
    get_section_count,
    has_actionable_content,
)

__all__ = [
    # Entry Points
    "generate_suggestions",
    "has_actionable_content",
    "get_section_count",
    "IdGenerator",
    # Evaluation
    "NoteEvaluation",
    "EvaluationMetrics",
    "ThresholdSensitivity",
    "evaluate_note",
    "evaluate_batch",
    "analyze_threshold_sensitivity",
    "generate_report",
]
