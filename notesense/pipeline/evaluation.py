"""Offline evaluation harness.

Runs the generator over a batch of notes with debug enabled and aggregates
validator drops, score drops, routing decisions and scores. Used for
threshold tuning; never part of a generation run.
"""

from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, Field

from notesense.config import GeneratorConfig, ThresholdConfig, build_config
from notesense.config.thresholds import ConfigInput
from notesense.exceptions import InvalidConfigError
from notesense.models import InitiativeSnapshot, NoteInput, Suggestion
from notesense.pipeline.orchestrator import NoteLike, generate_suggestions
from notesense.pipeline.stages.validators import ANTI_VACUITY, EVIDENCE_SANITY

logger = structlog.get_logger(__name__)

SENSITIVITY_DROP_RATIO = 0.3

InitiativeList = Optional[Sequence[Union[InitiativeSnapshot, Mapping[str, Any]]]]


class NoteEvaluation(BaseModel):
    """Funnel counts for a single note."""

    note_id: str
    raw_length: int
    sections_count: int
    actionable_sections: int
    suggestions_generated: int
    suggestions_after_validation: int
    suggestions_final: int
    v2_drops: int
    v3_drops: int
    score_drops: int
    routing_attached: int
    routing_create_new: int
    avg_overall_score: float
    suggestions: list[Suggestion] = Field(default_factory=list)


class EvaluationMetrics(BaseModel):
    """Aggregate metrics over a batch of notes."""

    total_notes: int = 0
    total_sections: int = 0
    total_actionable_sections: int = 0
    total_suggestions_before_validation: int = 0
    total_v2_drops: int = 0
    total_v3_drops: int = 0
    total_score_drops: int = 0
    total_suggestions_final: int = 0
    avg_suggestions_per_note: float = 0.0
    notes_with_zero_suggestions: int = 0
    notes_with_zero_suggestions_pct: float = 0.0
    total_routing_attached: int = 0
    total_routing_create_new: int = 0
    attach_ratio: float = 0.0
    avg_overall_score: float = 0.0
    validator_drop_reasons: dict[str, int] = Field(default_factory=dict)


class ThresholdSensitivity(BaseModel):
    """Final suggestion counts across a sweep of one threshold."""

    threshold_name: str
    values: list[float]
    suggestions_counts: list[int]
    recommendation: Optional[str] = None


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def evaluate_note(
    note: NoteLike,
    initiatives: InitiativeList = None,
    config: ConfigInput = None,
) -> NoteEvaluation:
    """Run one note with debug enabled and summarise the funnel."""
    cfg = build_config(config).model_copy(update={"enable_debug": True})
    result = generate_suggestions(note, list(initiatives or []), cfg)
    debug = result.debug
    note_id = note.note_id if isinstance(note, NoteInput) else note["note_id"]
    raw = note.raw_markdown if isinstance(note, NoteInput) else note["raw_markdown"]

    return NoteEvaluation(
        note_id=note_id,
        raw_length=len(raw),
        sections_count=debug.sections_count,
        actionable_sections=debug.actionable_sections_count,
        suggestions_generated=debug.suggestions_before_validation,
        suggestions_after_validation=debug.suggestions_after_validation,
        suggestions_final=len(result.suggestions),
        v2_drops=debug.v2_drops,
        v3_drops=debug.v3_drops,
        score_drops=debug.suggestions_after_validation - debug.suggestions_after_scoring,
        routing_attached=sum(1 for s in result.suggestions if not s.routing.create_new),
        routing_create_new=sum(1 for s in result.suggestions if s.routing.create_new),
        avg_overall_score=_mean([s.scores.overall for s in result.suggestions]),
        suggestions=result.suggestions,
    )


def evaluate_batch(
    notes: Sequence[NoteLike],
    initiatives: InitiativeList = None,
    config: ConfigInput = None,
) -> tuple[list[NoteEvaluation], EvaluationMetrics]:
    """Evaluate every note and aggregate the results.

    Returns:
        Tuple of (per-note evaluations, aggregate metrics).
    """
    evaluations = [evaluate_note(note, initiatives, config) for note in notes]

    total_final = sum(e.suggestions_final for e in evaluations)
    total_attached = sum(e.routing_attached for e in evaluations)
    zero = sum(1 for e in evaluations if e.suggestions_final == 0)
    scores = [s.scores.overall for e in evaluations for s in e.suggestions]

    drop_reasons: Counter[str] = Counter()
    for e in evaluations:
        if e.v2_drops:
            drop_reasons[ANTI_VACUITY] += e.v2_drops
        if e.v3_drops:
            drop_reasons[EVIDENCE_SANITY] += e.v3_drops

    n = len(evaluations)
    metrics = EvaluationMetrics(
        total_notes=n,
        total_sections=sum(e.sections_count for e in evaluations),
        total_actionable_sections=sum(e.actionable_sections for e in evaluations),
        total_suggestions_before_validation=sum(e.suggestions_generated for e in evaluations),
        total_v2_drops=sum(e.v2_drops for e in evaluations),
        total_v3_drops=sum(e.v3_drops for e in evaluations),
        total_score_drops=sum(e.score_drops for e in evaluations),
        total_suggestions_final=total_final,
        avg_suggestions_per_note=total_final / n if n else 0.0,
        notes_with_zero_suggestions=zero,
        notes_with_zero_suggestions_pct=zero / n * 100 if n else 0.0,
        total_routing_attached=total_attached,
        total_routing_create_new=sum(e.routing_create_new for e in evaluations),
        attach_ratio=total_attached / total_final if total_final else 0.0,
        avg_overall_score=_mean(scores),
        validator_drop_reasons=dict(drop_reasons),
    )

    logger.info("batch_evaluated", notes=n, suggestions=total_final, zero_suggestion_notes=zero)
    return evaluations, metrics


def analyze_threshold_sensitivity(
    notes: Sequence[NoteLike],
    threshold_name: str,
    values: Sequence[float],
    initiatives: InitiativeList = None,
    config: ConfigInput = None,
) -> ThresholdSensitivity:
    """Sweep one threshold and report final suggestion counts per value.

    The recommendation points at the first value where the count falls by
    more than 30% relative to the previous value.
    """
    if threshold_name not in ThresholdConfig.model_fields:
        raise InvalidConfigError(f"Unknown threshold: {threshold_name}")

    base: GeneratorConfig = build_config(config)
    counts: list[int] = []
    for value in values:
        swept = build_config({"thresholds": {threshold_name: value}}, base=base)
        _, metrics = evaluate_batch(notes, initiatives, swept)
        counts.append(metrics.total_suggestions_final)

    recommendation = None
    for i in range(1, len(counts)):
        previous = counts[i - 1]
        drop_ratio = (previous - counts[i]) / previous if previous > 0 else 0.0
        if drop_ratio > SENSITIVITY_DROP_RATIO:
            recommendation = (
                f"Consider setting {threshold_name} around {values[i]} (significant drop at this point)"
            )
            break

    return ThresholdSensitivity(
        threshold_name=threshold_name,
        values=list(values),
        suggestions_counts=counts,
        recommendation=recommendation,
    )


def generate_report(metrics: EvaluationMetrics) -> str:
    """Render aggregate metrics as a plain-text report."""
    lines = [
        "=== Suggestion Evaluation Report ===",
        "",
        "## Overview",
        f"- Total notes evaluated: {metrics.total_notes}",
        f"- Total sections detected: {metrics.total_sections}",
        f"- Actionable sections: {metrics.total_actionable_sections}",
        "",
        "## Pipeline Metrics",
        f"- Suggestions before validation: {metrics.total_suggestions_before_validation}",
        f"- V2 (anti-vacuity) drops: {metrics.total_v2_drops}",
        f"- V3 (evidence-sanity) drops: {metrics.total_v3_drops}",
        f"- Score threshold drops: {metrics.total_score_drops}",
        f"- Final suggestions: {metrics.total_suggestions_final}",
        "",
        "## Output Quality",
        f"- Average suggestions per note: {metrics.avg_suggestions_per_note:.2f}",
        f"- Notes with zero suggestions: {metrics.notes_with_zero_suggestions} "
        f"({metrics.notes_with_zero_suggestions_pct:.1f}%)",
        f"- Average overall score: {metrics.avg_overall_score:.3f}",
        "",
        "## Routing",
        f"- Suggestions attached to initiatives: {metrics.total_routing_attached}",
        f"- Suggestions marked create_new: {metrics.total_routing_create_new}",
        f"- Attach ratio: {metrics.attach_ratio * 100:.1f}%",
        "",
        "## Validator Drop Breakdown",
    ]
    for validator, count in metrics.validator_drop_reasons.items():
        lines.append(f"- {validator}: {count}")
    lines.extend(["", "=== End Report ==="])
    return "\n".join(lines)
