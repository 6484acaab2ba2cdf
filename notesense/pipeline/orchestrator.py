"""Suggestion Pipeline Orchestrator - Coordinates all pipeline stages.

Philosophy: "Plan changes are never silently dropped."

Stage Flow:
1. Preprocessing       → annotated lines and sections
2. Classification      → intent, actionability gate and type per section
3. Synthesis           → one candidate suggestion per actionable section
4. Validation          → evidence repair, anti-vacuity and evidence-length drops (ideas only)
5. Scoring             → confidence scores; accept / downgrade / drop; idea cap
6. Routing             → advisory initiative match

Every run is pure and single-threaded. Ids come from a per-run generator, so
repeated runs over the same note give identical output.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from notesense.config import GeneratorConfig, build_config
from notesense.config.thresholds import ConfigInput
from notesense.exceptions import InvalidNoteError, SuggestionEngineError
from notesense.models import (
    ClassifiedSection,
    DropStage,
    GeneratorResult,
    InitiativeSnapshot,
    NoteInput,
    Section,
    Suggestion,
    SuggestionAction,
    SuggestionType,
)
from notesense.pipeline.debug import DebugLedger
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.stages import (
    apply_confidence_processing,
    cap_suggestions,
    classify_section,
    filter_actionable_sections,
    preprocess_note,
    refine_suggestion_scores,
    route_suggestions,
    run_quality_validators,
    synthesize_suggestion,
)
from notesense.pipeline.stages.scoring import clarification_reasons
from notesense.pipeline.stages.validators import ANTI_VACUITY, EVIDENCE_SANITY

logger = structlog.get_logger(__name__)

NoteLike = Union[NoteInput, Mapping[str, Any]]


@dataclass
class GenerationState:
    """Mutable state threaded through the stages of one run."""
    note: NoteInput
    config: GeneratorConfig
    ids: IdGenerator
    ledger: DebugLedger = field(default_factory=DebugLedger)
    sections: list[Section] = field(default_factory=list)
    classified: list[ClassifiedSection] = field(default_factory=list)
    candidates: list[tuple[Suggestion, ClassifiedSection]] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)


# =============================================================================
# Boundary Validation
# =============================================================================

def _validate_note(note: NoteLike) -> NoteInput:
    if isinstance(note, NoteInput):
        return note
    if not isinstance(note, Mapping):
        raise InvalidNoteError(f"Expected NoteInput or mapping, got {type(note).__name__}")
    try:
        return NoteInput.model_validate(dict(note))
    except ValidationError as e:
        raise InvalidNoteError(f"Invalid note input: {e}") from e


def _validate_initiatives(
    initiatives: Optional[list[Union[InitiativeSnapshot, Mapping[str, Any]]]],
) -> list[InitiativeSnapshot]:
    if not initiatives:
        return []
    try:
        return [
            i if isinstance(i, InitiativeSnapshot) else InitiativeSnapshot.model_validate(dict(i))
            for i in initiatives
        ]
    except (ValidationError, TypeError, ValueError) as e:
        raise InvalidNoteError(f"Invalid initiative snapshot: {e}") from e


# =============================================================================
# Entry Point
# =============================================================================

def generate_suggestions(
    note: NoteLike,
    initiatives: Optional[list[Union[InitiativeSnapshot, Mapping[str, Any]]]] = None,
    config: ConfigInput = None,
) -> GeneratorResult:
    """Generate suggestions for a single note.

    Args:
        note: NoteInput or a mapping with note_id and raw_markdown.
        initiatives: Optional existing initiatives for advisory routing.
        config: GeneratorConfig, a partial override mapping, or None for defaults.

    Returns:
        GeneratorResult with suggestions and, when enabled, the debug ledger.

    Raises:
        InvalidNoteError: If the note or initiatives fail validation.
        InvalidConfigError: If the config fails validation.
        SuggestionEngineError: If a stage fails unexpectedly.
    """
    note = _validate_note(note)
    cfg = build_config(config)
    snapshots = _validate_initiatives(initiatives)

    state = GenerationState(note=note, config=cfg, ids=IdGenerator(note.note_id))
    logger.info("generation_start", note_id=note.note_id, chars=len(note.raw_markdown))

    try:
        state = _run_preprocessing(state)
        state = _run_classification(state)
        state = _run_synthesis(state)
        state = _run_validation(state)
        state = _run_scoring(state)
        state = _run_routing(state, snapshots)
        state = _check_plan_change_invariant(state)
    except SuggestionEngineError:
        raise
    except Exception as e:
        logger.error("generation_failed", note_id=note.note_id, error=str(e), type=type(e).__name__)
        raise SuggestionEngineError(f"Suggestion generation failed: {e}") from e

    info = state.ledger.info
    logger.info(
        "generation_complete",
        note_id=note.note_id,
        sections=info.sections_count,
        actionable_sections=info.actionable_sections_count,
        suggestions=len(state.suggestions),
        plan_changes=info.plan_change_count,
        downgraded=info.low_confidence_downgraded_count,
    )

    return GeneratorResult(
        suggestions=state.suggestions,
        debug=info if cfg.enable_debug else None,
    )


# =============================================================================
# Stages
# =============================================================================

def _run_preprocessing(state: GenerationState) -> GenerationState:
    """Stage 1: Annotate lines and build sections."""
    result = preprocess_note(state.note.raw_markdown, state.note.note_id, state.ids)
    state.sections = result.sections
    state.ledger.info.sections_count = len(result.sections)
    logger.debug("stage_1_complete", sections=len(result.sections))
    return state


def _run_classification(state: GenerationState) -> GenerationState:
    """Stage 2: Intent, actionability and type for every section."""
    for section in state.sections:
        classified, trace = classify_section(section, state.config.thresholds)
        state.classified.append(classified)
        state.ledger.record_classification(classified, trace)

    actionable = filter_actionable_sections(state.classified)
    state.ledger.info.actionable_sections_count = len(actionable)
    state.ledger.info.plan_change_count = sum(1 for c in state.classified if c.intent.is_plan_change())
    state.classified = actionable
    logger.debug("stage_2_complete", actionable=len(actionable))
    return state


def _run_synthesis(state: GenerationState) -> GenerationState:
    """Stage 3: One candidate per actionable section."""
    for classified in state.classified:
        suggestion = synthesize_suggestion(classified, state.ids)
        state.candidates.append((suggestion, classified))
        state.ledger.record_synthesis(suggestion)

    state.ledger.info.suggestions_before_validation = len(state.candidates)
    logger.debug("stage_3_complete", candidates=len(state.candidates))
    return state


def _run_validation(state: GenerationState) -> GenerationState:
    """Stage 4: Quality validators; project_updates always survive."""
    kept: list[tuple[Suggestion, ClassifiedSection]] = []
    for suggestion, classified in state.candidates:
        validated, failure = run_quality_validators(suggestion, classified, state.config.thresholds)
        if validated is not None:
            kept.append((validated, classified))
            continue

        if failure.validator == ANTI_VACUITY:
            state.ledger.info.v2_drops += 1
        elif failure.validator == EVIDENCE_SANITY:
            state.ledger.info.v3_drops += 1
        state.ledger.record_drop(suggestion, DropStage.VALIDATION, f"{failure.validator}: {failure.reason}")

    state.candidates = kept
    state.ledger.info.suggestions_after_validation = len(kept)
    logger.debug("stage_4_complete", kept=len(kept))
    return state


def _run_scoring(state: GenerationState) -> GenerationState:
    """Stage 5: Score, apply confidence processing, cap ideas."""
    thresholds = state.config.thresholds
    scored = [refine_suggestion_scores(s, c) for s, c in state.candidates]

    outcome = apply_confidence_processing(scored, thresholds)
    for suggestion, reason in outcome.dropped:
        state.ledger.record_drop(suggestion, DropStage.THRESHOLD, reason)

    kept, capped = cap_suggestions(outcome.passed, state.config.max_suggestions)
    for suggestion in capped:
        state.ledger.record_drop(
            suggestion, DropStage.CAP, f"Exceeded max_suggestions ({state.config.max_suggestions})"
        )

    info = state.ledger.info
    info.suggestions_after_scoring = len(outcome.passed)
    info.low_confidence_downgraded_count = outcome.downgraded
    info.high_confidence_count = sum(1 for s in kept if s.is_high_confidence)
    state.suggestions = kept
    logger.debug("stage_5_complete", passed=len(outcome.passed), final=len(kept))
    return state


def _run_routing(state: GenerationState, initiatives: list[InitiativeSnapshot]) -> GenerationState:
    """Stage 6: Advisory routing; never changes the suggestion set."""
    state.suggestions = route_suggestions(
        state.suggestions, initiatives, state.config.thresholds.T_attach
    )
    info = state.ledger.info
    info.routing_attached = sum(1 for s in state.suggestions if not s.routing.create_new)
    info.routing_create_new = sum(1 for s in state.suggestions if s.routing.create_new)
    return state


def _check_plan_change_invariant(state: GenerationState) -> GenerationState:
    """Every plan-change section must end up as exactly one project_update."""
    plan_sections = [c for c in state.classified if c.intent.is_plan_change()]
    emitted = {
        s.section_id for s in state.suggestions if s.type == SuggestionType.PROJECT_UPDATE
    }
    missing = [c for c in plan_sections if c.section_id not in emitted]

    info = state.ledger.info
    if missing:
        info.invariant_plan_change_always_emitted = False
        for classified in missing:
            logger.error("plan_change_not_emitted", section_id=classified.section_id)
            state.ledger.warn(
                "invariant", "plan-change section restored with fallback synthesis",
                section_id=classified.section_id,
            )
            state.suggestions.insert(0, _fallback_update(classified, state))

    info.plan_change_emitted_count = sum(
        1 for s in state.suggestions if s.type == SuggestionType.PROJECT_UPDATE
    )
    return state


def _fallback_update(classified: ClassifiedSection, state: GenerationState) -> Suggestion:
    classified = classified.model_copy(update={"suggested_type": SuggestionType.PROJECT_UPDATE})
    suggestion = refine_suggestion_scores(synthesize_suggestion(classified, state.ids), classified)
    return suggestion.model_copy(update={
        "needs_clarification": True,
        "clarification_reasons": clarification_reasons(suggestion, state.config.thresholds),
        "action": SuggestionAction.COMMENT,
    })


# =============================================================================
# Convenience Checks
# =============================================================================

def has_actionable_content(note: NoteLike, config: ConfigInput = None) -> bool:
    """True if any section of the note passes the actionability gate."""
    note = _validate_note(note)
    cfg = build_config(config)
    ids = IdGenerator(note.note_id)
    sections = preprocess_note(note.raw_markdown, note.note_id, ids).sections
    return any(classify_section(s, cfg.thresholds)[0].is_actionable for s in sections)


def get_section_count(note: NoteLike) -> int:
    """Number of sections the segmenter finds in a note."""
    note = _validate_note(note)
    return len(preprocess_note(note.raw_markdown, note.note_id, IdGenerator(note.note_id)).sections)
