"""Stage 5: Type Classification.

Rules:
- Force flags or a dominant plan_change label → project_update
- Everything else that passed the gate → idea, with a structural hint:
  prose bodies are feature requests, bulleted bodies are execution artifacts

Also hosts classify_section(), which runs intent, gate and type for one section.
"""

import re
from dataclasses import dataclass

import structlog

from notesense.config import ThresholdConfig
from notesense.models import (
    ClassifiedSection,
    IntentClassification,
    Section,
    StructuralHint,
    SuggestionType,
)
from notesense.pipeline.stages.actionability import enforce_plan_change_protection, evaluate_actionability
from notesense.pipeline.stages.intent import IntentTrace, classify_intent

logger = structlog.get_logger(__name__)


PLAN_MUTATION_PATTERNS = [
    re.compile(r"\b(narrow|expand|shift|reframe|reprioritize|defer|adjust|revise|update)\b", re.I),
    re.compile(r"\b(current|existing|today's|our\s+current|the\s+current)\b", re.I),
    re.compile(r"\b(from\s+.+\s+to|instead of|rather than|no longer|previously)\b", re.I),
    re.compile(r"\b(descope|add to|remove from|in scope|out of scope)\b", re.I),
]

EXECUTION_ARTIFACT_PATTERNS = [
    re.compile(r"\b(new|launch|spin up|kick off|create|build|start|introduce)\b", re.I),
    re.compile(r"\b(initiative|project|workstream|program|effort|track)\b", re.I),
    re.compile(r"\b(objective|goal|mission)\s*:", re.I),
    re.compile(r"\b(from scratch|greenfield|net new|brand new)\b", re.I),
]

FORCED_TYPE_MIN_CONFIDENCE = 0.3


@dataclass
class TypeDecision:
    """Inspectable result of type classification."""
    type_label: SuggestionType
    structural_hint: StructuralHint
    confidence: float
    p_mutation: float
    p_artifact: float


def _signal_strength(text: str, patterns: list[re.Pattern]) -> float:
    matches = sum(1 for p in patterns if p.search(text))
    return min(1.0, matches / max(1.0, len(patterns) * 0.3))


def classify_type(section: Section, intent: IntentClassification) -> TypeDecision:
    """Pick idea vs project_update for a section."""
    text = f"{section.heading_text or ''} {section.raw_text}"

    p_mutation = _signal_strength(text, PLAN_MUTATION_PATTERNS) + intent.scores.plan_change * 0.3
    p_artifact = _signal_strength(text, EXECUTION_ARTIFACT_PATTERNS) + intent.scores.new_workstream * 0.3
    if intent.flags.force_decision_marker or intent.flags.force_role_assignment:
        p_mutation = max(p_mutation, 0.8)
    p_mutation = min(1.0, p_mutation)
    p_artifact = min(1.0, p_artifact)

    if intent.is_plan_change():
        type_label = SuggestionType.PROJECT_UPDATE
        hint = StructuralHint.PROJECT_UPDATE
        margin = p_mutation - p_artifact
    else:
        type_label = SuggestionType.IDEA
        if section.structural_features.num_list_items > 0:
            hint = StructuralHint.EXECUTION_ARTIFACT
        else:
            hint = StructuralHint.FEATURE_REQUEST
        margin = p_artifact - p_mutation

    confidence = min(1.0, max(FORCED_TYPE_MIN_CONFIDENCE, 0.5 + margin))

    return TypeDecision(
        type_label=type_label,
        structural_hint=hint,
        confidence=round(confidence, 4),
        p_mutation=round(p_mutation, 4),
        p_artifact=round(p_artifact, 4),
    )


def classify_section(
    section: Section,
    thresholds: ThresholdConfig,
) -> tuple[ClassifiedSection, IntentTrace]:
    """Run intent classification, the actionability gate and type assignment.

    Args:
        section: Segmented section.
        thresholds: Active thresholds.

    Returns:
        Tuple of (ClassifiedSection, IntentTrace).
    """
    intent, trace = classify_intent(section)
    actionability = evaluate_actionability(section, intent, thresholds)
    actionability = enforce_plan_change_protection(intent, actionability, section.section_id)

    decision = classify_type(section, intent)
    suggested_type = decision.type_label if actionability.actionable else None

    classified = ClassifiedSection(
        section=section,
        intent=intent,
        actionability=actionability,
        type_label=decision.type_label,
        suggested_type=suggested_type,
        type_confidence=decision.confidence,
        structural_hint=decision.structural_hint,
    )

    logger.debug(
        "section_classified",
        section_id=section.section_id,
        actionable=actionability.actionable,
        suggested_type=suggested_type.value if suggested_type else None,
        reason=actionability.reason,
    )
    return classified, trace


def filter_actionable_sections(sections: list[ClassifiedSection]) -> list[ClassifiedSection]:
    """Actionable sections, with plan-change sections always included."""
    kept = []
    for classified in sections:
        if classified.is_actionable:
            kept.append(classified)
        elif classified.intent.is_plan_change():
            logger.error("plan_change_section_not_actionable", section_id=classified.section_id)
            kept.append(classified.model_copy(update={
                "actionability": enforce_plan_change_protection(
                    classified.intent, classified.actionability, classified.section_id
                ),
                "suggested_type": SuggestionType.PROJECT_UPDATE,
            }))
    return kept
