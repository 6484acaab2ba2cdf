"""Stage 8: Scoring and Confidence-Based Processing.

Scores:
- section_actionability: action signal minus out-of-scope noise, with structural boosts
- type_choice_confidence: margin between the plan_change and new_workstream scores
- synthesis_confidence: how well title/body are grounded in the section and evidence
- overall: minimum of the three

Processing:
- project_update: never dropped; low confidence → needs_clarification + comment action
- idea: dropped below T_section_min or T_overall_min
- the max_suggestions cap applies to ideas only
"""

import re
from dataclasses import dataclass, field

import structlog

from notesense.config import ThresholdConfig
from notesense.models import (
    ClarificationReason,
    ClassifiedSection,
    Section,
    Suggestion,
    SuggestionAction,
    SuggestionScores,
    SuggestionType,
)
from notesense.pipeline.text import words

logger = structlog.get_logger(__name__)

OWNER_PATTERN = re.compile(r"\b(?:owner|lead|responsible)\s*:\s*\w+", re.IGNORECASE)
DUE_PATTERN = re.compile(r"\b(?:by|due|deadline)\s*:\s*\d+", re.IGNORECASE)


def _clamp(value: float) -> float:
    return round(max(0.0, min(1.0, value)), 4)


def compute_section_actionability(classified: ClassifiedSection) -> float:
    scores = classified.intent.scores
    noise = max(scores.communication, scores.research, scores.calendar, scores.micro_tasks)
    score = scores.actionable_signal - noise * 0.3

    features = classified.section.structural_features
    if features.has_quarter_refs or features.has_version_refs:
        score += 0.1
    if features.has_launch_keywords:
        score += 0.15
    if features.num_lines <= 2:
        score -= 0.15
    return _clamp(score)


def compute_type_choice_confidence(classified: ClassifiedSection) -> float:
    scores = classified.intent.scores
    margin = abs(scores.plan_change - scores.new_workstream)
    max_prob = max(scores.plan_change, scores.new_workstream)

    confidence = 0.5 + margin * 0.5
    if max_prob < 0.3:
        confidence -= 0.2
    if margin < 0.1:
        confidence -= 0.15
    if max_prob > 0.7 and margin > 0.3:
        confidence += 0.1
    return _clamp(confidence)


def _long_words(text: str) -> list[str]:
    return [w for w in words(text) if len(w) > 3]


def compute_synthesis_confidence(suggestion: Suggestion, section: Section) -> float:
    """Penalise text that is not grounded in the section or its evidence."""
    confidence = 0.7
    section_text = section.raw_text
    suggestion_text = f"{suggestion.title} {suggestion.body}"

    section_words = set(_long_words(section_text))
    suggestion_words = _long_words(suggestion_text)
    if suggestion_words:
        overlap = sum(1 for w in suggestion_words if w in section_words) / len(suggestion_words)
    else:
        overlap = 0.0

    if overlap > 0.5:
        confidence += 0.15
    elif overlap < 0.2:
        confidence -= 0.2

    # invented owners or due dates
    if OWNER_PATTERN.search(suggestion_text) and not OWNER_PATTERN.search(section_text):
        confidence -= 0.1
    if DUE_PATTERN.search(suggestion_text) and not DUE_PATTERN.search(section_text):
        confidence -= 0.1

    evidence_words = set(_long_words(" ".join(span.text for span in suggestion.evidence_spans)))
    if suggestion_words:
        coverage = sum(1 for w in suggestion_words if w in evidence_words) / len(suggestion_words)
    else:
        coverage = 0.0
    if coverage < 0.2:
        confidence -= 0.15

    return _clamp(confidence)


def refine_suggestion_scores(suggestion: Suggestion, classified: ClassifiedSection) -> Suggestion:
    """Attach computed scores to a suggestion."""
    section_actionability = compute_section_actionability(classified)
    type_choice = compute_type_choice_confidence(classified)
    synthesis = compute_synthesis_confidence(suggestion, classified.section)

    scores = SuggestionScores(
        section_actionability=section_actionability,
        type_choice_confidence=type_choice,
        synthesis_confidence=synthesis,
        overall=min(section_actionability, type_choice, synthesis),
    )
    return suggestion.model_copy(update={"scores": scores})


def is_high_confidence(suggestion: Suggestion, thresholds: ThresholdConfig) -> bool:
    return (
        suggestion.scores.section_actionability >= thresholds.T_section_min
        and suggestion.scores.overall >= thresholds.T_overall_min
    )


def clarification_reasons(suggestion: Suggestion, thresholds: ThresholdConfig) -> list[ClarificationReason]:
    reasons = []
    if suggestion.scores.section_actionability < thresholds.T_section_min:
        reasons.append(ClarificationReason.LOW_ACTIONABILITY_SCORE)
    if suggestion.scores.overall < thresholds.T_overall_min:
        reasons.append(ClarificationReason.LOW_OVERALL_SCORE)
    return reasons


def threshold_failure(suggestion: Suggestion, thresholds: ThresholdConfig) -> str | None:
    """Reason an idea misses the thresholds, or None when it passes."""
    if suggestion.scores.overall < thresholds.T_overall_min:
        return f"Overall score {suggestion.scores.overall:.2f} < T_overall_min {thresholds.T_overall_min}"
    if suggestion.scores.section_actionability < thresholds.T_section_min:
        return (
            f"Section actionability {suggestion.scores.section_actionability:.2f} "
            f"< T_section_min {thresholds.T_section_min}"
        )
    return None


@dataclass
class ConfidenceOutcome:
    """Result of confidence-based processing."""
    passed: list[Suggestion] = field(default_factory=list)
    dropped: list[tuple[Suggestion, str]] = field(default_factory=list)
    downgraded: int = 0


def apply_confidence_processing(
    suggestions: list[Suggestion],
    thresholds: ThresholdConfig,
) -> ConfidenceOutcome:
    """Accept, downgrade or drop each scored suggestion."""
    outcome = ConfidenceOutcome()

    for suggestion in suggestions:
        high = is_high_confidence(suggestion, thresholds)

        if suggestion.type == SuggestionType.PROJECT_UPDATE:
            if high:
                outcome.passed.append(suggestion.model_copy(update={"is_high_confidence": True}))
                continue
            outcome.downgraded += 1
            outcome.passed.append(suggestion.model_copy(update={
                "is_high_confidence": False,
                "needs_clarification": True,
                "clarification_reasons": clarification_reasons(suggestion, thresholds),
                "action": SuggestionAction.COMMENT,
            }))
            logger.debug(
                "plan_change_downgraded",
                suggestion_id=suggestion.suggestion_id,
                overall=suggestion.scores.overall,
            )
            continue

        failure = threshold_failure(suggestion, thresholds)
        if failure:
            outcome.dropped.append((suggestion, failure))
            continue
        outcome.passed.append(suggestion.model_copy(update={"is_high_confidence": True}))

    return outcome


def ranking_score(suggestion: Suggestion) -> float:
    """Sort key for display: overall score with a small bonus for confident items."""
    return suggestion.scores.overall + (0.05 if suggestion.is_high_confidence else 0.0)


def cap_suggestions(
    suggestions: list[Suggestion],
    max_suggestions: int,
) -> tuple[list[Suggestion], list[Suggestion]]:
    """Keep every project_update plus the best ideas up to the cap.

    Returns:
        Tuple of (kept, capped_out). project_updates come first, each group in
        descending overall score with note order breaking ties.
    """
    order = {s.suggestion_id: i for i, s in enumerate(suggestions)}

    def key(s: Suggestion) -> tuple[float, int]:
        return (-s.scores.overall, order[s.suggestion_id])

    updates = sorted((s for s in suggestions if s.type == SuggestionType.PROJECT_UPDATE), key=key)
    ideas = sorted((s for s in suggestions if s.type == SuggestionType.IDEA), key=key)

    return updates + ideas[:max_suggestions], ideas[max_suggestions:]
