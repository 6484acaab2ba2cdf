"""Stage 4: Actionability Gate.

Order of evaluation:
1. Plan-change protection (dominant plan_change or a force flag): always actionable
2. Out-of-scope dominance: drop only when oos is both high and far ahead
3. Actionable signal threshold (inclusive)
4. Borderline safeguard for short sections

Raising T_action can only shrink the actionable set.
"""

import structlog

from notesense.config import OOS_DOMINANCE_FLOOR, OOS_DOMINANCE_GAP, ThresholdConfig
from notesense.models import ActionabilityResult, IntentClassification, Section

logger = structlog.get_logger(__name__)

BORDERLINE_MAX_LINES = 3
BORDERLINE_MARGIN = 0.1

REASON_PLAN_CHANGE = "plan change protected"
REASON_OOS_DOMINANCE = "out-of-scope dominance"
REASON_SIGNAL_TOO_LOW = "action signal too low"
REASON_BORDERLINE = "insufficient content for borderline signal"
REASON_ACTIONABLE = "action signal above threshold"


def evaluate_actionability(
    section: Section,
    intent: IntentClassification,
    thresholds: ThresholdConfig,
) -> ActionabilityResult:
    """Decide whether a section is actionable.

    Args:
        section: Segmented section (its line count feeds the borderline check).
        intent: Intent classification for the section.
        thresholds: Active thresholds.

    Returns:
        ActionabilityResult with a human-readable reason.
    """
    signal = intent.scores.actionable_signal
    oos = intent.scores.out_of_scope_signal

    def result(actionable: bool, reason: str) -> ActionabilityResult:
        return ActionabilityResult(
            actionable=actionable,
            actionable_signal=signal,
            out_of_scope_signal=oos,
            reason=reason,
        )

    if intent.is_plan_change():
        return result(True, f"{REASON_PLAN_CHANGE} (signal {signal:.2f})")

    if oos >= thresholds.T_out_of_scope:
        if oos >= OOS_DOMINANCE_FLOOR and oos - signal >= OOS_DOMINANCE_GAP:
            return result(
                False,
                f"{REASON_OOS_DOMINANCE}: out-of-scope {oos:.2f} vs action {signal:.2f}",
            )

    if signal < thresholds.T_action:
        return result(False, f"{REASON_SIGNAL_TOO_LOW}: {signal:.2f} < {thresholds.T_action:.2f}")

    num_lines = section.structural_features.num_lines
    if num_lines <= BORDERLINE_MAX_LINES and signal - thresholds.T_action < BORDERLINE_MARGIN:
        return result(
            False,
            f"{REASON_BORDERLINE}: {signal:.2f} within {BORDERLINE_MARGIN} of "
            f"{thresholds.T_action:.2f} over {num_lines} line(s)",
        )

    return result(True, f"{REASON_ACTIONABLE}: {signal:.2f} >= {thresholds.T_action:.2f}")


def enforce_plan_change_protection(
    intent: IntentClassification,
    actionability: ActionabilityResult,
    section_id: str,
) -> ActionabilityResult:
    """Re-mark a plan-change section as actionable if anything upstream dropped it."""
    if actionability.actionable or not intent.is_plan_change():
        return actionability

    logger.error(
        "plan_change_protection_violated",
        section_id=section_id,
        reason=actionability.reason,
    )
    return actionability.model_copy(
        update={"actionable": True, "reason": f"{REASON_PLAN_CHANGE} (restored)"}
    )
