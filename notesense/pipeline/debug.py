"""Debug ledger: a side channel recording how a run reached its output.

The ledger is always populated so that results are identical with debug on
or off; the orchestrator only attaches it to the result when asked.
"""

from typing import Any, Optional

from notesense.models import (
    ClassifiedSection,
    DropStage,
    DroppedSuggestion,
    GeneratorDebugInfo,
    RuleHitRecord,
    SectionDebug,
    Suggestion,
)
from notesense.pipeline.stages.intent import IntentTrace


class DebugLedger:
    """Accumulates per-section traces and run counters."""

    def __init__(self) -> None:
        self.info = GeneratorDebugInfo()
        self._sections: dict[str, SectionDebug] = {}

    def section(self, section_id: str) -> Optional[SectionDebug]:
        return self._sections.get(section_id)

    def record_classification(self, classified: ClassifiedSection, trace: IntentTrace) -> None:
        intent = classified.intent
        entry = SectionDebug(
            section_id=classified.section_id,
            heading=classified.section.display_heading,
            num_lines=classified.section.structural_features.num_lines,
            scores=dict(intent.scores.items()),
            flags=intent.flags.model_dump(by_alias=True),
            rule_hits=[
                RuleHitRecord(rule=h.rule, score=h.score, family=h.family.value, text=h.text)
                for h in trace.hits
            ],
            actionable_signal=classified.actionability.actionable_signal,
            out_of_scope_signal=classified.actionability.out_of_scope_signal,
            is_actionable=classified.is_actionable,
            is_plan_change=intent.is_plan_change(),
            actionability_reason=classified.actionability.reason,
            suggested_type=classified.suggested_type,
        )
        if not classified.is_actionable:
            entry.drop_stage = DropStage.ACTIONABILITY
            entry.drop_reason = classified.actionability.reason
        self._sections[entry.section_id] = entry
        self.info.sections.append(entry)

    def record_synthesis(self, suggestion: Suggestion) -> None:
        entry = self._sections.get(suggestion.section_id)
        if entry is not None:
            entry.synthesis_strategy = suggestion.synthesis_strategy
            entry.emitted_suggestion_id = suggestion.suggestion_id

    def record_drop(self, suggestion: Suggestion, stage: DropStage, reason: str) -> None:
        self.info.dropped_suggestions.append(DroppedSuggestion(
            section_id=suggestion.section_id,
            title=suggestion.title,
            type=suggestion.type,
            stage=stage,
            reason=reason,
        ))
        entry = self._sections.get(suggestion.section_id)
        if entry is not None:
            entry.emitted_suggestion_id = None
            entry.drop_stage = stage
            entry.drop_reason = reason

    def warn(self, stage: str, message: str, **context: Any) -> None:
        self.info.warnings.append({"stage": stage, "message": message, **context})
