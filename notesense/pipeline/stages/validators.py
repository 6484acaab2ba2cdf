"""Stage 7: Quality Validators.

- Anti-vacuity: drops ideas whose text is generic management-speak
- Evidence sanity: repairs spans that do not map to the section and drops
  ideas with too little evidence

project_update suggestions always pass; at worst their evidence is repaired.
"""

import re
from dataclasses import dataclass
from typing import Optional

import structlog

from notesense.config import ThresholdConfig
from notesense.models import ClassifiedSection, Suggestion, SuggestionType
from notesense.pipeline.stages.synthesis import evidence_preview, fallback_evidence
from notesense.pipeline.text import collapse_whitespace, has_word_chars, non_whitespace_len

logger = structlog.get_logger(__name__)

ANTI_VACUITY = "V2_anti_vacuity"
EVIDENCE_SANITY = "V3_evidence_sanity"

TITLE_GENERIC_MAX = 0.7
MIN_DOMAIN_NOUNS = 2
PARTIAL_MATCH_CHARS = 50

GENERIC_VERBS = {
    "improve", "optimize", "align", "streamline", "clarify", "enhance", "coordinate",
    "prioritize", "manage", "facilitate", "leverage", "synergize", "enable", "empower",
    "drive", "ensure", "support", "address", "discuss", "review", "assess", "evaluate",
}

GENERIC_NOUNS = {
    "process", "communication", "stakeholders", "priorities", "efficiency", "operations",
    "alignment", "workflows", "collaboration", "productivity", "visibility", "transparency",
    "accountability", "ownership", "outcomes", "deliverables", "resources", "bandwidth",
    "capacity", "synergy", "impact", "value",
}

COMMON_WORDS = {
    "about", "after", "again", "also", "because", "before", "being", "both", "could",
    "does", "doing", "during", "each", "even", "every", "first", "from", "going", "good",
    "have", "having", "here", "into", "just", "know", "last", "like", "make", "many",
    "more", "most", "much", "need", "only", "other", "over", "same", "should", "some",
    "such", "take", "than", "that", "their", "them", "then", "there", "these", "they",
    "thing", "this", "those", "through", "time", "very", "want", "well", "what", "when",
    "where", "which", "while", "will", "with", "would", "your",
}


@dataclass
class ValidationResult:
    """Outcome of one validator on one suggestion."""
    passed: bool
    validator: str
    reason: Optional[str] = None
    repaired: Optional[Suggestion] = None


def _tokens(text: str) -> list[str]:
    return [w for w in re.sub(r"[^a-z0-9\s]", " ", text.lower()).split() if len(w) > 2]


def generic_ratio(text: str) -> float:
    tokens = _tokens(text)
    if not tokens:
        return 0.0
    generic = sum(1 for t in tokens if t in GENERIC_VERBS or t in GENERIC_NOUNS)
    return generic / len(tokens)


def domain_nouns(text: str) -> list[str]:
    """Distinct non-generic, non-common words of four or more characters."""
    seen: list[str] = []
    for token in _tokens(text):
        if len(token) < 4 or token in GENERIC_VERBS or token in GENERIC_NOUNS or token in COMMON_WORDS:
            continue
        if token not in seen:
            seen.append(token)
    return seen


def validate_anti_vacuity(
    suggestion: Suggestion,
    classified: ClassifiedSection,
    thresholds: ThresholdConfig,
) -> ValidationResult:
    if suggestion.type == SuggestionType.PROJECT_UPDATE:
        return ValidationResult(passed=True, validator=ANTI_VACUITY)

    if not has_word_chars(suggestion.body):
        return ValidationResult(passed=False, validator=ANTI_VACUITY, reason="Body has no words")
    if not any(has_word_chars(span.text) for span in suggestion.evidence_spans):
        return ValidationResult(passed=False, validator=ANTI_VACUITY, reason="Evidence has no words")

    ratio = generic_ratio(f"{suggestion.title} {suggestion.body}")
    nouns = domain_nouns(classified.section.raw_text)
    if ratio > thresholds.T_generic and len(nouns) < MIN_DOMAIN_NOUNS:
        return ValidationResult(
            passed=False,
            validator=ANTI_VACUITY,
            reason=f"Suggestion is too generic (ratio: {ratio:.2f}, domain nouns: {len(nouns)})",
        )

    title_ratio = generic_ratio(suggestion.title)
    if title_ratio > TITLE_GENERIC_MAX:
        return ValidationResult(
            passed=False,
            validator=ANTI_VACUITY,
            reason=f"Title is too generic (ratio: {title_ratio:.2f})",
        )

    return ValidationResult(passed=True, validator=ANTI_VACUITY)


def _normalize(text: str) -> str:
    return collapse_whitespace(text.lower())


def validate_evidence_sanity(
    suggestion: Suggestion,
    classified: ClassifiedSection,
    thresholds: ThresholdConfig,
) -> ValidationResult:
    section = classified.section
    normalized_section = _normalize(section.raw_text)

    mapped = all(
        _normalize(span.text) in normalized_section
        or _normalize(span.text)[:PARTIAL_MATCH_CHARS] in normalized_section
        for span in suggestion.evidence_spans
    )
    repaired = None
    if not mapped:
        logger.warning("evidence_span_unmapped", suggestion_id=suggestion.suggestion_id)
        spans = fallback_evidence(section)
        repaired = suggestion.model_copy(update={
            "evidence_spans": spans,
            "evidence_preview": evidence_preview(spans),
        })
        suggestion = repaired

    if suggestion.type == SuggestionType.PROJECT_UPDATE or classified.intent.is_plan_change():
        return ValidationResult(passed=True, validator=EVIDENCE_SANITY, repaired=repaired)

    section_chars = non_whitespace_len(section.raw_text)
    evidence_chars = sum(non_whitespace_len(span.text) for span in suggestion.evidence_spans)
    minimum = thresholds.MIN_EVIDENCE_CHARS
    if section_chars < minimum and evidence_chars < minimum:
        return ValidationResult(
            passed=False,
            validator=EVIDENCE_SANITY,
            reason=(
                f"Evidence too short for idea (section: {section_chars} chars, "
                f"evidence: {evidence_chars} chars, minimum {minimum})"
            ),
        )

    return ValidationResult(passed=True, validator=EVIDENCE_SANITY, repaired=repaired)


def run_quality_validators(
    suggestion: Suggestion,
    classified: ClassifiedSection,
    thresholds: ThresholdConfig,
) -> tuple[Optional[Suggestion], Optional[ValidationResult]]:
    """Run every validator in order.

    Returns:
        Tuple of (suggestion, failure). The suggestion is None when dropped;
        failure is the first failing ValidationResult, if any.
    """
    for validator in (validate_evidence_sanity, validate_anti_vacuity):
        result = validator(suggestion, classified, thresholds)
        if result.repaired is not None:
            suggestion = result.repaired
        if not result.passed:
            logger.debug(
                "suggestion_failed_validation",
                suggestion_id=suggestion.suggestion_id,
                validator=result.validator,
                reason=result.reason,
            )
            return None, result
    return suggestion, None
