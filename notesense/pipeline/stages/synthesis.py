"""Stage 6: Suggestion Synthesis.

An ordered tuple of strategies, each a pure function of a classified section
returning a SynthesisResult or None. The first match wins:

1. explicit_proposal   - a sentence opening with a proposal verb, used verbatim
2. friction_complaint  - "too many clicks to X" → "Reduce clicks required to X"
3. impact_line         - (project_update) subject + time delta, e.g. "slip by 2 sprints"
4. role_assignment     - "PM to ...; CS to ..." task clauses
5. fallback            - heading-derived title and the first sentence

Every path strips list markers and normalises terminal punctuation. Evidence is
verbatim note text; when a strategy cannot point at usable lines a minimal
span is built from the section's first lines.
"""

import hashlib
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

import structlog

from notesense.exceptions import SuggestionEngineError
from notesense.models import (
    ClassifiedSection,
    EvidenceSpan,
    Line,
    LineType,
    Section,
    Suggestion,
    SuggestionAction,
    SuggestionType,
)
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.text import (
    capitalize_first,
    clean_line,
    collapse_whitespace,
    ensure_sentence,
    has_word_chars,
    split_sentences,
    strip_terminal_punctuation,
    truncate_words,
)

logger = structlog.get_logger(__name__)

TITLE_MAX_CHARS = 80
BODY_MAX_CHARS = 300
PREVIEW_MAX_CHARS = 160
MAX_EVIDENCE_SPANS = 3
FALLBACK_EVIDENCE_LINES = 3
EVIDENCE_LINE_GAP = 2


# =============================================================================
# Patterns
# =============================================================================

PROPOSAL_VERBS = [
    "add", "implement", "build", "create", "enable", "disable", "remove", "delete", "fix",
    "update", "change", "refactor", "improve", "support", "integrate", "adjust", "modify",
    "revise", "reduce", "merge", "streamline", "simplify", "eliminate", "consolidate", "log",
    "cut", "introduce", "migrate", "replace", "allow", "show", "track", "automate", "extend",
    "move", "push", "delay", "shift", "defer", "postpone", "prioritize", "deprioritize",
    "launch", "ship", "make",
]
PROPOSAL_PATTERN = re.compile(
    r"^(?:please\s+)?(?:" + "|".join(PROPOSAL_VERBS) + r")\b", re.IGNORECASE
)
PLEASE_PREFIX = re.compile(r"^please\s+", re.IGNORECASE)

FRICTION_PATTERN = re.compile(
    r"\b(?:too many|number of|(?:\d+|several|multiple)(?:\s+extra)?)\s+"
    r"(clicks|steps|screens|fields|forms|approvals|emails|notifications|pages|hops)\b",
    re.IGNORECASE,
)
FRICTION_TARGET_PATTERN = re.compile(r"\bto\s+((?:[\w'-]+\s+){0,5}[\w'-]+)", re.IGNORECASE)

IMPACT_SUBJECT_PATTERN = re.compile(
    r"\b(?:deliverables?|release|roadmap|launch|milestone|beta|ga|rollout|timeline|"
    r"project|integration|migration|mvp|v\d+)\b",
    re.IGNORECASE,
)
TIME_DELTA_PATTERN = re.compile(
    r"\b(?:slip\w*|delay\w*|push\w*|mov\w+|shift\w*|defer\w*|postpon\w*|bring forward|pull\w* in)\b"
    r".{0,40}?\b(?:~?\d+|one|two|three|four|a few|a couple(?: of)?|several)\s+"
    r"(?:sprints?|weeks?|days?|months?|quarters?)\b"
    r"|\b(?:slip\w*|delay\w*|push\w*|mov\w+|shift\w*|defer\w*|postpon\w*)\b.{0,40}?\bto\s+"
    r"(?:q[1-4]|h[12]|next\s+(?:week|month|quarter|sprint))\b",
    re.IGNORECASE,
)
ROLE_CLAUSE_PATTERN = re.compile(
    r"^(?:pm|cs|eng|design|designer|qa|ops|legal|sales|marketing|project manager|"
    r"product manager|engineering|customer success|support)\s+to\s+\w",
    re.IGNORECASE,
)

GENERIC_HEADINGS = {
    "general", "notes", "note", "discussion", "misc", "miscellaneous", "summary",
    "meeting notes", "updates", "update", "action items", "next steps", "other",
    "follow ups", "follow-ups", "todo", "todos",
}


# =============================================================================
# Inspectable Intermediate Structures
# =============================================================================

@dataclass(frozen=True)
class SectionSentence:
    """A cleaned sentence and the line it came from."""
    text: str
    line: Line


@dataclass
class SynthesisResult:
    """Title, body and supporting lines proposed by one strategy."""
    strategy: str
    title: str
    body: str
    evidence_lines: list[Line] = field(default_factory=list)


SynthesisStrategy = Callable[[ClassifiedSection], Optional[SynthesisResult]]


def section_sentences(section: Section) -> list[SectionSentence]:
    """Cleaned sentences of the section body, in order; punctuation-only pieces are skipped."""
    sentences = []
    for line in section.body_lines:
        if line.line_type not in (LineType.PARAGRAPH, LineType.LIST_ITEM):
            continue
        cleaned = clean_line(line.text)
        for sentence in split_sentences(cleaned):
            if has_word_chars(sentence):
                sentences.append(SectionSentence(text=sentence, line=line))
    return sentences


def _title(text: str) -> str:
    return capitalize_first(truncate_words(strip_terminal_punctuation(text), TITLE_MAX_CHARS))


def _body(*sentences: str) -> str:
    body = ""
    for sentence in sentences:
        candidate = f"{body} {ensure_sentence(sentence)}".strip()
        if body and len(candidate) > BODY_MAX_CHARS:
            break
        body = candidate
    if len(body) > BODY_MAX_CHARS:
        body = ensure_sentence(truncate_words(body, BODY_MAX_CHARS - 1))
    return body


def _following(sentences: list[SectionSentence], idx: int) -> list[SectionSentence]:
    return sentences[idx + 1: idx + 2]


def _heading_is_generic(heading: Optional[str]) -> bool:
    if not heading:
        return True
    last = heading.split(">")[-1].strip().lower()
    return last in GENERIC_HEADINGS


# =============================================================================
# Strategies
# =============================================================================

def explicit_proposal_strategy(classified: ClassifiedSection) -> Optional[SynthesisResult]:
    if classified.intent.flags.force_role_assignment:
        return None
    sentences = section_sentences(classified.section)
    for idx, sentence in enumerate(sentences):
        if not PROPOSAL_PATTERN.match(sentence.text):
            continue
        proposal = PLEASE_PREFIX.sub("", sentence.text)
        extra = _following(sentences, idx)
        return SynthesisResult(
            strategy="explicit_proposal",
            title=_title(proposal),
            body=_body(proposal, *(s.text for s in extra)),
            evidence_lines=[sentence.line] + [s.line for s in extra],
        )
    return None


def friction_complaint_strategy(classified: ClassifiedSection) -> Optional[SynthesisResult]:
    section = classified.section
    for sentence in section_sentences(section):
        match = FRICTION_PATTERN.search(sentence.text)
        if not match:
            continue
        noun = match.group(1).lower()
        target_match = FRICTION_TARGET_PATTERN.search(sentence.text[match.end():])
        if target_match:
            target = strip_terminal_punctuation(target_match.group(1))
        elif not _heading_is_generic(section.heading_text):
            target = f"complete {section.heading_text.split('>')[-1].strip().lower()}"
        else:
            target = "complete the workflow"
        proposal = f"Reduce {noun} required to {target}"
        return SynthesisResult(
            strategy="friction_complaint",
            title=_title(proposal),
            body=_body(proposal, sentence.text),
            evidence_lines=[sentence.line],
        )
    return None


def impact_line_strategy(classified: ClassifiedSection) -> Optional[SynthesisResult]:
    if classified.suggested_type != SuggestionType.PROJECT_UPDATE:
        return None
    sentences = section_sentences(classified.section)
    for idx, sentence in enumerate(sentences):
        if IMPACT_SUBJECT_PATTERN.search(sentence.text) and TIME_DELTA_PATTERN.search(sentence.text):
            extra = _following(sentences, idx)
            return SynthesisResult(
                strategy="impact_line",
                title=_title(sentence.text),
                body=_body(sentence.text, *(s.text for s in extra)),
                evidence_lines=[sentence.line] + [s.line for s in extra],
            )
    return None


def role_assignment_strategy(classified: ClassifiedSection) -> Optional[SynthesisResult]:
    if not classified.intent.flags.force_role_assignment:
        return None
    sentences = section_sentences(classified.section)
    clauses = [s for s in sentences if ROLE_CLAUSE_PATTERN.match(s.text)]
    if not clauses:
        return None
    if len(clauses) < 2:
        clauses += [s for s in sentences if s not in clauses][: 2 - len(clauses)]

    parts = [strip_terminal_punctuation(c.text) for c in clauses]
    body = ensure_sentence("; ".join(p for p in parts if p))
    if len(body) > BODY_MAX_CHARS:
        body = ensure_sentence(truncate_words(body, BODY_MAX_CHARS - 1))

    heading = classified.section.display_heading
    return SynthesisResult(
        strategy="role_assignment",
        title=_title(f"Action items: {heading}"),
        body=body,
        evidence_lines=[c.line for c in clauses],
    )


def fallback_strategy(classified: ClassifiedSection) -> Optional[SynthesisResult]:
    section = classified.section
    sentences = section_sentences(section)
    first = sentences[0] if sentences else None

    if not _heading_is_generic(section.heading_text):
        subject = section.heading_text
    elif first is not None:
        subject = truncate_words(strip_terminal_punctuation(first.text), 50)
    else:
        subject = section.display_heading

    if classified.suggested_type == SuggestionType.PROJECT_UPDATE:
        title = _title(f"Update {subject} plan")
    else:
        title = _title(f"New idea: {capitalize_first(subject)}")

    if first is not None:
        body = _body(first.text)
    else:
        wordy = [clean_line(line.text) for line in section.content_lines if has_word_chars(line.text)]
        body = _body(wordy[0] if wordy else title)

    return SynthesisResult(
        strategy="fallback",
        title=title,
        body=body,
        evidence_lines=[first.line] if first else [],
    )


SYNTHESIS_STRATEGIES: tuple[SynthesisStrategy, ...] = (
    explicit_proposal_strategy,
    friction_complaint_strategy,
    impact_line_strategy,
    role_assignment_strategy,
    fallback_strategy,
)


# =============================================================================
# Evidence
# =============================================================================

def _span_for(section: Section, start: int, end: int) -> EvidenceSpan:
    text = "\n".join(line.text for line in section.body_lines if start <= line.index <= end)
    return EvidenceSpan(start_line=start, end_line=end, text=text)


def build_evidence_spans(section: Section, lines: list[Line]) -> list[EvidenceSpan]:
    """Group the given lines into at most three verbatim spans."""
    indexes = sorted({line.index for line in lines if line.text.strip()})
    if not indexes:
        return []

    groups: list[list[int]] = [[indexes[0]]]
    for idx in indexes[1:]:
        if idx - groups[-1][-1] <= EVIDENCE_LINE_GAP:
            groups[-1].append(idx)
        else:
            groups.append([idx])

    return [_span_for(section, g[0], g[-1]) for g in groups[:MAX_EVIDENCE_SPANS]]


def fallback_evidence(section: Section) -> list[EvidenceSpan]:
    """Minimal span covering the section's first lines that carry words."""
    content = [line for line in section.content_lines if has_word_chars(line.text)]
    content = content[:FALLBACK_EVIDENCE_LINES]
    if not content:
        # raw_text is never empty, so it can always back a span
        return [EvidenceSpan(start_line=section.start_line, end_line=section.end_line, text=section.raw_text)]
    return [_span_for(section, content[0].index, content[-1].index)]


def evidence_preview(spans: list[EvidenceSpan]) -> list[str]:
    return [truncate_words(collapse_whitespace(span.text), PREVIEW_MAX_CHARS) for span in spans]


# =============================================================================
# Entry Point
# =============================================================================

def suggestion_key(note_id: str, heading: Optional[str], suggestion_type: SuggestionType, title: str) -> str:
    """Stable key for deduplicating a suggestion across regenerations."""
    normalized_title = re.sub(r"[^a-z0-9 ]", "", title.lower())
    raw = f"{note_id}|{(heading or '').lower()}|{suggestion_type.value}|{collapse_whitespace(normalized_title)}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def run_strategies(classified: ClassifiedSection) -> SynthesisResult:
    """Return the first strategy result; the fallback always matches."""
    for strategy in SYNTHESIS_STRATEGIES:
        result = strategy(classified)
        if result is not None and result.title and result.body:
            return result
    raise SuggestionEngineError(
        f"No synthesis strategy matched section {classified.section_id}"
    )


def synthesize_suggestion(classified: ClassifiedSection, ids: IdGenerator) -> Suggestion:
    """Turn an actionable classified section into a candidate suggestion.

    Args:
        classified: Actionable section with a suggested type.
        ids: Per-run id generator.

    Returns:
        Suggestion with default scores and routing.
    """
    section = classified.section
    suggestion_type = classified.suggested_type or classified.type_label or SuggestionType.IDEA
    if suggestion_type != classified.suggested_type:
        classified = classified.model_copy(update={"suggested_type": suggestion_type})

    result = run_strategies(classified)

    spans = build_evidence_spans(section, result.evidence_lines)
    if not spans:
        logger.warning("evidence_fallback_used", section_id=section.section_id, strategy=result.strategy)
        spans = fallback_evidence(section)

    action = SuggestionAction.UPDATE if suggestion_type == SuggestionType.PROJECT_UPDATE else SuggestionAction.CREATE

    suggestion = Suggestion(
        suggestion_id=ids.next_suggestion_id(),
        suggestion_key=suggestion_key(section.note_id, section.heading_text, suggestion_type, result.title),
        note_id=section.note_id,
        section_id=section.section_id,
        type=suggestion_type,
        title=result.title,
        body=result.body,
        evidence_spans=spans,
        evidence_preview=evidence_preview(spans),
        source_section_id=section.section_id,
        source_heading=section.display_heading,
        structural_hint=classified.structural_hint,
        synthesis_strategy=result.strategy,
        action=action,
    )

    logger.debug(
        "suggestion_synthesized",
        section_id=section.section_id,
        suggestion_id=suggestion.suggestion_id,
        strategy=result.strategy,
        type=suggestion_type.value,
    )
    return suggestion
