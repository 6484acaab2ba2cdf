"""Stage 3: Intent Classification.

Approach:
1. Preprocess every content line (quotes, case, list markers, whitespace)
2. Run a table of independent sentence rules; each proposes a partial score
   and the family it belongs to (plan change, workstream, hedged, neutral)
3. Apply section-level rules (multi-verb, implicit idea, implicit feature request)
4. Score out-of-scope markers per family and clamp them for clear plan changes
5. Distribute the actionable signal over the seven labels

All rules are pure functions of their input text. Nothing here raises for
well-typed input.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from notesense.models import IntentClassification, IntentFlags, IntentScores, LineType, Section
from notesense.pipeline.text import collapse_whitespace, normalize_quotes, split_sentences, strip_list_marker

logger = structlog.get_logger(__name__)


def _phrase_pattern(phrases: Iterable[str], anchored: bool = False) -> re.Pattern:
    """Whole-word alternation; longer phrases win."""
    alternation = "|".join(re.escape(p) for p in sorted(set(phrases), key=len, reverse=True))
    if anchored:
        return re.compile(rf"^(?:{alternation})(?![\w'])")
    return re.compile(rf"(?<![\w'])(?:{alternation})(?![\w'])")


# =============================================================================
# Vocabulary
# =============================================================================

REQUEST_STEMS = [
    "please", "can you", "could you", "would you", "i want you to", "i'd like you to",
    "i would like you to", "we should", "we probably should", "should", "let's", "lets",
    "need to", "we need to", "maybe we need", "we may need to", "it would be good to",
    "asking for", "requested", "want to", "would like",
]

ACTION_VERBS = [
    "add", "implement", "build", "create", "enable", "disable", "remove", "delete",
    "fix", "update", "change", "refactor", "improve", "support", "integrate",
    "adjust", "modify", "revise",
]

# Operators that always describe a change to an existing plan
PLAN_CHANGE_OPERATORS = [
    "delay", "delaying", "delayed", "slip", "slipping", "slipped",
    "postpone", "postponing", "postponed", "defer", "deferring", "deferred",
    "prioritize", "prioritizing", "prioritized", "deprioritize", "deprioritizing", "deprioritized",
    "reprioritize", "reprioritizing", "reprioritized", "pivot", "pivoting", "pivoted",
    "refocus", "refocusing", "refocused", "bring forward", "bringing forward", "brought forward",
    "take over", "taking over", "took over", "instead of", "now p0", "now p1", "now p2",
]

# Operators whose family depends on the object they act on
OBJECT_CHANGE_OPERATORS = [
    "move", "moving", "moved", "push", "pushing", "pushed", "shift", "shifting", "shifted",
    "accelerate", "accelerating", "accelerated", "narrow", "narrowing", "narrowed",
    "expand", "expanding", "expanded", "reframe", "reframing", "reframed",
    "adjust", "adjusting", "adjusted", "modify", "modifying", "modified",
    "revise", "revising", "revised",
]

PLAN_OBJECTS = [
    "launch", "release", "deadline", "milestone", "timeline", "roadmap", "sprint", "sprints",
    "quarter", "q1", "q2", "q3", "q4", "h1", "h2", "scope", "priority", "priorities",
    "p0", "p1", "p2", "beta", "ga", "go-live", "rollout", "mvp", "deliverable", "deliverables",
    "plan", "project", "initiative", "workstream", "phase", "pilot", "resourcing", "headcount",
    "week", "weeks", "month", "months", "date", "ship date", "focus",
]

STATUS_MARKERS = [
    "done", "shipped", "deployed", "released", "implemented", "merged",
    "blocked", "waiting on", "in progress",
]

PRODUCT_NOUNS = [
    "onboarding", "signup", "flow", "ui", "api", "integration", "pricing",
    "dashboard", "tracking", "analytics",
]

ACTIONABILITY_VERBS = [
    "add", "verify", "update", "share", "remove", "fix", "create", "build",
    "implement", "test", "review", "check", "ensure", "set up", "deploy",
    "migrate", "refactor", "integrate", "move", "send", "confirm", "finalize",
]

HEDGED_DIRECTIVES = [
    "we should", "we probably should", "maybe we need", "we may need to",
    "it would be good to", "let's", "lets",
]

NEGATIONS = ["don't", "do not", "no need to", "not necessary to"]

ROLES = [
    "pm", "cs", "eng", "design", "designer", "qa", "ops", "legal", "sales", "marketing",
    "project manager", "product manager", "engineering", "customer success", "support",
]

DECISION_MARKERS = [
    "will be logged", "will be tracked", "no near-term", "revisit", "decided",
    "we agreed", "agreed to", "approved",
]

CALENDAR_MARKERS = [
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "next week", "this week", "next month", "meeting", "meetings", "sync", "calendar",
    "schedule",
]

COMMUNICATION_MARKERS = ["email", "send", "slack", "follow up", "reach out", "ping"]

MICRO_ADMIN_MARKERS = ["rename file", "update doc link", "fix typo"]

RESEARCH_CUES = [
    "investigate", "figure out", "explore", "look into", "research", "understand",
    "analyze", "interview", "survey", "find out", "learn more", "gather data",
    "collect feedback",
]

IMPLICIT_NEED_SIGNALS = [
    "we need", "we don't have", "users can't", "it's hard to", "missing",
    "no way to", "can't", "lack of", "lacking",
]

IMPLICIT_PURPOSE_SIGNALS = [
    "so we can", "so we", "so that", "to help", "to see", "because",
    "in order to", "so users can",
]

CAPABILITY_NOUNS = [
    "boundary detection", "dashboard", "errors", "visibility", "alerts", "tracking",
    "monitoring", "reporting", "analytics", "notifications", "logging", "metrics",
    "search", "filtering", "sorting", "pagination",
]

COMPLETION_MARKERS = ["done", "completed", "finished", "shipped"]

PAIN_SIGNALS = [
    "dissatisfied", "too many clicks", "number of clicks", "confusing", "frustrating",
    "usability issue", "hard to use", "difficult to", "painful", "annoying", "slow",
    "inefficient", "broken", "impacting",
]

PRODUCT_CONTEXT_SIGNALS = [
    "workflow", "attestation", "completion", "usability", "customer satisfaction",
    "user experience", "productivity", "efficiency", "employees",
]

REQUEST_STEM_PATTERN = _phrase_pattern(REQUEST_STEMS)
ACTION_VERB_PATTERN = _phrase_pattern(ACTION_VERBS)
IMPERATIVE_PATTERN = _phrase_pattern(ACTION_VERBS, anchored=True)
PLAN_OPERATOR_PATTERN = _phrase_pattern(PLAN_CHANGE_OPERATORS)
OBJECT_OPERATOR_PATTERN = _phrase_pattern(OBJECT_CHANGE_OPERATORS)
PLAN_OBJECT_PATTERN = _phrase_pattern(PLAN_OBJECTS)
STATUS_PATTERN = _phrase_pattern(STATUS_MARKERS)
PRODUCT_NOUN_PATTERN = _phrase_pattern(PRODUCT_NOUNS)
ACTIONABILITY_VERB_PATTERN = _phrase_pattern(ACTIONABILITY_VERBS, anchored=True)
HEDGED_PATTERN = _phrase_pattern(HEDGED_DIRECTIVES)
NEGATION_PATTERN = _phrase_pattern(NEGATIONS)
ROLE_ASSIGNMENT_PATTERN = re.compile(
    r"^(?:" + "|".join(re.escape(r) for r in ROLES) + r")\s+to\s+[a-z]"
)
DECISION_PATTERN = _phrase_pattern(DECISION_MARKERS)
CALENDAR_PATTERN = _phrase_pattern(CALENDAR_MARKERS)
CALENDAR_DATE_PATTERN = re.compile(
    r"(?<![\w'])(?:january|february|march|april|may|june|july|august|september"
    r"|october|november|december|jan|feb|mar|apr|jun|jul|aug|sep|sept|oct|nov|dec)"
    r"\.?\s+\d{1,2}(?:st|nd|rd|th)?(?!\w)"
)
COMMUNICATION_PATTERN = _phrase_pattern(COMMUNICATION_MARKERS)
MICRO_ADMIN_PATTERN = _phrase_pattern(MICRO_ADMIN_MARKERS)
RESEARCH_PATTERN = _phrase_pattern(RESEARCH_CUES)
NEED_PATTERN = _phrase_pattern(IMPLICIT_NEED_SIGNALS)
PURPOSE_PATTERN = _phrase_pattern(IMPLICIT_PURPOSE_SIGNALS)
CAPABILITY_PATTERN = _phrase_pattern(CAPABILITY_NOUNS)
COMPLETION_PATTERN = _phrase_pattern(COMPLETION_MARKERS)
PAIN_PATTERN = _phrase_pattern(PAIN_SIGNALS)
PRODUCT_CONTEXT_PATTERN = _phrase_pattern(PRODUCT_CONTEXT_SIGNALS)
STRUCTURED_TASK_PATTERN = re.compile(r"^\s*(?:[-*+]\s+)?\[ \]\s|(?<![\w'])(?:todo|action|owner):")

# Rule scores
EXPLICIT_REQUEST_SCORE = 1.0
IMPERATIVE_SCORE = 0.9
HEDGED_SCORE = 0.9
ROLE_ASSIGNMENT_SCORE = 0.85
CHANGE_OPERATOR_SCORE = 0.8
STRUCTURED_TASK_SCORE = 0.8
MULTI_VERB_SCORE = 0.8
IMPLICIT_FEATURE_REQUEST_SCORE = 0.76
STATUS_SCORE = 0.7
DECISION_SCORE = 0.7
IMPLICIT_IDEA_SCORE = 0.61
TARGET_OBJECT_BONUS = 0.2

CALENDAR_BASE_SCORE = 0.6
COMMUNICATION_BASE_SCORE = 0.6
MICRO_ADMIN_SCORE = 0.4
EXTRA_MARKER_STEP = 0.15
OUT_OF_SCOPE_CAP = 0.9
OUT_OF_SCOPE_CLAMP = 0.3
MULTI_VERB_OOS_CEILING = 0.4
LONG_SECTION_LINES = 5
MIN_LINE_CHARS = 5

RESEARCH_BASE_SCORE = 0.4
RESEARCH_STEP = 0.1
RESEARCH_CAP = 0.7


# =============================================================================
# Inspectable Intermediate Structures
# =============================================================================

class RuleFamily(str, Enum):
    """Which label a rule's score is credited to."""

    PLAN_CHANGE = "plan_change"
    WORKSTREAM = "workstream"
    HEDGED = "hedged"          # workstream, never plan_change
    NEUTRAL = "neutral"        # goes to whichever label dominates


@dataclass(frozen=True)
class RuleHit:
    """A single rule firing on a sentence or line."""
    rule: str
    score: float
    family: RuleFamily
    text: str


@dataclass
class IntentTrace:
    """Inspectable trace of intent classification for one section."""
    hits: list[RuleHit] = field(default_factory=list)
    negated_sentences: list[str] = field(default_factory=list)
    out_of_scope_markers: list[str] = field(default_factory=list)
    out_of_scope_clamped: bool = False


SentenceRule = Callable[[str], Optional[RuleHit]]


# =============================================================================
# Sentence Rules
# =============================================================================

def explicit_request_rule(sentence: str) -> Optional[RuleHit]:
    if REQUEST_STEM_PATTERN.search(sentence) and ACTION_VERB_PATTERN.search(sentence):
        return RuleHit("explicit_request", EXPLICIT_REQUEST_SCORE, RuleFamily.WORKSTREAM, sentence)
    return None


def imperative_rule(sentence: str) -> Optional[RuleHit]:
    if IMPERATIVE_PATTERN.match(sentence):
        return RuleHit("imperative_verb", IMPERATIVE_SCORE, RuleFamily.WORKSTREAM, sentence)
    return None


def change_operator_rule(sentence: str) -> Optional[RuleHit]:
    if PLAN_OPERATOR_PATTERN.search(sentence):
        return RuleHit("change_operator", CHANGE_OPERATOR_SCORE, RuleFamily.PLAN_CHANGE, sentence)
    if OBJECT_OPERATOR_PATTERN.search(sentence):
        family = RuleFamily.PLAN_CHANGE if PLAN_OBJECT_PATTERN.search(sentence) else RuleFamily.WORKSTREAM
        return RuleHit("change_operator", CHANGE_OPERATOR_SCORE, family, sentence)
    return None


def status_marker_rule(sentence: str) -> Optional[RuleHit]:
    if STATUS_PATTERN.search(sentence):
        return RuleHit("status_marker", STATUS_SCORE, RuleFamily.NEUTRAL, sentence)
    return None


def role_assignment_rule(sentence: str) -> Optional[RuleHit]:
    if ROLE_ASSIGNMENT_PATTERN.match(sentence):
        return RuleHit("role_assignment", ROLE_ASSIGNMENT_SCORE, RuleFamily.PLAN_CHANGE, sentence)
    return None


def decision_marker_rule(sentence: str) -> Optional[RuleHit]:
    if DECISION_PATTERN.search(sentence):
        return RuleHit("decision_marker", DECISION_SCORE, RuleFamily.PLAN_CHANGE, sentence)
    return None


def hedged_directive_rule(sentence: str) -> Optional[RuleHit]:
    if HEDGED_PATTERN.search(sentence):
        return RuleHit("hedged_directive", HEDGED_SCORE, RuleFamily.HEDGED, sentence)
    return None


SENTENCE_RULES: tuple[SentenceRule, ...] = (
    explicit_request_rule,
    imperative_rule,
    change_operator_rule,
    status_marker_rule,
    role_assignment_rule,
    decision_marker_rule,
    hedged_directive_rule,
)


def is_negated_directive(sentence: str) -> bool:
    return bool(NEGATION_PATTERN.search(sentence) and ACTION_VERB_PATTERN.search(sentence))


def score_sentence(sentence: str) -> tuple[float, list[RuleHit]]:
    """Score one preprocessed sentence.

    Returns:
        Tuple of (score, hits). A negated directive scores exactly 0 with no hits.
    """
    if is_negated_directive(sentence):
        return 0.0, []

    hits = [hit for rule in SENTENCE_RULES if (hit := rule(sentence)) is not None]
    if not hits:
        return 0.0, []

    score = max(hit.score for hit in hits)
    if score >= 0.6 and PRODUCT_NOUN_PATTERN.search(sentence):
        score += TARGET_OBJECT_BONUS
    return min(1.0, max(0.0, score)), hits


# =============================================================================
# Section Rules
# =============================================================================

def implicit_idea_rule(line: str) -> Optional[RuleHit]:
    """Need + purpose + capability, with no scheduling or completion language."""
    if (
        NEED_PATTERN.search(line)
        and PURPOSE_PATTERN.search(line)
        and CAPABILITY_PATTERN.search(line)
        and not _calendar_markers(line)
        and not COMPLETION_PATTERN.search(line)
    ):
        return RuleHit("implicit_idea", IMPLICIT_IDEA_SCORE, RuleFamily.WORKSTREAM, line)
    return None


def implicit_feature_request_rule(text: str) -> Optional[RuleHit]:
    """Pain signal plus product context, even without an explicit ask."""
    if PAIN_PATTERN.search(text) and PRODUCT_CONTEXT_PATTERN.search(text):
        return RuleHit(
            "implicit_feature_request", IMPLICIT_FEATURE_REQUEST_SCORE, RuleFamily.WORKSTREAM, text[:120]
        )
    return None


def _calendar_markers(text: str) -> set[str]:
    markers = set(CALENDAR_PATTERN.findall(text))
    markers.update(CALENDAR_DATE_PATTERN.findall(text))
    return markers


def _graduated(base: float, markers: set[str]) -> float:
    if not markers:
        return 0.0
    return min(OUT_OF_SCOPE_CAP, base + EXTRA_MARKER_STEP * (len(markers) - 1))


def preprocess_line(text: str) -> str:
    return collapse_whitespace(strip_list_marker(normalize_quotes(text).lower()))


# =============================================================================
# Classification
# =============================================================================

def classify_intent(section: Section) -> tuple[IntentClassification, IntentTrace]:
    """Score a section against the seven intent labels.

    Args:
        section: Segmented section.

    Returns:
        Tuple of (IntentClassification, IntentTrace).
    """
    trace = IntentTrace()
    sentence_scores: list[float] = []
    non_hedged_max = 0.0
    lead_verbs: set[str] = set()
    clean_lines: list[str] = []

    calendar: set[str] = set()
    communication: set[str] = set()
    micro: set[str] = set()
    research: set[str] = set()

    for line in section.body_lines:
        if line.line_type not in (LineType.PARAGRAPH, LineType.LIST_ITEM):
            continue
        raw_lower = normalize_quotes(line.text).lower()
        processed = preprocess_line(line.text)
        if len(processed) < MIN_LINE_CHARS:
            continue

        calendar |= _calendar_markers(processed)
        communication |= set(COMMUNICATION_PATTERN.findall(processed))
        micro |= set(MICRO_ADMIN_PATTERN.findall(processed))
        research |= set(RESEARCH_PATTERN.findall(processed))

        line_negated = False
        for sentence in split_sentences(processed):
            if is_negated_directive(sentence):
                trace.negated_sentences.append(sentence)
                line_negated = True
                sentence_scores.append(0.0)
                continue

            score, hits = score_sentence(sentence)
            trace.hits.extend(hits)
            sentence_scores.append(score)
            if any(h.family != RuleFamily.HEDGED for h in hits):
                non_hedged_max = max(
                    non_hedged_max,
                    max(h.score for h in hits if h.family != RuleFamily.HEDGED),
                )
            verb = ACTIONABILITY_VERB_PATTERN.match(sentence)
            if verb:
                lead_verbs.add(verb.group(0))

        if STRUCTURED_TASK_PATTERN.search(raw_lower) and not line_negated:
            trace.hits.append(RuleHit("structured_task", STRUCTURED_TASK_SCORE, RuleFamily.PLAN_CHANGE, processed))
            sentence_scores.append(STRUCTURED_TASK_SCORE)
            non_hedged_max = max(non_hedged_max, STRUCTURED_TASK_SCORE)

        if not line_negated:
            clean_lines.append(processed)

    calendar_score = _graduated(CALENDAR_BASE_SCORE, calendar)
    communication_score = _graduated(COMMUNICATION_BASE_SCORE, communication)
    micro_score = MICRO_ADMIN_SCORE if micro else 0.0
    oos_raw = max(calendar_score, communication_score, micro_score)
    trace.out_of_scope_markers = (
        [f"calendar:{m}" for m in sorted(calendar)]
        + [f"communication:{m}" for m in sorted(communication)]
        + [f"micro:{m}" for m in sorted(micro)]
    )

    # Section-level rules
    section_hits: list[RuleHit] = []
    multi_verb = len(lead_verbs) >= 2 and oos_raw < MULTI_VERB_OOS_CEILING
    if multi_verb:
        section_hits.append(RuleHit(
            "multiple_action_verbs", MULTI_VERB_SCORE, RuleFamily.WORKSTREAM, ", ".join(sorted(lead_verbs))
        ))
    for text in clean_lines:
        hit = implicit_idea_rule(text)
        if hit:
            section_hits.append(hit)
            break
    heading = (section.heading_text or "").lower()
    if clean_lines:
        hit = implicit_feature_request_rule(f"{heading} {' '.join(clean_lines)}")
        if hit:
            section_hits.append(hit)
    trace.hits.extend(section_hits)

    signal = max(sentence_scores + [h.score for h in section_hits] + [0.0])
    signal = min(1.0, max(0.0, signal))

    # Clear plan changes and multi-verb sections are not out-of-scope chatter
    change_op_fired = any(h.rule == "change_operator" for h in trace.hits)
    if change_op_fired or multi_verb or (
        non_hedged_max >= 0.8 and section.structural_features.num_lines >= LONG_SECTION_LINES
    ):
        if oos_raw > OUT_OF_SCOPE_CLAMP:
            trace.out_of_scope_clamped = True
        calendar_score = min(calendar_score, OUT_OF_SCOPE_CLAMP)
        communication_score = min(communication_score, OUT_OF_SCOPE_CLAMP)
        micro_score = min(micro_score, OUT_OF_SCOPE_CLAMP)
    oos = max(calendar_score, communication_score, micro_score)

    plan_family = any(h.family == RuleFamily.PLAN_CHANGE for h in trace.hits)
    if plan_family:
        plan_change, new_workstream = signal, signal * 0.4
    else:
        plan_change, new_workstream = signal * 0.4, signal

    research_score = 0.0
    if research:
        research_score = min(RESEARCH_CAP, RESEARCH_BASE_SCORE + RESEARCH_STEP * (len(research) - 1))

    status_informational = min(1.0, max(0.0, 0.5 - signal + 0.3 * oos))

    scores = IntentScores(
        plan_change=round(plan_change, 4),
        new_workstream=round(new_workstream, 4),
        status_informational=round(status_informational, 4),
        communication=round(communication_score, 4),
        research=round(research_score, 4),
        calendar=round(calendar_score, 4),
        micro_tasks=round(micro_score, 4),
    )
    flags = IntentFlags(
        force_role_assignment=any(h.rule == "role_assignment" for h in trace.hits),
        force_decision_marker=any(h.rule == "decision_marker" for h in trace.hits),
    )
    intent = IntentClassification(scores=scores, flags=flags)

    logger.debug(
        "section_intent_classified",
        section_id=section.section_id,
        dominant=intent.dominant_label().value,
        actionable_signal=scores.actionable_signal,
        out_of_scope_signal=scores.out_of_scope_signal,
        rules=[h.rule for h in trace.hits],
    )
    return intent, trace
