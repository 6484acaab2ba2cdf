"""Display helpers for generated suggestions."""

import re
from collections import defaultdict
from typing import Optional

from pydantic import BaseModel, Field

from notesense.models import Suggestion, SuggestionType
from notesense.pipeline.stages.scoring import ranking_score

DEFAULT_CAP_PER_TYPE = 5

BUCKET_TITLES = {
    SuggestionType.PROJECT_UPDATE: "Plan Changes",
    SuggestionType.IDEA: "Ideas",
}

BUCKET_ORDER = {
    SuggestionType.PROJECT_UPDATE: 0,
    SuggestionType.IDEA: 1,
}

TYPE_PREFIX = {
    SuggestionType.IDEA: "Idea",
    SuggestionType.PROJECT_UPDATE: "Update",
}

LEGACY_PREFIX_PATTERN = re.compile(r"^Add\s+(?:Update|Idea)\s*:\s*", re.IGNORECASE)
TYPE_PREFIX_PATTERN = re.compile(r"^(?:Update|Idea|New idea)\s*:\s*", re.IGNORECASE)


class SuggestionBucket(BaseModel):
    """Suggestions of one type, split into shown and collapsed."""

    key: SuggestionType
    title: str
    total: int
    shown: list[Suggestion] = Field(default_factory=list)
    hidden: list[Suggestion] = Field(default_factory=list)

    @property
    def hidden_count(self) -> int:
        return len(self.hidden)


class GroupedSuggestions(BaseModel):
    buckets: list[SuggestionBucket] = Field(default_factory=list)
    flat_shown: list[Suggestion] = Field(default_factory=list)


def group_suggestions_for_display(
    suggestions: list[Suggestion],
    cap_per_type: int = DEFAULT_CAP_PER_TYPE,
) -> GroupedSuggestions:
    """Bucket suggestions by type for display.

    Nothing is dropped: suggestions past the per-type cap land in ``hidden``.

    Args:
        suggestions: Generator output.
        cap_per_type: How many suggestions each bucket shows.

    Returns:
        GroupedSuggestions with plan changes before ideas, each bucket sorted
        by ranking score.
    """
    by_type: dict[SuggestionType, list[Suggestion]] = defaultdict(list)
    for suggestion in suggestions:
        by_type[suggestion.type].append(suggestion)

    buckets = []
    for key in sorted(by_type, key=lambda k: BUCKET_ORDER.get(k, 99)):
        ranked = sorted(by_type[key], key=ranking_score, reverse=True)
        buckets.append(SuggestionBucket(
            key=key,
            title=BUCKET_TITLES.get(key, key.value),
            total=len(ranked),
            shown=ranked[:cap_per_type],
            hidden=ranked[cap_per_type:],
        ))

    return GroupedSuggestions(
        buckets=buckets,
        flat_shown=[s for bucket in buckets for s in bucket.shown],
    )


def get_type_prefix(suggestion_type: Optional[SuggestionType]) -> Optional[str]:
    """Short user-facing label for a suggestion type."""
    if suggestion_type is None:
        return None
    return TYPE_PREFIX.get(suggestion_type)


def strip_legacy_prefix(title: str) -> str:
    """Remove "Add Update:" style and bare type prefixes from a title."""
    return TYPE_PREFIX_PATTERN.sub("", LEGACY_PREFIX_PATTERN.sub("", title))


def suggestion_to_content(suggestion: Suggestion) -> str:
    """Title and body as a single text block."""
    return f"{suggestion.title}\n\n{suggestion.body}"


def get_suggestion_summary(suggestion: Suggestion) -> str:
    """One-line summary with routing and overall score."""
    if suggestion.routing.create_new:
        route = "[New Initiative]"
    else:
        route = f"[Update: {suggestion.routing.target_initiative_id}]"
    return f"{route} {suggestion.title} (score: {suggestion.scores.overall:.2f})"
