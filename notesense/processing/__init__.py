"""Post-processing utilities."""

from .presentation import (
    GroupedSuggestions,
    SuggestionBucket,
    get_suggestion_summary,
    get_type_prefix,
    group_suggestions_for_display,
    strip_legacy_prefix,
    suggestion_to_content,
)

__all__ = [
    "GroupedSuggestions",
    "SuggestionBucket",
    "get_suggestion_summary",
    "get_type_prefix",
    "group_suggestions_for_display",
    "strip_legacy_prefix",
    "suggestion_to_content",
]
