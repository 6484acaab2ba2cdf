"""Stage 9: Advisory Initiative Routing.

Fuzzy-matches each suggestion against the caller's initiatives. Routing only
annotates suggestions; it never adds or removes any.
"""

from typing import Optional

import structlog
from rapidfuzz import fuzz, utils

from notesense.models import InitiativeSnapshot, Suggestion, SuggestionRouting

logger = structlog.get_logger(__name__)


def initiative_similarity(suggestion: Suggestion, initiative: InitiativeSnapshot) -> float:
    """Token-set similarity in [0, 1] between a suggestion and an initiative."""
    left = f"{suggestion.title} {suggestion.body}"
    right = f"{initiative.title} {initiative.description}"
    score = fuzz.token_set_ratio(left, right, processor=utils.default_process)
    return round(score / 100.0, 4)


def best_initiative_match(
    suggestion: Suggestion,
    initiatives: list[InitiativeSnapshot],
) -> tuple[Optional[InitiativeSnapshot], float]:
    best: Optional[InitiativeSnapshot] = None
    best_score = 0.0
    for initiative in initiatives:
        score = initiative_similarity(suggestion, initiative)
        if score > best_score:
            best, best_score = initiative, score
    return best, best_score


def route_suggestions(
    suggestions: list[Suggestion],
    initiatives: Optional[list[InitiativeSnapshot]],
    attach_threshold: float,
) -> list[Suggestion]:
    """Attach a routing hint to every suggestion.

    Args:
        suggestions: Final suggestions.
        initiatives: Existing initiatives, or None.
        attach_threshold: Minimum similarity (T_attach) to point at an initiative.

    Returns:
        Suggestions in the same order, with routing filled in.
    """
    if not initiatives:
        return [s.model_copy(update={"routing": SuggestionRouting(create_new=True)}) for s in suggestions]

    routed = []
    for suggestion in suggestions:
        match, similarity = best_initiative_match(suggestion, initiatives)
        if match is not None and similarity >= attach_threshold:
            routing = SuggestionRouting(
                create_new=False,
                target_initiative_id=match.id,
                similarity=similarity,
            )
            logger.debug(
                "suggestion_routed",
                suggestion_id=suggestion.suggestion_id,
                initiative_id=match.id,
                similarity=similarity,
            )
        else:
            routing = SuggestionRouting(create_new=True, similarity=similarity if match else None)
        routed.append(suggestion.model_copy(update={"routing": routing}))
    return routed
