"""Stage 2: Structural Feature Extraction.

Cheap regex signals over a section body. Features inform scoring boosts and
type hints; they never decide actionability on their own.
"""

import re

from notesense.models import Line, LineType, StructuralFeatures

DATE_PATTERN = re.compile(
    r"\b(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:tember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b"
    r"|\b\d{1,2}/\d{1,2}\b|\b\d{4}\b",
    re.IGNORECASE,
)
METRIC_PATTERN = re.compile(r"\d+%|\b\d+x\b|\$\d+|\b(?:ARR|MRR|DAU|MAU|NPS|OKRs?)\b")
QUARTER_PATTERN = re.compile(r"\b(?:Q[1-4]|H[12])\b")
VERSION_PATTERN = re.compile(r"\bv\d+\b|\b(?:MVP|GA)\b|\b(?:alpha|beta|launch)\b", re.IGNORECASE)
LAUNCH_PATTERN = re.compile(r"\b(?:launch|rollout|ship|release|deploy|go-live)\w*\b", re.IGNORECASE)
INITIATIVE_PHRASE_PATTERN = re.compile(
    r"\b(?:launch|build|create|spin up|roll out|rollout|ship|deliver|implement)\s+\w+",
    re.IGNORECASE,
)


def compute_structural_features(body_lines: list[Line]) -> StructuralFeatures:
    """Compute structural features for a section body."""
    content = [line for line in body_lines if line.line_type != LineType.BLANK]
    text = "\n".join(line.text for line in content)
    word_count = len(text.split())

    phrase_count = len(INITIATIVE_PHRASE_PATTERN.findall(text))
    density = 0.0
    if word_count > 0:
        density = min(1.0, phrase_count / (word_count / 10))

    return StructuralFeatures(
        num_lines=len(content),
        num_list_items=sum(1 for line in content if line.line_type == LineType.LIST_ITEM),
        has_dates=bool(DATE_PATTERN.search(text)),
        has_metrics=bool(METRIC_PATTERN.search(text)),
        has_quarter_refs=bool(QUARTER_PATTERN.search(text)),
        has_version_refs=bool(VERSION_PATTERN.search(text)),
        has_launch_keywords=bool(LAUNCH_PATTERN.search(text)),
        initiative_phrase_density=round(density, 4),
    )
