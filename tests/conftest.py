"""Pytest configuration and fixtures."""

from typing import Callable

import pytest

from notesense.config import ThresholdConfig
from notesense.models import (
    EvidenceSpan,
    Section,
    Suggestion,
    SuggestionScores,
    SuggestionType,
)
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.stages.segmentation import preprocess_note


@pytest.fixture
def thresholds() -> ThresholdConfig:
    return ThresholdConfig()


@pytest.fixture
def explicit_request_note() -> dict:
    """A single explicit feature request under a heading."""
    return {
        "note_id": "note_onboarding",
        "raw_markdown": "# Onboarding\nPlease add boundary detection in onboarding",
    }


@pytest.fixture
def plan_change_note() -> dict:
    """A one-line plan change with a calendar phrase."""
    return {
        "note_id": "note_launch",
        "raw_markdown": "Move launch to next week",
    }


@pytest.fixture
def calendar_note() -> dict:
    """Pure scheduling chatter."""
    return {
        "note_id": "note_calendar",
        "raw_markdown": "Schedule a sync meeting next Thursday with the design team",
    }


@pytest.fixture
def mixed_note() -> dict:
    """Plan change, feature request and scheduling chatter in one note."""
    return {
        "note_id": "note_weekly",
        "raw_markdown": """# Roadmap
Move launch to next week

## Onboarding
Please add boundary detection in onboarding

## Logistics
Schedule a sync meeting next Thursday with the design team
""",
    }


@pytest.fixture
def make_section() -> Callable[..., Section]:
    """Segment a markdown snippet and return one of its sections."""

    def _make(text: str, index: int = 0, note_id: str = "note_test") -> Section:
        sections = preprocess_note(text, note_id, IdGenerator(note_id)).sections
        return sections[index]

    return _make


@pytest.fixture
def make_suggestion() -> Callable[..., Suggestion]:
    """Build a scored suggestion without running the pipeline."""
    counter = {"n": 0}

    def _make(
        suggestion_type: SuggestionType = SuggestionType.IDEA,
        overall: float = 0.8,
        section_actionability: float = 0.8,
        title: str = "Add export to CSV",
        **overrides,
    ) -> Suggestion:
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            suggestion_id=f"sug_test_{n}",
            suggestion_key=f"key{n}",
            note_id="note_test",
            section_id=f"sec_test_{n}",
            type=suggestion_type,
            title=title,
            body=f"{title}.",
            evidence_spans=[EvidenceSpan(start_line=0, end_line=0, text=title)],
            evidence_preview=[title],
            source_section_id=f"sec_test_{n}",
            source_heading="General",
            synthesis_strategy="fallback",
            scores=SuggestionScores(
                section_actionability=section_actionability,
                type_choice_confidence=0.9,
                synthesis_confidence=0.9,
                overall=overall,
            ),
        )
        fields.update(overrides)
        return Suggestion(**fields)

    return _make
