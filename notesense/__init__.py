"""NoteSense - turn free-form product notes into evidence-backed suggestions."""

__version__ = "0.1.0"

from notesense.config import GeneratorConfig, ThresholdConfig, build_config, validate_thresholds
from notesense.exceptions import InvalidConfigError, InvalidNoteError, SuggestionEngineError
from notesense.models import (
    GeneratorDebugInfo,
    GeneratorResult,
    InitiativeSnapshot,
    NoteInput,
    Suggestion,
    SuggestionType,
)
from notesense.pipeline import generate_suggestions, get_section_count, has_actionable_content

__all__ = [
    "__version__",
    "generate_suggestions",
    "has_actionable_content",
    "get_section_count",
    "GeneratorConfig",
    "ThresholdConfig",
    "build_config",
    "validate_thresholds",
    "SuggestionEngineError",
    "InvalidNoteError",
    "InvalidConfigError",
    "NoteInput",
    "InitiativeSnapshot",
    "Suggestion",
    "SuggestionType",
    "GeneratorResult",
    "GeneratorDebugInfo",
]
