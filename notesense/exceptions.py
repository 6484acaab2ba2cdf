"""Exception hierarchy for the suggestion engine."""


class SuggestionEngineError(Exception):
    """Base error for the suggestion engine."""
    pass


class InvalidNoteError(SuggestionEngineError, ValueError):
    """The note input failed boundary validation."""
    pass


class InvalidConfigError(SuggestionEngineError, ValueError):
    """The generator configuration failed boundary validation."""
    pass
