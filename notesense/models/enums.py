"""Enumeration types for the suggestion models."""

from enum import Enum


class LineType(str, Enum):
    """Structural type of a single note line."""

    HEADING = "heading"
    LIST_ITEM = "list_item"
    PARAGRAPH = "paragraph"
    BLANK = "blank"
    CODE = "code"


class NoteSource(str, Enum):
    """Where a note came from."""

    DOC = "doc"
    MEETING = "meeting"
    AD_HOC = "ad_hoc"


class IntentLabel(str, Enum):
    """The seven intent labels scored for every section."""

    PLAN_CHANGE = "plan_change"
    NEW_WORKSTREAM = "new_workstream"
    STATUS_INFORMATIONAL = "status_informational"
    COMMUNICATION = "communication"
    RESEARCH = "research"
    CALENDAR = "calendar"
    MICRO_TASKS = "micro_tasks"


class SuggestionType(str, Enum):
    """Type of an emitted suggestion."""

    IDEA = "idea"
    PROJECT_UPDATE = "project_update"


class StructuralHint(str, Enum):
    """Sub-kind preserved alongside the suggestion type."""

    FEATURE_REQUEST = "feature_request"          # prose-shaped idea
    EXECUTION_ARTIFACT = "execution_artifact"    # bullet-shaped idea
    PROJECT_UPDATE = "project_update"            # change to an existing plan


class SuggestionAction(str, Enum):
    """How a consumer should act on a suggestion."""

    CREATE = "create"
    UPDATE = "update"
    COMMENT = "comment"


class ClarificationReason(str, Enum):
    """Why a kept suggestion needs a human to look at it."""

    LOW_ACTIONABILITY_SCORE = "low_actionability_score"
    LOW_OVERALL_SCORE = "low_overall_score"


class DropStage(str, Enum):
    """Pipeline stage at which a section or suggestion was dropped."""

    ACTIONABILITY = "actionability"
    VALIDATION = "validation"
    THRESHOLD = "threshold"
    CAP = "cap"
