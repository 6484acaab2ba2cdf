"""Input and segmentation models.

Stage Flow:
1. NoteInput              → raw markdown from the caller
2. Preprocessing          → tuple[Line], list[Section]
3. Feature extraction     → StructuralFeatures attached to each Section
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from notesense.models.enums import LineType, NoteSource


# =============================================================================
# Caller-facing inputs
# =============================================================================

class NoteInput(BaseModel):
    """A single meeting note submitted for suggestion generation."""

    note_id: str = Field(..., min_length=1, description="Caller-assigned note identifier")
    raw_markdown: str = Field(..., description="Markdown or plain text body of the note")
    author_id: Optional[str] = Field(None, description="Author of the note, if known")
    authored_at: Optional[datetime] = Field(None, description="When the note was written")
    source: Optional[NoteSource] = Field(None, description="Where the note came from")

    model_config = ConfigDict(frozen=True)


class InitiativeSnapshot(BaseModel):
    """Read-only view of an existing initiative, used for advisory routing."""

    id: str = Field(..., description="Initiative identifier")
    title: str = Field(..., description="Initiative title")
    description: str = Field(default="", description="Initiative description")
    status: Optional[str] = Field(None, description="draft, active, done, ...")
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Preprocessing outputs
# =============================================================================

class Line(BaseModel):
    """One annotated line of the note."""

    index: int = Field(ge=0, description="Zero-based line index in the note")
    text: str = Field(description="Verbatim line text")
    line_type: LineType
    heading_level: Optional[int] = Field(None, ge=1, le=6)
    indent_level: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class StructuralFeatures(BaseModel):
    """Cheap structural signals computed from a section body."""

    num_lines: int = Field(default=0, ge=0, description="Non-blank body lines")
    num_list_items: int = Field(default=0, ge=0)
    has_dates: bool = False
    has_metrics: bool = False
    has_quarter_refs: bool = False
    has_version_refs: bool = False
    has_launch_keywords: bool = False
    initiative_phrase_density: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)


class Section(BaseModel):
    """A contiguous block of the note under one (possibly synthetic) heading.

    Sections never share a line. raw_text is always non-empty.
    """

    section_id: str = Field(description="Run-scoped id, e.g. 'sec_note1234_1'")
    note_id: str
    heading_text: Optional[str] = Field(None, description="None for the synthetic General section")
    heading_level: Optional[int] = None
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    body_lines: tuple[Line, ...] = Field(default_factory=tuple)
    raw_text: str = Field(min_length=1)
    structural_features: StructuralFeatures = Field(default_factory=StructuralFeatures)

    model_config = ConfigDict(frozen=True)

    @property
    def display_heading(self) -> str:
        return self.heading_text or "General"

    @property
    def content_lines(self) -> list[Line]:
        """Body lines that carry text."""
        return [line for line in self.body_lines if line.line_type != LineType.BLANK]


class PreprocessingResult(BaseModel):
    """Output of the segmentation stage."""

    lines: tuple[Line, ...] = Field(default_factory=tuple)
    sections: list[Section] = Field(default_factory=list)
