"""Stage 1: Preprocessing and Segmentation.

Approach:
1. Normalise line endings and annotate every line with a structural type
2. Detect explicit (markdown / numbered) and implicit (plain-text) headings
3. Group lines into sections; leading content goes to a synthetic General section
4. Merge empty-bodied headings forward ("Parent > Child")

The segmenter never fails: empty or blank-only input yields zero sections.
"""

import re
from typing import Optional

import structlog

from notesense.models import Line, LineType, PreprocessingResult, Section
from notesense.pipeline.ids import IdGenerator
from notesense.pipeline.stages.features import compute_structural_features
from notesense.pipeline.text import has_word_chars

logger = structlog.get_logger(__name__)


# =============================================================================
# Line Patterns
# =============================================================================

MARKDOWN_HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
NUMBERED_HEADING_PATTERN = re.compile(r"^\s{0,2}\d+\.\s+(\S.*)$")
NUMBERED_LINE_PATTERN = re.compile(r"^\s*\d+[.)]\s+\S")
LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+\S")
CODE_FENCE_PATTERN = re.compile(r"^\s*(?:```|~~~)")

TERMINAL_PUNCTUATION = (".", "?", "!")
IMPLICIT_HEADING_MAX_CHARS = 40
DEFAULT_SUBHEADING_LEVEL = 2
MERGED_HEADING_SEPARATOR = " > "


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _indent_level(text: str) -> int:
    leading = len(text) - len(text.lstrip(" \t"))
    prefix = text[:leading]
    width = prefix.count(" ") + 2 * prefix.count("\t")
    return width // 2


def _heading_title(text: str) -> str:
    """Heading text without markers, numerals or a trailing colon."""
    md = MARKDOWN_HEADING_PATTERN.match(text)
    if md:
        title = md.group(2)
    else:
        numbered = NUMBERED_HEADING_PATTERN.match(text)
        title = numbered.group(1) if numbered else text
    return title.strip().rstrip(":").strip()


def _next_content_index(raw_lines: list[str], start: int) -> Optional[int]:
    for idx in range(start, len(raw_lines)):
        if raw_lines[idx].strip():
            return idx
    return None


def _is_short_colon_line(text: str) -> bool:
    stripped = text.strip()
    return (
        stripped.endswith(":")
        and len(stripped) <= IMPLICIT_HEADING_MAX_CHARS
        and not LIST_ITEM_PATTERN.match(text)
        and not MARKDOWN_HEADING_PATTERN.match(stripped)
    )


def _is_numbered_heading(raw_lines: list[str], idx: int) -> bool:
    match = NUMBERED_HEADING_PATTERN.match(raw_lines[idx])
    if not match:
        return False
    title = match.group(1).strip()
    if not has_word_chars(title) or title.endswith(TERMINAL_PUNCTUATION):
        return False
    nxt = _next_content_index(raw_lines, idx + 1)
    if nxt is None:
        return False
    following = raw_lines[nxt].strip()
    return not (NUMBERED_LINE_PATTERN.match(following) or MARKDOWN_HEADING_PATTERN.match(following))


def _is_implicit_heading(raw_lines: list[str], idx: int) -> bool:
    """A short unpunctuated line introducing a block of content."""
    stripped = raw_lines[idx].strip()
    if len(stripped) > IMPLICIT_HEADING_MAX_CHARS or stripped.endswith(TERMINAL_PUNCTUATION):
        return False
    if not has_word_chars(stripped):
        return False
    if idx + 1 >= len(raw_lines):
        return False

    following = raw_lines[idx + 1]
    if not following.strip():
        # a blank line only introduces something if content follows it
        return _next_content_index(raw_lines, idx + 1) is not None
    if LIST_ITEM_PATTERN.match(following):
        return True
    return _is_short_colon_line(following)


# =============================================================================
# Line Annotation
# =============================================================================

def annotate_lines(text: str) -> list[Line]:
    """Split text into lines and assign each a structural type."""
    text = normalize_line_endings(text)
    if not text:
        return []

    raw_lines = text.split("\n")
    lines: list[Line] = []
    in_fence = False
    seen_explicit_heading = False

    for idx, raw in enumerate(raw_lines):
        stripped = raw.strip()
        indent = _indent_level(raw)

        if CODE_FENCE_PATTERN.match(raw):
            in_fence = not in_fence
            lines.append(Line(index=idx, text=raw, line_type=LineType.CODE, indent_level=indent))
            continue
        if in_fence:
            lines.append(Line(index=idx, text=raw, line_type=LineType.CODE, indent_level=indent))
            continue
        if not stripped:
            lines.append(Line(index=idx, text=raw, line_type=LineType.BLANK))
            continue

        md = MARKDOWN_HEADING_PATTERN.match(stripped)
        if md and has_word_chars(md.group(2)):
            seen_explicit_heading = True
            lines.append(Line(
                index=idx, text=raw, line_type=LineType.HEADING,
                heading_level=len(md.group(1)), indent_level=indent,
            ))
            continue

        if _is_numbered_heading(raw_lines, idx):
            seen_explicit_heading = True
            lines.append(Line(
                index=idx, text=raw, line_type=LineType.HEADING,
                heading_level=DEFAULT_SUBHEADING_LEVEL, indent_level=indent,
            ))
            continue

        if LIST_ITEM_PATTERN.match(raw):
            lines.append(Line(index=idx, text=raw, line_type=LineType.LIST_ITEM, indent_level=indent))
            continue

        if not seen_explicit_heading and _is_implicit_heading(raw_lines, idx):
            lines.append(Line(
                index=idx, text=raw, line_type=LineType.HEADING,
                heading_level=DEFAULT_SUBHEADING_LEVEL, indent_level=indent,
            ))
            continue

        lines.append(Line(index=idx, text=raw, line_type=LineType.PARAGRAPH, indent_level=indent))

    return lines


# =============================================================================
# Section Grouping
# =============================================================================

def _trim_blank_edges(body: list[Line]) -> list[Line]:
    start, end = 0, len(body)
    while start < end and body[start].line_type == LineType.BLANK:
        start += 1
    while end > start and body[end - 1].line_type == LineType.BLANK:
        end -= 1
    return body[start:end]


def build_sections(lines: list[Line], note_id: str, ids: IdGenerator) -> list[Section]:
    """Group annotated lines into sections.

    Empty-bodied headings merge into the next heading; a trailing empty
    heading is dropped.
    """
    groups: list[tuple[Optional[Line], list[Line]]] = []
    for line in lines:
        if line.line_type == LineType.HEADING:
            groups.append((line, []))
        elif groups:
            groups[-1][1].append(line)
        elif line.line_type != LineType.BLANK:
            groups.append((None, [line]))

    sections: list[Section] = []
    pending_title: Optional[str] = None
    pending_start: Optional[int] = None

    for heading, raw_body in groups:
        body = _trim_blank_edges(raw_body)
        title = _heading_title(heading.text) if heading else None

        if not body:
            if heading is not None:
                if pending_title is None:
                    pending_title, pending_start = title, heading.index
                else:
                    pending_title = f"{pending_title}{MERGED_HEADING_SEPARATOR}{title}"
            continue

        start_line = body[0].index if heading is None else heading.index
        if pending_title is not None:
            title = f"{pending_title}{MERGED_HEADING_SEPARATOR}{title}"
            start_line = pending_start
            pending_title, pending_start = None, None

        sections.append(Section(
            section_id=ids.next_section_id(),
            note_id=note_id,
            heading_text=title,
            heading_level=heading.heading_level if heading else None,
            start_line=start_line,
            end_line=body[-1].index,
            body_lines=tuple(body),
            raw_text="\n".join(line.text for line in body),
            structural_features=compute_structural_features(body),
        ))

    if pending_title is not None:
        logger.debug("trailing_empty_heading_dropped", heading=pending_title)

    return sections


def preprocess_note(raw_markdown: str, note_id: str, ids: IdGenerator) -> PreprocessingResult:
    """Annotate and segment a note.

    Args:
        raw_markdown: Note text.
        note_id: Id of the note, used to namespace section ids.
        ids: Per-run id generator.

    Returns:
        PreprocessingResult with annotated lines and sections.
    """
    lines = annotate_lines(raw_markdown)
    sections = build_sections(lines, note_id, ids)

    logger.debug(
        "segmentation_complete",
        note_id=note_id,
        lines=len(lines),
        sections=len(sections),
    )
    return PreprocessingResult(lines=tuple(lines), sections=sections)


def serialize_sections(sections: list[Section]) -> str:
    """Render sections back to markdown; re-segmenting yields the same boundaries."""
    chunks: list[str] = []
    for section in sections:
        if section.heading_text is not None:
            level = section.heading_level or DEFAULT_SUBHEADING_LEVEL
            title = section.heading_text
            if title.endswith("#"):
                # closing marker, otherwise the trailing "#" is read as one
                title = f"{title} #"
            chunks.append(f"{'#' * level} {title}")
        chunks.extend(line.text for line in section.body_lines)
    return "\n".join(chunks)
