"""Shared text helpers for the pipeline stages."""

import re

# Bullets, numbered items and checkbox prefixes: "- ", "* ", "• ", "1. ", "2) ", "- [ ] "
LIST_MARKER_PATTERN = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+(?:\[[ xX]\]\s+)?")
CHECKBOX_PATTERN = re.compile(r"^\s*(?:[-*+]\s+)?\[[ xX]\]\s+")

_SMART_QUOTES = str.maketrans({
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
})

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\.{3,}\s*|;\s+")
_WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9'\-]*")
_TRAILING_PUNCT = re.compile(r"[\s.;:,\-–]+$")
_WORD_CHAR = re.compile(r"\w")


def normalize_quotes(text: str) -> str:
    return text.translate(_SMART_QUOTES)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def strip_list_marker(text: str) -> str:
    """Remove a leading bullet, number or checkbox marker."""
    text = CHECKBOX_PATTERN.sub("", text)
    return LIST_MARKER_PATTERN.sub("", text).strip()


def clean_line(text: str) -> str:
    """Strip list markers, normalise quotes and collapse whitespace."""
    return collapse_whitespace(strip_list_marker(normalize_quotes(text)))


def split_sentences(text: str) -> list[str]:
    """Split text on terminal punctuation and semicolons; drops empty pieces."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s and s.strip()]


def words(text: str) -> list[str]:
    """Lowercased word tokens."""
    return _WORD_PATTERN.findall(text.lower())


def has_word_chars(text: str) -> bool:
    return _WORD_CHAR.search(text) is not None


def non_whitespace_len(text: str) -> int:
    return len(re.sub(r"\s", "", text))


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def strip_terminal_punctuation(text: str) -> str:
    return _TRAILING_PUNCT.sub("", text.strip())


def ensure_sentence(text: str) -> str:
    """Capitalise and end with exactly one terminal mark (no '..', ';.' or ':.').

    Text without any word characters yields an empty string.
    """
    text = text.strip()
    if not has_word_chars(text):
        return ""
    if text.endswith(("?", "!")):
        return capitalize_first(text)
    return capitalize_first(strip_terminal_punctuation(text)) + "."


def truncate_words(text: str, limit: int) -> str:
    """Truncate to at most ``limit`` characters without cutting a word.

    A leading token longer than ``limit`` is kept whole.
    """
    text = text.strip()
    if len(text) <= limit:
        return text
    cut = text[:limit + 1]
    space = cut.rfind(" ")
    if space <= 0:
        return text.split()[0]
    return strip_terminal_punctuation(cut[:space])
