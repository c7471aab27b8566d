"""
Small helpers shared by the output parsers: line / section splitting,
indent removal, date parsing and the filter-map used to drop lines that
don't match the expected format.
"""

import re
from datetime import date, datetime
from typing import Callable, Iterable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DATE_RE = re.compile(r"(\d{4})/(\d{2})/(\d{2})(?: (\d{2}):(\d{2}):(\d{2}))?")

_LINE_BREAK_RE = re.compile(r"\r?\n")
_SECTION_BREAK_RE = re.compile(r"\r?\n\r?\n")


def filter_map(parse: Callable[[T], R | None], items: Iterable[T]) -> list[R]:
    """
    Applies parse to every item, dropping the ones it returns None for.
    This is how lines that don't match a parser's pattern are discarded.
    """
    return [parsed for parsed in map(parse, items) if parsed is not None]


def split_into_lines(text: str) -> list[str]:
    return _LINE_BREAK_RE.split(text)


def split_into_sections(text: str) -> list[str]:
    """Splits text on blank lines."""
    return _SECTION_BREAK_RE.split(text)


def remove_leading_newline(text: str) -> str:
    if text.startswith("\r\n"):
        return text[2:]
    return text[1:] if text.startswith("\n") else text


def remove_indent(lines: Iterable[str]) -> list[str]:
    """Strips a single leading tab from each line."""
    return [line[1:] if line.startswith("\t") else line for line in lines]


def section_array_by(lines: Sequence[str], is_start: Callable[[str], bool]) -> list[list[str]]:
    """
    Groups lines into sections, starting a new section at every line for which
    is_start is true. Lines before the first start line are discarded.
    """
    sections: list[list[str]] = []
    for line in lines:
        if is_start(line):
            sections.append([line])
        elif sections:
            sections[-1].append(line)
    return sections


def split_into_chunks(items: Sequence[T], size: int = 32) -> list[list[T]]:
    """Splits items into lists of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def parse_date(text: str) -> date | None:
    """
    Parses a p4 date: 2020/02/15 or 2020/02/15 18:48:43.
    Without a time portion, a plain date is returned rather than a
    datetime at midnight.
    """
    match = DATE_RE.search(text.strip())
    if not match:
        return None
    year, month, day, hours, minutes, seconds = match.groups()
    try:
        if hours is not None:
            return datetime(
                int(year), int(month), int(day), int(hours), int(minutes), int(seconds)
            )
        return date(int(year), int(month), int(day))
    except ValueError:
        return None
