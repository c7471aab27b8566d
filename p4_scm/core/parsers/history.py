"""
Parsers for file history: p4 filelog -l -t and p4 annotate -q.

filelog output looks like:

    //depot/TestArea/a.txt
    ... #3 change 45 edit on 2020/02/15 18:48:43 by super@matto (text)

    \tthe description

    ... ... copy from //depot/branch/a.txt#2,#3
    ... #2 change 40 ...
"""

import re

from ..parse_utils import parse_date, remove_indent, section_array_by, split_into_lines
from ..types import Annotation, Direction, FileLogIntegration, FileLogItem

REVISION_RE = re.compile(
    r"^\.{3} #(\d+) change (\d+) (\S+) on (\d{4}/\d{2}/\d{2}(?: \d{2}:\d{2}:\d{2})?) "
    r"by (\S+?)@(\S+)(?: \((\S+)\))?"
)
INTEGRATION_RE = re.compile(r"^\.{3} \.{3} (\S+) (from|into) (.+?)(?:#(\d+|none)(?:,#(\d+))?)?$")

ANNOTATE_RE = re.compile(r"^(\d+): ?(.*)$")
ANNOTATE_USER_RE = re.compile(r"^(\d+): (\S+) (\d{4}/\d{2}/\d{2}) ?(.*)$")


def _is_file_start(line: str) -> bool:
    return line.startswith("//")


def _is_revision_start(line: str) -> bool:
    return REVISION_RE.match(line) is not None


def parse_integration(line: str) -> FileLogIntegration | None:
    match = INTEGRATION_RE.match(line)
    if not match:
        return None
    operation, direction, file, first, second = match.groups()
    start_rev, end_rev = (first, second) if second is not None else (None, first)
    return FileLogIntegration(
        file=file,
        start_rev=start_rev,
        end_rev=end_rev,
        operation=operation,
        direction=Direction.FROM if direction == "from" else Direction.TO,
    )


def _parse_revision(file: str, lines: list[str]) -> FileLogItem | None:
    header, *rest = lines
    match = REVISION_RE.match(header)
    if not match:
        return None
    revision, chnum, operation, date, user, client, _filetype = match.groups()
    description = remove_indent(line for line in rest if line.startswith("\t"))
    integrations = [i for i in map(parse_integration, rest) if i is not None]
    return FileLogItem(
        file=file,
        revision=revision,
        chnum=chnum,
        operation=operation,
        date=parse_date(date),
        user=user,
        client=client,
        description=tuple(description),
        integrations=tuple(integrations),
    )


def _parse_file_section(lines: list[str]) -> list[FileLogItem]:
    file, *rest = lines
    items: list[FileLogItem] = []
    for revision_lines in section_array_by(rest, _is_revision_start):
        item = _parse_revision(file.strip(), revision_lines)
        if item is not None:
            items.append(item)
    return items


def parse_filelog_output(output: str) -> list[FileLogItem]:
    """Newest revision first, files in the order they were output."""
    lines = split_into_lines(output)
    return [
        item
        for section in section_array_by(lines, _is_file_start)
        for item in _parse_file_section(section)
    ]


def parse_annotate_line(line: str, with_user: bool = False) -> Annotation | None:
    if with_user:
        match = ANNOTATE_USER_RE.match(line)
        if not match:
            return None
        revision_or_chnum, user, date, text = match.groups()
        return Annotation(line=text, revision_or_chnum=revision_or_chnum, user=user, date=date)
    match = ANNOTATE_RE.match(line)
    if not match:
        return None
    revision_or_chnum, text = match.groups()
    return Annotation(line=text, revision_or_chnum=revision_or_chnum)


def parse_annotate_output(output: str, with_user: bool = False) -> list[Annotation]:
    """
    One entry per line of the file. The trailing newline printed after the
    last line does not produce an entry.
    """
    lines = split_into_lines(output)
    if lines and lines[-1] == "":
        lines.pop()
    return [
        annotation
        for annotation in (parse_annotate_line(line, with_user) for line in lines)
        if annotation is not None
    ]
