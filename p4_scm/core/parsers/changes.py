"""
Parsers for changelist listings: p4 changes -l and p4 describe -s [-S].
"""

import re

from ..parse_utils import filter_map, parse_date, remove_indent, section_array_by, split_into_lines
from ..types import ChangeInfo, DepotFileOperation, DescribedChangelist, FixedJob, ShelvedChangeInfo

# Change 45 on 2020/02/15 by super@matto 'a new changelist with a much lo'
# Change 45 on 2020/02/15 18:48:43 by super@matto *pending* 'a new changelist'
CHANGES_HEADER_RE = re.compile(
    r"^Change\s(\d+)\son\s(\d{4}/\d{2}/\d{2}(?:\s\d{2}:\d{2}:\d{2})?)\sby\s(\S+?)@(\S+)(?:\s\*(.+?)\*)?"
)

# Change 45 by super@matto on 2020/02/15 18:48:43 *pending*
DESCRIBE_HEADER_RE = re.compile(
    r"^Change\s(\d+)\sby\s(\S+?)@(\S+)\son\s(\d{4}/\d{2}/\d{2}(?:\s\d{2}:\d{2}:\d{2})?)(?:\s\*(.+?)\*)?"
)

# job000001 on 2020/04/04 by zogge *closed*
FIXED_JOB_RE = re.compile(r"^(\S+) on \S+(?: \S+)? by \S+ \*\S+\*")

# ... //depot/a.txt#3 edit
DESCRIBE_FILE_RE = re.compile(r"^\.\.\. (.+)#(\d+) (\S+)$")

_JOBS_FIXED = "Jobs fixed ..."
_AFFECTED_FILES = "Affected files ..."
_SHELVED_FILES = "Shelved files ..."
_DIFFERENCES = "Differences ..."
_DESCRIBE_SECTIONS = (_JOBS_FIXED, _AFFECTED_FILES, _SHELVED_FILES, _DIFFERENCES)


def _is_change_start(line: str) -> bool:
    return line.startswith("Change ")


def _description_lines(lines: list[str]) -> tuple[str, ...]:
    """
    Takes the tab-indented lines as the description, keeping blank lines
    between them but not the blank lines around it.
    """
    indented = [i for i, line in enumerate(lines) if line.startswith("\t")]
    if not indented:
        return ()
    body = lines[indented[0] : indented[-1] + 1]
    kept = (
        line if line.strip() else ""
        for line in body
        if line.startswith("\t") or not line.strip()
    )
    return tuple(remove_indent(kept))


# =========================================================================
# p4 changes
# =========================================================================


def parse_changelist_header(line: str) -> ChangeInfo | None:
    match = CHANGES_HEADER_RE.match(line)
    if not match:
        return None
    chnum, date, user, client, status = match.groups()
    return ChangeInfo(
        chnum=chnum,
        user=user,
        client=client,
        date=parse_date(date),
        is_pending=status == "pending",
    )


def _parse_changelist(lines: list[str]) -> ChangeInfo | None:
    header, *desc_lines = lines
    parsed = parse_changelist_header(header)
    if parsed is None:
        return None
    description = _description_lines(desc_lines)
    return ChangeInfo(
        chnum=parsed.chnum,
        user=parsed.user,
        client=parsed.client,
        description=description,
        date=parsed.date,
        is_pending=parsed.is_pending,
    )


def parse_changes_output(output: str) -> list[ChangeInfo]:
    sections = section_array_by(split_into_lines(output), _is_change_start)
    return filter_map(_parse_changelist, sections)


# =========================================================================
# p4 describe
# =========================================================================


def _split_describe_sections(lines: list[str]) -> dict[str, list[str]]:
    """Splits a described change into its header part and its named sections."""
    sections: dict[str, list[str]] = {"": []}
    current = ""
    for line in lines:
        if line in _DESCRIBE_SECTIONS:
            current = line
            sections[current] = []
        else:
            sections[current].append(line)
    return sections


def _parse_file_operation(line: str) -> DepotFileOperation | None:
    match = DESCRIBE_FILE_RE.match(line)
    if not match:
        return None
    depot_path, revision, operation = match.groups()
    return DepotFileOperation(depot_path=depot_path, revision=revision, operation=operation)


def _parse_fixed_jobs(lines: list[str]) -> tuple[FixedJob, ...]:
    jobs: list[FixedJob] = []
    for job_lines in section_array_by(lines, lambda line: FIXED_JOB_RE.match(line) is not None):
        header, *rest = job_lines
        job_id = header.split(" ", 1)[0]
        jobs.append(FixedJob(id=job_id, description=_description_lines(rest)))
    return tuple(jobs)


def _parse_described_change(lines: list[str]) -> DescribedChangelist | None:
    header, *rest = lines
    match = DESCRIBE_HEADER_RE.match(header)
    if not match:
        return None
    chnum, user, client, date, status = match.groups()
    sections = _split_describe_sections(rest)
    return DescribedChangelist(
        chnum=chnum,
        user=user,
        client=client,
        description=_description_lines(sections[""]),
        date=parse_date(date),
        is_pending=status == "pending",
        affected_files=tuple(
            filter_map(_parse_file_operation, sections.get(_AFFECTED_FILES, []))
        ),
        shelved_files=tuple(filter_map(_parse_file_operation, sections.get(_SHELVED_FILES, []))),
        fixed_jobs=_parse_fixed_jobs(sections.get(_JOBS_FIXED, [])),
    )


def parse_describe_output(output: str) -> list[DescribedChangelist]:
    sections = section_array_by(split_into_lines(output), _is_change_start)
    return filter_map(_parse_described_change, sections)


def to_shelved_change_info(changes: list[DescribedChangelist]) -> list[ShelvedChangeInfo]:
    """Keeps only the changes with shelved files, listing their depot paths."""
    return [
        ShelvedChangeInfo(chnum=c.chnum, paths=tuple(f.depot_path for f in c.shelved_files))
        for c in changes
        if c.shelved_files
    ]
