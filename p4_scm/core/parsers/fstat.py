"""
Parser for z-tagged output, as produced by p4 fstat:

    ... depotFile //depot/testArea/stuff
    ... clientFile /home/ws/testArea/stuff
    ... mapped
    ... headRev 3

Files are separated by blank lines. Per-revision resolve and other-open
records are nested one level deeper (`... ... resolveFromFile0 //depot/b`)
and are flattened into the same block.
"""

import re

from ..parse_utils import filter_map, split_into_lines, split_into_sections
from ..types import FstatInfo

ZTAG_FIELD_RE = re.compile(r"^(?:[.]{3} )+(\w+)[ ]*(.+)?")


def parse_ztag_field(line: str) -> tuple[str, str] | None:
    """A field without a value is a flag, and is given the value 'true'."""
    match = ZTAG_FIELD_RE.match(line)
    if not match:
        return None
    name, value = match.groups()
    return name, value if value else "true"


def parse_ztag_block(block: str) -> FstatInfo:
    info: FstatInfo = {"depotFile": ""}
    info.update(filter_map(parse_ztag_field, split_into_lines(block)))
    return info


def parse_fstat_output(output: str) -> list[FstatInfo]:
    trimmed = output.strip()
    if not trimmed:
        return []
    return [parse_ztag_block(block) for block in split_into_sections(trimmed)]
