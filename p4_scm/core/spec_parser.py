"""
Parser and serializer for the p4 "spec" text format, as used by
`p4 change -o / -i` and `p4 job -o / -i`:

    # A Perforce Change Specification.
    #  (comments)

    Change:\tnew

    Description:
    \t<enter description here>

Fields are separated by blank lines, introduced by `Name:` and their values
are indented by one tab.
"""

import logging
from typing import Iterable, Sequence

from .parse_utils import remove_indent, remove_leading_newline, split_into_lines, split_into_sections
from .types import RawField

log = logging.getLogger(__name__)


class SpecError(ValueError):
    """Raised when asked to write a spec that the server would reject."""

    pass


# =========================================================================
# Parsing
# =========================================================================


def _is_field_section(section: str) -> bool:
    return section != "" and not section.startswith("#")


def _is_continuation(section: str) -> bool:
    """An indented section after a blank line still belongs to the previous field."""
    return section.startswith(("\t", " "))


def _parse_raw_field(section: str) -> RawField | None:
    col_pos = section.find(":")
    if col_pos < 0:
        log.debug(f"Ignoring spec section without a field name: {section!r}")
        return None
    name = section[:col_pos]
    value = section[col_pos + 1 :]
    # skip the separator after the colon - a tab for one-line fields
    if value.startswith(("\t", " ")):
        value = value[1:]
    lines = remove_indent(split_into_lines(remove_leading_newline(value)))
    if lines == [""]:
        lines = []
    return RawField(name=name, value=tuple(lines))


def parse_spec_output(output: str) -> list[RawField]:
    """Parses spec text into its ordered list of fields, dropping comments."""
    fields: list[RawField] = []
    for section in split_into_sections(output):
        section = section.rstrip("\r\n")
        if not _is_field_section(section):
            continue
        if _is_continuation(section) and fields:
            prev = fields[-1]
            extra = remove_indent(split_into_lines(section))
            fields[-1] = RawField(name=prev.name, value=prev.value + ("",) + tuple(extra))
            continue
        parsed = _parse_raw_field(section)
        if parsed is not None:
            fields.append(parsed)
    return fields


def get_basic_field(fields: Iterable[RawField], name: str) -> tuple[str, ...] | None:
    """Returns the value lines of the named field, or None if it isn't there."""
    return next((f.value for f in fields if f.name == name), None)


# =========================================================================
# Serializing
# =========================================================================


def format_raw_field(field: RawField) -> str:
    return field.name + ":\t" + "\n\t".join(field.value)


def serialize_spec(
    defined_fields: Sequence[RawField],
    raw_fields: Sequence[RawField],
    required: Iterable[str] = (),
) -> str:
    """
    Writes a spec back out. defined_fields hold the current values of the
    fields the caller models; every raw field not among them is written
    verbatim so that fields we don't understand survive an edit.
    The output ends with a blank line, which p4 requires.
    """
    defined_names = {f.name for f in defined_fields}
    passthrough = [f for f in raw_fields if f.name not in defined_names]
    all_fields = list(defined_fields) + passthrough

    present = {f.name for f in all_fields}
    missing = [name for name in required if name not in present]
    if missing:
        raise SpecError(f"Spec is missing required field(s): {', '.join(missing)}")

    return "\n\n".join(format_raw_field(f) for f in all_fields) + "\n\n"
