"""
Change and job specs: mapping the generic spec fields to ChangeSpec / Job,
writing them back, and parsing the server's reply to `-i`.
"""

import re

from ..parse_utils import split_into_lines
from ..spec_parser import get_basic_field, parse_spec_output, serialize_spec
from ..types import ChangeSpec, ChangeSpecFile, CreatedChangelist, CreatedJob, Job, RawField

CREATED_CHANGE_RE = re.compile(r"Change\s(\d+)\s")
CREATED_JOB_RE = re.compile(r"Job (\S*) (saved|not changed)")

CHANGE_SPEC_REQUIRED = ("Change", "Description")
JOB_SPEC_REQUIRED = ("Job", "Description")


def _first_line(value: tuple[str, ...] | None) -> str | None:
    return value[0].strip() if value else None


def _joined(value: tuple[str, ...] | None) -> str | None:
    return "\n".join(value) if value is not None else None


# =========================================================================
# Change specs
# =========================================================================


def _parse_spec_file(line: str) -> ChangeSpecFile:
    # examples:
    #   //depot/TestArea/doc3.txt       # add
    #   //depot/TestArea/My initial text document.txt   # edit
    end_of_file = line.find("#")
    if end_of_file < 0:
        return ChangeSpecFile(depot_path=line.strip(), action="")
    return ChangeSpecFile(
        depot_path=line[:end_of_file].strip(), action=line[end_of_file + 1 :].strip()
    )


def map_to_change_fields(raw_fields: list[RawField]) -> ChangeSpec:
    files = get_basic_field(raw_fields, "Files")
    return ChangeSpec(
        raw_fields=tuple(raw_fields),
        change=_first_line(get_basic_field(raw_fields, "Change")),
        description=_joined(get_basic_field(raw_fields, "Description")),
        files=tuple(_parse_spec_file(f) for f in files) if files is not None else None,
    )


def parse_change_spec(output: str) -> ChangeSpec:
    return map_to_change_fields(parse_spec_output(output))


def _change_spec_defined_fields(spec: ChangeSpec) -> list[RawField]:
    fields: list[RawField] = []
    if spec.change is not None:
        fields.append(RawField("Change", (spec.change,)))
    if spec.description is not None:
        fields.append(RawField("Description", tuple(split_into_lines(spec.description))))
    if spec.files is not None:
        fields.append(
            RawField("Files", tuple(f"{f.depot_path}\t# {f.action}" for f in spec.files))
        )
    return fields


def format_change_spec(spec: ChangeSpec) -> str:
    """Produces the input for p4 change -i."""
    return serialize_spec(
        _change_spec_defined_fields(spec), spec.raw_fields, required=CHANGE_SPEC_REQUIRED
    )


def parse_created_changelist(output: str) -> CreatedChangelist:
    # Change 46 created. / Change 46 updated.
    match = CREATED_CHANGE_RE.search(output)
    return CreatedChangelist(raw_output=output, chnum=match.group(1) if match else None)


# =========================================================================
# Job specs
# =========================================================================


def map_to_job_fields(raw_fields: list[RawField]) -> Job:
    return Job(
        raw_fields=tuple(raw_fields),
        job=_first_line(get_basic_field(raw_fields, "Job")),
        status=_first_line(get_basic_field(raw_fields, "Status")),
        user=_first_line(get_basic_field(raw_fields, "User")),
        description=_joined(get_basic_field(raw_fields, "Description")),
    )


def parse_job_spec(output: str) -> Job:
    return map_to_job_fields(parse_spec_output(output))


def format_job_spec(job: Job) -> str:
    """Produces the input for p4 job -i."""
    fields: list[RawField] = []
    for name, value in (("Job", job.job), ("Status", job.status), ("User", job.user)):
        if value is not None:
            fields.append(RawField(name, (value,)))
    if job.description is not None:
        fields.append(RawField("Description", tuple(split_into_lines(job.description))))
    return serialize_spec(fields, job.raw_fields, required=JOB_SPEC_REQUIRED)


def parse_created_job(output: str) -> CreatedJob:
    match = CREATED_JOB_RE.search(output)
    return CreatedJob(raw_output=output, job=match.group(1) if match else None)
