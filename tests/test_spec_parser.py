"""
Pytest tests for the spec codec (p4_scm.core.spec_parser) and the change /
job spec mappings built on it (p4_scm.core.parsers.specs).
"""

import pytest

from p4_scm.core.parsers.specs import (
    format_change_spec,
    format_job_spec,
    parse_change_spec,
    parse_created_changelist,
    parse_created_job,
    parse_job_spec,
)
from p4_scm.core.spec_parser import (
    SpecError,
    get_basic_field,
    parse_spec_output,
    serialize_spec,
)
from p4_scm.core.types import ChangeSpec, ChangeSpecFile, Job, RawField

CHANGE_SPEC = (
    "# A Perforce Change Specification.\n"
    "#\n"
    "#  Change:      The change number. 'new' on a new changelist.\n"
    "\n"
    "Change:\t45\n"
    "\n"
    "Client:\tcli\n"
    "\n"
    "User:\tsuper\n"
    "\n"
    "Status:\tpending\n"
    "\n"
    "Description:\n"
    "\tFirst line\n"
    "\tsecond line\n"
    "\n"
    "\tafter a gap\n"
    "\n"
    "Files:\n"
    "\t//depot/TestArea/doc3.txt\t# add\n"
    "\t//depot/TestArea/My initial text document.txt\t# edit\n"
    "\n"
)

JOB_SPEC = (
    "# A Perforce Job Specification.\n"
    "\n"
    "Job:\tjob000001\n"
    "\n"
    "Status:\topen\n"
    "\n"
    "User:\tsuper\n"
    "\n"
    "Severity:\tA\n"
    "\n"
    "Description:\n"
    "\tThe job\n"
    "\n"
)


@pytest.mark.unit
class TestParseSpecOutput:
    """Test parse_spec_output / get_basic_field."""

    def test_fields_in_order_without_comments(self):
        fields = parse_spec_output(CHANGE_SPEC)
        assert [f.name for f in fields] == [
            "Change",
            "Client",
            "User",
            "Status",
            "Description",
            "Files",
        ]

    def test_single_line_field(self):
        fields = parse_spec_output(CHANGE_SPEC)
        assert get_basic_field(fields, "Client") == ("cli",)

    def test_multi_line_field_keeps_blank_lines(self):
        fields = parse_spec_output(CHANGE_SPEC)
        assert get_basic_field(fields, "Description") == (
            "First line",
            "second line",
            "",
            "after a gap",
        )

    def test_missing_field(self):
        assert get_basic_field(parse_spec_output(CHANGE_SPEC), "Jobs") is None

    def test_empty_field(self):
        fields = parse_spec_output("Change:\tnew\n\nJobs:\n\n")
        assert get_basic_field(fields, "Jobs") == ()

    def test_windows_line_endings(self):
        fields = parse_spec_output("Change:\tnew\r\n\r\nDescription:\r\n\tdesc\r\n\r\n")
        assert get_basic_field(fields, "Description") == ("desc",)


@pytest.mark.unit
class TestSerializeSpec:
    """Test serialize_spec."""

    def test_defined_fields_first_then_passthrough(self):
        raw = parse_spec_output(CHANGE_SPEC)
        output = serialize_spec([RawField("Description", ("new desc",))], raw)
        assert output.startswith("Description:\tnew desc\n\nChange:\t45\n\nClient:\tcli")
        assert output.count("Description:") == 1
        assert output.endswith("\n\n")

    def test_multi_line_value(self):
        assert serialize_spec([RawField("Description", ("a", "", "b"))], []) == (
            "Description:\ta\n\t\n\tb\n\n"
        )

    def test_missing_required_field(self):
        with pytest.raises(SpecError, match="Description"):
            serialize_spec([RawField("Change", ("new",))], [], required=("Change", "Description"))

    def test_spec_error_is_value_error(self):
        assert issubclass(SpecError, ValueError)


@pytest.mark.unit
class TestChangeSpec:
    """Test the change spec mapping."""

    def test_parse_change_spec(self):
        spec = parse_change_spec(CHANGE_SPEC)
        assert spec.change == "45"
        assert spec.description == "First line\nsecond line\n\nafter a gap"
        assert spec.files == (
            ChangeSpecFile("//depot/TestArea/doc3.txt", "add"),
            ChangeSpecFile("//depot/TestArea/My initial text document.txt", "edit"),
        )

    def test_spec_without_files(self):
        spec = parse_change_spec("Change:\tnew\n\nDescription:\n\t<enter description here>\n\n")
        assert spec.change == "new"
        assert spec.files is None

    def test_format_keeps_unmodelled_fields(self):
        spec = parse_change_spec(CHANGE_SPEC)
        edited = ChangeSpec(
            raw_fields=spec.raw_fields,
            change=spec.change,
            description="Updated",
            files=spec.files[:1] if spec.files else None,
        )
        output = format_change_spec(edited)
        assert "Change:\t45" in output
        assert "Description:\tUpdated" in output
        assert "Files:\t//depot/TestArea/doc3.txt\t# add\n\n" in output
        assert "Client:\tcli" in output
        assert "Status:\tpending" in output
        assert "text document" not in output

    def test_format_and_parse_again(self):
        spec = parse_change_spec(CHANGE_SPEC)
        reparsed = parse_change_spec(format_change_spec(spec))
        assert reparsed.change == spec.change
        assert reparsed.description == spec.description
        assert reparsed.files == spec.files

    def test_format_requires_description(self):
        with pytest.raises(SpecError):
            format_change_spec(ChangeSpec(change="new"))

    @pytest.mark.parametrize(
        "output, chnum",
        [
            ("Change 46 created.", "46"),
            ("Change 46 updated.", "46"),
            ("Change 46 created with 2 open file(s).", "46"),
            ("something else", None),
        ],
    )
    def test_parse_created_changelist(self, output, chnum):
        created = parse_created_changelist(output)
        assert created.chnum == chnum
        assert created.raw_output == output


@pytest.mark.unit
class TestJobSpec:
    """Test the job spec mapping."""

    def test_parse_job_spec(self):
        job = parse_job_spec(JOB_SPEC)
        assert job.job == "job000001"
        assert job.status == "open"
        assert job.user == "super"
        assert job.description == "The job"

    def test_format_keeps_custom_fields(self):
        job = parse_job_spec(JOB_SPEC)
        edited = Job(
            raw_fields=job.raw_fields,
            job=job.job,
            status="closed",
            user=job.user,
            description=job.description,
        )
        output = format_job_spec(edited)
        assert "Status:\tclosed" in output
        assert "Status:\topen" not in output
        assert "Severity:\tA" in output

    @pytest.mark.parametrize(
        "output, job",
        [
            ("Job job000002 saved.", "job000002"),
            ("Job job000002 not changed.", "job000002"),
            ("nothing", None),
        ],
    )
    def test_parse_created_job(self, output, job):
        assert parse_created_job(output).job == job
