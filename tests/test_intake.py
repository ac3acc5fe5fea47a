"""Unit tests for intake validation."""

import math
import re

import pytest

from awards.intake import (
    IntakeRejected,
    UploadedFile,
    is_year_known,
    parse_year,
    storage_name_for,
    validate_intake,
)


@pytest.mark.parametrize("raw, expected", [("2020", 2020), (" 1999 ", 1999), ("0", 0)])
def test_parse_year_numeric(raw, expected):
    year = parse_year(raw)
    assert year == expected
    assert isinstance(year, int)


@pytest.mark.parametrize(
    "raw", [None, "", "   ", "nineteen", "2020.5", "-1", "10000", "3000000000", "99999999999999999999"]
)
def test_parse_year_unknown_is_nan(raw):
    year = parse_year(raw)
    assert math.isnan(year)
    assert not is_year_known(year)


def test_text_fields_accepted_as_is():
    long_text = "x" * 10_000
    result = validate_intake({
        "nominator_name": "  Jane Doe  ",
        "nominee_other_info": long_text,
        "nominee_year": "2001",
    })

    assert result.candidate.nominator_name == "  Jane Doe  "
    assert result.candidate.nominee_other_info == long_text
    assert result.candidate.nominee_year == 2001
    assert result.file is None


def test_unknown_fields_and_assessment_note_ignored():
    result = validate_intake({"category": "Young Researcher", "assessment_note": "pre-approved", "bogus": "1"})

    assert result.candidate.category == "Young Researcher"
    assert "assessment_note" not in result.candidate.model_dump()
    assert "bogus" not in result.candidate.model_dump()


def test_missing_year_yields_sentinel_not_error():
    result = validate_intake({"nominee_name": "A. Nominee"})
    assert not is_year_known(result.candidate.nominee_year)


def test_file_gets_derived_storage_name():
    upload = UploadedFile(filename="My Resume.PDF", content=b"%PDF-1.7", content_type="application/pdf")
    result = validate_intake({}, upload)

    assert result.file is not None
    assert re.fullmatch(r"cv-\d+-\d+\.pdf", result.file.storage_name)
    assert result.file.original_filename == "My Resume.PDF"
    assert result.file.content == b"%PDF-1.7"
    assert result.file.content_type == "application/pdf"


def test_storage_names_do_not_collide():
    names = {storage_name_for("cv", "resume.docx") for _ in range(200)}
    assert len(names) == 200


def test_file_without_extension_rejected():
    with pytest.raises(IntakeRejected):
        validate_intake({}, UploadedFile(filename="resume", content=b"data"))


def test_empty_file_part_treated_as_absent():
    result = validate_intake({"nominee_name": "X"}, UploadedFile(filename="", content=b""))
    assert result.file is None
