"""Intake validation for raw nomination form submissions.

Validation is deliberately permissive: text fields are taken as submitted
and an unparseable year becomes ``YEAR_UNKNOWN`` instead of a rejection.
The only hard rule is that an attached CV must have a file extension.
"""
from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Mapping

from pydantic import BaseModel, ConfigDict

# NaN never compares equal, test with is_year_known()
YEAR_UNKNOWN = math.nan

# Years outside this range are treated as unknown; they also fit any SQL INTEGER
MIN_YEAR = 0
MAX_YEAR = 9999


class IntakeRejected(Exception):
    """Raised when a submission cannot become a nomination candidate."""
    pass


@dataclass
class UploadedFile:
    """Raw file part as received from the form."""
    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class PendingFile:
    """Validated file waiting to be written to the blob store."""
    storage_name: str
    original_filename: str
    content: bytes
    content_type: str | None


class NominationCandidate(BaseModel):
    """Validated form data; becomes a Nomination once the CV is stored."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    nominator_name: str | None = None
    nominator_affiliation: str | None = None
    nominator_address: str | None = None
    nominator_email: str | None = None
    nominator_mobile: str | None = None
    category: str | None = None
    nominee_name: str | None = None
    nominee_father: str | None = None
    nominee_degree: str | None = None
    nominee_branch: str | None = None
    nominee_year: int | float = YEAR_UNKNOWN
    nominee_qualifications: str | None = None
    nominee_present_position: str | None = None
    nominee_past_positions: str | None = None
    nominee_address: str | None = None
    nominee_email: str | None = None
    nominee_mobile: str | None = None
    nominee_linkedin: str | None = None
    nominee_other_info: str | None = None


@dataclass
class IntakeResult:
    candidate: NominationCandidate
    file: PendingFile | None = None


TEXT_FIELDS = tuple(name for name in NominationCandidate.model_fields if name != "nominee_year")


def is_year_known(year: int | float | None) -> bool:
    return year is not None and not (isinstance(year, float) and math.isnan(year))


def parse_year(raw: str | None) -> int | float:
    """Parse the nominee's passing year.

    Returns:
        The year as int, or YEAR_UNKNOWN for missing, blank, non-numeric or
        out-of-range input
    """
    if raw is None:
        return YEAR_UNKNOWN
    try:
        year = int(raw.strip())
    except ValueError:
        return YEAR_UNKNOWN
    if not MIN_YEAR <= year <= MAX_YEAR:
        return YEAR_UNKNOWN
    return year


def storage_name_for(field_prefix: str, filename: str) -> str:
    """Derive a collision-resistant blob name keeping the original extension.

    Format: ``<prefix>-<epoch millis>-<random>.<ext>``

    Raises:
        IntakeRejected: If the filename carries no extension
    """
    suffix = PurePath(filename).suffix.lower()
    if not suffix or suffix == ".":
        raise IntakeRejected(f"Uploaded file {filename!r} has no extension")

    unique = f"{int(time.time() * 1000)}-{random.randrange(10**9)}"
    return f"{field_prefix}-{unique}{suffix}"


def validate_intake(
    fields: Mapping[str, str],
    upload: UploadedFile | None = None,
    *,
    field_prefix: str = "cv",
) -> IntakeResult:
    """Turn raw form fields and an optional file into a nomination candidate.

    Args:
        fields: Raw form field name -> string value
        upload: File part from the form, if any
        field_prefix: Prefix for the derived storage name (the form field name)

    Returns:
        IntakeResult with the candidate and, when a file was attached, the file
        ready for storage

    Raises:
        IntakeRejected: If an attached file has no usable filename
    """
    values: dict[str, object] = {name: fields[name] for name in TEXT_FIELDS if name in fields}
    values["nominee_year"] = parse_year(fields.get("nominee_year"))
    candidate = NominationCandidate(**values)

    # Browsers send an empty part when no file is chosen
    if upload is None or (not upload.filename and not upload.content):
        return IntakeResult(candidate=candidate)

    if not upload.filename:
        raise IntakeRejected("Uploaded file has no filename")

    pending = PendingFile(
        storage_name=storage_name_for(field_prefix, upload.filename),
        original_filename=PurePath(upload.filename).name,
        content=upload.content,
        content_type=upload.content_type,
    )
    return IntakeResult(candidate=candidate, file=pending)
