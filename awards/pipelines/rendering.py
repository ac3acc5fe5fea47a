"""Nomination certificate rendering from a fixed PDF form template.

Template field names are a compatibility contract with the template asset
and must not be renamed here. ``achivement`` (sic) reads the same source
as ``other_qualification_details``; both are kept as the template expects.
"""
from __future__ import annotations

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from awards import models
from awards.intake import is_year_known

logger = logging.getLogger(__name__)

# Template field -> Nomination attribute
FIELD_MAP: dict[str, str] = {
    "name_nominator": "nominator_name",
    "nominator_designation": "nominator_affiliation",
    "nominator_address": "nominator_address",
    "nominator_email": "nominator_email",
    "nominator_mobile": "nominator_mobile",
    "nomination_category": "category",
    "nominee_name": "nominee_name",
    "nominee_father_name": "nominee_father",
    "degree_obtained": "nominee_degree",
    "branch": "nominee_branch",
    "passing_year": "nominee_year",
    "other_qualification_details": "nominee_qualifications",
    "present_position": "nominee_present_position",
    "past_position": "nominee_past_positions",
    "communication_address": "nominee_address",
    "nominee_email": "nominee_email",
    "nominee_mobile": "nominee_mobile",
    "achivement": "nominee_qualifications",
    "webpage_url": "nominee_linkedin",
    "other_information": "nominee_other_info",
    "assessment": "assessment_note",
}

TIMESTAMP_FIELD = "date_of_submission"
DEFAULT_TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


class TemplateUnavailableError(Exception):
    """Raised when the PDF template cannot be loaded."""
    pass


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if is_year_known(value) else ""
    return str(value)


def build_field_values(
    nomination: models.Nomination,
    now: datetime,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> dict[str, str]:
    """Map a nomination onto template field values.

    Every mapped field gets a string; missing source values become "".
    The timestamp field always carries ``now``, never a stored value.
    """
    values = {field: _as_text(getattr(nomination, attr, None)) for field, attr in FIELD_MAP.items()}
    values[TIMESTAMP_FIELD] = now.strftime(timestamp_format)
    return values


def _load_template(template_path: Path) -> PdfReader:
    try:
        return PdfReader(template_path)
    except (OSError, PyPdfError) as e:
        raise TemplateUnavailableError(f"Cannot load PDF template {template_path}: {e}") from e


def render_nomination_pdf(
    nomination: models.Nomination,
    template_path: Path | str,
    *,
    now: datetime | None = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> bytes:
    """Fill the form template for one nomination and flatten it.

    Mapped names missing from the template are skipped. Text fields the
    mapping does not cover keep their current value. After filling, field
    appearances are burned into the page content, widget annotations and
    the AcroForm are removed, so the output cannot be edited as a form.

    Args:
        nomination: Persisted nomination
        template_path: Path to the fillable PDF template
        now: Render timestamp (defaults to the current local time)
        timestamp_format: strftime format for the timestamp field

    Returns:
        Flattened PDF bytes

    Raises:
        TemplateUnavailableError: If the template cannot be read
    """
    template_path = Path(template_path)
    reader = _load_template(template_path)
    template_fields = reader.get_fields() or {}

    mapped = build_field_values(nomination, now or datetime.now(), timestamp_format)
    values: dict[str, str] = {}
    for name, field in template_fields.items():
        if name in mapped:
            values[name] = mapped[name]
        elif field.get("/FT") == "/Tx":
            values[name] = _as_text(field.get("/V"))

    skipped = sorted(set(mapped) - set(template_fields))
    if skipped:
        logger.debug(f"Template {template_path.name} lacks fields: {', '.join(skipped)}")

    writer = PdfWriter(clone_from=reader)
    for page in writer.pages:
        if "/Annots" in page:
            writer.update_page_form_field_values(page, values, auto_regenerate=False, flatten=True)

    writer.remove_annotations(subtypes="/Widget")
    if "/AcroForm" in writer.root_object:
        del writer.root_object["/AcroForm"]

    buffer = io.BytesIO()
    writer.write(buffer)
    logger.info(f"Rendered certificate for nomination {nomination.id} ({len(values)} fields)")
    return buffer.getvalue()
