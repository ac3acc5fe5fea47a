"""Submission pipeline: CV storage followed by record persistence.

The two writes are not transactional. The blob goes first, so a failed
insert can leave an orphaned CV in the blob store; it is logged with its
reference and left in place.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from awards import models
from awards.intake import IntakeResult, is_year_known
from awards.repositories import NominationRepository
from awards.storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)


class SubmissionStorageError(Exception):
    """Raised when the CV could not be stored; no record was created."""
    pass


class SubmissionPersistenceError(Exception):
    """Raised when the nomination record could not be inserted."""

    def __init__(self, message: str, orphaned_reference: str | None = None) -> None:
        super().__init__(message)
        self.orphaned_reference = orphaned_reference


def build_nomination(intake: IntakeResult, cv_reference: str | None) -> models.Nomination:
    """Build the ORM record from a validated candidate and the stored CV reference."""
    data = intake.candidate.model_dump()
    if not is_year_known(data["nominee_year"]):
        data["nominee_year"] = None

    nomination = models.Nomination(id=models.new_id(), **data, cv_reference=cv_reference)
    if cv_reference is not None and intake.file is not None:
        nomination.cv_filename = intake.file.original_filename
        nomination.cv_content_type = intake.file.content_type
    return nomination


async def submit_nomination(
    session: AsyncSession,
    blob_store: BlobStore,
    intake: IntakeResult,
) -> str:
    """Store the CV (if any) and persist the nomination.

    Steps:
    1. Put the CV bytes in the blob store under the derived name
    2. Build the Nomination with the returned reference (or None)
    3. Insert into the record store

    There is no idempotency key: submitting the same data twice creates
    two records.

    Args:
        session: Database session
        blob_store: Where CV bytes are written
        intake: Output of the intake validator

    Returns:
        Generated nomination id

    Raises:
        SubmissionStorageError: If step 1 fails
        SubmissionPersistenceError: If step 3 fails
    """
    cv_reference = None
    if intake.file is not None:
        try:
            cv_reference = await blob_store.put(
                intake.file.storage_name,
                intake.file.content,
                intake.file.content_type,
            )
        except BlobStoreError as e:
            logger.error(f"CV storage failed: {e}", exc_info=True)
            raise SubmissionStorageError(f"CV storage failed: {e}") from e

    nomination = build_nomination(intake, cv_reference)

    try:
        nomination_id = await NominationRepository(session).create(nomination)
    except SQLAlchemyError as e:
        if cv_reference is not None:
            logger.warning(
                "Nomination insert failed after CV was stored; blob left orphaned",
                extra={"orphaned_reference": cv_reference},
            )
        logger.error(f"Nomination insert failed: {e}", exc_info=True)
        raise SubmissionPersistenceError(
            f"Nomination insert failed: {e}",
            orphaned_reference=cv_reference,
        ) from e

    logger.info(f"Stored nomination {nomination_id} (cv: {cv_reference or 'none'})")
    return nomination_id
